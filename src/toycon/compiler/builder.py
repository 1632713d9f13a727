"""Graph construction driven by the parser.

The builder owns the symbol table (variable name -> current producer node)
and turns parse events into spawned, wired nodes. Conditional assignments
become Select nodes: both sides are computed every tick and the effective
condition picks one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from toycon.compiler.lexer import Token
from toycon.engine.graph import Graph
from toycon.engine.nodes import (
    BaseNode,
    BeepOutputNode,
    ColorOutputNode,
    ConstantNode,
    LogicNode,
    LogicOp,
    MathNode,
    MathOp,
    ScreenNode,
)

logger = logging.getLogger(__name__)

LAYOUT_ORIGIN = (100, 100)
LAYOUT_ROW_STEP = 80
LAYOUT_COLUMN_STEP = 200
LAYOUT_MAX_Y = 400

BINARY_OPERATORS: dict[str, Callable[[], BaseNode]] = {
    "+": lambda: MathNode(MathOp.ADD),
    "-": lambda: MathNode(MathOp.SUBTRACT),
    "*": lambda: MathNode(MathOp.MULTIPLY),
    "/": lambda: MathNode(MathOp.DIVIDE),
    ">": lambda: LogicNode(LogicOp.GREATER_THAN),
    "<": lambda: LogicNode(LogicOp.LESS_THAN),
}


class GraphBuilder:
    def __init__(self, graph: Graph) -> None:
        self.graph = graph
        self.symbols: dict[str, BaseNode] = {}
        self.warnings: list[str] = []
        self._x, self._y = LAYOUT_ORIGIN
        self._sinks: dict[str, Callable[[list[BaseNode], BaseNode | None], BaseNode]] = {
            "beep": self._beep,
            "ColorNode": self._color,
            "screen": self._screen,
        }

    def warn(self, message: str, token: Token | None = None) -> None:
        if token is not None:
            message = f"{message} (line {token.line}, column {token.column})"
        logger.debug("compile warning: %s", message)
        self.warnings.append(message)

    def spawn(self, node: BaseNode) -> BaseNode:
        self.graph.spawn(node, self._x, self._y)
        self._y += LAYOUT_ROW_STEP
        if self._y > LAYOUT_MAX_Y:
            self._y = LAYOUT_ORIGIN[1]
            self._x += LAYOUT_COLUMN_STEP
        return node

    def wire(self, source: BaseNode, target: BaseNode, slot: int) -> None:
        self.graph.connect(source, 0, target, slot)

    def constant(self, value: float) -> BaseNode:
        return self.spawn(ConstantNode(value))

    def lookup(self, name: str) -> BaseNode | None:
        return self.symbols.get(name)

    def unbound(self, token: Token) -> BaseNode:
        """Producer for a name with no binding: a zero constant."""
        self.warn(f"'{token.text}' is not bound, reads as 0", token)
        return self.constant(0.0)

    def binary(self, op: str, left: BaseNode, right: BaseNode) -> BaseNode:
        node = self.spawn(BINARY_OPERATORS[op]())
        self.wire(left, node, 0)
        self.wire(right, node, 1)
        return node

    def absolute(self, inner: BaseNode) -> BaseNode:
        node = self.spawn(MathNode(MathOp.ABS))
        self.wire(inner, node, 0)
        return node

    def nest_condition(self, outer: BaseNode | None, cond: BaseNode) -> BaseNode:
        """AND an inner if-condition onto the enclosing one."""
        if outer is None:
            return cond
        node = self.spawn(LogicNode(LogicOp.AND))
        self.wire(outer, node, 0)
        self.wire(cond, node, 1)
        return node

    def declare(self, name: str, value: BaseNode) -> None:
        self.symbols[name] = value

    def assign(self, name: str, value: BaseNode, condition: BaseNode | None) -> None:
        """Rebind name; under a condition, merge with the prior binding if there is one."""
        prior = self.symbols.get(name)
        if condition is None or prior is None:
            self.symbols[name] = value
            return
        merge = self.spawn(MathNode(MathOp.SELECT))
        self.wire(condition, merge, 0)
        self.wire(value, merge, 1)
        self.wire(prior, merge, 2)
        self.symbols[name] = merge

    def call(self, name: str, args: list[BaseNode], condition: BaseNode | None, token: Token) -> BaseNode | None:
        factory = self._sinks.get(name)
        if factory is None:
            self.warn(f"unknown sink '{name}', call ignored", token)
            return None
        return factory(args, condition)

    def _trigger(self, condition: BaseNode | None) -> BaseNode:
        return condition if condition is not None else self.constant(1.0)

    def _wire_args(self, node: BaseNode, args: list[BaseNode], first_slot: int, limit: int) -> None:
        for offset, arg in enumerate(args[:limit]):
            self.wire(arg, node, first_slot + offset)
        if len(args) > limit:
            self.warn(f"{node.name}: {len(args) - limit} extra argument(s) ignored")

    def _beep(self, args: list[BaseNode], condition: BaseNode | None) -> BaseNode:
        trigger = self._trigger(condition)
        node = self.spawn(BeepOutputNode())
        self.wire(trigger, node, 0)
        self._wire_args(node, args, 1, 2)
        return node

    def _color(self, args: list[BaseNode], condition: BaseNode | None) -> BaseNode:
        del condition
        node = self.spawn(ColorOutputNode())
        self._wire_args(node, args, 0, 3)
        return node

    def _screen(self, args: list[BaseNode], condition: BaseNode | None) -> BaseNode:
        draw = self._trigger(condition) if len(args) < 6 else None
        node = self.spawn(ScreenNode())
        self._wire_args(node, args, 0, 7)
        if draw is not None:
            self.wire(draw, node, 5)
        return node
