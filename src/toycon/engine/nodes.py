"""Node kinds and their per-tick evaluation contracts."""

from __future__ import annotations

import base64
from enum import Enum
from typing import Any, ClassVar

import numpy as np

from toycon.engine.host import RuntimeContext
from toycon.engine.ports import InputPort, OutputPort

EPSILON = 0.001

PortDecl = dict[str, list[str]]


class NodeKind(str, Enum):
    """Closed set of node kinds. Values are the on-disk type names."""

    CONSTANT = "ConstantNode"
    MATH = "MathNode"
    LOGIC = "LogicNode"
    TIMER = "TimerNode"
    COUNTER = "CounterNode"
    RANDOM = "RandomNode"
    BUTTON = "ButtonNode"
    KEY = "KeyNode"
    CURSOR = "CursorNode"
    BEEP = "BeepOutputNode"
    COLOR = "ColorOutputNode"
    SCREEN = "ScreenNode"
    SCRIPT = "ScriptImporterNode"


class MathOp(str, Enum):
    ADD = "Add"
    SUBTRACT = "Subtract"
    MULTIPLY = "Multiply"
    DIVIDE = "Divide"
    ABS = "Abs"
    SELECT = "Select"


class LogicOp(str, Enum):
    AND = "And"
    NOT = "Not"
    GREATER_THAN = "GreaterThan"
    LESS_THAN = "LessThan"
    OR = "Or"
    XOR = "Xor"


class UnknownNodeKindError(KeyError):
    """Raised when a node kind name is not part of the closed kind set."""


def truthy(value: float) -> bool:
    return abs(value) > EPSILON


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


class BaseNode:
    kind: ClassVar[NodeKind]
    display_name: ClassVar[str] = "Node"

    def __init__(self) -> None:
        self.node_id = -1
        self.name = self.display_name
        self.x = 0
        self.y = 0
        ports = self.declare_ports()
        self.inputs = [InputPort(name, -1, i) for i, name in enumerate(ports["inputs"])]
        self.outputs = [OutputPort(name, -1, i) for i, name in enumerate(ports["outputs"])]

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": [], "outputs": []}

    def bind(self, node_id: int) -> None:
        """Attach the graph-assigned id to this node and all of its ports."""
        self.node_id = node_id
        for port in [*self.inputs, *self.outputs]:
            port.node_id = node_id

    def evaluate(self, ctx: RuntimeContext) -> None:
        del ctx

    def params(self) -> dict[str, Any]:
        return {}

    def encode_data(self) -> str:
        return ""

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        del data
        return cls()

    def _in(self, slot: int) -> float:
        return self.inputs[slot].get_value()

    def _out(self, slot: int, value: float) -> None:
        self.outputs[slot].set_value(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.node_id}, name={self.name!r})"


class ConstantNode(BaseNode):
    kind = NodeKind.CONSTANT
    display_name = "Constant"

    def __init__(self, value: float = 0.0) -> None:
        self.value = float(value)
        super().__init__()

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": [], "outputs": ["Out"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        del ctx
        self._out(0, self.value)

    def params(self) -> dict[str, Any]:
        return {"value": self.value}

    def encode_data(self) -> str:
        return repr(self.value)

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        return cls(float(data)) if data else cls()


class MathNode(BaseNode):
    kind = NodeKind.MATH

    def __init__(self, op: MathOp | str = MathOp.ADD) -> None:
        self.op = MathOp(op)
        super().__init__()
        self.name = f"Math ({self.op.value})"

    def declare_ports(self) -> PortDecl:  # type: ignore[override]
        if self.op == MathOp.ABS:
            inputs = ["A"]
        elif self.op == MathOp.SELECT:
            inputs = ["Cond", "True", "False"]
        else:
            inputs = ["A", "B"]
        return {"inputs": inputs, "outputs": ["Result"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        del ctx
        if self.op == MathOp.ABS:
            result = abs(self._in(0))
        elif self.op == MathOp.SELECT:
            result = self._in(1) if truthy(self._in(0)) else self._in(2)
        else:
            a, b = self._in(0), self._in(1)
            if self.op == MathOp.ADD:
                result = a + b
            elif self.op == MathOp.SUBTRACT:
                result = a - b
            elif self.op == MathOp.MULTIPLY:
                result = a * b
            else:
                result = a / b if abs(b) > EPSILON else 0.0
        self._out(0, result)

    def params(self) -> dict[str, Any]:
        return {"op": self.op.value}

    def encode_data(self) -> str:
        return self.op.value

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        return cls(data) if data else cls()


class LogicNode(BaseNode):
    kind = NodeKind.LOGIC

    def __init__(self, op: LogicOp | str = LogicOp.AND) -> None:
        self.op = LogicOp(op)
        super().__init__()
        self.name = f"Logic ({self.op.value})"

    def declare_ports(self) -> PortDecl:  # type: ignore[override]
        inputs = ["In 1"] if self.op == LogicOp.NOT else ["In 1", "In 2"]
        return {"inputs": inputs, "outputs": ["Result"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        del ctx
        a = self._in(0)
        if self.op == LogicOp.NOT:
            result = not truthy(a)
        else:
            b = self._in(1)
            if self.op == LogicOp.AND:
                result = truthy(a) and truthy(b)
            elif self.op == LogicOp.OR:
                result = truthy(a) or truthy(b)
            elif self.op == LogicOp.XOR:
                result = truthy(a) != truthy(b)
            elif self.op == LogicOp.GREATER_THAN:
                result = a > b
            else:
                result = a < b
        self._out(0, 1.0 if result else 0.0)

    def params(self) -> dict[str, Any]:
        return {"op": self.op.value}

    def encode_data(self) -> str:
        return self.op.value

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        return cls(data) if data else cls()


class TimerNode(BaseNode):
    kind = NodeKind.TIMER
    display_name = "Timer"

    def __init__(self, elapsed: float = 0.0) -> None:
        self.elapsed = float(elapsed)
        super().__init__()

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": ["Reset"], "outputs": ["Time"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        if self._in(0) > 0:
            self.elapsed = 0.0
        self.elapsed += ctx.dt
        self._out(0, self.elapsed)


class CounterNode(BaseNode):
    """Counts rising edges on Inc and Dec; Reset wins over both."""

    kind = NodeKind.COUNTER
    display_name = "Counter"

    def __init__(self, value: float = 0.0) -> None:
        self.value = float(value)
        self._prev_inc = False
        self._prev_dec = False
        super().__init__()

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": ["Inc", "Dec", "Reset"], "outputs": ["Count"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        del ctx
        inc = self._in(0) > 0
        dec = self._in(1) > 0
        if self._in(2) > 0:
            self.value = 0.0
        else:
            if inc and not self._prev_inc:
                self.value += 1
            if dec and not self._prev_dec:
                self.value -= 1
        self._prev_inc = inc
        self._prev_dec = dec
        self._out(0, self.value)

    def params(self) -> dict[str, Any]:
        return {"value": self.value}

    def encode_data(self) -> str:
        return repr(self.value)

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        return cls(float(data)) if data else cls()


class RandomNode(BaseNode):
    kind = NodeKind.RANDOM
    display_name = "Random"

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": [], "outputs": ["Out"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        self._out(0, float(ctx.rng.random()))


class ButtonNode(BaseNode):
    kind = NodeKind.BUTTON
    display_name = "Button"

    def __init__(self, toggle: bool = False) -> None:
        self.toggle = bool(toggle)
        self.pressed = False
        self._prev_host = False
        super().__init__()

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": [], "outputs": ["Out"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        host_down = ctx.host.button_pressed(self.node_id)
        if self.toggle:
            if host_down and not self._prev_host:
                self.pressed = not self.pressed
        else:
            self.pressed = host_down
        self._prev_host = host_down
        self._out(0, 1.0 if self.pressed else 0.0)

    def params(self) -> dict[str, Any]:
        return {"toggle": self.toggle}

    def encode_data(self) -> str:
        return "True" if self.toggle else "False"

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        if not data:
            return cls()
        lowered = data.strip().lower()
        if lowered not in {"true", "false"}:
            raise ValueError(f"invalid toggle flag '{data}'")
        return cls(lowered == "true")


class KeyNode(BaseNode):
    kind = NodeKind.KEY

    def __init__(self, key: str = "Space") -> None:
        self.key = key
        super().__init__()
        self.name = f"Key ({self.key})"

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": [], "outputs": ["Out"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        self._out(0, 1.0 if ctx.host.key_down(self.key) else 0.0)

    def params(self) -> dict[str, Any]:
        return {"key": self.key}

    def encode_data(self) -> str:
        return self.key

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        return cls(data) if data else cls()


class CursorNode(BaseNode):
    kind = NodeKind.CURSOR
    display_name = "Cursor"

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": [], "outputs": ["X", "Y"]}

    def evaluate(self, ctx: RuntimeContext) -> None:
        host = ctx.host
        x = host.pointer_x / host.viewport_width if host.viewport_width > 0 else 0.0
        y = host.pointer_y / host.viewport_height if host.viewport_height > 0 else 0.0
        self._out(0, x)
        self._out(1, y)


class BeepOutputNode(BaseNode):
    """Trigger sink. should_play is set only on the tick Trigger rises."""

    kind = NodeKind.BEEP
    display_name = "Beep Output"

    def __init__(self, sound: str = "Beep") -> None:
        self.sound = sound
        self.should_play = False
        self.pitch = 0.0
        self.volume = 1.0
        self._prev_trigger = False
        super().__init__()

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": ["Trigger", "Pitch", "Volume"], "outputs": []}

    def evaluate(self, ctx: RuntimeContext) -> None:
        del ctx
        self.should_play = False
        trigger = self._in(0) > 0
        if trigger and not self._prev_trigger:
            self.should_play = True
            self.pitch = _clamp(self._in(1), -1.0, 1.0)
            self.volume = _clamp(self._in(2), 0.0, 1.0) if self.inputs[2].is_connected else 1.0
        self._prev_trigger = trigger

    def params(self) -> dict[str, Any]:
        return {"sound": self.sound}

    def encode_data(self) -> str:
        return self.sound

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        return cls(data) if data else cls()


class ColorOutputNode(BaseNode):
    kind = NodeKind.COLOR
    display_name = "Color Output"

    def __init__(self) -> None:
        self.color = (0.0, 0.0, 0.0)
        super().__init__()

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": ["R", "G", "B"], "outputs": []}

    def evaluate(self, ctx: RuntimeContext) -> None:
        del ctx
        r, g, b = (_clamp(self._in(i), 0.0, 1.0) for i in range(3))
        self.color = (r, g, b)


class ScreenNode(BaseNode):
    """Fixed 64x64 RGB pixel buffer drawn one pixel per tick."""

    kind = NodeKind.SCREEN
    display_name = "Screen"
    WIDTH: ClassVar[int] = 64
    HEIGHT: ClassVar[int] = 64

    def __init__(self) -> None:
        self.buffer = np.zeros((self.HEIGHT, self.WIDTH, 3), dtype=np.float32)
        super().__init__()

    @classmethod
    def declare_ports(cls) -> PortDecl:
        return {"inputs": ["X", "Y", "R", "G", "B", "Draw", "Clear"], "outputs": []}

    def evaluate(self, ctx: RuntimeContext) -> None:
        del ctx
        if self._in(6) > 0:
            self.buffer.fill(0.0)
        if self._in(5) > 0:
            x = int(self._in(0))
            y = int(self._in(1))
            if 0 <= x < self.WIDTH and 0 <= y < self.HEIGHT:
                self.buffer[y, x] = (self._in(2), self._in(3), self._in(4))


class ScriptImporterNode(BaseNode):
    kind = NodeKind.SCRIPT
    display_name = "Script Importer"

    def __init__(self, script: str = "") -> None:
        self.script = script
        super().__init__()

    def params(self) -> dict[str, Any]:
        return {"script": self.script}

    def encode_data(self) -> str:
        return base64.b64encode(self.script.encode("utf-8")).decode("ascii")

    @classmethod
    def from_data(cls, data: str) -> BaseNode:
        if not data:
            return cls()
        return cls(base64.b64decode(data.encode("ascii"), validate=True).decode("utf-8"))


NODE_TYPES: dict[NodeKind, type[BaseNode]] = {
    NodeKind.CONSTANT: ConstantNode,
    NodeKind.MATH: MathNode,
    NodeKind.LOGIC: LogicNode,
    NodeKind.TIMER: TimerNode,
    NodeKind.COUNTER: CounterNode,
    NodeKind.RANDOM: RandomNode,
    NodeKind.BUTTON: ButtonNode,
    NodeKind.KEY: KeyNode,
    NodeKind.CURSOR: CursorNode,
    NodeKind.BEEP: BeepOutputNode,
    NodeKind.COLOR: ColorOutputNode,
    NodeKind.SCREEN: ScreenNode,
    NodeKind.SCRIPT: ScriptImporterNode,
}


def resolve_kind(kind: NodeKind | str) -> NodeKind:
    try:
        return NodeKind(kind)
    except ValueError as err:
        raise UnknownNodeKindError(f"unknown node kind '{kind}'") from err


def create_node(kind: NodeKind | str, **params: Any) -> BaseNode:
    """Factory entry point used by menus, loaders and the compiler."""
    return NODE_TYPES[resolve_kind(kind)](**params)


def node_specs() -> dict[str, PortDecl]:
    return {kind.value: create_node(kind).declare_ports() for kind in NODE_TYPES}
