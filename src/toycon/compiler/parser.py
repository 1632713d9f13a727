"""Recursive-descent parser that emits graph nodes as it goes.

There is no AST: every rule calls straight into the GraphBuilder and returns
the producer node for the value it parsed. Binary operators share a single
precedence level and fold left, so ``2 + 3 * 4`` is ``(2 + 3) * 4``.
"""

from __future__ import annotations

from toycon.compiler.builder import BINARY_OPERATORS, GraphBuilder
from toycon.compiler.errors import CompileError
from toycon.compiler.lexer import Token
from toycon.engine.nodes import BaseNode

DECLARATION_KEYWORDS = frozenset({"var", "int", "float"})


class Parser:
    def __init__(self, tokens: list[Token], builder: GraphBuilder) -> None:
        self.tokens = tokens
        self.builder = builder
        self.index = 0

    # token cursor

    def _peek(self, ahead: int = 0) -> Token | None:
        pos = self.index + ahead
        return self.tokens[pos] if pos < len(self.tokens) else None

    def _at(self, text: str, ahead: int = 0) -> bool:
        token = self._peek(ahead)
        return token is not None and token.text == text

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            last = self.tokens[-1] if self.tokens else None
            raise CompileError.at("unexpected end of script", last)
        self.index += 1
        return token

    def _expect(self, text: str) -> Token:
        token = self._peek()
        if token is None or token.text != text:
            found = "end of script" if token is None else f"'{token.text}'"
            raise CompileError.at(f"expected '{text}', found {found}", token or self._last())
        self.index += 1
        return token

    def _skip_semicolon(self) -> None:
        if self._at(";"):
            self.index += 1

    def _last(self) -> Token | None:
        return self.tokens[-1] if self.tokens else None

    # statements

    def parse_program(self) -> None:
        while self._peek() is not None:
            if self._at("}"):
                raise CompileError.at("unmatched '}'", self._peek())
            self._statement(None)

    def _block(self, condition: BaseNode | None) -> None:
        opening = self.tokens[self.index - 1]
        while True:
            token = self._peek()
            if token is None:
                raise CompileError.at("block is missing its closing '}'", opening)
            if token.text == "}":
                self.index += 1
                return
            self._statement(condition)

    def _statement(self, condition: BaseNode | None) -> None:
        token = self._next()
        text = token.text
        if text in DECLARATION_KEYWORDS:
            self._declaration()
        elif text == "if":
            self._if(condition)
        elif text == "new":
            name = self._next()
            if not name.is_identifier:
                raise CompileError.at(f"expected a sink name after 'new', found '{name.text}'", name)
            self._call(name, condition)
        elif token.is_identifier and self._at("("):
            self._call(token, condition)
        elif token.is_identifier and self._at("="):
            self.index += 1
            value = self.expression()
            self.builder.assign(text, value, condition)
            self._skip_semicolon()
        # anything else is skipped

    def _declaration(self) -> None:
        name = self._next()
        if not name.is_identifier:
            raise CompileError.at(f"expected a variable name, found '{name.text}'", name)
        if self._at("="):
            self.index += 1
            self.builder.declare(name.text, self.expression())
        self._skip_semicolon()

    def _if(self, condition: BaseNode | None) -> None:
        self._expect("(")
        cond = self.expression()
        self._expect(")")
        effective = self.builder.nest_condition(condition, cond)
        self._expect("{")
        self._block(effective)

    def _call(self, name: Token, condition: BaseNode | None) -> None:
        self._expect("(")
        args = self._arguments()
        self._skip_semicolon()
        self.builder.call(name.text, args, condition, name)

    def _arguments(self) -> list[BaseNode]:
        args: list[BaseNode] = []
        if self._at(")"):
            self.index += 1
            return args
        while True:
            args.append(self.expression())
            token = self._next()
            if token.text == ")":
                return args
            if token.text != ",":
                raise CompileError.at(f"expected ',' or ')' in argument list, found '{token.text}'", token)

    # expressions

    def expression(self) -> BaseNode:
        left = self.term()
        while True:
            token = self._peek()
            if token is None or token.text not in BINARY_OPERATORS:
                return left
            self.index += 1
            right = self.term()
            left = self.builder.binary(token.text, left, right)

    def term(self) -> BaseNode:
        token = self._next()
        if token.kind == "number":
            try:
                value = float(token.text)
            except ValueError as err:
                raise CompileError.at(f"invalid number '{token.text}'", token) from err
            return self.builder.constant(value)
        if token.text == "(":
            inner = self.expression()
            self._expect(")")
            return inner
        if not token.is_identifier:
            raise CompileError.at(f"unexpected '{token.text}' in expression", token)
        bound = self.builder.lookup(token.text)
        if bound is not None:
            return bound
        if token.text == "abs" and self._at("("):
            self.index += 1
            inner = self.expression()
            self._expect(")")
            return self.builder.absolute(inner)
        return self.builder.unbound(token)
