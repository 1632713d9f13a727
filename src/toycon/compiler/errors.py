"""Compiler diagnostics."""

from __future__ import annotations

from toycon.compiler.lexer import Token


class CompileError(Exception):
    """Malformed script. Carries the source position of the offending token."""

    def __init__(self, message: str, *, offset: int = -1, line: int = 0, column: int = 0) -> None:
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        where = f" at line {line}, column {column}" if line else " at end of script"
        super().__init__(f"{message}{where}")

    @classmethod
    def at(cls, message: str, token: Token | None) -> CompileError:
        if token is None:
            return cls(message)
        return cls(message, offset=token.offset, line=token.line, column=token.column)
