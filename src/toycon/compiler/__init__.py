"""Script compiler: source text in, dataflow graph out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from toycon.compiler.builder import GraphBuilder
from toycon.compiler.errors import CompileError
from toycon.compiler.lexer import Token, tokenize
from toycon.compiler.parser import Parser
from toycon.engine.graph import Graph

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    graph: Graph
    error: CompileError | None = None
    symbols: dict[str, int] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def compile_script(source: str, graph: Graph | None = None, *, atomic: bool = True) -> CompileResult:
    """Compile a script into ``graph``, replacing its contents.

    With ``atomic`` the graph is only replaced when compilation succeeds.
    Without it the graph is cleared up front and whatever was built before
    an error stays in place.
    """
    target = graph if graph is not None else Graph()
    if atomic:
        work = Graph(rng=target.rng)
    else:
        target.clear()
        work = target

    builder = GraphBuilder(work)
    error: CompileError | None = None
    try:
        Parser(tokenize(source), builder).parse_program()
    except CompileError as err:
        error = err
    except RecursionError:
        error = CompileError("script is nested too deeply")

    if error is not None:
        logger.warning("compile failed: %s", error)
    elif atomic:
        target.replace_with(work)

    symbols = {} if error is not None and atomic else {
        name: node.node_id for name, node in builder.symbols.items()
    }
    return CompileResult(graph=target, error=error, symbols=symbols, warnings=builder.warnings)


__all__ = ["CompileError", "CompileResult", "Token", "compile_script", "tokenize"]
