"""Plain-text save/load for graphs (TOYCON_v1)."""

from __future__ import annotations

import binascii
import logging
from pathlib import Path

from toycon.engine.graph import Graph
from toycon.engine.nodes import NODE_TYPES, BaseNode, UnknownNodeKindError, resolve_kind

logger = logging.getLogger(__name__)

FORMAT_HEADER = "TOYCON_v1"


def serialize_graph(graph: Graph) -> str:
    """Render the graph as header, NODE lines and CONN lines.

    Ids written to the file are list positions, not live node ids.
    """
    index_of = {node.node_id: i for i, node in enumerate(graph.nodes)}
    lines = [FORMAT_HEADER]
    for i, node in enumerate(graph.nodes):
        line = f"NODE {i} {node.kind.value} {node.x} {node.y}"
        data = node.encode_data()
        if data:
            line = f"{line} {data}"
        lines.append(line)
    for source_id, source_slot, target_id, target_slot in graph.connections():
        lines.append(f"CONN {index_of[source_id]} {source_slot} {index_of[target_id]} {target_slot}")
    return "\n".join(lines) + "\n"


def _parse_node(parts: list[str]) -> tuple[int, BaseNode, int, int]:
    file_id = int(parts[1])
    kind = resolve_kind(parts[2])
    x = int(parts[3])
    y = int(parts[4])
    data = " ".join(parts[5:])
    return file_id, NODE_TYPES[kind].from_data(data), x, y


def load_graph_lines(lines: list[str], graph: Graph | None = None) -> Graph:
    """Rebuild a graph from TOYCON_v1 lines.

    The target graph is cleared first. Lines that cannot be parsed are
    skipped one at a time; a missing header leaves the graph empty.
    """
    graph = graph if graph is not None else Graph()
    graph.clear()
    lines = [line.rstrip("\r\n") for line in lines]
    if not lines or lines[0].strip() != FORMAT_HEADER:
        logger.warning("missing %s header, nothing loaded", FORMAT_HEADER)
        return graph

    by_file_id: dict[int, BaseNode] = {}
    for lineno, line in enumerate(lines[1:], start=2):
        parts = line.split()
        if not parts:
            continue
        try:
            if parts[0] == "NODE":
                file_id, node, x, y = _parse_node(parts)
                graph.spawn(node, x, y)
                by_file_id[file_id] = node
            elif parts[0] == "CONN":
                src_id, src_slot, tgt_id, tgt_slot = (int(p) for p in parts[1:5])
                if src_id not in by_file_id or tgt_id not in by_file_id:
                    logger.debug("line %d: connection to unknown node skipped", lineno)
                    continue
                graph.connect(by_file_id[src_id], src_slot, by_file_id[tgt_id], tgt_slot)
            else:
                logger.debug("line %d: unrecognized record '%s' skipped", lineno, parts[0])
        except (ValueError, IndexError, UnknownNodeKindError, binascii.Error) as err:
            logger.debug("line %d skipped: %s", lineno, err)
    return graph


def load_graph(text: str, graph: Graph | None = None) -> Graph:
    return load_graph_lines(text.splitlines(), graph)


def save_graph_file(graph: Graph, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_graph(graph), encoding="utf-8")
    return path


def load_graph_file(path: Path, graph: Graph | None = None) -> Graph:
    return load_graph(path.read_text(encoding="utf-8"), graph)


__all__ = [
    "FORMAT_HEADER",
    "load_graph",
    "load_graph_file",
    "load_graph_lines",
    "save_graph_file",
    "serialize_graph",
]
