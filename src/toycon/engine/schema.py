"""JSON graph documents and their validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from toycon.engine.graph import Graph
from toycon.engine.nodes import NodeKind, UnknownNodeKindError, create_node


class NodeEntry(BaseModel):
    """One node with its layout position and kind-specific params."""

    model_config = ConfigDict(extra="forbid")

    id: int = Field(ge=0)
    kind: NodeKind
    x: int = 0
    y: int = 0
    params: dict[str, Any] = Field(default_factory=dict)


class ConnectionEntry(BaseModel):
    """Output slot of one node wired into an input slot of another."""

    model_config = ConfigDict(extra="forbid")

    source: int
    source_slot: int = Field(ge=0)
    target: int
    target_slot: int = Field(ge=0)


class GraphDocument(BaseModel):
    """Graph composed of ordered nodes and fan-in connections."""

    model_config = ConfigDict(extra="forbid")

    version: str = "TOYCON_v1"
    nodes: list[NodeEntry] = Field(default_factory=list)
    connections: list[ConnectionEntry] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _validate_version(cls, value: str) -> str:
        if value != "TOYCON_v1":
            raise ValueError(f"unsupported graph version '{value}'")
        return value

    @model_validator(mode="after")
    def _validate_graph(self) -> "GraphDocument":
        errors: list[str] = []
        node_ids = [node.id for node in self.nodes]
        duplicates = sorted({node_id for node_id in node_ids if node_ids.count(node_id) > 1})
        if duplicates:
            errors.append(f"duplicate node ids: {', '.join(str(d) for d in duplicates)}")

        port_counts: dict[int, tuple[int, int]] = {}
        for node in self.nodes:
            try:
                built = create_node(node.kind, **node.params)
            except (TypeError, ValueError, UnknownNodeKindError) as err:
                errors.append(f"node {node.id} ({node.kind.value}) has invalid params: {err}")
                continue
            port_counts[node.id] = (len(built.inputs), len(built.outputs))

        for idx, conn in enumerate(self.connections):
            label = f"connection #{idx} ({conn.source}:{conn.source_slot} -> {conn.target}:{conn.target_slot})"
            if conn.source not in port_counts:
                errors.append(f"{label} references missing source node {conn.source}")
                continue
            if conn.target not in port_counts:
                errors.append(f"{label} references missing target node {conn.target}")
                continue
            if conn.source_slot >= port_counts[conn.source][1]:
                errors.append(f"{label} unknown output slot on node {conn.source}")
            if conn.target_slot >= port_counts[conn.target][0]:
                errors.append(f"{label} unknown input slot on node {conn.target}")

        if errors:
            raise ValueError("; ".join(errors))
        return self


def validate_graph_document(data: dict[str, Any]) -> GraphDocument:
    """Validate a raw graph payload against the node kind contracts."""
    return GraphDocument.model_validate(data)


def graph_to_document(graph: Graph) -> GraphDocument:
    index_of = {node.node_id: i for i, node in enumerate(graph.nodes)}
    return GraphDocument(
        nodes=[
            NodeEntry(id=index_of[node.node_id], kind=node.kind, x=node.x, y=node.y, params=node.params())
            for node in graph.nodes
        ],
        connections=[
            ConnectionEntry(
                source=index_of[src],
                source_slot=src_slot,
                target=index_of[tgt],
                target_slot=tgt_slot,
            )
            for src, src_slot, tgt, tgt_slot in graph.connections()
        ],
    )


def document_to_graph(document: GraphDocument, graph: Graph | None = None) -> Graph:
    graph = graph if graph is not None else Graph()
    graph.clear()
    by_doc_id = {}
    for entry in document.nodes:
        by_doc_id[entry.id] = graph.spawn(create_node(entry.kind, **entry.params), entry.x, entry.y)
    for conn in document.connections:
        graph.connect(by_doc_id[conn.source], conn.source_slot, by_doc_id[conn.target], conn.target_slot)
    return graph
