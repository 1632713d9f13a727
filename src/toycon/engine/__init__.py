"""Dataflow graph engine: ports, nodes, graph and evaluator."""

from toycon.engine.graph import Graph, NodeNotFoundError, PortIndexError
from toycon.engine.host import HostInput, RuntimeContext
from toycon.engine.nodes import (
    NODE_TYPES,
    BaseNode,
    LogicOp,
    MathOp,
    NodeKind,
    UnknownNodeKindError,
    create_node,
    node_specs,
)
from toycon.engine.ports import InputPort, OutputPort

__all__ = [
    "NODE_TYPES",
    "BaseNode",
    "Graph",
    "HostInput",
    "InputPort",
    "LogicOp",
    "MathOp",
    "NodeKind",
    "NodeNotFoundError",
    "OutputPort",
    "PortIndexError",
    "RuntimeContext",
    "UnknownNodeKindError",
    "create_node",
    "node_specs",
]
