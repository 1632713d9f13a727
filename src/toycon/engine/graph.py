"""Graph container and the list-order tick evaluator."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import numpy as np

from toycon.engine.host import HostInput, RuntimeContext
from toycon.engine.nodes import BaseNode

logger = logging.getLogger(__name__)

Connection = tuple[int, int, int, int]


class NodeNotFoundError(KeyError):
    """Raised when a node id or node object is not part of the graph."""


class PortIndexError(IndexError):
    """Raised when a connection names a port slot the node does not have."""


class Graph:
    """Ordered collection of nodes plus the fan-in wiring between them.

    Evaluation is one linear pass in insertion order. A node wired from a
    node that appears later in the list observes that node's value from the
    previous tick.
    """

    def __init__(self, *, seed: int | None = None, rng: np.random.Generator | None = None) -> None:
        self.nodes: list[BaseNode] = []
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.tick_count = 0
        self._next_id = 0
        self._by_id: dict[int, BaseNode] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[BaseNode]:
        return iter(self.nodes)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, BaseNode) and self._by_id.get(node.node_id) is node

    def spawn(self, node: BaseNode, x: int = 0, y: int = 0) -> BaseNode:
        if node in self:
            raise ValueError(f"{node!r} is already part of the graph")
        node.bind(self._next_id)
        self._next_id += 1
        node.x, node.y = int(x), int(y)
        self.nodes.append(node)
        self._by_id[node.node_id] = node
        return node

    def get(self, node_id: int) -> BaseNode:
        try:
            return self._by_id[node_id]
        except KeyError as err:
            raise NodeNotFoundError(f"no node with id {node_id}") from err

    def _require(self, node: BaseNode) -> None:
        if node not in self:
            raise NodeNotFoundError(f"{node!r} is not part of the graph")

    def connect(self, source: BaseNode, source_slot: int, target: BaseNode, target_slot: int) -> bool:
        """Wire source.outputs[source_slot] into target.inputs[target_slot].

        Returns False when the connection already existed.
        """
        self._require(source)
        self._require(target)
        if not 0 <= source_slot < len(source.outputs):
            raise PortIndexError(
                f"{source!r} has no output slot {source_slot} ({len(source.outputs)} outputs)"
            )
        if not 0 <= target_slot < len(target.inputs):
            raise PortIndexError(
                f"{target!r} has no input slot {target_slot} ({len(target.inputs)} inputs)"
            )
        return target.inputs[target_slot].add_source(source.outputs[source_slot])

    def remove(self, node: BaseNode) -> None:
        """Remove a node and scrub every input that still reads from it."""
        self._require(node)
        self.nodes.remove(node)
        del self._by_id[node.node_id]
        scrubbed = 0
        for other in self.nodes:
            for port in other.inputs:
                scrubbed += port.remove_sources_from(node.node_id)
        logger.debug("removed %r, scrubbed %d references", node, scrubbed)

    def clear(self) -> None:
        self.nodes.clear()
        self._by_id.clear()
        self._next_id = 0

    def replace_with(self, other: Graph) -> None:
        """Adopt another graph's nodes wholesale, keeping this graph's rng."""
        self.nodes = other.nodes
        self._by_id = other._by_id
        self._next_id = other._next_id
        other.nodes = []
        other._by_id = {}

    def connections(self) -> Iterator[Connection]:
        for target in self.nodes:
            for target_slot, port in enumerate(target.inputs):
                for source in port.sources:
                    yield (source.node_id, source.slot, target.node_id, target_slot)

    def tick(self, dt: float, host: HostInput | None = None) -> None:
        self.tick_count += 1
        ctx = RuntimeContext(
            tick=self.tick_count,
            dt=float(dt),
            host=host if host is not None else HostInput(),
            rng=self.rng,
        )
        for node in self.nodes:
            node.evaluate(ctx)

    def snapshot(self) -> dict[int, list[float]]:
        """Current output values keyed by node id."""
        return {node.node_id: [port.value for port in node.outputs] for node in self.nodes}
