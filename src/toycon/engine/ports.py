"""Input and output ports carrying float signals between nodes."""

from __future__ import annotations


class OutputPort:
    """Value slot written by its owning node once per tick."""

    def __init__(self, name: str, node_id: int, slot: int) -> None:
        self.name = name
        self.node_id = node_id
        self.slot = slot
        self.value = 0.0

    def set_value(self, value: float) -> None:
        self.value = float(value)

    def __repr__(self) -> str:
        return f"OutputPort({self.name!r}, node={self.node_id}, slot={self.slot}, value={self.value})"


class InputPort:
    """Fan-in slot reading from zero or more output ports.

    Multiple sources are merged by taking their maximum value.
    """

    def __init__(self, name: str, node_id: int, slot: int) -> None:
        self.name = name
        self.node_id = node_id
        self.slot = slot
        self.sources: list[OutputPort] = []

    @property
    def is_connected(self) -> bool:
        return bool(self.sources)

    def add_source(self, source: OutputPort) -> bool:
        if any(existing is source for existing in self.sources):
            return False
        self.sources.append(source)
        return True

    def remove_sources_from(self, node_id: int) -> int:
        before = len(self.sources)
        self.sources = [src for src in self.sources if src.node_id != node_id]
        return before - len(self.sources)

    def get_value(self) -> float:
        if not self.sources:
            return 0.0
        return max(src.value for src in self.sources)

    def __repr__(self) -> str:
        return f"InputPort({self.name!r}, node={self.node_id}, slot={self.slot}, sources={len(self.sources)})"
