"""Single-owner controller that serialises ticks and graph rebuilds."""

from __future__ import annotations

import threading
from typing import Any

import numpy as np

from toycon.compiler import CompileResult, compile_script
from toycon.engine.graph import Graph
from toycon.engine.host import HostInput
from toycon.engine.nodes import BaseNode, BeepOutputNode, ColorOutputNode, ScreenNode, ScriptImporterNode, create_node
from toycon.engine.persistence import load_graph, serialize_graph


def sink_state(node: BaseNode) -> dict[str, Any] | None:
    """Side-channel values a presentation layer reads after a tick."""
    if isinstance(node, BeepOutputNode):
        return {"should_play": node.should_play, "pitch": node.pitch, "volume": node.volume, "sound": node.sound}
    if isinstance(node, ColorOutputNode):
        return {"color": list(node.color)}
    if isinstance(node, ScreenNode):
        return {"drawn": int(np.count_nonzero(node.buffer.any(axis=2)))}
    return None


class GraphSession:
    """Owns one graph. tick, compile and load never overlap."""

    def __init__(self, graph: Graph | None = None, *, atomic_compile: bool = True) -> None:
        self.graph = graph if graph is not None else Graph()
        self.atomic_compile = atomic_compile
        self.host = HostInput()
        self.last_compile: CompileResult | None = None
        self._lock = threading.RLock()

    def tick(self, dt: float, host: HostInput | None = None) -> dict[str, Any]:
        with self._lock:
            if host is not None:
                self.host = host
            self.graph.tick(dt, self.host)
            return self.status()

    def compile(self, source: str) -> CompileResult:
        with self._lock:
            self.last_compile = compile_script(source, self.graph, atomic=self.atomic_compile)
            return self.last_compile

    def compile_node(self, node_id: int) -> CompileResult:
        """Compile the script held by a script-importer node over the whole graph."""
        with self._lock:
            node = self.graph.get(node_id)
            if not isinstance(node, ScriptImporterNode):
                raise TypeError(f"node {node_id} is a {node.kind.value}, not a script importer")
            return self.compile(node.script)

    def load_text(self, text: str) -> Graph:
        with self._lock:
            return load_graph(text, self.graph)

    def save_text(self) -> str:
        with self._lock:
            return serialize_graph(self.graph)

    def spawn(self, kind: str, x: int = 0, y: int = 0, **params: Any) -> BaseNode:
        with self._lock:
            return self.graph.spawn(create_node(kind, **params), x, y)

    def remove(self, node_id: int) -> None:
        with self._lock:
            self.graph.remove(self.graph.get(node_id))

    def connect(self, source_id: int, source_slot: int, target_id: int, target_slot: int) -> bool:
        with self._lock:
            return self.graph.connect(
                self.graph.get(source_id), source_slot, self.graph.get(target_id), target_slot
            )

    def status(self) -> dict[str, Any]:
        sinks = {}
        for node in self.graph.nodes:
            state = sink_state(node)
            if state is not None:
                sinks[node.node_id] = state
        return {
            "type": "TICK",
            "tick": self.graph.tick_count,
            "outputs": self.graph.snapshot(),
            "sinks": sinks,
        }

    def handle_message(self, message: dict[str, Any]) -> dict[str, Any]:
        """Dispatch one protocol message and return the reply payload."""
        msg_type = message.get("type")
        try:
            if msg_type == "COMPILE":
                result = self.compile(str(message.get("source", "")))
                return {
                    "type": "COMPILE_RESULT",
                    "ok": result.ok,
                    "error": str(result.error) if result.error else None,
                    "symbols": result.symbols,
                    "warnings": result.warnings,
                }
            if msg_type == "TICK":
                host_payload = message.get("host")
                host = HostInput.model_validate(host_payload) if host_payload is not None else None
                return self.tick(float(message.get("dt", 0.0)), host)
            if msg_type == "LOAD":
                graph = self.load_text(str(message.get("text", "")))
                return {"type": "LOADED", "nodes": len(graph)}
            if msg_type == "SAVE":
                return {"type": "SAVED", "text": self.save_text()}
            if msg_type == "SPAWN":
                node = self.spawn(
                    message["kind"],
                    int(message.get("x", 0)),
                    int(message.get("y", 0)),
                    **message.get("params", {}),
                )
                return {"type": "SPAWNED", "node_id": node.node_id}
            if msg_type == "REMOVE":
                self.remove(int(message["node_id"]))
                return {"type": "ACK", "message_type": msg_type}
            if msg_type == "CONNECT":
                added = self.connect(
                    int(message["source"]),
                    int(message.get("source_slot", 0)),
                    int(message["target"]),
                    int(message.get("target_slot", 0)),
                )
                return {"type": "ACK", "message_type": msg_type, "added": added}
            return {"type": "ERROR", "message": f"unknown message type '{msg_type}'"}
        except Exception as err:
            return {"type": "ERROR", "message": str(err)}
