"""Run logs: structured events and per-tick output traces."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from toycon.engine.graph import Graph
from toycon.engine.session import sink_state


class StructuredLogger:
    """Writes each run event to events.log (text) and events.jsonl (JSON)."""

    def __init__(self, run_dir: Path) -> None:
        self.text_log_path = run_dir / "events.log"
        self.json_log_path = run_dir / "events.jsonl"

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def log(self, level: str, event: str, **payload: Any) -> None:
        timestamp = self._now()
        record = {
            "timestamp": timestamp,
            "level": level.upper(),
            "event": event,
            "payload": payload,
        }

        message = payload.get("message", "")
        with self.text_log_path.open("a", encoding="utf-8") as text_file:
            text_file.write(f"{timestamp} [{level.upper()}] {event} {message}\n")

        with self.json_log_path.open("a", encoding="utf-8") as json_file:
            json_file.write(json.dumps(record) + "\n")

    def info(self, event: str, message: str = "", **payload: Any) -> None:
        self.log("info", event, message=message, **payload)

    def warning(self, event: str, message: str = "", **payload: Any) -> None:
        self.log("warning", event, message=message, **payload)


class TraceLogger:
    """Writes one JSONL record of output values and sink state per tick."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def record(self, graph: Graph) -> None:
        outputs = {
            str(node.node_id): [port.value for port in node.outputs]
            for node in graph.nodes
            if node.outputs
        }
        sinks = {}
        for node in graph.nodes:
            state = sink_state(node)
            if state is not None:
                sinks[str(node.node_id)] = state
        record = {"tick": graph.tick_count, "outputs": outputs, "sinks": sinks}
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")
