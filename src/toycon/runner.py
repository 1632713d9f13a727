"""Headless run helpers: compile or load a graph and tick it into a run folder."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import yaml

from toycon.config import EngineSettings
from toycon.engine.graph import Graph
from toycon.engine.persistence import FORMAT_HEADER, load_graph, save_graph_file
from toycon.engine.session import GraphSession
from toycon.instrumentation import StructuredLogger, TraceLogger


class RunFailedError(RuntimeError):
    """Raised when the input script does not compile."""


def build_run_dir(name: str, runs_root: Path) -> Path:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    run_dir = runs_root / f"{timestamp}_{name}"
    run_dir.mkdir(parents=True, exist_ok=False)
    return run_dir


def drive(session: GraphSession, settings: EngineSettings, run_dir: Path, events: StructuredLogger) -> Graph:
    trace = TraceLogger(run_dir / "trace.jsonl") if settings.trace else None
    for _ in range(settings.ticks):
        session.tick(settings.dt)
        if trace is not None:
            trace.record(session.graph)
    events.info("run_finished", f"{settings.ticks} ticks at dt={settings.dt}", ticks=settings.ticks)
    save_graph_file(session.graph, run_dir / "graph.toy")
    return session.graph


def run_source(input_path: Path, settings: EngineSettings) -> Path:
    """Run a script (.tc) or a saved graph (TOYCON_v1 text) for settings.ticks ticks."""
    text = input_path.read_text(encoding="utf-8")
    run_dir = build_run_dir(input_path.stem, settings.runs_root)
    with (run_dir / "config.yaml").open("w", encoding="utf-8") as f:
        yaml.safe_dump(settings.model_dump(mode="json"), f, sort_keys=True)

    events = StructuredLogger(run_dir)
    session = GraphSession(Graph(seed=settings.seed), atomic_compile=settings.atomic_compile)

    if text.lstrip().startswith(FORMAT_HEADER):
        load_graph(text, session.graph)
        events.info("graph_loaded", str(input_path), nodes=len(session.graph))
    else:
        result = session.compile(text)
        for warning in result.warnings:
            events.warning("compile_warning", warning)
        if not result.ok:
            events.log("error", "compile_failed", message=str(result.error))
            raise RunFailedError(f"{input_path}: {result.error}")
        events.info("compiled", str(input_path), nodes=len(session.graph), symbols=result.symbols)

    drive(session, settings, run_dir, events)
    return run_dir
