import json
from pathlib import Path

import pytest

from toycon.compiler import compile_script
from toycon.config import EngineSettings
from toycon.instrumentation import StructuredLogger, TraceLogger
from toycon.runner import RunFailedError, run_source


def _read_jsonl(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_structured_logger_writes_text_and_json(tmp_path: Path) -> None:
    events = StructuredLogger(tmp_path)

    events.info("compiled", "ok", nodes=3)
    events.warning("compile_warning", "'z' is not bound")

    records = _read_jsonl(tmp_path / "events.jsonl")
    assert [r["event"] for r in records] == ["compiled", "compile_warning"]
    assert records[0]["level"] == "INFO"
    assert records[0]["payload"] == {"message": "ok", "nodes": 3}
    text_log = (tmp_path / "events.log").read_text(encoding="utf-8")
    assert "[WARNING] compile_warning 'z' is not bound" in text_log


def test_trace_logger_records_outputs_and_sinks(tmp_path: Path) -> None:
    graph = compile_script("x = 2;\nbeep(x);").graph
    trace = TraceLogger(tmp_path / "trace.jsonl")

    graph.tick(0.1)
    trace.record(graph)
    graph.tick(0.1)
    trace.record(graph)

    records = _read_jsonl(tmp_path / "trace.jsonl")
    assert [r["tick"] for r in records] == [1, 2]
    assert records[0]["outputs"]["0"] == [2.0]
    [beep] = records[0]["sinks"].values()
    assert beep["should_play"] is True
    assert list(records[1]["sinks"].values())[0]["should_play"] is False


def test_run_source_writes_run_folder(tmp_path: Path) -> None:
    script = tmp_path / "counter.tc"
    script.write_text("var t = 1;\nif (t > 0) { beep(0.5, 0.5); }\nq = w;\n", encoding="utf-8")
    settings = EngineSettings(ticks=3, dt=0.25, seed=1, runs_root=tmp_path / "runs")

    run_dir = run_source(script, settings)

    assert run_dir.parent == tmp_path / "runs"
    assert run_dir.name.endswith("_counter")
    assert len(_read_jsonl(run_dir / "trace.jsonl")) == 3
    assert (run_dir / "graph.toy").read_text(encoding="utf-8").startswith("TOYCON_v1")
    assert "ticks: 3" in (run_dir / "config.yaml").read_text(encoding="utf-8")
    events = [r["event"] for r in _read_jsonl(run_dir / "events.jsonl")]
    assert events == ["compile_warning", "compiled", "run_finished"]


def test_run_source_loads_saved_graph(tmp_path: Path) -> None:
    saved = tmp_path / "graph.toy"
    saved.write_text("TOYCON_v1\nNODE 0 TimerNode 0 0\n", encoding="utf-8")
    settings = EngineSettings(ticks=2, trace=False, runs_root=tmp_path / "runs")

    run_dir = run_source(saved, settings)

    assert not (run_dir / "trace.jsonl").exists()
    events = [r["event"] for r in _read_jsonl(run_dir / "events.jsonl")]
    assert events[0] == "graph_loaded"


def test_run_source_fails_on_compile_error(tmp_path: Path) -> None:
    script = tmp_path / "broken.tc"
    script.write_text("x = (1;", encoding="utf-8")
    settings = EngineSettings(ticks=1, runs_root=tmp_path / "runs")

    with pytest.raises(RunFailedError, match="broken.tc"):
        run_source(script, settings)

    [run_dir] = (tmp_path / "runs").iterdir()
    events = [r["event"] for r in _read_jsonl(run_dir / "events.jsonl")]
    assert events[-1] == "compile_failed"


def test_trace_logger_records_screen_sink(tmp_path: Path) -> None:
    graph = compile_script("screen(5, 6, 0, 0, 1);").graph
    trace = TraceLogger(tmp_path / "trace.jsonl")

    graph.tick(0.1)
    trace.record(graph)

    [record] = _read_jsonl(tmp_path / "trace.jsonl")
    assert list(record["sinks"].values()) == [{"drawn": 1}]
