import json
from pathlib import Path

from typer.testing import CliRunner

from toycon.cli import app


runner = CliRunner()


def _script(tmp_path: Path, text: str, name: str = "prog.tc") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_compile_prints_graph_text(tmp_path: Path) -> None:
    script = _script(tmp_path, "x = 1 + 2;\nbeep(x);")
    result = runner.invoke(app, ["compile", str(script)])
    assert result.exit_code == 0
    assert result.stdout.startswith("TOYCON_v1\n")
    assert "BeepOutputNode" in result.stdout


def test_compile_writes_out_file(tmp_path: Path) -> None:
    script = _script(tmp_path, "x = 1;")
    out = tmp_path / "build" / "prog.toy"
    result = runner.invoke(app, ["compile", str(script), "--out", str(out)])
    assert result.exit_code == 0
    assert "(1 nodes)" in result.stdout
    assert out.read_text(encoding="utf-8").startswith("TOYCON_v1")


def test_compile_error_exits_nonzero(tmp_path: Path) -> None:
    script = _script(tmp_path, "if (1 > 0 { x = 1; }")
    result = runner.invoke(app, ["compile", str(script)])
    assert result.exit_code != 0


def test_partial_compile_keeps_nodes(tmp_path: Path) -> None:
    script = _script(tmp_path, "if (1 > 0 { x = 1; }")
    result = runner.invoke(app, ["compile", str(script), "--partial"])
    assert result.exit_code == 0
    assert "error: expected ')'" in result.output
    assert "NODE 2 LogicNode" in result.output


def test_kinds_lists_ports() -> None:
    result = runner.invoke(app, ["kinds"])
    assert result.exit_code == 0
    assert "CounterNode: in [Inc, Dec, Reset] out [Count]" in result.stdout
    assert "ScreenNode: in [X, Y, R, G, B, Draw, Clear] out [-]" in result.stdout


def test_show_ticks_and_prints_outputs(tmp_path: Path) -> None:
    script = _script(tmp_path, "x = y + 2;")
    result = runner.invoke(app, ["show", str(script), "--ticks", "2"])
    assert result.exit_code == 0
    assert "Result=2" in result.stdout
    assert "'y' is not bound" in result.output


def test_run_uses_config_and_overrides(tmp_path: Path) -> None:
    script = _script(tmp_path, "var t = 1;\nif (t > 0) { beep(0.1); }")
    config = tmp_path / "run.yaml"
    config.write_text(f"ticks: 10\nruns_root: {tmp_path / 'runs'}\n", encoding="utf-8")

    result = runner.invoke(app, ["run", str(script), "--config", str(config), "--ticks", "2", "--seed", "4"])

    assert result.exit_code == 0
    assert "Run completed:" in result.stdout
    [run_dir] = (tmp_path / "runs").iterdir()
    assert len((run_dir / "trace.jsonl").read_text(encoding="utf-8").splitlines()) == 2


def test_run_rejects_invalid_config(tmp_path: Path) -> None:
    script = _script(tmp_path, "x = 1;")
    config = tmp_path / "run.yaml"
    config.write_text("dt: 0\n", encoding="utf-8")
    result = runner.invoke(app, ["run", str(script), "--config", str(config)])
    assert result.exit_code != 0


def test_export_json_then_validate(tmp_path: Path) -> None:
    script = _script(tmp_path, "x = abs(0 - 2);\nColorNode(x, 0, 0);")
    document = tmp_path / "graph.json"

    exported = runner.invoke(app, ["export-json", str(script), "--out", str(document)])
    assert exported.exit_code == 0
    assert json.loads(document.read_text(encoding="utf-8"))["version"] == "TOYCON_v1"

    validated = runner.invoke(app, ["validate", "--graph", str(document)])
    assert validated.exit_code == 0
    assert f"valid graph: {document}" in validated.stdout


def test_validate_rejects_bad_document(tmp_path: Path) -> None:
    document = tmp_path / "bad.json"
    document.write_text(
        json.dumps(
            {
                "nodes": [{"id": 0, "kind": "ConstantNode"}],
                "connections": [{"source": 0, "source_slot": 0, "target": 3, "target_slot": 0}],
            }
        ),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["validate", "--graph", str(document)])
    assert result.exit_code != 0
