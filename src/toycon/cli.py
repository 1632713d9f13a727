"""CLI entrypoint for toycon."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from toycon.compiler import compile_script
from toycon.config import EngineSettings, load_and_validate_config
from toycon.engine.graph import Graph
from toycon.engine.nodes import node_specs
from toycon.engine.persistence import FORMAT_HEADER, load_graph, serialize_graph
from toycon.engine.schema import graph_to_document, validate_graph_document
from toycon.runner import RunFailedError, run_source

app = typer.Typer(help="Toy dataflow engine and script compiler.")


def _load_any(path: Path, *, seed: int | None = None) -> Graph:
    """Load a saved graph, or compile the file as a script."""
    text = path.read_text(encoding="utf-8")
    graph = Graph(seed=seed)
    if text.lstrip().startswith(FORMAT_HEADER):
        return load_graph(text, graph)
    result = compile_script(text, graph)
    for warning in result.warnings:
        typer.echo(f"warning: {warning}", err=True)
    if not result.ok:
        raise typer.BadParameter(f"{path}: {result.error}")
    return result.graph


@app.command("compile")
def compile_command(
    script: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    out: Annotated[Optional[Path], typer.Option("--out", "-o", dir_okay=False)] = None,
    partial: Annotated[
        bool, typer.Option("--partial", help="Keep the nodes built before a compile error.")
    ] = False,
) -> None:
    """Compile a script and write the graph in TOYCON_v1 text form."""
    if partial:
        result = compile_script(script.read_text(encoding="utf-8"), atomic=False)
        if not result.ok:
            typer.echo(f"error: {result.error}", err=True)
        graph = result.graph
    else:
        graph = _load_any(script)
    text = serialize_graph(graph)
    if out is None:
        typer.echo(text, nl=False)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    typer.echo(f"graph written: {out} ({len(graph)} nodes)")


@app.command("run")
def run(
    source: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", exists=True, dir_okay=False),
    ] = None,
    ticks: Annotated[Optional[int], typer.Option("--ticks", "-n", min=0)] = None,
    dt: Annotated[Optional[float], typer.Option("--dt")] = None,
    seed: Annotated[Optional[int], typer.Option("--seed")] = None,
) -> None:
    """Run a script or saved graph headlessly and record a run folder."""
    try:
        settings = load_and_validate_config(config) if config else EngineSettings()
        overrides = {key: value for key, value in {"ticks": ticks, "dt": dt, "seed": seed}.items() if value is not None}
        if overrides:
            settings = EngineSettings.model_validate({**settings.model_dump(), **overrides})
    except ValueError as err:
        raise typer.BadParameter(f"Invalid run configuration: {err}") from err

    try:
        run_dir = run_source(source, settings)
    except RunFailedError as err:
        raise typer.BadParameter(str(err)) from err
    typer.echo(f"Run completed: {run_dir}")


@app.command("show")
def show(
    source: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    ticks: Annotated[int, typer.Option("--ticks", "-n", min=0)] = 1,
    dt: float = 1.0 / 60.0,
    seed: Optional[int] = None,
) -> None:
    """Tick a graph and print every node's output values."""
    graph = _load_any(source, seed=seed)
    for _ in range(ticks):
        graph.tick(dt)
    for node in graph.nodes:
        values = ", ".join(f"{port.name}={port.value:g}" for port in node.outputs)
        typer.echo(f"{node.node_id:>4}  {node.name:<20} {values}")


@app.command("kinds")
def kinds() -> None:
    """List node kinds and their ports."""
    for name, ports in node_specs().items():
        inputs = ", ".join(ports["inputs"]) or "-"
        outputs = ", ".join(ports["outputs"]) or "-"
        typer.echo(f"{name}: in [{inputs}] out [{outputs}]")


@app.command("export-json")
def export_json(
    source: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    out: Annotated[Optional[Path], typer.Option("--out", "-o", dir_okay=False)] = None,
) -> None:
    """Write a graph as a JSON document."""
    document = graph_to_document(_load_any(source))
    payload = json.dumps(document.model_dump(mode="json"), indent=2)
    if out is None:
        typer.echo(payload)
        return
    out.write_text(payload + "\n", encoding="utf-8")
    typer.echo(f"graph document written: {out}")


@app.command("validate")
def validate(
    graph: Annotated[list[Path], typer.Option("--graph", exists=True, dir_okay=False)],
) -> None:
    """Validate one or more JSON graph documents."""
    for graph_file in graph:
        payload = json.loads(graph_file.read_text(encoding="utf-8"))
        try:
            validate_graph_document(payload)
        except ValueError as err:
            raise typer.BadParameter(f"{graph_file}: {err}") from err
        typer.echo(f"valid graph: {graph_file}")


@app.command("serve")
def serve(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Run the websocket session server."""
    try:
        import uvicorn
    except ImportError as err:
        raise typer.BadParameter(
            "uvicorn is required for `toycon serve`. Install with `pip install toycon[server]`."
        ) from err
    from toycon.server import create_app

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    app()
