"""
ptb.cli.main
------------

Inspect and check execution trace files, print the effective configuration.

Examples
--------
# Pretty table of every trace in a file
ptb inspect ptb_traces.json

# Include the commands of each trace
ptb inspect ptb_traces.json --commands

# Check that a file matches the trace schema exactly (exit 1 otherwise)
ptb validate ptb_traces.json

# Effective configuration (env + defaults)
ptb config --json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import load_config, summary
from ..errors import TraceFormatError
from ..trace.schema import TraceDocument, TraceEntry, load_trace_file
from ..version import __version__

log = logging.getLogger(__name__)

app = typer.Typer(
    name="ptb",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect transaction block traces and ptb configuration.",
)


# -------------------- utils --------------------


def _die(msg: str, code: int = 1) -> NoReturn:
    typer.echo(msg, err=True)
    raise typer.Exit(code)


def _load(path: Path) -> TraceDocument:
    try:
        return load_trace_file(path)
    except OSError as e:
        _die(f"cannot read {path}: {e}")
    except TraceFormatError as e:
        _die(f"{path}: {e.message}")


def _short(x: str, n: int = 14) -> str:
    if len(x) <= n:
        return x
    return x[: n - 1] + "…"


def _strip_nulls(x: Any) -> Any:
    if isinstance(x, dict):
        return {k: _strip_nulls(v) for k, v in x.items() if v is not None}
    if isinstance(x, list):
        return [_strip_nulls(v) for v in x]
    return x


def _commands_table(entry: TraceEntry) -> Table:
    t = Table(title=f"{escape(entry.label)}: commands", box=box.SIMPLE)
    t.add_column("#", justify="right")
    t.add_column("Type")
    t.add_column("Target")
    t.add_column("Args")
    for c in entry.commands:
        target = "::".join(p for p in (c.package and _short(c.package), c.module, c.function) if p)
        type_args = f"<{', '.join(c.type_args)}>" if c.type_args else ""
        t.add_row(str(c.index), c.command_type, escape(target + type_args), escape("; ".join(c.args)))
    return t


# -------------------- commands --------------------


@app.callback()
def _main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level"),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("inspect")
def inspect_cmd(
    path: Path = typer.Argument(..., help="Trace file written by TraceRecorder.flush"),
    commands: bool = typer.Option(False, "--commands", "-c", help="Also list the commands of each trace"),
    json_out: bool = typer.Option(False, "--json", help="Print the parsed document as JSON"),
) -> None:
    """
    Show every trace in FILE as a table.
    """
    doc = _load(path)
    if json_out:
        typer.echo(doc.to_json())
        return

    console = Console()
    meta = Table.grid(padding=(0, 2))
    meta.add_row("File", escape(str(path)))
    meta.add_row("Protocol", escape(f"{doc.protocol} {doc.version}"))
    meta.add_row("Timestamp", escape(doc.timestamp))
    meta.add_row("Traces", str(len(doc.traces)))
    console.print(Panel(meta, title="Trace document", expand=False))

    t = Table(title="Traces", box=box.SIMPLE)
    t.add_column("#", justify="right")
    t.add_column("Group")
    t.add_column("Label")
    t.add_column("Sender")
    t.add_column("Cmds", justify="right")
    t.add_column("Result")
    t.add_column("Gas", justify="right")
    t.add_column("Created", justify="right")
    t.add_column("Mutated", justify="right")
    for i, e in enumerate(doc.traces):
        out = e.outputs
        status = "[green]ok[/green]" if out.success else f"[red]{escape(out.error or 'failed')}[/red]"
        t.add_row(
            str(i),
            escape(e.group or "-"),
            escape(e.label),
            _short(e.sender),
            str(len(e.commands)),
            status,
            str(out.gas_used),
            str(len(out.created_objects)),
            str(len(out.mutated_objects)),
        )
    console.print(t)

    if commands:
        for e in doc.traces:
            console.print(_commands_table(e))


@app.command("validate")
def validate_cmd(
    path: Path = typer.Argument(..., help="Trace file to check"),
) -> None:
    """
    Check that FILE parses as a trace document and re-serializes to the same JSON.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        _die(f"cannot read {path}: {e}")
    except json.JSONDecodeError as e:
        _die(f"{path}: not valid JSON: {e.msg}")
    if not isinstance(raw, dict):
        _die(f"{path}: root must be an object")
    try:
        doc = TraceDocument.from_dict(raw)
    except TraceFormatError as e:
        _die(f"{path}: {e.message}")

    again = TraceDocument.from_dict(doc.to_dict())
    if again != doc or _strip_nulls(doc.to_dict()) != _strip_nulls(raw):
        _die(f"MISMATCH {path}: document does not round-trip through the trace schema")
    typer.echo(f"OK {path}: {len(doc.traces)} traces ({doc.protocol} {doc.version})")


@app.command("config")
def config_cmd(
    json_out: bool = typer.Option(False, "--json", help="Print the full configuration as JSON"),
) -> None:
    """
    Print the effective configuration (environment + defaults).
    """
    try:
        cfg = load_config()
    except ValueError as e:
        _die(f"invalid configuration: {e}")
    if json_out:
        typer.echo(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))
    else:
        typer.echo(summary(cfg))


@app.command("version")
def version_cmd() -> None:
    typer.echo(f"ptb {__version__}")


if __name__ == "__main__":  # pragma: no cover
    app()
