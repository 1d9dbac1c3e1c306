# src/dumpview/cli.py
"""
dumpview Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`.

Features
--------
- **show**: Load a JSON document and dump it as text, colored terminal output,
  HTML or the JSON wire form.
- **expand**: Load HTML produced by dumpview, run the client expansion engine
  over it, expand every node and print the resulting text tree.

Usage
-----
    $ dumpview show data.json --depth 3 --items 20
    $ dumpview show data.json --format html > dump.html
    $ dumpview expand dump.html
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from dumpview.client.dom import parse_html
from dumpview.client.engine import ExpansionEngine
from dumpview.core.contracts.options import DumpOptions, LazyMode
from dumpview.core.describer import Describer
from dumpview.core.wire import snapshot_to_wire, to_wire
from dumpview.render.html import Renderer
from dumpview.render.text import render_text, to_rich_text

# Ensure DUMPVIEW_* variables from .env are visible before settings load
load_dotenv()

app = typer.Typer(
    help="dumpview: bounded, cycle-safe dumps of JSON documents.",
    rich_markup_mode="markdown",
)
console = Console()
err_console = Console(stderr=True)


class OutputFormat(StrEnum):
    TEXT = "text"
    TERMINAL = "terminal"
    HTML = "html"
    JSON = "json"


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _fail(title: str, error: Exception) -> typer.Exit:
    err_console.print(
        Panel.fit(str(error), title=f"[bold red]{title}[/bold red]", border_style="red")
    )
    return typer.Exit(code=1)


def _load_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _build_options(**values: Any) -> DumpOptions:
    """Validate CLI flags into `DumpOptions`; unset flags keep the settings defaults."""
    return DumpOptions(location=False, **{k: v for k, v in values.items() if v is not None})


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def show(
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to a JSON document.",
        ),
    ],
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = OutputFormat.TEXT,
    depth: Annotated[
        int | None, typer.Option("--depth", "-d", help="Nested levels to expand.")
    ] = None,
    items: Annotated[
        int | None, typer.Option("--items", "-n", help="Members shown per container.")
    ] = None,
    length: Annotated[
        int | None, typer.Option("--length", "-l", help="Characters shown per string.")
    ] = None,
    lazy: Annotated[
        LazyMode, typer.Option("--lazy", help="Lazy mode of HTML output.")
    ] = LazyMode.HYBRID,
    hide: Annotated[
        list[str] | None,
        typer.Option("--hide", help="Key whose value is redacted (repeatable)."),
    ] = None,
) -> None:
    """
    Dump a JSON document.

    Bounds default to the `DUMPVIEW_MAX_*` settings; out-of-range values exit
    with code 1.
    """
    try:
        value = _load_json(file)
    except (OSError, json.JSONDecodeError) as e:
        raise _fail("Invalid JSON", e) from e

    try:
        options = _build_options(
            max_depth=depth,
            max_length=length,
            max_items=items,
            lazy=lazy,
            keys_to_hide=hide,
        )
    except ValidationError as e:
        raise _fail("Invalid options", e) from e

    description = Describer(options).describe(value)

    if output_format is OutputFormat.TERMINAL:
        console.print(to_rich_text(description, options), end="", soft_wrap=True)
    elif output_format is OutputFormat.HTML:
        typer.echo(Renderer(options).render_html(description), nl=False)
    elif output_format is OutputFormat.JSON:
        payload = {
            "model": to_wire(description.value),
            "snapshot": snapshot_to_wire(description.snapshot),
        }
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        typer.echo(render_text(description, options), nl=False)


@app.command()  # type: ignore[misc]
def expand(
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="HTML file produced by `dumpview show --format html`.",
        ),
    ],
) -> None:
    """
    Expand every node of a dumpview HTML file and print it as text.

    Deferred nodes are rebuilt from their payloads exactly as a browser would.
    """
    try:
        root = parse_html(file.read_text(encoding="utf-8"))
        engine = ExpansionEngine()
        engine.init(root)
    except (OSError, ValueError) as e:
        raise _fail("Expansion Error", e) from e

    engine.expand_all(root)
    for pre in root.query_all(lambda el: el.tag == "pre"):
        typer.echo(pre.text_content.replace("…", "..."), nl=False)


if __name__ == "__main__":
    app()
