import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from tree_highlight.core.errors import HighlightError
from tree_highlight.core.highlighter import MAX_DEPTH_ENV
from tree_highlight.core.highlighter import highlight as _highlight
from tree_highlight.core.languages import resolve_language
from tree_highlight.models import HighlightSpan

console = Console()
err_console = Console(stderr=True)


def _render_table(source: bytes, spans: list[HighlightSpan]) -> None:
    table = Table(show_lines=False)
    for header in ("start", "end", "category", "text"):
        table.add_column(header)
    for span in spans:
        table.add_row(str(span.start), str(span.end), str(span.category), Text(span.text(source)))
    console.print(table)
    console.print(f"({len(spans)} spans)")


def highlight(
    path: Annotated[
        Path | None, typer.Argument(exists=True, dir_okay=False, help="Path to the file to highlight.")
    ] = None,
    code: Annotated[str | None, typer.Option(help="Source code string to highlight instead of a file.")] = None,
    language: Annotated[
        str | None, typer.Option(help="Language id or alias (e.g. php, js, sql). Detected from PATH when omitted.")
    ] = None,
    start: Annotated[int | None, typer.Option(min=0, help="First byte of the range to highlight.")] = None,
    end: Annotated[int | None, typer.Option(min=0, help="End byte (exclusive) of the range to highlight.")] = None,
    max_depth: Annotated[
        int | None, typer.Option(min=0, help=f"Injection nesting limit (overrides ${MAX_DEPTH_ENV}).")
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print spans as JSON.")] = False,
) -> None:
    """Highlight a file or a code string and print its spans."""
    if code is not None:
        source = code.encode("utf-8")
    elif path is not None:
        source = path.read_bytes()
    else:
        raise typer.BadParameter("Provide a PATH or --code.")
    try:
        language_id = resolve_language(language, path if code is None else None)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    byte_range = None
    if start is not None or end is not None:
        byte_range = (start or 0, len(source) if end is None else end)

    degraded = False
    try:
        spans = _highlight(source, language_id, byte_range=byte_range, max_depth=max_depth)
    except HighlightError as exc:
        err_console.print(f"[yellow]Warning:[/yellow] {escape(str(exc))}; rendering as plain text")
        spans = []
        degraded = True

    if as_json:
        payload = {
            "language": language_id,
            "degraded": degraded,
            "spans": [span.model_dump(mode="json") for span in spans],
        }
        typer.echo(json.dumps(payload))
    else:
        _render_table(source, spans)
