import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tree_highlight.core.errors import GrammarMissing, HighlightError, QueryError
from tree_highlight.core.injections import static_injection_languages
from tree_highlight.core.languages import QUERY_KINDS, default_registry
from tree_highlight.core.patterns import load_pattern_set

console = Console()


def languages() -> None:
    """List the languages that can be highlighted and the languages they inject."""
    registry = default_registry()
    table = Table(show_lines=False)
    table.add_column("language")
    table.add_column("injects")
    for name in registry.names():
        try:
            injected = ", ".join(static_injection_languages(load_pattern_set(name, "injections", registry)))
        except HighlightError as exc:
            injected = f"[red]unavailable[/red] ({escape(str(exc))})"
        table.add_row(name, injected or "-")
    console.print(table)


def check_queries() -> None:
    """Compile every bundled and override query; exit 1 if any fails to load."""
    registry = default_registry()
    failures = 0
    table = Table(show_lines=False)
    for header in ("language", "kind", "patterns", "status"):
        table.add_column(header)
    for name in registry.names():
        for kind in QUERY_KINDS:
            try:
                pattern_set = load_pattern_set(name, kind, registry)
            except QueryError as exc:
                failures += 1
                table.add_row(name, kind, "-", f"[red]error[/red]: {escape(str(exc))}")
            except GrammarMissing as exc:
                table.add_row(name, kind, "-", f"[yellow]skipped[/yellow]: {escape(str(exc))}")
            else:
                table.add_row(name, kind, str(len(pattern_set)), "[green]ok[/green]")
    console.print(table)
    if failures:
        console.print(f"[red]{failures} query file(s) failed to load[/red]")
        raise typer.Exit(code=1)
