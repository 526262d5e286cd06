import logging
import os
from enum import Enum
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from tree_highlight.cli.highlight import highlight
from tree_highlight.cli.languages import check_queries, languages
from tree_highlight.cli.serve import serve
from tree_highlight.core.languages import QUERY_PATH_ENV


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


app = typer.Typer(
    name="tree-highlight",
    help="Tree Highlight CLI: syntax highlighting with tree-sitter queries.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    log_level: Annotated[LogLevel, typer.Option("--log-level", help="Logging verbosity.")] = LogLevel.WARNING,
    query_path: Annotated[
        str | None,
        typer.Option(help=f"Extra query directories, searched before the bundled ones (overrides ${QUERY_PATH_ENV})."),
    ] = None,
) -> None:
    logging.basicConfig(
        level=log_level.value,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    logging.getLogger().setLevel(log_level.value)
    if query_path is not None:
        os.environ[QUERY_PATH_ENV] = query_path


app.command("highlight")(highlight)
app.command("languages")(languages)
app.command("check-queries")(check_queries)
app.command("serve")(serve)


def main() -> None:
    app()
