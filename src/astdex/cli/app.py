import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from astdex.cli.common import err_console
from astdex.cli.flatten import flatten
from astdex.cli.search import search, stats

app = typer.Typer(
    name="astdex",
    help="astdex CLI: flatten and search JavaScript/TypeScript syntax trees.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress to stderr.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


app.command("flatten")(flatten)
app.command("search")(search)
app.command("stats")(stats)


def main() -> None:
    app()
