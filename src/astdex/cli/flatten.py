import asyncio
import json
from typing import Annotated

import typer
from rich.markup import escape

from astdex.cli.common import build_options, err_console, report_skipped
from astdex.core.collect import collect
from astdex.core.flatten import SequentialIds
from astdex.errors import AstdexError


def flatten(
    path: Annotated[str, typer.Argument(help="File or directory to flatten.")],
    language: Annotated[
        str | None, typer.Option(help="Parse every file as this language (javascript, typescript, tsx).")
    ] = None,
    extension: Annotated[
        list[str] | None, typer.Option("--extension", "-e", help="Only parse files with this extension; repeatable.")
    ] = None,
    strict: Annotated[bool, typer.Option(help="Reject files with syntax errors instead of recovering.")] = False,
    skip_errors: Annotated[
        bool, typer.Option(help="Skip unreadable or unparsable files instead of aborting.")
    ] = False,
    sequential_ids: Annotated[bool, typer.Option(help="Use counter ids (n1, n2, ...) instead of UUIDs.")] = False,
) -> None:
    """Print the flattened node records of PATH as JSON lines."""
    options = build_options(language, extension, strict, skip_errors)
    id_factory = SequentialIds() if sequential_ids else None

    try:
        corpus = asyncio.run(collect(path, options, id_factory=id_factory))
    except AstdexError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    for node in corpus.nodes:
        typer.echo(json.dumps(node.to_record()))
    report_skipped(corpus)
