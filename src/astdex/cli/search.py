import asyncio
from collections.abc import Sequence
from typing import Annotated, Any

import typer
from rich.markup import escape
from rich.table import Table

from astdex.cli.common import build_options, console, err_console, parse_where, report_skipped
from astdex.core.query import query_node_type_counts, search_nodes
from astdex.db import create_index
from astdex.errors import AstdexError
from astdex.models import Corpus, SearchHit


def _render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def _hit_row(hit: SearchHit) -> tuple[Any, ...]:
    node = hit.node
    line = node.loc.start.line if node.loc else None
    filename = node.loc.filename if node.loc else None
    return (f"{hit.score:.3f}", node.type, node.name, node.kind, node.parent_type, node.field, filename, line)


def search(
    path: Annotated[str, typer.Argument(help="File or directory to index.")],
    term: Annotated[str, typer.Argument(help="Free-text term matched against name and kind.")],
    prop: Annotated[
        list[str] | None, typer.Option("--property", "-p", help="Restrict the term to this property; repeatable.")
    ] = None,
    where: Annotated[
        list[str] | None, typer.Option("--where", "-w", help="Exact filter key=value, e.g. parentType=call_expression.")
    ] = None,
    limit: Annotated[int, typer.Option(help="Max hits to return.")] = 20,
    language: Annotated[str | None, typer.Option(help="Parse every file as this language.")] = None,
    extension: Annotated[
        list[str] | None, typer.Option("--extension", "-e", help="Only parse files with this extension; repeatable.")
    ] = None,
    strict: Annotated[bool, typer.Option(help="Reject files with syntax errors instead of recovering.")] = False,
    skip_errors: Annotated[bool, typer.Option(help="Skip unreadable or unparsable files.")] = False,
) -> None:
    """Index PATH and search it for TERM."""
    options = build_options(language, extension, strict, skip_errors)
    where_filter = parse_where(where)

    async def _run() -> tuple[list[SearchHit], Corpus]:
        index, corpus = await create_index(path, options)
        try:
            return await search_nodes(index, term, properties=prop, where=where_filter, limit=limit), corpus
        finally:
            await index.dispose()

    try:
        hits, corpus = asyncio.run(_run())
    except (AstdexError, ValueError) as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    report_skipped(corpus)
    _render_table(
        ["score", "type", "name", "kind", "parentType", "field", "file", "line"],
        [_hit_row(hit) for hit in hits],
    )


def stats(
    path: Annotated[str, typer.Argument(help="File or directory to index.")],
    limit: Annotated[int, typer.Option(help="Max node types to list.")] = 50,
    language: Annotated[str | None, typer.Option(help="Parse every file as this language.")] = None,
    skip_errors: Annotated[bool, typer.Option(help="Skip unreadable or unparsable files.")] = False,
) -> None:
    """Show node type counts for PATH."""
    options = build_options(language, None, False, skip_errors)

    async def _run() -> tuple[list[tuple[str, int]], Corpus]:
        index, corpus = await create_index(path, options)
        try:
            return await query_node_type_counts(index, limit), corpus
        finally:
            await index.dispose()

    try:
        counts, corpus = asyncio.run(_run())
    except AstdexError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    report_skipped(corpus)
    console.print(f"{len(corpus.files)} file(s), {len(corpus.nodes)} nodes")
    _render_table(["type", "count"], counts)
