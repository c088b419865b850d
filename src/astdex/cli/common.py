"""Option parsing shared by the CLI commands."""

from __future__ import annotations

from collections.abc import Sequence

import typer
from rich.console import Console
from rich.markup import escape

from astdex.config import CollectOptions, ParseOptions, default_error_policy
from astdex.models import Corpus, ErrorPolicy

console = Console()
err_console = Console(stderr=True)


def build_options(
    language: str | None,
    extensions: Sequence[str] | None,
    strict: bool,
    skip_errors: bool,
) -> CollectOptions:
    return CollectOptions(
        parse=ParseOptions(language=language, error_recovery=not strict),
        extensions=tuple(extensions) if extensions else None,
        on_error=ErrorPolicy.SKIP if skip_errors else default_error_policy(),
    )


def parse_where(pairs: Sequence[str] | None) -> dict[str, str | list[str]]:
    """Turn repeated ``key=value`` options into a filter mapping; repeated keys match any value."""
    where: dict[str, str | list[str]] = {}
    for pair in pairs or ():
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--where")
        existing = where.get(key)
        if existing is None:
            where[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            where[key] = [existing, value]
    return where


def report_skipped(corpus: Corpus) -> None:
    for skipped in corpus.skipped:
        err_console.print(
            f"[yellow]Skipped[/yellow] {escape(skipped.path)} ({skipped.reason}): {escape(skipped.error)}"
        )
