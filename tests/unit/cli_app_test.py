"""Tests for the astdex CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from astdex.cli.app import app
from astdex.cli.common import build_options, parse_where, report_skipped
from astdex.models import Corpus, ErrorPolicy, SkippedFile

runner = CliRunner()
WIDE = {"COLUMNS": "250"}


@pytest.mark.parametrize(
    "args",
    [[], ["flatten"], ["search"], ["stats"]],
    ids=["root", "flatten", "search", "stats"],
)
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_flatten_prints_json_lines(javascript_fixture: Path) -> None:
    result = runner.invoke(app, ["flatten", str(javascript_fixture), "--sequential-ids"])

    assert result.exit_code == 0
    records = [json.loads(line) for line in result.stdout.splitlines()]
    assert records[0]["nodeId"] == "n1"
    assert records[0]["type"] == "program"
    assert records[0]["root"] is True
    assert sum(1 for record in records if record["root"]) == 1
    assert records[0]["loc"]["filename"] == str(javascript_fixture)


def test_flatten_missing_path_fails() -> None:
    result = runner.invoke(app, ["flatten", "does/not/exist.js"])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_search_renders_table(javascript_fixture: Path) -> None:
    result = runner.invoke(
        app, ["search", str(javascript_fixture), "greet", "--where", "kind=let", "--property", "name"], env=WIDE
    )

    assert result.exit_code == 0
    assert "identifier" in result.stdout
    assert "greet" in result.stdout
    assert "(1 rows)" in result.stdout


def test_search_rejects_malformed_where(javascript_fixture: Path) -> None:
    result = runner.invoke(app, ["search", str(javascript_fixture), "greet", "--where", "kind"])

    assert result.exit_code != 0


def test_search_rejects_unknown_where_key(javascript_fixture: Path) -> None:
    result = runner.invoke(app, ["search", str(javascript_fixture), "greet", "--where", "colour=red"])

    assert result.exit_code == 1
    assert "Unknown schema attribute" in result.output


def test_stats_lists_node_types(javascript_fixture: Path) -> None:
    result = runner.invoke(app, ["stats", str(javascript_fixture)], env=WIDE)

    assert result.exit_code == 0
    assert "1 file(s)" in result.stdout
    assert "identifier" in result.stdout


def test_parse_where_collects_repeated_keys() -> None:
    assert parse_where(["kind=let", "type=identifier", "kind=const"]) == {
        "kind": ["let", "const"],
        "type": "identifier",
    }
    assert parse_where(None) == {}


def test_parse_where_rejects_missing_separator() -> None:
    with pytest.raises(typer.BadParameter):
        parse_where(["kind"])


def test_build_options(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ASTDEX_ON_ERROR", raising=False)

    options = build_options("ts", ["js"], strict=True, skip_errors=False)
    assert options.parse.language == "ts"
    assert options.parse.error_recovery is False
    assert options.extensions == (".js",)
    assert options.on_error is ErrorPolicy.FAIL_FAST

    assert build_options(None, None, strict=False, skip_errors=True).on_error is ErrorPolicy.SKIP


def test_report_skipped_prints_paths_verbatim(capsys: pytest.CaptureFixture[str]) -> None:
    corpus = Corpus(
        policy=ErrorPolicy.SKIP,
        skipped=[SkippedFile(path="src/broken[red].js", reason="parse", error="bad [bold]byte")],
    )

    report_skipped(corpus)

    err = capsys.readouterr().err
    assert "src/broken[red].js" in err
    assert "bad [bold]byte" in err
