"""Fixtures for integration tests: real files on disk and a live SQLite index."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from astdex.db import get_engine

GREET_MODULE = """\
export function greet(name) {
  const prefix = 'hello ';
  return prefix + name;
}
"""


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A small project: two modules at the top, one in a subdirectory, plus a README."""
    root = tmp_path / "project"
    (root / "lib").mkdir(parents=True)
    (root / "main.js").write_text('import { greet } from "./lib/greet.js";\nlet message = greet("world");\n')
    (root / "util.ts").write_text("export const answer: number = 42;\n")
    (root / "lib" / "greet.js").write_text(GREET_MODULE)
    (root / "README.md").write_text("# project\n")
    return root


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Per-test in-memory engine so each event loop gets its own connection pool."""
    engine = get_engine("sqlite+aiosqlite://")
    yield engine
    await engine.dispose()
