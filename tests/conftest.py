"""Shared fixtures for tests."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from astdex.core.collect import collect
from astdex.core.flatten import SequentialIds
from astdex.db import SqliteNodeIndex, build_index
from astdex.models import Corpus

_REPO_ROOT = Path(__file__).parent.parent
FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def javascript_fixture() -> Path:
    """Return the path to the JavaScript fixture file."""
    return FIXTURES_DIR / "javascript" / "fixture.js"


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest_asyncio.fixture
async def fixture_corpus(javascript_fixture: Path) -> Corpus:
    return await collect(javascript_fixture, id_factory=SequentialIds())


@pytest_asyncio.fixture
async def fixture_index(fixture_corpus: Corpus) -> AsyncGenerator[SqliteNodeIndex, None]:
    index = await build_index(fixture_corpus)
    yield index
    await index.dispose()
