import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from sqlalchemy import ColumnElement, func, insert, literal_column, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from astdex.config import CollectOptions
from astdex.core.collect import collect
from astdex.core.ports.index import WhereValue
from astdex.db.engine import get_engine
from astdex.db.schema import (
    CREATE_FTS,
    FTS_TABLE,
    INSERT_FTS,
    SEARCHABLE_PROPERTIES,
    flat_nodes,
    flat_nodes_fts,
    metadata,
    schema_column,
    schema_violations,
)
from astdex.errors import SchemaMismatchError, StructuralInvariantError
from astdex.models import Corpus, FlatNode, SearchHit

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\w+")


def match_expression(term: str, properties: Sequence[str]) -> str | None:
    """Build an FTS5 query matching any word of ``term`` in the given columns."""
    tokens = _TOKEN.findall(term)
    if not tokens:
        return None
    phrases = " OR ".join(f'"{token}"' for token in tokens)
    return f"{{{' '.join(properties)}}} : ({phrases})"


def _where_conditions(where: Mapping[str, WhereValue]) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    for key, expected in where.items():
        col = flat_nodes.c[schema_column(key)]
        if isinstance(expected, str):
            conditions.append(col == expected)
        elif isinstance(expected, Sequence) and all(isinstance(item, str) for item in expected):
            conditions.append(col.in_(list(expected)))
        else:
            raise ValueError(f"Filter on '{key}' needs a string or a sequence of strings, got {expected!r}")
    return conditions


def _prepare(node: FlatNode | Mapping[str, Any]) -> FlatNode:
    if isinstance(node, FlatNode):
        record = node.to_record()
        problems = schema_violations(record)
    else:
        problems = schema_violations(dict(node))
        if not problems:
            try:
                node = FlatNode.model_validate(node)
            except ValidationError as exc:
                raise SchemaMismatchError(f"Record does not fit the node schema: {exc}") from exc
    if problems:
        raise SchemaMismatchError(f"Record does not fit the node schema: {'; '.join(problems)}")
    return node


class SqliteNodeIndex:
    """Flat node records in SQLite, searchable through an FTS5 table over ``name`` and ``kind``.

    Implements the ``NodeIndex`` protocol.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._ready = False

    async def ensure_ready(self) -> None:
        if self._ready:
            return
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
            await conn.execute(CREATE_FTS)
        self._ready = True

    async def insert_many(self, nodes: Iterable[FlatNode | Mapping[str, Any]]) -> int:
        """Insert every node in a single transaction; nothing is stored if any node is rejected."""
        await self.ensure_ready()

        prepared: list[FlatNode] = []
        seen: set[str] = set()
        for node in nodes:
            flat = _prepare(node)
            if flat.node_id in seen:
                raise StructuralInvariantError(f"Duplicate nodeId {flat.node_id!r} in corpus")
            seen.add(flat.node_id)
            prepared.append(flat)
        if not prepared:
            return 0

        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(select(func.coalesce(func.max(flat_nodes.c.id), 0)))
                first_row = result.scalar_one() + 1
                rows = [
                    {
                        "id": first_row + offset,
                        "node_id": flat.node_id,
                        "parent_id": flat.parent_id,
                        "parent_type": flat.parent_type,
                        "field": flat.field,
                        "name": flat.name,
                        "type": flat.type,
                        "kind": flat.kind,
                        "root": flat.root,
                        "record": flat.to_record(),
                    }
                    for offset, flat in enumerate(prepared)
                ]
                await conn.execute(insert(flat_nodes), rows)
                await conn.execute(INSERT_FTS, [{"id": r["id"], "name": r["name"], "kind": r["kind"]} for r in rows])
        except IntegrityError as exc:
            raise StructuralInvariantError(f"nodeId already present in the index: {exc.orig}") from exc

        logger.info("Indexed %d nodes", len(prepared))
        return len(prepared)

    async def search(
        self,
        term: str = "",
        properties: Sequence[str] | None = None,
        where: Mapping[str, WhereValue] | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[SearchHit]:
        """Rank records whose ``properties`` contain a word of ``term``, restricted by exact ``where`` filters.

        A blank term lists the filtered records in insertion order with a zero score.
        """
        await self.ensure_ready()
        columns = tuple(properties or SEARCHABLE_PROPERTIES)
        unknown = [name for name in columns if name not in SEARCHABLE_PROPERTIES]
        if unknown:
            raise ValueError(f"Cannot search {unknown}; searchable properties: {list(SEARCHABLE_PROPERTIES)}")
        conditions = _where_conditions(where or {})

        if not term.strip():
            stmt = (
                select(flat_nodes.c.record)
                .where(*conditions)
                .order_by(flat_nodes.c.id)
                .limit(limit)
                .offset(offset)
            )
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
            return [SearchHit(node=FlatNode.model_validate(row.record), score=0.0) for row in rows]

        match = match_expression(term, columns)
        if match is None:
            return []

        rank = func.bm25(literal_column(FTS_TABLE)).label("rank")
        stmt = (
            select(flat_nodes.c.record, rank)
            .select_from(flat_nodes.join(flat_nodes_fts, flat_nodes_fts.c.rowid == flat_nodes.c.id))
            .where(literal_column(FTS_TABLE).op("MATCH")(match), *conditions)
            .order_by(rank, flat_nodes.c.id)
            .limit(limit)
            .offset(offset)
        )
        async with self._engine.connect() as conn:
            rows = (await conn.execute(stmt)).all()
        # bm25() is lower-is-better; flip it so callers can sort by descending score
        return [SearchHit(node=FlatNode.model_validate(row.record), score=-float(row.rank)) for row in rows]

    async def count(self, where: Mapping[str, WhereValue] | None = None) -> int:
        await self.ensure_ready()
        stmt = select(func.count()).select_from(flat_nodes).where(*_where_conditions(where or {}))
        async with self._engine.connect() as conn:
            return (await conn.execute(stmt)).scalar_one()

    async def get_node(self, node_id: str) -> FlatNode | None:
        await self.ensure_ready()
        stmt = select(flat_nodes.c.record).where(flat_nodes.c.node_id == node_id)
        async with self._engine.connect() as conn:
            record = (await conn.execute(stmt)).scalar_one_or_none()
        return FlatNode.model_validate(record) if record is not None else None

    async def node_type_counts(self, limit: int = 50) -> list[tuple[str, int]]:
        await self.ensure_ready()
        total = func.count().label("total")
        stmt = (
            select(flat_nodes.c.type, total)
            .group_by(flat_nodes.c.type)
            .order_by(total.desc(), flat_nodes.c.type)
            .limit(limit)
        )
        async with self._engine.connect() as conn:
            return [(row.type, row.total) for row in (await conn.execute(stmt)).all()]

    async def dispose(self) -> None:
        await self._engine.dispose()


async def build_index(
    corpus: Corpus | Iterable[FlatNode | Mapping[str, Any]],
    engine: AsyncEngine | None = None,
) -> SqliteNodeIndex:
    """Load a whole corpus into a fresh index and return the query handle."""
    nodes = corpus.nodes if isinstance(corpus, Corpus) else corpus
    index = SqliteNodeIndex(engine or get_engine())
    try:
        await index.insert_many(nodes)
    except BaseException:
        await index.dispose()
        raise
    return index


async def create_index(
    path: str | Path,
    options: CollectOptions | None = None,
    engine: AsyncEngine | None = None,
) -> tuple[SqliteNodeIndex, Corpus]:
    """Collect ``path`` and index the result in one step."""
    corpus = await collect(path, options)
    return await build_index(corpus, engine), corpus
