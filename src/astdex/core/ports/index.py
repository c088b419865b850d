from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol

from astdex.models import FlatNode, SearchHit

WhereValue = str | Sequence[str]


class NodeIndex(Protocol):
    async def ensure_ready(self) -> None: ...

    async def insert_many(self, nodes: Iterable[FlatNode | Mapping[str, Any]]) -> int: ...

    async def search(
        self,
        term: str = "",
        properties: Sequence[str] | None = None,
        where: Mapping[str, WhereValue] | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[SearchHit]: ...

    async def count(self, where: Mapping[str, WhereValue] | None = None) -> int: ...

    async def get_node(self, node_id: str) -> FlatNode | None: ...

    async def node_type_counts(self, limit: int = 50) -> list[tuple[str, int]]: ...

    async def dispose(self) -> None: ...
