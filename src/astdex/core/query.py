from collections.abc import Mapping, Sequence

from astdex.core.ports.index import NodeIndex, WhereValue
from astdex.errors import StructuralInvariantError
from astdex.models import FlatNode, SearchHit


async def search_nodes(
    index: NodeIndex,
    term: str,
    properties: Sequence[str] | None = None,
    where: Mapping[str, WhereValue] | None = None,
    limit: int = 10,
) -> list[SearchHit]:
    return await index.search(term, properties=properties, where=where, limit=limit)


async def find_bindings(index: NodeIndex, name: str, kind: str, limit: int = 50) -> list[FlatNode]:
    """Return records named ``name`` that sit inside a ``kind`` binding declaration."""
    hits = await index.search(name, properties=["name"], where={"kind": kind, "name": name}, limit=limit)
    return [hit.node for hit in hits]


async def query_lineage(index: NodeIndex, node_id: str) -> list[FlatNode]:
    """Return the node followed by its ancestors, ending with its file's root."""
    lineage: list[FlatNode] = []
    seen: set[str] = set()
    current = await index.get_node(node_id)
    while current is not None:
        if current.node_id in seen:
            raise StructuralInvariantError(f"Parent chain of {node_id!r} loops back to {current.node_id!r}")
        seen.add(current.node_id)
        lineage.append(current)
        if current.parent_id is None:
            break
        current = await index.get_node(current.parent_id)
    return lineage


async def query_node_type_counts(index: NodeIndex, limit: int = 50) -> list[tuple[str, int]]:
    """Return (node_type, count) pairs ordered by frequency."""
    return await index.node_type_counts(limit)
