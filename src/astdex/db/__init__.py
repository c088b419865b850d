from astdex.db.engine import get_engine
from astdex.db.schema import NODE_SCHEMA, SEARCHABLE_PROPERTIES
from astdex.db.sqlite import SqliteNodeIndex, build_index, create_index

__all__ = [
    "NODE_SCHEMA",
    "SEARCHABLE_PROPERTIES",
    "SqliteNodeIndex",
    "build_index",
    "create_index",
    "get_engine",
]
