from sqlalchemy import JSON, Boolean, Column, Integer, MetaData, String, Table, column, table, text

# Record attributes the index can filter on, with their declared types.
NODE_SCHEMA: dict[str, str] = {
    "parentType": "string",
    "parentId": "string",
    "nodeId": "string",
    "field": "string",
    "name": "string",
    "type": "string",
    "kind": "string",
}

SEARCHABLE_PROPERTIES = ("name", "kind")

_SCHEMA_TYPES: dict[str, type] = {"string": str}

_COLUMNS = {
    "parentType": "parent_type",
    "parentId": "parent_id",
    "nodeId": "node_id",
    "field": "field",
    "name": "name",
    "type": "type",
    "kind": "kind",
}

metadata = MetaData()

flat_nodes = Table(
    "flat_nodes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("node_id", String, nullable=False, unique=True),
    Column("parent_id", String, index=True),
    Column("parent_type", String, index=True),
    Column("field", String),
    Column("name", String),
    Column("type", String, nullable=False, index=True),
    Column("kind", String, index=True),
    Column("root", Boolean, nullable=False),
    Column("record", JSON, nullable=False),
)

FTS_TABLE = "flat_nodes_fts"

flat_nodes_fts = table(FTS_TABLE, column("rowid"), column("name"), column("kind"))

CREATE_FTS = text(
    f"CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} "
    "USING fts5(name, kind, content='flat_nodes', content_rowid='id')"
)

INSERT_FTS = text(f"INSERT INTO {FTS_TABLE}(rowid, name, kind) VALUES (:id, :name, :kind)")


def schema_column(key: str) -> str:
    """Map a schema key (``parentType`` or ``parent_type``) to its column name."""
    if key in _COLUMNS:
        return _COLUMNS[key]
    if key in _COLUMNS.values():
        return key
    raise ValueError(f"Unknown schema attribute '{key}'. Known: {sorted(NODE_SCHEMA)}")


def schema_violations(record: dict[str, object]) -> list[str]:
    """Describe every schema attribute whose value does not have the declared type."""
    problems: list[str] = []
    for key, declared in NODE_SCHEMA.items():
        value = record.get(key)
        if value is not None and not isinstance(value, _SCHEMA_TYPES[declared]):
            problems.append(f"{key}={value!r} is not a {declared}")
    return problems
