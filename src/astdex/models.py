from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ErrorPolicy(str, Enum):
    FAIL_FAST = "fail-fast"
    SKIP = "skip"


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int
    column: int
    offset: int | None = None


class SourceRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position
    filename: str | None = None


class FlatNode(BaseModel):
    """One syntax node, detached from its tree.

    Lineage is kept through ``parent_id``/``parent_type``/``field``; the camelCase
    aliases are the record keys used by the index schema.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    node_id: str
    type: str
    loc: SourceRange | None = None
    name: str | None = None
    kind: str | None = None
    value: str | int | float | bool | None = None
    root: bool = False
    parent_id: str | None = None
    parent_type: str | None = None
    field: str | None = None

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SkippedFile(BaseModel):
    path: str
    reason: str
    error: str


class Corpus(BaseModel):
    nodes: list[FlatNode] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list)
    skipped: list[SkippedFile] = Field(default_factory=list)
    policy: ErrorPolicy = ErrorPolicy.FAIL_FAST

    def __len__(self) -> int:
        return len(self.nodes)

    def extend(self, path: str, nodes: list[FlatNode]) -> None:
        self.files.append(path)
        self.nodes.extend(nodes)


class SearchHit(BaseModel):
    node: FlatNode
    score: float
