"""Error taxonomy shared by the collector, the flattener and the index."""

from __future__ import annotations


class AstdexError(Exception):
    """Base class for all astdex failures."""


class SourceError(AstdexError):
    """A failure scoped to a single path; subject to the collection error policy."""

    reason = "error"

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"{path}: {detail}")
        self.path = path
        self.detail = detail


class ParseFailureError(SourceError):
    """Source text could not be parsed, even with error recovery."""

    reason = "parse"


class IOFailureError(SourceError):
    """A file or directory could not be read."""

    reason = "io"


class SchemaMismatchError(AstdexError):
    """A record attribute does not fit the declared index schema."""


class StructuralInvariantError(AstdexError):
    """The tree or corpus breaks a structural invariant (cycle, duplicate id, untyped node)."""
