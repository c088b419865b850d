"""Flatten a syntax tree into an ordered list of ``FlatNode`` records.

The walk is a single depth-first preorder pass driven by an explicit stack, so
parents are always emitted before their children and deep trees never hit the
interpreter's recursion limit. Every frame carries the binding kind inherited from
the closest enclosing declaration.
"""

from __future__ import annotations

import itertools
import uuid
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from astdex.core.syntax import ESTREE, SyntaxNode, TraversalProfile
from astdex.errors import SchemaMismatchError, StructuralInvariantError
from astdex.models import FlatNode

IdFactory = Callable[[], str]

PROJECTED_ATTRIBUTES = ("name", "kind", "value")


def new_node_id() -> str:
    return str(uuid.uuid4())


class SequentialIds:
    """Counter-based ids, scoped to one collection run."""

    def __init__(self, prefix: str = "n") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self._prefix}{next(self._counter)}"


@dataclass(frozen=True)
class _Frame:
    node: SyntaxNode
    parent_id: str | None = None
    parent_type: str | None = None
    field: str | None = None
    inherited_kind: str | None = None


def resolve_kind(
    node_type: str,
    own_kind: str | None,
    inherited_kind: str | None,
    profile: TraversalProfile,
) -> tuple[str | None, str | None]:
    """Return ``(stamped, passed)``: the kind recorded on this node and the kind handed to its children."""
    if node_type in profile.declaration_types:
        return own_kind, own_kind
    if inherited_kind:
        return inherited_kind, inherited_kind
    return own_kind, None


def child_slots(node: SyntaxNode, profile: TraversalProfile) -> list[tuple[str, SyntaxNode]]:
    """Children of ``node`` in traversal order, each paired with the field it hangs under."""
    return [(field, child) for field in profile.fields for child in node.children(field)]


def _project(node: SyntaxNode) -> dict[str, Any]:
    projected: dict[str, Any] = {}
    for attribute in PROJECTED_ATTRIBUTES:
        value = node.scalar(attribute)
        if value:
            projected[attribute] = value
    return projected


def flatten(
    root: SyntaxNode,
    profile: TraversalProfile = ESTREE,
    id_factory: IdFactory | None = None,
) -> list[FlatNode]:
    next_id = id_factory or new_node_id
    results: list[FlatNode] = []
    visited: set[Hashable] = set()
    stack = [_Frame(root)]

    while stack:
        frame = stack.pop()
        node = frame.node

        identity = node.identity
        if identity in visited:
            raise StructuralInvariantError(f"{node.type} node reached twice; the syntax tree is not a tree")
        visited.add(identity)

        node_id = next_id()
        attributes = _project(node)
        stamped_kind, passed_kind = resolve_kind(node.type, attributes.pop("kind", None), frame.inherited_kind, profile)

        try:
            record = FlatNode(
                node_id=node_id,
                type=node.type,
                loc=node.location(),
                kind=stamped_kind,
                root=frame.parent_id is None,
                parent_id=frame.parent_id,
                parent_type=frame.parent_type,
                field=frame.field,
                **attributes,
            )
        except ValidationError as exc:
            raise SchemaMismatchError(f"{node.type} node does not fit the record schema: {exc}") from exc
        results.append(record)

        for field, child in reversed(child_slots(node, profile)):
            stack.append(_Frame(child, node_id, node.type, field, passed_kind))

    return results
