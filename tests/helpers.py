"""Tree builders and comparison helpers shared by the test modules."""

from typing import Any

from astdex.core.syntax import SyntaxNode, TraversalProfile
from astdex.models import FlatNode


def strip_ids(nodes: list[FlatNode]) -> list[dict[str, Any]]:
    """Records with ids blanked, for comparing two flattenings of the same tree."""
    return [node.model_copy(update={"node_id": "", "parent_id": None}).to_record() for node in nodes]


def count_reachable(node: SyntaxNode, profile: TraversalProfile) -> int:
    return 1 + sum(count_reachable(child, profile) for field in profile.fields for child in node.children(field))


def identifier(name: str) -> dict[str, Any]:
    return {"type": "Identifier", "name": name}


def declaration(kind: str, name: str, init: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "type": "VariableDeclaration",
        "kind": kind,
        "declarations": [{"type": "VariableDeclarator", "id": identifier(name), "init": init}],
    }


def estree_file(*statements: dict[str, Any]) -> dict[str, Any]:
    return {"type": "File", "program": {"type": "Program", "body": list(statements)}}
