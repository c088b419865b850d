"""Uniform access to heterogeneous syntax trees.

Two tree families are read through the ``SyntaxNode`` protocol: tree-sitter
concrete syntax trees and ESTree mappings (Babel or acorn output loaded from
JSON). A node answers ``children(field)`` for any field name; variants without
that slot return an empty sequence, so the walker never probes attributes.

Which slots are walked is fixed per tree family by a ``TraversalProfile``. New
syntax forms become reachable by extending a profile, never by falling back to
"every child".
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from tree_sitter import Node

from astdex.errors import StructuralInvariantError
from astdex.models import Position, SourceRange

Scalar = str | int | float | bool


class SyntaxNode(Protocol):
    @property
    def type(self) -> str: ...

    @property
    def identity(self) -> Hashable: ...

    def scalar(self, attribute: str) -> Scalar | None: ...

    def location(self) -> SourceRange | None: ...

    def children(self, field: str) -> Sequence[SyntaxNode]: ...


@dataclass(frozen=True)
class TraversalProfile:
    name: str
    fields: tuple[str, ...]
    declaration_types: frozenset[str]
    # parent type -> field name given to its named children that carry no field
    anonymous_fields: Mapping[str, str] = field(default_factory=dict)
    name_types: frozenset[str] = frozenset()
    literal_types: frozenset[str] = frozenset()


ESTREE = TraversalProfile(
    name="estree",
    fields=(
        "body",
        "declarations",
        "arguments",
        "expressions",
        "quasis",
        "property",
        "object",
        "id",
        "init",
        "expression",
        "callee",
        "params",
        "key",
        "value",
        "left",
        "right",
        "program",
    ),
    declaration_types=frozenset({"VariableDeclaration"}),
)

JAVASCRIPT = TraversalProfile(
    name="javascript",
    fields=(
        "name",
        "key",
        "label",
        "pattern",
        "object",
        "property",
        "index",
        "function",
        "constructor",
        "left",
        "right",
        "declaration",
        "declarations",
        "heritage",
        "parameter",
        "parameters",
        "params",
        "condition",
        "initializer",
        "increment",
        "value",
        "argument",
        "arguments",
        "expression",
        "expressions",
        "quasis",
        "properties",
        "elements",
        "specifiers",
        "source",
        "member",
        "consequence",
        "alternative",
        "cases",
        "handler",
        "finalizer",
        "body",
    ),
    declaration_types=frozenset({"lexical_declaration", "variable_declaration"}),
    anonymous_fields={
        "program": "body",
        "statement_block": "body",
        "class_body": "body",
        "else_clause": "body",
        "ERROR": "body",
        "lexical_declaration": "declarations",
        "variable_declaration": "declarations",
        "expression_statement": "expression",
        "parenthesized_expression": "expression",
        "template_substitution": "expression",
        "sequence_expression": "expressions",
        "arguments": "arguments",
        "formal_parameters": "params",
        "template_string": "quasis",
        "object": "properties",
        "object_pattern": "properties",
        "array": "elements",
        "array_pattern": "elements",
        "return_statement": "argument",
        "throw_statement": "argument",
        "await_expression": "argument",
        "spread_element": "argument",
        "yield_expression": "argument",
        "switch_body": "cases",
        "class_declaration": "heritage",
        "class": "heritage",
        "class_heritage": "expression",
        "import_statement": "specifiers",
        "import_clause": "specifiers",
        "named_imports": "specifiers",
        "export_statement": "specifiers",
        "export_clause": "specifiers",
    },
    name_types=frozenset(
        {
            "identifier",
            "property_identifier",
            "private_property_identifier",
            "shorthand_property_identifier",
            "shorthand_property_identifier_pattern",
            "statement_identifier",
            "type_identifier",
        }
    ),
    literal_types=frozenset({"string", "number", "regex", "template_string", "true", "false", "null", "undefined"}),
)

# literal node types whose runtime value is always falsy
_FALSY_LITERALS = frozenset({"false", "null", "undefined"})


def _is_zero(number_text: str) -> bool:
    digits = number_text.replace("_", "").lower().removesuffix("n")
    try:
        value = int(digits, 0) if digits[:2] in ("0x", "0o", "0b") else float(digits)
    except ValueError:
        return False
    return value == 0


_LANGUAGE_PROFILES = {
    "javascript": JAVASCRIPT,
    "typescript": JAVASCRIPT,
    "tsx": JAVASCRIPT,
}


def profile_for_language(language: str) -> TraversalProfile:
    try:
        return _LANGUAGE_PROFILES[language]
    except KeyError:
        raise ValueError(f"No traversal profile for language '{language}'") from None


class TreeSitterSyntaxNode:
    """A tree-sitter node seen through a traversal profile.

    Only named nodes are children; punctuation and keywords are dropped. ``name``
    is the text of identifier-like leaves, ``kind`` the keyword of a binding
    declaration and ``value`` the text of literals.
    """

    __slots__ = ("_fields", "_filename", "_node", "_profile", "_source")

    def __init__(self, node: Node, source: bytes, profile: TraversalProfile, filename: str | None = None) -> None:
        self._node = node
        self._source = source
        self._profile = profile
        self._filename = filename
        self._fields: dict[str, list[Node]] | None = None

    @property
    def type(self) -> str:
        return self._node.type

    @property
    def identity(self) -> Hashable:
        return self._node.id

    @property
    def has_error(self) -> bool:
        return self._node.has_error

    def text(self) -> str:
        return self._slice(self._node)

    def scalar(self, attribute: str) -> Scalar | None:
        if attribute == "name":
            return self.text() if self.type in self._profile.name_types else None
        if attribute == "kind":
            return self._declaration_keyword()
        if attribute == "value":
            return self._literal_text()
        return None

    def location(self) -> SourceRange:
        node = self._node
        return SourceRange(
            start=Position(line=node.start_point[0] + 1, column=node.start_point[1], offset=node.start_byte),
            end=Position(line=node.end_point[0] + 1, column=node.end_point[1], offset=node.end_byte),
            filename=self._filename,
        )

    def children(self, field: str) -> list[TreeSitterSyntaxNode]:
        return [
            TreeSitterSyntaxNode(child, self._source, self._profile, self._filename)
            for child in self._grouped_children().get(field, ())
        ]

    def _grouped_children(self) -> dict[str, list[Node]]:
        if self._fields is None:
            anonymous = self._profile.anonymous_fields.get(self._node.type)
            grouped: dict[str, list[Node]] = {}
            for index, child in enumerate(self._node.children):
                if not child.is_named:
                    continue
                field_name = self._node.field_name_for_child(index) or anonymous
                if field_name is not None:
                    grouped.setdefault(field_name, []).append(child)
            self._fields = grouped
        return self._fields

    def _declaration_keyword(self) -> str | None:
        if self.type not in self._profile.declaration_types:
            return None
        keyword = self._node.child_by_field_name("kind")
        if keyword is None and self._node.child_count:
            keyword = self._node.children[0]
        if keyword is None or keyword.is_named:
            return None
        return self._slice(keyword)

    def _literal_text(self) -> str | None:
        if self.type not in self._profile.literal_types or self.type in _FALSY_LITERALS:
            return None
        text = self.text()
        if self.type == "number" and _is_zero(text):
            return None
        if self.type == "string" and len(text) >= 2:
            return text[1:-1]
        return text

    def _slice(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _is_node(value: Any) -> bool:
    return isinstance(value, Mapping) and "type" in value


def _position(point: Mapping[str, Any]) -> Position:
    return Position(line=point.get("line"), column=point.get("column"), offset=point.get("index"))


class DictSyntaxNode:
    """An ESTree node held as a plain mapping."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]) -> None:
        node_type = data.get("type")
        if not isinstance(node_type, str) or not node_type:
            raise StructuralInvariantError(f"Syntax node without a type (keys: {sorted(data)})")
        self._data = data

    @property
    def type(self) -> str:
        return self._data["type"]

    @property
    def identity(self) -> Hashable:
        return id(self._data)

    def scalar(self, attribute: str) -> Scalar | None:
        value = self._data.get(attribute)
        return value if isinstance(value, Scalar) else None

    def location(self) -> SourceRange | None:
        loc = self._data.get("loc")
        if not isinstance(loc, Mapping):
            return None
        start, end = loc.get("start"), loc.get("end")
        if not isinstance(start, Mapping) or not isinstance(end, Mapping):
            return None
        return SourceRange(start=_position(start), end=_position(end), filename=loc.get("filename"))

    def children(self, field: str) -> list[DictSyntaxNode]:
        slot = self._data.get(field)
        if _is_node(slot):
            return [DictSyntaxNode(slot)]
        if isinstance(slot, list):
            return [DictSyntaxNode(item) for item in slot if _is_node(item)]
        return []
