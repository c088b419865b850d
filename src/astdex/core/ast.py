from typing import cast

from tree_sitter import Node
from tree_sitter_language_pack import SupportedLanguage, get_parser

from astdex.core.syntax import TreeSitterSyntaxNode, profile_for_language
from astdex.errors import ParseFailureError


def _first_error(root: Node) -> Node | None:
    pending = [root]
    while pending:
        node = pending.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            pending.extend(reversed(node.children))
    return None


def parse_source(
    source_bytes: bytes,
    language: str,
    *,
    error_recovery: bool = True,
    filename: str | None = None,
) -> TreeSitterSyntaxNode:
    """Parse ``source_bytes`` with the tree-sitter grammar for ``language``.

    With ``error_recovery`` the tree may contain ``ERROR`` nodes; without it any
    syntax error rejects the whole source.
    """
    label = filename or "<source>"
    try:
        source_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseFailureError(label, f"not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc

    parser = get_parser(cast(SupportedLanguage, language))
    tree = parser.parse(source_bytes)

    if not error_recovery and tree.root_node.has_error:
        error = _first_error(tree.root_node)
        where = f" at line {error.start_point[0] + 1}, column {error.start_point[1]}" if error is not None else ""
        raise ParseFailureError(label, f"syntax error{where}")

    return TreeSitterSyntaxNode(tree.root_node, source_bytes, profile_for_language(language), filename)
