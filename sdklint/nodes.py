# Small tree-sitter node helpers shared by the symbol model and the rules.

from __future__ import annotations

from typing import Iterator, Optional

from tree_sitter import Node as TSNode

COMMENT_TYPES = frozenset({"line_comment", "block_comment"})


def iter_nodes(node: TSNode) -> Iterator[TSNode]:
    """Yield node and every descendant in document order, without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def iter_descendants(node: TSNode, node_type: str) -> Iterator[TSNode]:
    """Yield descendants of node (node included) whose type is node_type."""
    for child in iter_nodes(node):
        if child.type == node_type:
            yield child


def node_text(source: bytes, node: Optional[TSNode]) -> str:
    """Decode the source span of node, or return "" for None."""
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def code_children(node: TSNode) -> list[TSNode]:
    """Named children of node, comments excluded."""
    return [c for c in node.named_children if c.type not in COMMENT_TYPES]


def first_child_of_type(node: Optional[TSNode], *types: str) -> Optional[TSNode]:
    if node is None:
        return None
    for child in node.children:
        if child.type in types:
            return child
    return None


def node_key(node: TSNode) -> tuple[int, int, str]:
    """Stable identity for a node within one tree."""
    return node.start_byte, node.end_byte, node.type
