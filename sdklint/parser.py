# Java grammar and parsing: bytes in, tree-sitter Tree out, with the first syntax error located.

import logging
from typing import Optional, Union

import tree_sitter
from tree_sitter import Language
from tree_sitter import Node as TSNode
from tree_sitter_java import language as _java_language_capsule

logger = logging.getLogger(__name__)

_JAVA_LANGUAGE = Language(_java_language_capsule())


def get_java_language() -> Language:
    return _JAVA_LANGUAGE


def create_parser() -> tree_sitter.Parser:
    """A fresh Parser for Java. Parsers are not thread-safe; use one per worker."""
    return tree_sitter.Parser(_JAVA_LANGUAGE)


def first_syntax_error(root: TSNode) -> Optional[TSNode]:
    """
    Return the first ERROR or MISSING node in document order, or None.

    Subtrees without has_error are skipped, so a clean tree costs one check.
    """
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))
    return None


def parse_bytes(
    source: Union[bytes, str],
    parser: Optional[tree_sitter.Parser] = None,
) -> tree_sitter.Tree:
    """
    Parse Java source into a tree.

    A tree is always returned; tree-sitter recovers from syntax errors by
    inserting ERROR and MISSING nodes, and rules still run over the rest.

    Args:
        source: Java source code; str is encoded as UTF-8.
        parser: Optional parser instance; if None, a new one is created.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    if parser is None:
        parser = create_parser()
    tree = parser.parse(source)
    error = first_syntax_error(tree.root_node)
    if error is not None:
        row, col = error.start_point
        logger.warning(
            "Parse completed with errors: first %s at line %d, column %d",
            "missing token" if error.is_missing else "error",
            row + 1,
            col + 1,
        )
    else:
        logger.debug("Parse succeeded: %d bytes", len(source))
    return tree
