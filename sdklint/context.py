# Compilation units: a FileContext per .java file and the loaders that attach them to one Project.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

from sdklint.nodes import iter_nodes, node_text
from sdklint.parser import create_parser, first_syntax_error, parse_bytes
from sdklint.ruleconfig import TypeStub
from sdklint.symbols import Project, SymbolModel
from tree_sitter import Parser, Tree
from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)

_METHOD_TYPES = ("method_declaration", "constructor_declaration")


def count_tree_stats(root: TSNode) -> tuple[int, int]:
    """
    Return (total node count, method/constructor declaration count) for the tree.

    Useful for logging how much was parsed (nodes and methods).
    """
    nodes = 0
    methods = 0
    for node in iter_nodes(root):
        nodes += 1
        if node.type in _METHOD_TYPES:
            methods += 1
    return nodes, methods


class FileContext:
    """
    Per-file state for static analysis: path, raw source bytes, and AST.

    Rules use context.path, context.source, context.tree and context.symbols.
    Use get_source_span(context, node) and get_line_col(node) for locations/snippets.
    A context belongs to exactly one Project; a standalone context gets a
    single-file project the first time it is asked for one.
    """

    def __init__(
        self,
        path: Path,
        source: bytes,
        tree: Tree,
        *,
        has_parse_errors: bool = False,
        project: Optional[Project] = None,
    ) -> None:
        self.path = path
        self.source = source
        self.tree = tree
        self.has_parse_errors = has_parse_errors
        self._project = project
        if project is not None:
            project.add(self)

    @property
    def root_node(self) -> TSNode:
        """Convenience access to the AST root."""
        return self.tree.root_node

    @property
    def project(self) -> Project:
        if self._project is None:
            self._project = Project([self])
        return self._project

    @property
    def symbols(self) -> SymbolModel:
        """Symbol and type queries for this compilation unit."""
        return self.project.model_for(self)


def get_source_span(context: FileContext, node: TSNode) -> str:
    return node_text(context.source, node)


def get_line_col(node: TSNode, one_based: bool = True) -> tuple[int, int]:
    """
    Return (line, column) for the node's start position.

    Tree-sitter uses 0-based (row, col). If one_based=True (default),
    returns 1-based line and column for display/SARIF.
    """
    row, col = node.start_point
    if one_based:
        return row + 1, col + 1
    return row, col


def get_end_line_col(node: TSNode) -> tuple[int, int]:
    """Return the 1-based (line, column) of the node's end position."""
    row, col = node.end_point
    return row + 1, col + 1


def create_context(
    path: Path,
    parser: Optional[Parser] = None,
    project: Optional[Project] = None,
) -> Optional[FileContext]:
    """
    Read a Java file and parse it into a FileContext (path, source, AST).

    - Unreadable file (permission, missing): returns None and logs error.
    - Malformed Java (syntax errors): still returns a FileContext with the tree
      and sets has_parse_errors=True; logs a warning and node/method counts.
    - Success: returns FileContext and logs node count and method count.

    Returns:
        FileContext if the file was read (and parsed), None if the file
        could not be read.
    """
    if parser is None:
        parser = create_parser()

    try:
        source = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read file %s: %s", path, e)
        return None

    tree = parse_bytes(source, parser=parser)
    error = first_syntax_error(tree.root_node)
    has_errors = error is not None
    if has_errors:
        logger.warning(
            "File %s has syntax errors from line %d; findings near them may be missed",
            path,
            error.start_point[0] + 1,
        )

    node_count, method_count = count_tree_stats(tree.root_node)
    logger.info(
        "Parsed %s: %d nodes, %d method(s)%s",
        path,
        node_count,
        method_count,
        " (with parse errors)" if has_errors else "",
    )

    return FileContext(
        path=path,
        source=source,
        tree=tree,
        has_parse_errors=has_errors,
        project=project,
    )


def load_contexts(
    paths: list[Path],
    parser: Optional[Parser] = None,
    type_stubs: Optional[Mapping[str, TypeStub]] = None,
) -> list[FileContext]:
    """
    Read and parse multiple Java files into FileContexts sharing one Project.

    Unreadable or missing files are skipped (logged); malformed files still
    get a context with has_parse_errors=True. Returns only successfully
    loaded contexts. Because they share a Project, calls into methods
    declared in any of the files count as project-local.

    Args:
        paths: List of paths to .java files (e.g. from traversal.find_java_files).
        parser: Optional shared parser; if None, one is created.
        type_stubs: Library type facts for the project's TypeRegistry.

    Returns:
        List of FileContext instances, one per file that could be read.
        Order matches input order; failed files are omitted.
    """
    if parser is None:
        parser = create_parser()

    project = Project(type_stubs=type_stubs)
    contexts: list[FileContext] = []
    for path in paths:
        ctx = create_context(path, parser=parser, project=project)
        if ctx is not None:
            contexts.append(ctx)
    return contexts
