# Rule: declarations typed with an SDK implementation type, directly or through a supertype.

from __future__ import annotations

from typing import Optional

from tree_sitter import Node as TSNode

from sdklint.context import FileContext
from sdklint.findings.sink import FindingSink
from sdklint.rules.base import Rule
from sdklint.typesystem import ResolvedType

DECLARATION_NODES = frozenset(
    {
        "local_variable_declaration",
        "field_declaration",
        "formal_parameter",
        "spread_parameter",
        "catch_formal_parameter",
        "resource",
        "enhanced_for_statement",
    }
)


class ImplementationTypeRule(Rule):
    """
    Flag variables whose declared type is, or extends or implements, a type in
    an implementation package of the scanned namespace (e.g.
    com.azure.core.implementation.*). Builtin ancestors are not searched.
    """

    id = "implementation-type"
    name = "Implementation type used"
    node_types = DECLARATION_NODES
    required_settings = ("target_type_markers",)

    def visit(self, node: TSNode, context: FileContext, sink: FindingSink) -> None:
        for decl in context.symbols.declarations_in(node):
            if decl.type is None:
                continue
            match = self.find_implementation_type(decl.type)
            if match is not None:
                self.report(sink, decl.name_node, variable=decl.name, type=match.qualified_name)

    def is_implementation_type(self, t: ResolvedType) -> bool:
        name = t.qualified_name
        if not name.startswith(self.namespace):
            return False
        segments = name.removesuffix("[]").split(".")
        return any(marker in segments for marker in self.markers)

    def find_implementation_type(self, t: ResolvedType) -> Optional[ResolvedType]:
        """Return t or the first non-builtin ancestor that is an implementation type."""
        visited: set[str] = set()
        pending = [t]
        while pending:
            current = pending.pop(0)
            if current.qualified_name in visited:
                continue
            visited.add(current.qualified_name)
            if self.is_implementation_type(current):
                return current
            pending.extend(s for s in current.supertypes() if not s.is_builtin)
        return None
