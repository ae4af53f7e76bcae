"""
Closeable clients that are never released.

A local variable whose type lives in the scanned namespace and is
AutoCloseable (or Disposable) must be released. Compliant shapes, checked in
order:

1. declared as a try-with-resources resource (resources are not visited);
2. closed in the finally block of a try among the statements of the block
   that declares it;
3. closed anywhere in the file.

A close() on the same variable in an unrelated branch satisfies the last
check. Anything unresolved is skipped.
"""

from __future__ import annotations

import logging
from typing import Optional

from tree_sitter import Node as TSNode

from sdklint.context import FileContext
from sdklint.findings.sink import FindingSink
from sdklint.nodes import first_child_of_type, iter_descendants
from sdklint.rules.base import Rule
from sdklint.symbols import Declaration, SymbolModel
from sdklint.typesystem import ResolvedType

logger = logging.getLogger(__name__)

_TRY_STATEMENTS = ("try_statement", "try_with_resources_statement")


class CloseableClientRule(Rule):
    """Report closeable SDK clients held in locals that are not closed or disposed of."""

    id = "closeable-client-not-closed"
    name = "Closeable client not closed"
    node_types = frozenset({"local_variable_declaration"})

    def begin(self, context: FileContext) -> None:
        self._released: Optional[set[Declaration]] = None

    def visit(self, node: TSNode, context: FileContext, sink: FindingSink) -> None:
        model = context.symbols
        for decl in model.declarations_in(node):
            if not self._is_closeable_client(decl.type):
                continue
            if self._closed_in_finally(model, node, decl):
                continue
            if decl in self._released_in_file(model):
                logger.debug("%s is released outside a finally block", decl.name)
                continue
            self.report(sink, decl.name_node, variable=decl.name, type=decl.type.qualified_name)

    def _is_closeable_client(self, t: Optional[ResolvedType]) -> bool:
        if t is None or not t.qualified_name.startswith(self.namespace):
            return False
        return any(a.qualified_name in self.markers for a in (t, *t.ancestry()))

    def _is_release_of(self, model: SymbolModel, call: TSNode, decl: Declaration) -> bool:
        if model.method_name(call) not in self.method_names:
            return False
        return model.resolve_reference(call.child_by_field_name("object")) == decl

    def _closed_in_finally(self, model: SymbolModel, node: TSNode, decl: Declaration) -> bool:
        for statement in model.statements(model.enclosing_block(node)):
            if statement.type not in _TRY_STATEMENTS:
                continue
            finally_clause = first_child_of_type(statement, "finally_clause")
            if finally_clause is None:
                continue
            for call in iter_descendants(finally_clause, "method_invocation"):
                if self._is_release_of(model, call, decl):
                    return True
        return False

    def _released_in_file(self, model: SymbolModel) -> set[Declaration]:
        """Declarations that are the receiver of a release call somewhere in the unit."""
        if self._released is None:
            released: set[Declaration] = set()
            for call in iter_descendants(model.context.root_node, "method_invocation"):
                if model.method_name(call) not in self.method_names:
                    continue
                decl = model.resolve_reference(call.child_by_field_name("object"))
                if decl is not None:
                    released.add(decl)
            self._released = released
        return self._released
