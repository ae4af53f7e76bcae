# Rule: getSyncPoller() called on a PollerFlux inside SDK-namespace code.

from __future__ import annotations

from tree_sitter import Node as TSNode

from sdklint.context import FileContext
from sdklint.findings.sink import FindingSink
from sdklint.rules.base import Rule


class SyncPollerOnPollerFluxRule(Rule):
    """Calling a sync-wrapper accessor on a reactive poller blocks; use the sync client's poller."""

    id = "sync-poller-on-poller-flux"
    name = "SyncPoller obtained from PollerFlux"
    node_types = frozenset({"method_invocation"})

    def visit(self, node: TSNode, context: FileContext, sink: FindingSink) -> None:
        model = context.symbols
        method = model.method_name(node)
        if not any(method.startswith(name) for name in self.method_names):
            return
        receiver = node.child_by_field_name("object")
        if receiver is None:
            return
        enclosing = model.enclosing_class_name(node)
        if enclosing is None or not enclosing.startswith(self.namespace):
            return
        receiver_type = model.expression_type(receiver)
        if receiver_type is None:
            return
        if any(marker in receiver_type.qualified_name for marker in self.markers):
            self.report(sink, node, method=method, type=receiver_type.qualified_name)
