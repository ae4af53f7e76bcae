# Rule: declarations typed with a client the SDK discourages (e.g. ServiceBusReceiverAsyncClient).

from __future__ import annotations

from tree_sitter import Node as TSNode

from sdklint.context import FileContext
from sdklint.findings.sink import FindingSink
from sdklint.rules.base import Rule


class DiscouragedClientRule(Rule):
    """Report locals, fields and parameters declared with a discouraged client type."""

    id = "discouraged-client"
    name = "Discouraged client type"
    node_types = frozenset({"local_variable_declaration", "field_declaration", "formal_parameter"})
    required_settings = ("target_type_markers",)

    def visit(self, node: TSNode, context: FileContext, sink: FindingSink) -> None:
        model = context.symbols
        for decl in model.declarations_in(node):
            if decl.type_node is None:
                continue
            simple = model.simple_type_name(decl.type_node)
            qualified = decl.type.qualified_name if decl.type is not None else None
            if simple in self.markers or qualified in self.markers:
                self.report(sink, decl.type_node, type=simple, variable=decl.name)
