# Rule: a loop whose body makes exactly one SDK call (candidate for a batch API).

from __future__ import annotations

from typing import Optional

from tree_sitter import Node as TSNode

from sdklint.context import FileContext
from sdklint.findings.sink import FindingSink
from sdklint.nodes import code_children
from sdklint.rules.base import Rule
from sdklint.symbols import SymbolModel

LOOP_STATEMENTS = frozenset({"for_statement", "enhanced_for_statement", "while_statement", "do_statement"})


class SingleOperationInLoopRule(Rule):
    """
    Count the direct statements of a loop body that call into the SDK: an
    expression statement that is a call, or a local declaration initialised
    by one. Exactly one such statement is reported at the loop. Nested
    blocks are not searched.
    """

    id = "single-operation-in-loop"
    name = "Single SDK operation in loop"
    node_types = LOOP_STATEMENTS
    required_settings = ("target_type_markers",)

    def visit(self, node: TSNode, context: FileContext, sink: FindingSink) -> None:
        body = node.child_by_field_name("body")
        if body is None:
            return
        model = context.symbols
        statements = model.statements(body) if body.type == "block" else [body]
        operations = sum(1 for statement in statements if self._is_sdk_operation(model, statement))
        if operations == 1:
            self.report(sink, node)

    def _is_sdk_operation(self, model: SymbolModel, statement: TSNode) -> bool:
        call = self._statement_call(statement)
        if call is None:
            return False
        declaring = model.call_site(call).declaring_type
        return declaring is not None and any(declaring.startswith(m) for m in self.markers)

    @staticmethod
    def _statement_call(statement: TSNode) -> Optional[TSNode]:
        if statement.type == "expression_statement":
            children = code_children(statement)
            if children and children[0].type == "method_invocation":
                return children[0]
        elif statement.type == "local_variable_declaration":
            for declarator in statement.children_by_field_name("declarator"):
                value = declarator.child_by_field_name("value")
                if value is not None and value.type == "method_invocation":
                    return value
        return None
