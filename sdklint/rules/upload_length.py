# Rule: storage upload calls that never pass the length of the data.

from __future__ import annotations

from typing import Optional

from tree_sitter import Node as TSNode

from sdklint.context import FileContext
from sdklint.findings.sink import FindingSink
from sdklint.nodes import code_children
from sdklint.rules.base import Rule
from sdklint.symbols import SymbolModel


class UploadWithoutLengthRule(Rule):
    """
    An upload call is compliant when one of its arguments has a length type
    (long by default), or when an argument is built from a constructor that
    receives one, e.g. new BlobParallelUploadOptions(data, length).setTier(t).
    """

    id = "upload-without-length"
    name = "Upload without length"
    node_types = frozenset({"method_invocation"})

    def visit(self, node: TSNode, context: FileContext, sink: FindingSink) -> None:
        model = context.symbols
        method = model.method_name(node)
        if method not in self.method_names:
            return
        if any(self._carries_length(model, arg) for arg in model.arguments(node)):
            return
        self.report(sink, node, method=method)

    def _is_length(self, model: SymbolModel, expr: TSNode) -> bool:
        t = model.expression_type(expr)
        return t is not None and t.qualified_name in self.markers

    def _carries_length(self, model: SymbolModel, arg: TSNode) -> bool:
        if self._is_length(model, arg):
            return True
        creation = self._chain_origin(arg)
        if creation is None:
            return False
        return any(self._is_length(model, a) for a in model.arguments(creation))

    @staticmethod
    def _chain_origin(expr: Optional[TSNode]) -> Optional[TSNode]:
        """Follow receivers up a call chain to the object creation it starts from, if any."""
        while expr is not None:
            if expr.type == "parenthesized_expression":
                children = code_children(expr)
                expr = children[0] if children else None
            elif expr.type == "method_invocation":
                expr = expr.child_by_field_name("object")
            elif expr.type == "object_creation_expression":
                return expr
            else:
                return None
        return None
