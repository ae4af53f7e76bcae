# Rule interface (abstract base class): defines the contract all rules must implement.
# Concrete rules (closeable_clients, stop_then_start, etc.) subclass Rule and implement visit().

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from tree_sitter import Node as TSNode

from sdklint.context import FileContext
from sdklint.dispatcher import Dispatcher
from sdklint.findings.models import Finding
from sdklint.findings.sink import FindingSink
from sdklint.ruleconfig import DEFAULT_NAMESPACE, RuleDefinition, default_rule_definition

if TYPE_CHECKING:
    from sdklint.config import Config


class Rule(ABC):
    """
    Abstract base class for all API-misuse rules.

    Subclasses must define:
    - id (str): unique rule identifier (e.g. "stop-then-start")
    - name (str): human-readable rule name (e.g. "Stop then start on a processor")
    - node_types: the tree-sitter node kinds the dispatcher routes to visit()
    - visit(node, context, sink): inspect one node and report findings

    A rule instance belongs to one analysis pass over one compilation unit.
    begin() is called before the walk and must reset any per-unit state.
    required_settings names the RuleDefinition lists the rule consumes; a rule
    whose definition leaves one of them empty is disabled and never visited.
    """

    id: str
    name: str
    node_types: frozenset[str] = frozenset()
    required_settings: tuple[str, ...] = ("method_names", "target_type_markers")
    severity: str = "warning"

    def __init__(
        self,
        definition: Optional[RuleDefinition] = None,
        *,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.definition = definition or default_rule_definition(self.id)
        self.namespace = namespace

    @property
    def enabled(self) -> bool:
        return self.definition.is_enabled(self.required_settings)

    @property
    def method_names(self) -> frozenset[str]:
        return self.definition.method_names

    @property
    def markers(self) -> frozenset[str]:
        return self.definition.target_type_markers

    def begin(self, context: FileContext) -> None:
        """Reset per-unit state before a pass over context."""

    @abstractmethod
    def visit(self, node: TSNode, context: FileContext, sink: FindingSink) -> None:
        """Inspect one node of a type listed in node_types."""
        ...

    def report(
        self,
        sink: FindingSink,
        anchor: TSNode,
        *,
        context: Optional[FileContext] = None,
        **values: object,
    ) -> Optional[Finding]:
        """Format the definition's message with values and hand the finding to the sink."""
        return sink.report(
            anchor,
            self.definition.format_message(**values),
            self.definition.fix(),
            rule_id=self.id,
            severity=self.severity,
            context=context,
        )

    def run(self, context: FileContext, config: Optional["Config"] = None) -> list[Finding]:
        """
        Analyze one file with this rule alone and return its findings.

        Args:
            context: Per-file state (path, source bytes, AST tree, symbols).
            config: Optional Config; when given, the rule takes its definition
                    and namespace from it.

        Returns:
            List of Finding objects, empty when the rule is disabled.
        """
        if config is not None:
            self.definition = config.rule_definition(self.id)
            self.namespace = config.namespace
        sink = FindingSink(context)
        Dispatcher([self]).walk(context, sink)
        return sink.findings
