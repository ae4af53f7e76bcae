"""
Single-walk dispatch of rules over a compilation unit.

The Dispatcher walks a unit's tree once in document order and hands each
node to every enabled rule that listed the node's type. Rules never walk the
whole tree themselves, so adding a rule does not add a pass.

analyze_unit and analyze_paths are the entry points the CLI uses: they build
fresh rule instances from the Config for every unit, so no per-unit state
ever outlives its pass.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Sequence

from sdklint.context import FileContext, get_line_col, load_contexts
from sdklint.findings.models import Finding
from sdklint.findings.sink import FindingSink
from sdklint.nodes import iter_nodes

if TYPE_CHECKING:
    from sdklint.config import Config
    from sdklint.rules.base import Rule

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes the nodes of one walk to the rules interested in them."""

    def __init__(self, rules: Iterable["Rule"]) -> None:
        self.rules: list["Rule"] = []
        for rule in rules:
            if rule.enabled:
                self.rules.append(rule)
            else:
                logger.debug("Rule %s is disabled by its configuration", rule.id)
        self._routes: dict[str, list["Rule"]] = {}
        for rule in self.rules:
            for node_type in rule.node_types:
                self._routes.setdefault(node_type, []).append(rule)

    def walk(
        self,
        context: FileContext,
        sink: Optional[FindingSink] = None,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> FindingSink:
        """
        Run every enabled rule over context in one traversal.

        should_continue is polled before each node; when it returns False the
        walk stops and the findings reported so far are kept. A rule that
        raises is logged and the node is skipped for that rule only.
        """
        if sink is None:
            sink = FindingSink(context)
        if not self.rules:
            logger.debug("No enabled rules for %s; skipping walk", context.path)
            return sink

        active: list["Rule"] = []
        for rule in self.rules:
            try:
                rule.begin(context)
            except Exception:
                logger.exception("Rule %s failed to start on %s", rule.id, context.path)
                continue
            active.append(rule)
        failed = {rule.id for rule in self.rules} - {rule.id for rule in active}

        for node in iter_nodes(context.root_node):
            if should_continue is not None and not should_continue():
                logger.info("Analysis of %s cancelled after %d finding(s)", context.path, len(sink))
                break
            for rule in self._routes.get(node.type, ()):
                if rule.id in failed:
                    continue
                try:
                    rule.visit(node, context, sink)
                except Exception:
                    line, _ = get_line_col(node)
                    logger.exception(
                        "Rule %s failed on %s node at %s:%d", rule.id, node.type, context.path, line
                    )
        return sink


def analyze_unit(
    context: FileContext,
    config: "Config",
    should_continue: Optional[Callable[[], bool]] = None,
) -> list[Finding]:
    """Analyze one unit with fresh instances of the configured rules."""
    sink = Dispatcher(config.create_rules()).walk(context, should_continue=should_continue)
    return sink.findings


def analyze_contexts(contexts: Sequence[FileContext], config: "Config") -> list[Finding]:
    findings: list[Finding] = []
    for context in contexts:
        findings.extend(analyze_unit(context, config))
    return findings


def analyze_paths(paths: Sequence[Path], config: "Config") -> list[Finding]:
    """Load paths into one Project and analyze each unit in turn."""
    contexts = load_contexts(list(paths), type_stubs=config.type_stubs)
    return analyze_contexts(contexts, config)
