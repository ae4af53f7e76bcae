# Finding sink: turns (anchor node, message, fix) reports into Finding objects for one pass.

from __future__ import annotations

import logging
from typing import Optional

from tree_sitter import Node as TSNode

from sdklint.context import FileContext, get_end_line_col, get_line_col, get_source_span
from sdklint.findings.models import Finding, Fix, Location

logger = logging.getLogger(__name__)


def make_location(context: FileContext, node: TSNode) -> Location:
    """Build a Location (1-based positions, byte range, snippet) for node in context."""
    line, col = get_line_col(node)
    end_line, end_col = get_end_line_col(node)
    return Location(
        path=context.path,
        line=line,
        column=col,
        end_line=end_line,
        end_column=end_col,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        snippet=get_source_span(context, node),
    )


class FindingSink:
    """
    Collects the findings of one analysis pass over one compilation unit.

    Reports with the same rule and anchor are kept once; a rule that reaches
    the same node twice (e.g. through an inlined method body) yields a single
    finding. Findings are final once reported.
    """

    def __init__(self, context: FileContext) -> None:
        self.context = context
        self.findings: list[Finding] = []
        self._seen: set[tuple[str, str, int, int]] = set()

    def report(
        self,
        anchor: TSNode,
        message: str,
        fix: Optional[Fix] = None,
        *,
        rule_id: str,
        severity: str = "warning",
        context: Optional[FileContext] = None,
    ) -> Optional[Finding]:
        """
        Record a finding anchored at `anchor`.

        `context` is the unit that owns the anchor when it differs from the
        unit being analysed (an inlined project-local method in another file).
        Returns the new Finding, or None for a duplicate.
        """
        ctx = context or self.context
        key = (rule_id, str(ctx.path), anchor.start_byte, anchor.end_byte)
        if key in self._seen:
            logger.debug("Duplicate %s finding at %s:%d ignored", rule_id, ctx.path, anchor.start_byte)
            return None
        self._seen.add(key)
        finding = Finding(
            rule_id=rule_id,
            message=message,
            location=make_location(ctx, anchor),
            severity=severity,
            fix=fix,
        )
        self.findings.append(finding)
        return finding

    def __len__(self) -> int:
        return len(self.findings)
