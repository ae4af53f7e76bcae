"""
Starting a processor client after stopping it.

Each tracked variable moves through a small state machine as calls on it are
seen in source order:

    stop()   -> STOPPED
    close()  -> no longer tracked
    start()  while STOPPED -> finding at the start() call, no longer tracked

A tracked variable that is initialised or re-assigned holds a fresh instance
and goes back to NOT_STOPPED. Calls to methods declared in project source
are followed into their bodies so a stop() or start() hidden in a helper
still counts. State is cleared at the start of every top-level method or
constructor.

There is no branch reasoning: stop() in one arm of an if and start() in the
other is reported like straight-line code.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from tree_sitter import Node as TSNode

from sdklint.context import FileContext
from sdklint.findings.sink import FindingSink
from sdklint.nodes import iter_nodes
from sdklint.rules.base import Rule
from sdklint.symbols import METHOD_DECLARATIONS, Declaration, MethodRef, SymbolModel

logger = logging.getLogger(__name__)

STOP = "stop"
START = "start"
CLOSE = "close"

_STATE_NODES = frozenset({"variable_declarator", "assignment_expression", "method_invocation"})


class ProcessorState(Enum):
    NOT_STOPPED = "not-stopped"
    STOPPED = "stopped"


class StopThenStartRule(Rule):
    """Report start() on a processor client that an earlier stop() left stopped."""

    id = "stop-then-start"
    name = "Processor restarted after stop"
    node_types = METHOD_DECLARATIONS | _STATE_NODES

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._states: dict[Declaration, ProcessorState] = {}
        self._active: set[tuple[str, int]] = set()
        self._followed: dict[tuple, dict[Declaration, ProcessorState]] = {}

    def begin(self, context: FileContext) -> None:
        self._states = {}
        self._active = set()
        self._followed = {}

    def state_of(self, decl: Declaration) -> Optional[ProcessorState]:
        return self._states.get(decl)

    def visit(self, node: TSNode, context: FileContext, sink: FindingSink) -> None:
        model = context.symbols
        if node.type in METHOD_DECLARATIONS:
            if model.enclosing_method(node) is None:
                self._states.clear()
            return
        self._apply(node, model, sink)

    def _tracked(self, decl: Optional[Declaration]) -> bool:
        return decl is not None and decl.type is not None and decl.type.qualified_name in self.markers

    def _apply(self, node: TSNode, model: SymbolModel, sink: FindingSink) -> None:
        if node.type == "variable_declarator":
            if node.child_by_field_name("value") is None:
                return
            name = node.child_by_field_name("name")
            decl = model.declaration_at(name) if name is not None else None
            if self._tracked(decl):
                self._states[decl] = ProcessorState.NOT_STOPPED
        elif node.type == "assignment_expression":
            decl = model.resolve_reference(node.child_by_field_name("left"))
            if self._tracked(decl):
                self._states[decl] = ProcessorState.NOT_STOPPED
        elif node.type == "method_invocation":
            self._apply_call(node, model, sink)

    def _apply_call(self, call: TSNode, model: SymbolModel, sink: FindingSink) -> None:
        name = model.method_name(call)
        receiver = call.child_by_field_name("object")
        decl = model.resolve_reference(receiver) if receiver is not None else None
        if self._tracked(decl) and name in self.method_names:
            if name == STOP:
                self._states[decl] = ProcessorState.STOPPED
            elif name == CLOSE:
                self._states.pop(decl, None)
            elif name == START and self._states.get(decl) is ProcessorState.STOPPED:
                self.report(sink, call, context=model.context, variable=decl.name)
                self._states.pop(decl, None)
            return

        method = model.resolve_method(call)
        if method is not None:
            self._follow(method, sink)

    def _follow(self, method: MethodRef, sink: FindingSink) -> None:
        """
        Apply the transitions found in a project-local method body, in source order.

        The state a body leaves behind depends only on the state it is entered
        with, so each (method, entry state) pair is walked once per pass and
        later calls replay the recorded exit state.
        """
        body = method.body
        if body is None or method.key in self._active:
            return
        memo_key = (method.key, frozenset(self._states.items()))
        recorded = self._followed.get(memo_key)
        if recorded is not None:
            self._states = dict(recorded)
            return
        logger.debug("Following call into %s at %s:%d", method.declaring_type, *method.key)
        self._active.add(method.key)
        try:
            model = method.context.symbols
            for node in iter_nodes(body):
                if node.type in _STATE_NODES:
                    self._apply(node, model, sink)
        finally:
            self._active.discard(method.key)
        self._followed[memo_key] = dict(self._states)
