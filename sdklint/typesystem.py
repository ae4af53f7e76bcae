"""
Resolved types and the registry that builds them.

A ResolvedType is a qualified name plus its direct supertypes, each itself a
ResolvedType, ending at java.lang.Object or at a type nothing is known
about. The registry builds them from two sources:

- classes declared in project source (ClassInfo, supplied by the Project);
- TypeStub entries for library types (rule configuration).

Types are immutable and cached per registry, so the same qualified name
always yields the same object within one Project.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, Mapping, Optional

from sdklint.ruleconfig import DEFAULT_TYPE_STUBS, TypeStub

logger = logging.getLogger(__name__)

OBJECT = "java.lang.Object"
BUILTIN_PREFIXES = ("java.", "javax.")
PRIMITIVES = frozenset({"byte", "short", "char", "int", "long", "float", "double", "boolean"})
NUMERIC_RANK = {"byte": 1, "short": 2, "char": 2, "int": 3, "long": 4, "float": 5, "double": 6}
BOXED = {
    "java.lang.Byte": "byte",
    "java.lang.Short": "short",
    "java.lang.Character": "char",
    "java.lang.Integer": "int",
    "java.lang.Long": "long",
    "java.lang.Float": "float",
    "java.lang.Double": "double",
    "java.lang.Boolean": "boolean",
}
JAVA_LANG = frozenset(
    {
        "Object", "String", "StringBuilder", "AutoCloseable", "Iterable", "Runnable", "Thread",
        "Exception", "RuntimeException", "Error", "Throwable", "Class", "Enum", "Record",
        "Byte", "Short", "Character", "Integer", "Long", "Float", "Double", "Boolean",
        "Number", "Math", "System", "Void", "CharSequence", "Comparable", "InterruptedException",
        "IllegalStateException", "IllegalArgumentException", "NullPointerException",
        "UnsupportedOperationException", "IndexOutOfBoundsException",
    }
)


@dataclass(frozen=True)
class ResolvedType:
    """A type's qualified name plus its ancestry."""

    qualified_name: str
    kind: str = "class"
    abstract: bool = False
    superclass: Optional["ResolvedType"] = field(default=None, compare=False, repr=False)
    interfaces: tuple["ResolvedType", ...] = field(default=(), compare=False, repr=False)

    @property
    def simple_name(self) -> str:
        return self.qualified_name.rsplit(".", 1)[-1]

    @property
    def package(self) -> str:
        return self.qualified_name.rsplit(".", 1)[0] if "." in self.qualified_name else ""

    @property
    def is_primitive(self) -> bool:
        return self.kind == "primitive"

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"

    @property
    def is_builtin(self) -> bool:
        """Language-provided types: primitives and java./javax. classes."""
        return self.is_primitive or self.qualified_name.startswith(BUILTIN_PREFIXES)

    def supertypes(self) -> tuple["ResolvedType", ...]:
        """Direct supertypes, interfaces first."""
        if self.superclass is None:
            return self.interfaces
        return self.interfaces + (self.superclass,)

    def ancestry(self) -> Iterator["ResolvedType"]:
        """Yield every transitive supertype once, nearest first (breadth-first)."""
        seen = {self.qualified_name}
        queue = list(self.supertypes())
        while queue:
            current = queue.pop(0)
            if current.qualified_name in seen:
                continue
            seen.add(current.qualified_name)
            yield current
            queue.extend(current.supertypes())

    def is_subtype_of(self, qualified_name: str) -> bool:
        return any(t.qualified_name == qualified_name for t in self.ancestry())

    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class ClassInfo:
    """What the symbol model knows about a class declared in project source."""

    qualified_name: str
    kind: str
    abstract: bool
    superclass: Optional[str]
    interfaces: tuple[str, ...]


def primitive(name: str) -> ResolvedType:
    return ResolvedType(name, kind="primitive")


def unbox(t: Optional[ResolvedType]) -> Optional[str]:
    """Primitive name for a primitive or boxed type, else None."""
    if t is None:
        return None
    if t.is_primitive:
        return t.qualified_name
    return BOXED.get(t.qualified_name)


class TypeRegistry:
    """
    Builds and caches ResolvedType objects for one project.

    class_lookup returns ClassInfo for a qualified name declared in project
    source and class_exists answers whether such a declaration exists
    without building it. Both are supplied by the Project so the registry
    stays independent of the syntax tree.
    """

    def __init__(
        self,
        type_stubs: Optional[Mapping[str, TypeStub]] = None,
        class_lookup: Optional[Callable[[str], Optional[ClassInfo]]] = None,
        class_exists: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self._stubs: dict[str, TypeStub] = dict(DEFAULT_TYPE_STUBS)
        if type_stubs:
            self._stubs.update(type_stubs)
        self._class_lookup = class_lookup or (lambda name: None)
        self._class_exists = class_exists or (lambda name: self._class_lookup(name) is not None)
        self._cache: dict[str, ResolvedType] = {}
        self._resolving: set[str] = set()

    def knows(self, qualified_name: str) -> bool:
        """True when the type is declared in the project or described by a stub."""
        return qualified_name in self._stubs or self._class_exists(qualified_name)

    def invalidate(self) -> None:
        """Drop cached types after the project gains a unit."""
        self._cache.clear()

    def stub(self, qualified_name: str) -> Optional[TypeStub]:
        return self._stubs.get(qualified_name)

    def resolve(self, qualified_name: Optional[str]) -> Optional[ResolvedType]:
        """Return the ResolvedType for a qualified name (None stays None)."""
        if not qualified_name:
            return None
        cached = self._cache.get(qualified_name)
        if cached is not None:
            return cached
        if qualified_name in PRIMITIVES:
            return self._remember(primitive(qualified_name))
        if qualified_name.endswith("[]"):
            return self._remember(ResolvedType(qualified_name, kind="array"))
        if qualified_name in self._resolving:
            # Cyclic hierarchy in malformed source: cut the cycle here.
            logger.debug("Cyclic supertype chain through %s", qualified_name)
            return ResolvedType(qualified_name, kind="unknown")

        self._resolving.add(qualified_name)
        try:
            resolved = self._build(qualified_name)
        finally:
            self._resolving.discard(qualified_name)
        return self._remember(resolved)

    def _remember(self, resolved: ResolvedType) -> ResolvedType:
        self._cache[resolved.qualified_name] = resolved
        return resolved

    def _build(self, qualified_name: str) -> ResolvedType:
        info = self._class_lookup(qualified_name)
        if info is not None:
            kind, abstract = info.kind, info.abstract
            superclass_name, interface_names = info.superclass, info.interfaces
        else:
            stub = self._stubs.get(qualified_name)
            if stub is None:
                return ResolvedType(qualified_name, kind="unknown")
            kind, abstract = stub.kind, stub.abstract
            superclass_name, interface_names = stub.superclass, stub.interfaces

        if superclass_name is None and kind != "interface" and qualified_name != OBJECT:
            superclass_name = OBJECT
        superclass = self.resolve(superclass_name)
        interfaces = tuple(t for t in (self.resolve(n) for n in interface_names) if t is not None)
        return ResolvedType(
            qualified_name,
            kind=kind,
            abstract=abstract,
            superclass=superclass,
            interfaces=interfaces,
        )

    def supertypes(self, t: ResolvedType) -> tuple[tuple[ResolvedType, ...], Optional[ResolvedType]]:
        """Return (interfaces, superclass) of t."""
        return t.interfaces, t.superclass

    def library_method_return(self, t: ResolvedType, method_name: str) -> Optional[str]:
        """Qualified return type of a library method on t or its ancestors, from stubs."""
        for candidate in (t, *t.ancestry()):
            stub = self._stubs.get(candidate.qualified_name)
            if stub is not None and method_name in stub.methods:
                return stub.methods[method_name]
        return None
