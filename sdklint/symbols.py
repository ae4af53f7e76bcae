"""
Symbol model over tree-sitter-java trees.

SymbolModel answers the questions every rule asks about one compilation
unit: what declaration an identifier refers to, what type a declaration or
expression has, which block and statements surround a node, and which
project-local method a call invokes. It is a lexical model: no data flow,
no aliasing beyond direct identifier resolution.

Project groups the compilation units of one analysis run. It owns the
per-unit SymbolModel cache, the index of classes declared in project source
and the TypeRegistry. Calls resolve into method bodies only when the method
is declared in one of the project's units; library code is never followed.

Anything that cannot be resolved comes back as None. Rules treat None as
"nothing to report".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator, Mapping, Optional, Union

from tree_sitter import Node as TSNode

from sdklint.nodes import code_children, first_child_of_type, iter_nodes, node_key, node_text
from sdklint.ruleconfig import TypeStub
from sdklint.typesystem import (
    JAVA_LANG,
    NUMERIC_RANK,
    PRIMITIVES,
    ClassInfo,
    ResolvedType,
    TypeRegistry,
    primitive,
    unbox,
)

if TYPE_CHECKING:
    from sdklint.context import FileContext

logger = logging.getLogger(__name__)

CLASS_DECLARATIONS = frozenset(
    {
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
        "record_declaration",
        "annotation_type_declaration",
    }
)
CLASS_BODIES = frozenset(
    {"class_body", "interface_body", "enum_body", "enum_body_declarations", "annotation_type_body"}
)
METHOD_DECLARATIONS = frozenset(
    {"method_declaration", "constructor_declaration", "compact_constructor_declaration"}
)
BLOCKS = frozenset({"block", "constructor_body", "switch_block_statement_group"})
TYPE_NODES = frozenset(
    {
        "type_identifier",
        "scoped_type_identifier",
        "generic_type",
        "integral_type",
        "floating_point_type",
        "boolean_type",
        "void_type",
        "array_type",
    }
)
INTEGER_LITERALS = frozenset(
    {"decimal_integer_literal", "hex_integer_literal", "octal_integer_literal", "binary_integer_literal"}
)
FLOAT_LITERALS = frozenset({"decimal_floating_point_literal", "hex_floating_point_literal"})
BOOLEAN_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">=", "&&", "||"})
SHIFT_OPERATORS = frozenset({"<<", ">>", ">>>"})

_CLASS_KINDS = {
    "class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "record_declaration": "record",
    "annotation_type_declaration": "interface",
}
_TYPE_ARGUMENTS = re.compile(r"<[^<>]*>")


class DeclarationKind(str, Enum):
    LOCAL = "local"
    PARAMETER = "parameter"
    FIELD = "field"
    RESOURCE = "resource"
    CATCH = "catch"
    LOOP = "loop"


_SINGLE_NAME_KINDS = {
    "formal_parameter": DeclarationKind.PARAMETER,
    "resource": DeclarationKind.RESOURCE,
    "catch_formal_parameter": DeclarationKind.CATCH,
    "enhanced_for_statement": DeclarationKind.LOOP,
}


@dataclass(frozen=True)
class Declaration:
    """
    A named binding. Identity is (name, kind, path, start_byte) of the name
    token, so resolving the same variable twice gives equal, equally hashed
    declarations.
    """

    name: str
    kind: DeclarationKind
    path: str
    start_byte: int
    name_node: TSNode = field(compare=False, repr=False)
    owner: TSNode = field(compare=False, repr=False)
    type_node: Optional[TSNode] = field(default=None, compare=False, repr=False)
    value: Optional[TSNode] = field(default=None, compare=False, repr=False)
    type: Optional[ResolvedType] = field(default=None, compare=False)


@dataclass(frozen=True, eq=False)
class CallSite:
    """An invocation: method name, receiver expression, arguments and declaring type."""

    node: TSNode
    name: str
    receiver: Optional[TSNode]
    arguments: tuple[TSNode, ...]
    declaring_type: Optional[str]


@dataclass(frozen=True, eq=False)
class MethodRef:
    """A method declared in project source."""

    context: "FileContext"
    node: TSNode
    declaring_type: str

    @property
    def key(self) -> tuple[str, int]:
        return str(self.context.path), self.node.start_byte

    @property
    def body(self) -> Optional[TSNode]:
        return self.node.child_by_field_name("body")


class SymbolModel:
    """Symbol and type queries for one compilation unit."""

    def __init__(self, context: "FileContext", project: "Project") -> None:
        self.context = context
        self.project = project
        self.source = context.source
        self._package: Optional[str] = None
        self._imports: Optional[dict[str, str]] = None
        self._on_demand: list[str] = []
        self._local_types: Optional[dict[str, str]] = None
        self._declarations: dict[tuple[int, int, str], list[Declaration]] = {}
        self._collecting: set[tuple[int, int, str]] = set()

    def text(self, node: Optional[TSNode]) -> str:
        return node_text(self.source, node)

    # -- package, imports and declared classes --------------------------------

    @property
    def package_name(self) -> str:
        if self._package is None:
            self._package = ""
            package = first_child_of_type(self.context.root_node, "package_declaration")
            name = first_child_of_type(package, "scoped_identifier", "identifier")
            if name is not None:
                self._package = self.text(name)
        return self._package

    @property
    def imports(self) -> Mapping[str, str]:
        """Single-type imports: simple name -> qualified name."""
        if self._imports is None:
            self._load_imports()
        return self._imports

    @property
    def on_demand_imports(self) -> list[str]:
        if self._imports is None:
            self._load_imports()
        return self._on_demand

    def _load_imports(self) -> None:
        self._imports = {}
        self._on_demand = []
        for node in self.context.root_node.children:
            if node.type != "import_declaration" or first_child_of_type(node, "static") is not None:
                continue
            name = first_child_of_type(node, "scoped_identifier", "identifier")
            if name is None:
                continue
            qualified = self.text(name)
            if first_child_of_type(node, "asterisk") is not None:
                self._on_demand.append(qualified)
            else:
                self._imports[qualified.rsplit(".", 1)[-1]] = qualified

    def declared_classes(self) -> list[tuple[str, TSNode]]:
        """(qualified name, declaration node) for every named class in the unit."""
        result = []
        for node in iter_nodes(self.context.root_node):
            if node.type in CLASS_DECLARATIONS:
                qualified = self.class_qualified_name(node)
                if qualified:
                    result.append((qualified, node))
        return result

    @property
    def local_types(self) -> Mapping[str, str]:
        if self._local_types is None:
            self._local_types = {}
            for qualified, node in self.declared_classes():
                simple = self.text(node.child_by_field_name("name"))
                self._local_types.setdefault(simple, qualified)
        return self._local_types

    def class_qualified_name(self, class_node: Optional[TSNode]) -> Optional[str]:
        """Package plus the chain of enclosing class names, e.g. com.acme.Outer.Inner."""
        if class_node is None:
            return None
        names = []
        current = class_node
        while current is not None:
            if current.type in CLASS_DECLARATIONS:
                name = current.child_by_field_name("name")
                if name is None:
                    return None
                names.append(self.text(name))
            current = current.parent
        names.reverse()
        if self.package_name:
            names.insert(0, self.package_name)
        return ".".join(names)

    def class_info(self, class_node: TSNode) -> Optional[ClassInfo]:
        qualified = self.class_qualified_name(class_node)
        if qualified is None:
            return None
        modifiers = first_child_of_type(class_node, "modifiers")
        abstract = modifiers is not None and first_child_of_type(modifiers, "abstract") is not None

        superclass = None
        extends = class_node.child_by_field_name("superclass")
        if extends is not None:
            types = code_children(extends)
            superclass = self.type_name(types[0]) if types else None

        interfaces: list[str] = []
        for holder in (
            class_node.child_by_field_name("interfaces"),
            first_child_of_type(class_node, "extends_interfaces"),
        ):
            type_list = first_child_of_type(holder, "type_list")
            if type_list is None:
                continue
            for type_node in code_children(type_list):
                name = self.type_name(type_node)
                if name:
                    interfaces.append(name)

        return ClassInfo(
            qualified_name=qualified,
            kind=_CLASS_KINDS[class_node.type],
            abstract=abstract,
            superclass=superclass,
            interfaces=tuple(interfaces),
        )

    def class_members(self, class_node: TSNode) -> Iterator[TSNode]:
        body = class_node.child_by_field_name("body")
        if body is None:
            return
        for member in code_children(body):
            if member.type == "enum_body_declarations":
                yield from code_children(member)
            else:
                yield member

    # -- type names -----------------------------------------------------------

    def qualify(self, simple: str) -> Optional[str]:
        """
        Qualify a simple type name: unit declarations, single-type imports,
        same package, on-demand imports of known types, then java.lang.
        """
        if simple in PRIMITIVES:
            return simple
        local = self.local_types.get(simple)
        if local:
            return local
        imported = self.imports.get(simple)
        if imported:
            return imported
        registry = self.project.registry
        same_package = f"{self.package_name}.{simple}" if self.package_name else simple
        if registry.knows(same_package):
            return same_package
        for package in self.on_demand_imports:
            candidate = f"{package}.{simple}"
            if registry.knows(candidate):
                return candidate
        if simple in JAVA_LANG or registry.knows(f"java.lang.{simple}"):
            return f"java.lang.{simple}"
        logger.debug("Could not qualify type name %s in %s", simple, self.context.path)
        return None

    def qualify_dotted(self, text: str) -> Optional[str]:
        """Qualify a dotted name that is either fully qualified or Outer.Inner."""
        while _TYPE_ARGUMENTS.search(text):
            text = _TYPE_ARGUMENTS.sub("", text)
        parts = [p.strip() for p in text.split(".") if p.strip()]
        if not parts:
            return None
        if parts[0][0].islower():
            return ".".join(parts)
        head = self.qualify(parts[0])
        if head is None:
            return None
        return ".".join([head, *parts[1:]])

    def type_name(self, type_node: Optional[TSNode]) -> Optional[str]:
        """Qualified name for a type node, type arguments dropped. None for void, var or unknown."""
        if type_node is None:
            return None
        kind = type_node.type
        if kind in ("integral_type", "floating_point_type", "boolean_type"):
            return self.text(type_node)
        if kind == "type_identifier":
            text = self.text(type_node)
            return None if text == "var" else self.qualify(text)
        if kind == "scoped_type_identifier":
            return self.qualify_dotted(self.text(type_node))
        if kind == "generic_type":
            base = first_child_of_type(type_node, "type_identifier", "scoped_type_identifier")
            return self.type_name(base)
        if kind == "array_type":
            element = self.type_name(type_node.child_by_field_name("element"))
            return f"{element}[]" if element else None
        if kind == "catch_type":
            alternatives = code_children(type_node)
            return self.type_name(alternatives[0]) if len(alternatives) == 1 else None
        return None

    def simple_type_name(self, type_node: Optional[TSNode]) -> Optional[str]:
        """The written simple name of a type node (no package, no type arguments)."""
        if type_node is None:
            return None
        if type_node.type == "generic_type":
            type_node = first_child_of_type(type_node, "type_identifier", "scoped_type_identifier")
        text = self.text(type_node)
        while _TYPE_ARGUMENTS.search(text):
            text = _TYPE_ARGUMENTS.sub("", text)
        return text.rsplit(".", 1)[-1].strip() or None

    def resolve_type(self, type_node: Optional[TSNode]) -> Optional[ResolvedType]:
        return self.project.registry.resolve(self.type_name(type_node))

    def supertypes(self, t: ResolvedType) -> tuple[tuple[ResolvedType, ...], Optional[ResolvedType]]:
        return self.project.registry.supertypes(t)

    # -- declarations ---------------------------------------------------------

    def declarations_in(self, owner: TSNode) -> list[Declaration]:
        """Declarations introduced directly by owner (a declaration statement, parameter, resource...)."""
        key = node_key(owner)
        cached = self._declarations.get(key)
        if cached is not None:
            return cached
        if key in self._collecting:
            # `var x = x...`: the initializer cannot see the variable it initialises.
            return []
        self._collecting.add(key)
        try:
            result = [d for d in self._collect_declarations(owner) if d is not None]
        finally:
            self._collecting.discard(key)
        self._declarations[key] = result
        return result

    def _collect_declarations(self, owner: TSNode) -> Iterable[Optional[Declaration]]:
        kind = owner.type
        if kind in ("local_variable_declaration", "field_declaration", "constant_declaration"):
            decl_kind = DeclarationKind.LOCAL if kind == "local_variable_declaration" else DeclarationKind.FIELD
            type_node = owner.child_by_field_name("type")
            return [
                self._declaration(
                    declarator.child_by_field_name("name"),
                    type_node,
                    decl_kind,
                    owner,
                    declarator.child_by_field_name("value"),
                )
                for declarator in owner.children_by_field_name("declarator")
            ]
        if kind in _SINGLE_NAME_KINDS:
            if kind == "catch_formal_parameter":
                type_node = first_child_of_type(owner, "catch_type")
            else:
                type_node = owner.child_by_field_name("type")
            value = owner.child_by_field_name("value") if kind == "resource" else None
            return [
                self._declaration(
                    owner.child_by_field_name("name"), type_node, _SINGLE_NAME_KINDS[kind], owner, value
                )
            ]
        if kind == "spread_parameter":
            return [self._spread_parameter(owner)]
        if kind == "formal_parameters":
            return [
                d
                for param in code_children(owner)
                if param.type in ("formal_parameter", "spread_parameter")
                for d in self.declarations_in(param)
            ]
        if kind == "lambda_expression":
            params = owner.child_by_field_name("parameters")
            if params is None:
                return []
            if params.type == "identifier":
                return [self._declaration(params, None, DeclarationKind.PARAMETER, owner)]
            if params.type == "inferred_parameters":
                return [
                    self._declaration(p, None, DeclarationKind.PARAMETER, owner)
                    for p in code_children(params)
                    if p.type == "identifier"
                ]
            return self.declarations_in(params)
        return []

    def _spread_parameter(self, owner: TSNode) -> Optional[Declaration]:
        declarator = first_child_of_type(owner, "variable_declarator")
        name = declarator.child_by_field_name("name") if declarator is not None else None
        if name is None:
            name = owner.child_by_field_name("name")
        type_node = next((c for c in owner.named_children if c.type in TYPE_NODES), None)
        decl = self._declaration(name, None, DeclarationKind.PARAMETER, owner)
        element = self.type_name(type_node)
        if decl is None or element is None:
            return decl
        return Declaration(
            name=decl.name,
            kind=decl.kind,
            path=decl.path,
            start_byte=decl.start_byte,
            name_node=decl.name_node,
            owner=owner,
            type_node=type_node,
            type=self.project.registry.resolve(element + "[]"),
        )

    def _declaration(
        self,
        name_node: Optional[TSNode],
        type_node: Optional[TSNode],
        kind: DeclarationKind,
        owner: TSNode,
        value: Optional[TSNode] = None,
    ) -> Optional[Declaration]:
        if name_node is None:
            return None
        if type_node is not None and self.text(type_node) == "var":
            resolved = self.expression_type(value)
        else:
            resolved = self.resolve_type(type_node)
        return Declaration(
            name=self.text(name_node),
            kind=kind,
            path=str(self.context.path),
            start_byte=name_node.start_byte,
            name_node=name_node,
            owner=owner,
            type_node=type_node,
            value=value,
            type=resolved,
        )

    def declaration_at(self, name_node: TSNode) -> Optional[Declaration]:
        """The Declaration whose name token is name_node."""
        owner = name_node.parent
        if owner is not None and owner.type == "variable_declarator":
            owner = owner.parent
        if owner is None:
            return None
        for decl in self.declarations_in(owner):
            if decl.start_byte == name_node.start_byte:
                return decl
        return None

    def declared_type(self, node: Union[Declaration, TSNode, None]) -> Optional[ResolvedType]:
        """Type of a Declaration, a declaration name token, or the first declaration of a node."""
        if node is None:
            return None
        if isinstance(node, Declaration):
            return node.type
        if node.type == "identifier":
            decl = self.declaration_at(node) or self.resolve(node)
            return decl.type if decl is not None else None
        decls = self.declarations_in(node)
        return decls[0].type if decls else None

    # -- name resolution ------------------------------------------------------

    def resolve(self, ref: Optional[TSNode]) -> Optional[Declaration]:
        """Resolve an identifier to the declaration in scope at its position."""
        if ref is None or ref.type != "identifier":
            return None
        name = self.text(ref)
        scope = ref.parent
        while scope is not None:
            found = self._lookup(scope, name, ref.start_byte)
            if found is not None:
                return found
            scope = scope.parent
        return None

    def _lookup(self, scope: TSNode, name: str, position: int) -> Optional[Declaration]:
        kind = scope.type
        if kind in BLOCKS:
            found = None
            for statement in scope.named_children:
                if statement.start_byte > position:
                    break
                if statement.type == "local_variable_declaration":
                    found = self._match(statement, name) or found
            return found
        if kind == "for_statement":
            for init in scope.children_by_field_name("init"):
                if init.type == "local_variable_declaration":
                    found = self._match(init, name)
                    if found is not None:
                        return found
            return None
        if kind in ("enhanced_for_statement", "lambda_expression"):
            return self._match(scope, name)
        if kind == "catch_clause":
            param = first_child_of_type(scope, "catch_formal_parameter")
            return self._match(param, name) if param is not None else None
        if kind == "try_with_resources_statement":
            resources = scope.child_by_field_name("resources")
            for resource in code_children(resources) if resources is not None else []:
                if resource.type == "resource" and resource.start_byte < position:
                    found = self._match(resource, name)
                    if found is not None:
                        return found
            return None
        if kind in METHOD_DECLARATIONS or kind == "record_declaration":
            params = scope.child_by_field_name("parameters")
            return self._match(params, name) if params is not None else None
        if kind in CLASS_BODIES:
            for member in code_children(scope):
                if member.type in ("field_declaration", "constant_declaration"):
                    found = self._match(member, name)
                    if found is not None:
                        return found
        return None

    def _match(self, owner: TSNode, name: str) -> Optional[Declaration]:
        for decl in self.declarations_in(owner):
            if decl.name == name:
                return decl
        return None

    def field_declaration(self, class_node: Optional[TSNode], name: str) -> Optional[Declaration]:
        if class_node is None:
            return None
        for member in self.class_members(class_node):
            if member.type in ("field_declaration", "constant_declaration"):
                found = self._match(member, name)
                if found is not None:
                    return found
        return None

    def resolve_reference(self, expr: Optional[TSNode]) -> Optional[Declaration]:
        """Resolve an identifier, a parenthesised identifier or this.field."""
        if expr is None:
            return None
        if expr.type == "identifier":
            return self.resolve(expr)
        if expr.type == "parenthesized_expression":
            inner = code_children(expr)
            return self.resolve_reference(inner[0]) if inner else None
        if expr.type == "field_access":
            obj = expr.child_by_field_name("object")
            fld = expr.child_by_field_name("field")
            if obj is not None and obj.type == "this" and fld is not None and fld.type == "identifier":
                return self.field_declaration(self.enclosing_class(expr), self.text(fld))
        return None

    # -- structure ------------------------------------------------------------

    @staticmethod
    def _ancestor(node: TSNode, types: frozenset) -> Optional[TSNode]:
        current = node.parent
        while current is not None:
            if current.type in types:
                return current
            current = current.parent
        return None

    def enclosing_class(self, node: TSNode) -> Optional[TSNode]:
        return self._ancestor(node, CLASS_DECLARATIONS)

    def enclosing_class_name(self, node: TSNode) -> Optional[str]:
        return self.class_qualified_name(self.enclosing_class(node))

    def enclosing_method(self, node: TSNode) -> Optional[TSNode]:
        return self._ancestor(node, METHOD_DECLARATIONS)

    def enclosing_block(self, node: TSNode) -> Optional[TSNode]:
        return self._ancestor(node, BLOCKS)

    def statements(self, block: Optional[TSNode]) -> list[TSNode]:
        """Statements of a block in source order (comments and switch labels dropped)."""
        if block is None:
            return []
        return [c for c in code_children(block) if c.type != "switch_label"]

    # -- expressions ----------------------------------------------------------

    def expression_type(self, expr: Optional[TSNode]) -> Optional[ResolvedType]:
        """Static type of an expression, or None when it cannot be determined."""
        if expr is None:
            return None
        registry = self.project.registry
        kind = expr.type
        if kind in ("identifier", "field_access"):
            decl = self.resolve_reference(expr)
            return decl.type if decl is not None else None
        if kind == "parenthesized_expression":
            inner = code_children(expr)
            return self.expression_type(inner[0]) if inner else None
        if kind in ("cast_expression", "object_creation_expression"):
            return self.resolve_type(expr.child_by_field_name("type"))
        if kind == "method_invocation":
            return self._invocation_type(expr)
        if kind in INTEGER_LITERALS:
            return primitive("long" if self.text(expr).lower().endswith("l") else "int")
        if kind in FLOAT_LITERALS:
            return primitive("float" if self.text(expr).lower().endswith("f") else "double")
        if kind in ("string_literal", "text_block"):
            return registry.resolve("java.lang.String")
        if kind in ("true", "false", "instanceof_expression"):
            return primitive("boolean")
        if kind == "character_literal":
            return primitive("char")
        if kind == "this":
            return registry.resolve(self.enclosing_class_name(expr))
        if kind == "binary_expression":
            return self._binary_type(expr)
        if kind == "unary_expression":
            if self.text(expr.child_by_field_name("operator")) == "!":
                return primitive("boolean")
            return self._promote(self.expression_type(expr.child_by_field_name("operand")))
        if kind == "ternary_expression":
            return self.expression_type(expr.child_by_field_name("consequence"))
        if kind == "assignment_expression":
            return self.expression_type(expr.child_by_field_name("left"))
        if kind == "array_access":
            array = self.expression_type(expr.child_by_field_name("array"))
            if array is not None and array.qualified_name.endswith("[]"):
                return registry.resolve(array.qualified_name[:-2])
        return None

    def _binary_type(self, expr: TSNode) -> Optional[ResolvedType]:
        operator = self.text(expr.child_by_field_name("operator"))
        if operator in BOOLEAN_OPERATORS:
            return primitive("boolean")
        left = self.expression_type(expr.child_by_field_name("left"))
        if operator in SHIFT_OPERATORS:
            return self._promote(left)
        right = self.expression_type(expr.child_by_field_name("right"))
        if operator == "+" and any(
            t is not None and t.qualified_name == "java.lang.String" for t in (left, right)
        ):
            return self.project.registry.resolve("java.lang.String")
        return self._promote(left, right)

    @staticmethod
    def _promote(*types: Optional[ResolvedType]) -> Optional[ResolvedType]:
        """Binary numeric promotion; boolean operands of & | ^ stay boolean."""
        names = [unbox(t) for t in types]
        if any(n is None for n in names):
            return None
        if all(n == "boolean" for n in names):
            return primitive("boolean")
        if any(n not in NUMERIC_RANK for n in names):
            return None
        widest = max(names, key=NUMERIC_RANK.__getitem__)
        if NUMERIC_RANK[widest] < NUMERIC_RANK["int"]:
            widest = "int"
        return primitive(widest)

    def _invocation_type(self, call: TSNode) -> Optional[ResolvedType]:
        registry = self.project.registry
        method = self.resolve_method(call)
        if method is not None:
            owner_model = self.project.model_for(method.context)
            return owner_model.resolve_type(method.node.child_by_field_name("type"))
        owner = self.receiver_type(call)
        if owner is None:
            return None
        name = self.text(call.child_by_field_name("name"))
        return registry.resolve(registry.library_method_return(owner, name))

    def _static_type_reference(self, expr: TSNode) -> Optional[str]:
        """Qualified name when expr names a type (BlobClient.foo(), com.acme.Util.bar())."""
        if expr.type not in ("identifier", "field_access", "scoped_identifier"):
            return None
        if self.resolve_reference(expr) is not None:
            return None
        text = self.text(expr)
        if expr.type == "identifier" and not text[:1].isupper():
            return None
        return self.qualify_dotted(text)

    def receiver_type(self, call: TSNode) -> Optional[ResolvedType]:
        """Static type the invoked method is looked up on."""
        registry = self.project.registry
        receiver = call.child_by_field_name("object")
        if receiver is None or receiver.type == "this":
            return registry.resolve(self.enclosing_class_name(call))
        if receiver.type == "super":
            enclosing = registry.resolve(self.enclosing_class_name(call))
            return enclosing.superclass if enclosing is not None else None
        resolved = self.expression_type(receiver)
        if resolved is not None:
            return resolved
        return registry.resolve(self._static_type_reference(receiver))

    def method_name(self, call: TSNode) -> str:
        return self.text(call.child_by_field_name("name"))

    def arguments(self, call: TSNode) -> list[TSNode]:
        args = call.child_by_field_name("arguments")
        return code_children(args) if args is not None else []

    def call_site(self, call: TSNode) -> CallSite:
        method = self.resolve_method(call)
        if method is not None:
            declaring = method.declaring_type
        else:
            owner = self.receiver_type(call)
            declaring = owner.qualified_name if owner is not None else None
        return CallSite(
            node=call,
            name=self.method_name(call),
            receiver=call.child_by_field_name("object"),
            arguments=tuple(self.arguments(call)),
            declaring_type=declaring,
        )

    def resolve_method(self, call: TSNode) -> Optional[MethodRef]:
        """The project-local method a call invokes, or None (library or unresolvable)."""
        if call.type != "method_invocation":
            return None
        receiver = call.child_by_field_name("object")
        if receiver is not None and receiver.type not in ("this", "super"):
            owner = self.expression_type(receiver)
            qualified = owner.qualified_name if owner is not None else self._static_type_reference(receiver)
        else:
            owner = self.receiver_type(call)
            qualified = owner.qualified_name if owner is not None else None
        if qualified is None:
            return None
        return self.project.find_method(qualified, self.method_name(call), len(self.arguments(call)))

    def parameter_count_matches(self, method: TSNode, argc: int) -> bool:
        params = method.child_by_field_name("parameters")
        items = [
            c for c in code_children(params) if c.type in ("formal_parameter", "spread_parameter")
        ] if params is not None else []
        if items and items[-1].type == "spread_parameter":
            return argc >= len(items) - 1
        return argc == len(items)

    def is_project_local(self, qualified_name: Optional[str]) -> bool:
        return qualified_name is not None and self.project.class_declaration(qualified_name) is not None


class Project:
    """
    The compilation units of one analysis run.

    Read-only once its units are added; the per-unit SymbolModels and the
    TypeRegistry cache lazily and may be shared by analyses of different units.
    """

    def __init__(
        self,
        contexts: Iterable["FileContext"] = (),
        type_stubs: Optional[Mapping[str, TypeStub]] = None,
    ) -> None:
        self._contexts: list["FileContext"] = []
        self._models: dict[int, SymbolModel] = {}
        self._classes: Optional[dict[str, tuple["FileContext", TSNode]]] = None
        self._class_infos: dict[str, Optional[ClassInfo]] = {}
        self.registry = TypeRegistry(type_stubs, class_lookup=self.class_info, class_exists=self.declares)
        for context in contexts:
            self.add(context)

    @property
    def contexts(self) -> tuple["FileContext", ...]:
        return tuple(self._contexts)

    def add(self, context: "FileContext") -> None:
        if any(c is context for c in self._contexts):
            return
        self._contexts.append(context)
        self._classes = None
        self._class_infos.clear()
        self.registry.invalidate()

    def model_for(self, context: "FileContext") -> SymbolModel:
        model = self._models.get(id(context))
        if model is None:
            self.add(context)
            model = SymbolModel(context, self)
            self._models[id(context)] = model
        return model

    def _index(self) -> dict[str, tuple["FileContext", TSNode]]:
        if self._classes is None:
            classes: dict[str, tuple["FileContext", TSNode]] = {}
            for context in self._contexts:
                for qualified, node in self.model_for(context).declared_classes():
                    classes.setdefault(qualified, (context, node))
            self._classes = classes
            logger.debug("Indexed %d class(es) in %d unit(s)", len(classes), len(self._contexts))
        return self._classes

    def declares(self, qualified_name: str) -> bool:
        return qualified_name in self._index()

    def class_declaration(self, qualified_name: str) -> Optional[tuple["FileContext", TSNode]]:
        return self._index().get(qualified_name)

    def class_info(self, qualified_name: str) -> Optional[ClassInfo]:
        if qualified_name in self._class_infos:
            return self._class_infos[qualified_name]
        entry = self.class_declaration(qualified_name)
        info = self.model_for(entry[0]).class_info(entry[1]) if entry is not None else None
        self._class_infos[qualified_name] = info
        return info

    def find_method(self, qualified_name: str, name: str, argc: int) -> Optional[MethodRef]:
        """Find a method by name and arity on a project class or its project superclasses."""
        seen: set[str] = set()
        current: Optional[str] = qualified_name
        while current and current not in seen:
            seen.add(current)
            entry = self.class_declaration(current)
            if entry is None:
                return None
            context, class_node = entry
            model = self.model_for(context)
            for member in model.class_members(class_node):
                if (
                    member.type == "method_declaration"
                    and model.text(member.child_by_field_name("name")) == name
                    and model.parameter_count_matches(member, argc)
                ):
                    return MethodRef(context, member, current)
            info = self.class_info(current)
            current = info.superclass if info is not None else None
        return None
