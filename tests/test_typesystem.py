"""Tests for sdklint.typesystem: ResolvedType ancestry and the TypeRegistry."""

from sdklint.ruleconfig import TypeStub
from sdklint.typesystem import OBJECT, ClassInfo, ResolvedType, TypeRegistry, primitive, unbox

SB = "com.azure.messaging.servicebus."


def test_primitives_and_arrays():
    registry = TypeRegistry()
    long_type = registry.resolve("long")
    assert long_type.is_primitive
    assert long_type.is_builtin
    assert registry.resolve("byte[]").kind == "array"
    assert registry.resolve(None) is None
    assert registry.resolve("") is None


def test_stubbed_client_ancestry_reaches_auto_closeable_and_object():
    registry = TypeRegistry()
    sender = registry.resolve(SB + "ServiceBusSenderClient")
    names = [t.qualified_name for t in sender.ancestry()]
    assert "java.lang.AutoCloseable" in names
    assert OBJECT in names
    assert sender.is_subtype_of("java.lang.AutoCloseable")
    assert not sender.is_builtin
    assert sender.simple_name == "ServiceBusSenderClient"
    assert sender.package == "com.azure.messaging.servicebus"


def test_ancestry_lists_interfaces_before_superclass():
    registry = TypeRegistry()
    stream = registry.resolve("java.io.InputStream")
    interfaces, superclass = registry.supertypes(stream)
    assert [t.qualified_name for t in interfaces] == ["java.io.Closeable"]
    assert superclass.qualified_name == OBJECT
    assert [t.qualified_name for t in stream.ancestry()][:2] == ["java.io.Closeable", OBJECT]


def test_unknown_type_has_no_supertypes():
    registry = TypeRegistry()
    unknown = registry.resolve("com.acme.Mystery")
    assert unknown.kind == "unknown"
    assert unknown.supertypes() == ()
    assert not registry.knows("com.acme.Mystery")


def test_resolve_is_cached_until_invalidated():
    registry = TypeRegistry()
    first = registry.resolve(SB + "ServiceBusProcessorClient")
    assert registry.resolve(SB + "ServiceBusProcessorClient") is first
    registry.invalidate()
    assert registry.resolve(SB + "ServiceBusProcessorClient") is not first
    assert registry.resolve(SB + "ServiceBusProcessorClient") == first


def test_class_lookup_takes_precedence_over_stubs():
    infos = {
        "com.acme.Base": ClassInfo("com.acme.Base", "class", True, None, ("java.lang.AutoCloseable",)),
        "com.acme.Child": ClassInfo("com.acme.Child", "class", False, "com.acme.Base", ()),
    }
    registry = TypeRegistry(class_lookup=infos.get)
    child = registry.resolve("com.acme.Child")
    assert child.superclass.qualified_name == "com.acme.Base"
    assert child.superclass.abstract
    assert child.is_subtype_of("java.lang.AutoCloseable")
    assert registry.knows("com.acme.Child")


def test_cyclic_hierarchy_terminates():
    infos = {
        "p.A": ClassInfo("p.A", "class", False, "p.B", ()),
        "p.B": ClassInfo("p.B", "class", False, "p.A", ()),
    }
    registry = TypeRegistry(class_lookup=infos.get)
    a = registry.resolve("p.A")
    names = [t.qualified_name for t in a.ancestry()]
    assert names == ["p.B"]


def test_custom_stubs_extend_defaults():
    registry = TypeRegistry({"com.acme.Client": TypeStub(interfaces=("java.io.Closeable",))})
    client = registry.resolve("com.acme.Client")
    assert client.is_subtype_of("java.lang.AutoCloseable")
    assert registry.knows(SB + "ServiceBusSenderClient")


def test_library_method_return_searches_ancestry():
    registry = TypeRegistry()
    poller = registry.resolve("com.azure.core.util.polling.PollerFlux")
    assert registry.library_method_return(poller, "getSyncPoller") == "com.azure.core.util.polling.SyncPoller"
    assert registry.library_method_return(poller, "subscribe") == "reactor.core.Disposable"
    assert registry.library_method_return(poller, "missing") is None


def test_unbox():
    assert unbox(primitive("int")) == "int"
    assert unbox(ResolvedType("java.lang.Long")) == "long"
    assert unbox(ResolvedType("java.lang.String")) is None
    assert unbox(None) is None


def test_resolved_type_equality_ignores_supertypes():
    assert ResolvedType("p.A", superclass=ResolvedType(OBJECT)) == ResolvedType("p.A")
    assert str(ResolvedType("p.A")) == "p.A"
