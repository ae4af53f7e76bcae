"""
Rule definitions and library type facts.

A RuleDefinition is the immutable per-rule data every detector reads: the
method names it looks for, its target type markers, the message template and
the recommendation shown with a finding. Definitions are loaded once (see
config.load_config) and shared read-only by every analysis pass.

TypeStub records what the symbol model cannot learn from project source:
the supertypes of library classes and the return types of the library
methods rules need to follow (builder chains, poller accessors).

The JSON keys accepted by model_validate are the ones the IDE plugin used
(methods_to_check, types_to_check, antipattern_message, ...); Python code
uses the field names.
"""

from __future__ import annotations

from typing import Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from sdklint.findings.models import Fix

DEFAULT_NAMESPACE = "com.azure."


class _TemplateValues(dict):
    """format_map mapping that leaves unknown placeholders untouched."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class RuleDefinition(BaseModel):
    """Configuration of a single rule. A definition with an empty required list is disabled."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    rule_id: str
    method_names: frozenset[str] = Field(default_factory=frozenset, alias="methods_to_check")
    target_type_markers: frozenset[str] = Field(default_factory=frozenset, alias="types_to_check")
    message_template: str = Field("", alias="antipattern_message")
    recommendation_text: str = ""
    recommendation_link: str = ""
    skip: bool = Field(False, alias="skip_rule")

    @classmethod
    def disabled(cls, rule_id: str) -> "RuleDefinition":
        """Return an empty definition, the stand-in for a rule that failed to load."""
        return cls(rule_id=rule_id)

    @property
    def enabled(self) -> bool:
        return self.is_enabled(("method_names", "target_type_markers"))

    def is_enabled(self, required: Sequence[str]) -> bool:
        """
        True when the rule should run.

        `required` names the lists the detector consumes; each must be
        non-empty. The message template must be set and the skip flag clear.
        """
        if self.skip or not self.message_template:
            return False
        return all(getattr(self, name) for name in required)

    def format_message(self, **values: object) -> str:
        """Substitute values into the message template."""
        try:
            return self.message_template.format_map(_TemplateValues(values))
        except (ValueError, IndexError):
            return self.message_template

    def fix(self) -> Optional[Fix]:
        if not self.recommendation_text and not self.recommendation_link:
            return None
        return Fix(text=self.recommendation_text, link=self.recommendation_link or None)


class TypeStub(BaseModel):
    """Hierarchy facts about a library type that is not available as source."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: Literal["class", "interface", "enum", "record"] = "class"
    abstract: bool = False
    superclass: Optional[str] = None
    interfaces: tuple[str, ...] = ()
    methods: Mapping[str, str] = Field(default_factory=dict)


_SDK_DOCS = "https://learn.microsoft.com/azure/developer/java/sdk/"

DEFAULT_RULE_DEFINITIONS: dict[str, RuleDefinition] = {
    d.rule_id: d
    for d in (
        RuleDefinition(
            rule_id="closeable-client-not-closed",
            method_names=frozenset({"close", "dispose"}),
            target_type_markers=frozenset({"java.lang.AutoCloseable", "reactor.core.Disposable"}),
            message_template=(
                "Closeable client '{variable}' ({type}) is not properly closed or disposed of."
            ),
            recommendation_text=(
                "Declare the client in a try-with-resources statement, or close it in a finally block."
            ),
            recommendation_link=_SDK_DOCS + "overview",
        ),
        RuleDefinition(
            rule_id="implementation-type",
            target_type_markers=frozenset({"implementation"}),
            message_template=(
                "Detected usage of an implementation type. Implementation types are not intended "
                "for public use. Use the publicly available Azure classes instead."
            ),
        ),
        RuleDefinition(
            rule_id="stop-then-start",
            method_names=frozenset({"stop", "start", "close"}),
            target_type_markers=frozenset({"com.azure.messaging.servicebus.ServiceBusProcessorClient"}),
            message_template=(
                "Starting Processor that was stopped before is not recommended, and this feature may "
                "be deprecated in the future. Please close this processor instance and create a new "
                "one to restart processing"
            ),
        ),
        RuleDefinition(
            rule_id="single-operation-in-loop",
            target_type_markers=frozenset({DEFAULT_NAMESPACE}),
            message_template=(
                "Single operation found in loop. If the SDK provides a batch operation API, use it "
                "to perform multiple actions in a single request."
            ),
        ),
        RuleDefinition(
            rule_id="sync-poller-on-poller-flux",
            method_names=frozenset({"getSyncPoller"}),
            target_type_markers=frozenset({"PollerFlux"}),
            message_template=(
                "Use of {method}() on a PollerFlux detected. Directly use SyncPoller to handle "
                "synchronous polling tasks."
            ),
            recommendation_text="Use the synchronous client's begin* method, which returns a SyncPoller.",
            recommendation_link=_SDK_DOCS + "lro",
        ),
        RuleDefinition(
            rule_id="upload-without-length",
            method_names=frozenset({"upload", "uploadWithResponse"}),
            target_type_markers=frozenset({"long"}),
            message_template=(
                "Azure Storage upload API without length parameter detected. Consider using an "
                "API that accepts the length of the data to upload."
            ),
        ),
        RuleDefinition(
            rule_id="discouraged-client",
            target_type_markers=frozenset({"ServiceBusReceiverAsyncClient"}),
            message_template="Use of {type} detected. Use ServiceBusProcessorClient instead.",
            recommendation_text=(
                "ServiceBusProcessorClient handles message settlement, error handling and "
                "reconnection for you."
            ),
            recommendation_link=_SDK_DOCS + "messaging",
        ),
    )
}


def default_rule_definition(rule_id: str) -> RuleDefinition:
    return DEFAULT_RULE_DEFINITIONS.get(rule_id) or RuleDefinition.disabled(rule_id)


_SB = "com.azure.messaging.servicebus."
_SB_BUILDER = _SB + "ServiceBusClientBuilder"
_BLOB = "com.azure.storage.blob."
_POLLING = "com.azure.core.util.polling."

_AUTO_CLOSEABLE = ("java.lang.AutoCloseable",)


def _builder(name: str, build_methods: Mapping[str, str], fluent: Sequence[str]) -> TypeStub:
    methods = {m: name for m in fluent}
    methods.update(build_methods)
    return TypeStub(methods=methods)


DEFAULT_TYPE_STUBS: dict[str, TypeStub] = {
    # java.lang / java.io roots
    "java.lang.Object": TypeStub(),
    "java.lang.AutoCloseable": TypeStub(kind="interface"),
    "java.io.Closeable": TypeStub(kind="interface", interfaces=_AUTO_CLOSEABLE),
    "java.lang.String": TypeStub(methods={"length": "int", "getBytes": "byte[]"}),
    "java.io.File": TypeStub(methods={"length": "long"}),
    "java.io.InputStream": TypeStub(abstract=True, interfaces=("java.io.Closeable",)),
    # reactor
    "reactor.core.Disposable": TypeStub(kind="interface"),
    "reactor.core.publisher.Flux": TypeStub(abstract=True, methods={"subscribe": "reactor.core.Disposable"}),
    "reactor.core.publisher.Mono": TypeStub(abstract=True, methods={"subscribe": "reactor.core.Disposable"}),
    # azure-core polling
    _POLLING + "PollerFlux": TypeStub(
        superclass="reactor.core.publisher.Flux",
        methods={"getSyncPoller": _POLLING + "SyncPoller"},
    ),
    _POLLING + "SyncPoller": TypeStub(kind="interface"),
    # service bus
    _SB_BUILDER: _builder(
        _SB_BUILDER,
        {
            "processor": _SB_BUILDER + ".ServiceBusProcessorClientBuilder",
            "receiver": _SB_BUILDER + ".ServiceBusReceiverClientBuilder",
            "sender": _SB_BUILDER + ".ServiceBusSenderClientBuilder",
        },
        ("connectionString", "credential", "fullyQualifiedNamespace", "retryOptions", "transportType"),
    ),
    _SB_BUILDER + ".ServiceBusProcessorClientBuilder": _builder(
        _SB_BUILDER + ".ServiceBusProcessorClientBuilder",
        {"buildProcessorClient": _SB + "ServiceBusProcessorClient"},
        ("queueName", "topicName", "subscriptionName", "processMessage", "processError", "maxConcurrentCalls"),
    ),
    _SB_BUILDER + ".ServiceBusReceiverClientBuilder": _builder(
        _SB_BUILDER + ".ServiceBusReceiverClientBuilder",
        {
            "buildClient": _SB + "ServiceBusReceiverClient",
            "buildAsyncClient": _SB + "ServiceBusReceiverAsyncClient",
        },
        ("queueName", "topicName", "subscriptionName", "receiveMode", "disableAutoComplete"),
    ),
    _SB_BUILDER + ".ServiceBusSenderClientBuilder": _builder(
        _SB_BUILDER + ".ServiceBusSenderClientBuilder",
        {
            "buildClient": _SB + "ServiceBusSenderClient",
            "buildAsyncClient": _SB + "ServiceBusSenderAsyncClient",
        },
        ("queueName", "topicName"),
    ),
    _SB + "ServiceBusProcessorClient": TypeStub(interfaces=_AUTO_CLOSEABLE, methods={"isRunning": "boolean"}),
    _SB + "ServiceBusReceiverClient": TypeStub(interfaces=_AUTO_CLOSEABLE),
    _SB + "ServiceBusReceiverAsyncClient": TypeStub(interfaces=_AUTO_CLOSEABLE),
    _SB + "ServiceBusSenderClient": TypeStub(interfaces=_AUTO_CLOSEABLE),
    _SB + "ServiceBusSenderAsyncClient": TypeStub(interfaces=_AUTO_CLOSEABLE),
    # event hubs
    "com.azure.messaging.eventhubs.EventHubProducerClient": TypeStub(interfaces=_AUTO_CLOSEABLE),
    "com.azure.messaging.eventhubs.EventHubConsumerClient": TypeStub(interfaces=_AUTO_CLOSEABLE),
    # storage blob
    _BLOB + "BlobServiceClient": TypeStub(methods={"getBlobContainerClient": _BLOB + "BlobContainerClient"}),
    _BLOB + "BlobContainerClient": TypeStub(methods={"getBlobClient": _BLOB + "BlobClient"}),
    _BLOB + "BlobClient": TypeStub(
        methods={
            "getBlockBlobClient": _BLOB + "specialized.BlockBlobClient",
            "beginCopy": _POLLING + "SyncPoller",
        }
    ),
    _BLOB + "BlobAsyncClient": TypeStub(methods={"beginCopy": _POLLING + "PollerFlux"}),
    _BLOB + "options.BlobParallelUploadOptions": _builder(
        _BLOB + "options.BlobParallelUploadOptions",
        {},
        ("setHeaders", "setMetadata", "setTags", "setTier", "setRequestConditions", "setParallelTransferOptions"),
    ),
}
