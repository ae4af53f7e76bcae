from __future__ import annotations

"""
Scanner configuration: rule definitions, library type facts and which rules run.

The defaults in ruleconfig cover the Azure SDK for Java. A JSON file can
override them:

    {
      "namespace": "com.azure.",
      "rules": {
        "upload-without-length": {"methods_to_check": ["upload", "uploadWithResponse"]},
        "discouraged-client": {"skip_rule": true}
      },
      "types": {
        "com.acme.sdk.Client": {"interfaces": ["java.lang.AutoCloseable"]}
      }
    }

Rule entries are merged over the default definition of the same rule. A
rule entry that fails validation disables that rule only; a file that
cannot be read or parsed disables every rule. Loading never raises.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from sdklint.ruleconfig import (
    DEFAULT_NAMESPACE,
    DEFAULT_RULE_DEFINITIONS,
    RuleDefinition,
    TypeStub,
)
from sdklint.rules.base import Rule
from sdklint.rules.closeable_clients import CloseableClientRule
from sdklint.rules.discouraged_client import DiscouragedClientRule
from sdklint.rules.implementation_type import ImplementationTypeRule
from sdklint.rules.single_operation_in_loop import SingleOperationInLoopRule
from sdklint.rules.stop_then_start import StopThenStartRule
from sdklint.rules.sync_poller import SyncPollerOnPollerFluxRule
from sdklint.rules.upload_length import UploadWithoutLengthRule

logger = logging.getLogger(__name__)

RULE_CLASSES: tuple[type[Rule], ...] = (
    CloseableClientRule,
    ImplementationTypeRule,
    StopThenStartRule,
    SingleOperationInLoopRule,
    SyncPollerOnPollerFluxRule,
    UploadWithoutLengthRule,
    DiscouragedClientRule,
)
RULE_IDS: tuple[str, ...] = tuple(cls.id for cls in RULE_CLASSES)

# Check names used by the IDE plugin's rule file, accepted as rule keys.
LEGACY_RULE_NAMES: dict[str, str] = {
    "ClosingCloseableClientsCheck": "closeable-client-not-closed",
    "ImplementationTypeCheck": "implementation-type",
    "StopThenStartOnServiceBusProcessorCheck": "stop-then-start",
    "SingleOperationInLoopCheck": "single-operation-in-loop",
    "GetSyncPollerOnPollerFluxCheck": "sync-poller-on-poller-flux",
    "StorageUploadWithoutLengthCheck": "upload-without-length",
    "ServiceBusReceiverAsyncClientCheck": "discouraged-client",
}


@dataclass
class Config:
    """
    Scanner configuration.

    rule_definitions holds one RuleDefinition per rule id, type_stubs the
    library types added on top of the built-in ones, and selected_rules
    (when set) restricts a run to those rule ids.
    """

    namespace: str = DEFAULT_NAMESPACE
    rule_definitions: dict[str, RuleDefinition] = field(
        default_factory=lambda: dict(DEFAULT_RULE_DEFINITIONS)
    )
    type_stubs: dict[str, TypeStub] = field(default_factory=dict)
    selected_rules: Optional[frozenset[str]] = None

    def rule_definition(self, rule_id: str) -> RuleDefinition:
        return self.rule_definitions.get(rule_id) or RuleDefinition.disabled(rule_id)

    def select(self, rule_ids: Optional[Iterable[str]]) -> None:
        ids = frozenset(rule_ids or ())
        unknown = ids - set(RULE_IDS)
        if unknown:
            logger.warning("Unknown rule id(s) ignored: %s", ", ".join(sorted(unknown)))
        self.selected_rules = (ids - unknown) if ids else None

    def create_rules(self) -> List[Rule]:
        """Fresh instances of every selected rule (enabled or not)."""
        return [
            cls(self.rule_definition(cls.id), namespace=self.namespace)
            for cls in RULE_CLASSES
            if self.selected_rules is None or cls.id in self.selected_rules
        ]


def get_default_config() -> Config:
    """
    Return the default configuration with all implemented rules.

    This is what the CLI in main.py uses unless --config is given.
    """
    return Config()


def _disable_all(config: Config) -> Config:
    config.rule_definitions = {rule_id: RuleDefinition.disabled(rule_id) for rule_id in RULE_IDS}
    return config


def _rule_entry(base: RuleDefinition, entry: Any) -> RuleDefinition:
    """Merge a JSON rule entry over base. Field names and JSON keys are both accepted."""
    if not isinstance(entry, dict):
        raise TypeError(f"expected an object, got {type(entry).__name__}")
    merged = base.model_dump(by_alias=True)
    for name, info in RuleDefinition.model_fields.items():
        key = info.alias or name
        if name in entry and name != key:
            merged[key] = entry[name]
        if key in entry:
            merged[key] = entry[key]
    merged["rule_id"] = base.rule_id
    return RuleDefinition.model_validate(merged)


def load_config(path: Path) -> Config:
    """
    Load a JSON configuration file merged over the defaults.

    Errors are logged, never raised: see the module docstring for how each
    kind of failure degrades.
    """
    config = get_default_config()
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error("Could not load configuration %s: %s; all rules disabled", path, e)
        return _disable_all(config)
    if not isinstance(raw, dict):
        logger.error("Configuration %s is not a JSON object; all rules disabled", path)
        return _disable_all(config)

    namespace = raw.get("namespace")
    if isinstance(namespace, str) and namespace:
        config.namespace = namespace

    rules = raw.get("rules", {})
    if not isinstance(rules, dict):
        logger.error("'rules' in %s is not an object; ignored", path)
        rules = {}
    for key, entry in rules.items():
        rule_id = LEGACY_RULE_NAMES.get(key, key)
        if rule_id not in RULE_IDS:
            logger.warning("Configuration for unknown rule %s ignored", key)
            continue
        try:
            config.rule_definitions[rule_id] = _rule_entry(config.rule_definition(rule_id), entry)
        except (ValidationError, TypeError) as e:
            logger.error("Invalid configuration for rule %s: %s; rule disabled", rule_id, e)
            config.rule_definitions[rule_id] = RuleDefinition.disabled(rule_id)

    types = raw.get("types", {})
    if not isinstance(types, dict):
        logger.error("'types' in %s is not an object; ignored", path)
        types = {}
    for name, entry in types.items():
        try:
            config.type_stubs[name] = TypeStub.model_validate(entry)
        except ValidationError as e:
            logger.warning("Invalid type entry %s in %s skipped: %s", name, path, e)

    logger.info(
        "Loaded configuration %s: %d rule override(s), %d type(s)",
        path,
        len(rules),
        len(config.type_stubs),
    )
    return config


def get_enabled_rules(config: Config | None = None) -> Sequence[Rule]:
    """
    Return fresh instances of the enabled rules from the given config (or default config).

    Rules whose definition is incomplete or skipped are left out.
    """
    if config is None:
        config = get_default_config()
    return [rule for rule in config.create_rules() if rule.enabled]
