"""
Rule set container.

A rule set maps operation names (``"Transfer:Owner"``, ``"Delegate"``...) to
root rules and is the unit stored by the authority. Layout::

    lib_version:u32 count:u32 owner[32] name[32] operation[32]{count} Rule{count}
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from auth_rules.shared.errors import InvalidRule, MalformedPayload, TrailingBytes
from auth_rules.shared.logging import get_logger, reset_context, set_rule_set_context
from .codec import read_rule, serialize_rule
from .models import Rule
from .primitives import (
    FIELD_WIDTH, PUBKEY_LENGTH, ByteReader, ByteWriter, BytesLike, encode_identifier
)


RULE_SET_LIB_VERSION = 2

logger = get_logger("auth_rules.ruleset")


@dataclass(frozen=True)
class RuleSet:
    """Named, owned collection of operation rules."""
    name: str
    owner: bytes
    operations: Tuple[Tuple[str, Rule], ...] = ()
    lib_version: int = RULE_SET_LIB_VERSION

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise InvalidRule("Rule set name must be a string", {"name": repr(self.name)})
        encode_identifier(self.name, FIELD_WIDTH)
        if not isinstance(self.owner, (bytes, bytearray)) or len(self.owner) != PUBKEY_LENGTH:
            raise InvalidRule(f"Rule set owner must be {PUBKEY_LENGTH} bytes", {"name": self.name})
        object.__setattr__(self, "owner", bytes(self.owner))
        if self.lib_version != RULE_SET_LIB_VERSION:
            raise InvalidRule(
                "Unsupported rule set version",
                {"lib_version": self.lib_version, "supported": RULE_SET_LIB_VERSION}
            )

        operations = tuple(self.operations.items()) if isinstance(self.operations, Mapping) \
            else tuple(tuple(entry) for entry in self.operations)
        seen = set()
        for operation, rule in operations:
            if not isinstance(operation, str):
                raise InvalidRule("Operation name must be a string", {"operation": repr(operation)})
            encode_identifier(operation, FIELD_WIDTH)
            if operation in seen:
                raise InvalidRule("Duplicate operation", {"operation": operation})
            if not isinstance(rule, Rule) or type(rule) is Rule:
                raise InvalidRule("Operation must map to a rule", {"operation": operation})
            seen.add(operation)
        object.__setattr__(self, "operations", operations)

    @property
    def rules(self) -> Mapping[str, Rule]:
        return MappingProxyType(dict(self.operations))

    def get_rule(self, operation: str) -> Optional[Rule]:
        """Get the rule for an operation."""
        for name, rule in self.operations:
            if name == operation:
                return rule
        return None

    def with_rule(self, operation: str, rule: Rule) -> "RuleSet":
        """New rule set with ``operation`` added or replaced."""
        operations = [(name, existing) for name, existing in self.operations if name != operation]
        operations.append((operation, rule))
        return RuleSet(name=self.name, owner=self.owner, operations=tuple(operations))


def rule_set(name: str, owner: bytes, operations: Iterable[Tuple[str, Rule]] = ()) -> RuleSet:
    if isinstance(operations, Mapping):
        operations = operations.items()
    return RuleSet(name=name, owner=owner, operations=tuple(operations))


def serialize_rule_set(rules: RuleSet, *, max_depth: Optional[int] = None) -> bytes:
    """Encode a rule set with each operation's rule framed in order."""
    tokens = set_rule_set_context(rule_set=rules.name)
    try:
        writer = ByteWriter()
        writer.write_u32(rules.lib_version)
        writer.write_u32(len(rules.operations))
        writer.write_fixed_bytes(rules.owner, PUBKEY_LENGTH)
        writer.write_nul_padded_string(rules.name)
        for operation, _ in rules.operations:
            writer.write_nul_padded_string(operation)
        for _, rule in rules.operations:
            writer.write_raw(serialize_rule(rule, max_depth=max_depth))
        data = writer.getvalue()
        logger.info("Rule set serialized", operations=len(rules.operations), size=len(data))
        return data
    finally:
        reset_context(tokens)


def deserialize_rule_set(data: BytesLike, *, max_depth: Optional[int] = None) -> RuleSet:
    """Decode a rule set; the input must hold exactly one rule set."""
    reader = ByteReader(data)
    lib_version = reader.read_u32()
    if lib_version != RULE_SET_LIB_VERSION:
        raise MalformedPayload(
            f"Unsupported rule set version {lib_version}",
            {"lib_version": lib_version, "supported": RULE_SET_LIB_VERSION}
        )
    count = reader.read_u32()
    owner = reader.read_fixed_bytes(PUBKEY_LENGTH)
    name = reader.read_nul_padded_string()
    # Operation names come before any rule; check they fit before reading them
    if count * FIELD_WIDTH > reader.remaining:
        raise MalformedPayload(
            f"Rule set declares {count} operations in {reader.remaining} bytes",
            {"count": count, "available": reader.remaining}
        )
    operation_names = [reader.read_nul_padded_string() for _ in range(count)]

    tokens = set_rule_set_context(rule_set=name)
    try:
        operations = []
        for operation in operation_names:
            operation_tokens = set_rule_set_context(operation=operation)
            try:
                operations.append((operation, read_rule(reader, max_depth=max_depth)))
            finally:
                reset_context(operation_tokens)
        if reader.remaining:
            raise TrailingBytes(reader.remaining, {"offset": reader.offset, "scope": "rule_set"})
        try:
            result = RuleSet(name=name, owner=owner, operations=tuple(operations))
        except InvalidRule as e:
            raise MalformedPayload(e.message, e.details) from e
        logger.info("Rule set deserialized", operations=len(operations), size=reader.offset)
        return result
    finally:
        reset_context(tokens)
