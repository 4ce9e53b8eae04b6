"""
Tests for the create-or-update envelope.
"""

import struct

import pytest

from auth_rules.codec.codec import serialize_rule
from auth_rules.codec.envelope import (
    CreateOrUpdateArgsV1, EnvelopeVersion, deserialize_create_or_update_args,
    is_create_or_update_args_v1, serialize_create_or_update_args, wrap_rule_set,
)
from auth_rules.codec.ruleset import serialize_rule_set
from auth_rules.shared.errors import InvalidRule, TrailingBytes, TruncatedInput, UnknownVariantTag
from auth_rules.shared.test_helpers import TestDataFactory


@pytest.fixture
def serialized_rule_set():
    """Serialized sample rule set."""
    return serialize_rule_set(TestDataFactory.create_rule_set())


def test_v1_layout(serialized_rule_set):
    """Test V1 is discriminant 0 followed by length-prefixed bytes."""
    data = wrap_rule_set(serialized_rule_set)

    assert data[:4] == b"\x00\x00\x00\x00"
    assert struct.unpack_from("<I", data, 4)[0] == len(serialized_rule_set)
    assert data[8:] == serialized_rule_set


def test_round_trip(serialized_rule_set):
    """Test the envelope decodes back to the same arguments."""
    args = CreateOrUpdateArgsV1(serialized_rule_set=serialized_rule_set)

    decoded = deserialize_create_or_update_args(serialize_create_or_update_args(args))

    assert decoded == args
    assert is_create_or_update_args_v1(decoded)
    assert decoded.version == EnvelopeVersion.V1


def test_payload_is_opaque():
    """Test envelopes carrying bytes this library cannot parse still decode."""
    unknown_rule = struct.pack("<II", 250, 3) + b"new"

    decoded = deserialize_create_or_update_args(wrap_rule_set(unknown_rule))

    assert decoded.serialized_rule_set == unknown_rule


def test_carries_single_rule():
    """Test a bare serialized rule can be carried too."""
    rule_bytes = serialize_rule(TestDataFactory.create_royalty_rule())

    assert deserialize_create_or_update_args(wrap_rule_set(rule_bytes)).serialized_rule_set == rule_bytes


def test_unknown_version():
    """Test unknown discriminants raise UnknownVariantTag."""
    data = struct.pack("<II", 1, 0)

    with pytest.raises(UnknownVariantTag) as exc_info:
        deserialize_create_or_update_args(data)

    assert exc_info.value.details["scope"] == "envelope"


def test_truncated_envelope():
    """Test a payload shorter than its prefix raises TruncatedInput."""
    with pytest.raises(TruncatedInput):
        deserialize_create_or_update_args(wrap_rule_set(b"abcdef")[:-1])


def test_trailing_bytes():
    """Test bytes after the envelope are rejected."""
    with pytest.raises(TrailingBytes):
        deserialize_create_or_update_args(wrap_rule_set(b"abc") + b"\x00")


def test_unsupported_arguments():
    """Test only known versions can be serialized."""
    with pytest.raises(InvalidRule):
        serialize_create_or_update_args(object())
