"""
Rule set envelope.

The versioned create-or-update argument that carries serialized rule set
bytes to the authority. The bytes are opaque here: they are never parsed,
so envelopes stay readable when they carry encodings this library does not
understand.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from auth_rules.shared.errors import InvalidRule, TrailingBytes, UnknownVariantTag
from auth_rules.shared.logging import get_logger
from .primitives import ByteReader, ByteWriter, BytesLike


logger = get_logger("auth_rules.envelope")


class EnvelopeVersion(IntEnum):
    """Envelope discriminants."""
    V1 = 0


@dataclass(frozen=True)
class CreateOrUpdateArgsV1:
    """Version 1: the serialized rule set as an opaque blob."""
    serialized_rule_set: bytes
    version = EnvelopeVersion.V1

    def __post_init__(self):
        object.__setattr__(self, "serialized_rule_set", bytes(self.serialized_rule_set))


CreateOrUpdateArgs = Union[CreateOrUpdateArgsV1]


def is_create_or_update_args_v1(args) -> bool:
    return isinstance(args, CreateOrUpdateArgsV1)


def serialize_create_or_update_args(args: CreateOrUpdateArgs) -> bytes:
    """Encode the envelope: discriminant:u32 followed by the version's fields."""
    writer = ByteWriter()
    if isinstance(args, CreateOrUpdateArgsV1):
        writer.write_u32(EnvelopeVersion.V1)
        writer.write_var_bytes(args.serialized_rule_set)
    else:
        raise InvalidRule(
            "Unsupported envelope arguments", {"class": type(args).__name__}
        )
    return writer.getvalue()


def deserialize_create_or_update_args(data: BytesLike) -> CreateOrUpdateArgs:
    """Decode an envelope, leaving the rule set bytes untouched."""
    reader = ByteReader(data)
    discriminant = reader.read_u32()
    if discriminant == EnvelopeVersion.V1:
        args = CreateOrUpdateArgsV1(serialized_rule_set=reader.read_var_bytes())
    else:
        logger.warning("Unknown envelope version", discriminant=discriminant)
        raise UnknownVariantTag(discriminant, {"scope": "envelope"})
    if reader.remaining:
        raise TrailingBytes(reader.remaining, {"scope": "envelope", "offset": reader.offset})
    return args


def wrap_rule_set(serialized_rule_set: BytesLike) -> bytes:
    """Wrap serialized rule set bytes in the current envelope version."""
    return serialize_create_or_update_args(
        CreateOrUpdateArgsV1(serialized_rule_set=serialized_rule_set)
    )
