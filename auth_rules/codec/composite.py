"""
Composite rule payloads: All, Any and Not.

Sub-rules are encoded and decoded through the tree context handed in by the
rule tree codec, which tracks nesting depth.
"""

from auth_rules.shared.errors import FramingMismatch, MalformedPayload
from .models import All, Any, Not
from .primitives import HEADER_LENGTH, ByteReader, ByteWriter


def encode_sequence(rule, writer: ByteWriter, tree) -> None:
    """Payload of All/Any: count:u32 followed by each framed sub-rule in order."""
    writer.write_u32(len(rule.rules))
    for sub_rule in rule.rules:
        tree.encode_child(sub_rule, writer)


def decode_sequence(rule_class, reader: ByteReader, tree):
    payload_start = reader.offset
    count = reader.read_u32()
    if count == 0:
        raise MalformedPayload(
            f"{rule_class.__name__} declares no sub-rules",
            {"offset": payload_start}
        )
    # Every sub-rule needs at least its own header
    if count * HEADER_LENGTH > reader.remaining:
        raise FramingMismatch(
            f"{rule_class.__name__} declares {count} sub-rules in {reader.remaining} bytes",
            {"offset": payload_start, "count": count, "available": reader.remaining}
        )
    rules = [tree.decode_child(reader) for _ in range(count)]
    _expect_consumed(rule_class, reader)
    return rule_class(rules=tuple(rules))


def decode_all(reader: ByteReader, tree) -> All:
    return decode_sequence(All, reader, tree)


def decode_any(reader: ByteReader, tree) -> Any:
    return decode_sequence(Any, reader, tree)


def encode_not(rule: Not, writer: ByteWriter, tree) -> None:
    """Payload of Not: exactly one framed sub-rule."""
    tree.encode_child(rule.rule, writer)


def decode_not(reader: ByteReader, tree) -> Not:
    sub_rule = tree.decode_child(reader)
    _expect_consumed(Not, reader)
    return Not(rule=sub_rule)


def _expect_consumed(rule_class, reader: ByteReader) -> None:
    if reader.remaining:
        raise FramingMismatch(
            f"{reader.remaining} bytes left in {rule_class.__name__} after its sub-rules",
            {"offset": reader.offset, "remaining": reader.remaining}
        )
