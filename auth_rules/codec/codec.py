"""
Rule tree codec.

Entry points for turning rule trees into framed bytes and back. Every rule
is written as ``tag:u32 length:u32 payload``; composite payloads hold their
sub-rules framed the same way.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from auth_rules.shared.config import resolve_max_depth
from auth_rules.shared.errors import RuleCodecError, RuleTreeTooDeep, TrailingBytes
from auth_rules.shared.logging import get_logger
from auth_rules.shared.metrics import get_codec_metrics
from .models import Rule
from .primitives import HEADER_LENGTH, ByteReader, ByteWriter, BytesLike
from .variants import payload_length, variant_for_rule, variant_for_tag


logger = get_logger("auth_rules.codec")


@dataclass(frozen=True)
class RuleFrame:
    """A framed rule read without interpreting its payload."""
    tag: int
    length: int
    payload: bytes
    offset: int

    @property
    def size(self) -> int:
        return HEADER_LENGTH + self.length


class _RuleTree:
    """Recursive encode/decode state for one call: the depth bound and current depth."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        self.depth = 0

    def _enter(self, offset: Optional[int] = None):
        self.depth += 1
        if self.depth > self.max_depth:
            details = {"depth": self.depth}
            if offset is not None:
                details["offset"] = offset
            raise RuleTreeTooDeep(self.max_depth, details)

    def encode_child(self, rule: Rule, writer: ByteWriter) -> None:
        self._enter()
        try:
            spec = variant_for_rule(rule)
            payload = ByteWriter()
            spec.encode(rule, payload, self)
            writer.write_u32(spec.tag)
            writer.write_u32(len(payload))
            writer.write_raw(payload.getvalue())
        finally:
            self.depth -= 1

    def decode_child(self, reader: ByteReader) -> Rule:
        start = reader.offset
        self._enter(start)
        try:
            tag = reader.read_u32()
            length = reader.read_u32()
            payload = reader.sub_reader(length)
            spec = variant_for_tag(tag)
            return spec.decode(payload, self)
        except RuleCodecError as e:
            e.details.setdefault("offset", start)
            raise
        finally:
            self.depth -= 1


def serialize_rule(rule: Rule, *, max_depth: Optional[int] = None) -> bytes:
    """Encode a rule tree into its framed byte representation."""
    tree = _RuleTree(resolve_max_depth(max_depth))
    writer = ByteWriter()
    tree.encode_child(rule, writer)
    data = writer.getvalue()

    get_codec_metrics().record_encode(rule.name, len(data))
    logger.debug("Rule serialized", rule_type=rule.name, size=len(data))
    return data


def read_rule(reader: ByteReader, *, max_depth: Optional[int] = None) -> Rule:
    """Decode the framed rule at the reader's position and advance past it."""
    tree = _RuleTree(resolve_max_depth(max_depth))
    start = reader.offset
    try:
        rule = tree.decode_child(reader)
    except RuleCodecError as e:
        get_codec_metrics().record_decode_error(e.code)
        logger.warning("Rule decode failed", code=e.code, error=e.message, details=e.details)
        raise

    get_codec_metrics().record_decode(rule.name)
    logger.debug("Rule deserialized", rule_type=rule.name, size=reader.offset - start)
    return rule


def deserialize_rule_from(
    data: BytesLike,
    offset: int = 0,
    *,
    max_depth: Optional[int] = None,
) -> Tuple[Rule, int]:
    """Decode one framed rule starting at ``offset``; returns the rule and bytes consumed."""
    reader = ByteReader(data, offset)
    rule = read_rule(reader, max_depth=max_depth)
    return rule, reader.offset - offset


def deserialize_rule(
    data: BytesLike,
    *,
    max_depth: Optional[int] = None,
    exact: bool = True,
) -> Tuple[Rule, int]:
    """Decode a single framed rule from the start of ``data``.

    With ``exact`` the input must hold that rule and nothing else.
    """
    rule, consumed = deserialize_rule_from(data, 0, max_depth=max_depth)
    if exact and consumed != len(data):
        error = TrailingBytes(len(data) - consumed, {"offset": consumed})
        get_codec_metrics().record_decode_error(error.code)
        raise error
    return rule, consumed


def _next_frame(reader: ByteReader) -> RuleFrame:
    offset = reader.offset
    tag = reader.read_u32()
    length = reader.read_u32()
    payload = reader.read(length)
    return RuleFrame(tag=tag, length=length, payload=payload, offset=offset)


def read_frame(data: BytesLike, offset: int = 0, end: Optional[int] = None) -> RuleFrame:
    """Read the tag, length and raw payload at ``offset`` without decoding the payload.

    Works for tags that are not in the variant table, so callers can skip them.
    """
    return _next_frame(ByteReader(data, offset, end))


def iter_frames(data: BytesLike, offset: int = 0, end: Optional[int] = None) -> Iterator[RuleFrame]:
    """Yield consecutive frames until ``end`` (default: end of data)."""
    reader = ByteReader(data, offset, end)
    while reader.remaining:
        yield _next_frame(reader)


def encoded_size(rule: Rule, *, max_depth: Optional[int] = None) -> int:
    """Total framed size of a rule."""
    return HEADER_LENGTH + payload_length(rule, max_depth=max_depth)
