"""
Rule variant table.

One entry per rule kind: its tag, name, class, payload encoder and payload
decoder. The table is built once at import time and is read-only.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Type

from auth_rules.shared.config import resolve_max_depth
from auth_rules.shared.errors import InvalidRule, MalformedPayload, RuleTreeTooDeep, UnknownVariantTag
from . import composite
from .models import (
    AdditionalSigner, All, Amount, Any, ComparisonOperator, Frequency,
    IsWallet, Namespace, Not, Pass, PDAMatch, ProgramOwned, ProgramOwnedList,
    ProgramOwnedTree, PubkeyListMatch, PubkeyMatch, PubkeyTreeMatch, Rule,
    RuleType,
)
from .primitives import (
    FIELD_WIDTH, HASH_LENGTH, HEADER_LENGTH, PUBKEY_LENGTH, ByteReader, ByteWriter
)


Encoder = Callable[[Rule, ByteWriter, object], None]
Decoder = Callable[[ByteReader, object], Rule]


@dataclass(frozen=True)
class VariantSpec:
    """How one rule kind is laid out on the wire."""
    rule_type: RuleType
    name: str
    rule_class: Type[Rule]
    encode: Encoder
    decode: Decoder
    payload_size: Optional[int] = None
    composite: bool = False

    @property
    def tag(self) -> int:
        return int(self.rule_type)


def _fixed(rule_class: Type[Rule], size: int, read: Callable[[ByteReader], Rule]) -> Decoder:
    """Wrap a decoder for a kind whose payload has one exact size."""
    def decode(reader: ByteReader, tree) -> Rule:
        if reader.remaining != size:
            raise MalformedPayload(
                f"{rule_class.__name__} payload must be {size} bytes, got {reader.remaining}",
                {"rule_type": rule_class.__name__, "expected": size, "length": reader.remaining}
            )
        return read(reader)
    return decode


def _key_list_size_check(rule_class: Type[Rule], reader: ByteReader) -> int:
    keys_length = reader.remaining - FIELD_WIDTH
    if keys_length < PUBKEY_LENGTH or keys_length % PUBKEY_LENGTH:
        raise MalformedPayload(
            f"{rule_class.__name__} payload of {reader.remaining} bytes is not a field and a list of keys",
            {"rule_type": rule_class.__name__, "length": reader.remaining}
        )
    return keys_length // PUBKEY_LENGTH


# Leaf encoders

def _encode_nothing(rule: Rule, writer: ByteWriter, tree) -> None:
    pass


def _encode_additional_signer(rule: AdditionalSigner, writer: ByteWriter, tree) -> None:
    writer.write_fixed_bytes(rule.account, PUBKEY_LENGTH)


def _encode_amount(rule: Amount, writer: ByteWriter, tree) -> None:
    writer.write_u64(rule.amount)
    writer.write_u64(int(rule.operator))
    writer.write_nul_padded_string(rule.field)


def _encode_frequency(rule: Frequency, writer: ByteWriter, tree) -> None:
    writer.write_fixed_bytes(rule.authority, PUBKEY_LENGTH)


def _encode_is_wallet(rule: IsWallet, writer: ByteWriter, tree) -> None:
    writer.write_nul_padded_string(rule.field)


def _encode_pda_match(rule: PDAMatch, writer: ByteWriter, tree) -> None:
    writer.write_fixed_bytes(rule.program, PUBKEY_LENGTH)
    writer.write_nul_padded_string(rule.pda_field)
    writer.write_nul_padded_string(rule.seeds_field)


def _encode_program_owned(rule: ProgramOwned, writer: ByteWriter, tree) -> None:
    writer.write_fixed_bytes(rule.program, PUBKEY_LENGTH)
    writer.write_nul_padded_string(rule.field)


def _encode_program_owned_list(rule: ProgramOwnedList, writer: ByteWriter, tree) -> None:
    writer.write_nul_padded_string(rule.field)
    for program in rule.programs:
        writer.write_fixed_bytes(program, PUBKEY_LENGTH)


def _encode_tree(rule, writer: ByteWriter, tree) -> None:
    writer.write_nul_padded_string(rule.pubkey_field)
    writer.write_nul_padded_string(rule.proof_field)
    writer.write_fixed_bytes(rule.root, HASH_LENGTH)


def _encode_pubkey_list_match(rule: PubkeyListMatch, writer: ByteWriter, tree) -> None:
    writer.write_nul_padded_string(rule.field)
    for pubkey in rule.pubkeys:
        writer.write_fixed_bytes(pubkey, PUBKEY_LENGTH)


def _encode_pubkey_match(rule: PubkeyMatch, writer: ByteWriter, tree) -> None:
    writer.write_fixed_bytes(rule.pubkey, PUBKEY_LENGTH)
    writer.write_nul_padded_string(rule.field)


# Leaf decoders

def _read_amount(reader: ByteReader) -> Amount:
    value = reader.read_u64()
    code = reader.read_u64()
    try:
        operator = ComparisonOperator(code)
    except ValueError:
        raise MalformedPayload(
            f"Unknown comparison operator {code}",
            {"rule_type": "Amount", "operator": code}
        )
    return Amount(amount=value, operator=operator, field=reader.read_nul_padded_string())


def _read_pda_match(reader: ByteReader) -> PDAMatch:
    program = reader.read_fixed_bytes(PUBKEY_LENGTH)
    pda_field = reader.read_nul_padded_string()
    return PDAMatch(program=program, pda_field=pda_field, seeds_field=reader.read_nul_padded_string())


def _read_program_owned(reader: ByteReader) -> ProgramOwned:
    program = reader.read_fixed_bytes(PUBKEY_LENGTH)
    return ProgramOwned(program=program, field=reader.read_nul_padded_string())


def _read_pubkey_match(reader: ByteReader) -> PubkeyMatch:
    pubkey = reader.read_fixed_bytes(PUBKEY_LENGTH)
    return PubkeyMatch(pubkey=pubkey, field=reader.read_nul_padded_string())


def _tree_reader(rule_class):
    def read(reader: ByteReader):
        pubkey_field = reader.read_nul_padded_string()
        proof_field = reader.read_nul_padded_string()
        return rule_class(
            pubkey_field=pubkey_field,
            proof_field=proof_field,
            root=reader.read_fixed_bytes(HASH_LENGTH),
        )
    return read


def _decode_program_owned_list(reader: ByteReader, tree) -> ProgramOwnedList:
    count = _key_list_size_check(ProgramOwnedList, reader)
    field = reader.read_nul_padded_string()
    programs = tuple(reader.read_fixed_bytes(PUBKEY_LENGTH) for _ in range(count))
    return ProgramOwnedList(field=field, programs=programs)


def _decode_pubkey_list_match(reader: ByteReader, tree) -> PubkeyListMatch:
    count = _key_list_size_check(PubkeyListMatch, reader)
    field = reader.read_nul_padded_string()
    pubkeys = tuple(reader.read_fixed_bytes(PUBKEY_LENGTH) for _ in range(count))
    return PubkeyListMatch(field=field, pubkeys=pubkeys)


def _spec(rule_class, encode, decode, payload_size=None, composite_kind=False) -> VariantSpec:
    return VariantSpec(
        rule_type=rule_class.rule_type,
        name=rule_class.__name__,
        rule_class=rule_class,
        encode=encode,
        decode=decode,
        payload_size=payload_size,
        composite=composite_kind,
    )


_VARIANTS = (
    _spec(AdditionalSigner, _encode_additional_signer,
          _fixed(AdditionalSigner, PUBKEY_LENGTH,
                 lambda r: AdditionalSigner(account=r.read_fixed_bytes(PUBKEY_LENGTH))),
          PUBKEY_LENGTH),
    _spec(All, composite.encode_sequence, composite.decode_all, composite_kind=True),
    _spec(Amount, _encode_amount, _fixed(Amount, 8 + 8 + FIELD_WIDTH, _read_amount),
          8 + 8 + FIELD_WIDTH),
    _spec(Any, composite.encode_sequence, composite.decode_any, composite_kind=True),
    _spec(Frequency, _encode_frequency,
          _fixed(Frequency, PUBKEY_LENGTH,
                 lambda r: Frequency(authority=r.read_fixed_bytes(PUBKEY_LENGTH))),
          PUBKEY_LENGTH),
    _spec(IsWallet, _encode_is_wallet,
          _fixed(IsWallet, FIELD_WIDTH, lambda r: IsWallet(field=r.read_nul_padded_string())),
          FIELD_WIDTH),
    _spec(Namespace, _encode_nothing, _fixed(Namespace, 0, lambda r: Namespace()), 0),
    _spec(Not, composite.encode_not, composite.decode_not, composite_kind=True),
    _spec(Pass, _encode_nothing, _fixed(Pass, 0, lambda r: Pass()), 0),
    _spec(PDAMatch, _encode_pda_match,
          _fixed(PDAMatch, PUBKEY_LENGTH + 2 * FIELD_WIDTH, _read_pda_match),
          PUBKEY_LENGTH + 2 * FIELD_WIDTH),
    _spec(ProgramOwned, _encode_program_owned,
          _fixed(ProgramOwned, PUBKEY_LENGTH + FIELD_WIDTH, _read_program_owned),
          PUBKEY_LENGTH + FIELD_WIDTH),
    _spec(ProgramOwnedList, _encode_program_owned_list, _decode_program_owned_list),
    _spec(ProgramOwnedTree, _encode_tree,
          _fixed(ProgramOwnedTree, 2 * FIELD_WIDTH + HASH_LENGTH, _tree_reader(ProgramOwnedTree)),
          2 * FIELD_WIDTH + HASH_LENGTH),
    _spec(PubkeyListMatch, _encode_pubkey_list_match, _decode_pubkey_list_match),
    _spec(PubkeyMatch, _encode_pubkey_match,
          _fixed(PubkeyMatch, PUBKEY_LENGTH + FIELD_WIDTH, _read_pubkey_match),
          PUBKEY_LENGTH + FIELD_WIDTH),
    _spec(PubkeyTreeMatch, _encode_tree,
          _fixed(PubkeyTreeMatch, 2 * FIELD_WIDTH + HASH_LENGTH, _tree_reader(PubkeyTreeMatch)),
          2 * FIELD_WIDTH + HASH_LENGTH),
)

VARIANTS_BY_TAG: Mapping[int, VariantSpec] = MappingProxyType(
    {spec.tag: spec for spec in _VARIANTS}
)
VARIANTS_BY_CLASS: Mapping[type, VariantSpec] = MappingProxyType(
    {spec.rule_class: spec for spec in _VARIANTS}
)
VARIANTS_BY_NAME: Mapping[str, VariantSpec] = MappingProxyType(
    {spec.name: spec for spec in _VARIANTS}
)


def variant_for_tag(tag: int) -> VariantSpec:
    """Look up a variant by wire tag."""
    spec = VARIANTS_BY_TAG.get(tag)
    if spec is None:
        raise UnknownVariantTag(tag)
    return spec


def variant_for_rule(rule: Rule) -> VariantSpec:
    """Look up the variant of a rule value."""
    spec = VARIANTS_BY_CLASS.get(type(rule))
    if spec is None:
        raise UnknownVariantTag(int(getattr(rule, "rule_type", 0)), {"class": type(rule).__name__})
    return spec


def variant_for_name(name: str) -> VariantSpec:
    """Look up a variant by canonical name (e.g. ``"ProgramOwnedTree"``)."""
    spec = VARIANTS_BY_NAME.get(name)
    if spec is None:
        raise InvalidRule(f"Unknown rule type '{name}'", {"type": name})
    return spec


def payload_length(rule: Rule, *, max_depth: Optional[int] = None) -> int:
    """Payload size of a rule, computed from its fields alone.

    Nesting is bounded the same way as encoding; deeper trees raise
    ``RuleTreeTooDeep``.
    """
    return _payload_length(rule, 1, resolve_max_depth(max_depth))


def _payload_length(rule: Rule, depth: int, max_depth: int) -> int:
    if depth > max_depth:
        raise RuleTreeTooDeep(max_depth, {"depth": depth})
    spec = variant_for_rule(rule)
    if spec.payload_size is not None:
        return spec.payload_size
    if isinstance(rule, Not):
        return HEADER_LENGTH + _payload_length(rule.rule, depth + 1, max_depth)
    if isinstance(rule, (All, Any)):
        return 4 + sum(
            HEADER_LENGTH + _payload_length(sub_rule, depth + 1, max_depth)
            for sub_rule in rule.rules
        )
    if isinstance(rule, ProgramOwnedList):
        return FIELD_WIDTH + PUBKEY_LENGTH * len(rule.programs)
    if isinstance(rule, PubkeyListMatch):
        return FIELD_WIDTH + PUBKEY_LENGTH * len(rule.pubkeys)
    raise MalformedPayload(f"No payload layout for {spec.name}")
