"""
Rule data models.

Every rule kind is a frozen dataclass. Constructors validate field widths,
key sizes, numeric ranges and the presence of sub-rules, so any rule value
that exists can be encoded.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, Iterable, Tuple, Union

from auth_rules.shared.errors import InvalidRule
from .primitives import (
    FIELD_WIDTH, HASH_LENGTH, PUBKEY_LENGTH, U64_MAX, encode_identifier
)


class RuleType(IntEnum):
    """Wire tags of the rule kinds."""
    UNINITIALIZED = 0
    ADDITIONAL_SIGNER = 1
    ALL = 2
    AMOUNT = 3
    ANY = 4
    FREQUENCY = 5
    IS_WALLET = 6
    NAMESPACE = 7
    NOT = 8
    PASS = 9
    PDA_MATCH = 10
    PROGRAM_OWNED = 11
    PROGRAM_OWNED_LIST = 12
    PROGRAM_OWNED_TREE = 13
    PUBKEY_LIST_MATCH = 14
    PUBKEY_MATCH = 15
    PUBKEY_TREE_MATCH = 16


class ComparisonOperator(IntEnum):
    """Comparators for the Amount rule."""
    LT = 0
    LT_EQ = 1
    EQ = 2
    GT_EQ = 3
    GT = 4

    @property
    def symbol(self) -> str:
        return _OPERATOR_SYMBOLS[self]

    @classmethod
    def parse(cls, value: Union[str, int, "ComparisonOperator"]) -> "ComparisonOperator":
        """Accept an operator, its code, its symbol or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidRule("Unknown comparison operator", {"operator": value})
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidRule("Unknown comparison operator", {"operator": value})
        for operator, symbol in _OPERATOR_SYMBOLS.items():
            if value == symbol:
                return operator
        normalized = str(value).upper().replace("-", "_")
        if normalized in cls.__members__:
            return cls[normalized]
        raise InvalidRule("Unknown comparison operator", {"operator": value})


_OPERATOR_SYMBOLS = {
    ComparisonOperator.LT: "<",
    ComparisonOperator.LT_EQ: "<=",
    ComparisonOperator.EQ: "==",
    ComparisonOperator.GT_EQ: ">=",
    ComparisonOperator.GT: ">",
}


class RuleFamily(str, Enum):
    """Broad grouping of rule kinds."""
    FIELD = "field"
    PROOF = "proof"
    COMPOSITE = "composite"


def _check_identifier(name: str, value: str) -> None:
    if not isinstance(value, str):
        raise InvalidRule(f"{name} must be a string", {"field": name})
    encode_identifier(value, FIELD_WIDTH)


def _check_key(obj, name: str, value, length: int = PUBKEY_LENGTH) -> None:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidRule(f"{name} must be bytes", {"field": name})
    value = bytes(value)
    if len(value) != length:
        raise InvalidRule(
            f"{name} must be exactly {length} bytes",
            {"field": name, "length": len(value)}
        )
    object.__setattr__(obj, name, value)


def _check_keys(obj, name: str, values: Iterable) -> None:
    if isinstance(values, (bytes, bytearray, str)):
        raise InvalidRule(f"{name} must be a sequence of keys", {"field": name})
    keys = []
    for index, value in enumerate(values):
        if not isinstance(value, (bytes, bytearray, memoryview)) or len(value) != PUBKEY_LENGTH:
            raise InvalidRule(
                f"{name}[{index}] must be exactly {PUBKEY_LENGTH} bytes",
                {"field": name, "index": index}
            )
        keys.append(bytes(value))
    if not keys:
        raise InvalidRule(f"{name} must not be empty", {"field": name})
    object.__setattr__(obj, name, tuple(keys))


@dataclass(frozen=True)
class Rule:
    """Base class of all rule kinds."""
    rule_type: ClassVar[RuleType] = RuleType.UNINITIALIZED
    family: ClassVar[RuleFamily] = RuleFamily.FIELD

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class AdditionalSigner(Rule):
    """The given account must have signed the transaction."""
    rule_type: ClassVar[RuleType] = RuleType.ADDITIONAL_SIGNER
    account: bytes

    def __post_init__(self):
        _check_key(self, "account", self.account)


@dataclass(frozen=True)
class All(Rule):
    """All sub-rules must hold."""
    rule_type: ClassVar[RuleType] = RuleType.ALL
    family: ClassVar[RuleFamily] = RuleFamily.COMPOSITE
    rules: Tuple[Rule, ...]

    def __post_init__(self):
        _check_sub_rules(self)


@dataclass(frozen=True)
class Amount(Rule):
    """Compares the amount supplied in ``field`` against ``amount``."""
    rule_type: ClassVar[RuleType] = RuleType.AMOUNT
    amount: int
    operator: ComparisonOperator
    field: str

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidRule("amount must be an integer", {"amount": self.amount})
        if not 0 <= self.amount <= U64_MAX:
            raise InvalidRule("amount out of u64 range", {"amount": self.amount})
        object.__setattr__(self, "operator", ComparisonOperator.parse(self.operator))
        _check_identifier("field", self.field)


@dataclass(frozen=True)
class Any(Rule):
    """At least one sub-rule must hold; evaluated in order."""
    rule_type: ClassVar[RuleType] = RuleType.ANY
    family: ClassVar[RuleFamily] = RuleFamily.COMPOSITE
    rules: Tuple[Rule, ...]

    def __post_init__(self):
        _check_sub_rules(self)


@dataclass(frozen=True)
class Frequency(Rule):
    """Rate limit tracked by the given authority."""
    rule_type: ClassVar[RuleType] = RuleType.FREQUENCY
    authority: bytes

    def __post_init__(self):
        _check_key(self, "authority", self.authority)


@dataclass(frozen=True)
class IsWallet(Rule):
    """The key supplied in ``field`` must be a wallet."""
    rule_type: ClassVar[RuleType] = RuleType.IS_WALLET
    field: str

    def __post_init__(self):
        _check_identifier("field", self.field)


@dataclass(frozen=True)
class Namespace(Rule):
    """Defers to the rule of the same operation namespace."""
    rule_type: ClassVar[RuleType] = RuleType.NAMESPACE


@dataclass(frozen=True)
class Not(Rule):
    """Inverts its sub-rule."""
    rule_type: ClassVar[RuleType] = RuleType.NOT
    family: ClassVar[RuleFamily] = RuleFamily.COMPOSITE
    rule: Rule

    def __post_init__(self):
        if not isinstance(self.rule, Rule) or type(self.rule) is Rule:
            raise InvalidRule("Not requires a rule", {"rule": repr(self.rule)})


@dataclass(frozen=True)
class Pass(Rule):
    """Always holds."""
    rule_type: ClassVar[RuleType] = RuleType.PASS


@dataclass(frozen=True)
class PDAMatch(Rule):
    """The key in ``pda_field`` must derive from ``program`` with the seeds in ``seeds_field``."""
    rule_type: ClassVar[RuleType] = RuleType.PDA_MATCH
    program: bytes
    pda_field: str
    seeds_field: str

    def __post_init__(self):
        _check_key(self, "program", self.program)
        _check_identifier("pda_field", self.pda_field)
        _check_identifier("seeds_field", self.seeds_field)


@dataclass(frozen=True)
class ProgramOwned(Rule):
    """The account named by ``field`` must be owned by ``program``."""
    rule_type: ClassVar[RuleType] = RuleType.PROGRAM_OWNED
    program: bytes
    field: str

    def __post_init__(self):
        _check_key(self, "program", self.program)
        _check_identifier("field", self.field)


@dataclass(frozen=True)
class ProgramOwnedList(Rule):
    """The account named by ``field`` must be owned by one of ``programs``."""
    rule_type: ClassVar[RuleType] = RuleType.PROGRAM_OWNED_LIST
    field: str
    programs: Tuple[bytes, ...]

    def __post_init__(self):
        _check_identifier("field", self.field)
        _check_keys(self, "programs", self.programs)


@dataclass(frozen=True)
class ProgramOwnedTree(Rule):
    """The owner of ``pubkey_field`` must be a leaf of the Merkle tree at ``root``.

    The leaf is proven at evaluation time with the path supplied under
    ``proof_field``.
    """
    rule_type: ClassVar[RuleType] = RuleType.PROGRAM_OWNED_TREE
    family: ClassVar[RuleFamily] = RuleFamily.PROOF
    pubkey_field: str
    proof_field: str
    root: bytes

    def __post_init__(self):
        _check_identifier("pubkey_field", self.pubkey_field)
        _check_identifier("proof_field", self.proof_field)
        _check_key(self, "root", self.root, HASH_LENGTH)


@dataclass(frozen=True)
class PubkeyListMatch(Rule):
    """The key supplied in ``field`` must be one of ``pubkeys``."""
    rule_type: ClassVar[RuleType] = RuleType.PUBKEY_LIST_MATCH
    field: str
    pubkeys: Tuple[bytes, ...]

    def __post_init__(self):
        _check_identifier("field", self.field)
        _check_keys(self, "pubkeys", self.pubkeys)


@dataclass(frozen=True)
class PubkeyMatch(Rule):
    """The key supplied in ``field`` must equal ``pubkey``."""
    rule_type: ClassVar[RuleType] = RuleType.PUBKEY_MATCH
    pubkey: bytes
    field: str

    def __post_init__(self):
        _check_key(self, "pubkey", self.pubkey)
        _check_identifier("field", self.field)


@dataclass(frozen=True)
class PubkeyTreeMatch(Rule):
    """The key in ``pubkey_field`` must be a leaf of the Merkle tree at ``root``."""
    rule_type: ClassVar[RuleType] = RuleType.PUBKEY_TREE_MATCH
    family: ClassVar[RuleFamily] = RuleFamily.PROOF
    pubkey_field: str
    proof_field: str
    root: bytes

    def __post_init__(self):
        _check_identifier("pubkey_field", self.pubkey_field)
        _check_identifier("proof_field", self.proof_field)
        _check_key(self, "root", self.root, HASH_LENGTH)


def _check_sub_rules(rule) -> None:
    rules = rule.rules
    if isinstance(rules, Rule):
        raise InvalidRule(f"{rule.name} requires a sequence of rules")
    rules = tuple(rules)
    if not rules:
        raise InvalidRule(f"{rule.name} requires at least one rule")
    for index, sub_rule in enumerate(rules):
        if not isinstance(sub_rule, Rule) or type(sub_rule) is Rule:
            raise InvalidRule(
                f"{rule.name} rule {index} is not a rule",
                {"index": index, "value": repr(sub_rule)}
            )
    object.__setattr__(rule, "rules", rules)


# Construction helpers, one per kind.

def additional_signer(account: bytes) -> AdditionalSigner:
    return AdditionalSigner(account=account)


def all_of(*rules: Rule) -> All:
    return All(rules=rules)


def amount(amount: int, operator: Union[str, int, ComparisonOperator], field: str = "amount") -> Amount:
    return Amount(amount=amount, operator=operator, field=field)


def any_of(*rules: Rule) -> Any:
    return Any(rules=rules)


def frequency(authority: bytes) -> Frequency:
    return Frequency(authority=authority)


def is_wallet(field: str) -> IsWallet:
    return IsWallet(field=field)


def namespace() -> Namespace:
    return Namespace()


def not_(rule: Rule) -> Not:
    return Not(rule=rule)


def pass_() -> Pass:
    return Pass()


def pda_match(program: bytes, pda_field: str, seeds_field: str) -> PDAMatch:
    return PDAMatch(program=program, pda_field=pda_field, seeds_field=seeds_field)


def program_owned(program: bytes, field: str) -> ProgramOwned:
    return ProgramOwned(program=program, field=field)


def program_owned_list(field: str, programs: Iterable[bytes]) -> ProgramOwnedList:
    return ProgramOwnedList(field=field, programs=tuple(programs))


def program_owned_tree(pubkey_field: str, proof_field: str, root: bytes) -> ProgramOwnedTree:
    return ProgramOwnedTree(pubkey_field=pubkey_field, proof_field=proof_field, root=root)


def pubkey_list_match(field: str, pubkeys: Iterable[bytes]) -> PubkeyListMatch:
    return PubkeyListMatch(field=field, pubkeys=tuple(pubkeys))


def pubkey_match(pubkey: bytes, field: str) -> PubkeyMatch:
    return PubkeyMatch(pubkey=pubkey, field=field)


def pubkey_tree_match(pubkey_field: str, proof_field: str, root: bytes) -> PubkeyTreeMatch:
    return PubkeyTreeMatch(pubkey_field=pubkey_field, proof_field=proof_field, root=root)
