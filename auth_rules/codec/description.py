"""
Plain-data descriptions of rules.

Rules are described as dictionaries keyed by ``type`` (the canonical kind
name); keys and roots are hex strings and comparators are symbols. Used by
tooling that reads rules from YAML/JSON and prints decoded rules back.
"""

from typing import Annotated, Any as AnyValue, Dict, List, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from auth_rules.shared.config import resolve_max_depth
from auth_rules.shared.errors import InvalidRule, RuleTreeTooDeep
from . import models
from .models import ComparisonOperator, Rule
from .ruleset import RULE_SET_LIB_VERSION, RuleSet


def _hex_key(value: str) -> str:
    value = value[2:] if value.startswith("0x") else value
    try:
        raw = bytes.fromhex(value)
    except ValueError:
        raise ValueError("must be a hex string")
    if len(raw) != 32:
        raise ValueError("must encode exactly 32 bytes")
    return value.lower()


HexKey = Annotated[str, AfterValidator(_hex_key)]


class _Description(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class AdditionalSignerDescription(_Description):
    type: Literal["AdditionalSigner"]
    account: HexKey

    def to_rule(self) -> Rule:
        return models.additional_signer(bytes.fromhex(self.account))


class AllDescription(_Description):
    type: Literal["All"]
    rules: List["RuleDescription"] = Field(..., min_length=1)

    def to_rule(self) -> Rule:
        return models.all_of(*(rule.to_rule() for rule in self.rules))


class AmountDescription(_Description):
    type: Literal["Amount"]
    amount: int = Field(..., ge=0)
    operator: Union[str, int]
    field: str = "amount"

    def to_rule(self) -> Rule:
        return models.amount(self.amount, ComparisonOperator.parse(self.operator), self.field)


class AnyDescription(_Description):
    type: Literal["Any"]
    rules: List["RuleDescription"] = Field(..., min_length=1)

    def to_rule(self) -> Rule:
        return models.any_of(*(rule.to_rule() for rule in self.rules))


class FrequencyDescription(_Description):
    type: Literal["Frequency"]
    authority: HexKey

    def to_rule(self) -> Rule:
        return models.frequency(bytes.fromhex(self.authority))


class IsWalletDescription(_Description):
    type: Literal["IsWallet"]
    field: str

    def to_rule(self) -> Rule:
        return models.is_wallet(self.field)


class NamespaceDescription(_Description):
    type: Literal["Namespace"]

    def to_rule(self) -> Rule:
        return models.namespace()


class NotDescription(_Description):
    type: Literal["Not"]
    rule: "RuleDescription"

    def to_rule(self) -> Rule:
        return models.not_(self.rule.to_rule())


class PassDescription(_Description):
    type: Literal["Pass"]

    def to_rule(self) -> Rule:
        return models.pass_()


class PDAMatchDescription(_Description):
    type: Literal["PDAMatch"]
    program: HexKey
    pda_field: str
    seeds_field: str

    def to_rule(self) -> Rule:
        return models.pda_match(bytes.fromhex(self.program), self.pda_field, self.seeds_field)


class ProgramOwnedDescription(_Description):
    type: Literal["ProgramOwned"]
    program: HexKey
    field: str

    def to_rule(self) -> Rule:
        return models.program_owned(bytes.fromhex(self.program), self.field)


class ProgramOwnedListDescription(_Description):
    type: Literal["ProgramOwnedList"]
    field: str
    programs: List[HexKey] = Field(..., min_length=1)

    def to_rule(self) -> Rule:
        return models.program_owned_list(self.field, [bytes.fromhex(p) for p in self.programs])


class ProgramOwnedTreeDescription(_Description):
    type: Literal["ProgramOwnedTree"]
    pubkey_field: str
    proof_field: str
    root: HexKey

    def to_rule(self) -> Rule:
        return models.program_owned_tree(self.pubkey_field, self.proof_field, bytes.fromhex(self.root))


class PubkeyListMatchDescription(_Description):
    type: Literal["PubkeyListMatch"]
    field: str
    pubkeys: List[HexKey] = Field(..., min_length=1)

    def to_rule(self) -> Rule:
        return models.pubkey_list_match(self.field, [bytes.fromhex(p) for p in self.pubkeys])


class PubkeyMatchDescription(_Description):
    type: Literal["PubkeyMatch"]
    pubkey: HexKey
    field: str

    def to_rule(self) -> Rule:
        return models.pubkey_match(bytes.fromhex(self.pubkey), self.field)


class PubkeyTreeMatchDescription(_Description):
    type: Literal["PubkeyTreeMatch"]
    pubkey_field: str
    proof_field: str
    root: HexKey

    def to_rule(self) -> Rule:
        return models.pubkey_tree_match(self.pubkey_field, self.proof_field, bytes.fromhex(self.root))


RuleDescription = Annotated[
    Union[
        AdditionalSignerDescription,
        AllDescription,
        AmountDescription,
        AnyDescription,
        FrequencyDescription,
        IsWalletDescription,
        NamespaceDescription,
        NotDescription,
        PassDescription,
        PDAMatchDescription,
        ProgramOwnedDescription,
        ProgramOwnedListDescription,
        ProgramOwnedTreeDescription,
        PubkeyListMatchDescription,
        PubkeyMatchDescription,
        PubkeyTreeMatchDescription,
    ],
    Field(discriminator="type"),
]

AllDescription.model_rebuild()
AnyDescription.model_rebuild()
NotDescription.model_rebuild()

_rule_adapter = TypeAdapter(RuleDescription)


class RuleSetDescription(_Description):
    name: str
    owner: HexKey
    lib_version: int = RULE_SET_LIB_VERSION
    operations: Dict[str, RuleDescription] = Field(default_factory=dict)


def rule_from_dict(data: Dict[str, AnyValue]) -> Rule:
    """Build a rule from its dictionary description."""
    try:
        description = _rule_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidRule(
            "Invalid rule description",
            {"errors": e.errors(include_url=False, include_context=False)}
        ) from e
    return description.to_rule()


def rule_to_dict(rule: Rule, *, max_depth: Optional[int] = None) -> Dict[str, AnyValue]:
    """Describe a rule as plain data."""
    return _describe(rule, 1, resolve_max_depth(max_depth))


def _describe(rule: Rule, depth: int, max_depth: int) -> Dict[str, AnyValue]:
    if depth > max_depth:
        raise RuleTreeTooDeep(max_depth, {"depth": depth})
    data: Dict[str, AnyValue] = {"type": rule.name}
    if isinstance(rule, (models.All, models.Any)):
        data["rules"] = [_describe(sub_rule, depth + 1, max_depth) for sub_rule in rule.rules]
    elif isinstance(rule, models.Not):
        data["rule"] = _describe(rule.rule, depth + 1, max_depth)
    elif isinstance(rule, models.Amount):
        data.update(amount=rule.amount, operator=rule.operator.symbol, field=rule.field)
    else:
        for name, value in vars(rule).items():
            if isinstance(value, bytes):
                data[name] = value.hex()
            elif isinstance(value, tuple):
                data[name] = [item.hex() for item in value]
            else:
                data[name] = value
    return data


def rule_set_from_dict(data: Dict[str, AnyValue]) -> RuleSet:
    """Build a rule set from ``{"name", "owner", "operations": {op: rule}}``."""
    try:
        description = RuleSetDescription.model_validate(data)
    except ValidationError as e:
        raise InvalidRule(
            "Invalid rule set description",
            {"errors": e.errors(include_url=False, include_context=False)}
        ) from e
    return RuleSet(
        name=description.name,
        owner=bytes.fromhex(description.owner),
        lib_version=description.lib_version,
        operations=tuple(
            (operation, rule.to_rule()) for operation, rule in description.operations.items()
        ),
    )


def rule_set_to_dict(rules: RuleSet) -> Dict[str, AnyValue]:
    """Describe a rule set as plain data."""
    return {
        "name": rules.name,
        "owner": rules.owner.hex(),
        "lib_version": rules.lib_version,
        "operations": {operation: rule_to_dict(rule) for operation, rule in rules.operations},
    }
