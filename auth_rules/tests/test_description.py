"""
Tests for dictionary descriptions of rules.
"""

import pytest
import yaml

from auth_rules.codec import models
from auth_rules.codec.codec import deserialize_rule, serialize_rule
from auth_rules.codec.description import (
    rule_from_dict, rule_set_from_dict, rule_set_to_dict, rule_to_dict
)
from auth_rules.codec.models import ComparisonOperator
from auth_rules.shared.errors import IdentifierTooLong, InvalidRule, RuleTreeTooDeep
from auth_rules.shared.test_helpers import TestDataFactory, make_key, make_root, nested_not


RULE_YAML = """
type: Any
rules:
  - type: ProgramOwnedTree
    pubkey_field: publickKey
    proof_field: proof
    root: "{root}"
  - type: Not
    rule:
      type: Amount
      amount: 100
      operator: ">"
      field: amount
"""


class TestRuleDescriptions:
    """Test cases for rule_to_dict / rule_from_dict."""

    @pytest.mark.parametrize("rule", TestDataFactory.create_leaf_rules() + [
        TestDataFactory.create_royalty_rule(),
    ])
    def test_round_trip(self, rule):
        """Test a description rebuilds the same rule."""
        assert rule_from_dict(rule_to_dict(rule)) == rule

    def test_program_owned_tree_description(self):
        """Test keys and roots are described as hex."""
        root = make_root()

        data = rule_to_dict(models.program_owned_tree("publickKey", "proof", root))

        assert data == {
            "type": "ProgramOwnedTree",
            "pubkey_field": "publickKey",
            "proof_field": "proof",
            "root": root.hex(),
        }

    def test_amount_uses_symbol(self):
        """Test comparators are described by symbol."""
        data = rule_to_dict(models.amount(3, ComparisonOperator.LT_EQ, "amount"))

        assert data["operator"] == "<="

    def test_from_yaml(self):
        """Test rules authored in YAML encode like hand-built ones."""
        root = make_root()
        described = rule_from_dict(yaml.safe_load(RULE_YAML.format(root=root.hex())))

        expected = models.any_of(
            models.program_owned_tree("publickKey", "proof", root),
            models.not_(models.amount(100, ComparisonOperator.GT, "amount")),
        )
        assert described == expected
        assert deserialize_rule(serialize_rule(described))[0] == expected

    def test_prefixed_hex_accepted(self):
        """Test 0x-prefixed hex keys are accepted."""
        key = make_key("signer")

        assert rule_from_dict({"type": "AdditionalSigner", "account": "0x" + key.hex()}) == \
            models.additional_signer(key)

    @pytest.mark.parametrize("data", [
        {"type": "Everything"},
        {"type": "AdditionalSigner", "account": "zz"},
        {"type": "AdditionalSigner", "account": "00" * 31},
        {"type": "All", "rules": []},
        {"type": "Pass", "extra": 1},
        {"type": "Amount", "amount": -1, "operator": "=="},
        {"rules": []},
    ])
    def test_invalid_descriptions(self, data):
        """Test invalid descriptions raise InvalidRule."""
        with pytest.raises(InvalidRule) as exc_info:
            rule_from_dict(data)

        assert exc_info.value.details["errors"]

    def test_constructor_errors_surface(self):
        """Test constructor validation applies to described rules."""
        with pytest.raises(IdentifierTooLong):
            rule_from_dict({"type": "IsWallet", "field": "f" * 40})
        with pytest.raises(InvalidRule):
            rule_from_dict({"type": "Amount", "amount": 1, "operator": "~"})

    def test_deep_tree_rejected(self):
        """Test describing a tree deeper than the bound raises RuleTreeTooDeep."""
        with pytest.raises(RuleTreeTooDeep):
            rule_to_dict(nested_not(200))

        assert rule_to_dict(nested_not(3), max_depth=4)["rule"]["rule"]["rule"] == {"type": "Pass"}


class TestRuleSetDescriptions:
    """Test cases for rule set descriptions."""

    def test_round_trip(self):
        """Test a rule set description rebuilds the same rule set."""
        rules = TestDataFactory.create_rule_set()

        assert rule_set_from_dict(rule_set_to_dict(rules)) == rules

    def test_operation_order_kept(self):
        """Test operations keep their described order."""
        data = {
            "name": "set",
            "owner": make_key("owner").hex(),
            "operations": {
                "Transfer": {"type": "Pass"},
                "Burn": {"type": "Namespace"},
            },
        }

        assert [name for name, _ in rule_set_from_dict(data).operations] == ["Transfer", "Burn"]

    def test_invalid_owner(self):
        """Test owners must be 32-byte hex keys."""
        with pytest.raises(InvalidRule):
            rule_set_from_dict({"name": "set", "owner": "abcd"})
