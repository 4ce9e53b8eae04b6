"""
Unit tests for rule construction.
"""

import dataclasses

import pytest

from auth_rules.codec import models
from auth_rules.codec.models import ComparisonOperator, RuleFamily, RuleType
from auth_rules.codec.variants import VARIANTS_BY_CLASS, VARIANTS_BY_TAG, variant_for_name
from auth_rules.shared.errors import IdentifierTooLong, InvalidRule
from auth_rules.shared.test_helpers import TestDataFactory, make_key, make_root


class TestRuleConstruction:
    """Test cases for rule constructors."""

    def test_program_owned_tree_fields(self):
        """Test ProgramOwnedTree keeps its fields."""
        root = make_root()
        rule = models.program_owned_tree("publickKey", "proof", root)

        assert rule.pubkey_field == "publickKey"
        assert rule.proof_field == "proof"
        assert rule.root == root
        assert rule.rule_type == RuleType.PROGRAM_OWNED_TREE
        assert rule.family == RuleFamily.PROOF

    def test_rules_are_immutable(self):
        """Test rule values cannot be mutated."""
        rule = models.is_wallet("destination")

        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.field = "source"

    def test_sub_rules_stored_as_tuple(self):
        """Test composite sub-rules are frozen into a tuple."""
        rule = models.All(rules=[models.pass_(), models.namespace()])

        assert rule.rules == (models.pass_(), models.namespace())
        assert hash(rule) == hash(models.all_of(models.pass_(), models.namespace()))

    def test_equality_includes_kind(self):
        """Test kinds with identical fields are not equal."""
        root = make_root()

        assert models.program_owned_tree("a", "b", root) != models.pubkey_tree_match("a", "b", root)

    def test_bytearray_keys_normalized(self):
        """Test keys given as bytearray are stored as bytes."""
        rule = models.pubkey_match(bytearray(make_key("k")), "destination")

        assert isinstance(rule.pubkey, bytes)
        assert rule == models.pubkey_match(make_key("k"), "destination")

    def test_identifier_too_long(self):
        """Test identifiers wider than 32 bytes are rejected at construction."""
        with pytest.raises(IdentifierTooLong):
            models.is_wallet("d" * 33)

    def test_short_root_rejected(self):
        """Test Merkle roots must be 32 bytes."""
        with pytest.raises(InvalidRule):
            models.program_owned_tree("publickKey", "proof", b"\x00" * 31)

    def test_short_key_rejected(self):
        """Test program keys must be 32 bytes."""
        with pytest.raises(InvalidRule):
            models.program_owned(b"\x01" * 33, "destination")

    def test_empty_composites_rejected(self):
        """Test All/Any need at least one sub-rule."""
        with pytest.raises(InvalidRule):
            models.all_of()
        with pytest.raises(InvalidRule):
            models.any_of()

    def test_non_rule_sub_rule_rejected(self):
        """Test composites only accept rules."""
        with pytest.raises(InvalidRule):
            models.all_of(models.pass_(), "pass")
        with pytest.raises(InvalidRule):
            models.not_(None)

    def test_empty_key_lists_rejected(self):
        """Test list rules need at least one key."""
        with pytest.raises(InvalidRule):
            models.program_owned_list("destination", [])
        with pytest.raises(InvalidRule):
            models.pubkey_list_match("destination", [b"\x00" * 31])

    def test_amount_range(self):
        """Test amounts must fit in u64."""
        with pytest.raises(InvalidRule):
            models.amount(-1, ComparisonOperator.EQ)
        with pytest.raises(InvalidRule):
            models.amount(2 ** 64, ComparisonOperator.EQ)
        assert models.amount(2 ** 64 - 1, ComparisonOperator.EQ).amount == 2 ** 64 - 1

    @pytest.mark.parametrize("operator,expected", [
        (">=", ComparisonOperator.GT_EQ),
        ("lt", ComparisonOperator.LT),
        ("GT", ComparisonOperator.GT),
        (2, ComparisonOperator.EQ),
        (ComparisonOperator.LT_EQ, ComparisonOperator.LT_EQ),
    ])
    def test_amount_operator_parsing(self, operator, expected):
        """Test comparators accept symbols, names and codes."""
        assert models.amount(5, operator).operator == expected

    @pytest.mark.parametrize("operator", ["~", 5, True])
    def test_unknown_operator(self, operator):
        """Test unknown comparators are rejected."""
        with pytest.raises(InvalidRule):
            models.amount(5, operator)


class TestVariantTable:
    """Test cases for the variant table."""

    def test_tags_are_stable(self):
        """Test each kind keeps its published tag."""
        expected = {
            "AdditionalSigner": 1, "All": 2, "Amount": 3, "Any": 4, "Frequency": 5,
            "IsWallet": 6, "Namespace": 7, "Not": 8, "Pass": 9, "PDAMatch": 10,
            "ProgramOwned": 11, "ProgramOwnedList": 12, "ProgramOwnedTree": 13,
            "PubkeyListMatch": 14, "PubkeyMatch": 15, "PubkeyTreeMatch": 16,
        }

        assert {spec.name: spec.tag for spec in VARIANTS_BY_TAG.values()} == expected

    def test_tags_do_not_collide(self):
        """Test every kind has its own tag."""
        assert len(VARIANTS_BY_TAG) == len(VARIANTS_BY_CLASS) == 16

    def test_uninitialized_not_in_table(self):
        """Test tag 0 is not a rule kind."""
        assert 0 not in VARIANTS_BY_TAG

    def test_table_is_read_only(self):
        """Test the table cannot be modified at runtime."""
        with pytest.raises(TypeError):
            VARIANTS_BY_TAG[99] = VARIANTS_BY_TAG[1]

    def test_every_sample_rule_has_a_variant(self):
        """Test each factory rule maps to its own table entry."""
        for rule in TestDataFactory.create_leaf_rules():
            assert VARIANTS_BY_CLASS[type(rule)].tag == rule.rule_type

    def test_variant_for_unknown_name(self):
        """Test unknown kind names are rejected."""
        with pytest.raises(InvalidRule):
            variant_for_name("Everything")
