"""
Test helper functions and factory methods for the authorization rule codec.
"""

import hashlib
from typing import List

from auth_rules.codec import models
from auth_rules.codec.models import ComparisonOperator, Rule
from auth_rules.codec.ruleset import RuleSet


def make_key(label: str) -> bytes:
    """Deterministic 32-byte key derived from a label."""
    return hashlib.sha256(label.encode("utf-8")).digest()


def make_root(label: str = "root") -> bytes:
    """Deterministic 32-byte Merkle root derived from a label."""
    return hashlib.sha256(b"merkle:" + label.encode("utf-8")).digest()


def padded(identifier: str, width: int = 32) -> bytes:
    """Identifier as it appears on the wire."""
    return identifier.encode("utf-8").ljust(width, b"\x00")


def nested_not(depth: int, leaf: Rule = None) -> Rule:
    """A chain of ``depth`` Not rules around ``leaf``."""
    rule = leaf if leaf is not None else models.pass_()
    for _ in range(depth):
        rule = models.not_(rule)
    return rule


class TestDataFactory:
    """Factory for creating test data."""

    __test__ = False

    @staticmethod
    def create_leaf_rules() -> List[Rule]:
        """One rule of every non-composite kind."""
        return [
            models.additional_signer(make_key("signer")),
            models.amount(1, ComparisonOperator.GT_EQ, "amount"),
            models.frequency(make_key("frequency")),
            models.is_wallet("destination"),
            models.namespace(),
            models.pass_(),
            models.pda_match(make_key("program"), "destination", "seeds"),
            models.program_owned(make_key("program"), "destination"),
            models.program_owned_list("destination", [make_key("a"), make_key("b")]),
            models.program_owned_tree("publickKey", "proof", make_root()),
            models.pubkey_list_match("authority", [make_key("c"), make_key("d"), make_key("e")]),
            models.pubkey_match(make_key("target"), "destination"),
            models.pubkey_tree_match("destination", "proof", make_root("wallets")),
        ]

    @staticmethod
    def create_royalty_rule() -> Rule:
        """A realistic transfer rule combining every composite kind."""
        return models.any_of(
            models.all_of(
                models.program_owned_tree("destination", "destinationProof", make_root("marketplaces")),
                models.amount(1, ComparisonOperator.EQ, "amount"),
            ),
            models.is_wallet("destination"),
            models.not_(models.pubkey_list_match("authority", [make_key("blocked")])),
        )

    @staticmethod
    def create_rule_set() -> RuleSet:
        """Rule set with a few operations."""
        return RuleSet(
            name="royalty-rules",
            owner=make_key("owner"),
            operations=(
                ("Transfer:Owner", TestDataFactory.create_royalty_rule()),
                ("Delegate:Sale", models.pubkey_match(make_key("market"), "delegate")),
                ("Burn", models.pass_()),
            ),
        )
