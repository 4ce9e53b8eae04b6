"""
Authorization rule sets.

Binary encoding for trees of composable access-control predicates
(ownership, amount and Merkle-membership checks combined with All/Any/Not),
produced and inspected by client tooling and verified by the authority.
"""

__version__ = "1.0.0"
