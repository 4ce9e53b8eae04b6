"""
Rule codec package.

Encodes authorization rule trees to their canonical framed bytes and back.

Modules of interest:
- primitives: Little-endian integers, fixed byte arrays, NUL-padded identifiers.
- models: Rule kinds (frozen dataclasses), tags and comparators.
- variants: The tag -> layout table used by both directions.
- composite: All/Any/Not payloads.
- codec: serialize_rule / deserialize_rule and untyped frame traversal.
- envelope: Versioned create-or-update argument carrying opaque rule set bytes.
- ruleset: Operation -> rule containers.
- description: Dictionary form of rules for tooling.
"""

from .codec import (
    RuleFrame, deserialize_rule, deserialize_rule_from, encoded_size,
    iter_frames, read_frame, read_rule, serialize_rule,
)
from .envelope import (
    CreateOrUpdateArgs, CreateOrUpdateArgsV1, EnvelopeVersion,
    deserialize_create_or_update_args, serialize_create_or_update_args, wrap_rule_set,
)
from .models import (
    AdditionalSigner, All, Amount, Any, ComparisonOperator, Frequency, IsWallet,
    Namespace, Not, Pass, PDAMatch, ProgramOwned, ProgramOwnedList, ProgramOwnedTree,
    PubkeyListMatch, PubkeyMatch, PubkeyTreeMatch, Rule, RuleFamily, RuleType,
    additional_signer, all_of, amount, any_of, frequency, is_wallet, namespace,
    not_, pass_, pda_match, program_owned, program_owned_list, program_owned_tree,
    pubkey_list_match, pubkey_match, pubkey_tree_match,
)
from .ruleset import RuleSet, deserialize_rule_set, rule_set, serialize_rule_set
from .variants import payload_length
