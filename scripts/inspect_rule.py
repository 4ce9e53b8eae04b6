#!/usr/bin/env python3
"""
Rule inspection tool for authorization rule sets.

Decodes serialized rules or rule sets into YAML/JSON descriptions, encodes
YAML descriptions into hex, and wraps serialized rule sets in the V1
create-or-update envelope.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

from auth_rules.codec.codec import deserialize_rule, serialize_rule
from auth_rules.codec.description import (
    rule_from_dict, rule_set_from_dict, rule_set_to_dict, rule_to_dict
)
from auth_rules.codec.envelope import wrap_rule_set
from auth_rules.codec.ruleset import deserialize_rule_set, serialize_rule_set
from auth_rules.shared.config import get_config
from auth_rules.shared.errors import RuleCodecError
from auth_rules.shared.logging import configure_logging


def read_bytes(source: str) -> bytes:
    """Read hex from the argument, a file, or stdin ('-')."""
    if source == "-":
        text = sys.stdin.read()
    elif Path(source).is_file():
        raw = Path(source).read_bytes()
        try:
            text = raw.decode("ascii")
        except UnicodeDecodeError:
            return raw
    else:
        text = source
    text = "".join(text.split())
    if text.startswith("0x"):
        text = text[2:]
    return bytes.fromhex(text)


def dump(data: Dict[str, Any], output_format: str) -> str:
    if output_format == "json":
        return json.dumps(data, indent=2)
    return yaml.safe_dump(data, sort_keys=False)


def cmd_decode(args) -> int:
    data = read_bytes(args.source)
    if args.rule_set:
        description = rule_set_to_dict(deserialize_rule_set(data))
    else:
        rule, _ = deserialize_rule(data)
        description = rule_to_dict(rule)
    print(dump(description, args.format), end="")
    return 0


def cmd_encode(args) -> int:
    with open(args.source, 'r') as f:
        description = yaml.safe_load(f)
    if args.rule_set:
        data = serialize_rule_set(rule_set_from_dict(description))
    else:
        data = serialize_rule(rule_from_dict(description))
    if args.envelope:
        data = wrap_rule_set(data)
    print(data.hex())
    return 0


def cmd_envelope(args) -> int:
    print(wrap_rule_set(read_bytes(args.source)).hex())
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect and build authorization rules")
    subparsers = parser.add_subparsers(dest="command", required=True)

    decode = subparsers.add_parser("decode", help="Decode hex or a binary file into a description")
    decode.add_argument("source", help="Hex string, file path, or '-' for stdin")
    decode.add_argument("--rule-set", action="store_true", help="Input is a whole rule set")
    decode.add_argument("--format", choices=["yaml", "json"], default="yaml")
    decode.set_defaults(func=cmd_decode)

    encode = subparsers.add_parser("encode", help="Encode a YAML description into hex")
    encode.add_argument("source", help="YAML file describing a rule or rule set")
    encode.add_argument("--rule-set", action="store_true", help="Description is a whole rule set")
    encode.add_argument("--envelope", action="store_true", help="Wrap the result in the V1 envelope")
    encode.set_defaults(func=cmd_encode)

    envelope = subparsers.add_parser("envelope", help="Wrap serialized rule set bytes in the V1 envelope")
    envelope.add_argument("source", help="Hex string, file path, or '-' for stdin")
    envelope.set_defaults(func=cmd_envelope)

    args = parser.parse_args()
    # Keep stdout for results
    configure_logging(get_config().log_level, stream=sys.stderr)

    try:
        return args.func(args)
    except RuleCodecError as e:
        print(json.dumps(e.to_response().model_dump(), indent=2, default=str), file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
