"""
Shared utilities for the authorization rule codec.

This package aggregates the building blocks used across the codec:

- config: Codec configuration via pydantic-settings
- logging: Structured logging with rule-set correlation
- metrics: Prometheus counters for encode/decode activity
- errors: Canonical error types and responses
- test_helpers: Sample keys and rules for tests and tooling

Only test_helpers imports from auth_rules.codec; keep the rest free of codec imports.
"""
