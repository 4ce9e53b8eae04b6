"""
Shared logging configuration for the authorization rule codec.

Codec events go through the standard library logger named after the module
(``auth_rules.codec``, ``auth_rules.ruleset``...). Library callers get the
``auth_rules`` logger set to ``AUTH_RULES_LOG_LEVEL`` and no handlers; where
the events end up is decided by the application's logging setup.
"""

import sys
import structlog
import logging
import time
from typing import Any, Dict, List, Optional
from contextvars import ContextVar, Token

from .config import get_config

ROOT_LOGGER_NAME = "auth_rules"

# Context variables for correlation
rule_set_var: ContextVar[Optional[str]] = ContextVar('rule_set', default=None)
operation_var: ContextVar[Optional[str]] = ContextVar('operation', default=None)


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_component_context,
            add_rule_set_context,
            add_timestamp,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _level(log_level: str) -> int:
    return getattr(logging, log_level.upper())


def configure_logging(log_level: str = "info", stream=None) -> None:
    """Configure structured logging for an application that owns its output."""

    # Configure structlog
    _configure_structlog()

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=_level(log_level),
    )
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(_level(log_level))


def configure_library_logging(log_level: Optional[str] = None) -> None:
    """Route codec events through the standard library without installing handlers."""
    if log_level is None:
        log_level = get_config().log_level
    _configure_structlog()
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(_level(log_level))


def add_component_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add component context to log events."""
    # Extract component from logger name
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["component"] = logger_name.split(".")[0]

    return event_dict


def add_rule_set_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the rule set and operation being processed to log events."""
    rule_set = rule_set_var.get()
    if rule_set:
        event_dict["rule_set"] = rule_set

    operation = operation_var.get()
    if operation:
        event_dict["operation"] = operation

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add high-precision timestamp to log events."""
    event_dict["timestamp"] = time.time()
    return event_dict


def set_rule_set_context(rule_set: Optional[str] = None, operation: Optional[str] = None) -> List[Token]:
    """Set rule set context in logging; returns tokens for ``reset_context``."""
    tokens = []
    if rule_set:
        tokens.append(rule_set_var.set(rule_set))
    if operation:
        tokens.append(operation_var.set(operation))
    return tokens


def reset_context(tokens: List[Token]) -> None:
    """Restore the context that was bound before the matching ``set_rule_set_context``."""
    for token in reversed(tokens):
        token.var.reset(token)


def clear_context():
    """Clear all context variables."""
    rule_set_var.set(None)
    operation_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    if not structlog.is_configured():
        configure_library_logging()
    return structlog.get_logger(name)
