"""
Shared error handling for the authorization rule codec.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class RuleCodecError(Exception):
    """Base exception for rule encoding and decoding."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidRule(RuleCodecError):
    """A rule value could not be constructed from the given fields."""

    def __init__(self, message: str = "Invalid rule", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_RULE", message, details)


class IdentifierTooLong(RuleCodecError):
    """Identifier does not fit its fixed-width field."""

    def __init__(self, identifier: str, width: int, details: Optional[Dict[str, Any]] = None):
        details = {"identifier": identifier, "width": width, **(details or {})}
        super().__init__(
            "IDENTIFIER_TOO_LONG",
            f"Identifier '{identifier}' exceeds {width} bytes",
            details
        )


class TruncatedInput(RuleCodecError):
    """Fewer bytes remain than a field or declared length requires."""

    def __init__(self, message: str = "Truncated input", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRUNCATED_INPUT", message, details)


class UnknownVariantTag(RuleCodecError):
    """Tag is absent from the variant table."""

    def __init__(self, tag: int, details: Optional[Dict[str, Any]] = None):
        self.tag = tag
        details = {"tag": tag, **(details or {})}
        super().__init__("UNKNOWN_VARIANT_TAG", f"Unknown variant tag {tag}", details)


class MalformedPayload(RuleCodecError):
    """Payload does not match the layout its kind expects."""

    def __init__(self, message: str = "Malformed payload", details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_PAYLOAD", message, details)


class FramingMismatch(RuleCodecError):
    """Composite length disagrees with the sub-rules it contains."""

    def __init__(self, message: str = "Framing mismatch", details: Optional[Dict[str, Any]] = None):
        super().__init__("FRAMING_MISMATCH", message, details)


class TrailingBytes(RuleCodecError):
    """Bytes remain after a complete top-level parse."""

    def __init__(self, remaining: int, details: Optional[Dict[str, Any]] = None):
        details = {"remaining": remaining, **(details or {})}
        super().__init__("TRAILING_BYTES", f"{remaining} trailing bytes after rule", details)


class RuleTreeTooDeep(RuleCodecError):
    """Rule nesting exceeds the configured depth bound."""

    def __init__(self, max_depth: int, details: Optional[Dict[str, Any]] = None):
        details = {"max_depth": max_depth, **(details or {})}
        super().__init__("RULE_TREE_TOO_DEEP", f"Rule tree deeper than {max_depth}", details)
