"""Exceptions raised by cache codecs.

Decoding is the only operation that raises: a payload either has the
wrong format version or shape (FormatError), or is not well-formed text
at all (ParseError). Callers should treat both as "regenerate the cached
payload".
"""

from __future__ import annotations


class CodecError(Exception):
    """Base error for cache codec failures.

    Attributes:
        message: Error description.
        details: Additional error details.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        full_message = message
        if details:
            full_message = f"{message}\n  Details: {details}"
        super().__init__(full_message)


class FormatError(CodecError):
    """Payload is well-formed text but not a supported cache document."""


class ParseError(CodecError):
    """Payload text could not be parsed.

    The low-level parser exception is chained as ``__cause__``.
    """

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Failed to deserialize cache: {cause}")
        self.cause = cause
