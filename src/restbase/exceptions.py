"""Exception hierarchy for restbase.

All exceptions raised by restbase itself inherit from
:class:`RestClientError`.  Network failures are *not* wrapped: errors from
the transport (:class:`httpx.TransportError` and its subclasses) reach the
caller unchanged, so callers can tell a connection problem apart from a
deadline or a bad payload.

Subclass hierarchy::

    RestClientError
    +-- ConfigError           invalid base URL or timeout at construction
    +-- ClientClosedError     call made after close() / aclose()
    +-- RequestTimeoutError   configured per-call deadline elapsed
    +-- CodecError
        +-- EncodeError       request value is not JSON-serialisable
        +-- DecodeError       malformed JSON or shape mismatch
            +-- NullStreamError   decoding attempted against an absent body
"""

from __future__ import annotations


class RestClientError(Exception):
    """Base exception for all restbase errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(RestClientError):
    """Raised when a client is constructed with an empty or malformed base URL or a bad timeout."""


class ClientClosedError(RestClientError):
    """Raised when a request is issued through a client that has been closed."""


class RequestTimeoutError(RestClientError, TimeoutError):
    """Raised when the client's configured timeout elapses before response headers arrive.

    Also a :class:`TimeoutError`, so generic timeout handling keeps
    working.  Transport-level timeouts raised by httpx itself are not
    converted to this type.

    Args:
        message: Human-readable error description.
        timeout: The deadline, in seconds, that was exceeded.
    """

    def __init__(self, message: str, timeout: float):
        super().__init__(message)
        self.timeout = timeout


class CodecError(RestClientError):
    """Base class for JSON encoding and decoding failures."""


class EncodeError(CodecError):
    """Raised when a request body cannot be serialised to JSON."""


class DecodeError(CodecError):
    """Raised when a body is not valid JSON or does not match the requested type."""


class NullStreamError(DecodeError):
    """Raised when decoding is attempted against an absent or empty body."""
