"""
Symbol Service Error Model

Structured errors raised by the service layers. Ledger-reported transaction
failures are not exceptions: they travel as ``TxResult`` values.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """Error codes used across the service layers."""

    # General errors (1-99)
    UNKNOWN = 1
    NOT_FOUND = 4

    # Configuration errors (100-199)
    CONFIGURATION_ERROR = 100
    INVALID_BATCH_SIZE = 101
    INVALID_OPERATIONS = 102
    VERSION_MISMATCH = 103
    INVALID_CONFIG = 104
    ENCODING_ERROR = 110

    # Network errors (200-299)
    NETWORK_ERROR = 200
    HTTP_ERROR = 201
    LISTENER_ERROR = 202

    # Signing errors (300-399)
    SIGNING_ERROR = 300
    HASH_MISMATCH = 301
    INVALID_KEY = 302
    MISSING_SIGNATURE = 303

    # Cast errors (400-499)
    CAST_FAILED = 401


class SymbolServiceError(Exception):
    """
    Base class for all service errors.

    Carries a code, a message, optional details and the underlying cause.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SymbolServiceError':
        """Create error from dictionary representation."""
        try:
            code = ErrorCode(data.get("code", ErrorCode.UNKNOWN))
        except ValueError:
            code = ErrorCode.UNKNOWN
        return cls(data.get("message", "Unknown error"), code, data.get("details"))


class ConfigurationError(SymbolServiceError):
    """Caller supplied inputs the network or the service cannot accept. Never retried."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class EncodingError(ConfigurationError):
    """Malformed payload or persisted record."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.ENCODING_ERROR, details, cause)


class NetworkError(SymbolServiceError):
    """Transport failures talking to the node."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NETWORK_ERROR, details, cause)


class HttpError(NetworkError):
    """Non-success HTTP response from the REST gateway."""

    def __init__(self, message: str, status: int, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, details, cause)
        self.code = ErrorCode.HTTP_ERROR
        self.status = status


class ListenerError(NetworkError):
    """Event stream failures (connect, subscribe, connection loss)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, details, cause)
        self.code = ErrorCode.LISTENER_ERROR


class SigningError(SymbolServiceError):
    """Key material or signature/hash invariants are broken."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.SIGNING_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class CastError(SymbolServiceError):
    """No life of an undead transaction could be cast."""

    def __init__(self, message: str = "Couldn't cast signed transaction.",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.CAST_FAILED, details, cause)


def error_from_status(status: int, body: Any, url: str) -> SymbolServiceError:
    """
    Create an appropriate error from a failed REST response.

    Args:
        status: HTTP status code
        body: Decoded response body (dict or text)
        url: Requested URL

    Returns:
        Error instance describing the failure
    """
    message = f"HTTP {status}"
    details: Dict[str, Any] = {"url": url}
    if isinstance(body, dict):
        # Gateway errors come as {"code": "...", "message": "..."}
        if body.get("message"):
            message = f"HTTP {status}: {body['message']}"
        if body.get("code"):
            details["code"] = body["code"]
    elif body:
        details["body"] = str(body)[:200]

    return HttpError(message, status, details)


__all__ = [
    "ErrorCode",
    "SymbolServiceError",
    "ConfigurationError",
    "EncodingError",
    "NetworkError",
    "HttpError",
    "ListenerError",
    "SigningError",
    "CastError",
    "error_from_status",
]
