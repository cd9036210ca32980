"""Runtime helpers for the Symbol service"""

from .errors import (
    ErrorCode, SymbolServiceError, ConfigurationError, EncodingError,
    NetworkError, HttpError, ListenerError, SigningError, CastError,
)

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
]
