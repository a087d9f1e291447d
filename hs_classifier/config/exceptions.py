"""Custom exceptions for the HS code classifier."""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure classes produced by the lower layers.

    Retry and display decisions switch on this, never on message text.
    """

    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    SERVICE = "service"
    RESPONSE = "response"
    DATABASE = "database"
    NOT_FOUND = "not_found"
    CONFIG = "config"


class ClassifierError(Exception):
    """Base exception for classifier errors. Raise this instead of sys.exit(1)."""

    kind: ErrorKind = ErrorKind.SERVICE

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class ConfigurationError(ClassifierError):
    """Required configuration is missing or unusable."""

    kind = ErrorKind.CONFIG

    def __init__(self, message: str, component: str):
        super().__init__(message)
        self.component = component


class MalformedResponse(ClassifierError):
    """No parseable JSON object found in the completion text."""

    kind = ErrorKind.RESPONSE


class IncompleteClassification(ClassifierError):
    """JSON parsed, but hsCode, chapter or description is missing."""

    kind = ErrorKind.RESPONSE


class EmptyPortfolio(ClassifierError):
    """JSON parsed, but the product list is absent or empty."""

    kind = ErrorKind.RESPONSE


class ClassificationFailed(ClassifierError):
    """The completion service call itself failed (network, auth, rate limit)."""


class StoreOperationFailed(ClassifierError):
    """A persistence gateway operation failed (after retries, where applicable)."""

    kind = ErrorKind.DATABASE

    def __init__(self, operation: str, message: str, kind: ErrorKind | None = None):
        super().__init__(f"Failed to {operation}: {message}", kind)
        self.operation = operation


__all__ = [
    "ErrorKind",
    "ClassifierError",
    "ConfigurationError",
    "MalformedResponse",
    "IncompleteClassification",
    "EmptyPortfolio",
    "ClassificationFailed",
    "StoreOperationFailed",
]
