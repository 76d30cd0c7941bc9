"""
Typed failures raised by the matching core.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure taxonomy shared by providers, parser and runner."""

    MISSING_CREDENTIAL = "MissingCredential"
    INVALID_KEY = "InvalidKey"
    RATE_LIMITED = "RateLimited"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    TIMEOUT = "Timeout"
    PROVIDER_ERROR = "ProviderError"
    UNPARSABLE_RESPONSE = "UnparsableResponse"
    NO_PROFILE = "NoProfile"
    JOB_NOT_FOUND = "JobNotFound"
    CATALOG_UNAVAILABLE = "CatalogUnavailable"


class JobMatchError(Exception):
    """Base error carrying an ErrorKind."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ProviderError(JobMatchError):
    """Failure talking to an upstream LLM provider."""
