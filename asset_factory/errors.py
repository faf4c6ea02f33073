"""
Error taxonomy for the asset factory.
Every failure surfaced to callers is one of a small, closed set of kinds.
"""

from enum import Enum
from typing import Dict, Any, Optional


class ErrorKind(str, Enum):
    """Closed set of failure kinds reported by the factory."""
    SAFETY_REJECTION = "SafetyRejection"
    RATE_LIMITED = "RateLimited"
    BILLING_REQUIRED = "BillingRequired"
    INVALID_INPUT = "InvalidInput"
    NO_OUTPUT_DATA = "NoOutputData"
    STORE_UNAVAILABLE = "StoreUnavailable"
    UNKNOWN = "Unknown"


class AssetFactoryError(Exception):
    """Base exception for classified factory errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None, recoverable: bool = False):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "detail": self.detail,
            "recoverable": self.recoverable,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class SafetyRejectionError(AssetFactoryError):
    """Output withheld by the provider for policy reasons."""

    kind = ErrorKind.SAFETY_REJECTION

    def __init__(self, message: str, ratings: Optional[list] = None):
        super().__init__(message, {"ratings": list(ratings or [])}, recoverable=False)

    @property
    def ratings(self) -> list:
        return self.detail["ratings"]


class RateLimitedError(AssetFactoryError):
    """Provider quota exhausted; the caller may try again later."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = "Request limit reached. Please try again later.",
                 detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail, recoverable=True)


class BillingRequiredError(AssetFactoryError):
    """Image generation requires a billed provider account."""

    kind = ErrorKind.BILLING_REQUIRED


class InvalidInputError(AssetFactoryError):
    """Malformed caller data (unknown category, bad image, unparseable JSON...)."""

    kind = ErrorKind.INVALID_INPUT


class NoOutputDataError(AssetFactoryError):
    """Provider responded without any generated media or text."""

    kind = ErrorKind.NO_OUTPUT_DATA


class StoreUnavailableError(AssetFactoryError):
    """Local asset store cannot be used for the rest of the session."""

    kind = ErrorKind.STORE_UNAVAILABLE


class UnknownProviderError(AssetFactoryError):
    """Any provider failure not covered by a more specific kind."""

    kind = ErrorKind.UNKNOWN


ERROR_CLASSES = {
    cls.kind: cls for cls in (
        SafetyRejectionError,
        RateLimitedError,
        BillingRequiredError,
        InvalidInputError,
        NoOutputDataError,
        StoreUnavailableError,
        UnknownProviderError,
    )
}


class GateBusy(Exception):
    """Raised when the generation gate is already held. Not a generation failure."""


class ConfigurationError(Exception):
    """Raised when factory or provider configuration is invalid."""

    def __init__(self, message: str, provider: str = "factory"):
        super().__init__(f"Configuration error: {message}")
        self.provider = provider
