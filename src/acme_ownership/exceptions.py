"""
Exception classes for the ACME ownership verifier.

All exceptions inherit from AcmeOwnershipError and provide structured
error information with codes, messages, and optional details.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .enums import VerificationState
    from .models import FailureReport


class AcmeOwnershipError(Exception):
    """Base exception for all ownership verifier errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AcmeOwnershipError):
    """Raised when command input (domain, site.env, config) is invalid."""

    pass


class RequestError(AcmeOwnershipError):
    """Raised by the registry handle when a request fails."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        super().__init__(code, message, details)
        self.status_code = status_code


class NotFoundError(AcmeOwnershipError):
    """Raised when the domain has not been added to the site and environment."""

    pass


class TransportError(AcmeOwnershipError):
    """Raised when a network or HTTP failure prevents talking to the API."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        super().__init__(code, message, details)
        self.status_code = status_code


class ProtocolError(TransportError):
    """Raised when the API answers with a payload that cannot be parsed."""

    pass


class InconsistentStateError(AcmeOwnershipError):
    """Raised when the reported status contradicts the data that came with it."""

    pass


class VerificationFailedError(AcmeOwnershipError):
    """Raised when ownership verification ends without success."""

    def __init__(
        self,
        code: str,
        message: str,
        report: Optional[FailureReport] = None,
        state: Optional[VerificationState] = None,
        details: Optional[dict] = None,
    ) -> None:
        super().__init__(code, message, details)
        self.report = report
        self.state = state


class VerificationCancelledError(AcmeOwnershipError):
    """Raised when the caller cancels an ongoing polling session."""

    pass
