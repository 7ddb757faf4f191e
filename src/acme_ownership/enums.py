"""
Enumeration types for the ACME ownership verifier.

The platform API reports two separate status vocabularies: the top-level
ownership status of a domain and the status of the backend's asynchronous
preprovision attempt. They are kept as distinct enums here and bridged by
``decision_engine.preprovision_to_state``.
"""

from enum import Enum


class OwnershipStatus(Enum):
    """Top-level HTTPS ownership status of a domain."""

    REQUIRED = "required"
    COMPLETED = "completed"
    NOT_REQUIRED = "not_required"
    UNAVAILABLE = "unavailable"


class PreprovisionStatus(Enum):
    """Status of the backend's asynchronous verification attempt."""

    SUCCESS = "success"
    FAILED = "failed"
    IN_PROGRESS = "in_progress"


class ChallengeType(Enum):
    """ACME challenge types supported by the platform."""

    HTTP_01 = "http-01"
    DNS_01 = "dns-01"


class VerificationState(Enum):
    """States of the verification polling state machine."""

    UNVERIFIED = "unverified"
    TRIGGERING = "triggering"
    POLLING = "polling"
    SUCCESS = "success"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (
            VerificationState.SUCCESS,
            VerificationState.FAILED,
            VerificationState.TIMED_OUT,
        )


class EvaluationAction(Enum):
    """What the caller should do after interpreting the ownership status."""

    NOTHING_TO_DO = "nothing_to_do"
    CHALLENGE_REQUIRED = "challenge_required"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class DomainValidationErrorCode(Enum):
    """Error codes for domain input validation failures."""

    FORBIDDEN_CHARS = "forbidden_chars"
    MISSING_DOT = "missing_dot"
    IDNA_ERROR = "idna_error"
    EMPTY_INPUT = "empty_input"


class ErrorCode(Enum):
    """Error codes carried by exceptions raised during verification."""

    NOT_FOUND = "not_found"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    TLS_ERROR = "tls_error"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
    STATUS_UNAVAILABLE = "status_unavailable"
    INCONSISTENT_STATE = "inconsistent_state"
    UNIMPLEMENTED_STATUS = "unimplemented_status"
    UNAVAILABLE = "unavailable"
    VERIFICATION_FAILED = "verification_failed"
    CANCELLED = "cancelled"
    INVALID_INPUT = "invalid_input"
