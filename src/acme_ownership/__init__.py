"""
ACME Ownership - domain ownership verification for platform-hosted domains.

This package fetches a domain's ACME verification status from the platform
API, renders the http-01 or dns-01 challenge the user has to put in place,
triggers backend verification and polls until it succeeds or fails.
"""

__version__ = "0.1.0"
__author__ = "ACME Ownership Team"

from acme_ownership.exceptions import (
    AcmeOwnershipError,
    ValidationError,
    RequestError,
    NotFoundError,
    TransportError,
    ProtocolError,
    InconsistentStateError,
    VerificationFailedError,
    VerificationCancelledError,
)
from acme_ownership.enums import (
    OwnershipStatus,
    PreprovisionStatus,
    ChallengeType,
    VerificationState,
    EvaluationAction,
    LogLevel,
    DomainValidationErrorCode,
    ErrorCode,
)
from acme_ownership.config import (
    ApiConfig,
    PollingConfig,
    LoggingConfig,
    SystemConfig,
)
from acme_ownership.models import (
    ChallengeData,
    ProblemDetail,
    PreprovisionResult,
    OwnershipInfo,
    DomainStatus,
    HttpChallengeArtifact,
    DnsTxtRecord,
    OwnershipEvaluation,
    ChallengeChange,
    FailureReport,
    VerificationOutcome,
)
from acme_ownership.domain_validator import (
    DomainValidator,
    DomainValidationResult,
    DomainValidationError,
    parse_site_env,
)
from acme_ownership.audit_logger import (
    AuditLogger,
    LogEntry,
)
from acme_ownership.registry import (
    RegistryHandle,
    DomainRegistry,
)
from acme_ownership.status_client import (
    StatusClient,
    parse_domain_status,
)
from acme_ownership.verification_trigger import (
    VerificationTrigger,
)
from acme_ownership.challenge_formatter import (
    format_http_challenge,
    format_dns_txt_challenge,
)
from acme_ownership.decision_engine import (
    OwnershipDecision,
    preprovision_to_state,
)
from acme_ownership.clock import (
    CancellationToken,
    Clock,
    SystemClock,
)
from acme_ownership.poller import (
    VerificationPoller,
    PollResult,
)
from acme_ownership.i18n import (
    get_message,
    get_all_message_keys,
    has_translation,
    get_missing_translations,
    validate_translations,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)
from acme_ownership.cli import (
    main as cli_main,
    create_parser,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Exceptions
    "AcmeOwnershipError",
    "ValidationError",
    "RequestError",
    "NotFoundError",
    "TransportError",
    "ProtocolError",
    "InconsistentStateError",
    "VerificationFailedError",
    "VerificationCancelledError",
    # Enums
    "OwnershipStatus",
    "PreprovisionStatus",
    "ChallengeType",
    "VerificationState",
    "EvaluationAction",
    "LogLevel",
    "DomainValidationErrorCode",
    "ErrorCode",
    # Configuration
    "ApiConfig",
    "PollingConfig",
    "LoggingConfig",
    "SystemConfig",
    # Models
    "ChallengeData",
    "ProblemDetail",
    "PreprovisionResult",
    "OwnershipInfo",
    "DomainStatus",
    "HttpChallengeArtifact",
    "DnsTxtRecord",
    "OwnershipEvaluation",
    "ChallengeChange",
    "FailureReport",
    "VerificationOutcome",
    # Domain Validator
    "DomainValidator",
    "DomainValidationResult",
    "DomainValidationError",
    "parse_site_env",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Registry
    "RegistryHandle",
    "DomainRegistry",
    # Status Client
    "StatusClient",
    "parse_domain_status",
    # Verification Trigger
    "VerificationTrigger",
    # Challenge Formatter
    "format_http_challenge",
    "format_dns_txt_challenge",
    # Decision Engine
    "OwnershipDecision",
    "preprovision_to_state",
    # Clock
    "CancellationToken",
    "Clock",
    "SystemClock",
    # Poller
    "VerificationPoller",
    "PollResult",
    # I18n
    "get_message",
    "get_all_message_keys",
    "has_translation",
    "get_missing_translations",
    "validate_translations",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    # CLI
    "cli_main",
    "create_parser",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
]
