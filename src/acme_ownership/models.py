"""
Data models for the ACME ownership verifier.

This module defines the typed snapshot of a domain's verification status as
returned by the platform API, the challenge artifacts presented to the user,
and the result objects produced by the verification poller.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from .enums import (
    ChallengeType,
    EvaluationAction,
    OwnershipStatus,
    PreprovisionStatus,
    VerificationState,
)


@dataclass(frozen=True)
class ChallengeData:
    """The artifact needed to prove ownership for one challenge type."""

    token: Optional[str] = None  # http-01 file name
    verification_key: Optional[str] = None  # URL path (http-01) or record name (dns-01)
    verification_value: Optional[str] = None  # file contents or TXT data


@dataclass(frozen=True)
class ProblemDetail:
    """Rich diagnostic attached to a failed verification attempt."""

    title: Optional[str] = None
    detail: Optional[str] = None
    action_item: Optional[str] = None
    problem_type: Optional[str] = None
    raw_detail: Optional[str] = None
    docs_link: Optional[str] = None
    support_reference: Optional[str] = None

    @property
    def has_raw_result(self) -> bool:
        return bool(self.problem_type or self.raw_detail)


@dataclass(frozen=True)
class PreprovisionResult:
    """Backend-side record of the asynchronous verification attempt."""

    status: PreprovisionStatus
    last_problem: Optional[ProblemDetail] = None


@dataclass(frozen=True)
class OwnershipInfo:
    """
    Top-level ownership block of a status response.

    ``status`` is an OwnershipStatus when the API sent a known value and the
    raw string otherwise, so that unexpected values can still be reported.
    """

    status: Union[OwnershipStatus, str]
    message: Optional[str] = None
    preprovision_result: Optional[PreprovisionResult] = None


@dataclass(frozen=True)
class DomainStatus:
    """Read-only snapshot returned by the status endpoint."""

    domain: str
    ownership: Optional[OwnershipInfo]
    challenges: dict[ChallengeType, ChallengeData] = field(default_factory=dict)

    @property
    def preprovision_result(self) -> Optional[PreprovisionResult]:
        if self.ownership is None:
            return None
        return self.ownership.preprovision_result

    def challenge_for(self, challenge_type: ChallengeType) -> Optional[ChallengeData]:
        return self.challenges.get(challenge_type)

    def verification_value_for(self, challenge_type: ChallengeType) -> Optional[str]:
        challenge = self.challenge_for(challenge_type)
        if challenge is None:
            return None
        return challenge.verification_value


@dataclass(frozen=True)
class HttpChallengeArtifact:
    """Displayable http-01 challenge: a file and where it must be served."""

    filename: str
    contents: str
    url_path: str

    def url_for(self, domain: str) -> str:
        """URL the file must be reachable at."""
        return f"http://{domain}{self.url_path}"


@dataclass(frozen=True)
class DnsTxtRecord:
    """Displayable dns-01 challenge: the zone-file line and its parts."""

    record_line: str
    record_fields: dict[str, str]


@dataclass
class OwnershipEvaluation:
    """Result of interpreting a status snapshot before any challenge work."""

    action: EvaluationAction
    ownership_status: Union[OwnershipStatus, str, None]
    challenges: dict[ChallengeType, ChallengeData] = field(default_factory=dict)


@dataclass
class ChallengeChange:
    """The backend rotated the challenge while verification was running."""

    challenge_type: ChallengeType
    previous_value: Optional[str]
    current_value: Optional[str]
    dns_record: Optional[DnsTxtRecord] = None


@dataclass
class FailureReport:
    """Diagnostics surfaced when verification ends in FAILED or TIMED_OUT."""

    domain: str
    challenge_type: ChallengeType
    state: VerificationState
    docs_link: str
    problem: Optional[ProblemDetail] = None
    support_reference: Optional[str] = None
    attempts: int = 0
    unavailable_message: Optional[str] = None
    challenge_change: Optional[ChallengeChange] = None


@dataclass
class VerificationOutcome:
    """Non-failing result of a verification session."""

    domain: str
    challenge_type: ChallengeType
    state: VerificationState
    noop: bool = False
    ownership_status: Union[OwnershipStatus, str, None] = None
    triggered: bool = False
    attempts: int = 0
    fetch_failures: int = 0
