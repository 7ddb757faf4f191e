"""
Decision Engine for ACME ownership status interpretation.

The platform reports two vocabularies: the domain's ownership status
(required / completed / not_required / unavailable) and the status of the
backend's asynchronous preprovision attempt (success / failed / in_progress).
This module interprets the first before any challenge work happens and
translates the second into a state of the verification state machine.

Rules:
- completed / not_required: nothing to do, no challenge is meaningful
- unavailable with a message: fail immediately with exactly that message
- required: challenge data must be present, anything else is inconsistent
- any other status: inconsistent with what the API documents
"""

from typing import Optional, Union

from .enums import (
    ChallengeType,
    ErrorCode,
    EvaluationAction,
    OwnershipStatus,
    PreprovisionStatus,
    VerificationState,
)
from .exceptions import InconsistentStateError, VerificationFailedError
from .models import ChallengeData, DomainStatus, OwnershipEvaluation, PreprovisionResult


PREPROVISION_TRANSITIONS = {
    PreprovisionStatus.SUCCESS: VerificationState.SUCCESS,
    PreprovisionStatus.FAILED: VerificationState.TRIGGERING,
    PreprovisionStatus.IN_PROGRESS: VerificationState.POLLING,
}


def preprovision_to_state(result: Optional[PreprovisionResult]) -> VerificationState:
    """
    Translate the backend's preprovision result into the next poller state.

    A missing result means the backend has not built the status object yet,
    which needs a fresh verification request just like a failed attempt.
    """
    if result is None:
        return VerificationState.TRIGGERING
    return PREPROVISION_TRANSITIONS[result.status]


def _status_label(status: Union[OwnershipStatus, str, None]) -> str:
    if isinstance(status, OwnershipStatus):
        return status.value
    return str(status)


class OwnershipDecision:
    """Interprets ownership status snapshots for the CLI commands and poller."""

    def evaluate(self, status: DomainStatus) -> OwnershipEvaluation:
        """
        Decide whether challenge work is needed for a status snapshot.

        Args:
            status: Freshly fetched status snapshot

        Returns:
            OwnershipEvaluation with NOTHING_TO_DO or CHALLENGE_REQUIRED

        Raises:
            VerificationFailedError: Status is unavailable with an explanation
            InconsistentStateError: Status is unknown, or required without challenges
        """
        domain = status.domain
        ownership = status.ownership
        if ownership is None:
            raise InconsistentStateError(
                code=ErrorCode.INCONSISTENT_STATE.value,
                message=f"No ownership status available for domain {domain}.",
                details={"domain": domain},
            )

        if ownership.status in (OwnershipStatus.COMPLETED, OwnershipStatus.NOT_REQUIRED):
            return OwnershipEvaluation(
                action=EvaluationAction.NOTHING_TO_DO,
                ownership_status=ownership.status,
            )

        if ownership.status == OwnershipStatus.UNAVAILABLE and ownership.message:
            raise VerificationFailedError(
                code=ErrorCode.UNAVAILABLE.value,
                message=ownership.message,
                details={"domain": domain},
            )

        if ownership.status != OwnershipStatus.REQUIRED:
            label = _status_label(ownership.status)
            raise InconsistentStateError(
                code=ErrorCode.UNIMPLEMENTED_STATUS.value,
                message=f"Unimplemented status {label} for domain {domain}.",
                details={"domain": domain, "status": label},
            )

        if not status.challenges:
            raise InconsistentStateError(
                code=ErrorCode.INCONSISTENT_STATE.value,
                message=f"No challenge information currently available for domain {domain}.",
                details={"domain": domain},
            )

        return OwnershipEvaluation(
            action=EvaluationAction.CHALLENGE_REQUIRED,
            ownership_status=ownership.status,
            challenges=dict(status.challenges),
        )

    def required_challenge(
        self,
        status: DomainStatus,
        challenge_type: ChallengeType,
    ) -> Optional[ChallengeData]:
        """
        Return the challenge of the requested type, or None if nothing is to do.

        Raises:
            InconsistentStateError: If verification is required but this
                challenge type is absent
        """
        evaluation = self.evaluate(status)
        if evaluation.action == EvaluationAction.NOTHING_TO_DO:
            return None

        challenge = evaluation.challenges.get(challenge_type)
        if challenge is None:
            raise InconsistentStateError(
                code=ErrorCode.INCONSISTENT_STATE.value,
                message=(
                    f"No {challenge_type.value} challenge information available "
                    f"for domain {status.domain}."
                ),
                details={"domain": status.domain, "challenge_type": challenge_type.value},
            )
        return challenge

    def summary_key(self, status: DomainStatus) -> str:
        """i18n key of the one-line HTTPS status summary for a domain."""
        ownership = status.ownership
        if ownership is None:
            return "status.unknown"
        if ownership.status == OwnershipStatus.REQUIRED:
            return "status.required"
        if ownership.status == OwnershipStatus.COMPLETED:
            return "status.completed"
        if ownership.status == OwnershipStatus.NOT_REQUIRED:
            return "status.not_required"
        if ownership.status == OwnershipStatus.UNAVAILABLE:
            return "status.unavailable"
        return "status.unknown"

    @staticmethod
    def status_label(status: DomainStatus) -> str:
        if status.ownership is None:
            return "none"
        return _status_label(status.ownership.status)
