"""
Verification poller: the ownership verification state machine.

States: UNVERIFIED -> TRIGGERING -> POLLING -> {SUCCESS, FAILED, TIMED_OUT}

1. Fetch the current status. completed / not_required end the session
   without any request to the backend, and so does a required status that
   lacks the requested challenge type.
2. The preprovision result decides the entry point: success ends the
   session, failed (or no result yet) triggers verification once, and
   in_progress goes straight to polling.
3. Polling waits a fixed interval before each fetch. Transport failures and
   snapshots without a preprovision result are tolerated up to separate
   budgets; each still consumes a polling slot.
4. FAILED and TIMED_OUT are reported from the last-known snapshot, including
   whether the backend rotated the challenge since the session started.
"""

from dataclasses import dataclass
from typing import Optional

from .audit_logger import AuditLogger
from .challenge_formatter import format_dns_txt_challenge
from .clock import CancellationToken, Clock, SystemClock
from .config import DEFAULT_DOCS_LINK, PollingConfig
from .decision_engine import OwnershipDecision, preprovision_to_state
from .enums import (
    ChallengeType,
    ErrorCode,
    OwnershipStatus,
    PreprovisionStatus,
    VerificationState,
)
from .exceptions import (
    NotFoundError,
    TransportError,
    VerificationCancelledError,
    VerificationFailedError,
)
from .models import ChallengeChange, DomainStatus, FailureReport, VerificationOutcome
from .registry import RegistryHandle
from .status_client import StatusClient
from .verification_trigger import VerificationTrigger


@dataclass
class PollResult:
    """How the polling phase ended."""

    state: VerificationState
    last_status: DomainStatus
    attempts: int
    fetch_failures: int
    missing_results: int


class VerificationPoller:
    """
    Drives one ownership verification session per verify() call.

    No state is shared between calls; every session owns its counters.
    """

    COMPONENT = "poller"

    def __init__(
        self,
        status_client: StatusClient,
        trigger: VerificationTrigger,
        config: Optional[PollingConfig] = None,
        clock: Optional[Clock] = None,
        decision_engine: Optional[OwnershipDecision] = None,
        docs_link: str = DEFAULT_DOCS_LINK,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the poller.

        Args:
            status_client: Client used for every status fetch
            trigger: Client used to start backend verification
            config: Polling budget (interval, attempts, failure budgets)
            clock: Clock used for waiting between polls
            decision_engine: Ownership status interpreter
            docs_link: Help link used when the backend supplies none
            logger: Optional logger
        """
        self._status_client = status_client
        self._trigger = trigger
        self._config = config or PollingConfig()
        self._clock = clock or SystemClock()
        self._decision_engine = decision_engine or OwnershipDecision()
        self._docs_link = docs_link
        self._logger = logger

    @property
    def config(self) -> PollingConfig:
        return self._config

    def verify(
        self,
        registry: RegistryHandle,
        domain: str,
        challenge_type: ChallengeType,
        cancel_token: Optional[CancellationToken] = None,
    ) -> VerificationOutcome:
        """
        Run a verification session to a terminal state.

        Args:
            registry: Registry handle of the site environment
            domain: Canonical domain name
            challenge_type: Challenge the user has put in place
            cancel_token: Optional token to stop polling early

        Returns:
            VerificationOutcome in state SUCCESS (noop=True if nothing was needed)

        Raises:
            NotFoundError: The domain is not registered on the environment
            TransportError: Transport failures exceeded the polling budget
            InconsistentStateError: The status contradicts its own data
            VerificationFailedError: Verification failed or timed out
            VerificationCancelledError: The token was cancelled while polling
        """
        state = VerificationState.UNVERIFIED
        self._log_state(domain, state)

        try:
            status = self._status_client.fetch(registry, domain)
        except NotFoundError as e:
            raise self._missing_domain(domain, e) from e

        ownership_status = status.ownership.status if status.ownership else None

        # Without an ownership block the backend has not built the status
        # object yet; verification is started regardless. The same holds for
        # an unavailable status that carries no explanation.
        if status.ownership is not None and not self._unexplained_unavailable(status):
            challenge = self._decision_engine.required_challenge(status, challenge_type)
            if challenge is None:
                self._info("Nothing to verify", domain, {
                    "ownership_status": self._decision_engine.status_label(status),
                })
                return VerificationOutcome(
                    domain=domain,
                    challenge_type=challenge_type,
                    state=VerificationState.SUCCESS,
                    noop=True,
                    ownership_status=ownership_status,
                )

        baseline = status.verification_value_for(challenge_type)
        state = preprovision_to_state(status.preprovision_result)
        self._log_state(domain, state)

        if state == VerificationState.SUCCESS:
            return VerificationOutcome(
                domain=domain,
                challenge_type=challenge_type,
                state=state,
                ownership_status=ownership_status,
            )

        triggered = False
        if state == VerificationState.TRIGGERING:
            self._start_verification(registry, domain, challenge_type)
            triggered = True
            state = VerificationState.POLLING
            self._log_state(domain, state)

        result = self._poll(registry, domain, status, cancel_token)
        self._log_state(domain, result.state, {
            "attempts": result.attempts,
            "fetch_failures": result.fetch_failures,
        })

        if result.state == VerificationState.SUCCESS:
            last = result.last_status
            return VerificationOutcome(
                domain=domain,
                challenge_type=challenge_type,
                state=result.state,
                ownership_status=last.ownership.status if last.ownership else None,
                triggered=triggered,
                attempts=result.attempts,
                fetch_failures=result.fetch_failures,
            )

        report = self.build_failure_report(
            domain, challenge_type, result.state, result.last_status, baseline,
            attempts=result.attempts,
        )
        raise VerificationFailedError(
            code=ErrorCode.VERIFICATION_FAILED.value,
            message="Ownership verification was not successful.",
            report=report,
            state=result.state,
            details={
                "domain": domain,
                "challenge_type": challenge_type.value,
                "attempts": result.attempts,
                "triggered": triggered,
            },
        )

    def _start_verification(
        self,
        registry: RegistryHandle,
        domain: str,
        challenge_type: ChallengeType,
    ) -> None:
        try:
            self._trigger.start(registry, domain, challenge_type)
        except NotFoundError as e:
            raise self._missing_domain(domain, e) from e

    def _poll(
        self,
        registry: RegistryHandle,
        domain: str,
        status: DomainStatus,
        cancel_token: Optional[CancellationToken],
    ) -> PollResult:
        config = self._config
        last_status = status
        fetch_failures = 0
        missing_results = 0
        deadline = None
        if config.deadline_seconds is not None:
            deadline = self._clock.monotonic() + config.deadline_seconds

        attempt = 0
        for attempt in range(1, config.max_attempts + 1):
            if not self._clock.sleep(config.interval_seconds, cancel_token):
                reason = cancel_token.reason if cancel_token else None
                raise VerificationCancelledError(
                    code=ErrorCode.CANCELLED.value,
                    message="Ownership verification was cancelled.",
                    details={"domain": domain, "attempt": attempt, "reason": reason},
                )
            if deadline is not None and self._clock.monotonic() >= deadline:
                self._warn("Polling deadline reached", domain, {"attempt": attempt})
                return PollResult(
                    VerificationState.TIMED_OUT, last_status, attempt - 1,
                    fetch_failures, missing_results,
                )

            try:
                current = self._status_client.fetch(registry, domain)
            except TransportError as e:
                fetch_failures += 1
                self._warn("Status fetch failed", domain, {
                    "attempt": attempt,
                    "fetch_failures": fetch_failures,
                    "error": e.message,
                })
                if fetch_failures > config.max_fetch_failures:
                    raise
                continue

            last_status = current
            preprovision = current.preprovision_result
            if preprovision is None:
                missing_results += 1
                self._warn("Status has no preprovision result", domain, {
                    "attempt": attempt,
                    "missing_results": missing_results,
                })
                if missing_results > config.max_missing_results:
                    raise TransportError(
                        code=ErrorCode.STATUS_UNAVAILABLE.value,
                        message=(
                            "Due to an error, we are temporarily unable to "
                            "verify domain ownership."
                        ),
                        details={"domain": domain, "attempt": attempt},
                    )
                continue

            if self._logger:
                self._logger.debug(self.COMPONENT, "Polled preprovision status", {
                    "domain": domain,
                    "attempt": attempt,
                    "status": preprovision.status.value,
                })

            if preprovision.status == PreprovisionStatus.SUCCESS:
                return PollResult(
                    VerificationState.SUCCESS, current, attempt,
                    fetch_failures, missing_results,
                )
            if preprovision.status == PreprovisionStatus.FAILED:
                return PollResult(
                    VerificationState.FAILED, current, attempt,
                    fetch_failures, missing_results,
                )

        return PollResult(
            VerificationState.TIMED_OUT, last_status, attempt,
            fetch_failures, missing_results,
        )

    def build_failure_report(
        self,
        domain: str,
        challenge_type: ChallengeType,
        state: VerificationState,
        last_status: DomainStatus,
        baseline: Optional[str],
        attempts: int = 0,
    ) -> FailureReport:
        """
        Collect diagnostics for a failed or timed out session.

        Uses only the last-known snapshot; nothing is re-fetched.
        """
        preprovision = last_status.preprovision_result
        problem = preprovision.last_problem if preprovision else None

        docs_link = self._docs_link
        support_reference = None
        if problem is not None:
            docs_link = problem.docs_link or docs_link
            support_reference = problem.support_reference

        unavailable_message = None
        ownership = last_status.ownership
        if (
            ownership is not None
            and ownership.status == OwnershipStatus.UNAVAILABLE
            and ownership.message
        ):
            unavailable_message = ownership.message

        challenge_change = None
        if last_status.challenges:
            current_value = last_status.verification_value_for(challenge_type)
            if current_value != baseline:
                dns_record = None
                challenge = last_status.challenge_for(challenge_type)
                if (
                    challenge_type == ChallengeType.DNS_01
                    and challenge is not None
                    and challenge.verification_key
                    and challenge.verification_value
                ):
                    dns_record = format_dns_txt_challenge(domain, challenge)
                challenge_change = ChallengeChange(
                    challenge_type=challenge_type,
                    previous_value=baseline,
                    current_value=current_value,
                    dns_record=dns_record,
                )

        return FailureReport(
            domain=domain,
            challenge_type=challenge_type,
            state=state,
            docs_link=docs_link,
            problem=problem,
            support_reference=support_reference,
            attempts=attempts,
            unavailable_message=unavailable_message,
            challenge_change=challenge_change,
        )

    @staticmethod
    def _unexplained_unavailable(status: DomainStatus) -> bool:
        ownership = status.ownership
        return ownership.status == OwnershipStatus.UNAVAILABLE and not ownership.message

    @staticmethod
    def _missing_domain(domain: str, error: NotFoundError) -> NotFoundError:
        return NotFoundError(
            code=ErrorCode.NOT_FOUND.value,
            message="Cannot verify challenge for missing domain.",
            details={"domain": domain, **error.details},
        )

    def _log_state(self, domain: str, state: VerificationState, data: Optional[dict] = None) -> None:
        self._info(f"State {state.value}", domain, data or {})

    def _info(self, message: str, domain: str, data: dict) -> None:
        if self._logger:
            self._logger.info(self.COMPONENT, message, {"domain": domain, **data})

    def _warn(self, message: str, domain: str, data: dict) -> None:
        if self._logger:
            self._logger.warn(self.COMPONENT, message, {"domain": domain, **data})
