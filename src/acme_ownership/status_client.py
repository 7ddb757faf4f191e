"""
Status client for ACME ownership verification.

Fetches the current ownership and challenge status of a domain from the
platform API and validates the loosely typed JSON payload into a
DomainStatus exactly once, at this boundary.

A 404 from the API means the domain has not been added to the site
environment and is reported as NotFoundError. Every other failure is a
TransportError. This client never retries; the verification poller owns
the retry budget.
"""

from typing import Any, Optional
from urllib.parse import quote

from .audit_logger import AuditLogger
from .enums import ChallengeType, ErrorCode, OwnershipStatus, PreprovisionStatus
from .exceptions import (
    AcmeOwnershipError,
    NotFoundError,
    ProtocolError,
    RequestError,
    TransportError,
)
from .models import (
    ChallengeData,
    DomainStatus,
    OwnershipInfo,
    PreprovisionResult,
    ProblemDetail,
)
from .registry import RegistryHandle


ACME_VERSION = "2"

# Wire names of ProblemDetail fields
PROBLEM_FIELDS = {
    "title": "PantheonTitle",
    "detail": "PantheonDetail",
    "action_item": "PantheonActionItem",
    "problem_type": "ProblemType",
    "raw_detail": "Detail",
    "docs_link": "PantheonDocsLink",
    "support_reference": "SupportReference",
}


def domain_url(registry: RegistryHandle, domain: str) -> str:
    """URL of a single domain's ACME status resource."""
    return f"{registry.get_status_url().rstrip('/')}/{quote(domain, safe='')}"


def translate_request_error(error: RequestError, domain: str) -> AcmeOwnershipError:
    """Map a registry RequestError onto NotFoundError or TransportError."""
    if error.status_code == 404:
        return NotFoundError(
            code=ErrorCode.NOT_FOUND.value,
            message=f"The domain {domain} has not been added to this site and environment.",
            details={"domain": domain, **error.details},
        )
    if error.code == ErrorCode.PARSE_ERROR.value:
        return ProtocolError(
            code=error.code,
            message=error.message,
            status_code=error.status_code,
            details={"domain": domain, **error.details},
        )
    return TransportError(
        code=error.code,
        message=error.message,
        status_code=error.status_code,
        details={"domain": domain, **error.details},
    )


def _optional_str(container: dict, key: str) -> Optional[str]:
    value = container.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _require_object(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise ProtocolError(
            code=ErrorCode.PARSE_ERROR.value,
            message=f"Expected {what} to be an object",
            details={"field": what, "type": type(value).__name__},
        )
    return value


def _parse_problem(raw: Any) -> Optional[ProblemDetail]:
    if not raw:
        return None
    raw = _require_object(raw, "last_preprovision_problem")
    problem = ProblemDetail(**{
        attr: _optional_str(raw, wire_name)
        for attr, wire_name in PROBLEM_FIELDS.items()
    })
    if problem == ProblemDetail():
        return None
    return problem


def _parse_preprovision(raw: Any) -> Optional[PreprovisionResult]:
    if not raw:
        return None
    raw = _require_object(raw, "preprovision_result")
    status_value = raw.get("status")
    try:
        status = PreprovisionStatus(status_value)
    except ValueError:
        raise ProtocolError(
            code=ErrorCode.PARSE_ERROR.value,
            message=f"Unknown preprovision status: {status_value!r}",
            details={"status": status_value},
        )
    return PreprovisionResult(
        status=status,
        last_problem=_parse_problem(raw.get("last_preprovision_problem")),
    )


def _parse_ownership(raw: Any) -> Optional[OwnershipInfo]:
    if not raw:
        return None
    raw = _require_object(raw, "ownership_status")
    status_value = raw.get("status")
    try:
        status = OwnershipStatus(status_value)
    except ValueError:
        status = str(status_value)
    return OwnershipInfo(
        status=status,
        message=_optional_str(raw, "message"),
        preprovision_result=_parse_preprovision(raw.get("preprovision_result")),
    )


def _parse_challenges(raw: Any) -> dict[ChallengeType, ChallengeData]:
    if not raw:
        return {}
    raw = _require_object(raw, "acme_preauthorization_challenges")
    challenges = {}
    for challenge_type in ChallengeType:
        entry = raw.get(challenge_type.value)
        if not entry:
            continue
        entry = _require_object(entry, challenge_type.value)
        challenges[challenge_type] = ChallengeData(
            token=_optional_str(entry, "token"),
            verification_key=_optional_str(entry, "verification_key"),
            verification_value=_optional_str(entry, "verification_value"),
        )
    return challenges


def parse_domain_status(domain: str, data: Any) -> DomainStatus:
    """
    Validate the ``data`` member of a status response into a DomainStatus.

    Fields the verifier does not use are ignored. Unknown challenge types are
    skipped; an unknown ownership status is kept as its raw string.

    Raises:
        ProtocolError: If the payload shape is not the documented one
    """
    data = _require_object(data, "data")
    return DomainStatus(
        domain=domain,
        ownership=_parse_ownership(data.get("ownership_status")),
        challenges=_parse_challenges(data.get("acme_preauthorization_challenges")),
    )


class StatusClient:
    """Fetches a fresh DomainStatus snapshot; one GET per call."""

    COMPONENT = "status_client"

    def __init__(self, logger: Optional[AuditLogger] = None) -> None:
        self._logger = logger

    def fetch(self, registry: RegistryHandle, domain: str) -> DomainStatus:
        """
        Fetch the ACME ownership status of a domain.

        Args:
            registry: Registry handle of the site environment
            domain: Canonical domain name

        Returns:
            Parsed DomainStatus

        Raises:
            NotFoundError: If the domain is not registered on the environment
            TransportError: On any other HTTP or network failure
            ProtocolError: If the response body is malformed
        """
        url = domain_url(registry, domain)
        try:
            body = registry.issue_request(
                url,
                method="GET",
                query={"acme_version": ACME_VERSION},
            )
        except RequestError as e:
            raise translate_request_error(e, domain) from e

        if "data" not in body:
            raise ProtocolError(
                code=ErrorCode.PARSE_ERROR.value,
                message="Status response has no data member",
                details={"domain": domain, "url": url},
            )

        status = parse_domain_status(domain, body["data"])

        if self._logger:
            preprovision = status.preprovision_result
            self._logger.debug(self.COMPONENT, "Fetched ownership status", {
                "domain": domain,
                "ownership_status": _status_value(status),
                "preprovision_status": preprovision.status.value if preprovision else None,
                "challenge_types": sorted(t.value for t in status.challenges),
            })

        return status


def _status_value(status: DomainStatus) -> Optional[str]:
    if status.ownership is None:
        return None
    value = status.ownership.status
    return value.value if isinstance(value, OwnershipStatus) else value
