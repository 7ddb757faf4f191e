"""
Verification trigger for ACME ownership verification.

Asks the backend to start asynchronous ownership verification for a given
challenge type. Each call resets backend-side rate limiting, so a polling
session issues it at most once.
"""

from typing import Optional

from .audit_logger import AuditLogger
from .enums import ChallengeType
from .exceptions import RequestError
from .registry import RegistryHandle
from .status_client import domain_url, translate_request_error


class VerificationTrigger:
    """Issues the one-shot verify-ownership request."""

    COMPONENT = "verification_trigger"

    def __init__(
        self,
        client_id: str = "acme-ownership",
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Args:
            client_id: Caller identifier sent with the request
            logger: Optional logger
        """
        self._client_id = client_id
        self._logger = logger

    def start(
        self,
        registry: RegistryHandle,
        domain: str,
        challenge_type: ChallengeType,
    ) -> None:
        """
        Start backend verification of a domain for one challenge type.

        Raises:
            NotFoundError: If the domain is not registered on the environment
            TransportError: On any other HTTP or network failure
        """
        url = f"{domain_url(registry, domain)}/verify-ownership"
        try:
            registry.issue_request(
                url,
                method="POST",
                form_params={
                    "challenge_type": challenge_type.value,
                    "client": self._client_id,
                },
            )
        except RequestError as e:
            raise translate_request_error(e, domain) from e

        if self._logger:
            self._logger.info(self.COMPONENT, "Requested ownership verification", {
                "domain": domain,
                "challenge_type": challenge_type.value,
            })
