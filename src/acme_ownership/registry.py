"""
Domain registry handle for a site environment.

The handle knows where a site environment's ACME status resource lives and
issues HTTP requests against the platform API. It enforces TLS, attaches
credentials, and turns any non-2xx answer or network failure into a
RequestError carrying the HTTP status code when one was received.
"""

from typing import Any, Optional, Protocol
from urllib.parse import quote, urlparse

import httpx

from . import __version__
from .audit_logger import AuditLogger
from .config import ApiConfig
from .enums import ErrorCode
from .exceptions import RequestError, ValidationError


class RegistryHandle(Protocol):
    """What the status client and verification trigger need from a registry."""

    def get_status_url(self) -> str:
        ...

    def issue_request(
        self,
        url: str,
        method: str = "GET",
        query: Optional[dict[str, str]] = None,
        form_params: Optional[dict[str, str]] = None,
    ) -> dict:
        ...


class DomainRegistry:
    """
    HTTP-backed registry handle for one site environment.

    Owns a single httpx.Client that is reused sequentially for every request
    of a command run. Use it as a context manager so the client is closed.
    """

    COMPONENT = "registry"

    def __init__(
        self,
        base_url: str,
        site: str,
        environment: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize the registry handle.

        Args:
            base_url: Platform API base URL (must be HTTPS)
            site: Site name
            environment: Environment name (e.g. 'live')
            token: Optional bearer token for the API
            timeout: Request timeout in seconds
            logger: Optional logger for request tracing
            transport: Optional httpx transport (used by tests)

        Raises:
            ValidationError: If the base URL does not use HTTPS
        """
        self._validate_base_url(base_url)
        self._base_url = base_url.rstrip("/")
        self._site = site
        self._environment = environment
        self._token = token
        self._timeout = timeout
        self._logger = logger
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_config(
        cls,
        api: ApiConfig,
        site: str,
        environment: str,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "DomainRegistry":
        return cls(
            base_url=api.base_url,
            site=site,
            environment=environment,
            token=api.token,
            timeout=api.timeout_seconds,
            logger=logger,
            transport=transport,
        )

    def __enter__(self) -> "DomainRegistry":
        self._ensure_client()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @staticmethod
    def _validate_base_url(base_url: str) -> None:
        parsed = urlparse(base_url)
        if parsed.scheme.lower() != "https" or not parsed.netloc:
            raise ValidationError(
                code=ErrorCode.TLS_ERROR.value,
                message=f"API base URL must use HTTPS: {base_url}",
                details={"base_url": base_url, "scheme": parsed.scheme},
            )

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            headers = {
                "Accept": "application/json",
                "User-Agent": f"acme-ownership/{__version__}",
            }
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.Client(
                verify=True,
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    def get_status_url(self) -> str:
        """Base endpoint of the site environment's domain resources."""
        return (
            f"{self._base_url}/sites/{quote(self._site, safe='')}"
            f"/environments/{quote(self._environment, safe='')}/domains"
        )

    def issue_request(
        self,
        url: str,
        method: str = "GET",
        query: Optional[dict[str, str]] = None,
        form_params: Optional[dict[str, str]] = None,
    ) -> dict:
        """
        Issue a request and return the decoded JSON body.

        Args:
            url: Absolute request URL
            method: HTTP method
            query: Optional query string parameters
            form_params: Optional form-encoded body

        Returns:
            The decoded JSON object ({} for an empty body)

        Raises:
            RequestError: On network failure, non-2xx status or undecodable body
        """
        client = self._ensure_client()
        method = method.upper()

        if self._logger:
            self._logger.debug(self.COMPONENT, "Issuing request", {
                "method": method,
                "url": url,
                "query": query or {},
            })

        try:
            response = client.request(method, url, params=query, data=form_params)
        except httpx.TimeoutException as e:
            raise self._request_failed(
                ErrorCode.TIMEOUT, f"Request timed out after {self._timeout}s", url, e,
            )
        except httpx.ConnectError as e:
            error_msg = str(e)
            if "ssl" in error_msg.lower() or "certificate" in error_msg.lower():
                raise self._request_failed(
                    ErrorCode.TLS_ERROR, f"TLS connection error: {error_msg}", url, e,
                )
            raise self._request_failed(
                ErrorCode.NETWORK_ERROR, f"Connection error: {error_msg}", url, e,
            )
        except httpx.HTTPError as e:
            raise self._request_failed(
                ErrorCode.NETWORK_ERROR, f"Request failed: {e}", url, e,
            )

        if not response.is_success:
            raise self._request_failed(
                ErrorCode.HTTP_ERROR,
                f"API returned HTTP {response.status_code}",
                url,
                status_code=response.status_code,
            )

        if not response.content:
            return {}

        try:
            payload: Any = response.json()
        except ValueError as e:
            raise self._request_failed(
                ErrorCode.PARSE_ERROR,
                f"Failed to decode API response: {e}",
                url,
                status_code=response.status_code,
            )

        if not isinstance(payload, dict):
            raise self._request_failed(
                ErrorCode.PARSE_ERROR,
                "API response is not a JSON object",
                url,
                status_code=response.status_code,
            )

        return payload

    def _request_failed(
        self,
        code: ErrorCode,
        message: str,
        url: str,
        error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ) -> RequestError:
        if self._logger:
            self._logger.log_error(
                self.COMPONENT,
                message,
                error=error,
                request_url=url,
                response_status_code=status_code,
            )
        return RequestError(
            code=code.value,
            message=message,
            status_code=status_code,
            details={"url": url},
        )

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None
