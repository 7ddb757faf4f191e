"""
Validation and normalization of command-line domain and site.env input.

Domains are normalized to their canonical form (lowercase, IDNA-encoded)
before they are placed into API URLs.
"""

import re
from dataclasses import dataclass
from typing import Optional

import idna

from acme_ownership.enums import DomainValidationErrorCode, ErrorCode
from acme_ownership.exceptions import ValidationError


# Control characters, whitespace and symbols that never appear in a host name
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'
    r'\s'
    r'!@#$%^&*()+=\[\]{}|\\:;"\'<>,?/`~]'
)

SITE_ENV_PATTERN = re.compile(r'^([A-Za-z0-9][A-Za-z0-9_-]*)\.([A-Za-z0-9][A-Za-z0-9_-]*)$')


@dataclass
class DomainValidationError:
    """Structured error information for domain validation failures."""

    code: DomainValidationErrorCode
    message: str
    details: dict


@dataclass
class DomainValidationResult:
    """Result of domain validation operation."""

    valid: bool
    canonical_domain: Optional[str]
    error: Optional[DomainValidationError]


class DomainValidator:
    """
    Validates and normalizes domain names given on the command line.

    Handles:
    - Conversion to lowercase canonical form
    - IDNA encoding for international characters
    - Rejection of forbidden characters
    - Rejection of single-label names
    """

    def validate(self, raw_domain: str) -> DomainValidationResult:
        """
        Validate and normalize a domain string.

        Args:
            raw_domain: The raw domain string to validate

        Returns:
            DomainValidationResult with validation status and canonical form or error
        """
        if not raw_domain or not raw_domain.strip():
            return self._invalid(
                DomainValidationErrorCode.EMPTY_INPUT,
                "Domain input is empty",
                {"raw_input": raw_domain},
            )

        domain = raw_domain.strip().rstrip(".")

        if FORBIDDEN_CHARS_PATTERN.search(domain):
            return self._invalid(
                DomainValidationErrorCode.FORBIDDEN_CHARS,
                "Domain contains forbidden characters",
                {
                    "raw_input": raw_domain,
                    "forbidden_chars": FORBIDDEN_CHARS_PATTERN.findall(domain),
                },
            )

        try:
            canonical = self.normalize_to_canonical(domain)
        except ValidationError as e:
            return self._invalid(DomainValidationErrorCode.IDNA_ERROR, e.message, e.details)

        labels = canonical.split(".")
        if len(labels) < 2 or not all(labels):
            return self._invalid(
                DomainValidationErrorCode.MISSING_DOT,
                "Domain must contain at least two non-empty labels",
                {"raw_input": raw_domain, "canonical": canonical},
            )

        return DomainValidationResult(valid=True, canonical_domain=canonical, error=None)

    def normalize_to_canonical(self, domain: str) -> str:
        """
        Convert domain to canonical form (lowercase, IDNA-encoded).

        Raises:
            ValidationError: If IDNA encoding fails
        """
        domain_lower = domain.lower()

        if not any(ord(c) > 127 for c in domain_lower):
            return domain_lower

        try:
            return idna.encode(domain_lower, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ValidationError(
                code=DomainValidationErrorCode.IDNA_ERROR.value,
                message=f"IDNA encoding failed: {e}",
                details={"domain": domain, "idna_error": str(e)},
            )

    def require_canonical(self, raw_domain: str) -> str:
        """
        Return the canonical domain or raise.

        Raises:
            ValidationError: If the input is not a valid domain
        """
        result = self.validate(raw_domain)
        if not result.valid:
            raise ValidationError(
                code=result.error.code.value,
                message=result.error.message,
                details=result.error.details,
            )
        return result.canonical_domain

    @staticmethod
    def _invalid(
        code: DomainValidationErrorCode,
        message: str,
        details: dict,
    ) -> DomainValidationResult:
        return DomainValidationResult(
            valid=False,
            canonical_domain=None,
            error=DomainValidationError(code=code, message=message, details=details),
        )


def parse_site_env(site_env: str) -> tuple[str, str]:
    """
    Split a ``site.env`` identifier into its site and environment names.

    Raises:
        ValidationError: If the identifier is not of the form site.env
    """
    match = SITE_ENV_PATTERN.match(site_env.strip()) if site_env else None
    if match is None:
        raise ValidationError(
            code=ErrorCode.INVALID_INPUT.value,
            message=f"Site & environment must be given as site-name.env, got {site_env!r}",
            details={"site_env": site_env},
        )
    return match.group(1), match.group(2)
