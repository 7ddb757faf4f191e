"""
Formatting of ACME challenge data into displayable artifacts.

Both functions are pure. Callers must check that the required challenge
fields are present; a missing field is a programming error and raises
ValueError.
"""

from .models import ChallengeData, DnsTxtRecord, HttpChallengeArtifact


DNS_TXT_TTL = "300"
DNS_TXT_CLASS = "IN"
DNS_TXT_TYPE = "TXT"

# Each field name is replaced by its value, in this order
DNS_TXT_RECORD_TEMPLATE = 'record-name ttl class record-type "text-data"'


def _require(challenge: ChallengeData, *names: str) -> None:
    missing = [name for name in names if not getattr(challenge, name)]
    if missing:
        raise ValueError(f"Challenge data is missing required fields: {', '.join(missing)}")


def format_http_challenge(challenge: ChallengeData) -> HttpChallengeArtifact:
    """
    Turn http-01 challenge data into the file to serve.

    The file is named after the token, contains the verification value and
    must be served at the verification key's URL path.
    """
    _require(challenge, "token", "verification_value", "verification_key")
    return HttpChallengeArtifact(
        filename=challenge.token,
        contents=challenge.verification_value,
        url_path=challenge.verification_key,
    )


def format_dns_txt_challenge(domain: str, challenge: ChallengeData) -> DnsTxtRecord:
    """
    Turn dns-01 challenge data into a zone-file TXT record.

    Example:
        >>> format_dns_txt_challenge("example.com", ChallengeData(
        ...     verification_key="_acme-challenge.example.com",
        ...     verification_value="abc123")).record_line
        '_acme-challenge.example.com 300 IN TXT "abc123"'
    """
    _require(challenge, "verification_key", "verification_value")
    record_fields = {
        "domain": domain,
        "record-name": challenge.verification_key,
        "ttl": DNS_TXT_TTL,
        "class": DNS_TXT_CLASS,
        "record-type": DNS_TXT_TYPE,
        "text-data": challenge.verification_value,
    }
    # Substitute token by token so values containing a field name stay intact
    parts = []
    for token in DNS_TXT_RECORD_TEMPLATE.split(" "):
        quoted = token.startswith('"') and token.endswith('"')
        name = token.strip('"')
        value = record_fields[name]
        parts.append(f'"{value}"' if quoted else value)

    return DnsTxtRecord(record_line=" ".join(parts), record_fields=record_fields)
