"""Custom exception hierarchy for authscore."""


class AuthScoreError(Exception):
    """Base exception for all authscore errors."""


# ── DNS Errors ─────────────────────────────────────────────────────────────────

class DnsError(AuthScoreError):
    """Base class for DNS transport errors."""


class DnsTimeoutError(DnsError):
    """DoH query timed out."""


class DnsQueryError(DnsError):
    """DoH endpoint answered with an error (HTTP failure, SERVFAIL, bad payload)."""


class DnsAllEndpointsExhaustedError(DnsError):
    """Every configured DoH endpoint failed to answer."""


class SpfResolutionError(DnsError):
    """A TXT lookup failed while walking an SPF include/redirect chain."""

    def __init__(self, domain: str, message: str):
        super().__init__(message)
        self.domain = domain


class DmarcLookupError(DnsError):
    """The _dmarc TXT lookup for a domain failed."""

    def __init__(self, domain: str, message: str):
        super().__init__(message)
        self.domain = domain


# ── Validation Errors ──────────────────────────────────────────────────────────

class ValidationError(AuthScoreError):
    """Base class for input validation errors."""

    def __init__(self, message: str, field: str = "domain"):
        super().__init__(message)
        self.field = field


class InvalidDomainError(ValidationError):
    """The provided domain name is invalid."""


class ConfigError(AuthScoreError):
    """Configuration could not be loaded."""


# ── Record Errors ──────────────────────────────────────────────────────────────

class DkimParseError(AuthScoreError):
    """DKIM record violates RFC 6376 tag-list syntax."""


class DkimRecordNotFoundError(AuthScoreError):
    """No TXT record published at <selector>._domainkey.<domain>."""


class KeyDecodeError(AuthScoreError):
    """DKIM public key is not valid base64 / DER."""
