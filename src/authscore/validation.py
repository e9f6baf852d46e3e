"""Domain name validation for user-supplied input."""

import re

from .exceptions import InvalidDomainError

MAX_DOMAIN_LENGTH = 253
MAX_LABEL_LENGTH = 63

_DOMAIN_PATTERN = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9\-]{0,61}[a-z0-9])?\.)+[a-z]{2,}$"
)

RESERVED_TLDS = {
    "localhost", "test", "example", "invalid", "local",
    "internal", "private", "corp", "home", "lan",
}


def sanitize_domain(domain: str) -> str:
    return domain.strip().lower().rstrip(".")


def validate_domain(domain: str) -> str:
    """Return the sanitized domain, or raise InvalidDomainError."""
    if domain is None or not isinstance(domain, str):
        raise InvalidDomainError("Domain parameter is required")

    cleaned = sanitize_domain(domain)
    if not cleaned:
        raise InvalidDomainError("Domain cannot be empty")
    if len(cleaned) > MAX_DOMAIN_LENGTH:
        raise InvalidDomainError(f"Domain length cannot exceed {MAX_DOMAIN_LENGTH} characters")
    if any(len(label) > MAX_LABEL_LENGTH for label in cleaned.split(".")):
        raise InvalidDomainError(f"Domain label cannot exceed {MAX_LABEL_LENGTH} characters")
    if not _DOMAIN_PATTERN.match(cleaned):
        raise InvalidDomainError("Invalid domain format")
    if cleaned.rsplit(".", 1)[-1] in RESERVED_TLDS:
        raise InvalidDomainError("Domain uses a reserved TLD")
    return cleaned
