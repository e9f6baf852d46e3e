"""DMARC record parser and validator."""

import logging
import re
from typing import Optional

from .exceptions import DmarcLookupError, DnsError
from .models import (
    DmarcRecord,
    DmarcTags,
    DmarcValidationResult,
    DnsStatus,
    IssueSeverity,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

VALID_VERSION = "DMARC1"
VALID_POLICIES = {"none", "quarantine", "reject"}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


# ── Parsing ────────────────────────────────────────────────────────────────────

def _leading_int(value: str) -> Optional[int]:
    match = _LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else None


def _addresses(value: str) -> list:
    """Split comma-separated URIs, dropping any mailto: prefix."""
    result = []
    for uri in value.split(","):
        uri = uri.strip()
        if uri.lower().startswith("mailto:"):
            uri = uri[7:].strip()
        result.append(uri)
    return result


def _colon_list(value: str) -> list:
    return value.split(":")


# tag -> (DmarcTags field, value transform). Unlisted tags are ignored.
TAG_TABLE = {
    "v": ("version", str.upper),
    "p": ("policy", str.lower),
    "sp": ("subdomain_policy", str.lower),
    "pct": ("percentage", _leading_int),
    "rf": ("report_format", _colon_list),
    "ri": ("report_interval", _leading_int),
    "rua": ("report_emails", _addresses),
    "ruf": ("forensic_emails", _addresses),
    "fo": ("failure_options", _colon_list),
    "aspf": ("alignment_spf", str.lower),
    "adkim": ("alignment_dkim", str.lower),
}


def parse_dmarc_record(record: str) -> DmarcTags:
    """Split on ; and map tag=value pairs onto DmarcTags. A missing p= leaves policy 'none'."""
    tags = DmarcTags()
    for part in record.split(";"):
        part = part.strip()
        if not part or "=" not in part:
            continue
        key, _, value = part.partition("=")
        key = key.strip().lower()
        if key == "pct":
            tags.percentage_raw = value.strip()
        entry = TAG_TABLE.get(key)
        if entry is None:
            continue
        attr, transform = entry
        setattr(tags, attr, transform(value.strip()))
    return tags


# ── Analyzer ───────────────────────────────────────────────────────────────────

class DmarcAnalyzer:
    def __init__(self, fetcher):
        self._fetcher = fetcher

    def get_record(self, domain: str) -> Optional[DmarcRecord]:
        """Fetch _dmarc.<domain>. Returns None when no DMARC record is published."""
        dmarc_domain = f"_dmarc.{domain}"
        logger.debug("Fetching DMARC record for %s", domain)
        try:
            response = self._fetcher.query_txt(dmarc_domain)
        except DnsError as e:
            raise DmarcLookupError(domain, f"Failed to fetch DMARC record for {domain}: {e}") from e

        if response.status == DnsStatus.NXDOMAIN:
            return None

        raw_record = self._find_dmarc_record(response.records)
        if raw_record is None:
            logger.debug("No DMARC record found for %s", domain)
            return None

        return DmarcRecord(domain=domain, raw_record=raw_record, tags=parse_dmarc_record(raw_record))

    def validate(self, domain: str, record: Optional[DmarcRecord]) -> DmarcValidationResult:
        if record is None:
            return DmarcValidationResult(
                domain=domain,
                is_valid=False,
                record=None,
                checks={
                    "has_valid_version": False,
                    "has_valid_policy": False,
                    "has_valid_syntax": False,
                    "has_valid_report_addresses": False,
                },
                issues=[ValidationIssue("NO_DMARC_RECORD", "No DMARC record found", IssueSeverity.ERROR)],
            )

        tags = record.tags
        checks = {
            "has_valid_version": tags.version == VALID_VERSION,
            "has_valid_policy": tags.policy in VALID_POLICIES,
            "has_valid_syntax": True,
            "has_valid_report_addresses": self._addresses_valid(tags),
        }

        issues = []
        if not checks["has_valid_version"]:
            issues.append(ValidationIssue("INVALID_VERSION", "Invalid DMARC version", IssueSeverity.ERROR))
        if not checks["has_valid_policy"]:
            issues.append(ValidationIssue("INVALID_POLICY", "Invalid DMARC policy", IssueSeverity.ERROR))
        if not checks["has_valid_report_addresses"]:
            issues.append(ValidationIssue(
                "INVALID_REPORT_EMAIL",
                "One or more report email addresses are invalid",
                IssueSeverity.ERROR,
            ))

        if tags.policy == "none":
            issues.append(ValidationIssue(
                "POLICY_NONE",
                'Policy is set to "none" which only monitors and does not take action',
                IssueSeverity.WARNING,
            ))
        if not tags.report_emails:
            issues.append(ValidationIssue(
                "NO_AGGREGATE_REPORTS",
                "No aggregate report email addresses specified (rua)",
                IssueSeverity.WARNING,
            ))

        return DmarcValidationResult(
            domain=domain,
            is_valid=not any(i.severity == IssueSeverity.ERROR for i in issues),
            record=record,
            checks=checks,
            issues=issues,
        )

    def validate_domain(self, domain: str) -> DmarcValidationResult:
        return self.validate(domain, self.get_record(domain))

    @staticmethod
    def _find_dmarc_record(records: list) -> Optional[str]:
        for r in records:
            if r.strip().lower().startswith("v=dmarc1"):
                return r.strip()
        return None

    @staticmethod
    def _addresses_valid(tags: DmarcTags) -> bool:
        addresses = (tags.report_emails or []) + (tags.forensic_emails or [])
        return all(_EMAIL_RE.match(a) for a in addresses)
