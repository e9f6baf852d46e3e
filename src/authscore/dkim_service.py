"""DKIM record retrieval and per-selector validation."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from .dkim_discovery import SelectorDiscovery, dkim_name
from .dkim_parser import parse_dkim_record
from .exceptions import AuthScoreError, DkimRecordNotFoundError
from .models import (
    DkimRecord,
    DkimRecordSet,
    DkimSelectorValidation,
    DkimValidationResult,
    DnsStatus,
    IssueSeverity,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

VALID_VERSION = "DKIM1"
VALID_ALGORITHMS = {"rsa-sha256", "rsa-sha1"}


class DkimService:
    def __init__(self, fetcher, discovery: SelectorDiscovery, max_workers: int = 16):
        self._fetcher = fetcher
        self._discovery = discovery
        self._max_workers = max_workers

    # ── Retrieval ──────────────────────────────────────────────────────────────

    def get_record(self, domain: str, selector: str) -> DkimRecord:
        """Fetch and parse <selector>._domainkey.<domain>. Raises DkimRecordNotFoundError when absent."""
        name = dkim_name(selector, domain)
        logger.debug("Fetching DKIM record %s", name)
        response = self._fetcher.query_txt(name)

        if response.status == DnsStatus.NXDOMAIN or not response.records:
            raise DkimRecordNotFoundError(f"No DKIM record found for {name}")

        raw_record = response.records[0]
        return DkimRecord(
            domain=domain,
            selector=selector,
            raw_record=raw_record,
            tags=parse_dkim_record(raw_record),
        )

    def get_records(self, domain: str) -> DkimRecordSet:
        """Discover selectors and fetch every record. Failing selectors are logged and skipped."""
        selectors = self._discovery.discover(domain)
        if not selectors:
            return DkimRecordSet(domain=domain, records=[])

        workers = min(self._max_workers, len(selectors))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dkim-fetch") as pool:
            fetched = list(pool.map(lambda s: self._try_get_record(domain, s), selectors))

        return DkimRecordSet(domain=domain, records=[r for r in fetched if r is not None])

    def _try_get_record(self, domain: str, selector: str) -> Optional[DkimRecord]:
        try:
            return self.get_record(domain, selector)
        except AuthScoreError as e:
            logger.warning("Skipping DKIM selector %s for %s: %s", selector, domain, e)
            return None

    # ── Validation ─────────────────────────────────────────────────────────────

    def validate(self, record_set: DkimRecordSet) -> DkimValidationResult:
        selector_results = [self._validate_record(r) for r in record_set.records]

        domain_issues = []
        if not record_set.records:
            domain_issues.append(ValidationIssue(
                code="NO_DKIM_RECORDS",
                message=f"No DKIM records found for {record_set.domain}",
                severity=IssueSeverity.ERROR,
            ))

        is_valid = any(r.is_valid for r in selector_results) and not domain_issues
        return DkimValidationResult(
            domain=record_set.domain,
            is_valid=is_valid,
            records=selector_results,
            domain_issues=domain_issues,
        )

    def validate_domain(self, domain: str) -> DkimValidationResult:
        return self.validate(self.get_records(domain))

    def _validate_record(self, record: DkimRecord) -> DkimSelectorValidation:
        tags = record.tags
        checks = {
            "has_valid_selector": True,
            "has_valid_syntax": True,
            "has_valid_version": tags.version == VALID_VERSION,
            "has_valid_algorithm": tags.algorithm in VALID_ALGORITHMS,
            "has_valid_public_key": bool(tags.public_key),
        }

        issues = []
        if not checks["has_valid_version"]:
            issues.append(ValidationIssue(
                code="INVALID_VERSION",
                message=f"Invalid DKIM version: {tags.version or '(missing)'}",
                severity=IssueSeverity.ERROR,
            ))
        if not checks["has_valid_algorithm"]:
            issues.append(ValidationIssue(
                code="INVALID_ALGORITHM",
                message=f"Invalid DKIM algorithm: {tags.algorithm or '(missing)'}",
                severity=IssueSeverity.ERROR,
            ))
        if not checks["has_valid_public_key"]:
            issues.append(ValidationIssue(
                code="MISSING_PUBLIC_KEY",
                message="DKIM record has no public key (p=)",
                severity=IssueSeverity.ERROR,
            ))

        return DkimSelectorValidation(
            selector=record.selector,
            is_valid=all(checks.values()),
            checks=checks,
            issues=issues,
        )
