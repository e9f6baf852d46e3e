"""JSON serializer shared by the CLI --format json output and the HTTP API."""

import json
from datetime import datetime

from .models import (
    DkimAudit,
    DkimRecord,
    DkimRecordSet,
    DkimValidationResult,
    DmarcAudit,
    DmarcRecord,
    DmarcValidationResult,
    DomainScoreReport,
    RegistrationResult,
    ScoringResult,
    SpfAudit,
    SpfValidationReport,
    ValidationIssue,
)


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


class JsonReporter:
    def render(self, report: DomainScoreReport) -> str:
        return json.dumps(self.report_dict(report), indent=2, default=str)

    def dumps(self, payload: dict) -> str:
        return json.dumps(payload, indent=2, default=str)

    # ── Combined report ────────────────────────────────────────────────────────

    def report_dict(self, report: DomainScoreReport) -> dict:
        return {
            "domain": report.domain,
            "analyzed_at": _iso(report.analyzed_at),
            "overall": {
                "total_score": report.total_score,
                "max_possible_score": report.max_possible_score,
                "percentage": report.percentage,
            },
            "spf": self.spf_dict(report.spf),
            "dkim": self.dkim_dict(report.dkim),
            "dmarc": self.dmarc_dict(report.dmarc),
        }

    # ── SPF ────────────────────────────────────────────────────────────────────

    def spf_dict(self, audit: SpfAudit) -> dict:
        return {
            "domain": audit.domain,
            "records": [
                {"domain": o.domain, "raw_record": o.raw_record, "kind": o.kind.value}
                for o in audit.records
            ],
            "validation": self.spf_validation_dict(audit.validation),
            "score": self.score_dict(audit.score),
        }

    def spf_validation_dict(self, report: SpfValidationReport) -> dict:
        def check(c):
            return {"is_valid": c.is_valid, "message": c.message}

        def error_check(c):
            return {
                "is_valid": c.is_valid,
                "errors": [
                    {"domain": e.occurrence.domain, "kind": e.occurrence.kind.value, "message": e.message}
                    for e in c.errors
                ],
            }

        return {
            "has_spf_record": check(report.has_spf_record),
            "syntax_validation": error_check(report.syntax_validation),
            "one_initial_spf_record": check(report.one_initial_spf_record),
            "max_ten_spf_records": check(report.max_ten_spf_records),
            "deprecated_mechanisms": error_check(report.deprecated_mechanisms),
            "unsafe_all_mechanism": error_check(report.unsafe_all_mechanism),
            "first_all_qualifier": {
                "qualifier": report.first_all_qualifier.qualifier,
                "message": report.first_all_qualifier.message,
            },
        }

    # ── DKIM ───────────────────────────────────────────────────────────────────

    def dkim_dict(self, audit: DkimAudit) -> dict:
        return {
            "domain": audit.domain,
            "record_set": self.dkim_record_set_dict(audit.record_set),
            "validation": self.dkim_validation_dict(audit.validation),
            "score": self.score_dict(audit.score),
        }

    def dkim_record_set_dict(self, record_set: DkimRecordSet) -> dict:
        return {
            "domain": record_set.domain,
            "selectors": record_set.selectors,
            "records": [self.dkim_record_dict(r) for r in record_set.records],
            "retrieved_at": _iso(record_set.retrieved_at),
        }

    def dkim_record_dict(self, record: DkimRecord) -> dict:
        t = record.tags
        return {
            "domain": record.domain,
            "selector": record.selector,
            "raw_record": record.raw_record,
            "tags": {
                "version": t.version,
                "algorithm": t.algorithm,
                "key_type": t.key_type,
                "public_key": t.public_key,
                "service_type": t.service_type,
                "flags": t.flags,
                "notes": t.notes,
            },
            "retrieved_at": _iso(record.retrieved_at),
        }

    def dkim_validation_dict(self, result: DkimValidationResult) -> dict:
        return {
            "domain": result.domain,
            "is_valid": result.is_valid,
            "records": [
                {
                    "selector": r.selector,
                    "is_valid": r.is_valid,
                    "checks": r.checks,
                    "issues": [self.issue_dict(i) for i in r.issues],
                }
                for r in result.records
            ],
            "domain_issues": [self.issue_dict(i) for i in result.domain_issues],
        }

    # ── DMARC ──────────────────────────────────────────────────────────────────

    def dmarc_dict(self, audit: DmarcAudit) -> dict:
        return {
            "domain": audit.domain,
            "record": self.dmarc_record_dict(audit.record) if audit.record else None,
            "validation": self.dmarc_validation_dict(audit.validation),
            "score": self.score_dict(audit.score),
        }

    def dmarc_record_dict(self, record: DmarcRecord) -> dict:
        t = record.tags
        return {
            "domain": record.domain,
            "raw_record": record.raw_record,
            "tags": {
                "version": t.version,
                "policy": t.policy,
                "subdomain_policy": t.subdomain_policy,
                "percentage": t.percentage,
                "report_format": t.report_format,
                "report_interval": t.report_interval,
                "report_emails": t.report_emails,
                "forensic_emails": t.forensic_emails,
                "failure_options": t.failure_options,
                "alignment_spf": t.alignment_spf,
                "alignment_dkim": t.alignment_dkim,
            },
            "retrieved_at": _iso(record.retrieved_at),
        }

    def dmarc_validation_dict(self, result: DmarcValidationResult) -> dict:
        return {
            "domain": result.domain,
            "is_valid": result.is_valid,
            "checks": result.checks,
            "issues": [self.issue_dict(i) for i in result.issues],
        }

    # ── Shared pieces ──────────────────────────────────────────────────────────

    def score_dict(self, result: ScoringResult) -> dict:
        payload = {
            "total_score": result.total_score,
            "max_possible_score": result.max_possible_score,
            "percentage": result.percentage,
            "score_items": [
                {
                    "name": i.name,
                    "description": i.description,
                    "score": i.score,
                    "max_score": i.max_score,
                    "passed": i.passed,
                    "details": i.details,
                }
                for i in result.score_items
            ],
        }
        if result.grade is not None:
            payload["grade"] = result.grade
        return payload

    def issue_dict(self, issue: ValidationIssue) -> dict:
        return {"code": issue.code, "message": issue.message, "severity": issue.severity.value}

    def registration_dict(self, result: RegistrationResult) -> dict:
        return {
            "domain": result.domain,
            "is_registered": result.is_registered,
            "status": result.status.value,
            "query_time_ms": round(result.query_time_ms, 2),
        }
