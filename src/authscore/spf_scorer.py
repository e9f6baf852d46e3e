"""SPF scoring: seven fixed-weight checks over an SpfValidationReport, graded A-F."""

from .models import ScoreItem, ScoringResult, SpfValidationReport
from .scoring import finalize

QUALIFIER_POINTS = {"-": 5, "~": 3}


class SpfScorer:
    def score(self, report: SpfValidationReport) -> ScoringResult:
        items = [
            self._record_present(report),
            self._single_record(report),
            self._syntax_valid(report),
            self._lookups_under_limit(report),
            self._no_pass_all(report),
            self._all_qualifier_policy(report),
            self._no_deprecated(report),
        ]
        return finalize(items, graded=True)

    def _record_present(self, report: SpfValidationReport) -> ScoreItem:
        passed = report.has_spf_record.is_valid
        return ScoreItem(
            name="SPF Record Present",
            description="SPF TXT record exists on the domain (with correct v=spf1). If missing, domain is unprotected by SPF.",
            score=10 if passed else 0,
            max_score=10,
            passed=passed,
            details="SPF record found" if passed else "No SPF record found",
        )

    def _single_record(self, report: SpfValidationReport) -> ScoreItem:
        passed = report.one_initial_spf_record.is_valid
        return ScoreItem(
            name="Single SPF Record",
            description="Only one SPF record is published (no duplicates). Multiple records cause SPF failure.",
            score=5 if passed else 0,
            max_score=5,
            passed=passed,
            details="Single SPF record found" if passed else "Multiple or no initial SPF records found",
        )

    def _syntax_valid(self, report: SpfValidationReport) -> ScoreItem:
        passed = report.syntax_validation.is_valid
        if passed:
            details = "Syntax validation passed"
        else:
            details = "Syntax errors found: " + ", ".join(e.message for e in report.syntax_validation.errors)
        return ScoreItem(
            name="SPF Syntax Valid",
            description="SPF record is syntactically correct (no unrecognized mechanisms or syntax violations).",
            score=5 if passed else 0,
            max_score=5,
            passed=passed,
            details=details,
        )

    def _lookups_under_limit(self, report: SpfValidationReport) -> ScoreItem:
        passed = report.max_ten_spf_records.is_valid
        return ScoreItem(
            name="Authorized Sources ≤ 10 Lookups",
            description="SPF includes/redirects do not exceed 10 DNS lookups (staying within the RFC limit avoids permerror).",
            score=5 if passed else 0,
            max_score=5,
            passed=passed,
            details="DNS lookups within limit" if passed else "DNS lookups exceed 10",
        )

    def _no_pass_all(self, report: SpfValidationReport) -> ScoreItem:
        passed = report.unsafe_all_mechanism.is_valid
        return ScoreItem(
            name='No "Pass All" Mechanism',
            description="SPF does not use +all which would allow any sender.",
            score=5 if passed else 0,
            max_score=5,
            passed=passed,
            details="No unsafe +all mechanism found" if passed else "Unsafe +all mechanism found",
        )

    def _all_qualifier_policy(self, report: SpfValidationReport) -> ScoreItem:
        qualifier = report.first_all_qualifier.qualifier
        score = QUALIFIER_POINTS.get(qualifier, 0)

        if qualifier == "-":
            details = "Hard fail (-all) configured: strict enforcement"
        elif qualifier == "~":
            details = "Soft fail (~all) configured: partial credit, more relaxed"
        elif qualifier == "?":
            details = "Neutral (?all) configured: poor policy"
        elif qualifier == "+":
            details = "Pass all (+all) configured: poor policy"
        else:
            details = "No 'all' mechanism found: missing policy is poor"

        return ScoreItem(
            name="All Mechanism Policy",
            description="Policy on \"all\": -all (hard fail) 5 points, ~all (soft fail) 3 points, ?all, +all or no all 0.",
            score=score,
            max_score=5,
            passed=score >= 3,
            details=details,
        )

    def _no_deprecated(self, report: SpfValidationReport) -> ScoreItem:
        passed = report.deprecated_mechanisms.is_valid
        return ScoreItem(
            name="No Deprecated Mechanisms",
            description="SPF record does not use deprecated mechanisms like ptr.",
            score=5 if passed else 0,
            max_score=5,
            passed=passed,
            details="No deprecated mechanisms found" if passed else "Deprecated mechanisms found",
        )
