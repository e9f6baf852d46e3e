"""SPF rule checks over a resolved record chain."""

from typing import Optional

from .models import (
    RecordError,
    SpfCheck,
    SpfErrorCheck,
    SpfQualifierCheck,
    SpfRecordKind,
    SpfValidationReport,
)
from .spf_syntax import QUALIFIERS, SpfSyntaxValidator

MAX_LOOKUPS = 10
DEPRECATED_MECHANISMS = ("ptr",)


class SpfRuleValidator:
    def __init__(self, max_lookups: int = MAX_LOOKUPS):
        self._max_lookups = max_lookups
        self._syntax = SpfSyntaxValidator()

    def validate(self, occurrences: list) -> SpfValidationReport:
        """Run every rule over the resolver output (list[SpfRecordOccurrence])."""
        return SpfValidationReport(
            has_spf_record=self._has_spf_record(occurrences),
            syntax_validation=self._syntax_validation(occurrences),
            one_initial_spf_record=self._one_initial_record(occurrences),
            max_ten_spf_records=self._max_lookup_records(occurrences),
            deprecated_mechanisms=self._deprecated_mechanisms(occurrences),
            unsafe_all_mechanism=self._unsafe_all(occurrences),
            first_all_qualifier=self._first_all_qualifier(occurrences),
        )

    # ── Checks ─────────────────────────────────────────────────────────────────

    def _has_spf_record(self, occurrences: list) -> SpfCheck:
        if occurrences:
            return SpfCheck(is_valid=True, message="SPF record found")
        return SpfCheck(is_valid=False, message="No SPF record found.")

    def _syntax_validation(self, occurrences: list) -> SpfErrorCheck:
        errors = []
        for occurrence in occurrences:
            result = self._syntax.validate(occurrence.raw_record)
            errors.extend(RecordError(occurrence=occurrence, message=e) for e in result.errors)
        return SpfErrorCheck(is_valid=not errors, errors=errors)

    def _one_initial_record(self, occurrences: list) -> SpfCheck:
        initial = sum(1 for o in occurrences if o.kind == SpfRecordKind.INITIAL)
        if initial == 1:
            return SpfCheck(is_valid=True, message="Exactly one initial SPF record")
        return SpfCheck(
            is_valid=False,
            message=f"There should be exactly one initial SPF record (found {initial}).",
        )

    def _max_lookup_records(self, occurrences: list) -> SpfCheck:
        lookups = sum(1 for o in occurrences if o.kind != SpfRecordKind.INITIAL)
        if lookups <= self._max_lookups:
            return SpfCheck(is_valid=True, message=f"{lookups}/{self._max_lookups} include/redirect lookups")
        return SpfCheck(
            is_valid=False,
            message=f"The number of SPF record lookups should not exceed {self._max_lookups} (found {lookups}).",
        )

    def _deprecated_mechanisms(self, occurrences: list) -> SpfErrorCheck:
        errors = []
        for occurrence in occurrences:
            for term in occurrence.raw_record.split():
                mechanism = _strip_qualifier(term)
                for deprecated in DEPRECATED_MECHANISMS:
                    if mechanism == deprecated or mechanism.startswith(deprecated + ":"):
                        errors.append(RecordError(
                            occurrence=occurrence,
                            message=f'Deprecated mechanism found: "{deprecated}"',
                        ))
                        break
        return SpfErrorCheck(is_valid=not errors, errors=errors)

    def _unsafe_all(self, occurrences: list) -> SpfErrorCheck:
        errors = [
            RecordError(occurrence=o, message='Unsafe "+all" mechanism found')
            for o in occurrences
            if "+all" in o.raw_record.split()
        ]
        return SpfErrorCheck(is_valid=not errors, errors=errors)

    def _first_all_qualifier(self, occurrences: list) -> SpfQualifierCheck:
        qualifier = first_all_qualifier(occurrences)
        if qualifier is None:
            return SpfQualifierCheck(qualifier=None, message="No 'all' mechanism found")
        return SpfQualifierCheck(qualifier=qualifier, message=f"First 'all' mechanism is {qualifier}all")


def first_all_qualifier(occurrences: list) -> Optional[str]:
    """Qualifier of the first `all` term in resolution order; bare `all` means '+'."""
    for occurrence in occurrences:
        for term in occurrence.raw_record.split():
            if term.lower() == "all":
                return "+"
            if len(term) == 4 and term[0] in QUALIFIERS and term[1:].lower() == "all":
                return term[0]
    return None


def _strip_qualifier(term: str) -> str:
    if term and term[0] in QUALIFIERS:
        return term[1:]
    return term
