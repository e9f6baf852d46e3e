"""Unit tests for SpfRuleValidator — the seven rule checks over a resolved chain."""

from authscore.models import SpfRecordKind
from authscore.spf_validator import SpfRuleValidator, first_all_qualifier

from .helpers import occurrence

INCLUDE = SpfRecordKind.INCLUDE
REDIRECT = SpfRecordKind.REDIRECT


def validate(*occurrences, **kwargs):
    return SpfRuleValidator(**kwargs).validate(list(occurrences))


class TestPresence:
    def test_no_occurrences(self):
        report = validate()
        assert not report.has_spf_record.is_valid
        assert report.has_spf_record.message == "No SPF record found."

    def test_no_occurrences_fails_single_initial(self):
        assert not validate().one_initial_spf_record.is_valid

    def test_record_present(self):
        assert validate(occurrence("v=spf1 -all")).has_spf_record.is_valid


class TestSingleInitial:
    def test_exactly_one_initial(self):
        report = validate(occurrence("v=spf1 include:a.net -all"), occurrence("v=spf1 -all", "a.net", INCLUDE))
        assert report.one_initial_spf_record.is_valid

    def test_two_initial_records(self):
        report = validate(occurrence("v=spf1 -all"), occurrence("v=spf1 ~all"))
        assert not report.one_initial_spf_record.is_valid


class TestLookupCeiling:
    def test_ten_lookups_allowed(self):
        includes = [occurrence("v=spf1 -all", f"i{n}.net", INCLUDE) for n in range(10)]
        assert validate(occurrence("v=spf1 -all"), *includes).max_ten_spf_records.is_valid

    def test_eleven_lookups_rejected(self):
        includes = [occurrence("v=spf1 -all", f"i{n}.net", INCLUDE) for n in range(11)]
        report = validate(occurrence("v=spf1 -all"), *includes)
        assert not report.max_ten_spf_records.is_valid

    def test_redirects_count_as_lookups(self):
        chain = [occurrence("v=spf1 -all", f"r{n}.net", REDIRECT) for n in range(3)]
        report = validate(occurrence("v=spf1 -all"), *chain, max_lookups=2)
        assert not report.max_ten_spf_records.is_valid


class TestSyntaxAggregation:
    def test_errors_carry_their_occurrence(self):
        bad = occurrence("v=spf1 foo -all", "a.net", INCLUDE)
        report = validate(occurrence("v=spf1 include:a.net -all"), bad)
        assert not report.syntax_validation.is_valid
        assert len(report.syntax_validation.errors) == 1
        assert report.syntax_validation.errors[0].occurrence is bad

    def test_clean_chain(self):
        assert validate(occurrence("v=spf1 ip4:10.0.0.1 -all")).syntax_validation.is_valid


class TestDeprecated:
    def test_bare_ptr(self):
        report = validate(occurrence("v=spf1 ptr -all"))
        assert not report.deprecated_mechanisms.is_valid
        assert report.deprecated_mechanisms.errors[0].message == 'Deprecated mechanism found: "ptr"'

    def test_ptr_with_value_and_qualifier(self):
        assert not validate(occurrence("v=spf1 ?ptr:example.net -all")).deprecated_mechanisms.is_valid

    def test_ptr_match_is_case_sensitive(self):
        assert validate(occurrence("v=spf1 PTR -all")).deprecated_mechanisms.is_valid

    def test_ptr_in_include(self):
        report = validate(occurrence("v=spf1 include:a.net -all"), occurrence("v=spf1 ptr -all", "a.net", INCLUDE))
        assert report.deprecated_mechanisms.errors[0].occurrence.domain == "a.net"


class TestUnsafeAll:
    def test_plus_all_flagged(self):
        assert not validate(occurrence("v=spf1 +all")).unsafe_all_mechanism.is_valid

    def test_bare_all_not_flagged(self):
        # Bare "all" implies "+" but only the literal token counts as unsafe here.
        assert validate(occurrence("v=spf1 all")).unsafe_all_mechanism.is_valid

    def test_hard_fail_not_flagged(self):
        assert validate(occurrence("v=spf1 -all")).unsafe_all_mechanism.is_valid


class TestFirstAllQualifier:
    def test_hard_fail(self):
        assert validate(occurrence("v=spf1 -all")).first_all_qualifier.qualifier == "-"

    def test_bare_all_implies_plus(self):
        assert validate(occurrence("v=spf1 all")).first_all_qualifier.qualifier == "+"

    def test_none_when_absent(self):
        assert validate(occurrence("v=spf1 redirect=a.net")).first_all_qualifier.qualifier is None

    def test_first_in_resolution_order_wins(self):
        chain = [
            occurrence("v=spf1 redirect=a.net"),
            occurrence("v=spf1 ~all", "a.net", REDIRECT),
            occurrence("v=spf1 -all", "b.net", INCLUDE),
        ]
        assert first_all_qualifier(chain) == "~"

    def test_include_all_counts(self):
        chain = [
            occurrence("v=spf1 include:a.net redirect=b.net"),
            occurrence("v=spf1 ?all", "a.net", INCLUDE),
        ]
        assert first_all_qualifier(chain) == "?"
