"""Unit tests for DmarcAnalyzer — retrieval, tag parsing, validation issues."""

import pytest

from authscore.dmarc_analyzer import DmarcAnalyzer, parse_dmarc_record
from authscore.exceptions import DmarcLookupError, DnsTimeoutError

from .helpers import mock_fetcher, nxdomain

DOMAIN = "example.com"
DMARC_DOMAIN = "_dmarc.example.com"
STRICT = "v=DMARC1; p=reject; rua=mailto:dmarc@example.com"


def codes(result):
    return [i.code for i in result.issues]


class TestDmarcRetrieval:
    def test_record_found(self):
        fetcher = mock_fetcher({DMARC_DOMAIN: [STRICT]})
        record = DmarcAnalyzer(fetcher).get_record(DOMAIN)
        assert record.domain == DOMAIN
        assert record.raw_record == STRICT
        assert record.tags.policy == "reject"

    def test_no_txt_records_is_absent(self):
        fetcher = mock_fetcher({DMARC_DOMAIN: []})
        assert DmarcAnalyzer(fetcher).get_record(DOMAIN) is None

    def test_nxdomain_is_absent(self):
        fetcher = mock_fetcher({DMARC_DOMAIN: nxdomain(DMARC_DOMAIN)})
        assert DmarcAnalyzer(fetcher).get_record(DOMAIN) is None

    def test_non_dmarc_txt_is_absent(self):
        fetcher = mock_fetcher({DMARC_DOMAIN: ["v=something-else"]})
        assert DmarcAnalyzer(fetcher).get_record(DOMAIN) is None

    def test_dmarc_string_picked_among_others(self):
        fetcher = mock_fetcher({DMARC_DOMAIN: ["google-site-verification=abc", STRICT]})
        assert DmarcAnalyzer(fetcher).get_record(DOMAIN).raw_record == STRICT

    def test_version_prefix_case_insensitive(self):
        fetcher = mock_fetcher({DMARC_DOMAIN: ["V=dmarc1; p=none"]})
        record = DmarcAnalyzer(fetcher).get_record(DOMAIN)
        assert record.tags.version == "DMARC1"

    def test_transport_failure_wrapped(self):
        fetcher = mock_fetcher({DMARC_DOMAIN: DnsTimeoutError("slow")})
        with pytest.raises(DmarcLookupError) as exc:
            DmarcAnalyzer(fetcher).get_record(DOMAIN)
        assert exc.value.domain == DOMAIN


class TestDmarcTagParsing:
    def test_policy_defaults_to_none(self):
        assert parse_dmarc_record("v=DMARC1").policy == "none"

    def test_policy_lowercased(self):
        assert parse_dmarc_record("v=DMARC1; p=REJECT").policy == "reject"

    def test_rua_mailto_prefix_stripped(self):
        tags = parse_dmarc_record("v=DMARC1; p=none; rua=mailto:a@example.com, mailto:b@example.com")
        assert tags.report_emails == ["a@example.com", "b@example.com"]

    def test_ruf_mailto_prefix_stripped(self):
        tags = parse_dmarc_record("v=DMARC1; p=none; ruf=mailto:forensic@example.com")
        assert tags.forensic_emails == ["forensic@example.com"]

    def test_pct_parsed(self):
        assert parse_dmarc_record("v=DMARC1; p=quarantine; pct=25").percentage == 25

    def test_pct_leading_digits_only(self):
        assert parse_dmarc_record("v=DMARC1; p=quarantine; pct=50abc").percentage == 50

    def test_pct_non_numeric_is_none(self):
        assert parse_dmarc_record("v=DMARC1; p=quarantine; pct=abc").percentage is None

    def test_pct_kept_as_published(self):
        tags = parse_dmarc_record("v=DMARC1; p=quarantine; pct=abc")
        assert tags.percentage_raw == "abc"
        assert parse_dmarc_record("v=DMARC1; p=reject").percentage_raw is None

    def test_pct_absent_is_none(self):
        assert parse_dmarc_record("v=DMARC1; p=reject").percentage is None

    def test_alignment_and_lists(self):
        tags = parse_dmarc_record("v=DMARC1; p=none; aspf=S; adkim=r; fo=0:1:d; rf=afrf; ri=3600")
        assert tags.alignment_spf == "s"
        assert tags.alignment_dkim == "r"
        assert tags.failure_options == ["0", "1", "d"]
        assert tags.report_format == ["afrf"]
        assert tags.report_interval == 3600

    def test_subdomain_policy(self):
        assert parse_dmarc_record("v=DMARC1; p=reject; sp=Quarantine").subdomain_policy == "quarantine"

    def test_unknown_and_malformed_parts_ignored(self):
        tags = parse_dmarc_record("v=DMARC1; junk; x=1; p=reject;;")
        assert tags.policy == "reject"


class TestDmarcValidation:
    def test_absent_record(self):
        result = DmarcAnalyzer(mock_fetcher()).validate(DOMAIN, None)
        assert not result.is_valid
        assert result.record is None
        assert codes(result) == ["NO_DMARC_RECORD"]
        assert not any(result.checks.values())

    def test_well_configured_record(self):
        analyzer = DmarcAnalyzer(mock_fetcher({DMARC_DOMAIN: [STRICT]}))
        result = analyzer.validate_domain(DOMAIN)
        assert result.is_valid
        assert result.issues == []
        assert all(result.checks.values())

    def test_policy_none_is_warning_only(self):
        analyzer = DmarcAnalyzer(mock_fetcher({DMARC_DOMAIN: ["v=DMARC1; p=none; rua=mailto:d@example.com"]}))
        result = analyzer.validate_domain(DOMAIN)
        assert result.is_valid
        assert codes(result) == ["POLICY_NONE"]

    def test_missing_rua_is_warning(self):
        analyzer = DmarcAnalyzer(mock_fetcher({DMARC_DOMAIN: ["v=DMARC1; p=reject"]}))
        result = analyzer.validate_domain(DOMAIN)
        assert result.is_valid
        assert codes(result) == ["NO_AGGREGATE_REPORTS"]

    def test_invalid_policy(self):
        analyzer = DmarcAnalyzer(mock_fetcher({DMARC_DOMAIN: ["v=DMARC1; p=block; rua=mailto:d@example.com"]}))
        result = analyzer.validate_domain(DOMAIN)
        assert not result.is_valid
        assert not result.checks["has_valid_policy"]
        assert "INVALID_POLICY" in codes(result)

    def test_invalid_report_address(self):
        analyzer = DmarcAnalyzer(mock_fetcher({DMARC_DOMAIN: ["v=DMARC1; p=reject; rua=mailto:not-an-email"]}))
        result = analyzer.validate_domain(DOMAIN)
        assert not result.is_valid
        assert "INVALID_REPORT_EMAIL" in codes(result)

    def test_invalid_forensic_address(self):
        record = "v=DMARC1; p=reject; rua=mailto:d@example.com; ruf=mailto:bad@"
        result = DmarcAnalyzer(mock_fetcher({DMARC_DOMAIN: [record]})).validate_domain(DOMAIN)
        assert not result.checks["has_valid_report_addresses"]

    def test_absent_validate_domain(self):
        result = DmarcAnalyzer(mock_fetcher({DMARC_DOMAIN: []})).validate_domain(DOMAIN)
        assert codes(result) == ["NO_DMARC_RECORD"]
