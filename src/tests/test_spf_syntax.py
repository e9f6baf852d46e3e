"""Unit tests for SpfSyntaxValidator — term grammar, values, error accumulation."""

import pytest

from authscore.spf_syntax import SpfSyntaxValidator


def check(record):
    return SpfSyntaxValidator().validate(record)


class TestVersion:
    def test_valid_minimal_record(self):
        result = check("v=spf1 ip4:192.168.1.1 -all")
        assert result.is_valid
        assert result.errors == []

    def test_missing_version_is_single_terminal_error(self):
        result = check("ip4:192.168.1.1 -all foo")
        assert not result.is_valid
        assert result.errors == ['Record must start with "v=spf1"']

    def test_version_is_case_sensitive(self):
        assert not check("V=SPF1 -all").is_valid

    def test_empty_record(self):
        assert check("").errors == ['Record must start with "v=spf1"']

    def test_version_only(self):
        result = check("v=spf1")
        assert "Record must contain at least one mechanism or modifier" in result.errors


class TestTermination:
    @pytest.mark.parametrize("record", [
        "v=spf1 mx:mail.example.net -all",
        "v=spf1 include:_spf.google.com ~all",
        "v=spf1 a:example.net ?all",
        "v=spf1 redirect=_spf.example.net",
    ])
    def test_valid_endings(self, record):
        assert check(record).is_valid

    def test_missing_all_or_redirect(self):
        result = check("v=spf1 ip4:10.0.0.1")
        assert 'Record must end with an "all" mechanism or a "redirect" modifier' in result.errors

    def test_missing_ending_does_not_stop_other_checks(self):
        result = check("v=spf1 bogus ip4:10.0.0.1")
        assert len(result.errors) == 2
        assert "Unknown mechanism or modifier: bogus" in result.errors


class TestMechanisms:
    def test_unknown_mechanism(self):
        result = check("v=spf1 foo:bar -all")
        assert result.errors == ["Unknown mechanism or modifier: foo"]

    def test_ptr_is_not_a_known_mechanism(self):
        assert "Unknown mechanism or modifier: ptr" in check("v=spf1 ptr -all").errors

    @pytest.mark.parametrize("name", ["a", "mx", "include", "exists"])
    def test_value_required(self, name):
        assert f'Mechanism "{name}" requires a value' in check(f"v=spf1 {name} -all").errors

    def test_qualifier_stripped_before_name(self):
        assert check("v=spf1 -include:example.net +mx:mail.example.net ~all").is_valid


class TestIpAddresses:
    def test_ip4_with_prefix(self):
        assert check("v=spf1 ip4:10.0.0.0/8 -all").is_valid

    def test_ip4_out_of_range(self):
        result = check("v=spf1 ip4:999.999.999.999 -all")
        assert any("Invalid IPv4 address" in e for e in result.errors)

    def test_ip4_prefix_too_long(self):
        assert not check("v=spf1 ip4:10.0.0.0/33 -all").is_valid

    def test_ip4_not_an_address(self):
        assert not check("v=spf1 ip4:mail.example.net -all").is_valid

    def test_ip6_valid(self):
        assert check("v=spf1 ip6:2001:db8::1 -all").is_valid

    def test_ip6_with_prefix(self):
        assert check("v=spf1 ip6:2001:db8::/32 -all").is_valid

    def test_ip6_rejects_non_hex(self):
        result = check("v=spf1 ip6:2001:zz8::1 -all")
        assert any("Invalid IPv6 address" in e for e in result.errors)


class TestModifiers:
    def test_modifier_requires_value(self):
        assert 'Modifier "exp" requires a value' in check("v=spf1 exp= -all").errors

    def test_exp_with_value(self):
        assert check("v=spf1 exp=explain.example.net -all").is_valid


class TestAccumulation:
    def test_all_errors_reported_together(self):
        result = check("v=spf1 ip4:300.1.1.1 foo include ip6:xyz -all")
        assert len(result.errors) == 4
        assert not result.is_valid
