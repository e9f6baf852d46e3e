"""Shared test factories for mock DNS responses, keys and model objects."""

from unittest.mock import MagicMock

from authscore.config import AppConfig, DkimSettings
from authscore.models import (
    DkimRecord,
    DkimRecordSet,
    DnsStatus,
    RegistrationResult,
    SpfRecordKind,
    SpfRecordOccurrence,
    TxtLookupResult,
)
from authscore.dkim_parser import parse_dkim_record

# Real RSA public keys (openssl genrsa | openssl rsa -pubout, base64 body only).
KEY_2048_SPKI = "MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEAseztKb7fvSqi8KbZdaoWqoWgCBFQZmsJBmoAs1sdqUA82LT+JjuC+RJ/qH3/SKo4ClF8uP7XxqfL5317VeQEPrD767zKPUbq5Z3d07UFB85+Ya8rpu9F6zS+8Z4ZG0JNlkz+pMf0WAsRlcLjM37CD2CQHlvMz3YkGm8VNGk7VrlkDKPXzhynq526KqwSnpho2R5NIgTcLaettOYqtRYvqmyW/KN4nDRU+b6W5Z3hqhYQ2xJBAuvZtl+Q3GQ6NfTxuTRzuyY/WQQowJXRkP9iA7uOEgaS5Gt5gGKgKiTIQ81i7g99cqZyQ/VMEXCV9AdbCjRXaO+gb43C6FFkDQTqRwIDAQAB"  # noqa: E501
KEY_1024_SPKI = "MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQKBgQC7HjqBlo+EiF7vBlLR6dXc31/Qp4poYfI2OIT6ijs8uMxrSTkGHhXMmU56Qah2GTHKfQMivhEMmqiOXB8/nusevXvKZS72wwKcL+63PJCwJ2K4DnGtLKGQzvsw+f4smIdJKbXwViNDEaENWkZovM5kcTXmS+7g6Lmtuctwci79rwIDAQAB"  # noqa: E501
KEY_512_SPKI = "MFwwDQYJKoZIhvcNAQEBBQADSwAwSAJBALiLnKYQUHybo2d0gpnQDzH0zepv3/3/N38CBinwuJpvAdJmUSA1n0vKaaYREajvLfNbY53SeNb838TRH5Lq7yMCAwEAAQ=="
KEY_1024_PKCS1 = "MIGJAoGBALseOoGWj4SIXu8GUtHp1dzfX9Cnimhh8jY4hPqKOzy4zGtJOQYeFcyZTnpBqHYZMcp9AyK+EQyaqI5cHz+e6x69e8plLvbDApwv7rc8kLAnYrgOca0soZDO+zD5/iyYh0kptfBWI0MRoQ1aRmi8zmRxNeZL7uDoua25y3ByLv2vAgMBAAE="  # noqa: E501
# Header of a 1024-bit SPKI key with the modulus cut off.
KEY_TRUNCATED = "MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQ=="


def txt_response(name, txt_values=None, status=DnsStatus.NOERROR):
    """Build a TxtLookupResult with zero or more TXT strings."""
    return TxtLookupResult(name=name, status=status, records=list(txt_values or []))


def nxdomain(name):
    """Return an NXDOMAIN response for a name."""
    return txt_response(name, status=DnsStatus.NXDOMAIN)


def mock_fetcher(mapping=None):
    """
    Build a mock TXT lookup port whose query_txt() answers from `mapping`.

    mapping: dict of name -> list[str] of TXT values, a TxtLookupResult, or an
    exception instance to raise. Unknown names return an empty NOERROR response.
    """
    mapping = mapping or {}
    fetcher = MagicMock()

    def _query_txt(name):
        if name not in mapping:
            return txt_response(name)
        val = mapping[name]
        if isinstance(val, BaseException):
            raise val
        if isinstance(val, TxtLookupResult):
            return val
        return txt_response(name, val)

    def _check_registration(domain):
        val = mapping.get(domain)
        status = val.status if isinstance(val, TxtLookupResult) else DnsStatus.NOERROR
        return RegistrationResult(
            domain=domain,
            is_registered=status != DnsStatus.NXDOMAIN,
            status=status,
            query_time_ms=1.0,
        )

    fetcher.query_txt.side_effect = _query_txt
    fetcher.check_registration.side_effect = _check_registration
    return fetcher


def dkim_txt(public_key=KEY_2048_SPKI, version="DKIM1", algorithm="rsa-sha256", flags=None):
    parts = []
    if version is not None:
        parts.append(f"v={version}")
    if algorithm is not None:
        parts.append(f"a={algorithm}")
    parts.append("k=rsa")
    if flags:
        parts.append(f"t={flags}")
    parts.append(f"p={public_key}")
    return "; ".join(parts)


def make_config(selectors=("google", "selector1", "selector2", "default")):
    """AppConfig with a short selector list so selector lookups stay predictable."""
    config = AppConfig()
    config.dkim = DkimSettings(selectors=list(selectors), selector_cache_ttl=300.0, max_workers=4)
    return config


# ── Model object factories ──────────────────────────────────────────────────────

def occurrence(raw_record, domain="example.com", kind=SpfRecordKind.INITIAL):
    return SpfRecordOccurrence(domain=domain, raw_record=raw_record, kind=kind)


def dkim_record(selector="google", domain="example.com", raw=None):
    raw = raw if raw is not None else dkim_txt()
    return DkimRecord(domain=domain, selector=selector, raw_record=raw, tags=parse_dkim_record(raw))


def dkim_record_set(*records, domain="example.com"):
    return DkimRecordSet(domain=domain, records=list(records))
