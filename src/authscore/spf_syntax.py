"""SPF term grammar checker (RFC 7208 §4.6 / §5 / §6), one record at a time."""

import re
from typing import Optional

from .models import SyntaxCheckResult

QUALIFIERS = "+-~?"
MECHANISMS = {"a", "mx", "ip4", "ip6", "include", "exists", "all"}
MODIFIERS = {"redirect", "exp"}
VALUE_REQUIRED = {"a", "mx", "include", "exists"}

_IP4_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})(/\d{1,2})?$")
_IP6_RE = re.compile(r"^[0-9a-fA-F:.]*(/\d{1,3})?$")
_NAME_VALUE_RE = re.compile(r"^([^:=]*)(?:[:=](.*))?$", re.DOTALL)


class SpfSyntaxValidator:
    def validate(self, record: str) -> SyntaxCheckResult:
        errors = []
        terms = record.split()

        if not terms or terms[0] != "v=spf1":
            return SyntaxCheckResult(is_valid=False, errors=['Record must start with "v=spf1"'])

        mechanisms = terms[1:]
        if not mechanisms:
            errors.append("Record must contain at least one mechanism or modifier")
        else:
            last = mechanisms[-1]
            if "all" not in last and not last.startswith("redirect="):
                errors.append('Record must end with an "all" mechanism or a "redirect" modifier')

        for term in mechanisms:
            self._validate_term(term, errors)

        return SyntaxCheckResult(is_valid=not errors, errors=errors)

    def _validate_term(self, term: str, errors: list) -> None:
        body = term[1:] if term[0] in QUALIFIERS else term
        name, value = _split_term(body)

        if name in MECHANISMS:
            self._validate_mechanism(name, value, errors)
        elif name in MODIFIERS:
            if not value:
                errors.append(f'Modifier "{name}" requires a value')
        else:
            errors.append(f"Unknown mechanism or modifier: {name}")

    @staticmethod
    def _validate_mechanism(name: str, value: Optional[str], errors: list) -> None:
        if name in VALUE_REQUIRED and not value:
            errors.append(f'Mechanism "{name}" requires a value')
        if name == "ip4" and value and not _valid_ip4(value):
            errors.append(f'Invalid IPv4 address for "ip4": {value}')
        if name == "ip6" and value and not _IP6_RE.match(value):
            errors.append(f'Invalid IPv6 address for "ip6": {value}')


def _split_term(body: str) -> tuple:
    """'include:_spf.example.com' -> ('include', '_spf.example.com'); 'all' -> ('all', None)."""
    match = _NAME_VALUE_RE.match(body)
    return match.group(1), match.group(2)


def _valid_ip4(value: str) -> bool:
    match = _IP4_RE.match(value)
    if not match:
        return False
    if any(int(octet) > 255 for octet in match.groups()[:4]):
        return False
    prefix = match.group(5)
    return prefix is None or int(prefix[1:]) <= 32
