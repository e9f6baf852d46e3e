"""DKIM key record tag-list parser (RFC 6376 §3.2 / §3.6.1)."""

import logging

from .exceptions import DkimParseError
from .models import DkimTags

logger = logging.getLogger(__name__)


def _flags(value: str) -> list:
    return [f.strip() for f in value.split(":") if f.strip()]


# tag -> (DkimTags field, value transform). Tags not listed here are ignored.
TAG_TABLE = {
    "v": ("version", str),
    "a": ("algorithm", str.lower),
    "k": ("key_type", str.lower),
    "p": ("public_key", str),
    "s": ("service_type", str),
    "t": ("flags", _flags),
    "n": ("notes", str),
}


def split_tag_list(record: str) -> list:
    """Split on ';' outside single- or double-quoted spans. Returns stripped, non-empty segments."""
    segments = []
    current = []
    quote = None
    for ch in record:
        if quote:
            if ch == quote:
                quote = None
            current.append(ch)
        elif ch in ("'", '"'):
            quote = ch
            current.append(ch)
        elif ch == ";":
            segments.append("".join(current))
            current = []
        else:
            current.append(ch)
    segments.append("".join(current))
    return [s.strip() for s in segments if s.strip()]


def parse_dkim_record(record: str) -> DkimTags:
    """Parse a DKIM TXT record. Raises DkimParseError when v= is not the first tag."""
    tags = DkimTags()

    for index, segment in enumerate(split_tag_list(record)):
        if "=" not in segment:
            continue
        name, _, value = segment.partition("=")
        name = name.strip()
        value = value.strip()

        if name == "v" and index != 0:
            raise DkimParseError(
                f"DKIM record invalid: 'v=' tag must be the first tag (RFC 6376 §3.6.1), found at position {index + 1}"
            )

        entry = TAG_TABLE.get(name)
        if entry is None:
            logger.debug("Ignoring unknown DKIM tag %r", name)
            continue
        attr, transform = entry
        setattr(tags, attr, transform(value))

    return tags
