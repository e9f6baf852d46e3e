"""DKIM RSA key strength: base64 + ASN.1 DER walk down to the modulus INTEGER.

Two encodings are accepted, both starting with a SEQUENCE:

    SubjectPublicKeyInfo ::= SEQUENCE { AlgorithmIdentifier, BIT STRING { RSAPublicKey } }
    RSAPublicKey         ::= SEQUENCE { modulus INTEGER, publicExponent INTEGER }
"""

import base64
import binascii
import logging
import re
from typing import Optional

from .exceptions import KeyDecodeError
from .models import DkimTags

logger = logging.getLogger(__name__)

TAG_INTEGER = 0x02
TAG_BIT_STRING = 0x03
TAG_SEQUENCE = 0x30

_STRIP_RE = re.compile(r'[\s"]+')


class DerReader:
    """Forward-only cursor over DER bytes with bounds checks on every read."""

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def peek(self) -> int:
        if self.remaining < 1:
            raise KeyDecodeError("Unexpected end of key data")
        return self._data[self._pos]

    def read_byte(self) -> int:
        value = self.peek()
        self._pos += 1
        return value

    def expect_tag(self, tag: int, what: str) -> None:
        found = self.read_byte()
        if found != tag:
            raise KeyDecodeError(f"Expected {what} (0x{tag:02x}), found 0x{found:02x}")

    def read_length(self) -> int:
        """Short form (<0x80) or long form (0x8N followed by N big-endian bytes)."""
        first = self.read_byte()
        if not first & 0x80:
            return first
        count = first & 0x7F
        if count == 0 or count > 4:
            raise KeyDecodeError(f"Unsupported DER length encoding 0x{first:02x}")
        if self.remaining < count:
            raise KeyDecodeError("Truncated DER length")
        length = 0
        for _ in range(count):
            length = (length << 8) | self.read_byte()
        return length

    def skip(self, count: int) -> None:
        if count > self.remaining:
            raise KeyDecodeError(f"Truncated DER element: need {count} bytes, have {self.remaining}")
        self._pos += count

    def skip_element(self) -> None:
        self.read_byte()
        self.skip(self.read_length())


def decode_public_key(public_key: str) -> bytes:
    """Strip whitespace/quotes, pad to a multiple of 4, strict base64 decode."""
    cleaned = _STRIP_RE.sub("", public_key)
    if not cleaned:
        raise KeyDecodeError("Empty public key")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise KeyDecodeError(f"Invalid base64 public key: {e}") from e


def decode_modulus_bits(der: bytes) -> int:
    """Return the RSA modulus size in bits. Raises KeyDecodeError on any structural problem."""
    reader = DerReader(der)
    reader.expect_tag(TAG_SEQUENCE, "SEQUENCE")
    reader.read_length()

    if reader.peek() == TAG_SEQUENCE:
        # SubjectPublicKeyInfo: skip AlgorithmIdentifier, unwrap the BIT STRING
        reader.skip_element()
        reader.expect_tag(TAG_BIT_STRING, "BIT STRING")
        reader.read_length()
        reader.read_byte()  # unused-bits count
        reader.expect_tag(TAG_SEQUENCE, "RSA key SEQUENCE")
        reader.read_length()

    reader.expect_tag(TAG_INTEGER, "INTEGER modulus")
    length = reader.read_length()
    if length == 0:
        raise KeyDecodeError("Empty modulus")
    if length > reader.remaining:
        raise KeyDecodeError(f"Truncated modulus: need {length} bytes, have {reader.remaining}")
    if reader.peek() == 0x00:
        length -= 1
    return length * 8


def key_bits(tags: DkimTags, selector: str = "") -> Optional[int]:
    """Modulus bit length of the p= key, or None when missing or undecodable. Never raises."""
    if not tags.public_key:
        return None
    try:
        bits = decode_modulus_bits(decode_public_key(tags.public_key))
    except KeyDecodeError as e:
        logger.warning("Failed to determine key length for selector %s: %s", selector or "?", e)
        return None
    logger.debug("DKIM key length for selector %s: %d bits", selector or "?", bits)
    return bits
