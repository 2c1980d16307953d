"""
File: clickatell_sms/encoding.py

Project: Clickatell SMS client

Purpose:
Percent-encoding of HTTP API parameter values.

Rules:
- Unreserved characters [A-Za-z0-9-_.~] pass through
- Space becomes "+" (one character instead of three in SMS text)
- Every other byte becomes "%" + two lowercase hex digits
"""

from __future__ import annotations

from clickatell_sms.buffer import TEXT_ENCODING, SmsBuffer
from clickatell_sms.diagnostics import get_logger

logger = get_logger("encoding")

UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    b"abcdefghijklmnopqrstuvwxyz"
    b"0123456789"
    b"-_.~"
)

_HEX_DIGITS = b"0123456789abcdef"
_SPACE = ord(" ")
_PLUS = ord("+")
_PERCENT = ord("%")


def _encode_bytes(raw: bytes) -> bytes:
    # worst case: every byte needs the 3-byte %xx form
    scratch = bytearray(len(raw) * 3)
    pos = 0

    for byte in raw:
        if byte in UNRESERVED:
            scratch[pos] = byte
            pos += 1
        elif byte == _SPACE:
            scratch[pos] = _PLUS
            pos += 1
        else:
            scratch[pos] = _PERCENT
            scratch[pos + 1] = _HEX_DIGITS[byte >> 4]
            scratch[pos + 2] = _HEX_DIGITS[byte & 0xF]
            pos += 3

    return bytes(scratch[:pos])


def url_encode(buf: SmsBuffer) -> bool:
    """
    Percent-encode the buffer contents in place.
    Returns False (buffer untouched) on invalid input or allocation failure.
    """
    if buf is None or not buf.valid:
        logger.error("url_encode: invalid parameter")
        return False

    try:
        encoded = _encode_bytes(buf.data)
    except MemoryError:
        logger.error("url_encode: failed to alloc encoded string")
        return False

    return buf.replace(encoded)


def encode_value(value: str) -> str:
    """
    Convenience wrapper for plain strings.
    """
    return _encode_bytes(value.encode(TEXT_ENCODING)).decode("ascii")
