"""
MIT License
Copyright (c) 2025 DarekDGB

Bit-level field codecs for Kavach identity records.

Bit strings are plain str values of "0"/"1", most significant bit first.
Encoders validate ranges and raise instead of truncating; decoders check
field widths and raise MalformedRecord on corrupt input.
"""

from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from .charset import (
    CODE_BITS,
    MAX_NAME_LENGTH,
    NUL,
    NULL_CODE,
    char_for,
    code_for,
)
from .errors import (
    InvalidCharacter,
    InvalidFormat,
    InvalidGenderCode,
    MalformedRecord,
    ValueOutOfRange,
)
from .models import MIN_YEAR, DateOfBirth, Gender

VERSION_BITS = 3
TAG_BITS = 2
GENDER_BITS = 2
DOB_BITS = 18
DOCUMENT_NUMBER_BITS = 40
PAN_BITS = 44

_DAY_BITS = 5
_MONTH_BITS = 4
_YEAR_BITS = 9
_PAN_NUMBER_BITS = 14

_PAN_RE = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")

_GENDER_TO_BITS = {
    Gender.MALE: "00",
    Gender.FEMALE: "01",
    Gender.OTHER: "10",
    Gender.UNKNOWN: "11",
}
_BITS_TO_GENDER = {bits: g for g, bits in _GENDER_TO_BITS.items()}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _uint_to_bits(value: int, width: int, field: str) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueOutOfRange(f"{field} must be an int")
    if value < 0 or value >= (1 << width):
        raise ValueOutOfRange(f"{field} {value} does not fit in {width} bits")
    return format(value, f"0{width}b")


def _bits_to_uint(bits: str, width: int, field: str) -> int:
    if len(bits) != width or not _is_bit_string(bits):
        raise MalformedRecord(f"Invalid {field} length: expected {width} bits, got {len(bits)}")
    return int(bits, 2)


def _is_bit_string(bits: str) -> bool:
    return all(b in "01" for b in bits)


# ---------------------------------------------------------------------------
# Strings (5-bit codes, NUL terminated)
# ---------------------------------------------------------------------------


def encode_string(text: str) -> List[int]:
    """
    Encode a name into 5-bit codes.

    Uppercases, keeps at most 19 characters and appends the NUL terminator.
    Anything other than A-Z and space raises InvalidCharacter.
    """
    text = text.upper()[:MAX_NAME_LENGTH]
    # An embedded NUL would end the name early on decode.
    if NUL in text:
        raise InvalidCharacter("Names must not contain NUL")
    codes = [code_for(ch) for ch in text]
    codes.append(NULL_CODE)
    return codes


def decode_string(codes: Sequence[int]) -> Tuple[str, int]:
    """
    Decode codes up to the NUL terminator (or end of input).

    Returns (text, consumed). `consumed` includes the terminator when one was
    found, so the next field starts at codes[consumed].
    """
    out: List[str] = []
    for i, code in enumerate(codes):
        if code == NULL_CODE:
            return "".join(out), i + 1
        out.append(char_for(code))
    return "".join(out), len(codes)


def codes_to_bits(codes: Sequence[int]) -> str:
    return "".join(_uint_to_bits(c, CODE_BITS, "character code") for c in codes)


def bits_to_codes(bits: str) -> List[int]:
    """Split a bit string into whole 5-bit codes; a trailing partial code is ignored."""
    usable = len(bits) - len(bits) % CODE_BITS
    return [int(bits[i : i + CODE_BITS], 2) for i in range(0, usable, CODE_BITS)]


def encode_string_bits(text: str) -> str:
    return codes_to_bits(encode_string(text))


def decode_string_bits(bits: str) -> Tuple[str, int]:
    """
    Scan a bit string 5 bits at a time for a NUL-terminated name.

    Returns (text, bits_consumed). A name that reaches the end of the bits
    without a terminator raises MalformedRecord.
    """
    codes = bits_to_codes(bits)
    text, consumed = decode_string(codes)
    if consumed == 0 or codes[consumed - 1] != NULL_CODE:
        raise MalformedRecord("Name field is missing its terminator")
    return text, consumed * CODE_BITS


# ---------------------------------------------------------------------------
# Fixed-width fields
# ---------------------------------------------------------------------------


def encode_version(version: int) -> str:
    return _uint_to_bits(version, VERSION_BITS, "version")


def decode_version(bits: str) -> int:
    return _bits_to_uint(bits, VERSION_BITS, "version")


def encode_gender(gender: Gender) -> str:
    try:
        return _GENDER_TO_BITS[Gender(gender)]
    except ValueError:
        raise InvalidFormat(f"Unknown gender: {gender!r}") from None


def decode_gender(bits: str) -> Gender:
    try:
        return _BITS_TO_GENDER[bits]
    except KeyError:
        raise InvalidGenderCode(f"Invalid gender code: {bits!r}") from None


def encode_dob(dob: DateOfBirth) -> str:
    return (
        _uint_to_bits(dob.day, _DAY_BITS, "day")
        + _uint_to_bits(dob.month, _MONTH_BITS, "month")
        + _uint_to_bits(dob.year - MIN_YEAR, _YEAR_BITS, "year offset")
    )


def decode_dob(bits: str) -> DateOfBirth:
    if len(bits) != DOB_BITS:
        raise MalformedRecord(f"Invalid DOB length: expected {DOB_BITS} bits, got {len(bits)}")
    day = _bits_to_uint(bits[:5], _DAY_BITS, "day")
    month = _bits_to_uint(bits[5:9], _MONTH_BITS, "month")
    year = _bits_to_uint(bits[9:], _YEAR_BITS, "year") + MIN_YEAR
    try:
        return DateOfBirth(day=day, month=month, year=year)
    except ValueOutOfRange as exc:
        raise MalformedRecord(f"Corrupt date of birth: {exc}") from exc


def encode_document_number(number: int) -> str:
    """Aadhaar number as 40 bits. Values of 2**40 and above raise ValueOutOfRange."""
    return _uint_to_bits(number, DOCUMENT_NUMBER_BITS, "document number")


def decode_document_number(bits: str) -> int:
    return _bits_to_uint(bits, DOCUMENT_NUMBER_BITS, "document number")


def normalize_pan(pan: str) -> str:
    if not isinstance(pan, str):
        raise InvalidFormat("PAN must be a string")
    p = pan.upper()
    if not _PAN_RE.fullmatch(p):
        raise InvalidFormat(f"Invalid PAN format: {pan!r}")
    return p


def encode_pan(pan: str) -> str:
    """
    PAN as 44 bits: 5 letter codes (25 bits), the 4-digit number (14 bits),
    the trailing letter (5 bits).
    """
    p = normalize_pan(pan)
    return (
        codes_to_bits([code_for(ch) for ch in p[:5]])
        + _uint_to_bits(int(p[5:9]), _PAN_NUMBER_BITS, "PAN number")
        + codes_to_bits([code_for(p[9])])
    )


def decode_pan(bits: str) -> str:
    if len(bits) != PAN_BITS or not _is_bit_string(bits):
        raise MalformedRecord(f"Invalid PAN length: expected {PAN_BITS} bits, got {len(bits)}")
    letters = "".join(char_for(c) for c in bits_to_codes(bits[:25]))
    number = int(bits[25:39], 2)
    last = char_for(int(bits[39:44], 2))
    pan = f"{letters}{number:04d}{last}"
    if not _PAN_RE.fullmatch(pan):
        raise MalformedRecord("Corrupt PAN field")
    return pan


# ---------------------------------------------------------------------------
# Bytes
# ---------------------------------------------------------------------------


def bits_to_bytes(bits: str) -> bytes:
    """Pack MSB first, zero-padding the final byte."""
    if not _is_bit_string(bits):
        raise ValueError("bit string may only contain '0' and '1'")
    if not bits:
        return b""
    padded = bits + "0" * (-len(bits) % 8)
    return int(padded, 2).to_bytes(len(padded) // 8, "big")


def bytes_to_bits(data: bytes) -> str:
    return "".join(format(b, "08b") for b in data)
