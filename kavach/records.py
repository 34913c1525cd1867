"""
MIT License
Copyright (c) 2025 DarekDGB

Record-level bit layouts for Kavach.

Aadhaar:
    version(3) | tag 00 (2) | gender(2) | number(40) | dob(18) | name(5*k)

PAN:
    version(3) | tag 01 (2) | dob(18) | pan(44) | name(5*k) | fathers_name(5*k)

Fixed-width fields come first and are sliced at known offsets. Names are
NUL-terminated 5-bit code runs scanned last. The whole bit string is padded
with zero bits to a byte boundary.
"""

from __future__ import annotations

from typing import Union

from . import bitcodec as bc
from .charset import CODE_BITS
from .errors import MalformedRecord
from .models import AadhaarRecord, DocumentType, IdentityRecord, PanRecord

_TAG_OFFSET = bc.VERSION_BITS
_HEADER_BITS = bc.VERSION_BITS + bc.TAG_BITS

AADHAAR_PREFIX_BITS = _HEADER_BITS + bc.GENDER_BITS + bc.DOCUMENT_NUMBER_BITS + bc.DOB_BITS  # 65
PAN_PREFIX_BITS = _HEADER_BITS + bc.DOB_BITS + bc.PAN_BITS  # 67


def _header(version: int, doc_type: DocumentType) -> str:
    return bc.encode_version(version) + doc_type.value


def peek_document_type(data: bytes) -> DocumentType:
    """Read the 2-bit document type tag without decoding the rest."""
    if not data:
        raise MalformedRecord("Empty record buffer")
    bits = bc.bytes_to_bits(data[:1])
    tag = bits[_TAG_OFFSET:_HEADER_BITS]
    try:
        return DocumentType(tag)
    except ValueError:
        raise MalformedRecord(f"Unknown document type tag: {tag!r}") from None


def _expect(data: bytes, doc_type: DocumentType, prefix_bits: int, names: int) -> str:
    actual = peek_document_type(data)
    if actual is not doc_type:
        raise MalformedRecord(f"Expected {doc_type.name} record, got {actual.name}")
    bits = bc.bytes_to_bits(data)
    if len(bits) < prefix_bits + names * CODE_BITS:
        raise MalformedRecord(f"{doc_type.name} record too short: {len(data)} bytes")
    return bits


# ---------------------------------------------------------------------------
# Aadhaar
# ---------------------------------------------------------------------------


def encode_aadhaar_record(record: AadhaarRecord) -> bytes:
    bits = (
        _header(record.version, DocumentType.AADHAAR)
        + bc.encode_gender(record.gender)
        + bc.encode_document_number(record.document_number)
        + bc.encode_dob(record.dob)
        + bc.encode_string_bits(record.name)
    )
    return bc.bits_to_bytes(bits)


def decode_aadhaar_record(data: bytes) -> AadhaarRecord:
    bits = _expect(data, DocumentType.AADHAAR, AADHAAR_PREFIX_BITS, names=1)

    version = bc.decode_version(bits[0:3])
    gender = bc.decode_gender(bits[5:7])
    number = bc.decode_document_number(bits[7:47])
    dob = bc.decode_dob(bits[47:65])
    name, _ = bc.decode_string_bits(bits[AADHAAR_PREFIX_BITS:])

    return AadhaarRecord(
        version=version,
        gender=gender,
        document_number=number,
        dob=dob,
        name=name,
    )


# ---------------------------------------------------------------------------
# PAN
# ---------------------------------------------------------------------------


def encode_pan_record(record: PanRecord) -> bytes:
    bits = (
        _header(record.version, DocumentType.PAN)
        + bc.encode_dob(record.dob)
        + bc.encode_pan(record.pan)
        + bc.encode_string_bits(record.name)
        + bc.encode_string_bits(record.fathers_name)
    )
    return bc.bits_to_bytes(bits)


def decode_pan_record(data: bytes) -> PanRecord:
    bits = _expect(data, DocumentType.PAN, PAN_PREFIX_BITS, names=2)

    version = bc.decode_version(bits[0:3])
    dob = bc.decode_dob(bits[5:23])
    pan = bc.decode_pan(bits[23:67])

    cursor = PAN_PREFIX_BITS
    name, used = bc.decode_string_bits(bits[cursor:])
    cursor += used
    fathers_name, _ = bc.decode_string_bits(bits[cursor:])

    return PanRecord(
        version=version,
        dob=dob,
        pan=pan,
        name=name,
        fathers_name=fathers_name,
    )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def encode_record(record: Union[AadhaarRecord, PanRecord]) -> bytes:
    if isinstance(record, AadhaarRecord):
        return encode_aadhaar_record(record)
    if isinstance(record, PanRecord):
        return encode_pan_record(record)
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def decode_record(data: bytes) -> IdentityRecord:
    """Decode either record variant, choosing the layout from the type tag."""
    doc_type = peek_document_type(data)
    if doc_type is DocumentType.PAN:
        return decode_pan_record(data)
    return decode_aadhaar_record(data)
