from __future__ import annotations

import pytest

from kavach import bitcodec as bc
from kavach.errors import InvalidFormat, MalformedRecord, ValueOutOfRange
from kavach.models import AadhaarRecord, DateOfBirth, DocumentType, Gender, PanRecord
from kavach.records import (
    AADHAAR_PREFIX_BITS,
    PAN_PREFIX_BITS,
    decode_aadhaar_record,
    decode_pan_record,
    decode_record,
    encode_aadhaar_record,
    encode_pan_record,
    encode_record,
    peek_document_type,
)


def _aadhaar(**overrides) -> AadhaarRecord:
    fields = dict(
        version=1,
        gender=Gender.MALE,
        document_number=123456789012,
        dob=DateOfBirth(day=1, month=1, year=2000),
        name="ARYAN KUMAR",
    )
    fields.update(overrides)
    return AadhaarRecord(**fields)


def _pan(**overrides) -> PanRecord:
    fields = dict(
        version=3,
        dob=DateOfBirth(day=15, month=8, year=1987),
        pan="ABCDE1234F",
        name="JOHN DOE",
        fathers_name="RICHARD DOE",
    )
    fields.update(overrides)
    return PanRecord(**fields)


def test_prefix_sizes() -> None:
    assert AADHAAR_PREFIX_BITS == 65
    assert PAN_PREFIX_BITS == 67


def test_aadhaar_concrete_roundtrip() -> None:
    rec = _aadhaar()
    data = encode_aadhaar_record(rec)
    # 65 fixed bits + 12 codes * 5 bits = 125 bits -> 16 bytes
    assert len(data) == 16
    # version 001, tag 00, gender 00, first number bit 0
    assert data[0] == 0x20
    assert decode_aadhaar_record(data) == rec
    assert decode_record(data) == rec


def test_aadhaar_roundtrip_various() -> None:
    cases = [
        _aadhaar(version=0, gender=Gender.FEMALE, document_number=0, name=""),
        _aadhaar(version=7, gender=Gender.OTHER, document_number=(1 << 40) - 1, name="A"),
        _aadhaar(gender=Gender.UNKNOWN, dob=DateOfBirth(31, 12, 2411), name="ZZZZZZZZZZZZZZZZZZZ"),
        _aadhaar(name="  LEADING SPACES"),
    ]
    for rec in cases:
        assert decode_record(encode_record(rec)) == rec


def test_aadhaar_name_is_normalized_on_roundtrip() -> None:
    rec = _aadhaar(name="Aryan Kumar Singh Rathore")
    decoded = decode_record(encode_record(rec))
    assert decoded.name == "ARYAN KUMAR SINGH R"


def test_aadhaar_number_overflow_is_rejected() -> None:
    with pytest.raises(ValueOutOfRange):
        encode_aadhaar_record(_aadhaar(document_number=1 << 40))


def test_pan_roundtrip() -> None:
    rec = _pan()
    data = encode_pan_record(rec)
    # 67 + 9 * 5 + 12 * 5 = 172 bits -> 22 bytes
    assert len(data) == 22
    assert peek_document_type(data) is DocumentType.PAN
    assert decode_pan_record(data) == rec
    assert decode_record(data) == rec


def test_pan_roundtrip_with_empty_names() -> None:
    rec = _pan(name="", fathers_name="")
    assert decode_record(encode_record(rec)) == rec


def test_pan_lowercase_input_decodes_uppercase() -> None:
    decoded = decode_record(encode_record(_pan(pan="abcde1234f")))
    assert decoded.pan == "ABCDE1234F"


def test_decode_rejects_empty_and_short_buffers() -> None:
    with pytest.raises(MalformedRecord):
        decode_record(b"")
    data = encode_aadhaar_record(_aadhaar())
    with pytest.raises(MalformedRecord):
        decode_record(data[:8])
    pan = encode_pan_record(_pan())
    with pytest.raises(MalformedRecord):
        decode_record(pan[:9])


def test_decode_rejects_unknown_tags() -> None:
    # version 001, tag 10
    with pytest.raises(MalformedRecord):
        decode_record(b"\x30" + b"\x00" * 15)
    # version 001, tag 11
    with pytest.raises(MalformedRecord):
        peek_document_type(b"\x38")


def test_typed_decoders_reject_other_variant() -> None:
    with pytest.raises(MalformedRecord):
        decode_aadhaar_record(encode_pan_record(_pan()))
    with pytest.raises(MalformedRecord):
        decode_pan_record(encode_aadhaar_record(_aadhaar()))


def test_decode_rejects_unterminated_name() -> None:
    bits = (
        bc.encode_version(1)
        + DocumentType.AADHAAR.value
        + bc.encode_gender(Gender.MALE)
        + bc.encode_document_number(1)
        + bc.encode_dob(DateOfBirth(1, 1, 2000))
        + bc.codes_to_bits([0, 0, 0])
    )
    assert len(bits) == 80
    with pytest.raises(MalformedRecord):
        decode_record(bc.bits_to_bytes(bits))


def test_encode_record_rejects_unknown_type() -> None:
    with pytest.raises(TypeError):
        encode_record({"name": "X"})  # type: ignore[arg-type]


def test_pan_with_trailing_newline_is_rejected() -> None:
    with pytest.raises(InvalidFormat):
        encode_record(_pan(pan="ABCDE1234F\n"))
