from __future__ import annotations

import base64

import pytest

from kavach.errors import InvalidBase64, MalformedRecord, SignatureInvalid
from kavach.models import AadhaarRecord, DateOfBirth, Gender, PanRecord
from kavach.qr_payloads import (
    build_qr_payload,
    read_qr_payload,
    sign_record,
    split_qr_payload,
    verify_qr_payload,
)
from kavach.records import encode_record
from kavach.signer import Signer, generate_keypair

AUTHORITY = generate_keypair()
OTHER = generate_keypair()

AADHAAR = AadhaarRecord(
    version=1,
    gender=Gender.FEMALE,
    document_number=987654321098,
    dob=DateOfBirth(day=29, month=2, year=1996),
    name="PRIYA SHARMA",
)
PAN = PanRecord(
    version=2,
    dob=DateOfBirth(day=15, month=8, year=1987),
    pan="ABCDE1234F",
    name="JOHN DOE",
    fathers_name="RICHARD DOE",
)


def _signer() -> Signer:
    return Signer(AUTHORITY.private_key_pem)


def _flip(payload: str, index: int, mask: int) -> str:
    raw = bytearray(base64.b64decode(payload))
    raw[index] ^= mask
    return base64.b64encode(bytes(raw)).decode()


@pytest.mark.parametrize("record", [AADHAAR, PAN])
def test_sign_and_verify(record) -> None:
    payload = sign_record(record, _signer())
    result = verify_qr_payload(payload, AUTHORITY.public_key_pem)
    assert result.is_valid is True
    assert result.record == record
    assert read_qr_payload(payload, AUTHORITY.public_key_pem) == record


def test_payload_layout() -> None:
    data = encode_record(AADHAAR)
    payload = build_qr_payload(data, _signer())
    raw = base64.b64decode(payload)
    assert raw[64:] == data
    assert _signer().sign(data) == raw[:64]
    signature, record_bytes = split_qr_payload(payload)
    assert signature == raw[:64]
    assert record_bytes == data


def test_wrong_authority_is_invalid() -> None:
    payload = sign_record(AADHAAR, _signer())
    result = verify_qr_payload(payload, OTHER.public_key_pem)
    assert result.is_valid is False
    assert result.record == AADHAAR
    with pytest.raises(SignatureInvalid):
        read_qr_payload(payload, OTHER.public_key_pem)


@pytest.mark.parametrize(
    "record,index,mask",
    [
        (AADHAAR, 0, 0x01),  # first signature byte
        (AADHAAR, 63, 0x80),  # last signature byte
        (AADHAAR, 64 + 0, 0x80),  # version
        (AADHAAR, 64 + 3, 0x01),  # document number
        (AADHAAR, 64 + 6, 0x10),  # dob day, 29 -> 28
        (AADHAAR, 64 + 7, 0x02),  # dob year, 1996 -> 2000
        (AADHAAR, 64 + 10, 0x08),  # name, Y -> Z
        (AADHAAR, 64 + 16, 0x01),  # padding in the last byte
        (PAN, 64 + 7, 0x04),  # PAN number, 1234 -> 1235
        (PAN, 64 + 14, 0x08),  # fathers name, R -> Q
    ],
)
def test_any_bit_flip_invalidates(record, index: int, mask: int) -> None:
    payload = _flip(sign_record(record, _signer()), index, mask)
    assert verify_qr_payload(payload, AUTHORITY.public_key_pem).is_valid is False
    with pytest.raises(SignatureInvalid):
        read_qr_payload(payload, AUTHORITY.public_key_pem)


def test_signature_over_base64_text_does_not_verify() -> None:
    data = encode_record(AADHAAR)
    text_sig = _signer().sign(base64.b64encode(data))
    payload = base64.b64encode(text_sig + data).decode()
    assert verify_qr_payload(payload, AUTHORITY.public_key_pem).is_valid is False


def test_whitespace_in_payload_is_ignored() -> None:
    payload = sign_record(PAN, _signer())
    wrapped = "\n".join(payload[i : i + 20] for i in range(0, len(payload), 20))
    assert verify_qr_payload(" " + wrapped + "\n", AUTHORITY.public_key_pem).is_valid


def test_split_rejects_short_and_garbage_payloads() -> None:
    with pytest.raises(MalformedRecord):
        split_qr_payload(base64.b64encode(b"\x00" * 64).decode())
    with pytest.raises(MalformedRecord):
        split_qr_payload("")
    with pytest.raises(InvalidBase64):
        split_qr_payload("not*base64!")


def test_unknown_record_tag_is_malformed() -> None:
    data = bytearray(encode_record(AADHAAR))
    data[0] |= 0b0001_1000  # tag bits -> 11
    payload = build_qr_payload(bytes(data), _signer())
    with pytest.raises(MalformedRecord):
        verify_qr_payload(payload, AUTHORITY.public_key_pem)
