"""
MIT License
Copyright (c) 2025 DarekDGB

QR payload handling for Kavach.

Wire format:
    base64( signature[64 bytes] || packed_record[N bytes] )

The signature covers the packed record bytes directly. Verification needs
only the authority public key, so a scanner can check a payload offline.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Tuple

from .errors import MalformedRecord, SignatureInvalid
from .keys import b64decode_strict
from .models import IdentityRecord
from .records import decode_record, encode_record
from .signer import SIGNATURE_SIZE, Signer, verify


@dataclass(frozen=True)
class QRVerification:
    is_valid: bool
    record: IdentityRecord


def build_qr_payload(record_bytes: bytes, signer: Signer) -> str:
    signature = signer.sign(record_bytes)
    return base64.b64encode(signature + bytes(record_bytes)).decode("ascii")


def sign_record(record: IdentityRecord, signer: Signer) -> str:
    """Pack a record and return its signed QR payload text."""
    return build_qr_payload(encode_record(record), signer)


def split_qr_payload(payload: str) -> Tuple[bytes, bytes]:
    """Return (signature, record_bytes). Raises InvalidBase64 / MalformedRecord."""
    raw = b64decode_strict("".join(payload.split()))
    if len(raw) <= SIGNATURE_SIZE:
        raise MalformedRecord(f"QR payload too short: {len(raw)} bytes")
    return raw[:SIGNATURE_SIZE], raw[SIGNATURE_SIZE:]


def verify_qr_payload(payload: str, public_key_pem: str) -> QRVerification:
    """
    Check the signature, then decode the record.

    The record is returned even when the signature is invalid so a UI can
    show it flagged; callers must look at `is_valid`.
    """
    signature, data = split_qr_payload(payload)
    is_valid = verify(data, signature, public_key_pem)
    return QRVerification(is_valid=is_valid, record=decode_record(data))


def read_qr_payload(payload: str, public_key_pem: str) -> IdentityRecord:
    """Strict variant: raise SignatureInvalid instead of returning a flagged record."""
    signature, data = split_qr_payload(payload)
    if not verify(data, signature, public_key_pem):
        raise SignatureInvalid("QR payload signature does not verify")
    return decode_record(data)
