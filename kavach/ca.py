"""
MIT License
Copyright (c) 2025 DarekDGB

Lightweight certificate authority for Kavach.

A certificate binds a subject's Ed25519 public key to a redacted identity
(name + last four Aadhaar digits). It is a JSON object whose fields, in
this exact order, are signed by the authority:

    name, lastFourAadhaar, serial, issuer, validFrom, validTo, publicKey

`signature` is appended after signing. Field order is part of the wire
contract: the signed bytes are the compact JSON of the ordered object, the
same bytes JavaScript's JSON.stringify produces, so reordering the fields
breaks verification.

verify_certificate() checks the signature only. Expiry is a separate call
(is_certificate_expired / is_certificate_current) that callers must make.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import secrets
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from .config import certificate_validity_days
from .errors import InvalidFormat, TruncatedKey
from .keys import KEY_SIZE, b64decode_strict, parse_public_key_pem, pem_unwrap, pem_wrap
from .signer import Signer, verify_with_public_key

logger = logging.getLogger(__name__)

CERTIFICATE_LABEL = "AADHAAR CERTIFICATE"
SERIAL_NONCE_BYTES = 8
MS_PER_DAY = 24 * 60 * 60 * 1000

# Wire keys in signing order (signature excluded).
SIGNED_FIELDS = (
    "name",
    "lastFourAadhaar",
    "serial",
    "issuer",
    "validFrom",
    "validTo",
    "publicKey",
)


def _compact_json(obj: Any) -> bytes:
    try:
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidFormat("Certificate fields must be valid UTF-8 text") from exc


def _is_utf8_text(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _sha256_b64(data: bytes) -> str:
    return _b64encode(hashlib.sha256(data).digest())


# ---------------------------------------------------------------------------
# datamodel
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SubjectAttributes:
    """Redacted identity attributes a certificate is issued for."""
    name: str
    last_four_aadhaar: str

    def __post_init__(self) -> None:
        if not _is_utf8_text(self.name) or not self.name.strip():
            raise InvalidFormat("Subject name must be a non-empty UTF-8 string")
        lf = self.last_four_aadhaar
        if not isinstance(lf, str) or len(lf) != 4 or not lf.isascii() or not lf.isdigit():
            raise InvalidFormat("lastFourAadhaar must be exactly 4 digits")

    @classmethod
    def from_document_number(cls, name: str, number: int | str) -> "SubjectAttributes":
        digits = "".join(str(number).split())
        return cls(name=name, last_four_aadhaar=digits[-4:])

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "lastFourAadhaar": self.last_four_aadhaar}


@dataclass(frozen=True)
class Certificate:
    name: str
    last_four_aadhaar: str
    serial: str
    issuer: str
    valid_from: str
    valid_to: str
    public_key: str
    signature: str

    def unsigned_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "lastFourAadhaar": self.last_four_aadhaar,
            "serial": self.serial,
            "issuer": self.issuer,
            "validFrom": self.valid_from,
            "validTo": self.valid_to,
            "publicKey": self.public_key,
        }

    def to_dict(self) -> Dict[str, str]:
        d = self.unsigned_dict()
        d["signature"] = self.signature
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Certificate":
        if not isinstance(d, Mapping):
            raise InvalidFormat("Certificate must be a JSON object")
        for key in (*SIGNED_FIELDS, "signature"):
            if not _is_utf8_text(d.get(key)):
                raise InvalidFormat(f"Certificate field {key!r} missing or not a UTF-8 string")
        return cls(
            name=d["name"],
            last_four_aadhaar=d["lastFourAadhaar"],
            serial=d["serial"],
            issuer=d["issuer"],
            valid_from=d["validFrom"],
            valid_to=d["validTo"],
            public_key=d["publicKey"],
            signature=d["signature"],
        )

    @property
    def subject_public_key(self) -> bytes:
        return b64decode_strict(self.public_key)


def certificate_signing_bytes(cert: Certificate) -> bytes:
    """The exact bytes the issuer signs: compact JSON of the ordered unsigned fields."""
    return _compact_json(cert.unsigned_dict())


def issuer_fingerprint(public_key_pem: str) -> str:
    """base64(sha256(raw issuer public key)), the value stored in `issuer`."""
    return _sha256_b64(parse_public_key_pem(public_key_pem))


# ---------------------------------------------------------------------------
# Authority
# ---------------------------------------------------------------------------


class CertificateAuthority:
    """
    Issues certificates with the authority's private key.

    Construct once and reuse; the instance holds no mutable state.
    """

    def __init__(self, private_key_pem: str, *, validity_days: Optional[int] = None) -> None:
        self._signer = Signer(private_key_pem)
        self._issuer = _sha256_b64(self._signer.public_key)
        days = certificate_validity_days() if validity_days is None else validity_days
        if days <= 0:
            raise ValueError("validity_days must be positive")
        self._validity_ms = days * MS_PER_DAY

    @property
    def issuer_fingerprint(self) -> str:
        return self._issuer

    def public_key_pem(self) -> str:
        return self._signer.public_key_pem()

    def issue_certificate(
        self,
        subject: SubjectAttributes,
        subject_public_key: bytes,
        *,
        now_ms: Optional[int] = None,
    ) -> Certificate:
        """
        Issue a certificate for `subject_public_key` (raw 32 bytes).

        serial = base64(sha256(json(subject) || 8 random bytes)), so reissuing
        for the same attributes still yields a fresh serial.
        """
        if len(subject_public_key) != KEY_SIZE:
            raise TruncatedKey(f"Subject public key must be {KEY_SIZE} bytes")

        nonce = secrets.token_bytes(SERIAL_NONCE_BYTES)
        serial = _sha256_b64(_compact_json(subject.to_dict()) + nonce)

        valid_from = _now_ms() if now_ms is None else now_ms
        valid_to = valid_from + self._validity_ms

        unsigned = Certificate(
            name=subject.name,
            last_four_aadhaar=subject.last_four_aadhaar,
            serial=serial,
            issuer=self._issuer,
            valid_from=str(valid_from),
            valid_to=str(valid_to),
            public_key=_b64encode(bytes(subject_public_key)),
            signature="",
        )
        signature = self._signer.sign(certificate_signing_bytes(unsigned))

        logger.info("Issued certificate serial=%s valid_to=%s", serial, valid_to)
        return replace(unsigned, signature=_b64encode(signature))


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


def verify_certificate(cert: Certificate, issuer_public_key_pem: str) -> bool:
    """
    Verify the issuer signature over the ordered unsigned fields.

    Returns False for a wrong signature. A signature that is not base64 raises
    InvalidBase64; a malformed issuer key raises the key parser errors.
    Validity dates are NOT checked here.
    """
    issuer_key = parse_public_key_pem(issuer_public_key_pem)
    signature = b64decode_strict(cert.signature)
    ok = verify_with_public_key(certificate_signing_bytes(cert), signature, issuer_key)
    if not ok:
        logger.warning("Certificate signature rejected serial=%s", cert.serial)
    return ok


def is_issued_by(cert: Certificate, issuer_public_key_pem: str) -> bool:
    """True when the certificate's issuer fingerprint matches the given key."""
    return cert.issuer == issuer_fingerprint(issuer_public_key_pem)


def _window(cert: Certificate) -> tuple[int, int]:
    try:
        return int(cert.valid_from), int(cert.valid_to)
    except ValueError:
        raise InvalidFormat("validFrom/validTo must be decimal millisecond timestamps") from None


def is_certificate_expired(cert: Certificate, *, now_ms: Optional[int] = None) -> bool:
    _, valid_to = _window(cert)
    now = _now_ms() if now_ms is None else now_ms
    return now > valid_to


def is_certificate_current(cert: Certificate, *, now_ms: Optional[int] = None) -> bool:
    """validFrom <= now <= validTo."""
    valid_from, valid_to = _window(cert)
    now = _now_ms() if now_ms is None else now_ms
    return valid_from <= now <= valid_to


# ---------------------------------------------------------------------------
# PEM
# ---------------------------------------------------------------------------


def encode_certificate_pem(cert: Certificate) -> str:
    return pem_wrap(_compact_json(cert.to_dict()), CERTIFICATE_LABEL)


def decode_certificate_pem(pem: str) -> Certificate:
    raw = pem_unwrap(pem, CERTIFICATE_LABEL)
    try:
        obj = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidFormat("Certificate body is not UTF-8 JSON") from exc
    return Certificate.from_dict(obj)
