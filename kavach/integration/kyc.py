"""
MIT License
Copyright (c) 2025 DarekDGB

KYC consent round trip.

1. A KYC desk sends a `consent` message with the consent text.
2. The holder signs the consent text with their own key and answers with a
   `verification` message carrying the signature and their certificate.
3. The desk checks, in order: the certificate signature against the
   authority key, the certificate validity window, and the holder's
   signature against the public key inside the certificate.

The verdict keeps those failure modes apart so a UI can tell "could not
read" from "expired" from "signature invalid".
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..ca import (
    Certificate,
    decode_certificate_pem,
    is_certificate_current,
    verify_certificate,
)
from ..errors import KavachError
from ..messages import ConsentPayload, MessageKind, PeerMessage, VerificationPayload, new_message
from ..signer import Signer, verify_with_public_key

logger = logging.getLogger(__name__)


class ConsentStatus(str, Enum):
    VERIFIED = "verified"
    UNREADABLE = "unreadable"
    CERTIFICATE_INVALID = "certificate_invalid"
    CERTIFICATE_EXPIRED = "certificate_expired"
    SIGNATURE_INVALID = "signature_invalid"


@dataclass(frozen=True)
class ConsentVerdict:
    status: ConsentStatus
    certificate: Optional[Certificate] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ConsentStatus.VERIFIED


def build_consent_request(consent_id: str, text: str, *, from_device: str) -> PeerMessage:
    if not consent_id or not text.strip():
        raise ValueError("consent_id and text are required")
    return new_message(ConsentPayload(consent_id=consent_id, text=text), from_device=from_device)


def respond_to_consent(
    consent: PeerMessage,
    signer: Signer,
    certificate_pem: str,
    *,
    device_name: str,
) -> PeerMessage:
    """
    Holder side: sign the consent text (UTF-8 bytes) and build the reply.

    The certificate is parsed first so a holder never sends an unreadable one.
    """
    if consent.kind is not MessageKind.CONSENT or not isinstance(consent.payload, ConsentPayload):
        raise ValueError(f"Expected a consent message, got {consent.kind.value!r}")
    decode_certificate_pem(certificate_pem)

    signature = signer.sign(consent.payload.text)
    reply = VerificationPayload(
        consent_id=consent.payload.consent_id,
        signature=base64.b64encode(signature).decode("ascii"),
        certificate_pem=certificate_pem,
    )
    return new_message(reply, from_device=device_name, to_device=consent.from_device)


def verify_consent_response(
    consent: ConsentPayload,
    response: PeerMessage,
    authority_public_key_pem: str,
    *,
    now_ms: Optional[int] = None,
) -> ConsentVerdict:
    """
    Desk side: decide whether `response` is a valid signed answer to `consent`.

    Never raises for bad holder input; the verdict carries the reason.
    """
    payload = response.payload
    if response.kind is not MessageKind.VERIFICATION or not isinstance(payload, VerificationPayload):
        return ConsentVerdict(ConsentStatus.UNREADABLE, detail="not a verification message")
    if payload.consent_id != consent.consent_id:
        return ConsentVerdict(ConsentStatus.UNREADABLE, detail="response is for a different consent")

    try:
        cert = decode_certificate_pem(payload.certificate_pem)
        cert_ok = verify_certificate(cert, authority_public_key_pem)
        holder_key = cert.subject_public_key
    except KavachError as exc:
        logger.warning("Unreadable consent response %s: %s", response.id, exc)
        return ConsentVerdict(ConsentStatus.UNREADABLE, detail=str(exc))

    if not cert_ok:
        return ConsentVerdict(ConsentStatus.CERTIFICATE_INVALID, certificate=cert)

    try:
        current = is_certificate_current(cert, now_ms=now_ms)
    except KavachError as exc:
        return ConsentVerdict(ConsentStatus.UNREADABLE, certificate=cert, detail=str(exc))
    if not current:
        return ConsentVerdict(ConsentStatus.CERTIFICATE_EXPIRED, certificate=cert)

    try:
        sig_ok = verify_with_public_key(consent.text, payload.signature, holder_key)
    except KavachError as exc:
        return ConsentVerdict(ConsentStatus.UNREADABLE, certificate=cert, detail=str(exc))
    if not sig_ok:
        return ConsentVerdict(ConsentStatus.SIGNATURE_INVALID, certificate=cert)

    return ConsentVerdict(ConsentStatus.VERIFIED, certificate=cert)
