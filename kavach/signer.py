"""
MIT License
Copyright (c) 2025 DarekDGB

Ed25519 signing and verification for Kavach.

Keys cross this module's boundary as PEM text or raw 32-byte values; the
PEM/DER work is done by kavach.keys. The curve arithmetic itself comes from
the `cryptography` package.

Signing rule: packed record bytes are signed as-is, never their base64 text.
Text payloads (consent strings) are UTF-8 encoded first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .keys import (
    KEY_SIZE,
    b64decode_strict,
    encode_private_key_pem,
    encode_public_key_pem,
    parse_private_key_pem,
    parse_public_key_pem,
)
from .errors import InvalidFormat, TruncatedKey

logger = logging.getLogger(__name__)

SIGNATURE_SIZE = 64

Payload = Union[bytes, bytearray, memoryview, str]
SignatureInput = Union[bytes, bytearray, str]


@dataclass(frozen=True)
class KeyPair:
    private_key_pem: str
    public_key_pem: str


def _message_bytes(payload: Payload) -> bytes:
    if isinstance(payload, str):
        try:
            return payload.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidFormat("Text payload is not valid UTF-8") from None
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    raise TypeError(f"payload must be bytes or str, not {type(payload).__name__}")


def _signature_bytes(signature: SignatureInput) -> bytes:
    if isinstance(signature, str):
        return b64decode_strict(signature)
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    raise TypeError(f"signature must be bytes or base64 str, not {type(signature).__name__}")


def _raw_public(key: Ed25519PublicKey) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def public_key_from_private(private_key: bytes) -> bytes:
    """Derive the raw 32-byte public key from a raw 32-byte private key."""
    if len(private_key) != KEY_SIZE:
        raise TruncatedKey(f"Ed25519 private key must be {KEY_SIZE} bytes")
    return _raw_public(Ed25519PrivateKey.from_private_bytes(bytes(private_key)).public_key())


def generate_keypair() -> KeyPair:
    """Generate a fresh Ed25519 key pair as PEM text."""
    key = Ed25519PrivateKey.generate()
    raw = key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return KeyPair(
        private_key_pem=encode_private_key_pem(raw),
        public_key_pem=encode_public_key_pem(_raw_public(key.public_key())),
    )


class Signer:
    """
    Holds one Ed25519 private key, parsed once at construction.

    Instances are never mutated afterwards and can be shared across threads.
    """

    def __init__(self, private_key_pem: str) -> None:
        self._init_from_raw(parse_private_key_pem(private_key_pem))

    @classmethod
    def from_private_bytes(cls, private_key: bytes) -> "Signer":
        obj = cls.__new__(cls)
        obj._init_from_raw(bytes(private_key))
        return obj

    def _init_from_raw(self, raw: bytes) -> None:
        if len(raw) != KEY_SIZE:
            raise TruncatedKey(f"Ed25519 private key must be {KEY_SIZE} bytes")
        self._private_bytes = raw
        self._key = Ed25519PrivateKey.from_private_bytes(raw)
        self._public_bytes = _raw_public(self._key.public_key())

    @property
    def public_key(self) -> bytes:
        return self._public_bytes

    def public_key_pem(self) -> str:
        return encode_public_key_pem(self._public_bytes)

    def private_key_pem(self) -> str:
        return encode_private_key_pem(self._private_bytes)

    def sign(self, payload: Payload) -> bytes:
        """Return the 64-byte Ed25519 signature. Deterministic for a given key and payload."""
        return self._key.sign(_message_bytes(payload))


def verify_with_public_key(payload: Payload, signature: SignatureInput, public_key: bytes) -> bool:
    """
    Verify against a raw 32-byte public key.

    Returns False for a wrong signature (including one of the wrong length).
    Raises only for input that cannot be parsed: non-base64 signature text or
    a public key that is not 32 bytes.
    """
    sig = _signature_bytes(signature)
    msg = _message_bytes(payload)
    if len(public_key) != KEY_SIZE:
        raise TruncatedKey(f"Ed25519 public key must be {KEY_SIZE} bytes")
    if len(sig) != SIGNATURE_SIZE:
        logger.debug("Rejecting signature of length %d", len(sig))
        return False
    try:
        Ed25519PublicKey.from_public_bytes(bytes(public_key)).verify(sig, msg)
    except InvalidSignature:
        return False
    return True


def verify(payload: Payload, signature: SignatureInput, public_key_pem: str) -> bool:
    """Verify a signature against a PEM-encoded (SPKI) Ed25519 public key."""
    return verify_with_public_key(payload, signature, parse_public_key_pem(public_key_pem))
