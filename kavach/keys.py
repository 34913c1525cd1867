"""
MIT License
Copyright (c) 2025 DarekDGB

Minimal PEM/DER handling for Ed25519 keys.

This is NOT a general ASN.1 parser. It walks exactly two shapes:

PKCS#8 private key (RFC 5208 / RFC 8410):
    SEQUENCE {
      INTEGER version
      SEQUENCE { OBJECT IDENTIFIER 1.3.101.112 }
      OCTET STRING { OCTET STRING (32-byte seed) }
      [0] attributes OPTIONAL, [1] public key OPTIONAL
    }

SubjectPublicKeyInfo:
    SEQUENCE {
      SEQUENCE { OBJECT IDENTIFIER 1.3.101.112 }
      BIT STRING { 00 || 32-byte key }
    }

Lengths are parsed generically (short and long form), so keys do not have
to come from one particular encoder.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import List, Tuple

from .errors import InvalidBase64, NotEd25519Key, TruncatedKey

KEY_SIZE = 32
PEM_LINE_WIDTH = 64

PRIVATE_KEY_LABEL = "PRIVATE KEY"
PUBLIC_KEY_LABEL = "PUBLIC KEY"

ED25519_OID = b"\x2b\x65\x70"  # 1.3.101.112

_TAG_INTEGER = 0x02
_TAG_BIT_STRING = 0x03
_TAG_OCTET_STRING = 0x04
_TAG_OID = 0x06
_TAG_SEQUENCE = 0x30

_WS_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# PEM
# ---------------------------------------------------------------------------


def split_into_lines(text: str, width: int = PEM_LINE_WIDTH) -> List[str]:
    if width <= 0:
        raise ValueError("width must be positive")
    return [text[i : i + width] for i in range(0, len(text), width)]


def pem_wrap(der: bytes, label: str) -> str:
    body = base64.b64encode(der).decode("ascii")
    return "\n".join([f"-----BEGIN {label}-----", *split_into_lines(body), f"-----END {label}-----"])


def pem_unwrap(pem: str, label: str) -> bytes:
    """
    Strip the BEGIN/END markers for `label` plus all whitespace, then base64-decode.

    Bare base64 without markers is accepted. Anything else that is not valid
    base64 (including markers for a different label) raises InvalidBase64.
    """
    if not isinstance(pem, str):
        raise InvalidBase64("PEM input must be text")
    body = pem.replace(f"-----BEGIN {label}-----", "").replace(f"-----END {label}-----", "")
    body = _WS_RE.sub("", body)
    return b64decode_strict(body)


def b64decode_strict(text: str) -> bytes:
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError):
        raise InvalidBase64("Invalid base64 data") from None


# ---------------------------------------------------------------------------
# DER reading
# ---------------------------------------------------------------------------


def _read_tlv(der: bytes, offset: int) -> Tuple[int, bytes, int]:
    """
    Read one TLV at `offset`. Returns (tag, value, next_offset).

    Running off the end of the buffer raises TruncatedKey.
    """
    if offset + 2 > len(der):
        raise TruncatedKey("DER data ends inside a tag/length header")
    tag = der[offset]
    first = der[offset + 1]
    pos = offset + 2
    if first < 0x80:
        length = first
    else:
        n = first & 0x7F
        if n == 0 or n > 4:
            raise TruncatedKey("Unsupported DER length encoding")
        if pos + n > len(der):
            raise TruncatedKey("DER data ends inside a length field")
        length = int.from_bytes(der[pos : pos + n], "big")
        pos += n
    end = pos + length
    if end > len(der):
        raise TruncatedKey("DER value runs past the end of the data")
    return tag, der[pos:end], end


def _expect_tlv(der: bytes, offset: int, tag: int, what: str) -> Tuple[bytes, int]:
    actual, value, nxt = _read_tlv(der, offset)
    if actual != tag:
        raise NotEd25519Key(f"Expected {what} (tag 0x{tag:02x}), found tag 0x{actual:02x}")
    return value, nxt


def _check_algorithm(alg_seq: bytes) -> None:
    oid, _ = _expect_tlv(alg_seq, 0, _TAG_OID, "algorithm OID")
    if oid != ED25519_OID:
        raise NotEd25519Key("Algorithm is not Ed25519")


def parse_private_key_der(der: bytes) -> bytes:
    """Extract the 32-byte Ed25519 seed from PKCS#8 DER."""
    if ED25519_OID not in der:
        raise NotEd25519Key("Not an Ed25519 private key")

    body, _ = _expect_tlv(der, 0, _TAG_SEQUENCE, "PrivateKeyInfo SEQUENCE")
    _, pos = _expect_tlv(body, 0, _TAG_INTEGER, "version INTEGER")
    alg_seq, pos = _expect_tlv(body, pos, _TAG_SEQUENCE, "AlgorithmIdentifier")
    _check_algorithm(alg_seq)
    wrapped, _ = _expect_tlv(body, pos, _TAG_OCTET_STRING, "privateKey OCTET STRING")

    # RFC 8410: privateKey contains CurvePrivateKey ::= OCTET STRING
    seed, _ = _expect_tlv(wrapped, 0, _TAG_OCTET_STRING, "CurvePrivateKey OCTET STRING")
    if len(seed) < KEY_SIZE:
        raise TruncatedKey(f"Ed25519 private key too short: {len(seed)} bytes")
    return seed[:KEY_SIZE]


def parse_public_key_der(der: bytes) -> bytes:
    """Extract the 32-byte Ed25519 public key from SubjectPublicKeyInfo DER."""
    if len(der) < KEY_SIZE:
        raise TruncatedKey(f"Public key DER too short: {len(der)} bytes")

    body, _ = _expect_tlv(der, 0, _TAG_SEQUENCE, "SubjectPublicKeyInfo SEQUENCE")
    alg_seq, pos = _expect_tlv(body, 0, _TAG_SEQUENCE, "AlgorithmIdentifier")
    _check_algorithm(alg_seq)
    bit_string, _ = _expect_tlv(body, pos, _TAG_BIT_STRING, "subjectPublicKey BIT STRING")

    if len(bit_string) != KEY_SIZE + 1:
        raise TruncatedKey(f"Ed25519 public key must be {KEY_SIZE} bytes")
    if bit_string[0] != 0:
        raise NotEd25519Key("Public key BIT STRING has unused bits")
    return bit_string[1:]


def parse_private_key_pem(pem: str) -> bytes:
    return parse_private_key_der(pem_unwrap(pem, PRIVATE_KEY_LABEL))


def parse_public_key_pem(pem: str) -> bytes:
    return parse_public_key_der(pem_unwrap(pem, PUBLIC_KEY_LABEL))


# ---------------------------------------------------------------------------
# DER writing
# ---------------------------------------------------------------------------


def _check_raw(raw: bytes, what: str) -> bytes:
    raw = bytes(raw)
    if len(raw) != KEY_SIZE:
        raise TruncatedKey(f"Ed25519 {what} must be {KEY_SIZE} bytes, got {len(raw)}")
    return raw


def _tlv(tag: int, value: bytes) -> bytes:
    # Every structure built here is shorter than 128 bytes.
    return bytes([tag, len(value)]) + value


_ALGORITHM_ID = _tlv(_TAG_SEQUENCE, _tlv(_TAG_OID, ED25519_OID))


def encode_public_key_der(raw: bytes) -> bytes:
    key = _check_raw(raw, "public key")
    return _tlv(_TAG_SEQUENCE, _ALGORITHM_ID + _tlv(_TAG_BIT_STRING, b"\x00" + key))


def encode_private_key_der(raw: bytes) -> bytes:
    seed = _check_raw(raw, "private key")
    version = _tlv(_TAG_INTEGER, b"\x00")
    private = _tlv(_TAG_OCTET_STRING, _tlv(_TAG_OCTET_STRING, seed))
    return _tlv(_TAG_SEQUENCE, version + _ALGORITHM_ID + private)


def encode_public_key_pem(raw: bytes) -> str:
    return pem_wrap(encode_public_key_der(raw), PUBLIC_KEY_LABEL)


def encode_private_key_pem(raw: bytes) -> str:
    return pem_wrap(encode_private_key_der(raw), PRIVATE_KEY_LABEL)
