"""
Kavach: compact signed identity records for offline QR verification.

- kavach.records      bit-packed Aadhaar / PAN record layouts
- kavach.keys         minimal PEM/DER handling for Ed25519 keys
- kavach.signer       Ed25519 sign / verify
- kavach.ca           certificate issuance and verification
- kavach.qr_payloads  base64(signature || record) QR payloads
"""

from .ca import (
    Certificate,
    CertificateAuthority,
    SubjectAttributes,
    decode_certificate_pem,
    encode_certificate_pem,
    is_certificate_expired,
    verify_certificate,
)
from .errors import (
    FetchFailed,
    InvalidBase64,
    InvalidCharacter,
    InvalidFormat,
    InvalidGenderCode,
    KavachError,
    MalformedRecord,
    NotEd25519Key,
    SignatureInvalid,
    TruncatedKey,
    ValueOutOfRange,
)
from .models import AadhaarRecord, DateOfBirth, DocumentType, Gender, PanRecord
from .qr_payloads import read_qr_payload, sign_record, verify_qr_payload
from .records import decode_record, encode_record
from .signer import Signer, generate_keypair, verify

__all__ = [
    "AadhaarRecord",
    "Certificate",
    "CertificateAuthority",
    "DateOfBirth",
    "DocumentType",
    "FetchFailed",
    "Gender",
    "InvalidBase64",
    "InvalidCharacter",
    "InvalidFormat",
    "InvalidGenderCode",
    "KavachError",
    "MalformedRecord",
    "NotEd25519Key",
    "PanRecord",
    "SignatureInvalid",
    "Signer",
    "SubjectAttributes",
    "TruncatedKey",
    "ValueOutOfRange",
    "decode_certificate_pem",
    "decode_record",
    "encode_certificate_pem",
    "encode_record",
    "generate_keypair",
    "is_certificate_expired",
    "read_qr_payload",
    "sign_record",
    "verify",
    "verify_certificate",
    "verify_qr_payload",
]
