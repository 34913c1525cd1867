"""
Simple end-to-end Kavach roundtrip example.

This simulates:

1. An authority packing and signing an Aadhaar record into a QR payload.
2. A verifier checking that payload offline with the authority public key.
3. The authority issuing a certificate for a holder key, and anyone
   verifying it.

Keys are generated on the fly. Real deployments load the authority private
key from secure storage and distribute only the public PEM.
"""

from kavach import (
    AadhaarRecord,
    CertificateAuthority,
    DateOfBirth,
    Gender,
    Signer,
    SubjectAttributes,
    encode_certificate_pem,
    generate_keypair,
    is_certificate_expired,
    sign_record,
    verify_certificate,
    verify_qr_payload,
)


def main() -> None:
    # 1. Authority keys
    authority = generate_keypair()
    signer = Signer(authority.private_key_pem)

    # 2. Pack + sign the record
    record = AadhaarRecord(
        version=1,
        gender=Gender.MALE,
        document_number=123456789012,
        dob=DateOfBirth(day=1, month=1, year=2000),
        name="ARYAN KUMAR",
    )
    payload = sign_record(record, signer)
    print("QR payload:")
    print(payload)
    print()

    # 3. Scanner side: offline verification
    result = verify_qr_payload(payload, authority.public_key_pem)
    print("Signature valid:", result.is_valid)
    print("Decoded record:", result.record.to_dict())
    print()

    # 4. Certificate for the holder's own key
    holder = Signer(generate_keypair().private_key_pem)
    ca = CertificateAuthority(authority.private_key_pem)
    cert = ca.issue_certificate(
        SubjectAttributes.from_document_number("ARYAN KUMAR", record.document_number),
        holder.public_key,
    )
    print(encode_certificate_pem(cert))
    print()

    ok = verify_certificate(cert, authority.public_key_pem)
    expired = is_certificate_expired(cert)
    print("Certificate verified:", ok, "| expired:", expired)


if __name__ == "__main__":
    main()
