"""
MIT License
Copyright (c) 2025 DarekDGB

Error types for Kavach.

Everything derives from ValueError so fail-closed callers can keep catching
ValueError. A cryptographically wrong signature is NOT an error: verify
helpers return False for it. These types are only for input that cannot be
parsed at all.
"""

from __future__ import annotations


class KavachError(ValueError):
    """Base class for all Kavach errors."""


class InvalidCharacter(KavachError):
    """A character has no code in the 5-bit charset."""


class ValueOutOfRange(KavachError):
    """A numeric field does not fit its bit width or allowed range."""


class InvalidFormat(KavachError):
    """A structured text value (PAN, certificate, message) is malformed."""


class InvalidGenderCode(KavachError):
    """A gender bit pattern is not one of 00/01/10/11."""


class MalformedRecord(KavachError):
    """A packed record buffer is too short, truncated or carries an unknown tag."""


class KeyParseError(KavachError):
    """Base class for PEM/DER key parsing failures."""


class NotEd25519Key(KeyParseError):
    pass


class TruncatedKey(KeyParseError):
    pass


class InvalidBase64(KavachError):
    pass


class SignatureInvalid(KavachError):
    """Raised only by strict readers; verify() itself returns False."""


class FetchFailed(KavachError):
    """An external data source (HTTP, storage) could not provide a value."""
