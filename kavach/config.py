"""
MIT License
Copyright (c) 2025 DarekDGB

Runtime configuration for Kavach.

Values are read from the environment at call time so tests can monkeypatch
os.environ without reloading modules.
"""

from __future__ import annotations

import os

DEFAULT_TRUST_ANCHOR_URL = "https://kavach-s3.ba3a.tech/gov_pub.pem"
DEFAULT_IDENTITY_API_URL = "https://sih-aadhar.vercel.app/api/people"
DEFAULT_CERT_VALIDITY_DAYS = 180

# Keys used in the application's key-value store.
PUBLIC_KEY_STORAGE_KEY = "public_key_pem"
IDENTITY_STORAGE_KEY = "aadhar"


def _env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    s = raw.strip()
    return s or None


def trust_anchor_url() -> str:
    """URL of the authority public key (PEM). Env: KAVACH_TRUST_ANCHOR_URL."""
    return _env("KAVACH_TRUST_ANCHOR_URL") or DEFAULT_TRUST_ANCHOR_URL


def identity_api_url() -> str:
    """Base URL of the identity record lookup API. Env: KAVACH_IDENTITY_API_URL."""
    return _env("KAVACH_IDENTITY_API_URL") or DEFAULT_IDENTITY_API_URL


def certificate_validity_days() -> int:
    """
    Certificate validity window in days. Env: KAVACH_CERT_VALIDITY_DAYS.

    Invalid values raise ValueError instead of falling back silently.
    """
    raw = _env("KAVACH_CERT_VALIDITY_DAYS")
    if raw is None:
        return DEFAULT_CERT_VALIDITY_DAYS
    try:
        days = int(raw)
    except ValueError:
        raise ValueError(f"KAVACH_CERT_VALIDITY_DAYS must be an integer, got {raw!r}") from None
    if days <= 0:
        raise ValueError("KAVACH_CERT_VALIDITY_DAYS must be positive")
    return days
