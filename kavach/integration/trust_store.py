"""
MIT License
Copyright (c) 2025 DarekDGB

Trust anchor and identity record caching.

The HTTP client and the key-value store belong to the application; this
module only needs the small interfaces below. Fetch problems surface as
FetchFailed; nothing invalid is written to the store.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Protocol

from ..config import (
    IDENTITY_STORAGE_KEY,
    PUBLIC_KEY_STORAGE_KEY,
    identity_api_url,
    trust_anchor_url,
)
from ..errors import FetchFailed, InvalidFormat, KeyParseError, InvalidBase64
from ..keys import parse_public_key_pem

logger = logging.getLogger(__name__)

_AADHAAR_RE = re.compile(r"[0-9]{12}")
_REQUIRED_RECORD_FIELDS = ("name", "aadhaar", "gender", "dob")


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class Fetcher(Protocol):
    def fetch_text(self, url: str) -> str:
        """Return the body as text or raise FetchFailed."""
        ...

    def fetch_json(self, url: str) -> Any:
        """Return the parsed JSON body or raise FetchFailed."""
        ...


class InMemoryStore:
    """Dict-backed KeyValueStore, for tests and command-line use."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


# ---------------------------------------------------------------------------
# Authority public key
# ---------------------------------------------------------------------------


def fetch_and_store_pem(fetcher: Fetcher, store: KeyValueStore, url: Optional[str] = None) -> str:
    """
    Download the authority public key and cache it.

    The PEM is parsed before it is stored, so a corrupt download never
    replaces a good cached key.
    """
    src = url or trust_anchor_url()
    pem = fetcher.fetch_text(src)
    try:
        parse_public_key_pem(pem)
    except (KeyParseError, InvalidBase64) as exc:
        raise FetchFailed(f"Trust anchor at {src} is not an Ed25519 public key") from exc
    store.set(PUBLIC_KEY_STORAGE_KEY, pem)
    logger.info("Stored authority public key from %s", src)
    return pem


def get_stored_pem(store: KeyValueStore) -> Optional[str]:
    return store.get(PUBLIC_KEY_STORAGE_KEY)


def clear_stored_pem(store: KeyValueStore) -> None:
    store.delete(PUBLIC_KEY_STORAGE_KEY)


# ---------------------------------------------------------------------------
# Identity record
# ---------------------------------------------------------------------------


def normalize_aadhaar_number(number: str) -> str:
    return "".join(number.split())


def validate_aadhaar_number(number: str) -> bool:
    """True for exactly 12 digits once whitespace is removed."""
    if not isinstance(number, str):
        return False
    return bool(_AADHAAR_RE.fullmatch(normalize_aadhaar_number(number)))


def _validate_record(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidFormat("Identity record must be a JSON object")
    if data.get("error") or data.get("message"):
        raise FetchFailed(str(data.get("error") or data.get("message")))
    missing = [k for k in _REQUIRED_RECORD_FIELDS if not data.get(k)]
    if missing:
        raise InvalidFormat(f"Incomplete identity record, missing: {', '.join(missing)}")
    return data


def fetch_identity_record(fetcher: Fetcher, store: KeyValueStore, number: str) -> Dict[str, Any]:
    if not validate_aadhaar_number(number):
        raise InvalidFormat("Invalid Aadhaar number format. Expected 12 digits.")
    clean = normalize_aadhaar_number(number)
    record = _validate_record(fetcher.fetch_json(f"{identity_api_url()}?aadhaar={clean}"))
    store.set(IDENTITY_STORAGE_KEY, json.dumps(record))
    logger.info("Stored identity record")
    return record


def get_stored_identity_record(store: KeyValueStore) -> Optional[Dict[str, Any]]:
    """
    Return the cached record, or None when nothing valid is stored.

    A corrupt cached value is removed.
    """
    raw = store.get(IDENTITY_STORAGE_KEY)
    if raw is None:
        return None
    try:
        return _validate_record(json.loads(raw))
    except (json.JSONDecodeError, InvalidFormat, FetchFailed):
        logger.warning("Clearing invalid identity record from storage")
        store.delete(IDENTITY_STORAGE_KEY)
        return None


def clear_stored_identity_record(store: KeyValueStore) -> None:
    store.delete(IDENTITY_STORAGE_KEY)
