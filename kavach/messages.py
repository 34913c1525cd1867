"""
MIT License
Copyright (c) 2025 DarekDGB

Peer-to-peer message schema for Kavach.

Messages are a tagged union over four kinds, each with its own payload type:

    consent       ConsentPayload(consent_id, text)
    verification  VerificationPayload(consent_id, signature, certificate_pem)
    chat          ChatPayload(text)
    system        SystemPayload(text)

Wire form is compact UTF-8 JSON:
{
  "id": "...",
  "type": "consent",
  "fromDevice": "...",
  "toDevice": "...",
  "timestamp": 1700000000000,
  "payload": {...}
}

Decoding validates the envelope and the payload for its kind and raises
InvalidFormat on anything unexpected (fail-closed).
"""

from __future__ import annotations

import json
import secrets
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .errors import InvalidFormat


class MessageKind(str, Enum):
    CONSENT = "consent"
    VERIFICATION = "verification"
    CHAT = "chat"
    SYSTEM = "system"


@dataclass(frozen=True)
class ConsentPayload:
    consent_id: str
    text: str


@dataclass(frozen=True)
class VerificationPayload:
    """Holder's answer to a consent request: base64 signature over the consent text."""
    consent_id: str
    signature: str
    certificate_pem: str


@dataclass(frozen=True)
class ChatPayload:
    text: str


@dataclass(frozen=True)
class SystemPayload:
    text: str


MessagePayload = Union[ConsentPayload, VerificationPayload, ChatPayload, SystemPayload]

_KIND_BY_PAYLOAD = {
    ConsentPayload: MessageKind.CONSENT,
    VerificationPayload: MessageKind.VERIFICATION,
    ChatPayload: MessageKind.CHAT,
    SystemPayload: MessageKind.SYSTEM,
}


@dataclass(frozen=True)
class PeerMessage:
    id: str
    kind: MessageKind
    from_device: str
    to_device: str
    timestamp: int
    payload: MessagePayload

    def __post_init__(self) -> None:
        expected = _KIND_BY_PAYLOAD.get(type(self.payload))
        if expected is not self.kind:
            raise InvalidFormat(f"Payload {type(self.payload).__name__} does not match kind {self.kind.value!r}")


def new_message(
    payload: MessagePayload,
    *,
    from_device: str,
    to_device: str = "",
    now_ms: Optional[int] = None,
) -> PeerMessage:
    kind = _KIND_BY_PAYLOAD.get(type(payload))
    if kind is None:
        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")
    return PeerMessage(
        id=secrets.token_hex(8),
        kind=kind,
        from_device=from_device,
        to_device=to_device,
        timestamp=int(time.time() * 1000) if now_ms is None else now_ms,
        payload=payload,
    )


# ---------------------------------------------------------------------------
# encode
# ---------------------------------------------------------------------------


def _payload_to_dict(payload: MessagePayload) -> Dict[str, Any]:
    if isinstance(payload, ConsentPayload):
        return {"consentId": payload.consent_id, "text": payload.text}
    if isinstance(payload, VerificationPayload):
        return {
            "consentId": payload.consent_id,
            "signature": payload.signature,
            "certificate": payload.certificate_pem,
        }
    return {"text": payload.text}


def encode_message(msg: PeerMessage) -> bytes:
    obj = {
        "id": msg.id,
        "type": msg.kind.value,
        "fromDevice": msg.from_device,
        "toDevice": msg.to_device,
        "timestamp": msg.timestamp,
        "payload": _payload_to_dict(msg.payload),
    }
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


# ---------------------------------------------------------------------------
# decode
# ---------------------------------------------------------------------------


def _str_field(obj: Mapping[str, Any], key: str, *, allow_empty: bool = False) -> str:
    v = obj.get(key)
    if not isinstance(v, str) or (not allow_empty and not v):
        raise InvalidFormat(f"Message field {key!r} must be a {'' if allow_empty else 'non-empty '}string")
    try:
        v.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidFormat(f"Message field {key!r} is not valid UTF-8 text") from None
    return v


def _consent(p: Mapping[str, Any]) -> ConsentPayload:
    return ConsentPayload(consent_id=_str_field(p, "consentId"), text=_str_field(p, "text"))


def _verification(p: Mapping[str, Any]) -> VerificationPayload:
    return VerificationPayload(
        consent_id=_str_field(p, "consentId"),
        signature=_str_field(p, "signature"),
        certificate_pem=_str_field(p, "certificate"),
    )


def _chat(p: Mapping[str, Any]) -> ChatPayload:
    return ChatPayload(text=_str_field(p, "text", allow_empty=True))


def _system(p: Mapping[str, Any]) -> SystemPayload:
    return SystemPayload(text=_str_field(p, "text", allow_empty=True))


_PAYLOAD_DECODERS: Dict[MessageKind, Callable[[Mapping[str, Any]], MessagePayload]] = {
    MessageKind.CONSENT: _consent,
    MessageKind.VERIFICATION: _verification,
    MessageKind.CHAT: _chat,
    MessageKind.SYSTEM: _system,
}


def decode_message(data: Union[bytes, str]) -> PeerMessage:
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        obj = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as exc:
        raise InvalidFormat("Message is not UTF-8 JSON") from exc

    if not isinstance(obj, dict):
        raise InvalidFormat("Message must be a JSON object")

    try:
        kind = MessageKind(obj.get("type"))
    except ValueError:
        raise InvalidFormat(f"Unknown message type: {obj.get('type')!r}") from None

    ts = obj.get("timestamp")
    if isinstance(ts, bool) or not isinstance(ts, int) or ts < 0:
        raise InvalidFormat("Message 'timestamp' must be a non-negative int")

    payload = obj.get("payload")
    if not isinstance(payload, dict):
        raise InvalidFormat("Message 'payload' must be an object")

    return PeerMessage(
        id=_str_field(obj, "id"),
        kind=kind,
        from_device=_str_field(obj, "fromDevice", allow_empty=True),
        to_device=_str_field(obj, "toDevice", allow_empty=True),
        timestamp=ts,
        payload=_PAYLOAD_DECODERS[kind](payload),
    )
