"""
MIT License
Copyright (c) 2025 DarekDGB

Peer channel for moving already-signed payloads between devices.

The actual link (Wi-Fi Direct, sockets, a test double) is a MessageTransport
supplied by the application. Delivery guarantees are the transport's
business; this module only encodes, decodes and dispatches.

Listeners are owned by a PeerChannel instance, not by module globals:

    channel = PeerChannel(transport, device_name="holder")
    sub = channel.subscribe(on_consent, kinds={MessageKind.CONSENT})
    ...
    sub.unsubscribe()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Protocol, Tuple

from .errors import InvalidFormat
from .messages import MessageKind, MessagePayload, PeerMessage, decode_message, encode_message, new_message

logger = logging.getLogger(__name__)

Listener = Callable[[PeerMessage], None]


class MessageTransport(Protocol):
    def send(self, data: bytes, target_id: Optional[str] = None) -> bool:
        """Send raw bytes to `target_id` (or the connected peer). True on success."""
        ...


@dataclass(frozen=True)
class _Registration:
    callback: Listener
    kinds: Optional[FrozenSet[MessageKind]]


class Subscription:
    """Handle returned by PeerChannel.subscribe(); call unsubscribe() to detach."""

    def __init__(self, channel: "PeerChannel", token: int) -> None:
        self._channel = channel
        self._token = token

    @property
    def active(self) -> bool:
        return self._channel._has(self._token)

    def unsubscribe(self) -> None:
        self._channel._remove(self._token)


class PeerChannel:
    def __init__(self, transport: MessageTransport, *, device_name: str) -> None:
        self._transport = transport
        self.device_name = device_name
        self._lock = threading.Lock()
        self._listeners: Dict[int, _Registration] = {}
        self._next_token = 0

    # -- listeners ----------------------------------------------------------

    def subscribe(self, callback: Listener, kinds: Optional[Iterable[MessageKind]] = None) -> Subscription:
        reg = _Registration(callback=callback, kinds=frozenset(kinds) if kinds is not None else None)
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = reg
        return Subscription(self, token)

    def _has(self, token: int) -> bool:
        with self._lock:
            return token in self._listeners

    def _remove(self, token: int) -> None:
        with self._lock:
            self._listeners.pop(token, None)

    # -- outgoing -----------------------------------------------------------

    def send(self, message: PeerMessage, target_id: Optional[str] = None) -> bool:
        ok = bool(self._transport.send(encode_message(message), target_id))
        if not ok:
            logger.warning("Transport failed to send %s message %s", message.kind.value, message.id)
        return ok

    def send_payload(
        self, payload: MessagePayload, target_id: Optional[str] = None
    ) -> Tuple[PeerMessage, bool]:
        """
        Wrap `payload` in a new message from this device and send it.

        Returns (message, ok); `ok` is what the transport reported.
        """
        msg = new_message(payload, from_device=self.device_name, to_device=target_id or "")
        return msg, self.send(msg, target_id)

    # -- incoming -----------------------------------------------------------

    def deliver(self, data: bytes) -> bool:
        """
        Handle raw bytes from the transport.

        Payloads that fail schema validation are logged and not dispatched;
        the return value says whether the message was accepted.
        """
        try:
            message = decode_message(data)
        except InvalidFormat as exc:
            logger.warning("Dropping malformed peer message: %s", exc)
            return False

        with self._lock:
            targets = [
                r.callback for r in self._listeners.values() if r.kinds is None or message.kind in r.kinds
            ]
        for callback in targets:
            callback(message)
        return True
