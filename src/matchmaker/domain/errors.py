"""Errors raised while handling render-node control messages."""

from __future__ import annotations

from typing import Any

__all__ = [
    "ProtocolError",
    "MalformedMessage",
    "UnknownMessageType",
    "InvalidMessage",
    "UnregisteredConnection",
]


class ProtocolError(ValueError):
    """A control message that forces the broker to drop the connection.

    ``payload`` keeps the raw data (or the decoded message) so the caller can log
    exactly what the node sent.
    """

    def __init__(self, message: str, *, payload: Any = None) -> None:
        self.payload = payload
        super().__init__(message)


class MalformedMessage(ProtocolError):
    """The chunk is not a single JSON object."""


class UnknownMessageType(ProtocolError):
    """The message ``type`` is missing or not part of the control protocol."""

    def __init__(self, msg_type: Any, *, payload: Any = None) -> None:
        self.msg_type = msg_type
        super().__init__(f"unknown message type: {msg_type!r}", payload=payload)


class InvalidMessage(ProtocolError):
    """A known message type with unusable fields (e.g. ``connect`` without a port)."""


class UnregisteredConnection(ProtocolError):
    """A state message arrived on a connection that never sent ``connect``."""

    def __init__(self, msg_type: str, *, payload: Any = None) -> None:
        self.msg_type = msg_type
        super().__init__(f"'{msg_type}' from a connection without a registered render node", payload=payload)
