from .types import ConnId, RenderNodeEntry, Event
from .errors import ProtocolError, MalformedMessage, UnknownMessageType, InvalidMessage, UnregisteredConnection

__all__ = [
    "ConnId",
    "RenderNodeEntry",
    "Event",
    "ProtocolError",
    "MalformedMessage",
    "UnknownMessageType",
    "InvalidMessage",
    "UnregisteredConnection",
]
