# src/matchmaker/services/control_protocol.py
from __future__ import annotations
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from matchmaker.domain.errors import InvalidMessage, MalformedMessage, UnknownMessageType, UnregisteredConnection
from matchmaker.domain.types import ConnId, RenderNodeEntry
from matchmaker.ports import EventBus, NodeRegistryPort
from matchmaker.services.eventbus import emit

log = logging.getLogger(__name__)

_SOURCE = "control_protocol"


def _parse(data: bytes | str) -> Dict[str, Any]:
    try:
        message = json.loads(data)
    except (ValueError, UnicodeDecodeError, RecursionError) as e:
        raise MalformedMessage(f"failed to parse render node message: {e}", payload=data) from e
    if not isinstance(message, dict):
        raise MalformedMessage("render node message is not a JSON object", payload=data)
    return message


def _port(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise ValueError(value)


class ControlProtocolHandler:
    """
    Applies render-node control messages to the registry.

    One instance serves every control connection; the caller feeds it one chunk
    per message together with the connection id. A ``ProtocolError`` means the
    connection has to be closed; the registry is left untouched in that case.
    """

    def __init__(
        self,
        registry: NodeRegistryPort,
        bus: Optional[EventBus] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self.bus = bus
        self.clock = clock
        self._handlers: Dict[str, Callable[[ConnId, Dict[str, Any]], RenderNodeEntry]] = {
            "connect": self._on_connect,
            "streamerConnected": self._on_streamer_connected,
            "streamerDisconnected": self._on_streamer_disconnected,
            "clientConnected": self._on_client_connected,
            "clientDisconnected": self._on_client_disconnected,
            "ping": self._on_ping,
        }

    # ---------- entry points ----------

    def handle_data(self, conn_id: ConnId, data: bytes | str) -> RenderNodeEntry:
        message = _parse(data)
        msg_type = message.get("type")
        log.debug("message type: %s", msg_type, extra={"extra": {"conn_id": conn_id}})
        handler = self._handlers.get(msg_type) if isinstance(msg_type, str) else None
        if handler is None:
            raise UnknownMessageType(msg_type, payload=message)
        return handler(conn_id, message)

    def handle_disconnect(self, conn_id: ConnId, peer: Any = None) -> Optional[RenderNodeEntry]:
        entry = self.registry.remove(conn_id)
        if entry is None:
            log.info("disconnected machine that wasn't a registered render node, remote address: %s", peer)
            return None
        log.info("render node %s disconnected from matchmaker", entry.endpoint)
        self._emit("node.down", conn_id, entry)
        return entry

    # ---------- message handlers ----------

    def _on_connect(self, conn_id: ConnId, message: Dict[str, Any]) -> RenderNodeEntry:
        address = message.get("address")
        if not isinstance(address, str) or not address:
            raise InvalidMessage("'connect' without a usable address", payload=message)
        try:
            port = _port(message.get("port"))
        except ValueError as e:
            raise InvalidMessage("'connect' without a usable port", payload=message) from e

        player_connected = message.get("playerConnected") is True
        entry = RenderNodeEntry(
            address=address,
            port=port,
            num_connected_clients=1 if player_connected else 0,
            ready=message.get("ready") is True,
            last_ping_received=self.clock(),
        )

        # the same node may still be listed under its previous connection (reconnect)
        found = self.registry.find_by_address(address, port, exclude=conn_id)
        self.registry.upsert(conn_id, entry)
        if found is None:
            log.info("adding connection for %s with playerConnected: %s", entry.endpoint, player_connected)
            self._emit("node.up", conn_id, entry)
        else:
            old_conn_id, _old = found
            # the client count comes from this message only, the old one is dropped
            self.registry.remove(old_conn_id)
            log.info(
                "RECONNECT: render node %s already registered, replacing. playerConnected: %s",
                entry.endpoint,
                player_connected,
                extra={"extra": {"old_conn_id": old_conn_id, "conn_id": conn_id}},
            )
            self._emit("node.replaced", conn_id, entry, old_conn_id=old_conn_id)
        return entry

    def _on_streamer_connected(self, conn_id: ConnId, message: Dict[str, Any]) -> RenderNodeEntry:
        entry = self._require(conn_id, message)
        entry.ready = True
        log.info("render node %s ready for use", entry.endpoint)
        self._emit("node.ready", conn_id, entry)
        return entry

    def _on_streamer_disconnected(self, conn_id: ConnId, message: Dict[str, Any]) -> RenderNodeEntry:
        entry = self._require(conn_id, message)
        entry.ready = False
        log.info("render node %s no longer ready for use", entry.endpoint)
        self._emit("node.unready", conn_id, entry)
        return entry

    def _on_client_connected(self, conn_id: ConnId, message: Dict[str, Any]) -> RenderNodeEntry:
        entry = self._require(conn_id, message)
        entry.num_connected_clients += 1
        log.info("client connected to render node %s", entry.endpoint)
        return entry

    def _on_client_disconnected(self, conn_id: ConnId, message: Dict[str, Any]) -> RenderNodeEntry:
        entry = self._require(conn_id, message)
        # not clamped: more disconnects than connects leave the counter negative
        entry.num_connected_clients -= 1
        log.info("client disconnected from render node %s", entry.endpoint)
        return entry

    def _on_ping(self, conn_id: ConnId, message: Dict[str, Any]) -> RenderNodeEntry:
        entry = self._require(conn_id, message)
        entry.last_ping_received = self.clock()
        return entry

    # ---------- helpers ----------

    def _require(self, conn_id: ConnId, message: Dict[str, Any]) -> RenderNodeEntry:
        entry = self.registry.get(conn_id)
        if entry is None:
            raise UnregisteredConnection(message["type"], payload=message)
        return entry

    def _emit(self, type_: str, conn_id: ConnId, entry: RenderNodeEntry, **extra: Any) -> None:
        if self.bus is None:
            return
        payload = {"conn_id": conn_id, "address": entry.address, "port": entry.port, **extra}
        emit(self.bus, type_, payload, source=_SOURCE)
