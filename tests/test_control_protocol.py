from __future__ import annotations
import json

import pytest

from matchmaker.domain import InvalidMessage, MalformedMessage, UnknownMessageType, UnregisteredConnection


def msg(type_: str, **fields) -> bytes:
    return json.dumps({"type": type_, **fields}).encode("utf-8")


def connect(address: str = "10.0.0.1", port: int = 8888, **fields) -> bytes:
    return msg("connect", address=address, port=port, **fields)


# ---------- connect ----------


def test_connect_creates_entry(handler, registry, clock):
    entry = handler.handle_data(1, connect(ready=True))
    assert registry.get(1) is entry
    assert entry.address == "10.0.0.1"
    assert entry.port == 8888
    assert entry.ready is True
    assert entry.num_connected_clients == 0
    assert entry.last_ping_received == clock.now
    assert entry.last_redirect is None


def test_connect_ready_must_be_literal_true(handler):
    assert handler.handle_data(1, connect(ready="true")).ready is False
    assert handler.handle_data(2, connect(port=1, ready=1)).ready is False
    assert handler.handle_data(3, connect(port=2)).ready is False


def test_connect_with_player_connected(handler):
    assert handler.handle_data(1, connect(playerConnected=True)).num_connected_clients == 1
    assert handler.handle_data(2, connect(port=1, playerConnected="yes")).num_connected_clients == 0


def test_distinct_connects_give_one_entry_each(handler, registry):
    nodes = [("10.0.0.1", 80), ("10.0.0.1", 81), ("10.0.0.2", 80), ("host.local", 9000)]
    for conn_id, (address, port) in enumerate(nodes, start=1):
        handler.handle_data(conn_id, connect(address, port))
    assert len(registry) == len(nodes)
    assert [(e.address, e.port) for e in registry.values()] == nodes


def test_numeric_string_port_is_accepted(handler):
    assert handler.handle_data(1, connect(port="8888")).port == 8888


@pytest.mark.parametrize(
    "fields",
    [
        {"port": 80},
        {"address": "", "port": 80},
        {"address": 10, "port": 80},
        {"address": "10.0.0.1"},
        {"address": "10.0.0.1", "port": "eighty"},
        {"address": "10.0.0.1", "port": True},
    ],
)
def test_connect_without_usable_address_or_port(handler, registry, fields):
    with pytest.raises(InvalidMessage):
        handler.handle_data(1, msg("connect", **fields))
    assert len(registry) == 0


# ---------- reconnect dedup ----------


def test_reconnect_replaces_old_connection(handler, registry):
    handler.handle_data(1, connect())
    handler.handle_data(2, connect())
    assert registry.get(1) is None
    assert registry.find_by_address("10.0.0.1", 8888)[0] == 2
    assert len(registry) == 1


def test_reconnect_takes_client_count_from_new_message(handler, registry):
    handler.handle_data(1, connect())
    handler.handle_data(1, msg("clientConnected"))
    handler.handle_data(1, msg("clientConnected"))
    assert registry.get(1).num_connected_clients == 2

    handler.handle_data(2, connect())
    assert registry.get(2).num_connected_clients == 0

    handler.handle_data(3, connect(playerConnected=True))
    assert registry.get(3).num_connected_clients == 1


def test_reconnect_moves_entry_to_end_of_order(handler, registry):
    handler.handle_data(1, connect("a", 1))
    handler.handle_data(2, connect("b", 1))
    handler.handle_data(3, connect("a", 1))
    assert [e.address for e in registry.values()] == ["b", "a"]


def test_repeated_connect_on_same_connection_replaces_in_place(handler, registry):
    handler.handle_data(1, connect())
    handler.handle_data(1, connect(ready=True))
    assert len(registry) == 1
    assert registry.get(1).ready is True


def test_connect_events(handler, bus):
    seen = []
    bus.subscribe("node.", lambda ev: seen.append((ev.type, dict(ev.payload))))
    handler.handle_data(1, connect())
    handler.handle_data(2, connect())
    assert seen[0] == ("node.up", {"conn_id": 1, "address": "10.0.0.1", "port": 8888})
    assert seen[1][0] == "node.replaced"
    assert seen[1][1]["old_conn_id"] == 1


# ---------- state messages ----------


def test_streamer_connected_and_disconnected(handler, registry):
    handler.handle_data(1, connect())
    handler.handle_data(1, msg("streamerConnected"))
    assert registry.get(1).ready is True
    handler.handle_data(1, msg("streamerDisconnected"))
    assert registry.get(1).ready is False


def test_client_connected_then_disconnected_restores_count(handler, registry):
    handler.handle_data(1, connect(playerConnected=True))
    before = registry.get(1).num_connected_clients
    handler.handle_data(1, msg("clientConnected"))
    assert registry.get(1).num_connected_clients == before + 1
    handler.handle_data(1, msg("clientDisconnected"))
    assert registry.get(1).num_connected_clients == before


def test_client_count_is_not_clamped(handler, registry):
    handler.handle_data(1, connect())
    handler.handle_data(1, msg("clientDisconnected"))
    handler.handle_data(1, msg("clientDisconnected"))
    assert registry.get(1).num_connected_clients == -2


def test_ping_updates_last_ping(handler, registry, clock):
    handler.handle_data(1, connect())
    clock.advance(30)
    handler.handle_data(1, msg("ping"))
    assert registry.get(1).last_ping_received == clock.now


@pytest.mark.parametrize("type_", ["streamerConnected", "streamerDisconnected", "clientConnected", "clientDisconnected", "ping"])
def test_state_message_without_registration(handler, registry, type_):
    handler.handle_data(7, connect())
    with pytest.raises(UnregisteredConnection):
        handler.handle_data(1, msg(type_))
    assert registry.get(1) is None
    assert len(registry) == 1


# ---------- bad payloads ----------


@pytest.mark.parametrize("data", [b"not json", b"{\"type\": ", b"[1, 2]", b"null", b"\xff\xfe", b"[" * 60000])
def test_malformed_payload(handler, registry, data):
    with pytest.raises(MalformedMessage) as exc:
        handler.handle_data(1, data)
    assert exc.value.payload == data
    assert len(registry) == 0


@pytest.mark.parametrize("payload", [{"type": "reboot"}, {"type": 5}, {"address": "10.0.0.1"}])
def test_unknown_type_leaves_registry_unchanged(handler, registry, payload):
    handler.handle_data(1, connect(ready=True))
    snapshot = registry.get(1).to_dict()
    with pytest.raises(UnknownMessageType):
        handler.handle_data(1, json.dumps(payload).encode())
    assert registry.get(1).to_dict() == snapshot


# ---------- teardown ----------


def test_disconnect_removes_entry(handler, registry, bus):
    seen = []
    bus.subscribe("node.down", lambda ev: seen.append(ev.payload["conn_id"]))
    handler.handle_data(1, connect())
    removed = handler.handle_disconnect(1, peer=("10.0.0.1", 50000))
    assert removed is not None and removed.port == 8888
    assert registry.get(1) is None
    assert seen == [1]


def test_disconnect_of_unregistered_connection(handler, registry):
    handler.handle_data(2, connect())
    assert handler.handle_disconnect(1) is None
    assert len(registry) == 1


def test_disconnect_of_replaced_connection_keeps_new_entry(handler, registry):
    handler.handle_data(1, connect())
    handler.handle_data(2, connect())
    assert handler.handle_disconnect(1) is None
    assert registry.get(2) is not None
