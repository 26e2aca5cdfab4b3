from __future__ import annotations

from matchmaker.domain import RenderNodeEntry


def _entry(address="10.0.0.1", port=8888, **kw) -> RenderNodeEntry:
    return RenderNodeEntry(address=address, port=port, **kw)


def test_empty_on_start(registry):
    assert len(registry) == 0
    assert registry.values() == []
    assert registry.get(1) is None


def test_upsert_get_remove(registry):
    e = _entry()
    registry.upsert(1, e)
    assert registry.get(1) is e
    assert 1 in registry
    assert registry.remove(1) is e
    assert registry.get(1) is None
    assert registry.remove(1) is None


def test_values_keep_insertion_order(registry):
    a, b, c = _entry(port=1), _entry(port=2), _entry(port=3)
    registry.upsert(5, a)
    registry.upsert(2, b)
    registry.upsert(9, c)
    assert registry.values() == [a, b, c]


def test_replacing_existing_key_keeps_position(registry):
    a, b = _entry(port=1), _entry(port=2)
    registry.upsert(1, a)
    registry.upsert(2, b)
    a2 = _entry(port=11)
    registry.upsert(1, a2)
    assert registry.values() == [a2, b]


def test_find_by_address(registry):
    a, b = _entry("10.0.0.1", 80), _entry("10.0.0.2", 80)
    registry.upsert(1, a)
    registry.upsert(2, b)
    assert registry.find_by_address("10.0.0.2", 80) == (2, b)
    assert registry.find_by_address("10.0.0.2", 81) is None
    assert registry.find_by_address("10.0.0.1", 80, exclude=1) is None


def test_entry_endpoint_and_dict():
    e = _entry("host", 7000, ready=True)
    assert e.endpoint == "host:7000"
    d = e.to_dict()
    assert d["address"] == "host" and d["port"] == 7000 and d["ready"] is True
    assert d["last_redirect"] is None
