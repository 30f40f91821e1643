from __future__ import annotations

import fakeredis
import pytest
import redis

from gameshelf.core.errors import PersistenceError
from gameshelf.save_slots import SaveSlotStore


@pytest.fixture()
def slots(r: fakeredis.FakeRedis) -> SaveSlotStore:
    return SaveSlotStore(r=r, key_prefix="test:")


def test_save_load_and_list(slots: SaveSlotStore, r: fakeredis.FakeRedis) -> None:
    state = {"level": 3, "lives": [1, 1, 0], "name": "Mochi"}

    slots.save("meo-match", "default", state)
    slots.save("meo-match", "autosave", {"level": 4})

    assert slots.load("meo-match", "default") == state
    assert slots.list_slots("meo-match") == ["autosave", "default"]
    assert r.exists("test:save:meo-match:default")


def test_slots_are_scoped_per_game(slots: SaveSlotStore) -> None:
    slots.save("meo-match", "default", 1)

    assert slots.load("cat-ping-pong", "default") is None
    assert slots.list_slots("cat-ping-pong") == []


def test_remove(slots: SaveSlotStore) -> None:
    slots.save("meo-match", "default", {"level": 1})

    assert slots.remove("meo-match", "default") is True
    assert slots.load("meo-match", "default") is None
    assert slots.list_slots("meo-match") == []
    assert slots.remove("meo-match", "default") is False


def test_unserializable_value_is_rejected(slots: SaveSlotStore) -> None:
    with pytest.raises(PersistenceError):
        slots.save("meo-match", "default", {"when": object()})
    assert slots.list_slots("meo-match") == []


def test_unreadable_slot_reads_as_empty(slots: SaveSlotStore, r: fakeredis.FakeRedis) -> None:
    r.set("test:save:meo-match:default", "{broken")
    assert slots.load("meo-match", "default") is None


def test_storage_errors_surface_as_persistence_errors(
    slots: SaveSlotStore, r: fakeredis.FakeRedis, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _boom(*args: object, **kwargs: object) -> None:
        raise redis.ConnectionError("redis is down")

    monkeypatch.setattr(r, "pipeline", _boom)
    monkeypatch.setattr(r, "get", _boom)

    with pytest.raises(PersistenceError) as e:
        slots.save("meo-match", "default", 1)
    assert e.value.key == "test:save:meo-match:default"

    with pytest.raises(PersistenceError):
        slots.load("meo-match", "default")
    with pytest.raises(PersistenceError):
        slots.remove("meo-match", "default")


@pytest.mark.parametrize("slot", ["b:c", "", ":"])
def test_slot_names_cannot_reach_another_games_keys(slots: SaveSlotStore, slot: str) -> None:
    slots.save("a:b", "c", {"owner": "game a:b"})

    with pytest.raises(PersistenceError):
        slots.save("a", slot, {"owner": "game a"})
    with pytest.raises(PersistenceError):
        slots.load("a", slot)
    with pytest.raises(PersistenceError):
        slots.remove("a", slot)

    assert slots.load("a:b", "c") == {"owner": "game a:b"}
    assert slots.list_slots("a") == []
