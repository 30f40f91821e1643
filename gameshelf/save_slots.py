from __future__ import annotations

import json
import logging
from typing import Any

import redis

from gameshelf.core.errors import PersistenceError

logger = logging.getLogger(__name__)

# The slot is the last key segment, so it must not contain the separator.
SLOT_PATTERN = r"^[^:]+$"


class SaveSlotStore:
    """Opaque per-game save states keyed by (game_id, slot).

    Values are stored verbatim as JSON; their shape is the game's business.
    Keys: `{prefix}save:{game_id}:{slot}`, with a per-game index set `{prefix}saves:{game_id}`.
    """

    def __init__(self, *, r: redis.Redis, key_prefix: str = "") -> None:
        self._r = r
        self._prefix = key_prefix

    def _slot_key(self, game_id: str, slot: str) -> str:
        key = f"{self._prefix}save:{game_id}:{slot}"
        if not slot or ":" in slot:
            raise PersistenceError(key, "slot names must be non-empty and cannot contain ':'")
        return key

    def _index_key(self, game_id: str) -> str:
        return f"{self._prefix}saves:{game_id}"

    def save(self, game_id: str, slot: str, value: Any) -> None:
        key = self._slot_key(game_id, slot)
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise PersistenceError(key, f"value is not serializable: {e}") from e

        try:
            pipe = self._r.pipeline()
            pipe.set(key, raw)
            pipe.sadd(self._index_key(game_id), slot)
            pipe.execute()
        except redis.RedisError as e:
            raise PersistenceError(key, str(e)) from e
        logger.debug("Saved %s", key)

    def load(self, game_id: str, slot: str) -> Any | None:
        key = self._slot_key(game_id, slot)
        try:
            raw = self._r.get(key)
        except redis.RedisError as e:
            raise PersistenceError(key, str(e)) from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Save slot %s holds unreadable data", key)
            return None

    def remove(self, game_id: str, slot: str) -> bool:
        key = self._slot_key(game_id, slot)
        try:
            pipe = self._r.pipeline()
            pipe.delete(key)
            pipe.srem(self._index_key(game_id), slot)
            deleted, _ = pipe.execute()
        except redis.RedisError as e:
            raise PersistenceError(key, str(e)) from e
        return bool(deleted)

    def list_slots(self, game_id: str) -> list[str]:
        try:
            return sorted(self._r.smembers(self._index_key(game_id)))
        except redis.RedisError as e:
            raise PersistenceError(self._index_key(game_id), str(e)) from e
