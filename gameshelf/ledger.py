from __future__ import annotations

import json
import logging
from collections.abc import Iterable

import redis

from gameshelf.core.errors import PersistenceError

logger = logging.getLogger(__name__)

RECENTS_CAPACITY = 10

FAVORITES_KEY = "favorites"
RECENTS_KEY = "recentGames"


def _dedupe(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class Ledger:
    """Favorites set + recently-played list, persisted to Redis as JSON arrays.

    Writes are synchronous and best-effort: a failed write is recorded (see
    `drain_failures`) and the in-memory state stays authoritative for the session.
    Both collections only ever hold ids of the current manifest once `reconcile` ran.
    """

    def __init__(self, *, r: redis.Redis, key_prefix: str = "", known_ids: Iterable[str] = ()) -> None:
        self._r = r
        self._favorites_key = f"{key_prefix}{FAVORITES_KEY}"
        self._recents_key = f"{key_prefix}{RECENTS_KEY}"
        self._known_ids = frozenset(known_ids)
        self._failures: list[PersistenceError] = []

        # dict keeps insertion order for stable serialization.
        self._favorites: dict[str, None] = dict.fromkeys(self._read_ids(self._favorites_key))
        self._recents: list[str] = _dedupe(self._read_ids(self._recents_key))[:RECENTS_CAPACITY]

    @property
    def favorites(self) -> list[str]:
        return list(self._favorites)

    @property
    def recents(self) -> list[str]:
        return list(self._recents)

    def is_favorite(self, game_id: str) -> bool:
        return game_id in self._favorites

    def toggle_favorite(self, game_id: str) -> bool:
        """Flip membership and return the new membership. Unknown ids are ignored."""

        if game_id not in self._known_ids:
            logger.debug("Ignoring favorite toggle for unknown game %s", game_id)
            return False

        if game_id in self._favorites:
            del self._favorites[game_id]
        else:
            self._favorites[game_id] = None
        self._write(self._favorites_key, list(self._favorites))
        return game_id in self._favorites

    def record_play(self, game_id: str) -> None:
        self._recents = [game_id, *(gid for gid in self._recents if gid != game_id)][:RECENTS_CAPACITY]
        self._write(self._recents_key, self._recents)

    def reconcile(self, manifest_ids: Iterable[str]) -> frozenset[str]:
        """Drop entries not present in the manifest and rewrite both persisted copies.

        Returns the ids that were pruned.
        """

        self._known_ids = frozenset(manifest_ids)
        pruned = {gid for gid in self._favorites if gid not in self._known_ids}
        pruned.update(gid for gid in self._recents if gid not in self._known_ids)

        self._favorites = {gid: None for gid in self._favorites if gid in self._known_ids}
        self._recents = [gid for gid in self._recents if gid in self._known_ids]

        self._write(self._favorites_key, list(self._favorites))
        self._write(self._recents_key, self._recents)
        if pruned:
            logger.info("Pruned %d stale ids from favorites/recents", len(pruned))
        return frozenset(pruned)

    def drain_failures(self) -> list[PersistenceError]:
        """Return write failures recorded since the last call, then forget them."""

        failures, self._failures = self._failures, []
        return failures

    def _read_ids(self, key: str) -> list[str]:
        try:
            raw = self._r.get(key)
        except redis.RedisError as e:
            logger.warning("Could not read %s, starting empty: %s", key, e)
            return []
        if not raw:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable value stored at %s", key)
            return []
        if not isinstance(data, list):
            logger.warning("Discarding non-list value stored at %s", key)
            return []
        return [str(x) for x in data if isinstance(x, str) and x]

    def _write(self, key: str, ids: list[str]) -> None:
        try:
            self._r.set(key, json.dumps(ids))
        except redis.RedisError as e:
            logger.warning("Persisting %s failed: %s", key, e)
            self._failures.append(PersistenceError(key, str(e)))
