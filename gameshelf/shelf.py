from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import redis

from gameshelf import catalog
from gameshelf.api.models import CatalogQuery, GameDescriptor
from gameshelf.config import ShelfSettings
from gameshelf.core.errors import ManifestError
from gameshelf.core.intents import Intent
from gameshelf.ledger import Ledger
from gameshelf.manifest.registry import ManifestDefaults, ManifestStore, read_manifest_source
from gameshelf.manifest.reloader import ManifestReloader
from gameshelf.save_slots import SaveSlotStore
from gameshelf.session import SessionManager
from gameshelf.streams import IntentOutbox, publish_intents

logger = logging.getLogger(__name__)

IntentListener = Callable[[Sequence[Intent]], Any]


@dataclass(frozen=True, slots=True)
class ManifestLoadResult:
    loaded: bool
    total: int
    intents: tuple[Intent, ...] = ()
    error: ManifestError | None = None


class GameShelf:
    """Composition root: manifest, catalog parameters, user state, and the play session.

    Built once at startup and closed at shutdown; handed explicitly to whatever needs it.
    """

    def __init__(
        self,
        *,
        r: redis.Redis,
        key_prefix: str = "",
        defaults: ManifestDefaults | None = None,
    ) -> None:
        self._r = r
        self._defaults = defaults or ManifestDefaults()
        self._manifest = ManifestStore.empty()
        self._query = CatalogQuery()
        self._last_load: ManifestLoadResult | None = None
        self._listeners: list[IntentListener] = []
        self._lock = threading.RLock()

        self.ledger = Ledger(r=r, key_prefix=key_prefix)
        self.save_slots = SaveSlotStore(r=r, key_prefix=key_prefix)
        self.session_manager = SessionManager(manifest=self._manifest, ledger=self.ledger, save_slots=self.save_slots)
        self.outbox = IntentOutbox(key_prefix=key_prefix)
        self.reloader: ManifestReloader[ManifestLoadResult] = ManifestReloader(apply=self.load_manifest)

    @classmethod
    def from_settings(cls, settings: ShelfSettings, *, r: redis.Redis) -> "GameShelf":
        return cls(r=r, key_prefix=settings.key_prefix, defaults=settings.manifest_defaults)

    @property
    def redis_client(self) -> redis.Redis:
        return self._r

    @property
    def manifest(self) -> ManifestStore:
        return self._manifest

    @property
    def catalog_query(self) -> CatalogQuery:
        return self._query

    @property
    def last_load(self) -> ManifestLoadResult | None:
        """Outcome of the most recent manifest load that was applied, if any."""

        return self._last_load

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def load_manifest(self, raw: object) -> ManifestLoadResult:
        """Validate and swap in a new manifest, then prune stale favorites/recents.

        A bad manifest leaves an empty catalog and a user-visible error; it never raises.
        """

        try:
            store = ManifestStore.load(raw, defaults=self._defaults)
        except ManifestError as e:
            return self._manifest_failed(e)

        with self._lock:
            self._manifest = store
            self.session_manager.use_manifest(store)
            self.ledger.reconcile(store.ids())

        intents = [
            Intent.notify("Could not save your changes; they will last for this session only", "error")
            for _ in self.ledger.drain_failures()
        ]
        self.publish(intents)
        logger.info("Loaded manifest with %d games", len(store))
        self._last_load = ManifestLoadResult(loaded=True, total=len(store), intents=tuple(intents))
        return self._last_load

    def load_manifest_file(self, path: Path, *, strict: bool = False) -> ManifestLoadResult:
        try:
            raw = read_manifest_source(path, strict=strict)
        except ManifestError as e:
            return self._manifest_failed(e)
        return self.load_manifest(raw)

    async def reload_manifest_file(self, path: Path, *, strict: bool = False) -> ManifestLoadResult | None:
        """Re-read the manifest file off the event loop. Superseded reloads return None."""

        async def _fetch() -> object:
            return await asyncio.to_thread(read_manifest_source, path, strict=strict)

        try:
            return await self.reloader.reload(_fetch)
        except ManifestError as e:
            return self._manifest_failed(e)

    def _manifest_failed(self, err: ManifestError) -> ManifestLoadResult:
        # Favorites/recents are only reconciled against manifests that actually loaded.
        logger.error("Manifest load failed: %s", err)
        with self._lock:
            self._manifest = ManifestStore.empty()
            self.session_manager.use_manifest(self._manifest)

        intents = [Intent.notify("Failed to load games. Please try again later.", "error")]
        self.publish(intents)
        self._last_load = ManifestLoadResult(loaded=False, total=0, intents=tuple(intents), error=err)
        return self._last_load

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def view(self, params: CatalogQuery | None = None) -> list[GameDescriptor]:
        return catalog.view(
            self._manifest.all(),
            params or self._query,
            favorites=set(self.ledger.favorites),
            recents=self.ledger.recents,
        )

    def current_view(self) -> list[GameDescriptor]:
        return self.view(self._query)

    def update_catalog_query(self, **changes: Any) -> list[GameDescriptor]:
        with self._lock:
            self._query = CatalogQuery(**{**self._query.model_dump(), **changes})
            return self.current_view()

    # ------------------------------------------------------------------
    # Intent fan-out
    # ------------------------------------------------------------------

    def subscribe(self, listener: IntentListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: IntentListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, intents: Sequence[Intent]) -> None:
        if not intents:
            return
        publish_intents(r=self._r, outbox=self.outbox, intents=intents)
        for listener in list(self._listeners):
            try:
                listener(intents)
            except Exception:
                logger.exception("Intent listener %r failed", listener)

    def close(self) -> None:
        result = self.session_manager.shutdown()
        self.publish(result.intents)
        self._listeners.clear()
