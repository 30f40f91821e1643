from __future__ import annotations

import json
import logging
import posixpath
import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gameshelf.api.models import UNCATEGORIZED, GameDescriptor
from gameshelf.core.errors import ManifestDuplicateId, ManifestMalformed, ManifestMissingId

logger = logging.getLogger(__name__)

DEFAULT_GAMES_ROOT = "games"
DEFAULT_PLACEHOLDER_COVER = "https://placekitten.com/320/214"

_ABSOLUTE_URL = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_SEPARATORS = re.compile(r"[-_]+")
_WORD_START = re.compile(r"\b\w")


def humanize_id(game_id: str) -> str:
    """`super-cat_mario` -> `Super Cat Mario`."""

    spaced = _SEPARATORS.sub(" ", game_id)
    return _WORD_START.sub(lambda m: m.group(0).upper(), spaced)


def _is_absolute(entry: str) -> bool:
    return bool(_ABSOLUTE_URL.match(entry)) or entry.startswith("/")


@dataclass(frozen=True, slots=True)
class ManifestDefaults:
    """Values used to fill in optional descriptor fields."""

    games_root: str = DEFAULT_GAMES_ROOT
    placeholder_cover: str = DEFAULT_PLACEHOLDER_COVER

    def entry_url_for(self, game_id: str, entry: str | None) -> str:
        root = self.games_root.rstrip("/")
        if not entry:
            return f"{root}/{game_id}/index.html"
        if _is_absolute(entry) or entry.startswith(f"{root}/"):
            return entry
        return posixpath.join(root, entry)


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None and v != "":
            return v
    return None


def _release_date(raw: Mapping[str, Any], *, game_id: str) -> date | None:
    value = _first(raw, "releaseDate", "release_date", "year")
    if value is None:
        return None
    if isinstance(value, bool):
        raise ManifestMalformed(f"Invalid release date for {game_id}: {value!r}")
    if isinstance(value, int):
        return date(value, 1, 1)
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.isdigit() and len(text) == 4:
                return date(int(text), 1, 1)
            return date.fromisoformat(text[:10])
        except ValueError as e:
            raise ManifestMalformed(f"Invalid release date for {game_id}: {value!r}") from e
    raise ManifestMalformed(f"Invalid release date for {game_id}: {value!r}")


def _string_list(raw: Mapping[str, Any], key: str, *, game_id: str) -> tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ManifestMalformed(f"'{key}' of {game_id} must be a list")

    out: list[str] = []
    for item in value:
        # Screenshots may be {"thumbnail": ..., "url": ...} objects.
        if isinstance(item, Mapping):
            item = _first(item, "thumbnail", "url", "src")
        if not isinstance(item, str):
            raise ManifestMalformed(f"'{key}' of {game_id} must contain strings")
        if item.strip():
            out.append(item.strip())
    return tuple(out)


def descriptor_from_raw(raw: object, *, index: int, defaults: ManifestDefaults) -> GameDescriptor:
    if not isinstance(raw, Mapping):
        raise ManifestMalformed(f"Manifest entry #{index} is not an object")

    game_id = raw.get("id")
    if game_id is None or (isinstance(game_id, str) and not game_id.strip()):
        raise ManifestMissingId(index)
    if not isinstance(game_id, str):
        raise ManifestMalformed(f"Manifest entry #{index} has a non-string id: {game_id!r}")
    game_id = game_id.strip()

    title = _first(raw, "title", "name")
    entry = _first(raw, "entry", "path", "url")
    if entry is not None and not isinstance(entry, str):
        raise ManifestMalformed(f"Entry of {game_id} must be a string")

    try:
        return GameDescriptor(
            id=game_id,
            title=str(title).strip() if title is not None else humanize_id(game_id),
            category=str(_first(raw, "category", "genre") or UNCATEGORIZED),
            entry_url=defaults.entry_url_for(game_id, entry),
            cover=str(_first(raw, "cover", "image") or defaults.placeholder_cover),
            release_date=_release_date(raw, game_id=game_id),
            description=raw.get("description"),
            tags=_string_list(raw, "tags", game_id=game_id),
            screenshots=_string_list(raw, "screenshots", game_id=game_id),
        )
    except ValidationError as e:
        raise ManifestMalformed(f"Manifest entry {game_id} is invalid: {e}") from e


@dataclass(frozen=True, slots=True)
class ManifestStore:
    """Validated, ordered list of game descriptors.

    Read-only after construction. A reload builds a new store and swaps it in whole.
    """

    games: tuple[GameDescriptor, ...]
    _by_id: dict[str, GameDescriptor]

    @staticmethod
    def empty() -> "ManifestStore":
        return ManifestStore(games=(), _by_id={})

    @staticmethod
    def load(raw: object, *, defaults: ManifestDefaults | None = None) -> "ManifestStore":
        """Validate a raw manifest (a list of objects) into a store.

        Fails the whole load on the first problem; no partial catalogs.
        """

        if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
            raise ManifestMalformed(f"Manifest must be a list, got {type(raw).__name__}")

        defaults = defaults or ManifestDefaults()
        by_id: dict[str, GameDescriptor] = {}
        games: list[GameDescriptor] = []
        for index, item in enumerate(raw):
            game = descriptor_from_raw(item, index=index, defaults=defaults)
            if game.id in by_id:
                raise ManifestDuplicateId(game.id)
            by_id[game.id] = game
            games.append(game)

        return ManifestStore(games=tuple(games), _by_id=by_id)

    def all(self) -> tuple[GameDescriptor, ...]:
        return self.games

    def by_id(self, game_id: str) -> GameDescriptor | None:
        return self._by_id.get(game_id)

    def ids(self) -> frozenset[str]:
        return frozenset(self._by_id)

    def categories(self) -> list[str]:
        seen: dict[str, None] = {}
        for g in self.games:
            seen.setdefault(g.category, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self.games)

    def __iter__(self) -> Iterator[GameDescriptor]:
        return iter(self.games)

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and item in self._by_id


def read_manifest_file(path: Path) -> list[Any]:
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise ManifestMalformed(f"Manifest file not found: {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestMalformed(f"Manifest file is not valid JSON: {path}: {e}") from e

    if not isinstance(data, list):
        raise ManifestMalformed(f"Manifest file must hold a JSON array: {path}")
    return data


def fallback_manifest() -> list[dict[str, Any]]:
    """Small bundled catalog used when no manifest file is deployed."""

    return [
        {"id": "super-cat-mario", "title": "Super Cat Mario", "genre": "Platformer", "year": 2025,
         "url": "https://gameboy-emu-aca3.vercel.app/"},
        {"id": "cat-ping-pong", "title": "cat ping pong", "genre": "Arcade", "year": 2025,
         "url": "https://gameboy-emu-dk45.vercel.app/"},
        {"id": "circle-the-cat", "title": "circle the cat game", "genre": "Puzzle", "year": 2025,
         "url": "https://gameboy-emu-4ori.vercel.app/"},
        {"id": "catch-the-cat", "title": "catch the cat", "genre": "Arcade", "year": 2025,
         "url": "https://gameboy-emu.vercel.app/"},
        {"id": "whack-a-cat", "title": "whack a cat", "genre": "Arcade", "year": 2025,
         "url": "https://alexandraliutsko.github.io/whack-a-cat/"},
        {"id": "cat-o-licious", "title": "cat-o-licious", "genre": "Adventure", "year": 2025,
         "url": "https://fiorix.github.io/cat-o-licious/"},
        {"id": "meo-match", "title": "Meo Match", "genre": "Puzzle", "year": 2025,
         "url": "https://meomatch.netlify.app/"},
    ]


def read_manifest_source(path: Path, *, strict: bool = False) -> list[Any]:
    """Raw manifest list from a JSON asset.

    A missing file falls back to the bundled catalog unless `strict` is set. A file that
    exists but is invalid always fails.
    """

    if not path.exists() and not strict:
        logger.warning("Manifest file %s not found; using bundled catalog", path)
        return fallback_manifest()
    return read_manifest_file(path)
