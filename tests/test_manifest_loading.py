from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import pytest

from gameshelf.api.models import UNCATEGORIZED
from gameshelf.core.errors import ManifestDuplicateId, ManifestMalformed, ManifestMissingId
from gameshelf.manifest.registry import (
    DEFAULT_PLACEHOLDER_COVER,
    ManifestDefaults,
    ManifestStore,
    fallback_manifest,
    humanize_id,
    read_manifest_source,
)


def test_load_indexes_every_game_by_id(raw_manifest: list[dict[str, Any]]) -> None:
    store = ManifestStore.load(raw_manifest)

    assert [g.id for g in store.all()] == ["meo-match", "cat-ping-pong", "super-cat-mario", "whack_a_cat"]
    for game in store.all():
        assert store.by_id(game.id) is game
    assert store.by_id("nope") is None
    assert "meo-match" in store
    assert len(store) == 4


def test_optional_fields_get_defaults(raw_manifest: list[dict[str, Any]]) -> None:
    store = ManifestStore.load(raw_manifest)

    whack = store.by_id("whack_a_cat")
    assert whack is not None
    assert whack.title == "Whack A Cat"
    assert whack.category == UNCATEGORIZED
    assert whack.entry_url == "games/whack_a_cat/index.html"
    assert whack.cover == DEFAULT_PLACEHOLDER_COVER
    assert whack.release_date is None
    assert whack.tags == ()


def test_entry_urls_resolve_against_games_root(raw_manifest: list[dict[str, Any]]) -> None:
    store = ManifestStore.load(raw_manifest, defaults=ManifestDefaults(games_root="/static/games/"))

    assert store.by_id("meo-match").entry_url == "https://meomatch.netlify.app/"  # type: ignore[union-attr]
    assert store.by_id("super-cat-mario").entry_url == "/static/games/super-cat-mario/index.html"  # type: ignore[union-attr]
    assert store.by_id("cat-ping-pong").entry_url == "/static/games/cat-ping-pong/index.html"  # type: ignore[union-attr]


def test_field_aliases_from_older_manifests() -> None:
    store = ManifestStore.load(
        [
            {
                "id": "catch-the-cat",
                "name": "catch the cat",
                "genre": "Arcade",
                "year": 2025,
                "url": "https://gameboy-emu.vercel.app/",
                "screenshots": [{"thumbnail": "shot-1.png"}, "shot-2.png"],
            }
        ]
    )

    game = store.by_id("catch-the-cat")
    assert game is not None
    assert game.title == "catch the cat"
    assert game.category == "Arcade"
    assert game.release_date == date(2025, 1, 1)
    assert game.entry_url == "https://gameboy-emu.vercel.app/"
    assert game.screenshots == ("shot-1.png", "shot-2.png")


def test_humanize_id() -> None:
    assert humanize_id("super-cat_mario") == "Super Cat Mario"
    assert humanize_id("cat--o__licious") == "Cat O Licious"


def test_duplicate_id_fails_whole_load() -> None:
    with pytest.raises(ManifestDuplicateId) as e:
        ManifestStore.load([{"id": "a"}, {"id": "b"}, {"id": "a"}])
    assert e.value.game_id == "a"


@pytest.mark.parametrize("entry", [{}, {"id": ""}, {"id": "   "}, {"id": None, "title": "Nameless"}])
def test_missing_id_fails(entry: dict[str, Any]) -> None:
    with pytest.raises(ManifestMissingId):
        ManifestStore.load([{"id": "ok"}, entry])


@pytest.mark.parametrize("raw", [None, "games", {"id": "a"}, 42])
def test_non_sequence_is_malformed(raw: object) -> None:
    with pytest.raises(ManifestMalformed):
        ManifestStore.load(raw)


def test_bad_element_shapes_are_malformed() -> None:
    with pytest.raises(ManifestMalformed):
        ManifestStore.load(["just-a-string"])
    with pytest.raises(ManifestMalformed):
        ManifestStore.load([{"id": "a", "tags": "not-a-list"}])
    with pytest.raises(ManifestMalformed):
        ManifestStore.load([{"id": "a", "releaseDate": "someday"}])


def test_categories_in_first_appearance_order(raw_manifest: list[dict[str, Any]]) -> None:
    store = ManifestStore.load(raw_manifest)
    assert store.categories() == ["Puzzle", "Arcade", "Platformer", UNCATEGORIZED]


def test_missing_file_falls_back_unless_strict(tmp_path: Path) -> None:
    missing = tmp_path / "games.json"

    assert read_manifest_source(missing) == fallback_manifest()
    with pytest.raises(ManifestMalformed):
        read_manifest_source(missing, strict=True)


def test_file_must_hold_an_array(tmp_path: Path) -> None:
    path = tmp_path / "games.json"
    path.write_text('{"id": "a"}', encoding="utf-8")
    with pytest.raises(ManifestMalformed):
        read_manifest_source(path)

    path.write_text("[{", encoding="utf-8")
    with pytest.raises(ManifestMalformed):
        read_manifest_source(path)


def test_bundled_catalog_is_a_valid_manifest() -> None:
    store = ManifestStore.load(fallback_manifest())
    assert len(store) == 7
    assert store.by_id("meo-match") is not None
