from __future__ import annotations

from typing import Any

import pytest

from gameshelf.api.models import CatalogQuery, GameDescriptor, SortOrder
from gameshelf.catalog import matches_query, view
from gameshelf.manifest.registry import ManifestStore


@pytest.fixture()
def games(raw_manifest: list[dict[str, Any]]) -> tuple[GameDescriptor, ...]:
    return ManifestStore.load(raw_manifest).all()


def _titles(games: list[GameDescriptor]) -> list[str]:
    return [g.title for g in games]


def test_all_name_asc_is_case_insensitive() -> None:
    store = ManifestStore.load(
        [
            {"id": "meo", "title": "Meo Match"},
            {"id": "pong", "title": "cat ping pong"},
            {"id": "mario", "title": "Super Cat Mario"},
        ]
    )

    out = view(store.all(), CatalogQuery(query="", category="all", sort=SortOrder.name_asc))

    assert _titles(out) == ["cat ping pong", "Meo Match", "Super Cat Mario"]


def test_name_desc(games: tuple[GameDescriptor, ...]) -> None:
    out = view(games, CatalogQuery(sort=SortOrder.name_desc))
    assert _titles(out) == ["Whack A Cat", "Super Cat Mario", "Meo Match", "cat ping pong"]


def test_newest_breaks_ties_by_title_and_puts_undated_last(games: tuple[GameDescriptor, ...]) -> None:
    out = view(games, CatalogQuery(sort=SortOrder.newest))
    # Meo Match is newest; the two 2025-02-10 games tie and fall back to title order.
    assert _titles(out) == ["Meo Match", "cat ping pong", "Super Cat Mario", "Whack A Cat"]


def test_query_matches_title_description_and_tags(games: tuple[GameDescriptor, ...]) -> None:
    assert _titles(view(games, CatalogQuery(query="MARIO"))) == ["Super Cat Mario"]
    assert _titles(view(games, CatalogQuery(query="paddle"))) == ["cat ping pong"]
    assert _titles(view(games, CatalogQuery(query="retro"))) == ["Super Cat Mario"]
    assert _titles(view(games, CatalogQuery(query="cat"))) == [
        "cat ping pong",
        "Super Cat Mario",
        "Whack A Cat",
    ]


def test_blank_query_passes_everything(games: tuple[GameDescriptor, ...]) -> None:
    assert len(view(games, CatalogQuery(query="   "))) == len(games)


def test_literal_category_is_case_insensitive(games: tuple[GameDescriptor, ...]) -> None:
    assert _titles(view(games, CatalogQuery(category="arcade"))) == ["cat ping pong"]
    assert _titles(view(games, CatalogQuery(category="Puzzle"))) == ["Meo Match"]
    assert view(games, CatalogQuery(category="racing")) == []


def test_favorites_category_is_sorted(games: tuple[GameDescriptor, ...]) -> None:
    out = view(
        games,
        CatalogQuery(category="favorites", sort=SortOrder.name_desc),
        favorites={"meo-match", "cat-ping-pong", "gone-game"},
    )
    assert _titles(out) == ["Meo Match", "cat ping pong"]


def test_recent_category_keeps_recency_order_and_ignores_sort(games: tuple[GameDescriptor, ...]) -> None:
    recents = ["whack_a_cat", "removed-game", "meo-match", "cat-ping-pong"]

    for order in SortOrder:
        out = view(games, CatalogQuery(category="recent", sort=order), recents=recents)
        assert [g.id for g in out] == ["whack_a_cat", "meo-match", "cat-ping-pong"]


def test_recent_category_still_applies_text_filter(games: tuple[GameDescriptor, ...]) -> None:
    out = view(games, CatalogQuery(category="recent", query="cat"), recents=["meo-match", "whack_a_cat"])
    assert [g.id for g in out] == ["whack_a_cat"]


def test_view_is_pure(games: tuple[GameDescriptor, ...]) -> None:
    params = CatalogQuery(query="cat", sort=SortOrder.newest)
    before = list(games)

    assert view(games, params) == view(games, params)
    assert list(games) == before


def test_matches_query_without_description_or_tags() -> None:
    game = ManifestStore.load([{"id": "plain"}]).all()[0]
    assert matches_query(game, "plain")
    assert not matches_query(game, "cat")


def test_name_sort_treats_accented_letters_like_their_base_letter() -> None:
    store = ManifestStore.load(
        [
            {"id": "zelda", "title": "Zelda Cat"},
            {"id": "ecole", "title": "École Cat"},
            {"id": "eclair", "title": "eclair cat"},
        ]
    )

    asc = view(store.all(), CatalogQuery(sort=SortOrder.name_asc))
    desc = view(store.all(), CatalogQuery(sort=SortOrder.name_desc))

    assert _titles(asc) == ["eclair cat", "École Cat", "Zelda Cat"]
    assert _titles(desc) == ["Zelda Cat", "École Cat", "eclair cat"]
