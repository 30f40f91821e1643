from __future__ import annotations

import unicodedata
from collections.abc import Collection, Iterable, Sequence
from datetime import date

from gameshelf.api.models import (
    CATEGORY_ALL,
    CATEGORY_FAVORITES,
    CATEGORY_RECENT,
    CatalogQuery,
    GameDescriptor,
    SortOrder,
)


def _fold(s: str) -> str:
    return unicodedata.normalize("NFKC", s).casefold()


def _collate(s: str) -> str:
    # Accents are secondary: "École" sorts with "E", not after "z".
    decomposed = unicodedata.normalize("NFKD", s)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _title_key(game: GameDescriptor) -> tuple[str, str, str, str]:
    # Accent- and case-insensitive first; the folded title, raw title and id keep ties deterministic.
    return (_collate(game.title), _fold(game.title), game.title, game.id)


def matches_query(game: GameDescriptor, query: str) -> bool:
    needle = _fold(query.strip())
    if not needle:
        return True
    if needle in _fold(game.title):
        return True
    if game.description and needle in _fold(game.description):
        return True
    return any(needle in _fold(tag) for tag in game.tags)


def _select_category(
    games: Sequence[GameDescriptor],
    category: str,
    favorites: Collection[str],
    recents: Sequence[str],
) -> list[GameDescriptor]:
    if category == CATEGORY_FAVORITES:
        return [g for g in games if g.id in favorites]

    if category == CATEGORY_RECENT:
        by_id = {g.id: g for g in games}
        return [by_id[gid] for gid in recents if gid in by_id]

    if category == CATEGORY_ALL:
        return list(games)

    wanted = _fold(category)
    return [g for g in games if _fold(g.category) == wanted]


def sort_games(games: Iterable[GameDescriptor], order: SortOrder) -> list[GameDescriptor]:
    if order == SortOrder.name_asc:
        return sorted(games, key=_title_key)
    if order == SortOrder.name_desc:
        return sorted(games, key=_title_key, reverse=True)

    # newest: dated entries by date descending (title ascending on ties), undated last.
    dated = [g for g in games if g.release_date is not None]
    undated = [g for g in games if g.release_date is None]
    dated.sort(key=_title_key)
    dated.sort(key=lambda g: g.release_date or date.min, reverse=True)
    return dated + sorted(undated, key=_title_key)


def view(
    games: Sequence[GameDescriptor],
    params: CatalogQuery,
    favorites: Collection[str] = (),
    recents: Sequence[str] = (),
) -> list[GameDescriptor]:
    """Filtered + sorted subset of `games` for display.

    Pure and deterministic. The "recent" category keeps recency order and ignores `sort`.
    """

    selected = _select_category(games, params.category, favorites, recents)
    filtered = [g for g in selected if matches_query(g, params.query)]
    if params.category == CATEGORY_RECENT:
        return filtered
    return sort_games(filtered, params.sort)
