from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from gameshelf.core.intents import BLANK_VIEWPORT_URL

UNCATEGORIZED = "uncategorized"

CATEGORY_ALL = "all"
CATEGORY_FAVORITES = "favorites"
CATEGORY_RECENT = "recent"


class GameDescriptor(BaseModel):
    """One playable game, as resolved from the manifest. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    category: str = UNCATEGORIZED
    entry_url: str
    cover: str

    release_date: date | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    screenshots: tuple[str, ...] = ()


class SortOrder(StrEnum):
    name_asc = "name-asc"
    name_desc = "name-desc"
    newest = "newest"


class CatalogQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = ""
    # "all" | "favorites" | "recent" | a literal category name
    category: str = CATEGORY_ALL
    sort: SortOrder = SortOrder.name_asc


class SessionStatus(StrEnum):
    browsing = "browsing"
    playing = "playing"
    paused = "paused"


class Session(BaseModel):
    """The single runtime record of what is being played.

    A new instance is built on every transition, so the status/active game pairing is
    validated each time and can never be observed half-updated.
    """

    model_config = ConfigDict(frozen=True)

    status: SessionStatus = SessionStatus.browsing
    active_game: GameDescriptor | None = None
    is_fullscreen: bool = False

    @model_validator(mode="after")
    def _active_game_matches_status(self) -> "Session":
        if self.status == SessionStatus.browsing and self.active_game is not None:
            raise ValueError("a browsing session cannot have an active game")
        if self.status != SessionStatus.browsing and self.active_game is None:
            raise ValueError(f"a {self.status.value} session needs an active game")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def overlay_visible(self) -> bool:
        return self.status == SessionStatus.paused

    @computed_field  # type: ignore[prop-decorator]
    @property
    def viewport_url(self) -> str:
        if self.active_game is None:
            return BLANK_VIEWPORT_URL
        return self.active_game.entry_url


class IntentOut(BaseModel):
    kind: str
    url: str | None = None
    message: str | None = None
    level: str | None = None
    deferred: bool = False


class CatalogResponse(BaseModel):
    query: CatalogQuery
    total: int
    games: list[GameDescriptor]


class CategoriesResponse(BaseModel):
    categories: list[str]


class IdListResponse(BaseModel):
    ids: list[str]


class ManifestLoadResponse(BaseModel):
    loaded: bool
    total: int
    intents: list[IntentOut] = Field(default_factory=list)


class CommandResponse(BaseModel):
    session: Session
    state_changed: bool
    intents: list[IntentOut] = Field(default_factory=list)

    error: str | None = None
    error_type: str | None = None

    # Command-specific extras.
    is_favorite: bool | None = None
    value: Any = None
    view: list[GameDescriptor] | None = None


class SaveSlotBody(BaseModel):
    value: Any


class SaveSlotResponse(BaseModel):
    game_id: str
    slot: str
    value: Any


class SlotListResponse(BaseModel):
    game_id: str
    slots: list[str]
