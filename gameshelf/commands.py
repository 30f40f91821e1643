"""Typed commands fed synchronously into the shelf.

Every input (HTTP adapter, keyboard adapter, tests) flows through `dispatch_command` so
transitions are serialized and their intents reach every subscriber the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from gameshelf.api.models import GameDescriptor, SortOrder
from gameshelf.save_slots import SLOT_PATTERN
from gameshelf.session import TransitionResult

if TYPE_CHECKING:
    from gameshelf.shelf import GameShelf


class Launch(BaseModel):
    command: Literal["launch"] = "launch"
    game_id: str = Field(..., min_length=1)


class Pause(BaseModel):
    command: Literal["pause"] = "pause"


class Resume(BaseModel):
    command: Literal["resume"] = "resume"


class TogglePause(BaseModel):
    command: Literal["toggle_pause"] = "toggle_pause"


class Restart(BaseModel):
    command: Literal["restart"] = "restart"


class Quit(BaseModel):
    command: Literal["quit"] = "quit"


class ToggleFullscreen(BaseModel):
    command: Literal["toggle_fullscreen"] = "toggle_fullscreen"


class ToggleFavorite(BaseModel):
    command: Literal["toggle_favorite"] = "toggle_favorite"
    game_id: str = Field(..., min_length=1)


class SaveState(BaseModel):
    command: Literal["save_state"] = "save_state"
    slot: str = Field("default", min_length=1, pattern=SLOT_PATTERN)
    value: Any


class LoadState(BaseModel):
    command: Literal["load_state"] = "load_state"
    slot: str = Field("default", min_length=1, pattern=SLOT_PATTERN)


class DeleteState(BaseModel):
    command: Literal["delete_state"] = "delete_state"
    slot: str = Field("default", min_length=1, pattern=SLOT_PATTERN)


class SetQuery(BaseModel):
    command: Literal["set_query"] = "set_query"
    query: str = ""


class SetCategory(BaseModel):
    command: Literal["set_category"] = "set_category"
    category: str = Field(..., min_length=1)


class SetSort(BaseModel):
    command: Literal["set_sort"] = "set_sort"
    sort: SortOrder


Command = Annotated[
    Union[
        Launch,
        Pause,
        Resume,
        TogglePause,
        Restart,
        Quit,
        ToggleFullscreen,
        ToggleFavorite,
        SaveState,
        LoadState,
        DeleteState,
        SetQuery,
        SetCategory,
        SetSort,
    ],
    Field(discriminator="command"),
]

_COMMAND_ADAPTER: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(payload: dict[str, Any]) -> Command:
    """Validate a raw command dict. Raises pydantic.ValidationError (a ValueError)."""

    return _COMMAND_ADAPTER.validate_python(payload)


@dataclass(frozen=True, slots=True)
class CommandResult:
    transition: TransitionResult
    # Set for the catalog parameter commands.
    view: list[GameDescriptor] | None = None


def dispatch_command(*, shelf: "GameShelf", command: Command) -> CommandResult:
    session = shelf.session_manager
    view: list[GameDescriptor] | None = None

    if isinstance(command, Launch):
        result = session.launch(command.game_id)
    elif isinstance(command, Pause):
        result = session.pause()
    elif isinstance(command, Resume):
        result = session.resume()
    elif isinstance(command, TogglePause):
        result = session.toggle_pause()
    elif isinstance(command, Restart):
        result = session.restart()
    elif isinstance(command, Quit):
        result = session.quit()
    elif isinstance(command, ToggleFullscreen):
        result = session.toggle_fullscreen()
    elif isinstance(command, ToggleFavorite):
        result = session.toggle_favorite(command.game_id)
        # The favorites view changes under the user's feet.
        view = shelf.current_view()
    elif isinstance(command, SaveState):
        result = session.save_state(command.slot, command.value)
    elif isinstance(command, LoadState):
        result = session.load_state(command.slot)
    elif isinstance(command, DeleteState):
        result = session.delete_state(command.slot)
    elif isinstance(command, SetQuery):
        view = shelf.update_catalog_query(query=command.query)
        result = TransitionResult(session=session.session, state_changed=True)
    elif isinstance(command, SetCategory):
        view = shelf.update_catalog_query(category=command.category)
        result = TransitionResult(session=session.session, state_changed=True)
    elif isinstance(command, SetSort):
        view = shelf.update_catalog_query(sort=command.sort)
        result = TransitionResult(session=session.session, state_changed=True)
    else:
        raise ValueError(f"Unknown command: {command!r}")

    shelf.publish(result.intents)
    return CommandResult(transition=result, view=view)
