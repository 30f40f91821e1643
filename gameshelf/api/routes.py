from __future__ import annotations

from typing import Any

import redis
from fastapi import APIRouter, Body, Depends, HTTPException, Path, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from gameshelf.api.deps import get_hub, get_settings, get_shelf
from gameshelf.api.models import (
    CatalogQuery,
    CatalogResponse,
    CategoriesResponse,
    CommandResponse,
    GameDescriptor,
    IdListResponse,
    IntentOut,
    ManifestLoadResponse,
    SaveSlotBody,
    SaveSlotResponse,
    Session,
    SlotListResponse,
    SortOrder,
)
from gameshelf.commands import dispatch_command, parse_command
from gameshelf.config import ShelfSettings
from gameshelf.core.errors import PersistenceError
from gameshelf.core.intents import Intent
from gameshelf.save_slots import SLOT_PATTERN
from gameshelf.shelf import GameShelf, ManifestLoadResult
from gameshelf.streams import read_intents
from gameshelf.websocket_hub import IntentWebSocketHub

router = APIRouter()


def _intents_out(intents: tuple[Intent, ...] | list[Intent]) -> list[IntentOut]:
    return [IntentOut.model_validate(i.as_payload()) for i in intents]


def _manifest_response(result: ManifestLoadResult) -> ManifestLoadResponse:
    return ManifestLoadResponse(loaded=result.loaded, total=result.total, intents=_intents_out(result.intents))


@router.websocket("/ws/intents")
async def intents_ws(websocket: WebSocket) -> None:
    hub: IntentWebSocketHub = websocket.app.state.hub
    await hub.connect(websocket)

    try:
        # Keep the socket open; adapters can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception:
        await hub.disconnect(websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/info")
async def info() -> dict[str, str]:
    return {"name": "gameshelf", "version": "0.1.0"}


@router.get("/catalog", response_model=CatalogResponse)
async def catalog_route(
    query: str = "",
    category: str = "all",
    sort: SortOrder = SortOrder.name_asc,
    shelf: GameShelf = Depends(get_shelf),
) -> CatalogResponse:
    params = CatalogQuery(query=query, category=category, sort=sort)
    games = shelf.view(params)
    return CatalogResponse(query=params, total=len(games), games=games)


@router.get("/catalog/current", response_model=CatalogResponse)
async def current_catalog_route(shelf: GameShelf = Depends(get_shelf)) -> CatalogResponse:
    games = shelf.current_view()
    return CatalogResponse(query=shelf.catalog_query, total=len(games), games=games)


@router.get("/categories", response_model=CategoriesResponse)
async def categories_route(shelf: GameShelf = Depends(get_shelf)) -> CategoriesResponse:
    return CategoriesResponse(categories=shelf.manifest.categories())


@router.get("/catalog/{game_id}", response_model=GameDescriptor)
async def game_route(game_id: str, shelf: GameShelf = Depends(get_shelf)) -> GameDescriptor:
    game = shelf.manifest.by_id(game_id)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game


@router.post("/manifest", response_model=ManifestLoadResponse)
async def replace_manifest_route(
    raw: Any = Body(...),
    shelf: GameShelf = Depends(get_shelf),
    hub: IntentWebSocketHub = Depends(get_hub),
) -> ManifestLoadResponse:
    result = shelf.load_manifest(raw)
    await hub.broadcast_intents(result.intents)
    return _manifest_response(result)


@router.post("/manifest/reload", response_model=ManifestLoadResponse)
async def reload_manifest_route(
    shelf: GameShelf = Depends(get_shelf),
    hub: IntentWebSocketHub = Depends(get_hub),
    settings: ShelfSettings = Depends(get_settings),
) -> ManifestLoadResponse:
    result = await shelf.reload_manifest_file(settings.manifest_path, strict=settings.strict_manifest)
    if result is None:
        # A newer reload superseded this one; report what is loaded now.
        last = shelf.last_load
        return ManifestLoadResponse(loaded=last is not None and last.loaded, total=len(shelf.manifest))
    await hub.broadcast_intents(result.intents)
    return _manifest_response(result)


@router.get("/session", response_model=Session)
async def session_route(shelf: GameShelf = Depends(get_shelf)) -> Session:
    return shelf.session_manager.session


@router.post("/session/commands", response_model=CommandResponse)
async def command_route(
    body: dict[str, Any],
    shelf: GameShelf = Depends(get_shelf),
    hub: IntentWebSocketHub = Depends(get_hub),
) -> CommandResponse:
    try:
        command = parse_command(body)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors()) from e

    result = dispatch_command(shelf=shelf, command=command)
    transition = result.transition
    await hub.broadcast_intents(transition.intents)

    err = transition.error
    return CommandResponse(
        session=transition.session,
        state_changed=transition.state_changed,
        intents=_intents_out(transition.intents),
        error=str(err) if err else None,
        error_type=type(err).__name__ if err else None,
        is_favorite=transition.value if command.command == "toggle_favorite" else None,
        value=transition.value if command.command in {"load_state", "delete_state"} else None,
        view=result.view,
    )


@router.get("/favorites", response_model=IdListResponse)
async def favorites_route(shelf: GameShelf = Depends(get_shelf)) -> IdListResponse:
    return IdListResponse(ids=shelf.ledger.favorites)


@router.get("/recents", response_model=IdListResponse)
async def recents_route(shelf: GameShelf = Depends(get_shelf)) -> IdListResponse:
    return IdListResponse(ids=shelf.ledger.recents)


@router.get("/saves/{game_id}", response_model=SlotListResponse)
async def list_slots_route(game_id: str, shelf: GameShelf = Depends(get_shelf)) -> SlotListResponse:
    try:
        slots = shelf.save_slots.list_slots(game_id)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    return SlotListResponse(game_id=game_id, slots=slots)


@router.get("/saves/{game_id}/{slot}", response_model=SaveSlotResponse)
async def get_slot_route(
    game_id: str,
    slot: str = Path(..., pattern=SLOT_PATTERN),
    shelf: GameShelf = Depends(get_shelf),
) -> SaveSlotResponse:
    try:
        value = shelf.save_slots.load(game_id, slot)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    if value is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Save slot not found")
    return SaveSlotResponse(game_id=game_id, slot=slot, value=value)


@router.put("/saves/{game_id}/{slot}", response_model=SaveSlotResponse)
async def put_slot_route(
    game_id: str,
    payload: SaveSlotBody,
    slot: str = Path(..., pattern=SLOT_PATTERN),
    shelf: GameShelf = Depends(get_shelf),
) -> SaveSlotResponse:
    try:
        shelf.save_slots.save(game_id, slot, payload.value)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    return SaveSlotResponse(game_id=game_id, slot=slot, value=payload.value)


@router.delete("/saves/{game_id}/{slot}")
async def delete_slot_route(
    game_id: str,
    slot: str = Path(..., pattern=SLOT_PATTERN),
    shelf: GameShelf = Depends(get_shelf),
) -> dict[str, object]:
    try:
        removed = shelf.save_slots.remove(game_id, slot)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    return {"game_id": game_id, "slot": slot, "removed": removed}


@router.get("/intents")
async def intents_outbox_route(count: int = 20, shelf: GameShelf = Depends(get_shelf)) -> dict[str, object]:
    """Debug endpoint: read the most recent intents from the outbox stream.

    Intended for local/dev testing when redis-cli isn't available.
    """

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    try:
        entries = read_intents(r=shelf.redis_client, outbox=shelf.outbox, count=count)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

    messages = [{"id": mid, "fields": fields} for mid, fields in entries]
    return {"stream": shelf.outbox.key, "messages": messages}
