from __future__ import annotations

from fastapi import Request

from gameshelf.config import ShelfSettings
from gameshelf.shelf import GameShelf
from gameshelf.websocket_hub import IntentWebSocketHub


def get_shelf(request: Request) -> GameShelf:
    shelf = getattr(request.app.state, "shelf", None)
    if shelf is None:
        raise RuntimeError("Shelf not initialized. Run the app startup hook first.")
    return shelf


def get_hub(request: Request) -> IntentWebSocketHub:
    return request.app.state.hub


def get_settings(request: Request) -> ShelfSettings:
    return request.app.state.settings
