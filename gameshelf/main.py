from __future__ import annotations

import logging
from pathlib import Path

import redis
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from gameshelf.api.routes import router
from gameshelf.config import PROJECT_ROOT, ShelfSettings, settings_from_env
from gameshelf.infra.redis_client import create_redis
from gameshelf.shelf import GameShelf
from gameshelf.websocket_hub import IntentWebSocketHub

logger = logging.getLogger(__name__)


def create_app(*, settings: ShelfSettings | None = None, redis_client: redis.Redis | None = None) -> FastAPI:
    """Build the HTTP/WebSocket adapter around one GameShelf.

    The shelf is created on startup and closed on shutdown. Pass `redis_client` to use an
    existing connection (tests hand in fakeredis); otherwise one is opened from settings.
    """

    settings = settings or settings_from_env()
    app = FastAPI(title="gameshelf", version="0.1.0")
    app.include_router(router)
    app.state.settings = settings
    app.state.hub = IntentWebSocketHub()
    app.state.shelf = None
    app.state.redis = None

    # Serve locally hosted games and cover art when present; entry urls resolve against these.
    for mount, directory in (("/games", PROJECT_ROOT / settings.games_root), ("/assets", PROJECT_ROOT / "assets")):
        if Path(directory).is_dir():
            app.mount(mount, StaticFiles(directory=str(directory), html=True), name=mount.strip("/"))

    @app.on_event("startup")
    async def _startup() -> None:
        r = redis_client if redis_client is not None else create_redis(settings)
        shelf = GameShelf.from_settings(settings, r=r)
        result = shelf.load_manifest_file(settings.manifest_path, strict=settings.strict_manifest)
        if not result.loaded:
            logger.error("Starting with an empty catalog: %s", result.error)
        app.state.redis = r
        app.state.shelf = shelf

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        shelf: GameShelf | None = app.state.shelf
        if shelf is not None:
            shelf.close()
        app.state.shelf = None
        owned = app.state.redis if redis_client is None else None
        app.state.redis = None
        if owned is not None:
            owned.close()

    return app


_settings = settings_from_env()
# Configure logging
logging.basicConfig(level=getattr(logging, _settings.log_level, logging.INFO))

app = create_app(settings=_settings)
