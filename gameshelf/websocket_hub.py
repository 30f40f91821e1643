from __future__ import annotations

import asyncio
from collections.abc import Sequence

from fastapi import WebSocket

from gameshelf.core.intents import Intent


class IntentWebSocketHub:
    """In-process WebSocket fan-out of intents to presentation adapters.

    Contract:
      - register an adapter connection with `connect(websocket)`.
      - every intent batch is sent as `{"type": "intents", "intents": [...]}`.

    There is one play session per process, so all adapters see the same stream.
    """

    def __init__(self) -> None:
        self._conns: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._conns.add(websocket)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._conns.discard(websocket)

    async def broadcast(self, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._conns)

        if not conns:
            return

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._conns.discard(ws)

    async def broadcast_intents(self, intents: Sequence[Intent]) -> None:
        if not intents:
            return
        await self.broadcast({"type": "intents", "intents": [i.as_payload() for i in intents]})
