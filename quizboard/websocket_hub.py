from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class GameWebSocketHub:
    """In-process WebSocket fan-out keyed by game id.

    Contract:
      - a socket follows one game via `connect(game_id, websocket)`.
      - `broadcast(game_id, payload)` pushes a small JSON dict to every follower;
        clients re-fetch `GET /game/{id}` for the full view.
      - sockets that fail to receive are dropped silently.

    Games live in this process only (see SessionRegistry), so no cross-process
    fan-out is needed.
    """

    def __init__(self) -> None:
        self._followers: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, game_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._followers[game_id].add(websocket)

    async def disconnect(self, game_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._followers.get(game_id)
            if not sockets:
                return
            sockets.discard(websocket)
            if not sockets:
                self._followers.pop(game_id, None)

    async def broadcast(self, game_id: str, payload: dict[str, object]) -> None:
        async with self._lock:
            sockets = list(self._followers.get(game_id, ()))

        if not sockets:
            return

        dead: list[WebSocket] = []
        for ws in sockets:
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        if dead:
            logger.debug("game %s: dropping %d dead sockets", game_id, len(dead))
            for ws in dead:
                await self.disconnect(game_id, ws)


hub = GameWebSocketHub()
