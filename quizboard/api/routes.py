from __future__ import annotations

from collections.abc import Callable
from uuid import UUID

import redis
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from quizboard.api.deps import get_redis, get_registry
from quizboard.api.models import (
    AnswerRequest,
    GameCreateRequest,
    GameListResponse,
    RestartRequest,
    Space,
    TurnView,
)
from quizboard.persistence import list_games
from quizboard.sessions import SessionRegistry
from quizboard.streams import Feed, read_feed
from quizboard.turn_processing.controller import TurnController
from quizboard.websocket_hub import hub

router = APIRouter()


def _require_controller(registry: SessionRegistry, game_id: UUID) -> TurnController:
    controller = registry.get(game_id)
    if controller is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return controller


async def _run_action(
    registry: SessionRegistry,
    game_id: UUID,
    action: Callable[[TurnController], None],
) -> TurnView:
    controller = _require_controller(registry, game_id)
    try:
        action(controller)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await hub.broadcast(str(game_id), {"type": "game_updated", "game_id": str(game_id)})
    return controller.view()


@router.websocket("/ws/game/{game_id}")
async def game_updates_ws(websocket: WebSocket, game_id: UUID) -> None:
    gid = str(game_id)
    await hub.connect(gid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(gid, websocket)
    except Exception:
        await hub.disconnect(gid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/game", response_model=TurnView, status_code=status.HTTP_201_CREATED)
async def create_game_route(
    payload: GameCreateRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> TurnView:
    try:
        controller = registry.create(difficulty=payload.difficulty, entries=payload.players)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    game_id = str(controller.state.game_id)
    await hub.broadcast(game_id, {"type": "game_updated", "game_id": game_id})
    return controller.view()


@router.get("/game", response_model=GameListResponse)
async def list_games_route(r: redis.Redis = Depends(get_redis)) -> GameListResponse:
    return GameListResponse(games=list_games(r=r))


@router.get("/game/{game_id}", response_model=TurnView)
async def get_game_route(game_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> TurnView:
    return _require_controller(registry, game_id).view()


@router.get("/game/{game_id}/board", response_model=list[Space])
async def get_board_route(game_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> list[Space]:
    return _require_controller(registry, game_id).track


@router.post("/game/{game_id}/roll", response_model=TurnView)
async def roll_route(game_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> TurnView:
    return await _run_action(registry, game_id, lambda c: c.request_roll())


@router.post("/game/{game_id}/spaces/{space_id}/click", response_model=TurnView)
async def click_space_route(
    game_id: UUID,
    space_id: int,
    registry: SessionRegistry = Depends(get_registry),
) -> TurnView:
    return await _run_action(registry, game_id, lambda c: c.click_space(space_id))


@router.post("/game/{game_id}/answer", response_model=TurnView)
async def answer_route(
    game_id: UUID,
    payload: AnswerRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> TurnView:
    return await _run_action(registry, game_id, lambda c: c.submit_answer(payload.answer))


@router.post("/game/{game_id}/event", response_model=TurnView)
async def apply_event_route(game_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> TurnView:
    return await _run_action(registry, game_id, lambda c: c.apply_event())


@router.post("/game/{game_id}/end_turn", response_model=TurnView)
async def end_turn_route(game_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> TurnView:
    return await _run_action(registry, game_id, lambda c: c.end_turn())


@router.post("/game/{game_id}/dialog/close", response_model=TurnView)
async def close_dialog_route(game_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> TurnView:
    return await _run_action(registry, game_id, lambda c: c.close_dialog())


@router.post("/game/{game_id}/end", response_model=TurnView)
async def end_game_route(game_id: UUID, registry: SessionRegistry = Depends(get_registry)) -> TurnView:
    return await _run_action(registry, game_id, lambda c: c.end_game())


@router.post("/game/{game_id}/restart", response_model=TurnView)
async def restart_route(
    game_id: UUID,
    payload: RestartRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> TurnView:
    try:
        controller = registry.restart(game_id, entries=payload.players, difficulty=payload.difficulty)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    if controller is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")

    await hub.broadcast(str(game_id), {"type": "game_updated", "game_id": str(game_id)})
    return controller.view()


@router.get("/game/{game_id}/feed")
async def get_feed_route(
    game_id: UUID,
    count: int = 50,
    r: redis.Redis = Depends(get_redis),
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, object]:
    """Read a game's event feed (oldest first)."""

    if count < 1 or count > 500:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 500")
    _require_controller(registry, game_id)

    feed = Feed(game_id=str(game_id))
    return {"game_id": str(game_id), "stream": feed.key, "entries": read_feed(r=r, feed=feed, count=count)}
