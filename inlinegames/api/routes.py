from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
import redis

from inlinegames.actions import ActionDispatcher
from inlinegames.api.deps import get_catalog, get_config, get_redis
from inlinegames.api.models import (
    ActionRequest,
    ActionResponse,
    ButtonModel,
    GameInfo,
    GameListResponse,
    RecordedAnswer,
    RecordedEdit,
    SessionListResponse,
    SessionState,
)
from inlinegames.config import EngineConfig
from inlinegames.errors import SessionDecodeError, StorageError
from inlinegames.games import get_game, list_games
from inlinegames.i18n import LocaleCatalog
from inlinegames.session_store import RedisSessionStore
from inlinegames.transport import RecordingTransport

router = APIRouter()


def _store(r: redis.Redis, config: EngineConfig) -> RedisSessionStore:
    return RedisSessionStore(r, lock_ttl_ms=config.lock_ttl_ms, use_lock=config.session_lock)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/games", response_model=GameListResponse)
async def list_games_route() -> GameListResponse:
    return GameListResponse(games=[GameInfo(code=g.code, title=g.title) for g in list_games()])


@router.get("/sessions", response_model=SessionListResponse)
def list_sessions_route(
    game_code: str | None = None,
    r: redis.Redis = Depends(get_redis),
    config: EngineConfig = Depends(get_config),
) -> SessionListResponse:
    try:
        ids = _store(r, config).list_session_ids(game_code=game_code)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    return SessionListResponse(session_ids=ids)


@router.get("/sessions/{session_id}", response_model=SessionState)
def get_session_route(
    session_id: str,
    r: redis.Redis = Depends(get_redis),
    config: EngineConfig = Depends(get_config),
) -> SessionState:
    try:
        state = _store(r, config).load(session_id)
    except SessionDecodeError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return state


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session_route(
    session_id: str,
    r: redis.Redis = Depends(get_redis),
    config: EngineConfig = Depends(get_config),
) -> None:
    try:
        deleted = _store(r, config).delete(session_id)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")


@router.post("/games/{game_code}/sessions/{session_id}/actions", response_model=ActionResponse)
def session_action_route(
    game_code: str,
    session_id: str,
    payload: ActionRequest,
    r: redis.Redis = Depends(get_redis),
    config: EngineConfig = Depends(get_config),
    catalog: LocaleCatalog = Depends(get_catalog),
) -> ActionResponse:
    """Run one callback through the dispatcher and return what would have been sent."""

    try:
        game = get_game(game_code)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    transport = RecordingTransport()
    dispatcher = ActionDispatcher(
        store=_store(r, config),
        transport=transport,
        game=game,
        catalog=catalog,
        config=config,
    )
    result = dispatcher.handle(session_id, payload.data, payload.user, event_id=payload.event_id)

    edit = transport.last_edit
    ack = transport.last_ack
    return ActionResponse(
        outcome=result.outcome,
        session=result.session,
        edit=(
            RecordedEdit(
                text=edit.text,
                inline_keyboard=[[ButtonModel(**b) for b in row] for row in edit.keyboard],
            )
            if edit is not None
            else None
        ),
        answer=RecordedAnswer(text=ack.text, show_alert=ack.alert) if ack is not None else None,
    )
