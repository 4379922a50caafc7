from __future__ import annotations

import asyncio
import json
import logging
import random
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from monopoly_core.broadcast import GAME_CLOSED
from monopoly_core.engine import TurnEngine
from monopoly_core.exceptions import (
    MonopolyError,
    NotFoundError,
    RuleViolation,
    StateError,
    StorageError,
    ValidationError,
)
from monopoly_core.serialization import state_to_document
from monopoly_core.service import GameService
from monopoly_core.settings import MonopolySettings, get_settings
from monopoly_core.storage import SqlGameStorage, create_storage

from .schemas import (
    ActionRequest,
    CreateGameRequest,
    CreateGameResponse,
    GameListResponse,
    LegalActionsResponse,
    PlayerRequest,
    SpectatorRequest,
)

logger = logging.getLogger(__name__)

# Seconds between keep-alive comments on idle event streams
SSE_KEEPALIVE_SECONDS = 15.0

ERROR_STATUS = {
    ValidationError: 422,
    NotFoundError: 404,
    RuleViolation: 409,
    StateError: 500,
    StorageError: 500,
}


def error_status(exc: MonopolyError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 500


def build_service(settings: MonopolySettings) -> GameService:
    """Wire engine and storage from process settings."""
    rng = random.Random(settings.seed)
    engine = TurnEngine(settings.game_config(), rng=rng)
    storage = create_storage(settings.database_url, **settings.get_engine_kwargs())
    return GameService(engine, storage)


def format_sse(message: Dict[str, Any]) -> str:
    """Encode a broadcast message as one server-sent event."""
    event = f"event: {message['type']}\ndata: {json.dumps(message)}\n\n"
    if message.get("sequence") is None:
        return event
    return f"id: {message['sequence']}\n" + event


def create_app(service: Optional[GameService] = None, settings: Optional[MonopolySettings] = None) -> FastAPI:
    """
    Build the HTTP app.

    Pass a ready GameService to bypass settings-driven wiring (tests do).
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle - startup and shutdown."""
        owned = app.state.service is None
        if owned:
            app.state.service = build_service(settings)
            if isinstance(app.state.service.storage, SqlGameStorage):
                await app.state.service.storage.create_tables()
        logger.info("Monopoly server ready")

        yield

        if owned:
            await app.state.service.storage.close()
        logger.info("Shutdown complete")

    app = FastAPI(title="Monopoly Game Server", version="0.1.0", lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(MonopolyError)
    async def monopoly_error_handler(request: Request, exc: MonopolyError) -> JSONResponse:
        status = error_status(exc)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        return JSONResponse(status_code=status, content={"error": type(exc).__name__, "detail": str(exc)})

    def get_service(request: Request) -> GameService:
        return request.app.state.service

    @app.post("/games", response_model=CreateGameResponse, status_code=201)
    async def create_game(req: CreateGameRequest, svc: GameService = Depends(get_service)):
        game_id = await svc.create_game([p.to_new_player() for p in req.players], game_id=req.game_id)
        return CreateGameResponse(game_id=game_id)

    @app.get("/games", response_model=GameListResponse)
    async def list_games(svc: GameService = Depends(get_service)):
        return GameListResponse(games=await svc.list_games())

    @app.get("/games/{game_id}")
    async def get_game(game_id: str, svc: GameService = Depends(get_service)):
        return state_to_document(await svc.get_game(game_id))

    @app.delete("/games/{game_id}", status_code=204)
    async def delete_game(game_id: str, svc: GameService = Depends(get_service)):
        await svc.delete_game(game_id)
        return Response(status_code=204)

    @app.post("/games/{game_id}/actions")
    async def apply_action(game_id: str, req: ActionRequest, svc: GameService = Depends(get_service)):
        state = await svc.process_action(game_id, req.to_payload())
        return state_to_document(state)

    @app.get("/games/{game_id}/legal_actions", response_model=LegalActionsResponse)
    async def legal_actions(game_id: str, player_id: str, svc: GameService = Depends(get_service)):
        actions = await svc.legal_actions(game_id, player_id)
        return LegalActionsResponse(game_id=game_id, player_id=player_id, actions=[a.value for a in actions])

    @app.post("/games/{game_id}/players", status_code=201)
    async def add_player(game_id: str, req: PlayerRequest, svc: GameService = Depends(get_service)):
        return state_to_document(await svc.add_player(game_id, req.to_new_player()))

    @app.post("/games/{game_id}/spectators")
    async def add_spectator(game_id: str, req: SpectatorRequest, svc: GameService = Depends(get_service)):
        return state_to_document(await svc.add_spectator(game_id, req.spectator_id))

    @app.delete("/games/{game_id}/spectators/{spectator_id}")
    async def remove_spectator(game_id: str, spectator_id: str, svc: GameService = Depends(get_service)):
        return state_to_document(await svc.remove_spectator(game_id, spectator_id))

    @app.get("/games/{game_id}/events")
    async def game_events(game_id: str, request: Request, svc: GameService = Depends(get_service)):
        q = await svc.subscribe(game_id)

        async def stream() -> AsyncGenerator[str, None]:
            try:
                while not await request.is_disconnected():
                    try:
                        message = await asyncio.wait_for(q.get(), timeout=SSE_KEEPALIVE_SECONDS)
                    except asyncio.TimeoutError:
                        yield ": keep-alive\n\n"
                        continue
                    yield format_sse(message)
                    if message["type"] == GAME_CLOSED:
                        break
            finally:
                svc.unsubscribe(game_id, q)

        return StreamingResponse(
            stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    return app
