"""
FastAPI Application - REST API for chat transports.

Endpoints:
    GET    /api/v1/health                               Service health
    GET    /api/v1/rules/{num_players}                  Fixed tables for a roster size
    GET    /api/v1/channels                             Channels with a live game
    POST   /api/v1/channels/{channel}                   Start a game (lobby leader joins)
    GET    /api/v1/channels/{channel}                   Game status
    DELETE /api/v1/channels/{channel}                   Implode the game
    POST   /api/v1/channels/{channel}/players           Join
    GET    /api/v1/channels/{channel}/players           List players
    GET    /api/v1/channels/{channel}/config            Enabled options
    POST   /api/v1/channels/{channel}/config/enable     Enable options
    POST   /api/v1/channels/{channel}/config/disable    Disable options
    POST   /api/v1/channels/{channel}/close             Close the lobby
    POST   /api/v1/channels/{channel}/start             Deal roles, start Quest 1
    POST   /api/v1/channels/{channel}/nominate          Leader nominates a party
    POST   /api/v1/channels/{channel}/votes             Vote on the party
    POST   /api/v1/channels/{channel}/quest-actions     Play a quest card
    POST   /api/v1/channels/{channel}/lake              Lady of the Lake inspection
    POST   /api/v1/channels/{channel}/assassinate       Assassin names a target
    GET    /api/v1/channels/{channel}/knowledge/{player} Repeat a private reveal
    GET    /api/v1/channels/{channel}/snapshot          Export the game
    PUT    /api/v1/channels/{channel}/snapshot          Restore a game

All responses are JSON with explicit Pydantic schemas. Engine failures
come back as ErrorResponse with a structured error_code.
"""

from typing import Annotated, Union
import logging
import os

from .. import __version__

# Environment configuration
ROUNDTABLE_ENV = os.getenv("ROUNDTABLE_ENV", "development")
ROUNDTABLE_LOG_LEVEL = os.getenv("ROUNDTABLE_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
ROUNDTABLE_SEED = os.getenv("ROUNDTABLE_SEED")


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Query
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from ..engine_core.errors import ErrorCode
    from ..session import SessionManager
    from .service import APIService
    from .schemas import (
        ActionResponse,
        CreateSessionRequest,
        EndSessionResponse,
        ErrorResponse,
        GameSnapshot,
        HealthResponse,
        NominateRequest,
        OptionsRequest,
        PlayerRequest,
        QuestActionRequest,
        RoleRevealInfo,
        RulesResponse,
        SessionListResponse,
        SessionResponse,
        TargetRequest,
        VoteRequest,
    )

    logging.basicConfig(level=ROUNDTABLE_LOG_LEVEL)

    app = FastAPI(
        title="Roundtable API",
        description="""
Rules engine for Avalon-style hidden-role games, one game per channel.

## Game Flow

1. `POST /channels/{channel}` creates a lobby; players join via `/players`
2. The lobby leader closes the lobby, configures options and starts
3. `/start` returns `reveals`, to be delivered privately
4. Nominate, vote and play quest cards until three quests succeed or fail
5. If good wins three quests, the Assassin names a target

## Error Codes

| Code | Description |
|------|-------------|
| `WRONG_PHASE` | The action is not allowed in the current phase |
| `INVALID_PARTY` | Party has the wrong size, strangers or duplicates |
| `INSUFFICIENT_PLAYERS` | Not enough players for the action or option |
| `TOO_MANY_EVIL_SPECIALS` | No evil would be left for the Assassin |
| `SESSION_NOT_FOUND` | No game in this channel |
        """,
        version=__version__,
        docs_url=None if ROUNDTABLE_ENV == "production" else "/api/docs",
        redoc_url=None if ROUNDTABLE_ENV == "production" else "/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if service is None:
        seed = int(ROUNDTABLE_SEED) if ROUNDTABLE_SEED else None
        service = APIService(session_manager=SessionManager(seed=seed))
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_for_code = {
        ErrorCode.SESSION_NOT_FOUND: 404,
        ErrorCode.WRONG_PHASE: 409,
        ErrorCode.GAME_IN_PROGRESS: 409,
        ErrorCode.NOT_LOBBY_LEADER: 403,
    }

    def respond(response):
        """Pass models through; turn ErrorResponse into a JSON error."""
        if isinstance(response, ErrorResponse):
            return JSONResponse(
                status_code=status_for_code.get(response.error_code, 400),
                content=response.model_dump(mode="json"),
            )
        return response

    errors = {
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }

    # =========================================================================
    # Service Endpoints
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Service"])
    async def health() -> HealthResponse:
        return api_service.health()

    @app.get(
        "/api/v1/rules/{num_players}",
        response_model=RulesResponse,
        responses=errors,
        tags=["Service"],
        summary="Team sizes and quest table for a roster size",
    )
    async def rules(num_players: int) -> Union[RulesResponse, JSONResponse]:
        return respond(api_service.rules(num_players))

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.get("/api/v1/channels", response_model=SessionListResponse, tags=["Sessions"])
    async def list_sessions() -> SessionListResponse:
        return api_service.list_sessions()

    @app.post(
        "/api/v1/channels/{channel}",
        response_model=ActionResponse,
        responses=errors,
        tags=["Sessions"],
        summary="Start a new game in a channel",
    )
    async def create_session(
        channel: str, request: CreateSessionRequest
    ) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.create_session(channel, request))

    @app.get(
        "/api/v1/channels/{channel}",
        response_model=SessionResponse,
        responses=errors,
        tags=["Sessions"],
        summary="Get game status",
    )
    async def get_session(channel: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.get_session(channel))

    @app.delete(
        "/api/v1/channels/{channel}",
        response_model=EndSessionResponse,
        responses=errors,
        tags=["Sessions"],
        summary="Implode the game",
    )
    async def end_session(
        channel: str,
        player_id: Annotated[str, Query(description="Must be the lobby leader")],
    ) -> Union[EndSessionResponse, JSONResponse]:
        return respond(api_service.end_session(channel, PlayerRequest(player_id=player_id)))

    @app.get(
        "/api/v1/channels/{channel}/snapshot",
        response_model=GameSnapshot,
        responses=errors,
        tags=["Sessions"],
    )
    async def export_snapshot(channel: str) -> Union[GameSnapshot, JSONResponse]:
        return respond(api_service.export_snapshot(channel))

    @app.put(
        "/api/v1/channels/{channel}/snapshot",
        response_model=SessionResponse,
        responses=errors,
        tags=["Sessions"],
    )
    async def import_snapshot(
        channel: str,
        snapshot: GameSnapshot,
        owner: Annotated[str, Query(description="Lobby leader of the restored game")],
    ) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.import_snapshot(channel, owner, snapshot))

    # =========================================================================
    # Lobby Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/channels/{channel}/players",
        response_model=ActionResponse,
        responses=errors,
        tags=["Lobby"],
    )
    async def join(channel: str, request: PlayerRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.join(channel, request))

    @app.get("/api/v1/channels/{channel}/players", response_model=list[str], tags=["Lobby"])
    async def list_players(channel: str):
        return respond(api_service.list_players(channel))

    @app.get("/api/v1/channels/{channel}/config", response_model=list[str], tags=["Lobby"])
    async def get_config(channel: str):
        return respond(api_service.get_config(channel))

    @app.post(
        "/api/v1/channels/{channel}/config/enable",
        response_model=ActionResponse,
        responses=errors,
        tags=["Lobby"],
    )
    async def enable(channel: str, request: OptionsRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.enable_options(channel, request))

    @app.post(
        "/api/v1/channels/{channel}/config/disable",
        response_model=ActionResponse,
        responses=errors,
        tags=["Lobby"],
    )
    async def disable(channel: str, request: OptionsRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.disable_options(channel, request))

    @app.post(
        "/api/v1/channels/{channel}/close",
        response_model=ActionResponse,
        responses=errors,
        tags=["Lobby"],
    )
    async def close_lobby(channel: str, request: PlayerRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.close_lobby(channel, request))

    @app.post(
        "/api/v1/channels/{channel}/start",
        response_model=ActionResponse,
        responses=errors,
        tags=["Lobby"],
        summary="Deal roles; reveals must be delivered privately",
    )
    async def start(channel: str, request: PlayerRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.start_game(channel, request))

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/channels/{channel}/nominate",
        response_model=ActionResponse,
        responses=errors,
        tags=["Game"],
    )
    async def nominate(channel: str, request: NominateRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.nominate(channel, request))

    @app.post(
        "/api/v1/channels/{channel}/votes",
        response_model=ActionResponse,
        responses=errors,
        tags=["Game"],
    )
    async def vote(channel: str, request: VoteRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.vote(channel, request))

    @app.post(
        "/api/v1/channels/{channel}/quest-actions",
        response_model=ActionResponse,
        responses=errors,
        tags=["Game"],
    )
    async def quest_action(
        channel: str, request: QuestActionRequest
    ) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.quest_action(channel, request))

    @app.post(
        "/api/v1/channels/{channel}/lake",
        response_model=ActionResponse,
        responses=errors,
        tags=["Game"],
    )
    async def lake(channel: str, request: TargetRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.use_lake(channel, request))

    @app.post(
        "/api/v1/channels/{channel}/assassinate",
        response_model=ActionResponse,
        responses=errors,
        tags=["Game"],
    )
    async def assassinate(channel: str, request: TargetRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.assassinate(channel, request))

    @app.get(
        "/api/v1/channels/{channel}/knowledge/{player_id}",
        response_model=RoleRevealInfo,
        responses=errors,
        tags=["Game"],
    )
    async def knowledge(channel: str, player_id: str) -> Union[RoleRevealInfo, JSONResponse]:
        return respond(api_service.knowledge(channel, player_id))

    return app


# For running directly: uvicorn roundtable.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
