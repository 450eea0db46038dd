"""
API Module - Chat transport interface.

Exposes the engine via REST API for chat bots and other front ends.
A transport:
1. Creates a game in a channel and relays joins
2. Forwards the lobby leader's configuration and start commands
3. Delivers role reveals and Lady of the Lake results privately
4. Relays nominations, votes and quest cards
5. Can export and restore a game as a GameSnapshot

All state is channel-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    PlayerRequest,
    OptionsRequest,
    NominateRequest,
    VoteRequest,
    QuestActionRequest,
    TargetRequest,
    # Responses
    ActionResponse,
    SessionResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    RulesResponse,
    ErrorResponse,
    # Shared
    QuestRecordInfo,
    RoleRevealInfo,
    GameSnapshot,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "PlayerRequest",
    "OptionsRequest",
    "NominateRequest",
    "VoteRequest",
    "QuestActionRequest",
    "TargetRequest",
    # Responses
    "ActionResponse",
    "SessionResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "HealthResponse",
    "RulesResponse",
    "ErrorResponse",
    # Shared
    "QuestRecordInfo",
    "RoleRevealInfo",
    "GameSnapshot",
    # Service
    "APIService",
    "create_app",
]
