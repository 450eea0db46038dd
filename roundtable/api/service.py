"""
API Service - Business logic layer between the transport and the engine.

The service:
1. Looks up the session for a channel and holds its lock
2. Enforces lobby-leader permissions
3. Translates requests to engine commands
4. Formats results as pydantic responses

This layer is framework-agnostic (can be used with FastAPI, a chat bot,
or directly from tests).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging

from pydantic import ValidationError

from .. import __version__
from ..engine_core.action import Action, ActionResult
from ..engine_core.errors import ErrorCode, InvariantViolation
from ..engine_core.rules import (
    NUM_QUESTS,
    NUM_PLAYERS_TO_QUEST_SIZES,
    num_evils,
    num_goods,
    required_fails,
)
from ..session import Session, SessionManager
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
    QuestRecordInfo,
    RoleRevealInfo,
    RulesResponse,
    SessionListResponse,
    SessionResponse,
    TargetRequest,
    VoteRequest,
)

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        service.create_session("#avalon", CreateSessionRequest(owner="alice"))
        service.join("#avalon", PlayerRequest(player_id="bob"))
        ...
        response = service.start_game("#avalon", PlayerRequest(player_id="alice"))
        # response.reveals go out privately, response.announcements publicly
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(
        self, channel: str, request: CreateSessionRequest
    ) -> ActionResponse | ErrorResponse:
        session = self.session_manager.create_session(channel, request.owner)
        if session is None:
            return ErrorResponse(
                error="There is already a game in progress.",
                error_code=ErrorCode.GAME_IN_PROGRESS,
            )
        return ActionResponse(
            session=self._session_to_response(session),
            announcements=["New game created. Players can join now."],
        )

    def get_session(self, channel: str) -> SessionResponse | ErrorResponse:
        """Get session status."""
        with self.session_manager.locked(channel) as session:
            if session is None:
                return self._not_found(channel)
            return self._session_to_response(session)

    def end_session(self, channel: str, request: PlayerRequest) -> EndSessionResponse | ErrorResponse:
        """Implode the game. Only the lobby leader may do this."""
        with self.session_manager.locked(channel) as session:
            if session is None:
                return self._not_found(channel)
            denied = self._require_owner(session, request.player_id)
            if denied:
                return denied
        success = self.session_manager.end_session(channel, reason="imploded")
        return EndSessionResponse(success=success, channel=channel)

    def list_sessions(self) -> SessionListResponse:
        channels = self.session_manager.list_active_sessions()
        return SessionListResponse(channels=channels, total=len(channels))

    def health(self) -> HealthResponse:
        return HealthResponse(
            version=__version__,
            active_sessions=len(self.session_manager.list_active_sessions()),
        )

    # =========================================================================
    # Lobby
    # =========================================================================

    def join(self, channel: str, request: PlayerRequest) -> ActionResponse | ErrorResponse:
        return self._run(channel, lambda s: s.game.add_player(request.player_id))

    def list_players(self, channel: str) -> list[str] | ErrorResponse:
        with self.session_manager.locked(channel) as session:
            if session is None:
                return self._not_found(channel)
            return session.game.list_roster()

    def get_config(self, channel: str) -> list[str] | ErrorResponse:
        with self.session_manager.locked(channel) as session:
            if session is None:
                return self._not_found(channel)
            return session.game.describe_config()

    def enable_options(self, channel: str, request: OptionsRequest) -> ActionResponse | ErrorResponse:
        action = Action.enable(*request.options, strict=request.strict)
        return self._run(channel, lambda s: s.game.apply(action), owner=request.player_id)

    def disable_options(self, channel: str, request: OptionsRequest) -> ActionResponse | ErrorResponse:
        action = Action.disable(*request.options, strict=request.strict)
        return self._run(channel, lambda s: s.game.apply(action), owner=request.player_id)

    def close_lobby(self, channel: str, request: PlayerRequest) -> ActionResponse | ErrorResponse:
        return self._run(channel, lambda s: s.game.close_lobby(), owner=request.player_id)

    def start_game(self, channel: str, request: PlayerRequest) -> ActionResponse | ErrorResponse:
        return self._run(channel, lambda s: s.game.start(), owner=request.player_id)

    # =========================================================================
    # Rounds
    # =========================================================================

    def nominate(self, channel: str, request: NominateRequest) -> ActionResponse | ErrorResponse:
        return self._run(channel, lambda s: s.game.nominate(request.party, leader=request.leader))

    def vote(self, channel: str, request: VoteRequest) -> ActionResponse | ErrorResponse:
        return self._run(channel, lambda s: s.game.cast_vote(request.player_id, request.approve))

    def quest_action(
        self, channel: str, request: QuestActionRequest
    ) -> ActionResponse | ErrorResponse:
        return self._run(
            channel, lambda s: s.game.cast_quest_action(request.player_id, request.succeed)
        )

    def use_lake(self, channel: str, request: TargetRequest) -> ActionResponse | ErrorResponse:
        return self._run(channel, lambda s: s.game.use_lake(request.target, holder=request.player_id))

    def assassinate(self, channel: str, request: TargetRequest) -> ActionResponse | ErrorResponse:
        return self._run(
            channel, lambda s: s.game.assassinate(request.target, assassin=request.player_id)
        )

    def knowledge(self, channel: str, player_id: str) -> RoleRevealInfo | ErrorResponse:
        """Repeat a player's private reveal."""
        with self.session_manager.locked(channel) as session:
            if session is None:
                return self._not_found(channel)
            reveal = session.game.knowledge_for(player_id)
            if reveal is None:
                return ErrorResponse(
                    error=f"{player_id} has no role in this game.",
                    error_code=ErrorCode.NOT_A_PLAYER,
                )
            return RoleRevealInfo.from_reveal(reveal)

    # =========================================================================
    # Snapshots and rules
    # =========================================================================

    def export_snapshot(self, channel: str) -> GameSnapshot | ErrorResponse:
        with self.session_manager.locked(channel) as session:
            if session is None:
                return self._not_found(channel)
            return GameSnapshot.from_state(session.game.state)

    def import_snapshot(
        self, channel: str, owner: str, snapshot: GameSnapshot | dict
    ) -> SessionResponse | ErrorResponse:
        """Restore a saved game into a channel, replacing what is there."""
        try:
            if isinstance(snapshot, dict):
                snapshot = GameSnapshot.model_validate(snapshot)
            state = snapshot.to_state()
        except (ValidationError, ValueError, InvariantViolation) as e:
            logger.warning("Rejected snapshot for %s: %s", channel, e)
            return ErrorResponse(error=str(e), error_code=ErrorCode.INVALID_SNAPSHOT)

        session = self.session_manager.restore_session(channel, owner, state)
        return self._session_to_response(session)

    def rules(self, num_players: int) -> RulesResponse | ErrorResponse:
        if num_players not in NUM_PLAYERS_TO_QUEST_SIZES:
            return ErrorResponse(
                error=f"No rules for {num_players} players.",
                error_code=ErrorCode.INSUFFICIENT_PLAYERS,
            )
        return RulesResponse(
            num_players=num_players,
            evils=num_evils(num_players),
            goods=num_goods(num_players),
            quest_sizes=list(NUM_PLAYERS_TO_QUEST_SIZES[num_players]),
            fails_required=[
                required_fails(num_players, q) for q in range(1, NUM_QUESTS + 1)
            ],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _run(
        self,
        channel: str,
        command: Callable[[Session], ActionResult],
        owner: str | None = None,
    ) -> ActionResponse | ErrorResponse:
        """Run a command under the channel lock and convert the result."""
        with self.session_manager.locked(channel) as session:
            if session is None:
                return self._not_found(channel)
            if owner is not None:
                denied = self._require_owner(session, owner)
                if denied:
                    return denied

            result = command(session)
            if not result.success:
                return ErrorResponse(
                    error=result.error or "Action failed",
                    error_code=result.error_code or ErrorCode.WRONG_PHASE,
                    details=result.details or None,
                )
            return ActionResponse(
                session=self._session_to_response(session),
                announcements=result.state_changes,
                reveals=[RoleRevealInfo.from_reveal(r) for r in result.reveals.values()],
                private=result.private,
                details=result.details,
            )

    def _require_owner(self, session: Session, player_id: str) -> ErrorResponse | None:
        if player_id != session.owner:
            return ErrorResponse(
                error="Only the lobby leader can do that.",
                error_code=ErrorCode.NOT_LOBBY_LEADER,
            )
        return None

    def _not_found(self, channel: str) -> ErrorResponse:
        return ErrorResponse(
            error="No game is currently active.",
            error_code=ErrorCode.SESSION_NOT_FOUND,
            details={"channel": channel},
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        state = session.game.state
        return SessionResponse(
            channel=session.channel,
            session_id=session.session_id,
            owner=session.owner,
            phase=state.phase,
            description=state.describe(),
            players=list(state.roster),
            options=state.config.describe(),
            quest=state.quest_index,
            vote_track=state.vote_track,
            leader=state.leader,
            party=list(state.party),
            lake_holder=state.lake_holder,
            quests=[QuestRecordInfo.from_record(q) for q in state.quests],
            winner=state.winner,
            created_at=session.created_at,
        )
