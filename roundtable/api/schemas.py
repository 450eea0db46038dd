"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the chat transport and the
engine. All responses include explicit types for OpenAPI schema
generation.

GameSnapshot doubles as the save format: a GameState dumped with
GameSnapshot.from_state() and loaded with to_state() behaves exactly
like the exported game for every later action.
"""

from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..engine_core.config import GameConfig, parse_option
from ..engine_core.errors import ErrorCode
from ..engine_core.roles import Alignment, Role, RoleAssignment
from ..engine_core.rules import NUM_QUESTS, VOTE_TRACK_LIMIT, required_party_size
from ..engine_core.state import (
    Assassinating,
    Configuring,
    Ended,
    GameState,
    Inspecting,
    Nominating,
    Phase,
    QuestRecord,
    Questing,
    Voting,
    WaitingForPlayers,
)
from ..engine_core.visibility import RoleReveal


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Start a game in a channel; the owner becomes lobby leader."""
    owner: str = Field(..., min_length=1, description="Identity of the lobby leader")


class PlayerRequest(BaseModel):
    """A command issued by one player."""
    player_id: str = Field(..., min_length=1)


class OptionsRequest(BaseModel):
    """Enable or disable configuration options."""
    player_id: str = Field(..., min_length=1, description="Who issued the command")
    options: list[str] = Field(..., min_length=1)
    strict: bool = Field(
        True,
        description="If false, unknown or illegal options are skipped silently",
    )


class NominateRequest(BaseModel):
    party: list[str]
    leader: Optional[str] = Field(None, description="Checked against the current leader if given")


class VoteRequest(BaseModel):
    player_id: str = Field(..., min_length=1)
    approve: bool


class QuestActionRequest(BaseModel):
    player_id: str = Field(..., min_length=1)
    succeed: bool


class TargetRequest(BaseModel):
    """Lady of the Lake inspection or assassination."""
    target: str = Field(..., min_length=1)
    player_id: Optional[str] = Field(None, description="Acting player, checked if given")


# =============================================================================
# Shared Models
# =============================================================================

class QuestRecordInfo(BaseModel):
    """One completed quest."""
    quest: int = Field(..., ge=1, le=5)
    party_size: int
    leader: str
    party: list[str]
    fails: int = Field(..., ge=0)
    succeeded: bool
    attempts: int = Field(1, ge=1)

    model_config = {"from_attributes": True}

    @classmethod
    def from_record(cls, record: QuestRecord) -> QuestRecordInfo:
        return cls(
            quest=record.quest,
            party_size=record.party_size,
            leader=record.leader,
            party=list(record.party),
            fails=record.fails,
            succeeded=record.succeeded,
            attempts=record.attempts,
        )

    def to_record(self) -> QuestRecord:
        return QuestRecord(
            quest=self.quest,
            party_size=self.party_size,
            leader=self.leader,
            party=tuple(self.party),
            fails=self.fails,
            succeeded=self.succeeded,
            attempts=self.attempts,
        )


class RoleRevealInfo(BaseModel):
    """Private start-of-game information for one player."""
    player_id: str
    alignment: Alignment
    role: Optional[Role] = None
    knowledge: str = Field("nothing", description="evil_team, minions, merlin_or_morgana or nothing")
    sees: list[str] = Field(default_factory=list)
    lake_holder: Optional[str] = None
    messages: list[str] = Field(default_factory=list)

    @classmethod
    def from_reveal(cls, reveal: RoleReveal) -> RoleRevealInfo:
        return cls(
            player_id=reveal.player_id,
            alignment=reveal.alignment,
            role=reveal.role,
            knowledge=reveal.knowledge.kind.value,
            sees=list(reveal.knowledge.sees),
            lake_holder=reveal.lake_holder,
            messages=reveal.lines(),
        )


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Public view of a session. Never includes hidden roles."""
    channel: str
    session_id: str
    owner: str
    phase: Phase
    description: str
    players: list[str] = Field(default_factory=list)
    options: list[str] = Field(default_factory=list)
    quest: int = 0
    vote_track: int = 0
    leader: Optional[str] = None
    party: list[str] = Field(default_factory=list)
    lake_holder: Optional[str] = None
    quests: list[QuestRecordInfo] = Field(default_factory=list)
    winner: Optional[Alignment] = None
    created_at: float = 0.0
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of a successful command."""
    success: bool = True
    session: SessionResponse
    announcements: list[str] = Field(default_factory=list, description="Say in the channel")
    reveals: list[RoleRevealInfo] = Field(default_factory=list, description="Send privately")
    private: dict[str, str] = Field(default_factory=dict, description="Player -> private message")
    details: dict[str, Any] = Field(default_factory=dict)
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    channels: list[str] = Field(default_factory=list)
    total: int = 0


class EndSessionResponse(BaseModel):
    success: bool
    channel: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    active_sessions: int = 0


class RulesResponse(BaseModel):
    """The fixed tables for one roster size."""
    num_players: int
    evils: int
    goods: int
    quest_sizes: list[int]
    fails_required: list[int]


# =============================================================================
# Snapshot
# =============================================================================

class AssignmentSnapshot(BaseModel):
    goods: list[str]
    evils: list[str]
    specials: dict[Role, str]


class StageSnapshot(BaseModel):
    """Phase payload; only the fields of the current phase are set."""
    phase: Phase
    quest: Optional[int] = None
    leader: Optional[str] = None
    vote_track: Optional[int] = None
    party: Optional[list[str]] = None
    votes: Optional[dict[str, bool]] = None
    actions: Optional[dict[str, bool]] = None
    attempts: Optional[int] = None
    winner: Optional[Alignment] = None
    reason: Optional[str] = None


class GameSnapshot(BaseModel):
    """Complete, restorable copy of a GameState."""
    game_id: str
    roster: list[str] = Field(default_factory=list)
    options: list[str] = Field(default_factory=list)
    stage: StageSnapshot
    assignment: Optional[AssignmentSnapshot] = None
    quests: list[QuestRecordInfo] = Field(default_factory=list)
    lake_holder: Optional[str] = None
    lake_history: list[str] = Field(default_factory=list)
    snapshot_version: int = 1

    @classmethod
    def from_state(cls, state: GameState) -> GameSnapshot:
        stage = state.stage
        payload: dict[str, Any] = {"phase": state.phase}
        if isinstance(stage, (Nominating, Voting, Questing, Inspecting)):
            payload["quest"] = stage.quest
            payload["leader"] = stage.leader
        if isinstance(stage, (Nominating, Voting)):
            payload["vote_track"] = stage.vote_track
        if isinstance(stage, (Voting, Questing)):
            payload["party"] = list(stage.party)
        if isinstance(stage, Voting):
            payload["votes"] = dict(stage.votes)
        if isinstance(stage, Questing):
            payload["actions"] = dict(stage.actions)
            payload["attempts"] = stage.attempts
        if isinstance(stage, Ended):
            payload["quest"] = stage.quest
            payload["winner"] = stage.winner
            payload["reason"] = stage.reason

        assignment = None
        if state.assignment is not None:
            assignment = AssignmentSnapshot(
                goods=list(state.assignment.goods),
                evils=list(state.assignment.evils),
                specials=dict(state.assignment.specials),
            )

        return cls(
            game_id=state.game_id,
            roster=list(state.roster),
            options=state.config.describe(),
            stage=StageSnapshot(**payload),
            assignment=assignment,
            quests=[QuestRecordInfo.from_record(q) for q in state.quests],
            lake_holder=state.lake_holder,
            lake_history=list(state.lake_history),
        )

    def to_state(self) -> GameState:
        """
        Rebuild the GameState.

        Raises ValueError for malformed snapshots and InvariantViolation
        for role assignments that break the engine's invariants.
        """
        options = [parse_option(name) for name in self.options]
        if None in options:
            raise ValueError(f"Unknown option in snapshot: {self.options}")
        if len(set(self.roster)) != len(self.roster):
            raise ValueError("Duplicate identity in snapshot roster")
        strangers = set(self.lake_history) - set(self.roster)
        if self.lake_holder is not None:
            strangers |= {self.lake_holder} - set(self.roster)
        if strangers:
            raise ValueError(f"Lake holders outside the roster: {sorted(strangers)}")

        assignment = None
        if self.assignment is not None:
            assignment = RoleAssignment(
                goods=tuple(self.assignment.goods),
                evils=tuple(self.assignment.evils),
                specials=dict(self.assignment.specials),
            )
            assignment.check_invariants(self.roster)

        return GameState(
            game_id=self.game_id,
            roster=tuple(self.roster),
            config=GameConfig(options=frozenset(options)),
            stage=self._build_stage(),
            assignment=assignment,
            quests=tuple(q.to_record() for q in self.quests),
            lake_holder=self.lake_holder,
            lake_history=tuple(self.lake_history),
        )

    def _build_stage(self):
        s = self.stage
        roster = set(self.roster)
        in_round = {Phase.NOMINATE, Phase.VOTE, Phase.QUEST, Phase.LAKE}
        if s.phase in in_round and (s.quest is None or s.leader is None):
            raise ValueError(f"{s.phase.value} stage needs quest and leader")
        if s.phase in in_round and s.leader not in roster:
            raise ValueError(f"Leader {s.leader} is not in the roster")
        if s.phase in in_round | {Phase.ASSASSINATION, Phase.END} and self.assignment is None:
            raise ValueError(f"{s.phase.value} stage needs a role assignment")
        if s.quest is not None and not 1 <= s.quest <= NUM_QUESTS:
            raise ValueError(f"Quest must be 1-{NUM_QUESTS}, got {s.quest}")
        if s.vote_track is not None and not 0 <= s.vote_track < VOTE_TRACK_LIMIT:
            raise ValueError(f"Vote track must be 0-{VOTE_TRACK_LIMIT - 1}, got {s.vote_track}")

        if s.phase in (Phase.VOTE, Phase.QUEST):
            party = list(s.party or [])
            if len(set(party)) != len(party) or not set(party) <= roster:
                raise ValueError(f"Party {party} must be distinct roster members")
            size = required_party_size(len(self.roster), s.quest)
            if len(party) != size:
                raise ValueError(f"Quest {s.quest} needs a party of {size}, got {len(party)}")
        if not set(s.votes or {}) <= roster:
            raise ValueError("Votes cast by players outside the roster")
        if not set(s.actions or {}) <= set(s.party or []):
            raise ValueError("Quest cards played by players outside the party")

        try:
            if s.phase == Phase.WAITING_FOR_PLAYERS:
                return WaitingForPlayers()
            if s.phase == Phase.CONFIGURATION:
                return Configuring()
            if s.phase == Phase.NOMINATE:
                return Nominating(quest=s.quest, leader=s.leader, vote_track=s.vote_track or 0)
            if s.phase == Phase.VOTE:
                return Voting(
                    quest=s.quest,
                    leader=s.leader,
                    vote_track=s.vote_track or 0,
                    party=tuple(s.party),
                    votes=dict(s.votes or {}),
                )
            if s.phase == Phase.QUEST:
                return Questing(
                    quest=s.quest,
                    leader=s.leader,
                    party=tuple(s.party),
                    attempts=s.attempts or 1,
                    actions=dict(s.actions or {}),
                )
            if s.phase == Phase.LAKE:
                return Inspecting(quest=s.quest, leader=s.leader)
            if s.phase == Phase.ASSASSINATION:
                return Assassinating()
            return Ended(winner=Alignment(s.winner), reason=s.reason or "", quest=s.quest)
        except TypeError as e:
            raise ValueError(f"Incomplete {s.phase.value} stage in snapshot") from e
