"""
Game State - Immutable snapshot of one game session.

Design principles:
- Immutable: all mutations return new state
- Serializable: can be saved and restored (see api.schemas.GameSnapshot)
- Tagged phases: each phase carries only the fields that mean something
  in that phase (no vote track before the game starts, no party outside
  a round, and so on)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Union

from .config import GameConfig
from .roles import Alignment, RoleAssignment
from .rules import QUESTS_TO_WIN


class Phase(Enum):
    """High-level game phases."""
    WAITING_FOR_PLAYERS = "waiting_for_players"
    CONFIGURATION = "configuration"
    NOMINATE = "nominate"
    VOTE = "vote"
    QUEST = "quest"
    LAKE = "lake"
    ASSASSINATION = "assassination"
    END = "end"


PHASE_DESCRIPTIONS: dict[Phase, str] = {
    Phase.WAITING_FOR_PLAYERS: "Waiting for players to join.",
    Phase.CONFIGURATION: "Waiting for lobby leader to configure the game.",
    Phase.NOMINATE: "Waiting for the quest leader to nominate a party.",
    Phase.VOTE: "Waiting for players to vote on the nominated party.",
    Phase.QUEST: "The party is going on a quest.",
    Phase.LAKE: "Waiting for the Lady of the Lake to act.",
    Phase.ASSASSINATION: "Assassin is trying to kill Merlin.",
    Phase.END: "The game is over.",
}


@dataclass(frozen=True)
class WaitingForPlayers:
    phase: ClassVar[Phase] = Phase.WAITING_FOR_PLAYERS


@dataclass(frozen=True)
class Configuring:
    phase: ClassVar[Phase] = Phase.CONFIGURATION


@dataclass(frozen=True)
class Nominating:
    phase: ClassVar[Phase] = Phase.NOMINATE
    quest: int
    leader: str
    vote_track: int = 0


@dataclass(frozen=True)
class Voting:
    phase: ClassVar[Phase] = Phase.VOTE
    quest: int
    leader: str
    vote_track: int
    party: tuple[str, ...]
    votes: dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class Questing:
    phase: ClassVar[Phase] = Phase.QUEST
    quest: int
    leader: str
    party: tuple[str, ...]
    attempts: int = 1  # nominations used to get this party approved
    actions: dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class Inspecting:
    """Lady of the Lake turn, between a quest and the next nomination."""
    phase: ClassVar[Phase] = Phase.LAKE
    quest: int  # the quest about to be nominated
    leader: str


@dataclass(frozen=True)
class Assassinating:
    phase: ClassVar[Phase] = Phase.ASSASSINATION


@dataclass(frozen=True)
class Ended:
    phase: ClassVar[Phase] = Phase.END
    winner: Alignment
    reason: str
    quest: int | None = None  # set when the game ends before the quest resolves


Stage = Union[
    WaitingForPlayers,
    Configuring,
    Nominating,
    Voting,
    Questing,
    Inspecting,
    Assassinating,
    Ended,
]


@dataclass(frozen=True)
class QuestRecord:
    """The outcome of one completed quest."""
    quest: int
    party_size: int
    leader: str
    party: tuple[str, ...]
    fails: int
    succeeded: bool
    attempts: int = 1


@dataclass(frozen=True)
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer.
    """
    game_id: str
    roster: tuple[str, ...] = ()
    config: GameConfig = field(default_factory=GameConfig)
    stage: Stage = field(default_factory=WaitingForPlayers)

    # Set once when the game starts
    assignment: RoleAssignment | None = None

    # Completed quests, oldest first
    quests: tuple[QuestRecord, ...] = ()

    # Lady of the Lake: current holder and everyone who has held her
    lake_holder: str | None = None
    lake_history: tuple[str, ...] = ()

    @property
    def phase(self) -> Phase:
        return self.stage.phase

    @property
    def num_players(self) -> int:
        return len(self.roster)

    @property
    def quest_index(self) -> int:
        """
        Current quest number (1-5); 0 before the game starts.

        After the game ends this is the last quest played.
        """
        quest = getattr(self.stage, "quest", None)
        if quest is not None:
            return quest
        if self.assignment is None:
            return 0
        return len(self.quests)

    @property
    def leader(self) -> str | None:
        return getattr(self.stage, "leader", None)

    @property
    def vote_track(self) -> int:
        return getattr(self.stage, "vote_track", 0)

    @property
    def party(self) -> tuple[str, ...]:
        return getattr(self.stage, "party", ())

    @property
    def winner(self) -> Alignment | None:
        if isinstance(self.stage, Ended):
            return self.stage.winner
        return None

    @property
    def successes(self) -> int:
        return sum(1 for q in self.quests if q.succeeded)

    @property
    def failures(self) -> int:
        return sum(1 for q in self.quests if not q.succeeded)

    @property
    def good_has_won_quests(self) -> bool:
        return self.successes >= QUESTS_TO_WIN

    @property
    def evil_has_won_quests(self) -> bool:
        return self.failures >= QUESTS_TO_WIN

    def has_player(self, player_id: str) -> bool:
        return player_id in self.roster

    def next_in_order(self, player_id: str) -> str:
        """The identity after `player_id` in join order, wrapping around."""
        idx = self.roster.index(player_id)
        return self.roster[(idx + 1) % len(self.roster)]

    def describe(self) -> str:
        """Human-readable status line."""
        text = PHASE_DESCRIPTIONS[self.phase]
        stage = self.stage
        if isinstance(stage, (Nominating, Voting)):
            text += f" Quest {stage.quest}, vote track {stage.vote_track}, leader {stage.leader}."
        elif isinstance(stage, Questing):
            text += f" Quest {stage.quest} party: {', '.join(stage.party)}."
        elif isinstance(stage, Inspecting):
            text += f" The Lady of the Lake is {self.lake_holder}."
        elif isinstance(stage, Ended):
            text += f" {stage.winner.value.capitalize()} wins ({stage.reason})."
        return text

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
