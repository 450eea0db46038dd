"""
Game Session - The engine boundary consumed by the transport layer.

A GameSession owns the current GameState and a Reducer with its own
random source. Every command builds an Action, runs it through the
reducer and adopts the new state only when the action succeeded, so a
rejected command never changes anything.

Usage:
    game = GameSession("channel-1")
    for nick in ["A", "B", "C", "D", "E"]:
        game.add_player(nick)
    game.close_lobby()
    result = game.start()
    # deliver result.reveals privately, result.state_changes publicly
"""

from __future__ import annotations
import logging
import random
from typing import Iterable

from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import Reducer
from ..engine_core.roles import Alignment
from ..engine_core.state import GameState, Phase, QuestRecord
from ..engine_core.visibility import RoleReveal, build_reveals

logger = logging.getLogger(__name__)


class GameSession:
    """
    One game of Avalon.

    Not thread-safe: callers serialise commands per session (see
    SessionManager.locked).
    """

    def __init__(
        self,
        game_id: str,
        rng: random.Random | None = None,
        state: GameState | None = None,
    ):
        self.game_id = game_id
        self.reducer = Reducer(rng=rng or random.Random())
        self.state = state or GameState(game_id=game_id)

    @classmethod
    def restore(cls, state: GameState, rng: random.Random | None = None) -> GameSession:
        """Rebuild a session around a previously saved state."""
        return cls(state.game_id, rng=rng, state=state)

    def apply(self, action: Action) -> ActionResult:
        """Apply an action, adopting the new state on success."""
        result = self.reducer.apply(self.state, action)
        if result.success:
            previous = self.state.phase
            self.state = result.new_state
            if self.state.phase != previous:
                logger.info(
                    "game %s: %s -> %s", self.game_id, previous.value, self.state.phase.value
                )
        else:
            logger.debug(
                "game %s: %s rejected (%s): %s",
                self.game_id,
                action.action_type.value,
                result.error_code.value if result.error_code else None,
                result.error,
            )
        return result

    # =========================================================================
    # Lobby
    # =========================================================================

    def add_player(self, player_id: str) -> ActionResult:
        return self.apply(Action.add_player(player_id))

    def enable_option(self, name: str) -> ActionResult:
        return self.apply(Action.enable(name))

    def enable_options(self, names: Iterable[str]) -> ActionResult:
        """Best effort: unknown, already enabled and illegal names are skipped."""
        return self.apply(Action.enable(*names, strict=False))

    def disable_option(self, name: str) -> ActionResult:
        return self.apply(Action.disable(name))

    def disable_options(self, names: Iterable[str]) -> ActionResult:
        return self.apply(Action.disable(*names, strict=False))

    def describe_config(self) -> list[str]:
        return self.state.config.describe()

    def close_lobby(self) -> ActionResult:
        """Stop accepting players and move to configuration."""
        return self.apply(Action.close_lobby())

    def start(self) -> ActionResult:
        """Deal roles and begin Quest 1. Reveals are in result.reveals."""
        return self.apply(Action.start_game())

    # =========================================================================
    # Rounds
    # =========================================================================

    def nominate(self, party: Iterable[str], leader: str | None = None) -> ActionResult:
        return self.apply(Action.nominate(tuple(party), leader=leader))

    def cast_vote(self, player_id: str, approve: bool) -> ActionResult:
        return self.apply(Action.vote(player_id, approve))

    def cast_quest_action(self, player_id: str, succeed: bool) -> ActionResult:
        return self.apply(Action.quest_action(player_id, succeed))

    def use_lake(self, target: str, holder: str | None = None) -> ActionResult:
        return self.apply(Action.lake(target, holder=holder))

    def assassinate(self, target: str, assassin: str | None = None) -> ActionResult:
        return self.apply(Action.assassinate(target, assassin=assassin))

    # =========================================================================
    # Queries (never mutate)
    # =========================================================================

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def status(self) -> tuple[Phase, str]:
        return self.state.phase, self.state.describe()

    def list_roster(self) -> list[str]:
        return list(self.state.roster)

    def quest_index(self) -> int:
        return self.state.quest_index

    def vote_track(self) -> int:
        return self.state.vote_track

    def quest_history(self) -> list[QuestRecord]:
        return list(self.state.quests)

    def winner(self) -> Alignment | None:
        return self.state.winner

    def knowledge_for(self, player_id: str) -> RoleReveal | None:
        """
        Re-derive a player's reveal, e.g. when they ask again in private.

        None before the game starts or for identities not in the game.
        """
        assignment = self.state.assignment
        if assignment is None or assignment.alignment_of(player_id) is None:
            return None
        reveals = build_reveals(
            assignment, self.state.config, self.reducer.rng, self.state.lake_holder
        )
        return reveals[player_id]
