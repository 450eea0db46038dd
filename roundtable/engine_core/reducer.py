"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- (state, action) -> new_state; the input state is never modified
- Validates phase before anything else
- Returns ActionResult with success/failure
- A failed action leaves the caller's state untouched
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

from .action import Action, ActionResult, ActionType
from .assigner import assign_roles
from .errors import ErrorCode
from .config import Option
from .roles import Alignment, Role
from .rules import (
    LAKE_QUESTS,
    MAX_PLAYERS,
    MIN_PLAYERS,
    VOTE_TRACK_LIMIT,
    QuestOutcome,
    VoteOutcome,
    required_fails,
    required_party_size,
    tally_quest,
    tally_votes,
)
from .state import (
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
)
from .visibility import build_reveals


# Phases in which each action may be taken
ALLOWED_PHASES: dict[ActionType, frozenset[Phase]] = {
    ActionType.ADD_PLAYER: frozenset({Phase.WAITING_FOR_PLAYERS}),
    ActionType.ENABLE_OPTION: frozenset({Phase.WAITING_FOR_PLAYERS, Phase.CONFIGURATION}),
    ActionType.DISABLE_OPTION: frozenset({Phase.WAITING_FOR_PLAYERS, Phase.CONFIGURATION}),
    ActionType.CLOSE_LOBBY: frozenset({Phase.WAITING_FOR_PLAYERS}),
    ActionType.START_GAME: frozenset({Phase.CONFIGURATION}),
    ActionType.NOMINATE: frozenset({Phase.NOMINATE}),
    ActionType.VOTE: frozenset({Phase.VOTE}),
    ActionType.QUEST_ACTION: frozenset({Phase.QUEST}),
    ActionType.LAKE: frozenset({Phase.LAKE}),
    ActionType.ASSASSINATE: frozenset({Phase.ASSASSINATION}),
}


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Holds no game state. The random source is per session, so draws in
    one session never depend on another.
    """
    rng: random.Random = field(default_factory=random.Random)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return ActionResult.failure(validation_error, error_code=ErrorCode.WRONG_PHASE)

        handler = self._get_handler(action.action_type)
        return handler(state, action)

    def _validate_action(self, state: GameState, action: Action) -> str | None:
        """
        Validate that the action may be taken in the current phase.

        Returns error message if invalid, None if valid.
        """
        if state.phase == Phase.END:
            return "Game is over - no actions allowed"
        if state.phase not in ALLOWED_PHASES[action.action_type]:
            return f"Cannot {action.action_type.value.replace('_', ' ')} during {state.phase.value}"
        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.ADD_PLAYER: self._handle_add_player,
            ActionType.ENABLE_OPTION: self._handle_enable,
            ActionType.DISABLE_OPTION: self._handle_disable,
            ActionType.CLOSE_LOBBY: self._handle_close_lobby,
            ActionType.START_GAME: self._handle_start_game,
            ActionType.NOMINATE: self._handle_nominate,
            ActionType.VOTE: self._handle_vote,
            ActionType.QUEST_ACTION: self._handle_quest_action,
            ActionType.LAKE: self._handle_lake,
            ActionType.ASSASSINATE: self._handle_assassinate,
        }
        return handlers[action_type]

    # =========================================================================
    # Lobby
    # =========================================================================

    def _handle_add_player(self, state: GameState, action: Action) -> ActionResult:
        player_id = action.payload.target_player_id
        if not player_id:
            return ActionResult.failure("Player identity must not be empty", ErrorCode.NOT_A_PLAYER)
        if state.num_players >= MAX_PLAYERS:
            return ActionResult.failure(
                f"There are already {MAX_PLAYERS} players in this game.", ErrorCode.ROSTER_FULL
            )
        if state.has_player(player_id):
            return ActionResult.failure(
                "You have already joined this game.", ErrorCode.ALREADY_JOINED
            )

        new_state = state._copy_with(roster=state.roster + (player_id,))
        changes = [f"{new_state.num_players} players have joined so far."]
        if new_state.num_players >= MIN_PLAYERS:
            changes.append("There are enough players to begin the game.")
        return ActionResult.success_with_state(new_state, changes=changes)

    def _handle_enable(self, state: GameState, action: Action) -> ActionResult:
        names = action.payload.options or ()
        if not action.payload.strict:
            result = state.config.enable_many(names, state.num_players)
            return self._with_config(state, result)

        config = state.config
        result = ActionResult.success_with_state(config)
        for name in names:
            result = config.enable(name, state.num_players)
            if not result.success:
                return result
            config = result.new_state
        return self._with_config(state, result)

    def _handle_disable(self, state: GameState, action: Action) -> ActionResult:
        names = action.payload.options or ()
        if not action.payload.strict:
            result = state.config.disable_many(names)
            return self._with_config(state, result)

        config = state.config
        result = ActionResult.success_with_state(config)
        for name in names:
            result = config.disable(name)
            if not result.success:
                return result
            config = result.new_state
        return self._with_config(state, result)

    def _with_config(self, state: GameState, result: ActionResult) -> ActionResult:
        return ActionResult.success_with_state(
            state._copy_with(config=result.new_state),
            changes=result.state_changes,
            details=result.details,
        )

    def _handle_close_lobby(self, state: GameState, action: Action) -> ActionResult:
        if state.num_players < MIN_PLAYERS:
            return ActionResult.failure(
                f"There must be at least {MIN_PLAYERS} players to close the lobby.",
                ErrorCode.INSUFFICIENT_PLAYERS,
            )
        return ActionResult.success_with_state(
            state._copy_with(stage=Configuring()),
            changes=[f"Closing the lobby with {state.num_players} players."],
        )

    def _handle_start_game(self, state: GameState, action: Action) -> ActionResult:
        validation = state.config.validate(state.num_players)
        if not validation.success:
            return validation

        setup = assign_roles(state.roster, state.config, self.rng)
        new_state = state._copy_with(
            assignment=setup.assignment,
            stage=Nominating(quest=1, leader=setup.leader),
            lake_holder=setup.lake_holder,
            lake_history=(setup.lake_holder,) if setup.lake_holder else (),
        )

        changes = [
            f"Starting game with: {', '.join(state.roster)}. "
            f"Config options enabled: {state.config.describe_text()}.",
            f"The current leader for Quest 1 is {setup.leader}.",
        ]
        if setup.lake_holder:
            changes.append(f"The Lady of the Lake is {setup.lake_holder}.")

        reveals = build_reveals(setup.assignment, state.config, self.rng, setup.lake_holder)
        return ActionResult.success_with_state(new_state, changes=changes, reveals=reveals)

    # =========================================================================
    # Rounds
    # =========================================================================

    def _handle_nominate(self, state: GameState, action: Action) -> ActionResult:
        stage: Nominating = state.stage
        acting = action.payload.player_id
        if acting is not None and acting != stage.leader:
            return ActionResult.failure(
                f"Only the leader ({stage.leader}) can nominate.", ErrorCode.NOT_LEADER
            )

        party = tuple(action.payload.party or ())
        size = required_party_size(state.num_players, stage.quest)
        if len(party) != size:
            return ActionResult.failure(
                f"Quest {stage.quest} needs a party of {size}, got {len(party)}.",
                ErrorCode.INVALID_PARTY,
            )
        strangers = [p for p in party if not state.has_player(p)]
        if strangers:
            return ActionResult.failure(
                f"Not in this game: {', '.join(strangers)}.", ErrorCode.INVALID_PARTY
            )
        if len(set(party)) != len(party):
            return ActionResult.failure(
                "A party cannot include someone twice.", ErrorCode.INVALID_PARTY
            )

        new_state = state._copy_with(stage=Voting(
            quest=stage.quest,
            leader=stage.leader,
            vote_track=stage.vote_track,
            party=party,
        ))
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{stage.leader} nominates {', '.join(party)} for Quest {stage.quest}."],
        )

    def _handle_vote(self, state: GameState, action: Action) -> ActionResult:
        stage: Voting = state.stage
        voter = action.payload.player_id
        if voter is None or not state.has_player(voter):
            return ActionResult.failure(f"{voter} is not in this game.", ErrorCode.NOT_A_PLAYER)
        if voter in stage.votes:
            return ActionResult.failure(f"{voter} has already voted.", ErrorCode.ALREADY_VOTED)

        votes = {**stage.votes, voter: bool(action.payload.choice)}
        if len(votes) < state.num_players:
            return ActionResult.success_with_state(
                state._copy_with(stage=Voting(
                    quest=stage.quest,
                    leader=stage.leader,
                    vote_track=stage.vote_track,
                    party=stage.party,
                    votes=votes,
                )),
                changes=[f"{voter} has voted ({len(votes)}/{state.num_players})."],
            )

        # Everyone has voted; votes are public
        tally = ", ".join(
            f"{p} {'approves' if votes[p] else 'rejects'}" for p in state.roster
        )
        outcome = tally_votes(votes.values(), state.num_players)

        if outcome == VoteOutcome.APPROVED:
            new_state = state._copy_with(stage=Questing(
                quest=stage.quest,
                leader=stage.leader,
                party=stage.party,
                attempts=stage.vote_track + 1,
            ))
            return ActionResult.success_with_state(
                new_state,
                changes=[
                    f"Votes: {tally}.",
                    f"The party is approved. {', '.join(stage.party)} go on Quest {stage.quest}.",
                ],
            )

        vote_track = stage.vote_track + 1
        if vote_track >= VOTE_TRACK_LIMIT:
            new_state = state._copy_with(
                stage=Ended(winner=Alignment.EVIL, reason="vote_track", quest=stage.quest)
            )
            return ActionResult.success_with_state(
                new_state,
                changes=[
                    f"Votes: {tally}.",
                    f"{VOTE_TRACK_LIMIT} parties in a row were rejected. Evil wins.",
                ],
            )

        leader = state.next_in_order(stage.leader)
        new_state = state._copy_with(stage=Nominating(
            quest=stage.quest, leader=leader, vote_track=vote_track,
        ))
        return ActionResult.success_with_state(
            new_state,
            changes=[
                f"Votes: {tally}.",
                f"The party is rejected (vote track {vote_track}). "
                f"The current leader for Quest {stage.quest} is {leader}.",
            ],
        )

    def _handle_quest_action(self, state: GameState, action: Action) -> ActionResult:
        stage: Questing = state.stage
        player = action.payload.player_id
        if player is None or not state.has_player(player):
            return ActionResult.failure(f"{player} is not in this game.", ErrorCode.NOT_A_PLAYER)
        if player not in stage.party:
            return ActionResult.failure(f"{player} is not on this quest.", ErrorCode.NOT_ON_PARTY)
        if player in stage.actions:
            return ActionResult.failure(
                f"{player} has already played a quest card.", ErrorCode.ALREADY_ACTED
            )

        succeed = bool(action.payload.choice)
        if not succeed and state.assignment.alignment_of(player) == Alignment.GOOD:
            return ActionResult.failure(
                "Loyal servants of Arthur must succeed quests.", ErrorCode.INVALID_QUEST_ACTION
            )

        actions = {**stage.actions, player: succeed}
        if len(actions) < len(stage.party):
            return ActionResult.success_with_state(
                state._copy_with(stage=Questing(
                    quest=stage.quest,
                    leader=stage.leader,
                    party=stage.party,
                    attempts=stage.attempts,
                    actions=actions,
                )),
                changes=[f"{len(actions)} of {len(stage.party)} party members have played."],
            )

        return self._resolve_quest(state, stage, actions)

    def _resolve_quest(
        self, state: GameState, stage: Questing, actions: dict[str, bool]
    ) -> ActionResult:
        fails_needed = required_fails(state.num_players, stage.quest)
        outcome = tally_quest(actions.values(), fails_needed)
        fails = sum(1 for a in actions.values() if not a)

        record = QuestRecord(
            quest=stage.quest,
            party_size=len(stage.party),
            leader=stage.leader,
            party=stage.party,
            fails=fails,
            succeeded=outcome == QuestOutcome.SUCCEEDED,
            attempts=stage.attempts,
        )
        resolved = state._copy_with(quests=state.quests + (record,))
        changes = [f"Quest {stage.quest} {outcome.value} with {fails} fail(s)."]

        if resolved.good_has_won_quests:
            changes.append("Three quests have succeeded. The Assassin may now try to kill Merlin.")
            return ActionResult.success_with_state(
                resolved._copy_with(stage=Assassinating()), changes=changes
            )

        if resolved.evil_has_won_quests:
            changes.append("Three quests have failed. Evil wins.")
            return ActionResult.success_with_state(
                resolved._copy_with(stage=Ended(winner=Alignment.EVIL, reason="quests_failed")),
                changes=changes,
            )

        next_quest = stage.quest + 1
        leader = state.next_in_order(stage.leader)
        if state.config.is_enabled(Option.LAKE) and stage.quest in LAKE_QUESTS:
            changes.append(f"The Lady of the Lake ({state.lake_holder}) may now inspect a player.")
            return ActionResult.success_with_state(
                resolved._copy_with(stage=Inspecting(quest=next_quest, leader=leader)),
                changes=changes,
            )

        changes.append(f"The current leader for Quest {next_quest} is {leader}.")
        return ActionResult.success_with_state(
            resolved._copy_with(stage=Nominating(quest=next_quest, leader=leader)),
            changes=changes,
        )

    # =========================================================================
    # Lady of the Lake and assassination
    # =========================================================================

    def _handle_lake(self, state: GameState, action: Action) -> ActionResult:
        stage: Inspecting = state.stage
        holder = state.lake_holder
        acting = action.payload.player_id
        if acting is not None and acting != holder:
            return ActionResult.failure(
                f"Only the Lady of the Lake ({holder}) can do that.", ErrorCode.NOT_LAKE_HOLDER
            )

        target = action.payload.target_player_id
        if target is None or not state.has_player(target):
            return ActionResult.failure(f"{target} is not in this game.", ErrorCode.INVALID_TARGET)
        if target == holder or target in state.lake_history:
            return ActionResult.failure(
                f"{target} has already held the Lady of the Lake.", ErrorCode.INVALID_TARGET
            )

        alignment = state.assignment.alignment_of(target)
        new_state = state._copy_with(
            lake_holder=target,
            lake_history=state.lake_history + (target,),
            stage=Nominating(quest=stage.quest, leader=stage.leader),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[
                f"{holder} used the Lady of the Lake on {target}. "
                f"The Lady of the Lake is now {target}.",
                f"The current leader for Quest {stage.quest} is {stage.leader}.",
            ],
            private={holder: f"{target} is {alignment.value}."},
            details={"inspected": target, "alignment": alignment.value},
        )

    def _handle_assassinate(self, state: GameState, action: Action) -> ActionResult:
        assassin = state.assignment.holder_of(Role.ASSASSIN)
        acting = action.payload.player_id
        if acting is not None and acting != assassin:
            return ActionResult.failure("Only the Assassin can do that.", ErrorCode.NOT_ASSASSIN)

        target = action.payload.target_player_id
        if target is None or state.assignment.alignment_of(target) != Alignment.GOOD:
            return ActionResult.failure(
                f"{target} is not a servant of Arthur.", ErrorCode.INVALID_TARGET
            )

        merlin = state.assignment.holder_of(Role.MERLIN)
        if target == merlin:
            stage = Ended(winner=Alignment.EVIL, reason="merlin_assassinated")
            text = f"The Assassin killed {target}, who was Merlin. Evil wins."
        else:
            stage = Ended(winner=Alignment.GOOD, reason="merlin_survived")
            text = f"The Assassin killed {target}, but Merlin was {merlin}. Good wins."

        return ActionResult.success_with_state(state._copy_with(stage=stage), changes=[text])


def apply_action(
    state: GameState,
    action: Action,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(rng=rng or random.Random())
    return reducer.apply(state, action)
