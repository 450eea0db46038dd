"""
Tests for the reducer.

Tests:
- Phase checks reject actions and leave state unchanged
- Lobby and configuration actions
- Nomination, vote and quest transitions
- Lady of the Lake and assassination
"""

import random

import pytest

from ..engine_core.action import Action
from ..engine_core.errors import ErrorCode
from ..engine_core.reducer import Reducer, apply_action
from ..engine_core.roles import Alignment, Role
from ..engine_core.state import (
    Ended,
    GameState,
    Nominating,
    Phase,
)
from .conftest import (
    evil_players,
    good_players,
    lobby_session,
    make_roster,
    play_quest,
    run_vote,
    started_session,
)


class TestPhaseChecks:
    """Out-of-phase actions fail with WRONG_PHASE."""

    def test_nominate_before_start(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.nominate(["a", "b"]))
        assert not result.success
        assert result.error_code == ErrorCode.WRONG_PHASE

    def test_join_after_lobby_closed(self, five_player_lobby):
        result = five_player_lobby.add_player("late")
        assert result.error_code == ErrorCode.WRONG_PHASE
        assert five_player_lobby.list_roster() == make_roster(5)

    def test_start_from_waiting(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.start_game())
        assert result.error_code == ErrorCode.WRONG_PHASE

    def test_config_closed_after_start(self, five_player_game):
        assert five_player_game.enable_option("mordred").error_code == ErrorCode.WRONG_PHASE

    def test_nothing_allowed_after_end(self):
        game = started_session(5)
        for _ in range(5):
            game.nominate(["p1", "p2"])
            run_vote(game, approve=False)
        assert game.phase == Phase.END

        result = game.cast_vote("p1", True)
        assert result.error_code == ErrorCode.WRONG_PHASE
        assert "over" in result.error

    def test_failed_action_returns_no_state(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.vote("a", True))
        assert result.new_state is None
        assert empty_state.phase == Phase.WAITING_FOR_PLAYERS


class TestLobby:
    def test_add_player(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.add_player("alice"))
        assert result.success
        assert result.new_state.roster == ("alice",)
        assert empty_state.roster == ()

    def test_duplicate_join(self, reducer, empty_state):
        state = reducer.apply(empty_state, Action.add_player("alice")).new_state
        result = reducer.apply(state, Action.add_player("alice"))
        assert result.error_code == ErrorCode.ALREADY_JOINED

    def test_identities_are_case_sensitive(self, reducer, empty_state):
        state = reducer.apply(empty_state, Action.add_player("alice")).new_state
        assert reducer.apply(state, Action.add_player("Alice")).success

    def test_roster_full(self, reducer):
        state = GameState(game_id="g", roster=tuple(make_roster(10)))
        result = reducer.apply(state, Action.add_player("p11"))
        assert result.error_code == ErrorCode.ROSTER_FULL

    def test_empty_identity(self, reducer, empty_state):
        result = reducer.apply(empty_state, Action.add_player(""))
        assert result.error_code == ErrorCode.NOT_A_PLAYER

    def test_enough_players_announced(self, reducer):
        state = GameState(game_id="g", roster=tuple(make_roster(4)))
        result = reducer.apply(state, Action.add_player("p5"))
        assert "There are enough players to begin the game." in result.state_changes

    def test_close_with_too_few(self, reducer):
        state = GameState(game_id="g", roster=tuple(make_roster(4)))
        result = reducer.apply(state, Action.close_lobby())
        assert result.error_code == ErrorCode.INSUFFICIENT_PLAYERS

    def test_close_lobby(self, reducer):
        state = GameState(game_id="g", roster=tuple(make_roster(5)))
        result = reducer.apply(state, Action.close_lobby())
        assert result.new_state.phase == Phase.CONFIGURATION

    def test_strict_enable_stops_at_first_failure(self):
        game = lobby_session(7)
        result = game.apply(Action.enable("lake", "excalibur", "mordred"))
        assert result.error_code == ErrorCode.UNKNOWN_OPTION
        assert game.describe_config() == []

    def test_bulk_enable(self):
        game = lobby_session(6)
        result = game.enable_options(["lake", "mordred", "excalibur"])
        assert result.success
        assert game.describe_config() == ["mordred"]
        assert result.details["enabled"] == ["mordred"]

    def test_start_revalidates_config(self, reducer):
        """Options enabled against an earlier roster size are rechecked."""
        from ..engine_core.config import GameConfig, Option
        from ..engine_core.state import Configuring

        state = GameState(
            game_id="g",
            roster=tuple(make_roster(5)),
            config=GameConfig(options=frozenset({Option.LAKE})),
            stage=Configuring(),
        )
        result = reducer.apply(state, Action.start_game())
        assert result.error_code == ErrorCode.INSUFFICIENT_PLAYERS
        assert result.error == "lake requires 7 players"


class TestStart:
    def test_start_deals_roles(self, five_player_lobby):
        result = five_player_lobby.start()

        assert result.success
        state = five_player_lobby.state
        assert state.phase == Phase.NOMINATE
        assert state.quest_index == 1
        assert state.vote_track == 0
        assert state.leader in state.roster
        assert set(result.reveals) == set(state.roster)
        assert f"The current leader for Quest 1 is {state.leader}." in result.state_changes

    def test_start_with_lake_announces_holder(self, seven_player_lake_game):
        state = seven_player_lake_game.state
        assert state.lake_holder is not None
        assert state.lake_holder != state.leader
        assert state.lake_history == (state.lake_holder,)


class TestNominate:
    def test_wrong_size(self, five_player_game):
        result = five_player_game.nominate(["p1", "p2", "p3"])
        assert result.error_code == ErrorCode.INVALID_PARTY
        assert five_player_game.phase == Phase.NOMINATE

    def test_stranger(self, five_player_game):
        result = five_player_game.nominate(["p1", "mallory"])
        assert result.error_code == ErrorCode.INVALID_PARTY

    def test_duplicate(self, five_player_game):
        result = five_player_game.nominate(["p1", "p1"])
        assert result.error_code == ErrorCode.INVALID_PARTY

    def test_only_leader_nominates(self, five_player_game):
        leader = five_player_game.state.leader
        other = next(p for p in five_player_game.list_roster() if p != leader)
        result = five_player_game.nominate(["p1", "p2"], leader=other)
        assert result.error_code == ErrorCode.NOT_LEADER

    def test_nominate_moves_to_vote(self, five_player_game):
        leader = five_player_game.state.leader
        result = five_player_game.nominate(["p1", "p2"], leader=leader)
        assert result.success
        assert five_player_game.phase == Phase.VOTE
        assert five_player_game.state.party == ("p1", "p2")


class TestVote:
    def test_vote_twice(self, five_player_game):
        five_player_game.nominate(["p1", "p2"])
        assert five_player_game.cast_vote("p1", True).success
        assert five_player_game.cast_vote("p1", False).error_code == ErrorCode.ALREADY_VOTED

    def test_stranger_votes(self, five_player_game):
        five_player_game.nominate(["p1", "p2"])
        assert five_player_game.cast_vote("mallory", True).error_code == ErrorCode.NOT_A_PLAYER

    def test_approval(self, five_player_game):
        five_player_game.nominate(["p1", "p2"])
        for player, approve in zip(make_roster(5), [True, True, True, False, False]):
            five_player_game.cast_vote(player, approve)

        state = five_player_game.state
        assert state.phase == Phase.QUEST
        assert state.vote_track == 0
        assert state.party == ("p1", "p2")

    def test_rejection_rotates_leader(self, five_player_game):
        leader = five_player_game.state.leader
        five_player_game.nominate(["p1", "p2"])
        result = run_vote(five_player_game, approve=False)

        state = five_player_game.state
        assert result.success
        assert state.phase == Phase.NOMINATE
        assert state.vote_track == 1
        assert state.quest_index == 1
        assert state.leader == state.next_in_order(leader)

    def test_tie_rejects(self):
        game = started_session(6)
        game.nominate(["p1", "p2"])
        for player, approve in zip(make_roster(6), [True, True, True, False, False, False]):
            game.cast_vote(player, approve)
        assert game.phase == Phase.NOMINATE
        assert game.vote_track() == 1

    def test_five_rejections_end_game(self, five_player_game):
        for expected in range(1, 5):
            five_player_game.nominate(["p1", "p2"])
            run_vote(five_player_game, approve=False)
            assert five_player_game.vote_track() == expected

        five_player_game.nominate(["p1", "p2"])
        run_vote(five_player_game, approve=False)

        state = five_player_game.state
        assert state.phase == Phase.END
        assert state.winner == Alignment.EVIL
        assert state.stage.reason == "vote_track"
        assert state.quest_index == 1

    def test_approval_resets_track(self, five_player_game):
        five_player_game.nominate(["p1", "p2"])
        run_vote(five_player_game, approve=False)
        five_player_game.nominate(["p1", "p2"])
        run_vote(five_player_game, approve=True)

        state = five_player_game.state
        assert state.vote_track == 0
        assert state.stage.attempts == 2


class TestQuest:
    def test_only_party_plays(self, five_player_game):
        game = five_player_game
        party = good_players(game)[:2]
        outsider = next(p for p in game.list_roster() if p not in party)
        game.nominate(party)
        run_vote(game, approve=True)

        assert game.cast_quest_action(outsider, True).error_code == ErrorCode.NOT_ON_PARTY

    def test_play_twice(self, five_player_game):
        game = five_player_game
        party = good_players(game)[:2]
        game.nominate(party)
        run_vote(game, approve=True)

        assert game.cast_quest_action(party[0], True).success
        assert game.cast_quest_action(party[0], True).error_code == ErrorCode.ALREADY_ACTED

    def test_good_cannot_fail(self, five_player_game):
        game = five_player_game
        party = good_players(game)[:2]
        game.nominate(party)
        run_vote(game, approve=True)

        result = game.cast_quest_action(party[0], False)
        assert result.error_code == ErrorCode.INVALID_QUEST_ACTION

    def test_success_advances_quest(self, five_player_game):
        game = five_player_game
        leader = game.state.leader
        result = play_quest(game, fail=False)

        state = game.state
        assert "Quest 1 succeeded with 0 fail(s)." in result.state_changes
        assert state.phase == Phase.NOMINATE
        assert state.quest_index == 2
        assert state.vote_track == 0
        assert state.leader == state.next_in_order(leader)

        record = game.quest_history()[0]
        assert record.succeeded
        assert record.leader == leader
        assert record.party_size == 2

    def test_single_fail_fails_quest(self, five_player_game):
        play_quest(five_player_game, fail=True)
        record = five_player_game.quest_history()[0]
        assert not record.succeeded
        assert record.fails == 2

    def test_three_successes_go_to_assassination(self, five_player_game):
        for _ in range(3):
            play_quest(five_player_game, fail=False)
        assert five_player_game.phase == Phase.ASSASSINATION

    def test_three_failures_end_game(self, five_player_game):
        for _ in range(3):
            play_quest(five_player_game, fail=True)

        state = five_player_game.state
        assert state.phase == Phase.END
        assert state.winner == Alignment.EVIL
        assert state.stage.reason == "quests_failed"

    def test_quest_four_needs_two_fails(self):
        """With seven players one fail on Quest 4 is not enough."""
        game = started_session(7)
        play_quest(game, fail=False)
        play_quest(game, fail=True)
        play_quest(game, fail=False)
        assert game.state.quest_index == 4

        evil = evil_players(game)[0]
        party = [evil] + good_players(game)[:3]
        game.nominate(party)
        run_vote(game, approve=True)
        for player in party:
            game.cast_quest_action(player, succeed=player != evil)

        record = game.quest_history()[-1]
        assert record.fails == 1
        assert record.succeeded
        assert game.phase == Phase.ASSASSINATION


class TestLake:
    def _to_lake(self, game):
        play_quest(game, fail=False)
        play_quest(game, fail=False)
        assert game.phase == Phase.LAKE

    def test_no_lake_after_first_quest(self, seven_player_lake_game):
        play_quest(seven_player_lake_game, fail=False)
        assert seven_player_lake_game.phase == Phase.NOMINATE

    def test_inspection_is_private(self, seven_player_lake_game):
        game = seven_player_lake_game
        self._to_lake(game)
        holder = game.state.lake_holder
        target = next(p for p in game.list_roster() if p != holder)

        result = game.use_lake(target, holder=holder)

        alignment = game.state.assignment.alignment_of(target)
        assert result.success
        assert result.private == {holder: f"{target} is {alignment.value}."}
        assert result.details["alignment"] == alignment.value
        assert game.state.lake_holder == target
        assert game.phase == Phase.NOMINATE
        assert game.state.quest_index == 3

    def test_only_holder_inspects(self, seven_player_lake_game):
        game = seven_player_lake_game
        self._to_lake(game)
        holder = game.state.lake_holder
        other = next(p for p in game.list_roster() if p != holder)

        assert game.use_lake(holder, holder=other).error_code == ErrorCode.NOT_LAKE_HOLDER

    def test_cannot_inspect_previous_holder(self, seven_player_lake_game):
        game = seven_player_lake_game
        self._to_lake(game)
        holder = game.state.lake_holder

        assert game.use_lake(holder).error_code == ErrorCode.INVALID_TARGET
        assert game.use_lake("mallory").error_code == ErrorCode.INVALID_TARGET

    def test_lake_phase_out_of_turn(self, seven_player_lake_game):
        result = seven_player_lake_game.use_lake("p1")
        assert result.error_code == ErrorCode.WRONG_PHASE


class TestAssassination:
    def _to_assassination(self):
        game = started_session(5)
        for _ in range(3):
            play_quest(game, fail=False)
        return game

    def test_killing_merlin(self):
        game = self._to_assassination()
        a = game.state.assignment
        result = game.assassinate(a.holder_of(Role.MERLIN), assassin=a.holder_of(Role.ASSASSIN))

        assert result.success
        assert game.winner() == Alignment.EVIL
        assert game.state.stage == Ended(winner=Alignment.EVIL, reason="merlin_assassinated")

    def test_missing_merlin(self):
        game = self._to_assassination()
        a = game.state.assignment
        target = next(g for g in a.goods if g != a.holder_of(Role.MERLIN))
        game.assassinate(target)

        assert game.winner() == Alignment.GOOD
        assert game.state.stage.reason == "merlin_survived"

    def test_evil_target_rejected(self):
        game = self._to_assassination()
        result = game.assassinate(evil_players(game)[0])

        assert result.error_code == ErrorCode.INVALID_TARGET
        assert game.phase == Phase.ASSASSINATION

    def test_unknown_target_rejected(self):
        game = self._to_assassination()
        assert game.assassinate("mallory").error_code == ErrorCode.INVALID_TARGET

    def test_only_assassin_acts(self):
        game = self._to_assassination()
        a = game.state.assignment
        merlin = a.holder_of(Role.MERLIN)
        result = game.assassinate(merlin, assassin=merlin)
        assert result.error_code == ErrorCode.NOT_ASSASSIN


class TestApplyAction:
    def test_apply_action_helper(self, empty_state):
        result = apply_action(empty_state, Action.add_player("alice"), random.Random(0))
        assert result.success

    def test_reducer_does_not_mutate_state(self, empty_state):
        reducer = Reducer()
        reducer.apply(empty_state, Action.add_player("alice"))
        assert empty_state.roster == ()

    def test_state_is_tagged(self, five_player_game):
        """Nominating carries no party; the party appears with the vote."""
        assert isinstance(five_player_game.state.stage, Nominating)
        assert five_player_game.state.party == ()


@pytest.mark.parametrize("seed", range(10))
def test_leader_never_starts_as_lake_holder(seed):
    game = started_session(8, seed=seed, options=["lake"])
    assert game.state.lake_holder != game.state.leader
