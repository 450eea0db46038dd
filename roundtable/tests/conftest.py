"""
Pytest fixtures for Roundtable tests.
"""

import random

import pytest

from ..engine_core.reducer import Reducer
from ..engine_core.roles import Alignment
from ..engine_core.rules import required_party_size
from ..engine_core.state import GameState
from ..session import GameSession


def make_roster(n: int) -> list[str]:
    return [f"p{i}" for i in range(1, n + 1)]


def lobby_session(n: int, seed: int = 7, options=()) -> GameSession:
    """A session with n players, lobby closed and the given options enabled."""
    game = GameSession("test", rng=random.Random(seed))
    for player in make_roster(n):
        assert game.add_player(player).success
    assert game.close_lobby().success
    for name in options:
        result = game.enable_option(name)
        assert result.success, result.error
    return game


def started_session(n: int, seed: int = 7, options=()) -> GameSession:
    game = lobby_session(n, seed, options)
    result = game.start()
    assert result.success, result.error
    return game


def good_players(game: GameSession) -> list[str]:
    return list(game.state.assignment.goods)


def evil_players(game: GameSession) -> list[str]:
    return list(game.state.assignment.evils)


def run_vote(game: GameSession, approve: bool):
    """Everyone votes the same way; returns the last result."""
    result = None
    for player in game.state.roster:
        result = game.cast_vote(player, approve)
        assert result.success, result.error
    return result


def play_quest(game: GameSession, fail: bool):
    """
    Nominate, approve and play the current quest.

    With fail=True the party is filled with evils first and every evil
    plays fail; otherwise the party is all good and succeeds.
    """
    state = game.state
    size = required_party_size(state.num_players, state.quest_index)
    pool = evil_players(game) + good_players(game) if fail else good_players(game)
    party = pool[:size]
    assert game.nominate(party).success
    run_vote(game, approve=True)
    result = None
    for player in party:
        evil = game.state.assignment.alignment_of(player) == Alignment.EVIL
        result = game.cast_quest_action(player, succeed=not (fail and evil))
        assert result.success, result.error
    return result


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def reducer(rng) -> Reducer:
    return Reducer(rng=rng)


@pytest.fixture
def empty_state() -> GameState:
    return GameState(game_id="test_game")


@pytest.fixture
def five_player_lobby() -> GameSession:
    return lobby_session(5)


@pytest.fixture
def five_player_game() -> GameSession:
    return started_session(5)


@pytest.fixture
def seven_player_lake_game() -> GameSession:
    return started_session(7, options=["lake"])
