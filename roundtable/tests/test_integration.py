"""
Integration tests for complete games.

These walk the engine boundary the way a chat transport would.
"""

import sys

import pytest

from ..cli import main
from ..engine_core.errors import ErrorCode
from ..engine_core.roles import Alignment, Role
from ..engine_core.state import Phase
from .conftest import lobby_session, play_quest, started_session


class TestSetupScenarios:
    """Lobby through start for representative rosters."""

    def test_five_players_no_options(self):
        game = lobby_session(5)
        result = game.start()
        a = game.state.assignment

        assert result.success
        assert len(a.evils) == 2
        assert len(a.goods) == 3
        assert a.alignment_of(a.holder_of(Role.MERLIN)) == Alignment.GOOD
        assert a.alignment_of(a.holder_of(Role.ASSASSIN)) == Alignment.EVIL
        assert set(a.specials) == {Role.MERLIN, Role.ASSASSIN}

    def test_ten_players_every_option(self):
        game = lobby_session(10, options=["lake", "mordred", "morganapercival", "oberon"])
        result = game.start()
        state = game.state

        assert result.success
        assert set(state.assignment.specials) == set(Role)
        assert len(set(state.assignment.specials.values())) == 6
        assert state.lake_holder != state.leader
        assert f"The Lady of the Lake is {state.lake_holder}." in result.state_changes

    def test_six_players_cannot_use_lake(self):
        game = lobby_session(6)
        result = game.enable_option("lake")

        assert result.error_code == ErrorCode.INSUFFICIENT_PLAYERS
        assert game.describe_config() == []

    def test_seven_players_three_evil_specials(self):
        """Every evil slot taken by a special leaves none for the Assassin."""
        game = lobby_session(7, options=["mordred", "morganapercival"])
        result = game.enable_option("oberon")
        assert not result.success

        from ..engine_core.config import GameConfig, Option

        config = GameConfig(
            options=frozenset({Option.MORDRED, Option.MORGANA_PERCIVAL, Option.OBERON})
        )
        validation = config.validate(7)
        assert not validation.success
        assert ErrorCode.TOO_MANY_EVIL_SPECIALS.value in validation.details["violations"]


class TestFullGames:
    def test_good_wins_when_merlin_hidden(self):
        game = started_session(6, seed=21)
        for _ in range(3):
            play_quest(game, fail=False)

        a = game.state.assignment
        decoy = next(g for g in a.goods if g != a.holder_of(Role.MERLIN))
        game.assassinate(decoy, assassin=a.holder_of(Role.ASSASSIN))

        assert game.winner() == Alignment.GOOD
        assert [q.succeeded for q in game.quest_history()] == [True, True, True]

    def test_evil_wins_on_failed_quests(self):
        game = started_session(8, seed=2)
        play_quest(game, fail=True)
        play_quest(game, fail=False)
        play_quest(game, fail=True)
        play_quest(game, fail=True)

        assert game.winner() == Alignment.EVIL
        assert game.state.stage.reason == "quests_failed"
        assert len(game.quest_history()) == 4

    def test_lake_passes_along(self):
        game = started_session(9, seed=6, options=["lake", "mordred"])
        first_holder = game.state.lake_holder
        play_quest(game, fail=False)

        holders = [first_holder]
        for _ in range(2):
            play_quest(game, fail=True)
            assert game.phase == Phase.LAKE
            target = next(p for p in game.list_roster() if p not in holders)
            result = game.use_lake(target, holder=holders[-1])
            assert result.success
            holders.append(target)

        assert game.state.lake_history == tuple(holders)
        assert game.state.failures == 2
        assert game.phase == Phase.NOMINATE

    def test_every_quest_record_kept(self):
        game = started_session(5, seed=13)
        play_quest(game, fail=True)
        play_quest(game, fail=False)
        play_quest(game, fail=False)
        play_quest(game, fail=False)

        history = game.quest_history()
        assert [q.quest for q in history] == [1, 2, 3, 4]
        assert [q.party_size for q in history] == [2, 3, 2, 3]
        assert game.phase == Phase.ASSASSINATION


class TestCLI:
    def test_rules_table(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["roundtable", "rules", "7"])
        main()
        out = capsys.readouterr().out
        assert "2 3 3 4* 4" in out

    def test_rules_bad_size(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["roundtable", "rules", "4"])
        with pytest.raises(SystemExit):
            main()

    @pytest.mark.parametrize("players,options", [(5, []), (7, ["lake"]), (10, ["lake", "oberon"])])
    def test_simulate_reaches_end(self, monkeypatch, capsys, players, options):
        argv = ["roundtable", "simulate", "--players", str(players), "--seed", "3"]
        if options:
            argv += ["--enable", *options]
        monkeypatch.setattr(sys, "argv", argv)
        main()

        out = capsys.readouterr().out
        assert "The game is over." in out
        assert "Seed: 3" in out
