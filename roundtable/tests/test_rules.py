"""
Tests for quest rules tables and tallies.
"""

import pytest

from ..engine_core.rules import (
    NUM_PLAYERS_TO_QUEST_SIZES,
    QuestOutcome,
    VoteOutcome,
    num_evils,
    num_goods,
    required_fails,
    required_party_size,
    tally_quest,
    tally_votes,
)


class TestTables:
    """Team sizes and party sizes."""

    @pytest.mark.parametrize("n,evils", [(5, 2), (6, 2), (7, 3), (8, 3), (9, 3), (10, 4)])
    def test_evil_count(self, n, evils):
        assert num_evils(n) == evils
        assert num_goods(n) == n - evils

    def test_unsupported_roster_has_no_evils(self):
        """Lobbies still filling up have no evil slots."""
        assert num_evils(3) == 0
        assert num_evils(11) == 0

    def test_seven_player_party_sizes(self):
        sizes = [required_party_size(7, q) for q in range(1, 6)]
        assert sizes == [2, 3, 3, 4, 4]

    @pytest.mark.parametrize("n", sorted(NUM_PLAYERS_TO_QUEST_SIZES))
    def test_party_sizes_match_table(self, n):
        sizes = tuple(required_party_size(n, q) for q in range(1, 6))
        assert sizes == NUM_PLAYERS_TO_QUEST_SIZES[n]

    def test_party_size_outside_table_raises(self):
        with pytest.raises(ValueError):
            required_party_size(4, 1)
        with pytest.raises(ValueError):
            required_party_size(5, 6)
        with pytest.raises(ValueError):
            required_party_size(5, 0)


class TestRequiredFails:
    """Quest 4 with seven or more players needs two fails."""

    @pytest.mark.parametrize("n", range(5, 11))
    @pytest.mark.parametrize("quest", range(1, 6))
    def test_required_fails(self, n, quest):
        expected = 2 if quest == 4 and n >= 7 else 1
        assert required_fails(n, quest) == expected


class TestTallies:
    """Vote and quest tallies."""

    def test_strict_majority_approves(self):
        assert tally_votes([True, True, True, False, False]) == VoteOutcome.APPROVED

    def test_tie_rejects(self):
        votes = [True, True, True, False, False, False]
        assert tally_votes(votes) == VoteOutcome.REJECTED

    def test_majority_counts_whole_roster(self):
        """Approvals are measured against the roster size, not votes cast."""
        assert tally_votes([True, True, True], num_players=7) == VoteOutcome.REJECTED
        assert tally_votes([True] * 4, num_players=7) == VoteOutcome.APPROVED

    def test_single_fail_fails_quest(self):
        assert tally_quest([True, False, True], 1) == QuestOutcome.FAILED

    def test_all_success(self):
        assert tally_quest([True, True], 1) == QuestOutcome.SUCCEEDED

    def test_one_fail_below_threshold(self):
        assert tally_quest([True, False, True, True], 2) == QuestOutcome.SUCCEEDED

    def test_two_fails_reach_threshold(self):
        assert tally_quest([False, False, True, True], 2) == QuestOutcome.FAILED
