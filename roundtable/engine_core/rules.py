"""
Quest Rules - Fixed tables and pure helpers for quest resolution.

| Players | Evils | Q1 | Q2 | Q3 | Q4 | Q5 |
|---------|-------|----|----|----|----|----|
|       5 |     2 |  2 |  3 |  2 |  3 |  3 |
|       6 |     2 |  2 |  3 |  4 |  3 |  4 |
|       7 |     3 |  2 |  3 |  3 |  4 |  4 |
|       8 |     3 |  3 |  4 |  4 |  5 |  5 |
|       9 |     3 |  3 |  4 |  4 |  5 |  5 |
|      10 |     4 |  3 |  4 |  4 |  5 |  5 |

With 7+ players, Quest 4 requires two fails to fail.
"""

from __future__ import annotations
from enum import Enum
from typing import Iterable


MIN_PLAYERS = 5
MAX_PLAYERS = 10
NUM_QUESTS = 5
QUESTS_TO_WIN = 3
VOTE_TRACK_LIMIT = 5

LAKE_MIN_PLAYERS = 7
OBERON_MIN_PLAYERS = 10

# Quests after which the Lady of the Lake is used
LAKE_QUESTS = (2, 3, 4)

NUM_PLAYERS_TO_NUM_EVILS: dict[int, int] = {
    5: 2,
    6: 2,
    7: 3,
    8: 3,
    9: 3,
    10: 4,
}

NUM_PLAYERS_TO_QUEST_SIZES: dict[int, tuple[int, ...]] = {
    5: (2, 3, 2, 3, 3),
    6: (2, 3, 4, 3, 4),
    7: (2, 3, 3, 4, 4),
    8: (3, 4, 4, 5, 5),
    9: (3, 4, 4, 5, 5),
    10: (3, 4, 4, 5, 5),
}


class VoteOutcome(Enum):
    """Result of a party vote."""
    APPROVED = "approved"
    REJECTED = "rejected"


class QuestOutcome(Enum):
    """Result of a quest."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def num_evils(num_players: int) -> int:
    """
    Number of evil identities for a roster size.

    Returns 0 for sizes with no table entry, so that configuration checks
    made while the lobby is still filling up simply fail.
    """
    return NUM_PLAYERS_TO_NUM_EVILS.get(num_players, 0)


def num_goods(num_players: int) -> int:
    return num_players - num_evils(num_players)


def _check_quest(num_players: int, quest: int) -> None:
    if num_players not in NUM_PLAYERS_TO_QUEST_SIZES:
        raise ValueError(
            f"No quest table for {num_players} players "
            f"(supported: {MIN_PLAYERS}-{MAX_PLAYERS})"
        )
    if not 1 <= quest <= NUM_QUESTS:
        raise ValueError(f"Quest index must be 1-{NUM_QUESTS}, got {quest}")


def required_party_size(num_players: int, quest: int) -> int:
    """Party size the leader must nominate for a quest (quest is 1-based)."""
    _check_quest(num_players, quest)
    return NUM_PLAYERS_TO_QUEST_SIZES[num_players][quest - 1]


def required_fails(num_players: int, quest: int) -> int:
    """Number of fail cards needed to fail a quest."""
    _check_quest(num_players, quest)
    if quest == 4 and num_players >= 7:
        return 2
    return 1


def tally_votes(votes: Iterable[bool], num_players: int | None = None) -> VoteOutcome:
    """
    Approval needs a strict majority of the whole roster; ties reject.

    Every roster member votes, so the roster size defaults to the
    number of votes cast.
    """
    votes = list(votes)
    if num_players is None:
        num_players = len(votes)
    approvals = sum(1 for v in votes if v)
    if approvals > num_players // 2:
        return VoteOutcome.APPROVED
    return VoteOutcome.REJECTED


def tally_quest(outcomes: Iterable[bool], fails_needed: int) -> QuestOutcome:
    """`outcomes` holds one entry per party member, True for success."""
    fails = sum(1 for o in outcomes if not o)
    if fails >= fails_needed:
        return QuestOutcome.FAILED
    return QuestOutcome.SUCCEEDED
