"""
Role Assigner - Randomly deals teams and special characters.

Every random choice without replacement is made by drawing a uniform
permutation of the candidates and consuming it from the front, so
distinctness follows from the permutation itself.
"""

from __future__ import annotations
from dataclasses import dataclass
import random

from .config import GameConfig, Option
from .roles import Role, RoleAssignment
from .rules import MAX_PLAYERS, MIN_PLAYERS, num_evils


# Optional evil specials in the order they are dealt
_EVIL_SPECIALS: tuple[tuple[Option, Role], ...] = (
    (Option.MORDRED, Role.MORDRED),
    (Option.MORGANA_PERCIVAL, Role.MORGANA),
    (Option.OBERON, Role.OBERON),
)


@dataclass(frozen=True)
class Setup:
    """Everything decided at random when the game starts."""
    assignment: RoleAssignment
    leader: str
    lake_holder: str | None = None


def _permutation(items: tuple[str, ...], rng: random.Random) -> list[str]:
    return rng.sample(items, len(items))


def assign_roles(
    roster: tuple[str, ...] | list[str],
    config: GameConfig,
    rng: random.Random | None = None,
) -> Setup:
    """
    Deal teams, special characters, the first leader and the first Lady
    of the Lake.

    The roster must hold 5-10 identities and the config must already be
    valid for that size; anything else is a programming error.
    """
    rng = rng or random.Random()
    roster = tuple(roster)
    num_players = len(roster)
    if not MIN_PLAYERS <= num_players <= MAX_PLAYERS:
        raise ValueError(f"Cannot assign roles for {num_players} players")
    if len(set(roster)) != num_players:
        raise ValueError("Roster contains duplicate identities")

    n_evils = num_evils(num_players)
    if config.num_evil_specials() >= n_evils:
        raise ValueError("Configuration leaves no evil free for the Assassin")

    # Teams
    order = _permutation(roster, rng)
    n_goods = num_players - n_evils
    goods = tuple(order[:n_goods])
    evils = tuple(order[n_goods:])

    specials: dict[Role, str] = {}

    # Good specials
    good_order = _permutation(goods, rng)
    specials[Role.MERLIN] = good_order[0]
    if config.is_enabled(Option.MORGANA_PERCIVAL):
        specials[Role.PERCIVAL] = good_order[1]

    # Evil specials
    evil_order = _permutation(evils, rng)
    specials[Role.ASSASSIN] = evil_order[0]
    next_index = 1
    for option, role in _EVIL_SPECIALS:
        if config.is_enabled(option):
            specials[role] = evil_order[next_index]
            next_index += 1

    assignment = RoleAssignment(goods=goods, evils=evils, specials=specials)
    assignment.check_invariants(roster)

    # First leader, and a Lady of the Lake who is never the first leader
    leader = rng.choice(roster)
    lake_holder = None
    if config.is_enabled(Option.LAKE):
        lake_holder = rng.choice(roster)
        while lake_holder == leader:
            lake_holder = rng.choice(roster)

    return Setup(assignment=assignment, leader=leader, lake_holder=lake_holder)
