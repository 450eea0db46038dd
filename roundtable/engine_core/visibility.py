"""
Visibility - What each player is told about the others at game start.

- Evils see each other, except Oberon, who neither sees nor is seen
- Merlin sees every evil except Mordred
- Percival sees Merlin and Morgana, in a random order
- The Lady of the Lake is public knowledge
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import random

from .config import GameConfig, Option
from .roles import ALIGNMENT_TEXT, Alignment, Role, RoleAssignment


class KnowledgeKind(str, Enum):
    NOTHING = "nothing"
    EVIL_TEAM = "evil_team"  # evils seeing their allies
    MINIONS = "minions"  # Merlin seeing evils
    MERLIN_OR_MORGANA = "merlin_or_morgana"  # Percival's pair


@dataclass(frozen=True)
class Knowledge:
    kind: KnowledgeKind = KnowledgeKind.NOTHING
    sees: tuple[str, ...] = ()

    def describe(self) -> str:
        names = ", ".join(self.sees)
        if self.kind == KnowledgeKind.EVIL_TEAM:
            return f"You see those allied with Mordred: {names}."
        if self.kind == KnowledgeKind.MINIONS:
            return f"You see the Minions of Mordred: {names}."
        if self.kind == KnowledgeKind.MERLIN_OR_MORGANA:
            first, second = self.sees
            return f"Merlin and Morgana are {first} and {second}. You are not sure which is which."
        return ""


@dataclass(frozen=True)
class RoleReveal:
    """The private start-of-game message for one player."""
    player_id: str
    alignment: Alignment
    role: Role | None = None
    knowledge: Knowledge = field(default_factory=Knowledge)
    lake_holder: str | None = None

    def lines(self) -> list[str]:
        lines = [ALIGNMENT_TEXT[self.alignment]]
        if self.role is not None:
            lines.append(f"You are {self.role.display_name}. {self.role.flavor_text}")
        if self.knowledge.kind != KnowledgeKind.NOTHING:
            lines.append(self.knowledge.describe())
        return lines


def resolve_knowledge(
    assignment: RoleAssignment,
    config: GameConfig,
    rng: random.Random | None = None,
) -> dict[str, Knowledge]:
    """
    Knowledge map for every player in the assignment.

    Percival's pair is reshuffled on every call, so asking twice reveals
    nothing about which slot is Merlin.
    """
    rng = rng or random.Random()
    knowledge: dict[str, Knowledge] = {
        player: Knowledge() for player in assignment.goods + assignment.evils
    }

    oberon = assignment.holder_of(Role.OBERON)
    visible_evils = assignment.evils_excluding(Role.OBERON)
    for evil in visible_evils:
        knowledge[evil] = Knowledge(KnowledgeKind.EVIL_TEAM, visible_evils)
    if oberon is not None:
        knowledge[oberon] = Knowledge()

    merlin = assignment.holder_of(Role.MERLIN)
    knowledge[merlin] = Knowledge(
        KnowledgeKind.MINIONS, assignment.evils_excluding(Role.MORDRED)
    )

    if config.is_enabled(Option.MORGANA_PERCIVAL):
        percival = assignment.holder_of(Role.PERCIVAL)
        pair = [merlin, assignment.holder_of(Role.MORGANA)]
        if rng.random() < 0.5:
            pair.reverse()
        knowledge[percival] = Knowledge(KnowledgeKind.MERLIN_OR_MORGANA, tuple(pair))

    return knowledge


def build_reveals(
    assignment: RoleAssignment,
    config: GameConfig,
    rng: random.Random | None = None,
    lake_holder: str | None = None,
) -> dict[str, RoleReveal]:
    """Role reveal payload for every player, ready for private delivery."""
    knowledge = resolve_knowledge(assignment, config, rng)
    return {
        player: RoleReveal(
            player_id=player,
            alignment=assignment.alignment_of(player),
            role=assignment.role_of(player),
            knowledge=seen,
            lake_holder=lake_holder,
        )
        for player, seen in knowledge.items()
    }
