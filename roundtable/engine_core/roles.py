"""
Roles - Alignments, special characters and the role assignment.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .errors import InvariantViolation


class Alignment(str, Enum):
    """The two hidden teams."""
    GOOD = "good"
    EVIL = "evil"


class Role(str, Enum):
    """Special characters. Everyone else is a plain member of their team."""
    MERLIN = "merlin"
    PERCIVAL = "percival"
    ASSASSIN = "assassin"
    MORDRED = "mordred"
    MORGANA = "morgana"
    OBERON = "oberon"

    @property
    def alignment(self) -> Alignment:
        if self in (Role.MERLIN, Role.PERCIVAL):
            return Alignment.GOOD
        return Alignment.EVIL

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def flavor_text(self) -> str:
        return ROLE_FLAVOR_TEXT[self]


ROLE_FLAVOR_TEXT: dict[Role, str] = {
    Role.ASSASSIN: "You are on the prowl for Merlin. If he reveals himself, you will kill him.",
    Role.MERLIN: "You see all evils except Mordred. You must keep yourself hidden from Assassin.",
    Role.MORDRED: "You remain unknown to Merlin.",
    Role.MORGANA: "You appear as Merlin to Percival.",
    Role.PERCIVAL: "You see Merlin's identity, but Morgana attempts to trick you.",
    Role.OBERON: "You are unknown to the other evils and you do not know them.",
}

ALIGNMENT_TEXT: dict[Alignment, str] = {
    Alignment.GOOD: "You are on the side of good, allied with Merlin.",
    Alignment.EVIL: "You are on the side of evil, allied with Mordred.",
}


@dataclass(frozen=True)
class RoleAssignment:
    """
    Who is on which team, and who holds each special character.

    Created once when the game starts and never changed afterwards.
    """
    goods: tuple[str, ...]
    evils: tuple[str, ...]
    specials: dict[Role, str] = field(default_factory=dict)

    def alignment_of(self, player_id: str) -> Alignment | None:
        if player_id in self.goods:
            return Alignment.GOOD
        if player_id in self.evils:
            return Alignment.EVIL
        return None

    def role_of(self, player_id: str) -> Role | None:
        for role, holder in self.specials.items():
            if holder == player_id:
                return role
        return None

    def holder_of(self, role: Role) -> str | None:
        return self.specials.get(role)

    def evils_excluding(self, role: Role) -> tuple[str, ...]:
        """Evil identities minus the holder of `role`, if that role is in play."""
        excluded = self.specials.get(role)
        return tuple(p for p in self.evils if p != excluded)

    def invariant_errors(self, roster: tuple[str, ...] | list[str]) -> list[str]:
        """List every broken invariant; empty when the assignment is sound."""
        errors: list[str] = []
        goods, evils = set(self.goods), set(self.evils)

        if len(goods) != len(self.goods) or len(evils) != len(self.evils):
            errors.append("duplicate identity within a team")
        if goods & evils:
            errors.append(f"identities on both teams: {sorted(goods & evils)}")
        if goods | evils != set(roster):
            errors.append("teams do not cover the roster exactly")

        for role in (Role.MERLIN, Role.ASSASSIN):
            if role not in self.specials:
                errors.append(f"{role.value} was not assigned")

        for role, holder in self.specials.items():
            if self.alignment_of(holder) != role.alignment:
                errors.append(f"{role.value} assigned to {holder}, who is not {role.alignment.value}")

        holders = list(self.specials.values())
        if len(set(holders)) != len(holders):
            errors.append("an identity holds more than one special role")

        return errors

    def check_invariants(self, roster: tuple[str, ...] | list[str]) -> None:
        """Raise InvariantViolation if any invariant is broken."""
        errors = self.invariant_errors(roster)
        if errors:
            raise InvariantViolation(errors)
