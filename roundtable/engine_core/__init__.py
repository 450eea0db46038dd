"""
Engine Core - Rules engine for a game of Avalon.

The engine is pure and performs no I/O:
1. GameConfig holds and validates the optional rules
2. assign_roles deals teams and special characters
3. resolve_knowledge decides who learns what about whom
4. The Reducer applies actions to an immutable GameState
"""

from .errors import ErrorCode, InvariantViolation
from .rules import (
    MAX_PLAYERS,
    MIN_PLAYERS,
    QuestOutcome,
    VoteOutcome,
    num_evils,
    num_goods,
    required_fails,
    required_party_size,
    tally_quest,
    tally_votes,
)
from .config import GameConfig, Option
from .roles import Alignment, Role, RoleAssignment
from .assigner import Setup, assign_roles
from .visibility import Knowledge, KnowledgeKind, RoleReveal, build_reveals, resolve_knowledge
from .state import GameState, Phase, QuestRecord
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer, apply_action

__all__ = [
    "ErrorCode",
    "InvariantViolation",
    "MAX_PLAYERS",
    "MIN_PLAYERS",
    "QuestOutcome",
    "VoteOutcome",
    "num_evils",
    "num_goods",
    "required_fails",
    "required_party_size",
    "tally_quest",
    "tally_votes",
    "GameConfig",
    "Option",
    "Alignment",
    "Role",
    "RoleAssignment",
    "Setup",
    "assign_roles",
    "Knowledge",
    "KnowledgeKind",
    "RoleReveal",
    "build_reveals",
    "resolve_knowledge",
    "GameState",
    "Phase",
    "QuestRecord",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "apply_action",
]
