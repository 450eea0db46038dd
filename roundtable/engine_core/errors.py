"""
Error taxonomy for the rules engine.

Recoverable failures are reported as ActionResult values carrying one of
these codes. Exceptions are reserved for programming errors.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Structured error codes."""
    # Capacity
    ROSTER_FULL = "ROSTER_FULL"
    INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"

    # Membership
    ALREADY_JOINED = "ALREADY_JOINED"
    UNKNOWN_OPTION = "UNKNOWN_OPTION"
    NOT_A_PLAYER = "NOT_A_PLAYER"

    # Constraint
    ALREADY_ENABLED = "ALREADY_ENABLED"
    TOO_MANY_EVIL_SPECIALS = "TOO_MANY_EVIL_SPECIALS"
    INVALID_CONFIG = "INVALID_CONFIG"

    # Phase
    WRONG_PHASE = "WRONG_PHASE"

    # Shape / move legality
    INVALID_PARTY = "INVALID_PARTY"
    INVALID_TARGET = "INVALID_TARGET"
    INVALID_QUEST_ACTION = "INVALID_QUEST_ACTION"
    ALREADY_VOTED = "ALREADY_VOTED"
    ALREADY_ACTED = "ALREADY_ACTED"
    NOT_ON_PARTY = "NOT_ON_PARTY"
    NOT_LEADER = "NOT_LEADER"
    NOT_LAKE_HOLDER = "NOT_LAKE_HOLDER"
    NOT_ASSASSIN = "NOT_ASSASSIN"

    # Session registry
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
    NOT_LOBBY_LEADER = "NOT_LOBBY_LEADER"
    INVALID_SNAPSHOT = "INVALID_SNAPSHOT"


class InvariantViolation(Exception):
    """Raised when the engine detects a breach of its own invariants."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Engine invariant violated: {'; '.join(errors)}")
