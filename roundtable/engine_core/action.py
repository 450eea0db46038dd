"""
Action System - Actions, payloads, and results.

Actions represent:
1. Lobby actions (join, configure, close lobby, start)
2. Round actions (nominate, vote, quest card)
3. Special actions (Lady of the Lake, assassination)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import ErrorCode


class ActionType(Enum):
    """Types of actions in the system."""
    # Lobby actions
    ADD_PLAYER = "add_player"
    ENABLE_OPTION = "enable_option"
    DISABLE_OPTION = "disable_option"
    CLOSE_LOBBY = "close_lobby"
    START_GAME = "start_game"

    # Round actions
    NOMINATE = "nominate"
    VOTE = "vote"
    QUEST_ACTION = "quest_action"

    # Special actions
    LAKE = "lake"
    ASSASSINATE = "assassinate"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types have different payload shapes.
    This is a generic container; validation happens in the reducer.
    """
    # Acting identity; optional where the transport layer vouches for it
    player_id: str | None = None

    # For joins, lake and assassination
    target_player_id: str | None = None

    # For nominations
    party: tuple[str, ...] | None = None

    # For votes (approve) and quest cards (succeed)
    choice: bool | None = None

    # For configuration
    options: tuple[str, ...] | None = None
    strict: bool = True


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Validated before application
    - Applied atomically by the reducer
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def add_player(cls, player_id: str) -> Action:
        return cls(
            action_type=ActionType.ADD_PLAYER,
            payload=ActionPayload(target_player_id=player_id),
        )

    @classmethod
    def enable(cls, *options: str, strict: bool = True) -> Action:
        """Factory for enabling options. Non-strict skips anything illegal."""
        return cls(
            action_type=ActionType.ENABLE_OPTION,
            payload=ActionPayload(options=tuple(options), strict=strict),
        )

    @classmethod
    def disable(cls, *options: str, strict: bool = True) -> Action:
        return cls(
            action_type=ActionType.DISABLE_OPTION,
            payload=ActionPayload(options=tuple(options), strict=strict),
        )

    @classmethod
    def close_lobby(cls) -> Action:
        return cls(action_type=ActionType.CLOSE_LOBBY)

    @classmethod
    def start_game(cls) -> Action:
        return cls(action_type=ActionType.START_GAME)

    @classmethod
    def nominate(cls, party: list[str] | tuple[str, ...], leader: str | None = None) -> Action:
        """Factory for a party nomination."""
        return cls(
            action_type=ActionType.NOMINATE,
            payload=ActionPayload(player_id=leader, party=tuple(party)),
        )

    @classmethod
    def vote(cls, player_id: str, approve: bool) -> Action:
        return cls(
            action_type=ActionType.VOTE,
            payload=ActionPayload(player_id=player_id, choice=approve),
        )

    @classmethod
    def quest_action(cls, player_id: str, succeed: bool) -> Action:
        return cls(
            action_type=ActionType.QUEST_ACTION,
            payload=ActionPayload(player_id=player_id, choice=succeed),
        )

    @classmethod
    def lake(cls, target_player_id: str, holder: str | None = None) -> Action:
        """Factory for a Lady of the Lake inspection."""
        return cls(
            action_type=ActionType.LAKE,
            payload=ActionPayload(player_id=holder, target_player_id=target_player_id),
        )

    @classmethod
    def assassinate(cls, target_player_id: str, assassin: str | None = None) -> Action:
        return cls(
            action_type=ActionType.ASSASSINATE,
            payload=ActionPayload(player_id=assassin, target_player_id=target_player_id),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Announcements for the whole table and private messages per player
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: ErrorCode | None = None
    details: dict[str, Any] = field(default_factory=dict)

    # Public, human-readable changes
    state_changes: list[str] = field(default_factory=list)

    # Role reveals from game start, keyed by identity
    reveals: dict[str, Any] = field(default_factory=dict)  # RoleReveal

    # Other private information, keyed by identity
    private: dict[str, str] = field(default_factory=dict)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code, details=details or {})

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        **kwargs: Any,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            **kwargs,
        )
