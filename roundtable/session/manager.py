"""
Session Manager - One game per chat channel.

LIFECYCLE:
1. Someone starts a game in a channel -> session created, they become
   the lobby leader and the first player
2. Players join, the lobby leader configures and starts the game
3. The game ends (or the lobby leader implodes it) -> session removed

PERSISTENCE RULES:
- Sessions are in-memory only
- A session can be exported and restored through api.schemas.GameSnapshot

CONCURRENCY:
- The engine does no locking of its own
- Each Session carries a lock; commands for a channel run inside
  SessionManager.locked(channel)
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator
import logging
import random
import threading
import time
import uuid

from ..engine_core.state import GameState, Phase
from .game_session import GameSession

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a session in the registry."""
    LOBBY = "lobby"  # Waiting for players or configuration
    ACTIVE = "active"  # Roles dealt, game in progress
    GAME_OVER = "game_over"  # Game completed


@dataclass
class Session:
    """
    A game bound to one channel.

    The session is removed from the registry when the game ends.
    """
    channel: str
    owner: str
    game: GameSession
    created_at: float
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def state(self) -> SessionState:
        phase = self.game.phase
        if phase in (Phase.WAITING_FOR_PLAYERS, Phase.CONFIGURATION):
            return SessionState.LOBBY
        if phase == Phase.END:
            return SessionState.GAME_OVER
        return SessionState.ACTIVE

    def is_active(self) -> bool:
        """Check if session is still in play."""
        return self.state in {SessionState.LOBBY, SessionState.ACTIVE}


class SessionManager:
    """
    Registry of sessions keyed by channel.

    Responsibilities:
    - Create sessions, at most one live game per channel
    - Serialise commands per session
    - Clean up completed sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, seed: int | None = None):
        self._sessions: dict[str, Session] = {}
        self._registry_lock = threading.Lock()
        # Seeds per-session random sources; None means fresh entropy
        self._seed_source = random.Random(seed) if seed is not None else None

    def _new_rng(self) -> random.Random:
        if self._seed_source is None:
            return random.Random()
        return random.Random(self._seed_source.getrandbits(64))

    def create_session(self, channel: str, owner: str) -> Session | None:
        """
        Create a new session for a channel.

        Returns None if the channel already has a live game. A finished
        game in the channel is replaced.
        """
        with self._registry_lock:
            existing = self._sessions.get(channel)
            if existing and existing.is_active():
                return None

            game = GameSession(game_id=channel, rng=self._new_rng())
            game.add_player(owner)
            session = Session(
                channel=channel,
                owner=owner,
                game=game,
                created_at=time.time(),
            )
            self._sessions[channel] = session

        logger.info("Created session %s in %s for %s", session.session_id, channel, owner)
        return session

    def restore_session(self, channel: str, owner: str, state: GameState) -> Session:
        """Install a session rebuilt from a saved state, replacing any existing one."""
        session = Session(
            channel=channel,
            owner=owner,
            game=GameSession.restore(state, rng=self._new_rng()),
            created_at=time.time(),
        )
        with self._registry_lock:
            self._sessions[channel] = session
        logger.info("Restored session in %s at phase %s", channel, state.phase.value)
        return session

    def get_session(self, channel: str) -> Session | None:
        """Get the session for a channel."""
        return self._sessions.get(channel)

    @contextmanager
    def locked(self, channel: str) -> Iterator[Session | None]:
        """Hold the channel's session lock for the duration of a command."""
        session = self.get_session(channel)
        if session is None:
            yield None
            return
        with session.lock:
            yield session

    def end_session(self, channel: str, reason: str = "completed") -> bool:
        """
        End a session and remove it.

        Returns False if the channel had no session.
        """
        with self._registry_lock:
            session = self._sessions.pop(channel, None)
        if session is None:
            return False
        logger.info("Ended session %s in %s (%s)", session.session_id, channel, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """Channels with a live game."""
        return [
            channel for channel, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_finished_sessions(self) -> list[str]:
        """Remove sessions whose game is over; returns their channels."""
        finished = [
            channel for channel, session in self._sessions.items()
            if not session.is_active()
        ]
        for channel in finished:
            self.end_session(channel, reason="finished")
        return finished
