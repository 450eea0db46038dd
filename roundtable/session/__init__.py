"""
Session Module - Game sessions and the per-channel registry.

A session represents one game in one channel:
- Created when someone starts a game in the channel
- Holds the current game state
- Removed when the game ends or is imploded

Sessions are in-memory only.
"""

from .game_session import GameSession
from .manager import SessionManager, Session, SessionState

__all__ = [
    "GameSession",
    "SessionManager",
    "Session",
    "SessionState",
]
