"""
Roundtable - Rules engine for Avalon-style hidden-role games.

The engine runs one game per chat channel and provides:
- Roster and configuration management
- Random role assignment and start-of-game knowledge
- The nominate / vote / quest / assassination state machine
- A REST API and CLI around the engine
"""

__version__ = "0.1.0"
