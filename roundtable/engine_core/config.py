"""
Game Configuration - Optional rules enabled for a game.

Options come from a closed vocabulary. Each option is checked against
the roster size before it takes effect, and the whole set is checked
again right before the game starts.

Two shapes of API are kept on purpose:
- enable()/disable() report every problem as a typed failure
- enable_many()/disable_many() make a best-effort pass and silently
  skip anything they cannot apply
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .action import ActionResult
from .errors import ErrorCode
from .rules import LAKE_MIN_PLAYERS, OBERON_MIN_PLAYERS, num_evils


class Option(str, Enum):
    """Configurable options, in display order."""
    LAKE = "lake"
    MORDRED = "mordred"
    MORGANA_PERCIVAL = "morganapercival"
    OBERON = "oberon"


# Evil specials in assignment priority order
EVIL_SPECIAL_OPTIONS: tuple[Option, ...] = (
    Option.MORDRED,
    Option.MORGANA_PERCIVAL,
    Option.OBERON,
)

MIN_PLAYERS_FOR_OPTION: dict[Option, int] = {
    Option.LAKE: LAKE_MIN_PLAYERS,
    Option.OBERON: OBERON_MIN_PLAYERS,
}

_MIN_PLAYERS_MESSAGES: dict[Option, str] = {
    Option.LAKE: "There must be at least 7 players to enable the Lady of the Lake.",
    Option.OBERON: "There must be at least 10 players to enable Oberon.",
}


def parse_option(name: str) -> Option | None:
    """Case-insensitive lookup; None for names outside the vocabulary."""
    try:
        return Option(name.strip().lower())
    except ValueError:
        return None


@dataclass(frozen=True)
class GameConfig:
    """
    The set of enabled options.

    Immutable: every change returns a new GameConfig inside an ActionResult.
    """
    options: frozenset[Option] = field(default_factory=frozenset)

    @staticmethod
    def is_option_name(name: str) -> bool:
        return parse_option(name) is not None

    def is_enabled(self, option: Option | str) -> bool:
        if isinstance(option, str) and not isinstance(option, Option):
            option = parse_option(option)
        return option in self.options

    def num_evil_specials(self) -> int:
        """Number of evil special characters enabled."""
        return sum(1 for option in EVIL_SPECIAL_OPTIONS if option in self.options)

    def describe(self) -> list[str]:
        """Enabled option names in vocabulary order."""
        return [option.value for option in Option if option in self.options]

    def describe_text(self) -> str:
        """Human-readable list, e.g. "lake, mordred", or "none"."""
        enabled = self.describe()
        if not enabled:
            return "none"
        return ", ".join(enabled)

    def with_options(self, options: Iterable[Option]) -> GameConfig:
        return GameConfig(options=frozenset(options))

    def enable(self, name: str, num_players: int) -> ActionResult:
        """
        Enable a single option.

        Fails with UNKNOWN_OPTION, ALREADY_ENABLED, INSUFFICIENT_PLAYERS or
        TOO_MANY_EVIL_SPECIALS, checked in that order.
        """
        option = parse_option(name)
        if option is None:
            return ActionResult.failure(
                f"There is no such option: {name}.", ErrorCode.UNKNOWN_OPTION
            )
        if option in self.options:
            return ActionResult.failure(
                f"{option.value} is already enabled.", ErrorCode.ALREADY_ENABLED
            )

        error = self._check_enable(option, num_players)
        if error:
            return error

        new_config = self.with_options(self.options | {option})
        return ActionResult.success_with_state(
            new_config,
            changes=[f"Config options enabled: {new_config.describe_text()}."],
        )

    def enable_many(self, names: Iterable[str], num_players: int) -> ActionResult:
        """
        Best-effort enable. Unknown, already enabled and illegal options are
        skipped; the options actually enabled are in details["enabled"].
        """
        config = self
        enabled: list[str] = []
        for name in names:
            option = parse_option(name)
            if option is None or option in config.options:
                continue
            if config._check_enable(option, num_players):
                continue
            config = config.with_options(config.options | {option})
            enabled.append(option.value)

        return ActionResult.success_with_state(
            config,
            changes=[f"Config options enabled: {config.describe_text()}."],
            details={"enabled": enabled},
        )

    def disable(self, name: str) -> ActionResult:
        """Disable a single option. Disabling a disabled option is a no-op."""
        option = parse_option(name)
        if option is None:
            return ActionResult.failure(
                f"There is no such option: {name}.", ErrorCode.UNKNOWN_OPTION
            )
        new_config = self.with_options(self.options - {option})
        return ActionResult.success_with_state(
            new_config,
            changes=[f"Config options enabled: {new_config.describe_text()}."],
        )

    def disable_many(self, names: Iterable[str]) -> ActionResult:
        options = {parse_option(name) for name in names} - {None}
        new_config = self.with_options(self.options - options)
        return ActionResult.success_with_state(
            new_config,
            changes=[f"Config options enabled: {new_config.describe_text()}."],
        )

    def _check_enable(self, option: Option, num_players: int) -> ActionResult | None:
        min_players = MIN_PLAYERS_FOR_OPTION.get(option)
        if min_players is not None and num_players < min_players:
            return ActionResult.failure(
                _MIN_PLAYERS_MESSAGES[option], ErrorCode.INSUFFICIENT_PLAYERS
            )

        # At least one evil must remain free to become the Assassin
        if option in EVIL_SPECIAL_OPTIONS:
            if self.num_evil_specials() + 1 >= num_evils(num_players):
                return ActionResult.failure(
                    "There are not enough evils in the game.",
                    ErrorCode.TOO_MANY_EVIL_SPECIALS,
                )
        return None

    def validate(self, num_players: int) -> ActionResult:
        """
        Check the whole configuration against the current roster size.

        All violations are reported together; error_code is the first one
        found and details["violations"] lists every code. Player minimums
        are checked before the evil-special count, so a 7-player game with
        Oberon reports INSUFFICIENT_PLAYERS and callers looking for
        TOO_MANY_EVIL_SPECIALS should search details["violations"].
        """
        violations: list[tuple[ErrorCode, str]] = []

        if Option.LAKE in self.options and num_players < LAKE_MIN_PLAYERS:
            violations.append((ErrorCode.INSUFFICIENT_PLAYERS, "lake requires 7 players"))

        if Option.OBERON in self.options and num_players < OBERON_MIN_PLAYERS:
            violations.append((ErrorCode.INSUFFICIENT_PLAYERS, "oberon requires 10 players"))

        evils = num_evils(num_players)
        specials = self.num_evil_specials()
        if specials >= evils:
            n = specials - evils + 1
            violations.append(
                (ErrorCode.TOO_MANY_EVIL_SPECIALS, f"you have {n} too many evil specials")
            )

        if violations:
            return ActionResult.failure(
                "; ".join(message for _, message in violations),
                violations[0][0],
                details={"violations": [code.value for code, _ in violations]},
            )
        return ActionResult.success_with_state(self)
