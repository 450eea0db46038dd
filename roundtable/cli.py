"""
Roundtable CLI - Command-line interface for the engine.

Usage:
    roundtable rules [num_players]            Show team sizes and quest tables
    roundtable simulate --players N           Play a random game to the end
    roundtable serve                          Print how to run the REST API
"""

import argparse
import logging
import random
import sys

from .engine_core.rules import (
    MAX_PLAYERS,
    MIN_PLAYERS,
    NUM_PLAYERS_TO_QUEST_SIZES,
    NUM_QUESTS,
    num_evils,
    num_goods,
    required_fails,
    required_party_size,
)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Roundtable - Avalon rules engine",
        prog="roundtable",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log engine phase changes")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Rules command
    rules_parser = subparsers.add_parser("rules", help="Show team sizes and quest tables")
    rules_parser.add_argument(
        "num_players", type=int, nargs="?", help="Only show this roster size"
    )

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a random game to the end")
    simulate_parser.add_argument("--players", "-n", type=int, default=MIN_PLAYERS)
    simulate_parser.add_argument("--seed", type=int, help="Seed for a reproducible game")
    simulate_parser.add_argument(
        "--enable", nargs="*", default=[], metavar="OPTION",
        help="Options to enable (lake, mordred, morganapercival, oberon)",
    )

    # Serve command
    subparsers.add_parser("serve", help="Show how to run the REST API")

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    if args.command == "rules":
        cmd_rules(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_rules(args):
    """Show team sizes and quest tables."""
    if args.num_players is not None:
        if args.num_players not in NUM_PLAYERS_TO_QUEST_SIZES:
            print(f"Error: rosters must have {MIN_PLAYERS}-{MAX_PLAYERS} players")
            sys.exit(1)
        sizes = [args.num_players]
    else:
        sizes = sorted(NUM_PLAYERS_TO_QUEST_SIZES)

    print("Players  Good  Evil  Quests (* needs two fails)")
    for n in sizes:
        quests = []
        for q in range(1, NUM_QUESTS + 1):
            mark = "*" if required_fails(n, q) == 2 else ""
            quests.append(f"{required_party_size(n, q)}{mark}")
        print(f"{n:>7}  {num_goods(n):>4}  {num_evils(n):>4}  {' '.join(quests)}")


def cmd_simulate(args):
    """Play a game with random but legal moves and print the transcript."""
    from .engine_core.roles import Alignment, Role
    from .engine_core.state import Phase
    from .session import GameSession

    seed = args.seed if args.seed is not None else random.randrange(2**32)
    chooser = random.Random(seed)
    game = GameSession("simulation", rng=random.Random(seed))

    def say(result):
        if not result.success:
            print(f"  ! {result.error} ({result.error_code.value})")
            return
        for line in result.state_changes:
            print(f"  {line}")

    print(f"Seed: {seed}")
    for i in range(1, args.players + 1):
        say(game.add_player(f"player{i}"))
    say(game.close_lobby())
    for name in args.enable:
        say(game.enable_option(name))

    result = game.start()
    say(result)
    if not result.success:
        sys.exit(1)

    print("\nRoles:")
    for player, reveal in result.reveals.items():
        role = reveal.role.display_name if reveal.role else "-"
        print(f"  {player}: {reveal.alignment.value} {role}")
    print()

    state = game.state
    assignment = state.assignment
    roster = state.roster

    while game.phase != Phase.END:
        state = game.state
        if game.phase == Phase.NOMINATE:
            size = required_party_size(state.num_players, state.quest_index)
            say(game.nominate(chooser.sample(roster, size), leader=state.leader))
        elif game.phase == Phase.VOTE:
            for player in roster:
                approve = chooser.random() < 0.6 or state.vote_track == 4
                say(game.cast_vote(player, approve))
        elif game.phase == Phase.QUEST:
            for player in state.party:
                evil = assignment.alignment_of(player) == Alignment.EVIL
                say(game.cast_quest_action(player, not (evil and chooser.random() < 0.5)))
        elif game.phase == Phase.LAKE:
            candidates = [p for p in roster if p not in state.lake_history]
            result = game.use_lake(chooser.choice(candidates), holder=state.lake_holder)
            say(result)
            for player, message in result.private.items():
                print(f"  (to {player}) {message}")
        elif game.phase == Phase.ASSASSINATION:
            target = chooser.choice(assignment.goods)
            say(game.assassinate(target, assassin=assignment.holder_of(Role.ASSASSIN)))

    print(f"\n{game.state.describe()}")


def cmd_serve(args):
    """Show how to run the REST API."""
    print("Run the API with an ASGI server, for example:")
    print("  uvicorn roundtable.api.app:app")


if __name__ == "__main__":
    main()
