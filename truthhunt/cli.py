"""
TruthHunt CLI - Command-line interface for the engine.

Usage:
    truthhunt play [--rounds N] [--difficulty D]   Play a console game on the sample deck
    truthhunt status                               Saved game and pending queue
    truthhunt leaderboard [--limit N]              Best teams and players on this device
    truthhunt serve [--host H] [--port P]          Run the HTTP API

State lives under TRUTHHUNT_DATA_DIR (or --data-dir), so an interrupted
console game can be resumed by running play again.
"""

import argparse
import sys
from pathlib import Path

from .config import DEFAULT_ROUNDS, LEADERBOARD_DEFAULT_LIMIT, TRUTHHUNT_DATA_DIR, configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="TruthHunt - Claim-evaluation quiz engine",
        prog="truthhunt",
    )
    parser.add_argument(
        "--data-dir", type=Path, default=TRUTHHUNT_DATA_DIR,
        help="Directory for saved games, the sync queue and the profile",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default INFO)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a console game")
    play_parser.add_argument("--rounds", type=int, default=DEFAULT_ROUNDS, help="Number of rounds")
    play_parser.add_argument(
        "--difficulty", default="mixed",
        choices=["easy", "medium", "hard", "mixed"], help="Claim difficulty",
    )
    play_parser.add_argument("--seed", type=int, default=None, help="Deck shuffle seed")

    # Status command
    subparsers.add_parser("status", help="Show saved game and pending queue")

    # Leaderboard command
    leaderboard_parser = subparsers.add_parser("leaderboard", help="Show the local leaderboard")
    leaderboard_parser.add_argument(
        "--limit", type=int, default=LEADERBOARD_DEFAULT_LIMIT, help="Entries per list",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "play":
        cmd_play(args)
    elif args.command == "status":
        cmd_status(args)
    elif args.command == "leaderboard":
        cmd_leaderboard(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


VERDICT_KEYS = {"t": "TRUE", "f": "FALSE", "m": "MIXED"}


def _ask(prompt, input_fn, valid=None, default=None):
    """Prompt until the answer is in valid (case-insensitive)."""
    while True:
        answer = input_fn(prompt).strip().lower()
        if not answer and default is not None:
            return default
        if valid is None or answer in valid:
            return answer
        print(f"  Please answer one of: {', '.join(sorted(valid))}")


def _ask_int(prompt, input_fn, default):
    while True:
        answer = input_fn(prompt).strip()
        if not answer:
            return default
        try:
            return int(answer)
        except ValueError:
            print("  Please enter a whole number")


def _open_game(data_dir, on_streak_cue=None):
    from .engine_core.machine import GameSession
    from .storage import FileStore, Leaderboard, PlayerProfile, SnapshotStore
    from .sync import InlineDispatcher, SyncQueue

    store = FileStore(data_dir)
    return GameSession(
        snapshots=SnapshotStore(store),
        queue=SyncQueue(store),
        dispatcher=InlineDispatcher(),
        profile=PlayerProfile(store),
        leaderboard=Leaderboard(store),
        on_streak_cue=on_streak_cue,
    )


def cmd_play(args, input_fn=input):
    """Play a console game."""
    from .content import sample_deck
    from .engine_core.action import GameSettings, RoundSubmission
    from .engine_core.state import Player
    from .errors import InsufficientContent

    game = _open_game(args.data_dir, on_streak_cue=lambda n: print(f"  🔥 {n} in a row!"))
    try:
        summary = game.snapshots.summary()
        resumed = False
        if summary:
            print(
                f"Saved game found: {summary.team_name}, round {summary.current_round}"
                f"/{summary.total_rounds}, score {summary.score} ({summary.time_ago_text})"
            )
            if _ask("Resume it? [Y/n] ", input_fn, {"y", "n"}, default="y") == "y":
                resumed = game.resume_saved_game()

        if not resumed:
            team_name = input_fn("Team name: ").strip() or "Team"
            player_name = input_fn("Your first name (blank for a team game): ").strip()
            predicted = _ask_int("Predict your final score [0]: ", input_fn, 0)
            try:
                game.start_game(GameSettings(
                    team_name=team_name,
                    claims=sample_deck(args.rounds, args.difficulty, seed=args.seed),
                    rounds=args.rounds,
                    predicted_score=predicted,
                    difficulty=args.difficulty,
                    players=[Player(player_name)] if player_name else [],
                ))
            except InsufficientContent as e:
                print(f"Error: {e}")
                sys.exit(1)

        outcome = None
        while outcome is None or not outcome.finished:
            session = game.session
            claim = session.current_claim
            if claim is None:
                print("No claim is available for this round, so the game was discarded.")
                game.reset_game()
                return
            print(f"\nRound {session.current_round}/{session.total_rounds}  (score {session.team.score})")
            print(f"  {claim.text}")
            verdict = VERDICT_KEYS[_ask("  Verdict [t]rue/[f]alse/[m]ixed: ", input_fn, set(VERDICT_KEYS))]
            confidence = int(_ask("  Confidence 1-3: ", input_fn, {"1", "2", "3"}))
            outcome = game.submit_round(RoundSubmission(verdict=verdict, confidence=confidence))

            result = outcome.result
            mark = "✓ Correct" if result.correct else f"✗ Incorrect (answer: {claim.answer.value})"
            print(f"  {mark}  {result.points:+d} points")
            if claim.explanation:
                print(f"  {claim.explanation}")

        debrief = outcome.debrief
        print("\n=== Debrief ===")
        print(f"Score: {debrief.raw_score}  Predicted: {debrief.predicted_score}")
        if debrief.calibration_bonus:
            print(f"Calibration bonus: +{debrief.calibration_bonus}")
        print(f"Final score: {debrief.final_score}  Accuracy: {debrief.accuracy}%")
        if debrief.achievement_ids:
            print(f"Achievements: {', '.join(debrief.achievement_ids)}")
        if debrief.new_lifetime_achievements:
            print(f"New lifetime achievements: {', '.join(debrief.new_lifetime_achievements)}")
        print(f"Result queued for sync ({game.queue.size()} pending)")
    except (KeyboardInterrupt, EOFError):
        print("\nGame saved. Run 'truthhunt play' to resume.")
    finally:
        game.teardown()


def cmd_status(args):
    """Show saved game and pending queue."""
    from .storage import FileStore, SnapshotStore
    from .sync import SyncQueue

    store = FileStore(args.data_dir)
    summary = SnapshotStore(store).summary()
    if summary:
        print(
            f"Saved game: {summary.team_name}, round {summary.current_round}/{summary.total_rounds}, "
            f"score {summary.score}, {summary.player_count} player(s), saved {summary.time_ago_text}"
        )
    else:
        print("No saved game")

    queue = SyncQueue(store)
    counts = queue.get_counts()
    if counts:
        print(f"Pending sync: {', '.join(f'{n} {t}' for t, n in sorted(counts.items()))}")
    else:
        print("Sync queue empty")


def cmd_leaderboard(args):
    """Show the local leaderboard."""
    from .storage import FileStore, Leaderboard

    board = Leaderboard(FileStore(args.data_dir))
    teams = board.top_teams(args.limit)
    if not teams:
        print("No games on the leaderboard yet")
        return

    print("=== Top Teams ===")
    for rank, entry in enumerate(teams, 1):
        print(f"{rank:>2}. {entry['teamName']:<20} {entry['score']:>4}")

    players = board.top_players(args.limit)
    if players:
        print("\n=== Top Players ===")
        for rank, player in enumerate(players, 1):
            print(
                f"{rank:>2}. {player['displayName']:<20} best {player['bestScore']:>4}  "
                f"avg {player['avgScore']:>4}  games {player['gamesPlayed']}"
            )

    stats = board.stats()
    print(
        f"\n{stats['totalGames']} game(s), average score {stats['averageScore']}, "
        f"highest {stats['highestScore']}"
    )


def cmd_serve(args):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("truthhunt.api.app:create_app", factory=True, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
