"""
Water Sort Puzzle - Entry Point

Generates a puzzle, reports how it was certified and optionally prints a
full solution and saves a debug snapshot.

Example:
    python main.py
    python main.py --difficulty HARD --seed 7 --hint
    python main.py --tubes 5 --height 4 --debug
"""

import sys
import logging
import argparse
import random

from watersort.difficulty import get_difficulty, get_difficulty_names
from watersort.puzzle import (
    InvalidParameters,
    PuzzleGenerator,
    SolvabilityOracle,
    estimate_optimal_moves,
)
from watersort.settings import load_settings, save_settings


# Configure logging - output to both console and file
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
    handlers=[
        logging.StreamHandler(),  # Console output
        logging.FileHandler("watersort.log", mode='w', encoding='utf-8')  # File output
    ]
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Water Sort Puzzle - generate and check solvable boards"
    )
    parser.add_argument(
        "--difficulty",
        choices=get_difficulty_names(),
        type=str.upper,
        help="Difficulty preset (default: from config.json)"
    )
    parser.add_argument("--tubes", type=int, help="Tube count (overrides difficulty)")
    parser.add_argument("--height", type=int, help="Tube height (overrides difficulty)")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible boards")
    parser.add_argument("--budget", type=int, help="Visited-state budget for the search")
    parser.add_argument(
        "--hint",
        action="store_true",
        help="Print a full solution for the generated board"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug mode (verbose logging, save a board snapshot)"
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Store the chosen difficulty and budget in config.json"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Generate a puzzle and report on it."""
    args = parse_args(argv)
    settings = load_settings()

    debug_mode = args.debug or settings.get("debug_enabled", False)
    if debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)

    budget = args.budget if args.budget is not None else settings["search_budget"]
    try:
        difficulty = get_difficulty(args.difficulty or settings["difficulty"])
        oracle = SolvabilityOracle(max_states=budget)
        generator = PuzzleGenerator(
            rng=random.Random(args.seed),
            max_attempts=settings["generation_attempts"],
            oracle=oracle,
        )
    except ValueError as e:
        logger.error(f"Invalid settings: {e}")
        return 2

    tube_count = args.tubes if args.tubes is not None else difficulty.tube_count
    tube_height = args.height if args.height is not None else difficulty.tube_height

    try:
        report = generator.generate_with_report(tube_count, tube_height)
    except InvalidParameters as e:
        logger.error(f"Invalid board geometry: {e}")
        return 2

    state = report.state
    print(state)
    print()
    print(f"Tubes: {tube_count}, height: {tube_height}, attempts: {report.attempts}, "
          f"fallback: {report.used_fallback}")
    print(f"Optimal move estimate: {estimate_optimal_moves(state)}")

    if args.hint:
        result = oracle.search(state)
        if result.solvable:
            print(f"Solution ({result.move_count} moves, "
                  f"{result.metrics.states_explored} states explored):")
            for i, move in enumerate(result.moves, 1):
                print(f"  {i:>3}. {move.describe()}")
        else:
            print(f"No solution found (budget exhausted: {result.budget_exhausted})")

    if debug_mode:
        from watersort.debug import save_debug_image
        path = save_debug_image(state, info={
            "difficulty": difficulty.name,
            "tubes": tube_count,
            "height": tube_height,
            "fallback": report.used_fallback,
        })
        logger.info(f"Debug image saved: {path}")

    if args.save:
        settings["difficulty"] = difficulty.name
        settings["search_budget"] = budget
        save_settings(settings)

    return 0


if __name__ == "__main__":
    sys.exit(main())
