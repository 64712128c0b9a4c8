"""
Scoring Module - Heuristic score from move efficiency, progress and time.

The score is not load-bearing for correctness but is deterministic for
the same inputs.
"""

from typing import TYPE_CHECKING

from .errors import InvalidParameters
from .state import PuzzleState

if TYPE_CHECKING:
    from .ledger import MoveLedger


BASE_SCORE = 1000

# Share of the base score granted before any tube is completed
PROGRESS_FLOOR = 0.5

# Seconds after which the time factor has halved
TIME_DECAY_SEC = 600.0

# Applied once the board is solved
COMPLETION_MULTIPLIER = 2.0


def count_discontinuities(state: PuzzleState) -> int:
    """
    Count adjacent segment pairs of different colors within tubes.

    Args:
        state: Board to inspect

    Returns:
        Number of color boundaries summed over all tubes
    """
    total = 0
    for tube in state.tubes:
        colors = tube.colors
        total += sum(1 for lower, upper in zip(colors, colors[1:]) if lower != upper)
    return total


def estimate_optimal_moves(state: PuzzleState) -> int:
    """
    Heuristic lower bound on the moves needed to sort the board.

    Every boundary between two colors inside a tube needs at least one pour
    to break it. Not guaranteed tight. An unsorted board needs at least one
    move even when no tube holds a boundary.

    Returns:
        0 for a sorted board, otherwise >= 1
    """
    if state.is_solved():
        return 0
    return max(1, count_discontinuities(state))


def completed_fraction(state: PuzzleState) -> float:
    """
    Fraction of colors already gathered into a completed tube.

    Returns:
        Value in [0, 1]; 1.0 for a board without colors
    """
    color_count = len(state.color_counts())
    if color_count == 0:
        return 1.0
    return min(1.0, state.completed_count / color_count)


def compute_score(move_count: int, optimal_estimate: int, progress: float,
                  elapsed_ms: float, solved: bool) -> int:
    """
    Combine efficiency, progress and elapsed time into a score.

    Args:
        move_count: Pours made so far
        optimal_estimate: Heuristic lower bound fixed at generation time
        progress: Completed fraction in [0, 1]
        elapsed_ms: Wall-clock time since the puzzle started
        solved: Whether the board is sorted

    Returns:
        Integer score

    Raises:
        InvalidParameters: On negative counts or time
    """
    if move_count < 0 or optimal_estimate < 0:
        raise InvalidParameters("Move counts must be non-negative")
    if elapsed_ms < 0:
        raise InvalidParameters(f"elapsed_ms must be non-negative, got {elapsed_ms}")

    excess = max(0, move_count - optimal_estimate)
    efficiency = 1.0 / (1.0 + excess / max(1, optimal_estimate))

    progress = min(1.0, max(0.0, progress))
    progress_factor = PROGRESS_FLOOR + (1.0 - PROGRESS_FLOOR) * progress

    time_factor = 1.0 / (1.0 + (elapsed_ms / 1000.0) / TIME_DECAY_SEC)

    score = BASE_SCORE * efficiency * progress_factor * time_factor
    if solved:
        score *= COMPLETION_MULTIPLIER
    return int(round(score))


def current_score(ledger: 'MoveLedger', state: PuzzleState, elapsed_ms: float) -> int:
    """
    Score the current game.

    Args:
        ledger: Move ledger of the session
        state: Current board
        elapsed_ms: Milliseconds since the puzzle started

    Returns:
        Integer score
    """
    return compute_score(
        move_count=ledger.move_count,
        optimal_estimate=ledger.optimal_estimate,
        progress=completed_fraction(state),
        elapsed_ms=elapsed_ms,
        solved=state.is_solved(),
    )
