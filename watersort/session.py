"""
Game Session Module - Host-side state machine for one game.

This module provides the GameSession which owns the single live board and
move ledger, turns tube clicks into pours, and classifies the board after
every mutation:

  - Two-click flow: select a source tube, then click a destination
  - Every successful pour is recorded for undo and scoring
  - After each pour or undo the oracle classifies the board as
    solved, still solvable, or dead

For the combinatorial core, see the watersort.puzzle package.
"""

import logging
import random
import time
from enum import Enum, auto
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from watersort.difficulty import Difficulty, get_default_difficulty_name, get_difficulty
from watersort.puzzle import (
    Move, MoveLedger, PourResult, PuzzleGenerator, PuzzleState,
    SolvabilityOracle, attempt_pour, current_score,
)
from watersort.puzzle.generator import DEFAULT_MAX_ATTEMPTS

logger = logging.getLogger(__name__)


__all__ = [
    "GameStatus",
    "GameSession",
]


class GameStatus(Enum):
    """
    Classification of the live board.

    States:
        IN_PROGRESS: Not sorted, still solvable
        SOLVED: Every tube is completed or empty
        DEAD: No sequence of pours sorts the board (or the search gave up)
    """
    IN_PROGRESS = auto()
    SOLVED = auto()
    DEAD = auto()


class GameSession:
    """
    One game: a board, its ledger, the selection and the timer.

    Pours, undos and resets run synchronously and must be serialized by
    the caller; the session is not thread-safe.

    State Flow:
        IN_PROGRESS --pour--> SOLVED
             |   ^
           pour  undo
             v   |
            DEAD
    """

    def __init__(self, difficulty: Optional[str] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.monotonic,
                 oracle: Optional[SolvabilityOracle] = None,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        """
        Initialize session and generate the first board.

        Args:
            difficulty: Difficulty name (default: registry default)
            rng: Seedable random source for generation
            clock: Monotonic clock in seconds, injectable for tests
            oracle: Oracle shared by generation and status checks
            max_attempts: Scramble attempts before the generator falls back
        """
        self._oracle = oracle if oracle is not None else SolvabilityOracle()
        self._generator = PuzzleGenerator(rng=rng, max_attempts=max_attempts,
                                          oracle=self._oracle)
        self._clock = clock

        self._difficulty: Difficulty = get_difficulty(difficulty or get_default_difficulty_name())
        self._state: Optional[PuzzleState] = None
        self._ledger = MoveLedger()
        self._selected: Optional[int] = None
        self._status = GameStatus.IN_PROGRESS
        self._started_at = 0.0
        self._finished_at: Optional[float] = None

        self.new_game()

    @property
    def state(self) -> PuzzleState:
        """Live board. Callers must not mutate it directly."""
        return self._state

    @property
    def ledger(self) -> MoveLedger:
        return self._ledger

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def is_solved(self) -> bool:
        return self._status == GameStatus.SOLVED

    @property
    def is_solvable(self) -> bool:
        return self._status != GameStatus.DEAD

    @property
    def selected_tube(self) -> Optional[int]:
        """Index of the tube selected as pour source, if any."""
        return self._selected

    @property
    def move_count(self) -> int:
        return self._ledger.move_count

    def new_game(self, difficulty: Optional[str] = None) -> PuzzleState:
        """
        Discard the current board and generate a new one.

        Args:
            difficulty: Optional new difficulty name

        Returns:
            The new board
        """
        if difficulty is not None:
            self._difficulty = get_difficulty(difficulty)

        d = self._difficulty
        self._state = self._generator.generate(d.tube_count, d.tube_height)
        self._ledger = MoveLedger.for_puzzle(self._state)
        self._selected = None
        self._started_at = self._clock()
        self._finished_at = None
        self._refresh_status()

        logger.info(
            f"New {d.name} game: {d.tube_count} tubes x {d.tube_height}, "
            f"optimal estimate {self._ledger.optimal_estimate}"
        )
        return self._state

    def load(self, state: PuzzleState) -> PuzzleState:
        """
        Start a game from a given board instead of a generated one.

        Args:
            state: Board to play (copied)

        Returns:
            The session's copy of the board
        """
        self._state = state.copy()
        self._ledger = MoveLedger.for_puzzle(self._state)
        self._selected = None
        self._started_at = self._clock()
        self._finished_at = None
        self._refresh_status()

        logger.info(f"Loaded board with {state.tube_count} tubes, status {self._status.name}")
        return self._state

    def reset(self) -> PuzzleState:
        """Start over with a freshly generated board of the same difficulty."""
        logger.info("Session reset")
        return self.new_game()

    def select_tube(self, index: int) -> Optional[PourResult]:
        """
        Handle a click on a tube.

        The first click selects a non-empty tube as the source. Clicking the
        selected tube again clears the selection. Clicking another tube
        attempts the pour and clears the selection.

        Args:
            index: Clicked tube index

        Returns:
            PourResult when a pour was attempted, None otherwise

        Raises:
            IndexError: If index out of range
        """
        tube = self._state.tube(index)

        if self._selected is None:
            if tube.is_empty:
                logger.debug(f"Ignoring selection of empty tube {index}")
                return None
            self._selected = index
            return None

        source = self._selected
        self._selected = None
        if source == index:
            return None
        return self.pour(source, index)

    def pour(self, from_index: int, to_index: int) -> PourResult:
        """
        Attempt a forward pour and record it on success.

        Args:
            from_index: Source tube index
            to_index: Destination tube index

        Returns:
            PourResult; a rejected pour changes nothing
        """
        result = attempt_pour(self._state, from_index, to_index)
        if not result.moved:
            logger.debug(f"Pour {from_index}->{to_index} rejected: {result.reason.name}")
            return result

        self._ledger.record(result.move)
        logger.debug(f"Move {self._ledger.move_count}: {result.move.describe()}")
        self._refresh_status()
        return result

    def undo(self) -> bool:
        """
        Undo the most recent pour.

        Returns:
            False if there is nothing to undo
        """
        move = self._ledger.undo_last(self._state)
        if move is None:
            return False

        self._selected = None
        self._finished_at = None
        self._refresh_status()
        return True

    def hint(self) -> Optional[Move]:
        """
        Suggest the next pour on a path to a sorted board.

        Returns:
            First move of the oracle's solution, or None if solved or dead
        """
        if self._status != GameStatus.IN_PROGRESS:
            return None
        return self._oracle.search(self._state).first_move

    def elapsed_ms(self) -> float:
        """Milliseconds since the game started, frozen once solved."""
        end = self._finished_at if self._finished_at is not None else self._clock()
        return max(0.0, (end - self._started_at) * 1000)

    def score(self) -> int:
        """Current score from ledger, board and elapsed time."""
        return current_score(self._ledger, self._state, self.elapsed_ms())

    def _refresh_status(self) -> None:
        """Classify the board after a mutation."""
        previous = self._status

        if self._state.is_solved():
            self._status = GameStatus.SOLVED
            if self._finished_at is None:
                self._finished_at = self._clock()
        elif self._oracle.is_solvable(self._state):
            self._status = GameStatus.IN_PROGRESS
        else:
            self._status = GameStatus.DEAD

        if self._status != previous:
            if self._status == GameStatus.SOLVED:
                logger.info(f"Status[{previous.name}]: puzzle solved in {self.move_count} moves")
            elif self._status == GameStatus.DEAD:
                logger.info(f"Status[{previous.name}]: puzzle is no longer solvable")
            else:
                logger.info(f"Status[{previous.name}]: back in progress")

    def debug_info(self) -> Dict[str, Any]:
        """
        Snapshot of session values for debug displays.

        Returns:
            Dict with difficulty, score, moves, status and solvable flag
        """
        return {
            "difficulty": self._difficulty.name,
            "score": self.score(),
            "moves": self.move_count,
            "status": self._status.name,
            "solvable": self.is_solvable,
        }

    def save_debug_image(self, path: Optional[Path] = None) -> Path:
        """
        Save a snapshot of the board annotated with debug_info.

        Returns:
            Path of the written image
        """
        from watersort.debug import save_debug_image
        return save_debug_image(self._state, path=path, info=self.debug_info())

    def get_state_string(self) -> str:
        """Get human-readable status string for display."""
        status_strings = {
            GameStatus.IN_PROGRESS: "In progress",
            GameStatus.SOLVED: "Solved",
            GameStatus.DEAD: "No moves lead to a solution",
        }
        base = status_strings.get(self._status, "Unknown")
        return f"{base} ({self.move_count} moves)"
