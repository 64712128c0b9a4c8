"""
Puzzle Generator Module - Builds solvable scrambled boards.

Boards are scrambled by running single-segment reverse pours from a sorted
board, then certified by the solvability oracle. Failed certifications are
retried; after the attempt budget the generator falls back to a lightly
scrambled board so it always terminates with something playable.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from .errors import GenerationExhausted, InvalidParameters
from .oracle import SearchMetrics, SolvabilityOracle
from .rules import legal_reverse_pours, reverse_pour
from .state import PuzzleState

logger = logging.getLogger(__name__)


# Full scramble attempts before falling back
DEFAULT_MAX_ATTEMPTS = 5

# Upper bound on reverse pours used by the fallback board
FALLBACK_POURS = 5


@dataclass
class GenerationReport:
    """
    Details of one generate call.

    Attributes:
        state: Generated board
        attempts: Scramble attempts made
        used_fallback: True if the lightly scrambled fallback was returned
        metrics: Oracle metrics of the accepted attempt
    """
    state: PuzzleState
    attempts: int = 0
    used_fallback: bool = False
    metrics: SearchMetrics = field(default_factory=SearchMetrics)


class PuzzleGenerator:
    """
    Reverse-scramble generator with verify, retry and fallback.

    Randomness comes only from the injected rng so generation is
    reproducible for a given seed.

    Attributes:
        rng: Random source used to pick reverse pours
        max_attempts: Scrambles tried before falling back
        oracle: Solvability oracle used for certification
    """

    def __init__(self, rng: Optional[random.Random] = None,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 oracle: Optional[SolvabilityOracle] = None):
        """
        Initialize generator.

        Args:
            rng: Seedable random source (default: fresh random.Random())
            max_attempts: Scramble attempts before fallback (>= 1)
            oracle: Oracle to certify boards (default: SolvabilityOracle())
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.rng = rng if rng is not None else random.Random()
        self.max_attempts = max_attempts
        self.oracle = oracle if oracle is not None else SolvabilityOracle()

    def generate(self, tube_count: int, tube_height: int) -> PuzzleState:
        """
        Generate a solvable board.

        Args:
            tube_count: Number of tubes (>= 2, one starts as the empty buffer)
            tube_height: Tube capacity (>= 1)

        Returns:
            Scrambled PuzzleState

        Raises:
            InvalidParameters: If the geometry is malformed
        """
        return self.generate_with_report(tube_count, tube_height).state

    def generate_with_report(self, tube_count: int, tube_height: int) -> GenerationReport:
        """
        Generate a solvable board and report how it was obtained.

        Args:
            tube_count: Number of tubes (>= 2)
            tube_height: Tube capacity (>= 1)

        Returns:
            GenerationReport with the board and attempt details
        """
        _validate_geometry(tube_count, tube_height)

        try:
            return self._generate_verified(tube_count, tube_height)
        except GenerationExhausted as e:
            logger.warning(f"{e}, falling back to a lightly scrambled board")

        state = self.scramble(tube_count, tube_height, min(FALLBACK_POURS, tube_height))
        if tube_height > 1 and state.is_solved():
            # One segment off a full tube always leaves it incomplete
            from_index, to_index = self.rng.choice(legal_reverse_pours(state))
            reverse_pour(state, from_index, to_index)
            logger.debug("Fallback scramble landed on a sorted board, moved one more segment")
        return GenerationReport(state=state, attempts=self.max_attempts, used_fallback=True)

    def scramble(self, tube_count: int, tube_height: int, pours: int) -> PuzzleState:
        """
        Apply random reverse pours to the sorted seed board.

        Each step picks uniformly among all legal reverse pours; a step
        with none available is skipped.

        Args:
            tube_count: Number of tubes
            tube_height: Tube capacity
            pours: Number of reverse pour steps

        Returns:
            Scrambled PuzzleState
        """
        state = PuzzleState.solved_seed(tube_count, tube_height)
        for _ in range(pours):
            candidates = legal_reverse_pours(state)
            if not candidates:
                continue
            from_index, to_index = self.rng.choice(candidates)
            reverse_pour(state, from_index, to_index)
        return state

    def _generate_verified(self, tube_count: int, tube_height: int) -> GenerationReport:
        """
        Scramble and certify up to max_attempts times.

        Raises:
            GenerationExhausted: If no attempt was certified
        """
        pours = tube_height * tube_count * 2

        for attempt in range(1, self.max_attempts + 1):
            state = self.scramble(tube_count, tube_height, pours)

            if state.is_solved():
                logger.debug(f"Attempt {attempt}: scramble landed on a sorted board, retrying")
                continue

            result = self.oracle.search(state)
            if result.solvable:
                logger.info(
                    f"Generated {tube_count}x{tube_height} puzzle on attempt {attempt} "
                    f"({result.metrics.states_explored} states, "
                    f"{result.metrics.computation_time_ms:.1f}ms)"
                )
                return GenerationReport(state=state, attempts=attempt, metrics=result.metrics)

            logger.info(
                f"Attempt {attempt}: scramble not certified "
                f"(budget_exhausted={result.budget_exhausted}), retrying"
            )

        raise GenerationExhausted(
            f"No certified {tube_count}x{tube_height} puzzle after {self.max_attempts} attempts"
        )


def _validate_geometry(tube_count: int, tube_height: int) -> None:
    if tube_count < 2:
        raise InvalidParameters(
            f"tube_count must be >= 2 to leave an empty buffer tube, got {tube_count}"
        )
    if tube_height < 1:
        raise InvalidParameters(f"tube_height must be >= 1, got {tube_height}")


def new_puzzle(tube_count: int, tube_height: int,
               rng: Optional[random.Random] = None) -> PuzzleState:
    """
    Create a new solvable puzzle.

    Args:
        tube_count: Number of tubes (>= 2)
        tube_height: Tube capacity (>= 1)
        rng: Optional seedable random source

    Returns:
        Scrambled, solvable PuzzleState

    Raises:
        InvalidParameters: If tube_count < 2 or tube_height < 1
    """
    return PuzzleGenerator(rng=rng).generate(tube_count, tube_height)
