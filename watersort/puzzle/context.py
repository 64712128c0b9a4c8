"""
Search Context Module - Shared context for a solvability search.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .state import PuzzleState


# Visited-state budget for one search
DEFAULT_MAX_STATES = 500_000

# Expansions between progress reports
PROGRESS_INTERVAL = 10_000


@dataclass
class SearchContext:
    """
    Context passed to the oracle containing the start board, the
    exploration budget and progress reporting.

    Attributes:
        state: Board to search from (never mutated)
        max_states: Maximum number of distinct boards to visit
        start_time: When the search started
        progress_callback: Optional callback for progress updates
    """
    state: PuzzleState
    max_states: int = DEFAULT_MAX_STATES
    start_time: float = field(default_factory=time.perf_counter)
    progress_callback: Optional[Callable[[float, str], None]] = None

    def budget_exhausted(self, visited: int) -> bool:
        """
        Check whether the visited-state budget has been used up.

        Args:
            visited: Number of distinct boards recorded so far

        Returns:
            True if the search must stop
        """
        return visited >= self.max_states

    def report_progress(self, visited: int, message: str = "") -> None:
        """
        Report budget usage.

        Args:
            visited: Number of distinct boards recorded so far
            message: Optional status message
        """
        if self.progress_callback:
            self.progress_callback(min(1.0, visited / self.max_states), message)

    def elapsed_ms(self) -> float:
        """Milliseconds elapsed since the search started."""
        return (time.perf_counter() - self.start_time) * 1000
