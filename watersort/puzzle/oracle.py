"""
Solvability Oracle Module - Bounded breadth-first search over pours.

Answers whether a board can still reach a sorted state using legal forward
pours. Boards are explored as canonical keys with an explicit FIFO queue and
a visited dict, so the visited-state budget is enforced on every insert.
Running out of budget is reported as unsolvable, never as solvable.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Tuple

from .context import DEFAULT_MAX_STATES, PROGRESS_INTERVAL, SearchContext
from .move import Move
from .rules import pour_result
from .state import PuzzleState, StateKey, run_length

logger = logging.getLogger(__name__)


@dataclass
class SearchMetrics:
    """
    Performance metrics for one search.

    Attributes:
        computation_time_ms: Time taken in milliseconds
        states_explored: Number of distinct boards visited
        pruned_branches: Pours skipped by the pruning rules
    """
    computation_time_ms: float = 0.0
    states_explored: int = 0
    pruned_branches: int = 0


@dataclass
class SearchResult:
    """
    Result of a solvability search.

    Attributes:
        solvable: True if a sorted board was reached
        moves: Pours leading from the start board to the sorted board
        budget_exhausted: True if the search stopped on the visited budget
        metrics: Performance statistics
    """
    solvable: bool
    moves: List[Move] = field(default_factory=list)
    budget_exhausted: bool = False
    metrics: SearchMetrics = field(default_factory=SearchMetrics)

    @property
    def move_count(self) -> int:
        """Number of pours in the solution path."""
        return len(self.moves)

    @property
    def first_move(self) -> Optional[Move]:
        """First pour of the solution path, used as a hint."""
        return self.moves[0] if self.moves else None


# Parent pointers: board key -> (previous key, pour taken), None for the start
ParentMap = Dict[StateKey, Optional[Tuple[StateKey, Move]]]


def is_solved(state: PuzzleState) -> bool:
    """True iff every tube is completed or empty."""
    return state.is_solved()


def _tube_completed(colors: Tuple[int, ...], max_height: int) -> bool:
    return len(colors) == max_height and len(set(colors)) == 1


def _key_solved(key: StateKey, max_height: int) -> bool:
    return all(not colors or _tube_completed(colors, max_height) for colors in key)


def _trace_path(parents: ParentMap, key: StateKey) -> List[Move]:
    """Walk parent pointers back to the start board."""
    moves = []
    link = parents[key]
    while link is not None:
        key, move = link
        moves.append(move)
        link = parents[key]
    moves.reverse()
    return moves


class SolvabilityOracle:
    """
    Breadth-first solvability search with a visited-state budget.

    Nodes are full board configurations; edges are single legal forward
    pours of a whole run (bounded by destination capacity). Tube order is
    part of the board key, so permuted boards are distinct.

    Pruning:
        - destinations that are already completed are skipped
        - pours into an empty tube are skipped when they leave part of the
          run behind, or when the run is the source's entire content
          (relocating a finished stack makes no progress)

    Attributes:
        max_states: Visited-state budget per search
    """

    def __init__(self, max_states: int = DEFAULT_MAX_STATES):
        """
        Initialize the oracle.

        Args:
            max_states: Maximum distinct boards visited before giving up
        """
        if max_states < 1:
            raise ValueError(f"max_states must be >= 1, got {max_states}")
        self.max_states = max_states

    def is_solvable(self, state: PuzzleState) -> bool:
        """
        Check whether some sequence of legal pours sorts the board.

        Args:
            state: Board to check (not mutated)

        Returns:
            True if a sorted board is reachable within the budget
        """
        return self.search(state).solvable

    def search(self, state: PuzzleState,
               progress_callback: Optional[Callable[[float, str], None]] = None) -> SearchResult:
        """
        Run the search and return the solution path with metrics.

        Args:
            state: Board to search from (not mutated)
            progress_callback: Optional callback receiving budget usage

        Returns:
            SearchResult
        """
        context = SearchContext(state=state, max_states=self.max_states,
                                progress_callback=progress_callback)
        result = self._run(context)
        result.metrics.computation_time_ms = context.elapsed_ms()

        logger.debug(
            f"Search finished: solvable={result.solvable}, "
            f"{result.metrics.states_explored} states, "
            f"{result.metrics.pruned_branches} pruned, "
            f"{result.metrics.computation_time_ms:.1f}ms"
        )
        return result

    def _run(self, context: SearchContext) -> SearchResult:
        start = context.state

        if start.is_solved():
            return SearchResult(solvable=True, metrics=SearchMetrics(states_explored=1))

        if not start.has_complete_color_set():
            logger.debug("Color counts do not match tube height, board cannot be sorted")
            return SearchResult(solvable=False)

        max_height = start.max_height
        start_key = start.key()
        tube_indices = range(len(start_key))

        parents: ParentMap = {start_key: None}
        queue: Deque[StateKey] = deque([start_key])
        pruned = 0
        expansions = 0

        while queue:
            key = queue.popleft()
            expansions += 1
            if expansions % PROGRESS_INTERVAL == 0:
                context.report_progress(len(parents), f"{len(parents)} states visited")

            for from_index in tube_indices:
                source = key[from_index]
                if not source:
                    continue
                run = run_length(source)
                whole_tube = run == len(source)

                for to_index in tube_indices:
                    if from_index == to_index:
                        continue
                    target = key[to_index]
                    if _tube_completed(target, max_height):
                        pruned += 1
                        continue

                    outcome = pour_result(key, max_height, from_index, to_index)
                    if outcome is None:
                        continue
                    new_key, move = outcome

                    if not target and (move.count < run or whole_tube):
                        pruned += 1
                        continue
                    if new_key in parents:
                        continue

                    parents[new_key] = (key, move)
                    if _key_solved(new_key, max_height):
                        return SearchResult(
                            solvable=True,
                            moves=_trace_path(parents, new_key),
                            metrics=SearchMetrics(states_explored=len(parents),
                                                  pruned_branches=pruned),
                        )

                    if context.budget_exhausted(len(parents)):
                        logger.info(
                            f"Search budget of {context.max_states} states exhausted, "
                            f"treating board as unsolvable"
                        )
                        return SearchResult(
                            solvable=False,
                            budget_exhausted=True,
                            metrics=SearchMetrics(states_explored=len(parents),
                                                  pruned_branches=pruned),
                        )
                    queue.append(new_key)

        return SearchResult(
            solvable=False,
            metrics=SearchMetrics(states_explored=len(parents), pruned_branches=pruned),
        )


def is_solvable(state: PuzzleState, max_states: int = DEFAULT_MAX_STATES) -> bool:
    """Convenience wrapper around SolvabilityOracle.is_solvable."""
    return SolvabilityOracle(max_states=max_states).is_solvable(state)


def find_solution(state: PuzzleState, max_states: int = DEFAULT_MAX_STATES) -> SearchResult:
    """Convenience wrapper around SolvabilityOracle.search."""
    return SolvabilityOracle(max_states=max_states).search(state)
