"""
Transition Rule Module - Forward pour and reverse scramble rules.

The same legality check backs live play, the solvability search and the
generator, so all three agree on what a pour does.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .errors import IllegalPour
from .move import Move
from .state import PuzzleState, StateKey, run_length


class PourRejection(Enum):
    """
    Reasons a forward pour is refused.

    States:
        SOURCE_EMPTY: Nothing to pour
        SAME_TUBE: Source and destination are the same tube
        DESTINATION_FULL: Destination has no spare capacity
        COLOR_MISMATCH: Destination top color differs from the poured color
        INVALID_TUBE: Tube index out of range
    """
    SOURCE_EMPTY = auto()
    SAME_TUBE = auto()
    DESTINATION_FULL = auto()
    COLOR_MISMATCH = auto()
    INVALID_TUBE = auto()


@dataclass(frozen=True)
class PourResult:
    """
    Outcome of attempt_pour.

    Attributes:
        moved: True if segments were transferred
        source: Requested source tube index
        target: Requested destination tube index
        color: Color moved (None when rejected)
        count: Segments moved (0 when rejected)
        reason: Why the pour was refused (None when moved)
    """
    moved: bool
    source: int
    target: int
    color: Optional[int] = None
    count: int = 0
    reason: Optional[PourRejection] = None

    @property
    def move(self) -> Optional[Move]:
        """Move record for a successful pour."""
        if not self.moved:
            return None
        return Move(source=self.source, target=self.target,
                    color=self.color, count=self.count)


def check_pour(source: Sequence[int], target: Sequence[int],
               max_height: int) -> Union[Tuple[int, int], PourRejection]:
    """
    Decide whether the top run of source can be poured onto target.

    Args:
        source: Bottom-to-top colors of the source tube
        target: Bottom-to-top colors of the destination tube
        max_height: Shared tube capacity

    Returns:
        (color, count) for a legal pour, where count is
        min(run length, destination capacity), or the PourRejection
    """
    if not source:
        return PourRejection.SOURCE_EMPTY

    capacity = max_height - len(target)
    if capacity <= 0:
        return PourRejection.DESTINATION_FULL

    top_color = source[-1]
    if target and target[-1] != top_color:
        return PourRejection.COLOR_MISMATCH

    return top_color, min(run_length(source), capacity)


def attempt_pour(state: PuzzleState, from_index: int, to_index: int) -> PourResult:
    """
    Pour the top run of one tube into another, mutating state on success.

    A rejected pour leaves the state untouched.

    Args:
        state: Board to mutate
        from_index: Source tube index
        to_index: Destination tube index

    Returns:
        PourResult describing the transfer or the rejection
    """
    count = state.tube_count
    if not (0 <= from_index < count and 0 <= to_index < count):
        return PourResult(moved=False, source=from_index, target=to_index,
                          reason=PourRejection.INVALID_TUBE)
    if from_index == to_index:
        return PourResult(moved=False, source=from_index, target=to_index,
                          reason=PourRejection.SAME_TUBE)

    source = state.tubes[from_index]
    target = state.tubes[to_index]
    plan = check_pour(source.colors, target.colors, state.max_height)
    if isinstance(plan, PourRejection):
        return PourResult(moved=False, source=from_index, target=to_index, reason=plan)

    color, moved = plan
    source.remove_top(moved)
    target.add(color, moved)
    return PourResult(moved=True, source=from_index, target=to_index,
                      color=color, count=moved)


def pour(state: PuzzleState, from_index: int, to_index: int) -> Move:
    """
    Strict variant of attempt_pour.

    Raises:
        IllegalPour: If the pour is refused
    """
    result = attempt_pour(state, from_index, to_index)
    if not result.moved:
        raise IllegalPour(
            f"Cannot pour from tube {from_index} to tube {to_index}: {result.reason.name}",
            reason=result.reason,
        )
    return result.move


def pour_result(key: StateKey, max_height: int,
                from_index: int, to_index: int) -> Optional[Tuple[StateKey, Move]]:
    """
    Side-effect-free pour over a canonical board key.

    Args:
        key: Canonical key of the board
        max_height: Shared tube capacity
        from_index: Source tube index
        to_index: Destination tube index

    Returns:
        (new_key, move) for a legal pour, None otherwise
    """
    if from_index == to_index:
        return None

    source = key[from_index]
    target = key[to_index]
    plan = check_pour(source, target, max_height)
    if isinstance(plan, PourRejection):
        return None

    color, count = plan
    new_key = list(key)
    new_key[from_index] = source[:-count]
    new_key[to_index] = target + (color,) * count
    return tuple(new_key), Move(source=from_index, target=to_index,
                                color=color, count=count)


def legal_moves(state: PuzzleState) -> List[Move]:
    """
    List every legal forward pour from the given board.

    Returns:
        Moves in (source, target) index order
    """
    moves = []
    for from_index, source in enumerate(state.tubes):
        if source.is_empty:
            continue
        for to_index, target in enumerate(state.tubes):
            if from_index == to_index:
                continue
            plan = check_pour(source.colors, target.colors, state.max_height)
            if isinstance(plan, PourRejection):
                continue
            color, count = plan
            moves.append(Move(source=from_index, target=to_index,
                              color=color, count=count))
    return moves


def replay(state: PuzzleState, moves: Iterable[Move]) -> PuzzleState:
    """
    Apply a move sequence to a copy of state.

    Each move is re-validated against the rule; its recorded color and
    count must match what the rule produces.

    Raises:
        IllegalPour: If a move is refused or does not match
    """
    board = state.copy()
    for move in moves:
        applied = pour(board, move.source, move.target)
        if applied != move:
            raise IllegalPour(f"Replayed {applied} does not match recorded {move}")
    return board


def legal_reverse_pours(state: PuzzleState) -> List[Tuple[int, int]]:
    """
    List every (source, target) pair usable for a reverse pour.

    Reverse pours ignore colors: the source must be non-empty and the
    target must have spare capacity.
    """
    pairs = []
    for from_index, source in enumerate(state.tubes):
        if source.is_empty:
            continue
        for to_index, target in enumerate(state.tubes):
            if from_index != to_index and target.free_space > 0:
                pairs.append((from_index, to_index))
    return pairs


def reverse_pour(state: PuzzleState, from_index: int, to_index: int) -> int:
    """
    Move exactly one segment from one tube to another, without color matching.

    Args:
        state: Board to mutate
        from_index: Source tube index
        to_index: Destination tube index

    Returns:
        Color id of the moved segment

    Raises:
        IllegalPour: If source is empty, target is full, or indices coincide
    """
    if from_index == to_index:
        raise IllegalPour("Reverse pour needs two different tubes",
                          reason=PourRejection.SAME_TUBE)

    source = state.tube(from_index)
    target = state.tube(to_index)
    if source.is_empty:
        raise IllegalPour(f"Tube {from_index} is empty", reason=PourRejection.SOURCE_EMPTY)
    if target.free_space <= 0:
        raise IllegalPour(f"Tube {to_index} is full", reason=PourRejection.DESTINATION_FULL)

    (color,) = source.remove_top(1)
    target.add(color, 1)
    return color
