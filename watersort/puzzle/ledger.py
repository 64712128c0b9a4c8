"""
Move Ledger Module - Ordered record of applied pours for undo and scoring.
"""

import logging
from typing import List, Optional

from .errors import LedgerMismatch
from .move import Move
from .scoring import estimate_optimal_moves
from .state import PuzzleState

logger = logging.getLogger(__name__)


class MoveLedger:
    """
    Append/pop-only history of successful pours.

    Undo is only exact immediately after the ledger's own most recent
    recorded move; manual edits to the board in between are detected
    where possible and rejected.

    Attributes:
        optimal_estimate: Heuristic lower bound on moves, fixed at generation
    """

    def __init__(self, optimal_estimate: int = 0):
        self._moves: List[Move] = []
        self.optimal_estimate = optimal_estimate

    @classmethod
    def for_puzzle(cls, state: PuzzleState) -> 'MoveLedger':
        """
        Create an empty ledger for a freshly generated board.

        Args:
            state: Initial board, used to fix the optimal move estimate

        Returns:
            MoveLedger instance
        """
        return cls(optimal_estimate=estimate_optimal_moves(state))

    @property
    def moves(self) -> List[Move]:
        """Copy of recorded moves, oldest first."""
        return list(self._moves)

    @property
    def move_count(self) -> int:
        return len(self._moves)

    @property
    def last_move(self) -> Optional[Move]:
        return self._moves[-1] if self._moves else None

    def __len__(self) -> int:
        return len(self._moves)

    def record(self, move: Move) -> None:
        """Append a move."""
        self._moves.append(move)

    def record_move(self, source: int, target: int, color: int, count: int) -> Move:
        """
        Append a move built from its fields.

        Returns:
            The recorded Move
        """
        move = Move(source=source, target=target, color=color, count=count)
        self.record(move)
        return move

    def undo_last(self, state: PuzzleState) -> Optional[Move]:
        """
        Pop the most recent move and transfer its segments back.

        Args:
            state: Board the move was applied to (mutated)

        Returns:
            The undone Move, or None if the ledger is empty

        Raises:
            LedgerMismatch: If the board's target tube does not end with
                the recorded segments, or the source cannot take them back
        """
        if not self._moves:
            return None

        move = self._moves[-1]
        back = move.inverse()
        giver = state.tube(back.source)
        taker = state.tube(back.target)

        top = giver.colors[-back.count:] if back.count <= len(giver.colors) else None
        if top is None or any(color != back.color for color in top):
            raise LedgerMismatch(f"Tube {back.source} does not end with the segments of {move}")
        if taker.free_space < back.count:
            raise LedgerMismatch(f"Tube {back.target} has no room to take back {move}")

        giver.remove_top(back.count)
        taker.add(back.color, back.count)
        self._moves.pop()

        logger.debug(f"Undid: {move.describe()}")
        return move

    def clear(self) -> None:
        """Empty the ledger."""
        self._moves.clear()


def undo(ledger: MoveLedger, state: PuzzleState) -> bool:
    """
    Undo the most recent pour.

    Returns:
        False if the ledger is empty, True otherwise
    """
    return ledger.undo_last(state) is not None
