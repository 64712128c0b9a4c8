"""
Puzzle Package - Combinatorial core of the water sort puzzle.

This package holds the board model, the pour rule, the bounded
solvability search, the reverse-scramble generator, the move ledger and
the scorer. It knows nothing about rendering or input; a host calls these
operations and redraws the board after every mutation.

Public API:
    - PuzzleState, Tube: Board representation
    - Move: Record of a successful pour
    - attempt_pour(): Forward pour returning a PourResult
    - is_solved(), is_solvable(): Board classification
    - SolvabilityOracle: Configurable bounded search
    - PuzzleGenerator, new_puzzle(): Solvable board generation
    - MoveLedger, undo(): Move history
    - current_score(): Heuristic score

Usage:
    from watersort.puzzle import new_puzzle, attempt_pour, MoveLedger

    state = new_puzzle(tube_count=6, tube_height=5)
    ledger = MoveLedger.for_puzzle(state)

    result = attempt_pour(state, 0, 5)
    if result.moved:
        ledger.record(result.move)
"""

# Core data structures
from .state import PuzzleState, Tube, StateKey
from .move import Move
from .errors import (
    PuzzleError,
    InvalidParameters,
    IllegalPour,
    GenerationExhausted,
    LedgerMismatch,
)

# Transition rule
from .rules import (
    PourRejection,
    PourResult,
    attempt_pour,
    pour,
    legal_moves,
    replay,
    legal_reverse_pours,
    reverse_pour,
)

# Search, generation, history, scoring
from .context import SearchContext, DEFAULT_MAX_STATES
from .oracle import (
    SolvabilityOracle,
    SearchResult,
    SearchMetrics,
    is_solved,
    is_solvable,
    find_solution,
)
from .generator import PuzzleGenerator, GenerationReport, new_puzzle
from .ledger import MoveLedger, undo
from .scoring import current_score, compute_score, estimate_optimal_moves

__all__ = [
    # Data structures
    "PuzzleState",
    "Tube",
    "StateKey",
    "Move",
    # Errors
    "PuzzleError",
    "InvalidParameters",
    "IllegalPour",
    "GenerationExhausted",
    "LedgerMismatch",
    # Transition rule
    "PourRejection",
    "PourResult",
    "attempt_pour",
    "pour",
    "legal_moves",
    "replay",
    "legal_reverse_pours",
    "reverse_pour",
    # Search
    "SearchContext",
    "DEFAULT_MAX_STATES",
    "SolvabilityOracle",
    "SearchResult",
    "SearchMetrics",
    "is_solved",
    "is_solvable",
    "find_solution",
    # Generation
    "PuzzleGenerator",
    "GenerationReport",
    "new_puzzle",
    # History and scoring
    "MoveLedger",
    "undo",
    "current_score",
    "compute_score",
    "estimate_optimal_moves",
]
