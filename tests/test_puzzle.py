"""
Tests for the puzzle core

Covers:
1. PuzzleState / Tube construction and helpers
2. Forward pour rule and reverse pours
3. Solvability oracle
4. Generator
5. Move ledger and scoring

Usage:
    python tests/test_puzzle.py
    pytest tests/
"""

import random
import sys
from collections import deque
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from watersort.puzzle import (
    IllegalPour,
    InvalidParameters,
    LedgerMismatch,
    MoveLedger,
    Move,
    PourRejection,
    PuzzleGenerator,
    PuzzleState,
    SearchResult,
    SolvabilityOracle,
    Tube,
    attempt_pour,
    compute_score,
    current_score,
    estimate_optimal_moves,
    find_solution,
    is_solvable,
    is_solved,
    legal_moves,
    legal_reverse_pours,
    new_puzzle,
    pour,
    replay,
    reverse_pour,
    undo,
)
from watersort.puzzle.rules import pour_result
from watersort.puzzle.scoring import count_discontinuities


# ---------------------------------------------------------------------------
# PuzzleState
# ---------------------------------------------------------------------------

def test_tube_properties():
    tube = Tube(colors=[1, 2, 2], max_height=4)
    assert tube.top_color == 2
    assert tube.top_run_length == 2
    assert tube.free_space == 1
    assert not tube.is_full
    assert not tube.is_completed

    full = Tube(colors=[3, 3, 3], max_height=3)
    assert full.is_full
    assert full.is_completed

    empty = Tube(max_height=3)
    assert empty.is_empty
    assert empty.top_color is None
    assert empty.top_run_length == 0


def test_tube_rejects_overfill():
    with pytest.raises(InvalidParameters):
        Tube(colors=[1, 1, 1], max_height=2)


def test_state_key_and_copy_are_independent():
    state = PuzzleState.from_lists([[0, 1], [1, 0], []], max_height=2)
    clone = state.copy()
    assert clone == state
    assert clone.key() == ((0, 1), (1, 0), ())

    clone.tubes[2].colors.append(9)
    assert state.key() == ((0, 1), (1, 0), ())
    assert clone != state


def test_state_key_distinguishes_tube_order():
    a = PuzzleState.from_lists([[0, 1], [1, 0], []], max_height=2)
    b = PuzzleState.from_lists([[1, 0], [0, 1], []], max_height=2)
    assert a.key() != b.key()


def test_solved_seed():
    seed = PuzzleState.solved_seed(4, 3)
    assert seed.to_list() == [[0, 0, 0], [1, 1, 1], [2, 2, 2], []]
    assert seed.is_solved()
    assert seed.has_complete_color_set()
    assert seed.completed_count == 3


def test_from_lists_rejects_negative_colors():
    with pytest.raises(InvalidParameters):
        PuzzleState.from_lists([[0, -1], []], max_height=2)


# ---------------------------------------------------------------------------
# Transition rule
# ---------------------------------------------------------------------------

def test_pour_moves_top_segment_into_empty_tube():
    state = PuzzleState.from_lists([[1, 1, 2], []], max_height=4)
    result = attempt_pour(state, 0, 1)

    assert result.moved
    assert result.color == 2
    assert result.count == 1
    assert state.to_list() == [[1, 1], [2]]


def test_pour_is_limited_by_destination_capacity():
    # Run of three 3s, destination has room for one. Height 4 stands in for
    # the height-2 layout, which cannot hold three segments in one tube
    state = PuzzleState.from_lists([[1, 3, 3, 3], [3, 3, 3]], max_height=4)
    result = attempt_pour(state, 0, 1)

    assert result.moved
    assert result.count == 1
    assert state.to_list() == [[1, 3, 3], [3, 3, 3, 3]]
    assert state.tubes[1].is_completed


def test_pour_moves_whole_run_when_room():
    state = PuzzleState.from_lists([[0, 2, 2], [2], []], max_height=4)
    result = attempt_pour(state, 0, 1)
    assert result.count == 2
    assert state.to_list() == [[0], [2, 2, 2], []]


def test_pour_color_mismatch_is_rejected_without_mutation():
    state = PuzzleState.from_lists([[2], [5]], max_height=4)
    before = state.copy()
    result = attempt_pour(state, 0, 1)

    assert not result.moved
    assert result.reason == PourRejection.COLOR_MISMATCH
    assert result.move is None
    assert state == before


@pytest.mark.parametrize("stacks, source, target, reason", [
    ([[], [1]], 0, 1, PourRejection.SOURCE_EMPTY),
    ([[1], [2, 2]], 0, 1, PourRejection.DESTINATION_FULL),
    ([[1], []], 0, 0, PourRejection.SAME_TUBE),
    ([[1], []], 0, 5, PourRejection.INVALID_TUBE),
    ([[1], []], -1, 0, PourRejection.INVALID_TUBE),
])
def test_pour_rejections(stacks, source, target, reason):
    state = PuzzleState.from_lists(stacks, max_height=2)
    before = state.copy()
    result = attempt_pour(state, source, target)
    assert not result.moved
    assert result.reason == reason
    assert state == before


def test_strict_pour_raises_with_reason():
    state = PuzzleState.from_lists([[2], [5]], max_height=4)
    with pytest.raises(IllegalPour) as excinfo:
        pour(state, 0, 1)
    assert excinfo.value.reason == PourRejection.COLOR_MISMATCH


def test_pour_result_does_not_touch_key():
    key = ((1, 1, 2), ())
    outcome = pour_result(key, 4, 0, 1)
    assert outcome is not None
    new_key, move = outcome
    assert key == ((1, 1, 2), ())
    assert new_key == ((1, 1), (2,))
    assert move == Move(source=0, target=1, color=2, count=1)
    assert pour_result(key, 4, 1, 0) is None


def test_legal_pours_preserve_segments():
    state = PuzzleState.from_lists([[0, 1, 1], [1, 0], [0, 0, 1], []], max_height=3)
    counts = state.color_counts()
    total = state.total_segments

    moves = legal_moves(state)
    assert moves
    for move in moves:
        board = state.copy()
        applied = pour(board, move.source, move.target)
        assert applied == move
        assert board.total_segments == total
        assert board.color_counts() == counts


def test_reverse_pour_ignores_colors():
    state = PuzzleState.from_lists([[0, 0], [1], []], max_height=2)
    assert (0, 1) in legal_reverse_pours(state)

    color = reverse_pour(state, 0, 1)
    assert color == 0
    assert state.to_list() == [[0], [1, 0], []]


def test_reverse_pour_rejects_full_target():
    state = PuzzleState.solved_seed(3, 2)
    assert legal_reverse_pours(state) == [(0, 2), (1, 2)]
    with pytest.raises(IllegalPour):
        reverse_pour(state, 0, 1)
    with pytest.raises(IllegalPour):
        reverse_pour(state, 2, 0)


# ---------------------------------------------------------------------------
# Solvability oracle
# ---------------------------------------------------------------------------

def test_full_single_color_tubes_are_solved():
    state = PuzzleState.from_lists([[c] * 4 for c in range(4)], max_height=4)
    assert is_solved(state)
    assert is_solvable(state)


def test_solved_with_empty_tubes():
    state = PuzzleState.from_lists([[0, 0], [], [1, 1]], max_height=2)
    assert is_solved(state)


def test_partial_tube_is_not_solved():
    state = PuzzleState.from_lists([[0], [0], []], max_height=2)
    assert not is_solved(state)
    assert is_solvable(state)


def test_incomplete_color_set_is_rejected():
    state = PuzzleState.from_lists([[0, 0, 0], [1, 1, 1, 1], []], max_height=4)
    result = find_solution(state)
    assert not result.solvable
    assert not result.budget_exhausted


def test_simple_board_has_solution_path():
    state = PuzzleState.from_lists([[0, 1], [1, 0], []], max_height=2)
    result = find_solution(state)

    assert result.solvable
    assert result.moves
    assert result.first_move == result.moves[0]
    assert replay(state, result.moves).is_solved()
    # Start board untouched
    assert state.to_list() == [[0, 1], [1, 0], []]


def test_dead_board_is_unsolvable():
    state = PuzzleState.from_lists([[0, 1], [1, 0]], max_height=2)
    result = SolvabilityOracle().search(state)
    assert not result.solvable
    assert not result.budget_exhausted


def test_budget_exhaustion_reports_unsolvable():
    state = PuzzleState.from_lists([[0, 1], [1, 0], []], max_height=2)
    result = SolvabilityOracle(max_states=1).search(state)
    assert not result.solvable
    assert result.budget_exhausted


def test_larger_board_solution_replays():
    state = PuzzleState.from_lists(
        [[0, 1, 2], [2, 0, 1], [1, 2, 0], []], max_height=3
    )
    result = find_solution(state)
    assert result.solvable
    assert replay(state, result.moves).is_solved()
    assert result.metrics.states_explored > 1


def test_progress_callback_receives_budget_fraction():
    reports = []
    state = PuzzleState.from_lists([[0, 1], [1, 0], []], max_height=2)
    SolvabilityOracle().search(state, progress_callback=lambda p, m: reports.append(p))
    assert all(0.0 <= p <= 1.0 for p in reports)


def test_oracle_rejects_zero_budget():
    with pytest.raises(ValueError):
        SolvabilityOracle(max_states=0)


def _exhaustive_solvable(state):
    """Plain BFS over every legal pour, no pruning and no budget."""
    height = state.max_height
    start = state.key()
    seen = {start}
    queue = deque([start])
    while queue:
        key = queue.popleft()
        if PuzzleState.from_lists(key, height).is_solved():
            return True
        for from_index in range(len(key)):
            for to_index in range(len(key)):
                outcome = pour_result(key, height, from_index, to_index)
                if outcome is not None and outcome[0] not in seen:
                    seen.add(outcome[0])
                    queue.append(outcome[0])
    return False


def _random_board(rng, tube_count, tube_height):
    segments = [c for c in range(tube_count - 1) for _ in range(tube_height)]
    rng.shuffle(segments)
    stacks = [[] for _ in range(tube_count)]
    for color in segments:
        open_tubes = [s for s in stacks if len(s) < tube_height]
        rng.choice(open_tubes).append(color)
    return PuzzleState.from_lists(stacks, max_height=tube_height)


@pytest.mark.parametrize("tube_count, tube_height", [(3, 2), (3, 3), (4, 2), (4, 3)])
def test_pruned_search_agrees_with_exhaustive_search(tube_count, tube_height):
    rng = random.Random(tube_count * 10 + tube_height)
    oracle = SolvabilityOracle()
    for _ in range(50):
        state = _random_board(rng, tube_count, tube_height)
        assert oracle.is_solvable(state) == _exhaustive_solvable(state), state.to_list()


def test_pruning_skips_completed_and_relocating_pours():
    # Tube 0 is completed; pouring tube 1 or 2 whole into tube 3 only relocates it
    state = PuzzleState.from_lists([[0, 0], [1], [1], []], max_height=2)
    result = SolvabilityOracle().search(state)

    assert result.solvable
    assert result.metrics.pruned_branches > 0
    assert replay(state, result.moves).is_solved()


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("seed", range(5))
def test_generated_4x4_is_solvable_and_scrambled(seed):
    state = PuzzleGenerator(rng=random.Random(seed)).generate(4, 4)

    assert state.tube_count == 4
    assert state.max_height == 4
    assert is_solvable(state)
    assert not is_solved(state)


@pytest.mark.parametrize("tube_count, tube_height", [(2, 3), (3, 2), (5, 3), (4, 5)])
def test_generated_color_counts_match_height(tube_count, tube_height):
    state = new_puzzle(tube_count, tube_height, rng=random.Random(99))

    counts = state.color_counts()
    assert sorted(counts) == list(range(tube_count - 1))
    assert all(count == tube_height for count in counts.values())
    assert is_solvable(state)


def test_generation_is_reproducible():
    a = PuzzleGenerator(rng=random.Random(42)).generate(5, 4)
    b = PuzzleGenerator(rng=random.Random(42)).generate(5, 4)
    assert a.to_list() == b.to_list()


@pytest.mark.parametrize("tube_count, tube_height", [(1, 4), (0, 4), (4, 0), (3, -1)])
def test_invalid_geometry_is_rejected(tube_count, tube_height):
    with pytest.raises(InvalidParameters):
        new_puzzle(tube_count, tube_height)


class _RejectingOracle(SolvabilityOracle):
    """Oracle that never certifies a board."""

    def search(self, state, progress_callback=None):
        return SearchResult(solvable=False, budget_exhausted=True)


def test_generator_falls_back_after_attempts():
    generator = PuzzleGenerator(rng=random.Random(3), max_attempts=2, oracle=_RejectingOracle())
    report = generator.generate_with_report(6, 5)

    assert report.used_fallback
    assert report.attempts == 2
    counts = report.state.color_counts()
    assert all(count == 5 for count in counts.values())
    assert report.state.total_segments == 25


@pytest.mark.parametrize("tube_count, tube_height", [(4, 4), (2, 2), (3, 2)])
def test_fallback_board_is_never_sorted(tube_count, tube_height):
    # Two pours on a 2x2 board always return to a sorted layout
    for seed in range(40):
        generator = PuzzleGenerator(rng=random.Random(seed), max_attempts=1,
                                    oracle=_RejectingOracle())
        report = generator.generate_with_report(tube_count, tube_height)
        assert report.used_fallback
        assert not report.state.is_solved()
        assert report.state.total_segments == (tube_count - 1) * tube_height


def test_height_one_uses_fallback():
    # Every arrangement of single segments is already sorted
    report = PuzzleGenerator(rng=random.Random(0)).generate_with_report(3, 1)
    assert report.used_fallback
    assert report.state.is_solved()


# ---------------------------------------------------------------------------
# Move ledger
# ---------------------------------------------------------------------------

def test_undo_restores_exact_segments():
    state = PuzzleState.from_lists([[0, 1, 1], [1], [0, 0, 0]], max_height=4)
    before = state.copy()
    ledger = MoveLedger()

    result = attempt_pour(state, 0, 1)
    ledger.record(result.move)
    assert state.to_list() == [[0], [1, 1, 1], [0, 0, 0]]

    assert undo(ledger, state)
    assert state == before
    assert len(ledger) == 0


def test_undo_several_moves_in_order():
    state = PuzzleState.from_lists([[0, 1], [1, 0], []], max_height=2)
    before = state.copy()
    ledger = MoveLedger()

    for source, target in [(0, 2), (1, 0), (1, 2)]:
        ledger.record(pour(state, source, target))
    assert state.is_solved()

    while undo(ledger, state):
        pass
    assert state == before


def test_undo_on_empty_ledger_is_noop():
    state = PuzzleState.from_lists([[0], []], max_height=1)
    ledger = MoveLedger()
    assert undo(ledger, state) is False
    assert ledger.undo_last(state) is None


def test_undo_detects_edited_board():
    state = PuzzleState.from_lists([[0, 1], [], [1, 0]], max_height=2)
    ledger = MoveLedger()
    ledger.record(pour(state, 0, 1))

    state.tubes[1].colors[-1] = 7
    with pytest.raises(LedgerMismatch):
        ledger.undo_last(state)
    assert len(ledger) == 1


def test_record_move_and_clear():
    ledger = MoveLedger()
    move = ledger.record_move(0, 1, color=3, count=2)
    assert ledger.last_move == move
    assert ledger.moves == [move]
    ledger.clear()
    assert ledger.move_count == 0


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def test_optimal_estimate_counts_discontinuities():
    state = PuzzleState.from_lists([[0, 1, 0], [1, 1, 0], []], max_height=3)
    assert count_discontinuities(state) == 3
    assert estimate_optimal_moves(state) == 3

    split = PuzzleState.from_lists([[0], [0], []], max_height=2)
    assert estimate_optimal_moves(split) == 1

    assert estimate_optimal_moves(PuzzleState.solved_seed(3, 3)) == 0


def test_ledger_for_puzzle_fixes_estimate():
    state = PuzzleState.from_lists([[0, 1, 0], [1, 1, 0], []], max_height=3)
    assert MoveLedger.for_puzzle(state).optimal_estimate == 3


def test_score_is_deterministic():
    assert compute_score(7, 5, 0.5, 1234, False) == compute_score(7, 5, 0.5, 1234, False)


def test_score_factors():
    assert compute_score(5, 5, 0.0, 0, False) == 500
    assert compute_score(5, 5, 0.0, 600_000, False) == 250
    assert compute_score(5, 5, 1.0, 0, True) == 2000
    assert compute_score(10, 5, 0.5, 0, False) < compute_score(5, 5, 0.5, 0, False)
    assert compute_score(5, 5, 1.0, 0, False) > compute_score(5, 5, 0.0, 0, False)


def test_score_rejects_negative_time():
    with pytest.raises(InvalidParameters):
        compute_score(0, 0, 0.0, -1, False)


def test_current_score_on_solved_board():
    state = PuzzleState.solved_seed(3, 2)
    ledger = MoveLedger.for_puzzle(state)
    assert current_score(ledger, state, 0) == 2000


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
