"""
Puzzle State Module - Tube and board representation for the water sort puzzle.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .errors import InvalidParameters


# Canonical board key: one tuple of color ids per tube, tubes in index order
StateKey = Tuple[Tuple[int, ...], ...]


def run_length(colors: Sequence[int]) -> int:
    """
    Count consecutive segments of the top color, from the top down.

    Args:
        colors: Bottom-to-top color ids of one tube

    Returns:
        Length of the longest uniform-colored suffix (0 if empty)
    """
    if not colors:
        return 0

    top = colors[-1]
    count = 0
    for color in reversed(colors):
        if color != top:
            break
        count += 1
    return count


@dataclass
class Tube:
    """
    A capacity-bounded stack of colored segments.

    Index 0 of colors is the bottom segment, the last index is the top.

    Attributes:
        colors: Color ids from bottom to top
        max_height: Maximum number of segments the tube can hold
    """
    colors: List[int] = field(default_factory=list)
    max_height: int = 4

    def __post_init__(self):
        if self.max_height < 1:
            raise InvalidParameters(f"max_height must be >= 1, got {self.max_height}")
        if len(self.colors) > self.max_height:
            raise InvalidParameters(
                f"Tube holds {len(self.colors)} segments, capacity is {self.max_height}"
            )

    @property
    def is_empty(self) -> bool:
        return not self.colors

    @property
    def is_full(self) -> bool:
        return len(self.colors) == self.max_height

    @property
    def is_completed(self) -> bool:
        """Full and every segment is the same color."""
        return self.is_full and all(c == self.colors[0] for c in self.colors)

    @property
    def free_space(self) -> int:
        return self.max_height - len(self.colors)

    @property
    def top_color(self) -> Optional[int]:
        """Color of the top segment, or None if empty."""
        return self.colors[-1] if self.colors else None

    @property
    def top_run_length(self) -> int:
        """Length of the uniform-colored run at the top (0 if empty)."""
        return run_length(self.colors)

    def remove_top(self, count: int) -> List[int]:
        """
        Remove segments from the top of the tube.

        Args:
            count: Number of segments to remove

        Returns:
            Removed segments in bottom-to-top order
        """
        if count < 0 or count > len(self.colors):
            raise InvalidParameters(f"Cannot remove {count} segments from {len(self.colors)}")
        if count == 0:
            return []
        removed = self.colors[-count:]
        del self.colors[-count:]
        return removed

    def add(self, color: int, count: int) -> None:
        """
        Append segments of one color to the top of the tube.

        Args:
            color: Color id to add
            count: Number of segments
        """
        if count < 0 or count > self.free_space:
            raise InvalidParameters(
                f"Cannot add {count} segments, only {self.free_space} free"
            )
        self.colors.extend([color] * count)

    def copy(self) -> 'Tube':
        return Tube(colors=list(self.colors), max_height=self.max_height)


@dataclass
class PuzzleState:
    """
    Mutable board: an ordered sequence of tubes sharing one capacity.

    Tube order is fixed for display and addressing. Forward pours during
    play and reverse pours during generation mutate the state in place;
    searches work on copies or on canonical keys.

    Attributes:
        tubes: Tubes in display order
        max_height: Capacity shared by every tube
    """
    tubes: List[Tube]
    max_height: int

    def __post_init__(self):
        if self.max_height < 1:
            raise InvalidParameters(f"max_height must be >= 1, got {self.max_height}")
        for index, tube in enumerate(self.tubes):
            if tube.max_height != self.max_height:
                raise InvalidParameters(
                    f"Tube {index} has capacity {tube.max_height}, board uses {self.max_height}"
                )

    @classmethod
    def from_lists(cls, stacks: Sequence[Sequence[int]], max_height: int) -> 'PuzzleState':
        """
        Create a PuzzleState from bottom-to-top color lists.

        Args:
            stacks: One sequence of color ids per tube
            max_height: Shared tube capacity

        Returns:
            PuzzleState instance

        Raises:
            InvalidParameters: If a stack exceeds max_height or a color id is negative
        """
        for stack in stacks:
            if any(color < 0 for color in stack):
                raise InvalidParameters(f"Color ids must be non-negative: {list(stack)}")
        tubes = [Tube(colors=list(stack), max_height=max_height) for stack in stacks]
        return cls(tubes=tubes, max_height=max_height)

    @classmethod
    def solved_seed(cls, tube_count: int, tube_height: int) -> 'PuzzleState':
        """
        Build the sorted starting board used by the generator.

        The first tube_count - 1 tubes are filled with one distinct color
        each; the last tube is empty.

        Args:
            tube_count: Number of tubes (>= 2)
            tube_height: Tube capacity (>= 1)

        Returns:
            Solved PuzzleState
        """
        if tube_count < 2:
            raise InvalidParameters(f"tube_count must be >= 2, got {tube_count}")
        if tube_height < 1:
            raise InvalidParameters(f"tube_height must be >= 1, got {tube_height}")

        stacks = [[color] * tube_height for color in range(tube_count - 1)]
        stacks.append([])
        return cls.from_lists(stacks, tube_height)

    @property
    def tube_count(self) -> int:
        return len(self.tubes)

    @property
    def total_segments(self) -> int:
        return sum(len(tube.colors) for tube in self.tubes)

    @property
    def completed_count(self) -> int:
        """Number of completed (full, monochrome) tubes."""
        return sum(1 for tube in self.tubes if tube.is_completed)

    @property
    def colors(self) -> List[int]:
        """Sorted distinct color ids present on the board."""
        return sorted(self.color_counts())

    def color_counts(self) -> Counter:
        """
        Count segments per color across all tubes.

        Returns:
            Counter mapping color id to total segment count
        """
        counts: Counter = Counter()
        for tube in self.tubes:
            counts.update(tube.colors)
        return counts

    def has_complete_color_set(self) -> bool:
        """True if every present color has exactly max_height segments."""
        return all(count == self.max_height for count in self.color_counts().values())

    def is_solved(self) -> bool:
        """True if every tube is completed or empty."""
        return all(tube.is_empty or tube.is_completed for tube in self.tubes)

    def key(self) -> StateKey:
        """
        Canonical hashable key used for visited-state deduplication.

        Tube order is part of the key; permuted boards are distinct.
        """
        return tuple(tuple(tube.colors) for tube in self.tubes)

    def copy(self) -> 'PuzzleState':
        """Deep copy, segment for segment."""
        return PuzzleState(tubes=[tube.copy() for tube in self.tubes],
                           max_height=self.max_height)

    def tube(self, index: int) -> Tube:
        """
        Get tube at index.

        Raises:
            IndexError: If index out of range
        """
        if not 0 <= index < len(self.tubes):
            raise IndexError(f"Tube index {index} out of range (0-{len(self.tubes) - 1})")
        return self.tubes[index]

    def to_list(self) -> List[List[int]]:
        """
        Convert to mutable nested list representation.

        Returns:
            List of bottom-to-top color lists
        """
        return [list(tube.colors) for tube in self.tubes]

    def __str__(self) -> str:
        rows = []
        for index, tube in enumerate(self.tubes):
            body = " ".join(str(c) for c in tube.colors)
            rows.append(f"{index:>2}: [{body}]")
        return "\n".join(rows)
