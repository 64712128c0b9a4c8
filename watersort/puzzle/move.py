"""
Move Module - Represents a completed pour between two tubes.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Move:
    """
    Immutable record of a successful forward pour.

    Attributes:
        source: Index of the tube poured from
        target: Index of the tube poured into
        color: Color id of the moved segments
        count: Number of segments moved
    """
    source: int
    target: int
    color: int
    count: int

    def inverse(self) -> 'Move':
        """Move that transfers the same segments back."""
        return Move(source=self.target, target=self.source,
                    color=self.color, count=self.count)

    def describe(self) -> str:
        return f"Pour {self.count} from tube {self.source} to tube {self.target}"
