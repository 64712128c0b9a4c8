"""
Errors Module - Exception taxonomy for the puzzle core.
"""

from typing import Optional


class PuzzleError(Exception):
    """Base class for all puzzle core errors."""


class InvalidParameters(PuzzleError, ValueError):
    """
    Malformed geometry or board request.

    Raised at the entry of the call that received the bad input.
    Values are never silently clamped.
    """


class IllegalPour(PuzzleError):
    """
    A pour that violates the transition rule.

    Attributes:
        reason: PourRejection describing why the pour was refused
    """

    def __init__(self, message: str, reason: Optional[object] = None):
        super().__init__(message)
        self.reason = reason


class GenerationExhausted(PuzzleError):
    """
    All scramble attempts failed verification.

    Internal to the generator, which resolves it with the fallback board.
    """


class LedgerMismatch(PuzzleError):
    """The board no longer matches the ledger's most recent move."""
