"""
Difficulty Module - Registry of named board geometries.
"""

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Difficulty:
    """
    Named tube geometry.

    Attributes:
        name: Identifier (e.g., "EASY")
        tube_count: Number of tubes, one of which starts empty
        tube_height: Segments per tube
        description: Human-readable label
    """
    name: str
    tube_count: int
    tube_height: int
    description: str = ""


# Global registry of difficulties, in registration order
_DIFFICULTIES: Dict[str, Difficulty] = {}


def register_difficulty(difficulty: Difficulty) -> Difficulty:
    """
    Register a difficulty preset.

    Args:
        difficulty: Preset to register (replaces one with the same name)

    Returns:
        The same preset
    """
    _DIFFICULTIES[difficulty.name] = difficulty
    return difficulty


def get_difficulty(name: str) -> Difficulty:
    """
    Look up a difficulty by name (case-insensitive).

    Raises:
        ValueError: If name not found
    """
    key = name.upper()
    if key not in _DIFFICULTIES:
        available = ", ".join(_DIFFICULTIES.keys())
        raise ValueError(f"Unknown difficulty: {name}. Available: {available}")
    return _DIFFICULTIES[key]


def get_difficulty_names() -> List[str]:
    """
    Get list of available difficulty names.

    Returns:
        Names in registration order
    """
    return list(_DIFFICULTIES.keys())


def get_difficulty_info() -> List[Dict[str, object]]:
    """
    Get geometry and description for all registered difficulties.

    Returns:
        List of dicts with 'name', 'tube_count', 'tube_height' and 'description'
    """
    return [
        {
            "name": d.name,
            "tube_count": d.tube_count,
            "tube_height": d.tube_height,
            "description": d.description,
        }
        for d in _DIFFICULTIES.values()
    ]


def get_default_difficulty_name() -> str:
    """
    Get the default difficulty name.

    Returns:
        "MEDIUM" if available, else first registered
    """
    if "MEDIUM" in _DIFFICULTIES:
        return "MEDIUM"
    if _DIFFICULTIES:
        return next(iter(_DIFFICULTIES.keys()))
    return ""


register_difficulty(Difficulty("EASY", 4, 4, "Easy - 4 tubes of 4"))
register_difficulty(Difficulty("MEDIUM", 6, 5, "Medium - 6 tubes of 5"))
register_difficulty(Difficulty("HARD", 8, 6, "Hard - 8 tubes of 6"))
