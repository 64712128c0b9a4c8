"""
Water Sort Puzzle - puzzle core plus host-side session helpers.

Subpackages:
    - watersort.puzzle: board model, pour rule, solver, generator, scoring
    - watersort.session: game session state machine
    - watersort.difficulty: named difficulty presets
"""

__version__ = "0.1.0"
