"""Top-level solve interface.

Expose `solve_puzzle(puzzle, rule=None)` that accepts a `Grid`, a digit string,
or a raw puzzle dictionary compatible with `src.sudoku.parser.parse_puzzle`.
"""

from typing import Any, Optional

from src.sudoku import solver_core
from src.sudoku.model import Grid
from src.sudoku.parser import parse_puzzle
from src.sudoku.rules import ClassicRule
from src.sudoku.solver_core import SolveResult


def solve_puzzle(puzzle: Any, rule: Optional[Any] = None) -> SolveResult:
    """
    Classify a puzzle and return its SolveResult.
    Accepts:
      - Grid instances (solved under `rule`, classic rules by default)
      - Digit strings (parsed with the geometry inferred from their length)
      - Raw puzzle dictionaries (parsed via `parse_puzzle`; their "rules" field
        applies unless `rule` is given)
    """
    if isinstance(puzzle, Grid):
        grid = puzzle
    elif isinstance(puzzle, str):
        grid = Grid.parse(puzzle)
    elif isinstance(puzzle, dict):
        parsed = parse_puzzle(puzzle)
        grid = parsed.grid
        rule = rule or parsed.rule
    else:
        raise TypeError("solve_puzzle expects a Grid, a digit string or a puzzle dictionary")

    return solver_core.classify(grid, rule or ClassicRule())


__all__ = ["solve_puzzle"]
