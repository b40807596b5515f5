"""Grid model, rules, solver core and generator for Sudoku-style puzzles."""

from .model import CLASSIC, UNFILLED, Geometry, Grid, ParseError
from .rules import (
    ClassicRule,
    CompositeRule,
    DiagonalRule,
    EvenOddNeighborsRule,
    KingsMoveRule,
    KnightsMoveRule,
    NonconsecutiveRule,
    ParityMaskRule,
    Rule,
)
from .solver_core import Outcome, SolveResult, classify, derive, find_one
from .generator import (
    InconsistentRuleError,
    MultipleSolutionsError,
    NoSolutionError,
    PuzzleCreateError,
    fill_random,
    minimize,
)
from .parser import ParsedPuzzle, parse_puzzle, parse_rule

__all__ = [
    "CLASSIC",
    "UNFILLED",
    "Geometry",
    "Grid",
    "ParseError",
    "Rule",
    "ClassicRule",
    "KnightsMoveRule",
    "KingsMoveRule",
    "NonconsecutiveRule",
    "ParityMaskRule",
    "EvenOddNeighborsRule",
    "DiagonalRule",
    "CompositeRule",
    "Outcome",
    "SolveResult",
    "classify",
    "find_one",
    "derive",
    "fill_random",
    "minimize",
    "PuzzleCreateError",
    "NoSolutionError",
    "MultipleSolutionsError",
    "InconsistentRuleError",
    "ParsedPuzzle",
    "parse_puzzle",
    "parse_rule",
]
