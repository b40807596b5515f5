"""Puzzle generation: random solved grids and digging them down to minimal puzzles."""

import random
from typing import Callable, List, Optional

from .model import CLASSIC, UNFILLED, Geometry, Grid
from .solver_core import Outcome, classify, find_one
from src.utils.trace import Tracer, get_tracer

RemovalHook = Callable[[Grid, int], None]

STRATEGIES = ("draw", "scan")


class PuzzleCreateError(Exception):
    """The grid handed to `minimize` is not a uniquely solvable puzzle."""


class NoSolutionError(PuzzleCreateError):
    def __init__(self) -> None:
        super().__init__("No solution")


class MultipleSolutionsError(PuzzleCreateError):
    def __init__(self) -> None:
        super().__init__("Multiple solutions")


class InconsistentRuleError(RuntimeError):
    """Removing a digit made a solvable grid unsolvable; the rule rejects valid partial grids."""


def fill_random(
    rule,
    geometry: Geometry = CLASSIC,
    rng: Optional[random.Random] = None,
    tracer: Optional[Tracer] = None,
) -> Optional[Grid]:
    """Build a random complete grid satisfying `rule`, or None if none exists."""
    return find_one(Grid.empty(geometry), rule, rng=rng, tracer=tracer)


def minimize(
    grid: Grid,
    rule,
    rng: Optional[random.Random] = None,
    on_remove: Optional[RemovalHook] = None,
    tracer: Optional[Tracer] = None,
    strategy: str = "draw",
) -> Grid:
    """
    Remove digits from a uniquely solvable grid until no single further removal
    keeps the solution unique. The input grid is left untouched; the dug puzzle
    is returned.

    `strategy="draw"` picks random cells, excluding ones already found to be
    needed this round. `strategy="scan"` shuffles the filled cells once per
    round and tries them in that order. Both stop at a local minimum; different
    seeds give different puzzles.

    `on_remove(puzzle, index)` is called after each accepted removal.
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown digging strategy: {strategy!r}")
    tracer = tracer or get_tracer()
    rng = rng or random.Random()

    puzzle = grid.copy()
    result = classify(puzzle, rule, tracer)
    if result.outcome is Outcome.NO_SOLUTION:
        raise NoSolutionError()
    if result.outcome is Outcome.MULTIPLE_SOLUTIONS:
        raise MultipleSolutionsError()

    remove_digit = _remove_by_draw if strategy == "draw" else _remove_by_scan
    while True:
        index = remove_digit(puzzle, rule, rng, tracer)
        if index is None:
            break
        if on_remove is not None:
            on_remove(puzzle, index)
    return puzzle


def _try_removal(puzzle: Grid, index: int, rule, tracer: Tracer) -> bool:
    """Clear one cell; keep it cleared only if the solution stays unique."""
    cells = puzzle.cells
    old_value = cells[index]
    cells[index] = UNFILLED
    outcome = classify(puzzle, rule, tracer).outcome
    if outcome is Outcome.UNIQUE_SOLUTION:
        tracer.log_removal(index, old_value, depth=puzzle.filled_count(), grid_state=puzzle.serialize())
        return True
    cells[index] = old_value
    if outcome is Outcome.NO_SOLUTION:
        raise InconsistentRuleError(
            f"Clearing cell {index} left no solution for rule {getattr(rule, 'name', rule)!r}"
        )
    tracer.log_removal_rejected(index, old_value)
    return False


def _remove_by_draw(puzzle: Grid, rule, rng: random.Random, tracer: Tracer) -> Optional[int]:
    filled = puzzle.filled_indexes()
    unremovable = set()
    while len(unremovable) < len(filled):
        candidates: List[int] = [i for i in filled if i not in unremovable]
        index = rng.choice(candidates)
        if _try_removal(puzzle, index, rule, tracer):
            return index
        unremovable.add(index)
    return None


def _remove_by_scan(puzzle: Grid, rule, rng: random.Random, tracer: Tracer) -> Optional[int]:
    filled = puzzle.filled_indexes()
    rng.shuffle(filled)
    for index in filled:
        if _try_removal(puzzle, index, rule, tracer):
            return index
    return None
