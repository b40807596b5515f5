"""Backtracking search over grid cells: classification, sampling and deduction.

All three searches fill the first empty cell in index order, try each value,
and undo the assignment before returning. The grid passed in is therefore
left exactly as it was received; solutions are returned as copies.
"""

import random
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .model import UNFILLED, Grid
from .rules import cell_check
from src.utils.trace import Tracer, get_tracer

CellCheck = Callable[[Grid, int], bool]

# Frames kept free for the caller on top of one frame per empty cell.
RECURSION_HEADROOM = 500


class Outcome(Enum):
    NO_SOLUTION = "no-solution"
    UNIQUE_SOLUTION = "unique"
    MULTIPLE_SOLUTIONS = "multiple"


@dataclass
class SolveResult:
    """Classification of a grid plus one solution when any exists."""

    outcome: Outcome
    grid: Optional[Grid] = None

    @property
    def is_unique(self) -> bool:
        return self.outcome is Outcome.UNIQUE_SOLUTION

    @property
    def has_solution(self) -> bool:
        return self.outcome is not Outcome.NO_SOLUTION


def classify(grid: Grid, rule, tracer: Optional[Tracer] = None) -> SolveResult:
    """
    Decide whether `grid` has no, exactly one, or several completions under `rule`.
    Search stops as soon as a second solution is seen, so for MULTIPLE_SOLUTIONS
    the returned grid is just one of them.
    """
    tracer = tracer or get_tracer()
    ensure_recursion_room(grid)
    if not rule.is_valid(grid):
        result = SolveResult(Outcome.NO_SOLUTION)
    else:
        result = _classify(grid, cell_check(rule), 0, grid.filled_count(), tracer)
    tracer.log_classify(result.outcome.value, depth=grid.filled_count())
    return result


def find_one(
    grid: Grid,
    rule,
    rng: Optional[random.Random] = None,
    tracer: Optional[Tracer] = None,
) -> Optional[Grid]:
    """Return the first completion found trying values in shuffled order, or None."""
    tracer = tracer or get_tracer()
    rng = rng or random.Random()
    ensure_recursion_room(grid)
    if not rule.is_valid(grid):
        return None
    return _find_one(grid, cell_check(rule), 0, grid.filled_count(), rng, tracer)


def derive(grid: Grid, rule, tracer: Optional[Tracer] = None) -> Optional[Grid]:
    """
    Intersect every completion of `grid`: cells that hold the same value in all
    of them stay filled, all others come back empty. Returns None when there is
    no completion at all.

    This enumerates every solution, so it is only practical for grids with few
    empty cells.
    """
    tracer = tracer or get_tracer()
    ensure_recursion_room(grid)
    if not rule.is_valid(grid):
        return None

    check = cell_check(rule)
    cells = grid.cells
    side = grid.geometry.side
    accumulator: Optional[Grid] = None

    def visit(start: int) -> None:
        nonlocal accumulator
        index = _next_unfilled(cells, start)
        if index is None:
            tracer.log_solution_found(depth=len(cells))
            if accumulator is None:
                accumulator = grid.copy()
                return
            acc_cells = accumulator.cells
            for i, value in enumerate(cells):
                if acc_cells[i] != value:
                    acc_cells[i] = UNFILLED
            return
        try:
            for value in range(1, side + 1):
                cells[index] = value
                if check(grid, index):
                    visit(index + 1)
        finally:
            cells[index] = UNFILLED

    visit(0)
    return accumulator


def ensure_recursion_room(grid: Grid) -> None:
    """Raise the interpreter recursion limit so a search over `grid` fits.

    Searches recurse once per empty cell, which exceeds the default limit on
    large empty grids. The limit is only ever raised, never lowered.
    """
    needed = grid.geometry.cells - grid.filled_count() + RECURSION_HEADROOM
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)


def _classify(
    grid: Grid, check: CellCheck, start: int, depth: int, tracer: Tracer
) -> SolveResult:
    cells = grid.cells
    index = _next_unfilled(cells, start)
    if index is None:
        tracer.log_solution_found(depth=len(cells))
        return SolveResult(Outcome.UNIQUE_SOLUTION, grid.copy())

    tracing = tracer.enabled
    result = SolveResult(Outcome.NO_SOLUTION)
    try:
        for value in range(1, grid.geometry.side + 1):
            cells[index] = value
            if tracing:
                tracer.log_assign(index, value, depth=depth + 1)
            if not check(grid, index):
                continue
            sub_result = _classify(grid, check, index + 1, depth + 1, tracer)
            if sub_result.outcome is Outcome.NO_SOLUTION:
                continue
            if (
                sub_result.outcome is Outcome.UNIQUE_SOLUTION
                and result.outcome is Outcome.NO_SOLUTION
            ):
                result = sub_result
                continue
            # Either a second solution, or a branch that already holds two.
            result = SolveResult(Outcome.MULTIPLE_SOLUTIONS, sub_result.grid)
            break
    finally:
        cells[index] = UNFILLED

    if tracing and result.outcome is Outcome.NO_SOLUTION:
        tracer.log_backtrack(index)
    return result


def _find_one(
    grid: Grid,
    check: CellCheck,
    start: int,
    depth: int,
    rng: random.Random,
    tracer: Tracer,
) -> Optional[Grid]:
    cells = grid.cells
    index = _next_unfilled(cells, start)
    if index is None:
        tracer.log_solution_found(depth=len(cells))
        return grid.copy()

    tracing = tracer.enabled
    options: List[int] = list(range(1, grid.geometry.side + 1))
    rng.shuffle(options)
    try:
        for value in options:
            cells[index] = value
            if tracing:
                tracer.log_assign(index, value, depth=depth + 1)
            if not check(grid, index):
                continue
            found = _find_one(grid, check, index + 1, depth + 1, rng, tracer)
            if found is not None:
                return found
    finally:
        cells[index] = UNFILLED

    if tracing:
        tracer.log_backtrack(index)
    return None


def _next_unfilled(cells: List[int], start: int) -> Optional[int]:
    try:
        return cells.index(UNFILLED, start)
    except ValueError:
        return None
