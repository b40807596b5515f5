"""Puzzle rules: validity predicates over partially filled grids.

Every rule answers `is_valid(grid)`. A rule must never reject a grid whose
filled cells could still be extended to a valid complete grid, otherwise the
solver would prune real solutions.

The built-in rules also answer `is_valid_at(grid, index)`: the same question,
assuming the grid was valid before `index` was assigned. The solver uses it
after every assignment, which keeps each step proportional to the number of
cells the rule relates to `index` instead of the whole board.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence, Tuple

from .model import UNFILLED, Geometry, Grid

Offsets = Tuple[Tuple[int, int], ...]

KNIGHT_OFFSETS: Offsets = (
    (-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1),
)
KING_DIAGONAL_OFFSETS: Offsets = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ORTHOGONAL_OFFSETS: Offsets = ((-1, 0), (1, 0), (0, -1), (0, 1))


@lru_cache(maxsize=None)
def neighbor_table(geometry: Geometry, offsets: Offsets) -> Tuple[Tuple[int, ...], ...]:
    """For each cell, the in-bounds cells reached by `offsets`."""
    side = geometry.side
    table = []
    for index in range(geometry.cells):
        row, col = divmod(index, side)
        cells = []
        for dr, dc in offsets:
            r, c = row + dr, col + dc
            if 0 <= r < side and 0 <= c < side:
                cells.append(r * side + c)
        table.append(tuple(cells))
    return tuple(table)


def is_valid_classic(grid: Grid) -> bool:
    """No row, column or box contains a repeated filled value."""
    cells = grid.cells
    for unit in grid.geometry.units():
        seen = set()
        for index in unit:
            value = cells[index]
            if value == UNFILLED:
                continue
            if value in seen:
                return False
            seen.add(value)
    return True


def is_valid_classic_at(grid: Grid, index: int) -> bool:
    cells = grid.cells
    value = cells[index]
    if value == UNFILLED:
        return True
    for peer in grid.geometry.peers()[index]:
        if cells[peer] == value:
            return False
    return True


class Rule:
    """Base class for built-in rules.

    Third-party rules need not inherit from this; any object with an
    `is_valid(grid)` method is accepted by the solver.
    """

    name: str = "rule"

    def is_valid(self, grid: Grid) -> bool:
        raise NotImplementedError

    def is_valid_at(self, grid: Grid, index: int) -> bool:
        return self.is_valid(grid)

    def __and__(self, other: "Rule") -> "CompositeRule":
        return CompositeRule([self, other])


@dataclass
class ClassicRule(Rule):
    name: str = "classic"

    def is_valid(self, grid: Grid) -> bool:
        return is_valid_classic(grid)

    def is_valid_at(self, grid: Grid, index: int) -> bool:
        return is_valid_classic_at(grid, index)


@dataclass
class _VariantRule(Rule):
    """A variant constraint, optionally layered on top of classic rules."""

    classic: bool = True

    def _variant_valid(self, grid: Grid) -> bool:
        raise NotImplementedError

    def _variant_valid_at(self, grid: Grid, index: int) -> bool:
        raise NotImplementedError

    def is_valid(self, grid: Grid) -> bool:
        if not self._variant_valid(grid):
            return False
        return not self.classic or is_valid_classic(grid)

    def is_valid_at(self, grid: Grid, index: int) -> bool:
        if not self._variant_valid_at(grid, index):
            return False
        return not self.classic or is_valid_classic_at(grid, index)


@dataclass
class _AntiMoveRule(_VariantRule):
    """No two cells a fixed move apart share the same filled value."""

    offsets: Offsets = ()

    def _variant_valid(self, grid: Grid) -> bool:
        cells = grid.cells
        table = neighbor_table(grid.geometry, self.offsets)
        for index, value in enumerate(cells):
            if value == UNFILLED:
                continue
            for other in table[index]:
                if cells[other] == value:
                    return False
        return True

    def _variant_valid_at(self, grid: Grid, index: int) -> bool:
        cells = grid.cells
        value = cells[index]
        if value == UNFILLED:
            return True
        for other in neighbor_table(grid.geometry, self.offsets)[index]:
            if cells[other] == value:
                return False
        return True


@dataclass
class KnightsMoveRule(_AntiMoveRule):
    offsets: Offsets = KNIGHT_OFFSETS
    name: str = "knights"


@dataclass
class KingsMoveRule(_AntiMoveRule):
    # Orthogonal king moves are already covered by rows and columns.
    offsets: Offsets = KING_DIAGONAL_OFFSETS
    name: str = "kings"


@dataclass
class NonconsecutiveRule(_VariantRule):
    """Orthogonally adjacent filled cells never differ by exactly one."""

    name: str = "nonconsecutive"

    def _variant_valid(self, grid: Grid) -> bool:
        return all(self._variant_valid_at(grid, i) for i in range(len(grid)))

    def _variant_valid_at(self, grid: Grid, index: int) -> bool:
        cells = grid.cells
        value = cells[index]
        if value == UNFILLED:
            return True
        for other in neighbor_table(grid.geometry, ORTHOGONAL_OFFSETS)[index]:
            neighbor = cells[other]
            if neighbor != UNFILLED and abs(neighbor - value) == 1:
                return False
        return True


@dataclass(init=False)
class ParityMaskRule(_VariantRule):
    """Filled cells must share the parity of the mask cell at their position.

    Empty mask cells place no restriction.
    """

    mask: Optional[Grid] = None
    name: str = "parity"

    def __init__(self, mask: Grid, classic: bool = True) -> None:
        if not isinstance(mask, Grid):
            raise TypeError(f"Parity mask must be a Grid, got {type(mask).__name__}")
        self.mask = mask
        self.classic = classic

    @classmethod
    def parse(
        cls, text: str, geometry: Optional[Geometry] = None, classic: bool = True
    ) -> "ParityMaskRule":
        return cls(classic=classic, mask=Grid.parse(text, geometry))

    def _variant_valid(self, grid: Grid) -> bool:
        return all(self._variant_valid_at(grid, i) for i in range(len(grid)))

    def _variant_valid_at(self, grid: Grid, index: int) -> bool:
        value = grid.cells[index]
        template = self.mask.cells[index]
        if value == UNFILLED or template == UNFILLED:
            return True
        return value % 2 == template % 2


@dataclass
class EvenOddNeighborsRule(_VariantRule):
    """No even digit is orthogonally adjacent to another even digit."""

    name: str = "even-odd"

    def _variant_valid(self, grid: Grid) -> bool:
        return all(self._variant_valid_at(grid, i) for i in range(len(grid)))

    def _variant_valid_at(self, grid: Grid, index: int) -> bool:
        cells = grid.cells
        value = cells[index]
        if value == UNFILLED or value % 2:
            return True
        for other in neighbor_table(grid.geometry, ORTHOGONAL_OFFSETS)[index]:
            neighbor = cells[other]
            if neighbor != UNFILLED and neighbor % 2 == 0:
                return False
        return True


@lru_cache(maxsize=None)
def _diagonals(geometry: Geometry) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    side = geometry.side
    main = tuple(i * side + i for i in range(side))
    anti = tuple(i * side + (side - 1 - i) for i in range(side))
    return main, anti


@dataclass
class DiagonalRule(_VariantRule):
    """Both main diagonals hold distinct values (X-Sudoku)."""

    name: str = "diagonal"

    def _variant_valid(self, grid: Grid) -> bool:
        cells = grid.cells
        for diagonal in _diagonals(grid.geometry):
            values = [cells[i] for i in diagonal if cells[i] != UNFILLED]
            if len(values) != len(set(values)):
                return False
        return True

    def _variant_valid_at(self, grid: Grid, index: int) -> bool:
        cells = grid.cells
        value = cells[index]
        if value == UNFILLED:
            return True
        for diagonal in _diagonals(grid.geometry):
            if index not in diagonal:
                continue
            for other in diagonal:
                if other != index and cells[other] == value:
                    return False
        return True


class CompositeRule(Rule):
    """All member rules must hold; evaluation stops at the first failure."""

    def __init__(self, rules: Sequence[Rule]) -> None:
        flat = []
        for rule in rules:
            if isinstance(rule, CompositeRule):
                flat.extend(rule.rules)
            else:
                flat.append(rule)
        self.rules: Tuple[Rule, ...] = tuple(flat)
        self._checks = tuple(cell_check(r) for r in self.rules)
        self.name = "+".join(getattr(r, "name", type(r).__name__) for r in self.rules)

    def __repr__(self) -> str:
        return f"CompositeRule({list(self.rules)!r})"

    def is_valid(self, grid: Grid) -> bool:
        return all(rule.is_valid(grid) for rule in self.rules)

    def is_valid_at(self, grid: Grid, index: int) -> bool:
        return all(check(grid, index) for check in self._checks)


def cell_check(rule):
    """Incremental check for `rule`, falling back to a full-grid check."""
    check = getattr(rule, "is_valid_at", None)
    if check is not None:
        return check
    return lambda grid, index: rule.is_valid(grid)
