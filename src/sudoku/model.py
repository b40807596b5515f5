"""Grid geometry, the grid itself, and the digit-string codec."""

from dataclasses import dataclass, field
from functools import lru_cache
from math import isqrt
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

UNFILLED = 0

# Index in this string is the cell value; "0" is an empty cell.
DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


class ParseError(ValueError):
    """Raised when a textual grid cannot be decoded."""


@dataclass(frozen=True)
class Geometry:
    side: int
    box_width: int
    box_height: int

    def __post_init__(self) -> None:
        if self.side < 1 or self.side >= len(DIGITS):
            raise ValueError(f"Unsupported side length: {self.side}")
        if self.box_width < 1 or self.box_height < 1:
            raise ValueError(f"Box {self.box_width}x{self.box_height} must be positive")
        if self.box_width * self.box_height != self.side:
            raise ValueError(
                f"Box {self.box_width}x{self.box_height} does not tile side {self.side}"
            )

    @property
    def cells(self) -> int:
        return self.side * self.side

    @classmethod
    def for_side(cls, side: int) -> "Geometry":
        """Pick the squarest box shape for `side`, boxes wider than tall."""
        height = 1
        for candidate in range(1, isqrt(side) + 1):
            if side % candidate == 0:
                height = candidate
        return cls(side=side, box_width=side // height, box_height=height)

    @classmethod
    def for_cells(cls, cells: int) -> "Geometry":
        side = isqrt(cells)
        if side * side != cells:
            raise ValueError(f"{cells} cells do not form a square grid")
        return cls.for_side(side)

    def row_of(self, index: int) -> int:
        return index // self.side

    def col_of(self, index: int) -> int:
        return index % self.side

    def box_of(self, index: int) -> int:
        row, col = divmod(index, self.side)
        return (row // self.box_height) * (self.side // self.box_width) + col // self.box_width

    def units(self) -> List[List[int]]:
        """Rows, then columns, then boxes, as lists of cell indexes."""
        return _units(self)

    def peers(self) -> Tuple[Tuple[int, ...], ...]:
        """For each cell, the other cells sharing its row, column or box."""
        return _peers(self)


CLASSIC = Geometry(9, 3, 3)


@lru_cache(maxsize=None)
def _units(geometry: Geometry) -> List[List[int]]:
    side = geometry.side
    rows = [[r * side + c for c in range(side)] for r in range(side)]
    cols = [[r * side + c for r in range(side)] for c in range(side)]
    boxes: List[List[int]] = [[] for _ in range(side)]
    for index in range(geometry.cells):
        boxes[geometry.box_of(index)].append(index)
    return rows + cols + boxes


@lru_cache(maxsize=None)
def _peers(geometry: Geometry) -> Tuple[Tuple[int, ...], ...]:
    peers = [set() for _ in range(geometry.cells)]
    for unit in _units(geometry):
        for index in unit:
            peers[index].update(unit)
    return tuple(tuple(sorted(p - {i})) for i, p in enumerate(peers))


@dataclass(eq=False)
class Grid:
    """A square board of cells; 0 marks an empty cell.

    The `cells` list is the search state. Solver and generator code assign
    into it directly and restore it on backtrack; everything else should go
    through the read helpers or `with_value`.
    """

    geometry: Geometry
    cells: List[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.cells:
            self.cells = [UNFILLED] * self.geometry.cells
        if len(self.cells) != self.geometry.cells:
            raise ValueError(
                f"Expected {self.geometry.cells} cells, got {len(self.cells)}"
            )
        side = self.geometry.side
        for index, value in enumerate(self.cells):
            if not 0 <= value <= side:
                raise ValueError(f"Cell {index} holds {value}, outside 0..{side}")

    @classmethod
    def empty(cls, geometry: Geometry = CLASSIC) -> "Grid":
        return cls(geometry)

    @classmethod
    def from_values(cls, values: Iterable[int], geometry: Geometry = CLASSIC) -> "Grid":
        return cls(geometry, [int(v) for v in values])

    @classmethod
    def parse(cls, text: str, geometry: Optional[Geometry] = None) -> "Grid":
        """Decode a digit string, one character per cell, `0` for empty."""
        text = text.strip()
        if geometry is None:
            try:
                geometry = Geometry.for_cells(len(text))
            except ValueError as exc:
                raise ParseError(f"Cannot infer a grid from {len(text)} characters") from exc
        if len(text) != geometry.cells:
            raise ParseError(f"Expected {geometry.cells} characters, got {len(text)}")

        allowed = DIGITS[: geometry.side + 1]
        values: List[int] = []
        for position, char in enumerate(text.upper()):
            value = allowed.find(char)
            if value < 0:
                raise ParseError(
                    f"Invalid character {char!r} at position {position} for side {geometry.side}"
                )
            values.append(value)
        return cls(geometry, values)

    def serialize(self) -> str:
        return "".join(DIGITS[v] for v in self.cells)

    def __str__(self) -> str:
        return self.serialize()

    def __repr__(self) -> str:
        return f"Grid({self.serialize()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.geometry == other.geometry and self.cells == other.cells

    def __len__(self) -> int:
        return len(self.cells)

    def __getitem__(self, index: int) -> int:
        return self.cells[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.cells)

    def copy(self) -> "Grid":
        return Grid(self.geometry, list(self.cells))

    def with_value(self, index: int, value: int) -> "Grid":
        """Return a copy with one cell replaced."""
        if not 0 <= index < len(self.cells):
            raise ValueError(f"Cell index {index} out of range")
        if not 0 <= value <= self.geometry.side:
            raise ValueError(f"Value {value} outside 0..{self.geometry.side}")
        clone = self.copy()
        clone.cells[index] = value
        return clone

    def filled_indexes(self) -> List[int]:
        return [i for i, v in enumerate(self.cells) if v != UNFILLED]

    def unfilled_indexes(self) -> List[int]:
        return [i for i, v in enumerate(self.cells) if v == UNFILLED]

    def filled_count(self) -> int:
        return sum(1 for v in self.cells if v != UNFILLED)

    def is_complete(self) -> bool:
        return UNFILLED not in self.cells

    def rows(self) -> List[Sequence[int]]:
        side = self.geometry.side
        return [self.cells[r * side:(r + 1) * side] for r in range(side)]

    def pretty(self) -> str:
        """Render the grid on several lines with box separators."""
        g = self.geometry
        boxes_across = g.side // g.box_width
        rule = "+".join(["-" * (2 * g.box_width + 1)] * boxes_across)
        lines: List[str] = []
        for r, row in enumerate(self.rows()):
            if r and r % g.box_height == 0:
                lines.append(rule)
            chunks = []
            for start in range(0, g.side, g.box_width):
                chunk = row[start:start + g.box_width]
                chunks.append(" " + " ".join(DIGITS[v] if v else "." for v in chunk) + " ")
            lines.append("|".join(chunks))
        return "\n".join(lines)
