"""Puzzle parser: convert puzzle records into grids and rule objects.

A record is a plain dict, as produced by the loader:
- "puzzle" (or "quizzes", "question", "board", "grid"): digit string, 0 = empty
- "solution" (or "solutions"): optional digit string
- "rules": rule expression such as "classic" or "knights+kings"
- "mask": parity template, required by the "parity" rule
- "size": "9*9" style side length, "box": "3*2" style box width*height
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .model import Geometry, Grid, ParseError
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

PUZZLE_KEYS = ("puzzle", "quizzes", "question", "board", "grid")
SOLUTION_KEYS = ("solution", "solutions")


@dataclass
class ParsedPuzzle:
    id: str
    grid: Grid
    rule: Rule
    solution: Optional[Grid] = None


def _variant(factory: Callable[..., Rule]) -> Callable[[Optional[Grid]], Rule]:
    return lambda mask: factory(classic=False)


def _parity(mask: Optional[Grid]) -> Rule:
    if mask is None:
        raise ValueError("The parity rule needs a 'mask' grid")
    return ParityMaskRule(classic=False, mask=mask)


# Variants are built without their own classic check; classic is added once.
_RULE_FACTORIES: Dict[str, Callable[[Optional[Grid]], Rule]] = {
    "knights": _variant(KnightsMoveRule),
    "kings": _variant(KingsMoveRule),
    "nonconsecutive": _variant(NonconsecutiveRule),
    "even-odd": _variant(EvenOddNeighborsRule),
    "diagonal": _variant(DiagonalRule),
    "parity": _parity,
}

_ALIASES = {
    "standard": "classic",
    "sudoku": "classic",
    "knight": "knights",
    "anti-knight": "knights",
    "king": "kings",
    "anti-king": "kings",
    "miracle": "nonconsecutive",
    "non-consecutive": "nonconsecutive",
    "evenodd": "even-odd",
    "even-odd-neighbors": "even-odd",
    "x": "diagonal",
    "diagonals": "diagonal",
    "parity-mask": "parity",
}


def rule_names() -> List[str]:
    return ["classic", *_RULE_FACTORIES]


def parse_rule(expression: str, mask: Optional[Grid] = None) -> Rule:
    """Build a rule from names joined by '+', e.g. "knights+kings"."""
    names = [n.strip().lower().replace("_", "-") for n in re.split(r"[+,]", expression or "")]
    names = [_ALIASES.get(n, n) for n in names if n]
    if not names:
        names = ["classic"]

    variants: List[Rule] = []
    for name in names:
        if name == "classic":
            continue
        factory = _RULE_FACTORIES.get(name)
        if factory is None:
            raise ValueError(f"Unknown rule {name!r}; expected one of {', '.join(rule_names())}")
        variants.append(factory(mask))

    if not variants:
        return ClassicRule()
    # Cheap, selective variant checks go first.
    return CompositeRule([*variants, ClassicRule()])


def parse_geometry(puzzle_json: Dict[str, Any], cells: int) -> Geometry:
    """Geometry from explicit "size"/"box" fields, else inferred from the cell count."""
    size_str = str(puzzle_json.get("size", "") or "")
    box_str = str(puzzle_json.get("box", "") or "")

    side: Optional[int] = None
    if size_str:
        try:
            side = int(re.split(r"[*x]", size_str, maxsplit=1)[0])
        except ValueError as exc:
            raise ValueError(f"Bad size field: {size_str!r}") from exc

    if box_str:
        parts = re.split(r"[*x]", box_str)
        if len(parts) != 2:
            raise ValueError(f"Bad box field: {box_str!r}")
        try:
            width, height = int(parts[0]), int(parts[1])
        except ValueError as exc:
            raise ValueError(f"Bad box field: {box_str!r}") from exc
        return Geometry(side=side or width * height, box_width=width, box_height=height)

    if side is not None:
        return Geometry.for_side(side)
    return Geometry.for_cells(cells)


def _first_text(puzzle_json: Dict[str, Any], keys) -> str:
    for key in keys:
        value = puzzle_json.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def parse_puzzle(puzzle_json: Dict[str, Any]) -> ParsedPuzzle:
    puzzle_text = _first_text(puzzle_json, PUZZLE_KEYS)
    if not puzzle_text:
        raise ParseError("Puzzle record has no grid")

    try:
        geometry = parse_geometry(puzzle_json, len(puzzle_text))
    except ValueError as exc:
        raise ParseError(str(exc)) from exc
    grid = Grid.parse(puzzle_text, geometry)

    solution_text = _first_text(puzzle_json, SOLUTION_KEYS)
    solution = Grid.parse(solution_text, geometry) if solution_text else None

    mask_text = _first_text(puzzle_json, ("mask",))
    mask = Grid.parse(mask_text, geometry) if mask_text else None
    rule = parse_rule(str(puzzle_json.get("rules", "") or ""), mask)

    return ParsedPuzzle(
        id=str(puzzle_json.get("id", "unknown")),
        grid=grid,
        rule=rule,
        solution=solution,
    )
