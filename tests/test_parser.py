import pytest

from src.sudoku.model import CLASSIC, Geometry, Grid, ParseError
from src.sudoku.parser import parse_geometry, parse_puzzle, parse_rule, rule_names
from src.sudoku.rules import ClassicRule, CompositeRule, ParityMaskRule

PUZZLE = "000075400000000008080190000300001060000000034000068170204000603900000020530200000"
SOLVED = "693875412145632798782194356357421869816957234429368175274519683968743521531286947"


def test_parse_rule_defaults_to_classic():
    assert isinstance(parse_rule(""), ClassicRule)
    assert isinstance(parse_rule("classic"), ClassicRule)
    assert isinstance(parse_rule("Sudoku"), ClassicRule)


def test_parse_rule_composes_variants_with_classic_once():
    rule = parse_rule("knights + kings")
    assert isinstance(rule, CompositeRule)
    assert rule.name == "knights+kings+classic"
    assert not any(getattr(r, "classic", False) for r in rule.rules)


def test_parse_rule_aliases():
    assert parse_rule("miracle").name == "nonconsecutive+classic"
    assert parse_rule("anti_knight,x").name == "knights+diagonal+classic"


def test_parse_rule_unknown_name():
    with pytest.raises(ValueError):
        parse_rule("killer")


def test_parse_rule_parity_needs_mask():
    with pytest.raises(ValueError):
        parse_rule("parity")
    rule = parse_rule("parity", Grid.parse("1" * 81))
    assert isinstance(rule.rules[0], ParityMaskRule)
    assert not rule.is_valid(Grid.empty().with_value(0, 2))


def test_rule_names():
    assert rule_names()[0] == "classic"
    assert "even-odd" in rule_names()


def test_parse_geometry():
    assert parse_geometry({}, 81) == CLASSIC
    assert parse_geometry({"size": "6*6"}, 0) == Geometry(6, 3, 2)
    assert parse_geometry({"box": "2*3"}, 36) == Geometry(6, 2, 3)
    assert parse_geometry({"size": "6x6", "box": "3x2"}, 0) == Geometry(6, 3, 2)
    with pytest.raises(ValueError):
        parse_geometry({"box": "3"}, 36)
    with pytest.raises(ValueError):
        parse_geometry({"size": "nine"}, 81)


def test_parse_puzzle_basic_record():
    parsed = parse_puzzle({"id": 7, "puzzle": PUZZLE, "solution": SOLVED})
    assert parsed.id == "7"
    assert parsed.grid == Grid.parse(PUZZLE)
    assert parsed.solution == Grid.parse(SOLVED)
    assert isinstance(parsed.rule, ClassicRule)


def test_parse_puzzle_dataset_keys():
    parsed = parse_puzzle({"quizzes": PUZZLE, "solutions": SOLVED, "rules": "knights"})
    assert parsed.id == "unknown"
    assert parsed.solution == Grid.parse(SOLVED)
    assert parsed.rule.name == "knights+classic"


def test_parse_puzzle_with_mask_and_box():
    parsed = parse_puzzle({
        "puzzle": "0" * 36,
        "box": "2*3",
        "rules": "parity",
        "mask": "12" * 18,
    })
    assert parsed.grid.geometry == Geometry(6, 2, 3)
    assert not parsed.rule.is_valid(parsed.grid.with_value(0, 2))
    assert parsed.rule.is_valid(parsed.grid.with_value(1, 2))


def test_parse_puzzle_errors():
    with pytest.raises(ParseError):
        parse_puzzle({"id": "empty"})
    with pytest.raises(ParseError):
        parse_puzzle({"puzzle": PUZZLE[:-1]})
    with pytest.raises(ParseError):
        parse_puzzle({"puzzle": PUZZLE, "box": "2*2"})
