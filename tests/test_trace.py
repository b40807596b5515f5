"""Test to verify trace.py works and captures solver steps."""

import tempfile
from pathlib import Path

from src.sudoku.generator import minimize
from src.sudoku.model import Grid
from src.sudoku.rules import ClassicRule
from src.sudoku.solver_core import classify
from src.utils.trace import Tracer, enable_tracing, get_tracer, reset_tracer


def test_tracer_captures_steps():
    reset_tracer()
    tracer = Tracer()

    tracer.log_assign(0, 5, depth=0)
    tracer.log_backtrack(0, reason="All values rejected")
    tracer.log_solution_found(depth=81)
    tracer.log_classify("unique", depth=80)
    tracer.log_removal(3, 7, depth=79, grid_state="0" * 81)
    tracer.log_removal_rejected(4, 2)

    summary = tracer.summary()
    assert summary["total_steps"] == 6
    assert summary["num_assignments"] == 1
    assert summary["num_backtracks"] == 1
    assert summary["num_removals"] == 1
    assert summary["action_counts"]["removal_rejected"] == 1
    assert [s.step_number for s in tracer.steps] == [1, 2, 3, 4, 5, 6]
    assert tracer.steps[0].cell == 0 and tracer.steps[0].value == 5

    with tempfile.TemporaryDirectory() as tmpdir:
        output_path = Path(tmpdir) / "nested" / "trace.csv"
        tracer.to_csv(output_path)
        content = output_path.read_text(encoding="utf-8")
        assert content.splitlines()[0].startswith("timestamp,step_number,action_type")
        assert "grid_state" not in content

        full_path = Path(tmpdir) / "full.csv"
        tracer.to_csv(full_path, include_large_states=True)
        assert "0" * 81 in full_path.read_text(encoding="utf-8")


def test_disabled_tracer_records_nothing():
    tracer = Tracer(enabled=False)
    tracer.log_assign(0, 1, depth=0)
    assert tracer.summary()["total_steps"] == 0
    assert tracer.steps == []


def test_global_tracer_is_opt_in():
    reset_tracer()
    solved = "1234341221434321"
    classify(Grid.parse("0" + solved[1:]), ClassicRule())
    assert get_tracer().summary()["total_steps"] == 0

    enable_tracing(True, keep_steps=False)
    classify(Grid.parse("0" + solved[1:]), ClassicRule())
    summary = get_tracer().summary()
    assert summary["num_assignments"] == 4
    assert get_tracer().steps == []
    reset_tracer()


def test_minimize_logs_removals():
    tracer = Tracer()
    solution = Grid.parse("1234341221434321")
    puzzle = minimize(solution, ClassicRule(), tracer=tracer)
    summary = tracer.summary()
    assert summary["num_removals"] == 16 - puzzle.filled_count()
    assert summary["action_counts"]["removal_rejected"] >= puzzle.filled_count()
    removals = [s for s in tracer.steps if s.action_type == "removal"]
    assert removals[-1].grid_state == puzzle.serialize()
