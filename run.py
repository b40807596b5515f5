"""CLI entrypoint: load puzzle(s), solve / derive / dig them, and report results."""

import argparse
import csv
import json
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

from solver import solve_puzzle
from src.sudoku.generator import (
    InconsistentRuleError,
    PuzzleCreateError,
    fill_random,
    minimize,
)
from src.sudoku.loader import load_puzzles
from src.sudoku.model import Geometry, Grid, ParseError
from src.sudoku.parser import parse_geometry, parse_puzzle, parse_rule
from src.sudoku.solver_core import derive
from src.utils.trace import enable_tracing, get_tracer, reset_tracer

MODES = ("solve", "derive", "minimize", "generate")
INPUT_SUFFIXES = (".json", ".jsonl", ".parquet", ".csv")


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Solve, analyse and generate variant Sudoku puzzles")
    parser.add_argument("input", type=Path, nargs="?", default=None,
                        help="Path to a puzzle file or a directory of puzzle files")
    parser.add_argument("--mode", choices=MODES, default="solve",
                        help="solve: classify each puzzle; derive: keep only forced cells; "
                             "minimize: dig each grid down to a minimal puzzle; "
                             "generate: build new puzzles from scratch")
    parser.add_argument("--rules", default=None,
                        help="Rule expression such as 'classic' or 'knights+kings'. "
                             "Overrides each record's own 'rules' field.")
    parser.add_argument("--mask", default=None, help="Parity mask digit string for the 'parity' rule")
    parser.add_argument("--count", type=int, default=1, help="Number of puzzles for --mode generate")
    parser.add_argument("--size", default=None, help="Side length for --mode generate (default 9)")
    parser.add_argument("--box", default=None, help="Box as WIDTH*HEIGHT for --mode generate")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible digging")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write results CSV")
    parser.add_argument("--pretty", action="store_true", help="Also print each resulting grid as a board")
    parser.add_argument("--trace", type=Path, default=None,
                        help="Optional directory; one step-by-step trace CSV is written per puzzle")
    args = parser.parse_args(argv)
    if args.mode != "generate" and args.input is None:
        parser.error("an input path is required unless --mode generate is used")
    return args


def format_solution(grid: Optional[Grid], status: str, *, pretty: bool = False) -> Dict[str, Any]:
    if grid is None:
        return {"status": status, "grid": ""}
    formatted: Dict[str, Any] = {"status": status, "grid": grid.serialize()}
    if pretty:
        formatted["pretty"] = grid.pretty()
    return formatted


def write_results_csv(results, output_path: Path):
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["id", "grid_solution", "status", "steps"])

        for r in results:
            writer.writerow([
                r["id"],
                r["grid_solution"],
                r["status"],
                r["steps"],
            ])


def collect_puzzles(input_path: Path) -> List[Dict[str, Any]]:
    if input_path.is_file():
        return load_puzzles(str(input_path))
    if input_path.is_dir():
        puzzles: List[Dict[str, Any]] = []
        for file_path in sorted(input_path.iterdir()):
            if file_path.suffix in INPUT_SUFFIXES:
                puzzles.extend(load_puzzles(str(file_path)))
        return puzzles
    raise ValueError(f"Input path {input_path} is neither file nor directory")


def run_one(puzzle: Dict[str, Any], args, rng: random.Random) -> Dict[str, Any]:
    parsed = parse_puzzle(puzzle)
    rule = parse_rule(args.rules, _mask_for(args, parsed.grid.geometry)) if args.rules else parsed.rule

    if args.mode == "solve":
        result = solve_puzzle(parsed.grid, rule)
        return format_solution(result.grid, result.outcome.value, pretty=args.pretty)

    if args.mode == "derive":
        forced = derive(parsed.grid, rule)
        return format_solution(
            forced, "derived" if forced is not None else "no-solution", pretty=args.pretty
        )

    dug = minimize(parsed.grid, rule, rng=rng)
    return format_solution(dug, "minimized", pretty=args.pretty)


def generate_one(args, geometry: Geometry, rng: random.Random) -> Dict[str, Any]:
    rule = parse_rule(args.rules or "classic", _mask_for(args, geometry))
    solution = fill_random(rule, geometry, rng=rng)
    if solution is None:
        return format_solution(None, "no-solution")
    return format_solution(minimize(solution, rule, rng=rng), "generated", pretty=args.pretty)


def _mask_for(args, geometry: Geometry) -> Optional[Grid]:
    return Grid.parse(args.mask, geometry) if args.mask else None


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    rng = random.Random(args.seed)
    results = []
    boards: Dict[str, str] = {}

    if args.mode == "generate":
        geometry = parse_geometry({"size": args.size or ("" if args.box else "9"), "box": args.box}, 0)
        jobs = [({"id": f"generated_{i + 1}"}, None) for i in range(args.count)]
    else:
        jobs = [(puzzle, puzzle) for puzzle in collect_puzzles(args.input)]

    for record, puzzle in jobs:
        puzzle_id = str(record.get("id", "unknown"))
        reset_tracer()
        enable_tracing(True, keep_steps=args.trace is not None)
        tracer = get_tracer()

        try:
            if puzzle is None:
                outcome = generate_one(args, geometry, rng)
            else:
                outcome = run_one(puzzle, args, rng)
            status, grid_text = outcome["status"], outcome["grid"]
            board = outcome.get("pretty")
        except (ParseError, ValueError, PuzzleCreateError, InconsistentRuleError) as e:
            print(f"ERROR: Failed to process puzzle {puzzle_id}: {e}")
            status, grid_text, board = "error", "", None

        summary = tracer.summary()
        results.append({
            "id": puzzle_id,
            "grid_solution": grid_text,
            "status": status,
            "steps": summary["num_assignments"],
        })
        if board:
            boards[puzzle_id] = board
        if args.trace is not None:
            tracer.to_csv(args.trace / f"{puzzle_id}.csv")

    if args.output:
        write_results_csv(results, args.output)
    else:
        for r in results:
            print(json.dumps(r, ensure_ascii=False))
            if r["id"] in boards:
                print(boards[r["id"]])
    return results


if __name__ == "__main__":
    main()
