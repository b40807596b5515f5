"""Tracing module: logs solver and generator steps and writes them to CSV."""

import csv
from collections import Counter
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class TraceStep:
    """A single step in the solving or digging process."""

    timestamp: float
    step_number: int
    action_type: str  # 'assign', 'backtrack', 'solution_found', 'classify', 'removal', ...
    cell: Optional[int] = None
    value: Optional[int] = None
    depth: Optional[int] = None  # Number of filled cells at this point
    outcome: Optional[str] = None
    grid_state: Optional[str] = None  # Serialized grid (optional, can be large)
    reason: Optional[str] = None


class Tracer:
    """Records solver steps for logging and analysis.

    With `keep_steps=False` only the per-action counts are kept, which is
    what long exhaustive searches want.
    """

    def __init__(self, enabled: bool = True, keep_steps: bool = True):
        self.enabled = enabled
        self.keep_steps = keep_steps
        self.steps: List[TraceStep] = []
        self.counts: Counter = Counter()
        self.start_time = datetime.now().timestamp()
        self.step_counter = 0

    def _get_timestamp(self) -> float:
        """Get elapsed time in seconds since tracer creation."""
        return datetime.now().timestamp() - self.start_time

    def _record(self, action_type: str, **fields: Any) -> None:
        if not self.enabled:
            return
        self.step_counter += 1
        self.counts[action_type] += 1
        if self.keep_steps:
            self.steps.append(TraceStep(
                timestamp=self._get_timestamp(),
                step_number=self.step_counter,
                action_type=action_type,
                **fields,
            ))

    def log_assign(self, cell: int, value: int, depth: int):
        """Log a tentative cell assignment."""
        self._record('assign', cell=cell, value=value, depth=depth)

    def log_backtrack(self, cell: int, reason: str = "No valid values"):
        """Log a backtrack event."""
        self._record('backtrack', cell=cell, reason=reason)

    def log_solution_found(self, depth: int):
        """Log when a complete grid is reached."""
        self._record('solution_found', depth=depth)

    def log_classify(self, outcome: str, depth: int):
        """Log the outcome of a top-level classification."""
        self._record('classify', outcome=outcome, depth=depth)

    def log_removal(self, cell: int, value: int, depth: int, grid_state: Optional[str] = None):
        """Log a digit removal accepted during digging."""
        self._record('removal', cell=cell, value=value, depth=depth, grid_state=grid_state)

    def log_removal_rejected(self, cell: int, value: int, reason: str = "Multiple solutions"):
        """Log a digit that had to be put back during digging."""
        self._record('removal_rejected', cell=cell, value=value, reason=reason)

    def to_csv(self, filepath: Path, include_large_states: bool = False) -> None:
        """Write trace to CSV file."""
        if not self.steps:
            print("No trace steps to write")
            return

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        fieldnames = [
            'timestamp', 'step_number', 'action_type', 'cell', 'value',
            'depth', 'outcome', 'reason'
        ]
        if include_large_states:
            fieldnames.append('grid_state')

        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()

            for step in self.steps:
                row = asdict(step)
                if not include_large_states:
                    row.pop('grid_state', None)
                writer.writerow(row)

        print(f"Trace written to {filepath} ({len(self.steps)} steps)")

    def summary(self) -> Dict[str, Any]:
        """Get a summary of the trace."""
        return {
            'total_steps': self.step_counter,
            'elapsed_time_seconds': self._get_timestamp(),
            'action_counts': dict(self.counts),
            'num_assignments': self.counts['assign'],
            'num_backtracks': self.counts['backtrack'],
            'num_removals': self.counts['removal'],
        }


# Global tracer instance
_global_tracer: Optional[Tracer] = None


def get_tracer() -> Tracer:
    """Get or create the global tracer.

    The global tracer starts disabled; callers opt in with `enable_tracing()`
    or by passing their own `Tracer`.
    """
    global _global_tracer
    if _global_tracer is None:
        _global_tracer = Tracer(enabled=False)
    return _global_tracer


def reset_tracer() -> None:
    """Reset the global tracer."""
    global _global_tracer
    _global_tracer = None


def enable_tracing(enabled: bool = True, keep_steps: bool = True) -> None:
    """Enable or disable tracing."""
    tracer = get_tracer()
    tracer.enabled = enabled
    tracer.keep_steps = keep_steps
