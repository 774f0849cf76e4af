"""Data collection and CSV logging for alignment runs.

This module provides CSV data logging for:
- Per-tick controller diagnostics (errors, commands, requests, aligned flag)
- Final run outcome (state, termination reason, duration)
"""

import csv
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from .config import TERM_BLUE, TERM_RESET

TICK_COLUMNS = [
    "timestamp",
    "state",
    "visible",
    "distance",
    "angle",
    "distance_error",
    "angle_error",
    "heading_error",
    "forward",
    "lateral",
    "rotational",
    "vx",
    "vy",
    "omega",
    "aligned",
]
"""Column order of ``alignment_data.csv``. Missing values are left blank."""


class DataCollector:
    """Manages CSV file creation and logging for one run.

    Attributes:
        run_dir: Directory path for this run's output files.
        tick_output_path: Path of the per-tick CSV file.
        outcome_output_path: Path of the outcome text file.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None) -> None:
        """Initialize the data collector.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates timestamped
                directory. Can also be set via RUN_DIR environment variable.

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        # Validate output directory
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        # CSV file handle and row count
        self.tick_csv_file: Optional[TextIO] = None
        self.tick_csv_writer: Any = None
        self.rows_written: int = 0

        # Determine run directory
        if run_dir:
            # Use provided run directory
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            # Use environment variable
            self.run_dir = Path(env_run_dir)
        else:
            # Create timestamped directory: results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        # Create directory structure
        self.run_dir.mkdir(parents=True, exist_ok=True)

        # Define output file paths
        self.tick_output_path: Path = self.run_dir / "alignment_data.csv"
        self.outcome_output_path: Path = self.run_dir / "outcome.txt"

    def setup(self) -> None:
        """Create the CSV file and write its header. Must be called before logging."""
        self.tick_csv_file = open(self.tick_output_path, "w", newline="")
        self.tick_csv_writer = csv.writer(self.tick_csv_file)
        self.tick_csv_writer.writerow(TICK_COLUMNS)
        # Header is visible to readers before the first row
        self.tick_csv_file.flush()

        print(f"{TERM_BLUE}✓ Initialized data collection to {self.run_dir}/{TERM_RESET}")

    def log_tick(self, timestamp: float, state: str, diagnostics: Dict[str, float]) -> None:
        """Log one control tick.

        Args:
            timestamp: Tick time (seconds).
            state: Command state name at the end of the tick.
            diagnostics: Values keyed by ``TICK_COLUMNS`` names; unknown keys
                are ignored, missing ones written blank.
        """
        if self.tick_csv_writer is None:
            return
        # Fixed leading columns, then diagnostics in header order
        row = [timestamp, state]
        for column in TICK_COLUMNS[2:]:
            value = diagnostics.get(column)
            row.append("" if value is None else value)
        self.tick_csv_writer.writerow(row)
        self.rows_written += 1
        # Flush every row; the file is read while the run is live
        if self.tick_csv_file:
            self.tick_csv_file.flush()

    def log_outcome(self, state: str, reason: Optional[str], duration: float) -> None:
        """Write the run outcome to a text file.

        Args:
            state: Final command state.
            reason: Termination reason, if any.
            duration: Run duration (seconds).
        """
        with open(self.outcome_output_path, "w") as f:
            f.write(f"state={state}\n")
            f.write(f"reason={reason or ''}\n")
            f.write(f"duration={duration:.3f}\n")
            f.write(f"ticks={self.rows_written}\n")
        print(f"{TERM_BLUE}✓ Saved outcome: {state} ({reason}) to {self.outcome_output_path.name}{TERM_RESET}")

    def cleanup(self) -> None:
        """Close the CSV file and log final output location."""
        if self.tick_csv_file:
            self.tick_csv_file.close()
            self.tick_csv_file = None
            self.tick_csv_writer = None

        print(f"{TERM_BLUE}✓ Saved alignment data to {self.run_dir}/{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        """Context manager entry point.

        Returns:
            Self reference for use in with statement.
        """
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit point - ensures cleanup is called."""
        self.cleanup()
