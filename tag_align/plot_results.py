#!/usr/bin/env python3
"""
Standalone script to visualize alignment runs.

Loads alignment_data.csv (and outcome.txt when present) from a run directory
and plots the distance/angle errors against their tolerances and the
commands sent to the vehicle over time.
"""

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np

from .config import (
    ALIGN_ANGLE_TOLERANCE,
    ALIGN_DISTANCE_TOLERANCE,
    PLOT_ACCENT,
    PLOT_NEUTRAL,
    PLOT_PRIMARY,
    PLOT_SECONDARY,
    TERM_BLUE,
    TERM_RESET,
)
from .plot_styles import add_legend, add_tolerance_band, load_csv_to_dict, read_outcome, save_figure, style_axis


def find_latest_run(results_dir: Path) -> Path:
    """Find the most recent run directory.

    Args:
        results_dir: Path to the results directory.

    Returns:
        Path to the most recent run directory.

    Raises:
        FileNotFoundError: If no run directories are found.
    """
    if not results_dir.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    run_dirs = sorted([d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_")])

    if not run_dirs:
        raise FileNotFoundError(f"No run directories found in {results_dir}")

    return run_dirs[-1]


def list_available_runs(results_dir: Path) -> None:
    """List all available run directories.

    Args:
        results_dir: Path to the results directory.
    """
    if not results_dir.exists():
        logging.error(f"Results directory not found: {results_dir}")
        return

    run_dirs = sorted([d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_")])

    if not run_dirs:
        logging.info(f"No run directories found in {results_dir}")
        return

    logging.info("Available runs:")
    for i, run_dir in enumerate(run_dirs, 1):
        outcome = read_outcome(run_dir / "outcome.txt")
        suffix = f" ({outcome['state']}, {outcome.get('reason', '')})" if outcome.get("state") else ""
        logging.info(f"  {i}. {run_dir.name}{suffix}")


def summarize_run(data: Dict[str, np.ndarray]) -> Dict[str, float]:
    """Final and peak errors of a run, ignoring ticks without a target."""
    summary = {"ticks": float(len(data.get("timestamp", [])))}
    for column in ("distance_error", "angle_error"):
        values = data.get(column, np.array([]))
        valid = values[~np.isnan(values)]
        summary[f"final_{column}"] = float(valid[-1]) if valid.size else math.nan
        summary[f"max_abs_{column}"] = float(np.max(np.abs(valid))) if valid.size else math.nan
    return summary


def plot_alignment_run(
    run_dir: Path,
    save_plots: bool = False,
    show_plots: bool = True,
    distance_tolerance: float = ALIGN_DISTANCE_TOLERANCE,
    angle_tolerance: float = ALIGN_ANGLE_TOLERANCE,
) -> Optional[Path]:
    """Plot errors and commands of one run.

    Args:
        run_dir: Directory containing alignment_data.csv.
        save_plots: If True, save the figure to the run directory.
        show_plots: If True, display the figure interactively.
        distance_tolerance: Distance tolerance band to draw (m).
        angle_tolerance: Angle tolerance band to draw (rad).

    Returns:
        Path of the saved figure, or None if not saved.

    Raises:
        FileNotFoundError: If alignment_data.csv is not found.
    """
    data = load_csv_to_dict(run_dir / "alignment_data.csv")
    outcome = read_outcome(run_dir / "outcome.txt")
    t = data["timestamp"] - data["timestamp"][0] if data["timestamp"].size else data["timestamp"]

    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(12, 10), sharex=True)
    title = f"Alignment run {run_dir.name}"
    if outcome.get("state"):
        title += f" - {outcome['state']} ({outcome.get('reason', '')})"
    fig.suptitle(title, fontsize=14, fontweight="bold")

    ax1.plot(t, data["distance_error"], color=PLOT_PRIMARY, linewidth=2, label="Distance error")
    add_tolerance_band(ax1, distance_tolerance)
    style_axis(ax1, title="Distance Error", ylabel="Error (m)")
    add_legend(ax1)

    ax2.plot(t, np.degrees(data["angle_error"]), color=PLOT_SECONDARY, linewidth=2, label="Angle error")
    if "heading_error" in data and not np.all(np.isnan(data["heading_error"])):
        ax2.plot(t, np.degrees(data["heading_error"]), color=PLOT_NEUTRAL, linewidth=2, label="Heading error")
    add_tolerance_band(ax2, math.degrees(angle_tolerance))
    style_axis(ax2, title="Angle Error", ylabel="Error (deg)")
    add_legend(ax2)

    ax3.plot(t, data["vx"], color=PLOT_PRIMARY, linewidth=2, label="vx (m/s)")
    ax3.plot(t, data["vy"], color=PLOT_NEUTRAL, linewidth=1, label="vy (m/s)")
    ax3.plot(t, data["omega"], color=PLOT_SECONDARY, linewidth=2, label="omega (rad/s)")
    aligned = data.get("aligned")
    if aligned is not None and np.any(aligned == 1.0):
        first = t[np.argmax(aligned == 1.0)]
        for ax in (ax1, ax2, ax3):
            ax.axvline(x=first, color=PLOT_ACCENT, linestyle=":", linewidth=1.5)
    style_axis(ax3, title="Motion Requests", xlabel="Time (s)", ylabel="Velocity")
    add_legend(ax3)

    plt.tight_layout()

    saved = None
    if save_plots:
        saved = run_dir / "alignment_plot.png"
        save_figure(fig, saved)
    if show_plots:
        plt.show()
    plt.close(fig)
    return saved


def main() -> None:
    """Main entry point for the plotting script."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        description="Visualize alignment runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plot the most recent run
  python -m tag_align.plot_results

  # Plot a specific run by name
  python -m tag_align.plot_results --run run_20251114_184704

  # Plot and save figures to run directory
  python -m tag_align.plot_results --save --no-show

  # List all available runs
  python -m tag_align.plot_results --list
        """,
    )
    parser.add_argument(
        "--run",
        type=str,
        default=None,
        help="Name of the run directory to plot (e.g., run_20251114_184704). "
        "If not specified, plots the most recent run.",
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        default="results",
        help="Path to the results directory (default: results)",
    )
    parser.add_argument("--save", action="store_true", help="Save plots as PNG files in the run directory")
    parser.add_argument(
        "--no-show",
        action="store_true",
        help="Do not display plots interactively (useful with --save)",
    )
    parser.add_argument("--list", action="store_true", help="List all available runs and exit")

    args = parser.parse_args()
    results_dir = Path(args.results_dir)

    if args.list:
        list_available_runs(results_dir)
        return

    if args.run:
        run_dir = results_dir / args.run
        if not run_dir.exists():
            logging.error(f"Error: Run directory not found: {run_dir}")
            list_available_runs(results_dir)
            sys.exit(1)
    else:
        try:
            run_dir = find_latest_run(results_dir)
            logging.info(f"{TERM_BLUE}Plotting most recent run: {run_dir}{TERM_RESET}")
        except FileNotFoundError as e:
            logging.error(f"Error: {e}")
            sys.exit(1)

    try:
        plot_alignment_run(run_dir, save_plots=args.save, show_plots=not args.no_show)
        summary = summarize_run(load_csv_to_dict(run_dir / "alignment_data.csv"))
        logging.info(
            f"Final errors: distance={summary['final_distance_error']:.3f} m, "
            f"angle={math.degrees(summary['final_angle_error']):.2f}°"
        )
        if args.save:
            logging.info(f"{TERM_BLUE}✓ Saved plots to {run_dir}/{TERM_RESET}")
    except FileNotFoundError as e:
        logging.error(f"Error: {e}")
        logging.info(f"Make sure {run_dir} contains alignment_data.csv")
        sys.exit(1)
    except Exception as e:
        logging.error(f"Error generating plots: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
