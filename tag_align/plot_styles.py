"""Shared plotting utilities and styles for alignment run visualizations.

This module provides:
- Colour scheme
- CSV data loading functions
- Common plot styling functions

All visualization code should import from this module to ensure consistency.
"""

import csv
from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes

from .config import PLOT_ACCENT, PLOT_NEUTRAL, PLOT_PRIMARY, PLOT_SECONDARY

__all__ = [
    "PLOT_PRIMARY",
    "PLOT_SECONDARY",
    "PLOT_NEUTRAL",
    "PLOT_ACCENT",
    "load_csv_data",
    "load_csv_to_dict",
    "read_outcome",
    "style_axis",
    "add_legend",
    "add_tolerance_band",
    "save_figure",
]


# ============================================================================
# CSV Data Loading
# ============================================================================


def load_csv_data(filepath: Path) -> Tuple[List[str], List[List[str]]]:
    """Load CSV file and return headers and data rows.

    Args:
        filepath: Path to the CSV file.

    Returns:
        Tuple containing (headers, data_rows).

    Raises:
        FileNotFoundError: If the CSV file does not exist.
    """
    if not filepath.exists():
        raise FileNotFoundError(f"CSV file not found: {filepath}")

    with open(filepath, newline="") as f:
        reader = csv.reader(f)
        headers = next(reader)
        data_rows = list(reader)

    return headers, data_rows


def load_csv_to_dict(csv_path: Path) -> Dict[str, np.ndarray]:
    """Load CSV file into dictionary of numpy arrays.

    Numeric values become floats; non-numeric and blank values become NaN.
    Text columns (such as the command state) can be read with
    ``load_csv_data`` instead.

    Args:
        csv_path: Path to CSV file.

    Returns:
        Dictionary mapping column names to numpy arrays.

    Raises:
        FileNotFoundError: If the CSV file does not exist.

    Example:
        >>> data = load_csv_to_dict(Path("alignment_data.csv"))
        >>> data["distance_error"].shape
        (250,)
    """
    headers, rows = load_csv_data(csv_path)
    data: Dict[str, List[float]] = {key: [] for key in headers}
    for row in rows:
        for key, value in zip(headers, row):
            try:
                data[key].append(float(value))
            except (ValueError, TypeError):
                data[key].append(np.nan)

    return {key: np.array(values) for key, values in data.items()}


def read_outcome(outcome_path: Path) -> Dict[str, str]:
    """Read ``outcome.txt`` key=value lines. Missing file gives an empty dict."""
    if not outcome_path.exists():
        return {}
    outcome = {}
    with open(outcome_path) as f:
        for line in f:
            key, sep, value = line.strip().partition("=")
            if sep:
                outcome[key] = value
    return outcome


# ============================================================================
# Plot Styling Functions
# ============================================================================


def style_axis(ax: Axes, title: str = "", xlabel: str = "", ylabel: str = "", grid: bool = True) -> None:
    """Apply consistent styling to a matplotlib axis.

    Args:
        ax: Matplotlib axis to style.
        title: Plot title (optional).
        xlabel: X-axis label (optional).
        ylabel: Y-axis label (optional).
        grid: Whether to show grid lines (default: True).
    """
    if title:
        ax.set_title(title, fontweight="bold")
    if xlabel:
        ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)
    if grid:
        ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)


def add_legend(ax: Axes, loc: str = "best", **kwargs) -> None:
    """Add a legend with the shared styling; kwargs override the defaults."""
    legend_kwargs = {"loc": loc, "framealpha": 0.9, "edgecolor": PLOT_NEUTRAL}
    legend_kwargs.update(kwargs)
    ax.legend(**legend_kwargs)


def add_tolerance_band(ax: Axes, tolerance: float, label: str = "Tolerance") -> None:
    """Shade the +/- ``tolerance`` band around zero."""
    ax.axhspan(-tolerance, tolerance, color=PLOT_ACCENT, alpha=0.15, label=label)
    ax.axhline(y=0, color="k", linestyle="--", alpha=0.3)


def save_figure(fig: plt.Figure, filepath: Path, dpi: int = 150, bbox_inches: str = "tight") -> None:
    """Save figure with consistent settings."""
    fig.savefig(filepath, dpi=dpi, bbox_inches=bbox_inches)
    print(f"Saved figure to {filepath}")
