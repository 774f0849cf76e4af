import math

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from tag_align.data_collector import DataCollector  # noqa: E402
from tag_align.plot_results import find_latest_run, plot_alignment_run, summarize_run  # noqa: E402
from tag_align.plot_styles import load_csv_to_dict, read_outcome  # noqa: E402
from tag_align.scenarios import run_closed_loop_alignment  # noqa: E402


@pytest.fixture
def run_dir(tmp_path):
    path = tmp_path / "results" / "run_20250101_120000"
    with DataCollector(run_dir=str(path)) as collector:
        run_closed_loop_alignment(data_collector=collector, status_interval=0)
    return path


def test_load_csv_to_dict_converts_blanks_to_nan(run_dir):
    data = load_csv_to_dict(run_dir / "alignment_data.csv")
    assert data["distance_error"].dtype == np.float64
    assert np.all(np.isnan(data["heading_error"]))
    assert np.all(np.isnan(data["state"]))


def test_read_outcome(run_dir, tmp_path):
    assert read_outcome(run_dir / "outcome.txt")["reason"] == "aligned"
    assert read_outcome(tmp_path / "missing.txt") == {}


def test_summarize_run(run_dir):
    summary = summarize_run(load_csv_to_dict(run_dir / "alignment_data.csv"))
    assert summary["max_abs_distance_error"] == pytest.approx(1.0)
    assert abs(summary["final_distance_error"]) <= 0.05


def test_summarize_empty_run():
    summary = summarize_run({"timestamp": np.array([]), "distance_error": np.array([])})
    assert math.isnan(summary["final_distance_error"])


def test_plot_saves_png(run_dir):
    saved = plot_alignment_run(run_dir, save_plots=True, show_plots=False)
    assert saved == run_dir / "alignment_plot.png"
    assert saved.exists()


def test_find_latest_run(run_dir, tmp_path):
    (tmp_path / "results" / "run_20240101_000000").mkdir()
    assert find_latest_run(tmp_path / "results") == run_dir
    with pytest.raises(FileNotFoundError):
        find_latest_run(tmp_path / "nowhere")
