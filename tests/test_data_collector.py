import csv
import math

import pytest

from tag_align.data_collector import TICK_COLUMNS, DataCollector


def test_uses_run_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("RUN_DIR", str(tmp_path / "env_run"))
    collector = DataCollector()
    assert collector.run_dir == tmp_path / "env_run"
    assert collector.run_dir.is_dir()


def test_timestamped_run_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("RUN_DIR", raising=False)
    collector = DataCollector(output_dir=str(tmp_path))
    assert collector.run_dir.parent == tmp_path / "results"
    assert collector.run_dir.name.startswith("run_")


def test_output_path_must_be_directory(tmp_path):
    path = tmp_path / "file.txt"
    path.write_text("x")
    with pytest.raises(ValueError):
        DataCollector(output_dir=str(path))


def test_log_before_setup_is_ignored(tmp_path):
    collector = DataCollector(run_dir=str(tmp_path))
    collector.log_tick(0.0, "running", {"vx": 1.0})
    assert collector.rows_written == 0
    assert not collector.tick_output_path.exists()


def test_writes_header_and_rows(tmp_path):
    with DataCollector(run_dir=str(tmp_path)) as collector:
        collector.log_tick(0.0, "running", {"distance_error": 0.5, "vx": 1.0, "unknown": 3.0})
        collector.log_tick(0.02, "completed", {"distance_error": math.nan})

    with open(collector.tick_output_path, newline="") as f:
        rows = list(csv.DictReader(f))

    assert list(rows[0].keys()) == TICK_COLUMNS
    assert rows[0]["state"] == "running"
    assert float(rows[0]["distance_error"]) == 0.5
    assert rows[0]["heading_error"] == ""
    assert rows[1]["distance_error"] == "nan"
    assert collector.rows_written == 2


def test_outcome_file(tmp_path):
    collector = DataCollector(run_dir=str(tmp_path))
    collector.log_outcome("completed", "aligned", 1.234)
    text = collector.outcome_output_path.read_text()
    assert text.splitlines() == ["state=completed", "reason=aligned", "duration=1.234", "ticks=0"]
