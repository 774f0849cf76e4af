import math

import pytest

from tag_align.config import SIM_SCENARIO_TIMEOUT
from tag_align.data_collector import DataCollector
from tag_align.scenarios import run_closed_loop_alignment, run_heading_hold, run_scripted_approach
from tag_align.sequencer import CommandState, TerminationReason


@pytest.mark.parametrize(
    "start_distance,start_angle",
    [(2.5, 10.0), (2.5, -10.0), (1.0, 0.0), (3.0, 20.0)],
)
def test_closed_loop_alignment_completes(start_distance, start_angle):
    result = run_closed_loop_alignment(start_distance=start_distance, start_angle_deg=start_angle, status_interval=0)
    assert result.state is CommandState.COMPLETED
    assert result.reason is TerminationReason.ALIGNED
    assert result.duration < SIM_SCENARIO_TIMEOUT
    assert result.final_distance == pytest.approx(1.5, abs=0.05)
    assert abs(result.final_angle) <= 0.05


def test_closed_loop_timeout_cancels():
    result = run_closed_loop_alignment(start_distance=2.5, timeout=0.2, status_interval=0)
    assert result.state is CommandState.INTERRUPTED
    assert result.reason is TerminationReason.CANCELLED
    assert result.ticks == 10


def test_closed_loop_logs_run(tmp_path):
    with DataCollector(run_dir=str(tmp_path)) as collector:
        result = run_closed_loop_alignment(data_collector=collector, status_interval=0)
    assert collector.rows_written == result.ticks
    assert "reason=aligned" in (tmp_path / "outcome.txt").read_text()


def test_scripted_approach_commands_shrink():
    records = run_scripted_approach(start_distance=2.5, desired_distance=1.5, speed=0.5, step=0.1, steps=30)
    forwards = [record["forward"] for record in records]
    assert forwards[0] == pytest.approx(1.0)
    assert all(f >= 0.0 for f in forwards)
    assert all(b <= a for a, b in zip(forwards, forwards[1:]))
    assert records[-1]["aligned"] == 1.0


@pytest.mark.parametrize(
    "target,expected",
    [("left", math.pi / 2), ("right", -math.pi / 2), ("operator", math.pi), (0.3, 0.3)],
)
def test_heading_hold_settles_within_deadband(target, expected):
    result = run_heading_hold(target, start_heading=0.0, duration=3.0)
    assert result.state is CommandState.INTERRUPTED
    assert result.reason is TerminationReason.CANCELLED
    error = math.remainder(result.final_heading - expected, 2 * math.pi)
    assert abs(error) <= 0.1
