import pytest

from tag_align.alignment import AlignmentController, TargetSpecification
from tag_align.heading import Heading, HeadingHoldController
from tag_align.model import DriveFrame, SimulatedDrivetrain
from tag_align.sequencer import CommandState, DriveSequencer, HeadingHoldSequencer, TerminationReason


@pytest.fixture
def drivetrain():
    return SimulatedDrivetrain()


@pytest.fixture
def sequencer(perception, dashboard, drivetrain):
    controller = AlignmentController(TargetSpecification(2, 1.5), telemetry=dashboard)
    return DriveSequencer(controller, perception, drivetrain)


def test_idle_until_started(harness, sequencer, drivetrain):
    harness.set_marker_pose_from_polar(2, 2.5, 0.0, 0.0)
    assert sequencer.state is CommandState.IDLE
    assert sequencer.tick() is CommandState.IDLE
    assert drivetrain.requests == []


def test_running_forwards_controller_output(harness, sequencer, drivetrain, dashboard):
    harness.set_marker_pose_from_polar(2, 2.0, 0.0, 0.0)
    sequencer.start()
    assert sequencer.tick() is CommandState.RUNNING

    request = drivetrain.current_request
    assert request.frame is DriveFrame.ROBOT_CENTRIC
    assert request.vx == pytest.approx(1.0)
    assert dashboard.get_number("Drive/VelocityX") == pytest.approx(1.0)
    assert dashboard.get_string("Drive/State") == "running"


def test_completes_when_aligned(harness, sequencer, drivetrain, dashboard):
    harness.set_marker_pose_from_polar(2, 1.5, 0.0, 0.0)
    sequencer.start()
    assert sequencer.tick() is CommandState.COMPLETED
    assert sequencer.termination_reason is TerminationReason.ALIGNED
    assert drivetrain.current_request.is_zero()
    assert dashboard.get_string("Drive/State") == "completed"


def test_target_loss_interrupts_with_zero_request(harness, sequencer, drivetrain):
    harness.set_marker_pose_from_polar(2, 2.5, 0.0, 0.0)
    sequencer.start()
    sequencer.tick()
    assert not drivetrain.current_request.is_zero()

    harness.clear()
    assert sequencer.tick() is CommandState.INTERRUPTED
    assert sequencer.termination_reason is TerminationReason.TARGET_LOST
    assert drivetrain.requests[-1].is_zero()


def test_cancel_flushes_zero(harness, sequencer, drivetrain):
    harness.set_marker_pose_from_polar(2, 2.5, 0.0, 0.0)
    sequencer.start()
    sequencer.tick()
    sequencer.cancel()

    assert sequencer.state is CommandState.INTERRUPTED
    assert sequencer.termination_reason is TerminationReason.CANCELLED
    assert drivetrain.requests[-1].is_zero()

    count = len(drivetrain.requests)
    sequencer.cancel()
    sequencer.tick()
    assert len(drivetrain.requests) == count


def test_start_while_running_is_noop(harness, sequencer):
    harness.set_marker_pose_from_polar(2, 2.5, 0.0, 0.0)
    sequencer.start()
    sequencer.tick()
    sequencer.tick()
    sequencer.start()
    assert sequencer.tick_count == 2
    assert sequencer.is_running


def test_restart_after_termination(harness, sequencer):
    harness.set_marker_pose_from_polar(2, 2.5, 0.0, 0.0)
    sequencer.start()
    sequencer.cancel()
    sequencer.start()
    assert sequencer.is_running
    assert sequencer.termination_reason is None


def test_gain_setters_reach_controller(sequencer):
    sequencer.set_distance_gain(1.25)
    sequencer.set_angle_gain(0.5)
    assert sequencer.controller.gains.distance_gain == 1.25
    assert sequencer.controller.gains.angle_gain == 0.5


def test_diagnostics_include_request(harness, sequencer):
    harness.set_marker_pose_from_polar(2, 2.0, 0.0, 0.0)
    sequencer.start()
    sequencer.tick()
    diagnostics = sequencer.get_diagnostics()
    assert diagnostics["vx"] == pytest.approx(1.0)
    assert diagnostics["distance_error"] == pytest.approx(0.5)


class TestHeadingHoldSequencer:
    def test_runs_field_centric_until_cancelled(self, drivetrain):
        drivetrain.heading = 1.0
        sequencer = HeadingHoldSequencer(HeadingHoldController(Heading.FORWARD, drivetrain), drivetrain)
        sequencer.start()
        for _ in range(5):
            assert sequencer.tick() is CommandState.RUNNING

        request = drivetrain.current_request
        assert request.frame is DriveFrame.FIELD_CENTRIC
        assert request.omega == pytest.approx(-3.0)
        assert request.vx == 0.0 and request.vy == 0.0

        sequencer.cancel()
        assert sequencer.state is CommandState.INTERRUPTED
        assert sequencer.termination_reason is TerminationReason.CANCELLED
        assert drivetrain.requests[-1].is_zero()
        assert drivetrain.requests[-1].frame is DriveFrame.FIELD_CENTRIC

    def test_diagnostics(self, drivetrain):
        drivetrain.heading = 0.5
        sequencer = HeadingHoldSequencer(HeadingHoldController(0.0, drivetrain), drivetrain)
        sequencer.start()
        sequencer.tick()
        diagnostics = sequencer.get_diagnostics()
        assert diagnostics["heading_error"] == pytest.approx(-0.5)
        assert diagnostics["omega"] == pytest.approx(-1.5)
