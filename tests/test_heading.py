import math

import pytest

from tag_align.heading import Heading, HeadingHoldController, resolve_heading
from tag_align.model import SimulatedDrivetrain
from tag_align.telemetry import TelemetryTable


def make_controller(current, target=Heading.FORWARD, **kwargs):
    return HeadingHoldController(target, SimulatedDrivetrain(heading=current), **kwargs)


@pytest.mark.parametrize(
    "name,degrees",
    [("forward", 0.0), ("left", 90.0), ("backward", 180.0), ("right", 270.0), ("operator", 180.0)],
)
def test_canonical_names(name, degrees):
    heading = Heading.from_name(name)
    assert heading.value == degrees
    assert Heading.from_name(name.upper()) is heading


def test_operator_is_backward():
    assert Heading.OPERATOR is Heading.BACKWARD
    assert resolve_heading("operator") == pytest.approx(math.pi)


def test_right_resolves_to_negative_quarter_turn():
    assert resolve_heading(Heading.RIGHT) == pytest.approx(-math.pi / 2)


def test_invalid_name_raises():
    with pytest.raises(ValueError, match="Invalid direction"):
        Heading.from_name("sideways")
    with pytest.raises(ValueError):
        HeadingHoldController("up", SimulatedDrivetrain())


def test_numeric_target_is_normalized():
    assert resolve_heading(2 * math.pi + 1.0) == pytest.approx(1.0)


def test_inside_deadband_is_zero():
    controller = make_controller(0.05)
    assert controller.tick().rotational == 0.0
    assert controller.compute_rate(-0.1) == 0.0


def test_minimum_rate_floor():
    controller = make_controller(0.0)
    assert controller.compute_rate(0.2) == pytest.approx(1.5)
    assert controller.compute_rate(-0.2) == pytest.approx(-1.5)


def test_proportional_above_floor():
    controller = make_controller(0.0)
    assert controller.compute_rate(1.0) == pytest.approx(3.0)


def test_output_clamped_to_max_rate():
    controller = make_controller(0.0, gain=10.0)
    assert controller.compute_rate(math.pi) == pytest.approx(2 * math.pi)
    assert controller.compute_rate(-math.pi) == pytest.approx(-2 * math.pi)


def test_rotation_toward_target_takes_short_way():
    # current heading 170 deg, target -170 deg: short way is counter-clockwise
    controller = make_controller(math.radians(170), target=math.radians(-170))
    command = controller.tick()
    assert controller.last_error == pytest.approx(math.radians(20))
    assert command.rotational > 0
    assert command.forward == 0.0 and command.lateral == 0.0


def test_never_finishes():
    controller = make_controller(0.0)
    controller.tick()
    assert not controller.is_finished()


def test_gain_setter():
    controller = make_controller(-1.0)
    controller.set_gain(2.0)
    assert controller.tick().rotational == pytest.approx(2.0)


def test_publishes_debug_values():
    table = TelemetryTable()
    controller = make_controller(0.0, target=Heading.LEFT, telemetry=table)
    controller.tick()
    assert table.get_number("Heading/Target (deg)") == pytest.approx(90.0)
    assert table.get_number("Heading/Error (deg)") == pytest.approx(90.0)
    assert table.get_number("Heading/Rotation Rate") == pytest.approx(3.0 * math.pi / 2)
