import math

import pytest

from tag_align.geometry import Pose3d, clamp, normalize_angle


@pytest.mark.parametrize(
    "theta",
    [0.0, 0.5, -0.5, math.pi / 2, 3 * math.pi / 2, -3 * math.pi / 2, 7.0, -7.0, 100.0, -100.0, 1e6],
)
def test_normalize_angle_range_and_idempotence(theta):
    wrapped = normalize_angle(theta)
    assert -math.pi < wrapped <= math.pi
    assert normalize_angle(wrapped) == wrapped
    # same direction as the input
    assert math.cos(wrapped) == pytest.approx(math.cos(theta), abs=1e-9)
    assert math.sin(wrapped) == pytest.approx(math.sin(theta), abs=1e-9)


def test_normalize_angle_boundaries():
    assert normalize_angle(math.pi) == math.pi
    assert normalize_angle(-math.pi) == math.pi
    assert normalize_angle(3 * math.pi / 2) == pytest.approx(-math.pi / 2)


def test_normalize_angle_leaves_in_range_values_unchanged():
    for theta in (0.0, 1.0, -1.0, 3.0, -3.0):
        assert normalize_angle(theta) == theta


def test_clamp():
    assert clamp(2.0, -1.0, 1.0) == 1.0
    assert clamp(-2.0, -1.0, 1.0) == -1.0
    assert clamp(0.25, -1.0, 1.0) == 0.25


class TestPose3d:
    def test_from_array(self):
        pose = Pose3d.from_array([1, 2, 3, 0.1, 0.2, 0.3, 99])
        assert pose.to_array() == (1.0, 2.0, 3.0, 0.1, 0.2, 0.3)

    def test_from_short_array_raises(self):
        with pytest.raises(ValueError):
            Pose3d.from_array([1, 2, 3])

    def test_norms(self):
        pose = Pose3d(x=3.0, y=4.0, z=12.0)
        assert pose.planar_norm() == pytest.approx(5.0)
        assert pose.translation_norm() == pytest.approx(13.0)

    def test_planar_bearing(self):
        assert Pose3d(x=1.0, y=1.0).planar_bearing() == pytest.approx(math.pi / 4)
        assert Pose3d(x=1.0, y=-1.0).planar_bearing() == pytest.approx(-math.pi / 4)
        assert Pose3d(x=2.0).planar_bearing() == 0.0
