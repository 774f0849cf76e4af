"""Geometry helpers for marker-relative poses.

Pure functions for angle normalization and clamping, plus a small 6-DOF pose
type with the distance and bearing extractions the controllers need.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

TWO_PI = 2.0 * math.pi


def normalize_angle(theta: float) -> float:
    """Wrap an angle into the half-open interval (-pi, pi].

    Uses ``math.remainder`` rather than repeated subtraction so that large
    inputs wrap in constant time and values already in range come back
    unchanged, which makes the function idempotent.

    Args:
        theta: Angle in radians.

    Returns:
        Equivalent angle in (-pi, pi].

    Example:
        >>> normalize_angle(3 * math.pi / 2)
        -1.5707963267948966
        >>> normalize_angle(-math.pi)
        3.141592653589793
    """
    wrapped = math.remainder(theta, TWO_PI)
    if wrapped <= -math.pi:
        wrapped += TWO_PI
    return wrapped


def clamp(value: float, low: float, high: float) -> float:
    """Bound a value to [low, high]."""
    return max(low, min(high, value))


@dataclass(frozen=True)
class Pose3d:
    """Position (meters) and orientation (radians) of one frame in another.

    For marker observations this is the vehicle's pose expressed in the
    marker's coordinate frame.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "Pose3d":
        """Build a pose from ``[x, y, z, roll, pitch, yaw]``.

        Raises:
            ValueError: If fewer than six values are given.
        """
        if len(values) < 6:
            raise ValueError(f"Pose needs 6 values, got {len(values)}")
        return cls(*(float(v) for v in values[:6]))

    def to_array(self) -> Tuple[float, float, float, float, float, float]:
        return (self.x, self.y, self.z, self.roll, self.pitch, self.yaw)

    def translation_norm(self) -> float:
        """Straight-line (3D) length of the translation."""
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def planar_norm(self) -> float:
        """Length of the translation projected onto the X-Y plane."""
        return math.hypot(self.x, self.y)

    def planar_bearing(self) -> float:
        """Signed angle of the X-Y translation, ``atan2(y, x)`` (radians)."""
        return math.atan2(self.y, self.x)
