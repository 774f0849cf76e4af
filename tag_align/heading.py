"""Heading-hold controller.

Rotates the vehicle to a fixed field-relative heading using the vehicle's own
heading estimate. Same proportional pattern as the alignment controller with
a different error source, plus a minimum-rate floor so small corrections do
not stall below the drivetrain's static-friction threshold.
"""

import math
from enum import Enum
from typing import Optional, Union

from .config import HEADING_DEADBAND, HEADING_GAIN, HEADING_MIN_RATE, MAX_ANGULAR_RATE
from .geometry import clamp, normalize_angle
from .model import PoseSource, VelocityCommand
from .telemetry import TelemetryTable


class Heading(Enum):
    """Canonical field-relative headings (degrees, counter-clockwise).

    0 degrees faces the far alliance wall; the operator stands behind the
    near wall, so OPERATOR is the same heading as BACKWARD.
    """

    FORWARD = 0.0
    LEFT = 90.0
    BACKWARD = 180.0
    RIGHT = 270.0
    OPERATOR = 180.0  # alias of BACKWARD

    @property
    def radians(self) -> float:
        return normalize_angle(math.radians(self.value))

    @classmethod
    def from_name(cls, name: str) -> "Heading":
        """Resolve a case-insensitive heading name.

        Raises:
            ValueError: If the name is not a canonical heading.
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            valid = ", ".join(member.lower() for member in cls.__members__)
            raise ValueError(f"Invalid direction: {name!r} (expected one of {valid})") from None


HeadingTarget = Union[Heading, str, float]


def resolve_heading(target: HeadingTarget) -> float:
    """Turn a heading, heading name or angle (radians) into radians in (-pi, pi]."""
    if isinstance(target, Heading):
        return target.radians
    if isinstance(target, str):
        return Heading.from_name(target).radians
    return normalize_angle(float(target))


class HeadingHoldController:
    """Proportional heading controller with deadband and minimum-rate floor.

    Never finishes on its own; the caller holding its activation condition
    cancels it.

    Attributes:
        target_heading: Target field heading (rad), resolved at construction.
        gain: Rotational rate per radian of error (rad/s per rad).
        min_rate: Rate floor applied outside the deadband (rad/s).
        deadband: Error below which the output is exactly zero (rad).
        max_rate: Output saturation (rad/s).
        last_error: Heading error from the latest tick (rad).
    """

    def __init__(
        self,
        target: HeadingTarget,
        pose_source: PoseSource,
        gain: float = HEADING_GAIN,
        min_rate: float = HEADING_MIN_RATE,
        deadband: float = HEADING_DEADBAND,
        max_rate: float = MAX_ANGULAR_RATE,
        telemetry: Optional[TelemetryTable] = None,
    ) -> None:
        """Initialize the heading-hold controller.

        Args:
            target: A ``Heading``, a heading name ("forward", "left",
                "backward", "right", "operator") or an angle in radians.
            pose_source: Provides the vehicle's current field heading.
            gain: Proportional gain (rad/s per rad).
            min_rate: Minimum rate outside the deadband (rad/s).
            deadband: On-target error band (rad).
            max_rate: Platform's maximum angular rate (rad/s).
            telemetry: Table for debug values. A private table is used if None.

        Raises:
            ValueError: If ``target`` names an unknown heading.
        """
        self.target_heading = resolve_heading(target)
        self.pose_source = pose_source
        self.gain = gain
        self.min_rate = min_rate
        self.deadband = deadband
        self.max_rate = max_rate
        self.telemetry = telemetry if telemetry is not None else TelemetryTable()
        self.last_error: float = 0.0

    def set_gain(self, gain: float) -> None:
        self.gain = gain

    def compute_rate(self, error: float) -> float:
        """Rotational rate (rad/s) for a normalized heading error."""
        if abs(error) <= self.deadband:
            return 0.0

        rate = error * self.gain
        if 0 < rate < self.min_rate:
            rate = self.min_rate
        elif -self.min_rate < rate < 0:
            rate = -self.min_rate
        return clamp(rate, -self.max_rate, self.max_rate)

    def tick(self) -> VelocityCommand:
        """Rotation-only command toward the target heading."""
        current = self.pose_source.get_heading()
        error = normalize_angle(self.target_heading - current)
        self.last_error = error
        rate = self.compute_rate(error)

        self.telemetry.put_number("Heading/Target (deg)", math.degrees(self.target_heading))
        self.telemetry.put_number("Heading/Current (deg)", math.degrees(current))
        self.telemetry.put_number("Heading/Error (deg)", math.degrees(error))
        self.telemetry.put_number("Heading/Rotation Rate", rate)
        return VelocityCommand(rotational=rate)

    def is_finished(self) -> bool:
        return False
