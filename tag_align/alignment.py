"""Proportional alignment controller for marker-relative positioning.

This module converts the pose error between the current marker observation
and a desired stand-off into a bounded velocity command each control tick.

Sign convention (used for every quantity here):
    distance_error = current_distance - desired_distance
    Positive distance error means the vehicle is too far from the marker and
    must drive forward; the forward command has the same sign as the error.

    angle_error = normalize(current_angle - desired_angle)
    The rotational command opposes the angle error (rotational = -k * error).
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional

from .config import (
    ALIGN_ANGLE_GAIN,
    ALIGN_ANGLE_TOLERANCE,
    ALIGN_COMMAND_LIMIT,
    ALIGN_DISTANCE_GAIN,
    ALIGN_DISTANCE_TOLERANCE,
    ALIGN_MISALIGNED_ANGLE,
    ALIGN_MISALIGNED_FORWARD_SCALE,
)
from .geometry import clamp, normalize_angle
from .model import ZERO_COMMAND, VelocityCommand
from .perception import MarkerObservation, PerceptionAdapter
from .telemetry import TelemetryTable


@dataclass(frozen=True)
class TargetSpecification:
    """Desired pose relative to one marker, fixed for a controller's lifetime.

    Raises:
        ValueError: If a distance or tolerance is negative or not finite.
    """

    marker_id: int
    desired_distance: float
    desired_angle: float = 0.0
    distance_tolerance: float = ALIGN_DISTANCE_TOLERANCE
    angle_tolerance: float = ALIGN_ANGLE_TOLERANCE

    def __post_init__(self) -> None:
        for name in ("desired_distance", "desired_angle", "distance_tolerance", "angle_tolerance"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite, got {getattr(self, name)}")
        for name in ("desired_distance", "distance_tolerance", "angle_tolerance"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")


@dataclass
class ControlGains:
    """Proportional gains, shared by reference with the owning controller.

    Written by the tuning surface, read once per tick by the controller.
    """

    distance_gain: float = ALIGN_DISTANCE_GAIN
    angle_gain: float = ALIGN_ANGLE_GAIN


@dataclass(frozen=True)
class AlignmentError:
    """Distance (m) and angle (rad) error for one tick."""

    distance_error: float
    angle_error: float

    def __str__(self) -> str:
        return f"AlignmentError{{distance={self.distance_error:.3f}m, angle={self.angle_error:.3f}rad}}"


class AlignmentController:
    """Stateful proportional controller driving toward a marker stand-off.

    The only state carried between ticks is the latest error and command;
    ``is_aligned`` is a pure function of the latest tick and therefore has
    no hysteresis.

    Attributes:
        target: Desired pose relative to the marker.
        gains: Proportional gains (shared, mutable).
        telemetry: Table receiving per-tick debug values.
        last_error: Error from the latest tick, None if the marker was absent.
        last_command: Command returned by the latest tick.
    """

    def __init__(
        self,
        target: TargetSpecification,
        gains: Optional[ControlGains] = None,
        telemetry: Optional[TelemetryTable] = None,
        misaligned_angle: float = ALIGN_MISALIGNED_ANGLE,
        misaligned_forward_scale: float = ALIGN_MISALIGNED_FORWARD_SCALE,
        command_limit: float = ALIGN_COMMAND_LIMIT,
    ) -> None:
        """Initialize the alignment controller.

        Args:
            target: Marker and desired distance/angle with tolerances.
            gains: Gains to use. A fresh ``ControlGains`` with the configured
                defaults is created if None.
            telemetry: Table for debug values. A private table is used if None.
            misaligned_angle: Angle error (rad) above which forward motion is damped.
            misaligned_forward_scale: Fraction of forward command kept while damped.
            command_limit: Saturation bound of every output axis.
        """
        self.target = target
        self.gains = gains if gains is not None else ControlGains()
        self.telemetry = telemetry if telemetry is not None else TelemetryTable()
        self.misaligned_angle = misaligned_angle
        self.misaligned_forward_scale = misaligned_forward_scale
        self.command_limit = command_limit

        self.last_error: Optional[AlignmentError] = None
        self.last_command: VelocityCommand = ZERO_COMMAND
        self.last_distance: Optional[float] = None
        self.last_angle: Optional[float] = None

    def set_distance_gain(self, gain: float) -> None:
        """Set forward command per meter of error; applies from the next tick."""
        self.gains.distance_gain = gain

    def set_angle_gain(self, gain: float) -> None:
        """Set rotational command per radian of error; applies from the next tick."""
        self.gains.angle_gain = gain

    def compute_error(self, observation: MarkerObservation) -> AlignmentError:
        """Error of an observation against the target specification."""
        return AlignmentError(
            distance_error=observation.horizontal_distance - self.target.desired_distance,
            angle_error=normalize_angle(observation.bearing - self.target.desired_angle),
        )

    def tick(self, observation: Optional[MarkerObservation]) -> VelocityCommand:
        """Compute the velocity command for this tick.

        Args:
            observation: Current observation of the target marker, or None if
                it is not in the current frame. An observation of a different
                marker is treated as absent.

        Returns:
            Bounded VelocityCommand (lateral is always 0). The zero command
            is returned when the marker is absent.
        """
        if observation is None or observation.marker_id != self.target.marker_id:
            self.last_error = None
            self.last_distance = None
            self.last_angle = None
            self.last_command = ZERO_COMMAND
            self._publish_absent()
            return ZERO_COMMAND

        error = self.compute_error(observation)
        self.last_error = error
        self.last_distance = observation.horizontal_distance
        self.last_angle = observation.bearing

        limit = self.command_limit
        rotational = clamp(-self.gains.angle_gain * error.angle_error, -limit, limit)

        forward = self.gains.distance_gain * error.distance_error
        if abs(error.angle_error) > self.misaligned_angle:
            forward *= self.misaligned_forward_scale
        forward = clamp(forward, -limit, limit)

        self.last_command = VelocityCommand(forward=forward, lateral=0.0, rotational=rotational)
        self._publish(error)
        return self.last_command

    def update(self, perception: PerceptionAdapter) -> VelocityCommand:
        """Tick with the target marker's current observation from ``perception``."""
        return self.tick(perception.observation(self.target.marker_id))

    def is_aligned(self) -> bool:
        """True iff the latest tick saw the marker and both errors were in tolerance."""
        if self.last_error is None:
            return False
        return (
            abs(self.last_error.distance_error) <= self.target.distance_tolerance
            and abs(self.last_error.angle_error) <= self.target.angle_tolerance
        )

    def get_diagnostics(self) -> Dict[str, float]:
        """Get diagnostic information for logging and debugging.

        Returns:
            Dictionary of the latest errors and commands. Errors are NaN when
            the marker was absent on the latest tick.
        """
        error = self.last_error
        return {
            "visible": float(error is not None),
            "distance": self.last_distance if self.last_distance is not None else math.nan,
            "angle": self.last_angle if self.last_angle is not None else math.nan,
            "distance_error": error.distance_error if error else math.nan,
            "angle_error": error.angle_error if error else math.nan,
            "forward": self.last_command.forward,
            "lateral": self.last_command.lateral,
            "rotational": self.last_command.rotational,
            "aligned": float(self.is_aligned()),
        }

    def _publish_absent(self) -> None:
        self.telemetry.put_boolean("Align/Tag Visible", False)
        self.telemetry.put_number("Align/Forward Speed", 0.0)
        self.telemetry.put_number("Align/Rotation Speed", 0.0)
        self.telemetry.put_boolean("Align/Is Aligned", False)

    def _publish(self, error: AlignmentError) -> None:
        t = self.telemetry
        t.put_boolean("Align/Tag Visible", True)
        t.put_number("Align/Desired Distance (m)", self.target.desired_distance)
        t.put_number("Align/Current Distance (m)", self.last_distance)
        t.put_number("Align/Current Angle (deg)", math.degrees(self.last_angle))
        t.put_number("Align/Distance Error (m)", error.distance_error)
        t.put_number("Align/Angle Error (deg)", math.degrees(error.angle_error))
        t.put_number("Align/Forward Speed", self.last_command.forward)
        t.put_number("Align/Rotation Speed", self.last_command.rotational)
        t.put_boolean("Align/Is Aligned", self.is_aligned())
