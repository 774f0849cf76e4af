"""Vehicle motion model and command translation.

This module provides:
- The controller output type (``VelocityCommand``)
- The vehicle's own motion-request shape (``MotionRequest``) in robot- or
  field-centric axes, and the translation between the two
- A planar kinematic drivetrain used as the plant in simulation

The simulated drivetrain is a kinematic model only: a request takes effect
immediately, there is no momentum and no actuator lag.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol, Tuple

from .config import ALIGN_ROTATION_SCALE, ALIGN_SPEED_SCALE, MAX_ANGULAR_RATE, MAX_SPEED
from .geometry import clamp, normalize_angle


@dataclass(frozen=True)
class VelocityCommand:
    """Three-axis velocity output of a controller for one tick.

    Alignment commands are normalized to [-1, 1]; heading-hold commands are
    in physical units (rad/s). Positive rotational is counter-clockwise.
    """

    forward: float = 0.0
    lateral: float = 0.0
    rotational: float = 0.0

    def is_zero(self) -> bool:
        return self.forward == 0.0 and self.lateral == 0.0 and self.rotational == 0.0


ZERO_COMMAND = VelocityCommand()


class DriveFrame(Enum):
    """Axes a motion request is expressed in."""

    ROBOT_CENTRIC = "robot"
    FIELD_CENTRIC = "field"


@dataclass(frozen=True)
class MotionRequest:
    """Velocity request in the vehicle's own units (m/s, rad/s)."""

    frame: DriveFrame
    vx: float = 0.0
    vy: float = 0.0
    omega: float = 0.0

    def is_zero(self) -> bool:
        return self.vx == 0.0 and self.vy == 0.0 and self.omega == 0.0

    def to_dict(self) -> dict:
        return {"frame": self.frame.value, "vx": self.vx, "vy": self.vy, "omega": self.omega}


def stop_request(frame: DriveFrame = DriveFrame.ROBOT_CENTRIC) -> MotionRequest:
    return MotionRequest(frame)


def to_motion_request(
    command: VelocityCommand,
    frame: DriveFrame = DriveFrame.ROBOT_CENTRIC,
    speed_scale: float = ALIGN_SPEED_SCALE,
    rotation_scale: float = ALIGN_ROTATION_SCALE,
    max_speed: float = MAX_SPEED,
    max_angular_rate: float = MAX_ANGULAR_RATE,
) -> MotionRequest:
    """Translate a controller command into a motion request.

    Each axis is multiplied by its scale and then clamped to the platform
    limits, so a request never exceeds what the hardware accepts.

    Args:
        command: Controller output.
        frame: Axes the request is expressed in.
        speed_scale: m/s per unit of forward/lateral command.
        rotation_scale: rad/s per unit of rotational command.
        max_speed: Translational limit (m/s).
        max_angular_rate: Rotational limit (rad/s).

    Returns:
        MotionRequest clamped to [-max, max] on every axis.

    Example:
        >>> to_motion_request(VelocityCommand(0.5, 0.0, -0.2)).vx
        0.5
    """
    vx = clamp(command.forward * speed_scale, -max_speed, max_speed)
    vy = clamp(command.lateral * speed_scale, -max_speed, max_speed)
    omega = clamp(command.rotational * rotation_scale, -max_angular_rate, max_angular_rate)
    return MotionRequest(frame, vx, vy, omega)


class MotionInterface(Protocol):
    """Vehicle motion interface: accepts one request per tick."""

    def set_control(self, request: MotionRequest) -> None:
        ...


class PoseSource(Protocol):
    """Vehicle self-pose interface: current field-relative heading (rad)."""

    def get_heading(self) -> float:
        ...


class SimulatedDrivetrain:
    """Planar holonomic drivetrain for simulation.

    Holds the field pose (x, y, heading) and integrates the latest request
    when ``step`` is called. Robot-centric requests are rotated into the
    field frame using the current heading.

    Attributes:
        x: Field x position (m).
        y: Field y position (m).
        heading: Field heading (rad), counter-clockwise positive.
        requests: Every request received, in order.
    """

    def __init__(self, x: float = 0.0, y: float = 0.0, heading: float = 0.0) -> None:
        self.x = x
        self.y = y
        self.heading = normalize_angle(heading)
        self.current_request: MotionRequest = stop_request()
        self.requests: List[MotionRequest] = []

    def set_control(self, request: MotionRequest) -> None:
        self.current_request = request
        self.requests.append(request)

    def get_heading(self) -> float:
        return self.heading

    def field_velocity(self) -> Tuple[float, float]:
        """Current request expressed as field-frame (vx, vy)."""
        request = self.current_request
        if request.frame is DriveFrame.FIELD_CENTRIC:
            return request.vx, request.vy
        cos_h = math.cos(self.heading)
        sin_h = math.sin(self.heading)
        return (
            request.vx * cos_h - request.vy * sin_h,
            request.vx * sin_h + request.vy * cos_h,
        )

    def step(self, dt: float) -> None:
        """Advance the pose by ``dt`` seconds under the current request."""
        vx, vy = self.field_velocity()
        self.x += vx * dt
        self.y += vy * dt
        self.heading = normalize_angle(self.heading + self.current_request.omega * dt)

    def relative_polar(self, target_x: float, target_y: float) -> Tuple[float, float]:
        """Distance and angular offset of a field point from the vehicle.

        The offset is measured clockwise from the vehicle's forward axis,
        which is how the camera reports horizontal offset (positive = to the
        right). A counter-clockwise rotation therefore increases it.

        Returns:
            Tuple of (distance in meters, offset in radians).
        """
        dx = target_x - self.x
        dy = target_y - self.y
        distance = math.hypot(dx, dy)
        offset = -normalize_angle(math.atan2(dy, dx) - self.heading)
        return distance, normalize_angle(offset)
