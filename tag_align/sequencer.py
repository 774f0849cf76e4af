"""Command lifecycle wrappers that drive the vehicle from a controller.

Each command is an explicit state machine ticked by an external scheduler:

    IDLE --start()--> RUNNING --finish predicate--> COMPLETED / INTERRUPTED
                         \\--cancel()------------> INTERRUPTED

Every transition out of RUNNING sends a zero-velocity request to the
vehicle first; there is no coast-to-stop path.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from .alignment import AlignmentController
from .heading import HeadingHoldController
from .model import (
    ZERO_COMMAND,
    DriveFrame,
    MotionInterface,
    MotionRequest,
    VelocityCommand,
    stop_request,
    to_motion_request,
)
from .perception import PerceptionAdapter
from .telemetry import TelemetryTable


class CommandState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


class TerminationReason(Enum):
    ALIGNED = "aligned"
    TARGET_LOST = "target_lost"
    CANCELLED = "cancelled"


class VehicleCommand:
    """Base lifecycle for a command that owns the vehicle while running.

    Subclasses implement ``execute`` (one tick of work, returning the
    request sent) and ``check_finished`` (returning a termination reason or
    None).

    Attributes:
        name: Display name used in logs and telemetry.
        vehicle: Motion interface receiving requests.
        frame: Axes requests are expressed in.
        state: Current lifecycle state.
        termination_reason: Why the command left RUNNING, None until then.
        last_request: Latest request sent to the vehicle.
    """

    name = "command"

    def __init__(
        self,
        vehicle: MotionInterface,
        frame: DriveFrame = DriveFrame.ROBOT_CENTRIC,
        telemetry: Optional[TelemetryTable] = None,
    ) -> None:
        self.vehicle = vehicle
        self.frame = frame
        self.telemetry = telemetry if telemetry is not None else TelemetryTable()
        self.state = CommandState.IDLE
        self.termination_reason: Optional[TerminationReason] = None
        self.last_request: MotionRequest = stop_request(frame)
        self.tick_count = 0

    @property
    def is_running(self) -> bool:
        return self.state is CommandState.RUNNING

    @property
    def is_terminal(self) -> bool:
        return self.state in (CommandState.COMPLETED, CommandState.INTERRUPTED)

    def start(self) -> None:
        """Enter RUNNING. Starting a running command does nothing."""
        if self.is_running:
            return
        self.state = CommandState.RUNNING
        self.termination_reason = None
        self.tick_count = 0
        self.initialize()
        self._publish_state()
        logging.debug(f"{self.name} started")

    def initialize(self) -> None:
        """Hook run on entry to RUNNING."""

    def tick(self) -> CommandState:
        """Run one control tick if RUNNING; return the resulting state."""
        if not self.is_running:
            return self.state

        self.tick_count += 1
        self.execute()

        reason = self.check_finished()
        if reason is not None:
            final = (
                CommandState.COMPLETED if reason is TerminationReason.ALIGNED else CommandState.INTERRUPTED
            )
            self._finish(final, reason)
        return self.state

    def cancel(self) -> None:
        """Withdraw the command (external cancellation). Flushes zero velocity."""
        if self.is_running:
            self._finish(CommandState.INTERRUPTED, TerminationReason.CANCELLED)

    def execute(self) -> MotionRequest:
        raise NotImplementedError

    def check_finished(self) -> Optional[TerminationReason]:
        raise NotImplementedError

    def send(self, command: VelocityCommand) -> MotionRequest:
        """Translate and forward a controller command to the vehicle."""
        request = self.translate(command)
        self.vehicle.set_control(request)
        self.last_request = request
        return request

    def translate(self, command: VelocityCommand) -> MotionRequest:
        return to_motion_request(command, self.frame)

    def get_diagnostics(self) -> Dict[str, float]:
        """Latest request sent to the vehicle, for logging."""
        request = self.last_request
        return {"vx": request.vx, "vy": request.vy, "omega": request.omega}

    def _finish(self, state: CommandState, reason: TerminationReason) -> None:
        self.send(ZERO_COMMAND)
        self.state = state
        self.termination_reason = reason
        self._publish_state()
        logging.info(f"{self.name} {state.value} ({reason.value}) after {self.tick_count} ticks")

    def _publish_state(self) -> None:
        self.telemetry.put_string(f"Commands/{self.name}", self.state.value)


class DriveSequencer(VehicleCommand):
    """Drives the vehicle to a marker stand-off using an alignment controller.

    Each tick forwards the controller's command as a robot-centric request.
    Ends when the marker is no longer visible (INTERRUPTED, TARGET_LOST) or
    when the controller reports aligned (COMPLETED, ALIGNED).
    """

    name = "DriveToMarker"

    def __init__(
        self,
        controller: AlignmentController,
        perception: PerceptionAdapter,
        vehicle: MotionInterface,
        frame: DriveFrame = DriveFrame.ROBOT_CENTRIC,
        telemetry: Optional[TelemetryTable] = None,
    ) -> None:
        super().__init__(vehicle, frame, telemetry if telemetry is not None else controller.telemetry)
        self.controller = controller
        self.perception = perception
        self.target_visible = False

    def set_distance_gain(self, gain: float) -> None:
        self.controller.set_distance_gain(gain)

    def set_angle_gain(self, gain: float) -> None:
        self.controller.set_angle_gain(gain)

    def execute(self) -> MotionRequest:
        observation = self.perception.observation(self.controller.target.marker_id)
        self.target_visible = observation is not None
        command = self.controller.tick(observation)
        request = self.send(command)

        t = self.telemetry
        t.put_number("Drive/VelocityX", request.vx)
        t.put_number("Drive/VelocityY", request.vy)
        t.put_number("Drive/OmegaRadPerSec", request.omega)
        t.put_boolean("Drive/IsAligned", self.controller.is_aligned())
        return request

    def get_diagnostics(self) -> Dict[str, float]:
        diagnostics = self.controller.get_diagnostics()
        diagnostics.update(super().get_diagnostics())
        return diagnostics

    def _publish_state(self) -> None:
        super()._publish_state()
        self.telemetry.put_string("Drive/State", self.state.value)

    def check_finished(self) -> Optional[TerminationReason]:
        if not self.target_visible:
            return TerminationReason.TARGET_LOST
        if self.controller.is_aligned():
            return TerminationReason.ALIGNED
        return None


class HeadingHoldSequencer(VehicleCommand):
    """Holds a field heading with field-centric, rotation-only requests.

    Runs until cancelled.
    """

    name = "HoldHeading"

    def __init__(
        self,
        controller: HeadingHoldController,
        vehicle: MotionInterface,
        telemetry: Optional[TelemetryTable] = None,
    ) -> None:
        super().__init__(
            vehicle,
            DriveFrame.FIELD_CENTRIC,
            telemetry if telemetry is not None else controller.telemetry,
        )
        self.controller = controller

    def set_gain(self, gain: float) -> None:
        self.controller.set_gain(gain)

    def translate(self, command: VelocityCommand) -> MotionRequest:
        # heading-hold commands are already in rad/s
        return to_motion_request(command, self.frame, rotation_scale=1.0)

    def execute(self) -> MotionRequest:
        return self.send(self.controller.tick())

    def get_diagnostics(self) -> Dict[str, float]:
        diagnostics = super().get_diagnostics()
        diagnostics["heading_error"] = self.controller.last_error
        diagnostics["rotational"] = self.last_request.omega
        return diagnostics

    def check_finished(self) -> Optional[TerminationReason]:
        return None
