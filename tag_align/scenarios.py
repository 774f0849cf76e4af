"""Deterministic simulated runs of the full control pipeline.

Each scenario wires a telemetry channel, the simulation harness, the
perception adapter, a controller and its command together exactly as a live
deployment would, and advances time in fixed ``CONTROL_DT`` steps.

Usage:
    result = run_closed_loop_alignment(start_distance=2.5, start_angle_deg=10)
    print(result.state, result.reason, result.duration)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .alignment import AlignmentController, ControlGains, TargetSpecification
from .config import (
    ALIGN_ANGLE_GAIN,
    ALIGN_DISTANCE_GAIN,
    CONTROL_DT,
    DEFAULT_DESIRED_DISTANCE,
    DEFAULT_TARGET_MARKER,
    SENSOR_TABLE_NAME,
    SIM_SCENARIO_TIMEOUT,
    STATUS_LOG_INTERVAL,
)
from .data_collector import DataCollector
from .heading import HeadingHoldController, HeadingTarget
from .model import SimulatedDrivetrain
from .perception import PerceptionAdapter
from .sequencer import CommandState, DriveSequencer, HeadingHoldSequencer, TerminationReason
from .session import ControlSession
from .simulation import SimulationHarness
from .telemetry import TelemetryTable
from .tuning import alignment_tuner, heading_tuner


@dataclass
class ScenarioResult:
    """Outcome of a simulated run.

    Attributes:
        state: Final command state.
        reason: Termination reason, None if the command never left RUNNING.
        duration: Simulated time elapsed (s).
        ticks: Number of control ticks run.
        final_distance: Last observed horizontal distance (m), if any.
        final_angle: Last observed bearing (rad), if any.
        final_heading: Drivetrain heading at the end (rad).
        channel: Root telemetry table, for post-run inspection.
    """

    state: CommandState
    reason: Optional[TerminationReason]
    duration: float
    ticks: int
    final_distance: Optional[float] = None
    final_angle: Optional[float] = None
    final_heading: float = 0.0
    channel: TelemetryTable = field(default_factory=TelemetryTable, repr=False)


def _run_session(
    session: ControlSession,
    timeout: float,
    before_tick=None,
    after_tick=None,
) -> float:
    """Tick ``session`` at ``CONTROL_DT`` until it stops running or times out.

    Returns:
        Simulated time at the last tick (s).
    """
    session.start()
    max_ticks = int(round(timeout / CONTROL_DT))
    timestamp = 0.0
    for tick in range(max_ticks):
        timestamp = tick * CONTROL_DT
        if before_tick is not None:
            before_tick()
        session.tick(timestamp)
        if after_tick is not None:
            after_tick()
        if not session.command.is_running:
            break
    else:
        logging.info(f"{session.command.name} still running after {timeout:.1f}s, cancelling")
        session.stop()

    session.finalize()
    return timestamp


def run_closed_loop_alignment(
    start_distance: float = 2.5,
    start_angle_deg: float = 10.0,
    marker_id: int = DEFAULT_TARGET_MARKER,
    desired_distance: float = DEFAULT_DESIRED_DISTANCE,
    distance_gain: float = ALIGN_DISTANCE_GAIN,
    angle_gain: float = ALIGN_ANGLE_GAIN,
    timeout: float = SIM_SCENARIO_TIMEOUT,
    data_collector: Optional[DataCollector] = None,
    status_interval: int = STATUS_LOG_INTERVAL,
) -> ScenarioResult:
    """Drive a simulated vehicle to the stand-off in front of a marker.

    The marker is fixed in the field; every tick the harness republishes the
    marker as seen from the drivetrain's current pose, the session ticks the
    drive sequencer, and the drivetrain integrates the resulting request.

    Args:
        start_distance: Initial distance to the marker (m).
        start_angle_deg: Initial marker offset, clockwise from the vehicle's
            forward axis (degrees).
        marker_id: Target marker identifier.
        desired_distance: Stand-off distance (m).
        distance_gain: Forward gain.
        angle_gain: Rotational gain.
        timeout: Simulated time before the run is cancelled (s).
        data_collector: Optional, already set up, CSV logger.
        status_interval: Ticks between status log dumps (0 disables).

    Returns:
        ScenarioResult with the final state and termination reason.
    """
    channel = TelemetryTable()
    dashboard = channel.subtable("SmartDashboard")
    harness = SimulationHarness(channel)
    harness.init()
    perception = PerceptionAdapter(channel.subtable(SENSOR_TABLE_NAME), dashboard)

    drivetrain = SimulatedDrivetrain()
    offset = math.radians(start_angle_deg)
    marker_x = start_distance * math.cos(offset)
    marker_y = -start_distance * math.sin(offset)

    controller = AlignmentController(
        TargetSpecification(marker_id, desired_distance),
        ControlGains(distance_gain, angle_gain),
        telemetry=dashboard,
    )
    sequencer = DriveSequencer(controller, perception, drivetrain)
    session = ControlSession(
        perception,
        sequencer,
        tuner=alignment_tuner(sequencer, dashboard),
        data_collector=data_collector,
        status_interval=status_interval,
    )

    def observe() -> None:
        distance, bearing = drivetrain.relative_polar(marker_x, marker_y)
        harness.set_marker_pose_from_polar(marker_id, distance, 0.0, math.degrees(bearing))

    logging.info(
        f"Closed-loop alignment: tag {marker_id} at {start_distance:.2f} m, "
        f"{start_angle_deg:.1f}°, stand-off {desired_distance:.2f} m"
    )
    duration = _run_session(session, timeout, observe, lambda: drivetrain.step(CONTROL_DT))

    return ScenarioResult(
        state=sequencer.state,
        reason=sequencer.termination_reason,
        duration=duration,
        ticks=sequencer.tick_count,
        final_distance=controller.last_distance,
        final_angle=controller.last_angle,
        final_heading=drivetrain.heading,
        channel=channel,
    )


def run_scripted_approach(
    marker_id: int = DEFAULT_TARGET_MARKER,
    start_distance: float = 2.5,
    desired_distance: float = DEFAULT_DESIRED_DISTANCE,
    speed: float = 0.5,
    step: float = 0.1,
    steps: int = 40,
) -> List[Dict[str, float]]:
    """Open-loop quick test: a scripted straight approach fed to the controller.

    The harness moves the marker pose on a fixed schedule regardless of the
    controller's output, which is useful for checking the sign and magnitude
    of the commands without a plant in the loop.

    Returns:
        One record per step with ``elapsed``, ``distance`` and the
        controller's diagnostics.
    """
    channel = TelemetryTable()
    harness = SimulationHarness(channel)
    harness.init()
    perception = PerceptionAdapter(channel.subtable(SENSOR_TABLE_NAME))
    controller = AlignmentController(TargetSpecification(marker_id, desired_distance))

    records = []
    for index in range(steps):
        elapsed = index * step
        distance = harness.step_approach(marker_id, start_distance, desired_distance, speed, elapsed)
        controller.update(perception)
        record = {"elapsed": elapsed, "distance": distance}
        record.update(controller.get_diagnostics())
        records.append(record)
        logging.debug(
            f"t={elapsed:.1f}s d={distance:.3f} m forward={controller.last_command.forward:+.3f} "
            f"aligned={controller.is_aligned()}"
        )
    return records


def run_heading_hold(
    target: HeadingTarget = "forward",
    start_heading: float = 0.0,
    duration: float = 2.0,
    data_collector: Optional[DataCollector] = None,
    status_interval: int = 0,
) -> ScenarioResult:
    """Hold a field heading on the simulated drivetrain, then cancel.

    Args:
        target: Heading, heading name or angle (rad).
        start_heading: Initial drivetrain heading (rad).
        duration: Simulated time to hold before cancelling (s).

    Returns:
        ScenarioResult; the state is always INTERRUPTED (CANCELLED) since a
        heading hold never finishes on its own.
    """
    channel = TelemetryTable()
    dashboard = channel.subtable("SmartDashboard")
    drivetrain = SimulatedDrivetrain(heading=start_heading)
    controller = HeadingHoldController(target, drivetrain, telemetry=dashboard)
    sequencer = HeadingHoldSequencer(controller, drivetrain)
    perception = PerceptionAdapter(channel.subtable(SENSOR_TABLE_NAME), dashboard)
    session = ControlSession(
        perception,
        sequencer,
        tuner=heading_tuner(sequencer, dashboard),
        data_collector=data_collector,
        status_interval=status_interval,
    )

    elapsed = _run_session(session, duration, after_tick=lambda: drivetrain.step(CONTROL_DT))

    return ScenarioResult(
        state=sequencer.state,
        reason=sequencer.termination_reason,
        duration=elapsed,
        ticks=sequencer.tick_count,
        final_heading=drivetrain.heading,
        channel=channel,
    )
