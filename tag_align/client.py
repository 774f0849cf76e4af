#!/usr/bin/env python3
"""
WebSocket Client for Live Marker Alignment

This module connects the control session to a remote sensor/vehicle bridge.
The bridge streams detection frames and heading estimates. Every detection
frame is published to the sensor table. A drive to a marker ticks once per
detection frame; a heading hold ticks once per heading message, so it runs
without vision. The resulting motion request is sent back. On shutdown a
zero-velocity request is always sent before the connection closes.

Message formats (JSON):
    inbound  {"message_type": "detections", "timestamp": t,
              "markers": [{"id": 2, "pose": [x, y, z, roll, pitch, yaw],
                           "tx": deg, "ty": deg, "ta": pct}, ...],
              "pipeline_latency": ms, "capture_latency": ms}
    inbound  {"message_type": "heading", "heading": rad}
    inbound  {"message_type": "stop"}
    outbound {"message_type": "motion", "frame": "robot", "vx": m/s,
              "vy": m/s, "omega": rad/s}
"""

import asyncio
import json
import logging
import signal
import time
from typing import Any, Dict, List, Optional, Union

import websockets

from .alignment import AlignmentController, TargetSpecification
from .config import (
    DEFAULT_DESIRED_DISTANCE,
    DEFAULT_TARGET_MARKER,
    SENSOR_TABLE_NAME,
    TERM_BLUE,
    TERM_RESET,
    WS_MAX_RETRY_DELAY_SECONDS,
    WS_RETRY_DELAY_SECONDS,
    WS_TIMEOUT_SECONDS,
    WS_URI,
)
from .data_collector import DataCollector
from .geometry import Pose3d
from .heading import HeadingHoldController, HeadingTarget
from .model import MotionRequest, stop_request
from .perception import MarkerObservation, PerceptionAdapter, publish_detection_frame
from .sequencer import DriveSequencer, HeadingHoldSequencer
from .session import ControlSession
from .telemetry import TelemetryTable
from .tuning import alignment_tuner, heading_tuner


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


class RemoteDrivetrain:
    """Vehicle proxy on the far side of the WebSocket connection.

    ``set_control`` only buffers the latest request; the client sends it
    after the tick, so no I/O happens inside a control tick. The heading is
    whatever the bridge last reported.

    Attributes:
        pending: Request waiting to be sent, None once sent.
        heading: Latest reported field heading (rad).
        requests_sent: Number of requests handed to the transport.
    """

    def __init__(self, heading: float = 0.0) -> None:
        self.pending: Optional[MotionRequest] = None
        self.heading = heading
        self.requests_sent = 0

    def set_control(self, request: MotionRequest) -> None:
        self.pending = request

    def get_heading(self) -> float:
        return self.heading

    def update_heading(self, heading: float) -> None:
        self.heading = heading

    def take_pending(self) -> Optional[MotionRequest]:
        """Return the buffered request and clear it."""
        request, self.pending = self.pending, None
        if request is not None:
            self.requests_sent += 1
        return request


def decode_marker(entry: Dict[str, Any]) -> MarkerObservation:
    """Build an observation from one ``markers`` entry of a detections message.

    Raises:
        KeyError: If ``id`` or ``pose`` is missing.
        ValueError: If the pose has fewer than six values.
    """
    return MarkerObservation(
        marker_id=int(entry["id"]),
        pose=Pose3d.from_array([float(v) for v in entry["pose"]]),
        tx_degrees=float(entry.get("tx", 0.0)),
        ty_degrees=float(entry.get("ty", 0.0)),
        area_fraction=float(entry.get("ta", 0.0)),
    )


def encode_motion_request(request: MotionRequest) -> str:
    """Serialize a motion request as an outbound ``motion`` message."""
    message = {"message_type": "motion"}
    message.update(request.to_dict())
    return json.dumps(message)


class AlignmentClient:
    """Runs a control session against a remote bridge over WebSocket.

    Attributes:
        uri: WebSocket URI to connect to.
        session: Control session ticked once per detection frame.
        vehicle: Remote drivetrain proxy the session's command drives.
        should_stop: Flag indicating whether to stop the control loop.
        frames_received: Number of detection frames processed.
    """

    def __init__(self, uri: str, session: ControlSession, vehicle: RemoteDrivetrain) -> None:
        """Initialize the client.

        Args:
            uri: WebSocket URI (must start with ws:// or wss://).
            session: Control session to drive.
            vehicle: The drivetrain proxy the session's command was built with.

        Raises:
            ValueError: If URI format is invalid.
        """
        if not uri or not uri.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URI: {uri}. Must start with 'ws://' or 'wss://'")

        self.uri: str = uri
        self.session = session
        self.vehicle = vehicle
        self.should_stop: bool = False
        self.frames_received: int = 0

    # ======================== MESSAGE HANDLING ========================

    def process_detections_message(self, data: Dict[str, Any]) -> None:
        """Publish a detection frame and, when driving to a marker, tick on it."""
        markers = data.get("markers", [])
        if not isinstance(markers, list):
            logging.warning(f"Invalid markers data type: expected list, got {type(markers)}")
            return

        # A malformed entry rejects the whole frame
        observations: List[MarkerObservation] = [decode_marker(entry) for entry in markers]
        publish_detection_frame(
            self.session.perception.sensor,
            observations,
            data.get("pipeline_latency"),
            data.get("capture_latency"),
        )
        self.frames_received += 1

        # A heading hold is clocked by heading messages instead
        if not self.holds_heading:
            self.tick(data)

    def process_heading_message(self, data: Dict[str, Any]) -> None:
        """Record the reported heading; a heading hold ticks on it."""
        self.vehicle.update_heading(float(data["heading"]))
        if self.holds_heading:
            self.tick(data)

    @property
    def holds_heading(self) -> bool:
        return isinstance(self.session.command, HeadingHoldSequencer)

    def tick(self, data: Dict[str, Any]) -> None:
        """Run one control tick at the message timestamp (or now)."""
        timestamp = float(data.get("timestamp", time.time()))
        state = self.session.tick(timestamp)
        if self.session.command.is_terminal:
            reason = self.session.command.termination_reason
            logging.info(f"{TERM_BLUE}\033[1m→ {self.session.command.name}: {state.value} ({reason.value}){TERM_RESET}")
            self.should_stop = True

    def parse_and_route_message(self, message: Union[str, bytes]) -> None:
        """Parse incoming message and route to appropriate handler.

        Malformed messages are logged and skipped.

        Args:
            message: Raw JSON message string or bytes from WebSocket.
        """
        try:
            # Decode bytes to string if necessary
            if isinstance(message, bytes):
                message = message.decode("utf-8")
            data = json.loads(message)

            message_type = data.get("message_type")
            if message_type == "detections":
                self.process_detections_message(data)
            elif message_type == "heading":
                self.process_heading_message(data)
            elif message_type == "stop":
                logging.info("Stop requested by server")
                self.stop()
            else:
                logging.debug(f"\nReceived unknown message: {json.dumps(data, indent=2)}\n")

        except json.JSONDecodeError as e:
            logging.error(f"Error parsing JSON: {e}")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logging.error(f"Error processing message data: {e}")
        except Exception as e:
            logging.error(f"Unexpected error processing message: {e}", exc_info=True)

    # ======================== TRANSPORT ========================

    async def send_pending(self, websocket: Any) -> None:
        """Send the request buffered by the latest tick, if any."""
        request = self.vehicle.take_pending()
        if request is None:
            return
        await websocket.send(encode_motion_request(request))
        logging.debug(f"Sent motion: vx={request.vx:.3f}, vy={request.vy:.3f}, omega={request.omega:.3f}")

    async def send_stop(self, websocket: Any) -> None:
        """Send a zero-velocity request in the command's frame."""
        self.vehicle.take_pending()
        await websocket.send(encode_motion_request(stop_request(self.session.command.frame)))
        logging.info("Sent zero-velocity request")

    async def run_control_loop(self) -> None:
        """Connect to WebSocket and run the control loop.

        Maintains a connection to the server with automatic retry logic and
        exponential backoff. Continues until ``should_stop`` is set (stop
        message, terminal command state or shutdown signal).
        """
        retry_delay = WS_RETRY_DELAY_SECONDS
        max_retry_delay = WS_MAX_RETRY_DELAY_SECONDS

        while not self.should_stop:
            try:
                async with websockets.connect(self.uri) as websocket:
                    logging.info(f"{TERM_BLUE}✓ Connected to server{TERM_RESET}")
                    # Reset retry delay on successful connection
                    retry_delay = WS_RETRY_DELAY_SECONDS

                    try:
                        while not self.should_stop:
                            try:
                                message = await asyncio.wait_for(websocket.recv(), timeout=WS_TIMEOUT_SECONDS)
                            except asyncio.TimeoutError:
                                # No message yet, re-check the stop flag
                                continue
                            # Route the message (may tick the session), then send its request
                            self.parse_and_route_message(message)
                            await self.send_pending(websocket)
                    except websockets.exceptions.ConnectionClosed:
                        logging.warning("Connection closed by server")
                        continue

                    # Leave the vehicle stopped before closing
                    await self.send_stop(websocket)

            except Exception as e:
                if self.should_stop:
                    break
                # Exponential backoff for reconnection
                logging.error(f"Connection error: {e}")
                logging.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, max_retry_delay)

    def stop(self) -> None:
        """Signal the client to stop. The command is cancelled (zero flush)."""
        self.session.stop()
        self.should_stop = True

    def __enter__(self) -> "AlignmentClient":
        if self.session.data_collector is not None:
            self.session.data_collector.setup()
        self.session.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit point - cancels the command and closes the log."""
        self.session.stop()
        self.session.finalize()
        if self.session.data_collector is not None:
            self.session.data_collector.cleanup()


def build_live_session(
    vehicle: RemoteDrivetrain,
    marker_id: int = DEFAULT_TARGET_MARKER,
    desired_distance: float = DEFAULT_DESIRED_DISTANCE,
    heading: Optional[HeadingTarget] = None,
    data_collector: Optional[DataCollector] = None,
) -> ControlSession:
    """Wire a session for live use: drive to a marker, or hold a heading if given."""
    channel = TelemetryTable()
    dashboard = channel.subtable("SmartDashboard")
    perception = PerceptionAdapter(channel.subtable(SENSOR_TABLE_NAME), dashboard)

    # Heading hold when a heading is given, otherwise drive to the marker
    if heading is not None:
        controller = HeadingHoldController(heading, vehicle, telemetry=dashboard)
        command = HeadingHoldSequencer(controller, vehicle)
        tuner = heading_tuner(command, dashboard)
    else:
        alignment = AlignmentController(TargetSpecification(marker_id, desired_distance), telemetry=dashboard)
        command = DriveSequencer(alignment, perception, vehicle)
        tuner = alignment_tuner(command, dashboard)

    return ControlSession(perception, command, tuner=tuner, data_collector=data_collector)


async def main(
    uri: str = WS_URI,
    marker_id: int = DEFAULT_TARGET_MARKER,
    desired_distance: float = DEFAULT_DESIRED_DISTANCE,
    heading: Optional[HeadingTarget] = None,
    save_data: bool = True,
) -> None:
    """Main entry point for the WebSocket client.

    Builds the session, sets up signal handlers for graceful shutdown, and
    starts the control loop.
    """
    vehicle = RemoteDrivetrain()
    data_collector = DataCollector() if save_data else None
    session = build_live_session(vehicle, marker_id, desired_distance, heading, data_collector)

    with AlignmentClient(uri, session, vehicle) as client:
        loop = asyncio.get_event_loop()

        def signal_handler() -> None:
            """Handle shutdown signals (SIGINT, SIGTERM)."""
            logging.info("\nShutdown signal received...")
            client.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

        await client.run_control_loop()
