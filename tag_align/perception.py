"""Perception adapter for fiducial marker detections.

This module turns the detection records a sensor publishes on the shared
channel into per-marker measurements:
- Visibility of a specific marker in the current frame
- Vehicle pose in the marker's frame
- Straight-line and horizontal distance, and bearing, to the marker

Channel schema (one subtable per sensor, ``limelight`` by default):
- ``tv``: target-valid flag for the current frame
- ``Fiducial_<id>``: ``[id, x, y, z, roll, pitch, yaw, tx, ty, ta]``
- ``tl`` / ``cl``: pipeline and capture latency (ms), ``getpipe``: pipeline index
- ``pipeline``: pipeline index requested by the vehicle

A record is only meaningful for the frame that carries it. Nothing here
caches observations between calls, so a marker missing from the current
frame is simply not visible.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from .geometry import Pose3d
from .telemetry import TelemetryTable

FIDUCIAL_PREFIX = "Fiducial_"
TARGET_VALID_KEY = "tv"
PIPELINE_LATENCY_KEY = "tl"
CAPTURE_LATENCY_KEY = "cl"
PIPELINE_INDEX_KEY = "getpipe"
PIPELINE_REQUEST_KEY = "pipeline"

# id + 6 pose values are mandatory, tx/ty/ta are optional
MIN_RECORD_LENGTH = 7


@dataclass(frozen=True)
class MarkerObservation:
    """One marker detected in one sensor frame.

    Attributes:
        marker_id: Fiducial identifier, unique within a frame.
        pose: Vehicle pose in the marker's frame.
        tx_degrees: Horizontal offset of the marker from the crosshair,
            positive when the marker is right of it.
        ty_degrees: Vertical offset of the marker from the crosshair.
        area_fraction: Marker area as percent of the image.
    """

    marker_id: int
    pose: Pose3d
    tx_degrees: float = 0.0
    ty_degrees: float = 0.0
    area_fraction: float = 0.0

    @property
    def distance(self) -> float:
        """Euclidean norm of the pose translation (meters)."""
        return self.pose.translation_norm()

    @property
    def horizontal_distance(self) -> float:
        """Planar X-Y norm of the pose translation (meters)."""
        return self.pose.planar_norm()

    @property
    def bearing(self) -> float:
        """Signed planar angle of the translation, ``atan2(y, x)`` (radians)."""
        return self.pose.planar_bearing()

    def to_record(self) -> List[float]:
        """Encode as a channel record."""
        return [
            float(self.marker_id),
            *self.pose.to_array(),
            self.tx_degrees,
            self.ty_degrees,
            self.area_fraction,
        ]

    @classmethod
    def from_record(cls, record: List[float]) -> "MarkerObservation":
        """Decode a channel record.

        Raises:
            ValueError: If the record is too short.
        """
        if len(record) < MIN_RECORD_LENGTH:
            raise ValueError(f"Fiducial record needs {MIN_RECORD_LENGTH} values, got {len(record)}")
        extras = list(record[MIN_RECORD_LENGTH:MIN_RECORD_LENGTH + 3]) + [0.0, 0.0, 0.0]
        return cls(
            marker_id=int(record[0]),
            pose=Pose3d.from_array(record[1:MIN_RECORD_LENGTH]),
            tx_degrees=float(extras[0]),
            ty_degrees=float(extras[1]),
            area_fraction=float(extras[2]),
        )


def fiducial_key(marker_id: int) -> str:
    return f"{FIDUCIAL_PREFIX}{marker_id}"


def publish_detection_frame(
    table: TelemetryTable,
    observations: Iterable[MarkerObservation],
    pipeline_latency_ms: Optional[float] = None,
    capture_latency_ms: Optional[float] = None,
) -> int:
    """Replace the sensor table's detections with a new frame.

    Every existing ``Fiducial_*`` record is removed first, so markers absent
    from ``observations`` stop being visible.

    Args:
        table: Sensor subtable to publish into.
        observations: Markers detected in this frame.
        pipeline_latency_ms: Optional pipeline latency to publish.
        capture_latency_ms: Optional capture latency to publish.

    Returns:
        Number of records published.
    """
    for key in table.keys(FIDUCIAL_PREFIX):
        table.delete(key)

    count = 0
    for observation in observations:
        table.put_number_array(fiducial_key(observation.marker_id), observation.to_record())
        count += 1

    table.put_boolean(TARGET_VALID_KEY, count > 0)
    if pipeline_latency_ms is not None:
        table.put_number(PIPELINE_LATENCY_KEY, pipeline_latency_ms)
    if capture_latency_ms is not None:
        table.put_number(CAPTURE_LATENCY_KEY, capture_latency_ms)
    return count


class PerceptionAdapter:
    """Query layer over the sensor's current detection frame.

    Every query reads the latest published frame directly; absent markers
    yield ``None``/``False`` rather than exceptions. The adapter never
    commands actuators.

    Attributes:
        sensor: Sensor subtable the detections are read from.
        dashboard: Table receiving status and debug values, or None.
    """

    def __init__(self, sensor: TelemetryTable, dashboard: Optional[TelemetryTable] = None) -> None:
        self.sensor = sensor
        self.dashboard = dashboard

    # ======================== TARGET DETECTION ========================

    def is_connected(self) -> bool:
        """True once the sensor has published at least one frame."""
        return self.sensor.contains(TARGET_VALID_KEY)

    def list_visible_markers(self) -> Iterator[MarkerObservation]:
        """Yield each marker in the current frame.

        The generator is lazy and single-use; call again for a fresh pass.
        Nothing is yielded while the target-valid flag is false.
        """
        if not self.sensor.get_boolean(TARGET_VALID_KEY):
            return
        for key in self.sensor.keys(FIDUCIAL_PREFIX):
            record = self.sensor.get_number_array(key)
            try:
                yield MarkerObservation.from_record(record)
            except ValueError as e:
                logging.debug(f"Skipping malformed detection {key}: {e}")

    def has_target(self) -> bool:
        """True iff the current frame holds at least one valid detection."""
        return next(self.list_visible_markers(), None) is not None

    def detected_count(self) -> int:
        return sum(1 for _ in self.list_visible_markers())

    def observation(self, marker_id: int) -> Optional[MarkerObservation]:
        """Return the current observation of ``marker_id``, or None."""
        for observation in self.list_visible_markers():
            if observation.marker_id == marker_id:
                return observation
        return None

    def is_visible(self, marker_id: int) -> bool:
        return self.observation(marker_id) is not None

    # ======================== POSE ESTIMATION ========================

    def pose_relative_to(self, marker_id: int) -> Optional[Pose3d]:
        """Vehicle pose in the marker's frame, or None if not visible."""
        observation = self.observation(marker_id)
        return observation.pose if observation else None

    def distance_to(self, marker_id: int) -> Optional[float]:
        """Straight-line distance to the marker (meters), or None."""
        observation = self.observation(marker_id)
        return observation.distance if observation else None

    def horizontal_distance_to(self, marker_id: int) -> Optional[float]:
        """Planar X-Y distance to the marker (meters), or None.

        This is the distance the alignment controller regulates.
        """
        observation = self.observation(marker_id)
        return observation.horizontal_distance if observation else None

    def bearing_to(self, marker_id: int) -> Optional[float]:
        """Planar angle ``atan2(y, x)`` of the marker translation (radians), or None."""
        observation = self.observation(marker_id)
        return observation.bearing if observation else None

    def tag_heading(self, marker_id: int) -> Optional[float]:
        """Yaw of the vehicle pose in the marker's frame (radians), or None."""
        observation = self.observation(marker_id)
        return observation.pose.yaw if observation else None

    # ======================== RAW DATA ACCESS ========================

    def _primary(self) -> Optional[MarkerObservation]:
        return next(self.list_visible_markers(), None)

    def tx(self) -> float:
        """Horizontal offset of the primary marker (degrees), 0 if none."""
        primary = self._primary()
        return primary.tx_degrees if primary else 0.0

    def ty(self) -> float:
        """Vertical offset of the primary marker (degrees), 0 if none."""
        primary = self._primary()
        return primary.ty_degrees if primary else 0.0

    def ta(self) -> float:
        """Area of the primary marker (percent of image), 0 if none."""
        primary = self._primary()
        return primary.area_fraction if primary else 0.0

    def pipeline_index(self) -> int:
        return int(self.sensor.get_number(PIPELINE_INDEX_KEY))

    def set_pipeline(self, index: int) -> None:
        """Request that the sensor switch to pipeline ``index`` (0-9).

        Raises:
            ValueError: If the index is outside 0-9.
        """
        if not 0 <= index <= 9:
            raise ValueError(f"Pipeline index must be in 0-9, got {index}")
        self.sensor.put_number(PIPELINE_REQUEST_KEY, index)

    def pipeline_latency(self) -> float:
        return self.sensor.get_number(PIPELINE_LATENCY_KEY)

    def capture_latency(self) -> float:
        return self.sensor.get_number(CAPTURE_LATENCY_KEY)

    # ======================== STATUS ========================

    def periodic(self) -> None:
        """Publish connection status and first-marker diagnostics."""
        if self.dashboard is None:
            return

        markers = list(self.list_visible_markers())
        self.dashboard.put_boolean("Limelight/Connected", self.is_connected())
        self.dashboard.put_boolean("Limelight/Has Target", bool(markers))
        self.dashboard.put_number("Limelight/Fiducials Detected", len(markers))
        self.dashboard.put_number("Limelight/Latency Pipeline (ms)", self.pipeline_latency())
        self.dashboard.put_number("Limelight/Latency Capture (ms)", self.capture_latency())

        if markers:
            first = markers[0]
            self.dashboard.put_number("Limelight/First Tag ID", first.marker_id)
            self.dashboard.put_number("Limelight/Distance to First Tag (m)", first.distance)
            self.dashboard.put_number("Limelight/Horizontal Distance (m)", first.horizontal_distance)
            self.dashboard.put_number("Limelight/Angle to First Tag (deg)", math.degrees(first.bearing))
            self.dashboard.put_number("Limelight/Pose X (m)", first.pose.x)
            self.dashboard.put_number("Limelight/Pose Y (m)", first.pose.y)
            self.dashboard.put_number("Limelight/Pose Z (m)", first.pose.z)
            self.dashboard.put_number("Limelight/Pose Yaw (deg)", math.degrees(first.pose.yaw))

    def describe_markers(self) -> List[str]:
        """Human-readable status lines for console dumps."""
        markers = list(self.list_visible_markers())
        if not markers:
            return ["No markers detected"]

        lines = [f"Detected {len(markers)} marker(s):"]
        for marker in markers:
            pose = marker.pose
            lines.append(
                f"  [Tag {marker.marker_id}] distance={marker.horizontal_distance:.3f} m "
                f"bearing={math.degrees(marker.bearing):.1f}° "
                f"tx={marker.tx_degrees:.1f}° ty={marker.ty_degrees:.1f}° ta={marker.area_fraction:.2f}% "
                f"pose=({pose.x:.3f}, {pose.y:.3f}, {pose.z:.3f}) yaw={math.degrees(pose.yaw):.1f}°"
            )
        return lines
