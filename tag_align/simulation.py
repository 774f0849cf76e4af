"""Synthetic marker detections for running the pipeline without hardware.

The harness publishes records on the same channel and in the same schema as
the real sensor, so the perception adapter cannot tell the difference.

Usage:
    harness = SimulationHarness(channel)
    harness.init()
    harness.set_marker_pose_from_polar(2, 1.5, 0.0, 0.0)  # 1.5 m ahead of tag 2
"""

import logging
import math
from typing import Dict, Iterable, Optional, Sequence

from .config import SENSOR_TABLE_NAME, SIM_TAG_AREA_AT_ONE_METER
from .geometry import Pose3d
from .perception import FIDUCIAL_PREFIX, TARGET_VALID_KEY, MarkerObservation, fiducial_key
from .telemetry import TelemetryTable


class SimulationHarness:
    """Publishes synthetic marker poses to the sensor channel.

    Every operation is a logged no-op (or returns None) until ``init`` has
    been called.

    Attributes:
        root: Channel root table.
        table_name: Sensor subtable name the perception adapter reads.
        scene: Simulated scene state, marker id -> published pose.
    """

    def __init__(self, root: TelemetryTable, table_name: str = SENSOR_TABLE_NAME) -> None:
        self.root = root
        self.table_name = table_name
        self.scene: Dict[int, Pose3d] = {}
        self._table: Optional[TelemetryTable] = None

    @property
    def is_initialized(self) -> bool:
        return self._table is not None

    def init(self) -> None:
        """Attach to the sensor subtable. Safe to call repeatedly."""
        if self._table is not None:
            return
        self._table = self.root.subtable(self.table_name)
        logging.info(f"Marker simulation publishing to '{self.table_name}'")

    def _require_table(self, operation: str) -> Optional[TelemetryTable]:
        if self._table is None:
            logging.warning(f"Simulation not initialized, ignoring {operation}(). Call init() first.")
        return self._table

    def set_marker_pose(self, marker_id: int, x: float, y: float, z: float, yaw_degrees: float) -> None:
        """Publish the vehicle pose relative to a marker.

        Args:
            marker_id: Fiducial identifier.
            x: Forward distance (m), positive away from the marker.
            y: Lateral offset (m), positive left.
            z: Vertical offset (m), usually 0 for markers at camera height.
            yaw_degrees: Rotation relative to the marker (degrees).
        """
        table = self._require_table("set_marker_pose")
        if table is None:
            return

        pose = Pose3d(x=x, y=y, z=z, yaw=math.radians(yaw_degrees))
        planar = pose.planar_norm()
        distance = pose.translation_norm()
        area = SIM_TAG_AREA_AT_ONE_METER / distance**2 if distance > 0 else 100.0

        observation = MarkerObservation(
            marker_id=marker_id,
            pose=pose,
            tx_degrees=-math.degrees(pose.planar_bearing()),
            ty_degrees=math.degrees(math.atan2(z, planar)),
            area_fraction=min(area, 100.0),
        )
        table.put_number_array(fiducial_key(marker_id), observation.to_record())
        table.put_boolean(TARGET_VALID_KEY, True)
        self.scene[marker_id] = pose

    def set_marker_pose_from_polar(
        self, marker_id: int, distance: float, lateral_offset: float, angle_degrees: float
    ) -> None:
        """Publish a pose given as distance and angle from the marker.

        Converts with ``x = d*cos(a)`` and ``y = d*sin(a) + offset``.

        Example: vehicle 1.5 m in front of tag 2, facing it directly:
            set_marker_pose_from_polar(2, 1.5, 0, 0)
        """
        angle = math.radians(angle_degrees)
        x = distance * math.cos(angle)
        y = distance * math.sin(angle) + lateral_offset
        self.set_marker_pose(marker_id, x, y, 0.0, angle_degrees)

    def set_multiple_markers(self, markers: Iterable[Sequence[float]]) -> None:
        """Publish several markers, each ``(id, distance, offset, angle_degrees)``."""
        for entry in markers:
            marker_id, distance, offset, angle = entry
            self.set_marker_pose_from_polar(int(marker_id), distance, offset, angle)

    def clear(self) -> None:
        """Report no target visible. Published poses are kept."""
        table = self._require_table("clear")
        if table is None:
            return
        table.put_boolean(TARGET_VALID_KEY, False)
        logging.debug("Cleared simulated detections")

    def reset(self) -> None:
        """Forget the scene and remove every published record."""
        table = self._require_table("reset")
        if table is None:
            return
        for key in table.keys(FIDUCIAL_PREFIX):
            table.delete(key)
        table.put_boolean(TARGET_VALID_KEY, False)
        self.scene.clear()

    def step_approach(
        self,
        marker_id: int,
        start_distance: float,
        target_distance: float,
        speed: float,
        elapsed: float,
    ) -> Optional[float]:
        """Publish the pose of a straight, constant-speed approach at ``elapsed``.

        Kinematic only: ``distance = max(start - speed * elapsed, target)``,
        on the marker axis with no lateral offset.

        Returns:
            The published distance, or None if not initialized.
        """
        if self._require_table("step_approach") is None:
            return None
        distance = max(start_distance - speed * elapsed, target_distance)
        self.set_marker_pose_from_polar(marker_id, distance, 0.0, 0.0)
        return distance

    def simulated_pose(self, marker_id: int) -> Optional[Pose3d]:
        """Read back the last pose published for a marker, or None."""
        table = self._require_table("simulated_pose")
        if table is None:
            return None
        record = table.get_number_array(fiducial_key(marker_id))
        try:
            return MarkerObservation.from_record(record).pose
        except ValueError:
            return None

    def debug_state(self) -> None:
        """Log the simulated scene."""
        table = self._require_table("debug_state")
        if table is None:
            return
        logging.info("=== Simulated sensor state ===")
        logging.info(f"Has Target: {table.get_boolean(TARGET_VALID_KEY)}")
        for marker_id, pose in sorted(self.scene.items()):
            logging.info(
                f"  Tag {marker_id}: x={pose.x:.3f} y={pose.y:.3f} z={pose.z:.3f} "
                f"yaw={math.degrees(pose.yaw):.1f}°"
            )
