import math

import pytest

from tag_align.geometry import Pose3d
from tag_align.perception import MarkerObservation, PerceptionAdapter, fiducial_key, publish_detection_frame


def test_nothing_published_means_no_target(perception):
    assert not perception.is_connected()
    assert not perception.has_target()
    assert perception.detected_count() == 0
    assert perception.observation(2) is None
    assert perception.distance_to(2) is None
    assert perception.horizontal_distance_to(2) is None
    assert perception.bearing_to(2) is None
    assert perception.tag_heading(2) is None
    assert perception.pose_relative_to(2) is None
    assert perception.tx() == 0.0
    assert perception.ta() == 0.0


def test_single_marker_queries(harness, perception):
    harness.set_marker_pose(2, 1.5, 0.0, 0.0, 0.0)

    assert perception.is_connected()
    assert perception.has_target()
    assert perception.is_visible(2)
    assert not perception.is_visible(3)
    assert perception.horizontal_distance_to(2) == pytest.approx(1.5)
    assert perception.distance_to(2) == pytest.approx(1.5)
    assert perception.bearing_to(2) == pytest.approx(0.0)
    assert perception.pose_relative_to(2) == Pose3d(x=1.5)


def test_distances_split_planar_and_3d(harness, perception):
    harness.set_marker_pose(4, 3.0, 4.0, 12.0, 0.0)
    assert perception.horizontal_distance_to(4) == pytest.approx(5.0)
    assert perception.distance_to(4) == pytest.approx(13.0)
    assert perception.bearing_to(4) == pytest.approx(math.atan2(4.0, 3.0))


def test_multiple_markers_listed_independently(harness, perception):
    harness.set_multiple_markers([(1, 2.0, 0.0, 0.0), (2, 1.5, 0.0, 0.0), (5, 3.0, 0.0, 10.0)])

    ids = sorted(obs.marker_id for obs in perception.list_visible_markers())
    assert ids == [1, 2, 5]
    assert perception.detected_count() == 3
    assert perception.horizontal_distance_to(1) == pytest.approx(2.0)
    assert perception.horizontal_distance_to(5) == pytest.approx(3.0)


def test_clear_hides_every_marker(harness, perception):
    harness.set_marker_pose_from_polar(2, 2.0, 0.0, 0.0)
    harness.clear()
    assert not perception.has_target()
    assert perception.observation(2) is None
    assert list(perception.list_visible_markers()) == []


def test_publish_detection_frame_replaces_previous_frame(perception):
    sensor = perception.sensor
    first = [
        MarkerObservation(1, Pose3d(x=1.0)),
        MarkerObservation(2, Pose3d(x=2.0)),
    ]
    assert publish_detection_frame(sensor, first, 12.5, 3.0) == 2
    assert perception.detected_count() == 2
    assert perception.pipeline_latency() == 12.5
    assert perception.capture_latency() == 3.0

    publish_detection_frame(sensor, [MarkerObservation(2, Pose3d(x=1.8))])
    assert not perception.is_visible(1)
    assert perception.horizontal_distance_to(2) == pytest.approx(1.8)

    publish_detection_frame(sensor, [])
    assert not perception.has_target()
    assert perception.is_connected()


def test_malformed_record_is_skipped(perception):
    sensor = perception.sensor
    sensor.put_number_array(fiducial_key(7), [7.0, 1.0])
    sensor.put_number_array(fiducial_key(2), MarkerObservation(2, Pose3d(x=1.5)).to_record())
    sensor.put_boolean("tv", True)

    assert [obs.marker_id for obs in perception.list_visible_markers()] == [2]
    assert perception.observation(7) is None


def test_record_round_trip_keeps_raw_values():
    observation = MarkerObservation(3, Pose3d(1.0, -0.5, 0.2, 0.0, 0.0, 0.1), 12.0, -3.0, 0.8)
    assert MarkerObservation.from_record(observation.to_record()) == observation

    bare = MarkerObservation.from_record([3, 1.0, 0.0, 0.0, 0.0, 0.0, 0.0])
    assert bare.tx_degrees == 0.0
    assert bare.area_fraction == 0.0

    with pytest.raises(ValueError):
        MarkerObservation.from_record([3, 1.0])


def test_raw_offsets_from_primary_marker(harness, perception):
    harness.set_marker_pose(2, 1.0, 1.0, 0.0, 0.0)
    # marker to the left reads as a negative horizontal offset
    assert perception.tx() == pytest.approx(-45.0)
    assert perception.ty() == pytest.approx(0.0)
    assert perception.ta() == pytest.approx(0.5)


def test_periodic_publishes_status(harness, perception, dashboard):
    perception.periodic()
    assert dashboard.get_boolean("Limelight/Connected") is False

    harness.set_marker_pose(2, 1.5, 0.0, 0.0, 0.0)
    perception.periodic()
    assert dashboard.get_boolean("Limelight/Connected") is True
    assert dashboard.get_boolean("Limelight/Has Target") is True
    assert dashboard.get_number("Limelight/Fiducials Detected") == 1.0
    assert dashboard.get_number("Limelight/First Tag ID") == 2.0
    assert dashboard.get_number("Limelight/Horizontal Distance (m)") == pytest.approx(1.5)


def test_periodic_without_dashboard_is_silent(channel):
    adapter = PerceptionAdapter(channel.subtable("limelight"))
    adapter.periodic()
    assert channel.keys() == []


def test_describe_markers(harness, perception):
    assert perception.describe_markers() == ["No markers detected"]
    harness.set_marker_pose(2, 1.5, 0.0, 0.0, 0.0)
    lines = perception.describe_markers()
    assert lines[0] == "Detected 1 marker(s):"
    assert "[Tag 2]" in lines[1]


def test_tag_heading_is_pose_yaw(harness, perception):
    harness.set_marker_pose_from_polar(2, 2.0, 0.0, 30.0)
    assert perception.tag_heading(2) == pytest.approx(math.radians(30.0))


def test_set_pipeline_writes_request(perception):
    perception.set_pipeline(3)
    assert perception.sensor.get_number("pipeline") == 3
    with pytest.raises(ValueError):
        perception.set_pipeline(10)
