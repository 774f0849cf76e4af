from tag_align.telemetry import TelemetryTable


def test_subtable_shares_store():
    root = TelemetryTable()
    sensor = root.subtable("limelight")
    sensor.put_number("tl", 11.0)
    assert root.get_number("limelight/tl") == 11.0
    assert sensor.contains("tl")
    assert root.subtable("limelight/").get_number("tl") == 11.0


def test_defaults_for_missing_or_mistyped_values():
    table = TelemetryTable()
    assert table.get_number("missing", 3.0) == 3.0
    assert table.get_boolean("missing") is False
    assert table.get_string("missing", "x") == "x"
    assert table.get_number_array("missing") == []

    table.put_boolean("flag", True)
    assert table.get_number("flag", -1.0) == -1.0
    table.put_number("value", 2.0)
    assert table.get_boolean("value") is False


def test_number_array_round_trip_is_a_copy():
    table = TelemetryTable()
    table.put_number_array("Fiducial_2", [2, 1.5, 0, 0])
    values = table.get_number_array("Fiducial_2")
    assert values == [2.0, 1.5, 0.0, 0.0]
    values.append(9.0)
    assert len(table.get_number_array("Fiducial_2")) == 4


def test_last_write_wins():
    table = TelemetryTable()
    table.put_number("k", 1.0)
    table.put_number("k", 2.0)
    assert table.get_number("k") == 2.0


def test_keys_delete_and_clear():
    root = TelemetryTable()
    sensor = root.subtable("limelight")
    sensor.put_boolean("tv", True)
    sensor.put_number_array("Fiducial_3", [3])
    sensor.put_number_array("Fiducial_1", [1])
    root.put_number("other", 1.0)

    assert sensor.keys("Fiducial_") == ["Fiducial_1", "Fiducial_3"]
    sensor.delete("Fiducial_1")
    assert sensor.keys("Fiducial_") == ["Fiducial_3"]
    assert sensor.snapshot() == {"Fiducial_3": (3.0,), "tv": True}

    sensor.clear()
    assert sensor.keys() == []
    assert root.keys() == ["other"]
