"""Shared fixtures: a fresh channel, an initialized simulation and a perception adapter."""

import pytest

from tag_align.config import SENSOR_TABLE_NAME
from tag_align.perception import PerceptionAdapter
from tag_align.simulation import SimulationHarness
from tag_align.telemetry import TelemetryTable


@pytest.fixture
def channel():
    return TelemetryTable()


@pytest.fixture
def dashboard(channel):
    return channel.subtable("SmartDashboard")


@pytest.fixture
def harness(channel):
    sim = SimulationHarness(channel)
    sim.init()
    return sim


@pytest.fixture
def perception(channel, dashboard):
    return PerceptionAdapter(channel.subtable(SENSOR_TABLE_NAME), dashboard)
