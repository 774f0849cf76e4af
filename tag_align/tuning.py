"""Operator tuning surface for live gain adjustment.

Gains are shown on the dashboard table and read back every tick; a changed
value is applied through the owning controller's setter, so it takes effect
on the controller's next tick.

Usage:
    tuner = alignment_tuner(sequencer, dashboard)
    tuner.initialize()   # once, publishes the current gains
    tuner.update()       # every tick, applies operator edits
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict

from .telemetry import TelemetryTable


@dataclass
class TunableParameter:
    """One dashboard-editable value bound to a getter and a setter."""

    name: str
    getter: Callable[[], float]
    setter: Callable[[float], None]


class GainTuner:
    """Binds named parameters to dashboard entries under ``prefix``.

    The dashboard value last seen for each parameter is remembered, so an
    operator edit is told apart from a change made through the owning
    controller's setter. An edit is applied; a setter change is published
    back to the dashboard.
    """

    def __init__(self, dashboard: TelemetryTable, prefix: str) -> None:
        self.table = dashboard.subtable(prefix)
        self.prefix = prefix
        self.parameters: Dict[str, TunableParameter] = {}
        self._last_seen: Dict[str, float] = {}

    def bind(self, name: str, getter: Callable[[], float], setter: Callable[[float], None]) -> None:
        self.parameters[name] = TunableParameter(name, getter, setter)

    def initialize(self) -> None:
        """Publish current values so the operator sees and can edit them."""
        for parameter in self.parameters.values():
            value = parameter.getter()
            self.table.put_number(parameter.name, value)
            self._last_seen[parameter.name] = value
        self.table.put_boolean("Initialized", True)

    def update(self) -> None:
        """Apply operator edits and publish setter changes."""
        for parameter in self.parameters.values():
            current = parameter.getter()
            requested = self.table.get_number(parameter.name, current)
            last_seen = self._last_seen.get(parameter.name, current)
            if requested != last_seen:
                # Operator edited the dashboard entry
                parameter.setter(requested)
                logging.info(f"{self.prefix}/{parameter.name}: {current:.3f} -> {requested:.3f}")
            elif requested != current:
                # Live value changed through the setter
                self.table.put_number(parameter.name, current)
                requested = current
            self._last_seen[parameter.name] = requested

    def values(self) -> Dict[str, float]:
        return {name: parameter.getter() for name, parameter in self.parameters.items()}


def alignment_tuner(target, dashboard: TelemetryTable, prefix: str = "Tuning/Align") -> GainTuner:
    """Tuner for an ``AlignmentController`` or ``DriveSequencer``.

    Both expose ``set_distance_gain``/``set_angle_gain``; the live values are
    read from the underlying controller's gains.
    """
    controller = getattr(target, "controller", target)
    tuner = GainTuner(dashboard, prefix)
    tuner.bind("Distance Gain", lambda: controller.gains.distance_gain, target.set_distance_gain)
    tuner.bind("Angle Gain", lambda: controller.gains.angle_gain, target.set_angle_gain)
    return tuner


def heading_tuner(target, dashboard: TelemetryTable, prefix: str = "Tuning/Heading") -> GainTuner:
    """Tuner for a ``HeadingHoldController`` or ``HeadingHoldSequencer``."""
    controller = getattr(target, "controller", target)
    tuner = GainTuner(dashboard, prefix)
    tuner.bind("Gain", lambda: controller.gain, target.set_gain)
    tuner.bind("Minimum Rate", lambda: controller.min_rate, lambda v: setattr(controller, "min_rate", v))
    return tuner
