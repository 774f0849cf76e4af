"""One cooperative control tick binding perception, tuning and a command.

The session is what an external fixed-rate scheduler calls: every tick it
publishes perception status, applies operator gain edits, ticks the active
command and logs the result. Nothing in a tick blocks or performs network
I/O.
"""

import logging
from typing import Optional

from .config import STATUS_LOG_INTERVAL, TERM_BLUE, TERM_RESET
from .data_collector import DataCollector
from .perception import PerceptionAdapter
from .sequencer import CommandState, VehicleCommand
from .tuning import GainTuner


class ControlSession:
    """Runs one command against the perception pipeline, one tick at a time.

    Attributes:
        perception: Perception adapter refreshed every tick.
        command: Active vehicle command.
        tuner: Optional operator tuning surface.
        data_collector: Optional CSV logger (must already be set up).
        status_interval: Ticks between console status dumps (0 disables).
        start_time: Timestamp of the first tick, None before it.
    """

    def __init__(
        self,
        perception: PerceptionAdapter,
        command: VehicleCommand,
        tuner: Optional[GainTuner] = None,
        data_collector: Optional[DataCollector] = None,
        status_interval: int = STATUS_LOG_INTERVAL,
    ) -> None:
        self.perception = perception
        self.command = command
        self.tuner = tuner
        self.data_collector = data_collector
        self.status_interval = status_interval
        self.start_time: Optional[float] = None
        self.last_time: Optional[float] = None
        self.tick_count = 0

    @property
    def state(self) -> CommandState:
        return self.command.state

    @property
    def elapsed(self) -> float:
        if self.start_time is None or self.last_time is None:
            return 0.0
        return self.last_time - self.start_time

    def start(self) -> None:
        if self.tuner is not None:
            self.tuner.initialize()
        self.command.start()
        logging.info(f"{TERM_BLUE}✓ Running {self.command.name}{TERM_RESET}")

    def tick(self, timestamp: float) -> CommandState:
        """Run one control tick at ``timestamp`` (seconds)."""
        if self.start_time is None:
            self.start_time = timestamp
        self.last_time = timestamp
        self.tick_count += 1

        self.perception.periodic()
        if self.tuner is not None:
            self.tuner.update()

        was_running = self.command.is_running
        state = self.command.tick()

        if was_running and self.data_collector is not None:
            self.data_collector.log_tick(timestamp, state.value, self.command.get_diagnostics())

        if self.status_interval and self.tick_count % self.status_interval == 0:
            self.log_status()
        return state

    def stop(self) -> None:
        """Cancel the command if still running (zero-velocity flush)."""
        self.command.cancel()

    def log_status(self) -> None:
        """Log perception and command status."""
        logging.info(f"[{self.tick_count}] {self.command.name}: {self.command.state.value}")
        for line in self.perception.describe_markers():
            logging.info(f"     {line}")

    def finalize(self) -> None:
        """Write the run outcome if a data collector is attached."""
        if self.data_collector is None:
            return
        reason = self.command.termination_reason
        self.data_collector.log_outcome(
            self.command.state.value, reason.value if reason else None, self.elapsed
        )
