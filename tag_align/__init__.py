"""Tag Align - Vision-Based Fiducial-Marker Alignment

Drives a holonomic vehicle to a desired stand-off distance and bearing
relative to a fiducial marker seen by an onboard camera, using proportional
control on the pose error.

## Architecture Overview

The system is a pipeline ticked once per control cycle by an external
scheduler:

### Layer 1: Perception (perception.py)
Reads the camera's latest detection frame from the key-value channel.
- Per-marker pose of the vehicle in the marker's frame
- Raw horizontal/vertical offsets, area and latency
- Absent markers yield None, never exceptions

### Layer 2: Alignment Control (alignment.py, heading.py)
Converts pose error into a bounded velocity command.
- Distance error drives forward, bearing error drives rotation
- Forward motion damped while badly misaligned
- Heading hold with deadband and minimum-rate floor

### Layer 3: Command Lifecycle (sequencer.py)
Owns the vehicle while a command runs.
- IDLE -> RUNNING -> COMPLETED / INTERRUPTED
- Zero-velocity request on every exit path

### Layer 4: Motion Model (model.py)
Translates commands into the vehicle's motion requests.
- Robot- or field-centric axes, clamped to platform limits
- Kinematic drivetrain for simulation

## Modules

### Core Control Modules
- `config.py` - Centralized configuration parameters with documentation
- `geometry.py` - Angle normalization, clamping, 3D pose
- `telemetry.py` - Hierarchical key-value channel (sensor input, dashboard output)
- `perception.py` - Marker observations and the perception adapter
- `alignment.py` - Proportional alignment controller
- `heading.py` - Canonical headings and heading-hold controller
- `model.py` - Velocity commands, motion requests, simulated drivetrain
- `sequencer.py` - Command state machines
- `tuning.py` - Live gain tuning from the dashboard
- `session.py` - One cooperative control tick

### Simulation
- `simulation.py` - Synthetic detections on the sensor channel
- `scenarios.py` - Closed-loop, scripted-approach and heading-hold runs

### Communication & Data
- `client.py` - WebSocket client for a live sensor/vehicle bridge
- `data_collector.py` - CSV data logging per control tick

### Visualization
- `plot_styles.py` - Shared plotting utilities and color scheme
- `plot_results.py` - CLI for post-run plots

## Quick Start

```python
from tag_align.scenarios import run_closed_loop_alignment

result = run_closed_loop_alignment(start_distance=2.5, start_angle_deg=10)
print(result.state, result.reason)
```

Or use the command-line interface:
```bash
python -m tag_align sim --save
python -m tag_align.plot_results
```

## Configuration

All control parameters are centralized in `config.py`:
- Alignment: gains, tolerances, misalignment damping
- Heading hold: gain, deadband, minimum rate
- Physical: speed and angular-rate limits
- Simulation and transport settings

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"

# Export key classes for convenience
from .alignment import AlignmentController, ControlGains, TargetSpecification
from .data_collector import DataCollector
from .heading import Heading, HeadingHoldController
from .perception import MarkerObservation, PerceptionAdapter
from .sequencer import CommandState, DriveSequencer, HeadingHoldSequencer, TerminationReason
from .session import ControlSession
from .simulation import SimulationHarness
from .telemetry import TelemetryTable

__all__ = [
    "AlignmentController",
    "ControlGains",
    "TargetSpecification",
    "DataCollector",
    "Heading",
    "HeadingHoldController",
    "MarkerObservation",
    "PerceptionAdapter",
    "CommandState",
    "DriveSequencer",
    "HeadingHoldSequencer",
    "TerminationReason",
    "ControlSession",
    "SimulationHarness",
    "TelemetryTable",
]
