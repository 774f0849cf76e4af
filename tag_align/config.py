"""Configuration parameters for the marker alignment system.

This module centralizes all configuration parameters including:
- Drivetrain limits
- Alignment controller gains and tolerances
- Heading-hold controller parameters
- Sensor channel and simulation settings
- Visualization and WebSocket connection parameters

All parameters are documented with their purpose, units, and tuning rationale.
Controllers receive these values through their constructors; nothing reads
them as ambient mutable state.
"""

import math

# ============================================================================
# Control Loop
# ============================================================================

CONTROL_RATE_HZ = 50.0
"""Fixed rate of the cooperative control tick (Hz)."""

CONTROL_DT = 1.0 / CONTROL_RATE_HZ
"""Control tick period (seconds). 20 ms at 50 Hz."""

STATUS_LOG_INTERVAL = 10
"""Ticks between console status dumps (200 ms at 50 Hz)."""


# ============================================================================
# Drivetrain Limits
# ============================================================================

MAX_SPEED = 2.0
"""Maximum translational speed of the platform (m/s). Hardware limit."""

MAX_ANGULAR_RATE = 2.0 * math.pi
"""Maximum rotational rate of the platform (rad/s). Hardware limit."""

ALIGN_SPEED_SCALE = 1.0
"""Physical speed (m/s) corresponding to a normalized forward/lateral command of 1.0.

Tuning rationale:
- 1.0 m/s keeps vision-guided approaches well below MAX_SPEED
- Pose estimates get noisy when the marker blurs at higher speed
"""

ALIGN_ROTATION_SCALE = 1.0
"""Physical rate (rad/s) corresponding to a normalized rotational command of 1.0."""


# ============================================================================
# Alignment Controller (Proportional)
# ============================================================================

ALIGN_DISTANCE_GAIN = 2.0
"""Normalized forward command per meter of distance error.

Tuning rationale:
- 2.0 saturates the forward command at 0.5 m of error
- Lower values (0.5) made final approach noticeably slow
"""

ALIGN_ANGLE_GAIN = 0.8
"""Normalized rotational command per radian of angle error.

Tuning rationale:
- 0.8 avoids overshoot from the sensor's frame latency
- Higher values (>1.2) oscillate around the marker centre line
"""

ALIGN_DISTANCE_TOLERANCE = 0.05
"""Distance error accepted as aligned (meters)."""

ALIGN_ANGLE_TOLERANCE = 0.05
"""Angle error accepted as aligned (radians, about 2.9 degrees)."""

ALIGN_MISALIGNED_ANGLE = 0.785
"""Angle error above which forward motion is damped (radians, about 45 degrees)."""

ALIGN_MISALIGNED_FORWARD_SCALE = 0.3
"""Fraction of the proportional forward command kept while badly misaligned."""

ALIGN_COMMAND_LIMIT = 1.0
"""Saturation bound of normalized alignment commands."""


# ============================================================================
# Heading-Hold Controller
# ============================================================================

HEADING_GAIN = 3.0
"""Rotational rate per radian of heading error (rad/s per rad)."""

HEADING_MIN_RATE = 1.5
"""Minimum rotational rate applied outside the deadband (rad/s).

Origin: below roughly 1.5 rad/s the modules do not overcome static friction
and the correction stalls a few degrees short of the target.
"""

HEADING_DEADBAND = 0.1
"""Heading error treated as on-target (radians, about 5.7 degrees)."""


# ============================================================================
# Sensor Channel
# ============================================================================

SENSOR_TABLE_NAME = "limelight"
"""Channel subtable the sensor (real or simulated) publishes detections to."""

DEFAULT_TARGET_MARKER = 2
"""Marker identifier used by the demo scenarios."""

DEFAULT_DESIRED_DISTANCE = 1.5
"""Desired stand-off distance used by the demo scenarios (meters)."""


# ============================================================================
# Simulation
# ============================================================================

SIM_TAG_AREA_AT_ONE_METER = 1.0
"""Synthetic target area (percent of image) of a marker seen from 1 m.

Area falls off with the square of distance, which is what the real sensor
reports for a fixed-size marker.
"""

SIM_SCENARIO_TIMEOUT = 10.0
"""Simulated time after which a closed-loop scenario is cancelled (seconds)."""


# ============================================================================
# Visualization Colors
# ============================================================================

PLOT_PRIMARY = "#f74823"
"""Primary color - used for measured errors and actual values."""

PLOT_SECONDARY = "#2374f7"
"""Secondary color - used for commands and reference values."""

PLOT_NEUTRAL = "#686a5f"
"""Neutral color for tolerances, grids, and secondary elements."""

PLOT_ACCENT = "#ffa726"
"""Accent color for highlights such as aligned intervals."""

# Terminal color codes (ANSI escape sequences)
TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for orange (RGB: 247, 72, 35)."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for blue (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""


# ============================================================================
# WebSocket Configuration
# ============================================================================

WS_URI = "ws://localhost:8765"
"""WebSocket URI of the sensor/vehicle bridge."""

WS_RETRY_DELAY_SECONDS = 1
"""Initial retry delay for failed WebSocket connections (seconds)."""

WS_MAX_RETRY_DELAY_SECONDS = 60
"""Maximum retry delay with exponential backoff (seconds)."""

WS_TIMEOUT_SECONDS = 0.5
"""Timeout for WebSocket message reception (seconds).

Short enough that a silent sensor is noticed within a few ticks.
"""
