"""
Main entry point when running the tag_align module with python -m.

Subcommands:
    sim       closed-loop alignment against the simulated drivetrain
    approach  scripted open-loop approach (quick test of command signs)
    heading   heading hold on the simulated drivetrain
    live      connect to a sensor/vehicle bridge over WebSocket
"""

import argparse
import asyncio
import logging
import math
import sys

from .client import main as live_main
from .client import setup_logging
from .config import (
    DEFAULT_DESIRED_DISTANCE,
    DEFAULT_TARGET_MARKER,
    SIM_SCENARIO_TIMEOUT,
    TERM_BLUE,
    TERM_ORANGE,
    TERM_RESET,
    WS_URI,
)
from .data_collector import DataCollector
from .scenarios import run_closed_loop_alignment, run_heading_hold, run_scripted_approach
from .sequencer import CommandState


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m tag_align",
        description="Fiducial-marker alignment controller",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps")
    subparsers = parser.add_subparsers(dest="mode", required=True)

    sim = subparsers.add_parser("sim", help="Closed-loop alignment in simulation")
    sim.add_argument("--distance", type=float, default=2.5, help="Start distance (m, default: 2.5)")
    sim.add_argument("--angle", type=float, default=10.0, help="Start offset, clockwise (deg, default: 10)")
    sim.add_argument("--marker", type=int, default=DEFAULT_TARGET_MARKER, help="Target marker id")
    sim.add_argument("--desired", type=float, default=DEFAULT_DESIRED_DISTANCE, help="Stand-off distance (m)")
    sim.add_argument("--timeout", type=float, default=SIM_SCENARIO_TIMEOUT, help="Simulated timeout (s)")
    sim.add_argument("--save", action="store_true", help="Log the run to results/run_<timestamp>/")

    approach = subparsers.add_parser("approach", help="Scripted open-loop approach")
    approach.add_argument("--marker", type=int, default=DEFAULT_TARGET_MARKER, help="Target marker id")
    approach.add_argument("--start", type=float, default=2.5, help="Start distance (m)")
    approach.add_argument("--desired", type=float, default=DEFAULT_DESIRED_DISTANCE, help="Stand-off distance (m)")
    approach.add_argument("--speed", type=float, default=0.5, help="Approach speed (m/s)")

    heading = subparsers.add_parser("heading", help="Heading hold in simulation")
    heading.add_argument("direction", help="forward, left, backward, right or operator")
    heading.add_argument("--start", type=float, default=0.0, help="Start heading (deg)")
    heading.add_argument("--duration", type=float, default=2.0, help="Hold duration (s)")
    heading.add_argument("--save", action="store_true", help="Log the run to results/run_<timestamp>/")

    live = subparsers.add_parser("live", help="Run against a WebSocket bridge")
    live.add_argument("--uri", default=WS_URI, help=f"Bridge URI (default: {WS_URI})")
    live.add_argument("--marker", type=int, default=DEFAULT_TARGET_MARKER, help="Target marker id")
    live.add_argument("--desired", type=float, default=DEFAULT_DESIRED_DISTANCE, help="Stand-off distance (m)")
    live.add_argument("--heading", default=None, help="Hold this heading instead of aligning")
    live.add_argument("--no-save", action="store_true", help="Do not log the run to CSV")
    return parser


def run_sim(args: argparse.Namespace) -> None:
    collector = DataCollector() if args.save else None
    if collector is not None:
        collector.setup()
    try:
        result = run_closed_loop_alignment(
            start_distance=args.distance,
            start_angle_deg=args.angle,
            marker_id=args.marker,
            desired_distance=args.desired,
            timeout=args.timeout,
            data_collector=collector,
        )
    finally:
        if collector is not None:
            collector.cleanup()
    reason = result.reason.value if result.reason else "none"
    color = TERM_BLUE if result.state is CommandState.COMPLETED else TERM_ORANGE
    logging.info(
        f"{color}\033[1m→ {result.state.value} ({reason}) after {result.duration:.2f}s, "
        f"{result.ticks} ticks{TERM_RESET}"
    )
    if result.final_distance is not None:
        logging.info(f"  distance={result.final_distance:.3f} m angle={math.degrees(result.final_angle):.2f}°")


def run_approach(args: argparse.Namespace) -> None:
    records = run_scripted_approach(args.marker, args.start, args.desired, args.speed)
    for record in records[::5]:
        logging.info(
            f"t={record['elapsed']:.1f}s distance={record['distance']:.3f} m "
            f"forward={record['forward']:+.3f} aligned={bool(record['aligned'])}"
        )


def run_heading(args: argparse.Namespace) -> None:
    collector = DataCollector() if args.save else None
    if collector is not None:
        collector.setup()
    try:
        result = run_heading_hold(args.direction, math.radians(args.start), args.duration, data_collector=collector)
    finally:
        if collector is not None:
            collector.cleanup()
    logging.info(f"{TERM_BLUE}\033[1m→ heading {math.degrees(result.final_heading):.1f}° after {result.duration:.2f}s{TERM_RESET}")


if __name__ == "__main__":
    args = build_parser().parse_args()
    setup_logging(args.verbose)

    try:
        if args.mode == "sim":
            run_sim(args)
        elif args.mode == "approach":
            run_approach(args)
        elif args.mode == "heading":
            run_heading(args)
        else:
            asyncio.run(live_main(args.uri, args.marker, args.desired, args.heading, not args.no_save))
    except ValueError as e:
        logging.error(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        sys.exit(0)
