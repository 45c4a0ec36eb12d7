"""
Main entry point for the CHIP-8 Emulator.

This module provides the command-line interface: it loads a ROM, runs it
headless for a number of cycles at the configured clock rate, and writes the
requested outputs (trace, screenshot, register plot, ASCII frame).
"""

import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from tqdm import tqdm

from . import __version__
from .analysis.state_recorder import StateRecorder
from .common.exceptions import Chip8Error
from .common.visualizer import FrameVisualizer
from .constants import NUM_KEYS
from .systems.chip8.chip8_system import Chip8System
from .utils.config_manager import ConfigManager, LOG_LEVELS
from .utils.error_handler import ErrorHandler
from .utils.event_manager import EventManager, EventType

logger = logging.getLogger("Chip8Emulator")

def keypad_key(value: str) -> int:
    """Parse a keypad key given as a hex digit (0-F)."""
    try:
        key = int(value, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid keypad key: {value!r}")
    if not 0 <= key < NUM_KEYS:
        raise argparse.ArgumentTypeError(f"keypad key out of range: {value!r}")
    return key

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8-emulator",
                                     description="CHIP-8 virtual machine")
    parser.add_argument('--rom', type=str, required=True, help='Path to ROM file')
    parser.add_argument('--cycles', type=int, default=600, help='Number of instructions to execute')
    parser.add_argument('--clock-hz', type=int, help='Instructions per second (overrides configuration)')
    parser.add_argument('--config', type=str, help='Path to configuration file (JSON or YAML)')
    parser.add_argument('--log-level', type=str, choices=LOG_LEVELS, help='Logging level')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--press', type=keypad_key, action='append', default=[], metavar='KEY',
                        help='Hold a keypad key (hex digit 0-F) for the whole run; repeatable')
    parser.add_argument('--trace', type=str, metavar='PATH',
                        help='Record an execution trace and export it (.json or .csv)')
    parser.add_argument('--screenshot', type=str, metavar='PATH', help='Save the final frame as an image')
    parser.add_argument('--plot-registers', type=str, metavar='PATH',
                        help='Plot V0-V7 over the trace to an image')
    parser.add_argument('--ascii', action='store_true', help='Print the final frame as text')
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function to parse arguments and run the program.

    Args:
        argv: Command-line arguments (None for sys.argv)

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    if args.cycles < 0:
        print("error: --cycles must not be negative", file=sys.stderr)
        return 2

    config = ConfigManager()
    if args.config and not config.load_config(args.config):
        print(f"error: could not load configuration from {args.config}", file=sys.stderr)
        return 1

    if args.clock_hz is not None:
        if args.clock_hz <= 0:
            print("error: --clock-hz must be positive", file=sys.stderr)
            return 2
        config.set("cpu.clock_hz", args.clock_hz)

    # Set logging level
    level_name = args.log_level or config.get("logging.level", "INFO")
    log_level = logging.DEBUG if args.debug else getattr(logging, level_name)
    error_handler = ErrorHandler(log_file=config.get("logging.file"), console_level=log_level)

    tracing = bool(args.trace or args.plot_registers or config.get("trace.enabled"))
    state_recorder = StateRecorder(config.get("trace.max_history")) if tracing else None

    event_manager = EventManager()
    event_manager.register_logger([EventType.TONE_START, EventType.TONE_END, EventType.KEY_WAIT],
                                  logging.DEBUG)

    system = Chip8System(config.get_machine_config(), event_manager, error_handler, state_recorder)

    # Print header
    print("=" * 64)
    print("  CHIP-8 Emulator")
    print(f"  ROM: {args.rom}")
    print(f"  Cycles: {args.cycles} at {system.clock_hz} Hz")
    print("=" * 64)

    try:
        system.load_rom(args.rom)
    except OSError as e:
        logger.error(f"Error loading ROM: {e}")
        return 1
    except Chip8Error:
        return 1

    for key in args.press:
        system.press_key(key)

    start_time = time.time()
    tick = 1.0 / system.clock_hz

    try:
        for _ in tqdm(range(args.cycles), desc="Running", unit="cycle", disable=None):
            system.step()
            system.update_timers(tick)
    except Chip8Error as e:
        print(f"Fatal error after {system.cycle_count} cycles: {e}", file=sys.stderr)
        return 1

    execution_time = time.time() - start_time

    logger.info(f"Executed {system.cycle_count} cycles in {execution_time:.3f}s")
    print(f"Cycles executed: {system.cycle_count}")
    print(f"Simulated time: {system.cycle_count * tick:.3f}s")
    print(f"Unknown opcodes: {system.cpu.unknown_count}")

    if args.ascii:
        print(system.display.to_ascii())

    visualizer = None
    if args.screenshot or args.plot_registers:
        visualizer = FrameVisualizer(config.get("display.pixel_scale"),
                                     config.get("display.on_color"),
                                     config.get("display.off_color"))

    if args.screenshot:
        visualizer.save_frame(system.get_frame_buffer(), args.screenshot)

    if args.plot_registers:
        visualizer.plot_register_history(state_recorder, args.plot_registers)

    if args.trace:
        ext = os.path.splitext(args.trace)[1].lower().lstrip('.')
        trace_format = ext if ext in ('json', 'csv') else config.get("trace.format")
        if not state_recorder.save_history(args.trace, format=trace_format):
            return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
