#!/usr/bin/env python3
"""
Trace analysis example for the CHIP-8 Emulator.

This example shows how to run a ROM with execution tracing enabled and
inspect the trace: which instructions ran most, which addresses were hot,
and where a register changed value.

Usage:
    python trace_analysis.py --rom <path_to_rom> [--cycles N] [--register V0]
"""
import argparse
import logging
import sys
import os

# Add parent directory to path to allow running from examples directory
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from chip8_emulator.systems.chip8.chip8_system import Chip8System
from chip8_emulator.analysis.state_recorder import StateRecorder
from chip8_emulator.common.exceptions import Chip8Error

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("TraceAnalysisExample")

def main():
    """Run the trace analysis example."""
    parser = argparse.ArgumentParser(description="Trace analysis example for the CHIP-8 Emulator")
    parser.add_argument('--rom', type=str, required=True, help='Path to ROM file')
    parser.add_argument('--cycles', type=int, default=1000, help='Number of instructions to run')
    parser.add_argument('--register', type=str, default='V0', help='Register to track')

    args = parser.parse_args()

    recorder = StateRecorder(max_history=args.cycles)
    system = Chip8System(state_recorder=recorder)

    logger.info(f"Loading ROM: {args.rom}")
    try:
        system.load_rom(args.rom)
    except (OSError, Chip8Error) as e:
        logger.error(f"Error loading ROM: {e}")
        return 1

    try:
        system.run_cycles(args.cycles)
    except Chip8Error as e:
        logger.error(f"Execution stopped: {e}")

    print("\nInstruction mix:")
    for mnemonic, count in recorder.get_opcode_histogram().items():
        print(f"  {mnemonic:<6} {count}")

    print("\nHot addresses:")
    for entry in recorder.get_hot_addresses(5):
        print(f"  0x{entry['pc']:03X}  {entry['count']}")

    changes = recorder.find_register_value_changes(args.register)
    print(f"\n{args.register} changed {len(changes)} times")
    for change in changes[:10]:
        print(f"  cycle {change['cycle']:>6}: {change['old_value']} -> {change['new_value']} ({change['mnemonic']})")

    print("\nFinal frame:")
    print(system.display.to_ascii())

    return 0

if __name__ == "__main__":
    sys.exit(main())
