"""
CHIP-8 system implementation.

This module integrates the CPU, memory, display, timers and keypad into one
machine instance. The host drives it: step() executes one instruction,
update_timers() advances the 60 Hz timers by elapsed time, and run_for()
does both at the configured clock rate. All state is owned by the instance.
"""

import logging
import os
import random
from typing import Dict, List, Optional, Any, Sequence

from ...common.interfaces import System
from ...common.exceptions import Chip8Error, UnknownInstruction
from ...constants import DEFAULT_KEYMAP
from ...system_configs import MACHINE_CONFIGS
from ...utils.event_manager import EventManager, EventType
from .cpu import Chip8CPU, StepResult
from .decoder import Op, disassemble
from .display import Chip8Display
from .keypad import Chip8Keypad
from .memory import Chip8Memory
from .registers import RegisterFile
from .timers import Chip8Timers

logger = logging.getLogger("Chip8Emulator.System")

class Chip8System(System):
    """
    Complete CHIP-8 machine.

    Owns every component, relays the host's key transitions to the keypad,
    fires events for the tone, key waits, unknown opcodes and screen updates,
    and optionally records a per-step trace.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 event_manager: Optional[EventManager] = None,
                 error_handler=None,
                 state_recorder=None):
        """
        Initialize the CHIP-8 system.

        Args:
            config: Machine configuration dictionary (MACHINE_CONFIGS entry,
                optionally with overrides from ConfigManager.get_machine_config())
            event_manager: Event bus for machine events
            error_handler: ErrorHandler receiving non-fatal errors
            state_recorder: StateRecorder receiving one snapshot per step
        """
        self.config = dict(MACHINE_CONFIGS["chip8"])
        if config:
            self.config.update(config)

        self.event_manager = event_manager or EventManager()
        self.error_handler = error_handler
        self.state_recorder = state_recorder

        width, height = self.config["resolution"]
        seed = self.config.get("random_seed")

        # Create and connect components
        self.memory = Chip8Memory(self.config)
        self.registers = RegisterFile(self.config["stack_depth"], self.config["program_start"])
        self.cpu = Chip8CPU(self.registers, random.Random(seed))
        self.display = Chip8Display(width, height)
        self.timers = Chip8Timers(self.config["timer_freq_hz"])
        self.keypad = Chip8Keypad()

        self.cpu.set_memory(self.memory)
        self.cpu.connect_display(self.display)
        self.cpu.connect_timers(self.timers)
        self.cpu.connect_keypad(self.keypad)
        self.cpu.on_unknown_instruction = self._on_unknown_instruction

        self.keymap = {str(k).lower(): v for k, v in self.config.get("keymap", DEFAULT_KEYMAP).items()}

        # System state
        self.clock_hz = self.config["cpu_freq_hz"]
        self.cycle_count = 0
        self.program: bytes = b""
        self.rom_name = ""
        self.rom_loaded = False
        self._cycle_debt = 0.0

        logger.info("CHIP-8 system initialized")

    def load_program(self, program: bytes) -> None:
        """
        Load raw program bytes at the program start address and reset.

        Args:
            program: Program bytes

        Raises:
            RomTooLarge: if the program does not fit in memory
        """
        program = bytes(program)
        try:
            self.memory.load_rom(program)
        except Chip8Error as e:
            self._report(e)
            raise

        self.program = program
        self.rom_loaded = True
        self._reset_state()

        self.event_manager.create_event(EventType.PROGRAM_LOADED, "system",
                                        {"size": len(program), "name": self.rom_name})

    def load_rom(self, rom_path: str) -> None:
        """
        Load a CHIP-8 ROM file.

        Args:
            rom_path: Path to ROM file
        """
        with open(rom_path, 'rb') as f:
            rom_data = f.read()

        self.rom_name = os.path.basename(rom_path)
        self.load_program(rom_data)

        logger.info(f"Loaded ROM: {self.rom_name} ({len(rom_data)} bytes)")

    def _reset_state(self) -> None:
        self.cpu.reset()
        self.display.reset()
        self.timers.reset()
        self.keypad.reset()
        self.cycle_count = 0
        self._cycle_debt = 0.0

    def reset(self) -> None:
        """Reset the machine and reload the current program."""
        self.memory.reset()
        if self.program:
            self.memory.load_rom(self.program)
        self._reset_state()

        self.event_manager.create_event(EventType.SYSTEM_RESET, "system")
        logger.info("System reset")

    def step(self) -> StepResult:
        """
        Execute one instruction.

        Returns:
            StepResult for the executed instruction

        Raises:
            AddressOutOfRange, StackOverflow, StackUnderflow: fatal errors
        """
        was_awaiting = self.keypad.awaiting_key
        tone_was_active = self.timers.tone_active

        try:
            result = self.cpu.step()
        except Chip8Error as e:
            self._report(e, {"pc": self.registers.PC, "cycle": self.cycle_count})
            raise

        self.cycle_count += 1
        self._fire_step_events(result, was_awaiting, tone_was_active)

        if self.state_recorder is not None:
            self.state_recorder.record_state(self._trace_snapshot(result))

        return result

    def _fire_step_events(self, result: StepResult, was_awaiting: bool, tone_was_active: bool) -> None:
        events = self.event_manager
        op = result.instruction.op

        if events.has_handlers(EventType.CPU_INSTRUCTION):
            events.create_event(EventType.CPU_INSTRUCTION, "cpu", {
                "address": result.address,
                "opcode": result.instruction.opcode,
            })

        if op is Op.CLS:
            events.create_event(EventType.DISPLAY_CLEAR, "display")
        elif op is Op.DRW:
            events.create_event(EventType.DISPLAY_DRAW, "display", {
                "x": self.registers.V[result.instruction.x],
                "y": self.registers.V[result.instruction.y],
                "rows": result.instruction.n,
                "collision": bool(self.registers.VF),
            })
        elif result.waiting and not was_awaiting:
            events.create_event(EventType.KEY_WAIT, "cpu", {"register": result.instruction.x})

        if self.timers.tone_active and not tone_was_active:
            events.create_event(EventType.TONE_START, "timers", {"duration": self.timers.sound})

    def update_timers(self, elapsed: float) -> int:
        """
        Advance the delay and sound timers by elapsed real time.

        Args:
            elapsed: Seconds since the previous update

        Returns:
            Number of 60 Hz ticks performed
        """
        ticks = self.timers.update(elapsed)
        if self.timers.consume_tone_end():
            self.event_manager.create_event(EventType.TONE_END, "timers")
        return ticks

    def run_for(self, elapsed: float) -> List[StepResult]:
        """
        Run the machine for an interval of time at the configured clock rate.

        Fractional cycles are carried over to the next call.

        Args:
            elapsed: Seconds of machine time to run

        Returns:
            Results of the instructions executed
        """
        self._cycle_debt += elapsed * self.clock_hz
        cycles = int(self._cycle_debt)
        self._cycle_debt -= cycles

        results = [self.step() for _ in range(cycles)]
        self.update_timers(elapsed)
        return results

    def run_cycles(self, cycles: int) -> List[StepResult]:
        """
        Execute a number of instructions, advancing the timers by the
        simulated time those instructions take at the configured clock rate.

        Args:
            cycles: Number of instructions

        Returns:
            Results of the instructions executed
        """
        results = []
        for _ in range(cycles):
            results.append(self.step())
            self.update_timers(1.0 / self.clock_hz)
        return results

    # Host input

    def press_key(self, key: int) -> None:
        self.keypad.press(key)
        self.event_manager.create_event(EventType.KEY_PRESS, "keypad", {"key": key})

    def release_key(self, key: int) -> None:
        self.keypad.release(key)
        self.event_manager.create_event(EventType.KEY_RELEASE, "keypad", {"key": key})

    def set_keys(self, states: Sequence[bool]) -> None:
        """Apply a full 16-key snapshot from the host, firing an event per changed key."""
        before = list(self.keypad.keys)
        self.keypad.set_keys(states)
        for key, (was_pressed, pressed) in enumerate(zip(before, self.keypad.keys)):
            if pressed and not was_pressed:
                self.event_manager.create_event(EventType.KEY_PRESS, "keypad", {"key": key})
            elif was_pressed and not pressed:
                self.event_manager.create_event(EventType.KEY_RELEASE, "keypad", {"key": key})

    def press_host_key(self, name: str) -> bool:
        """
        Press the keypad key bound to a host key name.

        Returns:
            False if the host key is not bound
        """
        key = self.keymap.get(str(name).lower())
        if key is None:
            return False
        self.press_key(key)
        return True

    def release_host_key(self, name: str) -> bool:
        key = self.keymap.get(str(name).lower())
        if key is None:
            return False
        self.release_key(key)
        return True

    # Host output

    @property
    def tone_active(self) -> bool:
        return self.timers.tone_active

    @property
    def needs_redraw(self) -> bool:
        return self.display.dirty

    def get_frame_buffer(self):
        return self.display.get_frame_buffer()

    def get_system_state(self) -> Dict[str, Any]:
        """
        Get the current system state.

        Returns:
            Dictionary with system state
        """
        return {
            "cycle_count": self.cycle_count,
            "rom_name": self.rom_name,
            "rom_size": len(self.program),
            "cpu_state": self.cpu.get_state(),
            "timer_state": self.timers.get_state(),
            "keypad_state": self.keypad.get_state(),
            "display_state": self.display.get_state(),
            "tone_active": self.tone_active,
            "frame_buffer": self.display.get_frame_buffer()
        }

    def _trace_snapshot(self, result: StepResult) -> Dict[str, Any]:
        registers = self.registers.get_state()
        registers["DT"] = self.timers.delay
        registers["ST"] = self.timers.sound
        return {
            "cycle": self.cycle_count,
            "pc": result.address,
            "opcode": result.instruction.opcode,
            "mnemonic": disassemble(result.instruction),
            "registers": registers
        }

    def _on_unknown_instruction(self, error: UnknownInstruction) -> None:
        self._report(error, {"cycle": self.cycle_count})
        self.event_manager.create_event(EventType.UNKNOWN_INSTRUCTION, "cpu", {
            "opcode": error.opcode,
            "address": error.address,
        })

    def _report(self, error: Chip8Error, context: Optional[Dict[str, Any]] = None) -> None:
        if self.error_handler is not None:
            self.error_handler.report(error, context)
        elif error.fatal:
            logger.error(str(error))
        else:
            logger.warning(str(error))
