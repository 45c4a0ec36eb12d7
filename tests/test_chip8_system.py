"""
Tests for the Chip8System integration: timing, events, host input and tracing.
"""
import os
import tempfile
import unittest
from chip8_emulator.systems.chip8.chip8_system import Chip8System
from chip8_emulator.analysis.state_recorder import StateRecorder
from chip8_emulator.common.exceptions import RomTooLarge, StackUnderflow
from chip8_emulator.utils.error_handler import ErrorHandler, ErrorCategory, ErrorLevel
from chip8_emulator.utils.event_manager import EventManager, EventType

def program(*words):
    return b"".join(word.to_bytes(2, "big") for word in words)

class TestChip8System(unittest.TestCase):
    """
    Test cases for the Chip8System class.
    """

    def setUp(self):
        """Set up test fixtures."""
        self.events = EventManager()
        self.error_handler = ErrorHandler(configure_logging=False)
        self.system = Chip8System(event_manager=self.events, error_handler=self.error_handler)

    def test_load_rom_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "test.ch8")
            with open(path, "wb") as f:
                f.write(program(0x6042))
            self.system.load_rom(path)

        self.assertEqual(self.system.rom_name, "test.ch8")
        self.system.step()
        self.assertEqual(self.system.registers.V[0], 0x42)

        loaded = self.events.get_event_history(EventType.PROGRAM_LOADED)
        self.assertEqual(loaded[-1].payload["size"], 2)

    def test_rom_too_large_reported(self):
        with self.assertRaises(RomTooLarge):
            self.system.load_program(bytes(4000))
        errors = self.error_handler.get_error_history(category=ErrorCategory.ROM)
        self.assertEqual(len(errors), 1)

    def test_fatal_error_reported(self):
        self.system.load_program(program(0x00EE))
        with self.assertRaises(StackUnderflow):
            self.system.step()
        errors = self.error_handler.get_error_history(level=ErrorLevel.ERROR)
        self.assertEqual(errors[-1]["category"], "STACK")

    def test_unknown_opcode_reported_as_warning(self):
        self.system.load_program(program(0x5121))
        self.system.step()
        warnings = self.error_handler.get_error_history(level=ErrorLevel.WARNING)
        self.assertEqual(warnings[-1]["category"], "INSTRUCTION")
        events = self.events.get_event_history(EventType.UNKNOWN_INSTRUCTION)
        self.assertEqual(events[-1].payload["opcode"], 0x5121)

    def test_unknown_opcode_logged_once(self):
        self.system.load_program(program(0x5121))
        with self.assertLogs("Chip8Emulator", level="WARNING") as logs:
            self.system.step()
        self.assertEqual(len(logs.records), 1)
        self.assertIn("5121", logs.output[0])

        system = Chip8System()
        system.load_program(program(0x5121))
        with self.assertLogs("Chip8Emulator", level="WARNING") as logs:
            system.step()
        self.assertEqual(len(logs.records), 1)

    def test_reset_reloads_program(self):
        self.system.load_program(program(0x6101, 0xA300, 0xF155))
        self.system.run_cycles(3)
        self.system.reset()

        self.assertEqual(self.system.registers.PC, 0x200)
        self.assertEqual(self.system.registers.V[1], 0)
        self.assertEqual(self.system.memory.read(0x301), 0)
        self.assertEqual(self.system.memory.read_word(0x200), 0x6101)
        self.assertEqual(self.system.cycle_count, 0)

    def test_run_for_uses_clock_rate(self):
        self.system.load_program(program(0x1200))
        results = self.system.run_for(0.1)
        self.assertEqual(len(results), 70)

        # Fractional cycles carry over
        self.system.run_for(1.0 / 1400)
        self.system.run_for(1.0 / 1400)
        self.assertEqual(self.system.cycle_count, 71)

    def test_timers_follow_time_not_instructions(self):
        self.system.load_program(program(0x603C, 0xF015, 0x1204))
        self.system.step()
        self.system.step()
        self.assertEqual(self.system.timers.delay, 60)

        self.system.update_timers(0.5)
        self.assertEqual(self.system.timers.delay, 30)

        fast = Chip8System({"cpu_freq_hz": 1400})
        fast.load_program(program(0x603C, 0xF015, 0x1204))
        fast.step()
        fast.step()
        fast.run_for(0.5)
        self.assertEqual(fast.timers.delay, 30)

    def test_tone_events(self):
        self.system.load_program(program(0x6002, 0xF018, 0x1204))
        self.system.step()
        self.system.step()
        self.assertEqual(len(self.events.get_event_history(EventType.TONE_START)), 1)

        self.system.update_timers(1.0 / 60)
        self.assertTrue(self.system.tone_active)
        self.system.update_timers(1.0 / 60)
        self.assertFalse(self.system.tone_active)
        self.system.update_timers(1.0 / 60)
        self.assertEqual(len(self.events.get_event_history(EventType.TONE_END)), 1)

    def test_key_wait_event_fires_once(self):
        self.system.load_program(program(0xF00A))
        for _ in range(5):
            self.system.step()
        self.assertEqual(len(self.events.get_event_history(EventType.KEY_WAIT)), 1)

    def test_host_keys(self):
        self.assertTrue(self.system.press_host_key("Q"))
        self.assertTrue(self.system.keypad.is_pressed(0x4))
        self.assertTrue(self.system.release_host_key("q"))
        self.assertFalse(self.system.keypad.is_pressed(0x4))
        self.assertFalse(self.system.press_host_key("p"))

    def test_set_keys_fires_events_per_change(self):
        self.system.press_key(0x1)
        states = [False] * 16
        states[0x1] = True
        states[0x5] = True
        states[0x9] = True
        self.system.set_keys(states)

        presses = self.events.get_event_history(EventType.KEY_PRESS)
        self.assertEqual([e.payload["key"] for e in presses], [0x1, 0x5, 0x9])
        self.assertEqual(self.events.get_event_history(EventType.KEY_RELEASE), [])

        states[0x5] = False
        self.system.set_keys(states)
        releases = self.events.get_event_history(EventType.KEY_RELEASE)
        self.assertEqual([e.payload["key"] for e in releases], [0x5])
        self.assertEqual(len(self.events.get_event_history(EventType.KEY_PRESS)), 3)

        with self.assertRaises(ValueError):
            self.system.set_keys([True] * 4)

    def test_custom_keymap(self):
        system = Chip8System({"keymap": {"k": 0xB, 1: 0x2}})
        self.assertTrue(system.press_host_key("k"))
        self.assertTrue(system.keypad.is_pressed(0xB))
        self.assertTrue(system.press_host_key("1"))
        self.assertTrue(system.keypad.is_pressed(0x2))

    def test_needs_redraw(self):
        self.system.load_program(program(0xA000, 0xD005))
        self.system.display.mark_clean()
        self.system.step()
        self.assertFalse(self.system.needs_redraw)
        self.system.step()
        self.assertTrue(self.system.needs_redraw)
        self.assertEqual(len(self.events.get_event_history(EventType.DISPLAY_DRAW)), 1)

    def test_trace_recording(self):
        recorder = StateRecorder(max_history=10)
        system = Chip8System(state_recorder=recorder)
        system.load_program(program(0x612A, 0x7101))
        system.run_cycles(2)

        history = recorder.get_state_history()
        self.assertEqual(len(history), 2)
        self.assertEqual(history[0]["pc"], 0x200)
        self.assertEqual(history[0]["opcode"], 0x612A)
        self.assertEqual(history[0]["mnemonic"], "LD V1, 0x2A")
        self.assertEqual(history[1]["registers"]["V1"], 0x2B)
        self.assertIn("DT", history[1]["registers"])

    def test_system_state(self):
        self.system.load_program(program(0x6001))
        self.system.step()
        state = self.system.get_system_state()
        self.assertEqual(state["cycle_count"], 1)
        self.assertEqual(state["cpu_state"]["V0"], 1)
        self.assertEqual(state["frame_buffer"].shape, (32, 64))

if __name__ == '__main__':
    unittest.main()
