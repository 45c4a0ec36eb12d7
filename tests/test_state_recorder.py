"""
Tests for the StateRecorder module.

This module contains unit tests for the StateRecorder class, which is responsible
for recording and querying execution traces.
"""
import unittest
import os
import csv
import tempfile
from chip8_emulator.analysis.state_recorder import StateRecorder

class TestStateRecorder(unittest.TestCase):
    """
    Test cases for the StateRecorder class.
    """

    def setUp(self):
        """Set up test fixtures."""
        # Create recorder with smaller history size for testing
        self.recorder = StateRecorder(max_history=10)

        # Sample snapshots: V0 changes every third step
        self.states = [
            {
                "cycle": i + 1,
                "pc": 0x200 + (i % 4) * 2,
                "opcode": 0x7001,
                "mnemonic": "ADD V0, 0x01" if i % 2 else "JP 0x200",
                "registers": {
                    "V0": i // 3,
                    "I": 0x300,
                    "PC": 0x202 + (i % 4) * 2
                }
            }
            for i in range(15)
        ]

    def test_record_state(self):
        """Test recording states."""
        for state in self.states[:5]:
            self.recorder.record_state(state)

        history = self.recorder.get_state_history()
        self.assertEqual(len(history), 5)

        stats = self.recorder.get_statistics()
        self.assertEqual(stats["total_records"], 5)
        self.assertEqual(stats["total_cycles"], 4)
        self.assertEqual(set(stats["unique_registers"]), {"V0", "I", "PC"})

    def test_max_history_limit(self):
        """Test that max history limit is enforced."""
        for state in self.states:
            self.recorder.record_state(state)

        history = self.recorder.get_state_history()
        self.assertEqual(len(history), 10)
        self.assertEqual(history[0]["cycle"], 6)
        self.assertEqual(history[-1]["cycle"], 15)

    def test_get_state_by_cycle(self):
        """Exact and nearest lookups, including after old states are dropped."""
        for state in self.states:
            self.recorder.record_state(state)

        self.assertEqual(self.recorder.get_state_by_cycle(12)["cycle"], 12)
        self.assertEqual(self.recorder.get_state_by_cycle(2)["cycle"], 6)
        self.assertIsNone(StateRecorder().get_state_by_cycle(1))

    def test_record_filter(self):
        recorder = StateRecorder(record_filter=["V0"])
        recorder.record_state(self.states[0])
        self.assertEqual(recorder.get_state_history()[0]["registers"], {"V0": 0})
        # The caller's snapshot is not modified
        self.assertIn("I", self.states[0]["registers"])

    def test_register_history(self):
        for state in self.states[:6]:
            self.recorder.record_state(state)

        history = self.recorder.get_register_history("V0")
        self.assertEqual(history["cycles"], [1, 2, 3, 4, 5, 6])
        self.assertEqual(history["values"], [0, 0, 0, 1, 1, 1])

        array = self.recorder.get_register_array("V0")
        self.assertEqual(array.shape, (2, 6))
        self.assertEqual(self.recorder.get_register_array("V9").shape, (2, 0))

    def test_find_register_value_changes(self):
        for state in self.states[:9]:
            self.recorder.record_state(state)

        changes = self.recorder.find_register_value_changes("V0")
        self.assertEqual([c["cycle"] for c in changes], [4, 7])
        self.assertEqual(changes[0]["old_value"], 0)
        self.assertEqual(changes[0]["new_value"], 1)

        changes = self.recorder.find_register_value_changes("V0", start_cycle=5)
        self.assertEqual([c["cycle"] for c in changes], [7])

    def test_opcode_histogram_and_hot_addresses(self):
        for state in self.states[:8]:
            self.recorder.record_state(state)

        self.assertEqual(self.recorder.get_opcode_histogram(), {"JP": 4, "ADD": 4})
        hot = self.recorder.get_hot_addresses(1)
        self.assertEqual(hot[0]["count"], 2)

    def test_save_and_load_json(self):
        for state in self.states[:5]:
            self.recorder.record_state(state)

        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "trace.json")
            self.assertTrue(self.recorder.save_history(path, format='json'))

            loaded = StateRecorder()
            self.assertTrue(loaded.load_history(path))

        self.assertEqual(loaded.get_state_history(), self.recorder.get_state_history())

    def test_save_csv(self):
        for state in self.states[:3]:
            self.recorder.record_state(state)

        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "trace.csv")
            self.assertTrue(self.recorder.save_history(path, format='csv'))
            with open(path, newline='') as f:
                rows = list(csv.reader(f))

            # CSV traces are export-only
            self.assertFalse(StateRecorder().load_history(path))

        self.assertEqual(rows[0][:5], ["record_idx", "cycle", "pc", "opcode", "mnemonic"])
        self.assertEqual(len(rows), 4)
        self.assertEqual(rows[1][3], "7001")

    def test_unsupported_format(self):
        self.assertFalse(self.recorder.save_history("trace.bin", format='binary'))

    def test_clear(self):
        self.recorder.record_state(self.states[0])
        self.recorder.clear()
        self.assertEqual(self.recorder.get_state_history(), [])
        self.assertEqual(self.recorder.get_statistics()["total_records"], 0)

if __name__ == '__main__':
    unittest.main()
