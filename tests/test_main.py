"""
Tests for the command-line interface.
"""
import contextlib
import io
import json
import os
import tempfile
import unittest
from chip8_emulator.main import main

# Draw glyph "0" at (0, 0), start a short tone, then spin
DEMO_PROGRAM = bytes([
    0xA0, 0x00,
    0xD0, 0x05,
    0x60, 0x05,
    0xF0, 0x18,
    0x12, 0x08,
])

class TestMain(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.rom = os.path.join(self.temp_dir.name, "demo.ch8")
        with open(self.rom, 'wb') as f:
            f.write(DEMO_PROGRAM)

    def tearDown(self):
        self.temp_dir.cleanup()

    def run_main(self, *args):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            status = main(["--rom", self.rom, "--log-level", "ERROR"] + list(args))
        return status, out.getvalue()

    def path(self, name):
        return os.path.join(self.temp_dir.name, name)

    def test_ascii_output(self):
        status, output = self.run_main("--cycles", "10", "--ascii")
        self.assertEqual(status, 0)
        self.assertIn("Cycles executed: 10", output)
        self.assertIn("####....", output)

    def test_trace_and_screenshot(self):
        trace = self.path("trace.json")
        screenshot = self.path("frame.png")
        status, _ = self.run_main("--cycles", "6", "--trace", trace, "--screenshot", screenshot)
        self.assertEqual(status, 0)
        self.assertTrue(os.path.exists(screenshot))

        with open(trace) as f:
            data = json.load(f)
        self.assertEqual(len(data["history"]), 6)
        self.assertEqual(data["history"][0]["mnemonic"], "LD I, 0x000")

    def test_csv_trace(self):
        trace = self.path("trace.csv")
        status, _ = self.run_main("--cycles", "4", "--trace", trace)
        self.assertEqual(status, 0)
        with open(trace) as f:
            self.assertTrue(f.readline().startswith("record_idx,cycle,pc"))

    def test_config_file(self):
        config = self.path("config.json")
        with open(config, 'w') as f:
            json.dump({"cpu": {"clock_hz": 120}}, f)
        status, output = self.run_main("--cycles", "1", "--config", config)
        self.assertEqual(status, 0)
        self.assertIn("at 120 Hz", output)

    def test_fatal_error_exit_status(self):
        with open(self.rom, 'wb') as f:
            f.write(bytes([0x00, 0xEE]))
        status, _ = self.run_main("--cycles", "5")
        self.assertEqual(status, 1)

    def test_missing_rom(self):
        self.rom = self.path("missing.ch8")
        status, _ = self.run_main("--cycles", "1")
        self.assertEqual(status, 1)

    def test_press_key_option(self):
        with open(self.rom, 'wb') as f:
            f.write(bytes([0xF3, 0x0A, 0x12, 0x02]))
        status, _ = self.run_main("--cycles", "3", "--press", "b")
        self.assertEqual(status, 0)

    def test_invalid_press_key(self):
        with self.assertRaises(SystemExit):
            with contextlib.redirect_stderr(io.StringIO()):
                main(["--rom", self.rom, "--press", "g"])

if __name__ == '__main__':
    unittest.main()
