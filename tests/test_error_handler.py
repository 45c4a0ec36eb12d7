"""
Tests for the ErrorHandler module.
"""
import json
import os
import tempfile
import unittest
from chip8_emulator.common.exceptions import (
    AddressOutOfRange, StackOverflow, UnknownInstruction
)
from chip8_emulator.utils.error_handler import (
    ErrorHandler, ErrorCategory, ErrorLevel, category_for_exception, error_boundary
)

class TestErrorHandler(unittest.TestCase):

    def setUp(self):
        self.handler = ErrorHandler(configure_logging=False, max_error_history=3)

    def test_categories(self):
        self.assertIs(category_for_exception(StackOverflow(16)), ErrorCategory.STACK)
        self.assertIs(category_for_exception(AddressOutOfRange(0x1000)), ErrorCategory.MEMORY)
        self.assertIs(category_for_exception(ValueError()), ErrorCategory.UNKNOWN)

    def test_report_levels(self):
        self.handler.report(UnknownInstruction(0xFFFF, 0x200))
        self.handler.report(StackOverflow(16, 0x200))
        history = self.handler.get_error_history()
        self.assertEqual([e["level"] for e in history], ["WARNING", "ERROR"])

    def test_caller_info(self):
        info = self.handler.report(UnknownInstruction(0xFFFF, 0x200))
        self.assertEqual(info["caller"]["function"], "test_caller_info")
        self.assertEqual(info["caller"]["module"], __name__)
        self.assertTrue(info["caller"]["file"].endswith("test_error_handler.py"))

    def test_history_bounded(self):
        for i in range(5):
            self.handler.log_warning(f"warning {i}")
        history = self.handler.get_error_history()
        self.assertEqual(len(history), 3)
        self.assertEqual(history[-1]["message"], "warning 4")

    def test_category_handler(self):
        seen = []
        self.handler.register_handler(ErrorCategory.STACK, seen.append)
        self.handler.report(StackOverflow(16))
        self.assertEqual(len(seen), 1)
        self.assertTrue(self.handler.unregister_handler(ErrorCategory.STACK))

    def test_summary_and_export(self):
        self.handler.report(StackOverflow(16))
        summary = self.handler.get_error_summary()
        self.assertEqual(summary["total"], 1)
        self.assertEqual(summary["by_exception"], {"StackOverflow": 1})

        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "errors.json")
            self.assertTrue(self.handler.export_error_report(path))
            with open(path) as f:
                report = json.load(f)
        self.assertEqual(len(report["errors"]), 1)

    def test_error_boundary_reraises(self):
        @error_boundary(self.handler)
        def failing():
            raise AddressOutOfRange(0x2000)

        with self.assertRaises(AddressOutOfRange):
            failing()
        errors = self.handler.get_error_history(category=ErrorCategory.MEMORY)
        self.assertEqual(errors[-1]["context"]["function"], "failing")

    def test_clear(self):
        self.handler.log_warning("x")
        self.handler.clear_error_history()
        self.assertEqual(self.handler.get_error_history(level=ErrorLevel.WARNING), [])

if __name__ == '__main__':
    unittest.main()
