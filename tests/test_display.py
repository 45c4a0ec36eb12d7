"""
Tests for the Chip8Display module.
"""
import unittest
import numpy as np
from chip8_emulator.systems.chip8.display import Chip8Display

class TestChip8Display(unittest.TestCase):

    def setUp(self):
        self.display = Chip8Display()

    def test_dimensions(self):
        self.assertEqual(self.display.get_frame_buffer().shape, (32, 64))

    def test_draw_sets_pixels(self):
        collision = self.display.draw_sprite(0, 0, [0x80, 0x01])
        self.assertFalse(collision)
        self.assertTrue(self.display.get_pixel(0, 0))
        self.assertTrue(self.display.get_pixel(7, 1))
        self.assertFalse(self.display.get_pixel(1, 0))
        self.assertTrue(self.display.dirty)

    def test_redraw_erases_with_collision(self):
        sprite = [0xF0, 0x90, 0x90, 0x90, 0xF0]
        self.display.draw_sprite(10, 5, sprite)
        collision = self.display.draw_sprite(10, 5, sprite)
        self.assertTrue(collision)
        self.assertFalse(self.display.get_frame_buffer().any())

    def test_wraps_both_axes(self):
        self.display.draw_sprite(62, 31, [0xF0, 0xF0])
        frame = self.display.get_frame_buffer()
        for x in (62, 63, 0, 1):
            self.assertTrue(frame[31, x])
            self.assertTrue(frame[0, x])
        self.assertEqual(int(frame.sum()), 8)

    def test_clear(self):
        self.display.draw_sprite(0, 0, [0xFF])
        self.display.mark_clean()
        self.display.clear()
        self.assertFalse(self.display.get_frame_buffer().any())
        self.assertTrue(self.display.dirty)

    def test_frame_buffer_is_copy(self):
        frame = self.display.get_frame_buffer()
        frame[0, 0] = True
        self.assertFalse(self.display.get_pixel(0, 0))

    def test_to_ascii(self):
        self.display.draw_sprite(0, 0, [0xC0])
        lines = self.display.to_ascii().splitlines()
        self.assertEqual(len(lines), 32)
        self.assertEqual(lines[0][:3], "##.")
        self.assertTrue(np.all(np.array(list(lines[1])) == "."))

if __name__ == '__main__':
    unittest.main()
