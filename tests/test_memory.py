"""
Tests for the Chip8Memory module.
"""
import unittest
from chip8_emulator.systems.chip8.memory import Chip8Memory
from chip8_emulator.common.exceptions import RomTooLarge, AddressOutOfRange
from chip8_emulator.constants import FONTSET, MEMORY_SIZE, PROGRAM_START

class TestChip8Memory(unittest.TestCase):
    """
    Test cases for the Chip8Memory class.
    """

    def setUp(self):
        """Set up test fixtures."""
        self.memory = Chip8Memory()

    def test_fontset_installed(self):
        """Glyphs occupy the first 80 bytes."""
        self.assertEqual(self.memory.dump(0, len(FONTSET)), FONTSET)
        self.assertEqual(self.memory.glyph_address(0xA), 50)
        self.assertEqual(self.memory.read(self.memory.glyph_address(0x1)), 0x20)

    def test_load_rom(self):
        """Program bytes land at 0x200 and the rest of memory is cleared."""
        self.memory.load_rom(b"\x12\x34\x56")
        self.assertEqual(self.memory.dump(PROGRAM_START, 4), b"\x12\x34\x56\x00")
        self.assertEqual(self.memory.rom_size, 3)

        self.memory.load_rom(b"\xAA")
        self.assertEqual(self.memory.dump(PROGRAM_START, 3), b"\xAA\x00\x00")

    def test_max_size_rom(self):
        """A ROM of exactly 3584 bytes fits."""
        rom = bytes(range(256)) * 14
        self.assertEqual(len(rom), 3584)
        self.memory.load_rom(rom)
        self.assertEqual(self.memory.read(MEMORY_SIZE - 1), 0xFF)

    def test_rom_too_large(self):
        with self.assertRaises(RomTooLarge) as ctx:
            self.memory.load_rom(bytes(3585))
        self.assertEqual(ctx.exception.size, 3585)
        self.assertEqual(ctx.exception.capacity, 3584)

    def test_read_word_big_endian(self):
        self.memory.load_rom(b"\xA2\xF0")
        self.assertEqual(self.memory.read_word(PROGRAM_START), 0xA2F0)

    def test_out_of_range_access(self):
        """Reads and writes beyond 4 KB raise."""
        with self.assertRaises(AddressOutOfRange):
            self.memory.read(MEMORY_SIZE)
        with self.assertRaises(AddressOutOfRange):
            self.memory.write(MEMORY_SIZE, 1)
        with self.assertRaises(AddressOutOfRange):
            self.memory.read_word(MEMORY_SIZE - 1)
        with self.assertRaises(AddressOutOfRange):
            self.memory.read(-1)

    def test_glyph_region_protected(self):
        with self.assertRaises(AddressOutOfRange):
            self.memory.write(0x10, 0xFF)
        self.assertEqual(self.memory.read(0x10), FONTSET[0x10])

        # Interpreter area above the glyphs is writable
        self.memory.write(0x50, 0x42)
        self.assertEqual(self.memory.read(0x50), 0x42)

    def test_write_block(self):
        self.memory.write_block(0x300, b"\x01\x02\x03")
        self.assertEqual(self.memory.dump(0x300, 3), b"\x01\x02\x03")

    def test_write_block_checks_whole_range(self):
        """A block that runs off the end or into the glyphs writes nothing."""
        self.memory.write(MEMORY_SIZE - 2, 0x11)
        with self.assertRaises(AddressOutOfRange) as ctx:
            self.memory.write_block(MEMORY_SIZE - 2, b"\xAA\xBB\xCC")
        self.assertEqual(ctx.exception.address, MEMORY_SIZE)
        self.assertEqual(self.memory.read(MEMORY_SIZE - 2), 0x11)

        with self.assertRaises(AddressOutOfRange):
            self.memory.write_block(0x4F, b"\xAA\xBB")
        self.assertEqual(self.memory.read(0x4F), FONTSET[0x4F])
        self.assertEqual(self.memory.read(0x50), 0)

    def test_write_masks_value(self):
        self.memory.write(0x300, 0x1FF)
        self.assertEqual(self.memory.read(0x300), 0xFF)

    def test_reset(self):
        self.memory.load_rom(b"\x01\x02")
        self.memory.reset()
        self.assertEqual(self.memory.read(PROGRAM_START), 0)
        self.assertEqual(self.memory.dump(0, len(FONTSET)), FONTSET)

if __name__ == '__main__':
    unittest.main()
