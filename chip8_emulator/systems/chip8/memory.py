"""
CHIP-8 memory system implementation.

The CHIP-8 address space is a flat 4KB:
- Font glyphs (addresses 0x000-0x04F), sixteen 5-byte hex digits
- Interpreter area (addresses 0x050-0x1FF), unused by programs
- Program memory (addresses 0x200-0xFFF)

Glyphs are installed once at construction and the glyph region is read-only
from then on.
"""

from ...common.interfaces import Memory
from ...common.exceptions import RomTooLarge, AddressOutOfRange
from ...constants import (
    MEMORY_SIZE, PROGRAM_START, FONTSET, FONT_START, FONT_END, GLYPH_SIZE
)
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger("Chip8Emulator.Memory")

class Chip8Memory(Memory):
    """
    Emulates the CHIP-8 4KB address space.

    All accesses are bounds-checked. Out-of-range reads and writes, and writes
    into the glyph table, raise AddressOutOfRange.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the memory system.

        Args:
            config: Machine configuration dictionary
        """
        self.config = config or {}
        self.size = self.config.get("memory_size", MEMORY_SIZE)
        self.program_start = self.config.get("program_start", PROGRAM_START)

        self.ram = bytearray(self.size)
        self.rom_size = 0

        self._load_fontset()

        logger.info(f"CHIP-8 memory initialized ({self.size} bytes)")

    def _load_fontset(self) -> None:
        """Install the built-in hex digit glyphs at the base of memory."""
        self.ram[FONT_START:FONT_END] = FONTSET

    def _check_address(self, address: int) -> None:
        if not 0 <= address < self.size:
            raise AddressOutOfRange(address)

    def read(self, address: int) -> int:
        """
        Read a byte from the specified address.

        Args:
            address: Memory address

        Returns:
            Byte value at address
        """
        self._check_address(address)
        return self.ram[address]

    def read_word(self, address: int) -> int:
        """
        Read a big-endian 16-bit word (one instruction).

        Args:
            address: Address of the high byte

        Returns:
            16-bit value
        """
        self._check_address(address)
        self._check_address(address + 1)
        return (self.ram[address] << 8) | self.ram[address + 1]

    def write(self, address: int, value: int) -> None:
        """
        Write a byte to the specified address.

        Args:
            address: Memory address
            value: Byte value to write
        """
        self._check_address(address)
        if FONT_START <= address < FONT_END:
            raise AddressOutOfRange(address, "is in the protected glyph region")
        self.ram[address] = value & 0xFF

    def write_block(self, address: int, data: bytes) -> None:
        """
        Write consecutive bytes starting at address.

        The whole range is checked before anything is written, so a failing
        write leaves memory untouched.

        Args:
            address: First address
            data: Bytes to write
        """
        if not data:
            return
        end = address + len(data)
        self._check_address(address)
        self._check_address(end - 1)
        if address < FONT_END and end > FONT_START:
            raise AddressOutOfRange(max(address, FONT_START), "is in the protected glyph region")
        self.ram[address:end] = data

    def load_rom(self, rom_data: bytes) -> None:
        """
        Load a program into memory at the program start address.

        Args:
            rom_data: Program bytes
        """
        capacity = self.size - self.program_start
        if len(rom_data) > capacity:
            raise RomTooLarge(len(rom_data), capacity)

        if not rom_data:
            logger.warning("Loaded an empty program")

        # Clear any previous program first
        self.ram[self.program_start:] = bytes(capacity)
        self.ram[self.program_start:self.program_start + len(rom_data)] = rom_data
        self.rom_size = len(rom_data)

        logger.info(f"ROM loaded: {self.rom_size} bytes at 0x{self.program_start:03X}")

    def glyph_address(self, digit: int) -> int:
        """Address of the 5-byte glyph for a hex digit."""
        return FONT_START + GLYPH_SIZE * (digit & 0x0F)

    def dump(self, start: int, length: int) -> bytes:
        """
        Copy a range of memory.

        Args:
            start: First address
            length: Number of bytes

        Returns:
            Copy of the requested bytes
        """
        if length < 0:
            raise ValueError("length must be non-negative")
        if length:
            self._check_address(start)
            self._check_address(start + length - 1)
        return bytes(self.ram[start:start + length])

    def reset(self) -> None:
        """Reset the memory to initial state."""
        self.ram = bytearray(self.size)
        self.rom_size = 0
        self._load_fontset()

        logger.info("Memory system reset")
