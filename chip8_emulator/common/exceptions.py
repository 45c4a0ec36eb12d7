# common/exceptions.py
"""
Exception types raised by the CHIP-8 virtual machine.
"""
from typing import Optional


class Chip8Error(Exception):
    """Base class for all virtual machine errors."""
    fatal = True


class RomTooLarge(Chip8Error):
    """Program does not fit between the program start and the end of memory."""

    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(f"ROM is {size} bytes, only {capacity} bytes available")


class AddressOutOfRange(Chip8Error):
    """Memory access outside the address space, or into a protected region."""

    def __init__(self, address: int, reason: Optional[str] = None):
        self.address = address
        self.reason = reason or "outside address space"
        super().__init__(f"Address 0x{address:04X} {self.reason}")


class StackOverflow(Chip8Error):
    def __init__(self, depth: int, address: Optional[int] = None):
        self.depth = depth
        self.address = address
        where = f" at 0x{address:03X}" if address is not None else ""
        super().__init__(f"Call stack overflow{where} (depth {depth})")


class StackUnderflow(Chip8Error):
    def __init__(self, address: Optional[int] = None):
        self.address = address
        where = f" at 0x{address:03X}" if address is not None else ""
        super().__init__(f"Return with empty call stack{where}")


class UnknownInstruction(Chip8Error):
    """
    Unrecognized or unsupported opcode.

    Non-fatal: the engine reports it and continues with the next instruction.
    """
    fatal = False

    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Unknown opcode: 0x{opcode:04X} at 0x{address:03X}")
