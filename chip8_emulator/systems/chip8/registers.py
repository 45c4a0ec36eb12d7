"""
CHIP-8 register file: V0-VF, the index register, the program counter and the
return-address stack.
"""

from ...common.exceptions import StackOverflow, StackUnderflow
from ...constants import NUM_REGISTERS, STACK_DEPTH, PROGRAM_START, FLAG_REGISTER
import logging
from typing import Dict, Any, List

logger = logging.getLogger("Chip8Emulator.Registers")

class RegisterFile:
    """
    Holds the CPU-visible state of the machine.

    V registers are stored in a bytearray so values always stay in 0-255;
    callers are still expected to mask arithmetic results explicitly.
    """

    def __init__(self, stack_depth: int = STACK_DEPTH, program_start: int = PROGRAM_START):
        self.stack_depth = stack_depth
        self.program_start = program_start

        self.V = bytearray(NUM_REGISTERS)
        self.I = 0
        self.PC = program_start
        self.stack: List[int] = []

    @property
    def VF(self) -> int:
        return self.V[FLAG_REGISTER]

    @VF.setter
    def VF(self, value: int) -> None:
        self.V[FLAG_REGISTER] = value & 0xFF

    @property
    def SP(self) -> int:
        """Current stack depth."""
        return len(self.stack)

    def push(self, address: int) -> None:
        """
        Push a return address.

        Raises:
            StackOverflow: if the stack already holds stack_depth entries
        """
        if len(self.stack) >= self.stack_depth:
            raise StackOverflow(len(self.stack), self.PC)
        self.stack.append(address & 0xFFFF)

    def pop(self) -> int:
        """
        Pop a return address.

        Raises:
            StackUnderflow: if the stack is empty
        """
        if not self.stack:
            raise StackUnderflow(self.PC)
        return self.stack.pop()

    def reset(self) -> None:
        self.V = bytearray(NUM_REGISTERS)
        self.I = 0
        self.PC = self.program_start
        self.stack = []

    def get_state(self) -> Dict[str, Any]:
        state = {f"V{i:X}": value for i, value in enumerate(self.V)}
        state.update({
            "I": self.I,
            "PC": self.PC,
            "SP": self.SP,
        })
        return state
