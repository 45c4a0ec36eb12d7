"""
CHIP-8 virtual machine components.
"""
from .chip8_system import Chip8System
from .cpu import Chip8CPU, StepResult
from .decoder import Instruction, Op, decode, disassemble
from .display import Chip8Display
from .keypad import Chip8Keypad, KeypadState
from .memory import Chip8Memory
from .registers import RegisterFile
from .timers import Chip8Timers
