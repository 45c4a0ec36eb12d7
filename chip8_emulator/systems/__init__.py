"""
Virtual machine implementations.
"""
from .chip8.chip8_system import Chip8System
