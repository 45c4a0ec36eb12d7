"""
CHIP-8 Emulator

An interpreter for the CHIP-8 virtual machine: 4 KB of memory, sixteen 8-bit
registers, a 64x32 monochrome display, a 16-key hex keypad and two 60 Hz
timers, with execution tracing and frame rendering for headless runs.
"""

__version__ = "1.0.0"
