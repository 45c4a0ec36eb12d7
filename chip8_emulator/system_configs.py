"""
Configuration data for the emulated machine.
"""

from .constants import (
    MEMORY_SIZE, PROGRAM_START, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_DEPTH, DEFAULT_CLOCK_HZ, TIMER_RATE_HZ
)

MACHINE_CONFIGS = {
    "chip8": {
        "cpu_freq_hz": DEFAULT_CLOCK_HZ,  # Host policy, not fixed by hardware
        "timer_freq_hz": TIMER_RATE_HZ,
        "memory_size": MEMORY_SIZE,
        "program_start": PROGRAM_START,
        "stack_depth": STACK_DEPTH,
        "resolution": (SCREEN_WIDTH, SCREEN_HEIGHT),
    },
}
