"""
CHIP-8 delay and sound timers.

Both timers are 8-bit down-counters that decrement at 60 Hz of real time,
regardless of how many instructions the CPU executes in that interval. The
host feeds elapsed wall-clock (or simulated) time through update(); the
subsystem converts it into whole ticks and carries the remainder forward.
"""

import logging
from typing import Dict, Any

from ...constants import TIMER_RATE_HZ

logger = logging.getLogger("Chip8Emulator.Timers")

class Chip8Timers:
    """
    Emulates the delay timer (DT) and sound timer (ST).

    While ST is nonzero the host should keep a tone playing. When ST reaches
    zero from one, a one-shot tone-end flag is raised until consumed.
    """

    def __init__(self, rate_hz: float = TIMER_RATE_HZ):
        """
        Initialize the timers.

        Args:
            rate_hz: Tick frequency in Hz
        """
        if rate_hz <= 0:
            raise ValueError(f"Timer rate must be positive, got {rate_hz}")

        self.rate_hz = rate_hz
        self.interval = 1.0 / rate_hz

        self.delay = 0
        self.sound = 0

        self._accumulator = 0.0
        self._tone_ended = False
        self.ticks = 0

        logger.info(f"Timers initialized at {rate_hz} Hz")

    @property
    def tone_active(self) -> bool:
        """True while the sound timer is running."""
        return self.sound > 0

    def set_delay(self, value: int) -> None:
        self.delay = value & 0xFF

    def set_sound(self, value: int) -> None:
        self.sound = value & 0xFF

    def tick(self) -> bool:
        """
        Decrement both timers once.

        Returns:
            True if the sound timer just reached zero
        """
        self.ticks += 1

        if self.delay > 0:
            self.delay -= 1

        ended = False
        if self.sound > 0:
            self.sound -= 1
            if self.sound == 0:
                ended = True
                self._tone_ended = True
                logger.debug("Sound timer expired")

        return ended

    def update(self, elapsed: float) -> int:
        """
        Advance the timers by an amount of real time.

        Args:
            elapsed: Seconds since the previous update

        Returns:
            Number of ticks performed
        """
        if elapsed < 0:
            raise ValueError(f"Elapsed time must be non-negative, got {elapsed}")

        self._accumulator += elapsed
        ticks = int(self._accumulator // self.interval)
        self._accumulator -= ticks * self.interval

        for _ in range(ticks):
            self.tick()

        return ticks

    def consume_tone_end(self) -> bool:
        """Return and clear the one-shot tone-end flag."""
        ended = self._tone_ended
        self._tone_ended = False
        return ended

    def reset(self) -> None:
        self.delay = 0
        self.sound = 0
        self._accumulator = 0.0
        self._tone_ended = False
        self.ticks = 0

    def get_state(self) -> Dict[str, Any]:
        return {
            "DT": self.delay,
            "ST": self.sound,
            "tone_active": self.tone_active,
            "ticks": self.ticks,
        }
