"""
CHIP-8 hex keypad and the blocking key-wait state machine.

The host reports every key transition. FX0A puts the keypad in AWAITING_KEY
and the CPU re-executes that instruction every step until a key goes from
released to pressed. Only such a press, made while waiting, is latched; a key
that was pressed (or released again) before the wait began, or that is still
held from before, does not satisfy it.
"""

import logging
from enum import Enum, auto
from typing import Dict, Any, Optional, Sequence, List

from ...constants import NUM_KEYS

logger = logging.getLogger("Chip8Emulator.Keypad")

class KeypadState(Enum):
    """Key-wait states."""
    IDLE = auto()
    AWAITING_KEY = auto()

class Chip8Keypad:
    """Sixteen boolean keys plus the last-pressed latch."""

    def __init__(self):
        self.keys: List[bool] = [False] * NUM_KEYS
        self.latched_key: Optional[int] = None
        self.state = KeypadState.IDLE

    @staticmethod
    def _check_key(key: int) -> None:
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key index must be in [0, {NUM_KEYS - 1}], got {key}")

    @property
    def awaiting_key(self) -> bool:
        return self.state is KeypadState.AWAITING_KEY

    def press(self, key: int) -> None:
        self._check_key(key)
        if not self.keys[key]:
            self.keys[key] = True
            if self.state is KeypadState.AWAITING_KEY and self.latched_key is None:
                self.latched_key = key
            logger.debug(f"Key {key:X} pressed")

    def release(self, key: int) -> None:
        self._check_key(key)
        if self.keys[key]:
            self.keys[key] = False
            logger.debug(f"Key {key:X} released")

    def set_keys(self, states: Sequence[bool]) -> None:
        """
        Apply a full 16-key snapshot from the host.

        Args:
            states: Sixteen booleans indexed by key
        """
        if len(states) != NUM_KEYS:
            raise ValueError(f"Expected {NUM_KEYS} key states, got {len(states)}")

        for key, pressed in enumerate(states):
            if pressed:
                self.press(key)
            else:
                self.release(key)

    def is_pressed(self, key: int) -> bool:
        return self.keys[key & 0x0F]

    def wait_for_key(self) -> Optional[int]:
        """
        One FX0A check.

        Returns:
            The latched key (and returns to IDLE), or None (and enters
            AWAITING_KEY) if no key has been pressed since the wait began
        """
        if self.latched_key is None:
            if self.state is KeypadState.IDLE:
                logger.debug("Waiting for key press")
            self.state = KeypadState.AWAITING_KEY
            return None

        key = self.latched_key
        self.latched_key = None
        self.state = KeypadState.IDLE
        return key

    def reset(self) -> None:
        self.keys = [False] * NUM_KEYS
        self.latched_key = None
        self.state = KeypadState.IDLE

    def get_state(self) -> Dict[str, Any]:
        return {
            "keys": [i for i, pressed in enumerate(self.keys) if pressed],
            "latched_key": self.latched_key,
            "state": self.state.name,
        }
