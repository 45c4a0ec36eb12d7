"""
CHIP-8 display: a 64x32 monochrome frame buffer with XOR sprite drawing.
"""

import numpy as np
import logging
from typing import Dict, Any, Sequence

from ...common.interfaces import VideoProcessor
from ...constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH

logger = logging.getLogger("Chip8Emulator.Display")

class Chip8Display(VideoProcessor):
    """
    Frame buffer indexed as pixels[y, x].

    The dirty flag is raised by every clear and every draw, and is only lowered
    by the host once it has rendered the frame.
    """

    def __init__(self, width: int = SCREEN_WIDTH, height: int = SCREEN_HEIGHT):
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width), dtype=bool)
        self.dirty = False

        # Statistics
        self.draw_count = 0
        self.clear_count = 0

        logger.info(f"Display initialized ({width}x{height})")

    def clear(self) -> None:
        self.pixels[:, :] = False
        self.dirty = True
        self.clear_count += 1

    def draw_sprite(self, x: int, y: int, sprite: Sequence[int]) -> bool:
        """
        XOR a sprite onto the screen.

        Each byte of the sprite is one row, most significant bit leftmost.
        Coordinates wrap around both edges.

        Args:
            x: Column of the sprite's left edge
            y: Row of the sprite's top edge
            sprite: Row bytes

        Returns:
            True if any lit pixel was turned off (collision)
        """
        collision = False

        for row, sprite_byte in enumerate(sprite):
            pixel_y = (y + row) % self.height
            for col in range(SPRITE_WIDTH):
                if sprite_byte & (0x80 >> col):
                    pixel_x = (x + col) % self.width
                    if self.pixels[pixel_y, pixel_x]:
                        collision = True
                    self.pixels[pixel_y, pixel_x] ^= True

        self.dirty = True
        self.draw_count += 1
        return collision

    def get_pixel(self, x: int, y: int) -> bool:
        return bool(self.pixels[y % self.height, x % self.width])

    def get_frame_buffer(self) -> np.ndarray:
        """Copy of the frame buffer, shape (height, width)."""
        return self.pixels.copy()

    def mark_clean(self) -> None:
        """Called by the host after it has rendered the current frame."""
        self.dirty = False

    def to_ascii(self, on: str = "#", off: str = ".") -> str:
        return "\n".join(
            "".join(on if pixel else off for pixel in row)
            for row in self.pixels
        )

    def reset(self) -> None:
        self.pixels = np.zeros((self.height, self.width), dtype=bool)
        self.dirty = True
        self.draw_count = 0
        self.clear_count = 0

    def get_state(self) -> Dict[str, Any]:
        return {
            "dirty": self.dirty,
            "lit_pixels": int(self.pixels.sum()),
            "draw_count": self.draw_count,
            "clear_count": self.clear_count,
        }
