"""
Visualization tools for CHIP-8 frames and execution traces.
"""
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
import numpy as np
import logging
import os
from typing import List, Optional, Tuple

logger = logging.getLogger("Chip8Emulator.Visualizer")

class FrameVisualizer:
    """
    Renders frame buffers to images or text and plots register traces.
    """

    def __init__(self, pixel_scale: int = 10,
                 on_color: str = "#e0e0ff",
                 off_color: str = "#1a1a22"):
        """
        Initialize the frame visualizer.

        Args:
            pixel_scale: Output pixels per CHIP-8 pixel
            on_color: Color of lit pixels
            off_color: Background color
        """
        if pixel_scale < 1:
            raise ValueError(f"Pixel scale must be positive, got {pixel_scale}")

        self.pixel_scale = pixel_scale
        self.on_color = on_color
        self.off_color = off_color
        self.color_map = ListedColormap([off_color, on_color])

        logger.info("Initialized frame visualizer")

    def save_frame(self, frame_buffer: np.ndarray, path: str, dpi: int = 100) -> str:
        """
        Save a frame buffer as an image.

        Args:
            frame_buffer: Boolean array of shape (height, width)
            path: Output image path (format from extension, e.g. .png)
            dpi: Figure resolution

        Returns:
            The path written
        """
        frame = np.asarray(frame_buffer, dtype=np.uint8)
        height, width = frame.shape

        directory = os.path.dirname(path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        fig = plt.figure(figsize=(width * self.pixel_scale / dpi, height * self.pixel_scale / dpi), dpi=dpi)
        ax = fig.add_axes([0, 0, 1, 1])
        ax.imshow(frame, cmap=self.color_map, vmin=0, vmax=1, interpolation='nearest', aspect='auto')
        ax.set_axis_off()

        fig.savefig(path, dpi=dpi)
        plt.close(fig)

        logger.info(f"Saved frame to {path}")
        return path

    @staticmethod
    def render_ascii(frame_buffer: np.ndarray, on: str = "#", off: str = ".") -> str:
        """
        Render a frame buffer as text, one line per row.
        """
        frame = np.asarray(frame_buffer, dtype=bool)
        return "\n".join("".join(on if lit else off for lit in row) for row in frame)

    def plot_register_history(self, recorder, path: str,
                              register_names: Optional[List[str]] = None,
                              figsize: Tuple[int, int] = (12, 8)) -> Optional[str]:
        """
        Plot register values over time from a trace.

        Args:
            recorder: StateRecorder holding the trace
            path: Output image path
            register_names: Registers to plot (V0-V7 if None)
            figsize: Figure size (width, height) in inches

        Returns:
            The path written, or None if there was nothing to plot
        """
        if not recorder.state_history:
            logger.warning("No trace available for visualization")
            return None

        if register_names is None:
            register_names = [f"V{i:X}" for i in range(8)]

        # Limit number of registers to display to avoid overcrowding
        if len(register_names) > 8:
            logger.info(f"Limiting visualization to first 8 of {len(register_names)} registers")
            register_names = register_names[:8]

        fig, ax = plt.subplots(figsize=figsize)

        plotted = 0
        for i, reg in enumerate(register_names):
            data = recorder.get_register_array(reg)
            if data.shape[1] == 0:
                continue
            ax.step(data[0], data[1], where='post', label=reg, color=plt.cm.tab10(i % 10), alpha=0.8)
            plotted += 1

        if not plotted:
            plt.close(fig)
            logger.warning("None of the requested registers are in the trace")
            return None

        ax.set_title("Register Values Over Time")
        ax.set_xlabel("Cycle")
        ax.set_ylabel("Value")
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper right')

        plt.tight_layout()
        fig.savefig(path)
        plt.close(fig)

        logger.info(f"Saved register plot to {path}")
        return path
