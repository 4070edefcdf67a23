from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np


@dataclass
class PixelBuffer:
    """
    Simple data object: RGBA pixels (+ optional source path for bookkeeping).
    Alpha is ignored on input and written by the compositor on output.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.
    path: Path | None = None  # Source / destination of the image.

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        """View on the colour channels, shape (H, W, 3)."""
        return self.pixels[:, :, :3]
