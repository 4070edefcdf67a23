from typing import Iterable, Union
import numpy as np

from ..models.color import BackgroundColor, ColorSample
from ..models.pixel_buffer import PixelBuffer
from ..models.segmentation_config import SegmentationConfig


Samples = Union[np.ndarray, Iterable[ColorSample]]


class BackgroundRepository:
    """
    Border statistics for one image.

    • Samples the border band, assumed to be backdrop.
    • Reduces the samples to a mean colour and a variance.
    • Turns the variance into the adaptive separation threshold.
    """

    # ---------- private helpers ----------
    @staticmethod
    def _as_array(samples: Samples) -> np.ndarray:
        if not isinstance(samples, np.ndarray):
            samples = list(samples)
        return np.asarray(samples, dtype=np.float64).reshape(-1, 3)

    # ---------- public API ----------
    @staticmethod
    def sample_border(buffer: PixelBuffer, config: SegmentationConfig) -> np.ndarray:
        """
        Returns uint8 array (N, 3); every row is a ColorSample.

        Top/bottom rows are taken column by column, each top sample followed
        by its mirror from the bottom. The side columns then cover the
        remaining rows, so corners are not sampled twice.
        """
        h, w = buffer.height, buffer.width
        if h == 0 or w == 0:
            return np.empty((0, 3), dtype=np.uint8)

        b = config.border_width(w, h)
        rgb = buffer.rgb

        top = rgb[:b]                                  # (b, W, 3)
        bottom = rgb[::-1][:b]                         # row h-1-y for y in [0, b)
        rows = np.stack([top.transpose(1, 0, 2),
                         bottom.transpose(1, 0, 2)], axis=2)   # (W, b, 2, 3)

        middle = rgb[b:h - b]                          # (h-2b, W, 3), may be empty
        left = middle[:, :b]
        right = middle[:, ::-1][:, :b]                 # column w-1-x for x in [0, b)
        cols = np.stack([left, right], axis=2)         # (h-2b, b, 2, 3)

        return np.concatenate([rows.reshape(-1, 3), cols.reshape(-1, 3)])

    @classmethod
    def average_color(cls, samples: Samples) -> BackgroundColor:
        arr = cls._as_array(samples)
        if len(arr) == 0:
            return BackgroundColor(0.0, 0.0, 0.0)
        r, g, b = arr.mean(axis=0)
        return BackgroundColor(float(r), float(g), float(b))

    @classmethod
    def color_variance(cls, samples: Samples, avg: BackgroundColor) -> float:
        """Mean squared Euclidean distance of the samples from *avg*."""
        arr = cls._as_array(samples)
        if len(arr) <= 1:
            return 0.0
        diff = arr - avg.as_array()
        return float((diff * diff).sum(axis=1).mean())

    @staticmethod
    def adaptive_threshold(variance: float, config: SegmentationConfig) -> float:
        """
        base + sqrt(variance) * multiplier

        A noisy backdrop (gradients, soft shadows) widens the threshold so it
        is not picked up as foreground.
        """
        return config.base_threshold + float(np.sqrt(max(variance, 0.0))) * config.variance_multiplier
