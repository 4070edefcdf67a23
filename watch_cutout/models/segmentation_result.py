from __future__ import annotations
from dataclasses import dataclass
import numpy as np
from .color import BackgroundColor


@dataclass
class SegmentationResult:
    """
    Data object returned by one pipeline run.
    The mask is the one written into the alpha channel; the statistics are
    kept for diagnostics.
    """
    mask: np.ndarray               # Shape (H, W), dtype uint8, 1 = foreground.
    background: BackgroundColor    # Mean border colour.
    variance: float                # Border colour variance.
    threshold: float               # Adaptive separation threshold.

    @property
    def foreground_ratio(self) -> float:
        if self.mask.size == 0:
            return 0.0
        return float(self.mask.mean())
