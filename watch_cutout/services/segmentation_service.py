from __future__ import annotations
import logging
from typing import Tuple

import numpy as np

from ..models.color import BackgroundColor
from ..models.pixel_buffer import PixelBuffer
from ..models.segmentation_config import SegmentationConfig
from ..models.segmentation_result import SegmentationResult
from ..repositories.background_repository import BackgroundRepository
from ..repositories.mask_repository import MaskRepository

logger = logging.getLogger(__name__)


class SegmentationService:
    """
    Business-level driver of the segmentation stages.

    Stages run strictly in order, each on the finished output of the one
    before. Nothing is cached between calls, so one service can be shared
    by independent invocations.
    """

    def __init__(self, config: SegmentationConfig | None = None) -> None:
        self.config = config or SegmentationConfig()
        self.background_repo = BackgroundRepository()
        self.mask_repo = MaskRepository()

    def estimate_background(self, buffer: PixelBuffer) -> Tuple[BackgroundColor, float, float]:
        """
        Returns
        -------
        (background colour, variance, adaptive threshold)
        """
        samples = self.background_repo.sample_border(buffer, self.config)
        background = self.background_repo.average_color(samples)
        variance = self.background_repo.color_variance(samples, background)
        threshold = self.background_repo.adaptive_threshold(variance, self.config)
        logger.debug(
            f"{len(samples)} border samples → bg=({background.r:.1f}, {background.g:.1f}, "
            f"{background.b:.1f}) var={variance:.1f} thr={threshold:.1f}"
        )
        return background, variance, threshold

    def segment(self, buffer: PixelBuffer) -> SegmentationResult:
        """
        Compute the final foreground mask without touching the buffer.
        """
        background, variance, threshold = self.estimate_background(buffer)

        mask = self.mask_repo.build_mask(buffer, background, threshold, self.config)
        mask = self.mask_repo.refine_mask(buffer, mask, background, threshold, self.config)
        mask = self.mask_repo.fill_holes(mask)

        return SegmentationResult(mask=mask, background=background,
                                  variance=variance, threshold=threshold)

    @staticmethod
    def empty_result(buffer: PixelBuffer) -> SegmentationResult:
        """All-background result for images too small to segment."""
        mask = np.zeros((buffer.height, buffer.width), dtype=np.uint8)
        return SegmentationResult(mask=mask, background=BackgroundColor(),
                                  variance=0.0, threshold=0.0)
