# pipeline/background_remover.py
from __future__ import annotations
from pathlib import Path
import logging
import os
from typing import Iterable, List

from dotenv import load_dotenv

from ..models.pixel_buffer import PixelBuffer
from ..models.segmentation_config import SegmentationConfig
from ..models.segmentation_result import SegmentationResult
from ..services.pixel_buffer_service import PixelBufferService
from ..services.segmentation_service import SegmentationService

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
OUTPUT_DIR = os.getenv("OUTPUT_DIR_PATH", "data/cutouts")
MIN_SIDE = 3                                                 # smallest image the 3x3 kernel fits

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
def remove_background(
    buffer: PixelBuffer,
    config: SegmentationConfig | None = None,
    *,
    pixel_buffer_service: PixelBufferService | None = None,
) -> SegmentationResult:
    """
    Make the backdrop of *buffer* transparent, in place.

        • estimate background colour / threshold from the border band
        • build, refine and hole-fill the foreground mask
        • zero the alpha of every background pixel

    Returns the mask and the statistics it was built from. Images smaller
    than 3x3 come back untouched with an all-background mask.
    """
    segmentation_service = SegmentationService(config)
    pixel_buffer_service = pixel_buffer_service or PixelBufferService()

    if buffer.width < MIN_SIDE or buffer.height < MIN_SIDE:
        logger.warning(f"Image {buffer.width}x{buffer.height} too small to segment; left untouched")
        return segmentation_service.empty_result(buffer)

    result = segmentation_service.segment(buffer)
    pixel_buffer_service.apply_mask(buffer, result.mask)
    return result


def remove_background_gallery(
    gallery: Iterable[PixelBuffer],
    *,
    config: SegmentationConfig | None = None,
    pixel_buffer_service: PixelBufferService = PixelBufferService(),
    output_dir: str | Path = OUTPUT_DIR,
    mask_dir: str | Path | None = None,
) -> List[SegmentationResult]:
    """
    For every PixelBuffer in *gallery*:
        • remove the background in-memory
        • re-path to <output_dir>/<stem>.png and save
        • optionally save the mask as <mask_dir>/<stem>_mask.png
    Returns one SegmentationResult per image, in gallery order.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    results: List[SegmentationResult] = []
    for index, buffer in enumerate(gallery):
        stem = buffer.path.stem if buffer.path else f"cutout_{index:04d}"

        result = remove_background(buffer, config, pixel_buffer_service=pixel_buffer_service)

        buffer.path = output_dir / f"{stem}.png"
        pixel_buffer_service.save(buffer)

        if mask_dir is not None:
            mask_buffer = pixel_buffer_service.mask_to_buffer(
                result.mask, Path(mask_dir) / f"{stem}_mask.png")
            pixel_buffer_service.save(mask_buffer)

        logger.info(f"{buffer.path.name}: {result.foreground_ratio:.1%} foreground "
                    f"(threshold {result.threshold:.1f})")
        results.append(result)

    return results
