import logging

import cv2
import numpy as np

from ..models.color import BackgroundColor
from ..models.pixel_buffer import PixelBuffer
from ..models.segmentation_config import SegmentationConfig

logger = logging.getLogger(__name__)

SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1],
                    [0, 0, 0],
                    [1, 2, 1]], dtype=np.float64)

_DILATE_KERNEL = np.ones((3, 3), np.uint8)


class MaskRepository:
    """
    Foreground mask construction and cleanup.

    • build_mask   – colour distance + Sobel edges against the threshold.
    • refine_mask  – one conditional dilation pass for metallic rims.
    • fill_holes   – border flood fill; enclosed pockets become foreground.

    Masks are uint8 (H, W) arrays, 0 = background, 1 = foreground.
    Every method returns a new array and leaves its inputs alone.
    """

    # ---------- per-pixel metrics ----------
    @staticmethod
    def color_distance(rgb: np.ndarray, background: BackgroundColor,
                       config: SegmentationConfig) -> np.ndarray:
        """
        Weighted Euclidean distance to the background colour.

        Args
        ----
        rgb : np.ndarray  (..., 3)  8-bit RGB, one pixel or a whole image

        Returns
        -------
        np.ndarray  (...)  float64
        """
        rgb = np.asarray(rgb)
        gold = config.gold(rgb)
        normal_w, gold_w = config.weight_pair()
        weights = np.where(gold[..., None], gold_w, normal_w)

        diff = rgb.astype(np.float64) - background.as_array()
        return np.sqrt((diff * diff * weights).sum(axis=-1))

    @staticmethod
    def edge_magnitude(rgb: np.ndarray) -> np.ndarray:
        """
        3x3 Sobel gradient magnitude of the mean-intensity image (R+G+B)/3.
        The outer 1px ring, where the kernel cannot be centred, stays 0.
        """
        rgb = np.asarray(rgb)
        h, w = rgb.shape[:2]
        magnitude = np.zeros((h, w), dtype=np.float64)
        if h < 3 or w < 3:
            return magnitude

        intensity = rgb[..., :3].astype(np.float64).sum(axis=2) / 3.0
        gx = cv2.filter2D(intensity, cv2.CV_64F, SOBEL_X, borderType=cv2.BORDER_REPLICATE)
        gy = cv2.filter2D(intensity, cv2.CV_64F, SOBEL_Y, borderType=cv2.BORDER_REPLICATE)
        magnitude[1:-1, 1:-1] = np.sqrt(gx * gx + gy * gy)[1:-1, 1:-1]
        return magnitude

    @staticmethod
    def combined_score(distance, edge, edge_weight: float):
        """distance + min(255, edge) / 255 * edge_weight"""
        return distance + np.minimum(255.0, edge) / 255.0 * edge_weight

    # ---------- mask stages ----------
    def build_mask(self, buffer: PixelBuffer, background: BackgroundColor,
                   threshold: float, config: SegmentationConfig) -> np.ndarray:
        h, w = buffer.height, buffer.width
        mask = np.zeros((h, w), dtype=np.uint8)
        if h < 3 or w < 3:
            return mask

        distance = self.color_distance(buffer.rgb, background, config)
        edges = self.edge_magnitude(buffer.rgb)
        score = self.combined_score(distance, edges, config.edge_weight)

        mask[1:-1, 1:-1] = score[1:-1, 1:-1] > threshold
        logger.debug(f"build_mask: {int(mask.sum())} foreground px of {h * w}")
        return mask

    @staticmethod
    def refine_mask(buffer: PixelBuffer, mask: np.ndarray, background: BackgroundColor,
                    threshold: float, config: SegmentationConfig) -> np.ndarray:
        """
        Single conditional dilation pass.

        Neighbour state is read from *mask* only; promotions go into a copy,
        so traversal order cannot change the result. A background pixel with
        a foreground 8-neighbour is promoted when it is gold-like or one of
        its channels is more than threshold * dilation_factor away from the
        background. Apply once per mask: a second pass grows further.
        """
        mask = np.ascontiguousarray(mask, dtype=np.uint8)
        refined = mask.copy()
        h, w = mask.shape
        if h < 3 or w < 3:
            return refined

        touches_fg = cv2.dilate(mask, _DILATE_KERNEL)[1:-1, 1:-1] == 1
        candidates = (mask[1:-1, 1:-1] == 0) & touches_fg

        core = buffer.rgb[1:-1, 1:-1]
        gold = config.gold(core)
        limit = threshold * config.dilation_factor
        deviates = (np.abs(core.astype(np.float64) - background.as_array()) > limit).any(axis=-1)

        promote = candidates & (gold | deviates)
        refined[1:-1, 1:-1][promote] = 1
        logger.debug(f"refine_mask: promoted {int(promote.sum())} px")
        return refined

    @staticmethod
    def fill_holes(mask: np.ndarray) -> np.ndarray:
        """
        4-connected flood fill from every background pixel on the image
        border, without recursion. Background pixels the fill never reaches
        are enclosed pockets and are relabelled foreground.
        """
        mask = np.ascontiguousarray(mask, dtype=np.uint8)
        filled = mask.copy()
        h, w = mask.shape
        if h == 0 or w == 0:
            return filled

        # 4-connected background components; a component is reached by the
        # border flood exactly when one of its pixels lies on the border.
        background = (mask == 0).astype(np.uint8)
        _, labels = cv2.connectedComponents(background, connectivity=4)

        edge = np.concatenate([labels[0], labels[-1], labels[:, 0], labels[:, -1]])
        reached = np.unique(edge[edge > 0])

        holes = (labels > 0) & ~np.isin(labels, reached)
        filled[holes] = 1
        logger.debug(f"fill_holes: filled {int(holes.sum())} enclosed px")
        return filled
