from __future__ import annotations
from dataclasses import dataclass, field
import os
from typing import Tuple

import numpy as np
from dotenv import load_dotenv


@dataclass(frozen=True)
class ChannelWeights:
    """Per-channel weights of the background colour distance."""
    r: float
    g: float
    b: float

    def as_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=np.float64)

    @classmethod
    def parse(cls, raw: str) -> "ChannelWeights":
        """Build from a comma separated triple such as "0.3,0.59,0.11"."""
        parts = [p.strip() for p in raw.split(",") if p.strip()]
        if len(parts) != 3:
            raise ValueError(f"Expected three channel weights, got {raw!r}")
        return cls(*(float(p) for p in parts))


@dataclass(frozen=True)
class GoldPredicate:
    """
    Empirical warm-metal test: R > min_red, G > min_green and
    R > B + red_blue_margin.
    """
    min_red: int = 180
    min_green: int = 140
    red_blue_margin: int = 30

    def __call__(self, rgb: np.ndarray) -> np.ndarray:
        """
        Args
        ----
        rgb : np.ndarray  (..., 3)  any integer or float dtype

        Returns
        -------
        np.ndarray  (...)  bool
        """
        rgb = np.asarray(rgb, dtype=np.int32)
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        return (r > self.min_red) & (g > self.min_green) & (r > b + self.red_blue_margin)


@dataclass(frozen=True)
class SegmentationConfig:
    """
    Value-object holding every tuning knob of the background remover.
    Defaults are tuned for photographed metal watches on plain backdrops.
    """
    border_fraction: float = 0.03      # band thickness as share of min(W, H)
    border_min_px: int = 10            # band thickness floor
    base_threshold: float = 32.0
    variance_multiplier: float = 0.7
    edge_weight: float = 80.0          # score units granted to a saturated edge
    gold: GoldPredicate = field(default_factory=GoldPredicate)
    normal_weights: ChannelWeights = field(
        default_factory=lambda: ChannelWeights(0.3, 0.59, 0.11))
    gold_weights: ChannelWeights = field(
        default_factory=lambda: ChannelWeights(0.2, 0.2, 0.6))
    dilation_factor: float = 0.5       # share of the threshold a neighbour must exceed

    # ── Helpers ──────────────────────────────────────────────────────
    def border_width(self, width: int, height: int) -> int:
        return max(self.border_min_px, int(np.floor(min(width, height) * self.border_fraction)))

    def weight_pair(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.normal_weights.as_array(), self.gold_weights.as_array()

    @classmethod
    def from_env(cls) -> "SegmentationConfig":
        """
        Read overrides from the environment (and a .env file, if any).
        Unset variables keep their defaults.
        """
        load_dotenv()
        default = cls()
        gold = GoldPredicate(
            min_red=int(os.getenv("GOLD_MIN_RED", default.gold.min_red)),
            min_green=int(os.getenv("GOLD_MIN_GREEN", default.gold.min_green)),
            red_blue_margin=int(os.getenv("GOLD_RED_BLUE_MARGIN", default.gold.red_blue_margin)),
        )
        normal_raw = os.getenv("NORMAL_CHANNEL_WEIGHTS")
        gold_raw = os.getenv("GOLD_CHANNEL_WEIGHTS")
        return cls(
            border_fraction=float(os.getenv("BORDER_FRACTION", default.border_fraction)),
            border_min_px=int(os.getenv("BORDER_MIN_PX", default.border_min_px)),
            base_threshold=float(os.getenv("BASE_THRESHOLD", default.base_threshold)),
            variance_multiplier=float(os.getenv("VARIANCE_MULTIPLIER", default.variance_multiplier)),
            edge_weight=float(os.getenv("EDGE_WEIGHT", default.edge_weight)),
            gold=gold,
            normal_weights=ChannelWeights.parse(normal_raw) if normal_raw else default.normal_weights,
            gold_weights=ChannelWeights.parse(gold_raw) if gold_raw else default.gold_weights,
            dilation_factor=float(os.getenv("DILATION_FACTOR", default.dilation_factor)),
        )
