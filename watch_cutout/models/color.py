from __future__ import annotations
from dataclasses import dataclass
from typing import NamedTuple
import numpy as np


class ColorSample(NamedTuple):
    """One 8-bit RGB triple read from the border band."""
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class BackgroundColor:
    """Mean colour of the border samples; computed once per image."""
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=np.float64)
