from __future__ import annotations
from pathlib import Path
from typing import Iterable, Iterator, Union
import base64

import numpy as np

from ..models.pixel_buffer import PixelBuffer
from ..repositories.pixel_buffer_repository import PixelBufferRepository


class PixelBufferService:
    """I/O helpers and the alpha compositor.  No segmentation logic."""
    def __init__(self):
        self.pixel_buffer_repository = PixelBufferRepository()

    def create_buffer(self, pixels: np.ndarray, path: Union[str, Path] = None) -> PixelBuffer:
        return self.pixel_buffer_repository.create_buffer(pixels, path)

    def from_bytes(self, data: bytes, width: int, height: int) -> PixelBuffer:
        return self.pixel_buffer_repository.from_bytes(data, width, height)

    def load(self, path: str | Path) -> PixelBuffer:
        """Decode a single image from disk into an RGBA PixelBuffer."""
        return self.pixel_buffer_repository.load(path)

    def stream_gallery(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[PixelBuffer]:
        """
        Yield buffers lazily instead of returning a gigantic list.
        """
        return self.pixel_buffer_repository.iter_dir(folder,
                                                     recursive=recursive,
                                                     exts=exts)

    def save(self, buffer: PixelBuffer) -> None:
        """
        Business-level method to save the buffer as PNG at its path.
        """
        self.pixel_buffer_repository.save(buffer)

    def apply_mask(self, buffer: PixelBuffer, mask: np.ndarray) -> None:
        """
        Make every background pixel (mask == 0) fully transparent.
        RGB and the alpha of foreground pixels are left as they are.
        """
        if mask.shape != (buffer.height, buffer.width):
            raise ValueError(
                f"Mask shape {mask.shape} does not match buffer {buffer.height}x{buffer.width}")
        self.pixel_buffer_repository.set_alpha(buffer, mask == 0, 0)

    def encode_png(self, buffer: PixelBuffer) -> bytes:
        return self.pixel_buffer_repository.encode_png(buffer)

    def to_data_url(self, buffer: PixelBuffer) -> str:
        """
        PNG data URL, ready to be used as the src of an <img>.
        """
        encoded = base64.b64encode(self.encode_png(buffer)).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    @staticmethod
    def mask_to_buffer(mask: np.ndarray, path: Union[str, Path] = None) -> PixelBuffer:
        """
        Render a 0/1 mask as an opaque black/white buffer for inspection.
        """
        grey = (mask.astype(np.uint8) * 255)
        pixels = np.dstack([grey, grey, grey, np.full_like(grey, 255)])
        return PixelBuffer(pixels=pixels, path=Path(path) if path is not None else None)

