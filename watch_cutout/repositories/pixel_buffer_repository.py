from __future__ import annotations
from pathlib import Path
from typing import Union, Iterable, Iterator
from io import BytesIO
import logging
import os
import signal

import cv2
import numpy as np
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..models.pixel_buffer import PixelBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

_TO_RGBA = {
    1: cv2.COLOR_GRAY2RGBA,
    3: cv2.COLOR_BGR2RGBA,
    4: cv2.COLOR_BGRA2RGBA,
}


class PixelBufferRepository:
    """
    Handles decoding, encoding and pixel updates for PixelBuffer entities.
    This is the image codec collaborator; the segmentation core never
    touches files.
    """
    def __init__(self):
        raw = os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.bmp,.webp")
        self.VALID_EXTS = {ext.strip().lower() for ext in raw.split(",") if ext.strip()}

    @staticmethod
    def create_buffer(pixels: np.ndarray, path: Union[str, Path] = None) -> PixelBuffer:
        if path is None:
            return PixelBuffer(pixels)
        return PixelBuffer(pixels=pixels, path=Path(path))

    @staticmethod
    def from_bytes(data: Union[bytes, bytearray, np.ndarray], width: int, height: int) -> PixelBuffer:
        """
        Wrap a flat row-major RGBA byte sequence, as handed over by a canvas.
        """
        if isinstance(data, np.ndarray):
            flat = data.astype(np.uint8, copy=False).ravel()
        else:
            flat = np.frombuffer(bytes(data), dtype=np.uint8)
        expected = width * height * 4
        if width < 0 or height < 0 or flat.size != expected:
            raise ValueError(
                f"RGBA buffer of {flat.size} bytes does not match {width}x{height}x4 = {expected}")
        return PixelBuffer(pixels=flat.reshape(height, width, 4).copy())

    @staticmethod
    def load(path: Union[str, Path], timeout: int = 5) -> PixelBuffer:
        """
        Decode *path* into RGBA. The SIGALRM timeout only works on the main
        thread; calling this from a worker thread raises ValueError.
        """
        path = Path(path)

        # ─── timeout wrapper (5 s default) ────────────────────────────────
        def _handler(signum, frame):
            raise TimeoutError(f"cv2.imread timed-out after {timeout}s: {path}")

        signal.signal(signal.SIGALRM, _handler)
        signal.alarm(timeout)
        try:
            arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        finally:
            signal.alarm(0)  # always disarm
        # ──────────────────────────────────────────────────────────────────

        if arr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")

        if arr.dtype != np.uint8:
            # 16-bit PNGs: keep the high byte
            arr = (arr >> 8).astype(np.uint8)
        channels = 1 if arr.ndim == 2 else arr.shape[2]
        rgba = cv2.cvtColor(arr, _TO_RGBA[channels])
        return PixelBuffer(pixels=rgba, path=path)

    @staticmethod
    def encode_png(buffer: PixelBuffer) -> bytes:
        out = BytesIO()
        PILImage.fromarray(np.ascontiguousarray(buffer.pixels)).save(out, format="PNG")
        return out.getvalue()

    @staticmethod
    def save(buffer: PixelBuffer) -> None:
        if buffer.path is None:
            raise ValueError("PixelBuffer has no destination path")
        Path(buffer.path).parent.mkdir(parents=True, exist_ok=True)
        PILImage.fromarray(np.ascontiguousarray(buffer.pixels)).save(buffer.path, format="PNG")

    @staticmethod
    def set_alpha(buffer: PixelBuffer, where: np.ndarray, value: int) -> None:
        """Write *value* into the alpha channel wherever *where* is True."""
        buffer.pixels[..., 3][where] = value

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[PixelBuffer]:
        """
        Yield PixelBuffer objects one at a time.  Nothing accumulates in memory.
        Unreadable files are logged and skipped.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if p.suffix.lower() not in allowed or not p.is_file():
                logger.debug(f"Skipping {p}")
                continue
            try:
                yield self.load(p)
            except (FileNotFoundError, TimeoutError) as err:
                logger.warning(f"Skipping {p.name}: {err}")

