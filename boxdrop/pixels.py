"""
Pixel sources - read rectangular regions out of a (large) image.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

Box = tuple[int, int, int, int]  # left, top, right, bottom


class PixelSource(Protocol):
    """Anything the exporter can pull ROI pixels from."""

    @property
    def identifier(self) -> str:
        ...

    @property
    def dimensions(self) -> tuple[int, int]:
        ...

    def extract(self, box: Box, output_size: tuple[int, int]) -> np.ndarray:
        ...

    def close(self) -> None:
        ...


def _validate_box(box: Box) -> Box:
    left, top, right, bottom = (int(v) for v in box)
    if right <= left or bottom <= top:
        raise ValueError(f"Region {box} is empty")
    return left, top, right, bottom


# Modes Image.fromarray infers back from a bare array's shape and dtype
_ARRAY_MODES = ("1", "L", "LA", "I", "I;16", "F", "RGB", "RGBA")


def _array_compatible(region: Image.Image) -> Image.Image:
    """Convert CMYK, YCbCr, LAB, HSV and palette regions to RGB(A)."""
    if region.mode in _ARRAY_MODES:
        return region
    target = "RGBA" if "A" in region.getbands() else "RGB"
    logger.debug(f"Converting {region.mode} region to {target}")
    return region.convert(target)


class ImagePixelSource:
    """
    Pillow-backed pixel source.

    The image file is opened lazily on first access and decoded region by
    region. Regions reaching outside the image are padded with zeros.
    """

    def __init__(self, path: str):
        """
        Args:
            path: Path to the image file. Also used as the source identifier.
        """
        self.path = Path(path)
        self._image: Optional[Image.Image] = None
        self._size: Optional[tuple[int, int]] = None

    @property
    def identifier(self) -> str:
        return str(self.path)

    @property
    def dimensions(self) -> tuple[int, int]:
        """(width, height) of the full-resolution image."""
        if self._size is None:
            self._size = self._ensure_image().size
        return self._size

    def extract(self, box: Box, output_size: tuple[int, int]) -> np.ndarray:
        """
        Return pixels covering ``box``, resampled to ``output_size``.

        Args:
            box: (left, top, right, bottom) in full-resolution pixels
            output_size: (width, height) of the returned buffer

        Returns:
            Array of shape (height, width) or (height, width, channels)
        """
        left, top, right, bottom = _validate_box(box)
        image = self._ensure_image()
        region = _array_compatible(image.crop((left, top, right, bottom)))
        if region.size != tuple(output_size):
            region = region.resize(tuple(output_size), Image.Resampling.BILINEAR)
        return np.array(region)

    def close(self) -> None:
        """Release the open file handle."""
        if self._image is not None:
            try:
                self._image.close()
            finally:
                self._image = None

    def _ensure_image(self) -> Image.Image:
        if self._image is None:
            logger.debug(f"Opening pixel source {self.path}")
            self._image = Image.open(self.path)
        return self._image
