"""
Cover image format detection.

Uses Pillow to identify the container format of an in-memory payload.
Only the header is parsed; pixel data is never decoded.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from io import BytesIO

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class ImageFormat(StrEnum):
    """Cover image formats that can be embedded."""

    PNG = "png"
    JPEG = "jpeg"
    TIFF = "tiff"
    BMP = "bmp"
    GIF = "gif"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> ImageFormat | None:
        """Map a media type label back to a format, if it is one of ours."""
        mime_type = mime_type.strip().lower()
        if mime_type == "image/jpg":
            return cls.JPEG
        for fmt in cls:
            if fmt.mime_type == mime_type:
                return fmt
        return None


# Pillow format names -> supported formats (MPO is a multi-picture JPEG)
PILLOW_FORMATS = {
    "PNG": ImageFormat.PNG,
    "JPEG": ImageFormat.JPEG,
    "MPO": ImageFormat.JPEG,
    "TIFF": ImageFormat.TIFF,
    "BMP": ImageFormat.BMP,
    "GIF": ImageFormat.GIF,
}


def sniff_image(data: bytes) -> ImageFormat | None:
    """
    Detect the image format of a byte payload.

    Args:
        data: Raw image bytes

    Returns:
        The detected format, or None when the payload is not recognised or
        is an image format that cannot be embedded as a cover
    """
    if not data:
        return None

    try:
        with Image.open(BytesIO(data)) as image:
            pillow_format = image.format
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.debug("Image payload not identified: %s", e)
        return None

    detected = PILLOW_FORMATS.get(pillow_format or "")
    if detected is None:
        logger.debug("Image format %s is not supported as a cover", pillow_format)
    return detected
