# Overview: Photo compression: decode, bound, re-encode as an inline JPEG data URI.

"""
Photo compression for report submissions.

Reports store photos inline as text, so every photo is reduced before it is
attached: decoded, EXIF-rotated, scaled down (never up), and re-encoded as
JPEG at a fixed quality.

Bounding rule:
- landscape (width > height): width is clamped to MAX_WIDTH
- portrait or square: height is clamped to MAX_HEIGHT
The other side follows the aspect ratio, rounded to the nearest pixel and
never below 1. Only the clamped side is bounded: a landscape image keeps a
height above MAX_HEIGHT when its aspect is close to square (1000x900 gives
800x720).
"""

from __future__ import annotations

import base64
import io
import os
from typing import IO, Iterable, Union

from PIL import Image, ImageOps, UnidentifiedImageError


MAX_WIDTH = 800
MAX_HEIGHT = 600
JPEG_QUALITY = 70

DATA_URI_PREFIX = "data:image/jpeg;base64,"

ImageSource = Union[str, "os.PathLike[str]", bytes, bytearray, IO[bytes]]


class PhotoCompressionError(Exception):
    """Base class for photo compression failures."""


class ImageReadError(PhotoCompressionError):
    """The source could not be read."""


class ImageDecodeError(PhotoCompressionError):
    """The source was read but is not a decodable image."""


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def scaled_size(width: int, height: int) -> tuple[int, int]:
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")

    if width > height:
        if width <= MAX_WIDTH:
            return width, height
        return MAX_WIDTH, max(1, _round_half_up(height * MAX_WIDTH / width))

    if height <= MAX_HEIGHT:
        return width, height
    return max(1, _round_half_up(width * MAX_HEIGHT / height)), MAX_HEIGHT


def _read_bytes(source: ImageSource) -> bytes:
    try:
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        elif isinstance(source, (str, os.PathLike)):
            with open(source, "rb") as fh:
                data = fh.read()
        elif hasattr(source, "read"):
            data = source.read()
        else:
            raise ImageReadError(f"Unsupported image source: {type(source).__name__}")
    except OSError as e:
        raise ImageReadError(f"Could not read image: {e}") from e

    if not isinstance(data, (bytes, bytearray)):
        raise ImageReadError("Image source did not yield bytes")
    if not data:
        raise ImageReadError("Image source is empty")
    return bytes(data)


def _decode(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    return image


def compress_image(source: ImageSource) -> str:
    """
    Compress one photo.

    Args:
        source: a filesystem path, raw bytes, or a binary file object
            (e.g. a werkzeug FileStorage)

    Returns:
        "data:image/jpeg;base64,<payload>"

    Raises:
        ImageReadError: source unreadable
        ImageDecodeError: source is not an image
    """
    image = _decode(_read_bytes(source))

    # Phone cameras store orientation in EXIF rather than rotating pixels
    image = ImageOps.exif_transpose(image)

    size = scaled_size(*image.size)
    if size != image.size:
        image = image.resize(size, Image.LANCZOS)

    if image.mode != "RGB":
        if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
            # JPEG has no alpha; flatten onto white
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            image = background
        else:
            image = image.convert("RGB")

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return DATA_URI_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")


def compress_images(sources: Iterable[ImageSource]) -> list[str]:
    """Compress photos one after another, preserving order. The first failure aborts the batch."""
    return [compress_image(source) for source in sources]
