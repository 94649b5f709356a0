"""
Image helpers — content sniffing, orientation-aware sizing and resizing.

Uses Pillow for all image manipulation. Variants keep the format of the
original so that derived keys can reuse its extension.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from coral.exceptions import ImageTooLarge, UnknownFileType
from coral.gallery.constants import FORMAT_ALIASES, FORMAT_EXTENSIONS, JPEG_QUALITY, WEBP_QUALITY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SniffedType:
    ext: str
    mime: str


def _format(img: Image.Image) -> str:
    fmt = img.format or ""
    return FORMAT_ALIASES.get(fmt, fmt)


def _open(data: bytes) -> Image.Image:
    try:
        return Image.open(io.BytesIO(data))
    except Image.DecompressionBombError as exc:
        raise ImageTooLarge() from exc
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise UnknownFileType() from exc


def sniff(data: bytes) -> SniffedType:
    """Detect the image type from magic bytes.

    Raises UnknownFileType when the buffer is not a supported image and
    ImageTooLarge when its header declares a decompression bomb.
    """
    with _open(data) as img:
        fmt = _format(img)
    ext = FORMAT_EXTENSIONS.get(fmt)
    mime = Image.MIME.get(fmt)
    if not ext or not mime:
        raise UnknownFileType()
    return SniffedType(ext=ext, mime=mime)


def dimensions(data: bytes) -> tuple[int, int]:
    """Intrinsic (width, height) read from the image header."""
    with _open(data) as img:
        return img.size


def is_portrait(width: int, height: int) -> bool:
    return height >= width


def target_size(width: int, height: int, breakpoint: int) -> tuple[int, int]:
    """Size of the variant for a breakpoint.

    Portrait images have their height fixed to the breakpoint, landscape
    images their width; the other side keeps the aspect ratio (rounded half
    up, never below one pixel).
    """
    if is_portrait(width, height):
        scaled = (width * breakpoint * 2 + height) // (2 * height)
        return max(1, scaled), breakpoint
    scaled = (height * breakpoint * 2 + width) // (2 * width)
    return breakpoint, max(1, scaled)


def resize(data: bytes, size: tuple[int, int]) -> tuple[bytes, str]:
    """Resize to exactly `size`, returning (bytes, content_type) in the source format."""
    with _open(data) as img:
        fmt = _format(img) or "PNG"
        resized = img.resize(size, Image.LANCZOS)

    save_kwargs: dict = {}
    if fmt == "JPEG":
        if resized.mode not in ("RGB", "L", "CMYK"):
            resized = resized.convert("RGB")
        save_kwargs = {"quality": JPEG_QUALITY, "optimize": True}
    elif fmt == "WEBP":
        save_kwargs = {"quality": WEBP_QUALITY, "method": 4}

    buf = io.BytesIO()
    resized.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue(), Image.MIME.get(fmt, "application/octet-stream")
