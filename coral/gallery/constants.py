"""
Gallery pipeline — static constants.
"""
import enum

# Default responsive breakpoints (px); overridable through Settings.breakpoints
DEFAULT_BREAKPOINTS: tuple[int, ...] = (576, 768, 992, 1200)

# Namespace holding one metadata descriptor per processed image
META_PREFIX = "_meta"

INDEX_FILENAME = "index.json"

JSON_CONTENT_TYPE = "application/json"

# Formats Pillow reports for files that are plain JPEG to every other reader
FORMAT_ALIASES: dict[str, str] = {"MPO": "JPEG"}

# Pillow format name -> file extension used in keys
FORMAT_EXTENSIONS: dict[str, str] = {
    "JPEG": "jpg",
    "PNG": "png",
    "GIF": "gif",
    "WEBP": "webp",
    "TIFF": "tif",
    "BMP": "bmp",
}

JPEG_QUALITY = 85
WEBP_QUALITY = 85


class PromotionStrategy(str, enum.Enum):
    MOVE = "move"
    QUEUE = "queue"
