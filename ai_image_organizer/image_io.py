from __future__ import annotations

import mimetypes
import os
import sys
from typing import Tuple

from .config import debug_enabled
from .image_processing import resize_image_bytes
from .models import Item


def guess_media_type(name: str, default: str = "application/octet-stream") -> str:
    ext = os.path.splitext(name)[1].lower()
    if ext in (".heic", ".heif"):
        # not in every platform's mimetypes table
        return "image/" + ext[1:]
    return mimetypes.guess_type(name)[0] or default


def load_image_file(path: str) -> Tuple[str, str, bytes]:
    """Read a file from disk as an upload part: (filename, media type, bytes)."""
    with open(path, "rb") as f:
        data = f.read()
    name = os.path.basename(path)
    return name, guess_media_type(name), data


def model_payload(item: Item, max_size: int, quality: int) -> Tuple[bytes, str]:
    """Bytes and media type to send to the model for `item`.

    With `max_size` > 0 the image is downscaled to JPEG first; if that fails
    the original bytes go out unchanged.
    """
    if not max_size or max_size <= 0:
        return item.data, item.media_type
    try:
        return resize_image_bytes(item.data, max_size, quality), "image/jpeg"
    except Exception as e:
        if debug_enabled():
            print(f"[IMAGE_DEBUG] resize failed for item {item.index}: {e}", file=sys.stderr)
        return item.data, item.media_type
