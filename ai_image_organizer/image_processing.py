from __future__ import annotations

from typing import Optional
import io

from PIL import Image, ImageOps
from pillow_heif import register_heif_opener

# Lets Image.open() decode HEIC/HEIF containers.
register_heif_opener()

HEIC_TYPES = ("image/heic", "image/heif")
HEIC_SUFFIXES = (".heic", ".heif")


def is_heic(media_type: Optional[str], name: Optional[str] = None) -> bool:
    if media_type and media_type.lower() in HEIC_TYPES:
        return True
    return bool(name) and name.lower().endswith(HEIC_SUFFIXES)


def _encode_jpeg(im: Image.Image, quality: int) -> bytes:
    buf = io.BytesIO()
    try:
        im.save(buf, format="JPEG", quality=quality, optimize=True)
    except Exception:
        buf = io.BytesIO()
        im.save(buf, format="JPEG", quality=min(quality, 95), optimize=False)
    out = buf.getvalue()
    if not out:
        raise RuntimeError("JPEG encoding resulted in empty bytes")
    return out


def convert_heic_to_jpeg(data: bytes, quality: int = 90) -> bytes:
    with Image.open(io.BytesIO(data)) as im:
        im = ImageOps.exif_transpose(im)
        return _encode_jpeg(im.convert("RGB"), quality)


def resize_image_bytes(data: bytes, max_size: int, quality: int) -> bytes:
    """Downscale so the longer side is at most `max_size` and re-encode as JPEG."""
    with Image.open(io.BytesIO(data)) as im:
        im = ImageOps.exif_transpose(im)
        im = im.convert("RGB")
        w, h = im.size
        scale = min(1.0, float(max_size) / max(w, h))
        if scale < 1.0:
            im = im.resize((int(w * scale), int(h * scale)), Image.LANCZOS)
        return _encode_jpeg(im, quality)
