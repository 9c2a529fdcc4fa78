"""Turn request payloads into an ordered list of `Item`s.

Two input shapes are accepted and may be mixed: uploaded file parts and
pre-encoded data URLs (`data:image/png;base64,...`). File parts come first,
then data URLs, and indices follow that order.
"""
from __future__ import annotations

import base64
import binascii
import re
import sys
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .config import MAX_ITEMS, debug_enabled
from .image_processing import convert_heic_to_jpeg, is_heic
from .models import Item, ValidationError

_DATA_URL_RE = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w.+-]+=[^;,]*)*)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

# (filename, content_type, data); data may be raw bytes or base64 text
FilePart = Tuple[Optional[str], Optional[str], Union[bytes, str]]


def decode_data_url(payload: str) -> Tuple[bytes, str]:
    """Decode a self-describing image payload into (bytes, media type).

    A bare base64 string without the `data:` prefix is accepted as PNG.
    """
    if not isinstance(payload, str) or not payload.strip():
        raise ValidationError("image payload must be a non-empty string")
    payload = payload.strip()
    media_type = "image/png"
    body = payload
    if payload.startswith("data:"):
        m = _DATA_URL_RE.match(payload)
        if not m or not m.group("b64"):
            raise ValidationError("unsupported image payload: expected a base64 data URL")
        media_type = (m.group("type") or media_type).lower()
        body = m.group("data")
    try:
        data = base64.b64decode("".join(body.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"invalid base64 image payload: {e}") from e
    if not data:
        raise ValidationError("empty image payload")
    return data, media_type


def _part_bytes(data: Union[bytes, str], name: str) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    try:
        return base64.b64decode("".join(data.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"invalid base64 for file {name}: {e}") from e


def _accepts_part(content_type: Optional[str], name: Optional[str]) -> bool:
    return bool(content_type and content_type.lower().startswith("image/")) or is_heic(content_type, name)


def maybe_transcode(data: bytes, media_type: str, name: Optional[str] = None, quality: int = 90) -> Tuple[bytes, str]:
    """HEIC/HEIF → JPEG; any failure passes the original through."""
    if not is_heic(media_type, name):
        return data, media_type
    try:
        return convert_heic_to_jpeg(data, quality), "image/jpeg"
    except Exception as e:
        print(f"WARNING: HEIC conversion failed for {name or 'payload'}, sending original: {e}", file=sys.stderr)
        return data, media_type


def items_from_request(
    files: Optional[Iterable[FilePart]] = None,
    images: Optional[Sequence[str]] = None,
    max_items: int = MAX_ITEMS,
) -> List[Item]:
    """Build the batch, enforcing 1 <= len <= max_items before any decoding work."""
    accepted = []
    skipped = 0
    for name, content_type, data in files or ():
        if _accepts_part(content_type, name):
            accepted.append((name, content_type, data))
        else:
            skipped += 1
    if skipped and debug_enabled():
        print(f"[INGEST_DEBUG] skipped {skipped} non-image file part(s)", file=sys.stderr)

    images = list(images or ())
    total = len(accepted) + len(images)
    if total == 0:
        raise ValidationError("No images provided")
    if total > max_items:
        raise ValidationError(f"Maximum {max_items} images allowed")

    items: List[Item] = []
    for name, content_type, data in accepted:
        raw = _part_bytes(data, name or f"image_{len(items) + 1}")
        media_type = (content_type or "application/octet-stream").lower()
        raw, media_type = maybe_transcode(raw, media_type, name)
        items.append(Item(index=len(items), data=raw, media_type=media_type, name=name or None))
    for payload in images:
        raw, media_type = decode_data_url(payload)
        raw, media_type = maybe_transcode(raw, media_type)
        items.append(Item(index=len(items), data=raw, media_type=media_type))
    return items
