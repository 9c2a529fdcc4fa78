"""ZIP export: files sorted into category folders plus a text summary."""
from __future__ import annotations

import io
import mimetypes
import os
import re
import zipfile
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence

from .image_processing import is_heic
from .models import Item, OrganizeOutcome

SUMMARY_NAME = "analysis_summary.txt"
_UNSAFE_RE = re.compile(r"[^\w.\-]+", re.UNICODE)


def safe_component(name: str, default: str = "misc") -> str:
    """Single path component safe for a ZIP entry (no separators, no dot-only names)."""
    cleaned = _UNSAFE_RE.sub("_", name or "").strip("._")
    return cleaned or default


def _extension(original_name: Optional[str], media_type: Optional[str]) -> str:
    # HEIC uploads are stored transcoded, so their original suffix no longer applies
    transcoded = is_heic(None, original_name) and not is_heic(media_type)
    if original_name and "." in original_name and not transcoded:
        return original_name.rsplit(".", 1)[1].lower()
    ext = mimetypes.guess_extension(media_type or "") or ".jpg"
    return {".jpe": "jpg", ".jpeg": "jpg"}.get(ext, ext.lstrip("."))


def suggest_file_name(content: str, original_name: Optional[str] = None, on_date: Optional[date] = None, media_type: Optional[str] = None) -> str:
    day = (on_date or date.today()).isoformat()
    return f"{safe_component(content, 'image')}_{day}.{_extension(original_name, media_type)}"


def archive_name(on_date: Optional[date] = None) -> str:
    return f"organized_images_{(on_date or date.today()).isoformat()}.zip"


def _new_names(outcome: OrganizeOutcome, items: Sequence[Item], on_date: Optional[date]) -> Dict[int, str]:
    by_index = {it.index: it for it in items}
    used: Dict[str, int] = {}
    names: Dict[int, str] = {}
    for res in outcome.results:
        it = by_index.get(res.index)
        name = suggest_file_name(res.content, it.name if it else None, on_date, it.media_type if it else None)
        folder = safe_component(res.category)
        key = f"{folder}/{name}"
        n = used.get(key, 0) + 1
        used[key] = n
        if n > 1:
            stem, ext = os.path.splitext(name)
            name = f"{stem}_{n}{ext}"
        names[res.index] = name
    return names


def build_summary_report(
    outcome: OrganizeOutcome,
    items: Sequence[Item],
    generated_at: Optional[datetime] = None,
    on_date: Optional[date] = None,
    new_names: Optional[Dict[int, str]] = None,
) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    new_names = new_names or _new_names(outcome, items, on_date or generated_at.date())
    by_index = {it.index: it for it in items}

    lines: List[str] = [
        "Image Analysis Summary",
        f"Generated: {generated_at.isoformat()}",
        "",
        f"Total Images Analyzed: {len(outcome.results)}",
        f"Categories Created: {', '.join(c.name for c in outcome.categories)}",
    ]
    if outcome.user_prompt:
        lines.append(f"Custom Instructions: {outcome.user_prompt}")
    lines += ["", "Category Details:"]
    for cat in outcome.categories:
        lines += ["", f"{cat.name}:", f"  Description: {cat.description}", f"  Images: {len(cat.members)} files"]
    lines += ["", "Detailed Results:"]
    for pos, res in enumerate(outcome.results, start=1):
        it = by_index.get(res.index)
        lines += [
            "",
            f"{pos}. {it.display_name if it else res.file_name}",
            f"   Category: {res.category}",
            f"   Content: {res.content}",
            f"   Extracted Text: {res.extracted_text or 'None'}",
            f"   Confidence: {res.confidence}%",
            f"   New Name: {new_names.get(res.index, '')}",
        ]
        if not res.ok:
            lines.append(f"   Error: {res.error or 'Unknown error'}")
    return "\n".join(lines) + "\n"


def build_archive(outcome: OrganizeOutcome, items: Sequence[Item], on_date: Optional[date] = None, generated_at: Optional[datetime] = None) -> bytes:
    """ZIP bytes with every item once under `<category>/<new name>` and the summary."""
    generated_at = generated_at or datetime.now(timezone.utc)
    on_date = on_date or generated_at.date()
    by_index = {it.index: it for it in items}
    new_names = _new_names(outcome, items, on_date)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for res in outcome.results:
            it = by_index.get(res.index)
            if it is None:
                continue
            zf.writestr(f"{safe_component(res.category)}/{new_names[res.index]}", it.data)
        zf.writestr(SUMMARY_NAME, build_summary_report(outcome, items, generated_at, on_date, new_names))
    return buf.getvalue()
