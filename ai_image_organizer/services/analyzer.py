"""AnalyzerService: per-image model calls and normalization of their answers."""
from __future__ import annotations

import asyncio
import re
import sys
from typing import Any, Dict, List, Optional, Sequence

from ..config import debug_enabled
from ..image_io import model_payload
from ..models import EXTRACTED_TEXT_LIMIT, AnalysisRecord, Item
from ..parsing import parse_structured
from ..prompts import build_item_instruction
from ..providers.base import InferenceClient

_WS_RE = re.compile(r"\s+")


def slugify(value: Any, default: str) -> str:
    text = str(value).strip() if value is not None else ""
    return _WS_RE.sub("_", text) if text else default


def clamp_confidence(value: Any) -> int:
    """Integer in [0, 100]; anything non-numeric counts as 50."""
    if isinstance(value, bool):
        return 50
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 50
    if num != num:  # NaN
        return 50
    return int(round(min(100.0, max(0.0, num))))


def parse_failure_record(index: int, error: str = "Could not parse model response") -> AnalysisRecord:
    return AnalysisRecord(
        index=index,
        content=f"image_document_{index + 1}",
        extracted_text="Could not extract text",
        theme="misc",
        confidence=20,
        failed=True,
        error=error,
    )


def error_record(index: int, error: str) -> AnalysisRecord:
    return AnalysisRecord(
        index=index,
        content=f"error_image_{index + 1}",
        extracted_text="Processing failed",
        theme="misc",
        confidence=0,
        failed=True,
        error=error,
    )


def normalize_analysis(index: int, data: Dict[str, Any]) -> AnalysisRecord:
    # "category" was the theme key of the first prompt revision
    theme = data.get("theme") or data.get("category")
    text = data.get("extracted_text")
    return AnalysisRecord(
        index=index,
        content=slugify(data.get("content"), f"image_document_{index + 1}"),
        extracted_text=("" if text is None else str(text))[:EXTRACTED_TEXT_LIMIT],
        theme=slugify(theme, "misc").lower(),
        confidence=clamp_confidence(data.get("confidence")),
    )


class AnalyzerService:
    def __init__(self, client: InferenceClient, image_max_size: int = 0, image_quality: int = 90):
        self.client = client
        self.image_max_size = image_max_size
        self.image_quality = image_quality

    def analyze_item(self, item: Item, user_prompt: Optional[str] = None) -> AnalysisRecord:
        """Analyze one item; never raises."""
        try:
            data, media_type = model_payload(item, self.image_max_size, self.image_quality)
            raw = self.client.submit(build_item_instruction(user_prompt), data, media_type)
        except Exception as e:
            print(f"ERROR: analysis failed for image {item.index}: {e}", file=sys.stderr)
            return error_record(item.index, str(e) or type(e).__name__)

        outcome = parse_structured(raw)
        if not outcome.ok:
            if debug_enabled():
                print(f"[ANALYZE_DEBUG] item {item.index}: {outcome.error}; raw={raw!r}", file=sys.stderr)
            return parse_failure_record(item.index, f"Could not parse model response: {outcome.error}")
        return normalize_analysis(item.index, outcome.value)

    async def analyze_all(self, items: Sequence[Item], user_prompt: Optional[str] = None) -> List[AnalysisRecord]:
        """Run every item concurrently; result order follows `items`."""
        tasks = [asyncio.to_thread(self.analyze_item, item, user_prompt) for item in items]
        return list(await asyncio.gather(*tasks))
