"""CategorizerService: one aggregate model call that groups analyzed images."""
from __future__ import annotations

import sys
from typing import Any, Dict, List, Optional, Sequence

from ..config import debug_enabled
from ..models import AnalysisRecord, Category, Item
from ..parsing import parse_structured
from ..prompts import build_category_instruction
from ..providers.base import InferenceClient
from .analyzer import slugify


def categories_by_theme(records: Sequence[AnalysisRecord]) -> List[Category]:
    """Deterministic grouping: one category per distinct theme, first-seen order."""
    by_name: Dict[str, Category] = {}
    for rec in records:
        theme = rec.theme or "misc"
        cat = by_name.get(theme)
        if cat is None:
            cat = by_name[theme] = Category(name=theme, description=f"Images related to {theme}")
        cat.members.append(rec.index)
    return list(by_name.values())


def _member_indices(raw: Any, count: int) -> List[int]:
    if not isinstance(raw, (list, tuple)):
        return []
    out: List[int] = []
    for v in raw:
        if isinstance(v, bool):
            continue
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        elif isinstance(v, str) and v.strip().isdigit():
            v = int(v.strip())
        if isinstance(v, int) and 0 <= v < count and v not in out:
            out.append(v)
    return out


def categories_from_response(data: Dict[str, Any], count: int) -> List[Category]:
    """Ordered categories from a parsed model answer.

    Accepts `{"categories": {...}}` or the bare mapping. A name used twice
    merges into its first occurrence; out-of-range indices are dropped.
    """
    mapping = data.get("categories", data)
    if not isinstance(mapping, dict):
        return []
    by_name: Dict[str, Category] = {}
    for name, info in mapping.items():
        key = slugify(name, "")
        if not key or not isinstance(info, dict):
            continue
        members = _member_indices(info.get("images", info.get("members")), count)
        description = str(info.get("description") or f"Images related to {key}")
        cat = by_name.get(key)
        if cat is None:
            by_name[key] = Category(name=key, description=description, members=members)
        else:
            cat.members.extend(i for i in members if i not in cat.members)
    return [c for c in by_name.values() if c.members]


class CategorizerService:
    def __init__(self, client: InferenceClient):
        self.client = client

    def categorize(
        self,
        records: Sequence[AnalysisRecord],
        items: Sequence[Item] = (),
        user_prompt: Optional[str] = None,
    ) -> List[Category]:
        """Model-proposed categories, or the theme partition if that fails."""
        if not records:
            return []
        try:
            raw = self.client.submit(build_category_instruction(records, items, user_prompt))
        except Exception as e:
            print(f"ERROR: categorization call failed, grouping by theme: {e}", file=sys.stderr)
            return categories_by_theme(records)

        outcome = parse_structured(raw)
        categories = categories_from_response(outcome.value, len(records)) if outcome.ok else []
        if not categories:
            if debug_enabled():
                reason = outcome.error or "no usable categories"
                print(f"[CATEGORY_DEBUG] {reason}; raw={raw!r}", file=sys.stderr)
            return categories_by_theme(records)
        return categories
