"""Analyze-then-categorize pipeline for one batch of images."""
from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from .config import log
from .models import Item, OrganizeOutcome
from .providers.base import InferenceClient
from .services.analyzer import AnalyzerService
from .services.assembler import assemble
from .services.categorizer import CategorizerService


async def organize(
    items: Sequence[Item],
    client: InferenceClient,
    user_prompt: Optional[str] = None,
    image_max_size: int = 0,
    image_quality: int = 90,
    quiet: bool = True,
) -> OrganizeOutcome:
    """Analyze all items in parallel, then group them with one extra call.

    Per-item and categorization failures are absorbed into fallback values,
    so this only raises on programming errors.
    """
    user_prompt = (user_prompt or "").strip() or None
    analyzer = AnalyzerService(client, image_max_size=image_max_size, image_quality=image_quality)
    log(f"Analyzing {len(items)} image(s){' with user instructions' if user_prompt else ''}", quiet)
    records = await analyzer.analyze_all(items, user_prompt)

    failed = sum(1 for r in records if r.failed)
    if failed:
        log(f"{failed} of {len(records)} image(s) fell back to default analysis", quiet)

    # single sequential call over the whole batch
    categories = await asyncio.to_thread(CategorizerService(client).categorize, records, items, user_prompt)
    results, final_categories = assemble(records, categories, items)
    log(f"Categories: {', '.join(c.name for c in final_categories)}", quiet)
    return OrganizeOutcome(results=results, categories=final_categories, user_prompt=user_prompt)


def organize_sync(items: Sequence[Item], client: InferenceClient, user_prompt: Optional[str] = None, **kwargs) -> OrganizeOutcome:
    """Blocking wrapper for callers without an event loop (CLI, JSON API)."""
    return asyncio.run(organize(items, client, user_prompt, **kwargs))
