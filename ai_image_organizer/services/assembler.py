from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from ..models import (
    UNCATEGORIZED,
    UNCATEGORIZED_DESCRIPTION,
    AnalysisRecord,
    Category,
    Item,
    Result,
)


def assemble(
    records: Sequence[AnalysisRecord],
    categories: Sequence[Category],
    items: Sequence[Item] = (),
) -> Tuple[List[Result], List[Category]]:
    """Join records with categories so that each index lands in exactly one.

    The first category (in order) listing an index owns it; later listings are
    dropped. Indices nobody claimed go to "uncategorized". Categories left
    without members are omitted.
    """
    owner: Dict[int, str] = {}
    for cat in categories:
        for idx in cat.members:
            owner.setdefault(idx, cat.name)

    final: Dict[str, Category] = {}
    for cat in categories:
        final.setdefault(cat.name, Category(name=cat.name, description=cat.description))

    names = {it.index: it.display_name for it in items}
    results: List[Result] = []
    for rec in sorted(records, key=lambda r: r.index):
        name = owner.get(rec.index)
        if name is None:
            name = UNCATEGORIZED
            final.setdefault(UNCATEGORIZED, Category(name=UNCATEGORIZED, description=UNCATEGORIZED_DESCRIPTION))
        final[name].members.append(rec.index)
        results.append(
            Result(
                index=rec.index,
                content=rec.content,
                category=name,
                extracted_text=rec.extracted_text,
                confidence=rec.confidence,
                status="error" if rec.failed else "success",
                error=rec.error,
                file_name=names.get(rec.index, f"image_{rec.index + 1}"),
            )
        )
    return results, [c for c in final.values() if c.members]
