"""Data types shared by the organize pipeline.

Nothing here outlives a single request: items are built by the ingestor,
records by the analyzer, categories by the categorizer, and the assembler
turns them into the `Result` list returned to the caller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

UNCATEGORIZED = "uncategorized"
UNCATEGORIZED_DESCRIPTION = "Images that did not match any category"
EXTRACTED_TEXT_LIMIT = 150


class OrganizerError(Exception):
    """Base error for the organizer package."""


class ValidationError(OrganizerError):
    """Request-level input problem (empty batch, too many images, bad payload)."""


@dataclass(frozen=True)
class Item:
    index: int
    data: bytes
    media_type: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or f"image_{self.index + 1}"


@dataclass
class AnalysisRecord:
    index: int
    content: str
    extracted_text: str
    theme: str
    confidence: int
    failed: bool = False
    error: Optional[str] = None


@dataclass
class Category:
    name: str
    description: str
    members: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"description": self.description, "images": list(self.members)}


@dataclass
class Result:
    index: int
    content: str
    category: str
    extracted_text: str
    confidence: int
    status: str = "success"
    error: Optional[str] = None
    file_name: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict:
        out = {
            "index": self.index,
            "analysis": {
                "content": self.content,
                "category": self.category,
                "extracted_text": self.extracted_text,
                "confidence": self.confidence,
            },
            "status": self.status,
            "fileName": self.file_name,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass
class OrganizeOutcome:
    results: List[Result]
    categories: List[Category]
    user_prompt: Optional[str] = None

    def categories_dict(self) -> Dict[str, dict]:
        return {c.name: c.to_dict() for c in self.categories}

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "categories": self.categories_dict(),
            "userPrompt": self.user_prompt or None,
        }
