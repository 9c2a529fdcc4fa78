"""Instruction templates sent to the vision model."""
from __future__ import annotations

import json
from typing import List, Optional, Sequence

from .models import AnalysisRecord, Item

ITEM_PROMPT = """You are analyzing an image. Look carefully at all visible content, text, UI elements, and context clues to understand what this image shows.

Analyze this image and return ONLY a valid JSON object with this exact structure:

{
  "content": "brief content description using underscores (payslip_document, react_error, login_form, api_response, pdf_document, salary_statement, website_page, photo, diagram, etc.)",
  "extracted_text": "key visible text from the document content (up to 150 characters, focus on meaningful text not UI labels)",
  "theme": "one lowercase word for the general theme (code, design, social, documents, errors, finance, productivity, travel, food, misc, etc.)",
  "confidence": 85
}"""

CATEGORY_PROMPT = """You are organizing a batch of images into folders. Each image was already described:

{listing}

Group the images into a small number of meaningful categories based on their content and themes. Every image index must appear in exactly one category.

Return ONLY a valid JSON object with this exact structure:

{{
  "categories": {{
    "category_name": {{
      "description": "short human readable description of the category",
      "images": [0, 2]
    }}
  }}
}}

Use short lowercase category names with underscores (they become folder names)."""


def with_user_instructions(base_prompt: str, user_prompt: Optional[str] = None) -> str:
    if not user_prompt or not user_prompt.strip():
        return base_prompt
    return base_prompt + f"""

USER INSTRUCTIONS:
The user has provided the following custom instructions for organizing their files:
"{user_prompt.strip()}"

IMPORTANT: Follow the user's instructions as closely as possible while maintaining the JSON structure. If the user specifies custom categories, use those instead of the default ones. If the user mentions specific grouping criteria, apply them in your analysis."""


def build_item_instruction(user_prompt: Optional[str] = None) -> str:
    return with_user_instructions(ITEM_PROMPT, user_prompt)


def describe_records(records: Sequence[AnalysisRecord], items: Sequence[Item]) -> str:
    names = {it.index: it.name for it in items}
    lines: List[str] = []
    for rec in records:
        entry = {
            "index": rec.index,
            "original_name": names.get(rec.index) or None,
            "content": rec.content,
            "extracted_text": rec.extracted_text,
            "theme": rec.theme,
        }
        lines.append(json.dumps(entry, ensure_ascii=False))
    return "\n".join(lines)


def build_category_instruction(records: Sequence[AnalysisRecord], items: Sequence[Item], user_prompt: Optional[str] = None) -> str:
    base = CATEGORY_PROMPT.format(listing=describe_records(records, items))
    return with_user_instructions(base, user_prompt)
