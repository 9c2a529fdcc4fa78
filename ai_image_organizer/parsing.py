"""Recovery of JSON objects from free-form model output.

Models are asked for "ONLY a valid JSON object" but routinely wrap it in
markdown fences or chatter around it. `parse_structured` tries the whole text
first, then the outermost brace-delimited span, and otherwise reports a
`ParseError`; building the fallback value is left to the caller.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .models import OrganizerError

_FENCE_RE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)
_JSON_PREFIX_RE = re.compile(r"^json\n?", re.IGNORECASE)
_BRACES_RE = re.compile(r"\{[\s\S]*\}")


class ParseError(OrganizerError):
    """Model output did not contain a usable JSON object."""


@dataclass
class ParseOutcome:
    value: Optional[Dict[str, Any]] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def clean_model_text(raw: Optional[str]) -> str:
    text = (raw or "").strip()
    text = _FENCE_RE.sub("", text)
    return _JSON_PREFIX_RE.sub("", text).strip()


def _load_object(text: str) -> Dict[str, Any]:
    value = json.loads(text)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


def parse_structured(raw: Optional[str]) -> ParseOutcome:
    text = clean_model_text(raw)
    if not text:
        return ParseOutcome(error=ParseError("empty model response"))
    try:
        return ParseOutcome(value=_load_object(text))
    except ValueError as first:
        m = _BRACES_RE.search(text)
        if not m:
            return ParseOutcome(error=ParseError(f"no JSON object in response: {first}"))
        try:
            return ParseOutcome(value=_load_object(m.group(0)))
        except ValueError as second:
            return ParseOutcome(error=ParseError(f"could not parse JSON object: {second}"))
