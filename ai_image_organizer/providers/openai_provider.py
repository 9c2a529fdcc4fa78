"""OpenAI-compatible provider (OpenAI, vsegpt, local gateways)."""
from __future__ import annotations

import base64
import json
import sys
from typing import Any, List, Optional

import requests
from openai import OpenAI, BadRequestError

from ..config import Settings, debug_enabled, log


def image_bytes_to_data_url(data: bytes, media_type: str = "image/jpeg") -> str:
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{media_type};base64,{b64}"


def normalize_usage(usage: Any) -> Optional[dict]:
    """Plain-dict view of an SDK usage object, `total_cost` rounded to 3 places."""
    if usage is None:
        return None
    if isinstance(usage, dict):
        out = dict(usage)
    elif hasattr(usage, "model_dump"):
        out = usage.model_dump()
    else:
        return None
    if "total_cost" in out:
        try:
            out["total_cost"] = round(float(out["total_cost"]), 3)
        except (TypeError, ValueError):
            pass
    return out


def _sanitize_messages(messages: List[dict]) -> List[dict]:
    out = []
    for m in messages:
        if isinstance(m.get("content"), list):
            parts = []
            for c in m["content"]:
                if c.get("type") == "image_url":
                    parts.append({"type": "image_url", "len": len(c.get("image_url", {}).get("url", ""))})
                else:
                    parts.append({"type": c.get("type"), "text_snip": (c.get("text") or "")[:200]})
            out.append({"role": m.get("role"), "content": parts})
        else:
            out.append({"role": m.get("role"), "content": str(m.get("content"))[:200]})
    return out


class OpenAIProvider:
    """`InferenceClient` backed by the chat completions API.

    `client` can be injected (an `OpenAI` instance or a compatible fake) to
    ease testing; otherwise one is built lazily from settings.
    """

    def __init__(self, cfg: Settings, client: Optional[Any] = None, quiet: bool = True):
        self.cfg = cfg
        self.quiet = quiet
        self._client = client

    def _build_client(self):
        if self._client is None:
            kwargs: dict = {"api_key": self.cfg.api_key}
            if self.cfg.base_url:
                kwargs["base_url"] = self.cfg.base_url
            self._client = OpenAI(**kwargs)
        return self._client

    def submit(self, instruction: str, image: Optional[bytes] = None, media_type: Optional[str] = None) -> str:
        if image is not None:
            content: Any = [
                {"type": "text", "text": instruction},
                {"type": "image_url", "image_url": {"url": image_bytes_to_data_url(image, media_type or "image/jpeg")}},
            ]
        else:
            content = instruction
        messages = [{"role": "user", "content": content}]

        if debug_enabled():
            print(f"[PROMPT_DEBUG] messages payload: {json.dumps(_sanitize_messages(messages), ensure_ascii=False)}", file=sys.stderr)
        log(f"Model request: model={self.cfg.model}, has_image={image is not None}, prompt_len={len(instruction)}", self.quiet)

        client = self._build_client()
        try:
            resp = client.chat.completions.create(
                model=self.cfg.model,
                messages=messages,
                max_tokens=self.cfg.max_tokens,
                timeout=self.cfg.timeout,
            )
        except BadRequestError as e:
            log(f"BadRequestError from model: {e}", self.quiet)
            raise

        usage = normalize_usage(getattr(resp, "usage", None))
        if usage:
            parts = [f"{k}={usage[k]}" for k in ("prompt_tokens", "completion_tokens", "total_tokens", "total_cost") if k in usage]
            log("Model usage: " + ", ".join(parts), self.quiet)
        return resp.choices[0].message.content or ""

    def check_balance(self) -> dict:
        """GET `<base_url>/balance` (vsegpt-style billing endpoint)."""
        if not self.cfg.base_url:
            raise RuntimeError("OPENAI_BASE_URL is not set; cannot check balance")
        url = self.cfg.base_url.rstrip("/") + "/balance"
        headers = {"Authorization": f"Bearer {self.cfg.api_key}"}
        log(f"Balance request: GET {url}", self.quiet)
        resp = requests.get(url, headers=headers, timeout=self.cfg.timeout)
        resp.raise_for_status()
        return resp.json()
