from typing import Any, Dict, List, Optional, Tuple
import sys
import traceback

from .config import MAX_ITEMS, Settings, debug_enabled, read_prompt_file
from .ingest import items_from_request
from .models import ValidationError


def _error(status: int, message: str) -> dict:
    return {"ok": False, "status": status, "error": message}


def _file_parts(raw: Any) -> List[tuple]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("files must be a list")
    parts = []
    for idx, f in enumerate(raw, start=1):
        if not isinstance(f, dict) or f.get("data") is None:
            raise ValidationError(f"file #{idx} is missing data")
        parts.append((f.get("filename") or f.get("name"), f.get("content_type") or f.get("type"), f["data"]))
    return parts


def _internal_error(e: Exception) -> dict:
    print(f"API Error: {e}", file=sys.stderr)
    if debug_enabled():
        traceback.print_exc(file=sys.stderr)
    return _error(500, "Internal server error")


def _validated(req: Any, cfg: Optional[Settings]) -> Tuple[list, Optional[str]]:
    if not isinstance(req, dict):
        raise ValidationError("request body must be a JSON object")
    images = req.get("images")
    if images is not None and not isinstance(images, list):
        raise ValidationError("images must be a list")
    user_prompt = req.get("userPrompt")
    if user_prompt is not None and not isinstance(user_prompt, str):
        raise ValidationError("userPrompt must be a string")

    max_items = getattr(cfg, "max_images", MAX_ITEMS) if cfg is not None else MAX_ITEMS
    items = items_from_request(files=_file_parts(req.get("files")), images=images, max_items=max_items)
    return items, user_prompt


def _prepare(req: Any, client, cfg: Optional[Settings]) -> Tuple[Optional[dict], Optional[tuple]]:
    """(error response, None) or (None, (items, client, user_prompt, organize kwargs)).

    With an injected `client` and no `cfg`, defaults are used and no API key
    is required.
    """
    try:
        items, user_prompt = _validated(req, cfg)
    except ValidationError as e:
        return _error(400, str(e)), None
    except Exception:
        traceback.print_exc(file=sys.stderr)
        return _error(500, "Internal server error"), None

    try:
        # Import from package so tests can monkeypatch these
        from ai_image_organizer import load_config, OpenAIProvider

        if cfg is None and client is None:
            cfg = load_config()
        if client is None:
            client = OpenAIProvider(cfg)
        prompt_file = getattr(cfg, "prompt_file", None)
        if not (user_prompt or "").strip() and prompt_file:
            user_prompt = read_prompt_file(prompt_file) or None
        opts = {
            "image_max_size": getattr(cfg, "image_max_size", 0),
            "image_quality": getattr(cfg, "image_quality", 90),
        }
    except Exception as e:
        return _internal_error(e), None
    return None, (items, client, user_prompt, opts)


def _ok(outcome) -> dict:
    resp = {"ok": True}
    resp.update(outcome.to_dict())
    return resp


def handle_json_request(req: Dict[str, Any], client=None, cfg: Optional[Settings] = None) -> dict:
    """Organize one request body.

    Accepts `{"images": [data_url, ...], "userPrompt": str}` or the multipart
    form as a dict (`files` parts, optional `images`, `userPrompt`). Returns
    `{"ok": True, "results", "categories", "userPrompt"}` or
    `{"ok": False, "status", "error"}`.

    Blocking: runs its own event loop. From async code use
    `handle_json_request_async`.
    """
    err, call = _prepare(req, client, cfg)
    if err is not None:
        return err
    items, client, user_prompt, opts = call
    try:
        from ai_image_organizer import organize_sync

        outcome = organize_sync(items, client, user_prompt, **opts)
    except Exception as e:
        return _internal_error(e)
    return _ok(outcome)


async def handle_json_request_async(req: Dict[str, Any], client=None, cfg: Optional[Settings] = None) -> dict:
    """`handle_json_request` for callers already inside an event loop."""
    err, call = _prepare(req, client, cfg)
    if err is not None:
        return err
    items, client, user_prompt, opts = call
    try:
        from ai_image_organizer import organize

        outcome = await organize(items, client, user_prompt, **opts)
    except Exception as e:
        return _internal_error(e)
    return _ok(outcome)
