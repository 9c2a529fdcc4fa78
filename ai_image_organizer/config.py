from dataclasses import dataclass
from typing import Optional
import os
import sys

from dotenv import load_dotenv, find_dotenv

# Hard upper bound on a single batch; MAX_IMAGES may only lower it.
MAX_ITEMS = 10


@dataclass
class Settings:
    api_key: str
    base_url: Optional[str]
    model: str
    timeout: int
    max_tokens: int
    image_max_size: int
    image_quality: int
    max_images: int
    prompt_file: Optional[str]
    balance_threshold: Optional[int] = None
    image_debug: bool = False


def debug_enabled() -> bool:
    """Unified debug flag: DEBUG first, IMAGE_DEBUG for backward compatibility."""
    env_dbg = os.environ.get("DEBUG", None)
    if env_dbg is None:
        env_dbg = os.environ.get("IMAGE_DEBUG", "")
    return str(env_dbg).lower() in ("1", "true", "yes")


def log(msg: str, quiet: bool = False) -> None:
    """Prefixed informational log to stderr."""
    if not quiet:
        print(f"[ai_image_organizer] {msg}", file=sys.stderr)


def _search_upwards(start: str) -> Optional[str]:
    p = os.path.abspath(start)
    while True:
        cand = os.path.join(p, ".env")
        if os.path.exists(cand):
            return cand
        parent = os.path.dirname(p)
        if parent == p:
            return None
        p = parent


def _int_env(name: str, default: int) -> int:
    v = os.environ.get(name)
    if not v:
        return default
    try:
        return int(v.split("#", 1)[0].strip())
    except ValueError:
        print(f"WARNING: invalid {name}={v!r}, using default {default}", file=sys.stderr)
        return default


def load_config() -> Settings:
    # find_dotenv() only looks relative to the caller; fall back to walking up
    # from cwd and then from this package.
    _env = find_dotenv()
    if not _env:
        _env = _search_upwards(os.getcwd()) or _search_upwards(os.path.dirname(__file__)) or ".env"
    load_dotenv(_env)
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is not set")

    max_images = _int_env("MAX_IMAGES", MAX_ITEMS)
    if max_images < 1 or max_images > MAX_ITEMS:
        max_images = MAX_ITEMS

    return Settings(
        api_key=api_key,
        base_url=os.environ.get("OPENAI_BASE_URL") or None,
        model=os.environ.get("OPENAI_MODEL") or "gpt-4.1-mini",
        timeout=_int_env("OPENAI_TIMEOUT", 120),
        max_tokens=_int_env("OPENAI_MAX_TOKENS", 1024),
        image_max_size=_int_env("IMAGE_MAX_SIZE", 0),
        image_quality=_int_env("IMAGE_QUALITY", 90),
        max_images=max_images,
        prompt_file=os.environ.get("PROMPT_FILE") or None,
        balance_threshold=_int_env("OPENAI_BALANCE_THRESHOLD", 0) or None,
        image_debug=debug_enabled(),
    )


def read_prompt_file(path: Optional[str]) -> str:
    # Non-fatal: a missing or unreadable file yields an empty directive.
    if not path:
        return ""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError as e:
        print(f"ERROR: failed to read PROMPT_FILE {path}: {e}", file=sys.stderr)
        return ""
