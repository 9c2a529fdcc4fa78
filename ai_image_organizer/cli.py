"""
ai-image-organizer

Sort up to 10 images (screenshots, photos, scanned documents) into category
folders using an OpenAI-compatible vision model.

- .env config (OPENAI_*, IMAGE_*, MAX_IMAGES, PROMPT_FILE), overridable from CLI.
- Each image is analyzed separately, then one more request groups them.
- Result: organized_images_<date>.zip with category folders and
  analysis_summary.txt; --json prints the raw response instead.
- --check-balance queries the provider balance endpoint.
"""

import argparse
import glob
import json
import os
import sys
from typing import List, Optional, Sequence

from .archive import archive_name, build_archive
from .config import load_config, log, read_prompt_file
from .image_io import load_image_file
from .ingest import items_from_request
from .models import ValidationError
from .pipeline import organize_sync
from .providers import OpenAIProvider


def expand_image_patterns(patterns: Sequence[str]) -> List[str]:
    """Expand glob masks, keeping order and dropping duplicates."""
    result: List[str] = []
    for p in patterns:
        expanded = glob.glob(p)
        if expanded:
            result.extend(sorted(expanded))
        else:
            result.append(p)
    seen = set()
    uniq: List[str] = []
    for p in result:
        if p not in seen:
            seen.add(p)
            uniq.append(p)
    return uniq


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ai-image-organizer",
        description="Analyze images with an OpenAI-compatible vision model and sort them into category folders.",
    )
    parser.add_argument("images", nargs="*", help="Image file paths (supports glob masks like '*.jpg'), up to 10.")
    parser.add_argument(
        "-t",
        "--text",
        dest="text",
        help="Custom organizing instructions (e.g. 'Organize into: Work, Receipts, Photos'). Overrides PROMPT_FILE.",
    )
    parser.add_argument("-p", "--prompt-file", dest="prompt_file", help="Override PROMPT_FILE from .env (file with default instructions).")
    parser.add_argument("-o", "--output", dest="output", help="Archive path (default: organized_images_<date>.zip in the current directory).")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Print the JSON response instead of writing an archive.")
    parser.add_argument("--image-max-size", dest="image_max_size", type=int, help="Override IMAGE_MAX_SIZE (downscale images sent to the model; 0 = originals).")
    parser.add_argument("--image-quality", dest="image_quality", type=int, help="Override IMAGE_QUALITY (JPEG quality for downscaled images).")
    parser.add_argument("-k", "--OPENAI_API_KEY", dest="openai_api_key", help="Override OPENAI_API_KEY from .env.")
    parser.add_argument("-u", "--OPENAI_BASE_URL", dest="openai_base_url", help="Override OPENAI_BASE_URL from .env.")
    parser.add_argument("-m", "--OPENAI_MODEL", dest="openai_model", help="Override OPENAI_MODEL from .env.")
    parser.add_argument("-T", "--OPENAI_TIMEOUT", dest="openai_timeout", type=int, help="Override OPENAI_TIMEOUT from .env (seconds).")
    parser.add_argument("-M", "--OPENAI_MAX_TOKENS", dest="openai_max_tokens", type=int, help="Override OPENAI_MAX_TOKENS from .env.")
    parser.add_argument("--check-balance", dest="check_balance", action="store_true", help="Check provider balance (if supported) and exit.")
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug output to stderr (same as DEBUG=1).")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode: suppress informational logs.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if args.debug:
        os.environ["DEBUG"] = "1"
    if args.openai_api_key:
        os.environ["OPENAI_API_KEY"] = args.openai_api_key
    try:
        cfg = load_config()
    except RuntimeError as e:
        sys.exit(f"ERROR: {e}")

    if args.openai_base_url:
        cfg.base_url = args.openai_base_url
    if args.openai_model:
        cfg.model = args.openai_model
    if args.openai_timeout is not None:
        cfg.timeout = args.openai_timeout
    if args.openai_max_tokens is not None:
        cfg.max_tokens = args.openai_max_tokens
    if args.prompt_file:
        cfg.prompt_file = args.prompt_file
    if args.image_max_size is not None:
        cfg.image_max_size = args.image_max_size
    if args.image_quality is not None:
        cfg.image_quality = args.image_quality

    log(f"Model: {cfg.model}", args.quiet)
    log(f"BASE_URL: {cfg.base_url or 'default'}", args.quiet)
    log(f"MAX_TOKENS: {cfg.max_tokens}, TIMEOUT: {cfg.timeout}", args.quiet)

    provider = OpenAIProvider(cfg, quiet=args.quiet)

    if args.check_balance:
        try:
            data = provider.check_balance()
        except Exception as e:  # pragma: no cover - network errors
            print(f"Failed to get balance: {e}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(data, ensure_ascii=False, indent=2))
        info = data.get("data") if isinstance(data, dict) and isinstance(data.get("data"), dict) else data
        try:
            balance = float(info.get("credits"))
        except (AttributeError, TypeError, ValueError):
            balance = None
        if cfg.balance_threshold and balance is not None and balance < cfg.balance_threshold:
            log(f"WARNING: balance {balance} is below OPENAI_BALANCE_THRESHOLD={cfg.balance_threshold}", False)
        return

    image_paths = expand_image_patterns(args.images)
    log(f"Files received: {len(image_paths)}", args.quiet)
    for p in image_paths:
        log(f" → {p}", args.quiet)

    files = []
    for p in image_paths:
        try:
            files.append(load_image_file(p))
        except OSError as e:
            sys.exit(f"ERROR: cannot read {p}: {e}")

    try:
        items = items_from_request(files=files, max_items=cfg.max_images)
    except ValidationError as e:
        sys.exit(f"ERROR: {e}")

    user_prompt = args.text or read_prompt_file(cfg.prompt_file) or None
    outcome = organize_sync(
        items,
        provider,
        user_prompt,
        image_max_size=cfg.image_max_size,
        image_quality=cfg.image_quality,
        quiet=args.quiet,
    )

    if args.as_json:
        print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
        return

    out_path = args.output or archive_name()
    with open(out_path, "wb") as f:
        f.write(build_archive(outcome, items))
    for res in outcome.results:
        mark = "ok" if res.ok else "error"
        print(f"[{mark}] {res.file_name} → {res.category}/{res.content} ({res.confidence}%)")
    print(f"Saved organized archive to {out_path}")


if __name__ == "__main__":
    main()
