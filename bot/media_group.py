import asyncio
import time
import sys
import traceback
from typing import Optional

from ai_image_organizer import MAX_ITEMS, ValidationError, archive_name
from ai_image_organizer.config import debug_enabled

from .config import GROUP_WAIT, MEDIA_CONTEXT_TTL

# Albums being collected: media_group_id -> {files, user_prompt, prompt_label, reply_msg, user_id, ts}
MEDIA_CONTEXTS: dict = {}


def _cleanup_media_contexts() -> None:
    now = time.time()
    to_delete = [k for k, v in MEDIA_CONTEXTS.items() if now - v.get("ts", 0) > MEDIA_CONTEXT_TTL]
    for k in to_delete:
        MEDIA_CONTEXTS.pop(k, None)
        if debug_enabled():
            print(f"[MEDIA_DEBUG] expired media context {k}", file=sys.stderr)


def get_media_context(media_group_id: Optional[str]) -> Optional[dict]:
    if not media_group_id:
        return None
    _cleanup_media_contexts()
    return MEDIA_CONTEXTS.get(media_group_id)


def set_media_context(media_group_id: str, ctx: dict) -> None:
    ctx = dict(ctx)
    ctx.setdefault("files", [])
    ctx["ts"] = time.time()
    MEDIA_CONTEXTS[media_group_id] = ctx
    if debug_enabled():
        print(f"[MEDIA_DEBUG] set media context {media_group_id}: files={len(ctx['files'])} prompt_label={ctx.get('prompt_label')}", file=sys.stderr)


def add_file_to_media_context(media_group_id: str, part: tuple, reply_msg=None, user_id: int = 0) -> bool:
    """Append an upload part; returns True when this created the context (first file of the album)."""
    ctx = get_media_context(media_group_id)
    created = ctx is None
    if created:
        ctx = {"files": [], "user_prompt": None, "prompt_label": None, "reply_msg": reply_msg, "user_id": user_id}
    ctx["files"].append(part)
    if ctx.get("reply_msg") is None:
        ctx["reply_msg"] = reply_msg
    set_media_context(media_group_id, ctx)
    return created


def update_media_context_with_prompt(media_group_id: str, user_prompt: Optional[str], prompt_label: Optional[str] = None) -> None:
    """Captions may arrive on any message of the album; the latest non-empty one wins."""
    if not media_group_id or not user_prompt:
        return
    ctx = get_media_context(media_group_id)
    if not ctx:
        return
    ctx["user_prompt"] = user_prompt
    ctx["prompt_label"] = prompt_label or "текст из сообщения"
    set_media_context(media_group_id, ctx)
    if debug_enabled():
        print(f"[PROMPT_DEBUG] updated media context {media_group_id}: prompt_label={ctx['prompt_label']}", file=sys.stderr)


async def _delayed_process(mgid: str) -> None:
    wait = getattr(__import__('bot'), 'GROUP_WAIT', GROUP_WAIT)
    if wait:
        await asyncio.sleep(wait)
    await __import__('bot')._process_media_group(mgid)


async def _process_media_group(mgid: str, cfg=None) -> None:
    """Organize the collected files and reply with a summary and the ZIP.

    If `cfg` is not provided, use `bot.cfg` (set by `bot.main.setup_config()`)
    or fall back to `ai_image_organizer.load_config()`.
    """
    ctx = MEDIA_CONTEXTS.pop(mgid, None)
    if not ctx or not ctx.get("files") or ctx.get("reply_msg") is None:
        return
    reply_msg = ctx["reply_msg"]
    # at-call resolution of functions to allow tests to monkeypatch
    from bot import organize, build_archive, make_client, send_response, send_archive, format_outcome

    try:
        if cfg is None:
            cfg = getattr(__import__('bot'), 'cfg', None)
            if cfg is None:
                from ai_image_organizer import load_config

                cfg = load_config()

        files = ctx["files"]
        try:
            items = __import__('bot').items_from_request(files=files, max_items=getattr(cfg, "max_images", MAX_ITEMS))
        except ValidationError as e:
            await send_response(reply_msg, f"❌ {e}")
            return

        label = ctx.get("prompt_label")
        kickoff = f"📷 Принял {len(items)} файлов, анализирую"
        kickoff += f" (инструкции: {label})." if label else "."
        try:
            await reply_msg.answer(kickoff)
        except Exception as e:
            print(f"[MEDIA_DEBUG] failed to send kickoff for media_group {mgid}: {e}", file=sys.stderr)

        outcome = await organize(
            items,
            make_client(cfg),
            ctx.get("user_prompt"),
            image_max_size=getattr(cfg, "image_max_size", 0),
            image_quality=getattr(cfg, "image_quality", 90),
        )
        await send_response(reply_msg, format_outcome(outcome), filename_prefix="summary")
        await send_archive(reply_msg, build_archive(outcome, items), archive_name())

        pkg = __import__('bot')
        uid = ctx.get("user_id") or 0
        if uid:
            try:
                pkg.update_stats_after_call(
                    pkg.users_db,
                    uid,
                    images=len(items),
                    bytes_sent=sum(len(it.data) for it in items),
                    failed=sum(1 for r in outcome.results if not r.ok),
                )
            except OSError as e:
                print(f"[MEDIA_DEBUG] failed to save stats for {uid}: {e}", file=sys.stderr)
    except Exception:
        print(f"[MEDIA_DEBUG] unexpected error while processing media_group {mgid}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        try:
            await send_response(reply_msg, "❌ Произошла ошибка при обработке файлов.")
        except Exception:
            pass
