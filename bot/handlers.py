import asyncio
import sys
import traceback
from typing import Optional, Tuple

from .utils import split_command

# keep references so album tasks are not garbage-collected mid-flight
_PENDING_TASKS: set = set()


def resolve_user_prompt(cmd: Optional[str], tail: str) -> Tuple[Optional[str], Optional[str]]:
    """Caption -> (instructions, label). `/preset extra` combines a preset with extra text."""
    prompts = getattr(__import__('bot'), 'PROMPTS', {})
    if cmd and cmd in prompts:
        try:
            text = prompts[cmd].read()
        except OSError as e:
            print(f"[PROMPT_DEBUG] failed to read prompt {cmd}: {e}", file=sys.stderr)
            text = ""
        if tail:
            text = f"{text}\n{tail}".strip()
        return (text or None), cmd
    if cmd == "text" or (cmd is None and tail):
        return (tail or None), "текст из сообщения"
    return None, None


async def _download_part(msg) -> Optional[tuple]:
    pkg = __import__('bot')
    photo = getattr(msg, 'photo', None)
    if photo:
        biggest = photo[-1]
        buf = await pkg.bot.download(biggest.file_id)
        return (f"photo_{getattr(msg, 'message_id', 0)}.jpg", "image/jpeg", buf.getvalue())
    doc = getattr(msg, 'document', None)
    if doc:
        buf = await pkg.bot.download(doc.file_id)
        return (doc.file_name, doc.mime_type, buf.getvalue())
    return None


async def handle_media(msg, cmd: Optional[str], tail: str) -> None:
    pkg = __import__('bot')
    user_id = getattr(getattr(msg, 'from_user', None), 'id', 0)
    part = await _download_part(msg)
    if part is None:
        return
    user_prompt, label = resolve_user_prompt(cmd, tail)

    mgid = getattr(msg, 'media_group_id', None)
    if mgid:
        created = pkg.add_file_to_media_context(mgid, part, reply_msg=msg, user_id=user_id)
        pkg.update_media_context_with_prompt(mgid, user_prompt, label)
        if created:
            task = asyncio.create_task(pkg._delayed_process(mgid))
            _PENDING_TASKS.add(task)
            task.add_done_callback(_PENDING_TASKS.discard)
        return

    key = f"msg_{getattr(getattr(msg, 'chat', None), 'id', 0)}_{getattr(msg, 'message_id', 0)}"
    pkg.set_media_context(key, {
        "files": [part],
        "user_prompt": user_prompt,
        "prompt_label": label,
        "reply_msg": msg,
        "user_id": user_id,
    })
    await pkg._process_media_group(key)


async def handle_users(msg, cmd: str, tail: str) -> None:
    pkg = __import__('bot')
    db = pkg.users_db
    if cmd == "users":
        enabled = db.get("enabled", [])
        if not enabled:
            await pkg.send_response(msg, "👥 Список пуст.")
            return
        lines = ["👥 Разрешённые пользователи:"]
        for uid in enabled:
            info = db.get("meta", {}).get(str(uid), {})
            line = str(uid)
            if info.get("username"):
                line += f" @{info['username']}"
            if info.get("description"):
                line += f" — {info['description']}"
            lines.append(line)
        await pkg.send_response(msg, "\n".join(lines))
        return

    first, *rest = (tail.split(maxsplit=1) or [""])
    try:
        uid = int(first)
    except ValueError:
        await pkg.send_response(msg, f"Использование: `/{cmd} <user_id>`")
        return
    if cmd == "user_add":
        pkg.add_user(db, uid, description=rest[0] if rest else "")
        await pkg.send_response(msg, f"✅ Пользователь {uid} добавлен.")
    elif pkg.remove_user(db, uid):
        await pkg.send_response(msg, f"🗑 Пользователь {uid} удалён.")
    else:
        await pkg.send_response(msg, f"Пользователя {uid} нет в списке.")


async def handle_stats(msg, user_id: int) -> None:
    pkg = __import__('bot')
    s = pkg.users_db.get("stats", {}).get(str(user_id))
    if not s:
        await pkg.send_response(msg, "📊 Пока нет запросов.")
        return
    await pkg.send_response(msg, "\n".join([
        "📊 Статистика:",
        f"Запросов: {s.get('requests', 0)}",
        f"Изображений: {s.get('images', 0)} (с ошибкой: {s.get('failed_images', 0)})",
        f"Объём: {s.get('megabytes', 0.0):.2f} МБ",
    ]))


async def handle_balance(msg) -> None:
    pkg = __import__('bot')
    try:
        data = pkg.make_client(pkg.cfg).check_balance()
    except Exception as e:
        await pkg.send_response(msg, f"❌ Не удалось получить баланс: {e}")
        return
    await pkg.send_response(msg, f"💰 Баланс: `{data}`")


async def setup_bot_commands() -> None:
    from aiogram.types import BotCommand
    cmds = [
        BotCommand(command="help", description="Справка и список пресетов"),
        BotCommand(command="text", description="Инструкции для сортировки (в подписи к фото)"),
        BotCommand(command="stats", description="Статистика по запросам"),
    ]
    for pi in getattr(__import__('bot'), 'PROMPTS', {}).values():
        cmds.append(BotCommand(command=pi.command, description=pi.description[:80]))
    try:
        await __import__('bot').bot.set_my_commands(cmds[:100])
    except Exception as e:
        print(f"[STARTUP] failed to set bot commands: {e}", file=sys.stderr)


async def main_handler(msg) -> None:
    pkg = __import__('bot')
    try:
        user_id = getattr(getattr(msg, 'from_user', None), 'id', 0)
        raw = getattr(msg, 'text', None) or getattr(msg, 'caption', None) or ""
        cmd, tail = split_command(raw)

        if cmd == "help":
            await pkg.handle_help(msg)
            return

        if not pkg.is_allowed(user_id, pkg.users_db, pkg.BOT_ADMIN_ID):
            return

        if getattr(msg, 'photo', None) or getattr(msg, 'document', None):
            await handle_media(msg, cmd, tail)
            return

        if cmd == "stats":
            await handle_stats(msg, user_id)
            return

        if cmd in ("users", "user_add", "user_del", "balance"):
            if not pkg.is_admin(user_id, pkg.BOT_ADMIN_ID):
                return
            if cmd == "balance":
                await handle_balance(msg)
            else:
                await handle_users(msg, cmd, tail)
            return

        if cmd and cmd in getattr(pkg, 'PROMPTS', {}):
            await pkg.send_response(msg, f"📎 Прикрепите изображения и добавьте `/{cmd}` в подпись.")
            return

        await pkg.send_response(msg, "📷 Пришлите до 10 изображений одним альбомом — разложу их по папкам и верну архив.")
    except Exception:
        traceback.print_exc()
        try:
            await pkg.send_response(msg, "❌ Произошла ошибка при обработке запроса.")
        except Exception:
            pass
