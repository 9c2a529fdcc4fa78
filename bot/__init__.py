"""Telegram front-end for ai_image_organizer.

Handlers resolve helpers through this package at call time (`bot.organize`,
`bot.send_response`, ...) so tests can monkeypatch them in one place.
"""
import sys
import socket

from ai_image_organizer import OpenAIProvider, organize, build_archive, items_from_request

from .utils import split_command, normalize_command
from .formatting import simple_markdown_to_html, send_response, send_archive, format_outcome
from .prompts import load_prompts, PromptInfo
from .config import BOT_ADMIN_ID, GROUP_WAIT, MEDIA_CONTEXT_TTL
from .users_store import load_users, save_users, is_allowed, is_admin, add_user, remove_user, update_stats_after_call
from .media_group import (
	MEDIA_CONTEXTS,
	_cleanup_media_contexts,
	get_media_context,
	set_media_context,
	add_file_to_media_context,
	update_media_context_with_prompt,
	_delayed_process,
	_process_media_group,
)

__all__ = [
	"split_command",
	"normalize_command",
	"simple_markdown_to_html",
	"send_response",
	"send_archive",
	"format_outcome",
	"load_prompts",
	"PromptInfo",
	"BOT_ADMIN_ID",
	"GROUP_WAIT",
	"MEDIA_CONTEXT_TTL",
	"MEDIA_CONTEXTS",
	"get_media_context",
	"set_media_context",
	"add_file_to_media_context",
	"update_media_context_with_prompt",
	"organize",
	"build_archive",
	"items_from_request",
	"make_client",
	"handle_help",
	"notify_admin_startup",
	"users_db",
	"bot",
	"cfg",
]

# Dynamic prompts loaded at import time
PROMPTS = load_prompts()

users_db = load_users()

# Placeholders filled by bot.main (tests may monkeypatch `bot` with a FakeBot)
bot = None
cfg = None


def make_client(settings):
	return OpenAIProvider(settings)


async def handle_help(msg):
	user_id = getattr(getattr(msg, 'from_user', None), 'id', 0)
	lines = [
		"**AI Image Organizer**",
		"",
		"📷 Пришли до 10 изображений (скриншоты, фото, сканы) одним альбомом —",
		"я разберу каждое, разложу по категориям и верну ZIP-архив с отчётом.",
		"",
		"🛠 Команды:",
		"- /help – краткая справка.",
		"- /stats – твоя личная статистика.",
		"- `/text <инструкции>` в подписи – свои правила сортировки.",
	]
	if PROMPTS:
		lines += ["", "🎯 Пресеты (добавь в подпись к фото):"]
		for cmd, p in sorted(PROMPTS.items()):
			lines.append(f"- `/{cmd}` - {p.description}")
	if is_admin(user_id, BOT_ADMIN_ID) and getattr(getattr(msg, 'chat', None), 'type', None) == 'private':
		lines += ["", "👑 Админ-команды:", "- /users – список разрешённых пользователей.", "- `/user_add <id> [описание]`, `/user_del <id>`.", "- /balance – баланс API."]
	elif not is_allowed(user_id, users_db, BOT_ADMIN_ID):
		lines.insert(2, "⚠️ Вы не авторизованы для использования бота. Попросите админа добавить ваш ID через /user_add.")
	await send_response(msg, "\n".join(lines))


async def notify_admin_startup() -> None:
	if not BOT_ADMIN_ID or not bot:
		return
	try:
		await bot.send_message(BOT_ADMIN_ID, f"✅ Bot started and ready on {socket.gethostname()}.")
	except Exception as e:
		print(f"[STARTUP] failed to notify admin: {e}", file=sys.stderr)


from .handlers import setup_bot_commands, main_handler, handle_media, resolve_user_prompt
__all__.extend(["setup_bot_commands", "main_handler", "handle_media", "resolve_user_prompt"])
