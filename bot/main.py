import asyncio
import os
import sys

from aiogram import Bot, Dispatcher, Router

import bot as pkg
import ai_image_organizer


def setup_config():
    """Load configuration via `load_config()` and attach it to the `bot` package.

    This makes the configuration available as `bot.cfg` to handlers and
    background tasks without having to call `load_config()` everywhere.
    `load_config()` also loads `.env`, so BOT_TOKEN is re-read afterwards.
    """
    try:
        cfg = ai_image_organizer.load_config()
    except RuntimeError as e:
        print(f"[STARTUP] {e}", file=sys.stderr)
        pkg.cfg = None
        return None
    pkg.cfg = cfg
    pkg.BOT_TOKEN = os.environ.get("BOT_TOKEN")
    return cfg


async def run() -> None:
    cfg = setup_config()

    bot_token = getattr(pkg, "BOT_TOKEN", None) or os.environ.get("BOT_TOKEN")
    if not bot_token:
        raise RuntimeError("BOT_TOKEN is not set")
    if cfg is None:
        raise RuntimeError("OPENAI_API_KEY is not set")

    b = Bot(bot_token)
    pkg.bot = b

    dp = Dispatcher()
    router = Router()
    router.message()(pkg.main_handler)
    dp.include_router(router)

    await pkg.setup_bot_commands()
    await pkg.notify_admin_startup()

    # Start polling (blocking)
    await dp.start_polling(b)


def start() -> None:
    asyncio.run(run())
