import asyncio

import bot


def test_notify_admin_on_start(monkeypatch):
    calls = []

    async def fake_send_message(chat_id, text=None, **kwargs):
        calls.append((chat_id, text))

    monkeypatch.setattr(bot, "BOT_ADMIN_ID", 12345)
    monkeypatch.setattr(bot.bot, "send_message", fake_send_message)

    asyncio.run(bot.notify_admin_startup())

    assert any(call[0] == 12345 and "Bot started" in (call[1] or "") for call in calls)


def test_notify_admin_failure_is_logged(monkeypatch, capsys):
    async def failing_send_message(chat_id, text=None, **kwargs):
        raise RuntimeError("chat not found")

    monkeypatch.setattr(bot, "BOT_ADMIN_ID", 12345)
    monkeypatch.setattr(bot.bot, "send_message", failing_send_message)

    asyncio.run(bot.notify_admin_startup())

    assert "[STARTUP] failed to notify admin: chat not found" in capsys.readouterr().err


def test_no_admin_no_message(monkeypatch):
    calls = []

    async def fake_send_message(chat_id, text=None, **kwargs):
        calls.append(chat_id)

    monkeypatch.setattr(bot, "BOT_ADMIN_ID", 0)
    monkeypatch.setattr(bot.bot, "send_message", fake_send_message)

    asyncio.run(bot.notify_admin_startup())

    assert calls == []
