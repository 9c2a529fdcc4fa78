import asyncio
from types import SimpleNamespace

import bot
from bot.prompts import PromptInfo


class DummyMsg:
    def __init__(self, user_id=999999):
        self.message_id = 1
        self.chat = SimpleNamespace(type="private")
        self.from_user = SimpleNamespace(id=user_id)

    async def answer(self, text=None, parse_mode=None):
        return self


def _capture(monkeypatch):
    captured = {}

    async def fake_send_response(m, text, filename_prefix=None):
        captured["text"] = text

    monkeypatch.setattr(bot, "send_response", fake_send_response)
    return captured


def test_help_shows_prompts_to_unallowed(monkeypatch):
    captured = _capture(monkeypatch)
    monkeypatch.setattr(bot, "PROMPTS", {
        "receipts": PromptInfo(command="receipts", filename="receipts.txt", path="receipts.txt", description="Чеки по месяцам"),
    })

    asyncio.run(bot.handle_help(DummyMsg()))

    text = captured.get("text", "")
    assert "Команды:" in text, "help should show commands"
    assert "`/receipts` - Чеки по месяцам" in text
    assert "Вы не авторизованы" in text
    assert "Админ-команды" not in text


def test_help_shows_admin_section(monkeypatch):
    captured = _capture(monkeypatch)
    monkeypatch.setattr(bot, "BOT_ADMIN_ID", 777)

    asyncio.run(bot.handle_help(DummyMsg(user_id=777)))

    text = captured.get("text", "")
    assert "Админ-команды" in text
    assert "Вы не авторизованы" not in text


def test_help_is_answered_before_allow_list(monkeypatch):
    captured = _capture(monkeypatch)
    msg = DummyMsg()
    msg.text = "/help"

    asyncio.run(bot.main_handler(msg))

    assert "AI Image Organizer" in captured.get("text", "")
