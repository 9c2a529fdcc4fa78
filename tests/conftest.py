import io
import os
import sys

import pytest

# Ensure project root is importable during tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import bot as _bot
import bot.config as _bot_config


class FakeBot:
    def __init__(self):
        self.files = {}

    async def send_message(self, *args, **kwargs):
        return None

    async def set_my_commands(self, *args, **kwargs):
        return None

    async def download(self, file_id, *args, **kwargs):
        return io.BytesIO(self.files.get(file_id, b"fake-image-bytes"))


@pytest.fixture(autouse=True)
def disable_real_bot(monkeypatch, tmp_path):
    # Ensure tests don't use a real BOT_TOKEN or network calls
    # provide a dummy token so module import does not fail and aiogram accepts it
    monkeypatch.setenv("BOT_TOKEN", "123:FAKE_TOKEN")
    # replace bot.bot with a fake instance
    monkeypatch.setattr(_bot, "bot", FakeBot())
    # keep user stats out of the working tree
    monkeypatch.setattr(_bot_config, "USERS_FILE", str(tmp_path / "db" / "users.json"))
    monkeypatch.setattr(_bot, "users_db", {"enabled": [], "stats": {}, "meta": {}})
    _bot.MEDIA_CONTEXTS.clear()
    yield
