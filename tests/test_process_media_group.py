import asyncio
import io
import json
import zipfile
from types import SimpleNamespace

import bot


class DummyMsg:
    def __init__(self, message_id=1, user_id=42, caption=None, photo=None, document=None, media_group_id=None):
        self.message_id = message_id
        self.chat = SimpleNamespace(id=100, type="private")
        self.from_user = SimpleNamespace(id=user_id)
        self.caption = caption
        self.text = None
        self.photo = photo
        self.document = document
        self.media_group_id = media_group_id
        self.answers = []
        self.documents = []

    async def answer(self, text=None, parse_mode=None):
        self.answers.append(text)
        return self

    async def answer_document(self, document, caption=None):
        self.documents.append(document)
        return self


class ScriptedClient:
    def __init__(self):
        self.instructions = []

    def submit(self, instruction, image=None, media_type=None):
        self.instructions.append(instruction)
        if image is None:
            return json.dumps({"categories": {"receipts": {"description": "Shop receipts", "images": [0, 1]}}})
        return '```json\n{"content": "grocery receipt", "extracted_text": "TOTAL 12.50", "theme": "finance", "confidence": 90}\n```'


def _cfg():
    return SimpleNamespace(max_images=10, image_max_size=0, image_quality=90)


def test_process_media_group_sends_summary_and_archive(monkeypatch):
    client = ScriptedClient()
    monkeypatch.setattr(bot, "make_client", lambda cfg: client)
    msg = DummyMsg()
    bot.set_media_context("mg1", {
        "files": [("a.jpg", "image/jpeg", b"aaa"), ("b.png", "image/png", b"bbb")],
        "user_prompt": "by month",
        "prompt_label": "receipts",
        "reply_msg": msg,
        "user_id": 42,
    })

    asyncio.run(bot._process_media_group("mg1", cfg=_cfg()))

    assert msg.answers[0] == "📷 Принял 2 файлов, анализирую (инструкции: receipts)."
    assert "Готово: 2 из 2 файлов разобрано" in msg.answers[1]
    assert "receipts" in msg.answers[1]
    assert len(msg.documents) == 1
    archive = msg.documents[0]
    assert archive.filename.startswith("organized_images_")
    with zipfile.ZipFile(io.BytesIO(archive.data)) as zf:
        names = zf.namelist()
    assert "analysis_summary.txt" in names
    assert sum(1 for n in names if n.startswith("receipts/")) == 2
    # user instructions reach every model call
    assert all("by month" in i for i in client.instructions)
    stats = bot.users_db["stats"]["42"]
    assert stats["requests"] == 1 and stats["images"] == 2 and stats["failed_images"] == 0
    assert "mg1" not in bot.MEDIA_CONTEXTS


def test_process_media_group_rejects_non_images(monkeypatch):
    monkeypatch.setattr(bot, "make_client", lambda cfg: ScriptedClient())
    msg = DummyMsg()
    bot.set_media_context("mg2", {"files": [("notes.pdf", "application/pdf", b"%PDF")], "reply_msg": msg})

    asyncio.run(bot._process_media_group("mg2", cfg=_cfg()))

    assert msg.answers == ["❌ No images provided"]
    assert msg.documents == []


def test_process_media_group_unexpected_error(monkeypatch, capsys):
    def broken_client(cfg):
        raise RuntimeError("boom")

    monkeypatch.setattr(bot, "make_client", broken_client)
    msg = DummyMsg()
    bot.set_media_context("mg3", {"files": [("a.jpg", "image/jpeg", b"a")], "reply_msg": msg})

    asyncio.run(bot._process_media_group("mg3", cfg=_cfg()))

    assert msg.answers[-1] == "❌ Произошла ошибка при обработке файлов."
    assert "[MEDIA_DEBUG] unexpected error while processing media_group mg3" in capsys.readouterr().err


def test_single_photo_is_processed_immediately(monkeypatch):
    client = ScriptedClient()
    monkeypatch.setattr(bot, "make_client", lambda cfg: client)
    monkeypatch.setattr(bot, "cfg", _cfg())
    bot.users_db["enabled"].append(42)
    msg = DummyMsg(caption="/text sort by shop", photo=[SimpleNamespace(file_id="small"), SimpleNamespace(file_id="big")])

    asyncio.run(bot.main_handler(msg))

    assert msg.answers[0] == "📷 Принял 1 файлов, анализирую (инструкции: текст из сообщения)."
    assert len(msg.documents) == 1
    assert "sort by shop" in client.instructions[0]


def test_album_is_collected_then_processed(monkeypatch):
    from bot import handlers

    client = ScriptedClient()
    monkeypatch.setattr(bot, "make_client", lambda cfg: client)
    monkeypatch.setattr(bot, "cfg", _cfg())
    monkeypatch.setattr(bot, "GROUP_WAIT", 0)
    bot.users_db["enabled"].append(42)
    first = DummyMsg(message_id=1, photo=[SimpleNamespace(file_id="p1")], media_group_id="album")
    second = DummyMsg(message_id=2, caption="only receipts", photo=[SimpleNamespace(file_id="p2")], media_group_id="album")

    async def scenario():
        await bot.main_handler(first)
        await bot.main_handler(second)
        await asyncio.gather(*list(handlers._PENDING_TASKS))

    asyncio.run(scenario())

    # replies go to the first message of the album
    assert second.answers == []
    assert first.answers[0] == "📷 Принял 2 файлов, анализирую (инструкции: текст из сообщения)."
    assert len(first.documents) == 1
    assert "only receipts" in client.instructions[0]


def test_unallowed_user_is_ignored(monkeypatch):
    monkeypatch.setattr(bot, "make_client", lambda cfg: ScriptedClient())
    monkeypatch.setattr(bot, "BOT_ADMIN_ID", 0)
    msg = DummyMsg(user_id=5, photo=[SimpleNamespace(file_id="p")])

    asyncio.run(bot.main_handler(msg))

    assert msg.answers == [] and msg.documents == []
