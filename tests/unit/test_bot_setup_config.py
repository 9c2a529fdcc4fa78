import asyncio
import importlib

import pytest


def test_setup_config_attaches_cfg(monkeypatch):
    # ensure load_config returns an object with expected attributes
    class C:
        api_key = "x"
        base_url = "http://example"

    monkeypatch.setattr("ai_image_organizer.load_config", lambda: C())

    m = importlib.import_module("bot.main")
    import bot as pkg
    monkeypatch.setattr(pkg, "cfg", None)
    cfg = m.setup_config()
    assert isinstance(cfg, C)
    assert pkg.cfg is cfg
    # pkg should also receive BOT_TOKEN from environment when setup_config is called
    monkeypatch.setenv("BOT_TOKEN", "tkn")
    m.setup_config()
    assert getattr(pkg, "BOT_TOKEN", None) == "tkn"


def test_setup_config_without_api_key(monkeypatch, capsys):
    def no_key():
        raise RuntimeError("OPENAI_API_KEY is not set")

    monkeypatch.setattr("ai_image_organizer.load_config", no_key)
    m = importlib.import_module("bot.main")
    assert m.setup_config() is None
    assert "[STARTUP] OPENAI_API_KEY is not set" in capsys.readouterr().err


def test_run_requires_openai_key(monkeypatch):
    def no_key():
        raise RuntimeError("OPENAI_API_KEY is not set")

    monkeypatch.setattr("ai_image_organizer.load_config", no_key)
    m = importlib.import_module("bot.main")
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY is not set"):
        asyncio.run(m.run())
