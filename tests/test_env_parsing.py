import importlib


def test_bot_admin_id_parsing(monkeypatch):
    # simulate inline comment in .env
    monkeypatch.setenv("BOT_ADMIN_ID", "662750197          # numeric user id (желательно)")
    import bot.config as c
    try:
        importlib.reload(c)
        assert isinstance(c.BOT_ADMIN_ID, int)
        assert c.BOT_ADMIN_ID == 662750197
    finally:
        monkeypatch.delenv("BOT_ADMIN_ID")
        importlib.reload(c)


def test_group_wait_and_ttl_parsing(monkeypatch):
    monkeypatch.setenv("GROUP_WAIT", "0.25 # seconds")
    monkeypatch.setenv("MEDIA_CONTEXT_TTL", "abc")
    import bot.config as c
    try:
        importlib.reload(c)
        assert c.GROUP_WAIT == 0.25
        assert c.MEDIA_CONTEXT_TTL == 120
    finally:
        monkeypatch.delenv("GROUP_WAIT")
        monkeypatch.delenv("MEDIA_CONTEXT_TTL")
        importlib.reload(c)
