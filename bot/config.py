import os

# Bridge config used by bot; these are intentionally simple and map to existing env vars
BOT_TOKEN = os.getenv("BOT_TOKEN")


def _int_from_env(name: str, default: int = 0) -> int:
    val = os.getenv(name, "")
    if val is None:
        return default
    try:
        val = val.split("#", 1)[0].strip()
        return int(val) if val != "" else default
    except ValueError:
        return default


def _float_from_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, "").split("#", 1)[0].strip() or default)
    except ValueError:
        return default


BOT_ADMIN_ID = _int_from_env("BOT_ADMIN_ID", 0)

PROMPTS_DIR = os.getenv("PROMPTS_DIR", "prompts")
USERS_FILE = os.getenv("USERS_FILE", "db/users.json")

# seconds to wait for the rest of an album before processing it
GROUP_WAIT = _float_from_env("GROUP_WAIT", 1.5)
MEDIA_CONTEXT_TTL = _int_from_env("MEDIA_CONTEXT_TTL", 120)
