from typing import Tuple, Optional


def split_command(raw: Optional[str]) -> Tuple[Optional[str], str]:
    """'/receipts@my_bot sort by month' -> ('receipts', 'sort by month'); plain text -> (None, text)."""
    raw = (raw or "").strip()
    if not raw.startswith("/"):
        return None, raw
    first, *rest = raw.split(maxsplit=1)
    cmd = first[1:]
    if "@" in cmd:
        cmd = cmd.split("@", 1)[0]
    return normalize_command(cmd), (rest[0].strip() if rest else "")


def normalize_command(cmd: Optional[str]) -> Optional[str]:
    if not cmd:
        return None
    c = cmd.lower()
    no_underscore = c.replace("_", "")
    if no_underscore == "useradd":
        return "user_add"
    if no_underscore == "userdel":
        return "user_del"
    return c
