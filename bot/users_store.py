import json
import os
from typing import Dict, Any, Optional

from . import config as _cfg


def _users_file(path: Optional[str] = None) -> str:
    return path or _cfg.USERS_FILE


def _ensure_users_file_dir(path: str) -> None:
    d = os.path.dirname(path)
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def load_users(path: Optional[str] = None) -> Dict[str, Any]:
    path = _users_file(path)
    if not os.path.exists(path):
        return {"enabled": [], "stats": {}, "meta": {}}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    data.setdefault("enabled", [])
    data.setdefault("stats", {})
    data.setdefault("meta", {})
    return data


def save_users(data: Dict[str, Any], path: Optional[str] = None) -> None:
    path = _users_file(path)
    _ensure_users_file_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def is_admin(user_id: int, admin_id: int) -> bool:
    return bool(admin_id) and user_id == admin_id


def is_allowed(user_id: int, users_db: Dict[str, Any], admin_id: int) -> bool:
    if is_admin(user_id, admin_id):
        return True
    return user_id in users_db.get("enabled", [])


def add_user(users_db: Dict[str, Any], uid: int, description: str = "", username: str = "") -> None:
    enabled = users_db.setdefault("enabled", [])
    if uid not in enabled:
        enabled.append(uid)
    users_db.setdefault("meta", {})[str(uid)] = {"description": description, "username": username}
    save_users(users_db)


def remove_user(users_db: Dict[str, Any], uid: int) -> bool:
    enabled = users_db.setdefault("enabled", [])
    if uid not in enabled:
        return False
    enabled.remove(uid)
    users_db.setdefault("meta", {}).pop(str(uid), None)
    save_users(users_db)
    return True


def ensure_stats(uid: int, users_db: Dict[str, Any]) -> None:
    stats = users_db.setdefault("stats", {})
    key = str(uid)
    if key not in stats:
        stats[key] = {
            "requests": 0,
            "images": 0,
            "megabytes": 0.0,
            "failed_images": 0,
        }


def update_stats_after_call(users_db: Dict[str, Any], uid: int, images: int, bytes_sent: int, failed: int = 0) -> None:
    ensure_stats(uid, users_db)
    s = users_db["stats"][str(uid)]
    s["requests"] += 1
    s["images"] += images
    s["megabytes"] += bytes_sent / (1024.0 * 1024.0)
    s["failed_images"] = s.get("failed_images", 0) + failed
    save_users(users_db)
