import os
from typing import Dict
from dataclasses import dataclass

_ALLOWED = "abcdefghijklmnopqrstuvwxyz0123456789_"


@dataclass
class PromptInfo:
    command: str
    filename: str
    path: str
    description: str

    def read(self) -> str:
        with open(self.path, "r", encoding="utf-8") as f:
            return f.read().strip()


def sanitize_command_name(base: str, used: set, idx: int) -> str:
    """Telegram command name: [a-z0-9_], starts with a letter, at most 32 chars, unique."""
    name = "".join(c if c in _ALLOWED else "_" for c in base.lower()).strip("_")
    if not name:
        name = f"p_{idx}"
    if not name[0].isalpha():
        name = f"p_{name}"
    name = name[:32]

    orig = name
    suffix = 1
    while name in used:
        name = f"{orig}_{suffix}"[:32]
        suffix += 1
    used.add(name)
    return name


def load_prompts(prompts_dir: str | None = None) -> Dict[str, PromptInfo]:
    """Instruction presets: every PROMPTS_DIR/*.txt becomes a `/<name>` command.

    The first line of a file is its description in /help.
    """
    dir_to_use = prompts_dir or os.getenv("PROMPTS_DIR", "prompts")
    prompts: Dict[str, PromptInfo] = {}
    if not os.path.isdir(dir_to_use):
        return prompts
    files = [f for f in sorted(os.listdir(dir_to_use)) if f.lower().endswith(".txt")]
    used: set = set()
    for idx, fname in enumerate(files, start=1):
        cmd = sanitize_command_name(os.path.splitext(fname)[0], used, idx)
        path = os.path.join(dir_to_use, fname)
        try:
            with open(path, "r", encoding="utf-8") as f:
                first = f.readline().strip()
            desc = first[:80] if first else f"Prompt from {fname}"
        except OSError:
            desc = f"Prompt from {fname}"
        prompts[cmd] = PromptInfo(command=cmd, filename=fname, path=path, description=desc)
    return prompts
