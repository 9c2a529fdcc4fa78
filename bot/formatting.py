import re
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import Message, BufferedInputFile
from typing import Optional

from ai_image_organizer import OrganizeOutcome

FORMAT_MODE = "HTML"
MESSAGE_LIMIT = 3800


def simple_markdown_to_html(md: str) -> str:
    def esc(s):
        return (
            s.replace("&", "&amp;")
             .replace("<", "&lt;")
             .replace(">", "&gt;")
        )

    code_placeholders = []

    def code_repl(m):
        code_placeholders.append(m.group(1))
        return f"{{{{CODE{len(code_placeholders)-1}}}}}"

    html = esc(re.sub(r"`([^`]+?)`", code_repl, md))

    html = re.sub(r"^# (.+)$", r"<b>\1</b>", html, flags=re.MULTILINE)
    html = re.sub(r"(?<!\w)\*\*(.+?)\*\*(?!\w)", r"<b>\1</b>", html)
    html = re.sub(r"^\* (.+)$", r"• \1", html, flags=re.MULTILINE)
    html = re.sub(r"\n{3,}", "\n\n", html)
    html = re.sub(r"^\n+", "", html)

    for i, code in enumerate(code_placeholders):
        html = html.replace(f"{{{{CODE{i}}}}}", f"<code>{esc(code)}</code>")
    return html


async def send_response(msg: Message, text: Optional[str] = None, filename_prefix: str = "response") -> None:
    """Send text as a message, or as a .md document when it does not fit."""
    if not text:
        await msg.answer("⚠ Пустое сообщение.")
        return
    if FORMAT_MODE == "HTML":
        html = simple_markdown_to_html(text)
        if len(html) <= MESSAGE_LIMIT:
            try:
                await msg.answer(html, parse_mode="HTML")
                return
            except TelegramBadRequest:
                await msg.answer(text[:MESSAGE_LIMIT])
                return
    elif len(text) <= MESSAGE_LIMIT:
        await msg.answer(text)
        return
    await msg.answer_document(BufferedInputFile(text.encode("utf-8"), filename=f"{filename_prefix}.md"))


async def send_archive(msg: Message, data: bytes, filename: str, caption: Optional[str] = None) -> None:
    await msg.answer_document(BufferedInputFile(data, filename=filename), caption=caption)


def format_outcome(outcome: OrganizeOutcome) -> str:
    """Short markdown report for the chat; the archive carries the full summary."""
    ok = sum(1 for r in outcome.results if r.ok)
    lines = [f"**Готово: {ok} из {len(outcome.results)} файлов разобрано**", ""]
    if outcome.user_prompt:
        lines += ["🎯 Учтены ваши инструкции.", ""]
    lines.append("🗂 Категории:")
    for cat in outcome.categories:
        lines.append(f"* `{cat.name}` ({len(cat.members)}) — {cat.description}")
    lines += ["", "📋 Файлы:"]
    for res in outcome.results:
        mark = "✅" if res.ok else "⚠️"
        line = f"{mark} {res.file_name} → `{res.category}/{res.content}` ({res.confidence}%)"
        if not res.ok and res.error:
            line += f"\n   Ошибка: {res.error}"
        lines.append(line)
    return "\n".join(lines)
