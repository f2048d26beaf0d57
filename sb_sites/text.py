"""Text measurement helpers used by adaptive scaling and character limits."""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

_LINE_BREAKS = re.compile(r"\n\r?|\r")
_WHITESPACE = re.compile(r"\s+")

CharacterState = typ.Literal["good", "warning", "danger", "over"]


@dc.dataclass(frozen=True, slots=True)
class CharacterStatus:
    """Counter state shown next to a length-limited field."""

    count: int
    remaining: int
    percentage: int
    status: CharacterState


def visible_character_count(text: str | None) -> int:
    """Return the number of characters in ``text`` excluding line breaks.

    Examples
    --------
    >>> visible_character_count("two\\nlines")
    8
    >>> visible_character_count(None)
    0
    """
    if not text:
        return 0
    return len(_LINE_BREAKS.sub("", text))


def character_status(text: str | None, max_length: int) -> CharacterStatus:
    """Classify ``text`` against ``max_length`` for a character counter.

    Counts of 75% and above warn, 95% and above are dangerous, and anything
    past the limit is over.
    """
    count = visible_character_count(text)
    remaining = max_length - count
    percentage = (count / max_length) * 100 if max_length > 0 else 100.0
    status: CharacterState
    if count > max_length:
        status = "over"
    elif percentage >= 95:
        status = "danger"
    elif percentage >= 75:
        status = "warning"
    else:
        status = "good"
    return CharacterStatus(
        count=count,
        remaining=remaining,
        percentage=round(percentage),
        status=status,
    )


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Cut ``text`` to ``max_length`` characters including ``suffix``."""
    if len(text) <= max_length:
        return text
    return text[: max(max_length - len(suffix), 0)] + suffix


def preview_text(text: str | None, max_length: int = 100) -> str:
    """Collapse ``text`` onto one line and truncate it at a word boundary."""
    if not text:
        return ""
    single_line = _WHITESPACE.sub(" ", _LINE_BREAKS.sub(" ", text)).strip()
    if len(single_line) <= max_length:
        return single_line
    truncated = single_line[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        return truncated[:last_space] + "..."
    return truncated + "..."


def smart_wrap(text: str, max_length: int) -> list[str]:
    """Split ``text`` into lines no longer than ``max_length``.

    Lines break at spaces where possible; a single word longer than the limit
    is split by force.
    """
    if len(text) <= max_length:
        return [text]
    lines: list[str] = []
    current = ""
    for word in text.split(" "):
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_length:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = word
        while len(current) > max_length:
            lines.append(current[:max_length])
            current = current[max_length:]
    if current:
        lines.append(current)
    return lines


__all__ = [
    "CharacterState",
    "CharacterStatus",
    "character_status",
    "preview_text",
    "smart_wrap",
    "truncate_text",
    "visible_character_count",
]
