"""Free-text normalization applied before scoring or forwarding visitor input.

All functions here are pure: the role-prefix rules are passed in as a
parameter, so concurrent requests never share a mutable sanitizer.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from chatgate.schemas.chat import ChatTurn

DEFAULT_MAX_CHARS = 2000
DEFAULT_MAX_HISTORY_ITEMS = 20

# Stacked markers ("system: [INST] system: ...") are peeled off up to this many times.
_MAX_STRIP_PASSES = 5

# Role markers at the start of a line ("system: ...", "[INST]", "<|system|>").
DEFAULT_ROLE_PREFIX_RULES: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"^[ \t]*(?:system|developer|assistant)[ \t]*:[ \t]*",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"^[ \t]*\[/?(?:system|developer|assistant|inst|sys)\][ \t]*:?[ \t]*",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"^[ \t]*<\|?/?(?:system|developer|im_start|im_end)\|?>[ \t]*",
        re.IGNORECASE | re.MULTILINE,
    ),
)


def strip_role_prefixes(
    text: str,
    rules: Iterable[re.Pattern[str]] = DEFAULT_ROLE_PREFIX_RULES,
) -> str:
    """Remove role markers found at line starts; other text is left untouched."""
    rules = tuple(rules)
    for _ in range(_MAX_STRIP_PASSES):
        stripped = text
        for rule in rules:
            stripped = rule.sub("", stripped)
        if stripped == text:
            break
        text = stripped
    return text


def normalize_text(
    raw: str,
    max_len: int = DEFAULT_MAX_CHARS,
    rules: Iterable[re.Pattern[str]] = DEFAULT_ROLE_PREFIX_RULES,
) -> str:
    """Normalize a visitor-supplied message.

    Converts CRLF/CR line breaks to LF, drops NUL bytes, strips leading role
    prefixes on every line, trims, and truncates to ``max_len`` characters.
    Overlong input is shortened, never rejected.

    Args:
        raw: Text as received from the client.
        max_len: Maximum length of the result.
        rules: Compiled role-prefix patterns to strip.

    Returns:
        str: Normalized and trimmed text (possibly empty).
    """
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\x00", "")
    text = strip_role_prefixes(text, rules)
    text = text.strip()
    return text[:max_len].rstrip()


def sanitize_history(
    turns: Sequence[ChatTurn],
    *,
    max_items: int = DEFAULT_MAX_HISTORY_ITEMS,
    max_len: int = DEFAULT_MAX_CHARS,
    rules: Iterable[re.Pattern[str]] = DEFAULT_ROLE_PREFIX_RULES,
) -> list[ChatTurn]:
    """Normalize conversation history, keeping the newest ``max_items`` turns.

    Returns new ``ChatTurn`` objects; the caller's list is not modified.
    Turns whose content normalizes to an empty string are dropped.
    """
    kept = list(turns)[-max_items:] if max_items > 0 else []
    rules = tuple(rules)
    sanitized: list[ChatTurn] = []
    for turn in kept:
        content = normalize_text(turn.content, max_len, rules)
        if content:
            sanitized.append(ChatTurn(role=turn.role, content=content))
    return sanitized
