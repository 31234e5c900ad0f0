"""Summary: Interpretation of raw completion text.

Importance: Keeps the loose parsing of model output in pure, testable functions.
Alternatives: Ask the model for strict JSON and fail on anything else.
"""

from __future__ import annotations

import json
import re
from typing import Any, Sequence

from inboxagent.models import (
    CATEGORY_UNCATEGORIZED,
    MATCHABLE_CATEGORIES,
    ROLE_USER,
    ActionItem,
)
from inboxagent.prompts import NO_REPLY_SENTINEL

CHAT_HISTORY_WINDOW = 6

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_NULL_DEADLINES = {"", "null", "none", "n/a"}


def match_category(text: str) -> str:
    """Summary: Map a completion onto the closed category set.

    Importance: Model output is rarely a single clean token, so the first
        category name (in priority order) found anywhere in the text wins.
    Alternatives: Require an exact match and treat everything else as unknown.
    """

    cleaned = text.strip()
    for category in MATCHABLE_CATEGORIES:
        if category in cleaned:
            return category
    return CATEGORY_UNCATEGORIZED


def parse_action_items(text: str) -> list[ActionItem]:
    """Summary: Pull a JSON array of action items out of a completion.

    Importance: Tolerates prose and code fences around the array; the span runs
        from the first "[" to the last "]". Malformed input yields an empty list.
    Alternatives: Use a streaming JSON parser to find the first valid array.
    """

    match = _JSON_ARRAY.search(text.strip())
    if not match:
        return []
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return []
    if not isinstance(parsed, list):
        return []
    items: list[ActionItem] = []
    for raw in parsed:
        item = _coerce_action_item(raw)
        if item is not None:
            items.append(item)
    return items


def _coerce_action_item(raw: Any) -> ActionItem | None:
    if not isinstance(raw, dict):
        return None
    task = str(raw.get("task") or "").strip()
    if not task:
        return None
    deadline = raw.get("deadline")
    if deadline is None or str(deadline).strip().lower() in _NULL_DEADLINES:
        return ActionItem(task=task, deadline=None)
    return ActionItem(task=task, deadline=str(deadline).strip())


def needs_no_reply(text: str) -> bool:
    """True when the completion carries the no-reply sentinel anywhere."""

    return NO_REPLY_SENTINEL in text


def reply_subject(original_subject: str) -> str:
    return f"Re: {original_subject}"


def history_window(
    history: Sequence[tuple[str, str]], limit: int = CHAT_HISTORY_WINDOW
) -> list[tuple[str, str]]:
    """Summary: Keep only the most recent conversation turns.

    Importance: Bounds prompt size no matter how long a transcript grows.
    Alternatives: Summarize older turns instead of dropping them.
    """

    if limit <= 0:
        return []
    return list(history[-limit:])


def format_history(history: Sequence[tuple[str, str]]) -> str:
    lines = []
    for role, content in history:
        speaker = "User" if role == ROLE_USER else "Assistant"
        lines.append(f"{speaker}: {content}")
    return "\n".join(lines)
