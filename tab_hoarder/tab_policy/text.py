"""Shared text normalization helpers."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, List


def normalize_label(value: str, *, fallback: str = "") -> str:
    """Lowercase a topic label and collapse anything but letters/digits to single dashes."""
    label = re.sub(r"[^a-z0-9]+", "-", str(value or "").strip().lower()).strip("-")
    return label or fallback


def clean_string_list(values: Iterable[object]) -> List[str]:
    """Strip entries, drop blanks and duplicates, keep first-seen order."""
    seen = set()
    out: List[str] = []
    for value in values or []:
        text = str(value or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return out


def time_ago(timestamp_ms: int, now_ms: int) -> str:
    seconds = max(0, int((now_ms - timestamp_ms) // 1000))
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if seconds < 30 * 86400:
        return f"{seconds // 86400}d ago"
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
