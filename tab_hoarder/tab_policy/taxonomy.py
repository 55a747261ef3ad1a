"""Shared tab taxonomy used by the policy, the categorizer and the archive."""

from __future__ import annotations

# Internal browser pages are never archived. Closed set, not user-configurable.
RESERVED_SCHEME_PREFIXES = (
    "chrome://",
    "chrome-extension://",
    "edge://",
    "about:",
)

# Archive reasons recorded on every archived tab.
REASON_MANUAL = "manual"
REASON_AGE = "auto-archive-old"
REASON_CAPACITY = "auto-archive-limit"
ARCHIVE_REASON_ORDER = (REASON_MANUAL, REASON_AGE, REASON_CAPACITY)
ARCHIVE_REASONS = set(ARCHIVE_REASON_ORDER)

UNCATEGORIZED = "uncategorized"

# Rule table order doubles as the tie-break order for the categorizer.
TOPIC_ORDER = (
    "reading",
    "shopping",
    "reference",
    "entertainment",
    "social",
    "work",
    "research",
)

TOPIC_INFO = {
    "reading": {"icon": "📚", "color": "#4CAF50", "description": "Articles, blogs, tutorials"},
    "shopping": {"icon": "🛒", "color": "#FF9800", "description": "E-commerce and shopping"},
    "reference": {"icon": "📖", "color": "#2196F3", "description": "Documentation and references"},
    "entertainment": {"icon": "🎬", "color": "#E91E63", "description": "Videos, music, games"},
    "social": {"icon": "💬", "color": "#9C27B0", "description": "Social media"},
    "work": {"icon": "💼", "color": "#607D8B", "description": "Work and productivity"},
    "research": {"icon": "🔬", "color": "#00BCD4", "description": "Academic and research"},
    UNCATEGORIZED: {"icon": "📋", "color": "#757575", "description": "Uncategorized"},
}


def topic_info(topic: str) -> dict:
    """Display metadata for a topic label; unknown labels fall back to uncategorized."""
    key = str(topic or "").strip().lower()
    return dict(TOPIC_INFO.get(key) or TOPIC_INFO[UNCATEGORIZED])
