"""Record types persisted by the archive store."""

from dataclasses import dataclass
from typing import Optional, Tuple

from tab_hoarder.tab_policy.models import OpenTab

STATS_ID = "global"

# Python attribute -> camelCase key used in command payloads.
STATS_FIELDS = {
    "total_archived": "totalArchived",
    "total_restored": "totalRestored",
    "sessions_saved": "sessionsSaved",
}


@dataclass(frozen=True)
class ArchivedTab:
    id: int
    url: str
    title: str
    fav_icon_url: Optional[str]
    topic: str
    topic_confidence: float
    reason: str
    last_accessed: int
    archived_at: int
    domain: str

    @classmethod
    def from_row(cls, row) -> "ArchivedTab":
        return cls(
            id=row["id"],
            url=row["url"],
            title=row["title"],
            fav_icon_url=row["fav_icon_url"],
            topic=row["topic"],
            topic_confidence=row["topic_confidence"],
            reason=row["reason"],
            last_accessed=row["last_accessed"],
            archived_at=row["archived_at"],
            domain=row["domain"],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "favIconUrl": self.fav_icon_url,
            "topic": self.topic,
            "topicConfidence": self.topic_confidence,
            "reason": self.reason,
            "lastAccessed": self.last_accessed,
            "archivedAt": self.archived_at,
            "domain": self.domain,
        }


@dataclass(frozen=True)
class SessionTab:
    url: str
    title: str = ""
    fav_icon_url: Optional[str] = None
    pinned: bool = False

    @classmethod
    def from_open_tab(cls, tab: OpenTab) -> "SessionTab":
        return cls(url=tab.url or "", title=tab.title, fav_icon_url=tab.fav_icon_url, pinned=tab.pinned)

    @classmethod
    def from_dict(cls, payload: dict) -> "SessionTab":
        return cls(
            url=str(payload.get("url") or ""),
            title=str(payload.get("title") or ""),
            fav_icon_url=payload.get("favIconUrl") or None,
            pinned=bool(payload.get("pinned", False)),
        )

    def to_dict(self) -> dict:
        return {"url": self.url, "title": self.title, "favIconUrl": self.fav_icon_url, "pinned": self.pinned}


@dataclass(frozen=True)
class SessionRecord:
    id: int
    name: str
    tabs: Tuple[SessionTab, ...]
    created_at: int
    tab_count: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tabs": [tab.to_dict() for tab in self.tabs],
            "createdAt": self.created_at,
            "tabCount": self.tab_count,
        }


@dataclass(frozen=True)
class Stats:
    total_archived: int = 0
    total_restored: int = 0
    sessions_saved: int = 0

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for attr, key in STATS_FIELDS.items()}
