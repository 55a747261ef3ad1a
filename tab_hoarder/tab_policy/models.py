"""Data models for open tabs reported by the host inventory."""

from dataclasses import dataclass
from typing import Any, Optional


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class OpenTab:
    id: Any
    url: Optional[str]
    title: str = ""
    fav_icon_url: Optional[str] = None
    pinned: bool = False
    active: bool = False
    last_accessed: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "OpenTab":
        return cls(
            id=payload.get("id"),
            url=payload.get("url") or None,
            title=str(payload.get("title") or ""),
            fav_icon_url=payload.get("favIconUrl") or None,
            pinned=bool(payload.get("pinned", False)),
            active=bool(payload.get("active", False)),
            last_accessed=_optional_int(payload.get("lastAccessed")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "favIconUrl": self.fav_icon_url,
            "pinned": self.pinned,
            "active": self.active,
            "lastAccessed": self.last_accessed,
        }
