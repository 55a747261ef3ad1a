"""Interfaces of the host collaborators the coordinator drives."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Any, List, Optional, Protocol

from tab_hoarder.tab_policy.models import OpenTab


class TabInventory(Protocol):
    """The browser's live tab set.

    ``remove`` raises TabNotFoundError for a tab that is already gone and
    InventoryIOError for any other failure.
    """

    async def query(self) -> List[OpenTab]: ...

    async def create(self, url: str, *, pinned: bool = False, active: bool = False) -> Any: ...

    async def remove(self, tab_id: Any) -> None: ...


class Notifier(Protocol):
    def notify(self, title: str, message: str) -> None: ...


class SettingsStore(Protocol):
    def get(self, key: str) -> Optional[dict]: ...

    def set(self, key: str, value: dict) -> None: ...


class JsonSettingsStore:
    """Settings kept as one JSON object per key in a single owner-only file."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[dict]:
        value = self._load().get(key)
        return value if isinstance(value, dict) else None

    def set(self, key: str, value: dict) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        os.chmod(self.path, stat.S_IRUSR | stat.S_IWUSR)
