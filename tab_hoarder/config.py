"""Settings defaults, merging and coercion into an immutable snapshot."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from tab_hoarder.errors import ValidationError
from tab_hoarder.tab_policy.taxonomy import TOPIC_ORDER
from tab_hoarder.tab_policy.text import clean_string_list, normalize_label

SETTINGS_KEY = "settings"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    try:
        value = int(raw) if raw else default
    except ValueError:
        return default
    return value if value >= 0 else default


DATA_DIR = Path(os.environ.get("TAB_HOARDER_HOME", "~/.local/share/tab-hoarder")).expanduser()
DEFAULT_DB_PATH = Path(os.environ.get("TAB_HOARDER_DB_PATH", str(DATA_DIR / "archive.sqlite3"))).expanduser()
DEFAULT_CONFIG_PATH = Path(os.environ.get("TAB_HOARDER_CONFIG_PATH", str(DATA_DIR / "config.json"))).expanduser()
RETENTION_DAYS = _env_int("TAB_HOARDER_RETENTION_DAYS", 90)

MIN_ARCHIVE_DAYS = 1
MAX_ARCHIVE_DAYS = 365

DEFAULT_SETTINGS: Dict = {
    "autoArchiveEnabled": True,
    "autoArchiveDays": 7,
    "archiveOnStartup": False,
    "maxOpenTabs": 50,
    "notificationsEnabled": True,
    "archiveExcludedDomains": ["localhost", "chrome://"],
    "categories": list(TOPIC_ORDER),
}


def _cfg_bool(value: object, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on", "y"}:
        return True
    if text in {"0", "false", "no", "off", "n"}:
        return False
    return default


def _cfg_int(name: str, value: object, *, minimum: int, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number", details={"field": name, "value": value})
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number", details={"field": name, "value": value}) from None
    if number < minimum:
        return minimum
    if maximum is not None and number > maximum:
        return maximum
    return number


def _cfg_list(name: str, value: object) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.splitlines()
    if not isinstance(value, (list, tuple, set)):
        raise ValidationError(f"{name} must be a list of strings", details={"field": name})
    return tuple(clean_string_list(value))


@dataclass(frozen=True)
class Settings:
    auto_archive_enabled: bool = True
    auto_archive_days: int = 7
    archive_on_startup: bool = False
    max_open_tabs: int = 50
    notifications_enabled: bool = True
    excluded_domains: Tuple[str, ...] = ("localhost", "chrome://")
    categories: Tuple[str, ...] = TOPIC_ORDER

    def to_dict(self) -> Dict:
        return {
            "autoArchiveEnabled": self.auto_archive_enabled,
            "autoArchiveDays": self.auto_archive_days,
            "archiveOnStartup": self.archive_on_startup,
            "maxOpenTabs": self.max_open_tabs,
            "notificationsEnabled": self.notifications_enabled,
            "archiveExcludedDomains": list(self.excluded_domains),
            "categories": list(self.categories),
        }


def merge_settings(stored: Dict | None, override: Dict | None = None) -> Dict:
    merged = dict(DEFAULT_SETTINGS)
    if stored:
        merged.update(stored)
    if override:
        merged.update(override)
    return merged


def load_settings(raw: Dict | None, override: Dict | None = None) -> Settings:
    """Coerce a stored settings dict into a Settings snapshot.

    Missing keys fall back to DEFAULT_SETTINGS. A maxOpenTabs of 0 turns the
    capacity limit off; unknown keys are ignored.
    """
    if raw is not None and not isinstance(raw, dict):
        raise ValidationError("settings must be an object")
    cfg = merge_settings(raw, override)
    categories = _cfg_list("categories", cfg.get("categories"))
    excluded = _cfg_list("archiveExcludedDomains", cfg.get("archiveExcludedDomains"))
    return Settings(
        auto_archive_enabled=_cfg_bool(cfg.get("autoArchiveEnabled"), default=True),
        auto_archive_days=_cfg_int(
            "autoArchiveDays",
            cfg.get("autoArchiveDays"),
            minimum=MIN_ARCHIVE_DAYS,
            maximum=MAX_ARCHIVE_DAYS,
        ),
        archive_on_startup=_cfg_bool(cfg.get("archiveOnStartup"), default=False),
        max_open_tabs=_cfg_int("maxOpenTabs", cfg.get("maxOpenTabs"), minimum=0),
        notifications_enabled=_cfg_bool(cfg.get("notificationsEnabled"), default=True),
        excluded_domains=tuple(clean_string_list(d.lower() for d in excluded)),
        categories=tuple(clean_string_list(normalize_label(c) for c in categories)),
    )
