"""Durable archive of evicted tabs, saved sessions and counters."""

from .models import ArchivedTab, SessionRecord, SessionTab, Stats
from .store import ArchiveStore

__all__ = ["ArchivedTab", "SessionRecord", "SessionTab", "Stats", "ArchiveStore"]
