"""Decide which open tabs leave the working set and why.

Two triggers run as separate passes:
- age: every eligible tab idle for at least ``auto_archive_days``
- capacity: when more eligible tabs are open than ``max_open_tabs``, the least
  recently used ones beyond the limit

``select_for_eviction`` runs both passes over one snapshot, feeding the
capacity pass only the tabs the age pass left open. The coordinator runs them
against fresh inventory snapshots instead; both paths share the helpers below.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from tab_hoarder.config import Settings

from .matching import contains_any, has_reserved_scheme, has_resolvable_address
from .models import OpenTab
from .taxonomy import REASON_AGE, REASON_CAPACITY

MS_PER_DAY = 24 * 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class EvictionCandidate:
    tab: OpenTab
    reason: str


def is_excluded(tab: OpenTab, excluded_domains: Iterable[str] = ()) -> bool:
    if not tab.url or not has_resolvable_address(tab.url):
        return True
    if has_reserved_scheme(tab.url):
        return True
    if tab.pinned or tab.active:
        return True
    return contains_any(tab.url, excluded_domains)


def eligible_tabs(tabs: Sequence[OpenTab], settings: Settings) -> List[OpenTab]:
    return [tab for tab in tabs if not is_excluded(tab, settings.excluded_domains)]


def tab_age_days(tab: OpenTab, now: int) -> float:
    if not tab.last_accessed:
        return 0.0
    return (now - tab.last_accessed) / MS_PER_DAY


def select_aged(tabs: Sequence[OpenTab], settings: Settings, now: Optional[int] = None) -> List[EvictionCandidate]:
    if not settings.auto_archive_enabled:
        return []
    now = now_ms() if now is None else now
    out = []
    for tab in eligible_tabs(tabs, settings):
        # Tabs without a timestamp have age 0 and never age out.
        if not tab.last_accessed:
            continue
        if tab_age_days(tab, now) >= settings.auto_archive_days:
            out.append(EvictionCandidate(tab=tab, reason=REASON_AGE))
    return out


def select_over_capacity(tabs: Sequence[OpenTab], settings: Settings) -> List[EvictionCandidate]:
    limit = settings.max_open_tabs
    if limit <= 0:
        return []
    eligible = eligible_tabs(tabs, settings)
    overflow = len(eligible) - limit
    if overflow <= 0:
        return []
    # sorted() is stable: equal timestamps keep inventory order.
    oldest_first = sorted(eligible, key=lambda tab: tab.last_accessed or 0)
    return [EvictionCandidate(tab=tab, reason=REASON_CAPACITY) for tab in oldest_first[:overflow]]


def select_for_eviction(
    tabs: Sequence[OpenTab],
    settings: Settings,
    now: Optional[int] = None,
) -> List[EvictionCandidate]:
    aged = select_aged(tabs, settings, now)
    aged_ids = {id(candidate.tab) for candidate in aged}
    remaining = [tab for tab in tabs if id(tab) not in aged_ids]
    return aged + select_over_capacity(remaining, settings)
