"""Archive orchestration driven by host alarms, shortcuts and commands.

Archiving one tab walks a fixed sequence: classify, persist the record and the
counter bump, ask the inventory to close the tab, then notify. A failing step
stops the sequence without undoing the earlier ones; the archive already shows
the tab, and the next scheduled run re-evaluates whatever is still open.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from tab_hoarder.archive.models import ArchivedTab, SessionRecord, SessionTab
from tab_hoarder.archive.store import ArchiveStore
from tab_hoarder.classify.rules import DEFAULT_RULES, RuleTable
from tab_hoarder.classify.scorer import Categorizer, Classification
from tab_hoarder.config import RETENTION_DAYS, SETTINGS_KEY, Settings, load_settings
from tab_hoarder.errors import InventoryIOError, NotFoundError, TabHoarderError, TabNotFoundError, ValidationError
from tab_hoarder.tab_policy.eviction import EvictionCandidate, now_ms, select_aged, select_over_capacity
from tab_hoarder.tab_policy.matching import contains_any, has_reserved_scheme, has_resolvable_address
from tab_hoarder.tab_policy.models import OpenTab
from tab_hoarder.tab_policy.taxonomy import REASON_MANUAL

from .host import Notifier, SettingsStore, TabInventory
from .logs import log, warn

ALARM_CHECK = "checkOldTabs"
ALARM_CLEANUP = "dailyCleanup"

SHORTCUT_ARCHIVE_CURRENT = "archive-current-tab"
SHORTCUT_SAVE_SESSION = "save-session"

RESTORED = "restored"
NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RestoreOutcome:
    status: str
    count: int = 0

    @property
    def found(self) -> bool:
        return self.status != NOT_FOUND

    def to_dict(self) -> dict:
        return {"status": self.status, "count": self.count}


@dataclass
class SweepReport:
    archived: List[Tuple[EvictionCandidate, Classification]] = field(default_factory=list)
    skipped: List[EvictionCandidate] = field(default_factory=list)
    failures: List[Tuple[EvictionCandidate, TabHoarderError]] = field(default_factory=list)

    def count(self, reason: str) -> int:
        return sum(1 for candidate, _ in self.archived if candidate.reason == reason)

    def to_dict(self) -> dict:
        by_reason: Dict[str, int] = {}
        for candidate, _ in self.archived:
            by_reason[candidate.reason] = by_reason.get(candidate.reason, 0) + 1
        return {
            "archived": len(self.archived),
            "byReason": by_reason,
            "skipped": len(self.skipped),
            "failed": [
                {"tabId": candidate.tab.id, "reason": candidate.reason, "error": exc.to_dict()}
                for candidate, exc in self.failures
            ],
        }


def build_stats_payload(store: ArchiveStore, top_domains_limit: int = 10) -> dict:
    return {
        "stats": store.get_stats().to_dict(),
        "topicCounts": store.topic_counts(),
        "topDomains": [{"domain": domain, "count": n} for domain, n in store.top_domains(top_domains_limit)],
    }


class ArchiveCoordinator:
    def __init__(
        self,
        store: ArchiveStore,
        inventory: TabInventory,
        *,
        notifier: Optional[Notifier] = None,
        settings: Optional[Settings] = None,
        settings_store: Optional[SettingsStore] = None,
        rules: RuleTable = DEFAULT_RULES,
        now_fn: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.inventory = inventory
        self.notifier = notifier
        self.settings_store = settings_store
        self.rules = rules
        self._now = now_fn
        if settings is None:
            stored = settings_store.get(SETTINGS_KEY) if settings_store is not None else None
            settings = load_settings(stored)
        self._settings = settings
        self._categorizers: Dict[Tuple[str, ...], Categorizer] = {}
        self._archiving: Set[Any] = set()
        self._restoring: Set[int] = set()

    # Settings

    @property
    def settings(self) -> Settings:
        return self._settings

    def update_settings(self, raw: dict) -> Settings:
        settings = load_settings(raw)
        if self.settings_store is not None:
            self.settings_store.set(SETTINGS_KEY, settings.to_dict())
        self._settings = settings
        log("settings updated")
        return settings

    def categorizer_for(self, settings: Settings) -> Categorizer:
        key = tuple(settings.categories)
        categorizer = self._categorizers.get(key)
        if categorizer is None:
            categorizer = Categorizer(self.rules.restricted_to(key))
            self._categorizers[key] = categorizer
        return categorizer

    # Archiving

    async def archive_tab(
        self,
        tab: OpenTab,
        reason: str = REASON_MANUAL,
        *,
        settings: Optional[Settings] = None,
    ) -> Classification:
        settings = settings or self._settings
        if not tab.url:
            raise ValidationError("tab has no url", details={"tabId": tab.id})

        owns_mark = tab.id is not None and tab.id not in self._archiving
        if owns_mark:
            self._archiving.add(tab.id)
        try:
            classification = self.categorizer_for(settings).classify(tab.url, tab.title)
            record = self.store.add_archived(
                tab.url,
                tab.title,
                fav_icon_url=tab.fav_icon_url,
                topic=classification.topic,
                topic_confidence=classification.confidence,
                reason=reason,
                last_accessed=tab.last_accessed,
            )
            self.store.increment_stats(total_archived=1)
            log(f"archived #{record.id} {record.domain} topic={classification.topic} reason={reason}")
            await self._close_tab(tab)
        finally:
            if owns_mark:
                self._archiving.discard(tab.id)

        if settings.notifications_enabled:
            self._notify("Tab Archived", f'"{tab.title}" has been archived to {classification.topic}')
        return classification

    async def _close_tab(self, tab: OpenTab) -> None:
        try:
            await self.inventory.remove(tab.id)
        except TabNotFoundError:
            log(f"skip: tab {tab.id} already closed")

    def _notify(self, title: str, message: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(title, message)
        except Exception as exc:
            warn(f"notification failed ({exc})")

    async def _archive_candidates(
        self,
        candidates: Sequence[EvictionCandidate],
        settings: Settings,
        report: SweepReport,
    ) -> None:
        for candidate in candidates:
            if candidate.tab.id in self._archiving:
                report.skipped.append(candidate)
                continue
            try:
                classification = await self.archive_tab(candidate.tab, candidate.reason, settings=settings)
            except InventoryIOError as exc:
                warn(f"tab {candidate.tab.id} archived but not closed ({exc})")
                report.failures.append((candidate, exc))
            except ValidationError as exc:
                warn(f"tab {candidate.tab.id} not archived ({exc})")
                report.failures.append((candidate, exc))
            else:
                report.archived.append((candidate, classification))

    async def run_scheduled_sweep(self) -> SweepReport:
        """Age pass, then capacity pass over whatever the age pass left open."""
        settings = self._settings
        report = SweepReport()

        if settings.auto_archive_enabled:
            tabs = await self.inventory.query()
            aged = select_aged(tabs, settings, self._now())
            await self._archive_candidates(aged, settings, report)
            if aged:
                log(f"auto-archived {len(aged)} old tabs")

        if settings.max_open_tabs > 0:
            tabs = await self.inventory.query()
            over = select_over_capacity(tabs, settings)
            await self._archive_candidates(over, settings, report)
            if over:
                log(f"archived {len(over)} tabs over the limit of {settings.max_open_tabs}")

        return report

    async def check_now(self) -> SweepReport:
        return await self.run_scheduled_sweep()

    async def run_retention_sweep(self, horizon_days: float = RETENTION_DAYS) -> int:
        removed = self.store.sweep(horizon_days)
        log(f"retention sweep removed {removed} tabs older than {horizon_days} days")
        return removed

    # Restoring

    async def restore_archived_tab(self, archive_id: int) -> RestoreOutcome:
        # A restore already in flight for this id counts as gone.
        if archive_id in self._restoring:
            return RestoreOutcome(NOT_FOUND)
        try:
            record = self.store.require_archived(archive_id)
        except NotFoundError as exc:
            log(f"skip: {exc}")
            return RestoreOutcome(NOT_FOUND)

        self._restoring.add(archive_id)
        try:
            await self.inventory.create(record.url, pinned=False, active=True)
            self.store.delete_archived(archive_id)
            self.store.increment_stats(total_restored=1)
        finally:
            self._restoring.discard(archive_id)
        log(f"restored #{archive_id} {record.url}")
        return RestoreOutcome(RESTORED, count=1)

    def delete_archived_tab(self, archive_id: int) -> bool:
        return self.store.delete_archived(archive_id)

    def list_archived(self, **filters) -> List[ArchivedTab]:
        return self.store.list_archived(**filters)

    # Sessions

    async def save_session(self, name: str, tabs: Optional[Sequence[OpenTab]] = None) -> SessionRecord:
        if not str(name or "").strip():
            raise ValidationError("session name must not be empty")
        if tabs is None:
            tabs = await self.inventory.query()
        entries = [SessionTab.from_open_tab(tab) for tab in tabs if tab.url]
        record = self.store.save_session(name, entries)
        self.store.increment_stats(sessions_saved=1)
        log(f"saved session #{record.id} '{record.name}' ({record.tab_count} tabs)")
        return record

    async def restore_session(self, session_id: int) -> RestoreOutcome:
        try:
            session = self.store.require_session(session_id)
        except NotFoundError as exc:
            log(f"skip: {exc}")
            return RestoreOutcome(NOT_FOUND)
        for entry in session.tabs:
            await self.inventory.create(entry.url, pinned=entry.pinned, active=False)
        return RestoreOutcome(RESTORED, count=len(session.tabs))

    def delete_session(self, session_id: int) -> bool:
        return self.store.delete_session(session_id)

    def list_sessions(self) -> List[SessionRecord]:
        return self.store.list_sessions()

    def get_stats(self) -> dict:
        return build_stats_payload(self.store)

    # Host events

    async def handle_alarm(self, name: str) -> Any:
        if name == ALARM_CHECK:
            return await self.run_scheduled_sweep()
        if name == ALARM_CLEANUP:
            return await self.run_retention_sweep()
        log(f"skip: unknown alarm {name!r}")
        return None

    async def handle_startup(self) -> Optional[SweepReport]:
        if not self._settings.archive_on_startup:
            return None
        return await self.run_scheduled_sweep()

    async def handle_shortcut(self, name: str) -> Any:
        settings = self._settings
        if name == SHORTCUT_ARCHIVE_CURRENT:
            tabs = await self.inventory.query()
            active = next((tab for tab in tabs if tab.active), None)
            if active is None or not active.url or not has_resolvable_address(active.url):
                return None
            # The focused tab is the target here, so only the url-based exclusions apply.
            if has_reserved_scheme(active.url) or contains_any(active.url, settings.excluded_domains):
                log(f"skip: active tab {active.id} is excluded from archiving")
                return None
            return await self.archive_tab(active, REASON_MANUAL, settings=settings)
        if name == SHORTCUT_SAVE_SESSION:
            stamp = datetime.fromtimestamp(self._now() / 1000).strftime("%Y-%m-%d %H:%M:%S")
            record = await self.save_session(f"Session {stamp}")
            if settings.notifications_enabled:
                self._notify("Session Saved", "Current tab session has been saved")
            return record
        log(f"skip: unknown shortcut {name!r}")
        return None
