"""SQLite-backed archive store.

One connection per store. Every public call runs in its own short
transaction, so a caller on the event loop always sees either the state before
or after a write, never a partial one. Counters are bumped in SQL
(``SET x = x + ?``) and ids come from AUTOINCREMENT, which keeps both safe
across connections too.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from tab_hoarder.errors import NotFoundError, StoreIOError, ValidationError
from tab_hoarder.tab_policy.eviction import MS_PER_DAY, now_ms
from tab_hoarder.tab_policy.matching import domain_of
from tab_hoarder.tab_policy.taxonomy import ARCHIVE_REASONS, REASON_MANUAL, UNCATEGORIZED

from .models import STATS_FIELDS, STATS_ID, ArchivedTab, SessionRecord, SessionTab, Stats

SCHEMA = """
CREATE TABLE IF NOT EXISTS archived_tabs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    fav_icon_url TEXT,
    topic TEXT NOT NULL DEFAULT 'uncategorized',
    topic_confidence REAL NOT NULL DEFAULT 0,
    reason TEXT NOT NULL,
    last_accessed INTEGER NOT NULL,
    archived_at INTEGER NOT NULL,
    domain TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_archived_tabs_url ON archived_tabs(url);
CREATE INDEX IF NOT EXISTS idx_archived_tabs_topic ON archived_tabs(topic);
CREATE INDEX IF NOT EXISTS idx_archived_tabs_domain ON archived_tabs(domain);
CREATE INDEX IF NOT EXISTS idx_archived_tabs_archived_at ON archived_tabs(archived_at);

CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    tabs_json TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    tab_count INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_sessions_name ON sessions(name);
CREATE INDEX IF NOT EXISTS idx_sessions_created_at ON sessions(created_at);

CREATE TABLE IF NOT EXISTS stats (
    id TEXT PRIMARY KEY,
    total_archived INTEGER NOT NULL DEFAULT 0 CHECK (total_archived >= 0),
    total_restored INTEGER NOT NULL DEFAULT 0 CHECK (total_restored >= 0),
    sessions_saved INTEGER NOT NULL DEFAULT 0 CHECK (sessions_saved >= 0)
);
"""

ARCHIVED_COLUMNS = (
    "id, url, title, fav_icon_url, topic, topic_confidence, reason, last_accessed, archived_at, domain"
)


def _casefold(value: Optional[str]) -> str:
    return (value or "").casefold()


def _positive_limit(limit: Optional[int]) -> Optional[int]:
    if limit is None:
        return None
    try:
        value = int(limit)
    except (TypeError, ValueError):
        raise ValidationError("limit must be a number", details={"limit": limit}) from None
    return value if value > 0 else None


def _check_stats_fields(fields: dict) -> None:
    unknown = sorted(set(fields) - set(STATS_FIELDS))
    if unknown:
        raise ValidationError(f"unknown stats fields: {', '.join(unknown)}", details={"fields": unknown})
    for name, value in fields.items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(f"{name} must be a non-negative integer", details={"field": name})


class ArchiveStore:
    def __init__(self, path: Union[str, Path] = ":memory:", *, now_fn: Callable[[], int] = now_ms):
        self.path = str(path)
        self._now = now_fn
        if self.path != ":memory:":
            Path(self.path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute("PRAGMA busy_timeout = 30000")
            self._conn.create_function("casefold", 1, _casefold, deterministic=True)
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise StoreIOError(f"cannot open archive store at {self.path}: {exc}") from exc

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "ArchiveStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._conn:
                yield self._conn
        except sqlite3.Error as exc:
            raise StoreIOError(f"archive store operation failed: {exc}") from exc

    def _read(self, sql: str, params: Sequence = ()) -> List[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreIOError(f"archive store read failed: {exc}") from exc

    # Archived tabs

    def add_archived(
        self,
        url: str,
        title: str = "",
        *,
        fav_icon_url: Optional[str] = None,
        topic: str = UNCATEGORIZED,
        topic_confidence: float = 0.0,
        reason: str = REASON_MANUAL,
        last_accessed: Optional[int] = None,
    ) -> ArchivedTab:
        domain = domain_of(url)
        if reason not in ARCHIVE_REASONS:
            raise ValidationError(f"unknown archive reason: {reason}", details={"reason": reason})
        if not 0.0 <= float(topic_confidence) <= 1.0:
            raise ValidationError("topic confidence must be within [0, 1]", details={"confidence": topic_confidence})

        archived_at = self._now()
        values = (
            str(url).strip(),
            title or "",
            fav_icon_url,
            topic or UNCATEGORIZED,
            float(topic_confidence),
            reason,
            last_accessed or archived_at,
            archived_at,
            domain,
        )
        with self._transaction() as conn:
            cur = conn.execute(
                """
                INSERT INTO archived_tabs
                    (url, title, fav_icon_url, topic, topic_confidence, reason, last_accessed, archived_at, domain)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                values,
            )
            new_id = cur.lastrowid
        return ArchivedTab(new_id, *values)

    def list_archived(
        self,
        *,
        topic: Optional[str] = None,
        search: Optional[str] = None,
        domain: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ArchivedTab]:
        """Archived tabs, newest first, narrowed by whichever filters are given.

        ``topic`` and ``domain`` match exactly; ``search`` is a case-insensitive
        substring match against the title or the url.
        """
        clauses = []
        params: list = []
        if topic:
            clauses.append("topic = ?")
            params.append(topic)
        if search:
            needle = search.casefold()
            clauses.append("(instr(casefold(title), ?) > 0 OR instr(casefold(url), ?) > 0)")
            params.extend([needle, needle])
        if domain:
            clauses.append("domain = ?")
            params.append(domain)

        sql = f"SELECT {ARCHIVED_COLUMNS} FROM archived_tabs"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY archived_at DESC, id DESC"
        cap = _positive_limit(limit)
        if cap is not None:
            sql += " LIMIT ?"
            params.append(cap)
        return [ArchivedTab.from_row(row) for row in self._read(sql, params)]

    def get_archived(self, tab_id: int) -> Optional[ArchivedTab]:
        rows = self._read(f"SELECT {ARCHIVED_COLUMNS} FROM archived_tabs WHERE id = ?", (tab_id,))
        return ArchivedTab.from_row(rows[0]) if rows else None

    def require_archived(self, tab_id: int) -> ArchivedTab:
        record = self.get_archived(tab_id)
        if record is None:
            raise NotFoundError(f"archived tab #{tab_id} not found", details={"tabId": tab_id})
        return record

    def delete_archived(self, tab_id: int) -> bool:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM archived_tabs WHERE id = ?", (tab_id,))
        return cur.rowcount > 0

    def sweep(self, days: float) -> int:
        """Delete archived tabs older than ``days``; returns how many went."""
        if days < 0:
            raise ValidationError("retention days must not be negative", details={"days": days})
        cutoff = self._now() - int(days * MS_PER_DAY)
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM archived_tabs WHERE archived_at < ?", (cutoff,))
        return cur.rowcount

    def clear_archive(self) -> int:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM archived_tabs")
        return cur.rowcount

    # Sessions

    def save_session(self, name: str, tabs: Sequence[SessionTab]) -> SessionRecord:
        clean_name = str(name or "").strip()
        if not clean_name:
            raise ValidationError("session name must not be empty")
        entries = tuple(tabs)
        created_at = self._now()
        tabs_json = json.dumps([tab.to_dict() for tab in entries])
        with self._transaction() as conn:
            cur = conn.execute(
                "INSERT INTO sessions (name, tabs_json, created_at, tab_count) VALUES (?, ?, ?, ?)",
                (clean_name, tabs_json, created_at, len(entries)),
            )
            new_id = cur.lastrowid
        return SessionRecord(id=new_id, name=clean_name, tabs=entries, created_at=created_at, tab_count=len(entries))

    @staticmethod
    def _session_from_row(row: sqlite3.Row) -> SessionRecord:
        tabs = tuple(SessionTab.from_dict(entry) for entry in json.loads(row["tabs_json"]))
        return SessionRecord(
            id=row["id"],
            name=row["name"],
            tabs=tabs,
            created_at=row["created_at"],
            tab_count=row["tab_count"],
        )

    def list_sessions(self) -> List[SessionRecord]:
        rows = self._read("SELECT * FROM sessions ORDER BY created_at DESC, id DESC")
        return [self._session_from_row(row) for row in rows]

    def get_session(self, session_id: int) -> Optional[SessionRecord]:
        rows = self._read("SELECT * FROM sessions WHERE id = ?", (session_id,))
        return self._session_from_row(rows[0]) if rows else None

    def require_session(self, session_id: int) -> SessionRecord:
        session = self.get_session(session_id)
        if session is None:
            raise NotFoundError(f"session #{session_id} not found", details={"sessionId": session_id})
        return session

    def delete_session(self, session_id: int) -> bool:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        return cur.rowcount > 0

    # Stats

    def get_stats(self) -> Stats:
        rows = self._read(
            "SELECT total_archived, total_restored, sessions_saved FROM stats WHERE id = ?",
            (STATS_ID,),
        )
        if not rows:
            return Stats()
        row = rows[0]
        return Stats(
            total_archived=row["total_archived"],
            total_restored=row["total_restored"],
            sessions_saved=row["sessions_saved"],
        )

    def update_stats(self, **fields: int) -> Stats:
        """Overwrite the named counters; the others keep their stored values."""
        _check_stats_fields(fields)
        if not fields:
            return self.get_stats()
        assignments = ", ".join(f"{name} = ?" for name in fields)
        with self._transaction() as conn:
            conn.execute("INSERT OR IGNORE INTO stats (id) VALUES (?)", (STATS_ID,))
            conn.execute(f"UPDATE stats SET {assignments} WHERE id = ?", (*fields.values(), STATS_ID))
        return self.get_stats()

    def increment_stats(self, **deltas: int) -> Stats:
        """Add to the named counters inside the store, so concurrent bumps never overwrite each other."""
        _check_stats_fields(deltas)
        if not deltas:
            return self.get_stats()
        assignments = ", ".join(f"{name} = {name} + ?" for name in deltas)
        with self._transaction() as conn:
            conn.execute("INSERT OR IGNORE INTO stats (id) VALUES (?)", (STATS_ID,))
            conn.execute(f"UPDATE stats SET {assignments} WHERE id = ?", (*deltas.values(), STATS_ID))
        return self.get_stats()

    # Aggregates

    def topic_counts(self) -> dict:
        rows = self._read(
            """
            SELECT COALESCE(NULLIF(topic, ''), ?) AS topic, COUNT(*) AS n, MIN(id) AS first_id
            FROM archived_tabs
            GROUP BY 1
            ORDER BY first_id
            """,
            (UNCATEGORIZED,),
        )
        return {row["topic"]: row["n"] for row in rows}

    def top_domains(self, limit: int = 10) -> List[Tuple[str, int]]:
        """Most archived domains, highest count first; ties go to the most recently archived domain."""
        cap = _positive_limit(limit)
        sql = """
            SELECT domain, COUNT(*) AS n, MAX(archived_at) AS newest, MAX(id) AS newest_id
            FROM archived_tabs
            GROUP BY domain
            ORDER BY n DESC, newest DESC, newest_id DESC
        """
        params: list = []
        if cap is not None:
            sql += " LIMIT ?"
            params.append(cap)
        return [(row["domain"], row["n"]) for row in self._read(sql, params)]

    def reset(self) -> None:
        """Drop every record of every kind. Counters restart at zero; ids keep growing."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM archived_tabs")
            conn.execute("DELETE FROM sessions")
            conn.execute("DELETE FROM stats")
