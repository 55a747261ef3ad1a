#!/usr/bin/env python3
"""Inspect and maintain the tab archive from a terminal.

Commands:
- list [--topic T] [--search Q] [--domain D] [--limit N]
- sessions
- stats
- cleanup [--days N]            retention sweep (default: 90 days)
- delete <id> / delete-session <id>
- clear-archive / reset
- settings [key=value ...]      show, or update and persist settings

Global flags: --db PATH, --config PATH, --json, -v/--verbose.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tab_hoarder.archive.store import ArchiveStore
from tab_hoarder.config import DEFAULT_CONFIG_PATH, DEFAULT_DB_PATH, RETENTION_DAYS, SETTINGS_KEY, load_settings
from tab_hoarder.errors import TabHoarderError
from tab_hoarder.service.coordinator import build_stats_payload
from tab_hoarder.service.host import JsonSettingsStore
from tab_hoarder.service.logs import log, set_verbose
from tab_hoarder.tab_policy.eviction import now_ms
from tab_hoarder.tab_policy.taxonomy import topic_info
from tab_hoarder.tab_policy.text import time_ago

USAGE = (
    "usage: tab-hoarder [--db PATH] [--config PATH] [--json] [-v] "
    "{list,sessions,stats,cleanup,delete,delete-session,clear-archive,reset,settings} [args]"
)
COMMANDS = {"list", "sessions", "stats", "cleanup", "delete", "delete-session", "clear-archive", "reset", "settings"}
VALUE_FLAGS = {"--db", "--config", "--topic", "--search", "--domain", "--limit", "--days"}
LIST_SETTINGS = {"archiveExcludedDomains", "categories"}


class UsageError(Exception):
    pass


def parse_args(argv: List[str]) -> Tuple[str, List[str], Dict[str, object]]:
    opts: Dict[str, object] = {"json": False, "verbose": False}
    positional: List[str] = []
    args = list(argv[1:])
    idx = 0
    while idx < len(args):
        arg = args[idx]
        if arg in ("-h", "--help"):
            raise UsageError(USAGE)
        if arg == "--json":
            opts["json"] = True
        elif arg in ("-v", "--verbose"):
            opts["verbose"] = True
        elif "=" in arg and arg.split("=", 1)[0] in VALUE_FLAGS:
            name, value = arg.split("=", 1)
            opts[name[2:]] = value
        elif arg in VALUE_FLAGS:
            if idx + 1 >= len(args):
                raise UsageError(f"{arg} requires a value")
            idx += 1
            opts[arg[2:]] = args[idx]
        elif arg.startswith("--"):
            raise UsageError(f"unknown option: {arg}")
        else:
            positional.append(arg)
        idx += 1

    if not positional or positional[0] not in COMMANDS:
        raise UsageError(USAGE)
    return positional[0], positional[1:], opts


def _int_opt(opts: Dict[str, object], name: str, default: Optional[int] = None) -> Optional[int]:
    raw = opts.get(name)
    if raw is None:
        return default
    try:
        return int(str(raw))
    except ValueError:
        raise UsageError(f"--{name} must be an integer") from None


def _one_id(rest: List[str], command: str) -> int:
    if len(rest) != 1:
        raise UsageError(f"{command} takes exactly one id")
    try:
        return int(rest[0])
    except ValueError:
        raise UsageError(f"{command}: id must be an integer") from None


def _parse_setting(pair: str) -> Tuple[str, object]:
    if "=" not in pair:
        raise UsageError(f"settings expects key=value, got {pair!r}")
    key, raw = pair.split("=", 1)
    key = key.strip()
    if key in LIST_SETTINGS:
        return key, [part.strip() for part in raw.split(",") if part.strip()]
    try:
        return key, json.loads(raw)
    except json.JSONDecodeError:
        return key, raw


def emit(payload: dict, *, as_json: bool, lines: Optional[List[str]] = None) -> None:
    if as_json:
        print(json.dumps(payload, sort_keys=True, ensure_ascii=False))
        return
    for line in lines or []:
        print(line)


def run(command: str, rest: List[str], opts: Dict[str, object], store: ArchiveStore, settings_store: JsonSettingsStore) -> int:
    as_json = bool(opts.get("json"))
    now = now_ms()

    if command == "list":
        tabs = store.list_archived(
            topic=opts.get("topic"),
            search=opts.get("search"),
            domain=opts.get("domain"),
            limit=_int_opt(opts, "limit"),
        )
        lines = [
            f"#{tab.id} {topic_info(tab.topic)['icon']} [{tab.topic}] {tab.title or tab.url} "
            f"({tab.domain}, {time_ago(tab.archived_at, now)})"
            for tab in tabs
        ] or ["no archived tabs"]
        emit({"tabs": [tab.to_dict() for tab in tabs]}, as_json=as_json, lines=lines)
        return 0

    if command == "sessions":
        sessions = store.list_sessions()
        lines = [
            f"#{s.id} {s.name} ({s.tab_count} tabs, {time_ago(s.created_at, now)})" for s in sessions
        ] or ["no saved sessions"]
        emit({"sessions": [s.to_dict() for s in sessions]}, as_json=as_json, lines=lines)
        return 0

    if command == "stats":
        payload = build_stats_payload(store)
        stats = payload["stats"]
        lines = [
            f"archived: {stats['totalArchived']}  restored: {stats['totalRestored']}  "
            f"sessions: {stats['sessionsSaved']}"
        ]
        lines += [f"  {topic_info(topic)['icon']} {topic}: {n}" for topic, n in payload["topicCounts"].items()]
        lines += [f"  {entry['domain']}: {entry['count']}" for entry in payload["topDomains"]]
        emit(payload, as_json=as_json, lines=lines)
        return 0

    if command == "cleanup":
        days = _int_opt(opts, "days", RETENTION_DAYS)
        removed = store.sweep(days)
        emit({"removed": removed, "days": days}, as_json=as_json, lines=[f"removed {removed} tabs older than {days} days"])
        return 0

    if command == "delete":
        tab_id = _one_id(rest, command)
        deleted = store.delete_archived(tab_id)
        emit({"deleted": deleted, "id": tab_id}, as_json=as_json, lines=[f"#{tab_id} {'deleted' if deleted else 'not found'}"])
        return 0

    if command == "delete-session":
        session_id = _one_id(rest, command)
        deleted = store.delete_session(session_id)
        emit(
            {"deleted": deleted, "id": session_id},
            as_json=as_json,
            lines=[f"session #{session_id} {'deleted' if deleted else 'not found'}"],
        )
        return 0

    if command == "clear-archive":
        removed = store.clear_archive()
        emit({"removed": removed}, as_json=as_json, lines=[f"removed {removed} archived tabs"])
        return 0

    if command == "reset":
        store.reset()
        settings_store.set(SETTINGS_KEY, load_settings(None).to_dict())
        emit({"reset": True}, as_json=as_json, lines=["archive, sessions, stats and settings reset"])
        return 0

    # settings
    current = settings_store.get(SETTINGS_KEY)
    if rest:
        updates = dict(_parse_setting(pair) for pair in rest)
        settings = load_settings(current, updates)
        settings_store.set(SETTINGS_KEY, settings.to_dict())
    else:
        settings = load_settings(current)
    data = settings.to_dict()
    emit({"settings": data}, as_json=as_json, lines=[f"{k}: {json.dumps(v)}" for k, v in data.items()])
    return 0


def main(argv: List[str]) -> int:
    try:
        command, rest, opts = parse_args(argv)
    except UsageError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    set_verbose(bool(opts.get("verbose")))
    db_path = Path(str(opts.get("db") or DEFAULT_DB_PATH)).expanduser()
    config_path = Path(str(opts.get("config") or DEFAULT_CONFIG_PATH)).expanduser()
    log(f"{command}: db={db_path} config={config_path}")

    try:
        with ArchiveStore(db_path) as store:
            return run(command, rest, opts, store, JsonSettingsStore(config_path))
    except UsageError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except TabHoarderError as exc:
        print(f"error: {exc.code}: {exc}", file=sys.stderr)
        return 1


def console_main() -> int:
    return main(sys.argv)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
