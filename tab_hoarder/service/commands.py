"""Request/response command surface for popup, settings page and host glue.

Every request is a dict with an ``action`` key. Every response is a dict with
``success``; failures carry ``error: {code, message, details}`` and are never
raised to the caller.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from tab_hoarder.errors import TabHoarderError, ValidationError
from tab_hoarder.tab_policy.models import OpenTab
from tab_hoarder.tab_policy.taxonomy import REASON_MANUAL

from .coordinator import ArchiveCoordinator
from .logs import log, warn

Handler = Callable[[ArchiveCoordinator, dict], Awaitable[dict]]


def _require(request: dict, key: str) -> Any:
    value = request.get(key)
    if value is None:
        raise ValidationError(f"missing field: {key}", details={"field": key})
    return value


def _require_id(request: dict, key: str) -> int:
    value = _require(request, key)
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer id", details={"field": key})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer id", details={"field": key}) from None


async def _archive_tab(coordinator: ArchiveCoordinator, request: dict) -> dict:
    payload = _require(request, "tab")
    if not isinstance(payload, dict):
        raise ValidationError("tab must be an object", details={"field": "tab"})
    classification = await coordinator.archive_tab(OpenTab.from_dict(payload), REASON_MANUAL)
    return {"categorization": classification.to_dict()}


async def _restore_tab(coordinator: ArchiveCoordinator, request: dict) -> dict:
    outcome = await coordinator.restore_archived_tab(_require_id(request, "tabId"))
    return outcome.to_dict()


async def _delete_tab(coordinator: ArchiveCoordinator, request: dict) -> dict:
    return {"deleted": coordinator.delete_archived_tab(_require_id(request, "tabId"))}


async def _list_archived(coordinator: ArchiveCoordinator, request: dict) -> dict:
    tabs = coordinator.list_archived(
        topic=request.get("topic") or None,
        search=request.get("search") or None,
        domain=request.get("domain") or None,
        limit=request.get("limit") or None,
    )
    return {"tabs": [tab.to_dict() for tab in tabs]}


async def _save_session(coordinator: ArchiveCoordinator, request: dict) -> dict:
    tabs = request.get("tabs")
    open_tabs = [OpenTab.from_dict(t) for t in tabs if isinstance(t, dict)] if isinstance(tabs, list) else None
    record = await coordinator.save_session(str(request.get("name") or ""), open_tabs)
    return {"count": record.tab_count, "sessionId": record.id}


async def _restore_session(coordinator: ArchiveCoordinator, request: dict) -> dict:
    outcome = await coordinator.restore_session(_require_id(request, "sessionId"))
    return outcome.to_dict()


async def _delete_session(coordinator: ArchiveCoordinator, request: dict) -> dict:
    return {"deleted": coordinator.delete_session(_require_id(request, "sessionId"))}


async def _list_sessions(coordinator: ArchiveCoordinator, request: dict) -> dict:
    return {"sessions": [session.to_dict() for session in coordinator.list_sessions()]}


async def _get_stats(coordinator: ArchiveCoordinator, request: dict) -> dict:
    return coordinator.get_stats()


async def _get_settings(coordinator: ArchiveCoordinator, request: dict) -> dict:
    return {"settings": coordinator.settings.to_dict()}


async def _update_settings(coordinator: ArchiveCoordinator, request: dict) -> dict:
    raw = _require(request, "settings")
    return {"settings": coordinator.update_settings(raw).to_dict()}


async def _check_now(coordinator: ArchiveCoordinator, request: dict) -> dict:
    report = await coordinator.check_now()
    return {"report": report.to_dict()}


async def _clear_archive(coordinator: ArchiveCoordinator, request: dict) -> dict:
    return {"deleted": coordinator.store.clear_archive()}


async def _reset_all(coordinator: ArchiveCoordinator, request: dict) -> dict:
    coordinator.store.reset()
    settings = coordinator.update_settings({})
    return {"settings": settings.to_dict()}


HANDLERS: Dict[str, Handler] = {
    "archiveTab": _archive_tab,
    "restoreTab": _restore_tab,
    "deleteTab": _delete_tab,
    "listArchived": _list_archived,
    "saveSession": _save_session,
    "restoreSession": _restore_session,
    "deleteSession": _delete_session,
    "listSessions": _list_sessions,
    "getStats": _get_stats,
    "getSettings": _get_settings,
    "updateSettings": _update_settings,
    "checkNow": _check_now,
    "clearArchive": _clear_archive,
    "resetAll": _reset_all,
}


def _failure(exc: TabHoarderError) -> dict:
    return {"success": False, "error": exc.to_dict()}


async def dispatch(coordinator: ArchiveCoordinator, request: dict) -> dict:
    action = request.get("action") if isinstance(request, dict) else None
    handler = HANDLERS.get(action) if isinstance(action, str) else None
    if handler is None:
        return _failure(ValidationError(f"unknown action: {action!r}", details={"action": action}))

    try:
        payload = await handler(coordinator, request)
    except TabHoarderError as exc:
        log(f"error: {action} failed ({exc.code}: {exc})")
        return _failure(exc)
    except Exception as exc:
        warn(f"{action} crashed ({exc.__class__.__name__}: {exc})")
        return _failure(TabHoarderError("internal_error", str(exc) or exc.__class__.__name__))

    response = {"success": True}
    response.update(payload)
    return response
