"""Shared URL matching helpers."""

from __future__ import annotations

import urllib.parse
from typing import Iterable

from tab_hoarder.errors import ValidationError

from .taxonomy import RESERVED_SCHEME_PREFIXES

NETWORK_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def has_reserved_scheme(url: str) -> bool:
    lower_url = str(url or "").strip().lower()
    return any(lower_url.startswith(prefix) for prefix in RESERVED_SCHEME_PREFIXES)


def contains_any(url: str, needles: Iterable[str]) -> bool:
    lower_url = str(url or "").lower()
    for needle in needles or []:
        needle_norm = str(needle or "").strip().lower()
        if needle_norm and needle_norm in lower_url:
            return True
    return False


def has_resolvable_address(url: str) -> bool:
    """True when ``domain_of`` would accept ``url``."""
    try:
        parsed = urllib.parse.urlsplit(str(url or "").strip())
        host = parsed.hostname
    except ValueError:
        return False
    scheme = (parsed.scheme or "").lower()
    if not scheme:
        return False
    return bool(host) or scheme not in NETWORK_SCHEMES


def domain_of(url: str) -> str:
    """Host component of ``url``; raises ValidationError when the url is malformed.

    Network urls must carry a host. Other schemes (file:, data:, chrome:...) are
    accepted and grouped under "(unknown)" when they have none.
    """
    raw = str(url or "").strip()
    if not raw:
        raise ValidationError("url is empty")
    try:
        parsed = urllib.parse.urlsplit(raw)
        host = parsed.hostname
    except ValueError as exc:
        raise ValidationError(f"malformed url: {raw}", details={"url": raw}) from exc

    scheme = (parsed.scheme or "").lower()
    if not scheme:
        raise ValidationError(f"url has no scheme: {raw}", details={"url": raw})
    if host:
        return host.lower()
    if scheme in NETWORK_SCHEMES:
        raise ValidationError(f"url has no host: {raw}", details={"url": raw})
    return "(unknown)"
