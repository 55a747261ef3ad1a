"""Stderr logging for scheduler- and command-driven runs."""

import os
import sys
from datetime import datetime

VERBOSE = os.environ.get("TAB_HOARDER_VERBOSE", "").strip().lower() in {"1", "true", "yes", "on"}


def set_verbose(enabled: bool) -> None:
    global VERBOSE
    VERBOSE = bool(enabled)


def log(msg: str, *, force: bool = False) -> None:
    if not (VERBOSE or force):
        return
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[tab_hoarder] {ts} {msg}", file=sys.stderr)


def warn(msg: str) -> None:
    """Always emitted: the failure was swallowed and the caller will not see it."""
    log(f"warn: {msg}", force=True)
