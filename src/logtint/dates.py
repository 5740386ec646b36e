"""UNIX epoch → calendar text conversion."""
from __future__ import annotations

import re
from datetime import datetime, timezone

_EPOCH_RE = re.compile(r"[0-9]+")


def format_epoch(text: str) -> str | None:
    """Format a base-10 UNIX timestamp as ``"Mon DD HH:MM:SS"`` (UTC).

    The day is space-padded like ``strftime("%e")``.  Returns None for
    anything that is not a plain non-negative integer or lies outside the
    range the platform can represent.
    """
    if not _EPOCH_RE.fullmatch(text):
        return None
    try:
        stamp = datetime.fromtimestamp(int(text), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return f"{stamp:%b} {stamp.day:2d} {stamp:%H:%M:%S}"
