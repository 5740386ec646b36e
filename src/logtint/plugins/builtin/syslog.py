"""Syslog recognizer (RFC 3164)."""
from __future__ import annotations

import re

from ...colors import Category
from ...render import LineWriter
from ..base import NOT_CLAIMED, HandlerResult

# RFC 3164: <priority>timestamp hostname tag[pid]: message
_SYSLOG_RE = (
    r"^(?:<(?P<priority>\d+)>)?"
    r"(?P<timestamp>\w{3}\s+\d+\s+\d{2}:\d{2}:\d{2})\s+"
    r"(?P<hostname>\S+)\s+"
    r"(?P<tag>[^:\[\s]+)(?:\[(?P<pid>\d+)\])?:"
    r"(?P<sep>\s*)"
    r"(?P<message>.*)$"
)


class SyslogPlugin:
    """Colour syslog lines; the message body goes to the word pass."""

    def __init__(self) -> None:
        self._pattern: re.Pattern[str] | None = None

    @property
    def name(self) -> str:
        return "syslog"

    def startup(self) -> None:
        self._pattern = re.compile(_SYSLOG_RE)

    def shutdown(self) -> None:
        self._pattern = None

    def handle(self, line: str, out: LineWriter) -> HandlerResult:
        if self._pattern is None:
            raise RuntimeError(f"{self.name} plugin used before startup()")
        m = self._pattern.match(line)
        if not m:
            return NOT_CLAIMED

        if m["priority"] is not None:
            out.add(Category.DEFAULT, f"<{m['priority']}>")
        out.add_date(m["timestamp"])
        out.space()
        out.add(Category.HOST, m["hostname"])
        out.space()
        out.add(Category.PROC, m["tag"])
        if m["pid"] is not None:
            out.add(Category.DEFAULT, "[")
            out.add(Category.PID, m["pid"])
            out.add(Category.DEFAULT, "]")
        out.add(Category.DEFAULT, ":" + m["sep"])
        return HandlerResult.claim(m["message"])
