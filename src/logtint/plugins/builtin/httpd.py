"""Apache/nginx access log recognizer (Common and Combined formats).

Common:   %h %l %u %t "%r" %>s %b
Combined: Common + "%{Referer}i" "%{User-agent}i"

The referer and user-agent tail is left to the word-colouring pass.
"""
from __future__ import annotations

import re

from ...colors import Category, http_action
from ...render import LineWriter
from ..base import NOT_CLAIMED, HandlerResult

_ACCESS_RE = (
    r'(?P<host>\S+)\s+'           # client IP
    r'(?P<ident>\S+)\s+'          # ident
    r'(?P<user>\S+)\s+'           # user
    r'\[(?P<time>[^\]]+)\]\s+'    # [timestamp]
    r'"(?P<request>[^"]*)"\s+'    # "METHOD /path HTTP/x.x"
    r'(?P<status>\d{3})\s+'       # status code
    r'(?P<bytes>\d+|-)'           # bytes sent
    r'(?P<rest>.*)$'              # referer, user-agent, anything else
)


class HttpdPlugin:
    """Colour web-server access log lines."""

    def __init__(self) -> None:
        self._pattern: re.Pattern[str] | None = None

    @property
    def name(self) -> str:
        return "httpd"

    def startup(self) -> None:
        self._pattern = re.compile(_ACCESS_RE)

    def shutdown(self) -> None:
        self._pattern = None

    def handle(self, line: str, out: LineWriter) -> HandlerResult:
        if self._pattern is None:
            raise RuntimeError(f"{self.name} plugin used before startup()")
        m = self._pattern.match(line)
        if not m:
            return NOT_CLAIMED

        out.add(Category.HOST, m["host"])
        out.space()
        out.add(Category.USER, m["ident"])
        out.space()
        out.add(Category.USER, m["user"])
        out.add(Category.DEFAULT, " [")
        out.add_date(m["time"])
        out.add(Category.DEFAULT, '] "')
        self._request(m["request"], out)
        out.add(Category.DEFAULT, '" ')
        out.add(Category.HTTPCODES, m["status"])
        out.space()
        out.add(Category.GETSIZE, m["bytes"])

        rest = m["rest"]
        stripped = rest.lstrip()
        if stripped:
            out.add(Category.DEFAULT, rest[: len(rest) - len(stripped)])
        return HandlerResult.claim(stripped)

    @staticmethod
    def _request(request: str, out: LineWriter) -> None:
        parts = request.split(" ", 2)
        if len(parts) < 2:
            out.add(Category.UNKNOWN, request)
            return
        out.add(http_action(parts[0]), parts[0])
        out.space()
        out.add(Category.URI, parts[1])
        if len(parts) > 2:
            out.space()
            out.add(Category.DEFAULT, parts[2])
