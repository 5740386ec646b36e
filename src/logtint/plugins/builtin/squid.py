"""Squid native access.log recognizer.

    time.ms elapsed client action/code size method URL ident hierarchy/peer type

The timestamp is a UNIX epoch, rendered through ``LineWriter.add_date`` so
``--convert-date`` turns it into calendar time.
"""
from __future__ import annotations

import re

from ...colors import Category, http_action
from ...render import LineWriter
from ..base import NOT_CLAIMED, HandlerResult

_ACCESS_RE = (
    r"^(?P<time>\d+)(?P<msec>\.\d+)?(?P<s1>\s+)"
    r"(?P<elapsed>\d+)(?P<s2>\s+)"
    r"(?P<client>\S+)(?P<s3>\s+)"
    r"(?P<action>[A-Z_]+)/(?P<code>\d{3})(?P<s4>\s+)"
    r"(?P<size>\d+)(?P<s5>\s+)"
    r"(?P<method>[A-Z_]+)(?P<s6>\s+)"
    r"(?P<url>\S+)(?P<s7>\s+)"
    r"(?P<ident>\S+)(?P<s8>\s+)"
    r"(?P<hierarchy>[A-Z_]+)/(?P<peer>\S+)(?P<s9>\s+)"
    r"(?P<ctype>\S+)"
    r"(?P<rest>.*)$"
)


class SquidPlugin:
    """Colour squid access log lines."""

    def __init__(self) -> None:
        self._pattern: re.Pattern[str] | None = None

    @property
    def name(self) -> str:
        return "squid"

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

        out.add_date(m["time"])
        if m["msec"]:
            out.add(Category.DATE, m["msec"])
        out.add(Category.DEFAULT, m["s1"])
        out.add(Category.GETSIZE, m["elapsed"])
        out.add(Category.DEFAULT, m["s2"])
        out.add(Category.HOST, m["client"])
        out.add(Category.DEFAULT, m["s3"])
        out.add(Category.PROXY, m["action"])
        out.add(Category.DEFAULT, "/")
        out.add(Category.HTTPCODES, m["code"])
        out.add(Category.DEFAULT, m["s4"])
        out.add(Category.GETSIZE, m["size"])
        out.add(Category.DEFAULT, m["s5"])
        out.add(http_action(m["method"]), m["method"])
        out.add(Category.DEFAULT, m["s6"])
        out.add(Category.URL, m["url"])
        out.add(Category.DEFAULT, m["s7"])
        out.add(Category.USER, m["ident"])
        out.add(Category.DEFAULT, m["s8"])
        out.add(Category.PROXY, m["hierarchy"])
        out.add(Category.DEFAULT, "/")
        out.add(Category.HOST, m["peer"])
        out.add(Category.DEFAULT, m["s9"])
        out.add(Category.DEFAULT, m["ctype"])

        rest = m["rest"]
        stripped = rest.lstrip()
        if stripped:
            out.add(Category.DEFAULT, rest[: len(rest) - len(stripped)])
        return HandlerResult.claim(stripped)
