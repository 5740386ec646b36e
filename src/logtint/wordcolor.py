"""Word-level colouring for text no recognizer plugin consumed.

The pass scans text left to right with a single alternation regex.  Each
match is classified (quote, URL, e-mail, address, path, number, word) and
coloured by category; everything unrecognised is coalesced into neutral
``default`` segments, so plain prose comes out as one uncoloured run.
"""
from __future__ import annotations

import logging
import re
import socket

from .colors import Category
from .render import LineWriter

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"""
    (?P<quote>"[^"]*"|(?<!\w)'[^']*'(?!\w))
  | (?P<url>\b[a-zA-Z][a-zA-Z0-9+.-]*://[^\s"'<>]+)
  | (?P<email>\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+)
  | (?P<address>
        \b(?:(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\.){3}
          (?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)(?::\d{1,5})?\b
      | \b(?:[0-9a-fA-F]{2}:){5}[0-9a-fA-F]{2}\b
    )
  | (?P<path>(?<![\w/.])/[\w.~@%+-]+(?:/[\w.~@%+-]*)*)
  | (?P<number>\b\d+(?:\.\d+)?\b)
  | (?P<word>[^\W\d]\w*)
    """,
    re.VERBOSE,
)

BAD_WORDS = frozenset({
    "abort", "aborted", "crash", "crashed", "critical", "denied", "deny",
    "error", "errors", "fail", "failed", "failure", "fatal", "invalid",
    "panic", "refused", "reject", "rejected", "segfault", "timeout",
    "unreachable", "warn", "warning",
})

GOOD_WORDS = frozenset({
    "accept", "accepted", "allow", "allowed", "complete", "completed",
    "connected", "enabled", "granted", "ok", "ready", "started",
    "success", "successful", "succeeded", "valid",
})

_SIMPLE_GROUPS = {
    "quote": Category.QUOTE,
    "url": Category.URL,
    "email": Category.EMAIL,
    "address": Category.ADDRESS,
    "path": Category.URI,
}


class WordColorPass:
    """Colour free text token by token.

    The only state kept between calls is a cache of service lookups,
    which ``teardown()`` discards.
    """

    def __init__(self) -> None:
        self._ports: dict[int, bool] = {}
        self._names: dict[str, bool] = {}

    def setup(self) -> None:
        self._ports.clear()
        self._names.clear()

    def teardown(self) -> None:
        logger.debug(
            "Word pass teardown (%d port / %d name lookups cached)",
            len(self._ports), len(self._names),
        )
        self._ports.clear()
        self._names.clear()

    def process(
        self,
        text: str,
        out: LineWriter,
        *,
        word_color: bool = True,
        service_lookup: bool = True,
    ) -> None:
        """Append ``text`` to ``out``, coloured word by word when enabled."""
        if not word_color:
            out.add(Category.DEFAULT, text)
            return

        pending_start = 0
        for m in _TOKEN_RE.finditer(text):
            category = self._classify(m, service_lookup)
            if category is Category.DEFAULT:
                continue
            if m.start() > pending_start:
                out.add(Category.DEFAULT, text[pending_start:m.start()])
            out.add(category, m.group())
            pending_start = m.end()
        if pending_start < len(text):
            out.add(Category.DEFAULT, text[pending_start:])

    def _classify(self, m: re.Match[str], service_lookup: bool) -> Category:
        kind = m.lastgroup
        if kind in _SIMPLE_GROUPS:
            return _SIMPLE_GROUPS[kind]
        token = m.group()
        if kind == "number":
            if service_lookup and token.isdigit() and self.is_service_port(int(token)):
                return Category.SERVICE
            return Category.NUMBERS

        lowered = token.lower()
        if lowered in BAD_WORDS:
            return Category.BADWORD
        if lowered in GOOD_WORDS:
            return Category.GOODWORD
        if service_lookup and self.is_service_name(lowered):
            return Category.SERVICE
        return Category.DEFAULT

    def is_service_port(self, port: int) -> bool:
        """True if ``port`` has an entry in the services database."""
        if port not in self._ports:
            try:
                socket.getservbyport(port)
            except (OSError, OverflowError):
                self._ports[port] = False
            else:
                self._ports[port] = True
        return self._ports[port]

    def is_service_name(self, name: str) -> bool:
        """True if ``name`` is a known service name."""
        if name not in self._names:
            try:
                socket.getservbyname(name)
            except OSError:
                self._names[name] = False
            else:
                self._names[name] = True
        return self._names[name]
