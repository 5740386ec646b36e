"""Colour categories, rules, and the rule-file cascade.

Rule files hold one rule per line::

    # category  [attributes...]  foreground  [on_background]
    date        bold blue
    url         underline cyan on_black

Any colour string understood by rich is accepted (``red``, ``bright_green``,
``#ff8800``, ``color(202)``).  Later files overwrite whole rules for the
categories they mention.
"""
from __future__ import annotations

import enum
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from rich.color import Color, ColorParseError
from rich.style import Style

logger = logging.getLogger(__name__)

ATTRIBUTES = frozenset({"bold", "dim", "italic", "underline", "blink", "reverse"})

SYSTEM_LEGACY_RC = "colorizerc"
SYSTEM_RC = "logtintrc"
USER_LEGACY_RC = ".colorizerc"
USER_RC = ".logtintrc"


class Category(str, enum.Enum):
    """Semantic classes a piece of a log line can be coloured as."""

    DEFAULT = "default"
    DATE = "date"
    HOST = "host"
    PROC = "proc"
    PID = "pid"
    USER = "user"
    HTTP_GET = "http_get"
    HTTP_POST = "http_post"
    HTTP_HEAD = "http_head"
    HTTP_PUT = "http_put"
    HTTP_CONNECT = "http_connect"
    HTTP_TRACE = "http_trace"
    HTTP_DELETE = "http_delete"
    UNKNOWN = "unknown"
    HTTPCODES = "httpcodes"
    GETSIZE = "getsize"
    URI = "uri"
    URL = "url"
    ADDRESS = "address"
    EMAIL = "email"
    QUOTE = "quote"
    NUMBERS = "numbers"
    SERVICE = "service"
    BADWORD = "badword"
    GOODWORD = "goodword"
    PROXY = "proxy"


class RuleSyntaxError(ValueError):
    """Raised for a rule-file line that cannot be understood."""


@dataclass(frozen=True)
class ColorRule:
    fg: str = "default"
    bg: str = "default"
    attrs: frozenset[str] = frozenset()

    @property
    def style(self) -> Style:
        return Style(
            color=self.fg,
            bgcolor=self.bg,
            **{attr: True for attr in self.attrs},
        )


DEFAULT_RULES: dict[Category, ColorRule] = {
    Category.DEFAULT: ColorRule(),
    Category.DATE: ColorRule("blue", attrs=frozenset({"bold"})),
    Category.HOST: ColorRule("blue", attrs=frozenset({"bold"})),
    Category.PROC: ColorRule("green"),
    Category.PID: ColorRule("white", attrs=frozenset({"bold"})),
    Category.USER: ColorRule("yellow", attrs=frozenset({"bold"})),
    Category.HTTP_GET: ColorRule("green"),
    Category.HTTP_POST: ColorRule("green", attrs=frozenset({"bold"})),
    Category.HTTP_HEAD: ColorRule("green"),
    Category.HTTP_PUT: ColorRule("green", attrs=frozenset({"bold"})),
    Category.HTTP_CONNECT: ColorRule("green"),
    Category.HTTP_TRACE: ColorRule("green"),
    Category.HTTP_DELETE: ColorRule("red", attrs=frozenset({"bold"})),
    Category.UNKNOWN: ColorRule("blue"),
    Category.HTTPCODES: ColorRule("white", attrs=frozenset({"bold"})),
    Category.GETSIZE: ColorRule("magenta"),
    Category.URI: ColorRule("green", attrs=frozenset({"bold"})),
    Category.URL: ColorRule("blue", attrs=frozenset({"bold"})),
    Category.ADDRESS: ColorRule("blue", attrs=frozenset({"bold"})),
    Category.EMAIL: ColorRule("green", attrs=frozenset({"bold"})),
    Category.QUOTE: ColorRule("yellow"),
    Category.NUMBERS: ColorRule("white"),
    Category.SERVICE: ColorRule("magenta", attrs=frozenset({"bold"})),
    Category.BADWORD: ColorRule("red", attrs=frozenset({"bold"})),
    Category.GOODWORD: ColorRule("green", attrs=frozenset({"bold"})),
    Category.PROXY: ColorRule("cyan"),
}

_HTTP_ACTIONS = {
    "GET": Category.HTTP_GET,
    "POST": Category.HTTP_POST,
    "HEAD": Category.HTTP_HEAD,
    "PUT": Category.HTTP_PUT,
    "CONNECT": Category.HTTP_CONNECT,
    "TRACE": Category.HTTP_TRACE,
    "DELETE": Category.HTTP_DELETE,
}


def http_action(method: str) -> Category:
    """Return the colour category for an HTTP request method."""
    return _HTTP_ACTIONS.get(method.upper(), Category.UNKNOWN)


def _check_color(value: str) -> str:
    try:
        Color.parse(value)
    except ColorParseError as exc:
        raise RuleSyntaxError(f"bad colour {value!r}") from exc
    return value


# "#" starts a comment only at line start or after whitespace; "#ff8800" is a colour.
_COMMENT_RE = re.compile(r"(?:^|\s)#")


def parse_rule_line(line: str) -> tuple[Category, ColorRule] | None:
    """Parse one rule-file line. Returns None for blank and comment lines."""
    line = _COMMENT_RE.split(line, 1)[0].strip()
    if not line:
        return None
    keyword, *words = line.split()
    try:
        category = Category(keyword.lower())
    except ValueError:
        raise RuleSyntaxError(f"unknown category {keyword!r}") from None

    attrs: set[str] = set()
    fg: str | None = None
    bg = "default"
    for word in words:
        lowered = word.lower()
        if lowered in ATTRIBUTES:
            attrs.add(lowered)
        elif lowered.startswith("on_"):
            bg = _check_color(lowered[3:])
        elif fg is None:
            fg = _check_color(lowered)
        else:
            raise RuleSyntaxError(f"unexpected word {word!r}")
    if fg is None:
        raise RuleSyntaxError(f"no foreground colour for {keyword!r}")
    return category, ColorRule(fg, bg, frozenset(attrs))


def cascade_paths(
    sysconfdir: Path,
    home: str | None,
    rcfile: Path | None = None,
) -> list[Path]:
    """Return colour files in load order.

    An explicit ``rcfile`` replaces the user-level pair; the system files
    are always read first.
    """
    paths = [sysconfdir / SYSTEM_LEGACY_RC, sysconfdir / SYSTEM_RC]
    if rcfile is not None:
        paths.append(Path(rcfile))
    elif home:
        paths.append(Path(home) / USER_LEGACY_RC)
        paths.append(Path(home) / USER_RC)
    return paths


class ColorConfig:
    """Category → ColorRule mapping, seeded from ``DEFAULT_RULES``.

    Usage::

        colors = ColorConfig()
        colors.load_cascade(Path("/etc"), os.environ.get("HOME"))
        style = colors.style(Category.DATE)
    """

    def __init__(self, rules: dict[Category, ColorRule] | None = None) -> None:
        self._rules: dict[Category, ColorRule] = dict(DEFAULT_RULES)
        if rules:
            self._rules.update(rules)
        self._styles: dict[Category, Style] = {}

    def load(self, path: str | os.PathLike[str]) -> bool:
        """Merge rules from ``path``. Returns False if the file could not be read."""
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                lines = f.read().splitlines()
        except OSError as exc:
            logger.debug("Skipping colour file %s: %s", path, exc)
            return False

        for lineno, raw_line in enumerate(lines, start=1):
            try:
                parsed = parse_rule_line(raw_line)
            except RuleSyntaxError as exc:
                logger.warning("%s:%d: %s; line ignored", path, lineno, exc)
                continue
            if parsed is not None:
                category, rule = parsed
                self.set(category, rule)
        logger.debug("Loaded colour file %s", path)
        return True

    def load_cascade(
        self,
        sysconfdir: Path,
        home: str | None,
        rcfile: Path | None = None,
    ) -> list[Path]:
        """Load the whole cascade and return the files that were read."""
        return [p for p in cascade_paths(sysconfdir, home, rcfile) if self.load(p)]

    def set(self, category: Category, rule: ColorRule) -> None:
        self._rules[category] = rule
        self._styles.pop(category, None)

    def rule(self, category: Category) -> ColorRule:
        return self._rules[category]

    def style(self, category: Category) -> Style:
        style = self._styles.get(category)
        if style is None:
            style = self._styles[category] = self._rules[category].style
        return style

    def __getitem__(self, category: Category) -> ColorRule:
        return self._rules[category]

    def __iter__(self) -> Iterator[Category]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)
