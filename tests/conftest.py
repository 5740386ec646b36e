"""Shared pytest fixtures for logtint tests."""
from __future__ import annotations

from pathlib import Path

import pytest
from rich.text import Text

from logtint.colors import Category, ColorConfig, ColorRule
from logtint.config import Config
from logtint.plugins.base import NOT_CLAIMED, HandlerResult
from logtint.plugins.registry import LoadedPlugin, PluginRegistry
from logtint.render import LineWriter


class RecordingRenderer:
    """Renderer fake that keeps every emitted line."""

    def __init__(self) -> None:
        self.lines: list[Text] = []
        self.refreshes = 0
        self.restores = 0

    def emit(self, line: Text) -> None:
        self.lines.append(line.copy())

    def refresh(self) -> None:
        self.refreshes += 1

    def restore(self) -> None:
        self.restores += 1

    @property
    def plain(self) -> list[str]:
        return [line.plain for line in self.lines]


class StubPlugin:
    """Recognizer that claims lines containing ``match`` and logs its calls."""

    def __init__(
        self,
        name: str,
        match: str | None = None,
        leftover: str | None = None,
        calls: list[tuple[str, str]] | None = None,
    ) -> None:
        self._name = name
        self._match = match
        self._leftover = leftover
        self.calls = calls if calls is not None else []

    @property
    def name(self) -> str:
        return self._name

    def startup(self) -> None:
        self.calls.append((self._name, "startup"))

    def shutdown(self) -> None:
        self.calls.append((self._name, "shutdown"))

    def handle(self, line: str, out: LineWriter) -> HandlerResult:
        self.calls.append((self._name, "handle"))
        if self._match is None or self._match not in line:
            out.add(Category.DEFAULT, "scribble")
            return NOT_CLAIMED
        out.add(Category.PROC, f"[{self._name}]")
        return HandlerResult.claim(self._leftover)


@pytest.fixture()
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture()
def colors() -> ColorConfig:
    """Colours with a distinct style per category, so spans map back to categories."""
    palette = ["red", "green", "yellow", "blue", "magenta", "cyan", "white", "black"]
    rules = {
        category: ColorRule(palette[i % 8], palette[i // 8])
        for i, category in enumerate(Category)
    }
    rules[Category.DEFAULT] = ColorRule()
    return ColorConfig(rules)


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    """Config isolated from the host's /etc."""
    return Config(sysconfdir=tmp_path / "etc")


@pytest.fixture()
def writer(colors: ColorConfig) -> LineWriter:
    return LineWriter(colors)


@pytest.fixture()
def stub_plugin():
    """Return a factory for StubPlugin instances sharing one call log."""
    calls: list[tuple[str, str]] = []

    def _make(name: str, match: str | None = None, leftover: str | None = None) -> StubPlugin:
        return StubPlugin(name, match=match, leftover=leftover, calls=calls)

    _make.calls = calls  # type: ignore[attr-defined]
    return _make


@pytest.fixture()
def apache_log_lines() -> list[str]:
    return [
        '192.168.1.1 - - [01/Aug/2025:10:00:00 +0000] "GET /api/v1/health HTTP/1.1" 200 512',
        '10.0.0.1 - bob [01/Aug/2025:10:00:01 +0000] "POST /api/v1/jobs HTTP/1.1" 201 1024',
        '192.168.1.2 - - [01/Aug/2025:10:00:02 +0000] "GET /missing HTTP/1.1" 404 128 "-" "curl/8.0"',
    ]


@pytest.fixture()
def syslog_lines() -> list[str]:
    return [
        "Aug  1 10:00:00 webserver sshd[1234]: Accepted publickey for admin",
        "Aug  1 10:00:01 webserver kernel: Out of memory: Kill process 5678",
        "<13>Aug  1 10:00:02 webserver cron[9999]: (root) CMD (/usr/bin/backup.sh)",
    ]


@pytest.fixture()
def squid_lines() -> list[str]:
    return [
        "1700000000.123    245 10.0.0.7 TCP_MISS/200 4520 GET http://example.com/ - DIRECT/93.184.216.34 text/html",
        "0.000      0 127.0.0.1 TCP_DENIED/403 3800 CONNECT example.com:443 - HIER_NONE/- text/html",
    ]


@pytest.fixture()
def rc_file(tmp_path: Path):
    """Return a factory that writes colour rule files."""

    def _make(lines: list[str], name: str = "colors.rc") -> Path:
        p = tmp_path / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def make_registry():
    """Return a factory building a registry from plugin objects, in order."""

    def _make(*plugins: object, start: bool = True) -> PluginRegistry:
        registry = PluginRegistry(builtins={})
        for plugin in plugins:
            registry.register(LoadedPlugin(name=plugin.name, plugin=plugin, source="test"))  # type: ignore[attr-defined]
        if start:
            registry.startup_all()
        return registry

    return _make
