"""Recognizer plugin Protocol definitions.

A recognizer classifies whole log lines of one format.  Third-party
plugins implement :class:`RecognizerPlugin` and register themselves via
the entry-points mechanism::

    [project.entry-points."logtint.plugins"]
    nginx = "my_package.recognizers:NginxPlugin"

or are dropped as a single ``<name>.py`` file into the configured plugin
directory.  A file plugin is either a module exposing ``name``,
``startup``, ``shutdown`` and ``handle`` at top level, or a module with a
``plugin`` attribute holding such an object.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..render import LineWriter

REQUIRED_CAPABILITIES = ("name", "startup", "shutdown", "handle")


@dataclass(frozen=True)
class HandlerResult:
    """Outcome of offering a line to a recognizer.

    ``leftover`` is the part of a claimed line the plugin deliberately left
    uncoloured; it is passed on to the word-colouring pass.
    """

    claimed: bool
    leftover: str | None = None

    @classmethod
    def claim(cls, leftover: str | None = None) -> "HandlerResult":
        return cls(True, leftover or None)


NOT_CLAIMED = HandlerResult(False)


@runtime_checkable
class RecognizerPlugin(Protocol):
    """Protocol for line-format recognizers: duck-typed, no inheritance required."""

    @property
    def name(self) -> str:
        """Unique recognizer name, e.g. 'syslog', 'httpd'."""
        ...

    def startup(self) -> None:
        """Called once, before the first ``handle`` call."""
        ...

    def shutdown(self) -> None:
        """Called once, after the last ``handle`` call."""
        ...

    def handle(self, line: str, out: "LineWriter") -> HandlerResult:
        """Colour ``line`` into ``out`` if it is in this plugin's format.

        Return :data:`NOT_CLAIMED` for foreign lines; anything written to
        ``out`` is then discarded.
        """
        ...


def missing_capabilities(obj: object) -> list[str]:
    """Return the required plugin attributes ``obj`` lacks."""
    missing = [attr for attr in REQUIRED_CAPABILITIES if not hasattr(obj, attr)]
    missing += [
        attr for attr in REQUIRED_CAPABILITIES[1:]
        if attr not in missing and not callable(getattr(obj, attr))
    ]
    return missing
