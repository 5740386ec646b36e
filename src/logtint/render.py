"""Line assembly and terminal output.

Plugins and the word-colouring pass never print directly: they append
styled segments to a :class:`LineWriter`, and the dispatcher hands the
finished line to a :class:`Renderer` exactly once.
"""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.text import Text

from .colors import Category, ColorConfig
from .dates import format_epoch

logger = logging.getLogger(__name__)


class LineWriter:
    """Accumulates the coloured segments of one output line."""

    def __init__(self, colors: ColorConfig, convert_date: bool = False) -> None:
        self._colors = colors
        self._convert_date = convert_date
        self.text = Text(end="")

    def add(self, category: Category, text: str) -> None:
        self.text.append(text, style=self._colors.style(category))

    def add_date(self, text: str) -> None:
        """Render a date field, converting UNIX epochs when enabled."""
        if self._convert_date:
            formatted = format_epoch(text)
            if formatted is not None:
                text = formatted
        self.add(Category.DATE, text)

    def space(self) -> None:
        self.add(Category.DEFAULT, " ")

    def reset(self) -> None:
        """Drop everything written so far."""
        self.text = Text(end="")

    @property
    def plain(self) -> str:
        return self.text.plain

    def __len__(self) -> int:
        return len(self.text)


@runtime_checkable
class Renderer(Protocol):
    """Terminal abstraction the dispatcher writes finished lines to."""

    def emit(self, line: Text) -> None:
        """Write one line followed by a single newline."""
        ...

    def refresh(self) -> None:
        """Recover after a terminal resize."""
        ...

    def restore(self) -> None:
        """Return the terminal to its normal state before exit."""
        ...


class ConsoleRenderer:
    """Render lines through a rich Console.

    With ``scroll`` enabled long lines are written whole and the terminal
    wraps and scrolls them; otherwise each line is cropped to one row.
    """

    def __init__(self, console: Console | None = None, scroll: bool = True) -> None:
        self.console = console or Console(highlight=False)
        self._scroll = scroll

    def emit(self, line: Text) -> None:
        if self._scroll:
            self.console.print(line, end="\n", soft_wrap=True)
        else:
            self.console.print(line, end="\n", no_wrap=True, overflow="crop", crop=True)

    def refresh(self) -> None:
        size = self.console.size
        logger.debug("Terminal resized to %dx%d", size.width, size.height)
        self.console.file.flush()

    def restore(self) -> None:
        self.console.show_cursor(True)
        self.console.file.flush()
