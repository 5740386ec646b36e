"""Process lifecycle: startup, the main read/dispatch loop, and teardown.

State machine::

    INITIALIZING --start()--> RUNNING --EOF or interrupt--> SHUTTING_DOWN

Python runs signal handlers in the main thread between bytecodes, which
can be in the middle of rendering a line.  The interrupt handler therefore
only records the request.  When the loop is blocked reading input it also
raises :class:`Interrupted` to abandon the read.  All teardown, including
the plugins' shutdown hooks, happens in ``shutdown()`` from ordinary code.
"""
from __future__ import annotations

import enum
import logging
import os
import signal
from types import FrameType
from typing import Any, Callable, TextIO

from .colors import ColorConfig
from .config import Config
from .dispatch import Dispatcher
from .plugins.registry import PluginRegistry
from .render import ConsoleRenderer, Renderer
from .wordcolor import WordColorPass

logger = logging.getLogger(__name__)

INTERRUPT_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM") if hasattr(signal, name)
)
RESIZE_SIGNAL = getattr(signal, "SIGWINCH", None)


class State(enum.Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"


class Interrupted(Exception):
    """Raised out of a blocked read when an interrupt arrives."""


class Lifecycle:
    """Own the components of one logtint run and drive them.

    Usage::

        lifecycle = Lifecycle(Config(), home=os.environ.get("HOME"))
        exit_code = lifecycle.run(sys.stdin)
    """

    def __init__(
        self,
        config: Config,
        *,
        renderer: Renderer | None = None,
        registry: PluginRegistry | None = None,
        word_pass: WordColorPass | None = None,
        colors: ColorConfig | None = None,
        home: str | None = None,
        install_signals: bool = True,
    ) -> None:
        self.config = config
        # Registry and colours define __len__, so test against None explicitly.
        if renderer is None:
            renderer = ConsoleRenderer(scroll=config.scroll)
        if registry is None:
            registry = PluginRegistry(plugin_dir=config.plugin_dir)
        self.renderer = renderer
        self.registry = registry
        self.word_pass = word_pass or WordColorPass()
        self.colors = colors if colors is not None else ColorConfig()
        self.dispatcher = Dispatcher(
            self.registry, self.word_pass, self.renderer, self.colors, config
        )
        self.state = State.INITIALIZING
        self._home = home if home is not None else os.environ.get("HOME")
        self._install_signals = install_signals
        self._previous_handlers: dict[int, Any] = {}
        self._interrupted = False
        self._resize_pending = False
        self._reading = False

    @property
    def interrupted(self) -> bool:
        return self._interrupted

    # ------------------------------------------------------------------
    # Initializing
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Install handlers, load colours and plugins, start the plugins."""
        if self.state is not State.INITIALIZING:
            return
        if self._install_signals:
            self._install_handlers()

        loaded = self.colors.load_cascade(
            self.config.sysconfdir, self._home, self.config.rcfile
        )
        logger.debug("Colour files loaded: %s", [str(p) for p in loaded])

        self.word_pass.setup()
        if self.config.plugins:
            self.registry.load_requested(self.config.plugins)
        else:
            self.registry.load_all()
        self.registry.startup_all()
        logger.debug("Plugins started: %s", self.registry.names())

        self.state = State.RUNNING

    def _install_handlers(self) -> None:
        handlers: list[tuple[int, Callable[[int, FrameType | None], None]]] = [
            (signum, self.handle_interrupt) for signum in INTERRUPT_SIGNALS
        ]
        if RESIZE_SIGNAL is not None:
            handlers.append((RESIZE_SIGNAL, self.handle_resize))
        for signum, handler in handlers:
            self._previous_handlers[signum] = signal.signal(signum, handler)

    def _restore_handlers(self) -> None:
        for signum, previous in self._previous_handlers.items():
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous_handlers.clear()

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(self, stream: TextIO) -> int:
        """Colourise ``stream`` until EOF or interrupt. Returns the exit status."""
        try:
            self.start()
            while not self._interrupted:
                if self._resize_pending:
                    self._refresh()
                try:
                    raw_line = self._read_line(stream)
                except Interrupted:
                    break
                if not raw_line:
                    logger.debug("End of input")
                    break
                try:
                    self.dispatcher.dispatch(_strip_newline(raw_line))
                except BrokenPipeError:
                    logger.debug("Output closed; stopping")
                    break
            if self._interrupted:
                logger.debug("Interrupted; shutting down")
        finally:
            self.shutdown()
        return 0

    def _read_line(self, stream: TextIO) -> str:
        self._reading = True
        try:
            if self._interrupted:
                raise Interrupted
            line = stream.readline()
            # A line already read is dispatched even if an interrupt follows.
            self._reading = False
            return line
        finally:
            self._reading = False

    def _refresh(self) -> None:
        self._resize_pending = False
        self.renderer.refresh()

    def handle_interrupt(self, signum: int, frame: FrameType | None) -> None:
        """Signal handler for SIGINT/SIGTERM."""
        if self.state is State.SHUTTING_DOWN:
            return
        self._interrupted = True
        if self._reading:
            raise Interrupted

    def handle_resize(self, signum: int, frame: FrameType | None) -> None:
        """Signal handler for SIGWINCH: refresh now if idle, else after this line."""
        if RESIZE_SIGNAL is not None and self._previous_handlers:
            signal.signal(RESIZE_SIGNAL, self.handle_resize)
        if self.state is State.SHUTTING_DOWN:
            return
        self._resize_pending = True
        if self._reading:
            self._refresh()

    # ------------------------------------------------------------------
    # Shutting down
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Tear everything down once; later calls do nothing."""
        if self.state is State.SHUTTING_DOWN:
            return
        self.state = State.SHUTTING_DOWN
        try:
            try:
                self.renderer.restore()
            except OSError as exc:
                logger.debug("Could not restore terminal: %s", exc)
            self.word_pass.teardown()
            self.registry.shutdown_all()
        finally:
            self._restore_handlers()


def _strip_newline(raw_line: str) -> str:
    if raw_line.endswith("\n"):
        raw_line = raw_line[:-1]
    if raw_line.endswith("\r"):
        raw_line = raw_line[:-1]
    return raw_line
