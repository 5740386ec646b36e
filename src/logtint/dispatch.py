"""Per-line dispatch: first matching recognizer wins, the rest is word-coloured."""
from __future__ import annotations

import logging

from .colors import ColorConfig
from .config import Config
from .plugins.base import HandlerResult
from .plugins.registry import PluginRegistry
from .render import LineWriter, Renderer
from .wordcolor import WordColorPass

logger = logging.getLogger(__name__)


class Dispatcher:
    """Offer each line to the registered plugins in order.

    The first plugin that claims a line renders it; later plugins are not
    consulted.  Any leftover text, or the whole line when nobody claimed it,
    goes through the word-colouring pass, and the assembled line is emitted
    once.
    """

    def __init__(
        self,
        registry: PluginRegistry,
        word_pass: WordColorPass,
        renderer: Renderer,
        colors: ColorConfig,
        config: Config,
    ) -> None:
        self._registry = registry
        self._word_pass = word_pass
        self._renderer = renderer
        self._colors = colors
        self._config = config

    def dispatch(self, line: str) -> bool:
        """Render one line. Returns True if a plugin claimed it."""
        out = LineWriter(self._colors, convert_date=self._config.convert_date)
        claimed = False
        leftover: str | None = line

        for plugin in self._registry:
            try:
                result = plugin.handle(line, out)
                if not isinstance(result, HandlerResult):
                    raise TypeError(f"handle() returned {type(result).__name__}, not HandlerResult")
            except Exception as exc:
                logger.warning("Plugin %r failed on line %r: %s", plugin.name, line, exc)
                out.reset()
                continue
            if result.claimed:
                claimed = True
                leftover = result.leftover
                break
            out.reset()

        if leftover:
            self._word_pass.process(
                leftover,
                out,
                word_color=self._config.word_color,
                service_lookup=self._config.service_lookup,
            )
        self._renderer.emit(out.text)
        return claimed
