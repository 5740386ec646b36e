"""Plugin registry: discover, load, and run the lifecycle of recognizers.

Discovery order:
  1. Built-in recognizers shipped with logtint (``BUILTIN_PLUGINS``).
  2. Entry-points under the "logtint.plugins" group (third-party packages).
  3. ``<plugin_dir>/*.py`` single-file plugins, sorted by file name.

Registration order is dispatch priority and shutdown order.
"""
from __future__ import annotations

import importlib
import importlib.metadata
import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from ..render import LineWriter
from .base import HandlerResult, missing_capabilities

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "logtint.plugins"

BUILTIN_PLUGINS: dict[str, str] = {
    "httpd": "logtint.plugins.builtin.httpd:HttpdPlugin",
    "squid": "logtint.plugins.builtin.squid:SquidPlugin",
    "syslog": "logtint.plugins.builtin.syslog:SyslogPlugin",
}

_FILE_MODULE_PREFIX = "logtint_plugin_"


class PluginLoadError(Exception):
    """A plugin could not be resolved, imported, or validated."""


@dataclass
class LoadedPlugin:
    """A recognizer owned by the registry, plus where it came from."""

    name: str
    plugin: Any
    source: str
    module_name: str | None = None
    released: bool = False

    def startup(self) -> None:
        self.plugin.startup()

    def shutdown(self) -> None:
        self.plugin.shutdown()

    def handle(self, line: str, out: LineWriter) -> HandlerResult:
        return self.plugin.handle(line, out)

    def release(self) -> None:
        """Drop the plugin object and unload its file module. Safe to repeat."""
        if self.released:
            return
        self.released = True
        self.plugin = None
        if self.module_name is not None:
            sys.modules.pop(self.module_name, None)


class PluginRegistry:
    """Ordered registry of recognizer plugins.

    Usage::

        registry = PluginRegistry(plugin_dir=Path("~/.logtint/plugins").expanduser())
        registry.load_all()
        registry.startup_all()
        for plugin in registry:
            ...
        registry.shutdown_all()
    """

    def __init__(
        self,
        plugin_dir: Path | None = None,
        group: str = ENTRY_POINT_GROUP,
        builtins: dict[str, str] | None = None,
    ) -> None:
        self._plugins: list[LoadedPlugin] = []
        self._plugin_dir = plugin_dir
        self._group = group
        self._builtins = BUILTIN_PLUGINS if builtins is None else builtins
        self._started = False
        self._shut_down = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, plugin: LoadedPlugin) -> bool:
        """Append ``plugin``; a name already registered is rejected."""
        if plugin.name in self.names():
            logger.warning(
                "Plugin %r from %s ignored: a plugin with that name is already loaded",
                plugin.name, plugin.source,
            )
            plugin.release()
            return False
        self._plugins.append(plugin)
        logger.debug("Registered plugin: %s (%s)", plugin.name, plugin.source)
        return True

    # ------------------------------------------------------------------
    # Discovery and loading
    # ------------------------------------------------------------------

    def discover(self) -> list[str]:
        """Return every installable plugin name, in discovery order."""
        names: list[str] = list(self._builtins)
        names += [ep.name for ep in self._entry_points()]
        if self._plugin_dir is not None and self._plugin_dir.is_dir():
            names += [p.stem for p in sorted(self._plugin_dir.glob("*.py"))]
        return list(dict.fromkeys(names))

    def load(self, name: str) -> LoadedPlugin | None:
        """Resolve and validate the plugin called ``name``.

        Failures are logged and reported as None; the caller decides
        whether to carry on without the plugin.
        """
        try:
            plugin = self._resolve(name)
        except Exception as exc:
            logger.warning("Failed to load plugin %r: %s", name, exc)
            return None
        logger.debug("Loaded plugin %r from %s", plugin.name, plugin.source)
        return plugin

    def load_all(self) -> list[LoadedPlugin]:
        """Load and register every discoverable plugin."""
        return self.load_requested(self.discover())

    def load_requested(self, names: Iterable[str]) -> list[LoadedPlugin]:
        """Load and register exactly ``names``, in the order given."""
        loaded = []
        for name in names:
            plugin = self.load(name)
            if plugin is not None and self.register(plugin):
                loaded.append(plugin)
        return loaded

    def _resolve(self, name: str) -> LoadedPlugin:
        if name in self._builtins:
            module_path, _, attr = self._builtins[name].partition(":")
            obj = getattr(importlib.import_module(module_path), attr)
            return self._bind(obj, name, "builtin")

        for ep in self._entry_points():
            if ep.name == name:
                return self._bind(ep.load(), name, f"entry-point {ep.value}")

        if self._plugin_dir is not None:
            path = self._plugin_dir / f"{name}.py"
            if path.is_file():
                return self._load_file(path, name)

        raise PluginLoadError("no such plugin")

    def _load_file(self, path: Path, name: str) -> LoadedPlugin:
        module_name = f"{_FILE_MODULE_PREFIX}{name}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise PluginLoadError(f"cannot import {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
            loaded = self._bind(getattr(module, "plugin", module), name, str(path))
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        loaded.module_name = module_name
        return loaded

    def _bind(self, obj: Any, requested: str, source: str) -> LoadedPlugin:
        instance = obj() if callable(obj) else obj
        missing = missing_capabilities(instance)
        if missing:
            raise PluginLoadError(f"missing required capabilities: {', '.join(missing)}")
        plugin_name = instance.name
        if not isinstance(plugin_name, str) or not plugin_name:
            raise PluginLoadError(f"invalid plugin name {plugin_name!r}")
        if plugin_name != requested:
            logger.debug("Plugin requested as %r reports name %r", requested, plugin_name)
        return LoadedPlugin(name=plugin_name, plugin=instance, source=source)

    def _entry_points(self) -> list[importlib.metadata.EntryPoint]:
        try:
            return list(importlib.metadata.entry_points(group=self._group))
        except Exception as exc:
            logger.warning("Entry-point discovery failed: %s", exc)
            return []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def startup_all(self) -> None:
        """Run every startup hook once, in registry order.

        A plugin whose startup fails is dropped and never shut down.
        """
        if self._started or self._shut_down:
            return
        self._started = True
        started = []
        for plugin in self._plugins:
            try:
                plugin.startup()
            except Exception as exc:
                logger.warning("Plugin %r failed to start and was disabled: %s", plugin.name, exc)
                plugin.release()
                continue
            started.append(plugin)
        self._plugins = started

    def shutdown_all(self) -> None:
        """Run every shutdown hook once, in registry order, then release all plugins.

        Only the first call does anything.
        """
        if self._shut_down:
            return
        self._shut_down = True
        plugins, self._plugins = self._plugins, []
        for plugin in plugins:
            if self._started:
                try:
                    plugin.shutdown()
                except Exception as exc:
                    logger.warning("Plugin %r failed to shut down cleanly: %s", plugin.name, exc)
            plugin.release()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def names(self) -> list[str]:
        return [p.name for p in self._plugins]

    @property
    def shut_down(self) -> bool:
        return self._shut_down

    def __iter__(self) -> Iterator[LoadedPlugin]:
        return iter(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)
