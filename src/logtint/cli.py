"""logtint CLI: colourise log lines read from standard input.

    tail -f /var/log/syslog | logtint
    logtint -C -p squid < /var/log/squid/access.log
    logtint --list-plugins
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from .config import Config
from .lifecycle import Lifecycle
from .plugins.registry import PluginRegistry
from .render import ConsoleRenderer

console = Console(highlight=False)
err_console = Console(stderr=True)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _setup_logging(level: str) -> None:
    """Send logtint diagnostics to stderr so they never mix with coloured output."""
    logger = logging.getLogger("logtint")
    logger.handlers.clear()
    logger.setLevel(level)
    handler = RichHandler(console=err_console, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version="0.1.0", prog_name="logtint")
@click.option(
    "--rcfile", "-F", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Read colours from FILE instead of ~/.colorizerc and ~/.logtintrc.",
)
@click.option("--scroll/--no-scroll", "-s", default=None, help="Enable or disable scrolling (last flag wins).")
@click.option("--convert-date", "-C", is_flag=True, help="Convert UNIX timestamps to readable dates.")
@click.option("--no-word-color", is_flag=True, help="Disable word colouring.")
@click.option("--no-service-lookup", is_flag=True, help="Disable service lookups.")
@click.option(
    "--plugin", "-p", "plugins", multiple=True, metavar="PLUGIN",
    help="Load only PLUGIN (repeatable, dispatched in the order given).",
)
@click.option(
    "--plugin-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
    help="Extra directory of single-file plugins.",
)
@click.option("--list-plugins", "-l", is_flag=True, help="List available plugins and exit.")
@click.option(
    "--log-level", default="WARNING", show_default=True,
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    help="Diagnostic verbosity (written to stderr).",
)
@click.pass_context
def main(
    ctx: click.Context,
    rcfile: Path | None,
    scroll: bool | None,
    convert_date: bool,
    no_word_color: bool,
    no_service_lookup: bool,
    plugins: tuple[str, ...],
    plugin_dir: Path | None,
    list_plugins: bool,
    log_level: str,
) -> None:
    """logtint: cheer up your logs.

    Reads lines from standard input and writes them back coloured.  Each
    line is offered to the recognizer plugins in order; the first one that
    knows the format colours it, and any free text left over is coloured
    word by word.

    \b
    Examples:
      tail -f /var/log/syslog | logtint
      logtint --convert-date -p squid < access.log
      logtint --no-word-color -F ~/.config/logtint/colors < app.log
    """
    _setup_logging(log_level.upper())

    overrides: dict[str, Any] = {}
    if rcfile is not None:
        overrides["rcfile"] = rcfile
    if scroll is not None:
        overrides["scroll"] = scroll
    if convert_date:
        overrides["convert_date"] = True
    if no_word_color:
        overrides["word_color"] = False
    if no_service_lookup:
        overrides["service_lookup"] = False
    if plugins:
        overrides["plugins"] = plugins
    if plugin_dir is not None:
        overrides["plugin_dir"] = plugin_dir

    try:
        config = Config(**overrides)
    except ValidationError as exc:
        raise click.UsageError(str(exc), ctx=ctx) from exc

    if list_plugins:
        registry = PluginRegistry(plugin_dir=config.plugin_dir)
        for name in registry.discover():
            console.print(name)
        return

    lifecycle = Lifecycle(
        config,
        renderer=ConsoleRenderer(console, scroll=config.scroll),
        home=os.environ.get("HOME"),
    )
    stream = click.get_text_stream("stdin", encoding="utf-8", errors="replace")
    try:
        status = lifecycle.run(stream)
    except KeyboardInterrupt:
        # SIGINT before the lifecycle installed its handlers.
        lifecycle.shutdown()
        status = 0
    ctx.exit(status)


if __name__ == "__main__":
    main()
