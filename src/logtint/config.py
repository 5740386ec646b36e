"""Configuration via pydantic-settings: env vars, overridden by CLI flags."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Process-wide logtint options.

    Built once at startup and frozen afterwards; components receive it
    through their constructors.  Keyword arguments take precedence over
    ``LOGTINT_*`` environment variables, so the CLI passes only the flags
    the user actually gave.
    """

    model_config = SettingsConfigDict(env_prefix="LOGTINT_", frozen=True)

    scroll: bool = Field(default=True, description="Let long lines wrap and the terminal scroll")
    convert_date: bool = Field(default=False, description="Render UNIX epoch dates as calendar time")
    word_color: bool = Field(default=True, description="Colour free text word by word")
    service_lookup: bool = Field(default=True, description="Resolve ports and service names")
    rcfile: Path | None = Field(default=None, description="Colour file loaded instead of the user-level pair")
    plugins: tuple[str, ...] = Field(default=(), description="Plugins to load, in order (empty = discover)")
    sysconfdir: Path = Field(default=Path("/etc"), description="Directory holding system colour files")
    plugin_dir: Path | None = Field(default=None, description="Extra directory of single-file plugins")
