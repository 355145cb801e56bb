"""Layered tool settings: CLI overrides, environment, user settings.toml, defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import tomllib

from .paths import StoreLayout, UserDirs
from .platform import detect_platform, validate_platform
from .transport import DEFAULT_TIMEOUT, TRANSPORT_NAMES

log = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "settings.toml"
DEFAULT_MIRROR = "https://nodejs.org"
DEFAULT_RUNTIME = "node"

_ENV_KEY_MAP: dict[str, str] = {
    "root": "NODESWAP_ROOT",
    "mirror": "NODESWAP_MIRROR",
    "runtime": "NODESWAP_RUNTIME",
    "platform": "NODESWAP_PLATFORM",
    "timeout": "NODESWAP_TIMEOUT",
    "transport": "NODESWAP_TRANSPORT",
}


def _load_settings_file(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        log.warning("ignoring unreadable settings file %s: %s", path, exc)
        return {}
    return {key: str(value) for key, value in data.items() if not isinstance(value, dict)}


@dataclass(frozen=True)
class Settings:
    """Fully resolved settings for one invocation."""

    root: Path
    mirror: str
    runtime: str
    platform: str
    timeout: float
    transport: str

    @property
    def layout(self) -> StoreLayout:
        return StoreLayout.from_root(self.root)


@dataclass
class SettingsResolver:
    """Resolve settings honoring CLI, environment, user file and default layers."""

    user_dirs: UserDirs | None = None
    cli_overrides: Mapping[str, str | None] | None = None
    env: Mapping[str, str] | None = None
    defaults: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        self.user_dirs = self.user_dirs or UserDirs()
        self.cli_overrides = {k: v for k, v in dict(self.cli_overrides or {}).items() if v}
        self.env = os.environ if self.env is None else self.env
        base_defaults = {
            "root": str(self.user_dirs.data_dir()),
            "mirror": DEFAULT_MIRROR,
            "runtime": DEFAULT_RUNTIME,
            "timeout": str(DEFAULT_TIMEOUT),
            "transport": "requests",
        }
        if self.defaults:
            base_defaults.update(self.defaults)
        self.defaults = base_defaults

    def resolve_setting(self, key: str) -> str | None:
        """Return the value for `key` using CLI, env, user file, defaults order."""
        if value := self.cli_overrides.get(key):
            return value
        if value := self._env_value(key):
            return value
        if value := self._user_layer().get(key):
            return value
        return self.defaults.get(key)

    def resolve(self) -> Settings:
        platform_value = self.resolve_setting("platform")
        platform = (
            validate_platform(platform_value)
            if platform_value
            else detect_platform(self.env)
        )
        transport = (self.resolve_setting("transport") or "requests").strip().lower()
        if transport not in TRANSPORT_NAMES:
            raise ValueError(f"unknown transport {transport!r}, expected one of {', '.join(TRANSPORT_NAMES)}")
        raw_timeout = self.resolve_setting("timeout") or str(DEFAULT_TIMEOUT)
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ValueError(f"timeout must be a number of seconds, got {raw_timeout!r}") from exc
        return Settings(
            root=Path(self.resolve_setting("root") or ".").expanduser(),
            mirror=(self.resolve_setting("mirror") or DEFAULT_MIRROR).rstrip("/"),
            runtime=self.resolve_setting("runtime") or DEFAULT_RUNTIME,
            platform=platform,
            timeout=timeout,
            transport=transport,
        )

    # ---------- Internal helpers ----------

    def _env_value(self, key: str) -> str | None:
        alias = _ENV_KEY_MAP.get(key)
        if alias:
            return self.env.get(alias) or None
        return None

    def _user_layer(self) -> dict[str, str]:
        return _load_settings_file(self.user_dirs.config_dir() / SETTINGS_FILE_NAME)
