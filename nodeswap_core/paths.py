"""Platform-independent helpers for nodeswap paths."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

_DEFAULT_APP_NAME = "nodeswap"
INDEX_FILE_NAME = "index.json"
CONFIG_FILE_NAME = "config.json"


@dataclass(frozen=True)
class UserDirs:
    """Expose the platform-configured locations for the config and data trees."""

    app_name: str = _DEFAULT_APP_NAME
    config_dir_override: Path | None = None
    data_dir_override: Path | None = None

    def config_dir(self) -> Path:
        return (
            self.config_dir_override
            if self.config_dir_override
            else Path(user_config_dir(self.app_name, appauthor=False))
        )

    def data_dir(self) -> Path:
        return (
            self.data_dir_override
            if self.data_dir_override
            else Path(user_data_dir(self.app_name, appauthor=False))
        )


@dataclass(frozen=True)
class StoreLayout:
    """Directory structure of a nodeswap root."""

    root: Path
    versions_dir: Path
    cache_dir: Path
    current_link: Path
    index_file: Path
    config_file: Path

    @classmethod
    def from_root(cls, root: Path | str) -> "StoreLayout":
        root = Path(root).expanduser().absolute()
        return cls(
            root=root,
            versions_dir=root / "versions",
            cache_dir=root / "cache",
            current_link=root / "current",
            index_file=root / INDEX_FILE_NAME,
            config_file=root / CONFIG_FILE_NAME,
        )

    def ensure(self) -> None:
        for directory in (self.root, self.versions_dir, self.cache_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def platform_dir(self, version: str, platform: str) -> Path:
        return self.versions_dir / version / platform
