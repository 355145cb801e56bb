from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class ResolvedVersion:
    """A concrete version confirmed to have an artifact for ``platform``."""

    version: str
    platform: str


@dataclass(frozen=True)
class InstalledVersion:
    version: str
    platform: str
    install_path: Path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "platform": self.platform,
            "install_path": str(self.install_path),
        }


@dataclass(frozen=True)
class Config:
    default: str | None
    platform: str | None

    def to_dict(self) -> Dict[str, Any]:
        return {"default": self.default, "platform": self.platform}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        default = data.get("default")
        platform = data.get("platform")
        return cls(
            default=str(default) if default else None,
            platform=str(platform) if platform else None,
        )
