"""Durable record of the user's default version and platform."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .models import Config

log = logging.getLogger(__name__)


@dataclass
class ConfigStore:
    path: Path

    def get_default(self) -> Config | None:
        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            log.warning("ignoring unreadable config %s: %s", self.path, exc)
            return None
        if not isinstance(payload, dict):
            return None
        config = Config.from_dict(payload)
        if config.default is None:
            return None
        return config

    def set_default(self, version: str, platform: str) -> Config:
        config = Config(default=version, platform=platform)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".config-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(config.to_dict(), handle, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        return config
