"""Zip extraction for downloaded release archives."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Protocol

from .errors import ExtractError

__all__ = ["Extractor", "ZipExtractor", "safe_output_path"]

log = logging.getLogger(__name__)


class Extractor(Protocol):
    def extract(self, archive: Path, destination: Path) -> None: ...


def safe_output_path(base_dir: Path, relative_path: str) -> Path:
    target = (base_dir / relative_path).resolve()
    root = base_dir.resolve()
    if target == root:
        return target
    if root not in target.parents:
        raise ExtractError(f"path traversal blocked for archive member: {relative_path}")
    return target


class ZipExtractor:
    def extract(self, archive: Path, destination: Path) -> None:
        destination.mkdir(parents=True, exist_ok=True)
        try:
            with zipfile.ZipFile(archive) as zf:
                members = zf.infolist()
                for member in members:
                    safe_output_path(destination, member.filename)
                zf.extractall(destination)
        except zipfile.BadZipFile as exc:
            raise ExtractError(f"{archive.name} is not a valid zip archive: {exc}") from exc
        log.debug("extracted %s members from %s", len(members), archive.name)
