"""Release catalog: typed entries and the on-disk index.json cache."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from .errors import CatalogFetchError, TransportError
from .transport import Transport
from .versions import parse_version

__all__ = ["CatalogCache", "CatalogEntry", "catalog_url", "group_by_lts", "parse_catalog"]

log = logging.getLogger(__name__)


def catalog_url(mirror: str) -> str:
    return f"{mirror.rstrip('/')}/download/release/index.json"


@dataclass(frozen=True)
class CatalogEntry:
    version: str
    lts: str | None
    files: frozenset[str]

    @property
    def triple(self) -> tuple[int, int, int]:
        return parse_version(self.version)

    @property
    def is_lts(self) -> bool:
        return self.lts is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CatalogEntry":
        version = data.get("version")
        if not isinstance(version, str):
            raise ValueError("catalog entry is missing 'version'")
        version = version.strip().lower()
        parse_version(version)

        lts_raw = data.get("lts", False)
        if lts_raw is False or lts_raw is None:
            lts = None
        elif isinstance(lts_raw, str) and lts_raw.strip():
            lts = lts_raw.strip()
        else:
            raise ValueError(f"catalog entry {version} has invalid 'lts' value {lts_raw!r}")

        files = data.get("files")
        if not isinstance(files, list):
            raise ValueError(f"catalog entry {version} is missing 'files'")
        return cls(
            version=version,
            lts=lts,
            files=frozenset(str(item) for item in files if isinstance(item, str)),
        )


def parse_catalog(text: str) -> list[CatalogEntry]:
    """Validate a raw catalog document, dropping malformed entries."""

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogFetchError(f"release catalog is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise CatalogFetchError("release catalog must be a JSON array")

    entries: list[CatalogEntry] = []
    for index, item in enumerate(payload):
        if not isinstance(item, Mapping):
            log.warning("skipping catalog item #%s: not an object", index)
            continue
        try:
            entries.append(CatalogEntry.from_dict(item))
        except ValueError as exc:
            log.warning("skipping catalog item #%s: %s", index, exc)
    return entries


class CatalogCache:
    """Fetches the remote catalog and keeps a verbatim point-in-time copy."""

    def __init__(self, index_file: Path, transport: Transport, mirror: str) -> None:
        self.index_file = index_file
        self.transport = transport
        self.url = catalog_url(mirror)

    def refresh(self) -> list[CatalogEntry]:
        try:
            text = self.transport.get_text(self.url)
        except TransportError as exc:
            raise CatalogFetchError(
                f"unable to fetch release catalog: {exc.message}",
                hint="check your network connection or --mirror",
            ) from exc
        entries = parse_catalog(text)
        self._write(text)
        log.info("catalog refreshed: %s entries from %s", len(entries), self.url)
        return entries

    def load(self) -> list[CatalogEntry] | None:
        """Return the last cached snapshot, or None when nothing is cached."""
        if not self.index_file.exists():
            return None
        return parse_catalog(self.index_file.read_text(encoding="utf-8"))

    def _write(self, text: str) -> None:
        self.index_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".index-", suffix=".json", dir=self.index_file.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp, self.index_file)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


def group_by_lts(entries: Sequence[CatalogEntry]) -> dict[str, list[CatalogEntry]]:
    groups: dict[str, list[CatalogEntry]] = {"lts": [], "current": []}
    for entry in entries:
        groups["lts" if entry.is_lts else "current"].append(entry)
    for items in groups.values():
        items.sort(key=lambda item: item.triple, reverse=True)
    return groups
