"""Shared fixtures: an in-memory transport and release zip builder."""

from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path
from typing import Any, Callable

import pytest

from nodeswap_core.errors import TransportError
from nodeswap_core.paths import StoreLayout
from nodeswap_core.settings import Settings

MIRROR = "https://mirror.test"


class FakeTransport:
    """Serves canned responses keyed by URL and records every call."""

    def __init__(self) -> None:
        self.texts: dict[str, str] = {}
        self.payloads: dict[str, bytes] = {}
        self.available: set[str] = set()
        self.broken: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def set_catalog(self, entries: list[dict[str, Any]], mirror: str = MIRROR) -> str:
        text = json.dumps(entries)
        self.texts[f"{mirror}/download/release/index.json"] = text
        return text

    def publish(self, url: str, payload: bytes) -> None:
        self.payloads[url] = payload

    def get_text(self, url: str) -> str:
        self.calls.append(("get", url))
        if url in self.broken or url not in self.texts:
            raise TransportError(f"GET {url} failed")
        return self.texts[url]

    def exists(self, url: str) -> bool:
        self.calls.append(("head", url))
        if url in self.broken:
            raise TransportError(f"HEAD {url} failed")
        return url in self.available or url in self.payloads

    def download(self, url: str, out_path: Path) -> Path:
        self.calls.append(("download", url))
        if url in self.broken or url not in self.payloads:
            raise TransportError(f"download {url} returned 404")
        out_path.write_bytes(self.payloads[url])
        return out_path


def build_zip(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def artifact(version: str, platform: str, mirror: str = MIRROR) -> str:
    return f"{mirror}/download/release/{version}/node-{version}-{platform}.zip"


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def layout(tmp_path: Path) -> StoreLayout:
    store = StoreLayout.from_root(tmp_path / "root")
    store.ensure()
    return store


@pytest.fixture
def settings(layout: StoreLayout) -> Settings:
    return Settings(
        root=layout.root,
        mirror=MIRROR,
        runtime="node",
        platform="win-x64",
        timeout=5.0,
        transport="requests",
    )


@pytest.fixture
def release_zip() -> Callable[..., bytes]:
    """Build a zip shaped like an official release for ``version``/``platform``."""

    def make(version: str, platform: str, *, top: str | None = None, marker: str = "v1") -> bytes:
        root = top or f"node-{version}-{platform}"
        return build_zip(
            {
                f"{root}/node.exe": f"node {version} {platform}",
                f"{root}/marker.txt": marker,
            }
        )

    return make
