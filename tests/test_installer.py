"""Tests for the install lifecycle: download, extract, locate and replace."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from conftest import MIRROR, FakeTransport, artifact, build_zip
from nodeswap_core.errors import DownloadError, ExtractError, LocateError
from nodeswap_core.events import Event, EventBus
from nodeswap_core.installer import InstallManager, InstallState
from nodeswap_core.models import ResolvedVersion
from nodeswap_core.paths import StoreLayout

RELEASE = ResolvedVersion("v12.22.1", "win-x64")


def _manager(layout: StoreLayout, transport: FakeTransport, events: EventBus | None = None) -> InstallManager:
    return InstallManager(layout, transport, mirror=MIRROR, runtime="node", events=events)


def _states(events: EventBus) -> list[InstallState]:
    seen: list[InstallState] = []

    def record(event: Event) -> None:
        seen.append(event.payload["state"])

    events.on("install.state", record)
    return seen


def test_install_creates_canonical_tree(
    layout: StoreLayout, fake_transport: FakeTransport, release_zip: Callable[..., bytes]
) -> None:
    fake_transport.publish(artifact("v12.22.1", "win-x64"), release_zip("v12.22.1", "win-x64"))
    events = EventBus()
    states = _states(events)

    installed = _manager(layout, fake_transport, events).install(RELEASE)

    expected = layout.versions_dir / "v12.22.1" / "win-x64" / "node-v12.22.1-win-x64"
    assert installed.install_path == expected
    assert (expected / "node.exe").is_file()
    assert states == [InstallState.FETCHING, InstallState.EXTRACTING, InstallState.INSTALLED]
    assert not any(layout.cache_dir.iterdir())
    assert sorted(p.name for p in (layout.versions_dir / "v12.22.1").iterdir()) == ["win-x64"]


def test_install_is_idempotent_and_replaces_content(
    layout: StoreLayout, fake_transport: FakeTransport, release_zip: Callable[..., bytes]
) -> None:
    url = artifact("v12.22.1", "win-x64")
    manager = _manager(layout, fake_transport)

    fake_transport.publish(url, release_zip("v12.22.1", "win-x64", marker="first"))
    first = manager.install(RELEASE)
    (first.install_path / "stale.txt").write_text("left over")

    fake_transport.publish(url, release_zip("v12.22.1", "win-x64", marker="second"))
    second = manager.install(RELEASE)

    assert second == first
    assert (second.install_path / "marker.txt").read_text() == "second"
    assert not (second.install_path / "stale.txt").exists()
    platform_dir = layout.platform_dir("v12.22.1", "win-x64")
    assert [p.name for p in platform_dir.iterdir()] == ["node-v12.22.1-win-x64"]
    assert [p.name for p in platform_dir.parent.iterdir()] == ["win-x64"]


def test_locate_falls_back_to_first_child(
    layout: StoreLayout, fake_transport: FakeTransport, release_zip: Callable[..., bytes]
) -> None:
    fake_transport.publish(
        artifact("v12.22.1", "win-x64"),
        release_zip("v12.22.1", "win-x64", top="custom-layout"),
    )
    installed = _manager(layout, fake_transport).install(RELEASE)
    assert installed.install_path.name == "custom-layout"
    assert _manager(layout, fake_transport).find("v12.22.1", "win-x64") == installed


def test_locate_error_leaves_no_trace(layout: StoreLayout, fake_transport: FakeTransport) -> None:
    fake_transport.publish(artifact("v12.22.1", "win-x64"), build_zip({"README.md": "flat"}))
    events = EventBus()
    states = _states(events)

    with pytest.raises(LocateError):
        _manager(layout, fake_transport, events).install(RELEASE)

    assert not (layout.versions_dir / "v12.22.1").exists()
    assert not any(layout.cache_dir.iterdir())
    assert states[-1] is InstallState.NOT_INSTALLED


def test_download_error_keeps_previous_install(
    layout: StoreLayout, fake_transport: FakeTransport, release_zip: Callable[..., bytes]
) -> None:
    url = artifact("v12.22.1", "win-x64")
    manager = _manager(layout, fake_transport)
    fake_transport.publish(url, release_zip("v12.22.1", "win-x64", marker="kept"))
    installed = manager.install(RELEASE)

    fake_transport.broken.add(url)
    with pytest.raises(DownloadError):
        manager.install(RELEASE)

    assert (installed.install_path / "marker.txt").read_text() == "kept"
    assert not any(layout.cache_dir.iterdir())


def test_download_error_on_fresh_store(layout: StoreLayout, fake_transport: FakeTransport) -> None:
    with pytest.raises(DownloadError):
        _manager(layout, fake_transport).install(RELEASE)
    assert not any(layout.versions_dir.iterdir())
    assert not any(layout.cache_dir.iterdir())


def test_corrupt_archive_raises_extract_error(layout: StoreLayout, fake_transport: FakeTransport) -> None:
    fake_transport.publish(artifact("v12.22.1", "win-x64"), b"definitely not a zip")
    with pytest.raises(ExtractError):
        _manager(layout, fake_transport).install(RELEASE)
    assert not any(layout.versions_dir.iterdir())
    assert not any(layout.cache_dir.iterdir())


def test_zip_members_cannot_escape(layout: StoreLayout, fake_transport: FakeTransport) -> None:
    fake_transport.publish(
        artifact("v12.22.1", "win-x64"),
        build_zip({"../../evil.txt": "x", "node-v12.22.1-win-x64/node.exe": "ok"}),
    )
    with pytest.raises(ExtractError):
        _manager(layout, fake_transport).install(RELEASE)
    assert not (layout.root / "evil.txt").exists()
    assert not (layout.versions_dir / "evil.txt").exists()


def test_installed_lists_sorted_and_skips_staging(
    layout: StoreLayout, fake_transport: FakeTransport, release_zip: Callable[..., bytes]
) -> None:
    manager = _manager(layout, fake_transport)
    for version, platform in [("v12.10.0", "win-x64"), ("v12.9.0", "win-x64"), ("v12.9.0", "win-x86")]:
        fake_transport.publish(artifact(version, platform), release_zip(version, platform))
        manager.install(ResolvedVersion(version, platform))

    (layout.versions_dir / "v12.9.0" / ".win-x64.staging-abc" / "half").mkdir(parents=True)
    (layout.versions_dir / "v12.9.0" / "win-arm64").mkdir()
    (layout.versions_dir / "not-a-version").mkdir()

    listed = [(i.version, i.platform) for i in manager.installed()]
    assert listed == [("v12.9.0", "win-x64"), ("v12.9.0", "win-x86"), ("v12.10.0", "win-x64")]
    assert [i.version for i in manager.installed("win-x86")] == ["v12.9.0"]


def test_delete_prunes_empty_version_dir(
    layout: StoreLayout, fake_transport: FakeTransport, release_zip: Callable[..., bytes]
) -> None:
    fake_transport.publish(artifact("v12.22.1", "win-x64"), release_zip("v12.22.1", "win-x64"))
    events = EventBus()
    manager = _manager(layout, fake_transport, events)
    installed = manager.install(RELEASE)
    states = _states(events)

    manager.delete(installed)

    assert not (layout.versions_dir / "v12.22.1").exists()
    assert states == [InstallState.REMOVED]
    assert manager.installed() == []


def test_find_returns_none_for_missing(layout: StoreLayout, fake_transport: FakeTransport) -> None:
    assert _manager(layout, fake_transport).find("v1.0.0", "win-x64") is None
    empty = layout.platform_dir("v1.0.0", "win-x64")
    empty.mkdir(parents=True)
    assert _manager(layout, fake_transport).find("v1.0.0", "win-x64") is None


def test_locate_prefers_conventional_name(layout: StoreLayout, fake_transport: FakeTransport, tmp_path: Path) -> None:
    extracted = tmp_path / "extracted"
    (extracted / "aaa").mkdir(parents=True)
    (extracted / "node-v1.0.0-win-x64").mkdir()
    located = _manager(layout, fake_transport).locate(extracted, "v1.0.0", "win-x64")
    assert located.name == "node-v1.0.0-win-x64"
