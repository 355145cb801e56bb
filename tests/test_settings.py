"""Tests for settings layering and store layout helpers."""

from pathlib import Path

import pytest

from nodeswap_core.errors import PlatformDetectionError
from nodeswap_core.paths import CONFIG_FILE_NAME, INDEX_FILE_NAME, StoreLayout, UserDirs
from nodeswap_core.settings import DEFAULT_MIRROR, SETTINGS_FILE_NAME, SettingsResolver


def _user_dirs(tmp_path: Path) -> UserDirs:
    return UserDirs(
        config_dir_override=tmp_path / "user-config",
        data_dir_override=tmp_path / "user-data",
    )


def test_store_layout_from_root(tmp_path: Path) -> None:
    layout = StoreLayout.from_root(tmp_path / "store")
    layout.ensure()

    assert layout.versions_dir.is_dir()
    assert layout.cache_dir.is_dir()
    assert layout.current_link == tmp_path / "store" / "current"
    assert layout.index_file == tmp_path / "store" / INDEX_FILE_NAME
    assert layout.config_file == tmp_path / "store" / CONFIG_FILE_NAME
    assert layout.platform_dir("v12.22.1", "win-x64") == layout.versions_dir / "v12.22.1" / "win-x64"

    layout.ensure()


def test_mirror_resolution_precedence(tmp_path: Path) -> None:
    user_dirs = _user_dirs(tmp_path)
    config_dir = user_dirs.config_dir()
    config_dir.mkdir()
    (config_dir / SETTINGS_FILE_NAME).write_text('mirror = "https://user.example"')

    resolver = SettingsResolver(
        user_dirs=user_dirs,
        cli_overrides={"mirror": "https://cli.example"},
        env={"NODESWAP_MIRROR": "https://env.example"},
    )
    assert resolver.resolve_setting("mirror") == "https://cli.example"

    resolver = SettingsResolver(
        user_dirs=user_dirs,
        cli_overrides={"mirror": None},
        env={"NODESWAP_MIRROR": "https://env.example"},
    )
    assert resolver.resolve_setting("mirror") == "https://env.example"

    resolver = SettingsResolver(user_dirs=user_dirs, env={})
    assert resolver.resolve_setting("mirror") == "https://user.example"

    (config_dir / SETTINGS_FILE_NAME).unlink()
    assert resolver.resolve_setting("mirror") == DEFAULT_MIRROR


def test_resolve_builds_settings(tmp_path: Path) -> None:
    resolver = SettingsResolver(
        user_dirs=_user_dirs(tmp_path),
        cli_overrides={"mirror": "https://mirror.example/", "timeout": "7.5"},
        env={"PROCESSOR_ARCHITECTURE": "x86", "NODESWAP_TRANSPORT": "CURL"},
    )
    settings = resolver.resolve()

    assert settings.root == tmp_path / "user-data"
    assert settings.mirror == "https://mirror.example"
    assert settings.runtime == "node"
    assert settings.platform == "win-x86"
    assert settings.timeout == 7.5
    assert settings.transport == "curl"
    assert settings.layout.root == (tmp_path / "user-data").absolute()


def test_explicit_platform_wins_over_detection(tmp_path: Path) -> None:
    resolver = SettingsResolver(
        user_dirs=_user_dirs(tmp_path),
        env={"PROCESSOR_ARCHITECTURE": "x86", "NODESWAP_PLATFORM": "win-arm64"},
    )
    assert resolver.resolve().platform == "win-arm64"


def test_invalid_values_raise(tmp_path: Path) -> None:
    env = {"NODESWAP_PLATFORM": "win-x64"}
    with pytest.raises(ValueError):
        SettingsResolver(user_dirs=_user_dirs(tmp_path), env={**env, "NODESWAP_TRANSPORT": "wget"}).resolve()
    with pytest.raises(ValueError):
        SettingsResolver(user_dirs=_user_dirs(tmp_path), cli_overrides={"timeout": "soon"}, env=env).resolve()
    with pytest.raises(PlatformDetectionError):
        SettingsResolver(user_dirs=_user_dirs(tmp_path), env={"NODESWAP_PLATFORM": "linux-x64"}).resolve()


def test_unreadable_settings_file_is_ignored(tmp_path: Path) -> None:
    user_dirs = _user_dirs(tmp_path)
    user_dirs.config_dir().mkdir()
    (user_dirs.config_dir() / SETTINGS_FILE_NAME).write_text("mirror = [unterminated")
    resolver = SettingsResolver(user_dirs=user_dirs, env={})
    assert resolver.resolve_setting("mirror") == DEFAULT_MIRROR
