"""Typed errors raised by the nodeswap core."""

from __future__ import annotations

from typing import Sequence


class NodeswapError(Exception):
    """Base error carrying an optional remediation hint."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def format(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


class TransportError(NodeswapError):
    """Low-level transport failure (unreachable host, broken connection)."""


class DependencyMissingError(NodeswapError):
    """A required external transport tool is not available."""


class CatalogFetchError(NodeswapError):
    """The release catalog could not be fetched or parsed."""


class ResolutionError(NodeswapError):
    """No catalog entry matches the tag, or no build exists on any probed platform."""


class PlatformUnavailableError(NodeswapError):
    """A version matched but only the fallback platform has a build."""

    def __init__(self, version: str, platform: str, fallback: str) -> None:
        super().__init__(
            f"{version} has no build for {platform}, but one exists for {fallback}",
            hint=f"re-run with --platform {fallback}",
        )
        self.version = version
        self.platform = platform
        self.fallback = fallback


class PlatformDetectionError(NodeswapError):
    """The host architecture is not one of the recognised platform tags."""


class NotInstalledError(NodeswapError):
    """The tag does not match any locally installed version."""


class InstallError(NodeswapError):
    """Base class for install-time failures."""


class DownloadError(InstallError):
    """The artifact could not be fully retrieved."""


class ExtractError(InstallError):
    """The downloaded archive could not be extracted."""


class LocateError(InstallError):
    """The extracted archive contains no top-level directory."""

    def __init__(self, staging: str, candidates: Sequence[str] = ()) -> None:
        detail = ", ".join(candidates) if candidates else "no entries"
        super().__init__(f"no extracted directory found in {staging} ({detail})")
        self.candidates = tuple(candidates)
