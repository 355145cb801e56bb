"""Version resolution against the release catalog and the local store."""

from __future__ import annotations

import logging
from typing import Sequence

from .availability import ArtifactAvailabilityChecker
from .catalog import CatalogEntry
from .errors import NotInstalledError, PlatformUnavailableError, ResolutionError
from .models import InstalledVersion, ResolvedVersion
from .platform import fallback_for
from .versions import is_major_only, matches_tag, normalize_tag, pick_greatest

__all__ = ["VersionResolver", "select_entry"]

log = logging.getLogger(__name__)


def select_entry(tag: str, entries: Sequence[CatalogEntry]) -> CatalogEntry | None:
    """Pick the newest catalog entry matching an already-normalized tag.

    ``latest`` and ``lts`` are aliases for the newest release and the newest
    LTS release. Other tags match by version prefix on whole components only,
    so ``v12.2`` selects among ``v12.2.x`` and never ``v12.22.1`` the way a
    plain string prefix would.
    """

    if tag == "latest":
        return pick_greatest(entries, lambda entry: entry.version)
    if tag == "lts":
        return pick_greatest((e for e in entries if e.is_lts), lambda entry: entry.version)
    if is_major_only(tag):
        prefix = f"{tag}."
        candidates = [e for e in entries if e.version.startswith(prefix)]
    else:
        candidates = [e for e in entries if matches_tag(e.version, tag)]
    return pick_greatest(candidates, lambda entry: entry.version)


class VersionResolver:
    """Turns a raw user tag into a concrete, platform-available version."""

    def __init__(self, checker: ArtifactAvailabilityChecker) -> None:
        self.checker = checker

    def resolve(
        self,
        raw_tag: str,
        platform: str,
        entries: Sequence[CatalogEntry],
    ) -> ResolvedVersion:
        tag = normalize_tag(raw_tag)
        if not tag:
            raise ResolutionError("empty version tag")
        entry = select_entry(tag, entries)
        if entry is None:
            raise ResolutionError(
                f"no release matches {raw_tag!r}",
                hint="run 'nodeswap list --available' to see known releases",
            )
        log.info("tag %r matched %s", raw_tag, entry.version)

        if self.checker.exists(entry.version, platform):
            return ResolvedVersion(version=entry.version, platform=platform)

        probed = [platform]
        fallback = fallback_for(platform)
        if fallback is not None:
            probed.append(fallback)
            if self.checker.exists(entry.version, fallback):
                raise PlatformUnavailableError(entry.version, platform, fallback)
        raise ResolutionError(
            f"no build of {entry.version} exists for {', '.join(probed)}"
        )

    def resolve_installed(
        self,
        raw_tag: str,
        platform: str,
        installed: Sequence[InstalledVersion],
    ) -> InstalledVersion:
        tag = normalize_tag(raw_tag)
        if not tag:
            raise NotInstalledError("empty version tag")
        candidates = [item for item in installed if item.platform == platform]
        if tag == "latest":
            chosen = pick_greatest(candidates, lambda item: item.version)
        elif tag == "lts":
            raise NotInstalledError(
                "'lts' can only be resolved against the release catalog",
                hint="pass an explicit version such as 20",
            )
        else:
            chosen = pick_greatest(
                (item for item in candidates if matches_tag(item.version, tag)),
                lambda item: item.version,
            )
        if chosen is None:
            raise NotInstalledError(
                f"{raw_tag!r} is not installed for {platform}",
                hint=f"run 'nodeswap install {raw_tag}' first",
            )
        return chosen
