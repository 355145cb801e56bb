"""Install lifecycle for versions in the local store.

Every install goes ``NOT_INSTALLED -> FETCHING -> EXTRACTING -> INSTALLED``
and deleting it ends in ``REMOVED``. There is no failed state: the archive is
extracted into a dot-prefixed staging directory next to the target and only
renamed onto ``versions/<version>/<platform>`` once the extracted tree has
been located, so a failure at any step leaves the store as it was before.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from enum import Enum
from pathlib import Path

from .archive import Extractor, ZipExtractor
from .availability import artifact_name, artifact_url
from .errors import DownloadError, LocateError, TransportError
from .events import EventBus
from .models import InstalledVersion, ResolvedVersion
from .paths import StoreLayout
from .transport import Transport
from .versions import parse_version, version_key

__all__ = ["InstallManager", "InstallState"]

log = logging.getLogger(__name__)


class InstallState(str, Enum):
    NOT_INSTALLED = "not-installed"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    INSTALLED = "installed"
    REMOVED = "removed"


class InstallManager:
    def __init__(
        self,
        layout: StoreLayout,
        transport: Transport,
        *,
        mirror: str,
        runtime: str,
        extractor: Extractor | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.layout = layout
        self.transport = transport
        self.mirror = mirror
        self.runtime = runtime
        self.extractor = extractor or ZipExtractor()
        self.events = events or EventBus()

    # ------------------------ install -----------------------

    def install(self, resolved: ResolvedVersion) -> InstalledVersion:
        version, platform = resolved.version, resolved.platform
        target = self.layout.platform_dir(version, platform)
        url = artifact_url(self.mirror, self.runtime, version, platform)

        self._transition(resolved, InstallState.FETCHING, url=url)
        archive = self._download(resolved, url)

        version_root = target.parent
        version_root.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{platform}.staging-", dir=version_root))
        try:
            self._transition(resolved, InstallState.EXTRACTING)
            try:
                self.extractor.extract(archive, staging)
            finally:
                archive.unlink(missing_ok=True)
            extracted = self.locate(staging, version, platform)
            self._swap_into_place(staging, target)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            self._prune_empty(version_root)
            self._transition(resolved, self._state_on_disk(version, platform))
            raise

        installed = InstalledVersion(
            version=version,
            platform=platform,
            install_path=target / extracted.name,
        )
        self._transition(resolved, InstallState.INSTALLED, path=str(installed.install_path))
        log.info("installed %s %s at %s", version, platform, installed.install_path)
        return installed

    def _download(self, resolved: ResolvedVersion, url: str) -> Path:
        self.layout.cache_dir.mkdir(parents=True, exist_ok=True)
        prefix = artifact_name(self.runtime, resolved.version, resolved.platform) + "-"
        fd, tmp = tempfile.mkstemp(prefix=prefix, suffix=".zip", dir=self.layout.cache_dir)
        os.close(fd)
        archive = Path(tmp)
        try:
            self.transport.download(url, archive)
        except TransportError as exc:
            archive.unlink(missing_ok=True)
            self._transition(resolved, self._state_on_disk(resolved.version, resolved.platform))
            raise DownloadError(
                f"unable to download {resolved.version} for {resolved.platform}: {exc.message}"
            ) from exc
        except BaseException:
            archive.unlink(missing_ok=True)
            raise
        return archive

    def _swap_into_place(self, staging: Path, target: Path) -> None:
        if not target.exists():
            os.replace(staging, target)
            return
        old = target.with_name(f".{target.name}.old-{uuid.uuid4().hex[:8]}")
        os.replace(target, old)
        try:
            os.replace(staging, target)
        except OSError:
            os.replace(old, target)
            raise
        shutil.rmtree(old)

    # ------------------------ locate ------------------------

    def locate(self, directory: Path, version: str, platform: str) -> Path:
        """Find the single top-level extracted directory inside ``directory``."""
        preferred = directory / artifact_name(self.runtime, version, platform)
        if preferred.is_dir():
            return preferred
        children = sorted(
            child for child in directory.iterdir()
            if child.is_dir() and not child.name.startswith(".")
        )
        if children:
            log.debug("no %s in %s, using %s", preferred.name, directory, children[0].name)
            return children[0]
        raise LocateError(str(directory), [child.name for child in directory.iterdir()])

    # ------------------------ queries -----------------------

    def find(self, version: str, platform: str) -> InstalledVersion | None:
        target = self.layout.platform_dir(version, platform)
        if not target.is_dir():
            return None
        try:
            extracted = self.locate(target, version, platform)
        except LocateError:
            return None
        return InstalledVersion(version=version, platform=platform, install_path=extracted)

    def installed(self, platform: str | None = None) -> list[InstalledVersion]:
        root = self.layout.versions_dir
        if not root.exists():
            return []
        found: list[InstalledVersion] = []
        for version_path in root.iterdir():
            if not version_path.is_dir() or version_path.name.startswith("."):
                continue
            try:
                parse_version(version_path.name)
            except ValueError:
                continue
            for platform_path in version_path.iterdir():
                if platform_path.name.startswith(".") or not platform_path.is_dir():
                    continue
                if platform is not None and platform_path.name != platform:
                    continue
                item = self.find(version_path.name, platform_path.name)
                if item is not None:
                    found.append(item)
        return sorted(found, key=lambda item: (version_key(item.version), item.platform))

    # ------------------------ removal -----------------------

    def delete(self, installed: InstalledVersion) -> None:
        target = self.layout.platform_dir(installed.version, installed.platform)
        if target.exists():
            shutil.rmtree(target)
        self._prune_empty(target.parent)
        self._transition(
            ResolvedVersion(installed.version, installed.platform),
            InstallState.REMOVED,
        )
        log.info("removed %s %s", installed.version, installed.platform)

    # -------------------- helpers --------------------------

    def _state_on_disk(self, version: str, platform: str) -> InstallState:
        if self.find(version, platform) is not None:
            return InstallState.INSTALLED
        return InstallState.NOT_INSTALLED

    def _prune_empty(self, version_root: Path) -> None:
        if version_root.is_dir() and not any(version_root.iterdir()):
            version_root.rmdir()

    def _transition(self, resolved: ResolvedVersion, state: InstallState, **extra: str) -> None:
        log.debug("%s %s -> %s", resolved.version, resolved.platform, state.value)
        payload = {"version": resolved.version, "platform": resolved.platform, "state": state}
        payload.update(extra)
        self.events.emit("install.state", payload)
