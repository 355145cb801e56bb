"""The single ``current`` link and the operations that move it."""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

from .events import EventBus
from .installer import InstallManager
from .models import InstalledVersion
from .paths import StoreLayout

__all__ = ["ActiveLink", "LinkSwitcher"]

log = logging.getLogger(__name__)

_EXTENDED_PREFIX = "\\\\?\\"
_EXTENDED_UNC_PREFIX = "\\\\?\\UNC\\"


def _strip_extended_prefix(raw: str) -> str:
    """Drop the Windows extended-length prefix that ``os.readlink`` returns."""
    if raw.startswith(_EXTENDED_UNC_PREFIX):
        return "\\\\" + raw[len(_EXTENDED_UNC_PREFIX):]
    if raw.startswith(_EXTENDED_PREFIX):
        return raw[len(_EXTENDED_PREFIX):]
    return raw


class ActiveLink:
    """Persisted record of the active install: a directory symlink or nothing.

    Only :class:`LinkSwitcher` should call :meth:`replace` and :meth:`clear`.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> Path | None:
        if not self.path.is_symlink():
            return None
        target = Path(_strip_extended_prefix(os.readlink(self.path)))
        if not target.is_absolute():
            target = self.path.parent / target
        return target

    def replace(self, target: Path) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex[:8]}")
        os.symlink(target, tmp, target_is_directory=True)
        try:
            os.replace(tmp, self.path)
        except OSError as exc:
            # replacing a directory link is refused on some platforms:
            # fall back to remove-then-rename, leaving a short window with no link
            log.debug("atomic link swap refused (%s), replacing in two steps", exc)
            try:
                self.clear()
                os.replace(tmp, self.path)
            except BaseException:
                tmp.unlink(missing_ok=True)
                raise

    def clear(self) -> bool:
        if self.path.is_symlink():
            self.path.unlink()
            return True
        if self.path.exists():
            raise IsADirectoryError(f"{self.path} exists and is not a link; refusing to remove it")
        return False


class LinkSwitcher:
    def __init__(
        self,
        layout: StoreLayout,
        installer: InstallManager,
        *,
        events: EventBus | None = None,
    ) -> None:
        self.layout = layout
        self.installer = installer
        self.link = ActiveLink(layout.current_link)
        self.events = events or EventBus()

    def activate(self, installed: InstalledVersion) -> None:
        if not installed.install_path.is_dir():
            raise FileNotFoundError(f"install path {installed.install_path} does not exist")
        self.link.replace(installed.install_path)
        log.info("current -> %s", installed.install_path)
        self.events.emit("link.activated", installed.to_dict())

    def current(self) -> InstalledVersion | None:
        target = self.link.read()
        if target is None:
            return None
        if not target.is_dir():
            log.warning("current link points at missing path %s", target)
            return None
        try:
            relative = target.relative_to(self.layout.versions_dir)
        except ValueError:
            log.warning("current link points outside the store: %s", target)
            return None
        parts = relative.parts
        if len(parts) < 3:
            log.warning("current link target %s is not an extracted tree", target)
            return None
        return InstalledVersion(version=parts[0], platform=parts[1], install_path=target)

    def targets(self, installed: InstalledVersion) -> bool:
        target = self.link.read()
        if target is None:
            return False
        version_root = self.layout.platform_dir(installed.version, installed.platform)
        return target == version_root or version_root in target.parents

    def remove(self, installed: InstalledVersion) -> bool:
        """Delete ``installed``, clearing the link first when it is active.

        Returns True when the active link was cleared.
        """
        cleared = False
        if self.targets(installed):
            cleared = self.link.clear()
            self.events.emit("link.cleared", installed.to_dict())
        self.installer.delete(installed)
        return cleared
