"""Application facade that wires the nodeswap components for one command."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .activation import LinkSwitcher
from .availability import ArtifactAvailabilityChecker
from .catalog import CatalogCache, CatalogEntry
from .config import ConfigStore
from .events import EventBus
from .installer import InstallManager
from .models import Config, InstalledVersion, ResolvedVersion
from .resolver import VersionResolver
from .settings import Settings
from .transport import Transport, build_transport


@dataclass(frozen=True)
class InstalledSummary:
    installed: InstalledVersion
    active: bool
    default: bool


class NodeswapApp:
    """Entry point that glues settings, transport, store and resolver together."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Transport | None = None,
        events: EventBus | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger("nodeswap_core.app")
        self.settings = settings
        self.layout = settings.layout
        self.layout.ensure()
        self.events = events or EventBus()
        self.transport = transport or build_transport(settings.transport, timeout=settings.timeout)
        self.catalog = CatalogCache(self.layout.index_file, self.transport, settings.mirror)
        self.checker = ArtifactAvailabilityChecker(self.transport, settings.mirror, settings.runtime)
        self.resolver = VersionResolver(self.checker)
        self.installer = InstallManager(
            self.layout,
            self.transport,
            mirror=settings.mirror,
            runtime=settings.runtime,
            events=self.events,
        )
        self.switcher = LinkSwitcher(self.layout, self.installer, events=self.events)
        self.config = ConfigStore(self.layout.config_file)

    @property
    def platform(self) -> str:
        return self.settings.platform

    # -------------------- resolution -----------------------

    def resolve(self, tag: str) -> ResolvedVersion:
        entries = self._refresh_catalog()
        return self.resolver.resolve(tag, self.platform, entries)

    def resolve_installed(self, tag: str) -> InstalledVersion:
        return self.resolver.resolve_installed(tag, self.platform, self.installer.installed())

    # -------------------- commands -------------------------

    def install(self, tag: str, *, activate: bool = False) -> InstalledVersion:
        resolved = self.resolve(tag)
        installed = self.installer.install(resolved)
        if activate:
            self.switcher.activate(installed)
        return installed

    def use(self, tag: str) -> InstalledVersion:
        installed = self.resolve_installed(tag)
        self.switcher.activate(installed)
        return installed

    def set_default(self, tag: str) -> InstalledVersion:
        installed = self.resolve_installed(tag)
        previous = self.switcher.current()
        # the default is only recorded once the link points at it
        self.switcher.activate(installed)
        try:
            self.config.set_default(installed.version, installed.platform)
        except BaseException:
            if previous is not None:
                self.switcher.activate(previous)
            else:
                self.switcher.link.clear()
            raise
        self.events.emit("default.set", installed.to_dict())
        return installed

    def remove(self, tag: str) -> tuple[InstalledVersion, bool]:
        installed = self.resolve_installed(tag)
        cleared = self.switcher.remove(installed)
        return installed, cleared

    def current(self) -> InstalledVersion | None:
        return self.switcher.current()

    def default(self) -> Config | None:
        return self.config.get_default()

    def list_installed(self) -> list[InstalledSummary]:
        active = self.switcher.current()
        default = self.config.get_default()
        summaries: list[InstalledSummary] = []
        for item in self.installer.installed():
            summaries.append(
                InstalledSummary(
                    installed=item,
                    active=active is not None
                    and (active.version, active.platform) == (item.version, item.platform),
                    default=default is not None
                    and (default.default, default.platform) == (item.version, item.platform),
                )
            )
        return summaries

    def list_available(self) -> Sequence[CatalogEntry]:
        return self._refresh_catalog()

    def _refresh_catalog(self) -> list[CatalogEntry]:
        entries = self.catalog.refresh()
        self.logger.debug("catalog %s has %d entries", self.catalog.url, len(entries))
        self.events.emit("catalog.refreshed", {"entries": len(entries)})
        return entries
