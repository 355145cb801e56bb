"""Core runtime pieces for nodeswap: catalog, resolver, store and current link."""

from .activation import ActiveLink, LinkSwitcher
from .app import NodeswapApp
from .availability import ArtifactAvailabilityChecker, artifact_url
from .catalog import CatalogCache, CatalogEntry
from .config import ConfigStore
from .events import Event, EventBus
from .installer import InstallManager, InstallState
from .models import Config, InstalledVersion, ResolvedVersion
from .paths import StoreLayout, UserDirs
from .resolver import VersionResolver
from .settings import Settings, SettingsResolver
from .versions import normalize_tag

__all__ = [
    "ActiveLink",
    "ArtifactAvailabilityChecker",
    "CatalogCache",
    "CatalogEntry",
    "Config",
    "ConfigStore",
    "Event",
    "EventBus",
    "InstallManager",
    "InstallState",
    "InstalledVersion",
    "LinkSwitcher",
    "NodeswapApp",
    "ResolvedVersion",
    "Settings",
    "SettingsResolver",
    "StoreLayout",
    "UserDirs",
    "VersionResolver",
    "artifact_url",
    "normalize_tag",
]
