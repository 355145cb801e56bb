"""Remote existence probe for per-platform release artifacts."""

from __future__ import annotations

import logging

from .errors import TransportError
from .transport import Transport, redact_url

__all__ = ["ArtifactAvailabilityChecker", "artifact_name", "artifact_url"]

log = logging.getLogger(__name__)


def artifact_name(runtime: str, version: str, platform: str) -> str:
    return f"{runtime}-{version}-{platform}"


def artifact_url(mirror: str, runtime: str, version: str, platform: str) -> str:
    name = artifact_name(runtime, version, platform)
    return f"{mirror.rstrip('/')}/download/release/{version}/{name}.zip"


class ArtifactAvailabilityChecker:
    """Answers whether an artifact exists without transferring it.

    A transport failure is reported as "not available" with a warning, the
    same way a missing artifact is. On a flaky network this can turn an
    existing build into a ResolutionError.
    """

    def __init__(self, transport: Transport, mirror: str, runtime: str) -> None:
        self.transport = transport
        self.mirror = mirror
        self.runtime = runtime

    def url_for(self, version: str, platform: str) -> str:
        return artifact_url(self.mirror, self.runtime, version, platform)

    def exists(self, version: str, platform: str) -> bool:
        url = self.url_for(version, platform)
        try:
            found = self.transport.exists(url)
        except TransportError as exc:
            log.warning("availability probe for %s failed, treating as missing: %s", redact_url(url), exc)
            return False
        log.debug("availability %s %s -> %s", version, platform, found)
        return found
