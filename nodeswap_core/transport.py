"""HTTP transports used for the catalog, availability probes and downloads."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol
from urllib.parse import urlsplit

import requests
from requests import RequestException

from .errors import DependencyMissingError, TransportError

__all__ = [
    "CurlTransport",
    "HttpTransport",
    "Transport",
    "build_transport",
    "redact_url",
]

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
TRANSPORT_NAMES = ("requests", "curl")


class Transport(Protocol):
    def get_text(self, url: str) -> str: ...

    def exists(self, url: str) -> bool: ...

    def download(self, url: str, out_path: Path) -> Path: ...


def redact_url(url: str) -> str:
    parsed = urlsplit(url)
    if parsed.password:
        return url.replace(parsed.netloc, parsed.netloc.replace(parsed.password, "***"))
    return url


@dataclass
class HttpTransport:
    """requests-based transport with per-call timeouts."""

    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = "nodeswap"
    session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.session = requests.Session()
        self.session.headers.setdefault("User-Agent", self.user_agent)

    def get_text(self, url: str) -> str:
        log.debug("GET %s", redact_url(url))
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except RequestException as exc:
            raise TransportError(f"GET {redact_url(url)} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise TransportError(f"GET {redact_url(url)} returned {resp.status_code}")
        return resp.text

    def exists(self, url: str) -> bool:
        log.debug("HEAD %s", redact_url(url))
        try:
            resp = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        except RequestException as exc:
            raise TransportError(f"HEAD {redact_url(url)} failed: {exc}") from exc
        return resp.status_code == 200

    def download(self, url: str, out_path: Path, *, chunk_size: int = 1024 * 1024) -> Path:
        log.debug("download %s -> %s", redact_url(url), out_path)
        try:
            resp = self.session.get(url, stream=True, timeout=self.timeout)
        except RequestException as exc:
            raise TransportError(f"download {redact_url(url)} failed: {exc}") from exc

        with resp:
            if resp.status_code >= 400:
                raise TransportError(f"download {redact_url(url)} returned {resp.status_code}")
            expected = resp.headers.get("Content-Length")
            written = 0
            out_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                with out_path.open("wb") as f:
                    for chunk in resp.iter_content(chunk_size=chunk_size):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
            except RequestException as exc:
                raise TransportError(f"download {redact_url(url)} interrupted: {exc}") from exc
        if expected is not None and expected.isdigit() and int(expected) != written:
            raise TransportError(
                f"download {redact_url(url)} truncated: got {written} of {expected} bytes"
            )
        return out_path


@dataclass
class CurlTransport:
    """Transport that shells out to the curl binary."""

    timeout: float = DEFAULT_TIMEOUT
    executable: str = "curl"

    def _binary(self) -> str:
        found = shutil.which(self.executable)
        if not found:
            raise DependencyMissingError(
                f"{self.executable} not found",
                hint="install curl and ensure it is available in PATH, or use --transport requests",
            )
        return found

    def _run(self, args: list[str], url: str) -> subprocess.CompletedProcess[str]:
        command = [self._binary(), "--silent", "--show-error", "--fail", "--location", *args, url]
        log.debug("curl %s", " ".join([*args, redact_url(url)]))
        try:
            return subprocess.run(
                command,
                check=False,
                capture_output=True,
                text=True,
                timeout=max(float(self.timeout), 1.0),
            )
        except subprocess.TimeoutExpired as exc:
            raise TransportError(f"curl {redact_url(url)} timed out after {self.timeout:.1f}s") from exc

    def get_text(self, url: str) -> str:
        result = self._run([], url)
        if result.returncode != 0:
            raise TransportError(
                f"curl {redact_url(url)} failed (exit={result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout

    def exists(self, url: str) -> bool:
        # any nonzero exit counts as "not found", including network failures
        result = self._run(["--head"], url)
        return result.returncode == 0

    def download(self, url: str, out_path: Path) -> Path:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        result = self._run(["--output", str(out_path)], url)
        if result.returncode != 0:
            raise TransportError(
                f"curl {redact_url(url)} failed (exit={result.returncode}): {result.stderr.strip()}"
            )
        return out_path


def build_transport(name: str, *, timeout: float = DEFAULT_TIMEOUT) -> Transport:
    key = (name or "requests").strip().lower()
    if key == "requests":
        return HttpTransport(timeout=timeout)
    if key == "curl":
        transport = CurlTransport(timeout=timeout)
        transport._binary()
        return transport
    raise ValueError(f"unknown transport {name!r}, expected one of {', '.join(TRANSPORT_NAMES)}")
