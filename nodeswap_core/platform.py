"""Platform tag detection and the fixed architecture fallback table."""

from __future__ import annotations

import os
import platform as _platform
from typing import Mapping

from .errors import PlatformDetectionError

__all__ = [
    "FALLBACK_PLATFORMS",
    "PLATFORM_TAGS",
    "detect_platform",
    "fallback_for",
    "validate_platform",
]

OS_FAMILY = "win"

PLATFORM_TAGS: tuple[str, ...] = ("win-x64", "win-x86", "win-arm64")

# win-arm64 has no fallback
FALLBACK_PLATFORMS: Mapping[str, str] = {
    "win-x64": "win-x86",
    "win-x86": "win-x64",
}

_ARCH_MAP: Mapping[str, str] = {
    "amd64": "x64",
    "x86_64": "x64",
    "x64": "x64",
    "em64t": "x64",
    "x86": "x86",
    "i386": "x86",
    "i686": "x86",
    "arm64": "arm64",
    "aarch64": "arm64",
}


def _normalize_arch(machine: str | None) -> str | None:
    if not machine:
        return None
    return _ARCH_MAP.get(machine.strip().lower())


def detect_platform(env: Mapping[str, str] | None = None, machine: str | None = None) -> str:
    """Derive the platform tag from the environment.

    ``PROCESSOR_ARCHITEW6432`` wins over ``PROCESSOR_ARCHITECTURE`` so a 32-bit
    interpreter on a 64-bit host still reports the host architecture. Without
    either variable the interpreter's machine string is used.
    """

    env = os.environ if env is None else env
    for candidate in (
        env.get("PROCESSOR_ARCHITEW6432"),
        env.get("PROCESSOR_ARCHITECTURE"),
        machine if machine is not None else _platform.machine(),
    ):
        arch = _normalize_arch(candidate)
        if arch:
            return f"{OS_FAMILY}-{arch}"
    raise PlatformDetectionError(
        f"unrecognised architecture {machine or _platform.machine()!r}",
        hint=f"pass --platform with one of {', '.join(PLATFORM_TAGS)}",
    )


def validate_platform(tag: str) -> str:
    value = (tag or "").strip().lower()
    if value not in PLATFORM_TAGS:
        raise PlatformDetectionError(
            f"unknown platform {tag!r}",
            hint=f"expected one of {', '.join(PLATFORM_TAGS)}",
        )
    return value


def fallback_for(tag: str) -> str | None:
    return FALLBACK_PLATFORMS.get(tag)
