"""Version tag normalization and numeric ordering helpers."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple, TypeVar

__all__ = [
    "is_major_only",
    "matches_tag",
    "normalize_tag",
    "parse_version",
    "pick_greatest",
    "version_key",
]

_VERSION_RE = re.compile(r"^v(\d+)\.(\d+)\.(\d+)$")
_NUMERIC_TAG_RE = re.compile(r"^\d+(\.\d+){0,2}$")
_MAJOR_ONLY_RE = re.compile(r"^v\d+$")

T = TypeVar("T")


def normalize_tag(raw: str) -> str:
    """Map a user tag onto its canonical lowercase ``v``-prefixed form.

    ``12``, ``v12`` and ``V12`` all become ``v12``; full and partial triples
    keep their shape. Bare numeric forms such as ``12.22`` get the ``v``
    prefix too. Anything else is lowercased as-is.
    """

    tag = (raw or "").strip().lower()
    if _NUMERIC_TAG_RE.match(tag):
        return f"v{tag}"
    return tag


def is_major_only(tag: str) -> bool:
    return bool(_MAJOR_ONLY_RE.match(tag))


def parse_version(version: str) -> Tuple[int, int, int]:
    """Return the numeric ``(major, minor, patch)`` of ``vX.Y.Z``."""

    match = _VERSION_RE.match((version or "").strip().lower())
    if not match:
        raise ValueError(f"invalid version {version!r}, expected vMAJOR.MINOR.PATCH")
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def version_key(version: str) -> Tuple[int, int, int]:
    return parse_version(version)


def matches_tag(version: str, tag: str) -> bool:
    # prefix match on whole components so v12.2 never matches v12.22.x
    v = version.lower()
    return v == tag or v.startswith(tag + ".")


def pick_greatest(items: Iterable[T], version_of) -> Optional[T]:
    best: Optional[T] = None
    best_key: Tuple[int, int, int] | None = None
    for item in items:
        key = version_key(version_of(item))
        if best_key is None or key > best_key:
            best, best_key = item, key
    return best
