"""
Path helpers for repository addressing.

Repository paths are "/"-delimited strings rooted at "/". Property paths
are "<node path>/<property name>" where the property name has the form
"ns:localName".
"""

from __future__ import annotations

import posixpath
from typing import Tuple

ROOT = "/"


def normalize_path(path: str, child: str = "") -> str:
    """Normalise a path, optionally joining a child onto it.

    Resolves ".", ".." and redundant slashes. The result is always
    absolute and never climbs above the root.

    Example:
        >>> normalize_path("/a//b/../c")
        '/a/c'
        >>> normalize_path("/a", "b")
        '/a/b'
    """
    normalized = posixpath.normpath(posixpath.join(ROOT, path or "", child))
    # normpath keeps a leading "//" as POSIX allows it to be special
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def dirname(path: str) -> str:
    """Return the parent path. The parent of the root is the root."""
    return posixpath.dirname(normalize_path(path))


def basename(path: str) -> str:
    """Return the last path segment, or "/" for the root."""
    normalized = normalize_path(path)
    if normalized == ROOT:
        return ROOT
    return posixpath.basename(normalized)


def join_path(*parts: str) -> str:
    """Join path segments into a normalised absolute path."""
    return normalize_path(posixpath.join(ROOT, *parts))


def split_property_path(path: str) -> Tuple[str, str]:
    """Split a property path into (node path, property name)."""
    normalized = normalize_path(path)
    return dirname(normalized), basename(normalized)


def split_namespace(name: str) -> Tuple[str, str]:
    """Split "ns:localName" into its prefix and local part.

    Names without a prefix return an empty prefix.
    """
    prefix, sep, local = name.partition(":")
    if not sep:
        return "", name
    return prefix, local
