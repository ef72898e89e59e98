"""Wildcard host allow-listing for job URLs."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Iterable, Optional
from urllib.parse import urlsplit

from pydantic import AnyUrl, TypeAdapter, ValidationError

_ABSOLUTE_URL = TypeAdapter(AnyUrl)


def url_host(url: str) -> Optional[str]:
    """Return the host[:port] part of an absolute URL, or None if it has none.

    Strings that are not syntactically valid URLs (a space in the host, a
    bad port, ...) have no host either.
    """
    try:
        _ABSOLUTE_URL.validate_python(url)
    except ValidationError:
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    try:
        port = parts.port
    except ValueError:
        return None
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}" if port is not None else host


def host_matches(host: str, pattern: str) -> bool:
    pattern = pattern.strip().lower()
    if pattern == "*":
        return True
    return fnmatchcase(host.lower(), pattern)


def host_is_allowed(url: str, patterns: Iterable[str]) -> bool:
    host = url_host(url)
    if host is None:
        return False
    return any(host_matches(host, pattern) for pattern in patterns)
