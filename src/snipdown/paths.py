"""Resolve where a snippet document lives.

Document paths in a manifest are usually relative to the manifest itself,
but may also be absolute URLs or be rebased onto an explicit ``base``.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit, urlunsplit

_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_DUPLICATE_SEPARATORS = re.compile(r"/{2,}")


def is_absolute_url(value: str) -> bool:
    """True for ``scheme://...`` and protocol-relative ``//host/...`` values."""
    return bool(_SCHEME.match(value)) or (value.startswith("//") and not value.startswith("///"))


def _split_prefix(value: str) -> tuple[str, str]:
    match = _SCHEME.match(value)
    if match:
        return match.group(0), value[match.end():]
    if is_absolute_url(value):
        return "//", value[2:]
    return "", value


def normalize_path(value: str) -> str:
    """Collapse repeated ``/`` in the path part of ``value``.

    The ``scheme://`` prefix, a protocol-relative leading ``//`` and any query
    string or fragment are left as they are.
    """
    prefix, rest = _split_prefix(value)
    cut = len(rest)
    for marker in ("?", "#"):
        index = rest.find(marker)
        if index != -1:
            cut = min(cut, index)
    return prefix + _DUPLICATE_SEPARATORS.sub("/", rest[:cut]) + rest[cut:]


def join_path(base: str, relative: str) -> str:
    """Join ``relative`` onto ``base``, treating ``base`` as a directory."""
    if relative.startswith("/"):
        relative = relative[1:]
    if is_absolute_url(base):
        if not base.endswith("/"):
            base += "/"
        return normalize_path(urljoin(base, relative))
    if not base:
        return normalize_path(relative)
    return normalize_path(base.rstrip("/") + "/" + relative)


def manifest_base(location: str | None) -> str | None:
    """Directory containing the manifest at ``location``, or None.

    URL query strings and fragments are dropped before taking the directory.
    """
    if not location:
        return None
    if is_absolute_url(location):
        parts = urlsplit(location)
        directory = parts.path.rsplit("/", 1)[0] + "/" if "/" in parts.path else "/"
        return urlunsplit((parts.scheme, parts.netloc, directory, "", ""))
    path = location.split("?", 1)[0].split("#", 1)[0].replace("\\", "/")
    if "/" not in path:
        return None
    directory = path.rsplit("/", 1)[0]
    return directory or "/"


def resolve_path(
    document_path: str,
    manifest_location: str | None = None,
    base: str | None = None,
) -> str:
    """Compute the fetch address for ``document_path``.

    Priority: absolute URLs are kept (normalized); an explicit ``base`` is
    joined next; otherwise the manifest's own directory is used; failing
    all of those the path is returned normalized as-is.
    """
    if is_absolute_url(document_path):
        return normalize_path(document_path)
    if base:
        return join_path(base, document_path)
    implicit = manifest_base(manifest_location)
    if implicit:
        return join_path(implicit, document_path)
    return normalize_path(document_path)
