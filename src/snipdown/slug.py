"""Slug normalization: arbitrary text to a lowercase-hyphenated identifier."""

from __future__ import annotations

import re

from snipdown.errors import InvalidSlug

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")
_REPEATED_DASH = re.compile(r"-{2,}")


def normalize_slug(value: str) -> str:
    """Normalize ``value`` into a slug.

    Trim, lowercase, turn every run of non-alphanumeric characters into a
    single hyphen and strip hyphens from both ends. Only ASCII letters and
    digits survive.

    Raises:
        InvalidSlug: if the input is blank or has no alphanumeric characters.
    """
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise InvalidSlug(value, "Cannot normalize an empty slug")

    slug = _NON_ALPHANUMERIC.sub("-", text.lower())
    slug = _REPEATED_DASH.sub("-", slug).strip("-")
    if not slug:
        raise InvalidSlug(value, f"Slug {value!r} does not contain any alphanumeric characters")
    return slug
