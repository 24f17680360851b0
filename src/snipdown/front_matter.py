"""Front-matter parsing: split a leading YAML block from a markdown body.

A document may start with::

    ---
    title: Button
    tags: [ui, interactive]
    ---
    # Body

Recognized keys are type-checked and routed into ``meta`` (``slug`` is kept
apart); everything else lands in ``extra`` untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from snipdown.errors import FrontMatterParseError

_FRONT_MATTER = re.compile(
    r"^\ufeff?[ \t\r\n]*---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|$)",
    re.DOTALL,
)


@dataclass
class FrontMatterResult:
    content: str
    meta: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    slug: str | None = None
    has_front_matter: bool = False


def parse_front_matter(raw: str) -> FrontMatterResult:
    """Split ``raw`` into front-matter metadata and body.

    Raises:
        FrontMatterParseError: the block is present but its YAML is invalid.
    """
    match = _FRONT_MATTER.match(raw)
    if not match:
        return FrontMatterResult(content=raw)

    body = raw[match.end():]
    try:
        data = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError as e:
        raise FrontMatterParseError(f"Failed to parse snippet front-matter: {e}", e) from e

    if not isinstance(data, dict):
        return FrontMatterResult(content=body, has_front_matter=True)

    meta, extra, slug = split_front_matter(data)
    return FrontMatterResult(
        content=body,
        meta=meta,
        extra=extra,
        slug=slug,
        has_front_matter=True,
    )


def split_front_matter(data: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any], str | None]:
    """Route a front-matter mapping into ``(meta, extra, slug)``.

    Values of the wrong type for a recognized key are dropped, never coerced.
    """
    meta: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    slug: str | None = None

    for key, value in data.items():
        if key == "slug":
            slug = value if isinstance(value, str) else None
        elif key in ("title", "type"):
            if isinstance(value, str):
                meta[key] = value
        elif key == "order":
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                meta["order"] = value
        elif key == "tags":
            tags = normalize_tags(value)
            if tags is not None:
                meta["tags"] = tags
        elif key == "group":
            if value is None or isinstance(value, str):
                meta["group"] = value
        elif key == "draft":
            if isinstance(value, bool):
                meta["draft"] = value
        else:
            extra[str(key)] = value

    return meta, extra, slug


def normalize_tags(value: Any) -> list[str] | None:
    """Accept a list (stringified per element) or a comma-separated string.

    An explicit empty list is kept; None and "" mean no tags.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return None
