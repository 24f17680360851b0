"""Snippet metadata, rendered snippets, queries and manifest sources."""

from __future__ import annotations

import copy
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal, Union

# Manifest keys that map onto SnippetMeta attributes.
KNOWN_FIELDS = ("slug", "path", "title", "type", "order", "tags", "group", "draft")
# Fields a document's front-matter may override.
OVERRIDABLE_FIELDS = ("title", "type", "order", "tags", "group", "draft")


class _Unset:
    """Marker for a field that was never set (distinct from an explicit None)."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Unset:
        return self

    def __deepcopy__(self, memo: dict) -> _Unset:
        return self


UNSET: Any = _Unset()


@dataclass
class SnippetMeta:
    """One manifest entry."""

    slug: str
    path: str
    title: str | None = None
    type: str | None = None
    order: float | int | None = None
    tags: list[str] | None = None
    group: str | None = UNSET
    draft: bool | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnippetMeta:
        """Build from the manifest JSON shape. Unknown keys are folded into ``extra``."""
        data = copy.deepcopy(data)
        extra = dict(data.pop("extra", None) or {})
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in KNOWN_FIELDS:
                kwargs[key] = value
            else:
                extra[key] = value
        return cls(extra=extra, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Manifest JSON shape.

        Unset and None optional fields are omitted, except an explicit None group.
        """
        out: dict[str, Any] = {"slug": self.slug, "path": self.path}
        for name in OVERRIDABLE_FIELDS:
            value = getattr(self, name)
            if value is UNSET:
                continue
            if value is None and name != "group":
                continue
            out[name] = copy.deepcopy(value)
        if self.extra:
            out["extra"] = copy.deepcopy(self.extra)
        return out

    def clone(self) -> SnippetMeta:
        return copy.deepcopy(self)


@dataclass
class Snippet(SnippetMeta):
    """A manifest entry enriched with its rendered HTML and body text."""

    html: str = ""
    raw: str = ""

    @property
    def markdown(self) -> str:
        return self.raw

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["html"] = self.html
        out["raw"] = self.raw
        return out


TagsMode = Literal["any", "all"]


@dataclass
class SnippetQuery:
    """Search filter. All given criteria must match."""

    tags: list[str] | None = None
    tags_mode: TagsMode = "any"
    type: str | None = None
    group: str | None = None

    def __post_init__(self) -> None:
        if self.tags_mode not in ("any", "all"):
            raise ValueError(f"tags_mode must be 'any' or 'all', got {self.tags_mode!r}")

    def matches(self, meta: SnippetMeta) -> bool:
        if self.type is not None and meta.type != self.type:
            return False
        if self.group is not None and meta.group != self.group:
            return False
        if self.tags:
            entry_tags = set(meta.tags or [])
            if self.tags_mode == "all":
                return all(tag in entry_tags for tag in self.tags)
            return any(tag in entry_tags for tag in self.tags)
        return True


# ── Manifest sources ─────────────────────────────────────────

ManifestEntries = list[Union[SnippetMeta, dict[str, Any]]]
ManifestProducer = Callable[[], Union[ManifestEntries, Awaitable[ManifestEntries]]]


@dataclass
class InlineManifest:
    """Manifest entries held in memory."""

    entries: ManifestEntries


@dataclass
class ProducerManifest:
    """Zero-argument callable (sync or async) returning manifest entries."""

    producer: ManifestProducer


@dataclass
class LocationManifest:
    """URL or file path of a JSON array manifest."""

    location: str


ManifestSource = Union[InlineManifest, ProducerManifest, LocationManifest]
