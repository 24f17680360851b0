"""Manifest loading (runtime) and building (from a directory of markdown files).

Manifest file format is a JSON array::

    [
      {"slug": "button", "path": "components/button.md", "type": "component"},
      {"slug": "introduction", "path": "guides/introduction.md"}
    ]
"""

from __future__ import annotations

import copy
import inspect
import json
import logging
from pathlib import Path
from typing import Any

import frontmatter

from snipdown.errors import DuplicateSlugError, InvalidSlug, ManifestLoadError
from snipdown.fetch import Fetcher, fetch_text
from snipdown.front_matter import normalize_tags, split_front_matter
from snipdown.models import (
    InlineManifest,
    LocationManifest,
    ManifestSource,
    ProducerManifest,
    SnippetMeta,
)
from snipdown.paths import normalize_path
from snipdown.slug import normalize_slug

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "snippets-index.json"


# ── Runtime loading ───────────────────────────────────────────


async def load_manifest(source: ManifestSource, fetcher: Fetcher) -> list[SnippetMeta]:
    """Resolve ``source`` into a validated list of entries.

    All-or-nothing: any failure raises ManifestLoadError with the original
    exception as its cause.
    """
    try:
        raw = await _read_source(source, fetcher)
    except ManifestLoadError:
        raise
    except Exception as e:
        raise ManifestLoadError(f"Failed to load manifest: {e}", e) from e

    if not isinstance(raw, list):
        raise ManifestLoadError(
            f"Manifest must be an array, got {type(raw).__name__}"
        )
    entries = [_validate_entry(index, item) for index, item in enumerate(raw)]
    ensure_unique_slugs(entries)
    logger.debug("Loaded manifest with %d entries", len(entries))
    return entries


async def _read_source(source: ManifestSource, fetcher: Fetcher) -> Any:
    if isinstance(source, InlineManifest):
        return source.entries
    if isinstance(source, ProducerManifest):
        result = source.producer()
        if inspect.isawaitable(result):
            result = await result
        return result
    if isinstance(source, LocationManifest):
        text = await fetch_text(fetcher, source.location)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ManifestLoadError(
                f"Manifest at {source.location} is not valid JSON: {e}", e
            ) from e
    raise ManifestLoadError(f"Unsupported manifest source: {source!r}")


def _validate_entry(index: int, item: Any) -> SnippetMeta:
    if isinstance(item, SnippetMeta):
        meta = copy.deepcopy(item)
    elif isinstance(item, dict):
        missing = [key for key in ("slug", "path") if not _is_text(item.get(key))]
        if missing:
            label = f"'{item['slug']}'" if _is_text(item.get("slug")) else f"#{index}"
            raise ManifestLoadError(
                f"Manifest entry {label} is missing required field(s): {', '.join(missing)}"
            )
        try:
            meta = SnippetMeta.from_dict(item)
        except (TypeError, ValueError) as e:
            raise ManifestLoadError(f"Manifest entry #{index} is malformed: {e}", e) from e
    else:
        raise ManifestLoadError(
            f"Manifest entry #{index} must be an object, got {type(item).__name__}"
        )

    if not _is_text(meta.slug) or not _is_text(meta.path):
        raise ManifestLoadError(f"Manifest entry #{index} requires non-empty slug and path")
    try:
        meta.slug = normalize_slug(meta.slug)
    except InvalidSlug as e:
        raise ManifestLoadError(f"Manifest entry #{index} has an invalid slug: {e}", e) from e
    meta.path = normalize_path(meta.path)
    if meta.tags is not None:
        meta.tags = normalize_tags(meta.tags)
    return meta


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def ensure_unique_slugs(entries: list[SnippetMeta]) -> None:
    seen: set[str] = set()
    duplicates: list[str] = []
    for entry in entries:
        if entry.slug in seen and entry.slug not in duplicates:
            duplicates.append(entry.slug)
        seen.add(entry.slug)
    if duplicates:
        raise DuplicateSlugError(duplicates)


# ── Building from a directory ─────────────────────────────────


def _read_metadata(path: Path) -> dict:
    """Parse YAML frontmatter from a markdown file."""
    post = frontmatter.load(str(path))
    return dict(post.metadata)


def create_entry(relative_path: str, data: dict[str, Any]) -> SnippetMeta:
    """Build a manifest entry for the file at ``relative_path`` (POSIX).

    The group always comes from the directory; a front-matter ``group`` key
    is kept in ``extra``.
    """
    meta, extra, slug = split_front_matter(data)
    if "group" in data:
        extra["group"] = data["group"]
    slug_source = slug if slug and slug.strip() else relative_path.removesuffix(".md")
    directory = relative_path.rsplit("/", 1)[0] if "/" in relative_path else ""
    return SnippetMeta(
        slug=normalize_slug(slug_source),
        path=relative_path,
        title=meta.get("title"),
        type=meta.get("type"),
        order=meta.get("order"),
        tags=meta.get("tags"),
        group=directory or "root",
        draft=True if meta.get("draft") is True else None,
        extra=extra,
    )


def _sort_key(entry: SnippetMeta) -> tuple:
    order = entry.order if entry.order is not None else float("inf")
    return (order, (entry.title or "").lower())


def build_manifest(source_dir: Path | str) -> list[SnippetMeta]:
    """Scan ``source_dir`` for ``*.md`` files and build manifest entries.

    Drafts are skipped. Entries are sorted by ``order`` (missing last), then
    title.

    Raises:
        DuplicateSlugError: two documents resolve to the same slug.
    """
    root = Path(source_dir).resolve()
    entries: list[SnippetMeta] = []
    for md_file in sorted(root.rglob("*.md")):
        relative = md_file.relative_to(root).as_posix()
        try:
            data = _read_metadata(md_file)
        except Exception as e:
            raise ManifestLoadError(f"Failed to parse front-matter in {relative}: {e}", e) from e
        entry = create_entry(relative, data)
        if entry.draft:
            logger.debug("Skipping draft %s", relative)
            continue
        entries.append(entry)

    ensure_unique_slugs(entries)
    entries.sort(key=_sort_key)
    return entries


def write_manifest(source_dir: Path | str, output: Path | str | None = None) -> Path:
    """Build the manifest for ``source_dir`` and write it as JSON."""
    entries = build_manifest(source_dir)
    target = Path(output) if output else Path(source_dir) / MANIFEST_FILENAME
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        json.dumps([entry.to_dict() for entry in entries], indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    logger.info("Wrote %d snippets to %s", len(entries), target)
    return target
