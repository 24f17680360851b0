"""SnippetEngine: loads the manifest, fetches, parses and renders snippets.

Responsibilities:
1. Manifest cache: one shared load per engine until invalidated
2. Snippet cache: slug → in-flight or finished task, so concurrent
   callers for the same slug share a single fetch+render
3. Path resolution: explicit base, else the manifest's own directory
4. Front-matter merge: document metadata overrides manifest metadata per field
5. Read-only listing and search over the manifest snapshot
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable
from dataclasses import fields
from functools import partial
from typing import Literal

from snipdown.config import EngineConfig
from snipdown.errors import FrontMatterParseError, InvalidSlug, SnippetNotFoundError
from snipdown.fetch import DefaultFetcher, Fetcher, fetch_text
from snipdown.front_matter import FrontMatterResult, parse_front_matter
from snipdown.manifest import load_manifest
from snipdown.models import (
    OVERRIDABLE_FIELDS,
    LocationManifest,
    ManifestSource,
    Snippet,
    SnippetMeta,
    SnippetQuery,
)
from snipdown.paths import resolve_path
from snipdown.render import Renderer, call_renderer, render_markdown
from snipdown.slug import normalize_slug

logger = logging.getLogger(__name__)

FrontMatterErrorPolicy = Literal["raise", "raw"]
SnippetPredicate = Callable[[SnippetMeta], bool]


def merge_front_matter(entry: SnippetMeta, front_matter: FrontMatterResult) -> SnippetMeta:
    """Overlay document front-matter on a manifest entry.

    Fields present in the front-matter win; everything else keeps the
    manifest value. ``slug`` and ``path`` always come from the manifest.
    """
    merged = entry.clone()
    for name in OVERRIDABLE_FIELDS:
        if name in front_matter.meta:
            setattr(merged, name, copy.deepcopy(front_matter.meta[name]))
    merged.extra = {**merged.extra, **copy.deepcopy(front_matter.extra)}
    return merged


class SnippetEngine:
    """Resolve snippets from a manifest, caching both manifest and documents."""

    def __init__(
        self,
        manifest: ManifestSource,
        *,
        fetcher: Fetcher | None = None,
        renderer: Renderer | None = None,
        base: str | None = None,
        cache: bool = True,
        front_matter: bool = True,
        on_front_matter_error: FrontMatterErrorPolicy = "raise",
        verbose: bool = False,
        resolve_path: Callable[[SnippetMeta], str] | None = None,
    ) -> None:
        if on_front_matter_error not in ("raise", "raw"):
            raise ValueError(
                f"on_front_matter_error must be 'raise' or 'raw', got {on_front_matter_error!r}"
            )
        self.manifest_source = manifest
        self._owns_fetcher = fetcher is None
        self.fetcher: Fetcher = fetcher if fetcher is not None else DefaultFetcher()
        self.renderer: Renderer = renderer or render_markdown
        self.base = base
        self.cache = cache
        self.front_matter = front_matter
        self.on_front_matter_error = on_front_matter_error
        self.verbose = verbose
        self._resolve_override = resolve_path
        self._manifest_task: asyncio.Future[list[SnippetMeta]] | None = None
        self._snippets: dict[str, asyncio.Future[Snippet]] = {}
        # Bumped by invalidate(); a get() that started earlier must not repopulate the cache.
        self._generation = 0

    @classmethod
    def from_config(cls, config: EngineConfig, **kwargs) -> SnippetEngine:
        """Build an engine whose manifest lives at ``config.manifest``."""
        owns_fetcher = "fetcher" not in kwargs
        if owns_fetcher:
            kwargs["fetcher"] = DefaultFetcher(timeout=config.timeout)
        engine = cls(
            LocationManifest(config.manifest),
            base=config.base,
            cache=config.cache,
            front_matter=config.front_matter,
            on_front_matter_error=config.on_front_matter_error,
            verbose=config.verbose,
            **kwargs,
        )
        engine._owns_fetcher = owns_fetcher
        return engine

    # ── Manifest ──────────────────────────────────────────────

    @property
    def manifest_location(self) -> str | None:
        if isinstance(self.manifest_source, LocationManifest):
            return self.manifest_source.location
        return None

    async def _load_manifest(self) -> list[SnippetMeta]:
        if not self.cache:
            return await load_manifest(self.manifest_source, self.fetcher)

        if self._manifest_task is None:
            logger.debug("Loading manifest")
            task = asyncio.ensure_future(load_manifest(self.manifest_source, self.fetcher))
            task.add_done_callback(self._on_manifest_done)
            self._manifest_task = task
        return await asyncio.shield(self._manifest_task)

    def _on_manifest_done(self, task: asyncio.Future) -> None:
        if task.cancelled() or task.exception() is not None:
            if self._manifest_task is task:
                self._manifest_task = None

    # ── Snippets ──────────────────────────────────────────────

    async def get(self, slug: str) -> Snippet:
        """Return the snippet for ``slug``.

        Every call returns its own copy; the cached snippet itself is never
        handed out.

        Raises:
            SnippetNotFoundError: the manifest has no entry with this slug.
        """
        generation = self._generation
        manifest = await self._load_manifest()
        entry = next((item for item in manifest if item.slug == slug), None)
        if entry is None:
            raise SnippetNotFoundError(slug)

        if not self.cache:
            return await self._build_snippet(entry)

        task = self._snippets.get(entry.slug)
        if task is None:
            logger.debug("Snippet cache miss: %s", entry.slug)
            task = asyncio.ensure_future(self._build_snippet(entry))
            task.add_done_callback(partial(self._on_snippet_done, entry.slug))
            if generation == self._generation:
                self._snippets[entry.slug] = task
            else:
                logger.debug("Not caching snippet %s: engine invalidated during load", entry.slug)
        else:
            logger.debug("Snippet cache hit: %s", entry.slug)
        return copy.deepcopy(await asyncio.shield(task))

    async def get_html(self, slug: str) -> str:
        snippet = await self.get(slug)
        return snippet.html

    def _on_snippet_done(self, slug: str, task: asyncio.Future) -> None:
        if task.cancelled() or task.exception() is not None:
            if self._snippets.get(slug) is task:
                del self._snippets[slug]

    def _resolve(self, entry: SnippetMeta) -> str:
        if self._resolve_override is not None:
            return self._resolve_override(entry.clone())
        return resolve_path(entry.path, self.manifest_location, self.base)

    async def _build_snippet(self, entry: SnippetMeta) -> Snippet:
        location = self._resolve(entry)
        logger.debug("Fetching snippet '%s' from %s", entry.slug, location)
        raw = await fetch_text(self.fetcher, location)

        body = raw
        meta = entry.clone()
        if self.front_matter:
            parsed = self._parse_front_matter(entry, raw)
            if parsed is not None:
                body = parsed.content
                meta = merge_front_matter(entry, parsed)
                if self.verbose and parsed.slug:
                    self._check_slug(entry, parsed.slug)

        html = await call_renderer(self.renderer, body)
        values = {f.name: getattr(meta, f.name) for f in fields(SnippetMeta)}
        return Snippet(**values, html=html, raw=body)

    def _parse_front_matter(self, entry: SnippetMeta, raw: str) -> FrontMatterResult | None:
        try:
            return parse_front_matter(raw)
        except FrontMatterParseError as e:
            if self.on_front_matter_error == "raise":
                raise
            if self.verbose:
                logger.warning(
                    "Front-matter of snippet '%s' could not be parsed, using raw content: %s",
                    entry.slug,
                    e,
                )
            return None

    def _check_slug(self, entry: SnippetMeta, declared: str) -> None:
        try:
            normalized = normalize_slug(declared)
        except InvalidSlug:
            logger.warning(
                "Front-matter slug '%s' of snippet '%s' is not a valid slug", declared, entry.slug
            )
            return
        if normalized != entry.slug:
            logger.warning(
                "Front-matter slug '%s' (normalized '%s') differs from manifest slug '%s'",
                declared,
                normalized,
                entry.slug,
            )

    # ── Listing & search ──────────────────────────────────────

    async def list(
        self,
        predicate: SnippetPredicate | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[SnippetMeta]:
        """Manifest entries matching ``predicate``, as independent copies."""
        manifest = await self._load_manifest()
        items = [entry.clone() for entry in manifest]
        if predicate is not None:
            items = [entry for entry in items if predicate(entry)]
        if offset > 0:
            items = items[offset:]
        if limit is not None:
            items = items[:limit]
        return items

    async def list_all(self) -> list[SnippetMeta]:
        return await self.list()

    async def list_by_group(self, group: str | None) -> list[SnippetMeta]:
        return await self.list(lambda entry: entry.group == group)

    async def list_by_type(self, type: str) -> list[SnippetMeta]:
        return await self.list(lambda entry: entry.type == type)

    async def search(self, query: SnippetQuery | None = None, **criteria) -> list[SnippetMeta]:
        """Filter by tags (``any``/``all``), type and group, combined with AND.

        Criteria may be passed as a SnippetQuery or as keyword arguments.
        """
        if query is None:
            query = SnippetQuery(**criteria)
        return await self.list(query.matches)

    # ── Invalidation & lifecycle ──────────────────────────────

    def invalidate(self) -> None:
        """Drop the manifest and every cached snippet."""
        self._generation += 1
        self._manifest_task = None
        self._snippets.clear()

    def invalidate_slug(self, slug: str) -> None:
        """Drop one cached snippet, leaving the manifest and other snippets."""
        self._snippets.pop(slug, None)

    async def aclose(self) -> None:
        """Release the default fetcher's HTTP session, if this engine created it."""
        close = getattr(self.fetcher, "close", None)
        if self._owns_fetcher and close and callable(close):
            await close()

    async def __aenter__(self) -> SnippetEngine:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
