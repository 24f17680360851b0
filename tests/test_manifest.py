"""Tests for manifest loading and building."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from snipdown.errors import DuplicateSlugError, FetchError, ManifestLoadError
from snipdown.manifest import build_manifest, load_manifest, write_manifest
from snipdown.models import (
    UNSET,
    InlineManifest,
    LocationManifest,
    ProducerManifest,
    SnippetMeta,
)

ENTRIES = [
    {"slug": "introduction", "path": "guides//introduction.md", "title": "Introduction"},
    {"slug": "button", "path": "components/button.md", "tags": ["ui"], "variant": "primary"},
]


class RecordingFetcher:
    def __init__(self, documents: dict[str, str]):
        self.documents = documents
        self.calls: list[str] = []

    async def __call__(self, location: str) -> str:
        self.calls.append(location)
        if location not in self.documents:
            raise FetchError(location, 404)
        return self.documents[location]


@pytest.fixture
def fetcher() -> RecordingFetcher:
    return RecordingFetcher({"/manifest.json": json.dumps(ENTRIES)})


class TestLoadManifest:
    @pytest.mark.asyncio
    async def test_inline(self, fetcher: RecordingFetcher):
        entries = await load_manifest(InlineManifest(ENTRIES), fetcher)
        assert [e.slug for e in entries] == ["introduction", "button"]
        assert entries[0].path == "guides/introduction.md"
        assert entries[1].extra == {"variant": "primary"}
        assert entries[0].group is UNSET
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_sync_producer(self, fetcher: RecordingFetcher):
        entries = await load_manifest(ProducerManifest(lambda: ENTRIES), fetcher)
        assert len(entries) == 2

    @pytest.mark.asyncio
    async def test_async_producer(self, fetcher: RecordingFetcher):
        async def produce():
            return [SnippetMeta(slug="a", path="a.md")]

        entries = await load_manifest(ProducerManifest(produce), fetcher)
        assert entries[0].slug == "a"

    @pytest.mark.asyncio
    async def test_location(self, fetcher: RecordingFetcher):
        entries = await load_manifest(LocationManifest("/manifest.json"), fetcher)
        assert [e.slug for e in entries] == ["introduction", "button"]
        assert fetcher.calls == ["/manifest.json"]

    @pytest.mark.asyncio
    async def test_entries_are_copies(self, fetcher: RecordingFetcher):
        source = [{"slug": "a", "path": "a.md", "tags": ["x"]}]
        entries = await load_manifest(InlineManifest(source), fetcher)
        entries[0].tags.append("y")
        assert source[0]["tags"] == ["x"]

        meta = SnippetMeta(slug="b", path="b.md", extra={"k": [1]})
        loaded = await load_manifest(InlineManifest([meta]), fetcher)
        assert loaded[0] is not meta
        loaded[0].extra["k"].append(2)
        assert meta.extra == {"k": [1]}

    @pytest.mark.asyncio
    async def test_slugs_are_normalized(self, fetcher: RecordingFetcher):
        entries = await load_manifest(InlineManifest([{"slug": "Hello World", "path": "a.md"}]), fetcher)
        assert entries[0].slug == "hello-world"

    @pytest.mark.asyncio
    async def test_tags_string_is_split(self, fetcher: RecordingFetcher):
        entries = await load_manifest(
            InlineManifest([{"slug": "a", "path": "a.md", "tags": "ui, forms"}]), fetcher
        )
        assert entries[0].tags == ["ui", "forms"]

    @pytest.mark.asyncio
    async def test_empty_tags_list_kept(self, fetcher: RecordingFetcher):
        entries = await load_manifest(
            InlineManifest([{"slug": "a", "path": "a.md", "tags": []}]), fetcher
        )
        assert entries[0].tags == []
        assert entries[0].to_dict()["tags"] == []

    @pytest.mark.asyncio
    async def test_missing_path(self, fetcher: RecordingFetcher):
        with pytest.raises(ManifestLoadError, match="'orphan'.*path"):
            await load_manifest(InlineManifest([{"slug": "orphan"}]), fetcher)

    @pytest.mark.asyncio
    async def test_missing_slug(self, fetcher: RecordingFetcher):
        with pytest.raises(ManifestLoadError, match="#1.*slug"):
            await load_manifest(
                InlineManifest([{"slug": "ok", "path": "ok.md"}, {"path": "x.md"}]), fetcher
            )

    @pytest.mark.asyncio
    async def test_invalid_slug(self, fetcher: RecordingFetcher):
        with pytest.raises(ManifestLoadError, match="invalid slug"):
            await load_manifest(InlineManifest([{"slug": "???", "path": "x.md"}]), fetcher)

    @pytest.mark.asyncio
    async def test_non_object_entry(self, fetcher: RecordingFetcher):
        with pytest.raises(ManifestLoadError, match="must be an object"):
            await load_manifest(InlineManifest(["just-a-string"]), fetcher)

    @pytest.mark.asyncio
    async def test_duplicate_slugs_rejected(self, fetcher: RecordingFetcher):
        with pytest.raises(DuplicateSlugError) as excinfo:
            await load_manifest(
                InlineManifest([{"slug": "a", "path": "a.md"}, {"slug": "A", "path": "b.md"}]),
                fetcher,
            )
        assert excinfo.value.duplicates == ["a"]

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        fetcher = RecordingFetcher({"/m.json": "{not json"})
        with pytest.raises(ManifestLoadError) as excinfo:
            await load_manifest(LocationManifest("/m.json"), fetcher)
        assert excinfo.value.cause is not None

    @pytest.mark.asyncio
    async def test_non_array(self):
        fetcher = RecordingFetcher({"/m.json": '{"slug": "a"}'})
        with pytest.raises(ManifestLoadError, match="array"):
            await load_manifest(LocationManifest("/m.json"), fetcher)

    @pytest.mark.asyncio
    async def test_fetch_failure_wrapped(self, fetcher: RecordingFetcher):
        with pytest.raises(ManifestLoadError) as excinfo:
            await load_manifest(LocationManifest("/missing.json"), fetcher)
        assert isinstance(excinfo.value.cause, FetchError)
        assert excinfo.value.__cause__ is excinfo.value.cause

    @pytest.mark.asyncio
    async def test_producer_failure_wrapped(self, fetcher: RecordingFetcher):
        def boom():
            raise RuntimeError("boom")

        with pytest.raises(ManifestLoadError, match="boom"):
            await load_manifest(ProducerManifest(boom), fetcher)


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    root = tmp_path / "snippets"
    _write(root / "guides" / "introduction.md", "---\ntitle: Introduction\norder: 2\n---\n# Intro\n")
    _write(
        root / "components" / "button.md",
        "---\nslug: Button\ntitle: Button\norder: 1\ntype: component\n"
        "tags: ui, interactive\nvariant: primary\n---\n# Button\n",
    )
    _write(root / "top.md", "# No front-matter\n")
    _write(root / "drafts" / "wip.md", "---\ndraft: true\n---\nWIP\n")
    return root


class TestBuildManifest:
    def test_entries(self, content_dir: Path):
        entries = build_manifest(content_dir)
        assert [e.slug for e in entries] == ["button", "guides-introduction", "top"]

        button = entries[0]
        assert button.path == "components/button.md"
        assert button.group == "components"
        assert button.type == "component"
        assert button.tags == ["ui", "interactive"]
        assert button.extra == {"variant": "primary"}
        assert entries[2].group == "root"

    def test_front_matter_group_kept_in_extra(self, tmp_path: Path):
        root = tmp_path / "grouped"
        _write(root / "forms" / "input.md", "---\ngroup: widgets\n---\n# Input\n")
        entry = build_manifest(root)[0]
        assert entry.group == "forms"
        assert entry.extra == {"group": "widgets"}

    def test_skips_drafts(self, content_dir: Path):
        assert all(e.path != "drafts/wip.md" for e in build_manifest(content_dir))

    def test_duplicate_slugs(self, content_dir: Path):
        _write(content_dir / "other.md", "---\nslug: button\n---\nDup\n")
        with pytest.raises(DuplicateSlugError) as excinfo:
            build_manifest(content_dir)
        assert excinfo.value.duplicates == ["button"]

    def test_write_manifest(self, content_dir: Path):
        target = write_manifest(content_dir)
        assert target == content_dir / "snippets-index.json"
        data = json.loads(target.read_text(encoding="utf-8"))
        assert data[0]["slug"] == "button"
        assert data[0]["extra"] == {"variant": "primary"}
        assert "draft" not in data[0]

    @pytest.mark.asyncio
    async def test_written_manifest_loads(self, content_dir: Path, tmp_path: Path):
        target = write_manifest(content_dir, tmp_path / "out" / "index.json")
        text = target.read_text(encoding="utf-8")
        fetcher = RecordingFetcher({"index.json": text})
        entries = await load_manifest(LocationManifest("index.json"), fetcher)
        assert [e.slug for e in entries] == ["button", "guides-introduction", "top"]
        assert entries[0].extra == {"variant": "primary"}
