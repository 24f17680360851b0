"""Tests for document path resolution."""

from snipdown.paths import (
    is_absolute_url,
    join_path,
    manifest_base,
    normalize_path,
    resolve_path,
)


class TestNormalizePath:
    def test_collapses_separators(self):
        assert normalize_path("docs//a///b.md") == "docs/a/b.md"

    def test_keeps_scheme(self):
        assert normalize_path("https://cdn.example.com/a//b.md") == "https://cdn.example.com/a/b.md"

    def test_keeps_protocol_relative_prefix(self):
        assert normalize_path("//cdn.example.com//a.md") == "//cdn.example.com/a.md"

    def test_leaves_query_alone(self):
        assert normalize_path("a//b.md?next=http://x//y") == "a/b.md?next=http://x//y"


class TestIsAbsoluteUrl:
    def test_detection(self):
        assert is_absolute_url("https://example.com/a.md")
        assert is_absolute_url("file:///tmp/a.md")
        assert is_absolute_url("//cdn.example.com/a.md")
        assert not is_absolute_url("/assets/a.md")
        assert not is_absolute_url("docs/a.md")


class TestJoinPath:
    def test_filesystem_join(self):
        assert join_path("/assets/content", "docs/x.md") == "/assets/content/docs/x.md"

    def test_strips_one_leading_separator(self):
        assert join_path("/assets/content/", "/docs/x.md") == "/assets/content/docs/x.md"

    def test_url_join(self):
        assert join_path("https://cdn.example.com/content", "a/b.md") == (
            "https://cdn.example.com/content/a/b.md"
        )

    def test_url_join_parent(self):
        assert join_path("https://cdn.example.com/content/", "../shared/a.md") == (
            "https://cdn.example.com/shared/a.md"
        )


class TestManifestBase:
    def test_url(self):
        assert manifest_base("https://cdn.example.com/content/manifest.json?v=2#top") == (
            "https://cdn.example.com/content/"
        )

    def test_path(self):
        assert manifest_base("/assets/snippets/manifest.json") == "/assets/snippets"

    def test_bare_filename(self):
        assert manifest_base("manifest.json") is None
        assert manifest_base(None) is None


class TestResolvePath:
    def test_explicit_base(self):
        assert resolve_path("docs/x.md", base="/assets/content") == "/assets/content/docs/x.md"

    def test_absolute_url_normalized(self):
        assert resolve_path("https://cdn.example.com/a//b.md") == "https://cdn.example.com/a/b.md"

    def test_absolute_url_ignores_base(self):
        assert resolve_path(
            "https://cdn.example.com/a.md", "/m/manifest.json", "/assets"
        ) == "https://cdn.example.com/a.md"

    def test_base_wins_over_manifest_location(self):
        assert resolve_path(
            "guides/introduction.md",
            "/assets/snippets/manifest.json",
            "/assets/snippets/content",
        ) == "/assets/snippets/content/guides/introduction.md"

    def test_implicit_base_from_manifest_url(self):
        assert resolve_path(
            "company/who-we-are.md", "https://cdn.example.com/content/manifest.json"
        ) == "https://cdn.example.com/content/company/who-we-are.md"

    def test_implicit_base_from_manifest_path(self):
        assert resolve_path("a.md", "content/snippets-index.json") == "content/a.md"

    def test_no_base(self):
        assert resolve_path("docs//x.md") == "docs/x.md"
        assert resolve_path("docs/x.md", "manifest.json") == "docs/x.md"
