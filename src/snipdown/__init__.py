"""snipdown: markdown snippets with front-matter, resolved from a manifest.

Layout of a content directory:
    content/snippets/
    ├── snippets-index.json            # Manifest built by `python -m snipdown build`
    ├── guides/
    │   └── introduction.md            # YAML front-matter + markdown body
    └── components/
        └── button.md
"""

from snipdown.engine import SnippetEngine, merge_front_matter
from snipdown.errors import (
    DuplicateSlugError,
    FetchError,
    FrontMatterParseError,
    InvalidSlug,
    ManifestLoadError,
    SnipdownError,
    SnippetNotFoundError,
)
from snipdown.front_matter import FrontMatterResult, parse_front_matter
from snipdown.manifest import build_manifest, load_manifest, write_manifest
from snipdown.models import (
    UNSET,
    InlineManifest,
    LocationManifest,
    ProducerManifest,
    Snippet,
    SnippetMeta,
    SnippetQuery,
)
from snipdown.paths import normalize_path, resolve_path
from snipdown.render import render_markdown
from snipdown.slug import normalize_slug

__all__ = [
    "UNSET",
    "DuplicateSlugError",
    "FetchError",
    "FrontMatterParseError",
    "FrontMatterResult",
    "InlineManifest",
    "InvalidSlug",
    "LocationManifest",
    "ManifestLoadError",
    "ProducerManifest",
    "SnipdownError",
    "Snippet",
    "SnippetEngine",
    "SnippetMeta",
    "SnippetNotFoundError",
    "SnippetQuery",
    "build_manifest",
    "load_manifest",
    "merge_front_matter",
    "normalize_path",
    "normalize_slug",
    "parse_front_matter",
    "render_markdown",
    "resolve_path",
    "write_manifest",
]
