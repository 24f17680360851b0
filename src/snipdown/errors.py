"""Exception taxonomy shared by every snipdown component."""

from __future__ import annotations


class SnipdownError(Exception):
    """Base class for all snipdown errors."""


class InvalidSlug(SnipdownError, ValueError):
    """Raised when a value cannot be turned into a slug."""

    def __init__(self, value: str, message: str | None = None) -> None:
        super().__init__(message or f"Cannot normalize slug from {value!r}")
        self.value = value


class ManifestLoadError(SnipdownError):
    """Manifest source unreachable, malformed, or holding invalid entries."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class DuplicateSlugError(ManifestLoadError):
    """Two or more manifest entries share a slug."""

    def __init__(self, duplicates: list[str]) -> None:
        super().__init__(f"Duplicate slugs detected: {', '.join(duplicates)}")
        self.duplicates = duplicates


class FrontMatterParseError(SnipdownError):
    """A document's front-matter block is not valid YAML."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class SnippetNotFoundError(SnipdownError, LookupError):
    def __init__(self, slug: str) -> None:
        super().__init__(f"Snippet with slug '{slug}' was not found in the manifest.")
        self.slug = slug


class FetchError(SnipdownError):
    """A fetcher returned a non-success response."""

    def __init__(self, location: str, status: int | None = None, message: str | None = None) -> None:
        if message is None:
            message = f"Failed to fetch {location}"
            if status is not None:
                message += f" (status {status})"
        super().__init__(message)
        self.location = location
        self.status = status
