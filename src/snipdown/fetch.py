"""Fetcher contract and the default HTTP/file fetcher.

A fetcher is any callable taking a location and returning either the text
itself or a response-like object with ``ok``, ``status`` and ``text()``.
Both the call and ``text()`` may be sync or async, so an
``aiohttp.ClientResponse`` qualifies as-is.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Protocol, Union, runtime_checkable
from urllib.parse import unquote, urlsplit

import aiohttp

from snipdown.errors import FetchError

logger = logging.getLogger(__name__)


@runtime_checkable
class ResponseLike(Protocol):
    """What a fetcher may return instead of plain text."""

    @property
    def ok(self) -> bool: ...

    @property
    def status(self) -> int: ...

    def text(self) -> str | Awaitable[str]: ...


FetchResult = Union[str, ResponseLike]
Fetcher = Callable[[str], Union[FetchResult, Awaitable[FetchResult]]]


async def fetch_text(fetcher: Fetcher, location: str) -> str:
    """Call ``fetcher`` and reduce whatever it returns to text.

    Raises:
        FetchError: the response reports a non-success status.
    """
    result: Any = fetcher(location)
    if inspect.isawaitable(result):
        result = await result
    if isinstance(result, str):
        return result
    if isinstance(result, bytes):
        return result.decode("utf-8")

    if not getattr(result, "ok", False):
        raise FetchError(location, getattr(result, "status", None))
    text = result.text()
    if inspect.isawaitable(text):
        text = await text
    return text


class DefaultFetcher:
    """Fetch ``http(s)`` locations with aiohttp and everything else from disk.

    The ``aiohttp.ClientSession`` is created on first use and must be
    released with :meth:`close`.
    """

    def __init__(self, *, timeout: float = 30.0) -> None:
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def __call__(self, location: str) -> str:
        scheme = urlsplit(location).scheme.lower()
        if scheme in ("http", "https"):
            return await self._fetch_http(location)
        if scheme == "file":
            return await self._read_file(Path(unquote(urlsplit(location).path)), location)
        return await self._read_file(Path(location), location)

    async def _fetch_http(self, location: str) -> str:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        logger.debug("GET %s", location)
        try:
            async with self._session.get(location) as response:
                if response.status >= 400:
                    raise FetchError(location, response.status)
                return await response.text()
        except aiohttp.ClientError as e:
            raise FetchError(location, message=f"Failed to fetch {location}: {e}") from e

    async def _read_file(self, path: Path, location: str) -> str:
        logger.debug("Reading %s", path)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as e:
            raise FetchError(location, message=f"Failed to read {location}: {e}") from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
