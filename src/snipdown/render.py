"""Markdown → HTML rendering."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Union

import markdown

Renderer = Callable[[str], Union[str, Awaitable[str]]]

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


def render_markdown(text: str) -> str:
    """Default renderer: Python-Markdown with the ``extra`` extension set."""
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


async def call_renderer(renderer: Renderer, text: str) -> str:
    html = renderer(text)
    if inspect.isawaitable(html):
        html = await html
    return html
