"""Entry point: python -m snipdown [build|show|list]

- "build [source_dir] [output]": Scan markdown files and write the manifest
- "show <slug> [manifest]":      Print a snippet's rendered HTML
- "list [manifest]":             Print slug and path of every manifest entry
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from snipdown.config import SnipdownConfig, load_config
from snipdown.errors import DuplicateSlugError, SnipdownError


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_build(config: SnipdownConfig, args: list[str]) -> None:
    from snipdown.manifest import write_manifest

    source_dir = Path(args[0]) if args else config.build.source_dir
    output = Path(args[1]) if len(args) > 1 else config.build.output
    write_manifest(source_dir, output)


async def _show(config: SnipdownConfig, slug: str) -> None:
    from snipdown.engine import SnippetEngine

    async with SnippetEngine.from_config(config.engine) as engine:
        print(await engine.get_html(slug))


async def _list(config: SnipdownConfig) -> None:
    from snipdown.engine import SnippetEngine

    async with SnippetEngine.from_config(config.engine) as engine:
        for entry in await engine.list_all():
            print(f"{entry.slug}\t{entry.path}")


def _usage() -> None:
    print("Usage: python -m snipdown [build|show|list]")
    print("  build [source_dir] [output]  - Write the snippet manifest")
    print("  show <slug> [manifest]       - Print a snippet's rendered HTML")
    print("  list [manifest]              - List manifest entries")


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        _usage()
        return 1

    cmd, args = argv[0], argv[1:]
    logger = logging.getLogger("snipdown")
    try:
        config = load_config()
    except ValueError as e:
        _setup_logging("INFO")
        logger.error("Invalid configuration: %s", e)
        return 1
    _setup_logging(config.log_level)

    try:
        if cmd == "build":
            _run_build(config, args)
        elif cmd == "show" and args:
            if len(args) > 1:
                config.engine.manifest = args[1]
            asyncio.run(_show(config, args[0]))
        elif cmd == "list":
            if args:
                config.engine.manifest = args[0]
            asyncio.run(_list(config))
        else:
            _usage()
            return 1
    except DuplicateSlugError as e:
        logger.error("%s", e)
        return 2
    except (SnipdownError, ValueError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
