"""Configuration loading from environment variables and snipdown.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "snipdown.toml"
_DEFAULT_MANIFEST = "snippets-index.json"
_DEFAULT_SOURCE_DIR = Path("content") / "snippets"


@dataclass
class EngineConfig:
    """Configuration for a SnippetEngine."""

    manifest: str = _DEFAULT_MANIFEST
    base: str | None = None
    cache: bool = True
    front_matter: bool = True
    on_front_matter_error: str = "raise"
    verbose: bool = False
    timeout: float = 30.0


@dataclass
class BuildConfig:
    """Manifest builder configuration."""

    source_dir: Path = _DEFAULT_SOURCE_DIR
    output: Path | None = None


@dataclass
class SnipdownConfig:
    """Top-level snipdown configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    log_level: str = "INFO"


def _as_bool(value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(config_path: Path | None = None) -> SnipdownConfig:
    """Load configuration from environment variables and optional snipdown.toml.

    Priority: environment variables > snipdown.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.snipdown/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".snipdown" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    engine_data = file_data.get("engine", {})
    build_data = file_data.get("build", {})

    output = os.getenv("SNIPDOWN_OUTPUT", build_data.get("output"))
    config = SnipdownConfig(
        engine=EngineConfig(
            manifest=os.getenv("SNIPDOWN_MANIFEST", engine_data.get("manifest", _DEFAULT_MANIFEST)),
            base=os.getenv("SNIPDOWN_BASE", engine_data.get("base")),
            cache=_as_bool(os.getenv("SNIPDOWN_CACHE", engine_data.get("cache", True))),
            front_matter=_as_bool(
                os.getenv("SNIPDOWN_FRONT_MATTER", engine_data.get("front_matter", True))
            ),
            on_front_matter_error=os.getenv(
                "SNIPDOWN_ON_FRONT_MATTER_ERROR", engine_data.get("on_front_matter_error", "raise")
            ),
            verbose=_as_bool(os.getenv("SNIPDOWN_VERBOSE", engine_data.get("verbose", False))),
            timeout=float(os.getenv("SNIPDOWN_TIMEOUT", engine_data.get("timeout", 30.0))),
        ),
        build=BuildConfig(
            source_dir=Path(
                os.getenv("SNIPDOWN_SOURCE_DIR", build_data.get("source_dir", str(_DEFAULT_SOURCE_DIR)))
            ),
            output=Path(output) if output else None,
        ),
        log_level=os.getenv("SNIPDOWN_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
