"""Unified configuration loaded from .docreader.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.

The resulting :class:`DocReaderConfig` is an immutable snapshot. Components
receive it at construction and swap it wholesale via ``update_settings``.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docreader.vault.models import normalize_path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".docreader.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "docreader" / "config.toml"

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class VaultConfig(_Section):
    """[vault] section - where documents live."""

    path: str = "."
    people_folder: str = "People"
    articles_folder: str = "Articles"
    image_folder: str = "assets/images"

    @field_validator("people_folder", "articles_folder", "image_folder")
    @classmethod
    def _normalize_folder(cls, value: str) -> str:
        folder = normalize_path(value)
        if not folder:
            raise ValueError("Vault folders must not be empty")
        return folder


class ClaudeConfig(_Section):
    """[claude] section - text-generation backend."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = Field(default=1024, ge=1)
    timeout: int = Field(default=120, ge=1)
    use_cli: bool = False


class ProcessingConfig(_Section):
    """[processing] section - which pipeline steps run."""

    source_marker: str = "web-clipper"
    download_images: bool = True
    generate_tags: bool = True
    organize_by_category: bool = True


class TagsConfig(_Section):
    """[tags] section."""

    prefix: str = "research/"
    max_tags: int = Field(default=5, ge=1, le=10)

    @field_validator("prefix")
    @classmethod
    def _lowercase_prefix(cls, value: str) -> str:
        return value.strip().lower()


class AuthorsConfig(_Section):
    """[authors] section."""

    frontmatter_key: str = "author"
    create_pages: bool = True
    use_claude: bool = True
    web_search: bool = True


class RelatedConfig(_Section):
    """[related] section."""

    enabled: bool = True
    max_articles: int = Field(default=5, ge=0)


class DocReaderConfig(_Section):
    """Top-level configuration snapshot for the enrichment pipeline."""

    vault: VaultConfig = Field(default_factory=VaultConfig)
    claude: ClaudeConfig = Field(default_factory=ClaudeConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    tags: TagsConfig = Field(default_factory=TagsConfig)
    authors: AuthorsConfig = Field(default_factory=AuthorsConfig)
    related: RelatedConfig = Field(default_factory=RelatedConfig)

    def with_updates(self, section: str, **values: object) -> DocReaderConfig:
        """Return a new validated snapshot with one section's fields replaced."""
        data = self.model_dump()
        if section not in data:
            raise KeyError(section)
        data[section].update(values)
        return DocReaderConfig.model_validate(data)


def load_config(path: str | Path | None = None) -> DocReaderConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .docreader.toml in CWD
    3. ~/.config/docreader/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged DocReaderConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = DocReaderConfig.model_validate(data) if data else DocReaderConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: DocReaderConfig, **cli_kwargs: object) -> DocReaderConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "vault": ("vault", "path"),
        "model": ("claude", "model"),
        "tag_prefix": ("tags", "prefix"),
        "max_tags": ("tags", "max_tags"),
        "use_cli": ("claude", "use_cli"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value
        else:
            logger.debug("Ignoring unknown CLI override %s", key)

    return DocReaderConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: DocReaderConfig) -> DocReaderConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "ANTHROPIC_API_KEY": ("claude", "api_key"),
        "DOCREADER_MODEL": ("claude", "model"),
        "DOCREADER_VAULT": ("vault", "path"),
        "DOCREADER_TAG_PREFIX": ("tags", "prefix"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None and value.strip():
            data[section][field] = value.strip()

    use_cli_raw = os.environ.get("DOCREADER_USE_CLI")
    if use_cli_raw is not None:
        data["claude"]["use_cli"] = use_cli_raw.strip().lower() in ("true", "1", "yes")

    return DocReaderConfig.model_validate(data)
