"""Site configuration for Forge.

Configuration lives in ``forge.yaml`` at the site root. It is parsed with PyYAML
and mapped onto dataclasses with defaults applied for every missing key.

Key functions:
- load_config: Load and validate forge.yaml from a site directory.
- config_from_dict: Build a SiteConfig from an already-parsed mapping.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILENAME = "forge.yaml"


@dataclass
class TaxonomyConfig:
    """A configured taxonomy axis such as categories or tags.

    Attributes:
        name: Taxonomy name; also selects the post attribute that is grouped.
        slug: URL slug, defaults to the slugified name.
        paginate: Whether term pages are paginated.
        feed: Reserved for per-taxonomy feeds.
    """

    name: str
    slug: str | None = None
    paginate: bool = True
    feed: bool = False


@dataclass
class BuildConfig:
    output_dir: str = "public"
    content_dir: str = "content"
    templates_dir: str = "templates"
    static_dir: str = "static"
    posts_per_page: int = 10
    include_drafts: bool = False
    generate_feed: bool = True
    generate_sitemap: bool = True
    generate_search_index: bool = True
    syntax_highlighting: bool = True
    syntax_theme: str = "monokai"
    generate_toc: bool = True


def _default_taxonomies() -> list[TaxonomyConfig]:
    return [TaxonomyConfig(name="categories"), TaxonomyConfig(name="tags")]


@dataclass
class SiteConfig:
    """Top-level site configuration.

    Attributes:
        title: Site title.
        base_url: Absolute base URL used for permalinks.
        language: Primary language code, also the default for translations.
        author: Site author.
        description: Site description.
        theme: Theme name under ``themes/``.
        port: Development server HTTP port.
        build: Build settings.
        taxonomies: Configured taxonomies.
        extra: Free-form data exposed to templates.
    """

    title: str = "My Forge Site"
    base_url: str = "http://localhost:3000"
    language: str = "en"
    author: str = ""
    description: str = ""
    theme: str = "default"
    port: int = 3000
    build: BuildConfig = field(default_factory=BuildConfig)
    taxonomies: list[TaxonomyConfig] = field(default_factory=_default_taxonomies)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as plain data, used for hashing and templates."""
        return asdict(self)


def _pick(cls, payload: dict[str, Any], section: str) -> dict[str, Any]:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigError(f"Unknown key(s) in {section}: {', '.join(unknown)}")
    return dict(payload)


def config_from_dict(data: dict[str, Any]) -> SiteConfig:
    """Build and validate a SiteConfig from a parsed mapping.

    Args:
        data: Mapping parsed from forge.yaml.

    Returns:
        Validated SiteConfig.

    Raises:
        ConfigError: If a value has the wrong shape or fails validation.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")
    values = _pick(SiteConfig, data, "config")

    build_data = values.pop("build", None) or {}
    if not isinstance(build_data, dict):
        raise ConfigError("'build' must be a mapping")
    build = BuildConfig(**_pick(BuildConfig, build_data, "build"))

    taxonomies = _default_taxonomies()
    if "taxonomies" in values:
        raw_taxonomies = values.pop("taxonomies") or []
        if not isinstance(raw_taxonomies, list):
            raise ConfigError("'taxonomies' must be a list")
        taxonomies = []
        for entry in raw_taxonomies:
            if isinstance(entry, str):
                entry = {"name": entry}
            if not isinstance(entry, dict) or not entry.get("name"):
                raise ConfigError("Each taxonomy needs a 'name'")
            taxonomies.append(TaxonomyConfig(**_pick(TaxonomyConfig, entry, "taxonomy")))

    extra = values.pop("extra", None) or {}
    if not isinstance(extra, dict):
        raise ConfigError("'extra' must be a mapping")

    try:
        config = SiteConfig(build=build, taxonomies=taxonomies, extra=extra, **values)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc
    validate_config(config)
    return config


def validate_config(config: SiteConfig) -> None:
    """Check invariants the rest of the pipeline relies on.

    Raises:
        ConfigError: If the title is empty or posts_per_page is not positive.
    """
    if not str(config.title).strip():
        raise ConfigError("Site title cannot be empty")
    if not isinstance(config.build.posts_per_page, int) or config.build.posts_per_page <= 0:
        raise ConfigError("posts_per_page must be greater than 0")
    if not isinstance(config.port, int) or not 0 < config.port < 65536:
        raise ConfigError(f"Invalid port: {config.port!r}")


def load_config(site_dir: Path) -> SiteConfig:
    """Load site configuration from forge.yaml.

    Args:
        site_dir: Root directory of the site.

    Returns:
        SiteConfig with defaults applied.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid.
    """
    config_path = site_dir / CONFIG_FILENAME
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except (yaml.YAMLError, ValueError) as exc:
        raise ConfigError(f"YAML parse error in {config_path}: {exc}") from exc
    return config_from_dict(loaded)
