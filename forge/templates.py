"""Template rendering engine for Forge.

This module uses Jinja2 to render the site's pages. Templates are looked up first
in the site's ``templates/`` directory and then in the active theme's
``themes/<theme>/templates/`` directory, so a site template overrides a theme
template of the same name. Undefined variables are errors.

Key class:
- TemplateEngine: Loads templates, installs helpers and renders by name.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
)

from .config import SiteConfig
from .errors import TemplateRenderError
from .frontmatter import parse_date
from .i18n import Translator
from .utils import slugify, truncate_words

DEFAULT_DATE_FORMAT = "%B %d, %Y"


def template_dirs(site_dir: Path, config: SiteConfig) -> list[Path]:
    """Template search path, highest priority first."""
    return [
        site_dir / config.build.templates_dir,
        site_dir / "themes" / config.theme / "templates",
    ]


def date_format(value: Any, format: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a datetime, date, or ISO-8601 string with ``strftime``.

    Raises:
        ValueError: If ``value`` is not a recognizable date.
    """
    if not isinstance(value, datetime):
        value = parse_date(value)
    return value.strftime(format)


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        site_dir: Site root directory.
        config: Site configuration.
        env: Jinja2 environment.
        translator: Translation lookup used by ``trans``.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        translator: Translator | None = None,
    ):
        """Initialize the template engine.

        Args:
            site_dir: Site root directory.
            config: Site configuration.
            translator: Optional translator; one is loaded from ``i18n/`` otherwise.
        """
        self.site_dir = site_dir
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        if translator is None:
            translator = Translator(site_dir, config.language)
            translator.load_all()
        self.translator = translator
        search_path = [str(path) for path in template_dirs(site_dir, config) if path.is_dir()]
        # Content HTML is produced by our own renderer and inserted verbatim.
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            undefined=StrictUndefined,
            autoescape=False,
        )
        self._install_helpers()

    def _install_helpers(self) -> None:
        """Install filters and global functions in the Jinja environment."""
        self.env.filters["date_format"] = date_format
        self.env.filters["truncate_words"] = truncate_words
        self.env.filters["slugify"] = slugify
        self.env.globals["get_url"] = self.get_url
        self.env.globals["get_taxonomy_url"] = self.get_taxonomy_url
        self.env.globals["trans"] = self.translator.translate

    def get_url(self, path: str) -> str:
        """Return an absolute URL for a site-relative path.

        Examples:
            ``get_url("css/site.css")`` -> ``https://example.com/css/site.css``
        """
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_taxonomy_url(self, taxonomy: str, term: str | None = None) -> str:
        tax_slug = self._taxonomy_slug(taxonomy)
        if term is None:
            return f"{self.base_url}/{tax_slug}/"
        return f"{self.base_url}/{tax_slug}/{slugify(term)}/"

    def _taxonomy_slug(self, taxonomy: str) -> str:
        for tax in self.config.taxonomies:
            if tax.name == taxonomy:
                return tax.slug or slugify(tax.name)
        return slugify(taxonomy)

    def has_template(self, name: str) -> bool:
        try:
            self.env.get_template(name)
        except TemplateNotFound:
            return False
        return True

    def render(self, name: str, context: dict[str, Any]) -> str:
        """Render a named template.

        Args:
            name: Template name, e.g. ``post.html``.
            context: Variables available to the template.

        Returns:
            Rendered string.

        Raises:
            TemplateRenderError: If the template is missing, has a syntax error,
                or references an undefined variable.
        """
        try:
            template = self.env.get_template(name)
            return template.render(context)
        except TemplateNotFound as exc:
            raise TemplateRenderError(name, f"Template not found: {exc.name}", exc) from exc
        except TemplateSyntaxError as exc:
            raise TemplateRenderError(
                name, f"Template syntax error on line {exc.lineno}: {exc.message}", exc
            ) from exc
        except TemplateError as exc:
            raise TemplateRenderError(name, _format_error_message(exc), exc) from exc
        except (TypeError, ValueError, AttributeError) as exc:
            raise TemplateRenderError(name, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception raised while rendering into a readable message."""
    error_type = type(exc).__name__
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    return f"{error_type}: {exc}"
