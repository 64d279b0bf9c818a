"""Feed generation for Forge.

This module serializes the already-built site into syndication and discovery
files: RSS 2.0 (``feed.xml``), Atom (``atom.xml``), ``sitemap.xml`` and
``search_index.json``. Generators are pure functions of the site and
configuration; timestamps come from post dates rather than the wall clock so
that rebuilding unchanged content yields identical files.

Classes:
    FeedGenerator: Base class for generators.
    RSSGenerator: RSS 2.0 feed.
    AtomGenerator: Atom feed.
    SitemapGenerator: sitemaps.org sitemap.
    SearchIndexGenerator: JSON index for client-side search.
    FeedRegistry: Runs a set of generators.

Functions:
    create_feed_registry: Registry with the generators enabled in configuration.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from email.utils import format_datetime
from pathlib import Path

from markupsafe import escape

from .config import SiteConfig
from .content import Post, Site
from .utils import strip_html

FEED_LIMIT = 20
SEARCH_BODY_WORDS = 500


def _x(text: str) -> str:
    return str(escape(text))


class FeedGenerator(ABC):
    """Abstract base class for feed generators.

    Subclasses provide the output filename and the serialized content.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(self, site: Site, config: SiteConfig) -> str:
        """Serialize the site.

        Args:
            site: The assembled site.
            config: Site configuration.

        Returns:
            File content.
        """
        ...

    def write(self, output_dir: Path, site: Site, config: SiteConfig) -> Path:
        """Generate and write the feed into the output directory.

        Returns:
            Path of the written file.
        """
        output_path = output_dir / self.filename
        output_path.write_text(self.generate(site, config), encoding="utf-8")
        return output_path


def _recent(posts: list[Post]) -> list[Post]:
    return posts[:FEED_LIMIT]


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the most recent posts."""

    @property
    def filename(self) -> str:
        return "feed.xml"

    def generate(self, site: Site, config: SiteConfig) -> str:
        base_url = config.base_url.rstrip("/")
        posts = _recent(site.posts)
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{_x(config.title)}</title>",
            f"<link>{_x(base_url)}/</link>",
            f"<description>{_x(config.description)}</description>",
            f"<language>{_x(config.language)}</language>",
        ]
        if posts:
            lines.append(f"<lastBuildDate>{format_datetime(posts[0].date)}</lastBuildDate>")
        for post in posts:
            description = post.description or post.summary
            lines.append(
                f"<item><title>{_x(post.title)}</title>"
                f"<link>{_x(post.permalink)}</link>"
                f'<guid isPermaLink="true">{_x(post.permalink)}</guid>'
                f"<description>{_x(description)}</description>"
                f"<pubDate>{format_datetime(post.date)}</pubDate></item>"
            )
        lines.append("</channel></rss>")
        return "\n".join(lines) + "\n"


class AtomGenerator(FeedGenerator):
    """Generates an Atom feed of the most recent posts."""

    @property
    def filename(self) -> str:
        return "atom.xml"

    def generate(self, site: Site, config: SiteConfig) -> str:
        base_url = config.base_url.rstrip("/")
        posts = _recent(site.posts)
        lines = [
            '<?xml version="1.0" encoding="utf-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            f"  <title>{_x(config.title)}</title>",
            f'  <link href="{_x(base_url)}/" />',
            f'  <link href="{_x(base_url)}/atom.xml" rel="self" />',
            f"  <id>{_x(base_url)}/</id>",
        ]
        if posts:
            lines.append(f"  <updated>{posts[0].date.isoformat()}</updated>")
        if config.author:
            lines.append(f"  <author><name>{_x(config.author)}</name></author>")
        for post in posts:
            lines.append("  <entry>")
            lines.append(f"    <title>{_x(post.title)}</title>")
            lines.append(f'    <link href="{_x(post.permalink)}" />')
            lines.append(f"    <id>{_x(post.permalink)}</id>")
            lines.append(f"    <updated>{post.date.isoformat()}</updated>")
            if post.description:
                lines.append(f"    <summary>{_x(post.description)}</summary>")
            lines.append(f'    <content type="html">{_x(post.content_html)}</content>')
            lines.append("  </entry>")
        lines.append("</feed>")
        return "\n".join(lines) + "\n"


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml listing the home page, posts, pages and taxonomies."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, site: Site, config: SiteConfig) -> str:
        base_url = config.base_url.rstrip("/")
        lines = [
            '<?xml version="1.0" encoding="utf-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            _url_entry(f"{base_url}/", "1.0"),
        ]
        for post in site.posts:
            lines.append(_url_entry(post.permalink, "0.8", post.date.strftime("%Y-%m-%d")))
        for page in site.pages:
            lines.append(_url_entry(page.permalink, "0.6"))
        for collection in site.taxonomies.values():
            lines.append(_url_entry(f"{base_url}/{collection.slug}/", "0.5"))
            for item in collection.items:
                lines.append(_url_entry(item.permalink, "0.4"))
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


def _url_entry(loc: str, priority: str, lastmod: str | None = None) -> str:
    parts = [f"<loc>{_x(loc)}</loc>"]
    if lastmod:
        parts.append(f"<lastmod>{lastmod}</lastmod>")
    parts.append(f"<priority>{priority}</priority>")
    return f"  <url>{''.join(parts)}</url>"


class SearchIndexGenerator(FeedGenerator):
    """Generates a JSON search index with a plain-text excerpt of each post."""

    @property
    def filename(self) -> str:
        return "search_index.json"

    def generate(self, site: Site, config: SiteConfig) -> str:
        entries = []
        for post in site.posts:
            words = strip_html(post.content_html).split()[:SEARCH_BODY_WORDS]
            entries.append(
                {
                    "title": post.title,
                    "url": post.permalink,
                    "body": " ".join(words),
                    "description": post.description,
                    "categories": post.categories,
                    "tags": post.tags,
                    "date": post.date.strftime("%Y-%m-%d"),
                }
            )
        return json.dumps(entries, indent=2, ensure_ascii=False)


class FeedRegistry:
    """Registry of feed generators run during the write phase."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(self, output_dir: Path, site: Site, config: SiteConfig) -> list[str]:
        """Write every registered feed.

        Returns:
            Filenames that were written.
        """
        generated = []
        for generator in self._generators:
            generator.write(output_dir, site, config)
            generated.append(generator.filename)
        return generated


def create_feed_registry(config: SiteConfig) -> FeedRegistry:
    """Create a registry with the generators enabled in ``config.build``."""
    registry = FeedRegistry()
    if config.build.generate_feed:
        registry.register(RSSGenerator())
        registry.register(AtomGenerator())
    if config.build.generate_sitemap:
        registry.register(SitemapGenerator())
    if config.build.generate_search_index:
        registry.register(SearchIndexGenerator())
    return registry
