"""Content loading for Forge.

Reads Markdown files from ``content/posts`` and ``content/pages``, parses their
front matter, renders their bodies and builds Post and Page objects. Each entity
records a digest of its raw bytes so the incremental cache can tell when it
changed.

Key classes:
- ContentLoader: Discovers and loads all content for a site.
- LoadedContent: Posts (sorted newest first) and pages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from .cache import hash_bytes
from .config import SiteConfig
from .content import Page, Post, TocEntry, sort_posts
from .errors import ContentError
from .frontmatter import parse_front_matter
from .renderers import MarkdownRenderer
from .utils import count_words, reading_time, slugify

logger = logging.getLogger(__name__)


class MarkdownConverter(Protocol):
    def render(self, markdown: str) -> tuple[str, list[TocEntry]]: ...


@dataclass
class LoadedContent:
    posts: list[Post]
    pages: list[Page]


def _join_url(base_url: str, *segments: str) -> str:
    path = "/".join(segment.strip("/") for segment in segments if segment)
    return f"{base_url.rstrip('/')}/{path}/"


def _iter_markdown(directory: Path) -> list[Path]:
    if not directory.exists():
        return []
    return sorted(p for p in directory.rglob("*.md") if p.is_file())


class ContentLoader:
    """Loads posts and pages for a site.

    Attributes:
        config: Site configuration.
        renderer: Markdown converter producing ``(html, toc)``.
        include_drafts: Whether draft posts are kept.
    """

    def __init__(self, config: SiteConfig, renderer: MarkdownConverter | None = None):
        self.config = config
        self.renderer = renderer or MarkdownRenderer(
            syntax_theme=config.build.syntax_theme,
            syntax_highlighting=config.build.syntax_highlighting,
            generate_toc=config.build.generate_toc,
        )
        self.include_drafts = config.build.include_drafts
        self.base_url = config.base_url

    def load(self, site_dir: Path) -> LoadedContent:
        """Load all content under the site's content directory.

        Args:
            site_dir: Root directory of the site.

        Returns:
            LoadedContent with posts sorted newest first.

        Raises:
            ContentError: If a file is unreadable, has invalid front matter, or
                two posts share a slug.
        """
        content_dir = site_dir / self.config.build.content_dir
        if not content_dir.exists():
            logger.warning("Content directory %s does not exist", content_dir)
            return LoadedContent(posts=[], pages=[])

        posts = []
        for path in _iter_markdown(content_dir / "posts"):
            post = self.load_post(path, site_dir)
            if post.draft and not self.include_drafts:
                logger.debug("Skipping draft %s", post.source_path)
                continue
            posts.append(post)
        _check_unique_slugs(posts)
        sort_posts(posts)

        pages = [self.load_page(path, site_dir) for path in _iter_markdown(content_dir / "pages")]
        return LoadedContent(posts=posts, pages=pages)

    def _read(self, path: Path, site_dir: Path) -> tuple[str, str, str]:
        source_id = _source_id(path, site_dir)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ContentError(source_id, f"Unable to read file: {exc}") from exc
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ContentError(source_id, f"File is not valid UTF-8: {exc}") from exc
        return source_id, text, hash_bytes(raw)

    def load_post(self, path: Path, site_dir: Path) -> Post:
        source_id, text, content_hash = self._read(path, site_dir)
        fm, body = parse_front_matter(text, source_id)
        html, toc = self.renderer.render(body)
        slug = _derive_slug(fm.slug, fm.title, path, source_id)
        words = count_words(body)
        description = fm.description or ""
        return Post(
            title=fm.title,
            slug=slug,
            date=fm.date or datetime.now(timezone.utc),
            draft=fm.draft,
            description=description,
            summary=fm.summary if fm.summary is not None else description,
            content_raw=body,
            content_html=html,
            toc=toc,
            word_count=words,
            reading_time=reading_time(words),
            categories=fm.categories,
            tags=fm.tags,
            permalink=_join_url(self.base_url, "posts", slug),
            template=fm.template,
            content_hash=content_hash,
            source_path=source_id,
            extra=fm.extra,
        )

    def load_page(self, path: Path, site_dir: Path) -> Page:
        source_id, text, content_hash = self._read(path, site_dir)
        fm, body = parse_front_matter(text, source_id)
        html, toc = self.renderer.render(body)
        slug = _derive_slug(fm.slug, fm.title, path, source_id)
        words = count_words(body)
        return Page(
            title=fm.title,
            slug=slug,
            content_html=html,
            toc=toc,
            permalink=_join_url(self.base_url, slug),
            template=fm.template,
            word_count=words,
            reading_time=reading_time(words),
            content_hash=content_hash,
            source_path=source_id,
            extra=fm.extra,
        )


def _derive_slug(explicit: str | None, title: str, path: Path, source_id: str) -> str:
    # Explicit slugs are normalized too; they become output directory names.
    if explicit:
        slug = slugify(explicit)
    else:
        slug = slugify(title) or slugify(path.stem)
    if not slug:
        raise ContentError(source_id, "Cannot derive a URL slug; set 'slug' in front matter")
    return slug


def _source_id(path: Path, site_dir: Path) -> str:
    try:
        return path.relative_to(site_dir).as_posix()
    except ValueError:
        return path.as_posix()


def _check_unique_slugs(posts: list[Post]) -> None:
    seen: dict[str, str] = {}
    for post in posts:
        if post.slug in seen:
            raise ContentError(
                post.source_path,
                f"Duplicate slug '{post.slug}' (also used by {seen[post.slug]})",
            )
        seen[post.slug] = post.source_path
