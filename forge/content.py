"""Content model for Forge.

Typed representations of the entities a build works with. Posts link to their
chronological neighbours through PostRef, a small copyable projection, so no post
ever holds another post.

Key classes:
- TocEntry: One heading in a table of contents.
- PostRef: Title, slug and permalink of a post.
- Post: A dated, taxonomized article under ``content/posts``.
- Page: A standalone page under ``content/pages``.
- Site: Everything assembled for one build.

Key functions:
- link_posts: Assign earlier/later references to posts sorted newest first.
- sort_posts: Sort posts newest first.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .pagination import Paginator
    from .taxonomy import TaxonomyCollection


@dataclass(frozen=True)
class TocEntry:
    level: int
    id: str
    title: str


@dataclass(frozen=True)
class PostRef:
    """Minimal reference to a post, used for navigation and listings."""

    title: str
    slug: str
    permalink: str

    @classmethod
    def from_post(cls, post: Post) -> PostRef:
        return cls(title=post.title, slug=post.slug, permalink=post.permalink)


@dataclass
class Post:
    """A blog post loaded from ``content/posts``.

    Attributes:
        title: Post title.
        slug: URL slug, unique across all posts.
        date: Publication timestamp (UTC).
        draft: Whether the post is a draft.
        description: Short description from front matter.
        summary: Summary, falling back to the description.
        content_raw: Markdown body.
        content_html: Rendered HTML body.
        toc: Table of contents entries.
        word_count: Number of words in the raw body.
        reading_time: Estimated reading time in minutes.
        categories: Category names.
        tags: Tag names.
        permalink: Absolute URL of the post.
        template: Optional template override.
        earlier: Next-older post, computed during analysis.
        later: Next-newer post, computed during analysis.
        content_hash: Digest of the raw source file.
        source_path: Source identity, relative to the site directory.
        extra: Free-form front matter data.
    """

    title: str
    slug: str
    date: datetime
    draft: bool = False
    description: str = ""
    summary: str = ""
    content_raw: str = ""
    content_html: str = ""
    toc: list[TocEntry] = field(default_factory=list)
    word_count: int = 0
    reading_time: int = 1
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    permalink: str = ""
    template: str | None = None
    earlier: PostRef | None = None
    later: PostRef | None = None
    content_hash: str = ""
    source_path: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_ref(self) -> PostRef:
        return PostRef.from_post(self)


@dataclass
class Page:
    """A standalone page loaded from ``content/pages``."""

    title: str
    slug: str
    content_html: str = ""
    toc: list[TocEntry] = field(default_factory=list)
    permalink: str = ""
    template: str | None = None
    word_count: int = 0
    reading_time: int = 1
    content_hash: str = ""
    source_path: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class Site:
    """The fully assembled site for one build."""

    posts: list[Post]
    pages: list[Page]
    taxonomies: dict[str, TaxonomyCollection]
    index_paginator: Paginator


def sort_posts(posts: list[Post]) -> None:
    """Sort posts in place, newest first. Equal dates keep their load order."""
    posts.sort(key=lambda post: post.date, reverse=True)


def link_posts(posts: Sequence[Post]) -> None:
    """Assign ``earlier``/``later`` references in one linear pass.

    The posts must already be sorted newest first, so ``earlier`` is the next
    element and ``later`` the previous one. Boundary posts get None.

    Args:
        posts: Posts sorted by date, descending.
    """
    refs = [post.to_ref() for post in posts]
    last = len(posts) - 1
    for index, post in enumerate(posts):
        post.later = refs[index - 1] if index > 0 else None
        post.earlier = refs[index + 1] if index < last else None
