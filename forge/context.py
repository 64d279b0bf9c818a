"""Template context builders for Forge.

Each function returns a fresh dict that merges the shared site-wide bindings with
the bindings of the entity being rendered. They perform no I/O and never mutate
their inputs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .config import SiteConfig
from .content import Page, Post
from .pagination import Paginator
from .taxonomy import TaxonomyCollection, TaxonomyItem

Taxonomies = Mapping[str, TaxonomyCollection]


def base_context(config: SiteConfig, taxonomies: Taxonomies) -> dict[str, Any]:
    """Bindings shared by every template."""
    return {
        "config": config,
        "site_title": config.title,
        "base_url": config.base_url,
        "language": config.language,
        "author": config.author,
        "description": config.description,
        "taxonomies": taxonomies,
        "extra": config.extra,
    }


def build_post_context(post: Post, config: SiteConfig, taxonomies: Taxonomies) -> dict[str, Any]:
    context = base_context(config, taxonomies)
    context.update(post=post, page_title=post.title)
    return context


def build_page_context(page: Page, config: SiteConfig, taxonomies: Taxonomies) -> dict[str, Any]:
    context = base_context(config, taxonomies)
    context.update(page=page, page_title=page.title)
    return context


def build_index_context(
    posts: Sequence[Post],
    paginator: Paginator,
    config: SiteConfig,
    taxonomies: Taxonomies,
) -> dict[str, Any]:
    """Context for one page of the home page listing.

    ``posts`` holds every post; ``paginator.items`` holds the references shown on
    this page.
    """
    context = base_context(config, taxonomies)
    context.update(posts=posts, paginator=paginator, page_title=config.title)
    return context


def build_archive_context(
    posts: Sequence[Post], config: SiteConfig, taxonomies: Taxonomies
) -> dict[str, Any]:
    context = base_context(config, taxonomies)
    context.update(posts=posts, page_title="Archive")
    return context


def build_taxonomy_list_context(
    taxonomy: TaxonomyCollection, config: SiteConfig, taxonomies: Taxonomies
) -> dict[str, Any]:
    context = base_context(config, taxonomies)
    context.update(taxonomy=taxonomy, page_title=taxonomy.name)
    return context


def build_taxonomy_single_context(
    taxonomy_name: str,
    item: TaxonomyItem,
    paginator: Paginator,
    config: SiteConfig,
    taxonomies: Taxonomies,
) -> dict[str, Any]:
    context = base_context(config, taxonomies)
    context.update(
        taxonomy_name=taxonomy_name,
        term=item,
        paginator=paginator,
        page_title=f"{taxonomy_name}: {item.name}",
    )
    return context


def build_404_context(config: SiteConfig, taxonomies: Taxonomies) -> dict[str, Any]:
    context = base_context(config, taxonomies)
    context["page_title"] = "Page Not Found"
    return context
