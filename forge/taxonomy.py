"""Taxonomy building for Forge.

Groups posts under each configured taxonomy (categories, tags) into collections
of terms. The result is a pure function of the posts and configuration, so it is
rebuilt from scratch on every build and never carries stale terms.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from .config import TaxonomyConfig
from .content import Post, PostRef
from .utils import slugify

# Taxonomy name -> Post attribute supplying its values.
TAXONOMY_FIELDS = {
    "categories": "categories",
    "tags": "tags",
}


@dataclass
class TaxonomyItem:
    """A single term, such as one tag, and the posts that carry it."""

    name: str
    slug: str
    permalink: str
    posts: list[PostRef] = field(default_factory=list)

    @property
    def post_count(self) -> int:
        return len(self.posts)


@dataclass
class TaxonomyCollection:
    """All terms of one taxonomy, sorted by name."""

    name: str
    slug: str
    items: list[TaxonomyItem] = field(default_factory=list)

    def __iter__(self) -> Iterator[TaxonomyItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def get(self, name: str) -> TaxonomyItem | None:
        for item in self.items:
            if item.name == name:
                return item
        return None


def taxonomy_slug(config: TaxonomyConfig) -> str:
    return config.slug or slugify(config.name)


def build_taxonomy(
    posts: Iterable[Post], config: TaxonomyConfig, base_url: str
) -> TaxonomyCollection:
    """Build a single taxonomy collection.

    Args:
        posts: Posts, in the order their references should appear.
        config: Taxonomy configuration.
        base_url: Site base URL for term permalinks.

    Returns:
        TaxonomyCollection whose items are sorted by name in codepoint order.
        Unrecognized taxonomy names produce an empty collection.
    """
    slug = taxonomy_slug(config)
    attribute = TAXONOMY_FIELDS.get(config.name)
    groups: dict[str, list[PostRef]] = {}
    if attribute is not None:
        for post in posts:
            ref = post.to_ref()
            # A value repeated within one post still counts the post once.
            for value in dict.fromkeys(getattr(post, attribute)):
                groups.setdefault(value, []).append(ref)

    base = base_url.rstrip("/")
    items = []
    for name in sorted(groups):
        item_slug = slugify(name)
        items.append(
            TaxonomyItem(
                name=name,
                slug=item_slug,
                permalink=f"{base}/{slug}/{item_slug}/",
                posts=groups[name],
            )
        )
    return TaxonomyCollection(name=config.name, slug=slug, items=items)


def build_taxonomies(
    posts: Sequence[Post], taxonomy_configs: Iterable[TaxonomyConfig], base_url: str
) -> dict[str, TaxonomyCollection]:
    """Build every configured taxonomy.

    Args:
        posts: All published posts, sorted newest first.
        taxonomy_configs: Configured taxonomies.
        base_url: Site base URL.

    Returns:
        Mapping of taxonomy name to its collection, in configuration order.
    """
    return {
        config.name: build_taxonomy(posts, config, base_url)
        for config in taxonomy_configs
    }
