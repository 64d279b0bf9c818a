from datetime import datetime, timezone

from forge.config import SiteConfig
from forge.content import Page, Post
from forge.context import (
    build_404_context,
    build_archive_context,
    build_index_context,
    build_page_context,
    build_post_context,
    build_taxonomy_list_context,
    build_taxonomy_single_context,
)
from forge.pagination import Paginator
from forge.taxonomy import TaxonomyCollection, TaxonomyItem

CONFIG = SiteConfig(title="My Blog", author="Ada", extra={"twitter": "@ada"})
POST = Post(title="Hello", slug="hello", date=datetime(2024, 1, 1, tzinfo=timezone.utc))
ITEM = TaxonomyItem(name="python", slug="python", permalink="https://example.com/tags/python/")
TAGS = TaxonomyCollection(name="tags", slug="tags", items=[ITEM])
TAXONOMIES = {"tags": TAGS}


def test_shared_bindings_present_everywhere():
    paginator = Paginator.new([], 10, 1, "")
    contexts = [
        build_post_context(POST, CONFIG, TAXONOMIES),
        build_page_context(Page(title="About", slug="about"), CONFIG, TAXONOMIES),
        build_index_context([POST], paginator, CONFIG, TAXONOMIES),
        build_archive_context([POST], CONFIG, TAXONOMIES),
        build_taxonomy_list_context(TAGS, CONFIG, TAXONOMIES),
        build_taxonomy_single_context("tags", ITEM, paginator, CONFIG, TAXONOMIES),
        build_404_context(CONFIG, TAXONOMIES),
    ]
    for context in contexts:
        assert context["config"] is CONFIG
        assert context["site_title"] == "My Blog"
        assert context["author"] == "Ada"
        assert context["extra"] == {"twitter": "@ada"}
        assert context["taxonomies"] is TAXONOMIES
    assert [c["page_title"] for c in contexts] == [
        "Hello",
        "About",
        "My Blog",
        "Archive",
        "tags",
        "tags: python",
        "Page Not Found",
    ]


def test_entity_bindings():
    paginator = Paginator.new([POST.to_ref()], 10, 1, "/tags/python")
    single = build_taxonomy_single_context("tags", ITEM, paginator, CONFIG, TAXONOMIES)
    assert single["taxonomy_name"] == "tags"
    assert single["term"] is ITEM
    assert single["paginator"] is paginator
    assert build_post_context(POST, CONFIG, TAXONOMIES)["post"] is POST
    assert build_taxonomy_list_context(TAGS, CONFIG, TAXONOMIES)["taxonomy"] is TAGS


def test_contexts_are_independent():
    first = build_404_context(CONFIG, TAXONOMIES)
    first["site_title"] = "changed"
    assert build_404_context(CONFIG, TAXONOMIES)["site_title"] == "My Blog"
