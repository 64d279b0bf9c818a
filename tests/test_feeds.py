import json
from datetime import datetime, timedelta, timezone

from forge.config import SiteConfig
from forge.content import Page, Post, Site
from forge.feeds import (
    AtomGenerator,
    RSSGenerator,
    SearchIndexGenerator,
    SitemapGenerator,
    create_feed_registry,
)
from forge.pagination import Paginator
from forge.taxonomy import build_taxonomies

CONFIG = SiteConfig(title="Tom & Jerry", base_url="https://example.com/", description="Cats")


def make_site(count=2):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    posts = [
        Post(
            title=f"Post <{n}>",
            slug=f"post-{n}",
            date=start + timedelta(days=n),
            description=f"About {n}",
            content_html=f"<p>Body {n} <em>words</em></p>",
            tags=["news"],
            permalink=f"https://example.com/posts/post-{n}/",
        )
        for n in range(count, 0, -1)
    ]
    pages = [Page(title="About", slug="about", permalink="https://example.com/about/")]
    taxonomies = build_taxonomies(posts, CONFIG.taxonomies, CONFIG.base_url)
    return Site(posts, pages, taxonomies, Paginator.new(posts, 10, 1, ""))


def test_rss_escapes_and_orders_items():
    xml = RSSGenerator().generate(make_site(), CONFIG)
    assert "<title>Tom &amp; Jerry</title>" in xml
    assert "<title>Post &lt;2&gt;</title>" in xml
    assert xml.index("post-2") < xml.index("post-1")
    assert "<lastBuildDate>Wed, 03 Jan 2024 00:00:00 +0000</lastBuildDate>" in xml


def test_feeds_are_limited_to_recent_posts():
    xml = RSSGenerator().generate(make_site(25), CONFIG)
    assert xml.count("<item>") == 20
    assert "post-25" in xml and "/post-5/" not in xml


def test_atom_entries():
    xml = AtomGenerator().generate(make_site(), CONFIG)
    assert '<link href="https://example.com/atom.xml" rel="self" />' in xml
    assert "<updated>2024-01-03T00:00:00+00:00</updated>" in xml
    assert "&lt;p&gt;Body 2" in xml


def test_sitemap_lists_every_url():
    xml = SitemapGenerator().generate(make_site(), CONFIG)
    for url in (
        "https://example.com/",
        "https://example.com/posts/post-1/",
        "https://example.com/about/",
        "https://example.com/tags/",
        "https://example.com/tags/news/",
    ):
        assert f"<loc>{url}</loc>" in xml
    assert "<lastmod>2024-01-02</lastmod>" in xml


def test_search_index_strips_html():
    entries = json.loads(SearchIndexGenerator().generate(make_site(), CONFIG))
    assert entries[0]["title"] == "Post <2>"
    assert entries[0]["body"] == "Body 2 words"
    assert entries[0]["tags"] == ["news"]
    assert entries[0]["date"] == "2024-01-03"


def test_registry_follows_build_flags(tmp_path):
    config = SiteConfig()
    config.build.generate_sitemap = False
    config.build.generate_search_index = False
    written = create_feed_registry(config).generate_all(tmp_path, make_site(), config)
    assert written == ["feed.xml", "atom.xml"]
    assert (tmp_path / "feed.xml").exists()
    assert not (tmp_path / "sitemap.xml").exists()
