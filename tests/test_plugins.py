from datetime import datetime, timezone

import pytest

from forge.content import Post
from forge.plugins import Plugin, PluginRegistry

POST = Post(title="Hello", slug="hello", date=datetime(2024, 1, 1, tzinfo=timezone.utc))


class Tagger(Plugin):
    def __init__(self, label, priority=100):
        self.name = label
        self.priority = priority

    def on_post_render(self, post, html):
        return f"{html}[{self.name}]"


def test_default_hooks_do_nothing(tmp_path):
    registry = PluginRegistry([Plugin()])
    posts = [POST]
    registry.on_content_loaded(posts)
    assert posts == [POST]
    assert registry.on_post_render(POST, "<p>x</p>") == "<p>x</p>"
    registry.on_build_complete(tmp_path)


def test_plugins_run_by_priority_then_registration():
    registry = PluginRegistry([Tagger("late", 200), Tagger("first", 10), Tagger("second", 10)])
    assert [p.name for p in registry] == ["first", "second", "late"]
    assert len(registry) == 3
    assert registry.on_post_render(POST, "html") == "html[first][second][late]"


def test_content_loaded_may_edit_posts():
    class DropAll(Plugin):
        def on_content_loaded(self, posts):
            posts.clear()

    posts = [POST]
    PluginRegistry([DropAll()]).on_content_loaded(posts)
    assert posts == []


def test_hook_errors_propagate():
    class Broken(Plugin):
        def on_build_complete(self, output_dir):
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        PluginRegistry([Broken()]).on_build_complete(None)
