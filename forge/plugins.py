"""Plugin hooks for Forge.

A plugin subclasses Plugin and overrides any of its hooks; the defaults do
nothing. The registry keeps plugins sorted by priority (lower runs first,
registration order breaks ties) and stops at the first hook that raises.

Hooks:
- on_content_loaded(posts): after loading, before analysis; may edit the list.
- on_post_render(post, html): after a post is rendered; returns the HTML to write.
- on_build_complete(output_dir): after all output and the cache are written.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .content import Post


class Plugin:
    name = "plugin"
    priority = 100

    def on_content_loaded(self, posts: list[Post]) -> None:
        pass

    def on_post_render(self, post: Post, html: str) -> str:
        return html

    def on_build_complete(self, output_dir: Path) -> None:
        pass


class PluginRegistry:
    """Ordered collection of plugins."""

    def __init__(self, plugins: Iterable[Plugin] = ()):
        self._plugins: list[Plugin] = []
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: Plugin) -> None:
        self._plugins.append(plugin)
        self._plugins.sort(key=lambda p: p.priority)

    def __iter__(self):
        return iter(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)

    def on_content_loaded(self, posts: list[Post]) -> None:
        for plugin in self._plugins:
            plugin.on_content_loaded(posts)

    def on_post_render(self, post: Post, html: str) -> str:
        for plugin in self._plugins:
            html = plugin.on_post_render(post, html)
        return html

    def on_build_complete(self, output_dir: Path) -> None:
        for plugin in self._plugins:
            plugin.on_build_complete(output_dir)
