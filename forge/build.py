"""Site building for Forge.

This module contains the pipeline that turns a site directory into static
output. A build runs five phases, each finishing before the next starts:

1. Load: read content files, parse front matter, render Markdown.
2. Parse: compare content digests with the previous build's manifest.
3. Analyze: link neighbouring posts, build taxonomies and the index paginator.
4. Render: expand templates; posts and pages render in a thread pool.
5. Write: copy static assets, write feeds, update and save the cache.

Output is rendered into a staging directory that replaces the output directory
only after the whole build succeeded, so a failed build leaves the previous
output in place.

Key classes:
- PipelineOrchestrator: Runs the phases for one build.
- BuildResult: What a build produced.

Key functions:
- build_site: Load configuration and run a build.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from .assets import copy_static_assets
from .cache import IncrementalCache, hash_config, hash_templates
from .config import SiteConfig, TaxonomyConfig, load_config
from .content import Page, Post, Site, link_posts
from .context import (
    build_404_context,
    build_archive_context,
    build_index_context,
    build_page_context,
    build_post_context,
    build_taxonomy_list_context,
    build_taxonomy_single_context,
)
from .feeds import create_feed_registry
from .loader import ContentLoader, LoadedContent
from .pagination import Paginator, paginate_all
from .plugins import Plugin, PluginRegistry
from .errors import BuildError, TemplateRenderError
from .taxonomy import build_taxonomies
from .templates import TemplateEngine, template_dirs
from .utils import ensure_clean_dir, write_html, write_page

logger = logging.getLogger(__name__)

T = TypeVar("T")

PHASES = ("load", "parse", "analyze", "render", "write")


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        site: The assembled site.
        output_dir: Directory holding the built site.
        written: Files written during the render phase.
        feeds: Feed filenames written during the write phase.
        dirty_files: Sources whose digest differs from the previous build.
        removed_files: Sources recorded previously that no longer exist.
        full_rebuild: Whether configuration or templates changed.
        timings: Seconds spent per phase.
    """

    site: Site
    output_dir: Path
    written: list[Path] = field(default_factory=list)
    feeds: list[str] = field(default_factory=list)
    dirty_files: list[str] = field(default_factory=list)
    removed_files: list[str] = field(default_factory=list)
    full_rebuild: bool = False
    timings: dict[str, float] = field(default_factory=dict)


@contextmanager
def _phase(name: str, timings: dict[str, float]) -> Iterator[None]:
    logger.info("Phase %d: %s", PHASES.index(name) + 1, name)
    start = time.perf_counter()
    try:
        yield
    finally:
        timings[name] = time.perf_counter() - start


class PipelineOrchestrator:
    """Runs one build of a site.

    Attributes:
        site_dir: Site root directory.
        config: Site configuration.
        force: Ignore the previous build's manifest.
        plugins: Plugin hooks invoked during the build.
        max_workers: Thread pool size for rendering; None lets the pool decide.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        force: bool = False,
        plugins: PluginRegistry | Iterable[Plugin] | None = None,
        max_workers: int | None = None,
        content_loader: ContentLoader | None = None,
    ):
        self.site_dir = site_dir
        self.config = config
        self.force = force
        if not isinstance(plugins, PluginRegistry):
            plugins = PluginRegistry(plugins or ())
        self.plugins = plugins
        self.max_workers = max_workers
        self.content_loader = content_loader or ContentLoader(config)

    @property
    def output_dir(self) -> Path:
        return self.site_dir / self.config.build.output_dir

    @property
    def staging_dir(self) -> Path:
        return self.output_dir.with_name(self.output_dir.name + ".staging")

    def hash_templates(self) -> str:
        # Theme first, then site overrides.
        return hash_templates(reversed(template_dirs(self.site_dir, self.config)))

    def run(self) -> BuildResult:
        """Run every phase and return what was built.

        Raises:
            ContentError: If a content file is unreadable or malformed.
            TemplateRenderError: If a required template fails to render.
            OSError: If output cannot be written.
        """
        timings: dict[str, float] = {}
        cache = IncrementalCache.load(self.site_dir, self.force)
        config_hash = hash_config(self.config)
        template_hash = self.hash_templates()
        full_rebuild = cache.config_changed(config_hash) or cache.templates_changed(template_hash)
        if full_rebuild:
            logger.info("Configuration or templates changed; all content is stale")

        with _phase("load", timings):
            loaded = self.content_loader.load(self.site_dir)
            self.plugins.on_content_loaded(loaded.posts)

        with _phase("parse", timings):
            dirty, removed = self.detect_changes(loaded, cache)

        with _phase("analyze", timings):
            site = self.analyze(loaded)

        staging = self.staging_dir
        ensure_clean_dir(staging)
        try:
            with _phase("render", timings):
                engine = TemplateEngine(self.site_dir, self.config)
                written, outputs = self.render(site, engine, staging)

            with _phase("write", timings):
                copy_static_assets(self.site_dir, self.config, staging)
                feeds = create_feed_registry(self.config).generate_all(staging, site, self.config)
                self._activate(staging)
                cache.prune(outputs)
                for source_id, (content_hash, output_path) in outputs.items():
                    cache.update_file(
                        source_id, content_hash, self._final_path(output_path, staging)
                    )
                cache.set_config_hash(config_hash)
                cache.set_template_hash(template_hash)
                cache.save()
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        self.plugins.on_build_complete(self.output_dir)

        result = BuildResult(
            site=site,
            output_dir=self.output_dir,
            written=[self.output_dir / path.relative_to(staging) for path in written],
            feeds=feeds,
            dirty_files=dirty,
            removed_files=removed,
            full_rebuild=full_rebuild,
            timings=timings,
        )
        _log_summary(result)
        return result

    def detect_changes(
        self, loaded: LoadedContent, cache: IncrementalCache
    ) -> tuple[list[str], list[str]]:
        """Report which sources changed since the previous build.

        Nothing is skipped: every entity is still rendered. The result is
        informational and is exposed on BuildResult.

        Returns:
            Tuple of (dirty source ids, removed source ids).
        """
        hashes = {entity.source_path: entity.content_hash for entity in _entities(loaded)}
        dirty = cache.dirty_files(hashes)
        removed = sorted(set(cache.file_hashes) - set(hashes))
        logger.info(
            "%d of %d source file(s) changed, %d removed",
            len(dirty),
            len(hashes),
            len(removed),
        )
        for source_id in dirty:
            logger.debug("Changed: %s", source_id)
        return dirty, removed

    def analyze(self, loaded: LoadedContent) -> Site:
        posts = loaded.posts
        link_posts(posts)
        taxonomies = build_taxonomies(posts, self.config.taxonomies, self.config.base_url)
        index_paginator = Paginator.new(
            [post.to_ref() for post in posts], self.config.build.posts_per_page, 1, ""
        )
        return Site(
            posts=posts,
            pages=loaded.pages,
            taxonomies=taxonomies,
            index_paginator=index_paginator,
        )

    def render(
        self, site: Site, engine: TemplateEngine, output_dir: Path
    ) -> tuple[list[Path], dict[str, tuple[str, Path]]]:
        """Render every page of the site into ``output_dir``.

        Returns:
            Tuple of (all written files, source id -> (content hash, output
            file) for every post and page).
        """
        config = self.config
        per_page = config.build.posts_per_page
        written: list[Path] = []

        post_refs = [post.to_ref() for post in site.posts]
        for paginator in paginate_all(post_refs, per_page, ""):
            context = build_index_context(site.posts, paginator, config, site.taxonomies)
            html = engine.render("index.html", context)
            written.append(write_page(output_dir, _listing_dir("", paginator), html))

        def render_post(post: Post) -> Path:
            context = build_post_context(post, config, site.taxonomies)
            html = engine.render(post.template or "post.html", context)
            html = self.plugins.on_post_render(post, html)
            return write_page(output_dir, f"posts/{post.slug}", html)

        def render_page(page: Page) -> Path:
            context = build_page_context(page, config, site.taxonomies)
            html = engine.render(page.template or "page.html", context)
            return write_page(output_dir, page.slug, html)

        post_paths = self._map_parallel(render_post, site.posts)
        page_paths = self._map_parallel(render_page, site.pages)
        written.extend(post_paths)
        written.extend(page_paths)

        archive_html = self._render_optional(
            engine, "archive.html", build_archive_context(site.posts, config, site.taxonomies)
        )
        if archive_html is not None:
            written.append(write_page(output_dir, "archive", archive_html))

        written.extend(self._render_taxonomies(site, engine, output_dir))

        html_404 = self._render_optional(
            engine, "404.html", build_404_context(config, site.taxonomies)
        )
        if html_404 is not None:
            written.append(write_html(output_dir, "404.html", html_404))

        outputs: dict[str, tuple[str, Path]] = {}
        for post, path in zip(site.posts, post_paths):
            outputs[post.source_path] = (post.content_hash, path)
        for page, path in zip(site.pages, page_paths):
            outputs[page.source_path] = (page.content_hash, path)
        return written, outputs

    def _render_taxonomies(
        self, site: Site, engine: TemplateEngine, output_dir: Path
    ) -> list[Path]:
        config = self.config
        tax_configs = {tax.name: tax for tax in config.taxonomies}
        written = []
        for name, collection in site.taxonomies.items():
            listing = self._render_optional(
                engine,
                "taxonomy.html",
                build_taxonomy_list_context(collection, config, site.taxonomies),
            )
            if listing is not None:
                written.append(write_page(output_dir, collection.slug, listing))

            tax_config = tax_configs.get(name, TaxonomyConfig(name=name))
            for item in collection.items:
                base_path = f"/{collection.slug}/{item.slug}"
                per_page = config.build.posts_per_page
                if not tax_config.paginate:
                    per_page = max(1, len(item.posts))
                for paginator in paginate_all(item.posts, per_page, base_path):
                    context = build_taxonomy_single_context(
                        name, item, paginator, config, site.taxonomies
                    )
                    html = self._render_optional(engine, "taxonomy_single.html", context)
                    if html is None:
                        break
                    written.append(write_page(output_dir, _listing_dir(base_path, paginator), html))
        return written

    def _render_optional(
        self, engine: TemplateEngine, template: str, context: dict[str, Any]
    ) -> str | None:
        try:
            return engine.render(template, context)
        except TemplateRenderError as exc:
            logger.warning("Skipping %s: %s", template, exc.message)
            return None

    def _map_parallel(self, func: Callable[[T], Path], items: list[T]) -> list[Path]:
        """Run ``func`` over ``items`` in the thread pool and wait for all of them.

        Results keep the order of ``items``. The first failure is re-raised
        after every task has finished.
        """
        if not items:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(func, item) for item in items]
        return [future.result() for future in futures]

    def _activate(self, staging: Path) -> None:
        """Move the staging directory into place as the output directory.

        Raises:
            BuildError: If the directories cannot be swapped.
        """
        target = self.output_dir
        previous = target.with_name(target.name + ".previous")
        try:
            if previous.exists():
                shutil.rmtree(previous)
            if target.exists():
                os.replace(target, previous)
            os.replace(staging, target)
            if previous.exists():
                shutil.rmtree(previous)
        except OSError as exc:
            raise BuildError(f"Could not replace output directory {target}: {exc}") from exc

    def _final_path(self, path: Path, staging: Path) -> str:
        final = self.output_dir / path.relative_to(staging)
        try:
            return final.relative_to(self.site_dir).as_posix()
        except ValueError:
            return final.as_posix()


def _entities(loaded: LoadedContent) -> list[Post | Page]:
    return [*loaded.posts, *loaded.pages]


def _listing_dir(base_path: str, paginator: Paginator) -> str:
    if paginator.current_page == 1:
        return base_path
    return f"{base_path}/page/{paginator.current_page}"


def _log_summary(result: BuildResult) -> None:
    site = result.site
    logger.info("Build complete: %d post(s), %d page(s)", len(site.posts), len(site.pages))
    if site.taxonomies:
        logger.info(
            "Taxonomies: %s",
            ", ".join(f"{t.name} ({len(t.items)})" for t in site.taxonomies.values()),
        )
    logger.info("Output: %s", result.output_dir)
    for name in PHASES:
        logger.info("  %-8s %8.3fs", name, result.timings.get(name, 0.0))
    logger.info("  %-8s %8.3fs", "total", sum(result.timings.values()))


def build_site(
    site_dir: Path,
    drafts: bool = False,
    force: bool = False,
    plugins: Iterable[Plugin] | None = None,
) -> BuildResult:
    """Load the site's configuration and build it.

    Args:
        site_dir: Site root directory.
        drafts: Include draft posts.
        force: Ignore the previous build's manifest.
        plugins: Optional plugins to run.

    Returns:
        BuildResult of the build.
    """
    config = load_config(site_dir)
    if drafts:
        config.build.include_drafts = True
    return PipelineOrchestrator(site_dir, config, force=force, plugins=plugins).run()
