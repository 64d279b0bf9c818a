"""Static asset copying for Forge.

Copies the active theme's ``static/`` directory and then the site's ``static/``
directory into the output directory, so site files replace theme files with the
same relative path.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .config import SiteConfig

logger = logging.getLogger(__name__)


def static_dirs(site_dir: Path, config: SiteConfig) -> list[Path]:
    """Static directories in copy order: theme first, then site."""
    return [
        site_dir / "themes" / config.theme / "static",
        site_dir / config.build.static_dir,
    ]


def copy_tree(source: Path, dest: Path) -> int:
    """Copy every file under ``source`` into ``dest``, overwriting.

    Returns:
        Number of files copied.
    """
    copied = 0
    for item in sorted(source.rglob("*")):
        if item.is_dir():
            continue
        target = dest / item.relative_to(source)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(item, target)
        copied += 1
    return copied


def copy_static_assets(site_dir: Path, config: SiteConfig, output_dir: Path) -> int:
    """Copy theme and site static files into the output directory.

    Args:
        site_dir: Site root directory.
        config: Site configuration.
        output_dir: Build output directory.

    Returns:
        Total number of files copied.
    """
    total = 0
    for directory in static_dirs(site_dir, config):
        if directory.is_dir():
            count = copy_tree(directory, output_dir)
            logger.debug("Copied %d static file(s) from %s", count, directory)
            total += count
    return total
