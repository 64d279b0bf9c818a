"""Utility functions for Forge.

This module contains small helpers used throughout the Forge codebase: slug
generation, text statistics, HTML stripping and writing rendered output to
clean-URL locations.

Key functions:
    slugify: Convert titles and taxonomy values to URL slugs.
    count_words: Count whitespace-separated words.
    reading_time: Estimate reading time in minutes.
    strip_html: Remove tags from an HTML fragment.
    write_page: Write ``index.html`` inside a clean-URL directory.
    write_html: Write an HTML file at an explicit relative path.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
import unicodedata
from pathlib import Path

WORDS_PER_MINUTE = 200

_TAG_RE = re.compile(r"<[^>]*>")


def slugify(text: str) -> str:
    """Convert arbitrary text to a lowercase, hyphen-separated slug.

    Accented characters are folded to their ASCII base letters; every other run
    of non-alphanumeric characters becomes a single hyphen.

    Args:
        text: Text to slugify.

    Returns:
        URL-friendly slug, possibly empty.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'

        >>> slugify("Café Crème")
        'cafe-creme'
    """
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", ascii_text)
    return cleaned.strip("-").lower()


def count_words(text: str) -> int:
    return len(text.split())


def reading_time(word_count: int) -> int:
    """Return whole minutes needed to read ``word_count`` words, at least 1."""
    minutes = -(-word_count // WORDS_PER_MINUTE)
    return max(1, minutes)


def strip_html(html: str) -> str:
    """Remove HTML tags, keeping text content.

    Args:
        html: HTML fragment.

    Returns:
        The text with every ``<...>`` tag removed.
    """
    return _TAG_RE.sub("", html)


def truncate_words(text: str, count: int = 50) -> str:
    """Truncate text to ``count`` words, appending an ellipsis when shortened."""
    words = text.split()
    if len(words) <= count:
        return text
    return " ".join(words[:count]) + "..."


def write_html(output_dir: Path, relative_path: str, content: str) -> Path:
    """Write HTML content at a path relative to the output directory.

    Args:
        output_dir: Base output directory.
        relative_path: File path relative to ``output_dir``.
        content: Rendered HTML.

    Returns:
        Path of the written file.
    """
    path = output_dir / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def write_page(output_dir: Path, url_path: str, content: str) -> Path:
    """Write an ``index.html`` inside a directory for clean URLs.

    Args:
        output_dir: Base output directory.
        url_path: URL path such as ``posts/hello``; empty for the site root.
        content: Rendered HTML.

    Returns:
        Path of the written ``index.html``.
    """
    clean_path = url_path.strip("/")
    target_dir = output_dir / clean_path if clean_path else output_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    html_path = target_dir / "index.html"
    html_path.write_text(content, encoding="utf-8")
    return html_path


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
