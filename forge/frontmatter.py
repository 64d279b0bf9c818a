"""Front matter parsing for Forge content files.

Every post and page starts with a YAML block fenced by ``---`` lines. Unlike a
lenient extractor, a missing delimiter or invalid YAML is an error that names the
offending file, because a build never proceeds with partially parsed content.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any

import yaml

from .errors import FrontMatterError

DELIMITER = "---"
_BOM = "\ufeff"


@dataclass
class FrontMatter:
    """Metadata declared at the top of a content file."""

    title: str
    date: datetime | None = None
    draft: bool = False
    slug: str | None = None
    description: str | None = None
    summary: str | None = None
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    template: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


def parse_date(value: Any) -> datetime:
    """Normalize a front matter date value to an aware UTC datetime.

    Accepts datetimes and dates as produced by YAML, or ISO-8601 strings.
    Naive values are interpreted as UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a date.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"unsupported date value {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _string_list(value: Any, key: str, path: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise FrontMatterError(path, f"'{key}' must be a list")
    return [str(item) for item in value]


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def split_front_matter(text: str, path: str) -> tuple[str, str]:
    """Split raw content into the YAML block and the body.

    Args:
        text: Raw file content.
        path: Source path, used in error messages.

    Returns:
        Tuple of (yaml text, body with leading newlines removed).

    Raises:
        FrontMatterError: If the opening or closing delimiter is missing.
    """
    text = text.lstrip(_BOM)
    if not text.startswith(DELIMITER):
        raise FrontMatterError(path, "Missing opening --- delimiter")
    after_first = text[len(DELIMITER):]
    end = after_first.find("\n" + DELIMITER)
    if end == -1:
        raise FrontMatterError(path, "Missing closing --- delimiter")
    yaml_text = after_first[:end]
    body = after_first[end + len(DELIMITER) + 1:]
    return yaml_text, body.lstrip("\n")


def parse_front_matter(text: str, path: str) -> tuple[FrontMatter, str]:
    """Parse the front matter and body of a content file.

    Args:
        text: Raw file content.
        path: Source path, used in error messages.

    Returns:
        Tuple of (FrontMatter, body markdown).

    Raises:
        FrontMatterError: If delimiters are missing, the YAML is invalid, or
            required fields are missing or malformed.
    """
    yaml_text, body = split_front_matter(text, path)
    try:
        data = yaml.safe_load(yaml_text) or {}
    except (yaml.YAMLError, ValueError) as exc:
        raise FrontMatterError(path, f"YAML parse error: {exc}") from exc
    if not isinstance(data, dict):
        raise FrontMatterError(path, "Front matter must be a mapping")

    title = data.get("title")
    if title is None or not str(title).strip():
        raise FrontMatterError(path, "Missing required field 'title'")

    parsed_date = None
    if data.get("date") is not None:
        try:
            parsed_date = parse_date(data["date"])
        except ValueError as exc:
            raise FrontMatterError(path, f"Invalid date: {exc}") from exc

    draft = data.get("draft", False)
    if not isinstance(draft, bool):
        raise FrontMatterError(path, "'draft' must be true or false")

    extra = data.get("extra") or {}
    if not isinstance(extra, dict):
        raise FrontMatterError(path, "'extra' must be a mapping")

    front_matter = FrontMatter(
        title=str(title),
        date=parsed_date,
        draft=draft,
        slug=_optional_str(data.get("slug")),
        description=_optional_str(data.get("description")),
        summary=_optional_str(data.get("summary")),
        categories=_string_list(data.get("categories"), "categories", path),
        tags=_string_list(data.get("tags"), "tags", path),
        template=_optional_str(data.get("template")),
        extra=extra,
    )
    return front_matter, body
