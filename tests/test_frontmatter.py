from datetime import datetime, timezone

import pytest

from forge.errors import FrontMatterError
from forge.frontmatter import parse_date, parse_front_matter, split_front_matter


def test_parse_front_matter_fields():
    text = (
        "---\n"
        "title: Hello World\n"
        "date: 2024-01-15T10:30:00Z\n"
        "slug: hi\n"
        "description: A greeting\n"
        "tags: [python, web]\n"
        "categories: Dev\n"
        "template: special.html\n"
        "extra:\n"
        "  hero: /img/hero.png\n"
        "---\n"
        "\n"
        "Body text.\n"
    )
    fm, body = parse_front_matter(text, "content/posts/hello.md")
    assert fm.title == "Hello World"
    assert fm.date == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert fm.slug == "hi"
    assert fm.description == "A greeting"
    assert fm.tags == ["python", "web"]
    assert fm.categories == ["Dev"]
    assert fm.template == "special.html"
    assert fm.extra == {"hero": "/img/hero.png"}
    assert fm.draft is False
    assert body == "Body text.\n"


def test_byte_order_mark_is_ignored():
    fm, body = parse_front_matter("\ufeff---\ntitle: BOM\n---\nText", "a.md")
    assert fm.title == "BOM"
    assert body == "Text"


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("title: x\n", "Missing opening --- delimiter"),
        ("---\ntitle: x\n", "Missing closing --- delimiter"),
        ("---\ntitle: [unclosed\n---\n", "YAML parse error"),
        ("---\n- a\n- b\n---\n", "must be a mapping"),
        ("---\ndate: 2024-01-01\n---\n", "Missing required field 'title'"),
        ("---\ntitle: x\ndate: yesterday\n---\n", "Invalid date"),
        ("---\ntitle: x\ndate: 2024-13-45\n---\n", "YAML parse error"),
        ("---\ntitle: x\ndraft: \"false\"\n---\n", "'draft' must be true or false"),
        ("---\ntitle: x\ntags: 3\n---\n", "'tags' must be a list"),
    ],
)
def test_invalid_front_matter(text, message):
    with pytest.raises(FrontMatterError) as excinfo:
        parse_front_matter(text, "content/posts/bad.md")
    assert message in excinfo.value.message
    assert str(excinfo.value).startswith("content/posts/bad.md: ")


def test_split_front_matter_preserves_body():
    yaml_text, body = split_front_matter("---\ntitle: x\n---\n\n# Heading\n\n---\n", "a.md")
    assert yaml_text.strip() == "title: x"
    assert body == "# Heading\n\n---\n"


def test_parse_date_normalizes_to_utc():
    from datetime import date, timedelta

    assert parse_date(date(2024, 1, 2)) == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert parse_date("2024-01-02T02:00:00+02:00") == datetime(2024, 1, 2, tzinfo=timezone.utc)
    naive = datetime(2024, 1, 2, 3)
    assert parse_date(naive).utcoffset() == timedelta(0)
    with pytest.raises(ValueError):
        parse_date(12)
