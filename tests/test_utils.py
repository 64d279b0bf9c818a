from forge.utils import (
    count_words,
    ensure_clean_dir,
    reading_time,
    slugify,
    strip_html,
    truncate_words,
    write_html,
    write_page,
)


def test_slugify():
    assert slugify("Hello, World!") == "hello-world"
    assert slugify("Café Crème") == "cafe-creme"
    assert slugify("  --Rust & Python--  ") == "rust-python"
    assert slugify("!!!") == ""


def test_reading_time_rounds_up_with_minimum():
    assert reading_time(0) == 1
    assert reading_time(200) == 1
    assert reading_time(201) == 2
    assert reading_time(1000) == 5


def test_text_helpers():
    assert count_words(" one  two\nthree ") == 3
    assert strip_html("<p>Hi <em>there</em></p>") == "Hi there"
    assert truncate_words("a b c d", 2) == "a b..."
    assert truncate_words("a b", 2) == "a b"


def test_write_page_uses_clean_urls(tmp_path):
    assert write_page(tmp_path, "posts/hello", "x") == tmp_path / "posts" / "hello" / "index.html"
    assert write_page(tmp_path, "", "root") == tmp_path / "index.html"
    assert write_page(tmp_path, "/tags/python/", "t") == tmp_path / "tags" / "python" / "index.html"
    assert (tmp_path / "index.html").read_text(encoding="utf-8") == "root"


def test_write_html_and_clean_dir(tmp_path):
    path = write_html(tmp_path / "out", "404.html", "missing")
    assert path.read_text(encoding="utf-8") == "missing"
    ensure_clean_dir(tmp_path / "out")
    assert list((tmp_path / "out").iterdir()) == []
