from pathlib import Path

import pytest

TEMPLATES = {
    "index.html": (
        "<h1>{{ site_title }}</h1>"
        "{% for ref in paginator.items %}<a href=\"{{ ref.permalink }}\">{{ ref.title }}</a>{% endfor %}"
        "<p>Page {{ paginator.current_page }} of {{ paginator.total_pages }}</p>"
        "{% if paginator.next_path %}<a rel=\"next\" href=\"{{ paginator.next_path }}\">next</a>{% endif %}"
    ),
    "post.html": (
        "<html><body><h1>{{ post.title }}</h1>{{ post.content_html }}"
        "{% if post.earlier %}<a class=\"earlier\" href=\"{{ post.earlier.permalink }}\">"
        "{{ post.earlier.title }}</a>{% endif %}"
        "{% if post.later %}<a class=\"later\" href=\"{{ post.later.permalink }}\">"
        "{{ post.later.title }}</a>{% endif %}</body></html>"
    ),
    "page.html": "<h1>{{ page.title }}</h1>{{ page.content_html }}",
    "archive.html": "{% for post in posts %}{{ post.title }};{% endfor %}",
    "taxonomy.html": (
        "{{ page_title }}:{% for item in taxonomy %} {{ item.name }}({{ item.post_count }}){% endfor %}"
    ),
    "taxonomy_single.html": (
        "{{ page_title }}{% for ref in paginator.items %} [{{ ref.title }}]{% endfor %}"
    ),
    "404.html": "<html><body>{{ page_title }}</body></html>",
}


def write_post(site: Path, name: str, title: str, date: str, body: str = "Hello.", **fields) -> Path:
    lines = ["---", f"title: {title}", f"date: {date}"]
    for key, value in fields.items():
        lines.append(f"{key}: {value}")
    lines.append("---")
    path = site / "content" / "posts" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n" + body + "\n", encoding="utf-8")
    return path


def create_site(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "forge.yaml").write_text(
        "title: Test Site\n"
        "base_url: https://example.com\n"
        "author: Ada\n"
        "build:\n"
        "  posts_per_page: 1\n",
        encoding="utf-8",
    )
    templates = root / "templates"
    templates.mkdir()
    for name, source in TEMPLATES.items():
        (templates / name).write_text(source, encoding="utf-8")

    write_post(
        root,
        "first.md",
        "First",
        "2024-01-01",
        "# Intro\n\nThe first post.",
        tags="[python, web]",
        categories="[Dev]",
    )
    write_post(root, "second.md", "Second", "2024-02-01", "The second post.", tags="[python]")

    pages = root / "content" / "pages"
    pages.mkdir(parents=True)
    (pages / "about.md").write_text("---\ntitle: About\n---\nAbout us.\n", encoding="utf-8")

    static = root / "static" / "css"
    static.mkdir(parents=True)
    (static / "site.css").write_text("body { color: black; }", encoding="utf-8")
    return root


@pytest.fixture
def site_dir(tmp_path):
    return create_site(tmp_path / "site")
