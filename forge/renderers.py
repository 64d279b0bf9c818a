"""Markdown rendering for Forge.

Converts Markdown bodies to HTML with mistune, adding anchor IDs to headings,
collecting a table of contents and highlighting fenced code blocks with Pygments.

Key classes:
- MarkdownRenderer: Renders Markdown to ``(html, toc)``.
"""

from __future__ import annotations

import logging

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .content import TocEntry
from .utils import slugify, strip_html

logger = logging.getLogger(__name__)

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url", "task_lists"]


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class _ForgeHTMLRenderer(mistune.HTMLRenderer):
    """HTML renderer that records headings and highlights code.

    Attributes:
        toc: TocEntry objects collected while rendering.
    """

    def __init__(self, formatter: HtmlFormatter | None, collect_toc: bool):
        super().__init__(escape=False)
        self.formatter = formatter
        self.collect_toc = collect_toc
        self.toc: list[TocEntry] = []
        self._heading_count = 0
        self._seen_ids: dict[str, int] = {}

    def _heading_id(self, text: str) -> str:
        self._heading_count += 1
        base_id = slugify(strip_html(text)) or f"heading-{self._heading_count}"
        if base_id in self._seen_ids:
            self._seen_ids[base_id] += 1
            return f"{base_id}-{self._seen_ids[base_id]}"
        self._seen_ids[base_id] = 0
        return base_id

    def heading(self, text: str, level: int, **attrs) -> str:
        anchor_id = self._heading_id(text)
        if self.collect_toc:
            self.toc.append(TocEntry(level=level, id=anchor_id, title=strip_html(text)))
        return (
            f'<h{level} id="{anchor_id}"><a href="#{anchor_id}" class="anchor">#</a> '
            f"{text}</h{level}>\n"
        )

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = (info or "").split()[0] if info else ""
        if lang and self.formatter is not None:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                return highlight(code, lexer, self.formatter)
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{_escape(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML plus a table of contents.

    Args:
        syntax_theme: Pygments style name for highlighted code.
        syntax_highlighting: Whether fenced code with a language is highlighted.
        generate_toc: Whether headings are collected into the TOC.
    """

    def __init__(
        self,
        syntax_theme: str = "monokai",
        syntax_highlighting: bool = True,
        generate_toc: bool = True,
    ):
        self.generate_toc = generate_toc
        self.formatter: HtmlFormatter | None = None
        if syntax_highlighting:
            try:
                style = get_style_by_name(syntax_theme)
            except ClassNotFound:
                logger.warning("Unknown syntax theme %r; using 'default'", syntax_theme)
                style = get_style_by_name("default")
            self.formatter = HtmlFormatter(style=style, cssclass="highlight", noclasses=True)

    def render(self, markdown: str) -> tuple[str, list[TocEntry]]:
        """Render Markdown to HTML.

        Args:
            markdown: Markdown source.

        Returns:
            Tuple of (rendered HTML, list of TocEntry objects).
        """
        renderer = _ForgeHTMLRenderer(self.formatter, self.generate_toc)
        to_html = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        html = to_html(markdown)
        return html, renderer.toc
