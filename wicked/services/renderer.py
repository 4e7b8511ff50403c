#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup engines
==============
The engines that turn page source into HTML, plus the HTML post-processing
helpers the markup processor (``wicked.services.processor``) switches on and
off through its rules.

Supported dialects:
  - markdown  : rendered via mistune (tables, strikethrough, bare URLs)
  - rst       : rendered via docutils

Code blocks are highlighted with Pygments when asked to.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import re


# Placeholder substituted for the {{toc}} macro.  Plain text so that it
# survives both engines whether or not raw HTML is escaped.
TOC_SENTINEL = "WICKEDTOCPLACEHOLDER"


# -----------------------------------------------------------------------------
# Markdown engine via mistune
# -----------------------------------------------------------------------------

def _highlight_code(code: str, lang: str) -> str:
    """Highlight *code* using Pygments.  Unknown languages fall back to plain text."""
    from pygments import highlight
    from pygments.formatters import HtmlFormatter
    from pygments.lexers import TextLexer, get_lexer_by_name
    from pygments.util import ClassNotFound

    try:
        lexer = get_lexer_by_name(lang.strip(), stripall=True) if lang.strip() else TextLexer()
    except ClassNotFound:
        lexer = TextLexer()
    return highlight(code, lexer, HtmlFormatter(cssclass="highlight"))


def _make_md_renderer(highlight: bool, escape: bool):
    import mistune
    from mistune.plugins.formatting import strikethrough
    from mistune.plugins.table import table
    from mistune.plugins.url import url

    class _WikiRenderer(mistune.HTMLRenderer):
        def block_code(self, code: str, **kwargs) -> str:
            info = kwargs.get("info") or ""
            lang = info.split()[0] if info else ""
            if highlight and lang:
                return _highlight_code(code, lang)
            return f"<pre><code>{_html.escape(code)}</code></pre>\n"

    return mistune.create_markdown(
        renderer=_WikiRenderer(escape=escape),
        plugins=[table, strikethrough, url],
    )


_md_renderers: dict[tuple[bool, bool], object] = {}


def render_markdown(text: str, highlight: bool = True, escape: bool = True) -> str:
    key = (highlight, escape)
    if key not in _md_renderers:
        _md_renderers[key] = _make_md_renderer(highlight, escape)
    return _md_renderers[key](text)


# -----------------------------------------------------------------------------
# RST engine via docutils
# -----------------------------------------------------------------------------

def render_rst(text: str, highlight: bool = True, escape: bool = True) -> str:
    from docutils.core import publish_parts

    parts = publish_parts(
        source=text,
        writer_name="html5",
        settings_overrides={
            "halt_level": 5,
            "report_level": 5,
            "input_encoding": "unicode",
            "output_encoding": "unicode",
            "syntax_highlight": "short" if highlight else "none",
            "raw_enabled": not escape,
            "file_insertion_enabled": False,
            "doctitle_xform": False,
            "sectsubtitle_xform": False,
        },
    )
    return parts["body"]


ENGINES = {
    "markdown": render_markdown,
    "rst":      render_rst,
}


# -----------------------------------------------------------------------------
# Heading anchors and table of contents
# -----------------------------------------------------------------------------

_HEADING_RE = re.compile(r"<(h[1-6])(?:\s[^>]*)?>(.+?)</h[1-6]>", re.IGNORECASE | re.DOTALL)
_STRIP_TAGS_RE = re.compile(r"<[^>]+>")


def _slugify_anchor(text: str) -> str:
    """Convert heading text to a URL-safe anchor ID."""
    text = _STRIP_TAGS_RE.sub("", text)
    text = text.strip().lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-") or "section"


def add_heading_anchors(html: str) -> str:
    """Give every h1-h6 a unique ``id`` attribute for deep-linking."""
    used: dict[str, int] = {}

    def _anchor(m: re.Match) -> str:
        tag   = m.group(1).lower()
        inner = m.group(2)
        base  = _slugify_anchor(inner)
        count = used.get(base, 0)
        used[base] = count + 1
        anchor = base if count == 0 else f"{base}-{count}"
        return f'<{tag} id="{anchor}">{inner}</{tag}>'

    return _HEADING_RE.sub(_anchor, html)


_ID_RE = re.compile(r'\sid="([^"]+)"')


def insert_toc(html: str, title: str = "Contents") -> str:
    """Replace the TOC placeholder with a nested list of the page headings.

    Headings without an ``id`` are listed but not linked.  Nesting mirrors
    heading depth relative to the shallowest heading on the page.
    """
    html = re.sub(r"<p>\s*" + TOC_SENTINEL + r"\s*</p>", TOC_SENTINEL, html)
    if TOC_SENTINEL not in html:
        return html

    headings = []
    for m in _HEADING_RE.finditer(html):
        id_match = _ID_RE.search(m.group(0).split(">", 1)[0])
        plain = _STRIP_TAGS_RE.sub("", m.group(2)).strip()
        headings.append((int(m.group(1)[1]), id_match.group(1) if id_match else None, plain))
    if not headings:
        return html.replace(TOC_SENTINEL, "")

    base_level = min(level for level, _, _ in headings)
    lines = ['<div class="toc">', f'<div class="toc-title">{title}</div>', '<ol class="toc-list">']
    depth = 0
    for level, anchor, plain in headings:
        rel = level - base_level
        while depth < rel:
            lines.append("<ol>")
            depth += 1
        while depth > rel:
            lines.append("</ol>")
            depth -= 1
        label = f'<a href="#{anchor}">{plain}</a>' if anchor else plain
        lines.append(f"<li>{label}</li>")
    lines.extend(["</ol>"] * depth)
    lines.extend(["</ol>", "</div>"])
    return html.replace(TOC_SENTINEL, "\n".join(lines), 1).replace(TOC_SENTINEL, "")


def drop_toc(html: str) -> str:
    html = re.sub(r"<p>\s*" + TOC_SENTINEL + r"\s*</p>\n?", "", html)
    return html.replace(TOC_SENTINEL, "")


# -----------------------------------------------------------------------------
# Link, table and image post-processors
# -----------------------------------------------------------------------------

_ANCHOR_RE = re.compile(r'<a\s[^>]*href="([^"]*)"[^>]*>', re.IGNORECASE)


def mark_links(html: str, hrefs: dict[str, str]) -> str:
    """Add css classes to anchors whose (unescaped) href is a key of *hrefs*."""
    if not hrefs:
        return html

    def _patch(m: re.Match) -> str:
        tag = m.group(0)
        css = hrefs.get(_html.unescape(m.group(1)))
        if not css:
            return tag
        if 'class="' in tag:
            return tag.replace('class="', f'class="{css} ', 1)
        return tag[:-1] + f' class="{css}">'

    return _ANCHOR_RE.sub(_patch, html)


_EXT_LINK_RE = re.compile(
    r'<a\s([^>]*href=["\'](?:https?://|//)[^"\'>][^>]*)>',
    re.IGNORECASE,
)


def add_external_link_targets(html: str) -> str:
    """Add target="_blank" rel="noopener noreferrer" to all external <a> tags."""
    def _patch(m: re.Match) -> str:
        attrs = m.group(1)
        if "target=" in attrs:
            return m.group(0)
        return f'<a {attrs} target="_blank" rel="noopener noreferrer">'
    return _EXT_LINK_RE.sub(_patch, html)


_TABLE_RE = re.compile(r"<table(\s[^>]*)?>", re.IGNORECASE)


def add_table_class(html: str, css: str) -> str:
    def _patch(m: re.Match) -> str:
        attrs = m.group(1) or ""
        if 'class="' in attrs:
            return "<table" + attrs.replace('class="', f'class="{css} ', 1) + ">"
        return f'<table class="{css}"{attrs}>'
    return _TABLE_RE.sub(_patch, html)


_IMG_RE = re.compile(r"<img\s([^>]*?)\s*/?>", re.IGNORECASE)


def lazy_images(html: str) -> str:
    def _patch(m: re.Match) -> str:
        attrs = m.group(1)
        if "loading=" in attrs:
            return m.group(0)
        return f'<img {attrs} loading="lazy" />'
    return _IMG_RE.sub(_patch, html)


# -----------------------------------------------------------------------------
# Plain text
# -----------------------------------------------------------------------------

_BLOCK_END_RE = re.compile(r"</(p|h[1-6]|li|pre|div|blockquote|tr)>", re.IGNORECASE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)


def html_to_text(html: str, tables: bool = False) -> str:
    """Strip markup from engine output.

    With *tables*, table cells are separated by tabs so rows stay on one line.
    """
    if tables:
        html = re.sub(r"</t[dh]>\s*", "\t", html, flags=re.IGNORECASE)
    html = _BR_RE.sub("\n", html)
    html = _BLOCK_END_RE.sub(lambda m: m.group(0) + "\n", html)
    text = _html.unescape(_STRIP_TAGS_RE.sub("", html))
    lines = [line.rstrip() for line in text.splitlines()]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip() + "\n"


# -----------------------------------------------------------------------------
