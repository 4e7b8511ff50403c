#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup processor
================
A ``Processor`` turns page source into one of three output formats:

  - xhtml : HTML for the browser
  - plain : text with the markup stripped
  - rst   : the page source with wiki links resolved to reStructuredText
            hyperlinks (full URLs), suitable for export

The work is split into named *rules*.  Each rule may rewrite the source before
the engine runs and/or post-process the engine's HTML.  A dialect starts from
its base rule list; ``build_processor`` swaps rules in and out per output
format.  Replacing ``Wikilink`` by ``Wikilink2`` for instance turns plain
links into links that know which pages exist.

Wiki link syntax (both dialects):

    [[Page Name]]             link to a page
    [[Page Name|label]]       link with a label
    ((Page Name))             free link (markdown only)
    {{toc}}                   table of contents (markdown only)
    {{include:Page Name}}     link to another page's content
    {{embed:https://...}}     link to an external resource
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Optional
from urllib.parse import quote

from wicked.services import renderer


DIALECTS = ("markdown", "rst")
OUTPUT_FORMATS = ("plain", "rst", "xhtml")


# -----------------------------------------------------------------------------
# Link configuration
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class LinkConf:
    """How wiki links are turned into URLs.

    ``view_url`` and ``new_url`` contain a ``%s`` placeholder for the quoted
    page name.  Links to pages not in ``pages`` point at ``new_url`` and get
    the ``css_new`` class; with no ``new_url`` they are rendered as text.
    """
    pages: frozenset[str] = frozenset()
    view_url: str = "%s"
    new_url: Optional[str] = None
    css_new: str = "newpage"
    check_pages: bool = True


def _fill(template: str, name: str) -> str:
    return template.replace("%s", quote(name, safe="/"), 1)


# -----------------------------------------------------------------------------
# Per-transform state
# -----------------------------------------------------------------------------

@dataclass
class _State:
    # href -> css classes to add once the engine has produced HTML
    link_classes: dict[str, str] = field(default_factory=dict)


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------

_WIKILINK_UNICODE = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")
_WIKILINK_ASCII = re.compile(r"\[\[([A-Za-z0-9 _./-]+)(?:\|([^\]]+))?\]\]")
_FREELINK_UNICODE = re.compile(r"\(\(([^()]+)\)\)")
_FREELINK_ASCII = re.compile(r"\(\(([A-Za-z0-9 _./-]+)\)\)")
_TOC_MACRO = re.compile(r"\{\{\s*toc\s*\}\}", re.IGNORECASE)
_INCLUDE_MACRO = re.compile(r"\{\{\s*include:\s*([^}]+?)\s*\}\}", re.IGNORECASE)
_EMBED_MACRO = re.compile(r"\{\{\s*embed:\s*(\S+?)\s*\}\}", re.IGNORECASE)


@dataclass(frozen=True)
class Rule:
    source: Optional[Callable[["Processor", str, _State], str]] = None
    post: Optional[Callable[["Processor", str, _State], str]] = None


def _link_markup(proc: "Processor", label: str, href: str) -> str:
    if "rst" in (proc.dialect, proc.output_format):
        return f"`{label} <{href}>`__"
    return f"[{label}]({href})"


def _wiki_link(proc: "Processor", rule: str, state: _State,
               target: str, label: str, aware: bool) -> str:
    target = target.strip()
    label = (label or target).strip()
    conf: LinkConf = proc.render_conf.get((proc.output_format, rule)) or LinkConf(check_pages=False)

    if not aware or not conf.check_pages or target in conf.pages:
        href = _fill(conf.view_url, target)
        state.link_classes[href] = "wikilink"
        return _link_markup(proc, label, href)

    if conf.new_url is None:
        return label
    href = _fill(conf.new_url, target)
    state.link_classes[href] = f"wikilink {conf.css_new}"
    return _link_markup(proc, label, href)


def _wikilink_rule(rule: str, aware: bool):
    def source(proc: "Processor", text: str, state: _State) -> str:
        pattern = _WIKILINK_UNICODE if proc.get_parse_conf(rule, "utf-8", False) else _WIKILINK_ASCII
        return pattern.sub(
            lambda m: _wiki_link(proc, rule, state, m.group(1), m.group(2), aware), text)
    return source


def _freelink_rule(rule: str, aware: bool):
    def source(proc: "Processor", text: str, state: _State) -> str:
        pattern = _FREELINK_UNICODE if proc.get_parse_conf(rule, "utf-8", False) else _FREELINK_ASCII
        return pattern.sub(
            lambda m: _wiki_link(proc, rule, state, m.group(1), None, aware), text)
    return source


def _prefilter(proc, text, state):
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _toc_source(proc, text, state):
    if proc.output_format == "rst":
        title = proc.render_conf.get(("rst", "Toc2"), {}).get("title", "Contents")
        return _TOC_MACRO.sub(f"\n.. contents:: {title}\n", text)
    return _TOC_MACRO.sub("\n\n" + renderer.TOC_SENTINEL + "\n\n", text)


def _toc_post(proc, html, state):
    if proc.output_format != "xhtml":
        return renderer.drop_toc(html)
    title = proc.render_conf.get(("xhtml", "Toc2"), {}).get("title", "Contents")
    # Toc2 runs ahead of Heading2; anchor the headings now so entries link
    if proc.has_rule("Heading2"):
        html = renderer.add_heading_anchors(html)
    return renderer.insert_toc(html, title)


def _include_source(proc, text, state):
    return _INCLUDE_MACRO.sub(lambda m: f"[[{m.group(1)}]]", text)


def _embed_source(proc, text, state):
    return _EMBED_MACRO.sub(lambda m: _link_markup(proc, m.group(1), m.group(1)), text)


def _heading2_post(proc, html, state):
    if proc.output_format != "xhtml":
        return html
    return renderer.add_heading_anchors(html)


def _table_post(proc, html, state):
    css = proc.render_conf.get((proc.output_format, "Table"), {}).get("css_table")
    if not css or proc.output_format != "xhtml":
        return html
    return renderer.add_table_class(html, css)


def _url_post(proc, html, state):
    html = renderer.mark_links(html, state.link_classes)
    if proc.output_format != "xhtml":
        return html
    return renderer.add_external_link_targets(html)


def _image2_post(proc, html, state):
    return renderer.lazy_images(html)


# Table2 and Code/Code2 are read by transform() itself.
RULES: dict[str, Rule] = {
    "Prefilter": Rule(source=_prefilter),
    "Toc":       Rule(),
    "Toc2":      Rule(source=_toc_source, post=_toc_post),
    "Include":   Rule(source=_include_source),
    "Embed":     Rule(source=_embed_source),
    "Heading":   Rule(),
    "Heading2":  Rule(post=_heading2_post),
    "Wikilink":  Rule(source=_wikilink_rule("Wikilink", aware=False)),
    "Wikilink2": Rule(source=_wikilink_rule("Wikilink2", aware=True)),
    "Freelink":  Rule(source=_freelink_rule("Freelink", aware=False)),
    "Freelink2": Rule(source=_freelink_rule("Freelink2", aware=True)),
    "Image":     Rule(),
    "Image2":    Rule(post=_image2_post),
    "Code":      Rule(),
    "Code2":     Rule(),
    "Table":     Rule(post=_table_post),
    "Table2":    Rule(),
    "Url":       Rule(post=_url_post),
}

BASE_RULES: dict[str, tuple[str, ...]] = {
    "markdown": ("Prefilter", "Toc", "Include", "Embed", "Heading", "Wikilink",
                 "Freelink", "Image", "Code", "Table", "Url"),
    "rst":      ("Prefilter", "Include", "Embed", "Heading", "Wikilink",
                 "Image", "Code", "Table", "Url"),
}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Processor
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Processor:

    def __init__(self, dialect: str, output_format: str, rules=None):
        if dialect not in DIALECTS:
            raise ValueError(f"unknown markup dialect {dialect!r}")
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"unknown output format {output_format!r}")
        self.dialect = dialect
        self.output_format = output_format
        self.rules: list[str] = list(BASE_RULES[dialect] if rules is None else rules)
        self.parse_conf: dict[str, dict] = {}
        self.render_conf: dict[tuple[str, str], object] = {}
        self.format_conf: dict[str, dict] = {}

    def __repr__(self) -> str:
        return f"<Processor {self.dialect}->{self.output_format} {self.rules}>"

    # ── Rules ────────────────────────────────────────────────────────────

    def has_rule(self, name: str) -> bool:
        return name in self.rules

    def insert_rule(self, name: str, after: Optional[str] = None) -> bool:
        """Insert *name* after the rule *after*, or append it.

        Returns False, leaving the list alone, when *name* is already present
        or *after* is not.
        """
        if name not in RULES:
            raise ValueError(f"unknown rule {name!r}")
        if name in self.rules:
            return False
        if after is None:
            self.rules.append(name)
            return True
        if after not in self.rules:
            return False
        self.rules.insert(self.rules.index(after) + 1, name)
        return True

    def delete_rule(self, name: str) -> bool:
        if name not in self.rules:
            return False
        self.rules.remove(name)
        return True

    # ── Configuration ────────────────────────────────────────────────────

    def set_parse_conf(self, rule: str, key: str, value) -> None:
        self.parse_conf.setdefault(rule, {})[key] = value

    def get_parse_conf(self, rule: str, key: str, default=None):
        return self.parse_conf.get(rule, {}).get(key, default)

    def set_render_conf(self, output_format: str, rule: str, conf) -> None:
        """Attach *conf* to *rule* for *output_format*.

        Dicts are merged into an existing dict conf; anything else (a
        ``LinkConf``) replaces it.
        """
        current = self.render_conf.get((output_format, rule))
        if isinstance(conf, dict) and isinstance(current, dict):
            current.update(conf)
        else:
            self.render_conf[(output_format, rule)] = dict(conf) if isinstance(conf, dict) else conf

    def set_format_conf(self, output_format: str, key: str, value) -> None:
        self.format_conf.setdefault(output_format, {})[key] = value

    # ── Transform ────────────────────────────────────────────────────────

    def transform(self, text: str) -> str:
        state = _State()
        for name in self.rules:
            hook = RULES[name].source
            if hook is not None:
                text = hook(self, text, state)

        if self.output_format == "rst":
            return text

        conf = self.format_conf.get(self.output_format, {})
        engine = renderer.ENGINES[self.dialect]
        html = engine(text, highlight=self.has_rule("Code2"),
                      escape=conf.get("translate", "html_specialchars") == "html_specialchars")

        for name in self.rules:
            hook = RULES[name].post
            if hook is not None:
                html = hook(self, html, state)

        if self.output_format == "plain":
            return renderer.html_to_text(html, tables=self.has_rule("Table2"))
        return html


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Builder
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _replace(proc: Processor, old: str, new: str) -> None:
    if proc.insert_rule(new, old):
        proc.delete_rule(old)


def build_processor(dialect: str, output_format: str,
                    link_conf: LinkConf, full_link_conf: LinkConf | None = None) -> Processor:
    """Configure a processor for rendering a page.

    *link_conf* resolves wiki links for ``xhtml``; *full_link_conf* (absolute
    URLs, defaults to *link_conf*) is used for ``rst`` export.  Each call
    returns a new processor.
    """
    proc = Processor(dialect, output_format)
    full_link_conf = full_link_conf or link_conf

    _replace(proc, "Heading", "Heading2")
    proc.set_parse_conf("Wikilink", "utf-8", True)
    proc.set_parse_conf("Freelink", "utf-8", True)
    if dialect == "markdown":
        _replace(proc, "Toc", "Toc2")
    else:
        proc.delete_rule("Toc")

    if output_format == "plain":
        _replace(proc, "Table", "Table2")

    elif output_format == "rst":
        _replace(proc, "Table", "Table2")
        proc.set_render_conf("rst", "Wikilink", full_link_conf)
        if proc.insert_rule("Freelink2", "Freelink"):
            proc.set_parse_conf("Freelink2", "utf-8", True)
            proc.set_render_conf("rst", "Freelink2", full_link_conf)
        proc.delete_rule("Freelink")

    elif output_format == "xhtml":
        _replace(proc, "Code", "Code2")
        _replace(proc, "Wikilink", "Wikilink2")
        proc.set_parse_conf("Wikilink2", "utf-8", True)
        proc.set_render_conf("xhtml", "Wikilink2", link_conf)
        if proc.insert_rule("Freelink2", "Freelink"):
            proc.set_parse_conf("Freelink2", "utf-8", True)
            proc.set_render_conf("xhtml", "Freelink2", link_conf)
        proc.delete_rule("Freelink")
        _replace(proc, "Image", "Image2")
        proc.delete_rule("Include")
        proc.delete_rule("Embed")
        proc.set_format_conf("xhtml", "charset", "UTF-8")
        proc.set_format_conf("xhtml", "translate", "html_specialchars")
        proc.set_render_conf("xhtml", "Toc2", {"title": "Table of Contents"})
        proc.set_render_conf("xhtml", "Table", {"css_table": "wiki-table"})

    return proc


# -----------------------------------------------------------------------------
