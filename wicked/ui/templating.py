#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Jinja2 template access shared by the UI router and the page objects.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates


TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


# -----------------------------------------------------------------------------

class Views:
    """Renders template fragments for page objects.

    Full pages are produced by the UI router, which wraps a fragment in
    ``layout.html``.
    """

    def __init__(self, env=None, **defaults):
        self.env = env or templates.env
        self.defaults = defaults

    def render(self, template: str, **variables) -> str:
        if not template.endswith(".html"):
            template += ".html"
        return self.env.get_template(template).render(**{**self.defaults, **variables})


# -----------------------------------------------------------------------------
