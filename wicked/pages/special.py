#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
AllPages: an index of every page in the wiki.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from wicked.pages.base import Mode, Page, Rendered
from wicked.pages.standard import StandardPage


# -----------------------------------------------------------------------------

class AllPages(Page):

    supported_modes = frozenset({Mode.DISPLAY})

    def is_valid(self) -> bool:
        return True

    def page_name(self) -> str:
        return "AllPages"

    def page_title(self) -> str:
        return "All Pages"

    async def display_contents(self, is_block: bool) -> Rendered:
        pages = []
        for name in await self.ctx.store.get_pages():
            page = await StandardPage.load(self.ctx, name)
            pages.append(await page.to_view())
        return self.ctx.views.render("allpages", pages=pages, is_block=is_block)


# -----------------------------------------------------------------------------
