"""Page objects: the request handlers of the wiki."""

from wicked.pages.base import Mode, NotSupported, Page, decide  # noqa: F401
from wicked.pages.context import WikiContext  # noqa: F401
from wicked.pages.resolve import (  # noqa: F401
    SPECIAL_PAGES, Variant, choose_variant, get_current_page, get_page,
)
