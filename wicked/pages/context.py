#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Per-request service bundle handed to every page object.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Optional
from urllib.parse import quote, urlencode

from fastapi import Request

from wicked.core.config import Settings, get_settings
from wicked.core.robots import is_robot
from wicked.models import User
from wicked.services.email import send_wiki_mail
from wicked.services.notifications import Notifier
from wicked.services.permissions import PermissionRegistry
from wicked.services.store import PageStore
from wicked.services.users import Identity, get_user_by_id_or_none
from wicked.ui.templating import Views


Mailer = Callable[[str, str], Awaitable[None]]


# -----------------------------------------------------------------------------

@dataclass
class WikiContext:
    settings: Settings
    store: PageStore
    perms: PermissionRegistry
    identity: Identity
    views: Views
    notifier: Notifier
    mailer: Mailer = send_wiki_mail
    user: Optional[User] = None
    user_agent: str = ""
    form: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def for_session(cls, db, settings: Settings, **kwargs) -> "WikiContext":
        """Context whose store, registry and identity share one DB session."""
        kwargs.setdefault("views", Views(site_name=settings.site_name))
        kwargs.setdefault("notifier", Notifier())
        return cls(
            settings=settings,
            store=PageStore(db),
            perms=PermissionRegistry(db),
            identity=Identity(db),
            **kwargs,
        )

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user is not None else None

    @property
    def is_admin(self) -> bool:
        return bool(self.user is not None and self.user.is_admin)

    @property
    def is_robot(self) -> bool:
        return is_robot(self.user_agent, self.settings)

    @classmethod
    async def from_request(cls, request: Request, db, user_id: str | None,
                           form: Mapping[str, str] | None = None) -> "WikiContext":
        """Context for one HTTP request; *form* defaults to the query string."""
        return cls.for_session(
            db,
            get_settings(),
            user=await get_user_by_id_or_none(db, user_id),
            user_agent=request.headers.get("user-agent", ""),
            notifier=Notifier.from_request(request),
            form=dict(request.query_params) if form is None else form,
        )

    def url(self, name: str, full: bool = False, **params) -> str:
        """URL of the wiki page *name*; None-valued params are left out."""
        url = "/" + quote(name, safe="/")
        query = {k: v for k, v in params.items() if v is not None and v != ""}
        if query:
            url += "?" + urlencode(query)
        if full:
            url = self.settings.base_url.rstrip("/") + url
        return url


# -----------------------------------------------------------------------------
