#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Flash notifications.

Page handlers push user-facing messages while handling a request.  Messages
that are not shown on the same response (typically because the handler
redirects) travel to the next request in a base64-encoded JSON cookie.

    notifier = Notifier.from_request(request)
    notifier.push('Deleted version 3 of "Foo".', "success")
    ...
    notifier.save(response)
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import base64
import json
from dataclasses import asdict, dataclass

from fastapi import Request
from starlette.responses import Response


COOKIE_NAME = "wicked_flash"
LEVELS = ("success", "message", "warning", "error")


# -----------------------------------------------------------------------------

@dataclass
class Flash:
    message: str
    level: str = "message"


class Notifier:

    def __init__(self, pending: list[Flash] | None = None):
        self._loaded = list(pending or [])
        self.messages: list[Flash] = list(self._loaded)

    @classmethod
    def from_request(cls, request: Request) -> "Notifier":
        raw = request.cookies.get(COOKIE_NAME, "")
        try:
            padded = raw + "=" * (-len(raw) % 4)
            items = json.loads(base64.urlsafe_b64decode(padded.encode("ascii"))) if raw else []
        except (ValueError, UnicodeError):
            items = []
        pending = [
            Flash(str(d["message"]), d.get("level", "message"))
            for d in items
            if isinstance(d, dict) and "message" in d
        ] if isinstance(items, list) else []
        return cls(pending)

    def push(self, message: str, level: str = "message") -> None:
        if level not in LEVELS:
            raise ValueError(f"unknown notification level {level!r}")
        self.messages.append(Flash(message, level))

    def pop_all(self) -> list[Flash]:
        """Messages to show now; they will not be carried any further."""
        messages, self.messages = self.messages, []
        return messages

    def save(self, response: Response) -> None:
        """Carry undisplayed messages over to the next request."""
        if self.messages:
            response.set_cookie(
                COOKIE_NAME,
                base64.urlsafe_b64encode(
                    json.dumps([asdict(m) for m in self.messages]).encode("utf-8")
                ).decode("ascii").rstrip("="),
                httponly=True,
                samesite="lax",
            )
        elif self._loaded:
            response.delete_cookie(COOKIE_NAME)


# -----------------------------------------------------------------------------
