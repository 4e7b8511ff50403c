#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Set page permissions from the command line.

    python scripts/set_perms.py --show                       # list entries
    python scripts/set_perms.py --default ALL --guest SHOW,READ
    python scripts/set_perms.py --page Wiki/Home --default READ --guest READ
    python scripts/set_perms.py --page Wiki/Home --grant alice=EDIT,DELETE

Without --page the wiki-wide entry (wicked:pages) is changed.  Bit names:
SHOW, READ, EDIT, DELETE, ALL, NONE.
"""
# -----------------------------------------------------------------------------

import argparse
import asyncio
import sys
from functools import reduce
from pathlib import Path

# Ensure the wicked package is importable when run from the project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from wicked.core.config import get_settings
from wicked.core.database import create_all_tables, init_db, session_scope
from wicked.models import Permission, User
from wicked.services.permissions import (
    PAGES_PERMISSION, PermissionRegistry, Perms, page_permission_name,
)
from wicked.services.store import PageStore


# -----------------------------------------------------------------------------

def parse_perms(text: str) -> Perms:
    names = [part.strip().upper() for part in text.split(",") if part.strip()]
    try:
        return reduce(lambda acc, name: acc | Perms[name], names, Perms.NONE)
    except KeyError as exc:
        raise argparse.ArgumentTypeError(f"unknown permission {exc.args[0]!r}") from None


async def show(db) -> None:
    result = await db.execute(select(Permission).order_by(Permission.name))
    for perm in result.scalars().all():
        print(f"  {perm.name:<50} users={Perms(perm.default_perms)!r} guests={Perms(perm.guest_perms)!r}")


async def run(args) -> int:
    init_db()
    await create_all_tables()

    async with session_scope() as db:
        if args.show:
            await show(db)
            return 0

        name = PAGES_PERMISSION
        if args.page:
            page_id = await PageStore(db).get_page_id(args.page)
            if page_id is None:
                print(f"No such page: {args.page}", file=sys.stderr)
                return 1
            name = page_permission_name(page_id)

        registry = PermissionRegistry(db)
        if args.default is not None or args.guest is not None:
            await registry.set_permissions(name, args.default or Perms.NONE,
                                           args.guest or Perms.NONE)
            print(f"Set {name}")

        for grant in args.grant:
            username, _, bits = grant.partition("=")
            result = await db.execute(select(User.id).where(User.username == username))
            user_id = result.scalar_one_or_none()
            if user_id is None:
                print(f"No such user: {username}", file=sys.stderr)
                return 1
            await registry.grant(name, user_id, parse_perms(bits))
            print(f"Granted {bits} on {name} to {username}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Set Wicked page permissions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--page", metavar="NAME", help="Page to change (default: wiki-wide)")
    parser.add_argument("--default", type=parse_perms, metavar="BITS",
                        help="Bits for authenticated users")
    parser.add_argument("--guest", type=parse_perms, metavar="BITS",
                        help="Bits for anonymous visitors")
    parser.add_argument("--grant", action="append", default=[], metavar="USER=BITS",
                        help="Extra bits for one user (repeatable)")
    parser.add_argument("--show", action="store_true", help="List permission entries")
    args = parser.parse_args()

    print("DATABASE_URL:", get_settings().database_url)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
