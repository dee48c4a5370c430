import argparse
import asyncio
import getpass
import os

import campus_events.database as database
from campus_events.services.accounts import ensure_admin


async def main(name: str, email: str, password: str) -> None:
    """Create tables if needed and make sure an admin account exists."""

    await database.init_models()
    async with database.SessionLocal() as session:
        user, created = await ensure_admin(session, name=name, email=email, password=password)
    if created:
        print(f"Created admin account {user.email}.")
    else:
        print(f"{user.email} is an admin.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or promote a campus events admin.")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Administrator"))
    args = parser.parse_args()
    if not args.email:
        parser.error("--email (or ADMIN_EMAIL) is required")

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    asyncio.run(main(args.name, args.email, password))
