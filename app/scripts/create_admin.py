"""
One-time bootstrap script: creates the first ADMIN user.

Usage:
    python -m app.scripts.create_admin

Every other account comes from the public registration page and gets
the baseline role; this is the only way to mint an administrator.
"""

import asyncio
import getpass

from app.core.config import settings
from app.core.database import build_engine, build_session_factory
from app.core.exceptions import DuplicateUser, PasswordMismatch, PasswordTooLong
from app.services import auth_service

ADMIN_ROLE = "ROLE_ADMIN"


async def create_admin() -> None:
    engine = build_engine(settings.DATABASE_URL)
    session_factory = build_session_factory(engine)

    print("\nTienda Login: First Admin Setup\n")
    username = input("  Admin username: ").strip()
    password = getpass.getpass("  Password:       ")
    confirm = getpass.getpass("  Confirm:        ")

    if not username or not password:
        print("\nAll fields are required.")
        await engine.dispose()
        return

    async with session_factory() as session:
        try:
            user = await auth_service.register_user(
                username, password, confirm, session, default_role=ADMIN_ROLE,
            )
            await session.commit()
        except PasswordMismatch:
            print("\nPasswords do not match.")
        except DuplicateUser:
            print(f"\nUser '{username}' already exists.")
        except PasswordTooLong as exc:
            print(f"\n{exc}.")
        else:
            print("\nAdmin user created successfully!")
            print(f"    ID:       {user.id}")
            print(f"    Username: {user.username}")
            print(f"    Role:     {user.role}")
            print("\n   You can now log in via POST /login\n")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(create_admin())
