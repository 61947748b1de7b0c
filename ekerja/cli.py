"""CLI for E-Kerja: bootstrap the database and accounts, manage keys."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys


async def cmd_init_db(args):
    """Create all tables."""
    from ekerja.db.engine import create_all

    await create_all()
    print("Database tables created")


async def cmd_create_user(args):
    """Create a user of any role (the only way to create admins)."""
    from ekerja.db import crud
    from ekerja.db.engine import async_session_factory, create_all
    from ekerja.models.enums import Role
    from ekerja.services.auth import hash_password

    await create_all()

    password = args.password
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)

    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)

    email = args.email.strip().lower()
    async with async_session_factory() as db:
        if await crud.get_user_by_email(db, email):
            print(f"User already exists: {email}")
            sys.exit(1)
        user = await crud.create_user(
            db, email=email, password_hash=hash_password(password),
            role=Role(args.role), full_name=args.name,
        )

    print(f"User created: {user.email} (id={user.id}, role={user.role.value})")


async def cmd_encrypt_existing(args):
    """Encrypt chat messages that were stored before encryption was enabled."""
    from sqlalchemy import select

    from ekerja.db.engine import async_session_factory
    from ekerja.models import ChatMessage
    from ekerja.services.encryption import InvalidToken, decrypt_value, encrypt_value

    async with async_session_factory() as db:
        result = await db.execute(select(ChatMessage).order_by(ChatMessage.id))
        count = 0
        for msg in result.scalars().all():
            try:
                decrypt_value(msg.message_content)
            except InvalidToken:
                msg.message_content = encrypt_value(msg.message_content)
                count += 1
        await db.commit()

    print(f"Encrypted {count} plaintext message(s)")


def cmd_serve(args):
    import uvicorn

    uvicorn.run("ekerja.main:app", host=args.host, port=args.port, reload=args.reload)


def cmd_generate_key(args):
    from ekerja.services.encryption import generate_key

    print(generate_key())


def main():
    parser = argparse.ArgumentParser(description="E-Kerja CLI")
    subparsers = parser.add_subparsers(dest="command")

    # init-db
    subparsers.add_parser("init-db", help="Create database tables")

    # create-user
    cu = subparsers.add_parser("create-user", help="Create a user account")
    cu.add_argument("--email", required=True, help="Login email")
    cu.add_argument("--role", required=True, choices=["customer", "provider", "admin"])
    cu.add_argument("--name", default="", help="Full name")
    cu.add_argument("--password", default="", help="Password (prompted if not given)")

    # generate-key
    subparsers.add_parser("generate-key", help="Print a new CHAT_ENCRYPTION_KEY")

    # encrypt-existing
    subparsers.add_parser("encrypt-existing", help="Encrypt plaintext chat messages (requires CHAT_ENCRYPTION_KEY)")

    # serve
    sv = subparsers.add_parser("serve", help="Run the API server")
    sv.add_argument("--host", default="127.0.0.1")
    sv.add_argument("--port", type=int, default=8000)
    sv.add_argument("--reload", action="store_true")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "create-user":
        asyncio.run(cmd_create_user(args))
    elif args.command == "generate-key":
        cmd_generate_key(args)
    elif args.command == "encrypt-existing":
        asyncio.run(cmd_encrypt_existing(args))
    elif args.command == "serve":
        cmd_serve(args)


if __name__ == "__main__":
    main()
