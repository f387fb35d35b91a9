#!/usr/bin/env python3
"""
Taskboard -- task management API with token auth and role-based access.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 5000
  python main.py serve --reload
  python main.py create-admin --email admin@example.com --name "Admin User"
  python main.py create-admin --email admin@example.com --password-stdin < secret.txt

Environment variables (see core/config.py for the full list):
  SECRET_KEY     Required unless DEBUG=true. At least 32 characters.
  DATABASE_URL   SQLAlchemy URL. Defaults to a SQLite file next to the code.
  ADMIN_EMAIL / ADMIN_PASSWORD
                 Bootstrap admin created at server startup if missing.
"""

import argparse
import getpass
import sys

import uvicorn


def _serve(args: argparse.Namespace) -> int:
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_admin(args: argparse.Namespace) -> int:
    """Idempotently create an admin account against the configured database."""
    # Imported here so `serve --help` works without a SECRET_KEY configured.
    from auth.store import UserStore
    from core.config import get_settings
    from core.database import Database

    if args.password_stdin:
        password = sys.stdin.readline().rstrip("\n")
    else:
        password = getpass.getpass("Admin password: ")
    if len(password) < 6:
        print("  [!] Password must be at least 6 characters.")
        return 1

    db = Database(get_settings().database_url)
    try:
        created = UserStore(db).ensure_admin(args.name, args.email, password)
    finally:
        db.close()

    if created:
        print(f"  Admin account created for {args.email.lower()}")
    else:
        print(f"  {args.email.lower()} is already registered, nothing to do")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskboard",
        description="Taskboard task management API.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    serve.set_defaults(func=_serve)

    admin = sub.add_parser("create-admin", help="Create an admin account if the email is not registered.")
    admin.add_argument("--email", required=True)
    admin.add_argument("--name", default="Admin User")
    admin.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from the first line of stdin instead of prompting.",
    )
    admin.set_defaults(func=_create_admin)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
