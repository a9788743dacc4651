#!/usr/bin/env python3
"""
Fullstack Boilerplate -- sign-up, sign-in and per-user records over FastAPI.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py delete-user ada@example.com
  python main.py delete-user ada@example.com --yes

Environment variables:
  DEPLOYMENT_ID   Required. Identifies this deployment.
  SITE_URL        Required. Public base URL, e.g. https://app.example.com
  SECRET_KEY      Required unless DEBUG=true. At least 32 characters.
  See core/config.py for the full list.
"""

import argparse
import sys

from auth.hooks import LifecycleHooks
from auth.service import SessionService
from auth.store import UserStore
from core.config import get_settings
from records import handlers as record_handlers
from records.store import RecordStore


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    print(f"\nFullstack Boilerplate -- deployment {settings.deployment_id}")
    print("─" * 40)
    print(f"Serving {settings.site_url} on http://{args.host}:{args.port}\n")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload, log_level=settings.log_level.lower())
    return 0


def _delete_user(args: argparse.Namespace) -> int:
    """Delete an account, its sessions and every first-party record it owns.

    Runs the same lifecycle hooks as DELETE /api/v1/auth/account, so the
    preferences row and tasks go with the account.
    """
    settings = get_settings()
    user_store = UserStore(settings.auth_database_url)
    records = RecordStore(settings.records_database_url)
    try:
        user = user_store.get_by_email(args.email)
        if user is None:
            print(f"  [!] No account found for '{args.email}'.")
            return 1

        if not args.yes:
            answer = input(f"  Delete {user.email} ({user.id}) and all of its records? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                print("  Aborted.")
                return 1

        hooks = LifecycleHooks()
        record_handlers.register(hooks, records)
        service = SessionService(user_store, hooks, settings.token_expire_seconds)
        service.delete_account(user.id)
        print(f"  Deleted {user.email}.")
        return 0
    finally:
        user_store.close()
        records.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="boilerplate",
        description="Fullstack auth boilerplate: web UI, JSON API and account tools.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  DEPLOYMENT_ID=dev SITE_URL=http://localhost:8000 DEBUG=true python main.py serve --reload
  python main.py delete-user ada@example.com --yes
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the web UI and API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_serve)

    delete = sub.add_parser("delete-user", help="Delete an account and its records")
    delete.add_argument("email", metavar="EMAIL", help="Email address of the account to delete")
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    delete.set_defaults(func=_delete_user)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
