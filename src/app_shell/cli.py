import argparse
import logging
import sys
from datetime import datetime

import uvicorn

from src.adapters.clock import FrozenClock, SystemClock
from src.adapters.scheduler_loop import PublicationSchedulerLoop
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.store import SQLiteStore
from src.api.auth_utils import create_user_token
from src.api.deps import Settings
from src.components.reconcile import ReconcileInput, run_reconcile
from src.components.scheduler import SweepInput, run_sweep
from src.domain.entities import User
from src.domain.timeutil import ensure_utc
from src.ports.clock import ClockPort
from src.rules.loader import load_rules
from src.rules.models import Rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def _load(settings: Settings) -> tuple[Rules, SQLiteStore]:
    if not settings.rules_path.exists():
        logger.error("Rules file %s not found.", settings.rules_path)
        sys.exit(1)

    rules = load_rules(settings.rules_path)
    store = SQLiteStore(settings.db_path, timeout=rules.ops.db_busy_timeout_seconds)
    return rules, store


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
    print(f"Applied {len(applied)} migration(s) to {settings.db_path}.")


def handle_create_user(settings: Settings, args: argparse.Namespace) -> None:
    _, store = _load(settings)
    with store.transaction() as uow:
        existing = uow.users.get_by_email(args.email)
        if existing:
            logger.error("User %s already exists.", args.email)
            sys.exit(1)
        user = User(email=args.email, display_name=args.name, roles=args.role)
        uow.users.save(user)
    print(f"Created user {user.id} ({', '.join(user.roles)}).")


def handle_issue_token(settings: Settings, args: argparse.Namespace) -> None:
    _, store = _load(settings)
    with store.read() as uow:
        user = uow.users.get_by_email(args.email)
    if not user:
        logger.error("User %s not found.", args.email)
        sys.exit(1)
    print(create_user_token(user.id, expires_minutes=args.minutes))


def handle_sweep(settings: Settings, args: argparse.Namespace) -> None:
    rules, store = _load(settings)
    clock: ClockPort = SystemClock()
    if args.at:
        clock = FrozenClock(ensure_utc(datetime.fromisoformat(args.at)))

    result = run_sweep(SweepInput(), store=store, clock=clock, rules=rules.scheduling)
    print(f"Published {result.published}, skipped {result.skipped}, failed {result.failed}.")
    if not result.success:
        sys.exit(1)


def handle_scheduler(settings: Settings, args: argparse.Namespace) -> None:
    rules, store = _load(settings)
    clock = SystemClock()
    loop = PublicationSchedulerLoop(
        sweep=lambda: run_sweep(SweepInput(), store=store, clock=clock, rules=rules.scheduling),
        clock=clock,
        interval_seconds=args.interval or rules.scheduling.sweep_interval_seconds,
        reconcile=lambda: run_reconcile(ReconcileInput(), store=store),
        reconcile_every=rules.scheduling.reconcile_every_sweeps,
    )
    logger.info("Scheduler running in foreground; Ctrl+C to stop.")
    try:
        loop.run_forever()
    except KeyboardInterrupt:
        logger.info("Scheduler interrupted.")
    print(loop.stats())


def handle_reconcile(settings: Settings, args: argparse.Namespace) -> None:
    _, store = _load(settings)
    result = run_reconcile(ReconcileInput(dry_run=args.dry_run), store=store)
    if not result.success:
        logger.error("Reconciliation failed.")
        sys.exit(1)

    for d in result.drift:
        print(f"{d.table}.{d.column} {d.row_id}: stored={d.stored} actual={d.actual}")
    verb = "Found" if args.dry_run else "Repaired"
    print(f"{verb} {len(result.drift)} drifted counter(s).")


def handle_serve(settings: Settings, args: argparse.Namespace) -> None:
    uvicorn.run("src.api.main:app", host=args.host, port=args.port, reload=args.reload)


def main() -> None:
    parser = argparse.ArgumentParser(description="Newsdesk Core CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending SQL migrations")

    # create-user
    user_parser = subparsers.add_parser("create-user", help="Create a user")
    user_parser.add_argument("--email", required=True)
    user_parser.add_argument("--name", required=True, help="Display name")
    user_parser.add_argument(
        "--role",
        action="append",
        choices=["reader", "author", "admin"],
        default=None,
        help="Role to assign (repeatable, default reader)",
    )

    # issue-token
    token_parser = subparsers.add_parser("issue-token", help="Issue a dev access token")
    token_parser.add_argument("--email", required=True)
    token_parser.add_argument("--minutes", type=int, default=60 * 24, help="Token lifetime")

    # sweep
    sweep_parser = subparsers.add_parser("sweep", help="Publish due scheduled articles once")
    sweep_parser.add_argument("--at", help="Sweep as of this ISO timestamp instead of now")

    # scheduler
    scheduler_parser = subparsers.add_parser("scheduler", help="Run the sweep loop in foreground")
    scheduler_parser.add_argument("--interval", type=float, help="Seconds between sweeps")

    # reconcile
    reconcile_parser = subparsers.add_parser("reconcile", help="Repair denormalized counters")
    reconcile_parser.add_argument("--dry-run", action="store_true", help="Only report drift")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    args = parser.parse_args()
    if args.command == "create-user" and not args.role:
        args.role = ["reader"]

    settings = Settings()

    if args.command == "migrate":
        handle_migrate(settings, args)
    elif args.command == "create-user":
        handle_create_user(settings, args)
    elif args.command == "issue-token":
        handle_issue_token(settings, args)
    elif args.command == "sweep":
        handle_sweep(settings, args)
    elif args.command == "scheduler":
        handle_scheduler(settings, args)
    elif args.command == "reconcile":
        handle_reconcile(settings, args)
    elif args.command == "serve":
        handle_serve(settings, args)


if __name__ == "__main__":
    main()
