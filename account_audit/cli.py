"""
Command line dispatcher for the account audit.

Read commands:    count, list, list-with-profile, list-stale, inspect, list-incomplete
Mutating commands (require --yes): verify, bulk-verify, purge-stale, delete-accounts
"""

import argparse
import logging
import sys
import uuid
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import sessionmaker

from account_audit.core.errors import AuditError, DatabaseConnectionError
from account_audit.core.logging_config import configure_logging
from account_audit.db.session import create_db_engine, create_session_factory, get_db
from account_audit.schemas import audit as schemas
from account_audit.services import audit_service
from account_audit.services.report_formatter import OUTPUT_FORMATS, format_result

logger = logging.getLogger(__name__)

# Output columns per command, used when a listing comes back empty
COMMAND_COLUMNS = {
    "list": list(schemas.UnverifiedUser.model_fields),
    "list-with-profile": list(schemas.UserProfileStatus.model_fields),
    "list-stale": list(schemas.StaleUnverifiedUser.model_fields),
    "inspect": list(schemas.AccountInspection.model_fields),
    "list-incomplete": list(schemas.UserProfileStatus.model_fields),
}


def _user_id(value: str) -> str:
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a valid user id (UUID expected)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="account-audit",
        description="Audit and remediate unverified user accounts.",
    )
    parser.add_argument("--database-url", help="Override DATABASE_URL from the environment")
    parser.add_argument("--format", dest="output_format", choices=OUTPUT_FORMATS, default="table",
                        help="Output format (default: table)")
    parser.add_argument("--log-level", help="Override LOG_LEVEL from the environment")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("count", help="Count unverified users")
    subparsers.add_parser("list", help="List unverified users with hours since sign-up")
    subparsers.add_parser("list-with-profile", help="List unverified users with their profile status")
    subparsers.add_parser("list-stale", help="List unverified users older than the stale threshold")
    subparsers.add_parser("list-incomplete", help="List verified users with a missing or incomplete profile")

    inspect_parser = subparsers.add_parser("inspect", help="Show verification and profile state by email")
    inspect_parser.add_argument("emails", nargs="+", metavar="EMAIL")

    verify_parser = subparsers.add_parser("verify", help="Manually verify a single user")
    verify_parser.add_argument("user_id", type=_user_id, metavar="USER_ID")
    verify_parser.add_argument("-y", "--yes", action="store_true", help="Confirm the update")

    bulk_parser = subparsers.add_parser("bulk-verify", help="Verify ALL unverified users (one-time migration)")
    bulk_parser.add_argument("-y", "--yes", action="store_true", help="Confirm the update")

    purge_parser = subparsers.add_parser("purge-stale", help="Delete unverified users older than the purge threshold")
    purge_parser.add_argument("-y", "--yes", action="store_true", help="Confirm the deletion")

    delete_parser = subparsers.add_parser("delete-accounts", help="Delete accounts by email")
    delete_parser.add_argument("emails", nargs="+", metavar="EMAIL")
    delete_parser.add_argument("--unverified-only", action="store_true",
                               help="Only delete accounts that are still unverified")
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Confirm the deletion")

    return parser


def dispatch(args: argparse.Namespace, session_factory: sessionmaker):
    """Run the selected command and return its result."""
    with get_db(session_factory) as db:
        if args.command == "count":
            return audit_service.count_unverified(db)
        if args.command == "list":
            return audit_service.list_unverified(db)
        if args.command == "list-with-profile":
            return audit_service.list_unverified_with_profiles(db)
        if args.command == "list-stale":
            return audit_service.list_stale_unverified(db)
        if args.command == "list-incomplete":
            return audit_service.list_incomplete_verified(db)
        if args.command == "inspect":
            return audit_service.inspect_accounts(db, args.emails)
        if args.command == "verify":
            return audit_service.verify_user(db, args.user_id, confirm=args.yes)
        if args.command == "bulk-verify":
            return audit_service.bulk_verify(db, confirm=args.yes)
        if args.command == "purge-stale":
            return audit_service.purge_stale_unverified(db, confirm=args.yes)
        if args.command == "delete-accounts":
            return audit_service.delete_accounts(
                db, args.emails, confirm=args.yes, unverified_only=args.unverified_only
            )
    raise ValueError(f"Unknown command: {args.command}")


def open_engine(database_url: Optional[str], operation: str) -> Engine:
    """Create the engine, reporting unusable connection strings as connection errors."""
    try:
        return create_db_engine(database_url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL ({type(e).__name__})", operation) from e


def main(argv: Optional[List[str]] = None, session_factory: Optional[sessionmaker] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    engine = None
    try:
        if session_factory is None:
            engine = open_engine(args.database_url, args.command)
            session_factory = create_session_factory(engine)

        logger.info(f"Running '{args.command}'")
        result = dispatch(args, session_factory)
    except AuditError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    finally:
        if engine is not None:
            engine.dispose()

    print(format_result(result, args.output_format, COMMAND_COLUMNS.get(args.command, ())))
    return 0


if __name__ == "__main__":
    sys.exit(main())
