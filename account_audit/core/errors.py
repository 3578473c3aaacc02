"""
Error kinds raised by the audit operations.

Every error carries the operation name and, where one applies, the user id
it was acting on, so the command line can report enough context to act on.
"""

from typing import Optional

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError

# PostgreSQL SQLSTATE codes
INSUFFICIENT_PRIVILEGE = "42501"
QUERY_CANCELED = "57014"


class AuditError(Exception):
    """Base class for all errors surfaced to the operator."""

    exit_code = 1

    def __init__(self, message: str, operation: str, user_id: Optional[str] = None):
        self.operation = operation
        self.user_id = user_id
        super().__init__(message)

    def __str__(self) -> str:
        context = f"[{self.operation}]"
        if self.user_id:
            context += f" user={self.user_id}"
        return f"{context} {self.args[0]}"


class DatabaseConnectionError(AuditError):
    """The database could not be reached."""


class DatabasePermissionError(AuditError):
    """The database role lacks privileges on the audited tables."""


class QueryTimeoutError(AuditError):
    """A statement was cancelled by the statement timeout."""


class DatabaseError(AuditError):
    """Any other database failure."""


class NotFoundError(AuditError):
    """The targeted user does not exist."""

    exit_code = 3


class ConfirmationRequiredError(AuditError):
    """A mutating operation was invoked without explicit confirmation."""

    exit_code = 2


def _sqlstate(exc: SQLAlchemyError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def translate_db_error(
    exc: SQLAlchemyError,
    operation: str,
    user_id: Optional[str] = None,
) -> AuditError:
    """Map a SQLAlchemy error onto the audit error kinds."""
    code = _sqlstate(exc)
    detail = str(getattr(exc, "orig", None) or exc).strip()

    if code == INSUFFICIENT_PRIVILEGE:
        return DatabasePermissionError(f"Insufficient privilege: {detail}", operation, user_id)
    if code == QUERY_CANCELED:
        return QueryTimeoutError(f"Query timed out: {detail}", operation, user_id)
    if isinstance(exc, (OperationalError, InterfaceError)) or (
        isinstance(exc, DBAPIError) and exc.connection_invalidated
    ):
        return DatabaseConnectionError(f"Database unreachable: {detail}", operation, user_id)
    return DatabaseError(f"Database error: {detail}", operation, user_id)
