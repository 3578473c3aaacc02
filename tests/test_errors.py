"""
Tests for translating database failures into audit errors.
"""

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, ProgrammingError

from account_audit.core.errors import (
    ConfirmationRequiredError,
    DatabaseConnectionError,
    DatabaseError,
    DatabasePermissionError,
    NotFoundError,
    QueryTimeoutError,
    translate_db_error,
)


class DriverError(Exception):
    """Stand-in for a driver exception carrying a SQLSTATE."""

    def __init__(self, message: str, pgcode: str = None):
        super().__init__(message)
        self.pgcode = pgcode


class TestTranslateDbError:
    """Tests for translate_db_error."""

    def test_insufficient_privilege(self) -> None:
        """Test SQLSTATE 42501 becomes a permission error."""
        exc = ProgrammingError("SELECT", {}, DriverError("permission denied for schema auth", "42501"))
        error = translate_db_error(exc, "count")
        assert isinstance(error, DatabasePermissionError)
        assert error.operation == "count"
        assert "permission denied" in str(error)

    def test_statement_timeout(self) -> None:
        """Test SQLSTATE 57014 becomes a timeout error."""
        exc = OperationalError("SELECT", {}, DriverError("canceling statement due to statement timeout", "57014"))
        assert isinstance(translate_db_error(exc, "list"), QueryTimeoutError)

    def test_unreachable(self) -> None:
        """Test operational and interface errors become connection errors."""
        refused = OperationalError(None, None, DriverError("could not connect to server: Connection refused"))
        closed = InterfaceError(None, None, DriverError("connection already closed"))
        assert isinstance(translate_db_error(refused, "count"), DatabaseConnectionError)
        assert isinstance(translate_db_error(closed, "count"), DatabaseConnectionError)

    def test_other_errors(self) -> None:
        """Test anything else is a generic database error keeping the user id."""
        exc = IntegrityError("UPDATE", {}, DriverError("violates foreign key constraint", "23503"))
        error = translate_db_error(exc, "verify", user_id="abc")
        assert isinstance(error, DatabaseError)
        assert error.user_id == "abc"
        assert str(error).startswith("[verify] user=abc")


class TestExitCodes:
    """Tests for the exit codes carried by each error kind."""

    def test_exit_codes(self) -> None:
        """Test fatal errors exit 1, refusals 2 and missing targets 3."""
        assert DatabaseConnectionError("x", "count").exit_code == 1
        assert DatabasePermissionError("x", "count").exit_code == 1
        assert QueryTimeoutError("x", "count").exit_code == 1
        assert ConfirmationRequiredError("x", "purge-stale").exit_code == 2
        assert NotFoundError("x", "verify", "abc").exit_code == 3
