"""
Pytest configuration and fixtures for the account audit tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, Optional

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from account_audit.db.session import Base, create_db_engine, create_session_factory
from account_audit.models.external import Profile, User

# Fixed evaluation time for deterministic age calculations
NOW = datetime(2025, 11, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with the audited tables created."""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(session_factory: sessionmaker) -> Callable[..., str]:
    """
    Insert a user, optionally with a profile, and return its id.

    Args:
        email: Email address.
        age_hours: Hours between sign-up and the reference time.
        verified: Whether the email has been confirmed.
        role: Intended role stored in the sign-up metadata.
        profile: None for no profile, otherwise the profile's full name
            (use "" for a profile without a full name).
        reference: Time the age is measured from (defaults to NOW).
    """

    def _make_user(
        email: str,
        age_hours: float = 1,
        verified: bool = False,
        role: Optional[str] = None,
        profile: Optional[str] = None,
        confirmation_sent: bool = False,
        reference: datetime = NOW,
    ) -> str:
        user_id = str(uuid.uuid4())
        created_at = reference - timedelta(hours=age_hours)
        session = session_factory()
        try:
            session.add(User(
                id=user_id,
                email=email,
                created_at=created_at,
                email_confirmed_at=created_at + timedelta(minutes=5) if verified else None,
                confirmation_sent_at=created_at if confirmation_sent else None,
                raw_user_meta_data={"role": role} if role else {},
            ))
            if profile is not None:
                session.add(Profile(
                    id=user_id,
                    email=email,
                    role=role or "player",
                    full_name=profile or None,
                    created_at=created_at,
                ))
            session.commit()
        finally:
            session.close()
        return user_id

    return _make_user


@pytest.fixture
def profile_ids(session_factory: sessionmaker) -> Callable[[], set]:
    """Return a callable listing the ids currently in the profiles table."""

    def _profile_ids() -> set:
        session = session_factory()
        try:
            return {profile.id for profile in session.query(Profile).all()}
        finally:
            session.close()

    return _profile_ids


@pytest.fixture
def now() -> datetime:
    """The fixed evaluation time users are aged against."""
    return NOW
