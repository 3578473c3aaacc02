"""
Audit and remediation operations over unverified user accounts.

Read operations have no side effects. The mutating operations refuse to run
without explicit confirmation and each commits a single transaction, rolling
back on any database error.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from account_audit.core.config import settings
from account_audit.core.errors import ConfirmationRequiredError, NotFoundError, translate_db_error
from account_audit.models.external import Profile, User
from account_audit.schemas.audit import (
    NO_PROFILE,
    PROFILE_COMPLETE,
    PROFILE_INCOMPLETE,
    UNVERIFIED_EMAIL_SENT,
    UNVERIFIED_NO_EMAIL,
    VERIFIED,
    AccountInspection,
    BulkVerifyResult,
    DeleteAccountsResult,
    PurgeResult,
    StaleUnverifiedUser,
    UnverifiedUser,
    UserProfileStatus,
    VerifyResult,
)

import logging
logger = logging.getLogger(__name__)

UNVERIFIED = User.email_confirmed_at.is_(None)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive timestamps; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def hours_since(created_at: datetime, now: datetime) -> float:
    """Hours elapsed between sign-up and now, never negative."""
    elapsed = (_as_utc(now) - _as_utc(created_at)).total_seconds() / 3600
    return max(elapsed, 0.0)


def derive_profile_status(profile: Optional[Profile]) -> str:
    """Label a user's profile as missing, incomplete or complete."""
    if profile is None:
        return NO_PROFILE
    if profile.full_name is None:
        return PROFILE_INCOMPLETE
    return PROFILE_COMPLETE


def derive_verification_status(user: User) -> str:
    """Label a user as verified, or unverified with or without a sent email."""
    if user.email_confirmed_at is not None:
        return VERIFIED
    if user.confirmation_sent_at is not None:
        return UNVERIFIED_EMAIL_SENT
    return UNVERIFIED_NO_EMAIL


def _require_confirmation(confirm: bool, operation: str, user_id: Optional[str] = None) -> None:
    if not confirm:
        raise ConfirmationRequiredError(
            "Refusing to modify data without explicit confirmation (pass --yes)",
            operation,
            user_id,
        )


@contextmanager
def _translate_errors(operation: str, db: Session, user_id: Optional[str] = None) -> Iterator[None]:
    """Roll back and re-raise database failures as audit errors."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{operation} failed: {e}")
        raise translate_db_error(e, operation, user_id) from e


def _profile_status_row(user: User, profile: Optional[Profile]) -> UserProfileStatus:
    return UserProfileStatus(
        id=user.id,
        email=user.email,
        auth_created=_as_utc(user.created_at),
        profile_created=_as_utc(profile.created_at) if profile is not None else None,
        role=profile.role if profile is not None else None,
        full_name=profile.full_name if profile is not None else None,
        profile_status=derive_profile_status(profile),
    )


def _users_with_profiles(db: Session):
    return db.query(User, Profile).outerjoin(Profile, User.id == Profile.id)


# Read operations

def count_unverified(db: Session) -> int:
    """Number of users whose email has not been confirmed."""
    with _translate_errors("count", db):
        count = db.query(User).filter(UNVERIFIED).count()
    logger.info(f"Found {count} unverified users")
    return count


def list_unverified(db: Session, now: Optional[datetime] = None) -> List[UnverifiedUser]:
    """All unverified users, newest first, with hours since sign-up."""
    now = now or _utcnow()
    with _translate_errors("list", db):
        users = db.query(User).filter(UNVERIFIED).order_by(User.created_at.desc()).all()

    return [
        UnverifiedUser(
            id=user.id,
            email=user.email,
            created_at=_as_utc(user.created_at),
            last_sign_in_at=_as_utc(user.last_sign_in_at),
            hours_since_signup=hours_since(user.created_at, now),
            intended_role=user.intended_role,
        )
        for user in users
    ]


def list_unverified_with_profiles(db: Session) -> List[UserProfileStatus]:
    """Unverified users joined with their profile status, newest first."""
    with _translate_errors("list-with-profile", db):
        rows = (
            _users_with_profiles(db)
            .filter(UNVERIFIED)
            .order_by(User.created_at.desc())
            .all()
        )
    return [_profile_status_row(user, profile) for user, profile in rows]


def list_stale_unverified(db: Session, now: Optional[datetime] = None) -> List[StaleUnverifiedUser]:
    """Unverified users created more than STALE_UNVERIFIED_HOURS ago, newest first."""
    now = now or _utcnow()
    cutoff = now - timedelta(hours=settings.STALE_UNVERIFIED_HOURS)
    with _translate_errors("list-stale", db):
        users = (
            db.query(User)
            .filter(UNVERIFIED, User.created_at < cutoff)
            .order_by(User.created_at.desc())
            .all()
        )

    return [
        StaleUnverifiedUser(
            id=user.id,
            email=user.email,
            created_at=_as_utc(user.created_at),
            hours_since_signup=hours_since(user.created_at, now),
        )
        for user in users
    ]


def inspect_accounts(db: Session, emails: Sequence[str], now: Optional[datetime] = None) -> List[AccountInspection]:
    """Verification and profile state of the accounts with the given emails."""
    now = now or _utcnow()
    with _translate_errors("inspect", db):
        rows = (
            _users_with_profiles(db)
            .filter(User.email.in_(list(emails)))
            .order_by(User.created_at.desc())
            .all()
        )

    return [
        AccountInspection(
            id=user.id,
            email=user.email,
            created_at=_as_utc(user.created_at),
            last_sign_in_at=_as_utc(user.last_sign_in_at),
            email_confirmed_at=_as_utc(user.email_confirmed_at),
            confirmation_sent_at=_as_utc(user.confirmation_sent_at),
            hours_since_signup=hours_since(user.created_at, now),
            intended_role=user.intended_role,
            verification_status=derive_verification_status(user),
            profile_status=derive_profile_status(profile),
        )
        for user, profile in rows
    ]


def list_incomplete_verified(db: Session) -> List[UserProfileStatus]:
    """Verified users whose profile is missing or has no full name."""
    with _translate_errors("list-incomplete", db):
        rows = (
            _users_with_profiles(db)
            .filter(
                User.email_confirmed_at.isnot(None),
                or_(Profile.id.is_(None), Profile.full_name.is_(None)),
            )
            .order_by(User.created_at.desc())
            .all()
        )
    return [_profile_status_row(user, profile) for user, profile in rows]


# Mutating operations

def verify_user(db: Session, user_id: str, confirm: bool = False, now: Optional[datetime] = None) -> VerifyResult:
    """
    Mark a single user's email as confirmed.

    Raises NotFoundError when no user has the id. A user that is already
    verified keeps its original confirmation timestamp.
    """
    _require_confirmation(confirm, "verify", user_id)
    now = now or _utcnow()

    with _translate_errors("verify", db, user_id):
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError(f"User with id {user_id} not found", "verify", user_id)

        if user.email_confirmed_at is not None:
            logger.info(f"User {user_id} ({user.email}) is already verified")
            return VerifyResult(
                user_id=user.id,
                email=user.email,
                email_confirmed_at=_as_utc(user.email_confirmed_at),
                already_verified=True,
            )

        email = user.email
        db.query(User).filter(User.id == user_id, UNVERIFIED).update(
            {User.email_confirmed_at: now}, synchronize_session=False
        )
        db.commit()

    logger.info(f"User {user_id} ({email}) has been marked as verified")
    return VerifyResult(user_id=user_id, email=email, email_confirmed_at=now, already_verified=False)


def bulk_verify(db: Session, confirm: bool = False, now: Optional[datetime] = None) -> BulkVerifyResult:
    """Mark every unverified user as confirmed. Intended for one-time migrations."""
    _require_confirmation(confirm, "bulk-verify")
    now = now or _utcnow()

    with _translate_errors("bulk-verify", db):
        verified = db.query(User).filter(UNVERIFIED).update(
            {User.email_confirmed_at: now}, synchronize_session=False
        )
        db.commit()

    logger.info(f"Verified {verified} previously unverified users")
    return BulkVerifyResult(verified_count=verified, verified_at=now)


def _delete_users(db: Session, *criteria) -> tuple:
    """Delete matching users and their profiles. Caller commits."""
    user_ids = select(User.id).where(*criteria)
    profiles_deleted = (
        db.query(Profile)
        .filter(Profile.id.in_(user_ids))
        .delete(synchronize_session=False)
    )
    users_deleted = db.query(User).filter(*criteria).delete(synchronize_session=False)
    return users_deleted, profiles_deleted


def purge_stale_unverified(db: Session, confirm: bool = False, now: Optional[datetime] = None) -> PurgeResult:
    """
    Delete unverified users older than PURGE_UNVERIFIED_AFTER_DAYS with their profiles.

    Profiles go in the same transaction as their users, so none is left
    orphaned whether or not the database cascades the delete.
    """
    _require_confirmation(confirm, "purge-stale")
    now = now or _utcnow()
    cutoff = now - timedelta(days=settings.PURGE_UNVERIFIED_AFTER_DAYS)
    criteria = (UNVERIFIED, User.created_at < cutoff)

    with _translate_errors("purge-stale", db):
        matched_before = db.query(User).filter(*criteria).count()
        logger.info(f"{matched_before} unverified users created before {cutoff.isoformat()} will be deleted")

        users_deleted, profiles_deleted = _delete_users(db, *criteria)
        db.commit()

        remaining_after = db.query(User).filter(*criteria).count()

    logger.info(
        f"Purged {users_deleted} users and {profiles_deleted} profiles; "
        f"{remaining_after} stale unverified users remain"
    )
    return PurgeResult(
        cutoff=cutoff,
        matched_before=matched_before,
        users_deleted=users_deleted,
        profiles_deleted=profiles_deleted,
        remaining_after=remaining_after,
    )


def delete_accounts(
    db: Session,
    emails: Sequence[str],
    confirm: bool = False,
    unverified_only: bool = False,
) -> DeleteAccountsResult:
    """Delete the accounts with the given emails together with their profiles."""
    _require_confirmation(confirm, "delete-accounts")
    emails = list(emails)
    criteria = [User.email.in_(emails)]
    if unverified_only:
        criteria.append(UNVERIFIED)

    with _translate_errors("delete-accounts", db):
        users_deleted, profiles_deleted = _delete_users(db, *criteria)
        db.commit()

        remaining = db.query(User).filter(User.email.in_(emails)).count()

    logger.info(f"Deleted {users_deleted} users and {profiles_deleted} profiles; {remaining} of the requested emails remain")
    return DeleteAccountsResult(
        emails=emails,
        unverified_only=unverified_only,
        users_deleted=users_deleted,
        profiles_deleted=profiles_deleted,
        remaining=remaining,
    )
