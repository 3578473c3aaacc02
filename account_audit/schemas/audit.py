from typing import List, Optional
from pydantic import BaseModel, Field, computed_field
from datetime import datetime

# Profile status labels
NO_PROFILE = "No profile"
PROFILE_INCOMPLETE = "Profile incomplete"
PROFILE_COMPLETE = "Profile complete"

# Verification status labels
VERIFIED = "Verified"
UNVERIFIED_EMAIL_SENT = "Unverified (email sent)"
UNVERIFIED_NO_EMAIL = "Unverified (no email sent)"


class UnverifiedUser(BaseModel):
    """An unverified user with its age and requested role."""
    id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="Email address")
    created_at: datetime = Field(..., description="Sign-up timestamp")
    last_sign_in_at: Optional[datetime] = Field(None, description="Last sign-in timestamp")
    hours_since_signup: float = Field(..., ge=0, description="Hours elapsed since sign-up")
    intended_role: Optional[str] = Field(None, description="Role requested at sign-up")


class StaleUnverifiedUser(BaseModel):
    """An unverified user older than the stale threshold."""
    id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="Email address")
    created_at: datetime = Field(..., description="Sign-up timestamp")
    hours_since_signup: float = Field(..., ge=0, description="Hours elapsed since sign-up")


class UserProfileStatus(BaseModel):
    """A user joined with its profile, if any."""
    id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="Email address")
    auth_created: datetime = Field(..., description="Sign-up timestamp")
    profile_created: Optional[datetime] = Field(None, description="Profile creation timestamp")
    role: Optional[str] = Field(None, description="Profile role")
    full_name: Optional[str] = Field(None, description="Profile full name")
    profile_status: str = Field(..., description="No profile / Profile incomplete / Profile complete")


class AccountInspection(BaseModel):
    """Verification and profile state of a single account."""
    id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="Email address")
    created_at: datetime = Field(..., description="Sign-up timestamp")
    last_sign_in_at: Optional[datetime] = Field(None, description="Last sign-in timestamp")
    email_confirmed_at: Optional[datetime] = Field(None, description="Email confirmation timestamp")
    confirmation_sent_at: Optional[datetime] = Field(None, description="Last verification email timestamp")
    hours_since_signup: float = Field(..., ge=0, description="Hours elapsed since sign-up")
    intended_role: Optional[str] = Field(None, description="Role requested at sign-up")
    verification_status: str = Field(..., description="Verified / Unverified (email sent) / Unverified (no email sent)")
    profile_status: str = Field(..., description="No profile / Profile incomplete / Profile complete")


class VerifyResult(BaseModel):
    """Outcome of verifying a single user."""
    user_id: str = Field(..., description="User ID")
    email: Optional[str] = Field(None, description="Email address")
    email_confirmed_at: datetime = Field(..., description="Confirmation timestamp now on record")
    already_verified: bool = Field(..., description="Whether the user was verified before this run")


class BulkVerifyResult(BaseModel):
    """Outcome of verifying every unverified user."""
    verified_count: int = Field(..., ge=0, description="Number of users verified")
    verified_at: datetime = Field(..., description="Confirmation timestamp written")


class PurgeResult(BaseModel):
    """Outcome of purging stale unverified users."""
    cutoff: datetime = Field(..., description="Users created before this were eligible")
    matched_before: int = Field(..., ge=0, description="Eligible users before the purge")
    users_deleted: int = Field(..., ge=0, description="Users deleted")
    profiles_deleted: int = Field(..., ge=0, description="Profiles deleted with them")
    remaining_after: int = Field(..., ge=0, description="Eligible users after the purge")


class DeleteAccountsResult(BaseModel):
    """Outcome of deleting accounts by email."""
    emails: List[str] = Field(..., description="Emails requested for deletion")
    unverified_only: bool = Field(..., description="Whether verified users were spared")
    users_deleted: int = Field(..., ge=0, description="Users deleted")
    profiles_deleted: int = Field(..., ge=0, description="Profiles deleted with them")
    remaining: int = Field(..., ge=0, description="Requested emails still present afterwards")

    @computed_field
    @property
    def fully_removed(self) -> bool:
        """Whether none of the requested emails remain."""
        return self.remaining == 0
