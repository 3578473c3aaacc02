"""
SQLAlchemy model for the auth.users table.
"""

import json

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from account_audit.db.session import Base, AUTH_SCHEMA

class User(Base):
    """
    Reference to the users table owned by the authentication platform.
    Only the columns the audit reads or updates are mirrored.
    """
    __tablename__ = "users"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id = Column(String, primary_key=True)
    email = Column(String, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    last_sign_in_at = Column(DateTime(timezone=True))
    email_confirmed_at = Column(DateTime(timezone=True))  # NULL means unverified
    confirmation_sent_at = Column(DateTime(timezone=True))
    raw_user_meta_data = Column(JSON().with_variant(JSONB(), "postgresql"))

    profile = relationship("Profile", back_populates="user", uselist=False)

    @property
    def intended_role(self):
        """Role requested at sign-up, if the metadata carries one."""
        metadata = self.raw_user_meta_data or {}
        role = metadata.get("role") if isinstance(metadata, dict) else None
        if role is None or role == "":
            return None
        # Same text the ->> operator yields for non-string JSON values
        return role if isinstance(role, str) else json.dumps(role)

    def __repr__(self):
        return f"<User {self.id} {self.email}>"
