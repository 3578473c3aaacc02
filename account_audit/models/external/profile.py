"""
SQLAlchemy model for the public.profiles table.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from account_audit.db.session import Base, PUBLIC_SCHEMA

class Profile(Base):
    """
    Reference to the application's profiles table.
    A profile shares its id with exactly one auth user.
    """
    __tablename__ = "profiles"
    __table_args__ = {"schema": PUBLIC_SCHEMA}

    id = Column(String, ForeignKey("auth.users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String)
    role = Column(String)
    full_name = Column(String)
    created_at = Column(DateTime(timezone=True))

    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<Profile {self.id} role={self.role}>"
