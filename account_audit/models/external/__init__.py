"""
This package contains SQLAlchemy models that mirror the structure of the
tables owned by the hosting platform. They are used to read the data and to
run the opt-in remediation statements, never to define the schema.
"""

# Import all models to make them available when importing the package
from account_audit.models.external.user import User
from account_audit.models.external.profile import Profile

# Export all models
__all__ = [
    "User",
    "Profile",
]
