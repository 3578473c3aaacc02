"""
Import all models from their respective modules.
"""

# Import external models
from account_audit.models.external import User, Profile

# Export all models
__all__ = [
    "User",
    "Profile",
]
