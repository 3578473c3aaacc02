"""
Audit unverified user accounts in the authentication database.

Examples:
    python audit_users.py count
    python audit_users.py list-stale --format csv
    python audit_users.py verify 5b0c6c1e-0f6b-4b8e-9a53-2f4c1e7d9a10 --yes
"""

import sys

from account_audit.cli import main

if __name__ == "__main__":
    sys.exit(main())
