#!/usr/bin/env python3
"""
Print a bcrypt hash for the admin password.

Usage:
    python scripts/generate_admin_hash.py [password]

Put the output in ADMIN_PASSWORD_HASH. Prompts for the password when it is
not given on the command line.
"""

import getpass
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from sessionbook.services.auth_service import hash_password


def main() -> int:
    if len(sys.argv) > 1:
        password = sys.argv[1]
    else:
        password = getpass.getpass("Admin password: ")
        if password != getpass.getpass("Confirm password: "):
            print("Passwords do not match", file=sys.stderr)
            return 1

    if len(password) < 8:
        print("Password must be at least 8 characters", file=sys.stderr)
        return 1

    print(f"ADMIN_PASSWORD_HASH={hash_password(password)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
