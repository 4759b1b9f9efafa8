"""
Create a staff account from the command line.

Usage:
    python scripts/create_user.py USERNAME EMAIL [--role admin|supervisor|security_officer]
        [--first-name NAME] [--last-name NAME] [--password PASSWORD]

The password is prompted for when not given.
"""
import sys
import os
import argparse
import getpass

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from guardhub.auth.security import find_user_by_username
from guardhub.db import SessionLocal, engine
from guardhub.models.models import UserRole
from guardhub.services.bootstrap import create_user, ensure_tables


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a GuardHub staff account")
    parser.add_argument("username")
    parser.add_argument("email")
    parser.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.security_officer.value)
    parser.add_argument("--first-name")
    parser.add_argument("--last-name")
    parser.add_argument("--password", help="Prompted for when omitted")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")
    if len(password) < 8:
        print("[error] Password must be at least 8 characters")
        return 1

    ensure_tables(engine)
    db = SessionLocal()
    try:
        if find_user_by_username(db, args.username) is not None:
            print(f"[error] User '{args.username}' already exists")
            return 1
        user = create_user(
            db,
            username=args.username,
            email=args.email,
            password=password,
            role=args.role,
            first_name=args.first_name,
            last_name=args.last_name,
        )
        print(f"[ok] Created {user.role} '{user.username}' ({user.id})")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
