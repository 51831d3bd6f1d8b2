#!/usr/bin/env python3
"""
Create an administrator account, or promote an existing user to admin.

Admins cannot be created through the API; run this against the
configured database instead.

Usage: python3 create_admin.py --email admin@example.com [--username Admin]
"""

import argparse
import getpass
import sys

from app.core.database import Base, SessionLocal, engine
import app.models  # noqa: F401
from app.schemas.user import UserRegister
from app.services import users as user_service
from pydantic import ValidationError


def promote(db, email: str) -> bool:
    """Flag an existing user as admin. Returns False if no such user."""
    user = user_service.get_user_by_email(db, email)
    if not user:
        return False
    if user.is_admin:
        print(f"ℹ️  {email} is already an admin")
        return True

    user.is_admin = True
    db.commit()
    print(f"✅ Promoted {email} to admin")
    return True


def create(db, username: str, email: str, password: str) -> None:
    user = user_service.create_user(db, username, email, password)
    user.is_admin = True
    db.commit()
    print(f"✅ Created admin {email} (id {user.id})")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--email", required=True)
    parser.add_argument("--username", default="Admin")
    parser.add_argument(
        "--password",
        help="Password for a new account (prompted for when omitted)",
    )
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if promote(db, args.email):
            return 0

        password = args.password or getpass.getpass("Password: ")
        try:
            data = UserRegister(
                username=args.username, email=args.email, password=password
            )
        except ValidationError as e:
            for error in e.errors():
                print(f"❌ {error['msg']}")
            return 1

        create(db, data.username, data.email, data.password)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
