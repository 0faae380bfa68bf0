"""Create an admin or employee account.

Usage:
  python scripts/create_user.py                                  # default admin from settings
  python scripts/create_user.py --role employee --username kim --email kim@example.com --password secret
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blogdesk.config import settings
from blogdesk.database import Base, SessionLocal, engine
import blogdesk.models  # noqa: F401
from blogdesk.models.user import User
from blogdesk.services.auth_service import hash_password


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--role", choices=["admin", "employee"], default="admin")
    parser.add_argument("--username", default=settings.DEFAULT_ADMIN_USERNAME)
    parser.add_argument("--email", default=settings.DEFAULT_ADMIN_EMAIL)
    parser.add_argument("--password", default=settings.DEFAULT_ADMIN_PASSWORD)
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if args.role == "admin":
            existing_admin = db.query(User).filter(User.role == "admin", User.is_active == True).first()  # noqa: E712
            if existing_admin:
                print(f"Admin user already exists: {existing_admin.username}")
                return
        existing = db.query(User).filter(
            (User.username == args.username) | (User.email == args.email.lower())
        ).first()
        if existing:
            print(f"User already exists: {existing.username} <{existing.email}>")
            return

        user = User(
            username=args.username,
            email=args.email.lower(),
            password_hash=hash_password(args.password),
            role=args.role,
            is_active=True,
        )
        db.add(user)
        db.commit()
    finally:
        db.close()

    print(f"Created {args.role} user")
    print(f"  username: {args.username}")
    print(f"  email: {args.email}")


if __name__ == "__main__":
    main()
