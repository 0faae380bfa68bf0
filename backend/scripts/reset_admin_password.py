"""Reset the default admin password (creates the admin if missing)."""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blogdesk.config import settings
from blogdesk.database import Base, SessionLocal, engine
import blogdesk.models  # noqa: F401
from blogdesk.models.user import User
from blogdesk.services.auth_service import hash_password
from blogdesk.utils.permissions import ADMIN


def reset_admin_password(db, email: str, password: str) -> str:
    """Reset the admin's password, creating the admin if no account uses the email.

    Refuses (ValueError) when the email belongs to a non-admin account.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        db.add(
            User(
                username=settings.DEFAULT_ADMIN_USERNAME,
                email=email,
                password_hash=hash_password(password),
                role=ADMIN,
                is_active=True,
            )
        )
        db.commit()
        return "created"
    if user.role != ADMIN:
        raise ValueError(f"{email} belongs to a non-admin account ({user.role}).")

    user.password_hash = hash_password(password)
    user.is_active = True
    db.commit()
    return "reset"


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", default=settings.DEFAULT_ADMIN_EMAIL)
    parser.add_argument("--password", default=settings.DEFAULT_ADMIN_PASSWORD)
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        result = reset_admin_password(db, args.email, args.password)
    except ValueError as exc:
        print(f"Refusing to reset: {exc}")
        return 1
    finally:
        db.close()
    if result == "created":
        print(f"Admin not found. Created {args.email} with the given password.")
    else:
        print(f"Admin password reset for {args.email}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
