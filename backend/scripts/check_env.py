"""Check configuration values and the database connection.

Usage:
  python scripts/check_env.py
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from blogdesk.config import settings
from blogdesk.database import engine


def main() -> int:
    print("Environment check")
    print(f"  DATABASE_URL set: {bool(settings.DATABASE_URL)}")
    print(f"  CLOUDINARY_CLOUD_NAME set: {bool(settings.CLOUDINARY_CLOUD_NAME)}")
    missing = settings.missing_required()
    if missing:
        print("  missing:")
        for name in missing:
            print(f"    - {name}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("  database: ok")
    except SQLAlchemyError as exc:
        print(f"  database: failed ({exc})")
        return 1
    return 1 if missing else 0


if __name__ == "__main__":
    sys.exit(main())
