"""Create the blogdesk tables (users, post, post_image, post_history).

Usage:
  python scripts/init_db.py          # create missing tables
  python scripts/init_db.py --reset  # drop and recreate every table (local dev only)
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blogdesk.config import settings
from blogdesk.database import Base, engine
import blogdesk.models  # noqa: F401


def init_db(reset: bool = False):
    if reset:
        print(f"Dropping all tables on {settings.DATABASE_URL} ...")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("Tables ready: " + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop all tables before creating them")
    init_db(reset=parser.parse_args().reset)
