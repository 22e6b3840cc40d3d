"""
Load demo users, vehicles, parts, maintenance tasks and an order.

Usage: python scripts/seed_demo_data.py
"""
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fleethub.config import settings
from fleethub.db import Base, SessionLocal, engine
from fleethub.logging import setup_logging
from fleethub.seed import seed_demo_data


def main():
    setup_logging()
    if settings.database_url.startswith("sqlite:///./"):
        os.makedirs("var", exist_ok=True)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if seed_demo_data(db):
            print("Demo data loaded. Log in as admin / password")
        else:
            print("Users already exist, nothing to do")
    finally:
        db.close()


if __name__ == "__main__":
    main()
