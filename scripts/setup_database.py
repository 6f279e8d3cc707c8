#!/usr/bin/env python3
"""
Database setup script for the blog.

Creates the tables and, optionally, a first user:

    python scripts/setup_database.py
    python scripts/setup_database.py --username alice --name Alice --password s3cret
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from blog.core.config import get_settings
from blog.core.credentials import CredentialStore
from blog.core.errors import BlogError
from blog.core.security import PasswordHasher
from blog.db.models import User
from blog.db.repository import Repository
from blog.db.session import check_database_health, create_db_engine, create_session_factory, init_database


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Initialize the blog database")
    parser.add_argument("--username", help="Create or update this user")
    parser.add_argument("--name", default="", help="Display name for --username")
    parser.add_argument("--password", help="Password for --username")
    return parser.parse_args(argv)


def main(argv=None):
    """Initialize database based on configuration"""
    args = parse_args(argv)
    settings = get_settings()

    print("Blog Database Setup")
    print("=" * 40)
    print(f"Database URL: {settings.DATABASE_URL}")

    engine = create_db_engine(settings.DATABASE_URL)

    print("\nInitializing database...")
    init_database(engine)

    health = check_database_health(engine)
    print(f"Health Status: {health['status']}")
    print(f"Table Count: {health['table_count']}")
    if health["status"] != "healthy":
        print(f"Warning: {health['last_error']}")
        return False

    if args.username:
        hasher = PasswordHasher(
            time_cost=settings.PASSWORD_HASH_TIME_COST,
            memory_cost=settings.PASSWORD_HASH_MEMORY_COST,
        )
        db = create_session_factory(engine)()
        try:
            credentials = CredentialStore(Repository(db), hasher)
            user = credentials.upsert(User(username=args.username, display_name=args.name), args.password)
            print(f"Saved user {user.username!r} (id={user.id})")
        except BlogError as e:
            print(f"Could not save user: {e.message}")
            return False
        finally:
            db.close()

    print("Database initialized successfully!")
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
