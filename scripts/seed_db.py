#!/usr/bin/env python3
"""
Seed a ledger database with the sample marketplace.

Usage:
    python scripts/seed_db.py --db data/jobmarket.db [--reset]
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jobmarket.database import Contract, Job, Profile, init_database, get_session
from jobmarket.seed import reset_database, seed_database


def seed(db_path: Path, reset: bool = False) -> bool:
    """
    Create tables and insert the sample data.

    Returns True on success, False if the database already has profiles
    and --reset was not given.
    """
    print(f"Initializing database at {db_path}...")
    init_database(db_path)
    session = get_session(db_path)

    try:
        existing = session.query(Profile).count()
        if existing and not reset:
            print(f"⚠️  Database already has {existing} profiles, use --reset to replace them")
            return False

        if reset:
            print("Deleting existing rows...")
            reset_database(session)

        seed_database(session)
        print("\n✅ Seed complete!")
        print(f"   Profiles:  {session.query(Profile).count()}")
        print(f"   Contracts: {session.query(Contract).count()}")
        print(f"   Jobs:      {session.query(Job).count()}")
    except Exception as e:
        session.rollback()
        print(f"❌ Failed to seed: {e}")
        return False
    finally:
        session.close()

    return True


def main():
    parser = argparse.ArgumentParser(description="Seed the ledger database with sample data")
    parser.add_argument("--db", type=Path, default=Path("data/jobmarket.db"),
                       help="Path to SQLite database file")
    parser.add_argument("--reset", action="store_true",
                       help="Delete existing rows before seeding")

    args = parser.parse_args()

    success = seed(args.db, reset=args.reset)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
