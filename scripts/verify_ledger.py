#!/usr/bin/env python3
"""
Check stored ledger invariants.

- No profile balance below zero
- A job has a payment date if and only if it is paid

Prints the total of all balances, which transfers never change; compare
two runs to confirm conservation across a batch of operations.

Usage:
    python scripts/verify_ledger.py --db data/jobmarket.db
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jobmarket.database import Job, Profile, get_session
from jobmarket.money import format_cents


def verify(db_path: Path):
    """
    Inspect balances and jobs.

    Returns True if all invariants hold, False otherwise.
    """
    print(f"Querying database at {db_path}...")
    session = get_session(db_path)

    try:
        profiles = session.query(Profile).all()
        jobs = session.query(Job).all()
    finally:
        session.close()

    total = sum(p.balance for p in profiles)
    print(f"  Profiles: {len(profiles)}")
    print(f"  Jobs:     {len(jobs)}")
    print(f"  Total balance: {format_cents(total)}")

    negative = [p for p in profiles if p.balance < 0]
    inconsistent = [j for j in jobs if bool(j.paid) != (j.payment_date is not None)]

    if negative:
        print(f"\n❌ NEGATIVE BALANCES: {len(negative)} profiles")
        for profile in negative[:5]:
            print(f"   - {profile.id}: {format_cents(profile.balance)}")
        if len(negative) > 5:
            print(f"   ... and {len(negative) - 5} more")

    if inconsistent:
        print(f"\n❌ PAYMENT STATE MISMATCHES: {len(inconsistent)} jobs")
        for job in inconsistent[:5]:
            print(f"   - {job.id}: paid={job.paid} payment_date={job.payment_date}")
        if len(inconsistent) > 5:
            print(f"   ... and {len(inconsistent) - 5} more")

    if not negative and not inconsistent:
        print("\n✅ Ledger invariants hold")
        return True

    return False


def main():
    parser = argparse.ArgumentParser(description="Verify ledger invariants")
    parser.add_argument("--db", type=Path, default=Path("data/jobmarket.db"),
                       help="Path to SQLite database file")

    args = parser.parse_args()

    if not args.db.exists():
        print(f"❌ Database file not found: {args.db}")
        sys.exit(1)

    success = verify(args.db)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
