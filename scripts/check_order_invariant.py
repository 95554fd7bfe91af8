#!/usr/bin/env python3
"""
Check that stored job orders form exactly 1..N.

Usage:
    python scripts/check_order_invariant.py --db data/talentflow.db
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from talentflow.database import Job, get_session
from talentflow.ordering import find_violations


def validate(db_path: Path) -> bool:
    """
    Report duplicate, missing and out-of-range orders.

    Returns True if orders are dense and unique, False otherwise.
    """
    print(f"Querying database at {db_path}...")
    session = get_session(db_path)
    try:
        jobs = session.query(Job).order_by(Job.order, Job.id).all()
    finally:
        session.close()
    print(f"  {len(jobs)} jobs")

    problems = find_violations(job.order for job in jobs)
    if not problems:
        print(f"\n✅ Orders are exactly 1..{len(jobs)}")
        return True

    print(f"\n❌ ORDERING VIOLATED: {len(problems)} problem(s)")
    for problem in problems:
        print(f"   - {problem}")

    by_order = {}
    for job in jobs:
        by_order.setdefault(job.order, []).append(job)
    shared = [(order, group) for order, group in by_order.items() if len(group) > 1]
    for order, group in shared[:5]:
        ids = ", ".join(str(job.id) for job in group)
        print(f"   order {order} held by jobs {ids}")
    if len(shared) > 5:
        print(f"   ... and {len(shared) - 5} more")
    return False


def main():
    parser = argparse.ArgumentParser(description="Verify job orders are dense and unique")
    parser.add_argument("--db", type=Path, default=Path("data/talentflow.db"),
                       help="Path to SQLite database file")

    args = parser.parse_args()

    if not args.db.exists():
        print(f"❌ Database file not found: {args.db}")
        sys.exit(1)

    success = validate(args.db)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
