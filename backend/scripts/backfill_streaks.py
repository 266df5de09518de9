"""
Recompute a user's streak counters in user_data from the daily_attendance table.

The stored study-streak counter only ever increments on a mark, so after a gap it
drifts away from what the attendance rows actually say. This rewrites
current_streak, longest_streak, total_study_days and last_study_date from the
rows. Safe to run multiple times (idempotent).

Usage:
    cd backend
    SUPABASE_URL=... SUPABASE_SERVICE_KEY=... python scripts/backfill_streaks.py <user_id> [--dry-run]

Or with a .env file in the working directory.
"""
import os
import sys
from datetime import date

from dotenv import load_dotenv

# Add project root to path so we can import engine modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from studytrack.db import ATTENDANCE_TABLE, PROFILE_TABLE, get_client
from studytrack.engine.streak import compute_streak


PAGE_SIZE = 1000  # Supabase row limit per request


def fetch_all_days(db, user_id: str) -> list[date]:
    """Fetch every marked day for a user in pages."""
    days: list[date] = []
    offset = 0
    while True:
        res = (
            db.table(ATTENDANCE_TABLE)
            .select("date")
            .eq("user_id", user_id)
            .order("date", desc=True)
            .range(offset, offset + PAGE_SIZE - 1)
            .execute()
        )
        batch = res.data or []
        days.extend(date.fromisoformat(row["date"]) for row in batch)
        if len(batch) < PAGE_SIZE:
            break
        offset += PAGE_SIZE
    return days


def compute_backfill(days: list[date], current: dict, today: date) -> dict:
    """
    Streak columns as the attendance rows imply them.
    longest_streak never shrinks: it may include study-time streaks with no mark.
    """
    streak = compute_streak(days, today)
    last = max(days) if days else None
    stored_last = current.get("last_study_date")
    if stored_last and (last is None or date.fromisoformat(stored_last) > last):
        last = date.fromisoformat(stored_last)
    return {
        "current_streak": streak.current_streak,
        "longest_streak": max(streak.longest_streak, current.get("longest_streak") or 0),
        "total_study_days": streak.total_days,
        "last_study_date": last.isoformat() if last else None,
    }


def run(user_id: str, dry_run: bool = False):
    print(f"\n🔍 Backfilling streaks for user: {user_id[:8]}...\n")

    db = get_client()

    cur = db.table(PROFILE_TABLE).select("*").eq("user_id", user_id).execute()
    if not cur.data:
        print(f"❌ No user_data row for: {user_id}")
        sys.exit(1)
    current = cur.data[0]

    days = fetch_all_days(db, user_id)
    print(f"  {len(days)} marked days")
    if not days:
        print("  No attendance found, nothing to backfill.")
        return

    new_values = compute_backfill(days, current, date.today())
    for k, v in new_values.items():
        current_val = current.get(k)
        marker = " ✅" if v == current_val else f" 📈 (was {current_val})"
        print(f"    {k}: {v}{marker}")

    if dry_run:
        print("\n  DRY RUN: no changes written.")
        return

    db.table(PROFILE_TABLE).update(new_values).eq("user_id", user_id).execute()
    print("\n✅ Streaks updated!\n")


if __name__ == "__main__":
    load_dotenv()
    args = [a for a in sys.argv[1:] if a != "--dry-run"]
    dry = "--dry-run" in sys.argv

    if not args:
        print("Usage: python scripts/backfill_streaks.py <user_id> [--dry-run]")
        sys.exit(1)

    run(args[0], dry_run=dry)
