from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

from scripts.backfill_streaks import PAGE_SIZE, compute_backfill, fetch_all_days

TODAY = date(2024, 3, 10)


def days(*isos):
    return [date.fromisoformat(d) for d in isos]


class TestComputeBackfill:
    def test_drifted_counter_is_corrected(self):
        stored = {"current_streak": 9, "longest_streak": 2, "last_study_date": "2024-03-10"}
        result = compute_backfill(days("2024-03-01", "2024-03-09", "2024-03-10"), stored, TODAY)
        assert result["current_streak"] == 2
        assert result["longest_streak"] == 2
        assert result["total_study_days"] == 3

    def test_longest_streak_never_shrinks(self):
        stored = {"longest_streak": 12}
        assert compute_backfill(days("2024-03-10"), stored, TODAY)["longest_streak"] == 12

    def test_later_stored_study_date_is_kept(self):
        stored = {"last_study_date": "2024-03-10"}
        result = compute_backfill(days("2024-03-05"), stored, TODAY)
        assert result["last_study_date"] == "2024-03-10"

    def test_last_mark_wins_over_older_stored_date(self):
        stored = {"last_study_date": "2024-01-01"}
        assert compute_backfill(days("2024-03-05"), stored, TODAY)["last_study_date"] == "2024-03-05"


class TestFetchAllDays:
    def test_reads_until_short_page(self):
        db = MagicMock()
        full = [{"date": "2024-01-01"}] * PAGE_SIZE
        chain = db.table.return_value.select.return_value.eq.return_value.order.return_value.range.return_value
        chain.execute.side_effect = [SimpleNamespace(data=full), SimpleNamespace(data=[{"date": "2023-12-31"}])]

        result = fetch_all_days(db, "u1")

        assert len(result) == PAGE_SIZE + 1
        assert result[-1] == date(2023, 12, 31)
        assert chain.execute.call_count == 2
