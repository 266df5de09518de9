from datetime import date

import pytest

from studytrack.engine.streak import StreakPolicy, compute_streak
from studytrack.errors import ValidationError
from studytrack.models import ProfileAggregate
from studytrack.services.profile import ProfileService
from studytrack.stores.device import DeviceStorage, LocalProfileStore

OWNER = "fu-001"


@pytest.fixture
def store(tmp_path):
    return LocalProfileStore(DeviceStorage(tmp_path))


def service_on(store, today, policy=StreakPolicy.INCREMENT):
    return ProfileService(store, policy=policy, clock=lambda: today)


def mark_days(store, policy, *isos):
    """Feed marks the way AttendanceService does: one record_attendance per new day."""
    marked: list[date] = []
    profile = None
    for iso in isos:
        day = date.fromisoformat(iso)
        marked.append(day)
        service = service_on(store, day, policy)
        profile = service.record_attendance(OWNER, day, compute_streak(marked, day))
    return profile


class TestGetOrCreate:
    def test_lazy_initialization(self, store):
        profile = service_on(store, date(2024, 1, 1)).get_or_create(OWNER)
        assert profile.xp_points == 0
        assert profile.join_date is not None
        assert store.get(OWNER) == profile

    def test_existing_profile_is_returned(self, store):
        store.create(OWNER, ProfileAggregate(xp_points=99))
        assert service_on(store, date(2024, 1, 1)).get_or_create(OWNER).xp_points == 99


class TestRecordAttendance:
    def test_each_mark_adds_a_day_and_bonus(self, store):
        profile = mark_days(store, StreakPolicy.INCREMENT, "2024-01-01", "2024-01-02")
        assert profile.total_study_days == 2
        assert profile.xp_points == 20
        assert profile.last_study_date == date(2024, 1, 2)

    def test_increment_policy_keeps_counting_across_gap(self, store):
        profile = mark_days(store, StreakPolicy.INCREMENT, "2024-01-01", "2024-01-02", "2024-01-05")
        assert profile.study_streak == 3
        assert profile.longest_streak == 3

    def test_recompute_policy_resets_after_gap(self, store):
        profile = mark_days(store, StreakPolicy.RECOMPUTE, "2024-01-01", "2024-01-02", "2024-01-05")
        assert profile.study_streak == 1
        assert profile.longest_streak == 2

    def test_policies_agree_on_unbroken_run(self, tmp_path):
        a = mark_days(LocalProfileStore(DeviceStorage(tmp_path / "a")), StreakPolicy.INCREMENT,
                      "2024-01-01", "2024-01-02", "2024-01-03")
        b = mark_days(LocalProfileStore(DeviceStorage(tmp_path / "b")), StreakPolicy.RECOMPUTE,
                      "2024-01-01", "2024-01-02", "2024-01-03")
        assert a.study_streak == b.study_streak == 3

    def test_backdated_mark_keeps_latest_study_date(self, store):
        service = service_on(store, date(2024, 1, 5))
        service.record_attendance(OWNER, date(2024, 1, 5), compute_streak([date(2024, 1, 5)], date(2024, 1, 5)))
        profile = service.record_attendance(OWNER, date(2024, 1, 2), compute_streak([date(2024, 1, 2)], date(2024, 1, 5)))
        assert profile.last_study_date == date(2024, 1, 5)


class TestLogStudyTime:
    def test_accumulates_and_awards_xp(self, store):
        service = service_on(store, date(2024, 1, 3))
        service.log_study_time(OWNER, 25)
        profile = service.log_study_time(OWNER, 15)
        assert profile.today_study_minutes == 40
        assert profile.weekly_study_minutes == 40
        assert profile.total_study_minutes == 40
        assert profile.xp_points == 10 + 5   # floor(25/10)*5 + floor(15/10)*5

    def test_today_resets_on_new_day(self, store):
        service_on(store, date(2024, 1, 3)).log_study_time(OWNER, 30)   # Wednesday
        profile = service_on(store, date(2024, 1, 4)).log_study_time(OWNER, 10)
        assert profile.today_study_minutes == 10
        assert profile.weekly_study_minutes == 40

    def test_weekly_resets_on_new_iso_week(self, store):
        service_on(store, date(2024, 1, 7)).log_study_time(OWNER, 30)   # Sunday
        profile = service_on(store, date(2024, 1, 8)).log_study_time(OWNER, 10)
        assert profile.weekly_study_minutes == 10
        assert profile.total_study_minutes == 40

    def test_mark_on_new_day_does_not_carry_yesterdays_minutes(self, store):
        service_on(store, date(2024, 1, 3)).log_study_time(OWNER, 30)
        next_day = date(2024, 1, 4)
        service_on(store, next_day).record_attendance(OWNER, next_day, compute_streak([next_day], next_day))
        profile = service_on(store, next_day).log_study_time(OWNER, 10)
        assert profile.today_study_minutes == 10
        assert profile.weekly_study_minutes == 40
        assert profile.study_time_date == next_day

    def test_mark_in_new_week_does_not_carry_last_weeks_minutes(self, store):
        service_on(store, date(2024, 1, 7)).log_study_time(OWNER, 30)   # Sunday
        monday = date(2024, 1, 8)
        service_on(store, monday).record_attendance(OWNER, monday, compute_streak([monday], monday))
        profile = service_on(store, monday).log_study_time(OWNER, 10)
        assert profile.today_study_minutes == 10
        assert profile.weekly_study_minutes == 10
        assert profile.total_study_minutes == 40

    def test_advances_stored_streak(self, store):
        service_on(store, date(2024, 1, 3)).log_study_time(OWNER, 10)
        assert service_on(store, date(2024, 1, 4)).log_study_time(OWNER, 10).study_streak == 2
        assert service_on(store, date(2024, 1, 7)).log_study_time(OWNER, 10).study_streak == 1

    def test_stamps_subject(self, store):
        profile = service_on(store, date(2024, 1, 3)).log_study_time(OWNER, 10, "chemistry")
        assert profile.subjects["chemistry"].last_studied is not None
        assert profile.subjects["chemistry"].progress == 0

    def test_non_positive_minutes_rejected(self, store):
        with pytest.raises(ValidationError):
            service_on(store, date(2024, 1, 3)).log_study_time(OWNER, 0)


class TestCompleteLesson:
    def test_default_xp_and_progress(self, store):
        profile = service_on(store, date(2024, 1, 3)).complete_lesson(OWNER, "physics")
        assert profile.completed_lessons == 1
        assert profile.xp_points == 25
        assert profile.subjects["physics"].progress == 5

    def test_custom_xp(self, store):
        assert service_on(store, date(2024, 1, 3)).complete_lesson(OWNER, "physics", xp=40).xp_points == 40

    def test_progress_capped_at_100(self, store):
        store.create(OWNER, ProfileAggregate.model_validate({"subjects": {"mathematics": {"progress": 98}}}))
        profile = service_on(store, date(2024, 1, 3)).complete_lesson(OWNER, "mathematics")
        assert profile.subjects["mathematics"].progress == 100

    def test_unknown_subject_starts_at_zero(self, store):
        profile = service_on(store, date(2024, 1, 3)).complete_lesson(OWNER, "biology")
        assert profile.subjects["biology"].progress == 5
