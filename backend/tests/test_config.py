from datetime import date

import pytest

from studytrack.config import DEFAULT_LAUNCH_DATE, Settings, load_settings
from studytrack.engine.streak import StreakPolicy


class TestLoadSettings:
    def test_defaults_from_empty_env(self):
        assert load_settings({}) == Settings()
        assert Settings().launch_date == DEFAULT_LAUNCH_DATE

    def test_reads_overrides(self):
        s = load_settings({
            "STUDYTRACK_DEVICE_DIR": "/tmp/st",
            "STUDYTRACK_LAUNCH_DATE": "2025-06-01",
            "STUDYTRACK_STREAK_POLICY": "RECOMPUTE",
            "STUDYTRACK_GRACE_DAYS": "2",
            "STUDYTRACK_REFRESH_DELAY": "0.5",
            "STUDYTRACK_POLL_INTERVAL": "10",
        })
        assert s.device_dir == "/tmp/st"
        assert s.launch_date == date(2025, 6, 1)
        assert s.streak_policy is StreakPolicy.RECOMPUTE
        assert s.grace_days == 2
        assert s.refresh_delay == 0.5
        assert s.poll_interval == 10.0

    def test_negative_grace_is_clamped(self):
        assert load_settings({"STUDYTRACK_GRACE_DAYS": "-3"}).grace_days == 0

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            load_settings({"STUDYTRACK_STREAK_POLICY": "sometimes"})
