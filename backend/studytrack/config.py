import os
from dataclasses import dataclass
from datetime import date
from functools import lru_cache

from .engine.streak import StreakPolicy

DEFAULT_LAUNCH_DATE = date(2024, 1, 1)


@dataclass(frozen=True)
class Settings:
    device_dir: str = "device_data"
    launch_date: date = DEFAULT_LAUNCH_DATE
    streak_policy: StreakPolicy = StreakPolicy.INCREMENT
    grace_days: int = 0
    refresh_delay: float = 0.1      # seconds before observers re-read the profile
    poll_interval: float = 5.0      # foreground profile polling


def _env_float(env, name: str, default: float) -> float:
    raw = env.get(name)
    return float(raw) if raw else default


def load_settings(env: dict | None = None) -> Settings:
    env = os.environ if env is None else env
    launch = env.get("STUDYTRACK_LAUNCH_DATE")
    policy = env.get("STUDYTRACK_STREAK_POLICY")
    grace = env.get("STUDYTRACK_GRACE_DAYS")
    return Settings(
        device_dir=env.get("STUDYTRACK_DEVICE_DIR") or "device_data",
        launch_date=date.fromisoformat(launch) if launch else DEFAULT_LAUNCH_DATE,
        streak_policy=StreakPolicy(policy.lower()) if policy else StreakPolicy.INCREMENT,
        grace_days=max(0, int(grace)) if grace else 0,
        refresh_delay=_env_float(env, "STUDYTRACK_REFRESH_DELAY", 0.1),
        poll_interval=_env_float(env, "STUDYTRACK_POLL_INTERVAL", 5.0),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
