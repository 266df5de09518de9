import os
from functools import lru_cache
from supabase import create_client, Client

ATTENDANCE_TABLE = "daily_attendance"
PROFILE_TABLE = "user_data"


@lru_cache(maxsize=1)
def get_client() -> Client:
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_SERVICE_KEY"]
    return create_client(url, key)


def is_unique_violation(exc: Exception) -> bool:
    """True when PostgREST rejected a write because of a unique constraint."""
    code = getattr(exc, "code", None)
    if code == "23505":
        return True
    err_str = str(exc).lower()
    return "duplicate" in err_str or "unique" in err_str or "23505" in err_str
