"""
Foreground profile watcher: re-reads a user's aggregate every few seconds.

Usage:
    cd backend
    python scripts/watch_profile.py <user_id>            # remote (Supabase) user
    python scripts/watch_profile.py --device <profile>   # device profile

Ctrl-C stops polling.
"""
import os
import sys
import time

from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from studytrack.config import get_settings
from studytrack.db import get_client
from studytrack.services.refresh import ProfilePoller
from studytrack.session import open_device_session, open_remote_session
from studytrack.stores.device import DeviceStorage


def show(profile) -> None:
    print(
        f"  streak {profile.study_streak} (best {profile.longest_streak}) · "
        f"{profile.total_study_days} days · {profile.xp_points} XP · "
        f"today {profile.today_study_minutes} min"
    )


def main(argv: list[str]) -> int:
    settings = get_settings()
    if len(argv) == 2 and argv[0] == "--device":
        session = open_device_session(DeviceStorage(settings.device_dir), argv[1], settings)
    elif len(argv) == 1:
        session = open_remote_session(get_client(), argv[0], settings)
    else:
        print(__doc__)
        return 1

    poller = ProfilePoller(
        lambda: session.profiles.get_or_create(session.owner),
        show,
        interval=settings.poll_interval,
    )
    print(f"Watching {session.kind.value} profile {session.owner[:8]}... every {settings.poll_interval:g}s")
    poller.poll_once()
    poller.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()
        session.close()
    return 0


if __name__ == "__main__":
    load_dotenv()
    sys.exit(main(sys.argv[1:]))
