"""
Delayed observer refreshes and foreground polling of the profile aggregate.

Both are plain re-reads; neither coordinates with writers. A read that overlaps
an in-flight mark simply returns whatever the store holds at that moment.
"""
import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

Observer = Callable[[Any], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]


class RefreshScheduler:
    """
    Runs ``fetch`` then ``observer(result)`` after a fixed delay.

    ``close()`` is the teardown hook: pending refreshes are cancelled and any
    that still fire afterwards do nothing.
    """

    def __init__(self, delay: float = 0.1, timer_factory: TimerFactory = threading.Timer):
        self.delay = delay
        self.timer_factory = timer_factory
        self._pending: set = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, fetch: Callable[[], Any], observer: Observer) -> None:
        if self._closed:
            return

        def run():
            with self._lock:
                self._pending.discard(timer)
                if self._closed:
                    return
            try:
                observer(fetch())
            except Exception:
                logger.exception("Scheduled profile refresh failed")

        timer = self.timer_factory(self.delay, run)
        if hasattr(timer, "daemon"):
            timer.daemon = True
        with self._lock:
            self._pending.add(timer)
        timer.start()

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            timers, self._pending = list(self._pending), set()
        for timer in timers:
            timer.cancel()


class ProfilePoller:
    """Re-reads state every ``interval`` seconds on a daemon thread until stopped."""

    def __init__(self, fetch: Callable[[], Any], on_update: Observer, interval: float = 5.0):
        self.fetch = fetch
        self.on_update = on_update
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def poll_once(self) -> bool:
        try:
            result = self.fetch()
        except Exception as e:
            logger.error("Profile poll failed: %s", e)
            return False
        self.on_update(result)
        return True

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.poll_once()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="profile-poller", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=max(self.interval, 1.0))
        self._thread = None
