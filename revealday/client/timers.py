import abc
import logging
import threading
import uuid

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)


class IntervalTimer(abc.ABC):
    """Repeating timer driving one callback. ``stop`` is final until ``start``."""

    def __init__(self, interval: float, on_tick):
        self.interval = interval
        self.on_tick = on_tick

    @abc.abstractmethod
    def start(self) -> None: ...

    @abc.abstractmethod
    def stop(self) -> None: ...

    @property
    @abc.abstractmethod
    def running(self) -> bool: ...

    def close(self) -> None:
        """Release whatever drives the timer. The timer cannot be restarted."""
        self.stop()


class SchedulerIntervalTimer(IntervalTimer):
    """
    Interval job on an APScheduler ``BackgroundScheduler``.

    Every ``start`` adds a fresh job and ``stop`` removes it, so a tick still
    running from a removed job never schedules another. Pass ``scheduler`` to
    share one scheduler between timers; otherwise the timer owns its own and
    shuts it down on ``close``.
    """

    def __init__(self, interval: float, on_tick, scheduler: BackgroundScheduler | None = None):
        super().__init__(interval, on_tick)
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or BackgroundScheduler(daemon=True)
        self._lock = threading.Lock()
        self._job = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._job is not None

    def start(self) -> None:
        with self._lock:
            if self._closed or self._job is not None:
                return
            self._job = self._scheduler.add_job(
                self._tick,
                "interval",
                seconds=self.interval,
                id=f"interval-{uuid.uuid4().hex}",
                max_instances=1,
                coalesce=True,
            )
            if not self._scheduler.running:
                self._scheduler.start()

    def stop(self) -> None:
        with self._lock:
            job, self._job = self._job, None
        if job is not None:
            job.remove()

    def close(self) -> None:
        self.stop()
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def _tick(self) -> None:
        try:
            self.on_tick()
        except Exception:
            logger.exception("Timer callback failed")
