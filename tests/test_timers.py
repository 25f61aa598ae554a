"""SchedulerIntervalTimer on a real APScheduler background scheduler."""
import threading
import time

import pytest

from revealday.client.timers import SchedulerIntervalTimer

INTERVAL = 0.2


@pytest.fixture
def make_timer():
    created = []

    def factory(on_tick):
        timer = SchedulerIntervalTimer(INTERVAL, on_tick)
        created.append(timer)
        return timer

    yield factory
    for timer in created:
        timer.close()


class TestSchedulerIntervalTimer:
    def test_ticks_at_interval(self, make_timer):
        ticks = []
        timer = make_timer(lambda: ticks.append(time.monotonic()))
        timer.start()
        assert timer.running
        time.sleep(1.05)
        assert 3 <= len(ticks) <= 6

    def test_no_tick_after_stop(self, make_timer):
        ticks = []
        timer = make_timer(lambda: ticks.append(1))
        timer.start()
        time.sleep(0.5)
        timer.stop()
        assert not timer.running
        seen = len(ticks)
        time.sleep(0.6)
        assert len(ticks) == seen

    def test_restart_during_tick_keeps_one_cadence(self, make_timer):
        ticks = []
        restarted = threading.Event()
        holder = {}

        def on_tick():
            ticks.append(time.monotonic())
            if not restarted.is_set():
                restarted.set()
                holder["timer"].stop()
                holder["timer"].start()

        timer = make_timer(on_tick)
        holder["timer"] = timer
        timer.start()
        assert restarted.wait(2)
        ticks.clear()
        time.sleep(1.05)
        assert len(ticks) <= 6

    def test_callback_errors_do_not_stop_the_timer(self, make_timer):
        ticks = []

        def on_tick():
            ticks.append(1)
            raise RuntimeError("boom")

        timer = make_timer(on_tick)
        timer.start()
        time.sleep(0.7)
        assert len(ticks) >= 2

    def test_closed_timer_cannot_restart(self, make_timer):
        ticks = []
        timer = make_timer(lambda: ticks.append(1))
        timer.close()
        timer.start()
        assert not timer.running
        time.sleep(0.4)
        assert ticks == []
