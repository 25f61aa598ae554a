"""
Guest-side countdown session.

Drives one countdown link through ``loading -> countdown -> waiting ->
revealed`` (or ``error``), polling vote status every few seconds while the
view is visible and recomputing the countdown every minute. A server
observation of ``revealed`` always wins over the local countdown.
"""
import enum
import logging
import math
import threading
from dataclasses import dataclass
from datetime import timedelta

from ..errors import AlreadyVoted, AppError, ExpiredToken, RateLimitError, Unauthorized
from ..services.vote_ledger import SIDES, VoteCounts
from ..utils.clock import TimeRemaining, from_epoch_ms, parse_instant, remaining, utcnow
from .timers import SchedulerIntervalTimer
from .visibility import VisibilityObserver

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 3.0
COUNTDOWN_INTERVAL_SECONDS = 60.0
COUNTDOWN_TYPE = "countdown"


class PageState(str, enum.Enum):
    LOADING = "loading"
    COUNTDOWN = "countdown"
    WAITING = "waiting"
    REVEALED = "revealed"
    ERROR = "error"
    HANDED_OFF = "handed_off"


TERMINAL_STATES = (PageState.REVEALED, PageState.ERROR, PageState.HANDED_OFF)


class ErrorKind(str, enum.Enum):
    NO_TOKEN = "no_token"
    LINK_INVALID = "link_invalid"
    LINK_EXPIRED = "link_expired"
    GENERIC = "generic"


class VoteResult(str, enum.Enum):
    ACCEPTED = "accepted"
    ALREADY_VOTED = "already_voted"
    IN_FLIGHT = "in_flight"
    NOT_OPEN = "not_open"
    FAILED = "failed"


@dataclass(frozen=True)
class VoteOutcome:
    result: VoteResult
    side: str | None = None
    message: str | None = None
    retryable: bool = False


def vote_percentages(prince: int, princess: int) -> tuple[int, int]:
    """Whole-percent share of each side, halves rounded up; (0, 0) with no votes."""
    total = prince + princess
    if total <= 0:
        return 0, 0
    return math.floor(prince * 100 / total + 0.5), math.floor(princess * 100 / total + 0.5)


class CountdownSession:
    def __init__(
        self,
        token: str,
        api,
        device_store,
        *,
        visibility: VisibilityObserver | None = None,
        timer_factory=SchedulerIntervalTimer,
        clock=utcnow,
        on_state_change=None,
        on_expired=None,
        on_reveal_flow=None,
    ):
        self.token = token
        self._api = api
        self._device = device_store
        self._visibility = visibility or VisibilityObserver()
        self._timer_factory = timer_factory
        self._clock = clock
        self._on_state_change = on_state_change
        self._on_expired = on_expired
        self._on_reveal_flow = on_reveal_flow

        self.state = PageState.LOADING
        self.error_kind: ErrorKind | None = None
        self.error_message: str | None = None

        self.reveal_id: str | None = None
        self.baby_name: str | None = None
        self.scheduled_at = None
        self.time_remaining: TimeRemaining | None = None
        self.counts: VoteCounts | None = None
        self.revealed = False
        self.my_vote: str | None = None

        self._server_offset: timedelta | None = None
        self._expired_fired = False
        self._closed = False
        self._state_lock = threading.RLock()
        self._poll_guard = threading.Lock()
        self._vote_guard = threading.Lock()
        self._poll_timer = None
        self._countdown_timer = None
        self._unsubscribe_visibility = None

    # -- state ---------------------------------------------------------------

    @property
    def has_voted(self) -> bool:
        return self.my_vote is not None

    def _set_state(self, new_state: PageState) -> bool:
        with self._state_lock:
            if self._closed or self.state == new_state or self.state in TERMINAL_STATES:
                return False
            previous, self.state = self.state, new_state
        logger.debug("Countdown state %s -> %s reveal_id=%s", previous.value, new_state.value, self.reveal_id)
        if self._on_state_change:
            self._on_state_change(previous, new_state)
        if new_state in TERMINAL_STATES:
            self._stop_timers()
        return True

    def _fail(self, kind: ErrorKind, message: str) -> None:
        self.error_kind = kind
        self.error_message = message
        self._set_state(PageState.ERROR)

    def _hand_off(self) -> None:
        if self._set_state(PageState.HANDED_OFF) and self._on_reveal_flow:
            self._on_reveal_flow(self.token)

    def now(self):
        """Local clock corrected by the last server time seen, if any."""
        local = self._clock()
        if self._server_offset is None:
            return local
        return local + self._server_offset

    # -- lifecycle -----------------------------------------------------------

    def open(self) -> PageState:
        if not self.token:
            self._fail(ErrorKind.NO_TOKEN, "No token was provided")
            return self.state

        try:
            payload = self._api.verify_token(self.token)
        except ExpiredToken as e:
            self._fail(ErrorKind.LINK_EXPIRED, e.message)
            return self.state
        except Unauthorized as e:
            self._fail(ErrorKind.LINK_INVALID, e.message)
            return self.state
        except AppError as e:
            logger.warning("Token verification failed code=%s", e.code)
            self._fail(ErrorKind.GENERIC, e.message)
            return self.state

        if payload.get("type") != COUNTDOWN_TYPE:
            self._hand_off()
            return self.state

        self.reveal_id = payload.get("revealId")
        self.baby_name = payload.get("babyName")
        self.scheduled_at = parse_instant(payload.get("scheduledAt"))
        self.my_vote = self._device.recorded_vote(self.reveal_id)

        if remaining(self.scheduled_at, self.now()).is_expired:
            self._hand_off()
            return self.state

        self._set_state(PageState.COUNTDOWN)
        self.recompute()

        self._countdown_timer = self._timer_factory(COUNTDOWN_INTERVAL_SECONDS, self.recompute)
        self._poll_timer = self._timer_factory(POLL_INTERVAL_SECONDS, self.poll)
        self._unsubscribe_visibility = self._visibility.subscribe(self._on_visibility_change)
        self._countdown_timer.start()
        if self._visibility.visible:
            self._poll_timer.start()
        self.poll()
        return self.state

    def close(self) -> None:
        """Tear down every timer and listener; nothing fires afterwards."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        for timer in (self._poll_timer, self._countdown_timer):
            if timer is not None:
                timer.close()
        if self._unsubscribe_visibility:
            self._unsubscribe_visibility()
            self._unsubscribe_visibility = None

    def _stop_timers(self) -> None:
        for timer in (self._poll_timer, self._countdown_timer):
            if timer is not None:
                timer.stop()

    def _on_visibility_change(self, visible: bool) -> None:
        if self._closed or self._poll_timer is None:
            return
        if not visible:
            self._poll_timer.stop()
            return
        self.poll()
        if self.state not in TERMINAL_STATES:
            self._poll_timer.start()

    # -- countdown -----------------------------------------------------------

    def recompute(self) -> TimeRemaining | None:
        if self._closed or self.state != PageState.COUNTDOWN:
            return self.time_remaining
        self.time_remaining = remaining(self.scheduled_at, self.now())
        if self.time_remaining.is_expired:
            with self._state_lock:
                if self._expired_fired:
                    return self.time_remaining
                self._expired_fired = True
            if self._countdown_timer is not None:
                self._countdown_timer.stop()
            if self._set_state(PageState.WAITING) and self._on_expired:
                self._on_expired()
        return self.time_remaining

    # -- polling -------------------------------------------------------------

    def poll(self) -> bool:
        """
        Fetch vote status once. Skipped while hidden or while another poll is
        in flight; a failed poll keeps the previous state on display.
        """
        if self._closed or self.reveal_id is None or not self._visibility.visible:
            return False
        if self.state in TERMINAL_STATES:
            return False
        if not self._poll_guard.acquire(blocking=False):
            return False
        try:
            status = self._api.get_vote_status(self.reveal_id)
        except AppError as e:
            logger.warning("Vote status poll failed code=%s reveal_id=%s", e.code, self.reveal_id)
            return False
        finally:
            self._poll_guard.release()

        if self._closed:
            return False
        self._apply_status(status)
        return True

    def _apply_status(self, status: dict) -> None:
        server_time = status.get("serverTime")
        if isinstance(server_time, (int, float)):
            self._server_offset = from_epoch_ms(server_time) - self._clock()

        self.counts = VoteCounts(
            prince=int(status.get("prince") or 0),
            princess=int(status.get("princess") or 0),
        )
        if status.get("isRevealed"):
            self.revealed = True
            self._set_state(PageState.REVEALED)
            return
        self.recompute()

    # -- voting --------------------------------------------------------------

    def cast_vote(self, side: str) -> VoteOutcome:
        if side not in SIDES:
            raise ValueError(f"Unknown side: {side}")
        if self._closed or self.state != PageState.COUNTDOWN or self.reveal_id is None:
            return VoteOutcome(VoteResult.NOT_OPEN)
        if self.has_voted:
            return VoteOutcome(VoteResult.ALREADY_VOTED, side=self.my_vote)
        if not self._vote_guard.acquire(blocking=False):
            return VoteOutcome(VoteResult.IN_FLIGHT)

        try:
            counts = self._api.submit_vote(self.reveal_id, side, self._device.device_id())
        except AlreadyVoted as e:
            recorded = e.previous_vote or side
            self._remember_vote(recorded)
            return VoteOutcome(VoteResult.ALREADY_VOTED, side=recorded)
        except RateLimitError as e:
            return VoteOutcome(VoteResult.FAILED, message=e.message, retryable=True)
        except AppError as e:
            logger.warning("Vote failed code=%s reveal_id=%s", e.code, self.reveal_id)
            return VoteOutcome(VoteResult.FAILED, message=e.message, retryable=e.status_code >= 500)
        finally:
            self._vote_guard.release()

        self._remember_vote(side)
        self.counts = VoteCounts(prince=int(counts.get("prince") or 0), princess=int(counts.get("princess") or 0))
        return VoteOutcome(VoteResult.ACCEPTED, side=side)

    def _remember_vote(self, side: str) -> None:
        self._device.record_vote(self.reveal_id, side)
        self.my_vote = side

    def snapshot(self) -> dict:
        counts = self.counts or VoteCounts()
        prince_pct, princess_pct = vote_percentages(counts.prince, counts.princess)
        remaining_time = self.time_remaining
        return {
            "state": self.state.value,
            "revealId": self.reveal_id,
            "babyName": self.baby_name,
            "scheduledAt": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "days": remaining_time.days if remaining_time else None,
            "hours": remaining_time.hours if remaining_time else None,
            "prince": counts.prince,
            "princess": counts.princess,
            "princePercent": prince_pct,
            "princessPercent": princess_pct,
            "myVote": self.my_vote,
            "error": self.error_kind.value if self.error_kind else None,
        }
