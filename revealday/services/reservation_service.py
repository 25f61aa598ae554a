import logging
import math
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..errors import IdAllocationError, RateLimitError, ValidationError
from ..schemas.reservation import ReservationCreateSchema
from ..utils.validation import load_or_raise
from .rate_limiter import CREATE
from .token_codec import TokenVariant

logger = logging.getLogger(__name__)

# nanoid's URL-safe alphabet
ID_ALPHABET = string.ascii_letters + string.digits + "_-"

reservation_create_schema = ReservationCreateSchema()


def random_reveal_id(length: int = 8) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def allocate_unique_id(generate, exists, max_attempts: int = 3) -> str:
    """
    Draw ids from ``generate`` until ``exists`` reports one as free.
    Gives up with IdAllocationError after ``max_attempts`` collisions.
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate()
        if not exists(candidate):
            return candidate
        logger.warning("Reveal id collision, retrying attempt=%s reveal_id=%s", attempt, candidate)
    raise IdAllocationError()


def ledger_ttl_seconds(scheduled_at: datetime, now: datetime, grace: timedelta, minimum: int) -> int:
    """Seconds from ``now`` until ``scheduled_at + grace``, never below ``minimum``."""
    ttl = math.floor(((scheduled_at + grace) - now).total_seconds())
    return max(ttl, minimum)


@dataclass(frozen=True)
class Reservation:
    reveal_id: str
    countdown_token: str
    reveal_token: str
    scheduled_at: datetime
    ledger_ttl: int


class ReservationService:
    def __init__(
        self,
        ledger,
        codec,
        limiter,
        *,
        min_lead: timedelta = timedelta(hours=1),
        grace_period: timedelta = timedelta(days=30),
        min_ledger_ttl: int = 60,
        id_length: int = 8,
        max_id_attempts: int = 3,
        id_factory=None,
        clock=None,
    ):
        self._ledger = ledger
        self._codec = codec
        self._limiter = limiter
        self._min_lead = min_lead
        self._grace_period = grace_period
        self._min_ledger_ttl = min_ledger_ttl
        self._max_id_attempts = max_id_attempts
        self._id_factory = id_factory or (lambda: random_reveal_id(id_length))
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def create(self, owner_input: dict, client_ip: str) -> Reservation:
        if not self._limiter.allow(CREATE, client_ip):
            rule = self._limiter.rule(CREATE)
            raise RateLimitError(
                "Too many reservations, please try again in a minute", retry_after=rule.window_seconds
            )

        data = load_or_raise(reservation_create_schema, owner_input)
        scheduled_at = data["scheduled_at"]
        now = self._clock()
        if scheduled_at <= now + self._min_lead:
            raise ValidationError(
                "The reveal must be scheduled more than one hour from now",
                details={"scheduledAt": ["Must be more than one hour in the future"]},
            )

        reveal_id = allocate_unique_id(self._id_factory, self._ledger.exists, self._max_id_attempts)

        ttl = ledger_ttl_seconds(scheduled_at, now, self._grace_period, self._min_ledger_ttl)
        self._ledger.create(reveal_id, ttl)

        payload = reservation_create_schema.dump(data)
        payload["revealId"] = reveal_id
        countdown_token = self._codec.issue(payload, TokenVariant.COUNTDOWN)
        reveal_token = self._codec.issue(payload, TokenVariant.REVEAL)

        logger.info(
            "Reservation created reveal_id=%s scheduled_at=%s ledger_ttl=%s",
            reveal_id, scheduled_at.isoformat(), ttl,
        )
        return Reservation(
            reveal_id=reveal_id,
            countdown_token=countdown_token,
            reveal_token=reveal_token,
            scheduled_at=scheduled_at,
            ledger_ttl=ttl,
        )
