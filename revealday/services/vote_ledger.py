"""
Per-reservation vote counters and per-device voter records.

Key layout:
    vote:{revealId}                  hash {prince, princess}, TTL = reservation TTL
    voter:{revealId}:{deviceId}      recorded side, TTL inherited from the ledger
    reveal:{revealId}:revealed       "true" once the owner has revealed

Every mutation is a single atomic store command (HINCRBY, SET NX EX) or a
MULTI/EXEC block, WATCHed where the ledger must still exist when it commits.
"""
import logging
from dataclasses import dataclass

from redis.exceptions import RedisError

from ..errors import NotFound, StoreError

logger = logging.getLogger(__name__)

SIDES = ("prince", "princess")
VOTER_TTL_FALLBACK_SECONDS = 30 * 24 * 60 * 60
REVEALED_FLAG = "true"


def vote_key(reveal_id: str) -> str:
    return f"vote:{reveal_id}"


def voter_key(reveal_id: str, device_id: str) -> str:
    return f"voter:{reveal_id}:{device_id}"


def revealed_key(reveal_id: str) -> str:
    return f"reveal:{reveal_id}:revealed"


def _as_count(raw) -> int:
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class VoteCounts:
    prince: int = 0
    princess: int = 0

    @property
    def total(self) -> int:
        return self.prince + self.princess

    def to_dict(self) -> dict:
        return {"prince": self.prince, "princess": self.princess}


@dataclass(frozen=True)
class LedgerStatus:
    counts: VoteCounts
    revealed: bool


class VoteLedger:
    def __init__(self, client):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            raise StoreError("Backing store is not configured")
        return self._client

    def exists(self, reveal_id: str) -> bool:
        return bool(self.client.exists(vote_key(reveal_id)))

    def create(self, reveal_id: str, ttl_seconds: int) -> None:
        """Initialise both counters at zero with the reservation TTL."""
        if ttl_seconds <= 0:
            raise ValueError("Ledger TTL must be positive")
        key = vote_key(reveal_id)
        with self.client.pipeline(transaction=True) as pipe:
            pipe.hset(key, mapping={side: 0 for side in SIDES})
            pipe.expire(key, ttl_seconds)
            pipe.execute()

    def ttl(self, reveal_id: str) -> int:
        return self.client.ttl(vote_key(reveal_id))

    def status(self, reveal_id: str) -> LedgerStatus | None:
        """Counters and revealed flag in one round trip; None if no ledger exists."""
        with self.client.pipeline(transaction=False) as pipe:
            pipe.exists(vote_key(reveal_id))
            pipe.hmget(vote_key(reveal_id), list(SIDES))
            pipe.get(revealed_key(reveal_id))
            exists, (prince, princess), revealed = pipe.execute()

        if not exists:
            return None
        return LedgerStatus(
            counts=VoteCounts(prince=_as_count(prince), princess=_as_count(princess)),
            revealed=revealed == REVEALED_FLAG,
        )

    def recorded_vote(self, reveal_id: str, device_id: str) -> str | None:
        return self.client.get(voter_key(reveal_id, device_id))

    def voter_ttl(self, reveal_id: str) -> int:
        """
        Remaining ledger TTL for a new voter record, or the fixed fallback
        when it cannot be read.
        """
        try:
            ttl = self.ttl(reveal_id)
        except RedisError:
            logger.warning("Ledger TTL read failed, using fallback reveal_id=%s", reveal_id, exc_info=True)
            return VOTER_TTL_FALLBACK_SECONDS
        return ttl if ttl and ttl > 0 else VOTER_TTL_FALLBACK_SECONDS

    def record_voter(self, reveal_id: str, device_id: str, side: str) -> bool:
        """
        Write the voter record if absent. False means another request for the
        same device got there first.
        """
        if side not in SIDES:
            raise ValueError(f"Unknown side: {side}")
        ttl = self.voter_ttl(reveal_id)
        return bool(self.client.set(voter_key(reveal_id, device_id), side, nx=True, ex=ttl))

    def increment(self, reveal_id: str, side: str) -> VoteCounts:
        """Add one vote to ``side`` and return both counters after the increment."""
        if side not in SIDES:
            raise ValueError(f"Unknown side: {side}")
        other = SIDES[1] if side == SIDES[0] else SIDES[0]
        key = vote_key(reveal_id)

        def _increment(pipe):
            # HINCRBY on a missing key would recreate the hash without a TTL.
            if not pipe.exists(key):
                raise NotFound("Vote not found")
            pipe.multi()
            pipe.hincrby(key, side, 1)
            pipe.hget(key, other)

        new_count, other_count = self.client.transaction(_increment, key)

        counts = {side: _as_count(new_count), other: _as_count(other_count)}
        return VoteCounts(**counts)

    def mark_revealed(self, reveal_id: str) -> None:
        """Set the revealed flag, expiring together with the ledger."""
        ttl = self.ttl(reveal_id)
        if ttl is None or ttl == -2:
            raise NotFound(f"No ledger for {reveal_id}")
        key = revealed_key(reveal_id)
        if ttl > 0:
            self.client.set(key, REVEALED_FLAG, ex=ttl)
        else:
            self.client.set(key, REVEALED_FLAG)
