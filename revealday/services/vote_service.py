import logging
from dataclasses import dataclass

from ..errors import AlreadyVoted, NotFound, RateLimitError
from ..schemas.vote import VoteSubmitSchema
from ..utils.validation import load_or_raise
from .rate_limiter import VOTE
from .vote_ledger import VoteCounts

logger = logging.getLogger(__name__)

vote_submit_schema = VoteSubmitSchema()


@dataclass(frozen=True)
class VoteStatus:
    prince: int
    princess: int
    revealed: bool

    @property
    def total(self) -> int:
        return self.prince + self.princess


class VoteService:
    """
    Dedup-checked, rate-limited vote submission and status reads.

    A vote is counted only after its voter record has been written with
    SET NX, so a counter never moves without a unique record behind it.
    """

    def __init__(self, ledger, limiter):
        self._ledger = ledger
        self._limiter = limiter

    def submit(self, vote_input: dict, client_ip: str) -> VoteCounts:
        """Rate-limit, then validate a raw vote body, then record it."""
        self._check_rate(client_ip)
        data = load_or_raise(vote_submit_schema, vote_input)
        return self._record(data["reveal_id"], data["vote"], data["device_id"])

    def submit_vote(self, reveal_id: str, side: str, device_id: str, client_ip: str) -> VoteCounts:
        self._check_rate(client_ip)
        return self._record(reveal_id, side, device_id)

    def _check_rate(self, client_ip: str) -> None:
        if not self._limiter.allow(VOTE, client_ip):
            rule = self._limiter.rule(VOTE)
            raise RateLimitError("Too many votes, please try again shortly", retry_after=rule.window_seconds)

    def _record(self, reveal_id: str, side: str, device_id: str) -> VoteCounts:
        if not self._ledger.exists(reveal_id):
            raise NotFound("Vote not found")

        previous = self._ledger.recorded_vote(reveal_id, device_id)
        if previous:
            raise AlreadyVoted(previous)

        if not self._ledger.record_voter(reveal_id, device_id, side):
            # A concurrent request for this device won the race.
            winner = self._ledger.recorded_vote(reveal_id, device_id)
            raise AlreadyVoted(winner or side)

        counts = self._ledger.increment(reveal_id, side)
        logger.info("Vote recorded reveal_id=%s vote=%s device=%s", reveal_id, side, device_id[:8])
        return counts

    def get_status(self, reveal_id: str) -> VoteStatus:
        status = self._ledger.status(reveal_id)
        if status is None:
            raise NotFound("Vote not found")
        return VoteStatus(
            prince=status.counts.prince,
            princess=status.counts.princess,
            revealed=status.revealed,
        )
