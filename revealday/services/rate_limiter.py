"""
Fixed-window rate limiting on the shared store.

A counter per (action-class, ip) is created together with its window TTL in
one MULTI/EXEC, so no counter can outlive its window. Store outages never
block traffic: the limiter fails open.
"""
import logging
from dataclasses import dataclass

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

CREATE = "create"
VOTE = "vote"
FEEDBACK = "feedback"


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitStatus:
    remaining: int
    reset_in: int | None


def rate_limit_key(action: str, ip: str) -> str:
    return f"ratelimit:{action}:{ip}"


class RateLimiter:
    def __init__(self, client, rules: dict):
        self._client = client
        self._rules = {
            action: rule if isinstance(rule, RateLimitRule) else RateLimitRule(*rule)
            for action, rule in rules.items()
        }

    def rule(self, action: str) -> RateLimitRule:
        try:
            return self._rules[action]
        except KeyError:
            raise ValueError(f"Unknown rate-limit action class: {action}") from None

    def allow(self, action: str, ip: str) -> bool:
        """
        Count this request and report whether it is within the limit.
        Requests over the limit are counted too.
        """
        rule = self.rule(action)
        if self._client is None:
            logger.warning("Rate limiting skipped, no backing store action=%s", action)
            return True

        key = rate_limit_key(action, ip)
        try:
            with self._client.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=rule.window_seconds, nx=True)
                pipe.incr(key)
                _, count = pipe.execute()
        except RedisError:
            logger.error("Rate limit check failed, allowing request action=%s ip=%s", action, ip, exc_info=True)
            return True

        if count > rule.limit:
            logger.warning("Rate limit exceeded action=%s ip=%s count=%s", action, ip, count)
            return False
        return True

    def status(self, action: str, ip: str) -> RateLimitStatus:
        """Current window for (action, ip) without counting a request."""
        rule = self.rule(action)
        if self._client is None:
            return RateLimitStatus(remaining=rule.limit, reset_in=None)

        key = rate_limit_key(action, ip)
        try:
            with self._client.pipeline(transaction=False) as pipe:
                pipe.get(key)
                pipe.ttl(key)
                raw, ttl = pipe.execute()
        except RedisError:
            logger.error("Rate limit status read failed action=%s ip=%s", action, ip, exc_info=True)
            return RateLimitStatus(remaining=rule.limit, reset_in=None)

        try:
            count = int(raw or 0)
        except (TypeError, ValueError):
            count = 0
        return RateLimitStatus(
            remaining=max(0, rule.limit - count),
            reset_in=ttl if ttl and ttl > 0 else None,
        )
