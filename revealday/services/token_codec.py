"""
Stateless signer/verifier for the two reveal token variants.

Countdown tokens go to guests and carry ``type="countdown"``; reveal tokens
go to the owner and carry no discriminator. Both are HS256 JWTs signed with
the one process secret, so any instance can verify any token.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import jwt

from ..errors import InvalidToken, ExpiredToken

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME = timedelta(days=30)
COUNTDOWN_TYPE = "countdown"
RESERVED_CLAIMS = ("iat", "exp", "type")


class TokenVariant(str, enum.Enum):
    COUNTDOWN = "countdown"
    REVEAL = "reveal"


@dataclass(frozen=True)
class VerifiedToken:
    """
    Result of a successful verification. ``payload`` is what was issued,
    without the codec's own claims; callers check ``variant`` before
    trusting ``reveal_id``.
    """

    variant: TokenVariant
    payload: dict = field(default_factory=dict)
    issued_at: datetime | None = None
    expires_at: datetime | None = None

    @property
    def reveal_id(self) -> str | None:
        return self.payload.get("revealId")

    @property
    def is_countdown(self) -> bool:
        return self.variant is TokenVariant.COUNTDOWN

    def claims(self) -> dict:
        """Payload as it travels on the wire, discriminator included."""
        data = dict(self.payload)
        if self.is_countdown:
            data["type"] = COUNTDOWN_TYPE
        if self.issued_at:
            data["iat"] = int(self.issued_at.timestamp())
        if self.expires_at:
            data["exp"] = int(self.expires_at.timestamp())
        return data


class TokenCodec:
    def __init__(self, secret: str, algorithm: str = "HS256", lifetime: timedelta = DEFAULT_LIFETIME, clock=None):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = lifetime
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, payload: dict, variant: TokenVariant, lifetime: timedelta | None = None) -> str:
        """
        Sign ``payload`` as ``variant``. Expiry is a fixed lifetime from now and
        never depends on any scheduled instant inside the payload.
        """
        variant = TokenVariant(variant)
        clashing = [key for key in RESERVED_CLAIMS if key in payload]
        if clashing:
            raise ValueError(f"Payload may not set reserved claims: {', '.join(clashing)}")
        if variant is TokenVariant.COUNTDOWN and not payload.get("revealId"):
            raise ValueError("Countdown tokens must carry a revealId")

        now = self._clock()
        claims = dict(payload)
        if variant is TokenVariant.COUNTDOWN:
            claims["type"] = COUNTDOWN_TYPE
        claims["iat"] = now
        claims["exp"] = now + (lifetime if lifetime is not None else self._lifetime)

        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> VerifiedToken:
        if not token or not isinstance(token, str):
            raise InvalidToken("Token is missing")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredToken() from e
        except jwt.InvalidTokenError as e:
            logger.info("Rejected token: %s", e.__class__.__name__)
            raise InvalidToken() from e

        variant = TokenVariant.COUNTDOWN if claims.get("type") == COUNTDOWN_TYPE else TokenVariant.REVEAL
        if variant is TokenVariant.COUNTDOWN and not claims.get("revealId"):
            raise InvalidToken("Countdown token carries no revealId")

        issued_at = datetime.fromtimestamp(claims["iat"], tz=timezone.utc)
        expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        payload = {k: v for k, v in claims.items() if k not in RESERVED_CLAIMS}

        return VerifiedToken(variant=variant, payload=payload, issued_at=issued_at, expires_at=expires_at)
