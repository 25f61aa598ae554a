from dataclasses import dataclass

from flask import current_app

from .feedback import FeedbackService, MailFeedbackNotifier
from .rate_limiter import RateLimiter
from .reservation_service import ReservationService
from .token_codec import TokenCodec
from .vote_ledger import VoteLedger
from .vote_service import VoteService

EXTENSION_KEY = "reveal_services"


@dataclass
class Services:
    codec: TokenCodec
    limiter: RateLimiter
    ledger: VoteLedger
    reservations: ReservationService
    votes: VoteService
    feedback: FeedbackService


def init_services(app, client, mail) -> Services:
    """Wire every service to the app's single store client."""
    config = app.config
    codec = TokenCodec(
        config["JWT_SECRET_KEY"],
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
        lifetime=config["RESERVATION_TOKEN_EXPIRES"],
    )
    limiter = RateLimiter(client, config["RATE_LIMITS"])
    ledger = VoteLedger(client)

    services = Services(
        codec=codec,
        limiter=limiter,
        ledger=ledger,
        reservations=ReservationService(
            ledger,
            codec,
            limiter,
            min_lead=config["RESERVATION_MIN_LEAD"],
            grace_period=config["LEDGER_GRACE_PERIOD"],
            min_ledger_ttl=config["LEDGER_MIN_TTL_SECONDS"],
            id_length=config["REVEAL_ID_LENGTH"],
            max_id_attempts=config["REVEAL_ID_MAX_ATTEMPTS"],
        ),
        votes=VoteService(ledger, limiter),
        feedback=FeedbackService(
            limiter,
            MailFeedbackNotifier(mail, config.get("FEEDBACK_RECIPIENT"), config.get("MAIL_DEFAULT_SENDER")),
        ),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
