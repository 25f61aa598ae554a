import logging
from dataclasses import dataclass, field

from flask_mail import Message

from ..errors import RateLimitError
from .rate_limiter import FEEDBACK

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Feedback:
    rating: int
    comment: str = ""
    user_agent: str = ""
    page_url: str = ""
    timestamp: str = ""


@dataclass
class FeedbackReceipt:
    delivered: bool
    warnings: list = field(default_factory=list)


class MailFeedbackNotifier:
    """Delivers feedback to the operators' inbox through Flask-Mail."""

    def __init__(self, mail, recipient: str | None, sender: str | None):
        self._mail = mail
        self._recipient = recipient
        self._sender = sender

    def send(self, feedback: Feedback) -> None:
        if not self._recipient:
            raise RuntimeError("FEEDBACK_RECIPIENT is not configured")
        if not self._sender:
            # Fail fast with a meaningful message (instead of Flask-Mail assertion)
            raise RuntimeError("MAIL_DEFAULT_SENDER is not configured")

        stars = "*" * feedback.rating + "-" * (5 - feedback.rating)
        body = (
            f"Rating: {feedback.rating}/5 [{stars}]\n"
            f"Comment: {feedback.comment or '(none)'}\n\n"
            f"Page: {feedback.page_url or '-'}\n"
            f"User agent: {feedback.user_agent or '-'}\n"
            f"Received: {feedback.timestamp}\n"
        )
        msg = Message(
            subject=f"[Reveal Day] New feedback: {feedback.rating}/5",
            recipients=[self._recipient],
            body=body,
            sender=self._sender,
        )
        self._mail.send(msg)


class FeedbackService:
    def __init__(self, limiter, notifier):
        self._limiter = limiter
        self._notifier = notifier

    def submit(self, feedback: Feedback, client_ip: str) -> FeedbackReceipt:
        if not self._limiter.allow(FEEDBACK, client_ip):
            status = self._limiter.status(FEEDBACK, client_ip)
            raise RateLimitError("Too many feedback submissions", retry_after=status.reset_in)

        try:
            self._notifier.send(feedback)
        except Exception:
            # Delivery is best-effort; the submission itself has been accepted.
            logger.exception("Feedback delivery failed rating=%s", feedback.rating)
            return FeedbackReceipt(delivered=False, warnings=["notification_failed"])

        logger.info("Feedback delivered rating=%s", feedback.rating)
        return FeedbackReceipt(delivered=True)
