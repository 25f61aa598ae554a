from .api import ApiUnavailable, BadResponse, RevealApiClient
from .device import DeviceStore
from .session import CountdownSession, ErrorKind, PageState, VoteOutcome, VoteResult, vote_percentages
from .timers import IntervalTimer, SchedulerIntervalTimer
from .visibility import VisibilityObserver

__all__ = [
    "ApiUnavailable",
    "BadResponse",
    "CountdownSession",
    "DeviceStore",
    "ErrorKind",
    "IntervalTimer",
    "PageState",
    "RevealApiClient",
    "SchedulerIntervalTimer",
    "VisibilityObserver",
    "VoteOutcome",
    "VoteResult",
    "vote_percentages",
]
