"""Learning session exports."""

from .models import SessionCard, SessionState, SessionStatus
from .engine import LearningSession, fisher_yates, percentage

__all__ = [
    "SessionCard",
    "SessionState",
    "SessionStatus",
    "LearningSession",
    "fisher_yates",
    "percentage",
]
