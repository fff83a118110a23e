import logging
import os
from typing import Any, Optional


DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | user=%(user_id)s set=%(set_id)s | %(message)s"
)

CONTEXT_FIELDS = ("request_id", "user_id", "set_id")

# Third-party loggers that drown out ours at INFO
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "google_genai": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


class ContextFilter(logging.Filter):
    """Fills missing context fields with "-" so the format string never fails."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for name in CONTEXT_FIELDS:
            if getattr(record, name, None) is None:
                setattr(record, name, "-")
        return True


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    resolved_level = getattr(logging, (level or DEFAULT_LEVEL), logging.INFO)

    root = logging.getLogger()
    root.setLevel(resolved_level)

    # Reloads would otherwise stack handlers
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.addFilter(ContextFilter())
    root.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(quiet_level, resolved_level))


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)


def log_context(*, user_id: Any = None, set_id: Any = None) -> dict:
    """``extra`` mapping carrying the acting user and the set being touched."""
    return {
        "user_id": "-" if user_id is None else user_id,
        "set_id": "-" if set_id is None else set_id,
    }
