"""Input validators for sets, cards, generation topics and credentials.

Each validator takes one candidate value and returns it normalised, or raises
``ValidationFailed`` with the message of the first rule it breaks. They are
pure: no I/O, no logging.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from email_validator import EmailNotValidError, validate_email

from flashdeck.core.errors import ValidationFailed

TITLE_MAX = 100
DESCRIPTION_MAX = 500
EMOJI_MAX = 10
FRONT_MAX = 1000
BACK_MAX = 2000
TOPIC_MIN = 2
TOPIC_MAX = 200
EMAIL_MAX = 255
PASSWORD_MIN = 6
PASSWORD_MAX = 100

COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _text(value: Any, *, required: str, max_len: int, too_long: str, min_len: int = 1,
          too_short: Optional[str] = None, strip: bool = True) -> str:
    if not isinstance(value, str):
        raise ValidationFailed(required)
    out = value.strip() if strip else value
    if not out:
        raise ValidationFailed(required)
    if len(out) < min_len:
        raise ValidationFailed(too_short or required)
    if len(out) > max_len:
        raise ValidationFailed(too_long)
    return out


def validate_title(value: Any) -> str:
    return _text(
        value,
        required="Title is required",
        max_len=TITLE_MAX,
        too_long=f"Title must be at most {TITLE_MAX} characters",
    )


def validate_description(value: Any) -> Optional[str]:
    """Optional; blank collapses to ``None``."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationFailed("Description must be text")
    out = value.strip()
    if len(out) > DESCRIPTION_MAX:
        raise ValidationFailed(
            f"Description must be at most {DESCRIPTION_MAX} characters"
        )
    return out or None


def validate_emoji(value: Any) -> str:
    # Length check only; any short string passes
    return _text(
        value,
        required="Emoji is required",
        max_len=EMOJI_MAX,
        too_long="Invalid emoji",
        strip=False,
    )


def validate_color(value: Any) -> str:
    if not isinstance(value, str) or not COLOR_RE.match(value):
        raise ValidationFailed("Invalid color")
    return value


def validate_front(value: Any) -> str:
    return _text(
        value,
        required="Front side is required",
        max_len=FRONT_MAX,
        too_long=f"Front side must be at most {FRONT_MAX} characters",
    )


def validate_back(value: Any) -> str:
    return _text(
        value,
        required="Back side is required",
        max_len=BACK_MAX,
        too_long=f"Back side must be at most {BACK_MAX} characters",
    )


def validate_card(front: Any, back: Any) -> tuple[str, str]:
    return validate_front(front), validate_back(back)


def validate_topic(value: Any) -> str:
    short = f"Topic must be at least {TOPIC_MIN} characters"
    return _text(
        value,
        required=short,
        min_len=TOPIC_MIN,
        too_short=short,
        max_len=TOPIC_MAX,
        too_long=f"Topic must be at most {TOPIC_MAX} characters",
    )


def validate_set(
    title: Any, description: Any = None, emoji: Any = None, color: Any = None
) -> dict:
    """Validate a full set payload; ``None`` emoji/color are left out."""
    data: dict = {
        "title": validate_title(title),
        "description": validate_description(description),
    }
    if emoji is not None:
        data["emoji"] = validate_emoji(emoji)
    if color is not None:
        data["color"] = validate_color(color)
    return data


def validate_email_address(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed("Invalid email address")
    candidate = value.strip()
    try:
        info = validate_email(candidate, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationFailed("Invalid email address") from None
    if len(candidate) > EMAIL_MAX:
        raise ValidationFailed(f"Email must be at most {EMAIL_MAX} characters")
    return info.normalized


def validate_password(value: Any) -> str:
    if not isinstance(value, str) or len(value) < PASSWORD_MIN:
        raise ValidationFailed(f"Password must be at least {PASSWORD_MIN} characters")
    if len(value) > PASSWORD_MAX:
        raise ValidationFailed(f"Password must be at most {PASSWORD_MAX} characters")
    return value


def validate_credentials(email: Any, password: Any) -> tuple[str, str]:
    return validate_email_address(email), validate_password(password)


__all__ = [
    "validate_title",
    "validate_description",
    "validate_emoji",
    "validate_color",
    "validate_front",
    "validate_back",
    "validate_card",
    "validate_topic",
    "validate_set",
    "validate_email_address",
    "validate_password",
    "validate_credentials",
]
