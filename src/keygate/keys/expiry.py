"""
Parsing of the `expiresIn` request field.

The field arrives either as a number of seconds from now or as an absolute
timestamp string. It is decided once at the API boundary into a tagged value
and then normalized to a single absolute UTC datetime.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from keygate.common.exceptions import ValidationError

INVALID_EXPIRES_IN = "invalid expiresIn format"


@dataclass(frozen=True)
class DurationExpiry:
    """Expires a number of seconds after issuance."""

    seconds: float

    def resolve(self, now: datetime) -> datetime:
        return now + timedelta(seconds=self.seconds)


@dataclass(frozen=True)
class DeadlineExpiry:
    """Expires at a fixed point in time."""

    at: datetime

    def resolve(self, now: datetime) -> datetime:
        return self.at


Expiry = Union[DurationExpiry, DeadlineExpiry]


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 date or timestamp; naive values are taken as UTC."""
    text = value.strip()
    if not text:
        raise ValueError("empty timestamp")
    # UTC designator in either case
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_expires_in(value: Any) -> Expiry | None:
    """Classify a raw `expiresIn` value.

    Returns None when the key should never expire.

    Raises:
        ValidationError: the value is neither a positive number nor a
            parseable timestamp string
    """
    if value is None:
        return None
    # bool is an int subclass but true/false is not a duration
    if isinstance(value, bool):
        raise ValidationError(INVALID_EXPIRES_IN)
    if isinstance(value, (int, float)):
        try:
            if not math.isfinite(value) or value <= 0:
                raise ValidationError(INVALID_EXPIRES_IN)
            datetime.now(timezone.utc) + timedelta(seconds=value)
        except OverflowError:
            raise ValidationError(INVALID_EXPIRES_IN) from None
        return DurationExpiry(seconds=value)
    if isinstance(value, str):
        try:
            return DeadlineExpiry(at=parse_timestamp(value))
        except (ValueError, OverflowError):
            raise ValidationError(INVALID_EXPIRES_IN) from None
    raise ValidationError(INVALID_EXPIRES_IN)


def ttl_seconds(expires_at: datetime, now: datetime) -> int:
    """Whole seconds left until `expires_at`, rounded down."""
    return math.floor((expires_at - now).total_seconds())
