# vanishchat/core/message_logic.py

from datetime import datetime, timedelta, timezone

from vanishchat.core.config import BASE_LIFETIME_SECONDS

MIN_LIFETIME_SECONDS = 1
# lifetime = BASE / (1 + recent / ACTIVITY_DIVISOR)
ACTIVITY_DIVISOR = 10


def lifetime(recent_count: int, base: int = BASE_LIFETIME_SECONDS) -> int:
    """
    Lifetime in seconds for a message whose sender has ``recent_count``
    prior sends inside the activity window.

    floor(base / (1 + recent_count / 10)), never below one second. Busier
    senders get shorter-lived messages.
    """
    if recent_count < 0:
        raise ValueError("recent_count must be >= 0")
    # Integer form of base / (1 + n/10), so floor() is exact
    seconds = (base * ACTIVITY_DIVISOR) // (ACTIVITY_DIVISOR + recent_count)
    return max(MIN_LIFETIME_SECONDS, seconds)


def expires_at(created_at: datetime, lifetime_seconds: int) -> datetime:
    return created_at + timedelta(seconds=lifetime_seconds)


def remaining_seconds(created_at: datetime, lifetime_seconds: int, now: datetime) -> int:
    """Whole seconds left before expiry, clamped at zero."""
    delta = (expires_at(created_at, lifetime_seconds) - now).total_seconds()
    if delta <= 0:
        return 0
    # A message 0.4s from expiry is still alive, so round partial seconds up
    whole = int(delta)
    return whole if whole == delta else whole + 1


def is_expired(created_at: datetime, lifetime_seconds: int, now: datetime) -> bool:
    return remaining_seconds(created_at, lifetime_seconds, now) <= 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
