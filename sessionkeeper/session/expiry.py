"""
Session expiry rules.

A session's absolute expiry comes from its cookie when the cookie carries
one and from the configured TTL otherwise. The lastModified stamp written
on every save lets touch() skip writes for sessions refreshed within the
touch_after window.
"""

import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Mapping, Optional

from sessionkeeper.clock import Clock, system_clock

LAST_MODIFIED_KEY = "lastModified"


def _datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def parse_date_ms(value: Any) -> Optional[int]:
    """
    Interpret a cookie expiry as epoch milliseconds.

    Accepts epoch-millisecond numbers, datetimes, numeric strings, ISO 8601
    strings and RFC 1123 cookie dates. Naive datetimes are taken as UTC.

    Returns:
        The timestamp, or None if the value is not a recognisable date.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _datetime_to_ms(value)
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        number = float(text)
    except ValueError:
        pass
    else:
        return int(number) if math.isfinite(number) else None
    try:
        return _datetime_to_ms(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return _datetime_to_ms(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return None


def cookie_expiry(session: Any) -> Optional[int]:
    """Return the explicit expiry carried by session["cookie"]["expires"]."""
    if not isinstance(session, Mapping):
        return None
    cookie = session.get("cookie")
    if not isinstance(cookie, Mapping):
        return None
    expires = cookie.get("expires")
    if not expires:
        return None
    return parse_date_ms(expires)


def compute_expiry(session: Any, ttl: int, now: int) -> int:
    """
    Absolute expiry for a session.

    Example:
        compute_expiry({"cookie": {"expires": 123}}, 50, 500) == 123
        compute_expiry({}, 50, 500) == 550
    """
    explicit = cookie_expiry(session)
    if explicit is not None:
        return explicit
    return now + ttl


def should_refresh(session: Any, touch_after: int, now: int) -> bool:
    """
    Whether a touch must write a new expiry.

    With a non-positive touch_after every touch writes. Otherwise a session
    whose lastModified lies within touch_after of now is left alone, and a
    session without a usable lastModified is always refreshed.
    """
    if touch_after <= 0:
        return True
    last_modified = session.get(LAST_MODIFIED_KEY) if isinstance(session, Mapping) else None
    if isinstance(last_modified, bool) or not isinstance(last_modified, (int, float)):
        return True
    return now - last_modified >= touch_after


class ExpiryPolicy:
    """
    Expiry rules bound to a configuration and a clock.

    Attributes:
        ttl: Default lifetime in milliseconds.
        touch_after: Minimum gap in milliseconds between expiry refreshes.
    """

    def __init__(self, ttl: int, touch_after: int, clock: Optional[Clock] = None):
        self.ttl = ttl
        self.touch_after = touch_after
        self._clock = clock if clock is not None else system_clock

    def compute_expiry(self, session: Any) -> int:
        return compute_expiry(session, self.ttl, self._clock())

    def should_refresh(self, session: Any) -> bool:
        return should_refresh(session, self.touch_after, self._clock())

    def prepare_content(self, session: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Copy of the session as it should be persisted.

        lastModified is stamped with the current time when touch_after is
        positive and dropped otherwise. The caller's mapping is not modified.
        """
        content = dict(session)
        if self.touch_after > 0:
            content[LAST_MODIFIED_KEY] = self._clock()
        else:
            content.pop(LAST_MODIFIED_KEY, None)
        return content
