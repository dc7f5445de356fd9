"""Clock helpers shared by the ledger services."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

Clock = Callable[[], datetime]


def now() -> datetime:
    """Local wall-clock time; bill prefixes follow the store's calendar day."""
    return datetime.now()


def epoch_ms(dt: datetime) -> int:
    """Milliseconds since the epoch (naive values are local time)."""
    return int(dt.timestamp() * 1000)


def parse_iso_datetime(value) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string.

    - None / "" -> None
    - datetime instances are returned unchanged
    - "...Z" or "...+/-HH:MM" is converted to local time and tzinfo is stripped
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    s = str(value).strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Naive local ISO string; aware values are converted to local time first."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt.isoformat(timespec='seconds')
