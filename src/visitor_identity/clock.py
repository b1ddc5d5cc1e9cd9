"""
visitor_identity.clock

Current-time source and epoch conversions.

Responsibilities:
- Provide the "now" used by every time-boxed operation.
- Convert aware datetimes to integer epoch units without float rounding.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def epoch_ns(when: datetime) -> int:
    return (when - _EPOCH) // timedelta(microseconds=1) * 1_000


def epoch_ms(when: datetime) -> int:
    return (when - _EPOCH) // timedelta(milliseconds=1)
