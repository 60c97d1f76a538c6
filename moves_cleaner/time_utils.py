from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Union

from .constants import MOVES_TIME_FORMAT

TimeLike = Union[datetime, str, int, float]


def parse_timestamp(raw: TimeLike) -> datetime:
    """Turn a record timestamp into a timezone-aware datetime.

    Accepts datetimes (naive ones are taken as UTC), ISO-8601 strings, the
    compact ``20130315T081500+0100`` form used by storyline exports, and
    epoch milliseconds.
    """

    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, bool):
        raise ValueError(f"Invalid timestamp {raw!r}")
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)

    text = str(raw).strip()
    try:
        parsed = datetime.strptime(text, MOVES_TIME_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            if text.isdigit():
                return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
            raise ValueError(f"Invalid timestamp {raw!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def unix_seconds(ts: datetime) -> int:
    return math.floor(ts.timestamp())


def seconds_between(start: datetime, end: datetime) -> int:
    # Whole seconds, truncated toward zero.
    return int((end - start).total_seconds())


def format_timestamp(ts: datetime, iso: bool = False) -> str:
    # The compact form has no room for fractions of a second.
    if iso or ts.microsecond:
        return ts.isoformat()
    return ts.strftime(MOVES_TIME_FORMAT)
