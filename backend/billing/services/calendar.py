from __future__ import annotations

import datetime as dt

DateLike = dt.date | dt.datetime | str | None


def month_start(d: dt.date) -> dt.date:
    return dt.date(d.year, d.month, 1)


def add_months(d: dt.date, months: int) -> dt.date:
    y = d.year + (d.month - 1 + months) // 12
    m = (d.month - 1 + months) % 12 + 1
    return dt.date(y, m, 1)


def month_index(d: dt.date) -> int:
    return d.year * 12 + (d.month - 1)


def months_between(start: dt.date, end: dt.date) -> int:
    """Whole calendar months from start to end; day of month is ignored. Negative when end < start."""
    return month_index(end) - month_index(start)


def parse_date(value: DateLike) -> dt.date | None:
    """
    Calendar date projection of a date, datetime or ISO string.

    Unparseable or blank values give None.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return dt.date.fromisoformat(s)
    except ValueError:
        pass
    try:
        return dt.datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def as_of_date(now: dt.date | dt.datetime | None = None) -> dt.date:
    if now is None:
        return dt.date.today()
    if isinstance(now, dt.datetime):
        return now.date()
    return now


def first_date(*values: DateLike) -> dt.date | None:
    """First value that parses as a calendar date."""
    for v in values:
        d = parse_date(v)
        if d is not None:
            return d
    return None
