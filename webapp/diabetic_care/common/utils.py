import math
from datetime import datetime, timedelta, timezone

import jdatetime

from diabetic_care.common.digits import to_display_digits

# Iran is UTC+3:30
IRAN_UTC_OFFSET = timedelta(hours=3, minutes=30)


def iran_now() -> datetime:
    """Return current Tehran time as a naive datetime.

    The app stores timestamps in the DB as Tehran local time (either via SQLite
    `datetime('now', '+3 hours', '+30 minutes')` or via Python).
    """
    return datetime.now(timezone.utc).replace(tzinfo=None) + IRAN_UTC_OFFSET


def parse_datetime(dt: datetime | str | None) -> datetime | None:
    """
    Parse a datetime string to datetime object.
    Accepts datetime object or string in format 'YYYY-MM-DD HH:MM:SS'.
    """
    if dt is None:
        return None

    if isinstance(dt, datetime):
        return dt

    if isinstance(dt, str):
        if not dt or dt == '—':
            return None
        try:
            return datetime.strptime(dt, '%Y-%m-%d %H:%M:%S')
        except ValueError:
            try:
                return datetime.strptime(dt, '%Y-%m-%d')
            except ValueError:
                return None
    return None


def format_jalali_datetime(dt: datetime | str | None, include_seconds: bool = False) -> str:
    """
    Format datetime as Jalali date string.
    Database stores Iran local time directly, so no timezone conversion needed.
    """
    parsed_dt = parse_datetime(dt)
    if parsed_dt is None:
        return '—'

    jd = jdatetime.datetime.fromgregorian(datetime=parsed_dt)
    if include_seconds:
        return jd.strftime('%Y/%m/%d %H:%M:%S')
    return jd.strftime('%Y/%m/%d %H:%M')


def format_jalali_date(value: str | None) -> str:
    """Birth dates are stored as Jalali 'YYYY-MM-DD'; display them with slashes."""
    if not value:
        return '—'
    return value.replace('-', '/')


def format_fa_number(value) -> str:
    """Format number with thousands separator and Persian digits."""
    if value is None:
        return ''
    try:
        num = float(value)
    except (TypeError, ValueError):
        return to_display_digits(str(value))

    if num.is_integer():
        s = f"{int(num):,}"
    else:
        s = f"{num:,.2f}"
    return to_display_digits(s).replace(',', '،')


def page_count(total: int, per_page: int) -> int:
    """Number of pages for `total` rows; an empty list still has one page."""
    if per_page <= 0:
        return 1
    return max(1, math.ceil(total / per_page))
