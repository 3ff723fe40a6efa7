"""Human-friendly formatting of process start times."""

from __future__ import annotations

import time
from datetime import date, datetime

_SECONDS_PER_DAY = 60 * 60 * 24


def _strftime(fmt: str, when: datetime) -> str:
    """Format *when*, mapping the non-portable %l and %k to %I and %H."""
    return when.strftime(fmt.replace("%l", "%I").replace("%k", "%H"))


def strftime_fix_am_pm(fmt: str, when: datetime) -> str:
    """Format *when*, switching to a 24-hour clock if the locale has no AM/PM.

    Some locales define no AM/PM symbols while the format string still asks
    for a 12-hour clock; in that case %l and %I are turned into %H.
    """
    if "%p" not in fmt and "%P" not in fmt:
        return _strftime(fmt, when)

    if _strftime("%p", when):
        return _strftime(fmt, when)

    return _strftime(fmt.replace("%l", "%H").replace("%I", "%H"), when)


def _local_day(timestamp: float) -> date:
    return datetime.fromtimestamp(timestamp).date()


def format_date_for_display(timestamp: float, now: float | None = None) -> str:
    """Describe a Unix timestamp relative to *now* (default: the current time).

    Recent times read "Today", "Yesterday" or the weekday; older ones show the
    month and day, and the year once it differs from the current one.
    """
    if timestamp == 0:
        return "?"

    now_ts = time.time() if now is None else now
    then = datetime.fromtimestamp(timestamp)
    then_day = then.date()

    if then_day == _local_day(now_ts):
        return strftime_fix_am_pm("Today %l∶%M %p", then)

    if then_day == _local_day(now_ts - _SECONDS_PER_DAY):
        return strftime_fix_am_pm("Yesterday %l∶%M %p", then)

    if any(then_day == _local_day(now_ts - _SECONDS_PER_DAY * days) for days in range(2, 7)):
        return strftime_fix_am_pm("%a %l∶%M %p", then)

    if then.year == datetime.fromtimestamp(now_ts).year:
        return strftime_fix_am_pm("%b %d %l∶%M %p", then)
    return strftime_fix_am_pm("%b %d %Y", then)