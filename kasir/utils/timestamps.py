"""Unix-second timestamps used by every table."""
import time
from datetime import date, datetime, timedelta
from typing import Optional, Tuple


def current_timestamp() -> int:
    """Current time in whole Unix seconds."""
    return int(time.time())


def day_bounds(day: Optional[date] = None) -> Tuple[int, int]:
    """
    First and last second of a calendar day in local time, both inclusive.

    Matches the inclusive range taken by the sales report.
    """
    day = day or date.today()
    start = datetime(day.year, day.month, day.day)
    end = start + timedelta(days=1)
    return int(start.timestamp()), int(end.timestamp()) - 1
