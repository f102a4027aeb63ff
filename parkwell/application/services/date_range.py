from datetime import datetime, time, timezone
from typing import Optional, Tuple

from parkwell.domain.exceptions import ValidationError


def day_bounds(start_date=None, end_date=None) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Dates become [00:00, 23:59:59.999999] UTC; datetimes pass through."""
    start = end = None
    if start_date is not None:
        if isinstance(start_date, datetime):
            start = start_date
        else:
            start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    if end_date is not None:
        if isinstance(end_date, datetime):
            end = end_date
        else:
            end = datetime.combine(end_date, time.max, tzinfo=timezone.utc)
    if start and end and start > end:
        raise ValidationError("Start date must be before end date.")
    return start, end
