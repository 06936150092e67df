from typing import Iterable

import pandas as pd

from fact_rows import FactRow
from monthly import MonthlyTotal

DEFAULT_ACTIVE_WINDOW_DAYS = 90


def growth_rate_pct(monthly_totals: Iterable[MonthlyTotal]) -> float:
    """
    Month-over-month change between the two most recent buckets, in percent.
    0.0 when there are fewer than two buckets or the previous total is zero.
    """
    ordered = sorted(monthly_totals, key=lambda x: x.month)
    if len(ordered) < 2:
        return 0.0
    previous, latest = ordered[-2], ordered[-1]
    if previous.total == 0:
        return 0.0
    return round((latest.total - previous.total) / previous.total * 100, 1)


def count_active_entities(rows: Iterable[FactRow], window_days: int = DEFAULT_ACTIVE_WINDOW_DAYS) -> int:
    """
    Distinct dealers with a transaction on or after (latest date in rows - window_days).
    The window is anchored on the data's own latest date, not on today.
    """
    if window_days < 0:
        raise ValueError(f"window_days must be non-negative, got {window_days}")
    rows = list(rows)
    if not rows:
        return 0

    latest = max(row.transaction_date for row in rows)
    try:
        threshold = (pd.Timestamp(latest) - pd.Timedelta(days=window_days)).strftime("%Y-%m-%d")
    except (OverflowError, pd.errors.OutOfBoundsDatetime, pd.errors.OutOfBoundsTimedelta):
        # window reaches past the earliest representable date
        return len({row.entity_id for row in rows})
    return len({row.entity_id for row in rows if row.transaction_date >= threshold})
