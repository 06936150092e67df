import logging
from dataclasses import dataclass
from datetime import date

import pandas as pd

from row_source import RowSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportingWindow:
    start: str  # inclusive, YYYY-MM-DD
    end: str  # exclusive, YYYY-MM-DD


def _as_text(value: str | date | None) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return str(value)


def _latest_known_year(source: RowSource) -> int | None:
    """Year of the newest transaction, or None when the source has none or the lookup fails."""
    try:
        latest = source.latest_transaction_date()
        if not latest:
            return None
        ts = pd.Timestamp(latest)
        if pd.isna(ts):
            return None
        return ts.year
    except Exception as exc:
        logger.warning("Latest transaction lookup failed, using current year: %s", exc, exc_info=True)
        return None


def resolve_reporting_window(
    source: RowSource,
    start: str | date | None = None,
    end: str | date | None = None,
    today: date | None = None,
) -> ReportingWindow:
    """
    Fill in missing bounds with a full calendar year.

    The reference year is the explicit start's year, else the year of the most
    recent transaction the source knows about, else the current year.
    """
    start, end = _as_text(start), _as_text(end)
    if start and end:
        return ReportingWindow(start=start, end=end)

    if start:
        year = pd.Timestamp(start).year
    else:
        year = _latest_known_year(source) or (today or date.today()).year

    return ReportingWindow(
        start=start or f"{year}-01-01",
        end=end or f"{year + 1}-01-01",
    )
