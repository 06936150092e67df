from dataclasses import dataclass
from typing import Iterable

from fact_rows import FactRow, rows_to_frame


@dataclass(frozen=True)
class MonthlyTotal:
    month: str  # YYYY-MM
    total: float
    rows: int


def group_by_month(rows: Iterable[FactRow]) -> list[MonthlyTotal]:
    """
    Sum amounts and count rows per calendar month.
    Months without rows are absent from the result (no zero-filling).
    """
    df = rows_to_frame(rows)
    if df.empty:
        return []

    df["_month"] = df["transaction_date"].str.slice(0, 7)
    monthly = df.groupby("_month", sort=False)["amount"].agg(["sum", "size"])
    monthly_totals = [
        MonthlyTotal(month=str(month), total=round(float(row["sum"]), 2), rows=int(row["size"]))
        for month, row in monthly.iterrows()
    ]
    monthly_totals.sort(key=lambda x: x.month)
    return monthly_totals


def group_by_dealer_month(rows: Iterable[FactRow], dealer_id: int) -> list[MonthlyTotal]:
    return group_by_month(row for row in rows if row.entity_id == dealer_id)
