"""
Dimension rollups: dealer, sales rep and product collection.

All three share one group-and-reduce pass (revenue, transaction count, distinct
related entities, revenue share against a caller-supplied grand total) and then
add their own extras. Results are ordered by revenue, highest first; ties keep
the order in which keys first appear in the rows.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

import pandas as pd

from fact_rows import FactRow, rows_to_frame

UNCATEGORIZED = "Uncategorized"


@dataclass
class DimensionAggregate:
    key: Any
    display_name: str
    revenue: float
    transaction_count: int
    revenue_share_pct: float
    distinct_related_count: int | None = None
    # dealer only
    latest_month: str | None = None
    latest_month_avg: float | None = None
    average_invoice: float | None = None


def revenue_share_pct(revenue: float, grand_total: float) -> float:
    if not grand_total:
        return 0.0
    return round(100 * revenue / grand_total, 1)


def _plain(value: Any) -> Any:
    # numpy scalars -> builtins
    return value.item() if hasattr(value, "item") else value


def _name_lookup(names: Mapping[Any, str] | None, label: str) -> Callable[[Any], str]:
    names = names or {}

    def display_name(key: Any) -> str:
        name = names.get(key)
        if isinstance(name, str) and name.strip():
            return name
        return f"{label} {key}"

    return display_name


def _group_and_reduce(
    df: pd.DataFrame,
    key_column: str,
    related_column: str,
    grand_total: float,
    display_name: Callable[[Any], str],
    with_average: bool = False,
) -> list[DimensionAggregate]:
    if df.empty:
        return []

    grouped = df.groupby(key_column, sort=False).agg(
        revenue=("amount", "sum"),
        transaction_count=("amount", "count"),
        distinct_related_count=(related_column, "nunique"),
    )
    aggregates = []
    for key, row in grouped.iterrows():
        key = _plain(key)
        revenue = float(row["revenue"])
        count = int(row["transaction_count"])
        aggregate = DimensionAggregate(
            key=key,
            display_name=display_name(key),
            revenue=round(revenue, 2),
            transaction_count=count,
            revenue_share_pct=revenue_share_pct(revenue, grand_total),
            distinct_related_count=int(row["distinct_related_count"]),
        )
        if with_average:
            # unrounded revenue, rounded once
            aggregate.average_invoice = round(revenue / count, 2) if count else 0.0
        aggregates.append(aggregate)
    return aggregates


def _rank(aggregates: list[DimensionAggregate]) -> list[DimensionAggregate]:
    return sorted(aggregates, key=lambda a: a.revenue, reverse=True)


def _latest_month_stats(df: pd.DataFrame) -> dict[int, tuple[str, float]]:
    """Per dealer: (latest month key, average amount within that month)."""
    df = df.assign(_month=df["transaction_date"].str.slice(0, 7))
    per_month = df.groupby(["entity_id", "_month"], sort=True)["amount"].agg(["sum", "count"])
    latest: dict[int, tuple[str, float]] = {}
    for (entity_id, month), row in per_month.iterrows():
        # sorted by month within each dealer, so the last write wins
        latest[int(entity_id)] = (str(month), round(float(row["sum"]) / int(row["count"]), 2))
    return latest


def aggregate_dealers(
    rows: Iterable[FactRow],
    grand_total: float,
    names: Mapping[int, str] | None = None,
) -> list[DimensionAggregate]:
    df = rows_to_frame(rows)
    aggregates = _group_and_reduce(
        df, "entity_id", "agent_id", grand_total, _name_lookup(names, "Dealer"), with_average=True
    )
    if not aggregates:
        return []

    latest = _latest_month_stats(df)
    for agg in aggregates:
        if agg.key in latest:
            agg.latest_month, agg.latest_month_avg = latest[agg.key]
    return _rank(aggregates)


def aggregate_reps(
    rows: Iterable[FactRow],
    grand_total: float,
    names: Mapping[int, str] | None = None,
) -> list[DimensionAggregate]:
    """Unassigned rows (agent_id None) are left out of the rep rollup entirely."""
    df = rows_to_frame(rows)
    df = df[df["agent_id"].notna()]
    return _rank(_group_and_reduce(df, "agent_id", "entity_id", grand_total, _name_lookup(names, "Rep")))


def aggregate_collections(rows: Iterable[FactRow], grand_total: float) -> list[DimensionAggregate]:
    df = rows_to_frame(rows)
    df["dimension_tag"] = df["dimension_tag"].fillna(UNCATEGORIZED)
    return _rank(_group_and_reduce(df, "dimension_tag", "entity_id", grand_total, str))


def paginate(aggregates: list[DimensionAggregate], limit: int | None = None, offset: int = 0) -> list[DimensionAggregate]:
    if offset < 0 or (limit is not None and limit < 0):
        raise ValueError("limit and offset must be non-negative")
    end = None if limit is None else offset + limit
    return aggregates[offset:end]
