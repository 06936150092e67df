"""
Assembly of the dashboard overview objects.

build_* functions are pure: they take normalized rows and name maps and return
fresh results. load_* functions add the row-source round trip for one request.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping

from dimensions import DimensionAggregate, aggregate_collections, aggregate_dealers, aggregate_reps
from fact_rows import FactRow, calculate_grand_total, normalize_rows
from monthly import MonthlyTotal, group_by_month
from reconciliation import ExpectedTotals, reconcile_monthly_totals
from reporting_window import ReportingWindow, resolve_reporting_window
from row_source import RequestScopedRowSource, RowQuery, RowSource
from sales_config import EngineSettings, load_settings
from windows import DEFAULT_ACTIVE_WINDOW_DAYS, count_active_entities, growth_rate_pct

logger = logging.getLogger(__name__)


@dataclass
class OrganizationOverview:
    rows: list[FactRow]
    monthly_totals: list[MonthlyTotal]
    grand_total: float
    invoice_count: int
    active_dealers: int
    growth_rate_pct: float
    dealers: list[DimensionAggregate]
    reps: list[DimensionAggregate]
    collections: list[DimensionAggregate]
    average_invoice: float = 0.0
    top_dealer: str | None = None
    top_dealer_revenue: float = 0.0
    coerced_amount_count: int = 0
    window: ReportingWindow | None = None
    reconciliation_issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ScopedOverview:
    """Rep- or dealer-scoped slice: monthly series, dealer breakdown, totals."""
    rows: list[FactRow]
    monthly_totals: list[MonthlyTotal]
    grand_total: float
    invoice_count: int
    unique_dealers: int
    dealers: list[DimensionAggregate]
    coerced_amount_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_organization_overview(
    rows: Iterable[FactRow],
    dealer_names: Mapping[int, str] | None = None,
    rep_names: Mapping[int, str] | None = None,
    active_window_days: int = DEFAULT_ACTIVE_WINDOW_DAYS,
    coerced_amount_count: int = 0,
    window: ReportingWindow | None = None,
) -> OrganizationOverview:
    rows = list(rows)
    monthly_totals = group_by_month(rows)
    grand_total = calculate_grand_total(rows)
    dealers = aggregate_dealers(rows, grand_total, dealer_names)
    top = dealers[0] if dealers else None

    return OrganizationOverview(
        rows=rows,
        monthly_totals=monthly_totals,
        grand_total=grand_total,
        invoice_count=len(rows),
        active_dealers=count_active_entities(rows, active_window_days),
        growth_rate_pct=growth_rate_pct(monthly_totals),
        dealers=dealers,
        reps=aggregate_reps(rows, grand_total, rep_names),
        collections=aggregate_collections(rows, grand_total),
        average_invoice=round(grand_total / len(rows), 2) if rows else 0.0,
        top_dealer=top.display_name if top else None,
        top_dealer_revenue=top.revenue if top else 0.0,
        coerced_amount_count=coerced_amount_count,
        window=window,
    )


def build_scoped_overview(
    rows: Iterable[FactRow],
    dealer_names: Mapping[int, str] | None = None,
    coerced_amount_count: int = 0,
) -> ScopedOverview:
    rows = list(rows)
    grand_total = calculate_grand_total(rows)
    return ScopedOverview(
        rows=rows,
        monthly_totals=group_by_month(rows),
        grand_total=grand_total,
        invoice_count=len(rows),
        unique_dealers=len({row.entity_id for row in rows}),
        dealers=aggregate_dealers(rows, grand_total, dealer_names),
        coerced_amount_count=coerced_amount_count,
    )


def load_organization_overview(
    source: RowSource,
    start: str | date | None = None,
    end: str | date | None = None,
    settings: EngineSettings | None = None,
    expected: ExpectedTotals | None = None,
    today: date | None = None,
) -> OrganizationOverview:
    """
    Resolve the reporting window, fetch and normalize its rows, and build the overview.
    Row-source errors while fetching rows propagate to the caller.
    """
    settings = settings or load_settings()
    scoped = RequestScopedRowSource(source)
    window = resolve_reporting_window(scoped, start, end, today=today)
    normalized = normalize_rows(scoped.fetch_rows(RowQuery(start=window.start, end=window.end)))
    logger.info("Building overview for %s..%s from %d rows", window.start, window.end, len(normalized.rows))

    overview = build_organization_overview(
        normalized.rows,
        dealer_names=scoped.dealer_names(),
        rep_names=scoped.rep_names(),
        active_window_days=settings.active_window_days,
        coerced_amount_count=normalized.coerced_amount_count,
        window=window,
    )
    if expected is not None:
        result = reconcile_monthly_totals(overview.monthly_totals, expected, strict=settings.strict_reconciliation)
        overview.reconciliation_issues = result.issues
    return overview


def _load_scoped(source: RowSource, query: RowQuery) -> ScopedOverview:
    scoped = RequestScopedRowSource(source)
    normalized = normalize_rows(scoped.fetch_rows(query))
    return build_scoped_overview(
        normalized.rows,
        dealer_names=scoped.dealer_names(),
        coerced_amount_count=normalized.coerced_amount_count,
    )


def load_rep_overview(source: RowSource, rep_id: int, start: str | None = None, end: str | None = None) -> ScopedOverview:
    return _load_scoped(source, RowQuery(start=start, end=end, agent_id=rep_id))


def load_dealer_overview(
    source: RowSource, dealer_id: int, start: str | None = None, end: str | None = None
) -> ScopedOverview:
    return _load_scoped(source, RowQuery(start=start, end=end, entity_id=dealer_id))
