import pandas as pd
import pytest

from fact_rows import MalformedRowError, normalize_rows
from row_source import FrameRowSource, RequestScopedRowSource, RowQuery, normalize_columns


def test_normalize_columns_maps_source_names(sample_frame):
    df = normalize_columns(sample_frame.rename(columns={"invoice_date": " invoice_date "}))
    assert {"transaction_date", "amount", "entity_id", "agent_id", "transaction_ref", "dimension_tag"} <= set(df.columns)


def test_missing_required_column_raises(sample_frame):
    with pytest.raises(ValueError, match="Required column not found"):
        FrameRowSource(sample_frame.drop(columns=["customer_id"]))


def test_optional_columns_are_filled(sample_frame):
    source = FrameRowSource(sample_frame.drop(columns=["collection", "rep_id", "invoice_number"]))
    rows = normalize_rows(source.fetch_rows(RowQuery())).rows
    assert all(r.dimension_tag is None and r.agent_id is None for r in rows)


def test_date_range_is_start_inclusive_end_exclusive(sample_frame):
    source = FrameRowSource(sample_frame)
    raws = source.fetch_rows(RowQuery(start="2024-01-05", end="2024-02-14"))
    assert [r["transaction_date"] for r in raws] == ["2024-01-05", "2024-01-20", "2024-02-01"]


def test_filters_by_dealer_and_rep(sample_frame):
    source = FrameRowSource(sample_frame)
    assert [r["transaction_ref"] for r in source.fetch_rows(RowQuery(entity_id=2))] == ["INV-3", "INV-5"]
    assert len(source.fetch_rows(RowQuery(agent_id=10))) == 3


def test_rows_normalize_with_coercion_count(sample_frame):
    result = normalize_rows(FrameRowSource(sample_frame).fetch_rows(RowQuery()))
    assert result.coerced_amount_count == 1
    assert [r.amount for r in result.rows] == [100.0, 50.0, 200.5, 0.0, 120.0]
    assert result.rows[2].agent_id is None
    assert result.rows[3].transaction_ref is None


def test_unparsable_dates_are_not_filtered_out(sample_frame):
    frame = pd.concat(
        [sample_frame, pd.DataFrame([{"invoice_date": "31/31/2024", "invoice_amount": 5, "customer_id": 1}])],
        ignore_index=True,
    )
    raws = FrameRowSource(frame).fetch_rows(RowQuery(start="2024-01-01", end="2025-01-01"))
    with pytest.raises(MalformedRowError):
        normalize_rows(raws)


def test_latest_transaction_date(sample_frame):
    assert FrameRowSource(sample_frame).latest_transaction_date() == "2024-02-14"
    assert FrameRowSource(sample_frame.iloc[0:0]).latest_transaction_date() is None


def test_name_maps_are_copies():
    source = FrameRowSource(
        pd.DataFrame(columns=["transaction_date", "amount", "entity_id"]),
        dealer_names={1: "Linda Flooring"},
        rep_names={10: "Alice Moreno"},
    )
    source.dealer_names()[1] = "changed"
    assert source.dealer_names() == {1: "Linda Flooring"}
    assert source.rep_names() == {10: "Alice Moreno"}


class CountingSource:
    def __init__(self):
        self.calls = {"rows": 0, "latest": 0, "dealers": 0, "reps": 0}

    def fetch_rows(self, query):
        self.calls["rows"] += 1
        return [{"transaction_date": "2024-01-01", "amount": 1, "entity_id": 1}]

    def latest_transaction_date(self):
        self.calls["latest"] += 1
        return None

    def dealer_names(self):
        self.calls["dealers"] += 1
        return {1: "A"}

    def rep_names(self):
        self.calls["reps"] += 1
        return {}


def test_request_scoped_source_memoizes_each_lookup():
    inner = CountingSource()
    scoped = RequestScopedRowSource(inner)
    for _ in range(3):
        scoped.fetch_rows(RowQuery(start="2024-01-01"))
        scoped.latest_transaction_date()
        scoped.dealer_names()
        scoped.rep_names()
    scoped.fetch_rows(RowQuery(start="2023-01-01"))
    assert inner.calls == {"rows": 2, "latest": 1, "dealers": 1, "reps": 1}


def test_request_scoped_source_returns_fresh_lists():
    scoped = RequestScopedRowSource(CountingSource())
    scoped.fetch_rows(RowQuery()).clear()
    assert len(scoped.fetch_rows(RowQuery())) == 1


def test_new_request_scope_refetches():
    inner = CountingSource()
    RequestScopedRowSource(inner).fetch_rows(RowQuery())
    RequestScopedRowSource(inner).fetch_rows(RowQuery())
    assert inner.calls["rows"] == 2
