"""
Row source boundary.

The aggregation engine never performs I/O itself; it asks a RowSource for raw
records and name lookups. FrameRowSource serves rows from an in-memory pandas
DataFrame. RequestScopedRowSource memoizes one request's lookups and is thrown
away with the request.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import pandas as pd

from fact_rows import FIELD_ALIASES
from metric_definitions import get_all_optional_fields, get_all_required_fields

logger = logging.getLogger(__name__)


class RowSourceError(RuntimeError):
    """The row source backend failed to answer a query."""


@dataclass(frozen=True)
class RowQuery:
    start: str | None = None  # inclusive, YYYY-MM-DD
    end: str | None = None  # exclusive, YYYY-MM-DD
    entity_id: int | None = None
    agent_id: int | None = None


class RowSource(Protocol):
    def fetch_rows(self, query: RowQuery) -> list[dict[str, Any]]: ...

    def latest_transaction_date(self) -> str | None: ...

    def dealer_names(self) -> dict[int, str]: ...

    def rep_names(self) -> dict[int, str]: ...


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = df.columns.astype(str).str.strip()
    for canonical, aliases in FIELD_ALIASES.items():
        if canonical in df.columns:
            continue
        for alias in aliases:
            if alias in df.columns:
                df = df.rename(columns={alias: canonical})
                break
    return df


def _utc_bound(value: str) -> pd.Timestamp:
    return pd.Timestamp(value, tz="UTC")


class FrameRowSource:
    def __init__(
        self,
        frame: pd.DataFrame,
        dealer_names: dict[int, str] | None = None,
        rep_names: dict[int, str] | None = None,
    ):
        df = normalize_columns(frame)
        missing = [c for c in get_all_required_fields() if c not in df.columns]
        if missing:
            raise ValueError(f"Required column not found. Missing: {missing}")
        for col in [*get_all_optional_fields(), "transaction_ref"]:
            if col not in df.columns:
                df[col] = None

        self._frame = df.reset_index(drop=True)
        # Unparsable dates become NaT here and are never filtered out, so the
        # normalizer sees them and rejects the batch.
        self._dates = pd.to_datetime(self._frame["transaction_date"], utc=True, errors="coerce", format="mixed")
        self._dealer_names = dict(dealer_names or {})
        self._rep_names = dict(rep_names or {})

    def fetch_rows(self, query: RowQuery) -> list[dict[str, Any]]:
        df = self._frame
        mask = pd.Series(True, index=df.index)
        unparsed = self._dates.isna()
        if query.start:
            mask &= unparsed | (self._dates >= _utc_bound(query.start))
        if query.end:
            mask &= unparsed | (self._dates < _utc_bound(query.end))
        if query.entity_id is not None:
            mask &= pd.to_numeric(df["entity_id"], errors="coerce") == query.entity_id
        if query.agent_id is not None:
            mask &= pd.to_numeric(df["agent_id"], errors="coerce") == query.agent_id
        return df[mask].to_dict("records")

    def latest_transaction_date(self) -> str | None:
        latest = self._dates.max()
        if pd.isna(latest):
            return None
        return latest.strftime("%Y-%m-%d")

    def dealer_names(self) -> dict[int, str]:
        return dict(self._dealer_names)

    def rep_names(self) -> dict[int, str]:
        return dict(self._rep_names)


_UNSET = object()


class RequestScopedRowSource:
    """Per-request memoization around another RowSource. Do not share across requests."""

    def __init__(self, source: RowSource):
        self._source = source
        self._rows: dict[RowQuery, list[dict[str, Any]]] = {}
        self._latest: Any = _UNSET
        self._dealer_names: dict[int, str] | None = None
        self._rep_names: dict[int, str] | None = None

    def fetch_rows(self, query: RowQuery) -> list[dict[str, Any]]:
        if query not in self._rows:
            self._rows[query] = self._source.fetch_rows(query)
            logger.debug("Fetched %d rows for %s", len(self._rows[query]), query)
        return list(self._rows[query])

    def latest_transaction_date(self) -> str | None:
        if self._latest is _UNSET:
            self._latest = self._source.latest_transaction_date()
        return self._latest

    def dealer_names(self) -> dict[int, str]:
        if self._dealer_names is None:
            self._dealer_names = self._source.dealer_names()
        return dict(self._dealer_names)

    def rep_names(self) -> dict[int, str]:
        if self._rep_names is None:
            self._rep_names = self._source.rep_names()
        return dict(self._rep_names)
