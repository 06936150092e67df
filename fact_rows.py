"""
Row normalization: the single boundary between loosely-typed source records
and the strict FactRow shape every aggregator works on.

Coercion rules:
- transaction_date: parsed, converted to UTC, truncated to YYYY-MM-DD. Missing or
  unparsable dates raise MalformedRowError (never dropped).
- amount: finite numbers pass through, numeric strings parse, anything else is 0.0
  and counted as coerced.
- entity_id: required integer.
- agent_id: 0 / empty / missing means unassigned (None).
- dimension_tag: blank means untagged (None).
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

FIELD_ALIASES = {
    "transaction_date": ("transaction_date", "invoice_date"),
    "amount": ("amount", "invoice_amount"),
    "entity_id": ("entity_id", "customer_id", "dealer_id"),
    "agent_id": ("agent_id", "rep_id"),
    "transaction_ref": ("transaction_ref", "invoice_number"),
    "dimension_tag": ("dimension_tag", "collection"),
}


class MalformedRowError(ValueError):
    """A source record cannot be turned into a FactRow."""


@dataclass(frozen=True)
class FactRow:
    transaction_date: str  # YYYY-MM-DD
    amount: float
    entity_id: int
    agent_id: int | None = None
    transaction_ref: str | None = None
    dimension_tag: str | None = None

    @property
    def month(self) -> str:
        return self.transaction_date[:7]


@dataclass
class NormalizedRows:
    rows: list[FactRow] = field(default_factory=list)
    coerced_amount_count: int = 0


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return False
    return pd.api.types.is_scalar(value) and bool(pd.isna(value))


def _pick(raw: Mapping[str, Any], name: str) -> Any:
    for candidate in FIELD_ALIASES[name]:
        if candidate in raw:
            return raw[candidate]
    return None


def _parse_date(value: Any) -> str:
    if _is_missing(value):
        raise MalformedRowError("transaction_date is missing")
    if not isinstance(value, (str, date)):
        raise MalformedRowError(f"Unsupported transaction_date value: {value!r}")
    try:
        ts = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError, OverflowError) as exc:
        raise MalformedRowError(f"Unparsable transaction_date: {value!r}") from exc
    if pd.isna(ts):
        raise MalformedRowError(f"Unparsable transaction_date: {value!r}")
    return ts.strftime("%Y-%m-%d")


def _coerce_amount(value: Any) -> tuple[float, bool]:
    """Return (amount, coerced). Coerced amounts are always 0.0."""
    if isinstance(value, bool):
        return 0.0, True
    if isinstance(value, (int, float, Decimal, np.number)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0, True
    else:
        return 0.0, True
    if not np.isfinite(number):
        return 0.0, True
    return number, False


def _parse_id(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise MalformedRowError(f"Unparsable {name}: {value!r}")
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedRowError(f"Unparsable {name}: {value!r}") from exc
    if not np.isfinite(number) or number != int(number):
        raise MalformedRowError(f"Unparsable {name}: {value!r}")
    return int(number)


def _parse_entity_id(value: Any) -> int:
    if _is_missing(value) or (isinstance(value, str) and not value.strip()):
        raise MalformedRowError("entity_id is missing")
    return _parse_id(value, "entity_id")


def _parse_agent_id(value: Any) -> int | None:
    if _is_missing(value) or (isinstance(value, str) and not value.strip()):
        return None
    agent_id = _parse_id(value, "agent_id")
    return agent_id or None


def _optional_text(value: Any) -> str | None:
    if _is_missing(value):
        return None
    text = str(value)
    return text if text.strip() else None


def _normalize(raw: Mapping[str, Any]) -> tuple[FactRow, bool]:
    amount, coerced = _coerce_amount(_pick(raw, "amount"))
    row = FactRow(
        transaction_date=_parse_date(_pick(raw, "transaction_date")),
        amount=amount,
        entity_id=_parse_entity_id(_pick(raw, "entity_id")),
        agent_id=_parse_agent_id(_pick(raw, "agent_id")),
        transaction_ref=_optional_text(_pick(raw, "transaction_ref")),
        dimension_tag=_optional_text(_pick(raw, "dimension_tag")),
    )
    return row, coerced


def normalize_row(raw: Mapping[str, Any]) -> FactRow:
    return _normalize(raw)[0]


def normalize_rows(raws: Iterable[Mapping[str, Any]]) -> NormalizedRows:
    """
    Normalize a batch of source records.
    Raises MalformedRowError (with the row index) on the first corrupt record.
    """
    result = NormalizedRows()
    for index, raw in enumerate(raws):
        try:
            row, coerced = _normalize(raw)
        except MalformedRowError as exc:
            raise MalformedRowError(f"Row {index}: {exc}") from exc
        result.rows.append(row)
        if coerced:
            result.coerced_amount_count += 1
    if result.coerced_amount_count:
        logger.warning(
            "Coerced %d unparsable amount(s) to 0 out of %d rows",
            result.coerced_amount_count,
            len(result.rows),
        )
    return result


def calculate_grand_total(rows: Iterable[FactRow]) -> float:
    return round(sum((row.amount for row in rows), 0.0), 2)


def rows_to_frame(rows: Iterable[FactRow]) -> pd.DataFrame:
    rows = list(rows)
    return pd.DataFrame({
        "transaction_date": pd.Series([r.transaction_date for r in rows], dtype="object"),
        "amount": pd.Series([r.amount for r in rows], dtype="float64"),
        "entity_id": pd.Series([r.entity_id for r in rows], dtype="int64"),
        "agent_id": pd.Series([r.agent_id for r in rows], dtype="Int64"),
        "transaction_ref": pd.Series([r.transaction_ref for r in rows], dtype="object"),
        "dimension_tag": pd.Series([r.dimension_tag for r in rows], dtype="object"),
    })
