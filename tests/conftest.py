# tests/conftest.py
# ---------------------------------------------------------------------
# Shared fixtures:
# - row(): FactRow factory with sensible defaults
# - sample_rows: a small two-dealer, two-rep, three-month dataset
# - sample_frame: the same data as a raw source DataFrame (original column names)
# ---------------------------------------------------------------------

import pandas as pd
import pytest

from fact_rows import FactRow


def make_row(
    transaction_date: str,
    amount: float,
    entity_id: int = 1,
    agent_id: int | None = 10,
    dimension_tag: str | None = "Oak",
    transaction_ref: str | None = None,
) -> FactRow:
    return FactRow(
        transaction_date=transaction_date,
        amount=amount,
        entity_id=entity_id,
        agent_id=agent_id,
        transaction_ref=transaction_ref,
        dimension_tag=dimension_tag,
    )


@pytest.fixture
def row():
    return make_row


@pytest.fixture
def sample_rows() -> list[FactRow]:
    return [
        make_row("2024-01-05", 100.0, entity_id=1, agent_id=10, dimension_tag="Oak"),
        make_row("2024-01-20", 50.0, entity_id=2, agent_id=20, dimension_tag="Maple"),
        make_row("2024-02-01", 200.0, entity_id=1, agent_id=10, dimension_tag="Oak"),
        make_row("2024-02-14", 120.0, entity_id=2, agent_id=None, dimension_tag=None),
        make_row("2024-03-03", 330.0, entity_id=1, agent_id=10, dimension_tag="Maple"),
    ]


@pytest.fixture
def sample_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "invoice_date": ["2023-11-02", "2024-01-05", "2024-01-20", "2024-02-01", "2024-02-14"],
            "invoice_amount": ["100.00", 50, 200.5, "oops", 120],
            "customer_id": [1, 1, 2, 1, 2],
            "rep_id": [10, 10, None, 10, 20],
            "invoice_number": ["INV-1", "INV-2", "INV-3", None, "INV-5"],
            "collection": ["Oak", "Oak", None, "Maple", "Oak"],
        }
    )
