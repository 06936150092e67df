"""
Metric Definitions: source fields, formula, rounding, and business question.

Each metric is defined with:
- required_fields: canonical fact-row fields that must be present in the source
- optional_fields: nullable fields the metric reads when available
- formula: short text describing the computation
- rounding: decimal places applied once, at emission
- business_question: what the dashboard question is
- output_type: scalar | table | series

All metrics are recomputed from the row set on every call. Nothing is persisted.
"""

METRIC_DEFINITIONS = {
    "monthly_totals": {
        "name": "monthly_totals",
        "required_fields": ["transaction_date", "amount"],
        "optional_fields": [],
        "formula": "groupby(transaction_date[:7]).agg(sum(amount), count(rows)); ascending by month",
        "rounding": 2,
        "business_question": "How does revenue evolve month by month?",
        "output_type": "series",
    },
    "grand_total": {
        "name": "grand_total",
        "required_fields": ["amount"],
        "optional_fields": [],
        "formula": "sum(amount)",
        "rounding": 2,
        "business_question": "What is total revenue in the reporting window?",
        "output_type": "scalar",
    },
    "invoice_count": {
        "name": "invoice_count",
        "required_fields": ["transaction_date"],
        "optional_fields": [],
        "formula": "len(rows)",
        "rounding": None,
        "business_question": "How many invoice lines were booked?",
        "output_type": "scalar",
    },
    "average_invoice": {
        "name": "average_invoice",
        "required_fields": ["amount"],
        "optional_fields": [],
        "formula": "sum(amount) / len(rows); 0 when there are no rows",
        "rounding": 2,
        "business_question": "What is the typical invoice line worth?",
        "output_type": "scalar",
    },
    "active_dealers": {
        "name": "active_dealers",
        "required_fields": ["transaction_date", "entity_id"],
        "optional_fields": [],
        "formula": "nunique(entity_id) where transaction_date >= max(transaction_date) - window_days",
        "rounding": None,
        "business_question": "How many dealers are currently buying?",
        "output_type": "scalar",
    },
    "growth_rate_pct": {
        "name": "growth_rate_pct",
        "required_fields": ["transaction_date", "amount"],
        "optional_fields": [],
        "formula": "100 * (latest_month_total - previous_month_total) / previous_month_total; 0 if previous is 0",
        "rounding": 1,
        "business_question": "Is revenue trending up or down between the two most recent months?",
        "output_type": "scalar",
    },
    "dealer_performance": {
        "name": "dealer_performance",
        "required_fields": ["transaction_date", "amount", "entity_id"],
        "optional_fields": ["agent_id"],
        "formula": "groupby(entity_id).sum(amount); latest_month_avg = month_sum / month_count for the last month",
        "rounding": 2,
        "business_question": "Which dealers drive the most revenue, and how large are their recent orders?",
        "output_type": "table",
    },
    "rep_performance": {
        "name": "rep_performance",
        "required_fields": ["amount", "entity_id"],
        "optional_fields": ["agent_id"],
        "formula": "groupby(agent_id).sum(amount), excluding rows without agent_id",
        "rounding": 2,
        "business_question": "Which sales reps bring in the most revenue?",
        "output_type": "table",
    },
    "collection_mix": {
        "name": "collection_mix",
        "required_fields": ["amount", "entity_id"],
        "optional_fields": ["dimension_tag"],
        "formula": "groupby(dimension_tag or 'Uncategorized').sum(amount)",
        "rounding": 2,
        "business_question": "Which product collections sell best?",
        "output_type": "table",
    },
    "revenue_share_pct": {
        "name": "revenue_share_pct",
        "required_fields": ["amount"],
        "optional_fields": [],
        "formula": "100 * member_revenue / grand_total; 0 if grand_total is 0",
        "rounding": 1,
        "business_question": "What percentage of revenue does each dealer, rep or collection contribute?",
        "output_type": "table",
    },
}


def get_all_required_fields() -> list[str]:
    """Union of all required fields across metrics. Used for source validation."""
    seen: set[str] = set()
    for defn in METRIC_DEFINITIONS.values():
        for col in defn["required_fields"]:
            seen.add(col)
    return sorted(seen)


def get_all_optional_fields() -> list[str]:
    seen: set[str] = set()
    for defn in METRIC_DEFINITIONS.values():
        for col in defn["optional_fields"]:
            seen.add(col)
    return sorted(seen - set(get_all_required_fields()))
