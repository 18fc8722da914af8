"""Stats aggregation package."""

from domestic_ledger.queries.aggregator import aggregate, in_same_month

__all__ = ["aggregate", "in_same_month"]
