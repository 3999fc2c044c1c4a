"""
expense_client
~~~~~~~~~~~~~~

Client side of the expense ledger: an HTTP client for the expense API, the
single-object screen state with its transitions, and currency-normalized
summaries computed from the records the API returns.
"""

from .app import ExpenseTrackerApp
from .rates import RateTable, fetch_rate_table
from .summary import Summary, SummaryAggregator

__all__ = ["ExpenseTrackerApp", "RateTable", "Summary", "SummaryAggregator", "fetch_rate_table"]
