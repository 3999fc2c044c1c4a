from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from expense_client.currencies import DEFAULT_CATEGORY
from expense_client.rates import RateTable


@dataclass
class Summary:
    """Spend normalized into the reference currency."""

    reference: str
    total: float = 0.0
    by_category: Dict[str, float] = field(default_factory=dict)
    by_month: Dict[str, float] = field(default_factory=dict)
    expense_count: int = 0
    month: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def record_date(expense: Dict[str, Any]) -> date:
    value = expense["date"]
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def month_label(expense: Dict[str, Any]) -> str:
    """Calendar month of a record, formatted like 'March 2025'."""
    return record_date(expense).strftime("%B %Y")


class SummaryAggregator:
    """
    Currency-normalized totals over a list of expense records.

    The aggregator does not care where the rate table came from; callers pass
    live rates or the fallback table alike.
    """

    def __init__(self, rate_table: RateTable) -> None:
        self._rate_table = rate_table

    @property
    def rate_table(self) -> RateTable:
        return self._rate_table

    def convert(self, amount: float, currency: Optional[str]) -> float:
        return float(amount) * self._rate_table.multiplier(currency)

    def normalized_amount(self, expense: Dict[str, Any]) -> float:
        return self.convert(expense.get("amount", 0), expense.get("currency"))

    def total(self, expenses: List[Dict[str, Any]]) -> float:
        return sum((self.normalized_amount(exp) for exp in expenses), 0.0)

    def category_totals(self, expenses: List[Dict[str, Any]]) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for exp in expenses:
            totals[exp.get("category") or DEFAULT_CATEGORY] += self.normalized_amount(exp)
        return dict(totals)

    def month_totals(self, expenses: List[Dict[str, Any]]) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for exp in expenses:
            totals[month_label(exp)] += self.normalized_amount(exp)
        return dict(totals)

    def summarize(
        self,
        expenses: List[Dict[str, Any]],
        month: Optional[str] = None,
    ) -> Summary:
        """
        Total, per-category and per-month spend. With ``month`` set (a label as
        produced by ``month_label``) only that month's records contribute.
        """
        selected = [exp for exp in expenses if month_label(exp) == month] if month else list(expenses)
        return Summary(
            reference=self._rate_table.reference,
            total=self.total(selected),
            by_category=self.category_totals(selected),
            by_month=self.month_totals(selected),
            expense_count=len(selected),
            month=month,
        )


def expense_months(expenses: List[Dict[str, Any]]) -> List[str]:
    """Distinct month labels present in the records, oldest first."""
    firsts = {record_date(exp).replace(day=1) for exp in expenses}
    return [d.strftime("%B %Y") for d in sorted(firsts)]
