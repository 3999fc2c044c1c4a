from datetime import datetime
from typing import Any, Dict, List

from expense_client.currencies import symbol_for_code
from expense_client.state import TrackerState


def format_money(amount: float, symbol: str) -> str:
    return f"{symbol}{amount:.2f}"


def render_expense(expense: Dict[str, Any]) -> str:
    return " - ".join([
        str(expense["date"])[:10],
        f"{expense.get('currency', '')}{expense['amount']}",
        expense.get("category") or "",
        expense.get("note") or "",
    ])


def render_expenses(state: TrackerState) -> List[str]:
    if state.loading:
        return ["Loading..."]
    lines = []
    if state.error:
        lines.append(state.error)
    lines.extend(render_expense(e) for e in state.expenses)
    meta = state.meta
    if meta:
        lines.append(f"Page {meta.get('currentPage', state.page)} of {meta.get('totalPages', 0)} ({meta.get('totalItems', 0)} expenses)")
    return lines


def _month_key(label: str) -> datetime:
    return datetime.strptime(label, "%B %Y")


def render_summary(state: TrackerState) -> List[str]:
    summary = state.summary
    if not state.show_summary or summary is None:
        return []
    symbol = symbol_for_code(summary.reference)
    lines = ["Summary Reports"]
    if state.warning:
        lines.append(state.warning)
    lines.append(f"Month: {state.summary_month or 'All Months'}")
    lines.append(f"Total Spent: {format_money(summary.total, symbol)}")
    lines.append("Total by Category:")
    for category in sorted(summary.by_category):
        lines.append(f"  {category}: {format_money(summary.by_category[category], symbol)}")
    lines.append("Total by Month:")
    for month in sorted(summary.by_month, key=_month_key):
        lines.append(f"  {month}: {format_money(summary.by_month[month], symbol)}")
    return lines
