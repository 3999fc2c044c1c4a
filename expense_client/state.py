"""
Client UI state.

The whole screen is one immutable ``TrackerState``. Each user action is a
function taking the current state and returning the next one, so no action
can leave half of the screen updated.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from expense_client.currencies import CATEGORIES, DEFAULT_CATEGORY, DEFAULT_CURRENCY_SYMBOL
from expense_client.summary import Summary


@dataclass(frozen=True)
class ExpenseDraft:
    """Form contents for a new or edited expense."""

    amount: str = ""
    date: str = ""
    note: str = ""
    currency: str = DEFAULT_CURRENCY_SYMBOL
    category: str = DEFAULT_CATEGORY
    custom_category: str = ""

    def resolved_category(self) -> str:
        if self.category == DEFAULT_CATEGORY:
            return self.custom_category.strip() or DEFAULT_CATEGORY
        return self.category

    def is_complete(self) -> bool:
        return bool(str(self.amount).strip()) and bool(self.date.strip())

    def to_payload(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount).strip(),
            "date": self.date.strip(),
            "note": self.note,
            "currency": self.currency,
            "category": self.resolved_category(),
        }

    @classmethod
    def from_expense(cls, expense: Dict[str, Any]) -> "ExpenseDraft":
        category = expense.get("category") or DEFAULT_CATEGORY
        if category in CATEGORIES:
            chosen, custom = category, ""
        else:
            chosen, custom = DEFAULT_CATEGORY, category
        return cls(
            amount=str(expense.get("amount", "")),
            date=str(expense.get("date", ""))[:10],
            note=expense.get("note") or "",
            currency=expense.get("currency") or DEFAULT_CURRENCY_SYMBOL,
            category=chosen,
            custom_category=custom,
        )


@dataclass(frozen=True)
class Filters:
    category: str = ""
    start_date: str = ""
    end_date: str = ""


@dataclass(frozen=True)
class TrackerState:
    expenses: Tuple[Dict[str, Any], ...] = ()
    meta: Dict[str, int] = field(default_factory=dict)
    page: int = 1
    loading: bool = False
    error: str = ""
    warning: str = ""
    filters: Filters = field(default_factory=Filters)
    new_expense: ExpenseDraft = field(default_factory=ExpenseDraft)
    editing_id: Optional[str] = None
    edit_expense: ExpenseDraft = field(default_factory=ExpenseDraft)
    show_summary: bool = False
    summary_month: str = ""
    summary: Optional[Summary] = None
    summary_months: Tuple[str, ...] = ()


# Loading

def load_started(state: TrackerState) -> TrackerState:
    return replace(state, loading=True, error="")


def load_succeeded(state: TrackerState, page_result: Dict[str, Any]) -> TrackerState:
    return replace(
        state,
        loading=False,
        error="",
        expenses=tuple(page_result.get("data", [])),
        meta=dict(page_result.get("meta", {})),
    )


def request_failed(state: TrackerState, message: str) -> TrackerState:
    """Keep whatever was already on screen; only flag the error."""
    return replace(state, loading=False, error=message)


def set_warning(state: TrackerState, warning: Optional[str]) -> TrackerState:
    return replace(state, warning=warning or "")


# Filters and paging

def set_filters(state: TrackerState, **changes: str) -> TrackerState:
    return replace(state, filters=replace(state.filters, **changes), page=1)


def clear_filters(state: TrackerState) -> TrackerState:
    return replace(state, filters=Filters(), page=1)


def go_to_page(state: TrackerState, page: int) -> TrackerState:
    return replace(state, page=max(1, page))


# Drafts

def _choose_category(draft: ExpenseDraft, category: str) -> ExpenseDraft:
    # picking a predefined category drops stale custom text
    custom = draft.custom_category if category == DEFAULT_CATEGORY else ""
    return replace(draft, category=category, custom_category=custom)


def edit_new_expense(state: TrackerState, **changes: str) -> TrackerState:
    draft = state.new_expense
    if "category" in changes:
        draft = _choose_category(draft, changes.pop("category"))
    return replace(state, new_expense=replace(draft, **changes), error="")


def reset_new_expense(state: TrackerState) -> TrackerState:
    return replace(state, new_expense=ExpenseDraft())


def start_edit(state: TrackerState, expense: Dict[str, Any]) -> TrackerState:
    return replace(state, editing_id=expense["id"], edit_expense=ExpenseDraft.from_expense(expense), error="")


def edit_existing_expense(state: TrackerState, **changes: str) -> TrackerState:
    draft = state.edit_expense
    if "category" in changes:
        draft = _choose_category(draft, changes.pop("category"))
    return replace(state, edit_expense=replace(draft, **changes))


def cancel_edit(state: TrackerState) -> TrackerState:
    return replace(state, editing_id=None, edit_expense=ExpenseDraft())


# Summary panel

def toggle_summary(state: TrackerState) -> TrackerState:
    return replace(state, show_summary=not state.show_summary)


def select_summary_month(state: TrackerState, month: str) -> TrackerState:
    return replace(state, summary_month=month)


def summary_computed(state: TrackerState, summary: Summary, months: List[str]) -> TrackerState:
    return replace(state, summary=summary, summary_months=tuple(months))
