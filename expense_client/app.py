import logging
from typing import Callable, List, Optional

from expense_client import state as transitions
from expense_client.api import ApiError, ExpenseApiClient
from expense_client.rates import RateTable, fetch_rate_table
from expense_client.state import TrackerState
from expense_client.summary import SummaryAggregator, expense_months

logger = logging.getLogger(__name__)

LOAD_FAILED = "Failed to load"
SAVE_FAILED = "Failed to save"
DELETE_FAILED = "Failed to delete"
MISSING_FIELDS = "Fill in all required fields"


class ExpenseTrackerApp:
    """
    Drives the tracker screen: owns the current state, performs API calls and
    folds their outcomes back into the state through the transition functions.
    """

    def __init__(
        self,
        api: ExpenseApiClient,
        rate_loader: Callable[[], RateTable] = fetch_rate_table,
        page_size: int = 20,
    ) -> None:
        self.api = api
        self.page_size = page_size
        self._rate_loader = rate_loader
        self._aggregator: Optional[SummaryAggregator] = None
        self.state = TrackerState()

    # Rates

    @property
    def aggregator(self) -> SummaryAggregator:
        if self._aggregator is None:
            rate_table = self._rate_loader()
            self.state = transitions.set_warning(self.state, rate_table.warning)
            self._aggregator = SummaryAggregator(rate_table)
        return self._aggregator

    # Listing

    def load(self) -> TrackerState:
        filters = self.state.filters
        self.state = transitions.load_started(self.state)
        try:
            result = self.api.list_expenses(
                category=filters.category,
                start_date=filters.start_date,
                end_date=filters.end_date,
                page=self.state.page,
                limit=self.page_size,
            )
        except ApiError as e:
            logger.error(f"Loading expenses failed: {e}")
            self.state = transitions.request_failed(self.state, LOAD_FAILED)
            return self.state
        self.state = transitions.load_succeeded(self.state, result)
        if self.state.show_summary:
            self.refresh_summary()
        return self.state

    def set_filters(self, **changes: str) -> TrackerState:
        self.state = transitions.set_filters(self.state, **changes)
        return self.load()

    def go_to_page(self, page: int) -> TrackerState:
        self.state = transitions.go_to_page(self.state, page)
        return self.load()

    # Mutations

    def add(self) -> TrackerState:
        draft = self.state.new_expense
        if not draft.is_complete():
            self.state = transitions.request_failed(self.state, MISSING_FIELDS)
            return self.state
        try:
            self.api.create_expense(**draft.to_payload())
        except ApiError as e:
            logger.error(f"Creating expense failed: {e}")
            self.state = transitions.request_failed(self.state, SAVE_FAILED)
            return self.state
        self.state = transitions.reset_new_expense(self.state)
        return self.load()

    def start_edit(self, expense_id: str) -> TrackerState:
        for expense in self.state.expenses:
            if expense["id"] == expense_id:
                self.state = transitions.start_edit(self.state, expense)
                break
        return self.state

    def save_edit(self) -> TrackerState:
        if self.state.editing_id is None:
            return self.state
        draft = self.state.edit_expense
        if not draft.is_complete():
            self.state = transitions.request_failed(self.state, MISSING_FIELDS)
            return self.state
        try:
            self.api.update_expense(self.state.editing_id, **draft.to_payload())
        except ApiError as e:
            logger.error(f"Updating expense {self.state.editing_id} failed: {e}")
            self.state = transitions.request_failed(self.state, SAVE_FAILED)
            return self.state
        self.state = transitions.cancel_edit(self.state)
        return self.load()

    def cancel_edit(self) -> TrackerState:
        self.state = transitions.cancel_edit(self.state)
        return self.state

    def delete(self, expense_id: str) -> TrackerState:
        try:
            self.api.delete_expense(expense_id)
        except ApiError as e:
            logger.error(f"Deleting expense {expense_id} failed: {e}")
            self.state = transitions.request_failed(self.state, DELETE_FAILED)
            return self.state
        return self.load()

    # Summary

    def toggle_summary(self) -> TrackerState:
        self.state = transitions.toggle_summary(self.state)
        if self.state.show_summary:
            self.refresh_summary()
        return self.state

    def select_summary_month(self, month: str) -> TrackerState:
        self.state = transitions.select_summary_month(self.state, month)
        return self.refresh_summary()

    def _summary_records(self) -> List[dict]:
        # the summary covers every record matching the filters, not only the visible page
        filters = self.state.filters
        return self.api.list_all(
            category=filters.category,
            start_date=filters.start_date,
            end_date=filters.end_date,
        )

    def refresh_summary(self) -> TrackerState:
        try:
            records = self._summary_records()
        except ApiError as e:
            logger.error(f"Loading summary records failed: {e}")
            self.state = transitions.request_failed(self.state, LOAD_FAILED)
            return self.state
        summary = self.aggregator.summarize(records, month=self.state.summary_month or None)
        self.state = transitions.summary_computed(self.state, summary, expense_months(records))
        return self.state
