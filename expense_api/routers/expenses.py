import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from expense_api.core.config import settings
from expense_api.core.errors import ExpenseNotFound, ValidationFailed
from expense_api.core.security import get_current_user_id
from expense_api.db import dynamo
from expense_api.models.expense import (
    DeleteResult,
    ExpenseCreate,
    ExpenseInDB,
    ExpensePage,
    ExpensePublic,
    ExpenseUpdate,
    PageMeta,
    parse_calendar_date,
)
from expense_api.utils.csv_export import expenses_to_csv, export_filename
from expense_api.utils.pagination import order_expenses, paginate

router = APIRouter()
logger = logging.getLogger(__name__)


@dataclass
class ExpenseFilters:
    category: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


def _filter_date(value: Optional[str], param: str, details: List[Dict[str, str]]) -> Optional[str]:
    if value is None or value == "":
        return None
    try:
        return parse_calendar_date(value).isoformat()
    except ValueError:
        details.append({"param": param, "msg": "Date must be valid ISO date"})
        return None


def get_filters(
    category: Optional[str] = Query(None, max_length=50),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
) -> ExpenseFilters:
    details: List[Dict[str, str]] = []
    filters = ExpenseFilters(
        category=category or None,
        start_date=_filter_date(start_date, "startDate", details),
        end_date=_filter_date(end_date, "endDate", details),
    )
    if details:
        raise ValidationFailed(details)
    return filters


def valid_expense_id(expense_id: str) -> str:
    try:
        UUID(expense_id)
    except ValueError:
        raise ValidationFailed.single("id", "Invalid id")
    return expense_id


def _matching_expenses(user_id: str, filters: ExpenseFilters):
    items = dynamo.query_expenses(
        user_id,
        category=filters.category,
        start_date=filters.start_date,
        end_date=filters.end_date,
    )
    return order_expenses(items)


@router.post("", response_model=ExpensePublic, status_code=status.HTTP_201_CREATED)
def create_expense(expense: ExpenseCreate, user_id: str = Depends(get_current_user_id)):
    expense_db = ExpenseInDB.from_create(user_id, expense)
    dynamo.put_expense(expense_db.model_dump())
    logger.info(f"Created expense {expense_db.expense_id} for user {user_id}")
    return ExpensePublic.from_item(expense_db.model_dump())


@router.get("", response_model=ExpensePage)
def list_expenses(
    user_id: str = Depends(get_current_user_id),
    filters: ExpenseFilters = Depends(get_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    """
    List the caller's expenses, newest date first.
    category is an exact match; startDate and endDate are inclusive ISO dates.
    """
    items = _matching_expenses(user_id, filters)
    page_items, meta = paginate(items, page, limit)
    return ExpensePage(
        data=[ExpensePublic.from_item(item) for item in page_items],
        meta=PageMeta(**meta),
    )


@router.get("/export")
def export_expenses(
    user_id: str = Depends(get_current_user_id),
    filters: ExpenseFilters = Depends(get_filters),
):
    """Every matching expense as CSV, no paging."""
    items = _matching_expenses(user_id, filters)
    filename = export_filename(filters.start_date, filters.end_date)
    return Response(
        content=expenses_to_csv(items),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.put("/{expense_id}", response_model=ExpensePublic)
def update_expense(
    expense_update: ExpenseUpdate,
    user_id: str = Depends(get_current_user_id),
    expense_id: str = Depends(valid_expense_id),
):
    updated = dynamo.update_expense(user_id, expense_id, expense_update.changes())
    if not updated:
        logger.info(f"Update of expense {expense_id} by user {user_id}: not found")
        raise ExpenseNotFound(expense_id)
    logger.info(f"Updated expense {expense_id} for user {user_id}")
    return ExpensePublic.from_item(updated)


@router.delete("/{expense_id}", response_model=DeleteResult)
def delete_expense(
    user_id: str = Depends(get_current_user_id),
    expense_id: str = Depends(valid_expense_id),
):
    deleted = dynamo.delete_expense(user_id, expense_id)
    if not deleted:
        logger.info(f"Delete of expense {expense_id} by user {user_id}: not found")
        raise ExpenseNotFound(expense_id)
    logger.info(f"Deleted expense {expense_id} for user {user_id}")
    return DeleteResult()
