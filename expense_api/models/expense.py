import math
from datetime import date as date_type, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from expense_api.core.config import settings

NOTE_MAX_LENGTH = 500
CURRENCY_MAX_LENGTH = 10
CATEGORY_MAX_LENGTH = 50
AMOUNT_MIN = Decimal("1E-130")
AMOUNT_LIMIT = Decimal("1E126")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_calendar_date(value: Any) -> date_type:
    """Accept an ISO date or date-time and return the calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    if not isinstance(value, str):
        raise ValueError("Date must be valid ISO date")
    text = value.strip()
    try:
        if len(text) > 10:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date_type.fromisoformat(text)
    except ValueError:
        raise ValueError("Date must be valid ISO date")


def _coerce_amount(value: Any) -> Any:
    # numeric strings are accepted, as HTML number inputs submit them
    if value is None or isinstance(value, bool):
        raise ValueError("Amount must be positive")
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise ValueError("Amount must be positive")
    return value


def _check_amount(value: float) -> float:
    if math.isnan(value) or math.isinf(value) or value <= 0:
        raise ValueError("Amount must be positive")
    # DynamoDB numbers: positive magnitudes from 1E-130 up to 1E126 exclusive
    if not AMOUNT_MIN <= Decimal(str(value)) < AMOUNT_LIMIT:
        raise ValueError("Amount out of range")
    return value


class ExpenseCreate(BaseModel):
    amount: float
    date: date_type
    note: Optional[str] = Field(default="", max_length=NOTE_MAX_LENGTH)
    currency: Optional[str] = Field(default=None, max_length=CURRENCY_MAX_LENGTH)
    category: Optional[str] = Field(default=None, max_length=CATEGORY_MAX_LENGTH)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        return parse_calendar_date(value)

    @field_validator("note")
    @classmethod
    def note_defaults_to_empty(cls, value: Optional[str]) -> str:
        return value or ""

    @field_validator("amount", mode="before")
    @classmethod
    def amount_is_number(cls, value):
        return _coerce_amount(value)

    @field_validator("amount")
    @classmethod
    def amount_is_positive(cls, value: float) -> float:
        return _check_amount(value)

    @field_validator("currency", "category")
    @classmethod
    def blank_means_default(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value.strip() if value is not None else None


class ExpenseUpdate(BaseModel):
    """Partial update. Only the fields present in the request body are applied."""

    amount: Optional[float] = None
    date: Optional[date_type] = None
    note: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)
    currency: Optional[str] = Field(default=None, max_length=CURRENCY_MAX_LENGTH)
    category: Optional[str] = Field(default=None, max_length=CATEGORY_MAX_LENGTH)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        if value is None:
            raise ValueError("Date must not be null")
        return parse_calendar_date(value)

    @field_validator("amount", mode="before")
    @classmethod
    def amount_is_number(cls, value):
        return _coerce_amount(value)

    @field_validator("amount")
    @classmethod
    def amount_is_positive(cls, value: float) -> float:
        return _check_amount(value)

    @field_validator("note", "currency", "category", mode="before")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name.capitalize()} must not be null")
        return value

    def changes(self) -> Dict[str, Any]:
        """Fields supplied by the caller, in storage form."""
        updates = self.model_dump(exclude_unset=True)
        if "date" in updates:
            updates["date"] = updates["date"].isoformat()
        if "currency" in updates:
            updates["currency"] = updates["currency"].strip() or settings.DEFAULT_CURRENCY
        if "category" in updates:
            updates["category"] = updates["category"].strip() or settings.DEFAULT_CATEGORY
        return updates


class ExpenseInDB(BaseModel):
    user_id: str
    expense_id: str = Field(default_factory=lambda: str(uuid4()))
    amount: float
    date: str
    note: str = ""
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY)
    category: str = Field(default_factory=lambda: settings.DEFAULT_CATEGORY)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @classmethod
    def from_create(cls, user_id: str, expense: ExpenseCreate) -> "ExpenseInDB":
        now = utc_now_iso()
        return cls(
            user_id=user_id,
            amount=expense.amount,
            date=expense.date.isoformat(),
            note=expense.note,
            currency=expense.currency or settings.DEFAULT_CURRENCY,
            category=expense.category or settings.DEFAULT_CATEGORY,
            created_at=now,
            updated_at=now,
        )


class ExpensePublic(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    amount: float
    date: str
    note: str = ""
    currency: str
    category: str
    user_id: str
    created_at: str
    updated_at: str

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "ExpensePublic":
        return cls(
            id=item["expense_id"],
            amount=item["amount"],
            date=item["date"],
            note=item.get("note", ""),
            currency=item.get("currency") or settings.DEFAULT_CURRENCY,
            category=item.get("category") or settings.DEFAULT_CATEGORY,
            user_id=item["user_id"],
            created_at=item.get("created_at", ""),
            updated_at=item.get("updated_at", item.get("created_at", "")),
        )


class PageMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_items: int
    total_pages: int
    current_page: int
    limit: int


class ExpensePage(BaseModel):
    data: List[ExpensePublic]
    meta: PageMeta


class DeleteResult(BaseModel):
    success: bool = True
