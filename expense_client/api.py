"""
HTTP client for the expense API.

Every call carries the bearer token issued by the identity provider; failures
are raised as ApiError subclasses so callers can react per kind.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from expense_client.config import client_settings

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class ApiError(Exception):
    status_code: Optional[int] = None

    def __init__(self, message: str = "", payload: Optional[dict] = None):
        super().__init__(message or self.__class__.__name__)
        self.payload = payload or {}


class ValidationError(ApiError):
    status_code = 400

    @property
    def details(self) -> List[Dict[str, str]]:
        return self.payload.get("details", [])


class UnauthorizedError(ApiError):
    status_code = 401


class NotFoundError(ApiError):
    status_code = 404


class ServerError(ApiError):
    status_code = 500


class NetworkError(ApiError):
    """The API could not be reached."""


_ERRORS_BY_STATUS = {
    400: ValidationError,
    401: UnauthorizedError,
    404: NotFoundError,
}


def _clean_params(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v not in (None, "")}


class ExpenseApiClient:
    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._client = http_client or httpx.Client(
            base_url=base_url or client_settings.API_BASE,
            timeout=client_settings.TIMEOUT_SECONDS,
        )
        self._client.headers["Authorization"] = f"Bearer {token}"

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ExpenseApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkError(str(e)) from e

        if response.is_success:
            return response

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        error_cls = _ERRORS_BY_STATUS.get(response.status_code, ServerError)
        logger.warning(f"{method} {path} returned {response.status_code}")
        raise error_cls(f"{method} {path} returned {response.status_code}", payload)

    def _json(self, method: str, path: str, **kwargs) -> Any:
        response = self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{method} {path} returned a body that is not JSON")
            raise ServerError(f"{method} {path} returned a body that is not JSON", {}) from e

    def create_expense(
        self,
        amount: Any,
        date: str,
        note: str = "",
        currency: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = _clean_params({"amount": amount, "date": date, "currency": currency, "category": category})
        body["note"] = note
        return self._json("POST", "/expenses", json=body)

    def list_expenses(
        self,
        category: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """One page: ``{"data": [...], "meta": {...}}``."""
        params = _clean_params({
            "category": category,
            "startDate": start_date,
            "endDate": end_date,
            "page": page,
            "limit": limit,
        })
        return self._json("GET", "/expenses", params=params)

    def list_all(
        self,
        category: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Every record matching the filters, walking all pages."""
        records: List[Dict[str, Any]] = []
        page = 1
        while True:
            result = self.list_expenses(category, start_date, end_date, page=page, limit=MAX_PAGE_SIZE)
            records.extend(result["data"])
            if page >= result["meta"]["totalPages"]:
                return records
            page += 1

    def update_expense(self, expense_id: str, **changes: Any) -> Dict[str, Any]:
        return self._json("PUT", f"/expenses/{expense_id}", json=changes)

    def delete_expense(self, expense_id: str) -> Dict[str, Any]:
        return self._json("DELETE", f"/expenses/{expense_id}")

    def export_csv(
        self,
        category: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> str:
        params = _clean_params({"category": category, "startDate": start_date, "endDate": end_date})
        return self._request("GET", "/expenses/export", params=params).text
