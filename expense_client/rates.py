"""
Exchange rate acquisition.

A rate table maps a currency symbol to the multiplier that converts one unit
of that currency into the reference currency. Live rates come from a public
rate service; any failure falls back to the bundled table with a warning.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from expense_client.config import client_settings
from expense_client.currencies import FALLBACK_RATES, symbol_for_code, symbol_to_code

logger = logging.getLogger(__name__)

FALLBACK_WARNING = "Live exchange rates unavailable, using built-in rates."


class RateServiceError(Exception):
    """Raised when the rate service answers with something unusable."""


@dataclass
class RateTable:
    reference: str
    rates: Dict[str, float] = field(default_factory=dict)
    is_fallback: bool = False
    warning: Optional[str] = None

    def multiplier(self, currency: Optional[str]) -> float:
        """Unmapped symbols are treated as already being in the reference currency."""
        if not currency:
            return 1.0
        return self.rates.get(currency, 1.0)


def fallback_rate_table(reference: str = "INR", warning: Optional[str] = None) -> RateTable:
    """Bundled rates, rebased onto the reference currency when it is not INR."""
    reference_symbol = symbol_for_code(reference)
    base = FALLBACK_RATES.get(reference_symbol, 1)
    rates = {symbol: rate / base for symbol, rate in FALLBACK_RATES.items()}
    rates[reference_symbol] = 1.0
    return RateTable(reference=reference.upper(), rates=rates, is_fallback=True, warning=warning)


def parse_rates_payload(payload: dict, reference: str) -> Dict[str, float]:
    """
    The service reports how many units of each currency one reference unit buys,
    so the multiplier into the reference is the reciprocal.
    """
    if not isinstance(payload, dict):
        raise RateServiceError("rate service returned a non-object payload")
    if payload.get("result", "success") != "success":
        raise RateServiceError(f"rate service returned result={payload.get('result')}")
    quoted = payload.get("rates")
    if not isinstance(quoted, dict) or not quoted:
        raise RateServiceError("rate service returned no rates")

    rates: Dict[str, float] = {}
    for symbol, code in symbol_to_code().items():
        per_reference = quoted.get(code)
        if isinstance(per_reference, (int, float)) and per_reference > 0:
            rates[symbol] = 1 / float(per_reference)
    rates[symbol_for_code(reference)] = 1.0
    return rates


def fetch_rate_table(
    reference: Optional[str] = None,
    http_client: Optional[httpx.Client] = None,
) -> RateTable:
    reference = (reference or client_settings.REFERENCE_CURRENCY).upper()
    url = client_settings.RATES_URL.format(base=reference)
    owns_client = http_client is None
    client = http_client or httpx.Client(timeout=client_settings.TIMEOUT_SECONDS)
    try:
        response = client.get(url)
        response.raise_for_status()
        rates = parse_rates_payload(response.json(), reference)
        logger.info(f"Loaded {len(rates)} live exchange rates against {reference}")
        return RateTable(reference=reference, rates=rates)
    except (httpx.HTTPError, ValueError, RateServiceError) as e:
        logger.warning(f"Exchange rate fetch failed, using fallback table: {e}")
        return fallback_rate_table(reference, warning=FALLBACK_WARNING)
    finally:
        if owns_client:
            client.close()
