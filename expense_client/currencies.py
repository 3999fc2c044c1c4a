"""Currencies, categories and the offline rate table the client ships with."""
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Currency:
    symbol: str
    code: str
    name: str


CURRENCIES: List[Currency] = [
    Currency("₹", "INR", "Indian Rupee"),
    Currency("$", "USD", "US Dollar"),
    Currency("€", "EUR", "Euro"),
    Currency("£", "GBP", "British Pound"),
    Currency("¥", "JPY", "Japanese Yen"),
    Currency("A$", "AUD", "Australian Dollar"),
    Currency("C$", "CAD", "Canadian Dollar"),
    Currency("CHF", "CHF", "Swiss Franc"),
    Currency("¥", "CNY", "Chinese Yuan"),
    Currency("HK$", "HKD", "Hong Kong Dollar"),
    Currency("NZ$", "NZD", "New Zealand Dollar"),
    Currency("S$", "SGD", "Singapore Dollar"),
    Currency("kr", "SEK", "Swedish Krona"),
    Currency("R", "ZAR", "South African Rand"),
    Currency("R$", "BRL", "Brazilian Real"),
    Currency("₽", "RUB", "Russian Ruble"),
]

CATEGORIES: List[str] = ["Food", "Travel", "Bills", "Shopping", "Entertainment", "Other"]

DEFAULT_CATEGORY = "Other"
DEFAULT_CURRENCY_SYMBOL = "₹"

# Multiplier into INR per currency symbol, used when the rate service is unreachable.
FALLBACK_RATES: Dict[str, float] = {
    "₹": 1,
    "$": 83.1,
    "€": 88.5,
    "£": 102.5,
    "¥": 0.56,
    "A$": 53.6,
    "C$": 60.1,
    "CHF": 91.5,
    "HK$": 10.6,
    "NZ$": 49.3,
    "S$": 61.2,
    "kr": 7.6,
    "R": 4.4,
    "R$": 16.9,
    "₽": 0.9,
}


def currency_for_code(code: str) -> Optional[Currency]:
    for currency in CURRENCIES:
        if currency.code == code.upper():
            return currency
    return None


def symbol_for_code(code: str) -> str:
    currency = currency_for_code(code)
    return currency.symbol if currency else code.upper()


def symbol_to_code() -> Dict[str, str]:
    """First currency listed for a symbol wins, so ¥ resolves to JPY."""
    mapping: Dict[str, str] = {}
    for currency in CURRENCIES:
        mapping.setdefault(currency.symbol, currency.code)
    return mapping
