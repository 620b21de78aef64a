"""Currencies an account can be denominated in (ISO 4217 codes)."""

from typing import Literal


Currency = Literal["USD", "MXN", "COP", "EUR", "GBP"]

SUPPORTED_CURRENCIES: tuple[str, ...] = ("USD", "MXN", "COP", "EUR", "GBP")

# Used when an orphaned movement was stored without its parent's currency
DEFAULT_CURRENCY = "USD"
