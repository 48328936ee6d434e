"""Currency normalization package."""

from finance_engine.currency.normalizer import (
    CurrencyError,
    CurrencyNormalizer,
    RateLookup,
    RateLookupError,
    StaticRateTable,
    UnknownCurrencyError,
    ZERO_DECIMAL_CURRENCIES,
    minor_units,
    quantize_money,
)

__all__ = [
    "CurrencyError",
    "CurrencyNormalizer",
    "RateLookup",
    "RateLookupError",
    "StaticRateTable",
    "UnknownCurrencyError",
    "ZERO_DECIMAL_CURRENCIES",
    "minor_units",
    "quantize_money",
]
