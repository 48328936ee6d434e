"""
Currency Normalizer

Converts amounts between currencies using an injected rate lookup.

DESIGN DECISION: The engine never fetches rates. The caller injects a
synchronous `rate(from, to, on) -> factor` capability (typically backed by
its own cache) and, optionally, an explicit fallback factor. There are no
retries here: a lookup either yields a usable rate or fails loudly.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable, Iterable, Optional, Union

from finance_engine.models.records import ExpenseRecord, IncomeRecord
from finance_engine.models.splits import SplitBill, SplitType, equal_shares


Number = Union[Decimal, float, int, str]
RateLookup = Callable[[str, str, Optional[date]], Number]


# Currencies without a minor unit in everyday use
ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "VND", "IDR", "HUF"})


# =============================================================================
# EXCEPTIONS
# =============================================================================

class CurrencyError(Exception):
    """Base exception for currency conversion."""
    pass


class RateLookupError(CurrencyError):
    """No usable rate could be obtained and no fallback was supplied."""
    pass


class UnknownCurrencyError(CurrencyError):
    """The rate source has no entry for a currency code."""
    pass


# =============================================================================
# HELPERS
# =============================================================================

def minor_units(currency: str) -> int:
    """Number of decimal places used for amounts in this currency."""
    return 0 if currency.upper() in ZERO_DECIMAL_CURRENCIES else 2


def quantize_money(amount: Decimal, currency: str) -> Decimal:
    """Round an amount half-up to the currency's minor units."""
    exponent = Decimal(1).scaleb(-minor_units(currency))
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# =============================================================================
# STATIC RATE TABLE
# =============================================================================

class StaticRateTable:
    """
    Rate lookup over a fixed table of units-per-USD.

    Callable with the RateLookup signature, so it can be injected directly
    into CurrencyNormalizer. Ignores the date.
    """

    DEFAULT_RATES: dict[str, str] = {
        "USD": "1.0",
        "EUR": "0.85",
        "GBP": "0.73",
        "JPY": "110.0",
        "CNY": "6.5",
        "INR": "74.0",
        "CAD": "1.25",
        "AUD": "1.35",
        "CHF": "0.92",
        "SGD": "1.35",
        "HKD": "7.8",
        "KRW": "1180.0",
        "SEK": "8.5",
        "NOK": "8.8",
        "DKK": "6.3",
        "PLN": "3.9",
        "CZK": "21.5",
        "HUF": "295.0",
        "RUB": "75.0",
        "BRL": "5.2",
        "MXN": "20.0",
        "AED": "3.67",
        "SAR": "3.75",
        "QAR": "3.64",
        "TRY": "8.5",
        "ZAR": "14.5",
        "EGP": "15.7",
        "THB": "33.0",
        "MYR": "4.2",
        "IDR": "14300.0",
        "PHP": "50.0",
        "VND": "23000.0",
    }

    def __init__(self, rates: Optional[dict[str, Number]] = None):
        source = rates if rates is not None else self.DEFAULT_RATES
        self._rates = {code.upper(): _to_decimal(value) for code, value in source.items()}

    def __call__(
        self,
        from_currency: str,
        to_currency: str,
        on: Optional[date] = None,
    ) -> Decimal:
        try:
            from_rate = self._rates[from_currency.upper()]
            to_rate = self._rates[to_currency.upper()]
        except KeyError as e:
            raise UnknownCurrencyError(f"No rate for currency {e.args[0]}") from e
        return to_rate / from_rate

    @property
    def currencies(self) -> list[str]:
        return sorted(self._rates)


# =============================================================================
# NORMALIZER
# =============================================================================

class CurrencyNormalizer:
    """
    Brings amounts and records into one currency.

    Usage:
        normalizer = CurrencyNormalizer(StaticRateTable())
        usd = normalizer.convert(Decimal("100"), "EUR", "USD")
        snapshot = normalizer.normalize_expenses(expenses, "USD")
    """

    def __init__(
        self,
        rate_lookup: RateLookup,
        fallback_factor: Optional[Number] = None,
    ):
        """
        Args:
            rate_lookup: rate(from, to, on) -> factor to multiply amounts by
            fallback_factor: Used when the lookup fails. If None, failures raise.
        """
        self._rate_lookup = rate_lookup
        self._fallback = _to_decimal(fallback_factor) if fallback_factor is not None else None

    def rate(
        self,
        from_currency: str,
        to_currency: str,
        on: Optional[date] = None,
    ) -> Decimal:
        """
        Factor converting one unit of from_currency into to_currency.

        Raises:
            RateLookupError: If the lookup fails (or yields a non-positive
                rate) and no fallback factor was supplied
        """
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return Decimal("1")

        try:
            factor = _to_decimal(self._rate_lookup(from_currency, to_currency, on))
            if not factor.is_finite() or factor <= 0:
                raise RateLookupError(
                    f"Unusable rate {factor} for {from_currency} -> {to_currency}"
                )
            return factor
        except (CurrencyError, LookupError, ValueError, InvalidOperation) as e:
            if self._fallback is not None:
                return self._fallback
            if isinstance(e, RateLookupError):
                raise
            raise RateLookupError(
                f"Rate lookup failed for {from_currency} -> {to_currency}: {e}"
            ) from e

    def convert(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        on: Optional[date] = None,
    ) -> Decimal:
        """Convert and round to the target currency's minor units."""
        factor = self.rate(from_currency, to_currency, on)
        return quantize_money(amount * factor, to_currency)

    def normalize_expenses(
        self,
        expenses: Iterable[ExpenseRecord],
        target: str,
    ) -> list[ExpenseRecord]:
        """New records in the target currency, each converted at its own date."""
        target = target.upper()
        result = []
        for expense in expenses:
            if expense.currency == target:
                result.append(expense)
                continue
            result.append(expense.model_copy(update={
                "amount": self.convert(
                    expense.amount, expense.currency, target, expense.expense_date
                ),
                "currency": target,
            }))
        return result

    def normalize_incomes(
        self,
        incomes: Iterable[IncomeRecord],
        target: str,
    ) -> list[IncomeRecord]:
        target = target.upper()
        result = []
        for income in incomes:
            if income.currency == target:
                result.append(income)
                continue
            result.append(income.model_copy(update={
                "amount": self.convert(
                    income.amount, income.currency, target, income.income_date
                ),
                "currency": target,
            }))
        return result

    def normalize_bill(self, bill: SplitBill, target: str) -> SplitBill:
        """
        Express a bill in the target currency.

        Equal splits are re-derived from the converted total. Custom shares
        are converted one by one, then the rounding residue is folded into
        the largest share so they add up exactly to the converted total.
        """
        target = target.upper()
        if bill.currency == target:
            return bill

        total = self.convert(bill.total_amount, bill.currency, target, bill.bill_date)
        if bill.split_type == SplitType.CUSTOM:
            shares = {
                participant_id: self.convert(amount, bill.currency, target, bill.bill_date)
                for participant_id, amount in bill.custom_amounts.items()
            }
            residue = total - sum(shares.values(), Decimal("0"))
            if shares and residue:
                largest = max(shares, key=shares.get)
                shares[largest] += residue
        elif bill.custom_amounts:
            shares = equal_shares(total, bill.participant_ids)
        else:
            shares = {}

        return bill.model_copy(update={
            "total_amount": total,
            "currency": target,
            "custom_amounts": shares,
        })
