from __future__ import annotations

"""Currency conversion through a fixed base currency.

Every rate in a table is "units of currency per one unit of base", so any pair
converts by going to base first (divide) and then out of it (multiply). The
order is fixed so results are reproducible across runs.

``convert`` never rounds; ``convert_with_snapshot`` produces the rounded,
frozen value stored on an expense.
"""
from dataclasses import dataclass
from typing import Mapping, Optional

from tripwallet.core.errors import UnconvertibleCurrency
from tripwallet.models.rates import RateSnapshot, is_valid_rate
from tripwallet.services.money import round2


def _lookup(rates: Mapping[str, float], currency: str, base_currency: Optional[str]) -> float:
    rate = rates.get(currency)
    if rate is None and currency == base_currency:
        rate = 1.0
    if rate is None or not is_valid_rate(rate):
        raise UnconvertibleCurrency(currency)
    return rate


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: Mapping[str, float],
    base_currency: Optional[str] = None,
) -> float:
    if from_currency == to_currency:
        return amount
    from_rate = _lookup(rates, from_currency, base_currency)
    to_rate = _lookup(rates, to_currency, base_currency)
    amount_in_base = amount / from_rate
    return amount_in_base * to_rate


@dataclass(frozen=True)
class ConversionResult:
    original_amount: float
    from_currency: str
    to_currency: str
    rate: float
    converted_amount: float


def convert_with_snapshot(
    amount: float,
    from_currency: str,
    to_currency: str,
    snapshot: Optional[RateSnapshot],
) -> ConversionResult:
    """Convert using one snapshot and round the result to cents.

    ``rate`` is the effective cross rate (``to`` units per ``from`` unit), kept
    on the expense for auditing. With no snapshot only same-currency amounts
    convert.
    """
    if from_currency == to_currency:
        return ConversionResult(
            original_amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=1.0,
            converted_amount=round2(amount),
        )
    if snapshot is None:
        raise UnconvertibleCurrency(from_currency)
    table, base = snapshot.table, snapshot.base_currency
    converted = convert(amount, from_currency, to_currency, table, base)
    return ConversionResult(
        original_amount=amount,
        from_currency=from_currency,
        to_currency=to_currency,
        rate=convert(1.0, from_currency, to_currency, table, base),
        converted_amount=round2(converted),
    )
