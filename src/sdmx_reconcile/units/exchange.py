"""Currency exchange rates.

Currency-to-currency conversion in this package only ever goes through an
``ExchangeRateTable``; the unit catalog never converts between currencies.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

BASE_CURRENCY = "USD"

# Approximate 2024-2025 period averages, units of currency per 1 USD
_DEFAULT_RATES_PER_USD: Dict[str, float] = {
    "AUD": 1.5520,
    "EUR": 0.8850,
    "FJD": 2.2990,
    "GBP": 0.7595,
    "JPY": 149.66,
    "NZD": 1.7201,
    "PGK": 4.1227,
    "SBD": 8.3268,
    "TOP": 2.3730,
    "VUV": 119.17,
    "WST": 2.7915,
    "XPF": 105.42,
    "CNY": 7.2450,
    "INR": 84.50,
    "KRW": 1380.0,
}

DEFAULT_REFERENCE_DATE = "2025"
DEFAULT_RATE_SOURCE = "IMF period-average (approximate defaults, may be stale)"


class ExchangeRateTable:
    """Currency pair -> rate map with inverse insertion and USD cross rates.

    A rate ``(A, B) -> r`` means one unit of A is worth ``r`` units of B.

    Mutation is not thread-safe. Populate the table before sharing it between
    threads; concurrent readers of a populated table are fine.

    Examples:
        >>> table = ExchangeRateTable(reference_date="2025")
        >>> table.add_rate("USD", "FJD", 2.299)
        >>> round(table.get_rate("FJD", "USD"), 4)
        0.435
    """

    def __init__(self, reference_date: str = "", source: str = "") -> None:
        self.reference_date = reference_date
        self.source = source
        self._rates: Dict[Tuple[str, str], float] = {}

    def __len__(self) -> int:
        return len(self._rates)

    def __contains__(self, pair: object) -> bool:
        return pair in self._rates

    def __repr__(self) -> str:
        return (
            f"ExchangeRateTable(reference_date={self.reference_date!r}, "
            f"source={self.source!r}, pairs={len(self._rates)})"
        )

    @property
    def rates(self) -> Dict[Tuple[str, str], float]:
        """Copy of the stored (from, to) -> rate entries, inverses included."""
        return dict(self._rates)

    def currencies(self) -> list:
        """Sorted currency codes appearing in any stored pair."""
        return sorted({code for pair in self._rates for code in pair})

    def add_rate(self, from_currency: str, to_currency: str, rate: float) -> None:
        """Store ``from -> to`` and its inverse ``to -> from``.

        Raises:
            ValueError: If ``rate`` is not a positive number.
        """
        rate = float(rate)
        if not rate > 0:
            raise ValueError(
                f"Exchange rate must be positive: {from_currency}->{to_currency} = {rate}"
            )
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        self._rates[(from_currency, to_currency)] = rate
        self._rates[(to_currency, from_currency)] = 1.0 / rate

    def get_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        """Return the rate for ``from -> to``, deriving a USD cross rate if needed.

        Returns 1.0 for identical codes and None when no rate can be resolved.
        """
        from_currency = str(from_currency).upper()
        to_currency = str(to_currency).upper()
        if from_currency == to_currency:
            return 1.0
        direct = self._rates.get((from_currency, to_currency))
        if direct is not None:
            return direct
        to_base = self._rates.get((from_currency, BASE_CURRENCY))
        from_base = self._rates.get((BASE_CURRENCY, to_currency))
        if to_base is not None and from_base is not None:
            return to_base * from_base
        return None

    def has_rate(self, from_currency: str, to_currency: str) -> bool:
        return self.get_rate(from_currency, to_currency) is not None

    def convert(self, value: float, from_currency: str, to_currency: str) -> Optional[float]:
        """Convert ``value`` between currencies; None when no rate is available."""
        rate = self.get_rate(from_currency, to_currency)
        if rate is None:
            return None
        return value * rate


def default_exchange_rates() -> ExchangeRateTable:
    """Return a table seeded with approximate period-average rates against USD.

    The seed rates are approximate and may be stale. They are fine for exploratory
    reconciliation, not for production financial use.
    """
    table = ExchangeRateTable(reference_date=DEFAULT_REFERENCE_DATE, source=DEFAULT_RATE_SOURCE)
    for currency, rate in _DEFAULT_RATES_PER_USD.items():
        table.add_rate(BASE_CURRENCY, currency, rate)
    logger.debug(
        "Seeded %d default exchange rates against %s", len(_DEFAULT_RATES_PER_USD), BASE_CURRENCY
    )
    return table


def convert_currency(
    value: float, from_currency: str, to_currency: str, rates: ExchangeRateTable
) -> Optional[float]:
    """Convert ``value`` using ``rates``; None when no rate is available.

    Examples:
        >>> round(convert_currency(100.0, "USD", "FJD", default_exchange_rates()), 2)
        229.9
    """
    return rates.convert(value, from_currency, to_currency)


__all__ = [
    "BASE_CURRENCY",
    "DEFAULT_REFERENCE_DATE",
    "DEFAULT_RATE_SOURCE",
    "ExchangeRateTable",
    "default_exchange_rates",
    "convert_currency",
]
