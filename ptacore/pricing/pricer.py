"""
Historical Pricer

A time-indexed store of exchange rates, and conversion between commodities
at a point in time.

    pricer = Pricer()
    pricer.add(date(2023, 1, 1), "EUR", Commodity.from_string("$ 1.10"))
    pricer.convert(date(2023, 1, 5), Commodity.from_string("10 EUR"), "$")
    # -> $ 11.00

DESIGN DECISION: Lookups are exact-pair and never transitive. An EUR->USD
rate does not answer USD->EUR unless `bidirectional` is enabled, and nothing
ever routes EUR->GBP through USD.

A missing rate is an error, never a guess. Before NoPriceError is raised the
`before_price_add` hook is called, so the host can tell an operator which
P line to add to the price database.
"""

import threading
from bisect import bisect_left, bisect_right
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional, Union

from ptacore.config import PricerSettings, get_settings
from ptacore.diagnostics import get_logger
from ptacore.models.commodity import Commodity
from ptacore.models.currency import get_currency_registry
from ptacore.models.errors import PtaError
from ptacore.models.price import PriceObservation, Timestamp, to_timestamp
from ptacore.parsing.prices_db import parse_prices_db


BeforePriceAdd = Callable[[object, str, str], None]
PriceRow = tuple[Timestamp, str, Union[Commodity, str]]


class NoPriceError(PtaError):
    """No rate exists for the exact pair at or before the requested time."""

    def __init__(self, at, from_code: Optional[str], to_code: Optional[str]):
        self.at = at
        self.from_code = from_code
        self.to_code = to_code
        super().__init__(f"Unable to convert {from_code} to {to_code} at {at}")


class Pricer:
    """
    Exchange-rate store keyed by (from, to) alphabetic codes.

    Observations for a pair are kept sorted by time. Adding a second rate at
    an existing timestamp replaces the first.

    Thread-safe: adds and lookups are serialized on an internal lock.
    """

    def __init__(
        self,
        observations: Optional[Iterable[PriceObservation]] = None,
        before_price_add: Optional[BeforePriceAdd] = None,
        bidirectional: Optional[bool] = None,
        bypass_zero_quantity: Optional[bool] = None,
        settings: Optional[PricerSettings] = None,
    ):
        """
        Initialize pricer.

        Args:
            observations: Initial rates
            before_price_add: Called with (at, from_code, to_code) right
                              before NoPriceError is raised
            bidirectional: Let A->B rates answer B->A lookups. If None, uses settings
            bypass_zero_quantity: Convert zero amounts without a lookup. If None,
                                  uses settings
            settings: Pricer settings. If None, uses get_settings().pricer
        """
        settings = settings or get_settings().pricer

        self.before_price_add = before_price_add
        self.bidirectional = (
            settings.bidirectional if bidirectional is None else bidirectional
        )
        self.bypass_zero_quantity = (
            settings.bypass_zero_quantity
            if bypass_zero_quantity is None
            else bypass_zero_quantity
        )

        self._logger = get_logger(__name__)
        self._lock = threading.RLock()
        self._observations: dict[tuple[str, str], list[PriceObservation]] = {}
        self._timestamps: dict[tuple[str, str], list] = {}

        for observation in observations or ():
            self._insert(observation)

    @classmethod
    def from_prices_db(cls, text: str, **kwargs) -> 'Pricer':
        """
        Build a pricer from the contents of a price database.

        Args:
            text: P lines, see ptacore.parsing.prices_db
            **kwargs: Passed to Pricer()
        """
        pricer = cls(**kwargs)
        count = 0
        for observation in parse_prices_db(text):
            pricer._insert(observation)
            count += 1
        pricer._logger.info("prices_loaded", count=count)
        return pricer

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def add(
        self,
        at: Timestamp,
        from_code: str,
        to: Union[Commodity, str],
    ) -> PriceObservation:
        """
        Record that one unit of `from_code` was worth `to` at `at`.

        Args:
            at: datetime, date or ISO string
            from_code: Code or symbol being priced
            to: Rate, as a Commodity or its string form ("$ 1.10")

        Returns:
            The stored observation
        """
        if not from_code:
            raise ValueError("from_code is required")
        if isinstance(to, str):
            to = Commodity.from_string(to)
        if not to.alphabetic_code:
            raise ValueError(f"Rate {to} has no commodity code")

        observation = PriceObservation(
            at=to_timestamp(at),
            from_code=get_currency_registry().alphabetic_code_for(from_code),
            to_code=to.alphabetic_code,
            rate=to,
        )
        self._insert(observation)
        return observation

    def load(self, rows: Iterable[PriceRow]) -> int:
        """Bulk add (at, from_code, to) rows. Returns how many were added."""
        count = 0
        for at, from_code, to in rows:
            self.add(at, from_code, to)
            count += 1
        self._logger.info("prices_loaded", count=count)
        return count

    def _insert(self, observation: PriceObservation) -> None:
        key = observation.key
        with self._lock:
            observations = self._observations.setdefault(key, [])
            timestamps = self._timestamps.setdefault(key, [])

            i = bisect_left(timestamps, observation.at)
            if i < len(timestamps) and timestamps[i] == observation.at:
                observations[i] = observation
                event = "price_replaced"
            else:
                timestamps.insert(i, observation.at)
                observations.insert(i, observation)
                event = "price_added"

        self._logger.debug(
            event,
            at=observation.at.isoformat(),
            from_code=observation.from_code,
            to_code=observation.to_code,
            rate=observation.rate.to_s(),
        )

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def observations(self, from_code: str, to_code: str) -> tuple[PriceObservation, ...]:
        """Snapshot of the rates recorded for the exact pair, oldest first."""
        registry = get_currency_registry()
        key = (registry.alphabetic_code_for(from_code), registry.alphabetic_code_for(to_code))
        with self._lock:
            return tuple(self._observations.get(key, ()))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(observations) for observations in self._observations.values())

    def _latest(self, key: tuple[str, str], at) -> Optional[PriceObservation]:
        """Most recent observation for `key` at or before `at`."""
        timestamps = self._timestamps.get(key)
        if not timestamps:
            return None
        i = bisect_right(timestamps, at)
        return self._observations[key][i - 1] if i else None

    def price(self, at: Timestamp, from_code: str, to_code: str) -> Commodity:
        """
        The rate in effect at `at`: the latest observation at or before it.

        Raises:
            NoPriceError: No applicable observation
        """
        when = to_timestamp(at)
        registry = get_currency_registry()
        from_alpha = registry.alphabetic_code_for(from_code)
        to_alpha = registry.alphabetic_code_for(to_code)

        with self._lock:
            direct = self._latest((from_alpha, to_alpha), when)
            reverse = None
            if self.bidirectional:
                reverse = self._latest((to_alpha, from_alpha), when)

        # A zero rate has no reciprocal
        if reverse is not None and reverse.rate.is_zero:
            reverse = None

        if reverse is not None and (direct is None or reverse.at > direct.at):
            return self._reciprocal(reverse.rate, to_code)
        if direct is not None:
            return direct.rate

        self._no_price(at, from_code, to_code)

    @staticmethod
    def _reciprocal(rate: Commodity, to_code: str) -> Commodity:
        places = Decimal(1).scaleb(-get_settings().commodity.max_decimal_digits)
        quantity = (Decimal(1) / rate.quantity).quantize(places, rounding=ROUND_HALF_UP)
        return Commodity.from_symbol_and_amount(to_code, quantity.normalize())

    def _no_price(self, at, from_code: str, to_code: str) -> None:
        self._logger.warning(
            "price_missing",
            at=str(at),
            from_code=from_code,
            to_code=to_code,
        )
        if self.before_price_add is not None:
            self.before_price_add(at, from_code, to_code)
        raise NoPriceError(at, from_code, to_code)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def convert(self, at: Timestamp, commodity: Commodity, to_code: str) -> Commodity:
        """
        Express `commodity` in `to_code` using the rate in effect at `at`.

        The result is rounded to the target currency's minor unit. A commodity
        already in `to_code` comes back unchanged, registered or not.

        Raises:
            NoPriceError: No applicable rate for the exact pair
        """
        registry = get_currency_registry()
        if commodity.code == to_code or (
            commodity.alphabetic_code is not None
            and commodity.alphabetic_code == registry.alphabetic_code_for(to_code)
        ):
            return commodity

        if self.bypass_zero_quantity and commodity.is_zero:
            return Commodity.from_symbol_and_amount(to_code, 0)

        rate = self.price(at, commodity.code, to_code)
        converted = Commodity.from_symbol_and_amount(
            to_code, commodity.quantity * rate.quantity
        )
        return converted.round(registry.from_code_or_symbol(to_code).minor_unit)
