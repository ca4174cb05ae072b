"""
Commodity - a decimal quantity tagged with a currency or commodity code

Forms read and written:
    $ 20.57          symbol before the amount (registered currency symbols)
    20.57 USD        code after the amount (everything else)
    1 MERCEDESBENZ   non-currency commodities
    100 "crab apples"  codes outside the bare-code alphabet are quoted

DESIGN DECISION: Two construction paths, kept distinct:
1. from_string() takes its precision from the digits actually written,
   so "$ 4.5" stays "$ 4.5" when written back. Thousands separators are
   not remembered: "$ 1,000.00" is written back as "$ 1000.00" unless
   to_s(commatize=True) asks for them.
2. from_symbol_and_amount() takes the currency's minor unit, unless the
   amount carries more digits than that (fractions of a cent are kept).

Commodities are immutable. Arithmetic only combines equal codes, compared by
alphabetic code so "$" and "USD" are the same currency.
"""

import re
from decimal import (
    ROUND_DOWN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    InvalidOperation,
)
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ptacore.config import get_settings
from ptacore.models.currency import Currency, get_currency_registry
from ptacore.models.errors import CommodityMismatchError, CommodityParseError


Scalar = Union[int, float, Decimal]

# Wide enough that intermediate results never round before we quantize them
_DECIMAL_CONTEXT = Context(prec=60, rounding=ROUND_HALF_UP)


# =============================================================================
# GRAMMAR
# =============================================================================

_AMOUNT = r'(-?[ ]*\d[\d,]*(?:\.\d+)?)'
_QUOTED_CODE = r'"((?:[^"\\]|\\.)+)"'
_BARE_CODE_CHARS = r'[^\s\-\d".,;:@=(){}\[\]]+'
_BARE_CODE = '(' + _BARE_CODE_CHARS + ')'

# groups: 1 sign, 2/3 prefix code, 4 amount | 5 amount, 6/7 suffix code
_COMMODITY = (
    r'(?:(-)?[ ]*(?:' + _QUOTED_CODE + '|' + _BARE_CODE + r')[ ]*' + _AMOUNT
    + '|' + _AMOUNT + r'[ ]*(?:' + _QUOTED_CODE + '|' + _BARE_CODE + '))'
)

COMMODITY_MATCH = re.compile(r'\A[ \t]*' + _COMMODITY + r'[ \t]*\Z')
COMMODITY_WITH_REMAINDER_MATCH = re.compile(r'\A[ \t]*' + _COMMODITY + r'(.*)\Z', re.DOTALL)
BARE_CODE_MATCH = re.compile(r'\A' + _BARE_CODE_CHARS + r'\Z')


def _fraction_digits(value: Decimal) -> int:
    """Digits after the decimal point needed to write `value` exactly."""
    exponent = value.normalize(_DECIMAL_CONTEXT).as_tuple().exponent
    return max(0, -exponent)


def _literal_digits(value: Decimal) -> int:
    """Digits after the decimal point as written (Decimal('1.10') -> 2)."""
    return max(0, -value.as_tuple().exponent)


def to_decimal(amount: Any) -> Decimal:
    """
    Convert an amount to Decimal.

    Floats go through repr() so 8.5 becomes Decimal('8.5'), not its
    binary expansion. Strings may carry thousands separators.

    Raises:
        CommodityParseError: If the amount isn't a finite number
    """
    if isinstance(amount, bool):
        raise CommodityParseError(f"Not a numeric amount: {amount!r}")

    try:
        if isinstance(amount, Decimal):
            value = amount
        elif isinstance(amount, int):
            value = Decimal(amount)
        elif isinstance(amount, float):
            value = Decimal(repr(amount))
        elif isinstance(amount, str):
            value = Decimal(amount.replace(',', '').replace(' ', ''))
        else:
            raise CommodityParseError(f"Not a numeric amount: {amount!r}")
    except InvalidOperation as e:
        raise CommodityParseError(f"Not a numeric amount: {amount!r}") from e

    if not value.is_finite():
        raise CommodityParseError(f"Not a finite amount: {amount!r}")

    return value


def _quantum(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


# =============================================================================
# COMMODITY
# =============================================================================

class Commodity(BaseModel):
    """
    A signed decimal quantity of a currency or commodity.

    `precision` is the number of decimal places this value is written with.
    It is never smaller than the digits the quantity needs.
    """
    model_config = ConfigDict(frozen=True)

    code: Optional[str] = Field(
        default=None,
        description="Code or symbol as written ($, USD, AAPL)"
    )
    alphabetic_code: Optional[str] = Field(
        default=None,
        description="Registry-normalized code ($ -> USD). Used for all comparisons"
    )
    quantity: Decimal = Field(
        ...,
        description="Exact signed quantity"
    )
    precision: int = Field(
        default=0,
        ge=0,
        description="Decimal places to write"
    )

    @model_validator(mode='before')
    @classmethod
    def fill_derived_fields(cls, data: Any) -> Any:
        """Resolve alphabetic_code from code, and precision from the quantity literal."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        if 'quantity' in data:
            data['quantity'] = to_decimal(data['quantity'])
            if data.get('precision') is None:
                data['precision'] = _literal_digits(data['quantity'])
        if data.get('alphabetic_code') is None and data.get('code'):
            data['alphabetic_code'] = get_currency_registry().alphabetic_code_for(data['code'])
        return data

    @model_validator(mode='after')
    def validate_precision(self) -> 'Commodity':
        """Refuse precisions that would hide digits of the quantity."""
        if _fraction_digits(self.quantity) > self.precision:
            raise ValueError(
                f"Precision {self.precision} would drop digits of {self.quantity}. "
                "Use round() or floor() to reduce precision"
            )
        return self

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_string(cls, string: str) -> 'Commodity':
        """
        Parse a commodity as written in a journal.

        Precision is the number of digits written after the decimal point.

        Raises:
            CommodityParseError: If the string isn't a single commodity
        """
        match = COMMODITY_MATCH.match(string or '')
        if match is None:
            raise CommodityParseError(f"Unparseable commodity: {string!r}")
        return cls._from_match(match, string)

    @classmethod
    def from_string_with_remainder(cls, string: str) -> tuple['Commodity', str]:
        """
        Parse a commodity from the start of `string`.

        Returns:
            (commodity, the unparsed text that followed it)
        """
        match = COMMODITY_WITH_REMAINDER_MATCH.match(string or '')
        if match is None:
            raise CommodityParseError(f"Unparseable commodity: {string!r}")
        return cls._from_match(match, string), match.group(8)

    @classmethod
    def _from_match(cls, match: re.Match, string: str) -> 'Commodity':
        sign, prefix_quoted, prefix_bare, prefix_amount = match.group(1, 2, 3, 4)
        suffix_amount, suffix_quoted, suffix_bare = match.group(5, 6, 7)

        if prefix_amount is not None:
            code, amount = prefix_quoted or prefix_bare, prefix_amount
        else:
            code, amount = suffix_quoted or suffix_bare, suffix_amount

        if not code or not amount:
            raise CommodityParseError(f"Unparseable commodity: {string!r}")

        quantity = to_decimal(amount)
        if sign:
            quantity = -quantity

        return cls(
            code=code,
            quantity=quantity,
            precision=_literal_digits(quantity),
        )

    @classmethod
    def from_symbol_and_amount(cls, code: Optional[str], amount: Any = 0) -> 'Commodity':
        """
        Build a commodity from a code and a number.

        Precision is the currency's minor unit, or the amount's own digits
        if it has more (share prices, fractions of a cent).

        Args:
            code: Code or symbol. None builds a code-less quantity (written as "0")
            amount: int, float, Decimal or numeric string
        """
        quantity = to_decimal(amount)
        precision = _literal_digits(quantity)

        currency = get_currency_registry().from_code_or_symbol(code)
        if currency is not None:
            precision = max(precision, currency.minor_unit)

        return cls(code=code or None, quantity=quantity, precision=precision)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def currency(self) -> Optional[Currency]:
        """Registry entry (possibly synthetic) for this code."""
        return get_currency_registry().from_code_or_symbol(self.code)

    @property
    def is_zero(self) -> bool:
        return self.quantity.is_zero()

    @property
    def is_positive(self) -> bool:
        return self.quantity > 0

    @property
    def is_negative(self) -> bool:
        return self.quantity < 0

    def to_decimal(self) -> Decimal:
        return self.quantity

    def _replace(self, quantity: Decimal, precision: int) -> 'Commodity':
        return Commodity(
            code=self.code,
            alphabetic_code=self.alphabetic_code,
            quantity=quantity,
            precision=precision,
        )

    # -------------------------------------------------------------------------
    # Rounding
    # -------------------------------------------------------------------------

    def round(self, places: int) -> 'Commodity':
        """Round half-up (away from zero) to `places` decimals."""
        return self._quantize(places, ROUND_HALF_UP)

    def floor(self, places: int) -> 'Commodity':
        """Drop digits beyond `places` decimals (truncates toward zero)."""
        return self._quantize(places, ROUND_DOWN)

    def _quantize(self, places: int, rounding: str) -> 'Commodity':
        if places < 0:
            raise ValueError(f"Decimal places must be non-negative, got {places}")
        quantity = self.quantity.quantize(
            _quantum(places), rounding=rounding, context=_DECIMAL_CONTEXT
        )
        return self._replace(quantity, places)

    # -------------------------------------------------------------------------
    # Sign
    # -------------------------------------------------------------------------

    def invert(self) -> 'Commodity':
        """Return this amount with its sign flipped."""
        return self._replace(-self.quantity, self.precision)

    def abs(self) -> 'Commodity':
        return self._replace(abs(self.quantity), self.precision)

    def __neg__(self) -> 'Commodity':
        return self.invert()

    def __abs__(self) -> 'Commodity':
        return self.abs()

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def _assert_same_code(self, other: 'Commodity') -> None:
        if self.alphabetic_code != other.alphabetic_code:
            raise CommodityMismatchError(self.code, other.code)

    def _scaled(self, quantity: Decimal) -> 'Commodity':
        """Wrap a multiply/divide result, keeping the digits it needs."""
        max_digits = get_settings().commodity.max_decimal_digits
        quantity = quantity.quantize(
            _quantum(max_digits), rounding=ROUND_HALF_UP, context=_DECIMAL_CONTEXT
        )
        return self._replace(quantity, max(self.precision, _fraction_digits(quantity)))

    def __add__(self, other: object) -> 'Commodity':
        if not isinstance(other, Commodity):
            return NotImplemented
        self._assert_same_code(other)
        return self._replace(
            _DECIMAL_CONTEXT.add(self.quantity, other.quantity),
            max(self.precision, other.precision),
        )

    def __radd__(self, other: object) -> 'Commodity':
        # sum() starts from integer 0
        if isinstance(other, int) and not isinstance(other, bool) and other == 0:
            return self
        return NotImplemented

    def __sub__(self, other: object) -> 'Commodity':
        if not isinstance(other, Commodity):
            return NotImplemented
        self._assert_same_code(other)
        return self._replace(
            _DECIMAL_CONTEXT.subtract(self.quantity, other.quantity),
            max(self.precision, other.precision),
        )

    def __mul__(self, other: object) -> 'Commodity':
        if isinstance(other, bool) or not isinstance(other, (int, float, Decimal)):
            return NotImplemented
        return self._scaled(_DECIMAL_CONTEXT.multiply(self.quantity, to_decimal(other)))

    __rmul__ = __mul__

    def __truediv__(self, other: object) -> Union['Commodity', Decimal]:
        """
        Commodity / scalar -> Commodity of the same code.
        Commodity / Commodity (same code) -> dimensionless Decimal ratio.
        """
        if isinstance(other, Commodity):
            self._assert_same_code(other)
            ratio = _DECIMAL_CONTEXT.divide(self.quantity, other.quantity)
            return ratio.quantize(
                _quantum(get_settings().commodity.max_decimal_digits),
                rounding=ROUND_HALF_UP,
                context=_DECIMAL_CONTEXT,
            )
        if isinstance(other, bool) or not isinstance(other, (int, float, Decimal)):
            return NotImplemented
        return self._scaled(_DECIMAL_CONTEXT.divide(self.quantity, to_decimal(other)))

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        # Precision is presentation only: $ 23.01 == $ 23.010
        if not isinstance(other, Commodity):
            return NotImplemented
        return (
            self.alphabetic_code == other.alphabetic_code
            and self.quantity == other.quantity
        )

    def __hash__(self) -> int:
        return hash((self.alphabetic_code, self.quantity))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Commodity):
            return NotImplemented
        self._assert_same_code(other)
        return self.quantity < other.quantity

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Commodity):
            return NotImplemented
        self._assert_same_code(other)
        return self.quantity <= other.quantity

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Commodity):
            return NotImplemented
        self._assert_same_code(other)
        return self.quantity > other.quantity

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Commodity):
            return NotImplemented
        self._assert_same_code(other)
        return self.quantity >= other.quantity

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    def quantity_as_s(self, precision: Optional[int] = None, commatize: bool = False) -> str:
        """The signed number alone, zero-padded to `precision` (default: stored)."""
        places = self.precision if precision is None else precision
        if places < 0:
            raise ValueError(f"Decimal places must be non-negative, got {places}")

        quantity = self.quantity.quantize(
            _quantum(places), rounding=ROUND_HALF_UP, context=_DECIMAL_CONTEXT
        )
        if quantity.is_zero():
            quantity = quantity.copy_abs()

        return format(quantity, ',f' if commatize else 'f')

    def to_s(
        self,
        precision: Optional[int] = None,
        commatize: bool = False,
        no_code: bool = False,
    ) -> str:
        """
        Render for a journal.

        Args:
            precision: Decimal places to emit, rounding half-up. Defaults to
                       the stored precision
            commatize: Insert thousands separators
            no_code: Emit the number alone
        """
        number = self.quantity_as_s(precision=precision, commatize=commatize)
        if no_code or not self.code:
            return number

        operand = self.code if BARE_CODE_MATCH.match(self.code) else f'"{self.code}"'
        if get_currency_registry().is_symbol(self.code):
            return f"{operand} {number}"
        return f"{number} {operand}"

    def __str__(self) -> str:
        return self.to_s()
