"""
ComplexCommodity - ledger cost expressions

Examples of what parses:
    10 AAPL @@ $ 500.00
    10 VOO @ $ 400.00
    10 AAPL @ ($500.00 / 10)
    -10 AAPL {{$500.00}} @@ $750.00
    10 AAPL {=$50.00}
    -5 AAPL {$50.00} [2012-04-10] (Oh my!) @@ $375.00
    -5 AAPL {$50.00} ((ten_dollars)) @@ $375.00

DESIGN DECISION: The input is consumed like a stack, popping recognizable
components off the left until nothing remains. Anything that is not one of
the bracketed/operator forms must be a commodity; which side it lands on
depends on whether an operator has been seen yet.

No arithmetic is defined here. Callers take `left` and `right` apart, compute
with Commodity, and build a new ComplexCommodity for output.
"""

import re
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ptacore.models.commodity import Commodity
from ptacore.models.errors import CommodityParseError, ComplexCommodityError


class PriceOperation(str, Enum):
    """How the right-hand price relates to the left-hand quantity."""
    PER_UNIT = "@"
    PER_LOT = "@@"

    @classmethod
    def from_token(cls, token: str) -> 'PriceOperation':
        """'@' / '{' -> PER_UNIT, '@@' / '{{' -> PER_LOT."""
        if token in ('@', '{'):
            return cls.PER_UNIT
        if token in ('@@', '{{'):
            return cls.PER_LOT
        raise ComplexCommodityError(f"Unrecognized operator {token!r}")


# =============================================================================
# COMPONENT PATTERNS (tried in this order)
# =============================================================================

WHITESPACE_MATCH = re.compile(r'\A[ \t]+(.*)\Z', re.DOTALL)
EQUAL_MATCH = re.compile(r'\A=(.*)\Z', re.DOTALL)
LOT_MATCH = re.compile(r'\A(\{+) *(=?) *([^}]+)\}+(.*)\Z', re.DOTALL)
LAMBDA_MATCH = re.compile(r'\A\(\((.+)\)\)(.*)\Z', re.DOTALL)
DATE_MATCH = re.compile(r'\A\[(\d{4})-(\d{1,2})-(\d{1,2})\](.*)\Z', re.DOTALL)
OP_MATCH = re.compile(r'\A(@{1,2})(.*)\Z', re.DOTALL)
EXPRESSION_MATCH = re.compile(r'\A\(([^)]+)\)(.*)\Z', re.DOTALL)


class ComplexCommodity(BaseModel):
    """
    "`left` @ `right`" (per unit) or "`left` @@ `right`" (per lot), plus the
    optional lot annotations ledger allows on the left side.
    """
    model_config = ConfigDict(frozen=True)

    left: Optional[Commodity] = None
    operation: Optional[PriceOperation] = None
    right: Optional[Commodity] = None

    left_lot: Optional[Commodity] = Field(
        default=None,
        description="Lot price written in braces"
    )
    left_lot_operation: Optional[PriceOperation] = Field(
        default=None,
        description="PER_UNIT for {..}, PER_LOT for {{..}}"
    )
    left_lot_is_equal: bool = Field(
        default=False,
        description="Fixated lot price {=..}"
    )
    left_date: Optional[date] = None
    left_expression: Optional[str] = None
    right_expression: Optional[str] = None
    left_lambda: Optional[str] = None
    left_is_equal: bool = False
    right_is_equal: bool = False

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    @classmethod
    def from_string(cls, string: str) -> 'ComplexCommodity':
        """
        Parse a cost expression as found in a journal.

        Raises:
            ComplexCommodityError: Unparseable component, a component given
                                   twice, or an operator missing an operand
        """
        remaining = (string or '').strip()
        if not remaining:
            raise ComplexCommodityError("Empty complex commodity")

        parts: dict[str, Any] = {}

        def claim(key: str, value: Any) -> None:
            if key in parts:
                raise ComplexCommodityError(
                    f"Too many {key} in complex commodity", source=string
                )
            parts[key] = value

        while remaining:
            match = WHITESPACE_MATCH.match(remaining)
            if match:
                remaining = match.group(1)
                continue

            match = EQUAL_MATCH.match(remaining)
            if match:
                claim('right_is_equal' if 'operation' in parts else 'left_is_equal', True)
                remaining = match.group(1)
                continue

            match = LOT_MATCH.match(remaining)
            if match:
                claim('left_lot', cls._parse_operand(match.group(3).strip(), string))
                parts['left_lot_operation'] = PriceOperation.from_token(match.group(1))
                parts['left_lot_is_equal'] = match.group(2) == '='
                remaining = match.group(4)
                continue

            match = LAMBDA_MATCH.match(remaining)
            if match:
                claim('left_lambda', match.group(1))
                remaining = match.group(2)
                continue

            match = DATE_MATCH.match(remaining)
            if match:
                try:
                    lot_date = date(*(int(match.group(i)) for i in range(1, 4)))
                except ValueError as e:
                    raise ComplexCommodityError(
                        f"Invalid lot date: {e}", source=string
                    ) from e
                claim('left_date', lot_date)
                remaining = match.group(4)
                continue

            match = OP_MATCH.match(remaining)
            if match:
                claim('operation', PriceOperation.from_token(match.group(1)))
                remaining = match.group(2)
                continue

            match = EXPRESSION_MATCH.match(remaining)
            if match:
                claim(
                    'right_expression' if 'operation' in parts else 'left_expression',
                    match.group(1),
                )
                remaining = match.group(2)
                continue

            try:
                commodity, remaining = Commodity.from_string_with_remainder(remaining)
            except CommodityParseError as e:
                raise ComplexCommodityError(
                    "Unparseable complex commodity", source=string
                ) from e
            claim('right' if 'operation' in parts else 'left', commodity)

        if 'left' not in parts and 'left_expression' not in parts:
            raise ComplexCommodityError("Missing left operand", source=string)
        if 'operation' in parts and 'right' not in parts and 'right_expression' not in parts:
            raise ComplexCommodityError("Missing right operand", source=string)

        return cls(**parts)

    @staticmethod
    def _parse_operand(text: str, string: str) -> Commodity:
        try:
            return Commodity.from_string(text)
        except CommodityParseError as e:
            raise ComplexCommodityError(
                f"Unparseable lot price {text!r}", source=string
            ) from e

    # -------------------------------------------------------------------------
    # Behavior delegated to the left side
    # -------------------------------------------------------------------------

    @property
    def is_positive(self) -> bool:
        return self.left is not None and self.left.is_positive

    def invert(self) -> 'ComplexCommodity':
        """Return a copy with the left quantity's sign flipped."""
        if self.left is None:
            return self
        return self.model_copy(update={'left': self.left.invert()})

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    def to_s(self) -> str:
        tokens: list[str] = []

        if self.left_is_equal:
            tokens.append('=')
        if self.left is not None:
            tokens.append(self.left.to_s())
        if self.left_lot is not None and self.left_lot_operation is not None:
            lot = ('=' if self.left_lot_is_equal else '') + self.left_lot.to_s()
            if self.left_lot_operation is PriceOperation.PER_UNIT:
                tokens.append('{' + lot + '}')
            else:
                tokens.append('{{' + lot + '}}')
        if self.left_date is not None:
            tokens.append(f"[{self.left_date.isoformat()}]")
        if self.left_expression is not None:
            tokens.append(f"({self.left_expression})")
        if self.left_lambda is not None:
            tokens.append(f"(({self.left_lambda}))")
        if self.operation is not None:
            tokens.append(self.operation.value)
        if self.right_is_equal:
            tokens.append('=')
        if self.right is not None:
            tokens.append(self.right.to_s())
        if self.right_expression is not None:
            tokens.append(f"({self.right_expression})")

        return ' '.join(tokens)

    def __str__(self) -> str:
        return self.to_s()
