"""
Tests for ComplexCommodity (ledger cost expressions).
"""

import pytest
from datetime import date

from ptacore.models.commodity import Commodity
from ptacore.models.complex_commodity import ComplexCommodity, PriceOperation
from ptacore.models.errors import ComplexCommodityError, ParseError


def complex_commodity(string: str) -> ComplexCommodity:
    return ComplexCommodity.from_string(string)


class TestComplexCommodityParsing:
    """Tests for ComplexCommodity.from_string()."""

    def test_per_unit(self):
        """Test 'left @ right'."""
        cc = complex_commodity("10 VOO @ $ 400.00")
        assert cc.left.to_s() == "10 VOO"
        assert cc.operation is PriceOperation.PER_UNIT
        assert cc.right.to_s() == "$ 400.00"

    def test_per_lot(self):
        """Test 'left @@ right'."""
        cc = complex_commodity("1100 HNL @@ $ 45.83")
        assert cc.left.to_s() == "1100 HNL"
        assert cc.operation is PriceOperation.PER_LOT
        assert cc.right.to_s() == "$ 45.83"

    def test_lot_price_without_operator(self):
        """Test a lone lot annotation."""
        cc = complex_commodity("10 AAPL {$50.00}")
        assert cc.left.to_s() == "10 AAPL"
        assert cc.operation is None
        assert cc.right is None
        assert cc.left_lot_operation is PriceOperation.PER_UNIT
        assert cc.left_lot.to_s() == "$ 50.00"
        assert cc.left_lot_is_equal is False

    def test_lot_price_per_lot_with_operator(self):
        """Test '{{..}}' followed by '@@'."""
        cc = complex_commodity("-10 AAPL {{$500.00}} @@ $750.00")
        assert cc.left.to_s() == "-10 AAPL"
        assert cc.left_lot_operation is PriceOperation.PER_LOT
        assert cc.left_lot.to_s() == "$ 500.00"
        assert cc.operation is PriceOperation.PER_LOT
        assert cc.right.to_s() == "$ 750.00"

    def test_fixated_lot_price(self):
        """Test '{=..}'."""
        cc = complex_commodity("10 AAPL {=$50.00}")
        assert cc.left_lot_is_equal is True
        assert cc.left_lot.to_s() == "$ 50.00"

    def test_lot_date_and_expression(self):
        """Test '[date]' and '(expression)' annotations."""
        cc = complex_commodity("-5 AAPL {$50.00} [2012-04-10] (Oh my!) @@ $375.00")
        assert cc.left.to_s() == "-5 AAPL"
        assert cc.left_date == date(2012, 4, 10)
        assert cc.left_expression == "Oh my!"
        assert cc.operation is PriceOperation.PER_LOT
        assert cc.right.to_s() == "$ 375.00"

    def test_lot_lambda(self):
        """Test '((lambda))' annotations, including nested parentheses."""
        cc = complex_commodity("-5 AAPL {$50.00} ((ten_dollars)) @@ $375.00")
        assert cc.left_lambda == "ten_dollars"

        cc = complex_commodity("-5 AAPL {$50.00} ((s, d, t -> market(0, date, t))) @@ $375.00")
        assert cc.left_lambda == "s, d, t -> market(0, date, t)"
        assert cc.right.to_s() == "$ 375.00"

    def test_equals_before_right(self):
        """Test '@ =price'."""
        cc = complex_commodity("10 AAPL @ =$50.00")
        assert cc.right_is_equal is True
        assert cc.left_is_equal is False
        assert cc.right.to_s() == "$ 50.00"

    def test_expressions_on_both_sides(self):
        """Test '(expr) @ (expr)'."""
        cc = complex_commodity("(5 AAPL * 2) @ ($500.00 / 10)")
        assert cc.left is None
        assert cc.left_expression == "5 AAPL * 2"
        assert cc.operation is PriceOperation.PER_UNIT
        assert cc.right_expression == "$500.00 / 10"

    def test_quoted_left_code(self):
        """Test quoted commodity codes on the left."""
        cc = complex_commodity('100 "crab apples" @ $0.04')
        assert cc.left.code == "crab apples"
        assert cc.right.to_s() == "$ 0.04"


class TestComplexCommodityErrors:
    """Tests for malformed cost expressions."""

    @pytest.mark.parametrize("string", [
        "",
        "   ",
        "10 VOO @",
        "@ $ 5.00",
        "10 VOO @ $ 1 @ $ 2",
        "10 VOO @ $ 1 $ 2",
        "10 VOO 5 VOO @ $ 1",
        "10 AAPL {$1} {$2}",
        "garbage !!",
        "10 AAPL [2012-13-40]",
        "10 AAPL {nonsense}",
    ])
    def test_malformed(self, string):
        """Test that malformed expressions raise ComplexCommodityError."""
        with pytest.raises(ComplexCommodityError):
            complex_commodity(string)

    def test_is_parse_error(self):
        """Test the error hierarchy."""
        with pytest.raises(ParseError):
            complex_commodity("10 VOO @")

    def test_unrecognized_operator(self):
        """Test PriceOperation.from_token()."""
        assert PriceOperation.from_token("{") is PriceOperation.PER_UNIT
        assert PriceOperation.from_token("{{") is PriceOperation.PER_LOT
        with pytest.raises(ComplexCommodityError):
            PriceOperation.from_token("@@@")


class TestComplexCommodityFormatting:
    """Tests for to_s()."""

    @pytest.mark.parametrize("string", [
        "10 VOO @ $ 400.00",
        "10 VOO @@ $ 4000.00",
        "10 AAPL {$ 50.00}",
        "10 AAPL {=$ 50.00}",
        "-10 AAPL {{$ 500.00}} @@ $ 750.00",
        "-5 AAPL {$ 50.00} [2012-04-10] (Oh my!) @@ $ 375.00",
        "-5 AAPL {$ 50.00} ((ten_dollars)) @@ $ 375.00",
        "10 AAPL @ = $ 50.00",
        "(5 AAPL * 2) @ ($500.00 / 10)",
    ])
    def test_round_trip(self, string):
        """Test that canonical strings format back to themselves."""
        assert complex_commodity(string).to_s() == string

    def test_operator_is_preserved(self):
        """Test that '@' and '@@' are never swapped."""
        assert "@@" not in complex_commodity("10 VOO @ $ 400.00").to_s()
        assert " @@ " in complex_commodity("10 VOO @@ $ 4000.00").to_s()

    def test_normalizes_commodity_spacing(self):
        """Test that operands are written in their canonical form."""
        assert complex_commodity("100 apples        @ $0.200000").to_s() == "100 apples @ $ 0.200000"

    def test_constructed(self):
        """Test formatting a programmatically built expression."""
        cc = ComplexCommodity(
            left=Commodity.from_string("10 VOO"),
            operation=PriceOperation.PER_LOT,
            right=Commodity.from_symbol_and_amount("$", 4000),
        )
        assert cc.to_s() == "10 VOO @@ $ 4000.00"
        assert str(cc) == cc.to_s()


class TestComplexCommodityBehavior:
    """Tests for behavior delegated to the left commodity."""

    def test_invert(self):
        """Test that invert flips the left side only, returning a copy."""
        original = complex_commodity("10 VOO @ $ 400.00")
        inverted = original.invert()
        assert inverted.to_s() == "-10 VOO @ $ 400.00"
        assert original.to_s() == "10 VOO @ $ 400.00"

    def test_is_positive(self):
        """Test is_positive."""
        assert complex_commodity("10 VOO @ $ 400.00").is_positive
        assert not complex_commodity("-10 VOO @ $ 400.00").is_positive

    def test_equality(self):
        """Test structural equality."""
        assert complex_commodity("10 VOO @ $400") == complex_commodity("10 VOO @ $ 400.00")
        assert complex_commodity("10 VOO @ $ 400") != complex_commodity("10 VOO @@ $ 400")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
