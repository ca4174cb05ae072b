"""
Tests for the price database reader and PriceObservation.
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from textwrap import dedent

from pydantic import ValidationError

from ptacore.models.commodity import Commodity
from ptacore.models.errors import ParseError, PricesDbParseError
from ptacore.models.price import PriceObservation, to_timestamp
from ptacore.parsing.prices_db import parse_price_line, parse_prices_db


PRICES_DB_FORMAT1 = dedent("""\
    P 2004/06/25 00:00:00 FEQTX $24.00
    P 2004/06/21 02:18:01 FEQTX $22.49
    P 2004/06/21 02:18:01 BORL $6.20
    P 2004/06/21 02:18:02 AAPL $32.91
    P 2004/06/21 02:18:02 AU $400.00
    P 2004/06/21 14:15:00 FEQTX $ 22.75
    P 2004/06/25 01:00:00 BORL $6.20
    P 2004/06/25 02:00:00 AAPL $32.91
    P 2004/06/25 03:18:02 AU $400.00
    """)

PRICES_DB_FORMAT2 = dedent("""\
    P 2020-01-01 USD 0.893179 EUR
    P 2020-02-01 EUR 1.109275 USD
    P 2020-03-01 USD 0.907082  EUR
    """)


class TestParsePricesDb:
    """Tests for parse_prices_db()."""

    def test_format1(self):
        """Test dated and timed lines with symbol-prefixed rates."""
        observations = parse_prices_db(PRICES_DB_FORMAT1)
        assert len(observations) == 9

        first = observations[0]
        assert first.at == datetime(2004, 6, 25)
        assert first.from_code == "FEQTX"
        assert first.to_code == "USD"
        assert first.rate.to_s() == "$ 24.00"

        second = observations[1]
        assert second.at == datetime(2004, 6, 21, 2, 18, 1)
        assert second.rate == Commodity.from_string("$ 22.49")

    def test_format2(self):
        """Test date-only lines with code-suffixed rates."""
        observations = parse_prices_db(PRICES_DB_FORMAT2)
        assert [o.key for o in observations] == [
            ("USD", "EUR"), ("EUR", "USD"), ("USD", "EUR")
        ]
        assert observations[2].rate.to_s() == "0.907082 EUR"
        assert observations[2].at == datetime(2020, 3, 1)

    def test_symbol_from_code_is_normalized(self):
        """Test that a priced symbol is stored by alphabetic code."""
        observation = parse_prices_db("P 2020-01-01 $ 0.90 EUR\n")[0]
        assert observation.from_code == "USD"
        assert observation.to_code == "EUR"

    def test_thousands_separators(self):
        """Test rates written with commas."""
        observations = parse_prices_db(dedent("""\
            P 2018/01/01 FLORIDAHOME  $500,000.00
            P 2018/01/01 CORVETTE  $50,000.00
            """))
        assert observations[0].rate.to_s() == "$ 500000.00"
        assert observations[1].rate.to_s() == "$ 50000.00"

    def test_comments_and_blank_lines(self):
        """Test that comment lines, trailing comments and blanks are skipped."""
        text = dedent("""\
            ; Prices pulled by hand
            # another comment
            * and another

            P 2020-01-01 EUR $ 1.10   ; year open
            """)
        observations = parse_prices_db(text)
        assert len(observations) == 1
        assert observations[0].rate.to_s() == "$ 1.10"

    def test_empty(self):
        """Test an empty database."""
        assert parse_prices_db("") == []
        assert parse_prices_db(None) == []

    @pytest.mark.parametrize("text,line_number", [
        ("P 2020-01-01 EUR $ 1.10\nnot a price line\n", 2),
        ("P 2020-13-01 EUR $ 1.10\n", 1),
        ("P 2020-01-01 25:00:00 EUR $ 1.10\n", 1),
        ("\n; comment\nP 2020-01-01 EUR dollars\n", 3),
        ("P 2020-01-01 EUR\n", 1),
    ])
    def test_errors_carry_line_numbers(self, text, line_number):
        """Test that malformed lines raise with their 1-based line number."""
        with pytest.raises(PricesDbParseError) as exc_info:
            parse_prices_db(text)
        assert exc_info.value.line_number == line_number

    def test_is_parse_error(self):
        """Test the error hierarchy."""
        with pytest.raises(ParseError):
            parse_price_line("X 2020-01-01 EUR $ 1.10", 7)


class TestPriceObservation:
    """Tests for PriceObservation."""

    def test_to_s_date_only(self):
        """Test that midnight observations are written as dates."""
        observation = PriceObservation(
            at=date(2020, 1, 1),
            from_code="EUR",
            to_code="USD",
            rate=Commodity.from_string("$ 1.10"),
        )
        assert observation.to_s() == "P 2020-01-01 EUR $ 1.10"
        assert str(observation) == observation.to_s()

    def test_to_s_with_time(self):
        """Test that a time of day is kept."""
        observation = parse_price_line("P 2004/06/21 14:15:00 FEQTX $ 22.75", 1)
        assert observation.to_s() == "P 2004-06-21 14:15:00 FEQTX $ 22.75"

    def test_to_s_reparses(self):
        """Test that written lines read back to the same observation."""
        for observation in parse_prices_db(PRICES_DB_FORMAT1):
            assert parse_price_line(observation.to_s(), 1) == observation

    def test_is_immutable(self):
        """Test that observations are frozen."""
        observation = parse_price_line("P 2020-01-01 EUR $ 1.10", 1)
        with pytest.raises(ValidationError):
            observation.from_code = "GBP"


class TestToTimestamp:
    """Tests for to_timestamp()."""

    def test_date_is_midnight(self):
        """Test dates."""
        assert to_timestamp(date(2020, 1, 1)) == datetime(2020, 1, 1)

    def test_strings(self):
        """Test ISO strings, with either date separator."""
        assert to_timestamp("2004-06-21 12:00:00") == datetime(2004, 6, 21, 12)
        assert to_timestamp("2004/06/21") == datetime(2004, 6, 21)

    def test_aware_datetime_becomes_utc(self):
        """Test timezone normalization."""
        aware = datetime(2020, 1, 1, 5, 0, tzinfo=timezone(timedelta(hours=5)))
        assert to_timestamp(aware) == datetime(2020, 1, 1, 0, 0)

    def test_invalid(self):
        """Test unsupported values."""
        with pytest.raises(ValueError):
            to_timestamp("yesterday")
        with pytest.raises(TypeError):
            to_timestamp(20200101)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
