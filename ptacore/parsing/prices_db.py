"""
Price database reader.

    ; comments start with ';', '#' or '*'
    P 2020-01-01 USD 0.893179 EUR
    P 2004/06/21 02:18:01 FEQTX $22.49   ; trailing comments too

Each P line becomes a PriceObservation. File I/O is the caller's business;
this takes the text.
"""

import re
from datetime import datetime

from ptacore.models.commodity import Commodity
from ptacore.models.currency import get_currency_registry
from ptacore.models.errors import CommodityParseError, PricesDbParseError
from ptacore.models.price import PriceObservation


PRICE_LINE_MATCH = re.compile(
    r'\AP[ \t]+'
    r'(\d{4})[-/](\d{1,2})[-/](\d{1,2})'
    r'(?:[ \t]+(\d{1,2}):(\d{1,2}):(\d{1,2}))?'
    r'[ \t]+(\S+)'
    r'[ \t]+(.+?)[ \t]*\Z'
)
TRAILING_COMMENT = re.compile(r'[ \t]*;.*\Z')
COMMENT_LINE_PREFIXES = (';', '#', '*')


def parse_price_line(line: str, line_number: int) -> PriceObservation:
    """
    Parse a single P line (without comments).

    Raises:
        PricesDbParseError: Malformed line, date, time or commodity
    """
    match = PRICE_LINE_MATCH.match(line)
    if match is None:
        raise PricesDbParseError("Unexpected line", line_number, line)

    year, month, day, hour, minute, second, from_code, rate_text = match.groups()
    try:
        at = datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0), int(second or 0),
        )
    except ValueError as e:
        raise PricesDbParseError(f"Invalid datetime: {e}", line_number, line) from e

    try:
        rate = Commodity.from_string(rate_text)
    except CommodityParseError as e:
        raise PricesDbParseError(
            f"Unparseable price {rate_text!r}", line_number, line
        ) from e

    return PriceObservation(
        at=at,
        from_code=get_currency_registry().alphabetic_code_for(from_code),
        to_code=rate.alphabetic_code,
        rate=rate,
    )


def parse_prices_db(text: str) -> list[PriceObservation]:
    """
    Parse the contents of a price database, in file order.

    Raises:
        PricesDbParseError: On the first malformed line
    """
    observations = []

    for line_number, raw in enumerate((text or '').splitlines(), start=1):
        stripped = raw.strip()
        if not stripped or stripped.startswith(COMMENT_LINE_PREFIXES):
            continue

        line = TRAILING_COMMENT.sub('', raw).strip()
        observations.append(parse_price_line(line, line_number))

    return observations
