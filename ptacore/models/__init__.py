"""
Data Models Package

Pydantic value types for the journal: currencies, commodities, cost
expressions, tags, transfers, postings and price observations, plus the
error hierarchy every parser and operation raises from.
"""

from ptacore.models.errors import (
    CommodityMismatchError,
    CommodityParseError,
    ComplexCommodityError,
    JournalParseError,
    ParseError,
    PricesDbParseError,
    PtaError,
    TagParseError,
)
from ptacore.models.currency import (
    Currency,
    CurrencyRegistry,
    build_default_registry,
    from_code_or_symbol,
    get_currency_registry,
)
from ptacore.models.commodity import Commodity
from ptacore.models.complex_commodity import ComplexCommodity, PriceOperation
from ptacore.models.journal import Journal, Posting, Tag, Transfer
from ptacore.models.price import PriceObservation, to_timestamp

__all__ = [
    # Errors
    "CommodityMismatchError",
    "CommodityParseError",
    "ComplexCommodityError",
    "JournalParseError",
    "ParseError",
    "PricesDbParseError",
    "PtaError",
    "TagParseError",
    # Currency registry
    "Currency",
    "CurrencyRegistry",
    "build_default_registry",
    "from_code_or_symbol",
    "get_currency_registry",
    # Amounts
    "Commodity",
    "ComplexCommodity",
    "PriceOperation",
    # Journal
    "Journal",
    "Posting",
    "Tag",
    "Transfer",
    # Prices
    "PriceObservation",
    "to_timestamp",
]
