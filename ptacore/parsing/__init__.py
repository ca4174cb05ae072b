"""Text parsers: journals and price databases."""

from ptacore.parsing.journal_parser import (
    JournalParser,
    parse_amount,
    parse_journal,
    scan_tags,
)
from ptacore.parsing.prices_db import parse_price_line, parse_prices_db

__all__ = [
    "JournalParser",
    "parse_amount",
    "parse_journal",
    "scan_tags",
    "parse_price_line",
    "parse_prices_db",
]
