"""
Error hierarchy for ptacore.

Every failure in the core is one of these, raised synchronously to the
caller. Nothing here is retried or recovered locally.
"""

from typing import Optional


class PtaError(Exception):
    """Base exception for all ptacore errors."""
    pass


class ParseError(PtaError):
    """
    Malformed text: journal, commodity, tag or price database.

    Carries the 1-based source line number when the text came from a
    line-oriented file.
    """

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        source: Optional[str] = None,
    ):
        self.message = message
        self.line_number = line_number
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        if self.source is None:
            return f"{self.message} (line {self.line_number})"
        return f"{self.message} (line {self.line_number}: {self.source!r})"


class CommodityParseError(ParseError):
    """A string couldn't be read as a commodity."""
    pass


class ComplexCommodityError(ParseError):
    """A complex commodity is missing an operand, or repeats a component."""
    pass


class TagParseError(ParseError):
    """A tag declaration is empty or unterminated."""
    pass


class JournalParseError(ParseError):
    """A journal line couldn't be parsed. Always has a line number."""
    pass


class PricesDbParseError(ParseError):
    """A price database line couldn't be parsed."""
    pass


class CommodityMismatchError(PtaError):
    """Arithmetic or ordering was attempted across two different codes."""

    def __init__(self, left_code: Optional[str], right_code: Optional[str]):
        self.left_code = left_code
        self.right_code = right_code
        super().__init__(
            f"Commodity code mismatch: {left_code!r} vs {right_code!r}"
        )
