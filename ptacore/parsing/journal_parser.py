"""
Journal Parser

Line-oriented parser for PTA journal text:

    2016/09/25 ACME Costume ; Halloween:
      Expenses:Entertainment     $45.99   ; item: wig
      Liabilities:CreditCard

Grammar:
- A non-indented line opens a posting: "YYYY-MM-DD Description" (or with '/').
- An indented line is a transfer: account, then two or more spaces (or a tab)
  and an amount. The amount is optional (the balancing leg).
- A blank line closes the open posting.
- Anything after ';' is a comment. Tags in a comment attach to the posting
  until its first transfer is seen, then to the most recent transfer.

Comment tag forms:
    ; key: value, other: value   key/value tags
    ; :a:b:c:                    three presence tags
    ; key:                       one presence tag
    ; flag                       one presence tag (single word)
    ; on sale today item:candy   free text is ignored, item: candy is kept

DESIGN DECISION: Every failure is a JournalParseError carrying the 1-based
line number and the offending line. Commodity and tag errors are re-raised
as JournalParseError with the original as __cause__.
"""

import datetime
import re
from typing import Optional

from ptacore.diagnostics import get_logger
from ptacore.models.commodity import COMMODITY_MATCH, Commodity
from ptacore.models.complex_commodity import ComplexCommodity
from ptacore.models.errors import (
    CommodityParseError,
    ComplexCommodityError,
    JournalParseError,
    TagParseError,
)
from ptacore.models.journal import UNESCAPED_SEMICOLON, Amount, Journal, Posting, Tag


COMMENT_SPLIT = re.compile(r'\A(.*?)[ \t]*(?<!\\);[ \t]*(.*)\Z')
HEADER_MATCH = re.compile(r'\A(\d{4})[/-](\d{1,2})[/-](\d{1,2})[ \t]+(.+?)[ \t]*\Z')
TRANSFER_MATCH = re.compile(r'\A(.+?)(?:(?:[ ]{2,}|\t)[ \t]*(\S.*?))?[ \t]*\Z')

TAG_DECLARATION = re.compile(r'(?:[^ ,]+:[ ]*[^,]*|:[^ \t]+:)')
MULTI_TAG_MATCH = re.compile(r'\A:?(.+):\Z')
BARE_WORD_MATCH = re.compile(r'\A[^\s:,]+\Z')


def parse_amount(text: str) -> Amount:
    """
    Read a transfer amount: a plain commodity, else a cost expression.

    Raises:
        ComplexCommodityError: Neither form parses
    """
    try:
        return Commodity.from_string(text)
    except CommodityParseError:
        return ComplexCommodity.from_string(text)


def scan_tags(comment: str) -> list[Tag]:
    """
    Extract tags from the text of a comment.

    Raises:
        TagParseError: A declaration that looks like a tag but is malformed
    """
    tags: list[Tag] = []

    for segment in comment.split(','):
        segment = segment.strip()
        if not segment:
            continue

        if ':' in segment:
            declarations = TAG_DECLARATION.findall(segment)
            if not declarations and segment.startswith(':'):
                raise TagParseError("Unterminated tag declaration", source=segment)

            for declaration in declarations:
                declaration = declaration.strip()
                match = MULTI_TAG_MATCH.match(declaration)
                if match:
                    tags.extend(
                        Tag(key=key.strip())
                        for key in match.group(1).split(':')
                        if key.strip()
                    )
                else:
                    tags.append(Tag.from_string(declaration))
        elif BARE_WORD_MATCH.match(segment):
            tags.append(Tag(key=segment))

    return tags


class JournalParser:
    """
    Parses journal text into a Journal.

    One instance can parse many texts; state is reset per call.
    """

    def __init__(self):
        self._logger = get_logger(__name__)
        self._postings: list[Posting] = []
        self._posting: Optional[Posting] = None

    def parse(self, text: str) -> Journal:
        """
        Parse a whole journal.

        Raises:
            JournalParseError: On the first malformed line
        """
        self._postings = []
        self._posting = None

        lines = (text or '').splitlines()
        line_number = 0
        line = ''

        try:
            for line_number, line in enumerate(lines, start=1):
                self._parse_line(line, line_number)

            if self._posting is not None:
                self._close_posting(line_number, line)
        except JournalParseError as e:
            self._logger.warning(
                "journal_parse_failed",
                line_number=e.line_number,
                error=e.message,
            )
            raise

        self._logger.debug(
            "journal_parsed",
            postings=len(self._postings),
            lines=len(lines),
        )
        return Journal(postings=self._postings)

    # -------------------------------------------------------------------------
    # Line handling
    # -------------------------------------------------------------------------

    def _parse_line(self, line: str, line_number: int) -> None:
        if len(UNESCAPED_SEMICOLON.findall(line)) > 1:
            raise JournalParseError(
                "Too many semicolons. Are these comments?", line_number, line
            )

        content, comment = line, None
        match = COMMENT_SPLIT.match(line)
        if match:
            content, comment = match.group(1), match.group(2)

        if not content.strip():
            if comment is None and self._posting is not None:
                self._close_posting(line_number, line)
        elif not content[0].isspace():
            self._open_posting(content, line_number, line)
        else:
            self._append_transfer(content.strip(), line_number, line)

        if comment is not None and self._posting is not None:
            try:
                for tag in scan_tags(comment):
                    self._posting.append_tag(tag)
            except TagParseError as e:
                raise JournalParseError(
                    f"Invalid tag: {e.message}", line_number, line
                ) from e

    def _open_posting(self, content: str, line_number: int, line: str) -> None:
        if self._posting is not None:
            raise JournalParseError(
                "Missing a blank line before posting header", line_number, line
            )

        match = HEADER_MATCH.match(content)
        if match is None:
            raise JournalParseError("Unrecognized posting header", line_number, line)

        year, month, day, description = match.groups()
        try:
            posting_date = datetime.date(int(year), int(month), int(day))
        except ValueError as e:
            raise JournalParseError(
                f"Invalid posting date: {e}", line_number, line
            ) from e

        self._posting = Posting(
            line_number=line_number,
            date=posting_date,
            description=description,
        )

    def _append_transfer(self, content: str, line_number: int, line: str) -> None:
        if self._posting is None:
            raise JournalParseError("Transfer outside of a posting", line_number, line)

        match = TRANSFER_MATCH.match(content)
        if match is None:
            raise JournalParseError("Unparseable transfer", line_number, line)

        account, amount_text = match.groups()
        amount = None
        if amount_text:
            try:
                amount = parse_amount(amount_text)
            except ComplexCommodityError as e:
                raise JournalParseError(
                    f"Unparseable commodity in transfer: {e.message}",
                    line_number,
                    line,
                ) from e
        elif COMMODITY_MATCH.match(account):
            raise JournalParseError("Transfer is missing an account", line_number, line)

        self._posting.append_transfer(account, amount)

    def _close_posting(self, line_number: int, line: str) -> None:
        if not self._posting.is_valid():
            raise JournalParseError(
                "Invalid posting: no transfer carries an amount", line_number, line
            )
        self._postings.append(self._posting)
        self._posting = None


def parse_journal(text: str) -> Journal:
    """Parse journal text with a fresh JournalParser."""
    return JournalParser().parse(text)
