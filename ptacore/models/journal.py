"""
Journal Models

The abstract syntax of a PTA journal:

    2021-10-02 Heroes R Us
      ; Vacation: Seattle
      Expenses:Comics    $ 5.00
      ; Publisher: Marvel
      Cash

A Journal is an ordered list of Postings. A Posting is one dated entry with
transfers (account legs). Tags hang off either the posting or a transfer.

DESIGN DECISION: Postings and transfers are mutable builders (the parser
appends to them line by line), while the amounts they carry are immutable
Commodity values. Equality of postings is structural and ignores the source
line number, so a journal equals its own re-parsed serialization.
"""

import datetime
import re
from bisect import insort
from typing import Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ptacore.config import get_settings
from ptacore.models.commodity import Commodity
from ptacore.models.complex_commodity import ComplexCommodity
from ptacore.models.errors import TagParseError


Amount = Union[Commodity, ComplexCommodity]

# A bare ";" starts a comment, an escaped "\;" is literal text
UNESCAPED_SEMICOLON = re.compile(r'(?<!\\);')


# =============================================================================
# TAG
# =============================================================================

class Tag(BaseModel):
    """
    A `key: value` tag, or a presence-only `key` tag (value is True).
    """
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    value: Union[str, bool] = True

    @field_validator('key', 'value')
    @classmethod
    def validate_writable(cls, v):
        """Reject text that would read back as a different tag list."""
        if isinstance(v, str) and (',' in v or UNESCAPED_SEMICOLON.search(v)):
            raise ValueError(f"Tag text {v!r} contains ',' or an unescaped ';'")
        return v

    @property
    def is_presence(self) -> bool:
        return self.value is True

    @classmethod
    def from_string(cls, string: str) -> 'Tag':
        """
        Parse a single tag declaration.

        "intention: Personal" -> Tag(key="intention", value="Personal")
        "flag"                -> Tag(key="flag", value=True)

        Raises:
            TagParseError: Empty key, unterminated ":tag" declaration, a
                           key containing whitespace, or a ',' or bare ';'
        """
        text = (string or '').strip()
        if not text:
            raise TagParseError("Empty tag declaration", source=string)
        if text.startswith(':'):
            raise TagParseError("Unterminated tag declaration", source=string)

        key, separator, value = text.partition(':')
        key, value = key.strip(), value.strip()

        if not key:
            raise TagParseError("Tag is missing a key", source=string)
        if any(c.isspace() for c in key):
            raise TagParseError(f"Tag key {key!r} contains whitespace", source=string)

        if ',' in text or UNESCAPED_SEMICOLON.search(text):
            raise TagParseError("Tag contains ',' or an unescaped ';'", source=string)

        if not separator or not value:
            return cls(key=key)
        return cls(key=key, value=value)

    @classmethod
    def list_from_string(cls, string: str) -> list['Tag']:
        """Parse a comma-separated list: "key: value, flag" -> two tags."""
        return [cls.from_string(part) for part in (string or '').split(',')]

    def __str__(self) -> str:
        if self.value is True:
            return self.key
        return f"{self.key}: {self.value}"


# =============================================================================
# TRANSFER
# =============================================================================

class Transfer(BaseModel):
    """One account leg of a posting. A missing commodity is the balancing leg."""

    account: str = Field(..., min_length=1)
    commodity: Optional[Amount] = None
    tags: list[Tag] = Field(default_factory=list)

    @property
    def has_amount(self) -> bool:
        return self.commodity is not None

    @property
    def complex_commodity(self) -> Optional[ComplexCommodity]:
        """The amount, if it is a cost expression."""
        if isinstance(self.commodity, ComplexCommodity):
            return self.commodity
        return None


# =============================================================================
# POSTING
# =============================================================================

class Posting(BaseModel):
    """
    A dated journal entry with its transfers.

    Tags on the posting apply to every transfer; see effective_tags().
    """

    line_number: Optional[int] = Field(
        default=None,
        ge=1,
        description="1-based line of the header in the parsed source"
    )
    date: datetime.date
    description: str
    tags: list[Tag] = Field(default_factory=list)
    transfers: list[Transfer] = Field(default_factory=list)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        """The header must stay one line with no comment in it."""
        if '\n' in v or '\r' in v:
            raise ValueError("Description must be a single line")
        if UNESCAPED_SEMICOLON.search(v):
            raise ValueError(f"Description {v!r} contains an unescaped ';'")
        return v

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Posting):
            return NotImplemented
        return (
            self.date == other.date
            and self.description == other.description
            and self.tags == other.tags
            and self.transfers == other.transfers
        )

    def is_valid(self) -> bool:
        """A posting needs a date, a description and at least one amount."""
        return bool(
            self.date
            and self.description
            and any(transfer.has_amount for transfer in self.transfers)
        )

    def effective_tags(self, transfer: Transfer) -> list[Tag]:
        """Posting tags followed by the transfer's own tags."""
        return list(self.tags) + list(transfer.tags)

    # -------------------------------------------------------------------------
    # Builders (used by the parser)
    # -------------------------------------------------------------------------

    def append_transfer(
        self,
        account: str,
        commodity: Optional[Amount] = None,
        tags: Optional[list[Tag]] = None,
    ) -> Transfer:
        transfer = Transfer(account=account, commodity=commodity, tags=tags or [])
        self.transfers.append(transfer)
        return transfer

    def append_tag(self, tag: Union[Tag, str]) -> None:
        """Attach to the last transfer, or to the posting if there are none yet."""
        if isinstance(tag, str):
            tag = Tag.from_string(tag)

        if self.transfers:
            self.transfers[-1].tags.append(tag)
        else:
            self.tags.append(tag)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_ledger(self) -> str:
        """
        Render this posting as journal text (no trailing newline).

        Amounts line up in one column: the account column is as wide as the
        longest account that carries an amount.
        """
        settings = get_settings().journal
        indent = ' ' * settings.indent
        gap = ' ' * settings.amount_gap

        account_width = max(
            (len(t.account) for t in self.transfers if t.has_amount),
            default=0,
        )

        lines = [f"{self.date.isoformat()} {self.description}"]
        if self.tags:
            lines.append(indent + '; ' + ', '.join(str(tag) for tag in self.tags))

        for transfer in self.transfers:
            if transfer.has_amount:
                lines.append(
                    indent + transfer.account.ljust(account_width) + gap
                    + transfer.commodity.to_s()
                )
            else:
                lines.append(indent + transfer.account)
            lines.extend(indent + '; ' + str(tag) for tag in transfer.tags)

        return '\n'.join(lines)


# =============================================================================
# JOURNAL
# =============================================================================

class Journal(BaseModel):
    """Postings in date order; postings on the same date keep insertion order."""

    postings: list[Posting] = Field(default_factory=list)

    @model_validator(mode='after')
    def sort_postings(self) -> 'Journal':
        # sorted() is stable
        self.postings[:] = sorted(self.postings, key=lambda posting: posting.date)
        return self

    @classmethod
    def parse(cls, text: str) -> 'Journal':
        """Parse journal text. See ptacore.parsing.journal_parser."""
        from ptacore.parsing.journal_parser import parse_journal

        return parse_journal(text)

    def add(self, posting: Posting) -> None:
        """Insert after every posting dated on or before this one."""
        insort(self.postings, posting, key=lambda p: p.date)

    def __len__(self) -> int:
        return len(self.postings)

    def __iter__(self) -> Iterator[Posting]:
        return iter(self.postings)

    def __getitem__(self, index: int) -> Posting:
        return self.postings[index]

    def to_s(self) -> str:
        """Postings separated by a blank line, with a trailing newline."""
        if not self.postings:
            return ''
        return '\n\n'.join(posting.to_ledger() for posting in self.postings) + '\n'

    def __str__(self) -> str:
        return self.to_s()
