"""
Price observations - "one unit of `from_code` was worth `rate` at `at`".

Written in price databases as:
    P 2020-01-01 EUR $ 1.10
    P 2004/06/21 02:18:01 FEQTX $22.49
"""

from datetime import date, datetime, time, timezone
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ptacore.models.commodity import Commodity


Timestamp = Union[datetime, date, str]


def to_timestamp(at: Timestamp) -> datetime:
    """
    Normalize a point in time for price lookups.

    Dates become midnight. Aware datetimes become naive UTC. Strings are read
    with datetime.fromisoformat ("2004-06-21", "2004-06-21 12:00:00").

    Raises:
        ValueError: Unreadable string
        TypeError: Anything else
    """
    if isinstance(at, str):
        at = datetime.fromisoformat(at.strip().replace('/', '-'))

    if isinstance(at, datetime):
        if at.tzinfo is not None:
            return at.astimezone(timezone.utc).replace(tzinfo=None)
        return at

    if isinstance(at, date):
        return datetime.combine(at, time())

    raise TypeError(f"Expected a datetime, date or ISO string, got {type(at).__name__}")


class PriceObservation(BaseModel):
    """A single exchange rate, keyed by alphabetic codes."""
    model_config = ConfigDict(frozen=True)

    at: datetime
    from_code: str = Field(..., min_length=1, description="Alphabetic code priced")
    to_code: str = Field(..., min_length=1, description="Alphabetic code of the rate")
    rate: Commodity = Field(..., description="Value of one unit of from_code")

    @field_validator('at', mode='before')
    @classmethod
    def normalize_at(cls, v):
        return to_timestamp(v)

    @property
    def key(self) -> tuple[str, str]:
        return (self.from_code, self.to_code)

    def to_s(self) -> str:
        """Render as a price database line."""
        if self.at.time() == time():
            when = self.at.date().isoformat()
        else:
            when = self.at.strftime('%Y-%m-%d %H:%M:%S')
        return f"P {when} {self.from_code} {self.rate.to_s()}"

    def __str__(self) -> str:
        return self.to_s()
