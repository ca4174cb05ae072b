"""
Currency Registry

A static lookup from ISO-4217 alphabetic codes and display symbols to the
metadata a commodity needs: which code it normalizes to, and how many
decimal places (the minor unit) it is conventionally written with.

DESIGN DECISION: Lookups never fail. A code that isn't in the table (a stock
ticker, "FLORIDAHOME", "crab apples") gets a synthetic Currency with the
configured default minor unit and registered=False.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from ptacore.config import get_settings

if TYPE_CHECKING:
    from ptacore.models.commodity import Commodity


class Currency(BaseModel):
    """An entry in the currency table."""
    model_config = ConfigDict(frozen=True)

    alphabetic_code: str = Field(
        ...,
        min_length=1,
        description="Three letter ISO code (USD), or the raw code for synthetic entries"
    )
    symbol: Optional[str] = Field(
        default=None,
        description="Display symbol ($). Symbols are written before the amount"
    )
    minor_unit: int = Field(
        ...,
        ge=0,
        description="Decimal places conventionally used for this currency"
    )
    entity: Optional[str] = None
    currency: Optional[str] = None
    numeric_code: Optional[int] = None
    registered: bool = Field(
        default=True,
        description="False for fallbacks built for unknown codes"
    )

    def to_commodity(self, quantity) -> "Commodity":
        """Create a commodity in this currency, written with its symbol if it has one."""
        from ptacore.models.commodity import Commodity

        return Commodity.from_symbol_and_amount(
            self.symbol or self.alphabetic_code, quantity
        )


# =============================================================================
# ISO-4217 TABLE
# (entity, currency, alphabetic code, numeric code, minor unit, symbol)
# =============================================================================

ISO_4217_CURRENCIES: tuple[tuple[str, str, str, int, int, Optional[str]], ...] = (
    ("UNITED STATES", "US Dollar", "USD", 840, 2, "$"),
    ("EUROPEAN UNION", "Euro", "EUR", 978, 2, "€"),
    ("UNITED KINGDOM", "Pound Sterling", "GBP", 826, 2, "£"),
    ("JAPAN", "Yen", "JPY", 392, 0, "¥"),
    ("INDIA", "Indian Rupee", "INR", 356, 2, "₹"),
    ("KOREA (THE REPUBLIC OF)", "Won", "KRW", 410, 0, "₩"),
    ("CHINA", "Yuan Renminbi", "CNY", 156, 2, None),
    ("CANADA", "Canadian Dollar", "CAD", 124, 2, None),
    ("AUSTRALIA", "Australian Dollar", "AUD", 36, 2, None),
    ("NEW ZEALAND", "New Zealand Dollar", "NZD", 554, 2, None),
    ("SWITZERLAND", "Swiss Franc", "CHF", 756, 2, None),
    ("SWEDEN", "Swedish Krona", "SEK", 752, 2, None),
    ("NORWAY", "Norwegian Krone", "NOK", 578, 2, None),
    ("DENMARK", "Danish Krone", "DKK", 208, 2, None),
    ("POLAND", "Zloty", "PLN", 985, 2, None),
    ("CZECHIA", "Czech Koruna", "CZK", 203, 2, None),
    ("HUNGARY", "Forint", "HUF", 348, 2, None),
    ("RUSSIAN FEDERATION (THE)", "Russian Ruble", "RUB", 643, 2, "₽"),
    ("UKRAINE", "Hryvnia", "UAH", 980, 2, "₴"),
    ("TURKEY", "Turkish Lira", "TRY", 949, 2, "₺"),
    ("ISRAEL", "New Israeli Sheqel", "ILS", 376, 2, "₪"),
    ("MEXICO", "Mexican Peso", "MXN", 484, 2, None),
    ("BRAZIL", "Brazilian Real", "BRL", 986, 2, None),
    ("ARGENTINA", "Argentine Peso", "ARS", 32, 2, None),
    ("CHILE", "Chilean Peso", "CLP", 152, 0, None),
    ("COLOMBIA", "Colombian Peso", "COP", 170, 2, None),
    ("PERU", "Sol", "PEN", 604, 2, None),
    ("COSTA RICA", "Costa Rican Colon", "CRC", 188, 2, "₡"),
    ("HONDURAS", "Lempira", "HNL", 340, 2, None),
    ("GUATEMALA", "Quetzal", "GTQ", 320, 2, None),
    ("NICARAGUA", "Cordoba Oro", "NIO", 558, 2, None),
    ("DOMINICAN REPUBLIC (THE)", "Dominican Peso", "DOP", 214, 2, None),
    ("SOUTH AFRICA", "Rand", "ZAR", 710, 2, None),
    ("NIGERIA", "Naira", "NGN", 566, 2, "₦"),
    ("KENYA", "Kenyan Shilling", "KES", 404, 2, None),
    ("EGYPT", "Egyptian Pound", "EGP", 818, 2, None),
    ("SAUDI ARABIA", "Saudi Riyal", "SAR", 682, 2, None),
    ("UNITED ARAB EMIRATES (THE)", "UAE Dirham", "AED", 784, 2, None),
    ("KUWAIT", "Kuwaiti Dinar", "KWD", 414, 3, None),
    ("BAHRAIN", "Bahraini Dinar", "BHD", 48, 3, None),
    ("JORDAN", "Jordanian Dinar", "JOD", 400, 3, None),
    ("SINGAPORE", "Singapore Dollar", "SGD", 702, 2, None),
    ("HONG KONG", "Hong Kong Dollar", "HKD", 344, 2, None),
    ("TAIWAN (PROVINCE OF CHINA)", "New Taiwan Dollar", "TWD", 901, 2, None),
    ("THAILAND", "Baht", "THB", 764, 2, "฿"),
    ("VIET NAM", "Dong", "VND", 704, 0, "₫"),
    ("INDONESIA", "Rupiah", "IDR", 360, 2, None),
    ("MALAYSIA", "Malaysian Ringgit", "MYR", 458, 2, None),
    ("PHILIPPINES (THE)", "Philippine Peso", "PHP", 608, 2, "₱"),
    ("PAKISTAN", "Pakistan Rupee", "PKR", 586, 2, None),
    ("BANGLADESH", "Taka", "BDT", 50, 2, "৳"),
    ("ICELAND", "Iceland Krona", "ISK", 352, 0, None),
)


# =============================================================================
# REGISTRY
# =============================================================================

class CurrencyRegistry:
    """
    Read-only lookup of currencies by alphabetic code or symbol.

    Alphabetic codes are matched first, then symbols.
    """

    def __init__(
        self,
        currencies: Iterable[Currency],
        default_minor_unit: Optional[int] = None,
    ):
        """
        Initialize registry.

        Args:
            currencies: Table entries. Later duplicates of a code or symbol
                        don't replace earlier ones.
            default_minor_unit: Precision for unknown codes. If None, uses
                               get_settings().commodity.default_minor_unit.
        """
        if default_minor_unit is None:
            default_minor_unit = get_settings().commodity.default_minor_unit

        self._default_minor_unit = default_minor_unit
        self._by_code: dict[str, Currency] = {}
        self._by_symbol: dict[str, Currency] = {}

        for currency in currencies:
            self._by_code.setdefault(currency.alphabetic_code, currency)
            if currency.symbol:
                self._by_symbol.setdefault(currency.symbol, currency)

    @property
    def default_minor_unit(self) -> int:
        return self._default_minor_unit

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, code_or_symbol: object) -> bool:
        return code_or_symbol in self._by_code or code_or_symbol in self._by_symbol

    def lookup(self, code_or_symbol: Optional[str]) -> Optional[Currency]:
        """Return the registered currency, or None if there isn't one."""
        if not code_or_symbol:
            return None
        return self._by_code.get(code_or_symbol) or self._by_symbol.get(code_or_symbol)

    def from_code_or_symbol(self, code_or_symbol: Optional[str]) -> Optional[Currency]:
        """
        Resolve a code or symbol to a Currency.

        Unknown codes get a synthetic, unregistered Currency with the
        default minor unit. Empty input returns None.
        """
        if not code_or_symbol:
            return None

        currency = self.lookup(code_or_symbol)
        if currency is not None:
            return currency

        return Currency(
            alphabetic_code=code_or_symbol,
            minor_unit=self._default_minor_unit,
            registered=False,
        )

    def is_symbol(self, code: Optional[str]) -> bool:
        """True when `code` is a registered display symbol ($, €)."""
        return bool(code) and code in self._by_symbol

    def alphabetic_code_for(self, code_or_symbol: Optional[str]) -> Optional[str]:
        """'$' -> 'USD'; unknown codes map to themselves."""
        currency = self.from_code_or_symbol(code_or_symbol)
        return currency.alphabetic_code if currency else None


def build_default_registry(default_minor_unit: Optional[int] = None) -> CurrencyRegistry:
    """Build a registry from the bundled ISO-4217 table."""
    return CurrencyRegistry(
        (
            Currency(
                entity=entity,
                currency=name,
                alphabetic_code=code,
                numeric_code=numeric,
                minor_unit=minor_unit,
                symbol=symbol,
            )
            for entity, name, code, numeric, minor_unit, symbol in ISO_4217_CURRENCIES
        ),
        default_minor_unit=default_minor_unit,
    )


@lru_cache()
def get_currency_registry() -> CurrencyRegistry:
    """
    Get the process-wide currency registry (cached).

    Call get_currency_registry.cache_clear() after changing
    PTA_COMMODITY_DEFAULT_MINOR_UNIT.
    """
    return build_default_registry()


def from_code_or_symbol(code_or_symbol: Optional[str]) -> Optional[Currency]:
    """Shortcut for get_currency_registry().from_code_or_symbol()."""
    return get_currency_registry().from_code_or_symbol(code_or_symbol)
