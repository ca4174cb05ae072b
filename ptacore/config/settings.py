"""
Configuration Management for ptacore

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunables of the core live here. Nothing in the models or
the pricer reads the environment directly; they ask get_settings().
"""

from functools import cached_property, lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CommoditySettings(BaseSettings):
    """Commodity arithmetic and currency registry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PTA_COMMODITY_",
        extra="ignore"
    )

    default_minor_unit: int = Field(
        default=2,
        ge=0,
        le=18,
        description="Precision given to codes the currency registry doesn't know"
    )
    max_decimal_digits: int = Field(
        default=17,
        ge=1,
        le=28,
        description="Fractional digits kept by scalar multiplication and division"
    )


class JournalSettings(BaseSettings):
    """Journal serializer layout."""

    model_config = SettingsConfigDict(
        env_prefix="PTA_JOURNAL_",
        extra="ignore"
    )

    indent: int = Field(
        default=2,
        ge=1,
        le=16,
        description="Leading spaces on transfer and tag lines"
    )
    # The parser splits account from amount on two or more spaces
    amount_gap: int = Field(
        default=4,
        ge=2,
        le=32,
        description="Spaces between the padded account column and the amount"
    )


class PricerSettings(BaseSettings):
    """Pricer lookup behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="PTA_PRICER_",
        extra="ignore"
    )

    bidirectional: bool = Field(
        default=False,
        description="Answer B->A lookups with the reciprocal of A->B observations"
    )
    bypass_zero_quantity: bool = Field(
        default=True,
        description="Convert zero amounts without looking up a rate"
    )


class LoggingSettings(BaseSettings):
    """structlog output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PTA_LOG_",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum stdlib log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render JSON lines (False renders for a console)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Only accept stdlib level names."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return v.upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded on first access, then kept for the life of
    # this Settings instance

    @cached_property
    def commodity(self) -> CommoditySettings:
        return CommoditySettings()

    @cached_property
    def journal(self) -> JournalSettings:
        return JournalSettings()

    @cached_property
    def pricer(self) -> PricerSettings:
        return PricerSettings()

    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get ptacore settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    {setting_name}_error entry for each failure.
    """
    results = {}

    settings = get_settings()

    for name in ("commodity", "journal", "pricer", "logging"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
