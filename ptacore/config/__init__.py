"""Configuration package."""

from ptacore.config.settings import (
    CommoditySettings,
    JournalSettings,
    LoggingSettings,
    PricerSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "CommoditySettings",
    "JournalSettings",
    "LoggingSettings",
    "PricerSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
