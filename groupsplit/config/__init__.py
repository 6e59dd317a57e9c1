"""Configuration package."""

from groupsplit.config.settings import (
    AppSettings,
    SettlementSettings,
    Settings,
    StoreSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "SettlementSettings",
    "Settings",
    "StoreSettings",
    "get_settings",
    "validate_all_settings",
]
