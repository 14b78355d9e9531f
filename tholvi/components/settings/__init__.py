"""
Settings component - Binance payment details and Telegram links.
"""

from .component import DEFAULT_RULES, get_default_settings, run, run_get, run_update
from .models import (
    GetSettingsInput,
    GetSettingsOutput,
    UpdateSettingsInput,
    UpdateSettingsOutput,
    ValidationRule,
)
from .ports import SettingsRepoPort, TimePort

__all__ = [
    # Component entry points
    "run",
    "run_get",
    "run_update",
    # Models
    "GetSettingsInput",
    "GetSettingsOutput",
    "UpdateSettingsInput",
    "UpdateSettingsOutput",
    "ValidationRule",
    # Ports
    "SettingsRepoPort",
    "TimePort",
    # Functions
    "get_default_settings",
    # Constants
    "DEFAULT_RULES",
]
