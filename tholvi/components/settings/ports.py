"""
Settings component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from tholvi.domain.entities import SiteSettings


class SettingsRepoPort(Protocol):
    """Singleton settings row."""

    def get(self) -> SiteSettings | None:
        """Current settings, or None if never saved."""
        ...

    def save(self, settings: SiteSettings) -> SiteSettings:
        """Upsert."""
        ...


class TimePort(Protocol):
    """Port for time operations."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
