"""
Settings component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tholvi.domain.entities import SiteSettings, UserAccount
from tholvi.domain.errors import DomainError


@dataclass(frozen=True)
class GetSettingsInput:
    pass


@dataclass(frozen=True)
class GetSettingsOutput:
    settings: SiteSettings
    success: bool = True
    error: DomainError | None = None


@dataclass(frozen=True)
class UpdateSettingsInput:
    """Partial update: only keys present in updates change."""

    actor: UserAccount | None
    updates: dict[str, Any]


@dataclass(frozen=True)
class UpdateSettingsOutput:
    settings: SiteSettings | None = None
    errors: tuple[DomainError, ...] = ()
    success: bool = False


@dataclass(frozen=True)
class ValidationRule:
    field_name: str
    max_length: int | None = None
    is_url: bool = False
