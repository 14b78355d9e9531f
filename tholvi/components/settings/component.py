"""
Settings component - payment and community links shown to members.

A single settings row. Reads fall back to empty defaults when nothing
has been saved yet; writes are admin-only and validated field by field.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from pydantic import ValidationError as PydanticValidationError

from tholvi.domain.entities import SiteSettings
from tholvi.domain.errors import (
    DependencyFailure,
    DomainError,
    dependency_error,
    forbidden,
    unauthorized,
    validation_error,
)

from .models import (
    GetSettingsInput,
    GetSettingsOutput,
    UpdateSettingsInput,
    UpdateSettingsOutput,
    ValidationRule,
)
from .ports import SettingsRepoPort, TimePort

logger = logging.getLogger(__name__)

DEFAULT_RULES = [
    ValidationRule(field_name="binance_id", max_length=100),
    ValidationRule(field_name="binance_qr_url", max_length=2000, is_url=True),
    ValidationRule(field_name="telegram_bot_link", max_length=2000, is_url=True),
    ValidationRule(field_name="telegram_channel_link", max_length=2000, is_url=True),
]

EDITABLE_FIELDS = frozenset(r.field_name for r in DEFAULT_RULES)


def get_default_settings() -> SiteSettings:
    return SiteSettings()


def _validate_url(value: str) -> bool:
    if not value:
        return True
    result = urlparse(value)
    return result.scheme in ("http", "https") and bool(result.netloc)


def _validate_settings(
    settings: SiteSettings, rules: list[ValidationRule]
) -> list[DomainError]:
    errors: list[DomainError] = []

    for rule in rules:
        value = getattr(settings, rule.field_name, "")
        if not value:
            continue

        if rule.max_length is not None and len(value) > rule.max_length:
            errors.append(
                validation_error(
                    "max_length",
                    f"Field '{rule.field_name}' must not exceed {rule.max_length} characters",
                    rule.field_name,
                )
            )

        if rule.is_url and not _validate_url(value):
            errors.append(
                validation_error(
                    "invalid_url",
                    f"Field '{rule.field_name}' must be a valid http or https URL",
                    rule.field_name,
                )
            )

    return errors


def _parse_pydantic_errors(exc: PydanticValidationError) -> list[DomainError]:
    errors: list[DomainError] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field = ".".join(str(part) for part in loc) if loc else "_schema"
        errors.append(
            validation_error("invalid_value", f"Field '{field}': {error.get('msg')}", field)
        )
    return errors


# --- Component Entry Points ---


def run_get(inp: GetSettingsInput, *, repo: SettingsRepoPort) -> GetSettingsOutput:
    """
    Current settings, or defaults if none saved.

    A store failure also yields defaults, flagged with the error.
    """
    try:
        settings = repo.get()
    except DependencyFailure as e:
        logger.error("Reading site settings failed: %s", e)
        return GetSettingsOutput(
            settings=get_default_settings(), success=False, error=dependency_error(e)
        )
    return GetSettingsOutput(settings=settings or get_default_settings())


def run_update(
    inp: UpdateSettingsInput,
    *,
    repo: SettingsRepoPort,
    time: TimePort,
    rules: list[ValidationRule] | None = None,
) -> UpdateSettingsOutput:
    if inp.actor is None:
        return UpdateSettingsOutput(errors=(unauthorized(),))
    if inp.actor.banned or not inp.actor.is_admin:
        return UpdateSettingsOutput(errors=(forbidden("Admin access required"),))

    if rules is None:
        rules = DEFAULT_RULES

    unknown = sorted(set(inp.updates) - EDITABLE_FIELDS)
    if unknown:
        return UpdateSettingsOutput(
            errors=tuple(
                validation_error("unknown_field", f"Field '{name}' cannot be set", name)
                for name in unknown
            )
        )

    try:
        current = repo.get() or get_default_settings()
    except DependencyFailure as e:
        logger.error("Reading site settings failed: %s", e)
        return UpdateSettingsOutput(errors=(dependency_error(e),))

    updated = current.model_dump()
    for key, value in inp.updates.items():
        updated[key] = value.strip() if isinstance(value, str) else value
    updated["updated_at"] = time.now_utc()

    try:
        new_settings = SiteSettings.model_validate(updated)
    except PydanticValidationError as e:
        return UpdateSettingsOutput(settings=current, errors=tuple(_parse_pydantic_errors(e)))

    errors = _validate_settings(new_settings, rules)
    if errors:
        return UpdateSettingsOutput(settings=current, errors=tuple(errors))

    try:
        saved = repo.save(new_settings)
    except DependencyFailure as e:
        logger.error("Saving site settings failed: %s", e)
        return UpdateSettingsOutput(settings=current, errors=(dependency_error(e),))

    logger.info("Site settings updated by %s: %s", inp.actor.id, ", ".join(sorted(inp.updates)))
    return UpdateSettingsOutput(settings=saved, success=True)


def run(
    inp: GetSettingsInput | UpdateSettingsInput,
    *,
    repo: SettingsRepoPort,
    time: TimePort | None = None,
    rules: list[ValidationRule] | None = None,
) -> GetSettingsOutput | UpdateSettingsOutput:
    if isinstance(inp, GetSettingsInput):
        return run_get(inp, repo=repo)
    elif isinstance(inp, UpdateSettingsInput):
        assert time
        return run_update(inp, repo=repo, time=time, rules=rules)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
