"""
Members component.

Admin user management and the member's own profile edit.

Tier changes here are manual overrides: they stamp tier_changed_at so
payment reconciliation does not undo them.
"""

from __future__ import annotations

import logging
import re
from decimal import ROUND_HALF_UP, Decimal

from tholvi.components.tiers import parse_tier
from tholvi.domain.entities import UserAccount
from tholvi.domain.errors import (
    DependencyFailure,
    DomainError,
    dependency_error,
    forbidden,
    not_found,
    precondition_failed,
    unauthorized,
    validation_error,
)

from .models import (
    DISPLAY_NAME_MAX,
    ListUsersInput,
    MemberStats,
    SetBannedInput,
    SetTelegramAccessInput,
    SetTierInput,
    StatsInput,
    StatsOutput,
    UpdateProfileInput,
    UserListOutput,
    UserOutput,
)
from .ports import PaymentCountPort, TimePort, UserDirectoryPort

logger = logging.getLogger(__name__)

# Telegram usernames: 5-32 chars, letters, digits and underscores
TELEGRAM_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{5,32}$")


def _require_admin(actor: UserAccount | None) -> DomainError | None:
    if actor is None:
        return unauthorized()
    if actor.banned or not actor.is_admin:
        return forbidden("Admin access required")
    return None


def conversion_rate(total: int, paid: int) -> int:
    """Share of paying members as a whole percentage, half up. 0 with no users."""
    if total == 0:
        return 0
    ratio = Decimal(paid * 100) / Decimal(total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def filter_users(
    users: list[UserAccount], search: str = "", tier_filter: str = "all"
) -> list[UserAccount]:
    needle = search.strip().lower()
    result = []
    for user in users:
        if tier_filter != "all" and user.tier != tier_filter:
            continue
        if needle and needle not in user.display_name.lower() and needle not in user.email.lower():
            continue
        result.append(user)
    return result


# --- Entry Points ---


def run_list_users(inp: ListUsersInput, *, users: UserDirectoryPort) -> UserListOutput:
    denied = _require_admin(inp.actor)
    if denied:
        return UserListOutput(success=False, error=denied)

    try:
        everyone = users.list_all()
    except DependencyFailure as e:
        logger.error("Listing users failed: %s", e)
        return UserListOutput(success=False, error=dependency_error(e))

    matched = filter_users(everyone, inp.search, inp.tier_filter)
    return UserListOutput(users=tuple(matched), total=len(matched))


def run_set_tier(inp: SetTierInput, *, users: UserDirectoryPort, time: TimePort) -> UserOutput:
    """Manual tier change. Downgrades are allowed."""
    denied = _require_admin(inp.actor)
    if denied:
        return UserOutput(error=denied)
    assert inp.actor is not None

    try:
        tier = parse_tier(inp.tier)
    except ValueError:
        return UserOutput(error=validation_error("tier_invalid", "Unknown tier", "tier"))

    try:
        if not users.set_tier(inp.user_id, tier, time.now_utc()):
            return UserOutput(error=not_found("User"))
        user = users.get_by_id(inp.user_id)
    except DependencyFailure as e:
        logger.error("Setting tier for user %s failed: %s", inp.user_id, e)
        return UserOutput(error=dependency_error(e))

    logger.info("Admin %s set user %s tier to %s", inp.actor.id, inp.user_id, tier)
    return UserOutput(user=user, success=True)


def run_set_banned(
    inp: SetBannedInput, *, users: UserDirectoryPort, time: TimePort
) -> UserOutput:
    denied = _require_admin(inp.actor)
    if denied:
        return UserOutput(error=denied)
    assert inp.actor is not None

    if inp.banned and inp.actor.id == inp.user_id:
        logger.warning("Admin %s attempted to ban themselves", inp.actor.id)
        return UserOutput(error=precondition_failed("cannot_ban_self", "You cannot ban yourself"))

    try:
        if not users.set_banned(inp.user_id, inp.banned, time.now_utc()):
            return UserOutput(error=not_found("User"))
        user = users.get_by_id(inp.user_id)
    except DependencyFailure as e:
        logger.error("Updating ban for user %s failed: %s", inp.user_id, e)
        return UserOutput(error=dependency_error(e))

    action = "banned" if inp.banned else "unbanned"
    logger.info("User %s %s by %s", inp.user_id, action, inp.actor.id)
    return UserOutput(user=user, success=True)


def run_set_telegram_access(
    inp: SetTelegramAccessInput, *, users: UserDirectoryPort, time: TimePort
) -> UserOutput:
    denied = _require_admin(inp.actor)
    if denied:
        return UserOutput(error=denied)

    try:
        if not users.set_telegram_access(inp.user_id, inp.granted, time.now_utc()):
            return UserOutput(error=not_found("User"))
        user = users.get_by_id(inp.user_id)
    except DependencyFailure as e:
        logger.error("Updating Telegram access for user %s failed: %s", inp.user_id, e)
        return UserOutput(error=dependency_error(e))

    logger.info("Telegram access for user %s set to %s", inp.user_id, inp.granted)
    return UserOutput(user=user, success=True)


def run_update_profile(
    inp: UpdateProfileInput, *, users: UserDirectoryPort, time: TimePort
) -> UserOutput:
    if inp.actor is None:
        return UserOutput(error=unauthorized())
    if inp.actor.banned:
        return UserOutput(error=forbidden("Account is banned"))

    updates: dict[str, object] = {}

    if inp.display_name is not None:
        name = inp.display_name.strip()
        if not name:
            return UserOutput(
                error=validation_error("display_name_required", "Name is required", "display_name")
            )
        if len(name) > DISPLAY_NAME_MAX:
            return UserOutput(
                error=validation_error(
                    "display_name_too_long",
                    f"Name must be {DISPLAY_NAME_MAX} characters or less",
                    "display_name",
                )
            )
        updates["display_name"] = name

    if inp.telegram_username is not None:
        handle = inp.telegram_username.strip().lstrip("@")
        if handle and not TELEGRAM_USERNAME_RE.match(handle):
            return UserOutput(
                error=validation_error(
                    "telegram_username_invalid",
                    "Telegram username must be 5-32 letters, digits or underscores",
                    "telegram_username",
                )
            )
        updates["telegram_username"] = handle or None

    try:
        if updates and not users.update_profile(inp.actor.id, updates, time.now_utc()):
            return UserOutput(error=not_found("User"))
        saved = users.get_by_id(inp.actor.id)
        if saved is None:
            return UserOutput(error=not_found("User"))
    except DependencyFailure as e:
        logger.error("Profile update for user %s failed: %s", inp.actor.id, e)
        return UserOutput(error=dependency_error(e))

    return UserOutput(user=saved, success=True)


def run_stats(
    inp: StatsInput, *, users: UserDirectoryPort, payments: PaymentCountPort
) -> StatsOutput:
    """Admin dashboard figures."""
    denied = _require_admin(inp.actor)
    if denied:
        return StatsOutput(error=denied)

    try:
        everyone = users.list_all()
        _, pending = payments.list_payments(status="pending", limit=0)
    except DependencyFailure as e:
        logger.error("Computing admin stats failed: %s", e)
        return StatsOutput(error=dependency_error(e))

    by_tier = {"free": 0, "tier1": 0, "tier2": 0}
    for user in everyone:
        by_tier[user.tier] += 1
    total = len(everyone)

    stats = MemberStats(
        total_users=total,
        free_users=by_tier["free"],
        tier1_users=by_tier["tier1"],
        tier2_users=by_tier["tier2"],
        pending_payments=pending,
        conversion_rate=conversion_rate(total, by_tier["tier1"] + by_tier["tier2"]),
    )
    return StatsOutput(stats=stats, success=True)


def run(
    inp: ListUsersInput
    | SetTierInput
    | SetBannedInput
    | SetTelegramAccessInput
    | UpdateProfileInput
    | StatsInput,
    *,
    users: UserDirectoryPort,
    time: TimePort | None = None,
    payments: PaymentCountPort | None = None,
) -> UserListOutput | UserOutput | StatsOutput:
    if isinstance(inp, ListUsersInput):
        return run_list_users(inp, users=users)

    elif isinstance(inp, SetTierInput):
        assert time
        return run_set_tier(inp, users=users, time=time)

    elif isinstance(inp, SetBannedInput):
        assert time
        return run_set_banned(inp, users=users, time=time)

    elif isinstance(inp, SetTelegramAccessInput):
        assert time
        return run_set_telegram_access(inp, users=users, time=time)

    elif isinstance(inp, UpdateProfileInput):
        assert time
        return run_update_profile(inp, users=users, time=time)

    elif isinstance(inp, StatsInput):
        assert payments
        return run_stats(inp, users=users, payments=payments)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
