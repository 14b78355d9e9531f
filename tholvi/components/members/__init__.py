"""
Members component - admin user management, member profile and dashboard stats.
"""

from .component import (
    conversion_rate,
    filter_users,
    run,
    run_list_users,
    run_set_banned,
    run_set_telegram_access,
    run_set_tier,
    run_stats,
    run_update_profile,
)
from .models import (
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
from .ports import PaymentCountPort, UserDirectoryPort

__all__ = [
    # Functions
    "conversion_rate",
    "filter_users",
    # Entry points
    "run",
    "run_list_users",
    "run_set_banned",
    "run_set_telegram_access",
    "run_set_tier",
    "run_stats",
    "run_update_profile",
    # Input models
    "ListUsersInput",
    "SetBannedInput",
    "SetTelegramAccessInput",
    "SetTierInput",
    "StatsInput",
    "UpdateProfileInput",
    # Output models
    "MemberStats",
    "StatsOutput",
    "UserListOutput",
    "UserOutput",
    # Ports
    "PaymentCountPort",
    "UserDirectoryPort",
]
