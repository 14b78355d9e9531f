"""
Payments component.

Manual payment requests and their one-time review by an admin.
"""

from .component import (
    load_config_from_rules,
    run,
    run_approve,
    run_list_for_admin,
    run_list_for_user,
    run_reconcile_tiers,
    run_reject,
    run_submit,
)
from .models import (
    AdminPaymentListOutput,
    ApprovePaymentInput,
    ListAdminPaymentsInput,
    ListUserPaymentsInput,
    PaymentConfig,
    PaymentListOutput,
    PaymentOutput,
    ReconcileTiersInput,
    ReconcileTiersOutput,
    RejectPaymentInput,
    StatusFilter,
    SubmitPaymentInput,
    TierDrift,
)
from .ports import NotifierPort, PaymentStorePort, TimePort, UserDirectoryPort

__all__ = [
    # Entry points
    "run",
    "run_approve",
    "run_list_for_admin",
    "run_list_for_user",
    "run_reconcile_tiers",
    "run_reject",
    "run_submit",
    # Configuration
    "PaymentConfig",
    "load_config_from_rules",
    # Input models
    "ApprovePaymentInput",
    "ListAdminPaymentsInput",
    "ListUserPaymentsInput",
    "ReconcileTiersInput",
    "RejectPaymentInput",
    "StatusFilter",
    "SubmitPaymentInput",
    # Output models
    "AdminPaymentListOutput",
    "PaymentListOutput",
    "PaymentOutput",
    "ReconcileTiersOutput",
    "TierDrift",
    # Ports
    "NotifierPort",
    "PaymentStorePort",
    "TimePort",
    "UserDirectoryPort",
]
