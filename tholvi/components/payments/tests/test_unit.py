"""
Payments component unit tests.

Tests for submission, one-time review, tier grant and tier reconciliation.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest

from tholvi.components.payments import (
    ApprovePaymentInput,
    ListAdminPaymentsInput,
    ListUserPaymentsInput,
    PaymentConfig,
    ReconcileTiersInput,
    RejectPaymentInput,
    SubmitPaymentInput,
    run,
    run_approve,
    run_list_for_admin,
    run_list_for_user,
    run_reconcile_tiers,
    run_reject,
    run_submit,
)
from tholvi.domain.entities import PaymentRequest, UserAccount
from tholvi.domain.errors import DependencyFailure

# --- Mock Implementations ---


class MockPaymentStore:
    """In-memory payment store with a conditional status update."""

    def __init__(self) -> None:
        self._payments: dict[UUID, PaymentRequest] = {}

    def create(self, payment: PaymentRequest) -> UUID:
        self._payments[payment.id] = payment
        return payment.id

    def get_by_id(self, payment_id: UUID) -> PaymentRequest | None:
        return self._payments.get(payment_id)

    def update_status(
        self, payment_id: UUID, from_status: str, to_status: str, fields: dict[str, Any]
    ) -> bool:
        current = self._payments.get(payment_id)
        if current is None or current.status != from_status:
            return False
        self._payments[payment_id] = current.model_copy(update={"status": to_status, **fields})
        return True

    def list_payments(
        self,
        status: str | None = None,
        user_id: UUID | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[PaymentRequest], int]:
        records = list(reversed(self._payments.values()))
        if status:
            records = [p for p in records if p.status == status]
        if user_id:
            records = [p for p in records if p.user_id == user_id]
        total = len(records)
        end = None if limit is None else offset + limit
        return records[offset:end], total

    def list_approved(self) -> list[PaymentRequest]:
        return [p for p in self._payments.values() if p.status == "approved"]


class RacingPaymentStore(MockPaymentStore):
    """Another reviewer commits between our read and our conditional update."""

    def __init__(self, rival: UUID) -> None:
        super().__init__()
        self.rival = rival

    def update_status(
        self, payment_id: UUID, from_status: str, to_status: str, fields: dict[str, Any]
    ) -> bool:
        super().update_status(
            payment_id,
            "pending",
            "approved",
            {"reviewed_at": datetime(2024, 1, 1, tzinfo=UTC), "reviewed_by": self.rival},
        )
        return super().update_status(payment_id, from_status, to_status, fields)


class MockUserDirectory:
    def __init__(self) -> None:
        self._users: dict[UUID, UserAccount] = {}
        self.fail_set_tier = False

    def add(self, user: UserAccount) -> None:
        self._users[user.id] = user

    def get_by_id(self, user_id: UUID) -> UserAccount | None:
        return self._users.get(user_id)

    def set_tier(self, user_id: UUID, tier: str, changed_at: datetime) -> bool:
        if self.fail_set_tier:
            raise DependencyFailure("users table locked")
        user = self._users.get(user_id)
        if user is None:
            return False
        self._users[user_id] = user.model_copy(
            update={"tier": tier, "tier_changed_at": changed_at}
        )
        return True


class MockNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[UUID, str, str, str]] = []
        self.fail = fail

    def notify(self, user_id: UUID, title: str, message: str, type: str) -> None:
        if self.fail:
            raise DependencyFailure("notifications down")
        self.sent.append((user_id, title, message, type))


class MockTimePort:
    """Clock that advances one second per call."""

    def __init__(self) -> None:
        self._time = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        self._time += timedelta(seconds=1)
        return self._time


# --- Fixtures ---


@pytest.fixture
def payments() -> MockPaymentStore:
    return MockPaymentStore()


@pytest.fixture
def users() -> MockUserDirectory:
    return MockUserDirectory()


@pytest.fixture
def time_port() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def admin(users: MockUserDirectory) -> UserAccount:
    a = UserAccount(email="admin@example.com", display_name="Admin", role="admin")
    users.add(a)
    return a


@pytest.fixture
def member(users: MockUserDirectory) -> UserAccount:
    m = UserAccount(email="ravi@example.com", display_name="Ravi Perera")
    users.add(m)
    return m


def _submit(
    payments: MockPaymentStore,
    time_port: MockTimePort,
    member: UserAccount,
    tier: str = "tier2",
    transaction_id: str = "TX123",
    config: PaymentConfig | None = None,
) -> PaymentRequest:
    result = run_submit(
        SubmitPaymentInput(
            actor=member, user_id=member.id, tier_requested=tier, transaction_id=transaction_id
        ),
        payments=payments,
        time=time_port,
        config=config,
    )
    assert result.success is True, result.error
    assert result.payment is not None
    return result.payment


# --- Tests ---


class TestSubmit:
    def test_new_request_is_pending(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        payment = _submit(payments, time_port, member, transaction_id="  TX123  ")
        assert payment.status == "pending"
        assert payment.transaction_id == "TX123"
        assert payment.reviewed_at is None
        assert payment.reviewed_by is None
        assert payments.get_by_id(payment.id) == payment

    def test_free_tier_rejected(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        result = run_submit(
            SubmitPaymentInput(
                actor=member, user_id=member.id, tier_requested="free", transaction_id="TX1"
            ),
            payments=payments,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.code == "tier_invalid"

    def test_unknown_tier_rejected(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        result = run_submit(
            SubmitPaymentInput(
                actor=member, user_id=member.id, tier_requested="gold", transaction_id="TX1"
            ),
            payments=payments,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.kind == "validation"
        assert result.error.field == "tier_requested"

    def test_blank_transaction_id(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        result = run_submit(
            SubmitPaymentInput(
                actor=member, user_id=member.id, tier_requested="tier1", transaction_id="   "
            ),
            payments=payments,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.code == "transaction_id_required"

    def test_transaction_id_too_long(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        result = run_submit(
            SubmitPaymentInput(
                actor=member, user_id=member.id, tier_requested="tier1", transaction_id="X" * 129
            ),
            payments=payments,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.code == "transaction_id_too_long"

    def test_anonymous_and_other_user(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        anon = run_submit(
            SubmitPaymentInput(
                actor=None, user_id=member.id, tier_requested="tier1", transaction_id="TX"
            ),
            payments=payments,
            time=time_port,
        )
        assert anon.error is not None
        assert anon.error.kind == "unauthorized"

        other = UserAccount(email="o@example.com", display_name="O")
        spoof = run_submit(
            SubmitPaymentInput(
                actor=other, user_id=member.id, tier_requested="tier1", transaction_id="TX"
            ),
            payments=payments,
            time=time_port,
        )
        assert spoof.error is not None
        assert spoof.error.kind == "forbidden"

    def test_banned_member(self, payments: MockPaymentStore, time_port: MockTimePort) -> None:
        banned = UserAccount(email="b@example.com", display_name="B", banned=True)
        result = run_submit(
            SubmitPaymentInput(
                actor=banned, user_id=banned.id, tier_requested="tier1", transaction_id="TX"
            ),
            payments=payments,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.kind == "forbidden"

    def test_duplicate_pending_refused_by_default(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        _submit(payments, time_port, member)
        result = run_submit(
            SubmitPaymentInput(
                actor=member, user_id=member.id, tier_requested="tier1", transaction_id="TX2"
            ),
            payments=payments,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.kind == "precondition_failed"
        assert result.error.code == "duplicate_pending"

    def test_duplicate_pending_allowed_by_config(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        config = PaymentConfig(allow_duplicate_pending=True)
        _submit(payments, time_port, member, config=config)
        _submit(payments, time_port, member, transaction_id="TX2", config=config)
        _, total = payments.list_payments(user_id=member.id)
        assert total == 2


class TestReview:
    def test_reject_keeps_user_free(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member)
        notifier = MockNotifier()

        result = run_reject(
            RejectPaymentInput(actor=admin, payment_id=payment.id, reason="ID not found"),
            payments=payments,
            time=time_port,
            notifier=notifier,
        )
        assert result.success is True
        stored = payments.get_by_id(payment.id)
        assert stored is not None
        assert stored.status == "rejected"
        assert stored.rejection_reason == "ID not found"
        assert stored.reviewed_by == admin.id
        assert stored.reviewed_at is not None
        assert users.get_by_id(member.id).tier == "free"  # type: ignore[union-attr]
        assert "ID not found" in notifier.sent[0][2]

    def test_approve_grants_tier(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member)
        notifier = MockNotifier()

        result = run_approve(
            ApprovePaymentInput(actor=admin, payment_id=payment.id),
            payments=payments,
            users=users,
            time=time_port,
            notifier=notifier,
        )
        assert result.success is True
        assert result.payment is not None
        assert result.payment.status == "approved"
        assert result.payment.is_reviewed

        user = users.get_by_id(member.id)
        assert user is not None
        assert user.tier == "tier2"
        assert user.tier_changed_at is not None
        assert user.telegram_access is False
        assert notifier.sent[0][3] == "payment"

    def test_second_review_fails(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member, tier="tier1")
        run_approve(
            ApprovePaymentInput(actor=admin, payment_id=payment.id),
            payments=payments,
            users=users,
            time=time_port,
        )

        again = run_approve(
            ApprovePaymentInput(actor=admin, payment_id=payment.id),
            payments=payments,
            users=users,
            time=time_port,
        )
        assert again.error is not None
        assert again.error.kind == "precondition_failed"
        assert again.error.code == "already_reviewed"

        reject = run_reject(
            RejectPaymentInput(actor=admin, payment_id=payment.id, reason="late"),
            payments=payments,
            time=time_port,
        )
        assert reject.error is not None
        assert reject.error.kind == "precondition_failed"

        stored = payments.get_by_id(payment.id)
        assert stored is not None
        assert stored.status == "approved"
        assert stored.rejection_reason is None
        assert users.get_by_id(member.id).tier == "tier1"  # type: ignore[union-attr]

    def test_lost_race_is_already_reviewed(
        self,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        store = RacingPaymentStore(rival=uuid4())
        payment = _submit(store, time_port, member)

        result = run_reject(
            RejectPaymentInput(actor=admin, payment_id=payment.id, reason="dup"),
            payments=store,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.code == "already_reviewed"
        stored = store.get_by_id(payment.id)
        assert stored is not None
        assert stored.status == "approved"
        assert stored.reviewed_by == store.rival

    def test_member_cannot_review(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member)
        result = run_approve(
            ApprovePaymentInput(actor=member, payment_id=payment.id),
            payments=payments,
            users=users,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.kind == "forbidden"
        assert payments.get_by_id(payment.id).status == "pending"  # type: ignore[union-attr]

    def test_reject_requires_reason(
        self,
        payments: MockPaymentStore,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member)
        result = run_reject(
            RejectPaymentInput(actor=admin, payment_id=payment.id, reason="  "),
            payments=payments,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.code == "reason_required"
        assert payments.get_by_id(payment.id).status == "pending"  # type: ignore[union-attr]

    def test_unknown_payment(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
    ) -> None:
        result = run_approve(
            ApprovePaymentInput(actor=admin, payment_id=uuid4()),
            payments=payments,
            users=users,
            time=time_port,
        )
        assert result.error is not None
        assert result.error.code == "payment_not_found"

    def test_tier_grant_failure_leaves_payment_approved(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member)
        users.fail_set_tier = True

        result = run_approve(
            ApprovePaymentInput(actor=admin, payment_id=payment.id),
            payments=payments,
            users=users,
            time=time_port,
        )
        assert result.success is False
        assert result.error is not None
        assert result.error.kind == "dependency"
        assert result.error.code == "tier_grant_pending_reconcile"
        assert payments.get_by_id(payment.id).status == "approved"  # type: ignore[union-attr]
        assert users.get_by_id(member.id).tier == "free"  # type: ignore[union-attr]

        users.fail_set_tier = False
        report = run_reconcile_tiers(
            ReconcileTiersInput(actor=admin, repair=True),
            payments=payments,
            users=users,
            time=time_port,
        )
        assert report.success is True
        assert report.repaired == 1
        assert report.drifts[0].expected_tier == "tier2"
        assert users.get_by_id(member.id).tier == "tier2"  # type: ignore[union-attr]

    def test_notifier_failure_does_not_fail_approval(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member)
        result = run_approve(
            ApprovePaymentInput(actor=admin, payment_id=payment.id),
            payments=payments,
            users=users,
            time=time_port,
            notifier=MockNotifier(fail=True),
        )
        assert result.success is True


class TestReconcile:
    def test_admin_override_is_respected(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member)
        run_approve(
            ApprovePaymentInput(actor=admin, payment_id=payment.id),
            payments=payments,
            users=users,
            time=time_port,
        )
        # Admin downgrade after the approval
        users.set_tier(member.id, "free", time_port.now_utc())

        report = run_reconcile_tiers(
            ReconcileTiersInput(actor=admin, repair=True),
            payments=payments,
            users=users,
            time=time_port,
        )
        assert report.drifts == ()
        assert users.get_by_id(member.id).tier == "free"  # type: ignore[union-attr]

    def test_repair_not_counted_when_account_vanishes(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        payment = _submit(payments, time_port, member)
        users.fail_set_tier = True
        run_approve(
            ApprovePaymentInput(actor=admin, payment_id=payment.id),
            payments=payments,
            users=users,
            time=time_port,
        )
        users.fail_set_tier = False
        set_tier = users.set_tier

        def delete_then_set_tier(user_id: UUID, tier: str, changed_at: datetime) -> bool:
            users._users.pop(user_id)
            return set_tier(user_id, tier, changed_at)

        users.set_tier = delete_then_set_tier  # type: ignore[method-assign]

        report = run_reconcile_tiers(
            ReconcileTiersInput(actor=admin, repair=True),
            payments=payments,
            users=users,
            time=time_port,
        )
        assert report.success is True
        assert len(report.drifts) == 1
        assert report.repaired == 0

    def test_member_forbidden(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        member: UserAccount,
    ) -> None:
        report = run_reconcile_tiers(
            ReconcileTiersInput(actor=member), payments=payments, users=users, time=time_port
        )
        assert report.error is not None
        assert report.error.kind == "forbidden"


class TestListing:
    def test_user_sees_own_newest_first(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        config = PaymentConfig(allow_duplicate_pending=True)
        _submit(payments, time_port, member, transaction_id="A", config=config)
        _submit(payments, time_port, member, transaction_id="B", config=config)

        result = run_list_for_user(
            ListUserPaymentsInput(actor=member, user_id=member.id), payments=payments
        )
        assert [p.transaction_id for p in result.payments] == ["B", "A"]

        other = UserAccount(email="x@example.com", display_name="X")
        denied = run_list_for_user(
            ListUserPaymentsInput(actor=other, user_id=member.id), payments=payments
        )
        assert denied.error is not None
        assert denied.error.kind == "forbidden"

    def test_admin_search_and_join(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        other = UserAccount(email="nimal@example.com", display_name="Nimal")
        users.add(other)
        _submit(payments, time_port, member, transaction_id="BN-777")
        _submit(payments, time_port, other, transaction_id="TX-1")

        by_tx = run_list_for_admin(
            ListAdminPaymentsInput(actor=admin, search="bn-7"), payments=payments, users=users
        )
        assert by_tx.total == 1
        assert by_tx.payments[0].user_name == "Ravi Perera"
        assert by_tx.payments[0].user_email == "ravi@example.com"

        # Search covers the transaction id only, not the joined name
        by_name = run_list_for_admin(
            ListAdminPaymentsInput(actor=admin, search="NIMAL"), payments=payments, users=users
        )
        assert by_name.total == 0
        assert by_name.payments == ()

    def test_admin_pagination_and_status(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
        member: UserAccount,
    ) -> None:
        config = PaymentConfig(allow_duplicate_pending=True)
        for i in range(5):
            _submit(payments, time_port, member, transaction_id=f"TX{i}", config=config)

        page = run_list_for_admin(
            ListAdminPaymentsInput(actor=admin, offset=1, limit=2), payments=payments, users=users
        )
        assert page.total == 5
        assert [p.transaction_id for p in page.payments] == ["TX3", "TX2"]

        approved = run_list_for_admin(
            ListAdminPaymentsInput(actor=admin, status="approved"), payments=payments, users=users
        )
        assert approved.total == 0

    def test_unknown_owner_placeholders(
        self,
        payments: MockPaymentStore,
        users: MockUserDirectory,
        time_port: MockTimePort,
        admin: UserAccount,
    ) -> None:
        ghost = UserAccount(email="g@example.com", display_name="Ghost")
        _submit(payments, time_port, ghost)

        result = run_list_for_admin(
            ListAdminPaymentsInput(actor=admin), payments=payments, users=users
        )
        assert result.payments[0].user_name == "Unknown"
        assert result.payments[0].user_email == "No Email"


class TestDispatcher:
    def test_routes_by_input_type(
        self, payments: MockPaymentStore, time_port: MockTimePort, member: UserAccount
    ) -> None:
        result = run(
            SubmitPaymentInput(
                actor=member, user_id=member.id, tier_requested="tier1", transaction_id="TX"
            ),
            payments=payments,
            time=time_port,
        )
        assert result.success is True

    def test_unknown_input(self, payments: MockPaymentStore) -> None:
        with pytest.raises(ValueError, match="Unknown input type"):
            run(object(), payments=payments)  # type: ignore[arg-type]
