"""
test_payments.py - Unit tests for merchant payment requests

Tests:
- compute_payment_debit: normal, emergency, zero boundary, debt
- create_payment_request: limits, inactive sides, connectivity independence
- resolve_payment_request: approve, emergency, deny, no request, rejections
"""

import pytest
from decimal import Decimal

from zippay import (
    PaymentOutcome, TransactionKind, Surface, Side, Pending, IDLE,
    compute_payment_debit,
    LinkRequired, InactiveDevice, InvalidAmount, AmountExceedsLimit, DebtPending, SyncRequired,
)

from tests.helpers import make_network, state_summary, pay


FEE = Decimal("0.04")


class TestComputePaymentDebit:
    """The pure overdraft rule."""

    def test_covered_payment(self):
        assert compute_payment_debit(Decimal("100"), Decimal("40"), FEE) == (Decimal("40"), False)

    def test_exact_balance_is_not_emergency(self):
        assert compute_payment_debit(Decimal("40"), Decimal("40"), FEE) == (Decimal("40"), False)

    def test_short_balance_adds_fee(self):
        debit, emergency = compute_payment_debit(Decimal("30"), Decimal("100"), FEE)
        assert debit == Decimal("104")
        assert emergency is True

    def test_zero_balance_is_emergency_eligible(self):
        debit, emergency = compute_payment_debit(Decimal("0"), Decimal("50"), FEE)
        assert debit == Decimal("52")
        assert emergency is True

    def test_negative_balance_raises(self):
        with pytest.raises(DebtPending):
            compute_payment_debit(Decimal("-0.01"), Decimal("1"), FEE)


class TestCreateRequest:
    """create_payment_request() on the merchant terminal."""

    def test_fills_slot(self, network):
        req = network.create_payment_request(40)
        assert network.pending_request == req
        assert req.origin == "Local Merchant"
        assert isinstance(network.snapshot().slot, Pending)

    def test_custom_origin(self, network):
        req = network.create_payment_request(12, origin="Corner Cafe")
        assert req.origin == "Corner Cafe"

    def test_works_while_offline(self, offline_network):
        assert offline_network.create_payment_request(40) is not None

    def test_limit_is_inclusive(self, network):
        assert network.create_payment_request(200).amount == Decimal("200")

    def test_above_limit(self, network, notifier):
        with pytest.raises(AmountExceedsLimit):
            network.create_payment_request(Decimal("200.01"))
        assert network.pending_request is None
        assert notifier.last(Surface.PHONE).message == "Transaction exceeds micro-payment limit of ₹200.00"

    @pytest.mark.parametrize("amount", [0, -10])
    def test_non_positive(self, network, amount):
        with pytest.raises(InvalidAmount):
            network.create_payment_request(amount)
        assert network.pending_request is None

    def test_inactive_merchant_is_noop(self, network):
        network.toggle_active(Side.MERCHANT)
        saves = network.store.save_count
        assert network.create_payment_request(40) is None
        assert network.pending_request is None
        assert network.store.save_count == saves

    def test_inactive_watch_alerts_watch_only(self, network, notifier):
        network.toggle_active(Side.USER)
        notifier.clear()
        with pytest.raises(LinkRequired):
            network.create_payment_request(40)
        assert notifier.messages(Surface.WATCH) == ["WATCH INACTIVE"]
        assert notifier.messages(Surface.PHONE) == []

    def test_new_request_replaces_pending(self, network):
        network.create_payment_request(40)
        second = network.create_payment_request(10)
        assert network.pending_request == second


class TestResolveRequest:
    """resolve_payment_request() on the watch."""

    def test_normal_payment(self, funded_network, notifier):
        network = funded_network
        outcome = pay(network, 40)
        assert outcome is PaymentOutcome.APPROVED
        assert network.user.balance == Decimal("60")
        assert network.merchant.balance == Decimal("40")
        assert network.user.unsynced_count == 1
        assert network.pending_request is None
        debit = network.user.pending_sync.entries[0]
        credit = network.merchant.history[0]
        assert debit.kind is TransactionKind.DEBIT
        assert debit.counterparty == "Local Merchant"
        assert credit.kind is TransactionKind.CREDIT
        assert credit.counterparty == "ZiPPaY User"
        assert debit.id == credit.id
        assert notifier.last(Surface.WATCH).message == "PAID SUCCESS"

    def test_debit_not_in_history_until_sync(self, funded_network):
        pay(funded_network, 40)
        assert all(tx.kind is TransactionKind.CREDIT for tx in funded_network.user.history)

    def test_emergency_payment(self, notifier):
        network = make_network(notifier=notifier, balance=Decimal("30"))
        outcome = pay(network, 100)
        assert outcome is PaymentOutcome.EMERGENCY_APPROVED
        assert network.user.balance == Decimal("-74")
        assert network.merchant.balance == Decimal("100")
        debit = network.user.pending_sync.entries[0]
        assert debit.amount == Decimal("104")
        assert debit.counterparty == "Local Merchant (Emergency)"
        assert debit.is_emergency
        assert notifier.last(Surface.WATCH).message == "EMERGENCY PAID"

    def test_zero_balance_emergency(self):
        network = make_network()
        assert pay(network, 50) is PaymentOutcome.EMERGENCY_APPROVED
        assert network.user.balance == Decimal("-52")

    def test_debt_pending_blocks_payment(self, notifier):
        network = make_network(notifier=notifier, balance=Decimal("-5"))
        network.create_payment_request(1)
        before = state_summary(network.snapshot())
        with pytest.raises(DebtPending):
            network.resolve_payment_request(True)
        assert state_summary(network.snapshot()) == before
        assert network.pending_request is not None
        assert notifier.last(Surface.WATCH).message == "DEBT PENDING"

    def test_offline_cap(self, notifier):
        network = make_network(notifier=notifier, balance=Decimal("100"))
        for _ in range(5):
            pay(network, 1)
        assert network.user.unsynced_count == 5
        network.create_payment_request(1)
        with pytest.raises(SyncRequired):
            network.resolve_payment_request(True)
        assert network.user.balance == Decimal("95")
        assert network.merchant.balance == Decimal("5")
        assert network.user.unsynced_count == 5
        assert notifier.last(Surface.WATCH).message == "SYNC REQUIRED"

    def test_payment_after_sync_succeeds(self):
        network = make_network(balance=Decimal("100"))
        for _ in range(5):
            pay(network, 1)
        network.create_payment_request(1)
        with pytest.raises(SyncRequired):
            network.resolve_payment_request(True)
        network.sync_watch()
        assert network.resolve_payment_request(True) is PaymentOutcome.APPROVED
        assert network.user.unsynced_count == 1

    def test_payment_works_without_radios(self, notifier):
        network = make_network(online=False, notifier=notifier, balance=Decimal("100"))
        assert pay(network, 40) is PaymentOutcome.APPROVED

    def test_inactive_watch(self, funded_network, notifier):
        funded_network.create_payment_request(40)
        funded_network.toggle_active(Side.USER)
        notifier.clear()
        with pytest.raises(InactiveDevice):
            funded_network.resolve_payment_request(True)
        assert notifier.messages(Surface.WATCH) == ["WATCH INACTIVE"]
        assert funded_network.pending_request is not None

    def test_deny(self, funded_network, notifier):
        funded_network.create_payment_request(40)
        outcome = funded_network.resolve_payment_request(False)
        assert outcome is PaymentOutcome.CANCELLED
        assert funded_network.pending_request is None
        assert funded_network.user.balance == Decimal("100")
        assert funded_network.merchant.balance == Decimal("0")
        assert notifier.last(Surface.WATCH).message == "PAYMENT CANCEL"

    def test_approve_without_request(self, funded_network):
        before = state_summary(funded_network.snapshot())
        assert funded_network.resolve_payment_request(True) is PaymentOutcome.NO_REQUEST
        assert state_summary(funded_network.snapshot()) == before

    def test_payment_ids_are_unique(self):
        network = make_network(balance=Decimal("100"))
        pay(network, 1)
        network.sync_watch()
        pay(network, 1)
        network.sync_watch()
        ids = [tx.id for tx in network.user.history]
        assert len(ids) == len(set(ids))

    def test_slot_returns_to_idle(self, funded_network):
        pay(funded_network, 10)
        assert funded_network.snapshot().slot == IDLE
