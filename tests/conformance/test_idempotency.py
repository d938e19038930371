"""
Idempotency Conformance Tests

INVARIANT: Repeating sync, settlement or a resolution with nothing pending
changes nothing.

    sync_watch(); sync_watch()       ≡ sync_watch()
    settle_merchant(); settle_merchant() ≡ settle_merchant()
    resolve(*) with an Idle slot     ≡ no-op on balances
"""

from hypothesis import given, settings
from hypothesis import strategies as st
from decimal import Decimal

from zippay import PaymentOutcome

from tests.helpers import make_network, state_summary, pay
from tests.conformance.strategies import operations, try_apply


class TestIdempotencyProperties:
    """Property-based idempotency tests."""

    @given(st.lists(operations, max_size=30), st.integers(min_value=1, max_value=5))
    @settings(max_examples=50, deadline=None)
    def test_repeated_sync_is_noop(self, ops, num_repeats):
        """
        PROPERTY: After one successful sync, further syncs change nothing.
        """
        network = make_network()
        for op in ops:
            try_apply(network, op)
        network.set_connectivity("bluetooth", True)
        network.sync_watch()
        after_first = state_summary(network.snapshot())
        for _ in range(num_repeats):
            assert network.sync_watch() == []
        assert state_summary(network.snapshot()) == after_first

    @given(st.lists(operations, max_size=30), st.integers(min_value=1, max_value=5))
    @settings(max_examples=50, deadline=None)
    def test_repeated_settlement_is_noop(self, ops, num_repeats):
        """
        PROPERTY: A second settlement moves nothing.
        """
        network = make_network()
        for op in ops:
            try_apply(network, op)
        network.settle_merchant()
        settled = network.merchant.settled_balance
        for _ in range(num_repeats):
            assert network.settle_merchant() == Decimal("0")
        assert network.merchant.settled_balance == settled
        assert network.merchant.balance == Decimal("0")


class TestIdempotencyExamples:
    """Explicit idempotency examples."""

    def test_second_approval_is_noop(self):
        network = make_network(balance=Decimal("100"))
        assert pay(network, 40) is PaymentOutcome.APPROVED
        before = state_summary(network.snapshot())
        assert network.resolve_payment_request(True) is PaymentOutcome.NO_REQUEST
        assert state_summary(network.snapshot()) == before

    def test_repeated_deny_is_noop(self):
        network = make_network(balance=Decimal("100"))
        network.create_payment_request(40)
        network.resolve_payment_request(False)
        before = state_summary(network.snapshot())
        assert network.resolve_payment_request(False) is PaymentOutcome.CANCELLED
        assert state_summary(network.snapshot()) == before

    def test_same_connectivity_twice(self):
        network = make_network()
        before = state_summary(network.snapshot())
        network.set_connectivity("wifi", True)
        assert state_summary(network.snapshot()) == before
