"""
test_assistant.py - Tests for the read-only advisory snapshot
"""

import pytest
from decimal import Decimal

from zippay import AdvisorySnapshot, build_advisory_snapshot, initial_state

from tests.helpers import make_network, pay


class TestAdvisorySnapshot:

    def test_contents(self):
        network = make_network()
        network.load_top_up(100)
        pay(network, 40)
        network.set_auto_reload(True)
        snap = network.advisory_snapshot()
        assert snap.balance == Decimal("60")
        assert snap.bank_balance == Decimal("9900")
        assert snap.merchant_balance == Decimal("40")
        assert snap.unsynced_count == 1
        assert snap.auto_reload_enabled is True
        assert snap.payment_limit == Decimal("200")
        assert snap.wallet_ceiling == Decimal("500")
        assert len(snap.recent_transactions) == 1

    def test_recent_count(self):
        network = make_network()
        for _ in range(12):
            network.load_top_up(1)
        assert len(network.advisory_snapshot().recent_transactions) == 10
        assert len(network.advisory_snapshot(3).recent_transactions) == 3

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            build_advisory_snapshot(initial_state(), recent_count=-1)

    def test_is_frozen(self):
        snap = build_advisory_snapshot(initial_state())
        with pytest.raises(AttributeError):
            snap.balance = Decimal("1")

    def test_is_detached_from_live_state(self):
        network = make_network()
        snap = network.advisory_snapshot()
        network.load_top_up(50)
        assert snap.balance == Decimal("0")
        assert snap.recent_transactions == ()

    def test_context_text(self):
        network = make_network(balance=Decimal("-74"))
        text = network.advisory_snapshot().to_context()
        assert "User Current Wallet Balance: -₹74.00" in text
        assert "Auto-Reload is: OFF" in text
        assert "Max amount per transaction is ₹200.00" in text
        assert "(none)" in text
