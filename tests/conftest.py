"""
conftest.py - Shared pytest fixtures for ZiPPaY tests

Provides common fixtures used across unit and conformance tests:
- Networks (fresh, online, funded, auto-reload ready)
- A recording notifier to assert on watch/phone alerts
- Builders and comparison utilities live in helpers.py
"""

import pytest
from decimal import Decimal

from zippay import RecordingNotifier

from tests.helpers import make_network


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def notifier():
    """Recorder for every watch/phone alert."""
    return RecordingNotifier()


@pytest.fixture
def offline_network(notifier):
    """Fresh network with both radios off."""
    return make_network(online=False, notifier=notifier)


@pytest.fixture
def network(notifier):
    """Fresh network with bluetooth and wifi on, empty wallet, bank 10000."""
    return make_network(notifier=notifier)


@pytest.fixture
def funded_network(notifier):
    """Online network with ₹100 loaded into the wallet."""
    net = make_network(notifier=notifier)
    net.load_top_up(Decimal("100"))
    notifier.clear()
    return net


@pytest.fixture
def reload_network(notifier):
    """Online network with ₹150 and auto-reload enabled (not yet armed)."""
    net = make_network(notifier=notifier, balance=Decimal("150"))
    net.set_auto_reload(True)
    notifier.clear()
    return net
