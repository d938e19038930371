"""
settlement.py - Merchant settlement

Moves the merchant's collected balance out to its bank in one step.
"""

from __future__ import annotations
from decimal import Decimal

from .core import ZERO
from .wallet import MerchantWallet


def settle_merchant(merchant: MerchantWallet) -> Decimal:
    """
    Transfer the whole collected balance to the merchant's bank.

    Both fields are updated together: balance becomes exactly zero and
    settled_balance grows by the same amount. Nothing happens when there is
    nothing to settle.

    Returns:
        The amount settled (Decimal("0") for a no-op)
    """
    amount = merchant.balance
    if amount <= 0:
        return ZERO
    merchant.settled_balance += amount
    merchant.balance = ZERO
    return amount
