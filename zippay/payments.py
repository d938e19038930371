"""
payments.py - Merchant-initiated payment requests

This module carries a merchant amount through creation, delivery to the watch
and approval/denial:
1. Idle / Pending - the single request slot as a tagged option
2. compute_payment_debit() - Pure rule for the emergency overdraft
3. create_request() - Fill the slot (independent of connectivity)
4. resolve_request() - Approve or deny the pending request

The slot has only two states. A resolved request always returns it to Idle;
no approved/denied record is retained beyond the transactions themselves.

Approved debits are recorded on the watch: the user's DEBIT is staged in the
offline queue, not written to history. The merchant side is always online so
its CREDIT lands directly in merchant history.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple, Union

from .core import (
    PaymentRequest, PaymentOutcome, Transaction,
    EMERGENCY_MARKER,
    LinkRequired, InactiveDevice, InvalidAmount, AmountExceedsLimit, DebtPending, SyncRequired,
    to_decimal, format_amount,
)
from .config import NetworkConfig
from .wallet import UserWallet, MerchantWallet


# ============================================================================
# REQUEST SLOT
# ============================================================================

@dataclass(frozen=True, slots=True)
class Idle:
    """No request outstanding."""

    @property
    def request(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class Pending:
    """Exactly one request outstanding."""
    request: PaymentRequest


RequestSlot = Union[Idle, Pending]

IDLE = Idle()


# ============================================================================
# PURE RULES
# ============================================================================

def compute_payment_debit(
    balance: Decimal,
    amount: Decimal,
    fee_rate: Decimal,
) -> Tuple[Decimal, bool]:
    """
    Compute what an approved payment takes out of the watch wallet.

    A wallet holding at least the amount pays it as is. A wallet that is short
    but not negative (including exactly zero) pays through the emergency
    overdraft: amount plus fee_rate * amount. A wallet already in debt cannot
    pay at all.

    Args:
        balance: Current watch balance
        amount: Requested amount
        fee_rate: Emergency surcharge rate (e.g. Decimal("0.04"))

    Returns:
        (final_debit, is_emergency)

    Raises:
        DebtPending: If balance < 0

    Example:
        compute_payment_debit(Decimal("30"), Decimal("100"), Decimal("0.04"))
        # -> (Decimal("104.00"), True)
    """
    if balance >= amount:
        return amount, False
    if balance >= 0:
        fee = amount * fee_rate
        return amount + fee, True
    raise DebtPending(f"Wallet is already negative ({balance}); no second overdraft")


# ============================================================================
# OPERATIONS
# ============================================================================

def create_request(
    slot: RequestSlot,
    user: UserWallet,
    merchant: MerchantWallet,
    amount: Decimal,
    origin: str,
    now: datetime,
    config: NetworkConfig,
) -> Tuple[RequestSlot, Optional[PaymentRequest]]:
    """
    Raise a payment request from the merchant terminal.

    The request may exist even while bluetooth/wifi are down; the watch
    discovers it asynchronously.

    Returns:
        (new_slot, request). When the merchant terminal is inactive the call
        is a no-op and returns (slot, None).

    Raises:
        LinkRequired: Watch wallet inactive (reported on the watch)
        InvalidAmount: amount <= 0
        AmountExceedsLimit: amount above the micro-payment limit
    """
    if not merchant.is_active:
        return slot, None
    if not user.is_active:
        raise LinkRequired(
            "Watch is inactive; request cannot be delivered",
            watch_message="WATCH INACTIVE",
            phone_message=None,
        )
    amount = to_decimal(amount)
    if amount <= 0:
        raise InvalidAmount(f"Payment amount must be positive, got {amount}", watch_message=None)
    if amount > config.payment_limit:
        limit = format_amount(config.payment_limit, config.currency_symbol)
        raise AmountExceedsLimit(
            f"{amount} exceeds payment limit {config.payment_limit}",
            phone_message=f"Transaction exceeds micro-payment limit of {limit}",
        )
    request = PaymentRequest(origin=origin, amount=amount, created_at=now)
    return Pending(request), request


def resolve_request(
    slot: RequestSlot,
    approve: bool,
    user: UserWallet,
    merchant: MerchantWallet,
    tx_id: str,
    now: datetime,
    config: NetworkConfig,
) -> Tuple[RequestSlot, PaymentOutcome, Optional[Transaction]]:
    """
    Approve or deny the pending request.

    Denial clears the slot and reports CANCELLED. With nothing pending the
    call is a no-op. Approval checks, in order: watch active, overdraft rule,
    offline-queue cap. On success the user's DEBIT (amount plus any fee) is
    staged on the watch and the merchant is credited the plain amount under
    the same transaction id. A rejected approval leaves the request pending.

    Returns:
        (new_slot, outcome, user_debit_or_None)

    Raises:
        InactiveDevice: Watch wallet inactive
        DebtPending: Watch balance already negative
        SyncRequired: Offline queue at its cap
    """
    if not approve:
        return IDLE, PaymentOutcome.CANCELLED, None
    if not isinstance(slot, Pending):
        return slot, PaymentOutcome.NO_REQUEST, None

    request = slot.request
    if not user.is_active:
        raise InactiveDevice(phone_message=None)

    final_debit, is_emergency = compute_payment_debit(
        user.balance, request.amount, config.emergency_fee_rate
    )

    if user.pending_sync.is_full(config.offline_cap):
        raise SyncRequired(
            f"{user.unsynced_count} unsynced watch transactions; sync before paying"
        )

    counterparty = f"{request.origin} {EMERGENCY_MARKER}" if is_emergency else request.origin
    debit = user.stage_debit(tx_id, final_debit, counterparty, now)
    merchant.credit(tx_id, request.amount, config.user_label, now)

    outcome = PaymentOutcome.EMERGENCY_APPROVED if is_emergency else PaymentOutcome.APPROVED
    return IDLE, outcome, debit
