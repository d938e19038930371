"""
auto_reload.py - Automatic top-up control loop

AutoReloadMonitor is level-triggered and edge-debounced. It is re-evaluated
after every successful mutation of the network. When armed it does not credit
anything immediately; it schedules a one-shot event after the settling delay.
When that event fires, every precondition is checked again against the state
at that moment, since balance, connectivity or the switch may have changed in
between.

The in-flight guard blocks a second trigger while one reload is pending and
is cleared when the pending reload completes, whatever its result.
"""

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from .core import (
    Transaction, AUTO_RELOAD_BANK,
    InsufficientFunding,
    format_amount,
)
from .config import NetworkConfig
from .connectivity import ConnectivityState, is_load_ready
from .scheduled_events import Event, EventScheduler, auto_reload_event
from .wallet import UserWallet


logger = logging.getLogger(__name__)


class AutoReloadMonitor:
    """
    Watches the user wallet and tops it back up to the reload target.

    Attributes:
        in_flight: True between arming and completion of a reload
        armed_amount: Amount computed when the pending reload was armed
        last_failure: Last InsufficientFunding raised at completion, if any
    """

    def __init__(self, config: NetworkConfig, scheduler: EventScheduler):
        self.config = config
        self.scheduler = scheduler
        self.in_flight = False
        self.armed_amount: Optional[Decimal] = None
        self.last_failure: Optional[InsufficientFunding] = None

    def conditions_hold(self, user: UserWallet, conn: ConnectivityState) -> bool:
        """Enabled, load-ready and below the threshold (guard not considered)."""
        return (
            user.auto_reload_enabled
            and is_load_ready(conn, user.is_active)
            and user.balance < self.config.reload_threshold
        )

    def evaluate(self, user: UserWallet, conn: ConnectivityState, now: datetime) -> Optional[Event]:
        """
        Arm a reload if conditions hold and none is in flight.

        Returns:
            The scheduled event, or None if the monitor did not arm
        """
        if self.in_flight or not self.conditions_hold(user, conn):
            return None
        self.in_flight = True
        self.armed_amount = self.config.reload_target - user.balance
        event = self.scheduler.schedule(
            auto_reload_event(now + self.config.settling_delay, self.armed_amount)
        )
        logger.debug("Auto-reload armed: %s due at %s", self.armed_amount, event.trigger_time)
        return event

    def complete(
        self,
        user: UserWallet,
        conn: ConnectivityState,
        tx_id: str,
        now: datetime,
    ) -> Optional[Transaction]:
        """
        Apply the pending reload after the settling delay.

        The reload amount is recomputed from the current balance so the wallet
        lands exactly on the reload target.

        Returns:
            The CREDIT transaction, or None if the reload was abandoned because
            its preconditions no longer hold

        Raises:
            InsufficientFunding: Linked bank cannot cover the reload; nothing
                is mutated
        """
        try:
            if not self.conditions_hold(user, conn):
                logger.info("Auto-reload abandoned: preconditions no longer hold")
                return None
            amount = self.config.reload_target - user.balance
            if user.bank_balance < amount:
                symbol = self.config.currency_symbol
                self.last_failure = InsufficientFunding(
                    f"Bank balance {user.bank_balance} cannot cover reload of {amount}",
                    watch_message=None,
                    phone_message="Auto-Reload failed: Insufficient bank balance",
                )
                logger.warning(
                    "Auto-reload failed: bank %s < %s",
                    format_amount(user.bank_balance, symbol), format_amount(amount, symbol),
                )
                raise self.last_failure
            self.last_failure = None
            return user.fund_from_bank(tx_id, amount, AUTO_RELOAD_BANK, now)
        finally:
            self.in_flight = False
            self.armed_amount = None
