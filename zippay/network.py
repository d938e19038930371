"""
network.py - The payment network context

PaymentNetwork is the single owner of all ledger state (both wallets, the
payment request slot and the radio flags). It is the only module that
coordinates mutations, and every external operation is a method on it.

Key responsibilities:
    - Serialize every operation behind one lock (read-modify-write never interleaves)
    - Check preconditions before any mutation (operations are all-or-nothing)
    - Report each outcome once, on the watch and/or the phone
    - Snapshot state to the store after each successful mutation
    - Re-evaluate the auto-reload monitor whenever one of its inputs changes
    - Keep the logical clock and fire scheduled events as it advances
"""

from __future__ import annotations
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Tuple, TypeVar, Union
import logging
import threading

from .core import (
    Transaction, PaymentRequest, PaymentOutcome, Channel, Side,
    TX_PREFIX_LOAD, TX_PREFIX_AUTO, TX_PREFIX_PAYMENT,
    ZipPayError, InsufficientFunding, Cancelled,
    Amount, to_decimal, format_amount, short_amount,
)
from .config import NetworkConfig, DEFAULT_CONFIG
from .connectivity import parse_channel, is_watch_linked, is_load_ready
from .wallet import UserWallet, MerchantWallet, load_top_up
from .sync_queue import sync_watch
from .payments import create_request, resolve_request
from .settlement import settle_merchant
from .scheduled_events import Event, EventScheduler, AUTO_RELOAD_ACTION
from .auto_reload import AutoReloadMonitor
from .notifications import Notifier, LoggingNotifier, AlertLevel
from .persistence import GlobalState, StateStore, MemoryStateStore, initial_state
from .assistant import AdvisorySnapshot, build_advisory_snapshot, DEFAULT_RECENT_COUNT


logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_side(side: Union[Side, str]) -> Side:
    """Accept a Side or its string name ("user", "merchant")."""
    if isinstance(side, Side):
        return side
    try:
        return Side(str(side).lower())
    except ValueError:
        raise ValueError(f"Unknown side: {side!r}") from None


class PaymentNetwork:
    """
    Watch, phone wallet and merchant terminal, kept consistent.

    Design Principles:
        - Always validates first: every rejection is raised before anything
          is mutated, so a failed operation leaves state untouched.
        - Always snapshots: every successful mutation is saved to the store
          while the lock is still held.

    Thread Safety:
        All public methods take the same re-entrant lock. The auto-reload
        settling delay is a scheduled event on the logical clock, so no lock
        is held across it.

    Example:
        network = PaymentNetwork()
        network.set_connectivity("bluetooth", True)
        network.set_connectivity("wifi", True)
        network.load_top_up(100)
        network.create_payment_request(40)
        network.resolve_payment_request(True)
        network.sync_watch()
    """

    def __init__(
        self,
        config: NetworkConfig = DEFAULT_CONFIG,
        store: Optional[StateStore] = None,
        notifier: Optional[Notifier] = None,
        initial_time: Optional[datetime] = None,
        verbose: bool = False,
        test_mode: bool = False,
    ):
        """
        Create a network and load its state from the store.

        Args:
            config: Business limits
            store: Snapshot store (default: in-memory)
            notifier: Receiver of watch/phone alerts (default: logging)
            initial_time: Starting logical time (default: 1970-01-01). A
                restored state never moves the clock back: the later of this
                and the saved clock is used.
            verbose: Print a receipt for every applied transaction
            test_mode: Enable set_balance()/set_bank_balance() for tests
        """
        self.config = config
        self.store: StateStore = store if store is not None else MemoryStateStore()
        self.notifier: Notifier = notifier if notifier is not None else LoggingNotifier()
        self.verbose = verbose
        self._test_mode = test_mode
        self._lock = threading.RLock()
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self._reload_inputs: Optional[Tuple] = None

        loaded = self.store.load_state()
        if loaded is None:
            logger.info("No saved state, starting fresh")
            loaded = initial_state(config)
        self._state: GlobalState = loaded

        restored = loaded.current_time or loaded.latest_timestamp()
        if restored is not None and restored > self._current_time:
            logger.info("Resuming logical clock at %s", restored)
            self._current_time = restored
        self._state.current_time = self._current_time

        self._scheduler = EventScheduler()
        self._scheduler.register(AUTO_RELOAD_ACTION, self._handle_auto_reload)
        self.auto_reload = AutoReloadMonitor(config, self._scheduler)

        with self._lock:
            self._after_mutation()

    # ========================================================================
    # READ ACCESS
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time of the network."""
        return self._current_time

    @property
    def user(self) -> UserWallet:
        """The live user wallet. Read it; mutate only through network methods."""
        return self._state.user

    @property
    def merchant(self) -> MerchantWallet:
        """The live merchant wallet. Read it; mutate only through network methods."""
        return self._state.merchant

    @property
    def pending_request(self) -> Optional[PaymentRequest]:
        return self._state.pending_request

    @property
    def connectivity(self):
        return self._state.connectivity

    def is_watch_linked(self) -> bool:
        return is_watch_linked(self._state.connectivity, self._state.user.is_active)

    def is_load_ready(self) -> bool:
        return is_load_ready(self._state.connectivity, self._state.user.is_active)

    def snapshot(self) -> GlobalState:
        """Deep copy of the whole state, taken under the lock."""
        with self._lock:
            return self._state.clone()

    def advisory_snapshot(self, recent_count: int = DEFAULT_RECENT_COUNT) -> AdvisorySnapshot:
        """Read-only view for the assistant collaborator."""
        with self._lock:
            return build_advisory_snapshot(self._state, self.config, recent_count)

    def pending_events(self) -> int:
        return self._scheduler.pending_count()

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def load_top_up(self, amount: Amount) -> Transaction:
        """
        Load money from the linked bank into the watch wallet.

        Raises:
            InactiveDevice, LinkRequired, InvalidAmount, WalletCapExceeded,
            InsufficientFunding
        """
        def op() -> Transaction:
            state = self._state
            tx = load_top_up(
                state.user, state.connectivity, to_decimal(amount),
                self._peek_tx_id(TX_PREFIX_LOAD), self._current_time, self.config,
            )
            self._consume_tx_id()
            self._applied(tx, "LOAD")
            sym = self.config.currency_symbol
            self.notifier.watch_alert(f"+{sym}{short_amount(tx.amount)} LOADED", AlertLevel.SUCCESS)
            self.notifier.phone_alert(
                f"Successfully loaded {sym}{short_amount(tx.amount)} into your ZiP WALLET", AlertLevel.SUCCESS
            )
            return tx
        return self._run("load_top_up", op)

    def create_payment_request(self, amount: Amount, origin: Optional[str] = None) -> Optional[PaymentRequest]:
        """
        Raise a payment request from the merchant terminal.

        Returns None (and changes nothing) when the merchant terminal is inactive.

        Raises:
            LinkRequired, InvalidAmount, AmountExceedsLimit
        """
        with self._lock:
            try:
                slot, request = create_request(
                    self._state.slot, self._state.user, self._state.merchant,
                    to_decimal(amount), origin or self.config.merchant_name,
                    self._current_time, self.config,
                )
            except ZipPayError as exc:
                self._report(exc, "create_payment_request")
                raise
            if request is None:
                logger.debug("Merchant terminal inactive, payment request ignored")
                return None
            self._state.slot = slot
            logger.info("Payment request from %s for %s", request.origin, request.amount)
            self._after_mutation()
            return request

    def resolve_payment_request(self, approve: bool) -> PaymentOutcome:
        """
        Approve or deny the pending request on the watch.

        Returns:
            APPROVED / EMERGENCY_APPROVED on payment, CANCELLED on denial,
            NO_REQUEST when nothing was pending

        Raises:
            InactiveDevice, DebtPending, SyncRequired
        """
        def op() -> PaymentOutcome:
            state = self._state
            had_request = state.slot.request is not None
            tx_id = self._peek_tx_id(TX_PREFIX_PAYMENT)
            slot, outcome, debit = resolve_request(
                state.slot, approve, state.user, state.merchant,
                tx_id, self._current_time, self.config,
            )
            state.slot = slot
            if outcome is PaymentOutcome.NO_REQUEST:
                return outcome
            if outcome is PaymentOutcome.CANCELLED:
                cancelled = Cancelled()
                logger.info("Payment request cancelled (pending=%s)", had_request)
                self.notifier.watch_alert(cancelled.watch_message, AlertLevel.ERROR)
                return outcome
            self._consume_tx_id()
            self._applied(debit, "STAGED")
            if outcome is PaymentOutcome.EMERGENCY_APPROVED:
                self.notifier.watch_alert("EMERGENCY PAID", AlertLevel.SUCCESS)
            else:
                self.notifier.watch_alert("PAID SUCCESS", AlertLevel.SUCCESS)
            return outcome
        return self._run("resolve_payment_request", op)

    def sync_watch(self) -> List[Transaction]:
        """
        Merge debits recorded on the watch into the phone-side history.

        Returns:
            The merged transactions, newest first

        Raises:
            LinkRequired: Bluetooth is down
        """
        def op() -> List[Transaction]:
            merged = sync_watch(self._state.user, self._state.connectivity)
            logger.info("Synced %d watch transaction(s)", len(merged))
            self.notifier.watch_alert("SYNC COMPLETE", AlertLevel.SUCCESS)
            self.notifier.phone_alert("Transaction history synced from watch successfully.", AlertLevel.SUCCESS)
            return merged
        return self._run("sync_watch", op)

    def settle_merchant(self) -> Decimal:
        """
        Move the merchant's collected balance to its bank.

        Returns:
            Amount settled (0 when there was nothing to settle)
        """
        with self._lock:
            amount = settle_merchant(self._state.merchant)
            if amount <= 0:
                return amount
            logger.info("Merchant settled %s", amount)
            self.notifier.phone_alert(
                f"Settlement of {format_amount(amount, self.config.currency_symbol)} completed to your bank account.",
                AlertLevel.SUCCESS,
            )
            self._after_mutation()
            return amount

    def set_connectivity(self, channel: Union[Channel, str], on: bool) -> None:
        with self._lock:
            channel = parse_channel(channel)
            self._state.connectivity.set(channel, on)
            logger.info("%s %s", channel.value, "on" if on else "off")
            self._after_mutation()

    def set_auto_reload(self, enabled: bool) -> None:
        with self._lock:
            self._state.user.auto_reload_enabled = bool(enabled)
            sym = self.config.currency_symbol
            if enabled:
                message = (f"Auto-Reload enabled ({sym}{short_amount(self.config.reload_threshold)} → "
                           f"{sym}{short_amount(self.config.reload_target)})")
            else:
                message = "Auto-Reload disabled"
            logger.info(message)
            self.notifier.phone_alert(message, AlertLevel.INFO)
            self._after_mutation()

    def toggle_active(self, side: Union[Side, str]) -> bool:
        """
        Flip the servicing switch of one wallet.

        Returns:
            The new active flag
        """
        with self._lock:
            side = parse_side(side)
            if side is Side.USER:
                active = self._state.user.toggle_active()
                self.notifier.watch_alert(
                    "WATCH ACTIVE" if active else "WATCH INACTIVE",
                    AlertLevel.SUCCESS if active else AlertLevel.ERROR,
                )
            else:
                active = self._state.merchant.toggle_active()
            logger.info("%s wallet %s", side.value, "active" if active else "inactive")
            self._after_mutation()
            return active

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: datetime) -> List[Transaction]:
        """
        Advance the logical clock and fire every scheduled event now due.

        Time can only move forward, never backward.

        Returns:
            Transactions applied by fired events

        Raises:
            ValueError: If new_time is before the current time
        """
        with self._lock:
            if new_time < self._current_time:
                raise ValueError(
                    f"Cannot move time backwards: {new_time} < {self._current_time}"
                )
            self._current_time = new_time
            self._state.current_time = new_time
            return self._scheduler.step(new_time)

    def tick(self, delta: timedelta) -> List[Transaction]:
        """Advance the logical clock by delta."""
        with self._lock:
            return self.advance_time(self._current_time + delta)

    # ========================================================================
    # TEST HELPERS
    # ========================================================================

    def set_balance(self, side: Union[Side, str], amount: Amount) -> None:
        """
        Set a wallet balance directly.

        WARNING: bypasses every business rule and is only available in test
        mode. The auto-reload monitor is re-evaluated afterwards.

        Raises:
            ZipPayError: If called when test_mode is False
        """
        self._require_test_mode("set_balance")
        with self._lock:
            wallet = self._state.user if parse_side(side) is Side.USER else self._state.merchant
            wallet.balance = to_decimal(amount)
            self._after_mutation()

    def set_bank_balance(self, side: Union[Side, str], amount: Amount) -> None:
        """Set the user's linked bank or the merchant's settled balance (test mode only)."""
        self._require_test_mode("set_bank_balance")
        with self._lock:
            if parse_side(side) is Side.USER:
                self._state.user.bank_balance = to_decimal(amount)
            else:
                self._state.merchant.settled_balance = to_decimal(amount)
            self._after_mutation()

    def _require_test_mode(self, name: str) -> None:
        if not self._test_mode:
            raise ZipPayError(
                f"{name}() is disabled in production mode. "
                "Set test_mode=True when creating PaymentNetwork for testing."
            )

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _run(self, name: str, op: Callable[[], T]) -> T:
        """Run op under the lock; report rejections, snapshot on success."""
        with self._lock:
            try:
                result = op()
            except ZipPayError as exc:
                self._report(exc, name)
                raise
            self._after_mutation()
            return result

    def _report(self, exc: ZipPayError, name: str) -> None:
        logger.warning("%s rejected: %s (%s)", name, exc.kind.value if exc.kind else "error", exc)
        if exc.watch_message:
            self.notifier.watch_alert(exc.watch_message, AlertLevel.ERROR)
        if exc.phone_message:
            self.notifier.phone_alert(exc.phone_message, AlertLevel.ERROR)

    def _reload_fingerprint(self) -> Tuple:
        """The inputs the auto-reload monitor watches."""
        user, conn = self._state.user, self._state.connectivity
        return (user.balance, user.is_active, conn.bluetooth_up, conn.wifi_up, user.auto_reload_enabled)

    def _after_mutation(self) -> None:
        # The monitor only reacts when one of its inputs changed; bank,
        # merchant and slot changes leave a failed reload disarmed.
        inputs = self._reload_fingerprint()
        if inputs != self._reload_inputs:
            self._reload_inputs = inputs
            self.auto_reload.evaluate(self._state.user, self._state.connectivity, self._current_time)
        self._state.current_time = self._current_time
        self.store.save_state(self._state)

    def _handle_auto_reload(self, event: Event) -> Optional[Transaction]:
        """Scheduler handler for the armed auto-reload."""
        state = self._state
        tx_id = self._peek_tx_id(TX_PREFIX_AUTO)
        try:
            tx = self.auto_reload.complete(state.user, state.connectivity, tx_id, event.trigger_time)
        except InsufficientFunding as exc:
            self._report(exc, "auto_reload")
            return None
        if tx is None:
            return None
        self._consume_tx_id()
        self._applied(tx, "AUTO-RELOAD")
        sym = self.config.currency_symbol
        self.notifier.watch_alert(f"+{sym}{short_amount(tx.amount)} AUTO-LOADED", AlertLevel.SUCCESS)
        self.notifier.phone_alert(
            f"Auto-Reload triggered: {sym}{short_amount(tx.amount)} added to ZiP WALLET", AlertLevel.SUCCESS
        )
        self._after_mutation()
        return tx

    def _peek_tx_id(self, prefix: str) -> str:
        """
        Id the next transaction will get.

        Format: {prefix}{sequence:09d}. The sequence is persisted with the
        state and only consumed once the transaction is applied.
        """
        return f"{prefix}{self._state.next_sequence:09d}"

    def _consume_tx_id(self) -> None:
        self._state.next_sequence += 1

    def _applied(self, tx: Transaction, label: str) -> None:
        logger.info("%s %s %s %s (%s)", label, tx.id, tx.kind.value, tx.amount, tx.counterparty)
        if self.verbose:
            self._print_tx_result(tx, label, "✓")

    def _print_tx_result(self, tx: Transaction, result: str, icon: str) -> None:
        """Print the transaction receipt followed by a result line."""
        lines = repr(tx).split('\n')
        w = 60
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))
        lines[-1] = f"├{bar}┤"
        lines.append(f"│{pad(' ' + icon + ' ' + result)}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))
