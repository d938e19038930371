#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn ZiPPaY Step by Step

This is a pedagogical demonstration of how the watch wallet, the phone app
and the merchant terminal are kept consistent. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation     - The fresh network, radios, loading money
  4-6:   Payments       - Normal payment, emergency overdraft, debt block
  7-8:   Offline Sync   - The offline cap, merging watch history
  9-10:  Automation     - Auto-reload and its settling delay
  11-12: Wrap-up        - Settlement, conservation proof

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging
import sys

from zippay import (
    PaymentNetwork, MemoryStateStore, RecordingNotifier,
    Side, TransactionKind,
    ZipPayError, format_amount,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    # Timing
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)

    # Amounts
    first_load: Decimal = Decimal("100")
    coffee: Decimal = Decimal("40")
    small_balance: Decimal = Decimal("30")
    big_purchase: Decimal = Decimal("100")
    reload_payment: Decimal = Decimal("130")


CONFIG = DemoConfig()

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def money(amount: Decimal) -> str:
    return format_amount(amount, "₹")


def show_balances(network: PaymentNetwork):
    user, merchant = network.user, network.merchant
    print(f"    Watch wallet      : {money(user.balance):>12}")
    print(f"    Linked bank       : {money(user.bank_balance):>12}")
    print(f"    Unsynced on watch : {user.unsynced_count:>12}")
    print(f"    Merchant wallet   : {money(merchant.balance):>12}")
    print(f"    Merchant bank     : {money(merchant.settled_balance):>12}")


def show_alerts(notifier: RecordingNotifier):
    for alert in notifier.alerts:
        print(f"    [{alert.surface.value.upper():5}] {alert.message}")
    notifier.clear()


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_fresh_network():
    """Create a network and look at its initial state."""
    step_header(1, "The Fresh Network",
        "See the three views of money and where they start.")

    print("""
    ZiPPaY keeps three views of money consistent:

    1. WATCH    - A small wallet on a wearable, used to pay merchants
    2. PHONE    - The companion app, with the linked bank account
    3. MERCHANT - A terminal that requests payments and settles to its bank

    All of them live in one PaymentNetwork, which serializes every
    operation and snapshots the state after each successful change.
    """)

    notifier = RecordingNotifier()
    network = PaymentNetwork(
        store=MemoryStateStore(),
        notifier=notifier,
        initial_time=CONFIG.start_time,
        verbose=False,
        test_mode=True,
    )
    show_balances(network)
    return network, notifier


def step_02_radios(network: PaymentNetwork, notifier: RecordingNotifier):
    """Top-ups need both radios."""
    step_header(2, "Bluetooth and Wi-Fi",
        "Understand the link the watch needs before money can move in.")

    section_header("Loading with the radios off")
    try:
        network.load_top_up(CONFIG.first_load)
    except ZipPayError as exc:
        print(f"    Rejected: {exc.kind.value}")
    show_alerts(notifier)

    section_header("Turning the radios on")
    network.set_connectivity("bluetooth", True)
    network.set_connectivity("wifi", True)
    print(f"    Watch linked: {network.is_watch_linked()}")
    print(f"    Load ready  : {network.is_load_ready()}")
    return network


def step_03_first_load(network: PaymentNetwork, notifier: RecordingNotifier):
    """Move money from the bank into the watch."""
    step_header(3, "The First Top-Up",
        "Load money from the linked bank; it lands straight in phone history.")

    tx = network.load_top_up(CONFIG.first_load)
    print(repr(tx))
    show_alerts(notifier)
    show_balances(network)
    return network


# ============================================================================
# PHASE 2: PAYMENTS (Steps 4-6)
# ============================================================================

def step_04_normal_payment(network: PaymentNetwork, notifier: RecordingNotifier):
    """Merchant requests, watch approves."""
    step_header(4, "A Normal Payment",
        "Follow a request from the merchant terminal to the watch.")

    request = network.create_payment_request(CONFIG.coffee, origin="Corner Cafe")
    print(f"    Request: {money(request.amount)} from {request.origin}")
    outcome = network.resolve_payment_request(True)
    print(f"    Outcome: {outcome.value}")
    show_alerts(notifier)

    print("""
    The user's DEBIT is recorded on the watch, not in the phone history yet.
    The merchant's CREDIT shares the same transaction id.
    """)
    show_balances(network)
    return network


def step_05_emergency(network: PaymentNetwork, notifier: RecordingNotifier):
    """Short wallet, emergency overdraft."""
    step_header(5, "The Emergency Overdraft",
        "Pay more than you hold, once, for a 4% fee.")

    network.set_balance(Side.USER, CONFIG.small_balance)
    print(f"    Wallet set to {money(CONFIG.small_balance)} for this step")
    network.create_payment_request(CONFIG.big_purchase)
    outcome = network.resolve_payment_request(True)
    print(f"    Outcome: {outcome.value}")
    debit = network.user.pending_sync.entries[0]
    print(f"    Debited: {money(debit.amount)} ({debit.counterparty})")
    show_alerts(notifier)
    show_balances(network)
    return network


def step_06_debt_block(network: PaymentNetwork, notifier: RecordingNotifier):
    """A negative wallet cannot pay."""
    step_header(6, "Debt Pending",
        "See that a second overdraft is refused and nothing changes.")

    network.create_payment_request(Decimal("5"))
    try:
        network.resolve_payment_request(True)
    except ZipPayError as exc:
        print(f"    Rejected: {exc.kind.value}")
    show_alerts(notifier)
    outcome = network.resolve_payment_request(False)
    print(f"    Denied on the watch: {outcome.value}")
    show_alerts(notifier)
    return network


# ============================================================================
# PHASE 3: OFFLINE SYNC (Steps 7-8)
# ============================================================================

def step_07_offline_cap(network: PaymentNetwork, notifier: RecordingNotifier):
    """At most five unsynced watch payments."""
    step_header(7, "The Offline Cap",
        "The watch refuses a sixth unsynced payment.")

    network.set_balance(Side.USER, Decimal("100"))
    network.set_connectivity("bluetooth", False)
    cap = network.config.offline_cap
    while network.user.unsynced_count < cap:
        network.create_payment_request(Decimal("1"))
        network.resolve_payment_request(True)
    print(f"    Unsynced: {network.user.unsynced_count}")
    network.create_payment_request(Decimal("1"))
    try:
        network.resolve_payment_request(True)
    except ZipPayError as exc:
        print(f"    Rejected: {exc.kind.value}")
    notifier.clear()
    return network


def step_08_sync(network: PaymentNetwork, notifier: RecordingNotifier):
    """Merge the watch log into the phone history."""
    step_header(8, "Syncing the Watch",
        "Move staged debits into the durable history, order preserved.")

    try:
        network.sync_watch()
    except ZipPayError as exc:
        print(f"    Without bluetooth: {exc.kind.value}")
    notifier.clear()

    network.set_connectivity("bluetooth", True)
    merged = network.sync_watch()
    print(f"    Merged {len(merged)} transaction(s)")
    show_alerts(notifier)

    outcome = network.resolve_payment_request(True)
    print(f"    Pending request retried: {outcome.value}")
    network.sync_watch()
    notifier.clear()

    section_header("Phone history (newest first)")
    for tx in network.user.recent(5):
        sign = "+" if tx.kind is TransactionKind.CREDIT else "-"
        print(f"    {tx.id:22} {sign}{money(tx.amount):>10}  {tx.counterparty}")
    return network


# ============================================================================
# PHASE 4: AUTOMATION (Steps 9-10)
# ============================================================================

def step_09_auto_reload(network: PaymentNetwork, notifier: RecordingNotifier):
    """Below ₹50 the wallet refills to ₹200."""
    step_header(9, "Auto-Reload",
        "Watch the monitor arm after a payment and fire after the delay.")

    network.set_balance(Side.USER, Decimal("150"))
    network.set_auto_reload(True)
    network.create_payment_request(CONFIG.reload_payment)
    network.resolve_payment_request(True)
    print(f"    Balance after payment : {money(network.user.balance)}")
    print(f"    Reload armed          : {network.auto_reload.in_flight}")
    print(f"    Armed amount          : {money(network.auto_reload.armed_amount)}")
    show_alerts(notifier)

    section_header("Advancing the clock past the settling delay")
    applied = network.tick(network.config.settling_delay)
    for tx in applied:
        print(repr(tx))
    print(f"    Balance now: {money(network.user.balance)}")
    show_alerts(notifier)
    return network


def step_10_abandoned_reload(network: PaymentNetwork, notifier: RecordingNotifier):
    """Preconditions are checked again when the delay ends."""
    step_header(10, "An Abandoned Reload",
        "Drop Wi-Fi during the delay and the reload does not happen.")

    network.create_payment_request(Decimal("160"))
    network.resolve_payment_request(True)
    network.set_connectivity("wifi", False)
    applied = network.tick(network.config.settling_delay)
    print(f"    Applied: {len(applied)}; balance stays {money(network.user.balance)}")
    network.set_connectivity("wifi", True)
    network.tick(network.config.settling_delay)
    print(f"    Wi-Fi back, reload re-armed and applied: {money(network.user.balance)}")
    network.sync_watch()
    notifier.clear()
    return network


# ============================================================================
# PHASE 5: WRAP-UP (Steps 11-12)
# ============================================================================

def step_11_settlement(network: PaymentNetwork, notifier: RecordingNotifier):
    """Merchant settles to its bank."""
    step_header(11, "Settlement",
        "Move everything the merchant collected to its bank account.")

    amount = network.settle_merchant()
    print(f"    Settled: {money(amount)}")
    print(f"    Second settlement: {money(network.settle_merchant())}")
    show_alerts(notifier)
    show_balances(network)
    return network


def step_12_conservation(network: PaymentNetwork):
    """Every rupee is accounted for."""
    step_header(12, "Conservation Proof",
        "Check that the logs explain every balance.")

    user, merchant = network.user, network.merchant
    merchant_credits = sum(tx.amount for tx in merchant.history)
    print(f"    Phone history total    : {money(user.history_total())}")
    print(f"    Merchant credits       : {money(merchant_credits)}")
    print(f"    Merchant wallet + bank : {money(merchant.balance + merchant.settled_balance)}")
    assert merchant.balance + merchant.settled_balance == merchant_credits
    print("\n    ✓ Merchant side reconciles with its history")

    snap = network.advisory_snapshot()
    section_header("What the assistant sees")
    print(snap.to_context())


def main():
    """Run the complete tutorial."""
    logging.basicConfig(level=logging.WARNING)
    print("=" * 70)
    print("       ZiPPaY - INTERACTIVE TUTORIAL")
    print("=" * 70)
    print("""
    Welcome! This tutorial shows how the watch wallet works.

    PHASES:
      1-3:   Foundation     - Fresh network, radios, first top-up
      4-6:   Payments       - Normal, emergency, debt pending
      7-8:   Offline Sync   - Offline cap, syncing history
      9-10:  Automation     - Auto-reload, abandoned reload
      11-12: Wrap-up        - Settlement, conservation
    """)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    network, notifier = step_01_fresh_network()
    wait_for_enter()

    for step in (
        step_02_radios,
        step_03_first_load,
        step_04_normal_payment,
        step_05_emergency,
        step_06_debt_block,
        step_07_offline_cap,
        step_08_sync,
        step_09_auto_reload,
        step_10_abandoned_reload,
        step_11_settlement,
    ):
        network = step(network, notifier)
        wait_for_enter()

    step_12_conservation(network)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:

    FOUNDATION
      - Top-ups need an active, linked watch and phone Wi-Fi
      - Loads land directly in the phone history

    PAYMENTS
      - Watch debits are staged until the next sync
      - A short wallet pays once through the emergency overdraft

    AUTOMATION
      - Auto-reload waits for the settling delay
      - Preconditions are checked again before money moves

    Next steps:
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
