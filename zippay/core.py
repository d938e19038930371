"""
Core types and pure helpers for the ZiPPaY reconciliation engine.

This module provides the foundational data structures shared by every other module:
1. Immutable data structures: Transaction, PaymentRequest
2. Enums: TransactionKind, Channel, Side, PaymentOutcome, ErrorKind
3. Exceptions: ZipPayError and the domain-specific rejection types
4. Decimal helpers: to_decimal, format_amount

Nothing in this module mutates wallet state.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_EVEN, getcontext
from enum import Enum
from typing import Any, Dict, Optional, Union


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Money arithmetic is done in Decimal with a fixed global context so that
# fees and balances are reproducible across runs.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_ZIPPAY_DECIMAL_CONTEXT = getcontext()
_ZIPPAY_DECIMAL_CONTEXT.prec = 50
_ZIPPAY_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

ZERO = Decimal("0")

# Display precision for amounts (two decimals, banker's rounding).
DISPLAY_QUANTIZER = Decimal("0.01")

# Counterparty labels
PRIMARY_BANK = "Primary Bank"
AUTO_RELOAD_BANK = "Auto-Reload (Bank)"
EMERGENCY_MARKER = "(Emergency)"

# Transaction id prefixes
TX_PREFIX_LOAD = "TXN-LOAD-"
TX_PREFIX_AUTO = "TXN-AUTO-"
TX_PREFIX_PAYMENT = "TXN-"

Amount = Union[Decimal, int, str, float]


# ============================================================================
# ENUMS
# ============================================================================

class TransactionKind(Enum):
    """Direction of a transaction relative to the wallet whose log holds it."""
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class Channel(Enum):
    """Connectivity channel that can be toggled."""
    BLUETOOTH = "bluetooth"
    WIFI = "wifi"


class Side(Enum):
    """Which wallet an activity toggle applies to."""
    USER = "user"
    MERCHANT = "merchant"


class PaymentOutcome(Enum):
    """
    Outcome of resolving the pending payment request.

    APPROVED: Paid from available balance.
    EMERGENCY_APPROVED: Paid through the emergency overdraft (fee charged).
    CANCELLED: The watch holder denied the request; the slot was cleared.
    NO_REQUEST: Nothing was pending, nothing changed.
    """
    APPROVED = "approved"
    EMERGENCY_APPROVED = "emergency_approved"
    CANCELLED = "cancelled"
    NO_REQUEST = "no_request"


class ErrorKind(Enum):
    """Classification of every rejected operation."""
    INACTIVE_DEVICE = "InactiveDevice"
    LINK_REQUIRED = "LinkRequired"
    INVALID_AMOUNT = "InvalidAmount"
    WALLET_CAP_EXCEEDED = "WalletCapExceeded"
    INSUFFICIENT_FUNDING = "InsufficientFunding"
    AMOUNT_EXCEEDS_LIMIT = "AmountExceedsLimit"
    DEBT_PENDING = "DebtPending"
    SYNC_REQUIRED = "SyncRequired"
    CANCELLED = "Cancelled"


# ============================================================================
# EXCEPTIONS
# ============================================================================

_DEFAULT = object()


class ZipPayError(Exception):
    """
    Base exception for every rejected ledger operation.

    A rejection never leaves partial state behind. Each error carries the
    advisory texts shown on the watch and on the phone; either may be None
    when that surface stays silent.
    """
    kind: Optional[ErrorKind] = None
    default_watch_message: Optional[str] = None
    default_phone_message: Optional[str] = None

    def __init__(self, message: str = "", watch_message: Any = _DEFAULT, phone_message: Any = _DEFAULT):
        # Passing None explicitly silences that surface.
        self.watch_message = self.default_watch_message if watch_message is _DEFAULT else watch_message
        self.phone_message = self.default_phone_message if phone_message is _DEFAULT else phone_message
        kind = self.kind.value if self.kind else "error"
        super().__init__(message or self.phone_message or self.watch_message or kind)


class InactiveDevice(ZipPayError):
    """Raised when the watch wallet is switched off."""
    kind = ErrorKind.INACTIVE_DEVICE
    default_watch_message = "WATCH INACTIVE"
    default_phone_message = "Watch is inactive. Please activate it first."


class LinkRequired(ZipPayError):
    """Raised when the required bluetooth/wifi link is not established."""
    kind = ErrorKind.LINK_REQUIRED
    default_watch_message = "SYNC ERROR"
    default_phone_message = "Check connectivity. Bluetooth and Wi-Fi are required."


class InvalidAmount(ZipPayError):
    """Raised when an amount is non-positive or above the per-transaction cap."""
    kind = ErrorKind.INVALID_AMOUNT
    default_watch_message = "INVALID AMOUNT"
    default_phone_message = "Enter a valid amount."


class WalletCapExceeded(ZipPayError):
    """Raised when a top-up would push the wallet above its absolute ceiling."""
    kind = ErrorKind.WALLET_CAP_EXCEEDED
    default_watch_message = "LIMIT REACHED"
    default_phone_message = "Maximum wallet limit reached."


class InsufficientFunding(ZipPayError):
    """Raised when the linked bank cannot cover a top-up."""
    kind = ErrorKind.INSUFFICIENT_FUNDING
    default_watch_message = "LOW BANK BAL"
    default_phone_message = "Insufficient bank balance for this load."


class AmountExceedsLimit(ZipPayError):
    """Raised when a payment request is above the micro-payment limit."""
    kind = ErrorKind.AMOUNT_EXCEEDS_LIMIT
    default_phone_message = "Transaction exceeds micro-payment limit."


class DebtPending(ZipPayError):
    """Raised when a payment is attempted while the wallet is already negative."""
    kind = ErrorKind.DEBT_PENDING
    default_watch_message = "DEBT PENDING"


class SyncRequired(ZipPayError):
    """Raised when the offline queue is full and the watch must sync first."""
    kind = ErrorKind.SYNC_REQUIRED
    default_watch_message = "SYNC REQUIRED"


class Cancelled(ZipPayError):
    """The payment request was denied on the watch."""
    kind = ErrorKind.CANCELLED
    default_watch_message = "PAYMENT CANCEL"


# ============================================================================
# DECIMAL HELPERS
# ============================================================================

def to_decimal(value: Amount) -> Decimal:
    """
    Convert an amount to Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Raises:
        TypeError: If value is not a number or numeric string (bools rejected)
        ValueError: If value is NaN or infinite
    """
    if isinstance(value, bool):
        raise TypeError("amount must be a number, got bool")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value))
        except ArithmeticError as exc:
            raise ValueError(f"amount is not a number: {value!r}") from exc
    else:
        raise TypeError(f"amount must be Decimal, int, float or str, got {type(value)}")
    if result.is_nan() or result.is_infinite():
        raise ValueError(f"amount must be finite, got {value!r}")
    return result


def format_amount(amount: Decimal, symbol: str = "") -> str:
    """
    Render an amount for display with two decimals.

    Example:
        format_amount(Decimal("104"), "₹")  ->  "₹104.00"
        format_amount(Decimal("-74"), "₹")  ->  "-₹74.00"
    """
    quantized = to_decimal(amount).quantize(DISPLAY_QUANTIZER, rounding=ROUND_HALF_EVEN)
    if quantized < 0:
        return f"-{symbol}{-quantized}"
    return f"{symbol}{quantized}"


def short_amount(amount: Decimal) -> str:
    """Amount without trailing zeros, for short alert texts ("+₹100 LOADED")."""
    normalized = amount.normalize()
    if normalized == normalized.to_integral_value():
        return str(int(normalized))
    return format(normalized, 'f')


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An immutable record of money moving in or out of one wallet.

    Attributes:
        id: Identifier, unique within the log holding it. The two legs of a
            payment (user DEBIT, merchant CREDIT) share the same id.
        amount: Non-negative amount moved.
        timestamp: Logical time at which the transaction was created.
        kind: CREDIT or DEBIT.
        counterparty: Free-text label of the other side.
    """
    id: str
    amount: Decimal
    timestamp: datetime
    kind: TransactionKind
    counterparty: str

    def __post_init__(self):
        if not self.id or not self.id.strip():
            raise ValueError("Transaction id cannot be empty")
        if not isinstance(self.amount, Decimal):
            raise ValueError(f"Transaction amount must be Decimal, got {type(self.amount)}")
        if self.amount.is_nan() or self.amount.is_infinite():
            raise ValueError(f"Transaction amount must be finite, got {self.amount}")
        if self.amount < 0:
            raise ValueError(f"Transaction amount must be non-negative, got {self.amount}")
        if not isinstance(self.kind, TransactionKind):
            raise ValueError(f"Transaction kind must be TransactionKind, got {self.kind!r}")

    @property
    def is_emergency(self) -> bool:
        return EMERGENCY_MARKER in self.counterparty

    @property
    def signed_amount(self) -> Decimal:
        """Amount as it affects the holding wallet's balance."""
        return self.amount if self.kind is TransactionKind.CREDIT else -self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'amount': str(self.amount),
            'timestamp': self.timestamp.isoformat(),
            'kind': self.kind.value,
            'counterparty': self.counterparty,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Transaction:
        return cls(
            id=data['id'],
            amount=to_decimal(data['amount']),
            timestamp=datetime.fromisoformat(data['timestamp']),
            kind=TransactionKind(data['kind']),
            counterparty=data['counterparty'],
        )

    def __repr__(self) -> str:
        w = 60  # Inner content width
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Transaction: ' + self.id)}│",
            f"├{bar}┤",
            f"│{pad('   kind         : ' + self.kind.value)}│",
            f"│{pad('   amount       : ' + format_amount(self.amount))}│",
            f"│{pad('   counterparty : ' + self.counterparty)}│",
            f"│{pad('   timestamp    : ' + str(self.timestamp))}│",
            f"└{bar}┘",
        ]
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class PaymentRequest:
    """
    A merchant-initiated amount waiting for approval on the watch.

    Attributes:
        origin: Merchant identity shown on the watch.
        amount: Requested amount (0 < amount <= payment limit).
        created_at: Logical time the request was raised.
    """
    origin: str
    amount: Decimal
    created_at: datetime

    def __post_init__(self):
        if not self.origin or not self.origin.strip():
            raise ValueError("PaymentRequest origin cannot be empty")
        if not isinstance(self.amount, Decimal):
            raise ValueError(f"PaymentRequest amount must be Decimal, got {type(self.amount)}")
        if self.amount <= 0:
            raise ValueError(f"PaymentRequest amount must be positive, got {self.amount}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'origin': self.origin,
            'amount': str(self.amount),
            'created_at': self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PaymentRequest:
        return cls(
            origin=data['origin'],
            amount=to_decimal(data['amount']),
            created_at=datetime.fromisoformat(data['created_at']),
        )
