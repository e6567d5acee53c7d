"""
Core types for the peer lending ledger.

This module provides the foundational data structures shared by the funds
ledger and the lending pool:
1. Protocols: LedgerView for read-only access to balances and time
2. Immutable data structures: Move, PendingTransaction, Transaction
3. Enums: ExecuteResult, OriginType, ContractState, LoanState
4. Exceptions: LedgerError and the lending error taxonomy
5. Validation helpers for integer money amounts

Amounts are plain ints in the smallest currency unit. Nothing in this module
mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Protocol, Set, Tuple, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance and redemption.
# The system wallet is exempt from balance validation and can go negative.
SYSTEM_WALLET = "system"

# Default wallet holding the lending pool's funds.
POOL_WALLET = "pool"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Amount in the smallest currency unit.
Money = int

# Mapping from wallet ID to balance.
BalanceMap = Dict[str, Money]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to funds ledger state.

    Transfer rules receive a LedgerView so they can inspect balances without
    being able to change them. The Ledger class implements this protocol.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time of the ledger."""
        ...

    def get_balance(self, wallet_id: str) -> Money:
        """Return the balance of a registered wallet."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was validated and applied to the ledger.
    REJECTED: Transaction failed validation (unregistered wallet, insufficient
              balance, transfer rule violation, future timestamp).
    """
    APPLIED = "applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"           # Participant-initiated (deposit, repay)
    CONTRACT = "contract"                 # Lending pool operation (loan grant, withdraw)
    SYSTEM = "system"                     # Issuance, initial funding


class ContractState(str, Enum):
    """Global gate controlling which lending operations are permitted."""
    OPEN = "open"
    PAUSED = "paused"


class LoanState(str, Enum):
    """Per-participant loan state."""
    NO_LOAN = "no_loan"         # Nothing outstanding
    PROPOSED = "proposed"       # Awaiting an owner decision
    ACTIVE = "active"           # Funds granted, repayment due


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class TransferRuleViolation(LedgerError):
    """Raised by a transfer rule when a move is not allowed."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when attempting to operate on a wallet that has not been registered with the ledger."""
    pass


class LendingError(LedgerError):
    """Base exception for rejected lending operations."""
    pass


class Unauthorized(LendingError):
    """Raised when the caller is not allowed to perform the operation."""
    pass


class InvalidLedgerState(LendingError):
    """Raised when the pool is Open but Paused is required, or vice versa."""
    pass


class OutstandingBalance(LendingError):
    """Raised when a participant proposes a loan while a balance is still due."""
    pass


class AmountExceedsLimit(LendingError):
    """Raised when a proposal exceeds the configured maximum principal."""
    pass


class PaymentMismatch(LendingError):
    """Raised when a repayment is not exactly the amount due."""
    pass


class IndexOutOfRange(LendingError, IndexError):
    """Raised on pending index access beyond its bounds."""
    pass


class NoActiveLoan(LendingError):
    """Raised when an operation needs an active loan and there is none."""
    pass


class NotYetDue(LendingError):
    """Raised when a reminder is sent before the loan's end time has passed."""
    pass


class NoPendingProposal(LendingError):
    """Raised when approving or rejecting a borrower without a pending proposal."""
    pass


class TransferRejected(LendingError):
    """Raised when the funds ledger refuses the transfer backing an operation."""
    pass


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def validate_amount(amount: Money, name: str = "amount") -> Money:
    """
    Check that an amount is a non-negative int.

    bool is rejected even though it subclasses int.

    Raises:
        ValueError: If the amount is not a non-negative integer.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"{name} must be an int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"{name} must be non-negative, got {amount}")
    return amount


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source
        source_id: Identifier of the specific source (pool name, wallet ID)
        event_type: Operation that produced the transaction (e.g. "approve_loan")
    """
    origin_type: OriginType
    source_id: str
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        if self.event_type:
            return f"Origin({self.origin_type.value}:{self.source_id}, event={self.event_type})"
        return f"Origin({self.origin_type.value}:{self.source_id})"


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of value between two wallets.

    Attributes:
        quantity: The amount to transfer (positive int).
        source: The wallet ID from which value is debited.
        dest: The wallet ID to which value is credited.
        contract_id: Identifier of the operation generating this move.
    """
    quantity: Money
    source: str
    dest: str
    contract_id: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity}: {self.source}→{self.dest})"


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transaction before execution - represents INTENT.

    Built by the lending pool and submitted to Ledger.execute(), which either
    applies every move or none of them.

    Attributes:
        moves: Tuple of value transfers between wallets
        origin: Who/what created this transaction and why
        timestamp: When this pending transaction was created
    """
    moves: Tuple[Move, ...]
    origin: TransactionOrigin
    timestamp: datetime

    def is_empty(self) -> bool:
        """Return True if this pending transaction has no moves."""
        return not self.moves

    def __repr__(self) -> str:
        return f"PendingTransaction({len(self.moves)} moves, {self.origin})"


def build_transaction(
    view: LedgerView,
    moves: List[Move],
    origin: Optional[TransactionOrigin] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction from moves.

    Args:
        view: Read-only ledger view (provides current_time)
        moves: List of moves to include in the transaction
        origin: Transaction origin (defaults to CONTRACT origin)

    Returns:
        A PendingTransaction ready for execution

    Example:
        tx = build_transaction(ledger, [Move(100, "pool", "alice", "approve_loan")])
        ledger.execute(tx)
    """
    if origin is None:
        origin = TransactionOrigin(
            origin_type=OriginType.CONTRACT,
            source_id="contract",
        )
    return PendingTransaction(
        moves=tuple(moves),
        origin=origin,
        timestamp=view.current_time,
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of balance changes - represents FACT.

    Attributes:
        moves: Tuple of value transfers between wallets
        origin: Who/what created this transaction and why
        timestamp: When the PendingTransaction was created
        exec_id: Unique execution identifier (ledger + sequence + time)
        ledger_name: Name of the ledger that executed this
        execution_time: When this was executed and logged
        sequence_number: Monotonic sequence within the ledger
        contract_ids: Set of contract IDs from moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    origin: TransactionOrigin
    timestamp: datetime
    exec_id: str
    ledger_name: str
    execution_time: datetime
    sequence_number: int
    contract_ids: FrozenSet[str] = None

    def __post_init__(self):
        if not self.moves:
            raise ValueError("Transaction must have moves")
        if self.contract_ids is None:
            object.__setattr__(
                self, 'contract_ids',
                frozenset(m.contract_id for m in self.moves)
            )

    def __repr__(self) -> str:
        moves = ", ".join(repr(m) for m in self.moves)
        return f"Transaction({self.exec_id}, {self.origin}, [{moves}])"


# Type alias for transfer rule functions.
# Transfer rules validate moves and raise TransferRuleViolation if invalid.
TransferRule = Callable[[LedgerView, Move], None]
