"""
peerlend - Peer-to-Peer Lending Ledger

One owner lends to many participants under uniform terms. Each participant
moves through a proposal -> approval -> repayment lifecycle, and the owner
opens and pauses the pool.

Usage:
    from datetime import datetime, timedelta
    from peerlend import Ledger, LendingPool, LendingTerms, Move, build_transaction, SYSTEM_WALLET

    ledger = Ledger("main", datetime(2025, 1, 1))
    pool = LendingPool(ledger, owner="treasury",
                       terms=LendingTerms(500, 5_000, timedelta(days=30)))

    # Fund the owner via SYSTEM_WALLET (proper issuance), then the pool
    ledger.execute(build_transaction(ledger, [
        Move(10_000, SYSTEM_WALLET, "treasury", "initial_balance")
    ]))
    pool.deposit("treasury", 10_000)

    pool.pause_or_open("treasury")
    pool.propose_loan("alice", 100)
    pool.approve_loan("treasury", "alice")
"""

# Core types
from .core import (
    LedgerView,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    ExecuteResult,
    ContractState,
    LoanState,
    Money,
    build_transaction,
    validate_amount,
    LedgerError,
    TransferRuleViolation,
    WalletNotRegistered,
    LendingError,
    Unauthorized,
    InvalidLedgerState,
    OutstandingBalance,
    AmountExceedsLimit,
    PaymentMismatch,
    IndexOutOfRange,
    NoActiveLoan,
    NotYetDue,
    NoPendingProposal,
    TransferRejected,
    SYSTEM_WALLET,
    POOL_WALLET,
)

# Funds ledger
from .ledger import Ledger

# Accounting
from .accounting import (
    RATE_SCALE,
    MAX_INTEREST_RATE_X1000,
    calculate_amount_due,
    discounted_rate,
)

# Bookkeeping
from .pending_index import PendingIndex
from .book import LoanBook, LoanRecord

# Access gate
from .access import require_owner, require_open, require_paused, require_state

# Events
from .events import EventType, LoanEvent, EventChannel

# Configuration
from .config import LendingTerms, PoolSettings, DEFAULT_TERMS, load_settings, parse_terms

# Logging
from .logging_config import setup_logging, get_logger

# Pool
from .pool import LendingPool

__all__ = [
    # Core
    'LedgerView', 'Move', 'Transaction', 'PendingTransaction', 'TransactionOrigin', 'OriginType',
    'ExecuteResult', 'ContractState', 'LoanState', 'Money',
    'build_transaction', 'validate_amount',
    'LedgerError', 'TransferRuleViolation', 'WalletNotRegistered',
    'LendingError', 'Unauthorized', 'InvalidLedgerState', 'OutstandingBalance',
    'AmountExceedsLimit', 'PaymentMismatch', 'IndexOutOfRange', 'NoActiveLoan',
    'NotYetDue', 'NoPendingProposal', 'TransferRejected',
    'SYSTEM_WALLET', 'POOL_WALLET',
    # Ledger
    'Ledger',
    # Accounting
    'RATE_SCALE', 'MAX_INTEREST_RATE_X1000', 'calculate_amount_due', 'discounted_rate',
    # Bookkeeping
    'PendingIndex', 'LoanBook', 'LoanRecord',
    # Access
    'require_owner', 'require_open', 'require_paused', 'require_state',
    # Events
    'EventType', 'LoanEvent', 'EventChannel',
    # Configuration
    'LendingTerms', 'PoolSettings', 'DEFAULT_TERMS', 'load_settings', 'parse_terms',
    # Logging
    'setup_logging', 'get_logger',
    # Pool
    'LendingPool',
]

__version__ = '1.0.0'
