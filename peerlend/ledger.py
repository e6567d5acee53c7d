"""
ledger.py - Stateful Funds Ledger

The Ledger class holds wallet balances for the lending pool and its
participants. It is the only module that moves money, and it is the host
collaborator that supplies the current time and atomic transfers.

Key responsibilities:
    - Implements LedgerView protocol for read-only access by transfer rules
    - Executes transactions atomically (all moves succeed or all fail)
    - Maintains wallet registrations and integer balances
    - Tracks a monotonic logical clock
    - Keeps an audit trail of every applied transaction
"""

from __future__ import annotations
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

from .core import (
    # Types
    Move, Transaction, PendingTransaction,
    ExecuteResult, BalanceMap, Money, TransferRule,
    # Constants
    SYSTEM_WALLET,
    # Exceptions
    LedgerError, TransferRuleViolation, WalletNotRegistered,
    validate_amount,
)
from .logging_config import get_logger


logger = get_logger(__name__)


class Ledger:
    """
    Double-entry funds ledger with full validation and audit trail.

    Implements the LedgerView protocol.

    Design Principles:
        - Always validates: every transaction is checked against wallet
          registration, transfer rules, non-negative balances and its timestamp.
        - Always logs: every applied transaction is recorded in transaction_log.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own Ledger instance.

    Example:
        ledger = Ledger("main")
        ledger.register_wallet("alice")
        ledger.register_wallet("bob")

        ledger.execute(build_transaction(ledger, [
            Move(1000, SYSTEM_WALLET, "alice", "initial_balance")
        ]))
        result = ledger.execute(build_transaction(ledger, [
            Move(100, "alice", "bob", "payment_001")
        ]))
    """

    def __init__(
        self,
        name: str,
        initial_time: Optional[datetime] = None,
        test_mode: bool = False
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            initial_time: Starting time for the ledger (default: 1970-01-01)
            test_mode: Enable test mode to allow set_balance() calls (default: False)
        """
        self.name = name
        self.balances: Dict[str, Money] = defaultdict(int)
        self.registered_wallets: Set[str] = set()
        self.transaction_log: List[Transaction] = []
        self.transfer_rules: List[TransferRule] = []
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self._test_mode = test_mode
        # Reason for the most recent REJECTED result
        self.last_rejection: str = ""
        # Monotonic sequence counter for execution ordering
        self._next_sequence: int = 0

        # Auto-register the system wallet (used for issuance/redemption)
        self.registered_wallets.add(SYSTEM_WALLET)

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time of the ledger."""
        return self._current_time

    def get_balance(self, wallet_id: str) -> Money:
        """
        Get the balance of a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        return self.balances[wallet_id]

    def list_wallets(self) -> Set[str]:
        """List all registered wallet IDs."""
        return self.registered_wallets.copy()

    def get_balances(self) -> BalanceMap:
        """Snapshot of every registered wallet's balance."""
        return {w: self.balances[w] for w in sorted(self.registered_wallets)}

    def is_registered(self, wallet_id: str) -> bool:
        """Check if a wallet is registered."""
        return wallet_id in self.registered_wallets

    def total_supply(self) -> Money:
        """
        Sum of all balances, system wallet included.

        Every applied transaction is balanced, so this is zero unless
        set_balance() was used in test mode.
        """
        return sum(self.balances[w] for w in sorted(self.registered_wallets))

    def verify_double_entry(self, expected_supply: Money = 0) -> Dict[str, Any]:
        """
        Verify that the conservation law holds.

        Args:
            expected_supply: Total the balances should sum to.

        Returns:
            Dict with keys 'valid', 'supply' and 'difference'.
        """
        supply = self.total_supply()
        return {
            'valid': supply == expected_supply,
            'supply': supply,
            'difference': supply - expected_supply,
        }

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the ledger's logical clock to a new time.

        Time can only move forward, never backward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Register a new wallet in the ledger.

        Raises:
            ValueError: If wallet is already registered or the ID is empty
        """
        if not wallet_id or not wallet_id.strip():
            raise ValueError("Wallet ID cannot be empty")
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        logger.debug("Registered wallet ledger=%s wallet=%s", self.name, wallet_id)
        return wallet_id

    def add_transfer_rule(self, rule: TransferRule) -> None:
        """
        Install a rule consulted for every move during validation.

        A rule raises TransferRuleViolation to refuse a move, e.g. a receiving
        party that does not accept funds.
        """
        self.transfer_rules.append(rule)

    def set_balance(self, wallet_id: str, quantity: Money) -> None:
        """
        Set a wallet's balance directly.

        WARNING: This bypasses double-entry accounting and is only available in
        test mode. Use build_transaction() and execute() otherwise.

        Raises:
            LedgerError: If called when test_mode is False
        """
        if not self._test_mode:
            raise LedgerError(
                "set_balance() is disabled in production mode. "
                "Use build_transaction() and execute() to modify balances. "
                "Set test_mode=True when creating Ledger for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        self.balances[wallet_id] = validate_amount(quantity, "balance")

    # ========================================================================
    # TRANSACTION EXECUTION (Mutating)
    # ========================================================================

    def _generate_exec_id(self, sequence: int) -> str:
        """
        Generate a unique execution ID.

        Format: exec:{ledger_name}:{sequence:012d}:{timestamp_micros}
        """
        micros = int(self._current_time.timestamp() * 1_000_000)
        return f"exec:{self.name}:{sequence:012d}:{micros}"

    def execute(self, pending: PendingTransaction) -> ExecuteResult:
        """
        Execute a PendingTransaction atomically.

        All moves are validated against the state before any is applied, so
        either every move lands or the ledger is left untouched.

        Returns:
            ExecuteResult.APPLIED if successful (or nothing to do)
            ExecuteResult.REJECTED if validation failed
        """
        if pending.is_empty():
            return ExecuteResult.APPLIED

        valid, reason = self.validate(pending)
        if not valid:
            logger.warning(
                "Transaction rejected ledger=%s origin=%s reason=%s",
                self.name, pending.origin, reason,
            )
            self.last_rejection = reason
            return ExecuteResult.REJECTED

        sequence = self._next_sequence
        self._next_sequence += 1

        tx = Transaction(
            moves=pending.moves,
            origin=pending.origin,
            timestamp=pending.timestamp,
            exec_id=self._generate_exec_id(sequence),
            ledger_name=self.name,
            execution_time=self._current_time,
            sequence_number=sequence,
        )

        for move in tx.moves:
            self.balances[move.source] -= move.quantity
            self.balances[move.dest] += move.quantity

        # Log transaction (always - audit trail is mandatory)
        self.transaction_log.append(tx)
        logger.debug("Transaction applied %r", tx)
        return ExecuteResult.APPLIED

    def validate(self, pending: PendingTransaction) -> Tuple[bool, str]:
        """
        Validate pending transaction against all constraints.

        Checks performed:
        1. Timestamp validation (transaction must not be from the future)
        2. Wallet registration
        3. Transfer rule enforcement
        4. Non-negative resulting balances (system wallet exempt)

        Returns:
            Tuple of (success, reason); reason is empty on success.
        """
        if pending.timestamp > self._current_time:
            return False, "future timestamp"

        for move in pending.moves:
            if not self.is_registered(move.source):
                return False, f"wallet not registered: {move.source}"
            if not self.is_registered(move.dest):
                return False, f"wallet not registered: {move.dest}"
            for rule in self.transfer_rules:
                try:
                    rule(self, move)
                except TransferRuleViolation as e:
                    return False, str(e)

        # Net changes so intermediate hops within one transaction are allowed
        net: Dict[str, Money] = defaultdict(int)
        for move in pending.moves:
            net[move.source] -= move.quantity
            net[move.dest] += move.quantity

        for wallet, delta in sorted(net.items()):
            if wallet == SYSTEM_WALLET:
                continue
            proposed = self.balances[wallet] + delta
            if proposed < 0:
                return False, f"insufficient funds: {wallet} would hold {proposed}"

        return True, ""
