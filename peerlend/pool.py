"""
pool.py - Lending pool: lifecycle controller and configuration manager

A LendingPool is the context object for one owner lending to many
participants under uniform LendingTerms. It composes:

    access.py       owner and Open/Paused checks
    accounting.py   amount due with the early payback discount
    book.py         per-participant records and the pending index
    ledger.py       funds held by the pool, owner and participants
    events.py       notifications for off-system observers

=== OPERATION ORDER ===

Every operation runs in the same order:
    1. Access checks (owner, Open/Paused)
    2. Book preconditions (pending proposal, active loan, limits)
    3. Funds transfer through Ledger.execute() - validated as a whole,
       raises TransferRejected if refused
    4. Book mutation (cannot fail once 1-3 passed)
    5. Event publication

A failure at any of steps 1-3 leaves balances, records and the pending index
exactly as they were.

=== CALLERS ===

The caller identity is passed as the first argument and is trusted. It is
also the caller's wallet ID in the funds ledger.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from .access import require_open, require_owner, require_paused
from .accounting import calculate_amount_due
from .book import LoanBook, LoanRecord
from .config import DEFAULT_TERMS, LendingTerms, PoolSettings
from .core import (
    ContractState, ExecuteResult, Money, Move, OriginType, POOL_WALLET, SYSTEM_WALLET,
    TransactionOrigin,
    AmountExceedsLimit, NotYetDue, PaymentMismatch, TransferRejected, Unauthorized,
    build_transaction, validate_amount,
)
from .events import EventChannel, EventType, LoanEvent
from .ledger import Ledger
from .logging_config import get_logger


logger = get_logger(__name__)


class LendingPool:
    """
    Owner-run credit pool with a proposal -> approval -> repayment lifecycle.

    The pool starts PAUSED; the owner must open it before anyone can propose.

    Example:
        ledger = Ledger("main", datetime(2025, 1, 1))
        pool = LendingPool(ledger, owner="treasury",
                           terms=LendingTerms(500, 5_000, timedelta(days=30)))
        ledger.register_wallet("alice")
        ... fund "treasury" ...
        pool.deposit("treasury", 10_000)
        pool.pause_or_open("treasury")
        pool.propose_loan("alice", 100)
        pool.approve_loan("treasury", "alice")
        pool.repay("alice", pool.get_loan("alice").amount_due)
    """

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        terms: LendingTerms = DEFAULT_TERMS,
        wallet: str = POOL_WALLET,
        name: str = "main",
        channel: Optional[EventChannel] = None,
    ):
        """
        Create a pool and register its wallets.

        Args:
            ledger: Funds ledger holding all balances
            owner: Administrative identity (also its wallet ID)
            terms: Initial lending terms
            wallet: Wallet holding the pool's lendable funds
            name: Pool identifier used in transaction origins
            channel: Event channel (a fresh one if not given)

        Raises:
            ValueError: If owner and wallet coincide or either is the system wallet
        """
        if owner == wallet:
            raise ValueError("The owner and the pool wallet must be different wallets")
        if SYSTEM_WALLET in (owner, wallet):
            raise ValueError("The system wallet cannot own or hold a pool")
        self.ledger = ledger
        self.name = name
        self.wallet = wallet
        self.book = LoanBook()
        self.events = channel or EventChannel()
        self._owner = owner
        self._terms = terms
        self._state = ContractState.PAUSED

        for wallet_id in (owner, wallet):
            self._ensure_wallet(wallet_id)

    @classmethod
    def from_settings(
        cls,
        ledger: Ledger,
        settings: PoolSettings,
        channel: Optional[EventChannel] = None,
    ) -> LendingPool:
        """Build a pool from loaded PoolSettings."""
        return cls(
            ledger,
            owner=settings.owner,
            terms=settings.terms,
            wallet=settings.wallet,
            name=settings.name,
            channel=channel,
        )

    # ========================================================================
    # VIEWS (read-only)
    # ========================================================================

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def terms(self) -> LendingTerms:
        return self._terms

    @property
    def contract_state(self) -> ContractState:
        return self._state

    @property
    def now(self) -> datetime:
        return self.ledger.current_time

    @property
    def balance(self) -> Money:
        """Funds available for lending."""
        return self.ledger.get_balance(self.wallet)

    @property
    def pending_count(self) -> int:
        return len(self.book.pending)

    def get_loan(self, borrower: str) -> LoanRecord:
        """Copy of borrower's record (a default record if unknown)."""
        return self.book.get(borrower)

    def get_pending_at(self, index: int) -> str:
        """
        Borrower at a position of the pending index.

        Raises:
            IndexOutOfRange: If index is out of bounds
        """
        return self.book.pending.get(index)

    def pending_borrowers(self) -> Tuple[str, ...]:
        return self.book.pending.snapshot()

    def overdue_borrowers(self) -> List[str]:
        return self.book.overdue(self.now)

    def outstanding_total(self) -> Money:
        return self.book.outstanding_total()

    def calculate_amount_due(self, amount: Money, early_discount: bool = False) -> Money:
        """Amount due on a principal under the current interest rate."""
        return calculate_amount_due(amount, self._terms.interest_rate_x1000, early_discount)

    # ========================================================================
    # PARTICIPANT OPERATIONS
    # ========================================================================

    def deposit(self, caller: str, amount: Money) -> Money:
        """
        Add funds to the pool from the caller's wallet.

        Returns:
            The pool balance after the deposit

        Raises:
            Unauthorized: If caller is the pool or system wallet
            ValueError: If amount is not positive
            TransferRejected: If the caller cannot pay
        """
        self._require_participant(caller)
        validate_amount(amount)
        if amount == 0:
            raise ValueError("Deposit amount must be positive")
        self._transfer(
            [Move(amount, caller, self.wallet, "deposit")],
            OriginType.USER_ACTION, "deposit",
        )
        logger.info("Deposit pool=%s caller=%s amount=%s", self.name, caller, amount)
        return self.balance

    def propose_loan(self, caller: str, amount: Money) -> LoanRecord:
        """
        Propose (or replace) a loan request for the caller.

        A proposal of zero withdraws the caller's pending proposal.

        Raises:
            InvalidLedgerState: If the pool is paused
            Unauthorized: If the owner, the pool or the system wallet tries to borrow
            OutstandingBalance: If the caller still owes money
            AmountExceedsLimit: If amount > max_principal
        """
        require_open(self._state)
        if caller == self._owner:
            raise Unauthorized("The owner cannot borrow from the pool")
        self._require_participant(caller)
        validate_amount(amount)
        self.book.check_can_propose(caller)
        if amount > self._terms.max_principal:
            raise AmountExceedsLimit(
                f"Proposed {amount} exceeds maximum principal {self._terms.max_principal}"
            )

        self._ensure_wallet(caller)
        record = self.book.propose(caller, amount)
        logger.info(
            "Loan proposed pool=%s borrower=%s amount=%s early_pay=%s",
            self.name, caller, amount, record.early_pay,
        )
        if amount > 0:
            self._publish(EventType.LOAN_PROPOSAL, caller, amount=amount)
        return record.copy()

    def repay(self, caller: str, payment: Money) -> LoanRecord:
        """
        Repay the caller's active loan in full.

        Repaying before end_time earns the early payback discount on the
        caller's next loan. The payment goes to the owner.

        Raises:
            NoActiveLoan: If the caller has no active loan
            PaymentMismatch: If payment != amount_due
            TransferRejected: If the payment cannot be moved
        """
        validate_amount(payment, "payment")
        record = self.book.active_loan_of(caller)
        if payment != record.amount_due:
            raise PaymentMismatch(f"Payment {payment} does not match amount due {record.amount_due}")
        early = self.now < record.end_time

        self._transfer(
            [
                Move(payment, caller, self.wallet, "repay"),
                Move(payment, self.wallet, self._owner, "repay"),
            ],
            OriginType.USER_ACTION, "repay",
        )
        record = self.book.settle(caller, early)
        logger.info(
            "Loan paid back pool=%s borrower=%s amount=%s early=%s",
            self.name, caller, payment, early,
        )
        self._publish(EventType.LOAN_PAID_BACK, caller, amount=payment)
        return record.copy()

    # ========================================================================
    # OWNER OPERATIONS
    # ========================================================================

    def approve_loan(self, caller: str, borrower: str) -> LoanRecord:
        """
        Grant a pending proposal and pay out the principal.

        Raises:
            Unauthorized: If caller is not the owner
            InvalidLedgerState: If the pool is paused
            NoPendingProposal: If borrower has no pending proposal
            TransferRejected: If the pool cannot pay out
        """
        require_owner(self._owner, caller)
        require_open(self._state)
        record = self.book.proposal_of(borrower)
        principal = record.amount_proposed
        amount_due = calculate_amount_due(
            principal, self._terms.interest_rate_x1000, record.early_pay
        )
        end_time = self.now + self._terms.payback_period

        self._transfer(
            [Move(principal, self.wallet, borrower, "approve_loan")],
            OriginType.CONTRACT, "approve_loan",
        )
        record = self.book.approve(borrower, amount_due, end_time)
        logger.info(
            "Loan granted pool=%s borrower=%s principal=%s due=%s end_time=%s",
            self.name, borrower, principal, amount_due, end_time,
        )
        self._publish(EventType.LOAN_GRANTED, borrower, amount=principal, end_time=end_time)
        return record.copy()

    def reject_loan(self, caller: str, borrower: str) -> LoanRecord:
        """
        Raises:
            Unauthorized: If caller is not the owner
            InvalidLedgerState: If the pool is paused
            NoPendingProposal: If borrower has no pending proposal
        """
        require_owner(self._owner, caller)
        require_open(self._state)
        return self._reject(borrower).copy()

    def reject_all_pending(self, caller: str) -> List[str]:
        """
        Reject every pending proposal.

        Returns:
            Rejected borrowers in rejection order (empty if none were pending)
        """
        require_owner(self._owner, caller)
        return self._reject_all()

    def send_reminder(self, caller: str, borrower: str) -> LoanEvent:
        """
        Remind a borrower whose loan is past its end time.

        Raises:
            Unauthorized: If caller is not the owner
            NoActiveLoan: If borrower has no active loan
            NotYetDue: If the end time has not passed
        """
        require_owner(self._owner, caller)
        record = self.book.active_loan_of(borrower)
        if not self.now > record.end_time:
            raise NotYetDue(f"Loan of {borrower} is due at {record.end_time}")
        logger.info("Reminder sent pool=%s borrower=%s due=%s", self.name, borrower, record.amount_due)
        return self._publish(
            EventType.REMINDER_TO_PAY, borrower,
            amount=record.amount_due, end_time=record.end_time,
        )

    def remind_overdue(self, caller: str) -> List[str]:
        """
        Send a reminder for every overdue active loan.

        Returns:
            Reminded borrowers, sorted
        """
        require_owner(self._owner, caller)
        overdue = self.book.overdue(self.now)
        for borrower in overdue:
            self.send_reminder(caller, borrower)
        return overdue

    def pause_or_open(self, caller: str) -> ContractState:
        """
        Toggle the pool between PAUSED and OPEN.

        Pausing rejects every pending proposal first.

        Returns:
            The new state
        """
        require_owner(self._owner, caller)
        if self._state is ContractState.PAUSED:
            self._state = ContractState.OPEN
        else:
            self._reject_all()
            self._state = ContractState.PAUSED
        logger.info("Pool state changed pool=%s state=%s", self.name, self._state.value)
        return self._state

    def withdraw(self, caller: str) -> Money:
        """
        Sweep the pool's whole balance to the owner.

        Returns:
            The amount withdrawn (0 if the pool was empty)

        Raises:
            Unauthorized: If caller is not the owner
            TransferRejected: If the owner refuses the funds
        """
        require_owner(self._owner, caller)
        amount = self.balance
        if amount > 0:
            self._transfer(
                [Move(amount, self.wallet, self._owner, "withdraw")],
                OriginType.CONTRACT, "withdraw",
            )
        logger.info("Withdrawal pool=%s amount=%s", self.name, amount)
        return amount

    # ========================================================================
    # CONFIGURATION (owner only, while paused)
    # ========================================================================

    def update_interest(self, caller: str, interest_rate_x1000: int) -> LendingTerms:
        return self._update_terms(caller, interest_rate_x1000=interest_rate_x1000)

    def update_max_principal(self, caller: str, max_principal: Money) -> LendingTerms:
        return self._update_terms(caller, max_principal=max_principal)

    def update_payback_period(self, caller: str, payback_period: timedelta) -> LendingTerms:
        return self._update_terms(caller, payback_period=payback_period)

    def _update_terms(self, caller: str, **changes) -> LendingTerms:
        """
        Raises:
            Unauthorized: If caller is not the owner
            InvalidLedgerState: If the pool is open
            ValueError: If a new value is invalid
        """
        require_owner(self._owner, caller)
        require_paused(self._state)
        self._terms = self._terms.with_changes(**changes)
        logger.info("Terms updated pool=%s changes=%s", self.name, changes)
        return self._terms

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _reject(self, borrower: str) -> LoanRecord:
        record = self.book.reject(borrower)
        logger.info("Loan rejected pool=%s borrower=%s", self.name, borrower)
        self._publish(EventType.LOAN_REJECTED, borrower)
        return record

    def _reject_all(self) -> List[str]:
        # Always take whatever sits at position 0; swap-removal reorders the rest
        rejected = []
        while len(self.book.pending):
            borrower = self.book.pending.get(0)
            self._reject(borrower)
            rejected.append(borrower)
        return rejected

    def _require_participant(self, caller: str) -> None:
        # Funds cannot originate from the pool itself or from issuance
        if caller in (self.wallet, SYSTEM_WALLET):
            raise Unauthorized(f"{caller} cannot act as a participant")

    def _ensure_wallet(self, wallet_id: str) -> None:
        if not self.ledger.is_registered(wallet_id):
            self.ledger.register_wallet(wallet_id)

    def _transfer(self, moves: List[Move], origin_type: OriginType, operation: str) -> None:
        origin = TransactionOrigin(origin_type, self.name, operation)
        pending = build_transaction(self.ledger, moves, origin)
        if self.ledger.execute(pending) is ExecuteResult.REJECTED:
            raise TransferRejected(f"{operation} transfer rejected: {self.ledger.last_rejection}")

    def _publish(
        self,
        event_type: EventType,
        borrower: str,
        amount: Money = 0,
        end_time: Optional[datetime] = None,
    ) -> LoanEvent:
        event = LoanEvent(event_type, borrower, self.now, amount, end_time)
        self.events.publish(event)
        return event

    def __repr__(self) -> str:
        return (
            f"LendingPool({self.name}, owner={self._owner}, state={self._state.value}, "
            f"pending={self.pending_count}, balance={self.balance})"
        )
