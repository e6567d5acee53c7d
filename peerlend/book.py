"""
book.py - Loan book: per-participant records and their state machine

=== STATE MACHINE ===

    NO_LOAN --propose(amount > 0)--> PROPOSED
    PROPOSED --propose(amount > 0)--> PROPOSED   (overwrites, keeps its slot)
    PROPOSED --propose(0) / reject--> NO_LOAN
    PROPOSED --approve--> ACTIVE
    ACTIVE --settle--> NO_LOAN

A participant has at most one outstanding loan. Proposing while an amount is
still due raises OutstandingBalance.

=== PENDING INDEX ===

Every PROPOSED record sits in the PendingIndex, and its pending_index_key is
its position there. The book is the index's relocation target, so a
swap-removal updates the moved record's key in the same step.

The book does not check ownership, the Open/Paused gate, or move funds;
LendingPool does that before calling in. Each mutating method validates its
own state precondition before writing anything.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from .core import (
    LoanState, Money,
    NoActiveLoan, NoPendingProposal, OutstandingBalance,
    validate_amount,
)
from .pending_index import PendingIndex


@dataclass(slots=True)
class LoanRecord:
    """
    Loan bookkeeping for one participant.

    Attributes:
        borrower: Participant identity
        amount_proposed: Principal requested (and granted, once ACTIVE)
        amount_due: Principal plus interest owed; zero unless ACTIVE
        end_time: Repayment deadline; None unless ACTIVE
        state: Current LoanState
        early_pay: Last loan was repaid before end_time; earns a discount on
                   the next approval
        pending_index_key: Position in the PendingIndex, valid only while PROPOSED
    """
    borrower: str
    amount_proposed: Money = 0
    amount_due: Money = 0
    end_time: Optional[datetime] = None
    state: LoanState = LoanState.NO_LOAN
    early_pay: bool = False
    pending_index_key: int = 0

    def copy(self) -> LoanRecord:
        return replace(self)


class LoanBook:
    """
    Mapping from participant identity to LoanRecord plus the PendingIndex.

    Example:
        book = LoanBook()
        book.propose("alice", 100)
        book.approve("alice", amount_due=105, end_time=datetime(2025, 2, 1))
        book.settle("alice", early=True)
        book.get("alice").early_pay    # True
    """

    def __init__(self):
        self._records: Dict[str, LoanRecord] = {}
        self.pending = PendingIndex(on_relocate=self._relocate)

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def get_or_create(self, borrower: str) -> LoanRecord:
        """
        Return the stored record for borrower, creating a default one first.

        The returned record is live: writes to it change the book.
        """
        record = self._records.get(borrower)
        if record is None:
            record = LoanRecord(borrower=borrower)
            self._records[borrower] = record
        return record

    def get(self, borrower: str) -> LoanRecord:
        """Copy of borrower's record, or a default record. Never stores anything."""
        record = self._records.get(borrower)
        if record is None:
            return LoanRecord(borrower=borrower)
        return record.copy()

    def proposal_of(self, borrower: str) -> LoanRecord:
        """
        Live record of a borrower with a pending proposal.

        Raises:
            NoPendingProposal: If borrower is not PROPOSED
        """
        record = self._records.get(borrower)
        if record is None or record.state is not LoanState.PROPOSED:
            raise NoPendingProposal(f"{borrower} has no pending proposal")
        return record

    def active_loan_of(self, borrower: str) -> LoanRecord:
        """
        Live record of a borrower with an active loan.

        Raises:
            NoActiveLoan: If borrower is not ACTIVE
        """
        record = self._records.get(borrower)
        if record is None or record.state is not LoanState.ACTIVE:
            raise NoActiveLoan(f"{borrower} has no active loan")
        return record

    def check_can_propose(self, borrower: str) -> None:
        """
        Raises:
            OutstandingBalance: If borrower still owes money
        """
        record = self._records.get(borrower)
        if record is not None and record.amount_due > 0:
            raise OutstandingBalance(
                f"{borrower} still owes {record.amount_due}"
            )

    def borrowers(self) -> List[str]:
        return sorted(self._records)

    def active_loans(self) -> List[LoanRecord]:
        """Copies of every ACTIVE record, sorted by borrower."""
        return [
            self._records[b].copy() for b in sorted(self._records)
            if self._records[b].state is LoanState.ACTIVE
        ]

    def overdue(self, now: datetime) -> List[str]:
        """Borrowers whose active loan's end_time is before now."""
        return [r.borrower for r in self.active_loans() if now > r.end_time]

    def outstanding_total(self) -> Money:
        """Sum of amount_due across all records."""
        return sum(r.amount_due for r in self._records.values())

    # ========================================================================
    # TRANSITIONS (Mutating)
    # ========================================================================

    def propose(self, borrower: str, amount: Money) -> LoanRecord:
        """
        Record or replace borrower's proposal.

        A borrower already PROPOSED keeps its pending slot. Proposing zero
        withdraws the proposal and leaves the borrower in NO_LOAN. The
        early_pay flag is carried forward untouched.

        Raises:
            OutstandingBalance: If borrower still owes money
            ValueError: If amount is not a non-negative int
        """
        validate_amount(amount)
        self.check_can_propose(borrower)

        record = self.get_or_create(borrower)
        if amount == 0:
            if record.state is LoanState.PROPOSED:
                self._unlist(record)
            record.amount_proposed = 0
            record.state = LoanState.NO_LOAN
            return record

        if record.state is not LoanState.PROPOSED:
            record.pending_index_key = self.pending.insert(borrower)
        record.amount_proposed = amount
        record.state = LoanState.PROPOSED
        return record

    def approve(self, borrower: str, amount_due: Money, end_time: datetime) -> LoanRecord:
        """
        Move a pending proposal to ACTIVE.

        Clears early_pay: the discount is spent on this loan.

        Raises:
            NoPendingProposal: If borrower is not PROPOSED
        """
        validate_amount(amount_due, "amount_due")
        record = self.proposal_of(borrower)
        self._unlist(record)
        record.amount_due = amount_due
        record.end_time = end_time
        record.early_pay = False
        record.state = LoanState.ACTIVE
        return record

    def reject(self, borrower: str) -> LoanRecord:
        """
        Drop a pending proposal.

        Raises:
            NoPendingProposal: If borrower is not PROPOSED
        """
        record = self.proposal_of(borrower)
        self._unlist(record)
        record.amount_proposed = 0
        record.state = LoanState.NO_LOAN
        return record

    def settle(self, borrower: str, early: bool) -> LoanRecord:
        """
        Close an active loan after full repayment.

        Raises:
            NoActiveLoan: If borrower is not ACTIVE
        """
        record = self.active_loan_of(borrower)
        record.early_pay = early
        record.amount_due = 0
        record.end_time = None
        record.state = LoanState.NO_LOAN
        return record

    # ========================================================================
    # PENDING INDEX MAINTENANCE
    # ========================================================================

    def _unlist(self, record: LoanRecord) -> None:
        self.pending.remove_at(record.pending_index_key)
        record.pending_index_key = 0

    def _relocate(self, borrower: str, key: int) -> None:
        self._records[borrower].pending_index_key = key

    def check_invariants(self) -> List[str]:
        """
        Cross-check the records against the PendingIndex.

        Returns:
            Human-readable violations; empty when consistent.
        """
        violations = []
        listed = set()
        for position, borrower in enumerate(self.pending):
            listed.add(borrower)
            record = self._records.get(borrower)
            if record is None:
                violations.append(f"{borrower} at position {position} has no record")
                continue
            if record.pending_index_key != position:
                violations.append(
                    f"{borrower} at position {position} has key {record.pending_index_key}"
                )
            if record.state is not LoanState.PROPOSED:
                violations.append(f"{borrower} at position {position} is {record.state.value}")
        for borrower, record in self._records.items():
            if record.state is LoanState.PROPOSED and borrower not in listed:
                violations.append(f"{borrower} is proposed but not pending")
            if record.state is not LoanState.ACTIVE and record.amount_due:
                violations.append(f"{borrower} owes {record.amount_due} while {record.state.value}")
        if len(listed) != len(self.pending):
            violations.append("pending index holds duplicates")
        return violations

    def __contains__(self, borrower: str) -> bool:
        return borrower in self._records

    def __iter__(self) -> Iterator[LoanRecord]:
        return iter([self._records[b].copy() for b in sorted(self._records)])

    def __len__(self) -> int:
        return len(self._records)
