"""
test_book.py - Unit tests for the loan book state machine

Tests:
- get_or_create() and read-only get()
- propose(): new, replaced, withdrawn, outstanding balance
- approve(), reject(), settle() transitions
- Pending index back-references after arbitrary removals
"""

import pytest
from datetime import datetime

from peerlend import (
    LoanBook, LoanRecord, LoanState,
    NoActiveLoan, NoPendingProposal, OutstandingBalance,
)


DUE = datetime(2025, 2, 1)


class TestRecordAccess:
    """Explicit get-or-create versus side-effect free lookup."""

    def test_get_or_create_stores_default_record(self):
        book = LoanBook()
        record = book.get_or_create("alice")
        assert record == LoanRecord(borrower="alice")
        assert "alice" in book
        assert book.get_or_create("alice") is record

    def test_get_does_not_create(self):
        book = LoanBook()
        record = book.get("alice")
        assert record.state is LoanState.NO_LOAN
        assert record.amount_due == 0
        assert "alice" not in book
        assert len(book) == 0

    def test_get_returns_copy(self):
        book = LoanBook()
        book.propose("alice", 100)
        copy = book.get("alice")
        copy.amount_proposed = 999
        assert book.get("alice").amount_proposed == 100


class TestPropose:
    """Proposals enter or reuse the pending index."""

    def test_new_proposal_is_listed(self):
        book = LoanBook()
        record = book.propose("alice", 100)
        assert record.state is LoanState.PROPOSED
        assert record.amount_proposed == 100
        assert record.pending_index_key == 0
        assert book.pending.snapshot() == ("alice",)

    def test_second_proposal_reuses_slot(self):
        book = LoanBook()
        book.propose("alice", 100)
        book.propose("bob", 200)
        record = book.propose("alice", 150)
        assert record.pending_index_key == 0
        assert record.amount_proposed == 150
        assert book.pending.snapshot() == ("alice", "bob")

    def test_zero_proposal_from_nothing_stays_no_loan(self):
        book = LoanBook()
        record = book.propose("alice", 0)
        assert record.state is LoanState.NO_LOAN
        assert len(book.pending) == 0

    def test_zero_proposal_withdraws_pending(self):
        book = LoanBook()
        book.propose("alice", 100)
        book.propose("bob", 200)
        record = book.propose("alice", 0)
        assert record.state is LoanState.NO_LOAN
        assert record.amount_proposed == 0
        assert book.pending.snapshot() == ("bob",)
        assert book.get("bob").pending_index_key == 0
        assert book.check_invariants() == []

    def test_outstanding_balance_blocks_proposal(self):
        book = LoanBook()
        book.propose("alice", 100)
        book.approve("alice", 105, DUE)
        with pytest.raises(OutstandingBalance):
            book.propose("alice", 50)
        assert book.get("alice").state is LoanState.ACTIVE

    def test_early_pay_is_carried_forward(self):
        book = LoanBook()
        book.propose("alice", 100)
        book.approve("alice", 105, DUE)
        book.settle("alice", early=True)
        record = book.propose("alice", 200)
        assert record.early_pay is True

    def test_negative_amount(self):
        with pytest.raises(ValueError):
            LoanBook().propose("alice", -5)


class TestTransitions:
    """approve, reject and settle."""

    def test_approve(self):
        book = LoanBook()
        book.propose("alice", 100)
        record = book.approve("alice", 105, DUE)
        assert record.state is LoanState.ACTIVE
        assert record.amount_due == 105
        assert record.end_time == DUE
        assert record.early_pay is False
        assert len(book.pending) == 0

    def test_approve_without_proposal(self):
        with pytest.raises(NoPendingProposal):
            LoanBook().approve("alice", 105, DUE)

    def test_approve_twice(self):
        book = LoanBook()
        book.propose("alice", 100)
        book.approve("alice", 105, DUE)
        with pytest.raises(NoPendingProposal):
            book.approve("alice", 105, DUE)

    def test_reject(self):
        book = LoanBook()
        book.propose("alice", 100)
        record = book.reject("alice")
        assert record.state is LoanState.NO_LOAN
        assert record.amount_proposed == 0
        assert len(book.pending) == 0

    def test_reject_unknown(self):
        with pytest.raises(NoPendingProposal):
            LoanBook().reject("nobody")

    def test_settle(self):
        book = LoanBook()
        book.propose("alice", 100)
        book.approve("alice", 105, DUE)
        record = book.settle("alice", early=False)
        assert record.state is LoanState.NO_LOAN
        assert record.amount_due == 0
        assert record.end_time is None
        assert record.early_pay is False

    def test_settle_without_loan(self):
        with pytest.raises(NoActiveLoan):
            LoanBook().settle("alice", early=True)

    def test_settle_pending_proposal(self):
        book = LoanBook()
        book.propose("alice", 100)
        with pytest.raises(NoActiveLoan):
            book.settle("alice", early=True)


class TestBackReferences:
    """pending_index_key follows swap-removals."""

    def test_reject_first_relocates_last(self):
        book = LoanBook()
        for name, amount in (("alice", 1), ("bob", 2), ("carol", 3)):
            book.propose(name, amount)

        book.reject("alice")

        assert book.pending.snapshot() == ("carol", "bob")
        assert book.get("carol").pending_index_key == 0
        assert book.get("bob").pending_index_key == 1
        assert book.check_invariants() == []

    def test_mixed_removals(self):
        book = LoanBook()
        names = ["a", "b", "c", "d", "e"]
        for i, name in enumerate(names):
            book.propose(name, i + 1)

        book.approve("b", 3, DUE)
        book.reject("e")
        book.propose("f", 7)
        book.reject("a")

        assert book.check_invariants() == []
        for position, borrower in enumerate(book.pending):
            assert book.get(borrower).pending_index_key == position
        assert sorted(book.pending) == ["c", "d", "f"]

    def test_check_invariants_detects_corruption(self):
        book = LoanBook()
        book.propose("alice", 1)
        book.propose("bob", 2)
        book.get_or_create("bob").pending_index_key = 0
        assert book.check_invariants() != []


class TestAggregates:
    """Overdue and outstanding views."""

    def test_overdue_and_outstanding(self):
        book = LoanBook()
        book.propose("alice", 100)
        book.propose("bob", 200)
        book.approve("alice", 105, datetime(2025, 1, 10))
        book.approve("bob", 210, datetime(2025, 3, 1))

        assert book.outstanding_total() == 315
        assert book.overdue(datetime(2025, 2, 1)) == ["alice"]
        assert book.overdue(datetime(2025, 1, 10)) == []
        assert [r.borrower for r in book.active_loans()] == ["alice", "bob"]
