"""
test_pending_index.py - Unit tests for the swap-removable pending index

Tests:
- Insertion keys
- Swap-with-last removal and relocation callback
- Bounds checking on get() and remove_at()
"""

import pytest

from peerlend import PendingIndex, IndexOutOfRange


class TestInsert:
    """Keys are positions at insertion time."""

    def test_keys_are_sequential(self):
        index = PendingIndex()
        assert index.insert("alice") == 0
        assert index.insert("bob") == 1
        assert index.insert("carol") == 2
        assert len(index) == 3
        assert index.snapshot() == ("alice", "bob", "carol")

    def test_get(self):
        index = PendingIndex()
        index.insert("alice")
        index.insert("bob")
        assert index.get(1) == "bob"


class TestRemoveAt:
    """Removal moves the last entry into the freed slot."""

    def test_remove_first_moves_last_into_slot(self):
        index = PendingIndex()
        for name in ("alice", "bob", "carol"):
            index.insert(name)

        moved = index.remove_at(0)

        assert moved == "carol"
        assert index.snapshot() == ("carol", "bob")

    def test_remove_last_moves_nothing(self):
        index = PendingIndex()
        index.insert("alice")
        index.insert("bob")

        assert index.remove_at(1) is None
        assert index.snapshot() == ("alice",)

    def test_remove_only_entry(self):
        index = PendingIndex()
        index.insert("alice")
        assert index.remove_at(0) is None
        assert len(index) == 0

    def test_relocation_callback_reports_new_key(self):
        relocated = []
        index = PendingIndex(on_relocate=lambda borrower, key: relocated.append((borrower, key)))
        for name in ("alice", "bob", "carol", "dave"):
            index.insert(name)

        index.remove_at(1)

        assert relocated == [("dave", 1)]
        assert index.snapshot() == ("alice", "dave", "carol")

    def test_callback_not_called_when_removing_last(self):
        relocated = []
        index = PendingIndex(on_relocate=lambda borrower, key: relocated.append((borrower, key)))
        index.insert("alice")
        index.insert("bob")
        index.remove_at(1)
        assert relocated == []

    def test_reinsert_after_removal(self):
        index = PendingIndex()
        index.insert("alice")
        index.remove_at(0)
        assert index.insert("bob") == 0


class TestBounds:
    """Out-of-range access raises IndexOutOfRange."""

    def test_get_on_empty(self):
        with pytest.raises(IndexOutOfRange):
            PendingIndex().get(0)

    def test_get_past_end(self):
        index = PendingIndex()
        index.insert("alice")
        with pytest.raises(IndexOutOfRange):
            index.get(1)

    def test_negative_index(self):
        index = PendingIndex()
        index.insert("alice")
        with pytest.raises(IndexOutOfRange):
            index.get(-1)

    def test_remove_past_end_leaves_index_unchanged(self):
        index = PendingIndex()
        index.insert("alice")
        with pytest.raises(IndexOutOfRange):
            index.remove_at(1)
        assert index.snapshot() == ("alice",)

    def test_is_an_index_error(self):
        with pytest.raises(IndexError):
            PendingIndex().get(0)
