"""
pending_index.py - Removable index of pending proposals

An array-backed list of borrower identities awaiting an owner decision.
Each borrower's loan record stores its own position (its key), so removal is
O(1): the last entry is moved into the freed slot and the owner of that entry
is told its new key through the relocation callback.

Order is not meaningful - only membership and O(1) removal are.
"""

from __future__ import annotations
from typing import Callable, Iterator, List, Optional, Tuple

from .core import IndexOutOfRange


# Called as on_relocate(borrower, new_key) when swap-removal moves an entry
RelocateCallback = Callable[[str, int], None]


class PendingIndex:
    """
    Insertion-ordered, swap-removable sequence of borrower identities.

    Example:
        index = PendingIndex()
        index.insert("alice")   # 0
        index.insert("bob")     # 1
        index.insert("carol")   # 2
        index.remove_at(0)      # "carol" moves into slot 0
        index.get(0)            # "carol"
    """

    def __init__(self, on_relocate: Optional[RelocateCallback] = None):
        self._slots: List[str] = []
        self._on_relocate = on_relocate

    def insert(self, borrower: str) -> int:
        """Append a borrower and return its key."""
        self._slots.append(borrower)
        return len(self._slots) - 1

    def remove_at(self, key: int) -> Optional[str]:
        """
        Remove the entry at key by swapping in the last entry.

        Returns:
            The borrower that was moved into key, or None if key was last.

        Raises:
            IndexOutOfRange: If key >= len(self)
        """
        self._check(key)
        last = len(self._slots) - 1
        moved = None
        if key != last:
            moved = self._slots[last]
            self._slots[key] = moved
            if self._on_relocate is not None:
                self._on_relocate(moved, key)
        self._slots.pop()
        return moved

    def get(self, index: int) -> str:
        """
        Positional lookup.

        Raises:
            IndexOutOfRange: If index is out of bounds
        """
        self._check(index)
        return self._slots[index]

    def snapshot(self) -> Tuple[str, ...]:
        return tuple(self._slots)

    def _check(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._slots):
            raise IndexOutOfRange(
                f"Pending index {index!r} out of range (length {len(self._slots)})"
            )

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._slots))

    def __repr__(self) -> str:
        return f"PendingIndex({list(self._slots)!r})"
