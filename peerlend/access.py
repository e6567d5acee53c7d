"""
access.py - Access gate

Precondition checks composed at the top of every pool operation. They have no
side effects and run before any mutation.
"""

from __future__ import annotations

from .core import ContractState, InvalidLedgerState, Unauthorized


def require_owner(owner: str, caller: str) -> None:
    """Raises Unauthorized unless caller is the owner."""
    if caller != owner:
        raise Unauthorized(f"{caller} is not the owner")


def require_state(current: ContractState, expected: ContractState) -> None:
    """Raises InvalidLedgerState unless the pool is in the expected state."""
    if current is not expected:
        raise InvalidLedgerState(
            f"Pool is {current.value}, operation requires {expected.value}"
        )


def require_open(current: ContractState) -> None:
    require_state(current, ContractState.OPEN)


def require_paused(current: ContractState) -> None:
    require_state(current, ContractState.PAUSED)
